import datetime as dt
import threading
import uuid

import pytest
from django.db import connection, transaction

from apps.bookings import engine
from apps.bookings.engine import (
    CLOSED,
    NOT_A_START_SLOT,
    TOO_SOON,
    compute_available_slots,
    release,
    reschedule,
    reserve,
)
from apps.bookings.models import Appointment, AppointmentStatus, AppointmentStatusLog, SlotLedger
from apps.core.exceptions import (
    CrossesMidnightError,
    ReservationNotFound,
    SlotConflictError,
    SlotNotBookable,
    SlotOutOfRange,
    StaffNotFound,
    ValidationError,
)
from apps.services.day_config import Weekday, update_day_config

pytestmark = pytest.mark.django_db


class TestReserve:
    def test_creates_confirmed_appointment(self, service, staff, booking_date, now):
        appointment = reserve(service.pk, staff.pk, booking_date, 18, client_name=' Meera ', now=now)

        assert appointment.status == AppointmentStatus.CONFIRMED
        assert (appointment.start_slot, appointment.end_slot, appointment.slots_used) == (18, 21, 3)
        assert appointment.duration == 90
        assert appointment.business_id == service.business_id
        assert appointment.scheduled_for == dt.datetime(2030, 1, 3, 9, 0, tzinfo=dt.timezone.utc)
        assert appointment.status_logs.get().to_status == AppointmentStatus.CONFIRMED

    def test_reservation_body(self, service, staff, booking_date, now):
        body = reserve(service.pk, staff.pk, booking_date, 21, now=now).as_reservation()
        assert body['startTime'] == '10:30'
        assert body['endTime'] == '12:00'
        assert body['slotsUsed'] == 3
        assert body['status'] == 'CONFIRMED'

    def test_overlapping_start_conflicts(self, service, staff, booking_date, now):
        reserve(service.pk, staff.pk, booking_date, 18, now=now)
        with pytest.raises(SlotConflictError) as excinfo:
            reserve(service.pk, staff.pk, booking_date, 19, now=now)
        assert excinfo.value.http_status == 409
        assert Appointment.objects.count() == 1

    def test_sequential_double_booking_conflicts(self, service, staff, booking_date, now):
        reserve(service.pk, staff.pk, booking_date, 18, now=now)
        with pytest.raises(SlotConflictError):
            reserve(service.pk, staff.pk, booking_date, 18, now=now)

    def test_adjacent_ranges_do_not_conflict(self, service, staff, booking_date, now):
        reserve(service.pk, staff.pk, booking_date, 18, now=now)
        reserve(service.pk, staff.pk, booking_date, 21, now=now)
        assert Appointment.objects.filter(status=AppointmentStatus.CONFIRMED).count() == 2

    def test_closed_day(self, make_service, make_staff, booking_date, now):
        service = make_service(available_days=[Weekday.MONDAY])
        staff = make_staff(services=[service])
        with pytest.raises(SlotNotBookable) as excinfo:
            reserve(service.pk, staff.pk, booking_date, 18, now=now)
        assert excinfo.value.reason == CLOSED

    def test_not_a_start_slot(self, service, staff, booking_date, now):
        with pytest.raises(SlotNotBookable) as excinfo:
            reserve(service.pk, staff.pk, booking_date, 20, now=now)
        assert excinfo.value.reason == NOT_A_START_SLOT

    def test_too_soon(self, service, staff, now):
        with pytest.raises(SlotNotBookable) as excinfo:
            reserve(service.pk, staff.pk, now.date(), 18, now=now)
        assert excinfo.value.reason == TOO_SOON
        assert excinfo.value.as_dict()['details'] == {'reason': TOO_SOON}

    def test_crosses_midnight(self, make_service, make_staff, booking_date, now):
        service = make_service(start_time='22:00', end_time='24:00')
        staff = make_staff(services=[service])
        with pytest.raises(CrossesMidnightError):
            reserve(service.pk, staff.pk, booking_date, 47, now=now)
        assert not SlotLedger.objects.exists()

    @pytest.mark.parametrize('start_slot', [-1, 48, 100])
    def test_slot_out_of_range(self, service, staff, booking_date, start_slot):
        with pytest.raises(SlotOutOfRange):
            reserve(service.pk, staff.pk, booking_date, start_slot)

    @pytest.mark.parametrize('start_slot', ['abc', None, 18.5, True])
    def test_malformed_start_slot(self, service, staff, booking_date, start_slot):
        with pytest.raises(ValidationError):
            reserve(service.pk, staff.pk, booking_date, start_slot)

    def test_staff_is_required(self, service, booking_date, now):
        with pytest.raises(StaffNotFound):
            reserve(service.pk, None, booking_date, 18, now=now)

    def test_staff_windows_are_honoured(self, service, staff, make_staff, booking_date, now):
        colleague = make_staff('Bina', services=[service])
        update_day_config(service, Weekday.THURSDAY, [
            {'startTime': '09:00', 'endTime': '10:30', 'staffId': str(colleague.pk)},
        ])
        with pytest.raises(SlotNotBookable):
            reserve(service.pk, staff.pk, booking_date, 18, now=now)
        assert reserve(service.pk, colleague.pk, booking_date, 18, now=now).staff_id == colleague.pk

    def test_bumps_ledger_version(self, service, staff, booking_date, now):
        reserve(service.pk, staff.pk, booking_date, 18, now=now)
        reserve(service.pk, staff.pk, booking_date, 21, now=now)
        ledger = SlotLedger.objects.get(service=service, staff=staff, booking_date=booking_date)
        assert ledger.version == 2

    def test_slots_used_is_frozen_at_booking_time(self, service, staff, booking_date, now):
        appointment = reserve(service.pk, staff.pk, booking_date, 18, now=now)
        service.duration = 30
        service.save()

        appointment.refresh_from_db()
        assert (appointment.start_slot, appointment.end_slot) == (18, 21)
        slots = {s.slot_index: s for s in compute_available_slots(service, staff, booking_date, now=now)}
        assert [i for i, s in slots.items() if s.is_occupied] == [18, 19, 20]
        assert slots[21].can_start_service


class TestRelease:
    def test_frees_the_range(self, service, staff, booking_date, now):
        appointment = reserve(service.pk, staff.pk, booking_date, 18, now=now)
        released = release(appointment.pk, business_id=service.business_id)

        assert released.status == AppointmentStatus.CANCELLED
        assert set(released.status_logs.values_list('to_status', flat=True)) == {
            AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED,
        }
        assert reserve(service.pk, staff.pk, booking_date, 18, now=now).start_slot == 18

    def test_release_twice(self, service, staff, booking_date, now):
        appointment = reserve(service.pk, staff.pk, booking_date, 18, now=now)
        release(appointment.pk)
        with pytest.raises(ReservationNotFound):
            release(appointment.pk)

    @pytest.mark.parametrize('reservation_id', [uuid.uuid4(), 'garbage'])
    def test_unknown_reservation(self, reservation_id):
        with pytest.raises(ReservationNotFound):
            release(reservation_id)

    def test_other_business_cannot_release(self, service, staff, other_business, booking_date, now):
        appointment = reserve(service.pk, staff.pk, booking_date, 18, now=now)
        with pytest.raises(ReservationNotFound):
            release(appointment.pk, business_id=other_business.pk)


class TestReschedule:
    def test_moves_the_reservation(self, service, staff, booking_date, now):
        original = reserve(service.pk, staff.pk, booking_date, 18, client_name='Meera', now=now)
        moved = reschedule(original.pk, booking_date, 21, now=now)

        original.refresh_from_db()
        assert original.status == AppointmentStatus.CANCELLED
        assert moved.start_slot == 21
        assert moved.client_name == 'Meera'
        assert moved.staff_id == staff.pk

    def test_failed_reserve_leaves_original_released(self, service, staff, booking_date, now):
        original = reserve(service.pk, staff.pk, booking_date, 18, now=now)
        reserve(service.pk, staff.pk, booking_date, 21, now=now)

        with pytest.raises(SlotConflictError):
            reschedule(original.pk, booking_date, 21, now=now)

        original.refresh_from_db()
        assert original.status == AppointmentStatus.CANCELLED

    def test_malformed_target_keeps_original(self, service, staff, booking_date, now):
        original = reserve(service.pk, staff.pk, booking_date, 18, now=now)
        with pytest.raises(SlotOutOfRange):
            reschedule(original.pk, booking_date, 48, now=now)
        original.refresh_from_db()
        assert original.status == AppointmentStatus.CONFIRMED


class TestReserveChecksUnderLedgerLock:
    def test_occupancy_is_read_after_the_lock(self, service, staff, booking_date, now, monkeypatch):
        events = []
        lock = engine._lock_ledger
        read = engine._confirmed_ranges

        def locking(*args):
            events.append('lock')
            return lock(*args)

        def reading(*args):
            events.append('read')
            return read(*args)

        monkeypatch.setattr(engine, '_lock_ledger', locking)
        monkeypatch.setattr(engine, '_confirmed_ranges', reading)
        reserve(service.pk, staff.pk, booking_date, 18, now=now)

        assert events[:2] == ['lock', 'read']

    def test_rival_committed_before_lock_is_seen(self, service, staff, booking_date, now, monkeypatch):
        lock = engine._lock_ledger

        def lock_after_rival(rival_service, rival_staff, day):
            ledger = lock(rival_service, rival_staff, day)
            Appointment.objects.create(
                business=rival_service.business, service=rival_service, staff=rival_staff,
                client_name='Rival', booking_date=day, duration=90,
                start_slot=18, end_slot=21, slots_used=3, status=AppointmentStatus.CONFIRMED,
            )
            return ledger

        monkeypatch.setattr(engine, '_lock_ledger', lock_after_rival)
        with pytest.raises(SlotConflictError):
            reserve(service.pk, staff.pk, booking_date, 19, client_name='Late', now=now)

        assert not Appointment.objects.filter(client_name='Late').exists()
        assert not AppointmentStatusLog.objects.exists()
        assert not SlotLedger.objects.filter(version__gt=0).exists()


# Needs real row locks: DATABASE_URL=postgres://... pytest -m postgres
@pytest.mark.postgres
@pytest.mark.django_db(transaction=True)
class TestConcurrentReserve:
    def test_only_one_of_two_racing_reservations_wins(self, service, staff, booking_date, now):
        if connection.vendor == 'sqlite':
            pytest.skip('Row locks need a database with SELECT ... FOR UPDATE')

        barrier = threading.Barrier(2)
        outcomes = []

        def attempt():
            barrier.wait()
            try:
                reserve(service.pk, staff.pk, booking_date, 18, now=now)
                outcomes.append('reserved')
            except SlotConflictError:
                outcomes.append('conflict')
            finally:
                connection.close()

        threads = [threading.Thread(target=attempt) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(outcomes) == ['conflict', 'reserved']
        assert Appointment.objects.filter(status=AppointmentStatus.CONFIRMED).count() == 1


class TestAvailabilityMatchesReserve:
    def test_every_offered_start_is_reservable_and_no_other(self, make_service, make_staff, booking_date, now):
        service = make_service(duration=60)
        staff = make_staff(services=[service])
        update_day_config(service, Weekday.THURSDAY, [{'startTime': '09:00', 'endTime': '12:00'}])
        reserve(service.pk, staff.pk, booking_date, 20, now=now)

        slots = compute_available_slots(service, staff, booking_date, now=now)
        offered = {s.slot_index for s in slots if s.can_start_service}
        assert offered == {18, 22}

        for start_slot in range(16, 24):
            with transaction.atomic():
                try:
                    reserve(service.pk, staff.pk, booking_date, start_slot, now=now)
                    reserved = True
                except (SlotConflictError, SlotNotBookable):
                    reserved = False
                transaction.set_rollback(True)
            assert reserved is (start_slot in offered), start_slot

import datetime as dt
from io import StringIO

import pytest
from django.core.management import call_command
from django.db import DatabaseError

from apps.bookings import legacy
from apps.bookings.engine import reserve
from apps.bookings.legacy import migrate_to_slots, validate_migration
from apps.bookings.models import Appointment
from apps.services.models import Service

pytestmark = pytest.mark.django_db


def _utc(*args):
    return dt.datetime(*args, tzinfo=dt.timezone.utc)


@pytest.fixture
def legacy_service(make_service):
    service = make_service(name='Gloss', duration=45)
    Service.all_objects.filter(pk=service.pk).update(slots_needed=None, duration=45)
    return Service.all_objects.get(pk=service.pk)


@pytest.fixture
def make_legacy_appointment(legacy_service):
    def _make(scheduled_for, service=None, duration=45):
        service = service or legacy_service
        return Appointment.objects.create(
            business=service.business,
            service=service,
            client_name='Legacy client',
            scheduled_for=scheduled_for,
            duration=duration,
        )
    return _make


class TestMigrateToSlots:
    def test_backfills_service_then_appointment(self, legacy_service, make_legacy_appointment, now):
        appointment = make_legacy_appointment(_utc(2025, 1, 15, 9, 30))

        report = migrate_to_slots(now=now)

        assert report.services.migrated == 1
        assert report.appointments.migrated == 1
        legacy_service.refresh_from_db()
        assert (legacy_service.slots_needed, legacy_service.duration) == (2, 60)
        assert legacy_service.slot_migration['originalDuration'] == 45
        assert legacy_service.slot_migration['calculatedSlotsNeeded'] == 2
        assert legacy_service.slot_migration['adjustedDuration'] == 60
        assert legacy_service.slot_migration['migratedAt'] == now.isoformat()

        appointment.refresh_from_db()
        assert (appointment.start_slot, appointment.end_slot, appointment.slots_used) == (19, 21, 2)
        assert appointment.booking_date == dt.date(2025, 1, 15)
        assert appointment.slot_details['range'] == '09:30-10:30'

    def test_second_run_changes_nothing(self, legacy_service, make_legacy_appointment, now):
        make_legacy_appointment(_utc(2025, 1, 15, 9, 30))
        migrate_to_slots(now=now)

        report = migrate_to_slots(now=now)
        assert report.services.migrated == 0
        assert report.appointments.migrated == 0
        assert report.warnings == []

    def test_already_slotted_records_are_untouched(self, service, staff, booking_date, now):
        reserve(service.pk, staff.pk, booking_date, 18, now=now)

        report = migrate_to_slots(now=now)
        assert report.as_dict()['services'] == {'migrated': 0, 'skipped': 0, 'errors': 0}
        assert report.as_dict()['appointments'] == {'migrated': 0, 'skipped': 0, 'errors': 0}
        service.refresh_from_db()
        assert service.slot_migration is None

    def test_cross_midnight_appointment_is_skipped(self, legacy_service, make_legacy_appointment, now):
        late = make_legacy_appointment(_utc(2025, 1, 15, 23, 30))

        report = migrate_to_slots(now=now)

        assert report.appointments.skipped == 1
        assert any('cross midnight' in warning for warning in report.warnings)
        late.refresh_from_db()
        assert late.start_slot is None

    def test_appointment_without_time_is_skipped(self, legacy_service, make_legacy_appointment, now):
        make_legacy_appointment(None)
        report = migrate_to_slots(now=now)
        assert report.appointments.skipped == 1

    def test_service_without_duration_is_skipped(self, legacy_service, now):
        Service.all_objects.filter(pk=legacy_service.pk).update(duration=0)
        report = migrate_to_slots(now=now)
        assert report.services.skipped == 1
        assert validate_migration()['servicesPending'] == 1

    def test_one_failing_record_does_not_stop_the_run(self, legacy_service, make_legacy_appointment,
                                                      now, monkeypatch):
        make_legacy_appointment(_utc(2025, 1, 15, 9, 30))

        def broken(service, report, now):
            raise DatabaseError('disk full')

        monkeypatch.setattr(legacy, '_migrate_service', broken)
        report = migrate_to_slots(now=now)

        assert report.services.errors == 1
        assert report.appointments.migrated == 1
        assert any('disk full' in warning for warning in report.warnings)

    def test_dry_run_writes_nothing(self, legacy_service, make_legacy_appointment, now):
        appointment = make_legacy_appointment(_utc(2025, 1, 15, 9, 30))

        report = migrate_to_slots(dry_run=True, now=now)

        assert report.dry_run is True
        assert report.services.migrated == 1
        assert report.appointments.migrated == 1
        appointment.refresh_from_db()
        assert appointment.start_slot is None
        assert Service.all_objects.get(pk=legacy_service.pk).slots_needed is None


class TestValidateMigration:
    def test_reports_pending_records(self, legacy_service, make_legacy_appointment, now):
        make_legacy_appointment(_utc(2025, 1, 15, 9, 30))
        assert validate_migration() == {
            'servicesPending': 1, 'appointmentsPending': 1, 'invalidRanges': 0, 'isComplete': False,
        }

        migrate_to_slots(now=now)
        assert validate_migration()['isComplete'] is True


class TestMigrateCommand:
    def test_prints_counts_and_summary(self, legacy_service, make_legacy_appointment):
        make_legacy_appointment(_utc(2025, 1, 15, 9, 30))
        out = StringIO()

        call_command('migrate_to_slots', stdout=out)

        output = out.getvalue()
        assert 'services: migrated 1' in output
        assert 'appointments: migrated 1' in output
        assert '0 services and 0 appointments still pending' in output

    def test_dry_run_flag(self, legacy_service):
        out = StringIO()
        call_command('migrate_to_slots', '--dry-run', stdout=out)
        assert 'Dry run' in out.getvalue()
        assert '1 services' in out.getvalue()

import datetime as dt
import uuid

import pytest

from apps.bookings.engine import compute_available_slots, reserve
from apps.core.exceptions import InvalidTimeFormat, StaffNotFound, ValidationError
from apps.services import day_config
from apps.services.day_config import (
    SlotDefinition,
    Weekday,
    get_day_config,
    materialize_day_config,
    update_day_config,
    weekday_for_date,
)
from apps.services.models import Service

pytestmark = pytest.mark.django_db


class TestWeekday:
    def test_sunday_is_zero(self):
        assert weekday_for_date(dt.date(2030, 1, 6)) is Weekday.SUNDAY
        assert weekday_for_date(dt.date(2030, 1, 3)) is Weekday.THURSDAY

    def test_coerce(self):
        assert Weekday.coerce('Monday') is Weekday.MONDAY
        assert Weekday.coerce(6) is Weekday.SATURDAY
        with pytest.raises(ValidationError):
            Weekday.coerce('funday')
        with pytest.raises(ValidationError):
            Weekday.coerce(7)


class TestServiceAlignment:
    def test_duration_rounds_up_to_whole_slots(self, make_service):
        service = make_service(duration=45)
        assert service.slots_needed == 2
        assert service.duration == 60

    def test_aligned_duration_is_kept(self, service):
        assert service.slots_needed == 3
        assert service.duration == 90

    def test_empty_available_days_means_every_day(self, make_service):
        service = make_service(available_days=[])
        assert all(service.operates_on(day) for day in Weekday)


class TestGetDayConfig:
    def test_generates_one_window_per_duration_step(self, service):
        definitions = get_day_config(service, Weekday.THURSDAY)
        assert [(d.start_time, d.end_time) for d in definitions] == [('09:00', '10:30'), ('10:30', '12:00')]
        assert [(d.start_slot, d.end_slot) for d in definitions] == [(18, 21), (21, 24)]
        assert all(d.capacity == 1 and d.staff_id == '' for d in definitions)

    def test_defaults_to_configured_day_window(self, make_service, settings):
        settings.SLOT_DEFAULT_DAY_START = '10:00'
        settings.SLOT_DEFAULT_DAY_END = '12:00'
        service = make_service(duration=60, start_time=None, end_time=None)
        definitions = get_day_config(service, 'monday')
        assert [d.start_time for d in definitions] == ['10:00', '11:00']

    def test_falls_back_to_single_window_when_nothing_fits(self, make_service):
        service = make_service(duration=240, start_time='09:00', end_time='10:00')
        definitions = get_day_config(service, Weekday.MONDAY)
        assert definitions == [SlotDefinition('09:00', '10:00', '', 1)]

    def test_persisted_definitions_win(self, service):
        service.slots = {'thursday': [{'startTime': '14:00', 'endTime': '17:00', 'capacity': 2}]}
        definitions = get_day_config(service, Weekday.THURSDAY)
        assert definitions == [SlotDefinition('14:00', '17:00', '', 2)]
        # Other weekdays are still generated.
        assert len(get_day_config(service, Weekday.FRIDAY)) == 2

    def test_read_never_writes(self, service):
        get_day_config(service, Weekday.THURSDAY)
        service.refresh_from_db()
        assert service.slots == {}

    def test_end_of_day_boundary(self, make_service):
        service = make_service(duration=60, start_time='22:00', end_time='24:00')
        definitions = get_day_config(service, Weekday.MONDAY)
        assert definitions[-1].end_time == '24:00'
        assert definitions[-1].end_slot == 48


class TestUpdateDayConfig:
    def test_replaces_only_the_given_weekday(self, service):
        update_day_config(service, Weekday.MONDAY, [{'startTime': '09:00', 'endTime': '11:00'}])
        update_day_config(service, Weekday.TUESDAY, [{'startTime': '13:00', 'endTime': '15:00', 'capacity': 3}])

        stored = Service.objects.get(pk=service.pk).slots
        assert stored['monday'] == [{'startTime': '09:00', 'endTime': '11:00', 'staffId': '', 'capacity': 1}]
        assert stored['tuesday'][0]['capacity'] == 3

    @pytest.mark.parametrize('definition, error', [
        ({'startTime': '10:00', 'endTime': '10:00'}, ValidationError),
        ({'startTime': '11:00', 'endTime': '10:00'}, ValidationError),
        ({'startTime': '09:00', 'endTime': '09:45'}, ValidationError),
        ({'startTime': '09:00', 'endTime': '10:00', 'capacity': 0}, ValidationError),
        ({'startTime': '09:00', 'endTime': '10:00', 'capacity': 'many'}, ValidationError),
        ({'startTime': '9am', 'endTime': '10:00'}, InvalidTimeFormat),
    ])
    def test_rejects_invalid_definitions(self, service, definition, error):
        with pytest.raises(error):
            update_day_config(service, Weekday.MONDAY, [definition])
        service.refresh_from_db()
        assert service.slots == {}

    def test_staff_must_belong_to_the_business(self, service, make_staff, other_business):
        outsider = make_staff('Outsider', owner=other_business)
        with pytest.raises(StaffNotFound):
            update_day_config(service, Weekday.MONDAY, [
                {'startTime': '09:00', 'endTime': '10:30', 'staffId': str(outsider.pk)},
            ])

    def test_business_can_require_staff_on_every_slot(self, service, business, staff):
        business.requires_staff_assignment = True
        business.save()
        with pytest.raises(ValidationError):
            update_day_config(service, Weekday.MONDAY, [{'startTime': '09:00', 'endTime': '10:30'}])

        definitions = update_day_config(service, Weekday.MONDAY, [
            {'startTime': '09:00', 'endTime': '10:30', 'staffId': str(staff.pk)},
        ])
        assert definitions[0].staff_id == str(staff.pk)


class TestMaterializeDayConfig:
    def test_persists_generated_definitions(self, service):
        materialize_day_config(service, Weekday.THURSDAY)
        stored = Service.objects.get(pk=service.pk).slots
        assert [d['startTime'] for d in stored['thursday']] == ['09:00', '10:30']
        assert 'friday' not in stored

    def test_keeps_existing_definitions(self, service):
        update_day_config(service, Weekday.THURSDAY, [{'startTime': '14:00', 'endTime': '15:30'}])
        definitions = materialize_day_config(service, Weekday.THURSDAY)
        assert [d.start_time for d in definitions] == ['14:00']


class TestPinnedStaff:
    def test_staff_id_is_stored_canonically(self, service, staff, booking_date, now):
        definitions = update_day_config(service, Weekday.THURSDAY, [
            {'startTime': '09:00', 'endTime': '10:30', 'staffId': str(staff.pk).upper()},
        ])

        assert definitions[0].staff_id == str(staff.pk)
        assert Service.objects.get(pk=service.pk).slots['thursday'][0]['staffId'] == str(staff.pk)
        slots = compute_available_slots(service, staff, booking_date, now=now)
        assert [s.slot_index for s in slots] == [18]
        assert reserve(service.pk, staff.pk, booking_date, 18, now=now).staff_id == staff.pk

    def test_staff_must_perform_the_service(self, service, make_staff):
        unlinked = make_staff('Devi')
        with pytest.raises(StaffNotFound):
            update_day_config(service, Weekday.THURSDAY, [
                {'startTime': '09:00', 'endTime': '10:30', 'staffId': str(unlinked.pk)},
            ])
        service.refresh_from_db()
        assert service.slots == {}

    def test_hand_edited_ids_still_match(self, service, staff):
        definition = SlotDefinition('09:00', '10:30', staff.pk.hex.upper(), 1)
        assert definition.allows_staff(staff.pk)
        assert not definition.allows_staff(uuid.uuid4())


class TestStoredDefinitionsOnRead:
    def test_bad_rows_are_skipped(self, service, monkeypatch):
        warnings = []
        monkeypatch.setattr(day_config.logger, 'warning', lambda message, *args: warnings.append(message % args))
        Service.objects.filter(pk=service.pk).update(slots={'thursday': [
            {'startTime': '09:00', 'endTime': '10:30', 'capacity': 'abc'},
            {'startTime': '10:00', 'endTime': '09:00'},
            {'startTime': 'late', 'endTime': '23:00'},
            'not an object',
            {'startTime': '13:00', 'endTime': '14:30', 'capacity': '2'},
        ]})
        service.refresh_from_db()

        definitions = get_day_config(service, Weekday.THURSDAY)

        assert definitions == [SlotDefinition('13:00', '14:30', '', 2)]
        assert len([w for w in warnings if w.startswith('Ignoring bad thursday')]) == 4

    def test_zero_capacity_is_skipped(self, service):
        service.slots = {'monday': [{'startTime': '09:00', 'endTime': '10:30', 'capacity': 0}]}
        assert get_day_config(service, Weekday.MONDAY) == []

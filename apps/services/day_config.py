"""
Per-weekday slot configuration for a service.

Service.slots is stored as JSON keyed by weekday name:

    {"monday": [{"startTime": "09:00", "endTime": "12:00",
                 "staffId": "", "capacity": 1}, ...], ...}

This module is the only code that reads or writes that blob; everything
else works with Weekday and SlotDefinition.

Two tiers:
  get_day_config()          compute-if-absent, pure, never writes
  update_day_config()       explicit write of one weekday key
  materialize_day_config()  persist what get_day_config() would generate
"""
import enum
import logging
from dataclasses import dataclass, replace
from datetime import date as date_type

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.core.clock import (
    SLOT_MINUTES,
    SLOTS_PER_DAY,
    MINUTES_PER_DAY,
    minutes_to_time,
    time_to_minutes,
)
from apps.core.exceptions import ServiceNotFound, ValidationError
from apps.staff.models import get_staff_for_service

logger = logging.getLogger(__name__)


class Weekday(enum.IntEnum):
    """0=Sunday numbering, matching Service.available_days."""
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @property
    def key(self) -> str:
        return self.name.lower()

    @classmethod
    def coerce(cls, value) -> 'Weekday':
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValidationError(f"Unknown weekday {value!r}.") from None
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unknown weekday {value!r}.") from None


def weekday_for_date(day: date_type) -> Weekday:
    # date.weekday() is Monday=0; shift to Sunday=0
    return Weekday((day.weekday() + 1) % 7)


def _boundary_minutes(hhmm: str) -> int:
    """HH:MM as minutes, also accepting '24:00' as the end of the day."""
    if isinstance(hhmm, str) and hhmm.strip() == '24:00':
        return MINUTES_PER_DAY
    return time_to_minutes(hhmm)


@dataclass(frozen=True)
class SlotDefinition:
    """One bookable window of a weekday: [start_time, end_time) for staff_id."""
    start_time: str
    end_time: str
    staff_id: str = ''
    capacity: int = 1

    @property
    def start_slot(self) -> int:
        return _boundary_minutes(self.start_time) // SLOT_MINUTES

    @property
    def end_slot(self) -> int:
        return min(_boundary_minutes(self.end_time) // SLOT_MINUTES, SLOTS_PER_DAY)

    def allows_staff(self, staff_id) -> bool:
        """Empty staff_id means any staff member may work this window."""
        if not self.staff_id or staff_id is None:
            return True
        return _id_key(self.staff_id) == _id_key(staff_id)

    def to_dict(self) -> dict:
        return {
            'startTime': self.start_time,
            'endTime': self.end_time,
            'staffId': self.staff_id,
            'capacity': self.capacity,
        }

    @classmethod
    def from_dict(cls, raw: dict, default_capacity: int = 1) -> 'SlotDefinition':
        if isinstance(raw, SlotDefinition):
            return raw
        if not isinstance(raw, dict):
            raise ValidationError('Each slot definition must be an object.')
        capacity = raw.get('capacity')
        return cls(
            start_time=raw.get('startTime', raw.get('start_time', '')),
            end_time=raw.get('endTime', raw.get('end_time', '')),
            staff_id=str(raw.get('staffId', raw.get('staff_id')) or ''),
            capacity=default_capacity if capacity in (None, '') else capacity,
        )


def _id_key(value) -> str:
    # UUIDs typed by hand may differ in case or hyphens.
    return str(value).replace('-', '').lower()


def _default_capacity(service) -> int:
    return service.max_capacity or 1


# ── Read path ─────────────────────────────────────────────────────────────────

def get_day_config(service, weekday) -> list:
    """
    Slot definitions for one weekday of a service.

    Persisted definitions win when present and non-empty. Otherwise they
    are generated from start_time/end_time/duration, one window per
    duration step that fits; if none fits, a single window spanning the
    configured hours is returned so an open day is never empty.
    """
    weekday = Weekday.coerce(weekday)
    capacity = _default_capacity(service)

    persisted = (service.slots or {}).get(weekday.key) or []
    if persisted:
        definitions = []
        for raw in persisted:
            try:
                definitions.append(_stored_definition(raw, capacity))
            except (ValidationError, TypeError, ValueError) as exc:
                logger.warning(
                    'Ignoring bad %s slot definition on service %s: %s', weekday.key, service.pk, exc,
                )
        return definitions

    return _generate_definitions(service, capacity)


def _stored_definition(raw, default_capacity: int) -> SlotDefinition:
    """
    A persisted definition checked again on read. The JSON can be edited
    outside update_day_config() (admin, shell), so bad rows are rejected here.
    """
    definition = SlotDefinition.from_dict(raw, default_capacity)
    capacity = int(definition.capacity)
    if capacity < 1:
        raise ValidationError(f"capacity must be at least 1, got {capacity}.")
    if definition.end_slot <= definition.start_slot:
        raise ValidationError("end time must be after start time.")
    return replace(definition, capacity=capacity)


def _generate_definitions(service, capacity: int) -> list:
    start_str = service.start_time or settings.SLOT_DEFAULT_DAY_START
    end_str = service.end_time or settings.SLOT_DEFAULT_DAY_END
    step = service.duration or settings.SLOT_DEFAULT_STEP_MINUTES

    start = _boundary_minutes(start_str)
    end = _boundary_minutes(end_str)

    definitions = []
    current = start
    while current + step <= end:
        definitions.append(SlotDefinition(
            start_time=minutes_to_time(current),
            end_time=minutes_to_time(current + step),
            capacity=capacity,
        ))
        current += step

    if not definitions:
        definitions.append(SlotDefinition(start_time=start_str, end_time=end_str, capacity=capacity))
    return definitions


# ── Write path ────────────────────────────────────────────────────────────────

def validate_definitions(service, definitions, require_staff=None) -> list:
    """Normalise and validate a list of definitions (dicts or SlotDefinition)."""
    if require_staff is None:
        require_staff = service.business.requires_staff_assignment

    cleaned = []
    for index, raw in enumerate(definitions):
        definition = SlotDefinition.from_dict(raw, _default_capacity(service))
        label = f"Slot definition #{index + 1}"

        try:
            capacity = int(definition.capacity)
        except (TypeError, ValueError):
            raise ValidationError(f"{label}: capacity must be an integer.") from None
        if capacity < 1:
            raise ValidationError(f"{label}: capacity must be at least 1.")

        start = _boundary_minutes(definition.start_time)
        end = _boundary_minutes(definition.end_time)
        if end <= start:
            raise ValidationError(f"{label}: end time must be after start time.")
        if (end - start) % SLOT_MINUTES:
            raise ValidationError(
                f"{label}: window length must be a multiple of {SLOT_MINUTES} minutes."
            )

        if require_staff and not definition.staff_id:
            raise ValidationError(f"{label}: this business requires a staff member on every slot.")
        staff_id = _resolve_staff_id(service, definition.staff_id) if definition.staff_id else ''

        cleaned.append(SlotDefinition(
            start_time=definition.start_time.strip(),
            end_time=definition.end_time.strip(),
            staff_id=staff_id,
            capacity=capacity,
        ))
    return cleaned


def _resolve_staff_id(service, staff_id) -> str:
    """Canonical id of a staff member of this business who performs the service."""
    return str(get_staff_for_service(staff_id, service).pk)


def update_day_config(service, weekday, definitions) -> list:
    """
    Replace the definitions of one weekday; other weekdays are untouched.

    The service row is locked for the read-modify-write so two concurrent
    edits of different weekdays cannot drop each other's changes.
    """
    weekday = Weekday.coerce(weekday)
    cleaned = validate_definitions(service, definitions)
    return _write_day(service, weekday, cleaned)


def materialize_day_config(service, weekday) -> list:
    """Persist the definitions get_day_config() currently returns for weekday."""
    weekday = Weekday.coerce(weekday)
    definitions = get_day_config(service, weekday)
    if (service.slots or {}).get(weekday.key):
        return definitions
    return _write_day(service, weekday, definitions)


@transaction.atomic
def _write_day(service, weekday: Weekday, definitions: list) -> list:
    from apps.services.models import Service

    try:
        locked = Service.objects.select_for_update().get(pk=service.pk)
    except Service.DoesNotExist:
        raise ServiceNotFound() from None

    slots = dict(locked.slots or {})
    slots[weekday.key] = [d.to_dict() for d in definitions]
    locked.slots = slots
    locked.updated_at = timezone.now()
    locked.save(update_fields=['slots', 'updated_at'])

    service.slots = locked.slots
    service.updated_at = locked.updated_at
    logger.info(
        'Day config for service %s on %s set to %d definitions',
        service.pk, weekday.key, len(definitions),
    )
    return definitions


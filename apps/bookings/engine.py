"""
Slot engine: pure business logic, no HTTP/request awareness.

Public API:
  compute_available_slots(service, staff, booking_date, now=None)
  get_availability(service_id, staff_id, booking_date, business_id=None, now=None)
  get_month_availability(year, month, business, now=None)
  reserve(service_id, staff_id, booking_date, start_slot, business_id=None, client_name='', now=None)
  release(reservation_id, business_id=None, changed_by='system')
  reschedule(reservation_id, booking_date, start_slot, staff_id=None, business_id=None, now=None)

Every function that looks at "now" accepts it as a parameter so callers
and tests can pin the clock; it defaults to timezone.now().
"""
import calendar
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date as date_type, datetime, time as time_type, timedelta
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.core.clock import (
    SLOT_MINUTES,
    SLOTS_PER_DAY,
    add_slots,
    is_valid_slot_range,
    slot_boundary_time,
    slot_to_time,
    slots_to_duration,
)
from apps.core.exceptions import (
    CrossesMidnightError,
    ReservationNotFound,
    SlotConflictError,
    SlotNotBookable,
    SlotOutOfRange,
    ValidationError,
)
from apps.core.http import parse_date
from apps.businesses.models import get_active_business
from apps.services.day_config import get_day_config, weekday_for_date
from apps.services.models import Service, get_service
from apps.staff.models import get_staff_for_service
from apps.bookings.models import (
    Appointment,
    AppointmentStatus,
    AppointmentStatusLog,
    SlotLedger,
)

logger = logging.getLogger(__name__)

OCCUPIED = 'occupied'
TOO_SOON = 'too soon'
TOO_FAR = 'too far'
CLOSED = 'closed'
NOT_A_START_SLOT = 'not a start slot'


@dataclass(frozen=True)
class SlotAvailability:
    """One candidate start slot for a booking of `end_slot - slot_index` slots."""
    slot_index: int
    end_slot: int
    time: str
    can_start_service: bool
    is_occupied: bool
    reason: Optional[str] = None

    @property
    def is_available(self):
        return self.can_start_service

    def as_dict(self):
        data = {
            'slotIndex': self.slot_index,
            'time': self.time,
            'endTime': slot_boundary_time(self.end_slot),
            'isAvailable': self.is_available,
            'isOccupied': self.is_occupied,
            'canStartService': self.can_start_service,
        }
        if self.reason:
            data['reason'] = self.reason
        return data


@dataclass
class AvailabilityResult:
    service: Service
    staff: object
    booking_date: date_type
    slots: list

    def as_dict(self):
        return {
            'availableSlots': [s.as_dict() for s in self.slots],
            'serviceName': self.service.name,
            'slotsNeeded': self.service.slots_required,
            'duration': slots_to_duration(self.service.slots_required),
            'date': self.booking_date.isoformat(),
            'staffId': str(self.staff.pk) if self.staff else None,
        }


# ── Input helpers ─────────────────────────────────────────────────────────────

def _coerce_date(value) -> date_type:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError("'date' must be a date in YYYY-MM-DD format.")
    return parsed


def _coerce_slot(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("'startSlot' must be an integer slot index.")
    try:
        index = int(value)
    except (TypeError, ValueError):
        raise ValidationError("'startSlot' must be an integer slot index.") from None
    if index != value and not isinstance(value, str):
        raise ValidationError("'startSlot' must be an integer slot index.")
    if index < 0 or index >= SLOTS_PER_DAY:
        raise SlotOutOfRange(f"Slot index {index} must be between 0 and {SLOTS_PER_DAY - 1}.")
    return index


def slot_start_datetime(booking_date: date_type, slot_index: int) -> datetime:
    """Aware datetime at which a slot starts, in the current time zone."""
    minutes = slot_index * SLOT_MINUTES
    naive = datetime.combine(booking_date, time_type(minutes // 60, minutes % 60))
    return timezone.make_aware(naive)


# ── Occupancy helpers ─────────────────────────────────────────────────────────

def _confirmed_ranges(service, staff, booking_date: date_type) -> list:
    """
    (start_slot, end_slot) of CONFIRMED reservations for the key.
    staff=None means every staff member of the service.
    """
    qs = Appointment.objects.filter(
        service=service,
        booking_date=booking_date,
        status=AppointmentStatus.CONFIRMED,
        start_slot__isnull=False,
        end_slot__isnull=False,
    )
    if staff is not None:
        qs = qs.filter(staff=staff)
    return list(qs.values_list('start_slot', 'end_slot'))


def _occupancy(ranges) -> list:
    """Reservations covering each slot of the day."""
    counts = [0] * SLOTS_PER_DAY
    for start, end in ranges:
        for index in range(max(start, 0), min(end, SLOTS_PER_DAY)):
            counts[index] += 1
    return counts


def _peak(counts, start: int, end: int) -> int:
    """Highest number of overlapping reservations anywhere in [start, end)."""
    return max(counts[start:end], default=0)


def _candidate_starts(service, staff, booking_date: date_type) -> dict:
    """
    Valid start indices for the day mapped to the capacity of the window
    that offers them. A start offered by several windows keeps the largest
    capacity.
    """
    slots_needed = service.slots_required
    staff_id = staff.pk if staff is not None else None
    candidates = {}
    for definition in get_day_config(service, weekday_for_date(booking_date)):
        if not definition.allows_staff(staff_id):
            continue
        for start in range(definition.start_slot, definition.end_slot):
            if add_slots(start, slots_needed) > definition.end_slot:
                break
            candidates[start] = max(candidates.get(start, 0), int(definition.capacity))
    return candidates


def _advance_notice_reason(service, booking_date: date_type, slot_index: int, now: datetime):
    if service.any_time_available:
        return None
    starts_at = slot_start_datetime(booking_date, slot_index)
    if starts_at < now + timedelta(hours=service.min_advance_hours or 0):
        return TOO_SOON
    if service.max_advance_days and starts_at > now + timedelta(days=service.max_advance_days):
        return TOO_FAR
    return None


def _build_slots(service, booking_date, candidates, counts, now) -> list:
    slots_needed = service.slots_required
    slots = []
    for start in sorted(candidates):
        end = add_slots(start, slots_needed)
        is_occupied = _peak(counts, start, end) >= candidates[start]
        reason = _advance_notice_reason(service, booking_date, start, now)
        if reason is None and is_occupied:
            reason = OCCUPIED
        slots.append(SlotAvailability(
            slot_index=start,
            end_slot=end,
            time=slot_to_time(start),
            can_start_service=reason is None,
            is_occupied=is_occupied,
            reason=reason,
        ))
    return slots


# ── Core: Availability ────────────────────────────────────────────────────────

def compute_available_slots(service, staff, booking_date: date_type, now=None, ranges=None) -> list:
    """
    Candidate start slots for service+staff+date, ordered by slot index.

    Empty list means the service does not run that weekday (not an error).
    A start is blocked as "occupied" once overlapping CONFIRMED reservations
    reach the window's capacity; "too soon" / "too far" come from the
    service's advance-notice window and take precedence.
    """
    now = now or timezone.now()
    if not service.operates_on(int(weekday_for_date(booking_date))):
        return []

    candidates = _candidate_starts(service, staff, booking_date)
    if not candidates:
        return []

    if ranges is None:
        ranges = _confirmed_ranges(service, staff, booking_date)
    return _build_slots(service, booking_date, candidates, _occupancy(ranges), now)


def get_availability(service_id, staff_id, booking_date, business_id=None, now=None) -> AvailabilityResult:
    """
    Resolve ids and compute availability.

    Raises ServiceNotFound / StaffNotFound for unknown, inactive or
    other-tenant ids, and for staff not linked to the service. staff_id
    may be empty to mean "any staff member".
    """
    booking_date = _coerce_date(booking_date)
    service = get_service(service_id, business_id)
    staff = get_staff_for_service(staff_id, service) if staff_id else None
    slots = compute_available_slots(service, staff, booking_date, now=now)
    return AvailabilityResult(service=service, staff=staff, booking_date=booking_date, slots=slots)


def get_month_availability(year, month, business, now=None) -> dict:
    """
    Calendar summary for every active service of a business:

      {"YYYY-MM-DD": [{serviceId, serviceName, slotsNeeded, totalStarts,
                       availableStarts, firstAvailable}, ...]}

    Services with no start slots on a day are left out of that day.
    """
    try:
        year, month = int(year), int(month)
    except (TypeError, ValueError):
        raise ValidationError('year and month must be integers.') from None
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise ValidationError('month must be 1-12 and year a valid calendar year.')

    if not hasattr(business, 'pk'):
        business = get_active_business(business)

    now = now or timezone.now()
    first = date_type(year, month, 1)
    last = date_type(year, month, calendar.monthrange(year, month)[1])

    services = list(Service.objects.filter(business=business, is_active=True).order_by('name', 'id'))

    # One query for the whole month instead of one per service per day.
    booked = defaultdict(list)
    for service_id, day, start, end in Appointment.objects.filter(
        service__in=services,
        booking_date__range=(first, last),
        status=AppointmentStatus.CONFIRMED,
        start_slot__isnull=False,
        end_slot__isnull=False,
    ).values_list('service_id', 'booking_date', 'start_slot', 'end_slot'):
        booked[(service_id, day)].append((start, end))

    days = {}
    day = first
    while day <= last:
        summaries = []
        for service in services:
            slots = compute_available_slots(service, None, day, now=now, ranges=booked[(service.pk, day)])
            if not slots:
                continue
            open_slots = [s for s in slots if s.can_start_service]
            summaries.append({
                'serviceId': str(service.pk),
                'serviceName': service.name,
                'slotsNeeded': service.slots_required,
                'totalStarts': len(slots),
                'availableStarts': len(open_slots),
                'firstAvailable': open_slots[0].time if open_slots else None,
            })
        days[day.isoformat()] = summaries
        day += timedelta(days=1)
    return days


# ── Core: Reservation Allocator ───────────────────────────────────────────────

def _lock_ledger(service, staff, booking_date: date_type) -> SlotLedger:
    """Get-or-create the ledger row for the key and hold a row lock on it."""
    ledger, _ = SlotLedger.objects.get_or_create(
        service=service, staff=staff, booking_date=booking_date,
    )
    return SlotLedger.objects.select_for_update().get(pk=ledger.pk)


def _bump(ledger: SlotLedger) -> None:
    SlotLedger.objects.filter(pk=ledger.pk).update(version=F('version') + 1, updated_at=timezone.now())


def reserve(service_id, staff_id, booking_date, start_slot, business_id=None,
            client_name: str = '', now=None) -> Appointment:
    """
    Atomically reserve [start_slot, start_slot + slots_needed) and create
    a CONFIRMED Appointment.

    Availability is re-checked inside the transaction while the ledger row
    for (service, staff, date) is locked; an earlier availability response
    is never trusted.

    Raises:
      ValidationError / SlotOutOfRange  malformed input (before any lookup)
      ServiceNotFound / StaffNotFound   unknown ids or staff not linked
      CrossesMidnightError              range would end after slot 48
      SlotConflictError                 range overlaps reservations at capacity
      SlotNotBookable                   closed day, not a start slot, too soon/far
    """
    booking_date = _coerce_date(booking_date)
    start_slot = _coerce_slot(start_slot)
    now = now or timezone.now()

    service = get_service(service_id, business_id)
    staff = get_staff_for_service(staff_id, service)

    slots_needed = service.slots_required
    end_slot = add_slots(start_slot, slots_needed)
    if not is_valid_slot_range(start_slot, end_slot):
        raise CrossesMidnightError(
            f"A {slots_needed}-slot booking starting at {slot_to_time(start_slot)} would end after midnight."
        )

    with transaction.atomic():
        ledger = _lock_ledger(service, staff, booking_date)

        counts = _occupancy(_confirmed_ranges(service, staff, booking_date))
        operates = service.operates_on(int(weekday_for_date(booking_date)))
        candidates = _candidate_starts(service, staff, booking_date) if operates else {}
        capacity = candidates.get(start_slot) or service.max_capacity or 1

        if _peak(counts, start_slot, end_slot) >= capacity:
            raise SlotConflictError(slot=start_slot)
        if not operates:
            raise SlotNotBookable('The service is not offered on this day.', reason=CLOSED)
        if start_slot not in candidates:
            raise SlotNotBookable('No booking can start at this slot.', reason=NOT_A_START_SLOT)
        reason = _advance_notice_reason(service, booking_date, start_slot, now)
        if reason:
            raise SlotNotBookable(f'This slot is {reason} to book.', reason=reason)

        appointment = Appointment.objects.create(
            business_id=service.business_id,
            service=service,
            staff=staff,
            client_name=client_name or '',
            booking_date=booking_date,
            scheduled_for=slot_start_datetime(booking_date, start_slot),
            duration=slots_to_duration(slots_needed),
            start_slot=start_slot,
            end_slot=end_slot,
            slots_used=slots_needed,
            slot_details={
                'bookedAt': now.isoformat(),
                'serviceDuration': service.duration,
                'slotsNeeded': slots_needed,
                'capacity': capacity,
                'ledgerVersion': ledger.version + 1,
            },
            status=AppointmentStatus.CONFIRMED,
        )
        AppointmentStatusLog.objects.create(
            appointment=appointment,
            from_status='',
            to_status=AppointmentStatus.CONFIRMED,
            changed_by='api',
            reason='Reserved slots %d-%d' % (start_slot, end_slot),
        )
        _bump(ledger)

    logger.info(
        'Reserved %s-%s on %s for service %s / staff %s (appointment %s)',
        slot_to_time(start_slot), slot_boundary_time(end_slot), booking_date,
        service.pk, staff.pk, appointment.pk,
    )
    return appointment


def release(reservation_id, business_id=None, changed_by: str = 'system') -> Appointment:
    """
    Cancel a CONFIRMED reservation, freeing its range immediately.
    Takes the same ledger lock as reserve() for the appointment's key.
    """
    try:
        appointment = Appointment.objects.for_business(business_id).get(id=reservation_id)
    except (Appointment.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise ReservationNotFound() from None
    if appointment.status != AppointmentStatus.CONFIRMED:
        raise ReservationNotFound('Reservation is not active.')

    with transaction.atomic():
        ledger = None
        if appointment.staff_id and appointment.booking_date:
            ledger = _lock_ledger(appointment.service, appointment.staff, appointment.booking_date)

        appointment = Appointment.objects.select_for_update().get(pk=appointment.pk)
        if appointment.status != AppointmentStatus.CONFIRMED:
            raise ReservationNotFound('Reservation is not active.')

        appointment.cancel(changed_by=changed_by, reason='Reservation released')
        if ledger is not None:
            _bump(ledger)

    logger.info('Released appointment %s (%s-%s on %s)',
                appointment.pk, appointment.start_time, appointment.end_time, appointment.booking_date)
    return appointment


def reschedule(reservation_id, booking_date, start_slot, staff_id=None, business_id=None,
               now=None, changed_by: str = 'system') -> Appointment:
    """
    Move a reservation: release() the old range, then reserve() the new one.

    Not atomic across the two steps. If the new reserve() fails the old
    reservation stays released and the error propagates; callers must tell
    the client the original time was given up.
    """
    # Validate before giving up the old slot.
    booking_date = _coerce_date(booking_date)
    start_slot = _coerce_slot(start_slot)

    old = release(reservation_id, business_id=business_id, changed_by=changed_by)
    return reserve(
        old.service_id,
        staff_id or old.staff_id,
        booking_date,
        start_slot,
        business_id=business_id,
        client_name=old.client_name,
        now=now,
    )


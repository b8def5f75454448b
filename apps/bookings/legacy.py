"""
Legacy migration: backfill slot data on records created before slots existed.

  Services      slots_needed NULL/0 -> ceil(duration / 30), duration rounded up,
                audit record in Service.slot_migration
  Appointments  missing start_slot/end_slot/slots_used -> derived from the
                local time of scheduled_for; cross-midnight ranges are skipped

Every record is migrated in its own savepoint: one bad row is logged and
counted, never fatal. Records that already carry slot data are not touched,
so running it again reports zero migrated.
"""
import logging
from dataclasses import dataclass, field

from django.db import DatabaseError, transaction
from django.db.models import F, Q
from django.utils import timezone

from apps.core.clock import (
    SLOTS_PER_DAY,
    duration_to_slots,
    is_valid_slot_range,
    slot_boundary_time,
    slots_to_duration,
    time_to_slot,
)
from apps.core.exceptions import BookingEngineError
from apps.services.models import Service
from apps.bookings.models import Appointment

logger = logging.getLogger(__name__)


@dataclass
class EntityCounts:
    migrated: int = 0
    skipped: int = 0
    errors: int = 0

    def as_dict(self):
        return {'migrated': self.migrated, 'skipped': self.skipped, 'errors': self.errors}


@dataclass
class MigrationReport:
    services: EntityCounts = field(default_factory=EntityCounts)
    appointments: EntityCounts = field(default_factory=EntityCounts)
    warnings: list = field(default_factory=list)
    dry_run: bool = False

    def warn(self, message, *args):
        text = message % args if args else message
        logger.warning(text)
        self.warnings.append(text)

    def as_dict(self):
        return {
            'services': self.services.as_dict(),
            'appointments': self.appointments.as_dict(),
            'warnings': list(self.warnings),
            'dryRun': self.dry_run,
        }


def _services_pending():
    return Service.all_objects.filter(Q(slots_needed__isnull=True) | Q(slots_needed=0))


def _appointments_pending():
    return Appointment.all_objects.filter(
        Q(start_slot__isnull=True) | Q(end_slot__isnull=True) | Q(slots_used__isnull=True)
    )


# ── Services ──────────────────────────────────────────────────────────────────

def _migrate_service(service, report: MigrationReport, now) -> None:
    if not service.duration:
        report.services.skipped += 1
        report.warn('Service %s has no duration; cannot derive slots', service.pk)
        return

    original = service.duration
    slots_needed = duration_to_slots(original)
    adjusted = slots_to_duration(slots_needed)
    if adjusted == original:
        notes = f'Duration already a multiple of 30; {slots_needed} slots.'
    else:
        notes = f'Duration rounded up from {original} to {adjusted} minutes ({slots_needed} slots).'

    service.slots_needed = slots_needed
    service.duration = adjusted
    service.slot_migration = {
        'originalDuration': original,
        'calculatedSlotsNeeded': slots_needed,
        'adjustedDuration': adjusted,
        'migratedAt': now.isoformat(),
        'notes': notes,
    }
    service.save(update_fields=['slots_needed', 'duration', 'slot_migration', 'updated_at'])
    report.services.migrated += 1
    logger.info('Migrated service %s: %s min -> %s slots', service.pk, original, slots_needed)


# ── Appointments ──────────────────────────────────────────────────────────────

def _slots_for(appointment) -> tuple:
    service = appointment.service
    if service.slots_needed:
        return service.slots_needed, 'service'
    if service.duration:
        return duration_to_slots(service.duration), 'service duration'
    return duration_to_slots(appointment.duration), 'appointment duration'


def _migrate_appointment(appointment, report: MigrationReport, now) -> None:
    if appointment.scheduled_for is None:
        report.appointments.skipped += 1
        report.warn('Appointment %s has no scheduled time; skipped', appointment.pk)
        return

    local = timezone.localtime(appointment.scheduled_for)
    start_slot = time_to_slot(local.strftime('%H:%M'))
    slots_used, source = _slots_for(appointment)
    end_slot = start_slot + slots_used

    if not is_valid_slot_range(start_slot, end_slot):
        report.appointments.skipped += 1
        report.warn(
            'Appointment %s at %s needs %d slots and would cross midnight; skipped',
            appointment.pk, local.strftime('%Y-%m-%d %H:%M'), slots_used,
        )
        return

    fields = ['start_slot', 'end_slot', 'slots_used', 'slot_details', 'updated_at']
    appointment.start_slot = start_slot
    appointment.end_slot = end_slot
    appointment.slots_used = slots_used
    if appointment.booking_date is None:
        appointment.booking_date = local.date()
        fields.append('booking_date')
    appointment.slot_details = {
        'migratedAt': now.isoformat(),
        'originalScheduledFor': appointment.scheduled_for.isoformat(),
        'originalDuration': appointment.duration,
        'slotsFrom': source,
        'range': f'{slot_boundary_time(start_slot)}-{slot_boundary_time(end_slot)}',
    }
    appointment.save(update_fields=fields)
    report.appointments.migrated += 1


# ── Entry points ──────────────────────────────────────────────────────────────

def _run_each(queryset, migrate_one, counts: EntityCounts, report: MigrationReport, now) -> None:
    for record in queryset.iterator():
        try:
            with transaction.atomic():
                migrate_one(record, report, now)
        except (DatabaseError, BookingEngineError, ValueError, TypeError) as exc:
            counts.errors += 1
            report.warn('Failed to migrate %s %s: %s', record._meta.model_name, record.pk, exc)


def migrate_to_slots(dry_run: bool = False, now=None) -> MigrationReport:
    """
    Backfill slot data on services, then on appointments.

    Services go first so appointments see the migrated slots_needed.
    With dry_run the whole run is rolled back but the report is the same.
    """
    now = now or timezone.now()
    report = MigrationReport(dry_run=dry_run)

    with transaction.atomic():
        _run_each(_services_pending().order_by('created_at'),
                  _migrate_service, report.services, report, now)
        _run_each(_appointments_pending().select_related('service').order_by('created_at'),
                  _migrate_appointment, report.appointments, report, now)
        if dry_run:
            transaction.set_rollback(True)

    logger.info('Slot migration%s finished: %s', ' (dry run)' if dry_run else '', report.as_dict())
    return report


def validate_migration() -> dict:
    """Counts of records still missing slot data or violating the range invariants."""
    services_pending = _services_pending().count()
    appointments_pending = _appointments_pending().count()
    invalid_ranges = Appointment.all_objects.filter(
        start_slot__isnull=False, end_slot__isnull=False, slots_used__isnull=False,
    ).filter(
        Q(end_slot__gt=SLOTS_PER_DAY) | ~Q(end_slot=F('start_slot') + F('slots_used'))
    ).count()
    return {
        'servicesPending': services_pending,
        'appointmentsPending': appointments_pending,
        'invalidRanges': invalid_ranges,
        'isComplete': not (services_pending or appointments_pending or invalid_ranges),
    }

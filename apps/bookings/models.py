"""
Bookings app models:
  - Appointment          : a client's booking, holding the reserved slot range
  - AppointmentStatusLog : audit trail of every status transition
  - SlotLedger           : one row per (service, staff, date), locked to serialise reservations
"""
from django.db import models
from django.db.models import F, Q
from apps.core.clock import SLOTS_PER_DAY, slot_boundary_time
from apps.core.models import BaseModel, UUIDModel, TimestampedModel
from apps.businesses.models import Business
from apps.services.models import Service
from apps.staff.models import Staff


# ── Appointment State Machine ─────────────────────────────────────────────────

class AppointmentStatus(models.TextChoices):
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'


class Appointment(BaseModel):
    """
    A booked appointment. Its reservation is the half-open slot range
    [start_slot, end_slot) on booking_date; only CONFIRMED appointments
    occupy slots.

    slots_used is frozen at booking time: later edits to the service's
    duration never move existing reservations. Rows created before the
    slot model have NULL slot fields until the legacy migration fills them.
    """
    business = models.ForeignKey(Business, on_delete=models.PROTECT, related_name='appointments')
    service = models.ForeignKey(Service, on_delete=models.PROTECT, related_name='appointments')
    staff = models.ForeignKey(
        Staff, on_delete=models.PROTECT, related_name='appointments',
        null=True, blank=True,
    )
    client_name = models.CharField(max_length=120, blank=True)

    booking_date = models.DateField(null=True, blank=True, db_index=True)
    scheduled_for = models.DateTimeField(null=True, blank=True)
    duration = models.PositiveIntegerField(
        help_text='Booked duration in minutes (slots_used x 30 once slotted)',
    )

    start_slot = models.PositiveSmallIntegerField(null=True, blank=True)
    end_slot = models.PositiveSmallIntegerField(null=True, blank=True)
    slots_used = models.PositiveSmallIntegerField(null=True, blank=True)
    slot_details = models.JSONField(null=True, blank=True)

    status = models.CharField(
        max_length=20, choices=AppointmentStatus.choices,
        default=AppointmentStatus.CONFIRMED, db_index=True,
    )

    class Meta:
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        ordering = ['-booking_date', 'start_slot']
        indexes = [
            models.Index(fields=['service', 'staff', 'booking_date', 'status'], name='idx_appt_slot_key'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_slot__isnull=True) | Q(end_slot__lte=SLOTS_PER_DAY),
                name='ck_appt_end_slot_same_day',
            ),
            models.CheckConstraint(
                condition=(
                    Q(start_slot__isnull=True) | Q(end_slot__isnull=True) | Q(slots_used__isnull=True)
                    | Q(end_slot=F('start_slot') + F('slots_used'))
                ),
                name='ck_appt_slot_range_consistent',
            ),
        ]

    def __str__(self):
        when = f"{self.booking_date} {self.start_time or '?'}"
        return f"#{self.id_short} | {self.client_name or 'client'} | {self.service.name} | {when}"

    @property
    def id_short(self):
        return str(self.id)[:8].upper()

    @property
    def has_slot_data(self):
        return None not in (self.start_slot, self.end_slot, self.slots_used)

    @property
    def start_time(self):
        return slot_boundary_time(self.start_slot) if self.start_slot is not None else None

    @property
    def end_time(self):
        return slot_boundary_time(self.end_slot) if self.end_slot is not None else None

    def as_reservation(self):
        return {
            'reservationId': str(self.id),
            'serviceId': str(self.service_id),
            'staffId': str(self.staff_id) if self.staff_id else None,
            'date': self.booking_date.isoformat() if self.booking_date else None,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'startSlot': self.start_slot,
            'endSlot': self.end_slot,
            'slotsUsed': self.slots_used,
            'status': self.status,
        }

    # ── State transition helpers ──────────────────────────────────────────────

    def cancel(self, changed_by='system', reason=''):
        """Frees the reserved range."""
        self._transition(AppointmentStatus.CANCELLED, changed_by, reason)
        self.save(update_fields=['status', 'updated_at'])

    def complete(self, changed_by='admin'):
        """Service delivered; the range stays occupied for the day's history."""
        self._transition(AppointmentStatus.COMPLETED, changed_by)
        self.save(update_fields=['status', 'updated_at'])

    def _transition(self, new_status, changed_by, reason=''):
        old_status = self.status
        self.status = new_status
        AppointmentStatusLog.objects.create(
            appointment=self,
            from_status=old_status,
            to_status=new_status,
            changed_by=changed_by,
            reason=reason,
        )


# ── Appointment Audit Log ─────────────────────────────────────────────────────

class AppointmentStatusLog(UUIDModel):
    """Immutable audit trail of every status transition on an appointment."""
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name='status_logs')
    from_status = models.CharField(max_length=20, choices=AppointmentStatus.choices, blank=True)
    to_status = models.CharField(max_length=20, choices=AppointmentStatus.choices)
    changed_by = models.CharField(max_length=80, help_text='system / admin / api')
    reason = models.TextField(blank=True)
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Appointment Status Log'
        verbose_name_plural = 'Appointment Status Logs'
        ordering = ['changed_at']

    def __str__(self):
        return f"Appointment {str(self.appointment_id)[:8]}: {self.from_status or '-'} -> {self.to_status}"


# ── Slot Ledger ───────────────────────────────────────────────────────────────

class SlotLedger(UUIDModel, TimestampedModel):
    """
    Lock row for one (service, staff, date).

    reserve() and release() take SELECT ... FOR UPDATE on this row before
    reading existing reservations, so check-then-commit for the same key is
    serialised even when the day has no appointments yet. version counts
    committed changes for the key.
    """
    service = models.ForeignKey(Service, on_delete=models.CASCADE, related_name='slot_ledgers')
    staff = models.ForeignKey(Staff, on_delete=models.CASCADE, related_name='slot_ledgers')
    booking_date = models.DateField(db_index=True)
    version = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = 'Slot Ledger'
        verbose_name_plural = 'Slot Ledgers'
        constraints = [
            models.UniqueConstraint(
                fields=['service', 'staff', 'booking_date'],
                name='uq_slot_ledger_key',
            )
        ]

    def __str__(self):
        return f"Ledger: {self.service_id} / {self.staff_id} on {self.booking_date} (v{self.version})"

"""
Service model: something a business sells, measured in 30-minute slots.

Design decision: duration is always stored slot-aligned.
Example:
  - "Colour 45 min" is saved as slots_needed=2, duration=60
  - "Colour 90 min" is saved as slots_needed=3, duration=90

Rows written before the slot model existed (slots_needed NULL) are only
rewritten by the legacy migration, which records what it changed in
slot_migration.

The per-weekday slot configuration lives in `slots` (JSON). Never read it
directly; go through apps.services.day_config.
"""
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models
from django.core.validators import MinValueValidator
from apps.core.clock import duration_to_slots, slots_to_duration
from apps.core.exceptions import ServiceNotFound
from apps.core.models import BaseModel
from apps.businesses.models import Business


def default_available_days():
    """Sunday=0 .. Saturday=6."""
    return [0, 1, 2, 3, 4, 5, 6]


class Service(BaseModel):
    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name='services',
    )
    template = models.ForeignKey(
        'slot_templates.SlotTemplate',
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='services',
        help_text='Template this service was created from (traceability only).',
    )
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=60, blank=True)

    duration = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text='Duration in minutes, rounded up to whole slots on save',
    )
    slots_needed = models.PositiveSmallIntegerField(
        null=True, blank=True,
        help_text='Contiguous 30-minute slots one booking occupies',
    )
    slots = models.JSONField(
        default=dict, blank=True,
        help_text='Per-weekday slot definitions, keyed sunday..saturday',
    )
    max_capacity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text='Default simultaneous bookings per slot window',
    )
    available_days = models.JSONField(
        default=default_available_days, blank=True,
        help_text='Weekdays offered, 0=Sunday .. 6=Saturday. Empty means every day.',
    )
    start_time = models.CharField(max_length=5, blank=True, null=True, help_text='HH:MM')
    end_time = models.CharField(max_length=5, blank=True, null=True, help_text='HH:MM')

    min_advance_hours = models.PositiveIntegerField(default=24)
    max_advance_days = models.PositiveIntegerField(default=30)
    any_time_available = models.BooleanField(
        default=False,
        help_text='Skip the advance-notice window checks',
    )

    slot_migration = models.JSONField(
        null=True, blank=True,
        help_text='Audit record written by the legacy slot migration',
    )
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        verbose_name = 'Service'
        verbose_name_plural = 'Services'
        ordering = ['name', 'duration']

    def __str__(self):
        return f"{self.name} ({self.duration} min, {self.slots_needed or '?'} slots)"

    def save(self, *args, **kwargs):
        self.align_to_slots()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'duration' in update_fields:
            kwargs['update_fields'] = set(update_fields) | {'slots_needed'}
        super().save(*args, **kwargs)

    def align_to_slots(self):
        """Keep slots_needed == ceil(duration / 30) and duration a slot multiple."""
        if self.duration:
            self.slots_needed = duration_to_slots(self.duration)
            self.duration = slots_to_duration(self.slots_needed)

    @property
    def slots_required(self):
        """Slots one booking takes, falling back to the raw duration for legacy rows."""
        if self.slots_needed:
            return self.slots_needed
        return duration_to_slots(self.duration)

    def operates_on(self, weekday: int) -> bool:
        days = self.available_days or []
        return not days or weekday in days


def get_service(service_id, business_id=None, active_only=True) -> Service:
    """
    Resolve a service id, optionally scoped to one business.
    Unknown, malformed, other-tenant and inactive ids are all ServiceNotFound.
    """
    if not service_id:
        raise ServiceNotFound('serviceId is required.')
    try:
        qs = Service.objects.for_business(business_id).select_related('business')
        if active_only:
            qs = qs.filter(is_active=True)
        return qs.get(id=service_id)
    except (Service.DoesNotExist, DjangoValidationError, ValueError):
        raise ServiceNotFound() from None

"""
SlotTemplate: a reusable "this takes N slots" preset.

Global defaults have no business and are seeded by the
seed_slot_templates command; businesses add their own on top.
"""
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from apps.core.clock import SLOTS_PER_DAY, slots_to_duration
from apps.core.models import BaseModel
from apps.businesses.models import Business


class SlotTemplate(BaseModel):
    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        null=True, blank=True,
        related_name='slot_templates',
        help_text='Empty for global templates shared by every business',
    )
    name = models.CharField(max_length=120)
    description = models.TextField(blank=True)
    slots_needed = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(SLOTS_PER_DAY)],
    )
    duration = models.PositiveIntegerField(
        editable=False,
        help_text='Always slots_needed x 30 minutes',
    )
    category = models.CharField(max_length=60, blank=True, db_index=True)
    is_default = models.BooleanField(default=False, db_index=True)
    is_active = models.BooleanField(default=True, db_index=True)
    metadata = models.JSONField(
        default=dict, blank=True,
        help_text='Display hints: color, icon, popular',
    )

    class Meta:
        verbose_name = 'Slot Template'
        verbose_name_plural = 'Slot Templates'
        ordering = ['-is_default', 'category', 'name', 'id']

    def __str__(self):
        owner = self.business.name if self.business_id else 'Global'
        return f"{self.name} ({self.slots_needed} slots) - {owner}"

    def save(self, *args, **kwargs):
        self.duration = slots_to_duration(self.slots_needed)
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'slots_needed' in update_fields:
            kwargs['update_fields'] = set(update_fields) | {'duration'}
        super().save(*args, **kwargs)

    @property
    def is_global(self):
        return self.business_id is None

    def as_dict(self):
        return {
            'id': str(self.id),
            'name': self.name,
            'description': self.description,
            'slotsNeeded': self.slots_needed,
            'duration': self.duration,
            'category': self.category or None,
            'businessId': str(self.business_id) if self.business_id else None,
            'isDefault': self.is_default,
            'isActive': self.is_active,
            'metadata': self.metadata or {},
        }

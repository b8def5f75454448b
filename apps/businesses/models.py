"""
Business model: the tenant that owns services, staff, templates and
appointments. Every engine lookup is scoped to one business.
"""
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models
from apps.core.exceptions import BusinessNotFound
from apps.core.models import BaseModel


class Business(BaseModel):
    name = models.CharField(max_length=120)
    slug = models.SlugField(max_length=140, unique=True)
    requires_staff_assignment = models.BooleanField(
        default=False,
        help_text='If set, every slot definition must name a staff member.',
    )
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        verbose_name = 'Business'
        verbose_name_plural = 'Businesses'
        ordering = ['name']

    def __str__(self):
        return self.name


def get_active_business(business_id) -> Business:
    """Resolve a businessId from a request. Missing, malformed or inactive ids are not found."""
    if not business_id:
        raise BusinessNotFound('businessId is required.')
    try:
        return Business.objects.get(id=business_id, is_active=True)
    except (Business.DoesNotExist, DjangoValidationError, ValueError):
        raise BusinessNotFound() from None

"""
Staff model: a person who performs services for one business.
A staff member can only be booked for services linked in `services`.
"""
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models
from apps.core.exceptions import StaffNotFound
from apps.core.models import BaseModel
from apps.businesses.models import Business


class Staff(BaseModel):
    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name='staff',
    )
    name = models.CharField(max_length=120)
    email = models.EmailField(blank=True)
    services = models.ManyToManyField(
        'services.Service',
        related_name='staff',
        blank=True,
    )
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        verbose_name = 'Staff Member'
        verbose_name_plural = 'Staff'
        ordering = ['business', 'name']

    def __str__(self):
        return f"{self.name} ({self.business.name})"

    def performs(self, service) -> bool:
        return self.services.filter(pk=service.pk).exists()


def get_staff_for_service(staff_id, service) -> Staff:
    """
    Active staff member of the service's business who is linked to the service.
    Anything else (unknown id, other tenant, inactive, not linked) is not found.
    """
    if not staff_id:
        raise StaffNotFound('staffId is required.')
    try:
        return Staff.objects.get(
            id=staff_id,
            business_id=service.business_id,
            is_active=True,
            services=service,
        )
    except (Staff.DoesNotExist, DjangoValidationError, ValueError):
        raise StaffNotFound() from None

"""
Core base model mixins shared by every scheduling app.

  UUIDModel          : UUID primary key
  TimestampedModel   : created_at / updated_at
  SoftDeleteModel    : deleted_at marker, default manager hides deleted rows
  TenantQuerySet     : .for_business() scoping used by every tenant-owned model
"""
import uuid
from django.db import models
from django.utils import timezone


class UUIDModel(models.Model):
    """Primary key is a UUID, never an auto-incrementing integer."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class TimestampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class TenantQuerySet(models.QuerySet):
    """
    Queryset for rows owned by a Business.

    Lookups for another tenant's row must behave exactly like a missing row,
    so callers scope with .for_business() before .get() and let
    DoesNotExist become a NotFoundError.
    """

    def for_business(self, business_id):
        if business_id is None:
            return self
        return self.filter(business_id=business_id)

    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def delete(self):
        return self.update(deleted_at=timezone.now())

    def hard_delete(self):
        return super().delete()


class SoftDeleteManager(models.Manager.from_queryset(TenantQuerySet)):
    def get_queryset(self):
        return super().get_queryset().alive()


class SoftDeleteModel(models.Model):
    """
    Records are never physically deleted by application code.
    .delete() stamps deleted_at; all_objects bypasses the filter.
    """
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = SoftDeleteManager()
    all_objects = models.Manager.from_queryset(TenantQuerySet)()

    class Meta:
        abstract = True

    def delete(self, *args, **kwargs):
        self.deleted_at = timezone.now()
        self.save(update_fields=['deleted_at'])

    def hard_delete(self, *args, **kwargs):
        super().delete(*args, **kwargs)

    @property
    def is_deleted(self):
        return self.deleted_at is not None


class BaseModel(UUIDModel, TimestampedModel, SoftDeleteModel):
    """UUID pk + timestamps + soft delete, for the main tenant models."""
    class Meta:
        abstract = True

"""
Slot template catalog: list, create, update, delete, apply.

Ownership rules:
  - a business sees its own templates, plus global defaults on request
  - a template owned by another business behaves as if it did not exist
  - global defaults are visible but cannot be edited or deleted
"""
import logging
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from apps.core.clock import SLOTS_PER_DAY
from apps.core.exceptions import (
    CannotDeleteDefault,
    TemplateNotFound,
    ValidationError,
)
from apps.slot_templates.models import SlotTemplate

logger = logging.getLogger(__name__)

METADATA_KEYS = ('color', 'icon', 'popular')
UPDATABLE_FIELDS = ('name', 'description', 'category', 'is_active', 'metadata', 'slots_needed')


@dataclass
class TemplateListing:
    templates: list
    total: int = 0
    categories: list = field(default_factory=list)

    def as_dict(self):
        return {
            'data': [t.as_dict() for t in self.templates],
            'meta': {'total': self.total, 'categories': self.categories},
        }


def _business_id(business):
    return getattr(business, 'pk', business)


# ── Validation ────────────────────────────────────────────────────────────────

def _clean_name(name):
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Template name is required.')
    return name.strip()


def _clean_slots_needed(slots_needed):
    if isinstance(slots_needed, bool) or not isinstance(slots_needed, int):
        raise ValidationError('slotsNeeded must be a whole number of slots.')
    if slots_needed < 1:
        raise ValidationError('slotsNeeded must be positive.')
    if slots_needed > SLOTS_PER_DAY:
        raise ValidationError(f'slotsNeeded cannot exceed {SLOTS_PER_DAY}.')
    return slots_needed


def _clean_metadata(metadata):
    if metadata is None:
        return {}
    if not isinstance(metadata, dict):
        raise ValidationError('metadata must be an object.')
    unknown = set(metadata) - set(METADATA_KEYS)
    if unknown:
        raise ValidationError(f"Unknown metadata keys: {', '.join(sorted(unknown))}.")
    if 'popular' in metadata and not isinstance(metadata['popular'], bool):
        raise ValidationError('metadata.popular must be true or false.')
    return dict(metadata)


# ── Lookup ────────────────────────────────────────────────────────────────────

def get_visible_template(template_id, business) -> SlotTemplate:
    """A template owned by `business`, or a global default. Anything else is not found."""
    business_id = _business_id(business)
    qs = SlotTemplate.objects.filter(id=template_id)
    try:
        template = qs.get()
    except (SlotTemplate.DoesNotExist, DjangoValidationError, ValueError, TypeError):
        raise TemplateNotFound() from None

    if template.business_id is None and template.is_default:
        return template
    if business_id is not None and str(template.business_id) == str(business_id):
        return template
    raise TemplateNotFound()


# ── Operations ────────────────────────────────────────────────────────────────

def list_templates(business=None, category=None, include_global=False) -> TemplateListing:
    """
    Active templates, defaults first, then by category and name.

    With a business: its own templates, plus global defaults when
    include_global. Without one: global defaults only when include_global.
    """
    business_id = _business_id(business)
    qs = SlotTemplate.objects.filter(is_active=True)

    if business_id is not None:
        owned = qs.filter(business_id=business_id)
        if include_global:
            owned = owned | qs.filter(business__isnull=True, is_default=True)
        qs = owned
    elif include_global:
        qs = qs.filter(business__isnull=True, is_default=True)
    else:
        qs = qs.none()

    if category:
        qs = qs.filter(category=category)

    templates = list(qs.order_by('-is_default', 'category', 'name', 'id'))
    categories = []
    for template in templates:
        if template.category and template.category not in categories:
            categories.append(template.category)

    return TemplateListing(templates=templates, total=len(templates), categories=categories)


def create_template(business, name, slots_needed, category=None, description='',
                    metadata=None) -> SlotTemplate:
    """Create a business-owned template. duration is derived from slots_needed."""
    if business is None:
        raise ValidationError('A business is required to create templates.')
    template = SlotTemplate.objects.create(
        business_id=_business_id(business),
        name=_clean_name(name),
        description=description or '',
        slots_needed=_clean_slots_needed(slots_needed),
        category=(category or '').strip(),
        is_default=False,
        is_active=True,
        metadata=_clean_metadata(metadata),
    )
    logger.info('Created slot template %s (%d slots) for business %s',
                template.pk, template.slots_needed, template.business_id)
    return template


def update_template(template_id, business, **fields) -> SlotTemplate:
    """
    Partial update. Only the fields passed are touched; changing
    slots_needed recomputes duration.
    """
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update: {', '.join(sorted(unknown))}.")

    template = get_visible_template(template_id, business)
    if template.is_global:
        raise TemplateNotFound()

    if 'name' in fields:
        template.name = _clean_name(fields['name'])
    if 'description' in fields:
        template.description = fields['description'] or ''
    if 'category' in fields:
        template.category = (fields['category'] or '').strip()
    if 'is_active' in fields:
        if not isinstance(fields['is_active'], bool):
            raise ValidationError('isActive must be true or false.')
        template.is_active = fields['is_active']
    if 'metadata' in fields:
        template.metadata = _clean_metadata(fields['metadata'])
    if 'slots_needed' in fields:
        template.slots_needed = _clean_slots_needed(fields['slots_needed'])

    template.save()
    return template


def delete_template(template_id, business) -> None:
    template = get_visible_template(template_id, business)
    if template.is_default:
        raise CannotDeleteDefault()
    template.delete()
    logger.info('Deleted slot template %s for business %s', template.pk, template.business_id)


@transaction.atomic
def apply_template(service, template):
    """
    Copy a template's slot count onto a service and remember where it came from.
    Later template edits do not touch the service.
    """
    service.duration = template.duration
    service.template = template
    if not service.category and template.category:
        service.category = template.category
    service.save()
    return service

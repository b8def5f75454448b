"""
management command: seed_slot_templates

Creates the global default slot templates every business can start from.
Skips when defaults already exist, so it is safe to run on every deploy.

Usage:
    python manage.py seed_slot_templates
    python manage.py seed_slot_templates --flush   # wipe defaults and re-seed
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from apps.slot_templates.models import SlotTemplate

HAIR = {'color': '#3B82F6', 'icon': 'scissors'}
COLOUR = {'color': '#EC4899', 'icon': 'palette'}
TREATMENT = {'color': '#10B981', 'icon': 'droplet'}
NAILS = {'color': '#F59E0B', 'icon': 'nail-polish'}
MASSAGE = {'color': '#8B5CF6', 'icon': 'hand'}
CONSULT = {'color': '#6B7280', 'icon': 'chat'}

DEFAULT_TEMPLATES = [
    # Haircuts
    ('Quick Cut', 'Simple, fast haircut', 1, 'haircut', HAIR, True),
    ('Full Cut', 'Cut with wash and finish', 2, 'haircut', HAIR, True),
    ('Cut + Beard', 'Haircut and beard trim', 2, 'haircut', HAIR, False),
    # Colouring
    ('Simple Colour', 'Single-process colour', 3, 'coloring', COLOUR, True),
    ('Full Colour', 'Colour with lightening and treatment', 4, 'coloring', COLOUR, True),
    ('Highlights', 'Foil highlights', 4, 'coloring', COLOUR, False),
    # Treatments
    ('Hair Treatment', 'Moisturising treatment', 2, 'treatment', TREATMENT, True),
    ('Intensive Treatment', 'Deep treatment with mask', 3, 'treatment', TREATMENT, False),
    # Nails
    ('Basic Manicure', 'Shape and cuticle care', 1, 'manicure', NAILS, True),
    ('Full Manicure', 'Manicure with polish', 2, 'manicure', NAILS, True),
    ('Pedicure', 'Full pedicure', 2, 'pedicure', NAILS, True),
    # Massage
    ('Relaxing Massage', 'Full-body relaxing massage', 2, 'massage', MASSAGE, True),
    ('Therapeutic Massage', 'Deep tissue therapeutic massage', 3, 'massage', MASSAGE, False),
    # Other
    ('Consultation', 'Assessment and planning session', 1, 'consultation', CONSULT, False),
    ('Touch-up', 'Quick touch-up between appointments', 1, 'touch-up', HAIR, False),
]


class Command(BaseCommand):
    help = 'Seed the global default slot templates'

    def add_arguments(self, parser):
        parser.add_argument(
            '--flush', action='store_true',
            help='Delete existing global default templates before seeding',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        defaults = SlotTemplate.all_objects.filter(business__isnull=True, is_default=True)

        if options['flush']:
            self.stdout.write('Flushing global default templates...')
            defaults.hard_delete()
        elif defaults.filter(deleted_at__isnull=True).exists():
            self.stdout.write(self.style.WARNING(
                f'seed_slot_templates: {defaults.count()} default templates already exist, skipping'
            ))
            return

        for name, description, slots, category, display, popular in DEFAULT_TEMPLATES:
            SlotTemplate.objects.create(
                business=None,
                name=name,
                description=description,
                slots_needed=slots,
                category=category,
                is_default=True,
                is_active=True,
                metadata={**display, 'popular': popular},
            )

        categories = sorted({row[3] for row in DEFAULT_TEMPLATES})
        self.stdout.write(self.style.SUCCESS(
            f'seed_slot_templates: created {len(DEFAULT_TEMPLATES)} templates '
            f'in {len(categories)} categories ({", ".join(categories)})'
        ))

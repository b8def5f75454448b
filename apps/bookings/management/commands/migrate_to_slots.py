"""
management command: migrate_to_slots

Backfills slot data on services and appointments created before the slot
model. Safe to re-run; already-migrated records are left alone.

Usage:
    python manage.py migrate_to_slots
    python manage.py migrate_to_slots --dry-run   # report only, roll everything back
"""
from django.core.management.base import BaseCommand
from apps.bookings.legacy import migrate_to_slots, validate_migration


class Command(BaseCommand):
    help = 'Backfill slot fields on legacy services and appointments'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run', action='store_true',
            help='Compute the report without writing any changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write('Dry run: no changes will be saved.')

        report = migrate_to_slots(dry_run=dry_run)

        for label, counts in (('services', report.services), ('appointments', report.appointments)):
            self.stdout.write(
                f'  {label}: migrated {counts.migrated}, skipped {counts.skipped}, errors {counts.errors}'
            )
        for warning in report.warnings:
            self.stdout.write(self.style.WARNING(f'  ! {warning}'))

        status = validate_migration()
        summary = (
            f"migrate_to_slots: {status['servicesPending']} services and "
            f"{status['appointmentsPending']} appointments still pending, "
            f"{status['invalidRanges']} invalid ranges"
        )
        if status['isComplete']:
            self.stdout.write(self.style.SUCCESS(summary))
        else:
            self.stdout.write(self.style.WARNING(summary))

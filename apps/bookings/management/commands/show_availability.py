"""
management command: show_availability

Prints the slot grid the engine computes for one service on one date,
with the day configuration it was derived from. Handy when a business
reports "no slots" for a day it thinks is open.

Usage:
    python manage.py show_availability <service_id> 2026-02-25
    python manage.py show_availability <service_id> 2026-02-25 --staff <staff_id>
"""
from django.core.management.base import BaseCommand, CommandError
from apps.core.clock import group_consecutive_slots, slot_boundary_time
from apps.core.exceptions import BookingEngineError
from apps.bookings.engine import get_availability
from apps.services.day_config import get_day_config, weekday_for_date


class Command(BaseCommand):
    help = 'Show computed slot availability for a service and date'

    def add_arguments(self, parser):
        parser.add_argument('service_id')
        parser.add_argument('date', help='YYYY-MM-DD')
        parser.add_argument('--staff', dest='staff_id', default=None)

    def handle(self, *args, **options):
        try:
            result = get_availability(options['service_id'], options['staff_id'], options['date'])
        except BookingEngineError as exc:
            raise CommandError(f'{exc.code}: {exc.message}') from exc

        service = result.service
        weekday = weekday_for_date(result.booking_date)
        self.stdout.write(f'Service: {service.name} | Duration: {service.duration} | Slots: {service.slots_required}')
        self.stdout.write(f'Weekday: {weekday.key} | Offered: {service.operates_on(int(weekday))}')

        persisted = bool((service.slots or {}).get(weekday.key))
        self.stdout.write(f"Day config ({'saved' if persisted else 'generated'}):")
        for definition in get_day_config(service, weekday):
            staff = definition.staff_id or 'any staff'
            self.stdout.write(
                f'  {definition.start_time}-{definition.end_time}  capacity {definition.capacity}  ({staff})'
            )

        self.stdout.write(f'Computed {len(result.slots)} start slots:')
        for slot in result.slots:
            line = f'  [{slot.slot_index:2d}] {slot.time}'
            if slot.can_start_service:
                self.stdout.write(self.style.SUCCESS(f'{line}  available'))
            else:
                self.stdout.write(f'{line}  {slot.reason}')

        runs = group_consecutive_slots(s.slot_index for s in result.slots if s.can_start_service)
        labels = [f'{slot_boundary_time(start)}-{slot_boundary_time(end)}' for start, end in runs]
        self.stdout.write(f"Open start runs: {', '.join(labels) or 'none'}")

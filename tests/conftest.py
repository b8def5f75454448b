import datetime as dt

import pytest

from apps.businesses.models import Business
from apps.services.models import Service
from apps.staff.models import Staff

# Tuesday morning; BOOKING_DATE is the Thursday after.
NOW = dt.datetime(2030, 1, 1, 8, 0, tzinfo=dt.timezone.utc)
BOOKING_DATE = dt.date(2030, 1, 3)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def booking_date():
    return BOOKING_DATE


@pytest.fixture
def business(db):
    return Business.objects.create(name='Lotus Studio', slug='lotus-studio')


@pytest.fixture
def other_business(db):
    return Business.objects.create(name='Cedar Salon', slug='cedar-salon')


@pytest.fixture
def make_service(business):
    def _make(**overrides):
        fields = {
            'business': business,
            'name': 'Colour',
            'duration': 90,
            'start_time': '09:00',
            'end_time': '12:00',
            'max_capacity': 1,
            'min_advance_hours': 24,
            'max_advance_days': 30,
        }
        fields.update(overrides)
        return Service.objects.create(**fields)
    return _make


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
def make_staff(business):
    def _make(name='Asha', services=(), owner=None):
        member = Staff.objects.create(business=owner or business, name=name)
        for linked in services:
            member.services.add(linked)
        return member
    return _make


@pytest.fixture
def staff(make_staff, service):
    return make_staff('Asha', services=[service])

"""
Scheduling JSON API.

  GET  /api/availability/?serviceId=&staffId=&date=YYYY-MM-DD&businessId=
  GET  /api/availability/month/?year=&month=&businessId=
  POST /api/reservations/                     {serviceId, staffId, date, startSlot, businessId?, clientName?}
  POST /api/reservations/<id>/release/        {businessId?}
  POST /api/reservations/<id>/reschedule/     {date, startSlot, staffId?, businessId?}
  POST /api/migrate/                          {dryRun?}

Errors use {"error": {"code", "message"}}; SLOT_CONFLICT (409) tells the
client to refetch availability and let the user pick again.
"""
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from apps.core.decorators import json_api
from apps.core.http import form_error, read_json

from .engine import get_availability, get_month_availability, release, reschedule, reserve
from .forms import AvailabilityQueryForm, MonthAvailabilityForm, ReservationForm, RescheduleForm
from .legacy import migrate_to_slots, validate_migration

logger = logging.getLogger(__name__)


def _bound(form_class, data):
    form = form_class.from_request_data(data)
    if not form.is_valid():
        raise form_error(form)
    return form.cleaned_data


# ─────────────────────────────────────────────────────────────────────────────
# Availability
# ─────────────────────────────────────────────────────────────────────────────

@require_GET
@json_api
def availability(request):
    data = _bound(AvailabilityQueryForm, request.GET)
    result = get_availability(
        data['service_id'],
        data.get('staff_id') or None,
        data['date'],
        business_id=data.get('business_id') or None,
    )
    return JsonResponse(result.as_dict())


@require_GET
@json_api
def month_availability(request):
    data = _bound(MonthAvailabilityForm, request.GET)
    days = get_month_availability(data['year'], data['month'], data['business_id'])
    return JsonResponse({'year': data['year'], 'month': data['month'], 'days': days})


# ─────────────────────────────────────────────────────────────────────────────
# Reservations
# ─────────────────────────────────────────────────────────────────────────────

@csrf_exempt
@require_POST
@json_api
def create_reservation(request):
    data = _bound(ReservationForm, read_json(request))
    appointment = reserve(
        data['service_id'],
        data['staff_id'],
        data['date'],
        data['start_slot'],
        business_id=data.get('business_id') or None,
        client_name=data.get('client_name', ''),
    )
    return JsonResponse(appointment.as_reservation(), status=201)


@csrf_exempt
@require_POST
@json_api
def release_reservation(request, reservation_id):
    payload = read_json(request)
    business_id = payload.get('businessId') or request.GET.get('businessId')
    release(reservation_id, business_id=business_id or None, changed_by='api')
    return JsonResponse({'released': True, 'reservationId': str(reservation_id)})


@csrf_exempt
@require_POST
@json_api
def reschedule_reservation(request, reservation_id):
    data = _bound(RescheduleForm, read_json(request))
    appointment = reschedule(
        reservation_id,
        data['date'],
        data['start_slot'],
        staff_id=data.get('staff_id') or None,
        business_id=data.get('business_id') or None,
        changed_by='api',
    )
    body = appointment.as_reservation()
    body['previousReservationId'] = str(reservation_id)
    return JsonResponse(body, status=201)


# ─────────────────────────────────────────────────────────────────────────────
# Legacy migration
# ─────────────────────────────────────────────────────────────────────────────

@csrf_exempt
@require_POST
@json_api
def migrate(request):
    payload = read_json(request)
    dry_run = payload.get('dryRun') is True
    report = migrate_to_slots(dry_run=dry_run)
    body = report.as_dict()
    body['validation'] = validate_migration()
    return JsonResponse(body)

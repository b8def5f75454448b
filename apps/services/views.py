"""
Day configuration JSON API.

  GET  /api/services/<id>/day-config/?businessId=&date=YYYY-MM-DD   (or &weekday=monday)
  PUT  /api/services/<id>/day-config/   {businessId, date|weekday, slots: [...]}
  POST /api/services/<id>/day-config/materialize/   {businessId, date|weekday}
"""
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST

from apps.core.decorators import json_api
from apps.core.exceptions import ValidationError
from apps.core.http import form_error, read_json

from .day_config import (
    get_day_config,
    materialize_day_config,
    update_day_config,
    weekday_for_date,
)
from .forms import DayConfigForm
from .models import get_service

logger = logging.getLogger(__name__)


def _target_weekday(data):
    form = DayConfigForm(data)
    if not form.is_valid():
        raise form_error(form)
    day = form.cleaned_data.get('date')
    weekday = weekday_for_date(day) if day else form.cleaned_data['weekday']
    return day, weekday


def _day_config_body(service, day, weekday, definitions):
    return {
        'serviceId': str(service.id),
        'serviceName': service.name,
        'date': day.isoformat() if day else None,
        'weekday': weekday.key,
        'persisted': bool((service.slots or {}).get(weekday.key)),
        'operates': service.operates_on(int(weekday)),
        'slots': [d.to_dict() for d in definitions],
    }


@csrf_exempt
@require_http_methods(['GET', 'PUT'])
@json_api
def day_config(request, service_id):
    if request.method == 'GET':
        service = get_service(service_id, request.GET.get('businessId'))
        day, weekday = _target_weekday(request.GET)
        return JsonResponse(_day_config_body(service, day, weekday, get_day_config(service, weekday)))

    payload = read_json(request)
    service = get_service(service_id, payload.get('businessId') or request.GET.get('businessId'))
    day, weekday = _target_weekday(payload)

    slots = payload.get('slots')
    if not isinstance(slots, list):
        raise ValidationError("'slots' must be a list of slot definitions.")

    definitions = update_day_config(service, weekday, slots)
    return JsonResponse(_day_config_body(service, day, weekday, definitions))


@csrf_exempt
@require_POST
@json_api
def materialize(request, service_id):
    payload = read_json(request)
    service = get_service(service_id, payload.get('businessId') or request.GET.get('businessId'))
    day, weekday = _target_weekday(payload)
    definitions = materialize_day_config(service, weekday)
    return JsonResponse(_day_config_body(service, day, weekday, definitions))

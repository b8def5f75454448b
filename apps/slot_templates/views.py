"""
Slot template JSON API.

  GET    /api/templates/?businessId=&category=&includeGlobal=true
  POST   /api/templates/                      {businessId, name, slotsNeeded, ...}
  PATCH  /api/templates/<id>/?businessId=     partial update (PUT behaves the same)
  DELETE /api/templates/<id>/?businessId=
"""
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from apps.businesses.models import get_active_business
from apps.core.decorators import json_api
from apps.core.http import form_error, read_json

from .catalog import create_template, delete_template, list_templates, update_template
from .forms import TemplateCreateForm, TemplateUpdateForm, from_payload

logger = logging.getLogger(__name__)


def _truthy(value) -> bool:
    return str(value).lower() in ('1', 'true', 'yes')


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@json_api
def template_collection(request):
    if request.method == 'GET':
        business_id = request.GET.get('businessId')
        business = get_active_business(business_id) if business_id else None
        listing = list_templates(
            business=business,
            category=request.GET.get('category') or None,
            include_global=_truthy(request.GET.get('includeGlobal', '')),
        )
        return JsonResponse(listing.as_dict())

    payload = read_json(request)
    business = get_active_business(payload.get('businessId'))
    form = TemplateCreateForm(from_payload(payload))
    if not form.is_valid():
        raise form_error(form)

    template = create_template(
        business,
        name=form.cleaned_data['name'],
        slots_needed=form.cleaned_data['slots_needed'],
        category=form.cleaned_data.get('category'),
        description=form.cleaned_data.get('description', ''),
        metadata=form.cleaned_data.get('metadata'),
    )
    return JsonResponse({'data': template.as_dict()}, status=201)


@csrf_exempt
@require_http_methods(['PATCH', 'PUT', 'DELETE'])
@json_api
def template_detail(request, template_id):
    if request.method == 'DELETE':
        business = get_active_business(request.GET.get('businessId'))
        delete_template(template_id, business)
        return JsonResponse({'deleted': True})

    payload = read_json(request)
    business = get_active_business(payload.get('businessId') or request.GET.get('businessId'))
    form = TemplateUpdateForm(from_payload(payload))
    if not form.is_valid():
        raise form_error(form)

    template = update_template(template_id, business, **form.changed_fields())
    return JsonResponse({'data': template.as_dict()})

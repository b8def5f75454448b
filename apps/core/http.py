"""
Small helpers shared by the JSON API views.
"""
import json
from datetime import datetime

from django.http import JsonResponse

from apps.core.exceptions import BookingEngineError, ValidationError


def error_response(exc: BookingEngineError) -> JsonResponse:
    """{"error": {"code": ..., "message": ...}} with the exception's HTTP status."""
    return JsonResponse({'error': exc.as_dict()}, status=exc.http_status)


def read_json(request) -> dict:
    """Decode a JSON object body. Raises ValidationError on anything else."""
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError('Request body must be valid JSON.') from None
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object.')
    return payload


def parse_date(date_str: str):
    try:
        return datetime.strptime(date_str, '%Y-%m-%d').date()
    except (ValueError, TypeError):
        return None


def require_date(date_str: str, field='date'):
    parsed = parse_date(date_str)
    if parsed is None:
        raise ValidationError(f"'{field}' must be a date in YYYY-MM-DD format.")
    return parsed


def form_error(form) -> ValidationError:
    """Flatten bound form errors into one ValidationError."""
    messages = []
    for name, errors in form.errors.items():
        label = 'payload' if name == '__all__' else name
        messages.append(f"{label}: {' '.join(errors)}")
    return ValidationError('; '.join(messages) or 'Invalid input.', fields=form.errors.get_json_data())

"""
Domain exceptions for the slot engine.

Raised by the engine modules (clock, catalog, day config, availability,
allocator) and translated to JSON error bodies in the views.

  ValidationError   400  malformed input, rejected before any lookup
  NotFoundError     404  absent or owned by another business
  ConflictError     409  reservation race, protected template
  SlotRangeError    422  slot index outside the day, range crosses midnight
  InternalError     500  unexpected persistence failure
"""


class BookingEngineError(Exception):
    """Base exception for all slot engine errors."""
    code = 'ENGINE_ERROR'
    http_status = 500
    default_message = 'Scheduling engine error.'

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_dict(self):
        body = {'code': self.code, 'message': self.message}
        if self.details:
            body['details'] = self.details
        return body


# ── 400 ───────────────────────────────────────────────────────────────────────

class ValidationError(BookingEngineError):
    code = 'VALIDATION_ERROR'
    http_status = 400
    default_message = 'Invalid input.'


class InvalidTimeFormat(ValidationError):
    """Time string is not HH:MM, or not on a slot boundary in strict mode."""
    code = 'INVALID_TIME_FORMAT'


class SlotNotBookable(ValidationError):
    """
    The requested start slot is not offered: outside the day's definitions,
    closed weekday, or outside the advance-notice window.
    """
    code = 'SLOT_NOT_BOOKABLE'
    default_message = 'The requested slot cannot be booked.'

    def __init__(self, message=None, reason=None, **details):
        self.reason = reason
        if reason:
            details['reason'] = reason
        super().__init__(message, **details)


# ── 404 ───────────────────────────────────────────────────────────────────────

class NotFoundError(BookingEngineError):
    code = 'NOT_FOUND'
    http_status = 404
    default_message = 'Resource not found.'


class ServiceNotFound(NotFoundError):
    code = 'SERVICE_NOT_FOUND'
    default_message = 'Service not found.'


class StaffNotFound(NotFoundError):
    code = 'STAFF_NOT_FOUND'
    default_message = 'Staff member not found for this service.'


class TemplateNotFound(NotFoundError):
    code = 'TEMPLATE_NOT_FOUND'
    default_message = 'Template not found.'


class ReservationNotFound(NotFoundError):
    code = 'RESERVATION_NOT_FOUND'
    default_message = 'Reservation not found.'


class BusinessNotFound(NotFoundError):
    code = 'BUSINESS_NOT_FOUND'
    default_message = 'Business not found.'


# ── 409 ───────────────────────────────────────────────────────────────────────

class ConflictError(BookingEngineError):
    code = 'CONFLICT'
    http_status = 409
    default_message = 'Conflicting request.'


class SlotConflictError(ConflictError):
    """Another reservation holds (part of) the requested range."""
    code = 'SLOT_CONFLICT'
    default_message = (
        'This time was just booked by someone else. '
        'Please refresh availability and pick another slot.'
    )


class CannotDeleteDefault(ConflictError):
    code = 'CANNOT_DELETE_DEFAULT'
    default_message = 'Default templates cannot be deleted.'


# ── 422 ───────────────────────────────────────────────────────────────────────

class SlotRangeError(BookingEngineError):
    code = 'SLOT_RANGE_ERROR'
    http_status = 422
    default_message = 'Slot range is outside the day.'


class SlotOutOfRange(SlotRangeError):
    code = 'SLOT_OUT_OF_RANGE'
    default_message = 'Slot index must be between 0 and 47.'


class CrossesMidnightError(SlotRangeError):
    code = 'CROSSES_MIDNIGHT'
    default_message = 'A reservation cannot continue past midnight.'


# ── 500 ───────────────────────────────────────────────────────────────────────

class InternalError(BookingEngineError):
    code = 'INTERNAL_ERROR'
    http_status = 500
    default_message = 'Internal server error.'

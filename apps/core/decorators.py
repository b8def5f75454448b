"""
JSON API view decorator.

Engine exceptions become {"error": {...}} bodies with their own status
code. Anything unexpected is logged with a traceback and reported as
INTERNAL_ERROR so clients never see a Django debug page.
"""
import logging
from functools import wraps

from apps.core.exceptions import BookingEngineError, InternalError
from apps.core.http import error_response

logger = logging.getLogger(__name__)


def json_api(view_func):
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except BookingEngineError as exc:
            if exc.http_status >= 500:
                logger.error('%s %s failed: %s', request.method, request.path, exc)
            else:
                logger.info('%s %s rejected: %s %s', request.method, request.path, exc.code, exc)
            return error_response(exc)
        except Exception:
            logger.exception('Unhandled error in %s %s', request.method, request.path)
            return error_response(InternalError())
    return wrapper

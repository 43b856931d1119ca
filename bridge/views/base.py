import functools
import json
import logging

from django.db import DatabaseError, IntegrityError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from ..accounts import user_for_token
from ..exceptions import AuthenticationFailed, BridgeError, InvalidRequest, TransientStoreFailure, Unauthorized

logger = logging.getLogger(__name__)


def bearer_token(request):
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def authenticate_request(request):
    user = user_for_token(bearer_token(request))
    if user is None:
        raise AuthenticationFailed("Missing or invalid bearer token")
    return user


def api_view(methods, auth=True):
    """
    JSON endpoint wrapper: restricts methods, resolves the bearer user into
    ``request.bridge_user`` and renders BridgeErrors as JSON error bodies.
    Store errors that escape the services come back as ``store_unavailable``.
    """
    def decorator(view):
        @functools.wraps(view)
        def wrapper(request, *args, **kwargs):
            try:
                if auth:
                    request.bridge_user = authenticate_request(request)
                return view(request, *args, **kwargs)
            except BridgeError as exc:
                if exc.status >= 500:
                    logger.error("%s %s failed: %s", request.method, request.path, exc.message)
                else:
                    logger.warning("%s %s rejected (%s): %s", request.method, request.path, exc.code, exc.message)
                return JsonResponse(exc.as_dict(), status=exc.status)
            except IntegrityError:
                raise
            except DatabaseError:
                logger.exception("%s %s failed on the store", request.method, request.path)
                failure = TransientStoreFailure()
                return JsonResponse(failure.as_dict(), status=failure.status)
        return csrf_exempt(require_http_methods(methods)(wrapper))
    return decorator


def json_body(request):
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise InvalidRequest("Body must be valid JSON")
    if not isinstance(data, dict):
        raise InvalidRequest("Body must be a JSON object")
    return data


def bind(form_class, data):
    """Validate ``data`` with a Django form and return its cleaned data."""
    form = form_class(data)
    if not form.is_valid():
        errors = {field: [str(e) for e in errs] for field, errs in form.errors.items()}
        raise InvalidRequest("Invalid fields: " + ", ".join(sorted(errors)), errors=errors)
    return form.cleaned_data


def require_self(request, user_id):
    """The caller may only act as, or read for, themselves."""
    if request.bridge_user.pk != user_id:
        raise Unauthorized("You can only act on your own behalf")

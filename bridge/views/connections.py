from django.http import JsonResponse

from ..forms import ConnectionRequestForm, RespondForm, SwipeForm
from ..services import build_services
from ..utils import iso, serialize_connection
from .base import api_view, bind, json_body, require_self


@api_view(["POST"])
def record_swipe(request):
    data = bind(SwipeForm, json_body(request))
    require_self(request, data["studentId"])

    result = build_services().ledger.record_swipe(data["studentId"], data["mentorId"], data["direction"])
    swipe = result.swipe
    return JsonResponse({
        "message": "Swipe recorded" if result.created else "Swipe already recorded",
        "created": result.created,
        "swipe": {
            "studentId": swipe.student_id,
            "mentorId": swipe.mentor_id,
            "direction": swipe.direction,
            "timestamp": iso(swipe.timestamp),
        },
        "connection": serialize_connection(result.connection) if result.connection else None,
    }, status=201 if result.created else 200)


@api_view(["POST"])
def request_connection(request):
    data = bind(ConnectionRequestForm, json_body(request))
    require_self(request, data["studentId"])

    conn, created = build_services().engine.request_connection(data["studentId"], data["mentorId"])
    payload = serialize_connection(conn)
    payload["created"] = created
    return JsonResponse(payload, status=201 if created else 200)


@api_view(["GET"])
def pending_requests(request, mentor_id):
    require_self(request, mentor_id)
    return JsonResponse(build_services().engine.list_pending(mentor_id), safe=False)


@api_view(["POST"])
def respond(request):
    data = bind(RespondForm, json_body(request))
    conn = build_services().engine.respond(data["connectionId"], data["status"], actor_id=request.bridge_user.pk)
    payload = serialize_connection(conn)
    payload["message"] = f"Request {conn.status}"
    return JsonResponse(payload)


@api_view(["GET"])
def active_connections(request, user_id):
    require_self(request, user_id)
    return JsonResponse(build_services().engine.list_active(user_id), safe=False)

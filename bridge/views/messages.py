from django.http import JsonResponse

from ..exceptions import Unauthorized
from ..forms import MessageForm
from ..services import build_services
from ..utils import serialize_message
from .base import api_view, bind, json_body, require_self


@api_view(["GET"])
def room_history(request, room_id):
    services = build_services()
    conn = services.engine.connection_for_room(room_id)
    if request.bridge_user.pk not in (conn.student_id, conn.mentor_id):
        raise Unauthorized("You are not part of this room")
    messages = services.messages.list_by_room(room_id)
    return JsonResponse([serialize_message(m) for m in messages], safe=False)


@api_view(["POST"])
def send_message(request):
    data = bind(MessageForm, json_body(request))
    require_self(request, data["senderId"])

    message = build_services().messages.append(
        data["roomId"],
        data["senderId"],
        data["type"],
        text=data.get("text"),
        voice_url=data.get("voiceUrl"),
    )
    return JsonResponse(serialize_message(message), status=201)

"""
Connection lifecycle and chat services.

The swipe ledger feeds the connection engine, the engine owns the
pending -> accepted/rejected state machine, and the message store keeps the
per-room chat log. Each is built with its collaborators passed in; nothing
here reaches for a global broadcaster.
"""
import functools
import logging
from collections import namedtuple

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from .broadcaster import Broadcaster
from .exceptions import (InvalidReference, InvalidRequest, InvalidTransition, NotFound, TransientStoreFailure,
                         Unauthorized)
from .models import Connection, Message, MessageType, Role, Swipe, User
from .rooms import room_id, room_participants
from .utils import serialize_active, serialize_message, serialize_pending

logger = logging.getLogger(__name__)

SwipeResult = namedtuple("SwipeResult", ["created", "swipe", "connection"])
Services = namedtuple("Services", ["ledger", "engine", "messages"])

# Payload fields each message type must carry
PAYLOAD_RULES = {
    MessageType.TEXT: ("text",),
    MessageType.ROADMAP: ("text",),
    MessageType.VOICE: ("voice_url",),
    MessageType.VIDEO: ("voice_url",),
    MessageType.VIDEO_CALL: ("voice_url",),
}


def guarded(func):
    """Surface store I/O errors as TransientStoreFailure."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError:
            raise
        except DatabaseError as exc:
            logger.exception("Store failure in %s", func.__qualname__)
            raise TransientStoreFailure() from exc
    return wrapper


def as_id(value):
    if isinstance(value, bool):
        raise ValueError(value)
    return int(value)


def resolve_user(user_id, role=None):
    """Load a user, checking the role when one is expected."""
    try:
        user_id = as_id(user_id)
    except (TypeError, ValueError):
        raise InvalidReference(f"Invalid user id {user_id!r}")
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise InvalidReference(f"Unknown user {user_id}")
    if role and user.role != role:
        raise InvalidReference(f"User {user_id} is not a {role}")
    return user


def clean_payload(message_type, text=None, voice_url=None):
    try:
        message_type = MessageType(message_type)
    except ValueError:
        raise InvalidRequest(f"Unknown message type {message_type!r}")

    fields = {
        "text": (text or "").strip() or None,
        "voice_url": (voice_url or "").strip() or None,
    }
    missing = [name for name in PAYLOAD_RULES[message_type] if not fields[name]]
    if missing:
        raise InvalidRequest(
            f"A {message_type.value} message needs {', '.join(missing)}",
            errors={name: ["This field is required."] for name in missing},
        )
    return message_type, fields["text"], fields["voice_url"]


class ConnectionEngine:

    def __init__(self, broadcaster):
        self.broadcaster = broadcaster

    @guarded
    def request_connection(self, student_id, mentor_id):
        """
        Create a pending connection for the pair, or return the active one
        that already exists. Returns ``(connection, created)``; only a newly
        created request notifies the mentor.
        """
        student = resolve_user(student_id, Role.STUDENT)
        mentor = resolve_user(mentor_id, Role.MENTOR)
        conn, created = self.open_request(student, mentor)
        if created:
            self.announce_request(conn)
        return conn, created

    def open_request(self, student, mentor):
        """Store a pending request without notifying anyone."""
        try:
            with transaction.atomic():
                existing = Connection.objects.active().filter(student=student, mentor=mentor).first()
                if existing:
                    return existing, False
                conn = Connection.objects.create(student=student, mentor=mentor)
        except IntegrityError:
            # a concurrent request for the same pair committed first
            return Connection.objects.active().get(student=student, mentor=mentor), False
        logger.info("Connection %s requested: student %s → mentor %s", conn.pk, student.pk, mentor.pk)
        return conn, True

    def announce_request(self, conn):
        self.broadcaster.notify_user(conn.mentor_id, "new_request", {"studentId": conn.student_id})

    @guarded
    def list_pending(self, mentor_id):
        """Pending requests for a mentor, oldest first."""
        mentor = resolve_user(mentor_id, Role.MENTOR)
        pending = (Connection.objects
                   .filter(mentor=mentor, status=Connection.PENDING)
                   .select_related("student")
                   .order_by("created_at", "id"))
        return [serialize_pending(c) for c in pending]

    @guarded
    def respond(self, connection_id, decision, actor_id=None):
        if decision not in Connection.DECISIONS:
            raise InvalidRequest(f"Decision must be one of {', '.join(Connection.DECISIONS)}")
        try:
            connection_id = as_id(connection_id)
        except (TypeError, ValueError):
            raise NotFound(f"Unknown connection {connection_id!r}")

        with transaction.atomic():
            conn = Connection.objects.select_for_update().filter(pk=connection_id).first()
            if conn is None:
                raise NotFound(f"Unknown connection {connection_id}")
            if actor_id is not None and as_id(actor_id) != conn.mentor_id:
                raise Unauthorized("Only the requested mentor can respond")

            responded_at = timezone.now()
            updated = (Connection.objects
                       .filter(pk=conn.pk, status=Connection.PENDING)
                       .update(status=decision, responded_at=responded_at))
            if not updated:
                conn.refresh_from_db(fields=["status"])
                raise InvalidTransition(f"Connection {conn.pk} is already {conn.status}")
            conn.status = decision
            conn.responded_at = responded_at

        logger.info("Connection %s %s", conn.pk, decision)
        if decision == Connection.ACCEPTED:
            self.broadcaster.notify_user(conn.student_id, "request_accepted", {
                "mentorId": conn.mentor_id,
                "roomId": room_id(conn.student_id, conn.mentor_id),
            })
        return conn

    @guarded
    def list_active(self, user_id):
        """Accepted connections of a user, seen from their side."""
        user = resolve_user(user_id)
        accepted = (Connection.objects
                    .involving(user.pk)
                    .filter(status=Connection.ACCEPTED)
                    .select_related("student", "mentor")
                    .order_by("created_at", "id"))
        return [serialize_active(c, user.pk) for c in accepted]

    @guarded
    def connection_for_room(self, value):
        low, high = room_participants(value)
        conn = (Connection.objects
                .between(low, high)
                .filter(status=Connection.ACCEPTED)
                .first())
        if conn is None:
            raise NotFound(f"Unknown room {value!r}")
        return conn


class SwipeLedger:

    def __init__(self, engine):
        self.engine = engine

    @guarded
    def record_swipe(self, student_id, mentor_id, direction):
        """
        Record a student's decision about a mentor, once per pair.
        A repeated swipe is a no-op reported with ``created=False``.
        """
        if direction not in (Swipe.LEFT, Swipe.RIGHT):
            raise InvalidRequest("Direction must be 'left' or 'right'")
        student = resolve_user(student_id, Role.STUDENT)
        mentor = resolve_user(mentor_id, Role.MENTOR)

        connection, requested = None, False
        with transaction.atomic():
            swipe, created = Swipe.objects.get_or_create(
                student=student, mentor=mentor, defaults={"direction": direction},
            )
            # the swipe only sticks if its connection request does too
            if created and direction == Swipe.RIGHT:
                connection, requested = self.engine.open_request(student, mentor)
        if requested:
            self.engine.announce_request(connection)
        return SwipeResult(created, swipe, connection)


class MessageStore:

    def __init__(self, engine, broadcaster):
        self.engine = engine
        self.broadcaster = broadcaster

    @guarded
    def append(self, room, sender_id, message_type=MessageType.TEXT, text=None, voice_url=None):
        """Persist a chat message, then publish it on the room channel."""
        message_type, text, voice_url = clean_payload(message_type, text, voice_url)
        sender = resolve_user(sender_id)
        conn = self.engine.connection_for_room(room)
        if sender.pk not in (conn.student_id, conn.mentor_id):
            raise Unauthorized(f"User {sender.pk} is not part of room {room}")

        with transaction.atomic():
            message = Message.objects.create(
                room_id=room, sender=sender, type=message_type, text=text, voice_url=voice_url,
            )
        self.broadcaster.publish(room, "message", serialize_message(message))
        return message

    @guarded
    def list_by_room(self, room):
        self.engine.connection_for_room(room)
        return list(Message.objects.filter(room_id=room).order_by("timestamp", "id"))


def build_services(broadcaster=None):
    broadcaster = broadcaster or Broadcaster()
    engine = ConnectionEngine(broadcaster)
    return Services(
        ledger=SwipeLedger(engine),
        engine=engine,
        messages=MessageStore(engine, broadcaster),
    )


@guarded
def mentor_deck(student_id=None):
    """Verified mentors, best rated first, minus those the student already swiped."""
    mentors = User.objects.filter(role=Role.MENTOR, is_verified=True)
    if student_id is not None:
        mentors = mentors.exclude(pk__in=Swipe.objects.filter(student_id=student_id).values("mentor_id"))
    return list(mentors.annotate(score=F("rating") + F("system_rating")).order_by("-score", "id"))

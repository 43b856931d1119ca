import itertools
import json

import pytest

from bridge.accounts import issue_token
from bridge.models import Role, User
from bridge.services import build_services


class RecordingBroadcaster:
    """Stands in for the channel layer and keeps every published event."""

    def __init__(self):
        self.published = []

    def publish(self, channel, event, payload):
        self.published.append((channel, event, payload))
        return True

    def notify_user(self, user_id, event, payload):
        return self.publish(f"user_{user_id}", event, payload)

    def events(self, channel):
        return [(event, payload) for ch, event, payload in self.published if ch == channel]


_emails = itertools.count(1)


def create_user(role=Role.STUDENT, name=None, verified=True, password="secret123", **extra):
    n = next(_emails)
    email = extra.pop("email", f"{role}{n}@example.com")
    user = User(
        username=email,
        email=email,
        name=name or f"{str(role).title()} {n}",
        role=role,
        is_verified=verified,
        **extra,
    )
    user.set_password(password)
    user.save()
    return user


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def services(broadcaster):
    return build_services(broadcaster)


@pytest.fixture
def make_user(db):
    return create_user


@pytest.fixture
def student(make_user):
    return make_user(Role.STUDENT, name="Asha", branch="IT")


@pytest.fixture
def mentor(make_user):
    return make_user(Role.MENTOR, name="Ravi")


@pytest.fixture
def accepted(services, student, mentor):
    conn, _ = services.engine.request_connection(student.pk, mentor.pk)
    return services.engine.respond(conn.pk, "accepted")


@pytest.fixture
def recorded(monkeypatch, broadcaster):
    """Route the views' broadcaster into the recording one."""
    monkeypatch.setattr("bridge.services.Broadcaster", lambda: broadcaster)
    return broadcaster


@pytest.fixture
def api(client):
    def call(method, path, user=None, data=None):
        extra = {}
        if user is not None:
            extra["HTTP_AUTHORIZATION"] = f"Bearer {issue_token(user)}"
        if method == "get":
            return client.get(path, **extra)
        return client.post(path, data=json.dumps(data or {}), content_type="application/json", **extra)
    return call

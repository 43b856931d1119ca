import pytest
from django.db import OperationalError

from bridge.accounts import issue_token
from bridge.models import Connection, Message, Role, Swipe


@pytest.fixture
def scenario_users(make_user):
    """Student 1 and mentor 2"""
    return make_user(Role.STUDENT, id=1, name="Asha"), make_user(Role.MENTOR, id=2, name="Ravi")


def test_swipe_to_chat_scenario(api, recorded, scenario_users):
    student, mentor = scenario_users

    resp = api("post", "/api/swipes", student, {"studentId": 1, "mentorId": 2, "direction": "right"})
    assert resp.status_code == 201
    assert Connection.objects.filter(status="pending").count() == 1
    assert recorded.events("user_2") == [("new_request", {"studentId": 1})]

    [pending] = api("get", "/api/connections/pending/2", mentor).json()
    assert pending["studentId"] == 1

    resp = api("post", "/api/connections/respond", mentor, {"connectionId": pending["id"], "status": "accepted"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "accepted"
    assert recorded.events("user_1") == [("request_accepted", {"mentorId": 2, "roomId": "1_2"})]

    assert api("get", "/api/connections/active/1", student).json()[0]["roomId"] == "1_2"
    assert api("get", "/api/connections/active/2", mentor).json()[0]["roomId"] == "1_2"

    resp = api("post", "/api/messages", student, {"roomId": "1_2", "senderId": 1, "text": "hello", "type": "text"})
    assert resp.status_code == 201
    sent = resp.json()
    assert recorded.events("1_2") == [("message", sent)]

    history = api("get", "/api/messages/1_2", mentor).json()
    assert history == [sent]


def test_duplicate_swipe_returns_200(api, recorded, student, mentor):
    body = {"studentId": student.pk, "mentorId": mentor.pk, "direction": "left"}
    assert api("post", "/api/swipes", student, body).status_code == 201

    resp = api("post", "/api/swipes", student, body)

    assert resp.status_code == 200
    assert resp.json()["created"] is False
    assert Swipe.objects.count() == 1


def test_direct_request_is_idempotent(api, recorded, student, mentor):
    body = {"studentId": student.pk, "mentorId": mentor.pk}
    first = api("post", "/api/connections/request", student, body)
    second = api("post", "/api/connections/request", student, body)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert Connection.objects.count() == 1


def test_missing_token(api, student, mentor):
    resp = api("post", "/api/swipes", None, {"studentId": student.pk, "mentorId": mentor.pk, "direction": "left"})

    assert resp.status_code == 401
    assert resp.json()["code"] == "unauthenticated"


def test_cannot_swipe_for_someone_else(api, make_user, student, mentor):
    other = make_user(Role.STUDENT)
    resp = api("post", "/api/swipes", other, {"studentId": student.pk, "mentorId": mentor.pk, "direction": "right"})

    assert resp.status_code == 403
    assert resp.json()["code"] == "unauthorized"


def test_unknown_mentor_maps_to_400(api, recorded, student):
    resp = api("post", "/api/swipes", student, {"studentId": student.pk, "mentorId": 9999, "direction": "right"})

    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_reference"


def test_invalid_fields_are_reported(api, student, mentor):
    resp = api("post", "/api/swipes", student, {"studentId": student.pk, "mentorId": mentor.pk, "direction": "up"})

    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_request"
    assert "direction" in resp.json()["fields"]


def test_malformed_json(client, student):
    resp = client.post("/api/swipes", data="{nope", content_type="application/json",
                       HTTP_AUTHORIZATION=f"Bearer {issue_token(student)}")
    assert resp.status_code == 400


def test_respond_twice_is_conflict(api, recorded, accepted, mentor):
    resp = api("post", "/api/connections/respond", mentor, {"connectionId": accepted.pk, "status": "rejected"})

    assert resp.status_code == 409
    assert resp.json()["code"] == "invalid_transition"
    accepted.refresh_from_db()
    assert accepted.status == "accepted"


def test_respond_unknown_connection(api, mentor):
    resp = api("post", "/api/connections/respond", mentor, {"connectionId": 4040, "status": "accepted"})
    assert resp.status_code == 404


def test_student_cannot_accept_own_request(api, recorded, services, student, mentor):
    conn, _ = services.engine.request_connection(student.pk, mentor.pk)
    resp = api("post", "/api/connections/respond", student, {"connectionId": conn.pk, "status": "accepted"})
    assert resp.status_code == 403


def test_pending_list_is_private(api, student, mentor):
    assert api("get", f"/api/connections/pending/{mentor.pk}", student).status_code == 403


def test_outsider_cannot_read_history(api, make_user, accepted, student, mentor):
    outsider = make_user(Role.STUDENT)
    resp = api("get", f"/api/messages/{min(student.pk, mentor.pk)}_{max(student.pk, mentor.pk)}", outsider)
    assert resp.status_code == 403


def test_voice_message_without_url(api, recorded, accepted, student, mentor):
    room = f"{min(student.pk, mentor.pk)}_{max(student.pk, mentor.pk)}"
    resp = api("post", "/api/messages", student, {"roomId": room, "senderId": student.pk, "type": "voice"})

    assert resp.status_code == 400
    assert "voice_url" in resp.json()["fields"]
    assert not Message.objects.exists()


def test_store_failure_maps_to_503(api, monkeypatch, student, mentor):
    def broken(*args, **kwargs):
        raise OperationalError("database is locked")
    monkeypatch.setattr("bridge.models.Swipe.objects.get_or_create", broken)

    resp = api("post", "/api/swipes", student, {"studentId": student.pk, "mentorId": mentor.pk, "direction": "left"})

    assert resp.status_code == 503
    assert resp.json()["code"] == "store_unavailable"


def test_store_failure_during_authentication_maps_to_503(api, monkeypatch, student):
    def broken(token):
        raise OperationalError("database is locked")
    monkeypatch.setattr("bridge.views.base.user_for_token", broken)

    resp = api("get", f"/api/connections/active/{student.pk}", student)

    assert resp.status_code == 503
    assert resp["Content-Type"] == "application/json"
    assert resp.json()["code"] == "store_unavailable"


def test_store_failure_in_account_views_maps_to_503(api, monkeypatch, student):
    def broken(*args, **kwargs):
        raise OperationalError("disk I/O error")
    monkeypatch.setattr("bridge.models.User.save", broken)

    resp = api("post", "/api/users/skills", student, {"skills": ["Go"]})

    assert resp.status_code == 503
    assert resp.json()["code"] == "store_unavailable"


def test_method_not_allowed(api, student):
    assert api("get", "/api/swipes", student).status_code == 405


class TestAuthEndpoints:

    def test_signup_verify_login(self, api, db, settings):
        settings.DEBUG = True
        resp = api("post", "/api/auth/signup", data={
            "name": "Kiran", "email": "kiran@example.com", "password": "secret123",
            "role": "student", "branch": "CSE", "skills": ["React", "SQL"],
        })
        assert resp.status_code == 201
        otp = resp.json()["debugOtp"]

        assert api("post", "/api/auth/login", data={"email": "kiran@example.com", "password": "secret123"}).status_code == 403

        assert api("post", "/api/auth/verify-otp", data={"email": "kiran@example.com", "otp": otp}).status_code == 200

        resp = api("post", "/api/auth/login", data={"email": "kiran@example.com", "password": "secret123"})
        assert resp.status_code == 200
        assert resp.json()["token"]
        assert resp.json()["user"]["skills"] == ["React", "SQL"]
        assert resp.json()["user"]["role"] == "student"

    def test_debug_otp_hidden_in_production(self, api, db, settings):
        settings.DEBUG = False
        resp = api("post", "/api/auth/signup", data={
            "name": "Kiran", "email": "kiran@example.com", "password": "secret123", "role": "mentor",
        })
        assert resp.status_code == 201
        assert "debugOtp" not in resp.json()

    def test_bad_otp(self, api, db):
        resp = api("post", "/api/auth/verify-otp", data={"email": "nobody@example.com", "otp": "123456"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_otp"

    def test_bad_role(self, api, db):
        resp = api("post", "/api/auth/signup", data={
            "name": "X", "email": "x@example.com", "password": "secret123", "role": "admin",
        })
        assert resp.status_code == 400

    def test_update_skills(self, api, student):
        resp = api("post", "/api/users/skills", student, {"skills": ["Go", "Go", "Rust"]})
        assert resp.json()["skills"] == ["Go", "Rust"]
        student.refresh_from_db()
        assert student.skills == ["Go", "Rust"]

    @pytest.mark.parametrize("skills", ["Go", 7, ["Go", 3]])
    def test_skills_must_be_a_list_of_names(self, api, student, skills):
        resp = api("post", "/api/users/skills", student, {"skills": skills})

        assert resp.status_code == 400
        assert "skills" in resp.json()["fields"]


class TestMentorEndpoints:

    def test_deck_skips_swiped_and_unverified(self, api, recorded, make_user, student):
        top = make_user(Role.MENTOR, name="Top", rating=4, system_rating=1)
        mid = make_user(Role.MENTOR, name="Mid", rating=2, system_rating=2)
        swiped = make_user(Role.MENTOR, name="Swiped", rating=5, system_rating=5)
        make_user(Role.MENTOR, name="Unverified", verified=False, rating=5)
        api("post", "/api/swipes", student, {"studentId": student.pk, "mentorId": swiped.pk, "direction": "left"})

        deck = api("get", f"/api/mentors?studentId={student.pk}", student).json()

        assert [m["id"] for m in deck] == [top.pk, mid.pk]

    def test_deck_without_student(self, api, make_user, student):
        make_user(Role.MENTOR)
        assert len(api("get", "/api/mentors", student).json()) == 1

    def test_mentor_verification(self, api, mentor):
        resp = api("post", "/api/mentors/verify", mentor, {
            "linkedinUrl": "https://www.linkedin.com/in/ravi",
            "githubUrl": "https://github.com/ravi",
        })
        assert resp.json()["systemRating"] == 4.0
        mentor.refresh_from_db()
        assert mentor.system_rating == 4.0

    def test_students_cannot_submit_verification(self, api, student):
        assert api("post", "/api/mentors/verify", student, {}).status_code == 403

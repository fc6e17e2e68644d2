import uuid

from portfolio.core import config
from portfolio.models.user import UserRole

from conftest import TEST_PASSWORD


def _email(prefix: str = "t") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


def test_register_issues_session_cookie(client):
    client.cookies.clear()
    email = _email()
    r = client.post(
        "/api/register",
        json={"email": email, "password": "longenough1", "firstName": "Mona", "lastName": "Aziz"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["access_token"]
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == email
    assert body["user"]["role"] == "teacher"
    assert body["user"]["educationalLevel"] == "معلم"
    assert config.settings.session_cookie_name in r.cookies

    me = client.get("/api/user")
    assert me.status_code == 200
    assert me.json()["email"] == email

    out = client.post("/api/logout")
    assert out.status_code == 200
    client.cookies.clear()
    assert client.get("/api/user").json() is None


def test_register_rejects_duplicate_and_short_password(client, make_user):
    client.cookies.clear()
    email = _email()
    make_user(UserRole.teacher, email=email)

    r = client.post("/api/register", json={"email": email, "password": "longenough1"})
    assert r.status_code == 409

    r = client.post("/api/register", json={"email": _email(), "password": "short"})
    assert r.status_code == 400
    assert r.json()["message"] == "password too short"


def test_register_disabled(client, monkeypatch):
    monkeypatch.setattr(config.settings, "allow_public_register", False)
    r = client.post("/api/register", json={"email": _email(), "password": "longenough1"})
    assert r.status_code == 403
    assert r.json()["error_code"] == "forbidden"


def test_creator_email_registers_as_creator(client, monkeypatch):
    client.cookies.clear()
    email = _email("boss")
    monkeypatch.setattr(config.settings, "creator_emails", f"someone@example.com, {email.upper()}")
    r = client.post("/api/register", json={"email": email, "password": "longenough1"})
    assert r.status_code == 200, r.text
    assert r.json()["user"]["role"] == "creator"
    client.cookies.clear()


def test_login_with_form_credentials(client, make_user):
    client.cookies.clear()
    email = _email()
    make_user(UserRole.teacher, email=email)

    bad = client.post("/api/login", data={"username": email, "password": "wrong-password"})
    assert bad.status_code == 401
    assert bad.json()["ok"] is False

    ok = client.post("/api/login", data={"username": email.upper(), "password": TEST_PASSWORD})
    assert ok.status_code == 200, ok.text
    body = ok.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["mustChangePassword"] is False
    token = body["access_token"]

    me = client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == email
    client.cookies.clear()


def test_protected_route_requires_session(client):
    client.cookies.clear()
    r = client.get("/api/indicators")
    assert r.status_code == 401
    assert r.json()["error_code"] == "unauthorized"

    r = client.get("/api/indicators", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_update_profile(client, teacher):
    _, headers = teacher
    r = client.patch(
        "/api/user",
        json={"schoolName": "  Al Noor School  ", "yearsOfService": 7, "subject": ""},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["schoolName"] == "Al Noor School"
    assert body["yearsOfService"] == 7
    assert body["subject"] is None
    assert body["firstName"] == "Sara"


def test_update_profile_validates_fields(client, teacher):
    _, headers = teacher
    r = client.patch("/api/user", json={"yearsOfService": 99}, headers=headers)
    assert r.status_code == 400
    assert r.json()["error_code"] == "validation_error"

    r = client.patch("/api/user", json={"contactEmail": "not-an-email"}, headers=headers)
    assert r.status_code == 400


def test_change_password(client, make_user):
    client.cookies.clear()
    email = _email()
    _, headers = make_user(UserRole.teacher, email=email, must_change_password=True)

    r = client.post(
        "/api/user/change-password",
        json={"currentPassword": "nope-nope", "newPassword": "brandnew123"},
        headers=headers,
    )
    assert r.status_code == 401

    r = client.post(
        "/api/user/change-password",
        json={"currentPassword": TEST_PASSWORD, "newPassword": "brandnew123"},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    assert client.get("/api/user", headers=headers).json()["mustChangePassword"] is False

    ok = client.post("/api/login", data={"username": email, "password": "brandnew123"})
    assert ok.status_code == 200
    client.cookies.clear()

import pytest

from issuetracker.models import User, UserRole

pytestmark = pytest.mark.api


def signup_payload(**overrides):
    payload = {
        "name": "Priya Shah",
        "email": "priya@acme.com",
        "password": "password123",
        "company_code": "acme",
        "role": "ProjectManager",
    }
    payload.update(overrides)
    return payload


def test_signup_returns_token_and_user(client, db):
    response = client.post("/api/auth/signup", json=signup_payload())

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["company_code"] == "ACME"
    assert body["user"]["role"] == "ProjectManager"
    assert db.query(User).filter(User.email == "priya@acme.com").one().hashed_password != "password123"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "priya@acme.com"


def test_signup_duplicate_email_in_company_conflicts(client):
    client.post("/api/auth/signup", json=signup_payload())
    response = client.post("/api/auth/signup", json=signup_payload(name="Someone Else"))
    assert response.status_code == 409


def test_same_email_may_join_another_company(client):
    client.post("/api/auth/signup", json=signup_payload())
    response = client.post("/api/auth/signup", json=signup_payload(company_code="globex"))
    assert response.status_code == 201


def test_master_admin_cannot_self_register(client):
    response = client.post("/api/auth/signup", json=signup_payload(role="MasterAdmin"))
    assert response.status_code == 403


@pytest.mark.parametrize("overrides", [
    {"password": "short"},
    {"password": "é" * 72},
    {"email": "not-an-email"},
    {"company_code": "AB"},
    {"role": "CEO"},
])
def test_signup_validation_answers_400(client, overrides):
    response = client.post("/api/auth/signup", json=signup_payload(**overrides))
    assert response.status_code == 400


def test_multibyte_password_at_bcrypt_limit(client):
    password = "é" * 36
    assert client.post("/api/auth/signup", json=signup_payload(password=password)).status_code == 201

    response = client.post("/api/auth/login", json={"email": "priya@acme.com", "password": password})
    assert response.status_code == 200


def test_login_updates_last_login(client, db, make_user, password):
    user = make_user(UserRole.DEVELOPER, email="sam@acme.com")
    assert user.last_login is None

    response = client.post("/api/auth/login", json={"email": "sam@acme.com", "password": password})

    assert response.status_code == 200, response.text
    assert response.json()["user"]["id"] == user.id
    db.refresh(user)
    assert user.last_login is not None


def test_login_with_wrong_password(client, make_user):
    make_user(UserRole.DEVELOPER, email="sam@acme.com")
    response = client.post("/api/auth/login", json={"email": "sam@acme.com", "password": "wrong-password"})
    assert response.status_code == 401


def test_login_needs_company_when_email_is_shared(client, make_user, password):
    make_user(UserRole.DEVELOPER, email="sam@acme.com", company_code="ACME")
    globex_sam = make_user(UserRole.QA_TESTER, email="sam@acme.com", company_code="GLOBEX")

    ambiguous = client.post("/api/auth/login", json={"email": "sam@acme.com", "password": password})
    scoped = client.post(
        "/api/auth/login", json={"email": "sam@acme.com", "password": password, "company_code": "globex"})

    assert ambiguous.status_code == 400
    assert scoped.status_code == 200
    assert scoped.json()["user"]["id"] == globex_sam.id


def test_inactive_user_cannot_log_in_or_use_token(client, make_user, auth_headers, password):
    user = make_user(UserRole.DEVELOPER, email="gone@acme.com", is_active=False)

    assert client.post("/api/auth/login", json={"email": "gone@acme.com", "password": password}).status_code == 401
    assert client.get("/api/auth/me", headers=auth_headers(user)).status_code == 401


def test_garbage_token_is_rejected(client):
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401

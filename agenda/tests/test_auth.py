from datetime import timedelta

from agenda.models import User
from agenda.security_utils import create_access_token, hash_password

from .conftest import PASSWORD


def login(client, email="owner@example.com", password=PASSWORD):
    return client.post("/auth/login", json={"email": email, "password": password})


def test_login_returns_token_and_setup_status(client, user, sessions):
    response = login(client)

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["id"] == user.id
    assert body["user"]["lastLogin"] == "2024-03-11T09:00:00Z"
    assert body["setupStatus"]["setupPending"] is True
    assert body["setupStatus"]["details"]["hasBusiness"] is False

    session = sessions.get(user.id)
    assert session["token"] == body["token"]
    assert session["loginTime"] == "2024-03-11T09:00:00Z"


def test_login_token_authorizes_requests(client, user):
    token = login(client).json()["token"]

    response = client.get("/business/setup-status", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_login_rejects_wrong_password(client, user):
    response = login(client, password="not-the-password")

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_login_rejects_unknown_email(client, user):
    response = login(client, email="nobody@example.com")

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_login_requires_verified_email(client, db_session):
    db_session.add(
        User(
            email="new@example.com",
            password_hash=hash_password(PASSWORD),
            email_verified=False,
        )
    )
    db_session.commit()

    response = login(client, email="new@example.com")

    assert response.status_code == 401
    assert response.json()["code"] == "EMAIL_NOT_VERIFIED"


def test_new_login_invalidates_previous_token(client, user, sessions):
    old_token = create_access_token(user.id, user.email, expires_delta=timedelta(minutes=5))
    sessions.save(user.id, {"userId": user.id, "email": user.email, "token": old_token})

    new_token = login(client).json()["token"]
    assert new_token != old_token

    stale = client.get("/business/setup-status", headers={"Authorization": f"Bearer {old_token}"})
    assert stale.status_code == 401
    assert stale.json()["code"] == "SESSION_INVALID"


def test_logout_invalidates_token(client, user, auth_headers, sessions):
    response = client.post("/auth/logout", headers=auth_headers)

    assert response.status_code == 200
    assert sessions.get(user.id) is None
    assert client.get("/business/setup-status", headers=auth_headers).status_code == 401


def test_missing_and_malformed_tokens(client, user):
    missing = client.get("/business/setup-status")
    assert missing.status_code == 401
    assert missing.json()["code"] == "TOKEN_MISSING"

    garbage = client.get("/business/setup-status", headers={"Authorization": "Bearer not-a-jwt"})
    assert garbage.status_code == 401
    assert garbage.json()["code"] == "TOKEN_INVALID"


def test_token_for_deleted_user(client, user, auth_headers, db_session):
    db_session.delete(user)
    db_session.commit()

    response = client.get("/business/setup-status", headers=auth_headers)
    assert response.status_code == 401
    assert response.json()["code"] == "USER_NOT_FOUND"

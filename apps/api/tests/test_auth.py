"""
Registration, login, lockout and self-service (de)activation.
"""
from core.account_security import MAX_FAILED_ATTEMPTS


def _register(client, **overrides):
    body = {"username": "newcomer", "password": "Secret99x", "role": "client", "name": "New Comer"}
    body.update(overrides)
    return client.post("/v1/auth/register", json=body)


def test_register_client_returns_token_and_profile(client):
    resp = _register(client)
    assert resp.status_code == 201
    data = resp.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["username"] == "newcomer"
    assert data["user"]["role"] == "client"
    assert data["user"]["notification_settings"] == {"messages": True, "plans": True, "system": True}

    me = client.get("/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["id"] == data["user"]["id"]


def test_registered_trainer_starts_unvalidated(client):
    resp = _register(client, username="coachy", role="trainer")
    assert resp.status_code == 201
    assert resp.json()["user"]["validated"] is False


def test_register_rejects_admin_role(client):
    resp = _register(client, role="admin")
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["message"] == body["detail"]


def test_register_duplicate_username_conflicts(client, athlete):
    resp = _register(client, username=athlete.username)
    assert resp.status_code == 409
    assert resp.json()["code"] == "USERNAME_TAKEN"


def test_register_rejects_weak_password(client):
    resp = _register(client, password="123")
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR_PASSWORD"


def test_login_success(client, athlete, password):
    resp = client.post("/v1/auth/login", json={"username": athlete.username, "password": password})
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == str(athlete.id)


def test_login_wrong_password(client, athlete):
    resp = client.post("/v1/auth/login", json={"username": athlete.username, "password": "nope-nope"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid credentials"


def test_login_unknown_user_looks_like_wrong_password(client):
    resp = client.post("/v1/auth/login", json={"username": "ghost", "password": "whatever1"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid credentials"


def test_repeated_failures_lock_the_username(client, athlete, password):
    for _ in range(MAX_FAILED_ATTEMPTS):
        client.post("/v1/auth/login", json={"username": athlete.username, "password": "wrong-one"})

    resp = client.post("/v1/auth/login", json={"username": athlete.username, "password": password})
    assert resp.status_code == 429
    assert resp.json()["code"] == "ACCOUNT_LOCKED"
    assert "Retry-After" in resp.headers


def test_requests_without_token_are_rejected(client):
    resp = client.get("/v1/users/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"


def test_garbage_token_is_rejected(client):
    resp = client.get("/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_deactivate_then_login_reports_deactivated(client, athlete, password, headers_for):
    headers = headers_for(athlete)

    wrong = client.post("/v1/auth/deactivate", json={"password": "bad-password"}, headers=headers)
    assert wrong.status_code == 401

    resp = client.post("/v1/auth/deactivate", json={"password": password}, headers=headers)
    assert resp.status_code == 200

    # Outstanding tokens stop working immediately
    assert client.get("/v1/users/me", headers=headers).status_code == 403

    login = client.post("/v1/auth/login", json={"username": athlete.username, "password": password})
    assert login.status_code == 403
    assert login.json()["code"] == "ACCOUNT_DEACTIVATED"


def test_reactivate_restores_access(client, athlete, password, headers_for):
    headers = headers_for(athlete)
    client.post("/v1/auth/deactivate", json={"password": password}, headers=headers)

    resp = client.post("/v1/auth/reactivate", json={"username": athlete.username, "password": password})
    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == "Account reactivated"
    assert data["user"]["is_active"] is True

    new_headers = {"Authorization": f"Bearer {data['access_token']}"}
    assert client.get("/v1/users/me", headers=new_headers).status_code == 200


def test_reactivate_unknown_user(client):
    resp = client.post("/v1/auth/reactivate", json={"username": "ghost", "password": "whatever1"})
    assert resp.status_code == 404


def test_missing_body_field_is_a_400(client):
    resp = client.post("/v1/auth/login", json={"username": "only"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["detail"].startswith("password")

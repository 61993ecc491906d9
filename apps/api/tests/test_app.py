"""
Application wiring: health endpoints, error envelope, response headers.
"""
from core.exceptions import ConflictError, NotFoundError


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_health_reports_database_outage(client, monkeypatch):
    import main

    monkeypatch.setattr(main, "check_db_connection", lambda: False)
    resp = client.get("/health")
    assert resp.status_code == 503
    assert resp.json()["database"] == "unavailable"


def test_ping(client):
    assert client.get("/ping").json() == {"pong": True}


def test_error_envelope_has_detail_message_code(client):
    resp = client.get("/v1/users/trainers/00000000-0000-0000-0000-000000000000")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Trainer not found", "message": "Trainer not found", "code": "NOT_FOUND"}


def test_unknown_route_uses_envelope(client):
    resp = client.get("/v1/nowhere")
    assert resp.status_code == 404
    assert set(resp.json()) == {"detail", "message", "code"}


def test_bad_path_uuid_is_400(client, admin, headers_for):
    resp = client.post("/v1/admin/users/not-a-uuid/validate", headers=headers_for(admin))
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"


def test_security_and_timing_headers(client):
    resp = client.get("/ping")
    assert "X-Process-Time" in resp.headers
    assert resp.headers.get("X-Content-Type-Options") == "nosniff"


def test_exception_classes_carry_codes():
    assert NotFoundError("Plan").detail == "Plan not found"
    conflict = ConflictError("busy", "TRAINER_AT_CAPACITY")
    assert conflict.status_code == 409
    assert conflict.error_code == "TRAINER_AT_CAPACITY"

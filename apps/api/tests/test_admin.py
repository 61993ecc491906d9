"""
Admin user management: create, edit, validate, status and delete.
"""
from datetime import date

from models import Entry, Message, MessageHiddenFor, Notification, Plan, PlanTemplate, TrainerChangeRequest, User


def test_admin_lists_users(client, admin, athlete, trainer, headers_for):
    resp = client.get("/v1/admin/users", headers=headers_for(admin))
    assert resp.status_code == 200
    assert {u["id"] for u in resp.json()} == {str(admin.id), str(athlete.id), str(trainer.id)}


def test_non_admins_are_refused(client, trainer, headers_for):
    resp = client.get("/v1/admin/users", headers=headers_for(trainer))
    assert resp.status_code == 403
    assert resp.json()["detail"].startswith("Access denied")


def test_admin_creates_any_role(client, admin, headers_for):
    resp = client.post(
        "/v1/admin/users",
        json={"username": "second_admin", "password": "Adm1nPass", "role": "admin"},
        headers=headers_for(admin),
    )
    assert resp.status_code == 201
    assert resp.json()["role"] == "admin"


def test_admin_edits_user(client, admin, athlete, make_user, headers_for):
    resp = client.patch(
        f"/v1/admin/users/{athlete.id}",
        json={"username": "renamed", "name": "Renamed", "role": "trainer"},
        headers=headers_for(admin),
    )
    assert resp.status_code == 200
    assert resp.json()["username"] == "renamed"
    assert resp.json()["role"] == "trainer"

    taken = make_user("client")
    clash = client.patch(
        f"/v1/admin/users/{athlete.id}", json={"username": taken.username}, headers=headers_for(admin)
    )
    assert clash.status_code == 409


def test_admin_resets_password(client, admin, athlete, headers_for):
    client.patch(f"/v1/admin/users/{athlete.id}", json={"password": "Fresh123x"}, headers=headers_for(admin))
    login = client.post("/v1/auth/login", json={"username": athlete.username, "password": "Fresh123x"})
    assert login.status_code == 200


def test_validate_trainer(client, admin, make_user, headers_for):
    pending = make_user("trainer", validated=False)
    resp = client.post(f"/v1/admin/users/{pending.id}/validate", headers=headers_for(admin))
    assert resp.status_code == 200
    assert resp.json()["validated"] is True
    assert client.get(f"/v1/users/trainers/{pending.id}").status_code == 200


def test_status_change_requires_admin_password(client, admin, athlete, password, headers_for):
    url = f"/v1/admin/users/{athlete.id}/status"
    wrong = client.post(url, json={"password": "not-mine-1", "is_active": False}, headers=headers_for(admin))
    assert wrong.status_code == 401

    empty = client.post(url, json={"password": "", "is_active": False}, headers=headers_for(admin))
    assert empty.status_code == 400

    ok = client.post(url, json={"password": password, "is_active": False}, headers=headers_for(admin))
    assert ok.status_code == 200
    assert ok.json()["is_active"] is False

    assert client.get("/v1/users/me", headers=headers_for(athlete)).status_code == 403


def test_admin_cannot_change_own_status(client, admin, password, headers_for):
    resp = client.post(
        f"/v1/admin/users/{admin.id}/status",
        json={"password": password, "is_active": False},
        headers=headers_for(admin),
    )
    assert resp.status_code == 400


def test_delete_trainer_unassigns_clients_and_cleans_up(client, admin, paired, make_user, password, headers_for, db_session):
    trainer, athlete = paired
    other_client = make_user("client")
    db_session.add_all([
        Plan(trainer_id=trainer.id, client_id=athlete.id, name="P", days=[]),
        PlanTemplate(trainer_id=trainer.id, name="T", days=[]),
        Notification(recipient_id=trainer.id, type="system", content="hi"),
        TrainerChangeRequest(client_id=other_client.id, new_trainer_id=trainer.id),
        TrainerChangeRequest(client_id=athlete.id, current_trainer_id=trainer.id, new_trainer_id=make_user("trainer").id),
    ])
    msg = Message(sender_id=trainer.id, recipient_id=athlete.id, text="bye")
    db_session.add(msg)
    db_session.commit()
    db_session.add(MessageHiddenFor(message_id=msg.id, user_id=athlete.id))
    db_session.commit()

    resp = client.request(
        "DELETE", f"/v1/admin/users/{trainer.id}", json={"password": password}, headers=headers_for(admin)
    )
    assert resp.status_code == 200

    db_session.expire_all()
    assert db_session.query(User).filter(User.id == trainer.id).first() is None
    assert db_session.get(User, athlete.id).assigned_trainer_id is None
    assert db_session.query(Plan).count() == 0
    assert db_session.query(PlanTemplate).count() == 0
    assert db_session.query(Message).count() == 0
    assert db_session.query(MessageHiddenFor).count() == 0
    remaining = db_session.query(TrainerChangeRequest).all()
    assert len(remaining) == 1
    assert remaining[0].current_trainer_id is None


def test_delete_client_removes_entries(client, admin, athlete, password, headers_for, db_session):
    db_session.add(Entry(client_id=athlete.id, date=date(2026, 5, 1), completed=True))
    db_session.commit()

    resp = client.request(
        "DELETE", f"/v1/admin/users/{athlete.id}", json={"password": password}, headers=headers_for(admin)
    )
    assert resp.status_code == 200
    assert db_session.query(Entry).count() == 0


def test_admin_cannot_delete_self(client, admin, password, headers_for):
    resp = client.request(
        "DELETE", f"/v1/admin/users/{admin.id}", json={"password": password}, headers=headers_for(admin)
    )
    assert resp.status_code == 400


def test_delete_unknown_user(client, admin, password, headers_for):
    resp = client.request(
        "DELETE",
        "/v1/admin/users/00000000-0000-0000-0000-000000000000",
        json={"password": password},
        headers=headers_for(admin),
    )
    assert resp.status_code == 404

"""
Direct messages: send, threads, conversations, unread summary, per-user delete.
"""
from models import Message, MessageHiddenFor, Notification


def _send(client, sender, to, text, headers_for):
    return client.post("/v1/messages", json={"to": str(to.id), "text": text}, headers=headers_for(sender))


def test_send_creates_message_and_notification(client, trainer, athlete, headers_for, db_session):
    resp = _send(client, trainer, athlete, "  Hi there  ", headers_for)
    assert resp.status_code == 201
    body = resp.json()
    assert body["text"] == "Hi there"
    assert body["read"] is False
    assert body["sender"]["id"] == str(trainer.id)

    note = db_session.query(Notification).filter(Notification.recipient_id == athlete.id).one()
    assert note.type == "message"
    assert note.related_id == trainer.id
    assert note.content == f"You received a message from {trainer.name}"


def test_message_notification_respects_opt_out(client, trainer, make_user, headers_for, db_session):
    quiet = make_user("client", notify_messages=False)
    assert _send(client, trainer, quiet, "ping", headers_for).status_code == 201
    assert db_session.query(Message).count() == 1
    assert db_session.query(Notification).count() == 0


def test_send_validation(client, athlete, trainer, headers_for):
    assert _send(client, athlete, trainer, "   ", headers_for).status_code == 400
    assert _send(client, athlete, athlete, "me", headers_for).status_code == 400

    ghost = client.post(
        "/v1/messages",
        json={"to": "00000000-0000-0000-0000-000000000000", "text": "hello?"},
        headers=headers_for(athlete),
    )
    assert ghost.status_code == 404


def test_thread_is_oldest_first_and_carries_poll_header(client, trainer, athlete, headers_for):
    _send(client, trainer, athlete, "one", headers_for)
    _send(client, athlete, trainer, "two", headers_for)
    _send(client, trainer, athlete, "three", headers_for)

    resp = client.get(f"/v1/messages/{trainer.id}", headers=headers_for(athlete))
    assert resp.status_code == 200
    assert [m["text"] for m in resp.json()] == ["one", "two", "three"]
    assert resp.headers["X-Poll-Interval"] == "5"


def test_unread_summary_and_mark_read(client, trainer, athlete, make_user, headers_for, db_session):
    other = make_user("client", name="Bea")
    _send(client, trainer, athlete, "a", headers_for)
    _send(client, trainer, athlete, "b", headers_for)
    _send(client, other, athlete, "c", headers_for)

    summary = client.get("/v1/messages/unread", headers=headers_for(athlete))
    assert summary.headers["X-Poll-Interval"] == "5"
    data = summary.json()
    assert data["total"] == 3
    assert data["by_user"][str(trainer.id)] == {"count": 2, "name": trainer.name}
    assert data["by_user"][str(other.id)]["count"] == 1

    resp = client.put(f"/v1/messages/read/{trainer.id}", headers=headers_for(athlete))
    assert resp.status_code == 200

    after = client.get("/v1/messages/unread", headers=headers_for(athlete)).json()
    assert after["total"] == 1
    assert str(trainer.id) not in after["by_user"]

    # the matching message notifications were cleared too, the other sender's were not
    unread_notes = {
        n.related_id: n.is_read
        for n in db_session.query(Notification).filter(Notification.recipient_id == athlete.id)
    }
    assert unread_notes[other.id] is False
    assert unread_notes[trainer.id] is True


def test_conversations_latest_first_with_unread_counts(client, trainer, athlete, make_user, headers_for):
    other = make_user("trainer")
    _send(client, trainer, athlete, "old", headers_for)
    _send(client, other, athlete, "newer", headers_for)
    _send(client, athlete, trainer, "newest reply", headers_for)

    convos = client.get("/v1/messages/conversations", headers=headers_for(athlete)).json()
    assert [c["partner"]["id"] for c in convos] == [str(trainer.id), str(other.id)]
    assert convos[0]["last_message"] == "newest reply"
    assert convos[0]["last_message_from_me"] is True
    assert convos[0]["unread_count"] == 1
    assert convos[1]["unread_count"] == 1


def test_delete_conversation_hides_it_for_me_only(client, trainer, athlete, headers_for, db_session):
    _send(client, trainer, athlete, "one", headers_for)
    _send(client, athlete, trainer, "two", headers_for)

    resp = client.delete(f"/v1/messages/conversation/{trainer.id}", headers=headers_for(athlete))
    assert resp.status_code == 200

    assert client.get(f"/v1/messages/{trainer.id}", headers=headers_for(athlete)).json() == []
    assert client.get("/v1/messages/conversations", headers=headers_for(athlete)).json() == []
    assert client.get("/v1/messages/unread", headers=headers_for(athlete)).json()["total"] == 0

    theirs = client.get(f"/v1/messages/{athlete.id}", headers=headers_for(trainer)).json()
    assert [m["text"] for m in theirs] == ["one", "two"]

    # deleting again adds nothing
    client.delete(f"/v1/messages/conversation/{trainer.id}", headers=headers_for(athlete))
    assert db_session.query(MessageHiddenFor).count() == 2


def test_new_message_after_delete_is_visible(client, trainer, athlete, headers_for):
    _send(client, trainer, athlete, "before", headers_for)
    client.delete(f"/v1/messages/conversation/{trainer.id}", headers=headers_for(athlete))
    _send(client, trainer, athlete, "after", headers_for)

    thread = client.get(f"/v1/messages/{trainer.id}", headers=headers_for(athlete)).json()
    assert [m["text"] for m in thread] == ["after"]

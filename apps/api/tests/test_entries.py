"""
Entry log: per-day upsert, completion side effects, history, stats and
the missed-workout check.
"""
from datetime import date, timedelta

import pytest

from core.clock import day_name, local_today
from core.exceptions import ForbiddenError
from models import Entry, Notification, Plan, User
from schemas import EntryUpsert
from services import entry_log


def _save(client, athlete, headers_for, **body):
    return client.post("/v1/entries", json=body, headers=headers_for(athlete))


def test_upsert_creates_then_updates_same_day(client, athlete, headers_for, db_session):
    today = local_today().isoformat()
    first = _save(client, athlete, headers_for, date=today, completed=False, reason="sick", notes="flu")
    assert first.status_code == 200
    assert first.json()["completed_at"] is None

    second = _save(client, athlete, headers_for, date=today, completed=True, calories_burned=250)
    assert second.status_code == 200
    data = second.json()
    assert data["id"] == first.json()["id"]
    assert data["completed"] is True
    assert data["completed_at"] is not None
    assert data["calories_burned"] == 250
    # empty fields keep what was there
    assert data["reason"] == "sick"
    assert data["notes"] == "flu"

    assert db_session.query(Entry).filter(Entry.client_id == athlete.id).count() == 1


def test_uncompleting_clears_completed_at(client, athlete, headers_for):
    today = local_today().isoformat()
    _save(client, athlete, headers_for, date=today, completed=True)
    resp = _save(client, athlete, headers_for, date=today, completed=False)
    assert resp.json()["completed"] is False
    assert resp.json()["completed_at"] is None


def test_cannot_complete_future_day(client, athlete, headers_for):
    tomorrow = (local_today() + timedelta(days=1)).isoformat()
    resp = _save(client, athlete, headers_for, date=tomorrow, completed=True)
    assert resp.status_code == 403

    # planning a future day without completing it is fine
    assert _save(client, athlete, headers_for, date=tomorrow, completed=False).status_code == 200


def test_refused_future_completion_leaves_entry_untouched(client, athlete, headers_for, db_session):
    tomorrow = local_today() + timedelta(days=1)
    planned = _save(
        client, athlete, headers_for, date=tomorrow.isoformat(), completed=False, notes="leg day", calories_burned=0
    )
    assert planned.status_code == 200

    resp = _save(
        client, athlete, headers_for, date=tomorrow.isoformat(), completed=True, notes="done early", calories_burned=400
    )
    assert resp.status_code == 403

    db_session.expire_all()
    entries = db_session.query(Entry).filter(Entry.client_id == athlete.id).all()
    assert len(entries) == 1
    entry = entries[0]
    assert str(entry.id) == planned.json()["id"]
    assert entry.date == tomorrow
    assert entry.completed is False
    assert entry.completed_at is None
    assert entry.notes == "leg day"
    assert entry.calories_burned == 0
    assert db_session.query(Notification).filter(Notification.recipient_id == athlete.id).count() == 0


def test_negative_calories_rejected(client, athlete, headers_for):
    resp = _save(client, athlete, headers_for, date=local_today().isoformat(), calories_burned=-5)
    assert resp.status_code == 400


def test_completion_notifies_once(client, athlete, headers_for, db_session):
    today = local_today().isoformat()
    _save(client, athlete, headers_for, date=today, completed=True)
    _save(client, athlete, headers_for, date=today, completed=True, notes="again")

    notes = db_session.query(Notification).filter(Notification.recipient_id == athlete.id).all()
    assert len(notes) == 1
    assert notes[0].type == "system"


def test_completion_records_weight(client, athlete, headers_for, db_session):
    resp = _save(client, athlete, headers_for, date=local_today().isoformat(), completed=True, weight=82.4)
    assert resp.status_code == 200
    db_session.expire_all()
    user = db_session.get(User, athlete.id)
    assert user.weight == 82.4
    assert user.initial_weight == 82.4


def test_invalid_weight_rejects_the_whole_entry(client, athlete, headers_for, db_session):
    resp = _save(client, athlete, headers_for, date=local_today().isoformat(), completed=True, weight=5)
    assert resp.status_code == 400
    assert db_session.query(Entry).count() == 0


def test_entries_are_client_only_writes(client, trainer, headers_for):
    resp = _save(client, trainer, headers_for, date=local_today().isoformat())
    assert resp.status_code == 403


def test_history_filters_and_sorting(client, athlete, headers_for, db_session):
    base = date(2026, 3, 1)
    for offset in range(5):
        db_session.add(Entry(client_id=athlete.id, date=base + timedelta(days=offset), completed=True))
    db_session.commit()

    resp = client.get(
        "/v1/entries",
        params={"start_date": "2026-03-02", "end_date": "2026-03-04", "sort": "asc"},
        headers=headers_for(athlete),
    )
    assert [e["date"] for e in resp.json()] == ["2026-03-02", "2026-03-03", "2026-03-04"]

    newest_first = client.get("/v1/entries", headers=headers_for(athlete)).json()
    assert newest_first[0]["date"] == "2026-03-05"


def test_trainer_reads_only_own_clients_entries(client, paired, make_user, headers_for, db_session):
    trainer, athlete = paired
    db_session.add(Entry(client_id=athlete.id, date=date(2026, 1, 5), completed=True))
    db_session.commit()

    resp = client.get("/v1/entries", params={"client_id": str(athlete.id)}, headers=headers_for(trainer))
    assert resp.status_code == 200
    assert len(resp.json()) == 1

    stranger = make_user("client")
    denied = client.get("/v1/entries", params={"client_id": str(stranger.id)}, headers=headers_for(trainer))
    assert denied.status_code == 403


def test_client_cannot_read_other_clients(db_session, athlete, make_user):
    other = make_user("client")
    # a client naming someone else still gets their own entries
    assert entry_log.resolve_subject(db_session, athlete, other.id) == athlete.id


def test_admin_reads_anyone(db_session, admin, athlete):
    assert entry_log.resolve_subject(db_session, admin, athlete.id) == athlete.id


def test_stats_by_week_and_month(client, athlete, headers_for, db_session):
    # 2026-03-02 is a Monday (ISO week 10)
    for d, kcal in [(date(2026, 3, 2), 100), (date(2026, 3, 4), 150), (date(2026, 3, 10), 200)]:
        db_session.add(Entry(client_id=athlete.id, date=d, completed=True, calories_burned=kcal))
    db_session.add(Entry(client_id=athlete.id, date=date(2026, 3, 11), completed=False))
    db_session.commit()

    weekly = client.get("/v1/entries/stats", params={"period": "week"}, headers=headers_for(athlete)).json()
    assert weekly == [
        {"period": "2026-W10", "count": 2, "calories": 250.0},
        {"period": "2026-W11", "count": 1, "calories": 200.0},
    ]

    monthly = client.get("/v1/entries/stats", params={"period": "month"}, headers=headers_for(athlete)).json()
    assert monthly == [{"period": "2026-03", "count": 3, "calories": 450.0}]


def test_stats_rejects_unknown_period(client, athlete, headers_for):
    resp = client.get("/v1/entries/stats", params={"period": "year"}, headers=headers_for(athlete))
    assert resp.status_code == 400


def test_period_key_uses_iso_year():
    # 2027-01-01 belongs to ISO week 53 of 2026
    assert entry_log.period_key(date(2027, 1, 1), "week") == "2026-W53"
    assert entry_log.period_key(date(2027, 1, 1), "month") == "2027-01"


def _plan_for_yesterday(db_session, trainer, athlete, label=None):
    yesterday = local_today() - timedelta(days=1)
    name = label or day_name(yesterday)
    db_session.add(Plan(
        trainer_id=trainer.id,
        client_id=athlete.id,
        name="Plan",
        days=[{"day_of_week": name, "exercises": [{"name": "Row", "sets": 3, "reps": "12"}]}],
    ))
    db_session.commit()
    return yesterday


def test_missed_workout_alerts_once(client, paired, headers_for, db_session):
    trainer, athlete = paired
    _plan_for_yesterday(db_session, trainer, athlete, label=day_name(local_today() - timedelta(days=1)).lower())

    first = client.post("/v1/users/me/check-missed-workout", headers=headers_for(athlete)).json()
    assert first == {"missed": True, "notified": True, "message": "Notification created"}

    second = client.post("/v1/users/me/check-missed-workout", headers=headers_for(athlete)).json()
    assert second["missed"] is True
    assert second["notified"] is False

    alerts = db_session.query(Notification).filter(
        Notification.recipient_id == athlete.id, Notification.type == "alert"
    ).count()
    assert alerts == 1


def test_no_alert_when_workout_was_done(db_session, paired):
    trainer, athlete = paired
    yesterday = _plan_for_yesterday(db_session, trainer, athlete)
    db_session.add(Entry(client_id=athlete.id, date=yesterday, completed=True))
    db_session.commit()

    result = entry_log.missed_workout_check(db_session, athlete)
    assert result["missed"] is False


def test_no_alert_on_rest_day(db_session, paired):
    trainer, athlete = paired
    two_days_ago = day_name(local_today() - timedelta(days=2))
    _plan_for_yesterday(db_session, trainer, athlete, label=two_days_ago)

    result = entry_log.missed_workout_check(db_session, athlete)
    assert result == {"missed": False, "notified": False, "message": "Yesterday was not a workout day"}


def test_no_alert_without_plan(db_session, athlete):
    assert entry_log.missed_workout_check(db_session, athlete)["message"] == "No active plan"


def test_service_rejects_future_completion(db_session, athlete):
    with pytest.raises(ForbiddenError):
        entry_log.upsert(
            db_session, athlete, EntryUpsert(date=local_today() + timedelta(days=2), completed=True)
        )

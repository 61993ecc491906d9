"""
Plan template CRUD, scoped to the owning trainer.
"""
from schemas import PlanDay
from services.plan_store import dump_days


TEMPLATE = {
    "name": "Full body",
    "sessions_per_week": 3,
    "days": [
        {"day_of_week": "Monday", "exercises": [{"name": "Squat", "sets": 5, "reps": "5", "rest": "120s"}]},
    ],
}


def test_create_and_list_templates(client, trainer, headers_for):
    headers = headers_for(trainer)
    created = client.post("/v1/plan-templates", json=TEMPLATE, headers=headers)
    assert created.status_code == 201
    body = created.json()
    assert body["weeks"] == 4
    assert body["days"][0]["exercises"][0]["rest"] == "120s"

    listed = client.get("/v1/plan-templates", headers=headers).json()
    assert [t["id"] for t in listed] == [body["id"]]


def test_template_allows_long_sessions(client, trainer, headers_for):
    day = {"day_of_week": "Monday", "exercises": [{"name": f"Ex {i}", "sets": 1, "reps": "1"} for i in range(14)]}
    resp = client.post(
        "/v1/plan-templates", json={"name": "Circuit", "days": [day]}, headers=headers_for(trainer)
    )
    assert resp.status_code == 201


def test_update_template_partially(client, trainer, headers_for):
    headers = headers_for(trainer)
    template_id = client.post("/v1/plan-templates", json=TEMPLATE, headers=headers).json()["id"]

    resp = client.put(f"/v1/plan-templates/{template_id}", json={"weeks": 12}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["weeks"] == 12
    assert resp.json()["name"] == "Full body"
    assert len(resp.json()["days"]) == 1

    bad = client.put(f"/v1/plan-templates/{template_id}", json={"sessions_per_week": 7}, headers=headers)
    assert bad.status_code == 400


def test_templates_are_private_to_their_trainer(client, trainer, make_user, headers_for):
    template_id = client.post("/v1/plan-templates", json=TEMPLATE, headers=headers_for(trainer)).json()["id"]
    other = headers_for(make_user("trainer"))

    assert client.get(f"/v1/plan-templates/{template_id}", headers=other).status_code == 404
    assert client.put(f"/v1/plan-templates/{template_id}", json={"weeks": 2}, headers=other).status_code == 404
    assert client.delete(f"/v1/plan-templates/{template_id}", headers=other).status_code == 404
    assert client.get("/v1/plan-templates", headers=other).json() == []


def test_delete_template(client, trainer, headers_for):
    headers = headers_for(trainer)
    template_id = client.post("/v1/plan-templates", json=TEMPLATE, headers=headers).json()["id"]

    assert client.delete(f"/v1/plan-templates/{template_id}", headers=headers).status_code == 200
    assert client.get(f"/v1/plan-templates/{template_id}", headers=headers).status_code == 404


def test_clients_cannot_manage_templates(client, athlete, headers_for):
    assert client.post("/v1/plan-templates", json=TEMPLATE, headers=headers_for(athlete)).status_code == 403


def test_day_entries_are_normalised_to_plain_dicts():
    raw = TEMPLATE["days"]

    from_models = dump_days([PlanDay(**day) for day in raw])
    assert from_models[0]["day_of_week"] == "Monday"
    assert from_models[0]["exercises"][0] == {
        "name": "Squat", "sets": 5, "reps": "5", "rest": "120s", "notes": None, "media": None,
    }

    # Stored rows come back as dicts and are copied as they are
    from_dicts = dump_days(raw)
    assert from_dicts == raw
    assert from_dicts[0]["exercises"][0] is not raw[0]["exercises"][0]

    assert dump_days(None) == []

"""
Specialty catalogue: public list, admin CRUD, slug and uniqueness rules.
"""
import pytest

from models import Specialty, UserSpecialty
from services import specialties


@pytest.mark.parametrize(
    "name,slug",
    [
        ("Strength Training", "strength-training"),
        ("Musculação & Força", "musculacao-forca"),
        ("  HIIT!  ", "hiit"),
    ],
)
def test_slugify(name, slug):
    assert specialties.slugify(name) == slug


def test_admin_creates_and_public_lists_active(client, admin, headers_for):
    headers = headers_for(admin)
    created = client.post(
        "/v1/admin/specialties", json={"name": "  Yoga ", "description": "Flexibility"}, headers=headers
    )
    assert created.status_code == 201
    assert created.json()["name"] == "Yoga"
    assert created.json()["slug"] == "yoga"

    client.post("/v1/admin/specialties", json={"name": "Boxing"}, headers=headers)
    public = client.get("/v1/specialties")
    assert public.status_code == 200
    assert [s["name"] for s in public.json()] == ["Boxing", "Yoga"]


def test_inactive_specialties_are_hidden_publicly(client, admin, headers_for):
    headers = headers_for(admin)
    spec_id = client.post("/v1/admin/specialties", json={"name": "Pilates"}, headers=headers).json()["id"]
    client.patch(f"/v1/admin/specialties/{spec_id}", json={"active": False}, headers=headers)

    assert client.get("/v1/specialties").json() == []
    assert len(client.get("/v1/admin/specialties", headers=headers).json()) == 1


def test_name_uniqueness_is_case_insensitive(client, admin, headers_for):
    headers = headers_for(admin)
    client.post("/v1/admin/specialties", json={"name": "Crossfit"}, headers=headers)
    dup = client.post("/v1/admin/specialties", json={"name": "CROSSFIT"}, headers=headers)
    assert dup.status_code == 409
    assert dup.json()["code"] == "SPECIALTY_EXISTS"


@pytest.mark.parametrize("name", ["x", "y" * 51, "   "])
def test_name_length_rules(client, admin, headers_for, name):
    resp = client.post("/v1/admin/specialties", json={"name": name}, headers=headers_for(admin))
    assert resp.status_code == 400


def test_rename_regenerates_slug(client, admin, headers_for):
    headers = headers_for(admin)
    spec_id = client.post("/v1/admin/specialties", json={"name": "Running"}, headers=headers).json()["id"]
    resp = client.patch(f"/v1/admin/specialties/{spec_id}", json={"name": "Trail Running"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["slug"] == "trail-running"


def test_delete_blocked_while_in_use(client, admin, trainer, headers_for, db_session):
    specialty = Specialty(name="Nutrition", slug="nutrition")
    db_session.add(specialty)
    db_session.commit()
    db_session.add(UserSpecialty(user_id=trainer.id, specialty_id=specialty.id))
    db_session.commit()

    blocked = client.delete(f"/v1/admin/specialties/{specialty.id}", headers=headers_for(admin))
    assert blocked.status_code == 409
    assert blocked.json()["code"] == "SPECIALTY_IN_USE"

    db_session.query(UserSpecialty).delete()
    db_session.commit()
    assert client.delete(f"/v1/admin/specialties/{specialty.id}", headers=headers_for(admin)).status_code == 200


def test_specialty_admin_requires_admin(client, trainer, headers_for):
    resp = client.post("/v1/admin/specialties", json={"name": "Sneaky"}, headers=headers_for(trainer))
    assert resp.status_code == 403


def test_active_list_is_served_from_cache(db_session, monkeypatch):
    cached = [{"id": "00000000-0000-0000-0000-000000000001", "name": "Cached"}]
    monkeypatch.setattr(specialties, "get_cache", lambda key: cached)
    assert specialties.list_active(db_session) == cached


def test_writes_invalidate_cache(db_session, monkeypatch):
    dropped = []
    monkeypatch.setattr(specialties, "delete_cache", lambda key: dropped.append(key))
    specialties.create(db_session, "Calisthenics")
    assert dropped == [specialties.ACTIVE_LIST_CACHE_KEY]

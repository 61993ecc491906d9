"""
Proof uploads and the media-store client.
"""
import pytest
import requests

from core.config import settings
from core.exceptions import MediaStorageError, ValidationError
from services import media_storage


def test_proof_image_upload(client, athlete, headers_for, fake_media):
    resp = client.post(
        "/v1/uploads/proof",
        files={"file": ("run.jpg", b"jpeg bytes", "image/jpeg")},
        headers=headers_for(athlete),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["resource_type"] == "image"
    assert body["url"].startswith("https://")
    assert fake_media["uploads"][0]["folder"] == "fitapp/proofs"


def test_proof_video_upload(client, athlete, headers_for, fake_media):
    resp = client.post(
        "/v1/uploads/proof",
        files={"file": ("clip.mp4", b"\x00\x00 video", "video/mp4")},
        headers=headers_for(athlete),
    )
    assert resp.status_code == 200
    assert resp.json()["resource_type"] == "video"


def test_proof_rejects_documents(client, athlete, headers_for, fake_media):
    resp = client.post(
        "/v1/uploads/proof",
        files={"file": ("report.pdf", b"%PDF", "application/pdf")},
        headers=headers_for(athlete),
    )
    assert resp.status_code == 400
    assert fake_media["uploads"] == []


def test_proof_upload_is_client_only(client, trainer, headers_for, fake_media):
    resp = client.post(
        "/v1/uploads/proof",
        files={"file": ("run.jpg", b"jpeg bytes", "image/jpeg")},
        headers=headers_for(trainer),
    )
    assert resp.status_code == 403


def test_proof_url_round_trips_into_entry(client, athlete, headers_for, fake_media):
    from core.clock import local_today

    url = client.post(
        "/v1/uploads/proof",
        files={"file": ("run.jpg", b"jpeg bytes", "image/jpeg")},
        headers=headers_for(athlete),
    ).json()["url"]
    entry = client.post(
        "/v1/entries",
        json={"date": local_today().isoformat(), "completed": True, "proof_media": url},
        headers=headers_for(athlete),
    )
    assert entry.json()["proof_media"] == url


def test_check_proof_size_limit():
    with pytest.raises(ValidationError):
        media_storage.check_proof("image/jpeg", "big.jpg", media_storage.PROOF_MAX_BYTES + 1)


def test_check_avatar_rejects_gif():
    with pytest.raises(ValidationError):
        media_storage.check_avatar("image/gif", "anim.gif", 100)


def test_public_id_from_url():
    url = "https://res.cloudinary.com/demo/image/upload/c_fill,w_10/v1712/fitapp/avatars/abc123.jpg"
    assert media_storage.public_id_from_url(url) == "fitapp/avatars/abc123"
    assert media_storage.public_id_from_url("https://example.com/a.png") is None
    assert media_storage.public_id_from_url(None) is None


class _FakeResponse:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")

    def json(self):
        return self._payload


@pytest.fixture
def configured_store(monkeypatch):
    monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setattr(settings, "CLOUDINARY_API_KEY", "key")
    monkeypatch.setattr(settings, "CLOUDINARY_API_SECRET", "secret")


def test_upload_posts_signed_request(monkeypatch, configured_store):
    seen = {}

    def fake_post(url, data=None, files=None, timeout=None):
        seen.update(url=url, data=data, files=files)
        return _FakeResponse({"secure_url": "https://res.cloudinary.com/demo/image/upload/v1/x.jpg", "public_id": "x"})

    monkeypatch.setattr(media_storage.requests, "post", fake_post)
    stored = media_storage.upload(b"bytes", "x.jpg", folder="fitapp/proofs")

    assert stored.public_id == "x"
    assert seen["url"].endswith("/demo/image/upload")
    assert seen["data"]["api_key"] == "key"
    assert seen["data"]["folder"] == "fitapp/proofs"
    unsigned = {k: v for k, v in seen["data"].items() if k not in ("signature", "api_key")}
    assert seen["data"]["signature"] == media_storage._sign(unsigned)


def test_upload_failure_is_a_bad_gateway(monkeypatch, configured_store):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(media_storage.requests, "post", boom)
    with pytest.raises(MediaStorageError) as exc:
        media_storage.upload(b"bytes", "x.jpg", folder="fitapp/proofs")
    assert exc.value.status_code == 502


def test_delete_by_url_never_raises(monkeypatch, configured_store):
    def boom(*args, **kwargs):
        raise requests.Timeout("slow")

    monkeypatch.setattr(media_storage.requests, "post", boom)
    assert media_storage.delete_by_url("https://res.cloudinary.com/demo/image/upload/v1/fitapp/a.jpg") is False

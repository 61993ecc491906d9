"""
Media storage (Cloudinary upload API).

Proof photos/videos and avatars are pushed to Cloudinary over its REST
upload endpoint with signed parameters. Only the returned `secure_url` is
kept; callers treat it as an opaque string.
"""

import hashlib
import logging
import re
import time
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from core.config import settings
from core.exceptions import MediaStorageError, ValidationError

logger = logging.getLogger(__name__)

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"

AVATAR_FOLDER = "fitapp/avatars"
PROOF_FOLDER = "fitapp/proofs"

AVATAR_MAX_BYTES = 5 * 1024 * 1024
PROOF_MAX_BYTES = 20 * 1024 * 1024

AVATAR_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
PROOF_EXTENSIONS = {
    "jpeg", "jpg", "png", "gif", "webp", "heic", "heif",
    "mp4", "mov", "avi", "mkv",
}

# Incoming transformations, applied by the store before saving
AVATAR_TRANSFORMATION = "c_fill,g_face,h_1028,w_1028/q_auto:best,f_auto/fl_progressive"
PROOF_IMAGE_TRANSFORMATION = "c_limit,h_1200,w_900/q_auto:good,f_auto/e_sharpen"
PROOF_VIDEO_TRANSFORMATION = "c_limit,w_900/q_auto:good"


@dataclass
class StoredMedia:
    url: str
    public_id: Optional[str]
    resource_type: str


def is_configured() -> bool:
    return bool(
        settings.CLOUDINARY_CLOUD_NAME
        and settings.CLOUDINARY_API_KEY
        and settings.CLOUDINARY_API_SECRET
    )


def _sign(params: Dict[str, str]) -> str:
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1((to_sign + settings.CLOUDINARY_API_SECRET).encode("utf-8")).hexdigest()


def _signed(params: Dict[str, str]) -> Dict[str, str]:
    params = {k: v for k, v in params.items() if v not in (None, "")}
    params["timestamp"] = str(int(time.time()))
    params["signature"] = _sign(params)
    params["api_key"] = settings.CLOUDINARY_API_KEY
    return params


def _extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def check_avatar(content_type: Optional[str], filename: Optional[str], size: int) -> None:
    if (content_type or "").lower() not in AVATAR_TYPES or _extension(filename) not in {"jpg", "jpeg", "png", "webp"}:
        raise ValidationError("Only JPEG, PNG or WEBP images are allowed", field="avatar")
    if size > AVATAR_MAX_BYTES:
        raise ValidationError("Image must be 5 MB or smaller", field="avatar")
    if size == 0:
        raise ValidationError("No image uploaded", field="avatar")


def check_proof(content_type: Optional[str], filename: Optional[str], size: int) -> str:
    """Validate a proof file and return its resource type ("image" or "video")."""
    content_type = (content_type or "").lower()
    is_media_type = content_type.startswith("image/") or content_type.startswith("video/")
    if not is_media_type and _extension(filename) not in PROOF_EXTENSIONS:
        raise ValidationError("Only images and videos are allowed", field="file")
    if size > PROOF_MAX_BYTES:
        raise ValidationError("File must be 20 MB or smaller", field="file")
    if size == 0:
        raise ValidationError("File is required", field="file")

    if content_type.startswith("video/") or _extension(filename) in {"mp4", "mov", "avi", "mkv"}:
        return "video"
    return "image"


def upload(
    content: bytes,
    filename: str,
    *,
    folder: str,
    resource_type: str = "image",
    transformation: Optional[str] = None,
) -> StoredMedia:
    if not is_configured():
        raise MediaStorageError("Media storage is not configured", unavailable=True)

    url = f"{CLOUDINARY_API_BASE}/{settings.CLOUDINARY_CLOUD_NAME}/{resource_type}/upload"
    data = _signed({"folder": folder, "transformation": transformation})

    try:
        r = requests.post(
            url,
            data=data,
            files={"file": (filename or "upload", content)},
            timeout=settings.MEDIA_UPLOAD_TIMEOUT,
        )
        r.raise_for_status()
        payload = r.json()
    except requests.RequestException as e:
        logger.error(f"Media upload failed: {e}")
        raise MediaStorageError("Upload failed. Try a smaller image or video.")

    secure_url = payload.get("secure_url")
    if not secure_url:
        logger.error("Media upload response missing secure_url")
        raise MediaStorageError()

    return StoredMedia(
        url=secure_url,
        public_id=payload.get("public_id"),
        resource_type=payload.get("resource_type") or resource_type,
    )


_UPLOAD_PATH = re.compile(r"/(image|video)/upload/(?:[^/]*,[^/]*/)*(?:v\d+/)?(?P<public_id>.+?)(?:\.[A-Za-z0-9]+)?$")


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """'https://res.cloudinary.com/demo/image/upload/v17/fitapp/avatars/x.jpg' -> 'fitapp/avatars/x'"""
    if not url:
        return None
    match = _UPLOAD_PATH.search(url)
    return match.group("public_id") if match else None


def delete_by_url(url: Optional[str], resource_type: str = "image") -> bool:
    """
    Best-effort delete of previously stored media.

    Never raises: returns False and logs when the delete did not happen.
    """
    public_id = public_id_from_url(url)
    if not public_id or not is_configured():
        return False

    endpoint = f"{CLOUDINARY_API_BASE}/{settings.CLOUDINARY_CLOUD_NAME}/{resource_type}/destroy"
    try:
        r = requests.post(endpoint, data=_signed({"public_id": public_id}), timeout=settings.MEDIA_UPLOAD_TIMEOUT)
        r.raise_for_status()
        return r.json().get("result") == "ok"
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Could not delete superseded media {public_id}: {e}")
        return False


def store_avatar(content: bytes, filename: str, content_type: Optional[str]) -> StoredMedia:
    check_avatar(content_type, filename, len(content))
    return upload(content, filename, folder=AVATAR_FOLDER, transformation=AVATAR_TRANSFORMATION)


def store_proof(content: bytes, filename: str, content_type: Optional[str]) -> StoredMedia:
    resource_type = check_proof(content_type, filename, len(content))
    transformation = PROOF_VIDEO_TRANSFORMATION if resource_type == "video" else PROOF_IMAGE_TRANSFORMATION
    return upload(
        content,
        filename,
        folder=PROOF_FOLDER,
        resource_type=resource_type,
        transformation=transformation,
    )

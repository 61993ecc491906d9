"""Proof-of-workout media upload."""
from fastapi import APIRouter, Depends, File, UploadFile
import logging

from core.auth import require_client
from models import User
from schemas import ProofUploadResponse
from services import media_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/uploads", tags=["uploads"])


@router.post("/proof", response_model=ProofUploadResponse)
def upload_proof(
    file: UploadFile = File(...),
    current_user: User = Depends(require_client),
):
    """Store a photo or short video; use the returned url as an entry's proof_media."""
    content = file.file.read()
    stored = media_storage.store_proof(content, file.filename, file.content_type)
    logger.info(
        "Proof uploaded",
        extra={"extra_fields": {"user_id": str(current_user.id), "resource_type": stored.resource_type}},
    )
    return {"url": stored.url, "public_id": stored.public_id, "resource_type": stored.resource_type}

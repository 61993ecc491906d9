"""
Trainer specialty catalogue.

Names are unique case-insensitively; each carries a URL-safe slug derived
from the name. The public active list is cached in Redis and dropped on
every admin write.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.cache import delete_cache, get_cache, set_cache
from core.config import settings
from core.exceptions import ConflictError, NotFoundError, ValidationError
from models import Specialty, UserSpecialty

logger = logging.getLogger(__name__)

ACTIVE_LIST_CACHE_KEY = "specialties:active"
NAME_MIN, NAME_MAX = 2, 50


def slugify(name: str) -> str:
    """'Musculação & Força' -> 'musculacao-forca'"""
    text = unicodedata.normalize("NFD", (name or "").lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not (NAME_MIN <= len(name) <= NAME_MAX):
        raise ValidationError(f"Name must be {NAME_MIN}-{NAME_MAX} characters", field="name")
    if not slugify(name):
        raise ValidationError("Name must contain letters or digits", field="name")
    return name


def _check_unique(db: Session, name: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(Specialty).filter(
        (func.lower(Specialty.name) == name.lower()) | (Specialty.slug == slugify(name))
    )
    if exclude_id is not None:
        query = query.filter(Specialty.id != exclude_id)
    if query.first():
        raise ConflictError("A specialty with this name already exists", "SPECIALTY_EXISTS")


def list_all(db: Session) -> List[Specialty]:
    return db.query(Specialty).order_by(Specialty.name).all()


def list_active(db: Session) -> List[Dict[str, Any]]:
    cached = get_cache(ACTIVE_LIST_CACHE_KEY)
    if cached is not None:
        return cached

    rows = (
        db.query(Specialty.id, Specialty.name)
        .filter(Specialty.active.is_(True))
        .order_by(Specialty.name)
        .all()
    )
    result = [{"id": str(row.id), "name": row.name} for row in rows]
    set_cache(ACTIVE_LIST_CACHE_KEY, result, settings.CACHE_TTL_SPECIALTIES)
    return result


def get(db: Session, specialty_id: UUID) -> Specialty:
    specialty = db.query(Specialty).filter(Specialty.id == specialty_id).first()
    if not specialty:
        raise NotFoundError("Specialty")
    return specialty


def create(db: Session, name: str, description: Optional[str] = None, icon: Optional[str] = None) -> Specialty:
    name = _clean_name(name)
    _check_unique(db, name)

    specialty = Specialty(
        name=name,
        slug=slugify(name),
        description=(description or "").strip(),
        icon=icon or None,
        active=True,
    )
    db.add(specialty)
    db.commit()
    delete_cache(ACTIVE_LIST_CACHE_KEY)
    return specialty


def update(db: Session, specialty_id: UUID, changes: Dict[str, Any]) -> Specialty:
    specialty = get(db, specialty_id)

    if "name" in changes:
        name = _clean_name(changes["name"])
        _check_unique(db, name, exclude_id=specialty.id)
        specialty.name = name
        specialty.slug = slugify(name)
    if "description" in changes:
        specialty.description = (changes["description"] or "").strip()
    if "icon" in changes:
        specialty.icon = changes["icon"] or None
    if changes.get("active") is not None:
        specialty.active = changes["active"]

    db.commit()
    delete_cache(ACTIVE_LIST_CACHE_KEY)
    return specialty


def delete(db: Session, specialty_id: UUID) -> None:
    specialty = get(db, specialty_id)

    in_use = db.query(UserSpecialty).filter(UserSpecialty.specialty_id == specialty.id).first()
    if in_use:
        raise ConflictError("Cannot delete: trainers are using this specialty", "SPECIALTY_IN_USE")

    db.delete(specialty)
    db.commit()
    delete_cache(ACTIVE_LIST_CACHE_KEY)

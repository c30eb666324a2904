"""Provider profiles: creation, edits, the manual toggle and public search."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from muabook.core.config import settings
from muabook.core.errors import Conflict, NotFound, Unauthorized, ValidationError
from muabook.models import ProviderProfile, ProviderSpecialization
from muabook.services.accounts import serialize_user
from muabook.services.blob_store import S3BlobStore, decode_image_base64
from muabook.services.identity import (
    find_provider_profile_id,
    get_actor,
    is_provider,
    resolve_provider_profile,
)
from muabook.services.pagination import PageRequest
from muabook.services.time_utils import isoformat_utc

logger = logging.getLogger(__name__)

PROFILE_PICTURE_FOLDER = "profile-pictures"
EDITABLE_FIELDS = (
    "bio",
    "experience_years",
    "specialization",
    "location",
    "latitude",
    "longitude",
)


@dataclass
class ProfileRequest:
    location: str
    bio: str | None = None
    experience_years: int | None = None
    specialization: list[str] = field(default_factory=list)
    latitude: float | None = None
    longitude: float | None = None
    profile_picture_base64: str | None = None


@dataclass
class SearchFilters:
    location: str | None = None
    specialization: str | None = None
    min_rating: float | None = None
    available_only: bool = False


def _clean_tags(tags: list[str] | None) -> list[str]:
    cleaned: list[str] = []
    for tag in tags or []:
        value = (tag or "").strip()
        if not value:
            raise ValidationError("Specialization tags must not be empty")
        if value not in cleaned:
            cleaned.append(value)
    return cleaned


def _check_coordinates(latitude: float | None, longitude: float | None) -> None:
    if latitude is not None and not (math.isfinite(latitude) and -90 <= latitude <= 90):
        raise ValidationError("latitude must be between -90 and 90")
    if longitude is not None and not (
        math.isfinite(longitude) and -180 <= longitude <= 180
    ):
        raise ValidationError("longitude must be between -180 and 180")


def _check_experience(years: int | None) -> None:
    if years is not None and years < 0:
        raise ValidationError("experience_years must not be negative")


def create_profile(
    db: Session, blob_store: S3BlobStore, user_id: UUID, request: ProfileRequest
) -> ProviderProfile:
    """Create the provider profile for ``user_id``.

    An optional base64 picture is uploaded first and stored on the user.
    """

    user = get_actor(db, user_id)
    if not is_provider(user):
        raise Unauthorized("Only provider accounts can create a MUA profile")
    if find_provider_profile_id(db, user.id) is not None:
        raise Conflict("MUA profile already exists for this user")

    location = (request.location or "").strip()
    if not location:
        raise ValidationError("location is required")
    _check_experience(request.experience_years)
    _check_coordinates(request.latitude, request.longitude)
    tags = _clean_tags(request.specialization)

    if request.profile_picture_base64:
        mime, payload = decode_image_base64(
            request.profile_picture_base64, settings.max_upload_bytes
        )
        user.profile_picture_url = blob_store.upload(
            payload, mime, PROFILE_PICTURE_FOLDER
        )

    profile = ProviderProfile(
        user_id=user.id,
        bio=request.bio,
        experience_years=request.experience_years,
        location=location,
        latitude=request.latitude,
        longitude=request.longitude,
        is_available=True,
        total_reviews=0,
        specializations=[ProviderSpecialization(tag=tag) for tag in tags],
    )
    db.add(profile)
    try:
        db.flush()
    except IntegrityError as exc:
        raise Conflict("MUA profile already exists for this user") from exc

    logger.info("provider profile created", extra={"mua_id": str(profile.id)})
    return profile


def update_profile(db: Session, user_id: UUID, changes: dict[str, Any]) -> ProviderProfile:
    """Apply a partial update; ``specialization`` replaces the whole tag set."""

    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unsupported fields: {', '.join(sorted(unknown))}")

    profile = db.get(ProviderProfile, resolve_provider_profile(db, user_id))
    if "location" in changes:
        location = (changes["location"] or "").strip()
        if not location:
            raise ValidationError("location must not be empty")
        profile.location = location
    if "bio" in changes:
        profile.bio = changes["bio"]
    if "experience_years" in changes:
        _check_experience(changes["experience_years"])
        profile.experience_years = changes["experience_years"]
    if "latitude" in changes or "longitude" in changes:
        _check_coordinates(changes.get("latitude"), changes.get("longitude"))
        if "latitude" in changes:
            profile.latitude = changes["latitude"]
        if "longitude" in changes:
            profile.longitude = changes["longitude"]
    if "specialization" in changes:
        tags = _clean_tags(changes["specialization"])
        profile.specializations = [ProviderSpecialization(tag=tag) for tag in tags]

    if changes:
        profile.updated_at = datetime.utcnow()
        db.flush()
    return profile


def set_profile_availability(db: Session, user_id: UUID, is_available: bool) -> ProviderProfile:
    """Flip the provider's manual on/off switch."""

    profile = db.get(ProviderProfile, resolve_provider_profile(db, user_id))
    profile.is_available = is_available
    profile.updated_at = datetime.utcnow()
    db.flush()
    logger.info(
        "provider availability toggled",
        extra={"mua_id": str(profile.id), "is_available": is_available},
    )
    return profile


def get_provider(db: Session, provider_id: UUID) -> ProviderProfile:
    profile = db.get(ProviderProfile, provider_id)
    if profile is None:
        raise NotFound("MUA not found")
    return profile


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_providers(
    db: Session, filters: SearchFilters, page: PageRequest
) -> tuple[list[ProviderProfile], int]:
    """Filter profiles and return one page plus the total match count.

    Results are ordered by rating (unrated last), then newest first.
    """

    stmt = select(ProviderProfile)
    if filters.location and filters.location.strip():
        pattern = f"%{_escape_like(filters.location.strip())}%"
        stmt = stmt.where(ProviderProfile.location.ilike(pattern, escape="\\"))
    if filters.specialization and filters.specialization.strip():
        tag = filters.specialization.strip().lower()
        stmt = stmt.where(
            ProviderProfile.specializations.any(
                func.lower(ProviderSpecialization.tag) == tag
            )
        )
    if filters.min_rating is not None:
        if not 0 <= filters.min_rating <= 5:
            raise ValidationError("min_rating must be between 0 and 5")
        stmt = stmt.where(ProviderProfile.average_rating >= filters.min_rating)
    if filters.available_only:
        stmt = stmt.where(ProviderProfile.is_available.is_(True))

    total = db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
    rows = (
        db.execute(
            stmt.options(selectinload(ProviderProfile.specializations))
            .order_by(
                ProviderProfile.average_rating.desc().nulls_last(),
                ProviderProfile.created_at.desc(),
                ProviderProfile.id,
            )
            .offset(page.offset)
            .limit(page.limit)
        )
        .scalars()
        .all()
    )
    return list(rows), int(total)


def serialize_provider(profile: ProviderProfile) -> dict[str, Any]:
    """Return the public representation of a provider profile."""

    return {
        "id": str(profile.id),
        "user": serialize_user(profile.user),
        "bio": profile.bio,
        "experience_years": profile.experience_years,
        "specialization": profile.specialization,
        "location": profile.location,
        "latitude": profile.latitude,
        "longitude": profile.longitude,
        "is_available": profile.is_available,
        "average_rating": (
            float(profile.average_rating) if profile.average_rating is not None else None
        ),
        "total_reviews": profile.total_reviews,
        "created_at": isoformat_utc(profile.created_at),
        "updated_at": isoformat_utc(profile.updated_at),
    }

"""Public provider pages plus the provider's own profile and uploads."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from muabook.db.session import get_db
from muabook.dependencies import (
    get_blob_store,
    get_current_provider_id,
    get_current_user_id,
)
from muabook.services.blob_store import S3BlobStore
from muabook.services.pagination import DEFAULT_PAGE_SIZE, PageRequest
from muabook.services.portfolio import (
    PortfolioRequest,
    create_item,
    list_own_items,
    list_public_items,
    serialize_item,
)
from muabook.services.providers import (
    ProfileRequest,
    SearchFilters,
    create_profile,
    get_provider,
    search_providers,
    serialize_provider,
    update_profile,
)

router = APIRouter(prefix="/muas", tags=["muas"])


class ProfileCreate(BaseModel):
    location: str
    bio: str | None = None
    experience_years: int | None = None
    specialization: list[str] = []
    latitude: float | None = None
    longitude: float | None = None
    profile_picture_base64: str | None = None


class ProfileUpdate(BaseModel):
    bio: str | None = None
    experience_years: int | None = None
    specialization: list[str] | None = None
    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class PortfolioCreate(BaseModel):
    title: str
    description: str | None = None
    image_url: str | None = None
    image_base64: str | None = None
    service_type: str | None = None


class PresignRequest(BaseModel):
    file_name: str
    content_type: str
    folder: str | None = None


@router.get("/search")
def search(
    location: str | None = None,
    specialization: str | None = None,
    min_rating: float | None = None,
    available_only: bool = False,
    page: int = Query(default=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Filter providers by location, specialization, rating and availability."""

    page_request = PageRequest(page=page, limit=limit)
    profiles, total = search_providers(
        db,
        SearchFilters(
            location=location,
            specialization=specialization,
            min_rating=min_rating,
            available_only=available_only,
        ),
        page_request,
    )
    return {
        "data": [serialize_provider(profile) for profile in profiles],
        "pagination": page_request.meta(total),
    }


@router.post("/profile", status_code=status.HTTP_201_CREATED)
def create_own_profile(
    payload: ProfileCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    blob_store: S3BlobStore = Depends(get_blob_store),
) -> dict[str, Any]:
    profile = create_profile(db, blob_store, user_id, ProfileRequest(**payload.model_dump()))
    return {"profile": serialize_provider(profile)}


@router.put("/profile")
def update_own_profile(
    payload: ProfileUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    profile = update_profile(db, user_id, payload.model_dump(exclude_unset=True))
    return {"profile": serialize_provider(profile)}


@router.get("/portfolio")
def own_portfolio(
    page: int = Query(default=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE),
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    page_request = PageRequest(page=page, limit=limit)
    items, total = list_own_items(db, provider_id, page_request)
    return {
        "data": [serialize_item(item) for item in items],
        "pagination": page_request.meta(total),
    }


@router.post("/portfolio", status_code=status.HTTP_201_CREATED)
def add_portfolio_item(
    payload: PortfolioCreate,
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
    blob_store: S3BlobStore = Depends(get_blob_store),
) -> dict[str, Any]:
    item = create_item(db, blob_store, provider_id, PortfolioRequest(**payload.model_dump()))
    return {"item": serialize_item(item)}


@router.post("/upload/presigned")
def presign_upload(
    payload: PresignRequest,
    user_id: UUID = Depends(get_current_user_id),
    blob_store: S3BlobStore = Depends(get_blob_store),
) -> dict[str, Any]:
    """Return a short-lived URL the client uploads an image to directly."""

    upload = blob_store.presign(payload.file_name, payload.content_type, payload.folder)
    return upload.as_dict()


@router.get("/{mua_id}")
def read_provider(mua_id: UUID, db: Session = Depends(get_db)) -> dict[str, Any]:
    return {"profile": serialize_provider(get_provider(db, mua_id))}


@router.get("/{mua_id}/portfolio")
def provider_portfolio(mua_id: UUID, db: Session = Depends(get_db)) -> dict[str, Any]:
    get_provider(db, mua_id)
    return {"items": [serialize_item(item) for item in list_public_items(db, mua_id)]}

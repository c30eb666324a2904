"""Portfolio items shown on a provider's public page."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from muabook.core.config import settings
from muabook.core.errors import NotFound, ValidationError
from muabook.models import PortfolioItem
from muabook.services.blob_store import S3BlobStore, decode_image_base64
from muabook.services.pagination import PageRequest
from muabook.services.time_utils import isoformat_utc

logger = logging.getLogger(__name__)

PORTFOLIO_FOLDER = "portfolio"
EDITABLE_FIELDS = ("title", "description", "image_url", "service_type")


@dataclass
class PortfolioRequest:
    title: str
    description: str | None = None
    image_url: str | None = None
    image_base64: str | None = None
    service_type: str | None = None


def list_own_items(
    db: Session, provider_id: UUID, page: PageRequest
) -> tuple[list[PortfolioItem], int]:
    base = select(PortfolioItem).where(PortfolioItem.mua_id == provider_id)
    total = db.execute(select(func.count()).select_from(base.subquery())).scalar_one()
    items = (
        db.execute(
            base.order_by(PortfolioItem.created_at.desc(), PortfolioItem.id)
            .offset(page.offset)
            .limit(page.limit)
        )
        .scalars()
        .all()
    )
    return list(items), int(total)


def list_public_items(db: Session, provider_id: UUID) -> list[PortfolioItem]:
    stmt = (
        select(PortfolioItem)
        .where(PortfolioItem.mua_id == provider_id)
        .order_by(PortfolioItem.created_at.desc(), PortfolioItem.id)
    )
    return list(db.execute(stmt).scalars().all())


def create_item(
    db: Session, blob_store: S3BlobStore, provider_id: UUID, request: PortfolioRequest
) -> PortfolioItem:
    """Create an item from an image URL or an uploaded base64 image."""

    title = (request.title or "").strip()
    if not title:
        raise ValidationError("Title is required")

    if request.image_base64:
        mime, payload = decode_image_base64(request.image_base64, settings.max_upload_bytes)
        image_url = blob_store.upload(payload, mime, PORTFOLIO_FOLDER)
    elif request.image_url and request.image_url.strip():
        image_url = request.image_url.strip()
    else:
        raise ValidationError("Either image_url or image_base64 is required")

    item = PortfolioItem(
        mua_id=provider_id,
        title=title,
        description=request.description,
        image_url=image_url,
        service_type=request.service_type,
    )
    db.add(item)
    db.flush()
    logger.info(
        "portfolio item created",
        extra={"item_id": str(item.id), "mua_id": str(provider_id)},
    )
    return item


def _owned_item(db: Session, provider_id: UUID, item_id: UUID) -> PortfolioItem:
    stmt = select(PortfolioItem).where(
        PortfolioItem.id == item_id, PortfolioItem.mua_id == provider_id
    )
    item = db.execute(stmt).scalars().first()
    if item is None:
        raise NotFound("Portfolio item not found")
    return item


def update_item(
    db: Session, provider_id: UUID, item_id: UUID, changes: dict[str, Any]
) -> PortfolioItem:
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unsupported fields: {', '.join(sorted(unknown))}")
    for required in ("title", "image_url"):
        if required in changes and not (changes[required] or "").strip():
            raise ValidationError(f"{required} must not be empty")

    item = _owned_item(db, provider_id, item_id)
    for name, value in changes.items():
        setattr(item, name, value.strip() if name in ("title", "image_url") else value)
    if changes:
        item.updated_at = datetime.utcnow()
        db.flush()
    return item


def delete_item(db: Session, provider_id: UUID, item_id: UUID) -> None:
    result = db.execute(
        delete(PortfolioItem).where(
            PortfolioItem.id == item_id, PortfolioItem.mua_id == provider_id
        )
    )
    if not result.rowcount:
        raise NotFound("Portfolio item not found")
    logger.info("portfolio item deleted", extra={"item_id": str(item_id)})


def serialize_item(item: PortfolioItem) -> dict[str, Any]:
    return {
        "id": str(item.id),
        "mua_id": str(item.mua_id),
        "title": item.title,
        "description": item.description,
        "image_url": item.image_url,
        "service_type": item.service_type,
        "created_at": isoformat_utc(item.created_at),
        "updated_at": isoformat_utc(item.updated_at),
    }

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from muabook.db.session import get_db
from muabook.dependencies import get_blob_store, get_current_provider_id
from muabook.routes.muas import PortfolioCreate
from muabook.services.blob_store import S3BlobStore
from muabook.services.pagination import DEFAULT_PAGE_SIZE, PageRequest
from muabook.services.portfolio import (
    PortfolioRequest,
    create_item,
    delete_item,
    list_own_items,
    serialize_item,
    update_item,
)

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


class PortfolioUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    image_url: str | None = None
    service_type: str | None = None


@router.get("")
def list_items(
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


@router.post("", status_code=status.HTTP_201_CREATED)
def create(
    payload: PortfolioCreate,
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
    blob_store: S3BlobStore = Depends(get_blob_store),
) -> dict[str, Any]:
    item = create_item(db, blob_store, provider_id, PortfolioRequest(**payload.model_dump()))
    return {"item": serialize_item(item)}


@router.put("/{item_id}")
def update(
    item_id: UUID,
    payload: PortfolioUpdate,
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    item = update_item(db, provider_id, item_id, payload.model_dump(exclude_unset=True))
    return {"item": serialize_item(item)}


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete(
    item_id: UUID,
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
) -> Response:
    delete_item(db, provider_id, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from muabook.db.session import get_db
from muabook.dependencies import get_current_user_id
from muabook.services.accounts import (
    get_user_profile,
    serialize_user,
    update_user_profile,
)

router = APIRouter(prefix="/users", tags=["users"])


class UserProfileUpdate(BaseModel):
    full_name: str | None = None
    phone_number: str | None = None
    profile_picture_url: str | None = None


@router.get("/profile")
def read_profile(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return {"user": serialize_user(get_user_profile(db, user_id))}


@router.put("/profile")
def edit_profile(
    payload: UserProfileUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Update only the fields present in the request body."""

    user = update_user_profile(db, user_id, payload.model_dump(exclude_unset=True))
    return {"user": serialize_user(user)}

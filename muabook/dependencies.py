"""FastAPI dependencies handing out shared capabilities and the actor."""

from __future__ import annotations

from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from muabook.core.config import settings
from muabook.core.security import JWTAuthenticationProvider, PasswordHasher
from muabook.db.session import get_db
from muabook.logging_utils import set_actor_context
from muabook.services.blob_store import S3BlobStore
from muabook.services.identity import resolve_actor, resolve_provider_profile


@lru_cache(maxsize=1)
def get_auth_provider() -> JWTAuthenticationProvider:
    return JWTAuthenticationProvider.from_settings(settings)


@lru_cache(maxsize=1)
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(settings.bcrypt_rounds)


@lru_cache(maxsize=1)
def get_blob_store() -> S3BlobStore:
    return S3BlobStore.from_settings(settings)


async def get_current_user_id(
    authorization: str | None = Header(default=None),
    auth: JWTAuthenticationProvider = Depends(get_auth_provider),
) -> UUID:
    """Authenticate the request and bind the user to the logging context."""

    user_id = resolve_actor(auth, authorization)
    set_actor_context(user_id)
    return user_id


def get_current_provider_id(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> UUID:
    """Return the provider profile id of the authenticated user."""

    return resolve_provider_profile(db, user_id)

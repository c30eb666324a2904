"""Resolve the acting user and their provider profile."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from muabook.core.errors import ProfileNotFound, Unauthenticated
from muabook.core.security import JWTAuthenticationProvider
from muabook.models import ProviderProfile, User, UserRole


def resolve_actor(auth: JWTAuthenticationProvider, auth_header: str | None) -> UUID:
    """Return the user id behind an ``Authorization`` header."""

    return auth.authenticate(auth_header)


def get_actor(db: Session, user_id: UUID) -> User:
    """Load the authenticated user; a token for a removed account is rejected."""

    user = db.get(User, user_id)
    if user is None:
        raise Unauthenticated("User no longer exists")
    return user


def find_provider_profile_id(db: Session, user_id: UUID) -> UUID | None:
    stmt = select(ProviderProfile.id).where(ProviderProfile.user_id == user_id)
    return db.execute(stmt).scalar_one_or_none()


def resolve_provider_profile(db: Session, user_id: UUID) -> UUID:
    """Return the profile id owned by ``user_id`` or raise ``ProfileNotFound``."""

    profile_id = find_provider_profile_id(db, user_id)
    if profile_id is None:
        raise ProfileNotFound()
    return profile_id


def actor_role(user: User) -> UserRole:
    return user.role


def is_provider(user: User) -> bool:
    return actor_role(user) is UserRole.PROVIDER

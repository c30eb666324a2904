"""Registration, login and the user's own profile."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from muabook.core.errors import Conflict, Unauthenticated, ValidationError
from muabook.core.security import JWTAuthenticationProvider, PasswordHasher
from muabook.models import ProviderProfile, User, UserRole
from muabook.services.identity import get_actor
from muabook.services.time_utils import isoformat_utc

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
PROFILE_FIELDS = ("full_name", "phone_number", "profile_picture_url")


@dataclass
class Registration:
    email: str
    password: str
    full_name: str
    role: UserRole
    phone_number: str | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def serialize_user(user: User) -> dict[str, Any]:
    """Public view of a user; never includes the password hash."""

    return {
        "id": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "full_name": user.full_name,
        "phone_number": user.phone_number,
        "profile_picture_url": user.profile_picture_url,
        "is_verified": user.is_verified,
        "created_at": isoformat_utc(user.created_at),
        "updated_at": isoformat_utc(user.updated_at),
    }


def _auth_response(user: User, auth: JWTAuthenticationProvider) -> dict[str, Any]:
    return {
        "user": serialize_user(user),
        "access_token": auth.issue(user.id),
        "token_type": "Bearer",
        "expires_in": auth.expiration_seconds,
    }


def register(
    db: Session,
    auth: JWTAuthenticationProvider,
    hasher: PasswordHasher,
    request: Registration,
) -> dict[str, Any]:
    """Create an account and return it with a fresh access token.

    Provider accounts get an empty profile in the same transaction.
    """

    email = normalize_email(request.email)
    if len(request.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if not request.full_name or not request.full_name.strip():
        raise ValidationError("full_name is required")

    existing = db.execute(select(User.id).where(User.email == email)).first()
    if existing is not None:
        raise Conflict("User with this email already exists")

    user = User(
        email=email,
        password_hash=hasher.hash(request.password),
        role=request.role,
        full_name=request.full_name.strip(),
        phone_number=request.phone_number,
        is_verified=False,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        raise Conflict("User with this email already exists") from exc

    if request.role is UserRole.PROVIDER:
        db.add(ProviderProfile(user_id=user.id, location=""))
        db.flush()

    logger.info(
        "user registered",
        extra={"user_id": str(user.id), "role": request.role.value},
    )
    return _auth_response(user, auth)


def login(
    db: Session,
    auth: JWTAuthenticationProvider,
    hasher: PasswordHasher,
    email: str,
    password: str,
) -> dict[str, Any]:
    user = db.execute(
        select(User).where(User.email == normalize_email(email))
    ).scalar_one_or_none()
    if user is None or not hasher.verify(password, user.password_hash):
        logger.info("login rejected")
        raise Unauthenticated("Invalid email or password")
    return _auth_response(user, auth)


def get_user_profile(db: Session, user_id: UUID) -> User:
    return get_actor(db, user_id)


def update_user_profile(db: Session, user_id: UUID, changes: dict[str, Any]) -> User:
    """Apply the subset of profile fields present in ``changes``."""

    user = get_actor(db, user_id)
    unknown = set(changes) - set(PROFILE_FIELDS)
    if unknown:
        raise ValidationError(f"Unsupported fields: {', '.join(sorted(unknown))}")
    if "full_name" in changes and not (changes["full_name"] or "").strip():
        raise ValidationError("full_name must not be empty")

    for field, value in changes.items():
        setattr(user, field, value.strip() if field == "full_name" else value)
    if changes:
        user.updated_at = datetime.utcnow()
        db.flush()
    return user

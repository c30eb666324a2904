from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from muabook.core.security import JWTAuthenticationProvider, PasswordHasher
from muabook.db.session import get_db
from muabook.dependencies import get_auth_provider, get_password_hasher
from muabook.models import UserRole
from muabook.services.accounts import Registration, login, register

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: str
    role: UserRole
    phone_number: str | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_user(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    auth: JWTAuthenticationProvider = Depends(get_auth_provider),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> dict[str, Any]:
    """Create a customer or provider account."""

    return register(db, auth, hasher, Registration(**payload.model_dump()))


@router.post("/login")
def login_user(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    auth: JWTAuthenticationProvider = Depends(get_auth_provider),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> dict[str, Any]:
    return login(db, auth, hasher, payload.email, payload.password)

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from muabook.core.config import settings
from muabook.core.security import PasswordHasher
from muabook.db.session import SessionLocal
from muabook.logging_utils import configure_logging
from muabook.models import (
    AvailabilitySlot,
    PortfolioItem,
    ProviderProfile,
    ProviderSpecialization,
    User,
    UserRole,
)

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "muabook-demo"  # pragma: allowlist secret

PROVIDERS: list[tuple[str, str, str, list[str], str]] = [
    ("ana.costa@example.com", "Ana Costa", "Jakarta", ["bridal", "party"], "4.80"),
    ("bruno.lima@example.com", "Bruno Lima", "Bandung", ["editorial"], "4.50"),
]

CUSTOMERS: list[tuple[str, str, str]] = [
    ("maria.silva@example.com", "Maria Silva", "+6281234567890"),
    ("joao.pereira@example.com", "Joao Pereira", "+6289876543210"),
]

PORTFOLIO: list[tuple[str, str]] = [
    ("Classic bridal look", "bridal"),
    ("Evening glam", "party"),
]

# Monday to Saturday, 09:00-18:00.
WORKING_DAYS = range(1, 7)
WORKING_HOURS = (time(hour=9), time(hour=18))


def ensure_user(
    session: Session,
    hasher: PasswordHasher,
    *,
    email: str,
    full_name: str,
    role: UserRole,
    phone_number: str | None = None,
) -> User:
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user:
        return user

    user = User(
        email=email,
        password_hash=hasher.hash(DEMO_PASSWORD),
        role=role,
        full_name=full_name,
        phone_number=phone_number,
        is_verified=True,
    )
    session.add(user)
    session.flush()
    logger.info("created user", extra={"user_id": str(user.id), "role": role.value})
    return user


def ensure_customers(session: Session, hasher: PasswordHasher) -> list[User]:
    return [
        ensure_user(
            session,
            hasher,
            email=email,
            full_name=name,
            role=UserRole.CUSTOMER,
            phone_number=phone,
        )
        for email, name, phone in CUSTOMERS
    ]


def ensure_providers(session: Session, hasher: PasswordHasher) -> list[ProviderProfile]:
    created = 0
    profiles: list[ProviderProfile] = []
    for email, name, location, tags, rating in PROVIDERS:
        user = ensure_user(
            session, hasher, email=email, full_name=name, role=UserRole.PROVIDER
        )
        profile = session.execute(
            select(ProviderProfile).where(ProviderProfile.user_id == user.id)
        ).scalar_one_or_none()
        if not profile:
            profile = ProviderProfile(
                user_id=user.id,
                bio=f"{name} has been doing make-up professionally for years.",
                experience_years=5,
                location=location,
                is_available=True,
                average_rating=Decimal(rating),
                total_reviews=10,
                specializations=[ProviderSpecialization(tag=tag) for tag in tags],
            )
            session.add(profile)
            session.flush()
            created += 1
        profiles.append(profile)

    logger.info(
        "ensured providers",
        extra={"created_count": created, "total": len(profiles)},
    )
    return profiles


def ensure_slots(session: Session, profiles: list[ProviderProfile]) -> None:
    created = 0
    start, end = WORKING_HOURS
    for profile in profiles:
        existing = set(
            session.execute(
                select(AvailabilitySlot.day_of_week).where(
                    AvailabilitySlot.mua_id == profile.id,
                    AvailabilitySlot.recurring.is_(True),
                )
            ).scalars()
        )
        for day in WORKING_DAYS:
            if day in existing:
                continue
            session.add(
                AvailabilitySlot(
                    mua_id=profile.id,
                    start_time=start,
                    end_time=end,
                    day_of_week=day,
                    is_available=True,
                    recurring=True,
                )
            )
            created += 1

        # A day off one week from now.
        day_off = datetime.combine(datetime.utcnow().date() + timedelta(days=7), time.min)
        has_day_off = session.execute(
            select(AvailabilitySlot.id).where(
                AvailabilitySlot.mua_id == profile.id,
                AvailabilitySlot.specific_date == day_off,
            )
        ).first()
        if not has_day_off:
            session.add(
                AvailabilitySlot(
                    mua_id=profile.id,
                    start_time=start,
                    end_time=end,
                    specific_date=day_off,
                    is_available=False,
                    recurring=False,
                )
            )
            created += 1

    session.flush()
    logger.info("ensured availability slots", extra={"created_count": created})


def ensure_portfolio(session: Session, profiles: list[ProviderProfile]) -> None:
    created = 0
    for profile in profiles:
        for title, service_type in PORTFOLIO:
            existing = session.execute(
                select(PortfolioItem.id).where(
                    PortfolioItem.mua_id == profile.id,
                    PortfolioItem.title == title,
                )
            ).first()
            if existing:
                continue
            session.add(
                PortfolioItem(
                    mua_id=profile.id,
                    title=title,
                    image_url=f"https://picsum.photos/seed/{profile.id}-{service_type}/600/800",
                    service_type=service_type,
                )
            )
            created += 1
    session.flush()
    logger.info("ensured portfolio items", extra={"created_count": created})


def populate(session: Session, hasher: PasswordHasher) -> list[ProviderProfile]:
    """Create the demo data set; safe to run repeatedly."""

    ensure_customers(session, hasher)
    profiles = ensure_providers(session, hasher)
    ensure_slots(session, profiles)
    ensure_portfolio(session, profiles)
    return profiles


def seed() -> None:
    configure_logging()
    logger.info("starting seed process")

    session = SessionLocal()
    try:
        populate(session, PasswordHasher(settings.bcrypt_rounds))
        session.commit()
        logger.info("seed complete")
    except Exception:
        session.rollback()
        logger.exception("seed failed")
        raise
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    seed()

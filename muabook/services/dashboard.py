"""Summary figures for a provider's dashboard."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from muabook.models import Booking, BookingStatus, PortfolioItem, ProviderProfile, User
from muabook.services.bookings import ACTIVE_STATUSES, format_money
from muabook.services.time_utils import isoformat_utc

RECENT_LIMIT = 5


def _summaries(db: Session, stmt) -> list[dict[str, Any]]:
    rows = db.execute(
        stmt.add_columns(User.full_name).join(User, Booking.customer_id == User.id)
    ).all()
    return [
        {
            "id": str(booking.id),
            "customer_name": customer_name,
            "service_type": booking.service_type,
            "event_date": isoformat_utc(booking.event_date),
            "status": booking.status.value,
            "price": format_money(booking.price),
        }
        for booking, customer_name in rows
    ]


def get_dashboard(db: Session, provider_id: UUID, *, now: datetime | None = None) -> dict[str, Any]:
    """Return booking stats plus recent and upcoming bookings."""

    profile = db.get(ProviderProfile, provider_id)
    counts = dict(
        db.execute(
            select(Booking.status, func.count())
            .where(Booking.mua_id == provider_id)
            .group_by(Booking.status)
        ).all()
    )
    revenue = db.execute(
        select(func.coalesce(func.sum(Booking.price), 0)).where(
            Booking.mua_id == provider_id,
            Booking.status == BookingStatus.COMPLETED,
        )
    ).scalar_one()
    portfolio_count = db.execute(
        select(func.count()).select_from(PortfolioItem).where(
            PortfolioItem.mua_id == provider_id
        )
    ).scalar_one()

    recent = _summaries(
        db,
        select(Booking)
        .where(Booking.mua_id == provider_id)
        .order_by(Booking.created_at.desc(), Booking.id)
        .limit(RECENT_LIMIT),
    )
    current = (now or datetime.utcnow()).replace(tzinfo=None)
    upcoming = _summaries(
        db,
        select(Booking)
        .where(
            Booking.mua_id == provider_id,
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.event_date >= current,
        )
        .order_by(Booking.event_date, Booking.id)
        .limit(RECENT_LIMIT),
    )

    return {
        "stats": {
            "total_bookings": sum(counts.values()),
            "pending_bookings": counts.get(BookingStatus.PENDING, 0),
            "confirmed_bookings": counts.get(BookingStatus.CONFIRMED, 0),
            "completed_bookings": counts.get(BookingStatus.COMPLETED, 0),
            "total_revenue": format_money(Decimal(str(revenue))),
            "average_rating": (
                float(profile.average_rating)
                if profile and profile.average_rating is not None
                else None
            ),
            "total_reviews": profile.total_reviews if profile else 0,
            "portfolio_items": int(portfolio_count),
        },
        "recent_bookings": recent,
        "upcoming_bookings": upcoming,
    }

"""Import SQLAlchemy models for Alembic's autogenerate feature."""

from muabook.models.base import Base
from muabook.models import (  # noqa: F401
    AvailabilitySlot,
    Booking,
    PortfolioItem,
    ProviderProfile,
    ProviderSpecialization,
    User,
)

__all__ = [
    "Base",
    "AvailabilitySlot",
    "Booking",
    "PortfolioItem",
    "ProviderProfile",
    "ProviderSpecialization",
    "User",
]

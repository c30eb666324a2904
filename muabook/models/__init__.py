"""SQLAlchemy models for the MuaBook API."""

from muabook.models.availability_slot import AvailabilitySlot
from muabook.models.booking import Booking, BookingStatus
from muabook.models.portfolio_item import PortfolioItem
from muabook.models.provider_profile import ProviderProfile, ProviderSpecialization
from muabook.models.user import User, UserRole

__all__ = [
    "AvailabilitySlot",
    "Booking",
    "BookingStatus",
    "PortfolioItem",
    "ProviderProfile",
    "ProviderSpecialization",
    "User",
    "UserRole",
]

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, Float, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from muabook.models.base import Base, TimestampMixin


class ProviderProfile(Base, TimestampMixin):
    """Public profile of a provider-role user (at most one per user)."""

    __tablename__ = "mua_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    experience_years: Mapped[int | None] = mapped_column(Integer, nullable=True)
    location: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Manual on/off switch, independent of availability slots.
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Maintained by the review pipeline; read only here.
    average_rating: Mapped[Decimal | None] = mapped_column(Numeric(3, 2), nullable=True)
    total_reviews: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    user = relationship("User", lazy="joined")
    specializations: Mapped[list["ProviderSpecialization"]] = relationship(
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="ProviderSpecialization.tag",
    )

    @property
    def specialization(self) -> list[str]:
        return [item.tag for item in self.specializations]


class ProviderSpecialization(Base):
    """Specialization tag attached to a provider profile."""

    __tablename__ = "mua_specializations"

    profile_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("mua_profiles.id", ondelete="CASCADE"), primary_key=True
    )
    tag: Mapped[str] = mapped_column(String(64), primary_key=True)

    profile: Mapped[ProviderProfile] = relationship(back_populates="specializations")

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from muabook.models.base import Base, TimestampMixin


class PortfolioItem(Base, TimestampMixin):
    """Showcase image published by a provider."""

    __tablename__ = "portfolio_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    mua_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("mua_profiles.id", ondelete="CASCADE"), index=True, nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    service_type: Mapped[str | None] = mapped_column(String(255), nullable=True)

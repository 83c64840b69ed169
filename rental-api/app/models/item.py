import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base, SCHEMA
from app.core.timeutils import utcnow


class Item(Base):
    """
    Rentable catalog item.

    daily_rate / weekly_rate / required_collateral are derived from
    market_rate when the item is written and stored as-is; rentals snapshot
    them, so they are never recomputed on read.

    availability:
    - available: can be requested
    - reserved: held by at least one pending rental, stock not consumed yet
    - unavailable: every unit is out on rent
    """
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint(
            "availability IN ('available', 'unavailable', 'reserved')",
            name="item_availability_check"
        ),
        CheckConstraint(
            "available_quantity >= 0 AND available_quantity <= quantity",
            name="item_available_quantity_check"
        ),
        {"schema": SCHEMA}
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    # Matched against categories by name only
    category: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    image_url: Mapped[str | None] = mapped_column(String(500))
    availability: Mapped[str] = mapped_column(String(16), nullable=False, default="available", index=True)

    market_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    daily_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weekly_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required_collateral: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    available_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

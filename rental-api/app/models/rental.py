"""
Rental ledger entry.

Status flow:
- pending: requested by a member, items reserved
- active: approved by an admin, stock consumed
- completed: returned, stock restored
- cancelled: rejected while pending, reservation released
"""
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, func
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base, SCHEMA
from app.core.timeutils import utcnow

JSONType = JSON().with_variant(JSONB(), "postgresql")

RENTAL_STATUSES = ("pending", "active", "completed", "cancelled")
PAYMENT_METHODS = ("cash", "credit", "trade")
DELIVERY_LOCATIONS = ("Camp Valcrest", "Outpost")


class Rental(Base):
    __tablename__ = "rentals"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'active', 'completed', 'cancelled')",
            name="rental_status_check"
        ),
        CheckConstraint(
            "payment_method IN ('cash', 'credit', 'trade')",
            name="rental_payment_method_check"
        ),
        CheckConstraint(
            "rental_days BETWEEN 1 AND 7",
            name="rental_days_check"
        ),
        {"schema": SCHEMA}
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ticket_number: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)

    # Price/term snapshot taken at creation:
    # [{item_id, item_name, item_image_url, quantity, daily_rate, weekly_rate, collateral_amount}]
    items: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    # No FK: the ledger outlives deleted accounts
    renter_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    renter_nickname: Mapped[str] = mapped_column(String(32), nullable=False)

    payment_method: Mapped[str] = mapped_column(String(8), nullable=False)
    collateral_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Trade only: [{id, name, category, image_url, value}]
    collateral_items: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    rental_cost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rental_type: Mapped[str] = mapped_column(String(8), nullable=False)
    rental_days: Mapped[int] = mapped_column(Integer, nullable=False)
    delivery_location: Mapped[str] = mapped_column(String(32), nullable=False)

    terms_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    terms_text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    messages: Mapped[list["RentalMessage"]] = relationship(
        "RentalMessage",
        back_populates="rental",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RentalMessage.created_at",
    )


class RentalMessage(Base):
    """Append-only chat line attached to a rental."""
    __tablename__ = "rental_messages"
    __table_args__ = {"schema": SCHEMA}

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    rental_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey(f"{SCHEMA}.rentals.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    sender_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    sender_name: Mapped[str] = mapped_column(String(32), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)  # role at send time
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True
    )

    rental: Mapped["Rental"] = relationship("Rental", back_populates="messages")

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base, SCHEMA

SETTINGS_ROW_ID = 1


class AppSettings(Base):
    """
    Clan-wide preferences owned by the admins (single row).
    Toggles which collateral payment methods members may pick.
    """
    __tablename__ = "app_settings"
    __table_args__ = {"schema": SCHEMA}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SETTINGS_ROW_ID)

    cash_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    credit_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    items_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    language: Mapped[str] = mapped_column(String(8), nullable=False, default="pt")

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def allows(self, payment_method: str) -> bool:
        if payment_method == "cash":
            return self.cash_enabled
        if payment_method == "credit":
            return self.credit_enabled
        if payment_method == "trade":
            return self.items_enabled
        return False

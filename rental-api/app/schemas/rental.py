"""
Rental ledger schemas
"""
from datetime import datetime
from typing import Literal
import uuid

from pydantic import BaseModel, Field

PaymentMethod = Literal["cash", "credit", "trade"]
DeliveryLocation = Literal["Camp Valcrest", "Outpost"]


# =====================================================
# REQUESTS
# =====================================================

class RentalLineIn(BaseModel):
    item_id: uuid.UUID
    quantity: int = Field(1, ge=1)


class RentalQuoteIn(BaseModel):
    """Price a basket without creating anything."""
    items: list[RentalLineIn] = Field(..., min_length=1)
    rental_days: int = Field(1, ge=1, le=7)
    collateral_item_ids: list[uuid.UUID] = []


class RentalCreateIn(BaseModel):
    items: list[RentalLineIn] = Field(..., min_length=1)
    payment_method: PaymentMethod
    rental_days: int = Field(1, ge=1, le=7)
    delivery_location: DeliveryLocation
    terms_accepted: bool
    terms_text: str = Field(..., min_length=1, description="Terms exactly as shown to the renter")
    collateral_item_ids: list[uuid.UUID] = Field(default=[], description="Trade payment only")


# =====================================================
# OUTPUT
# =====================================================

class RentalItemOut(BaseModel):
    item_id: uuid.UUID
    item_name: str
    item_image_url: str | None = None
    quantity: int
    daily_rate: int
    weekly_rate: int
    collateral_amount: int


class CollateralItemOut(BaseModel):
    id: uuid.UUID
    name: str
    category: str | None = None
    image_url: str | None = None
    value: int


class RemainingTimeOut(BaseModel):
    days: int = 0
    hours: int = 0
    minutes: int = 0
    expired: bool = False
    expires_at: datetime | None = None
    overdue_within_grace: bool = False
    overdue_beyond_grace: bool = False
    grace_hours_left: int = 0


class RentalQuoteOut(BaseModel):
    items: list[RentalItemOut]
    rental_days: int
    rental_type: str
    rental_cost: int
    collateral_amount: int
    credits_needed: int
    collateral_items_value: int
    collateral_covered: bool


class RentalOut(BaseModel):
    id: uuid.UUID
    ticket_number: int
    items: list[RentalItemOut]
    renter_id: uuid.UUID
    renter_nickname: str
    payment_method: str
    collateral_amount: int
    collateral_items: list[CollateralItemOut] = []
    credits_needed: int
    rental_cost: int
    rental_type: str
    rental_days: int
    delivery_location: str
    terms_accepted: bool
    terms_text: str
    status: str
    created_at: datetime
    approved_at: datetime | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    remaining: RemainingTimeOut

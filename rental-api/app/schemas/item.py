from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

Availability = Literal["available", "unavailable", "reserved"]


class ItemCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    category: str = Field(min_length=1, max_length=80)
    image_url: str | None = Field(default=None, max_length=500)
    availability: Availability = "available"
    market_rate: int = Field(ge=0)
    quantity: int = Field(default=1, ge=0)

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v


class ItemUpdateIn(BaseModel):
    # None = not provided
    name: str | None = Field(default=None, min_length=1, max_length=120)
    category: str | None = Field(default=None, min_length=1, max_length=80)
    image_url: str | None = Field(default=None, max_length=500)
    availability: Availability | None = None
    market_rate: int | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=0)

    @field_validator("name", "category")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v


class ItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    category: str
    image_url: str | None
    availability: str
    market_rate: int
    daily_rate: int
    weekly_rate: int
    required_collateral: int
    quantity: int
    available_quantity: int
    created_at: datetime
    updated_at: datetime

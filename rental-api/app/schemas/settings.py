from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AppSettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cash_enabled: bool
    credit_enabled: bool
    items_enabled: bool
    language: str
    updated_at: datetime | None = None


class AppSettingsPatchIn(BaseModel):
    # None = not provided
    cash_enabled: bool | None = None
    credit_enabled: bool | None = None
    items_enabled: bool | None = None
    language: str | None = Field(default=None, pattern="^(pt|en)$")

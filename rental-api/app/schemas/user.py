from datetime import datetime
from typing import Literal
import uuid

from pydantic import BaseModel, ConfigDict, EmailStr


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: EmailStr
    game_nickname: str
    game_id: str
    profile_url: str | None = None
    role: str
    is_admin: bool
    created_at: datetime


class RoleUpdateIn(BaseModel):
    role: Literal["user", "admin"]

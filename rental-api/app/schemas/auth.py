from pydantic import BaseModel, EmailStr, Field
import uuid


class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=200)
    game_nickname: str = Field(min_length=1, max_length=32)
    game_id: str = Field(max_length=64)
    profile_url: str | None = Field(default=None, max_length=300)


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class UserInfo(BaseModel):
    """User info returned with token."""
    id: uuid.UUID
    email: str
    game_nickname: str
    role: str = "user"
    is_admin: bool = False


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo


class NicknameAvailabilityOut(BaseModel):
    nickname: str
    available: bool

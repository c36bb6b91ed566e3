from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum
from app.models.event import GeoLocation
from app.core.security import MAX_PASSWORD_BYTES


class StreamingProvider(str, Enum):
    SPOTIFY = "Spotify"
    APPLE_MUSIC = "AppleMusic"
    YOUTUBE = "YouTube"


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=MAX_PASSWORD_BYTES)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name is required")
        return value

    @field_validator("password")
    @classmethod
    def password_fits(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LinkedAccount(BaseModel):
    """Provider identity and tokens as returned by an OAuth callback"""
    provider: StreamingProvider
    accountId: str
    accessToken: Optional[str] = None
    refreshToken: Optional[str] = None
    expiresIn: Optional[int] = None
    scope: Optional[str] = None
    lastSynced: Optional[datetime] = None


class StreamingAccount(BaseModel):
    """Public view of a linked account (no tokens)"""
    provider: StreamingProvider
    accountId: str
    lastSynced: Optional[datetime] = None
    expiresIn: Optional[int] = None
    scope: Optional[str] = None


class User(BaseModel):
    id: str
    name: str
    email: str
    streamingAccounts: List[StreamingAccount] = []
    engagementScore: int = 0
    ticketsPurchased: List[str] = []
    isVerified: bool = False
    location: Optional[GeoLocation] = None
    createdAt: Optional[datetime] = None


class UserResponse(BaseModel):
    message: str
    user: User

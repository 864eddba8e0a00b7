"""User and session schemas"""

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys on the wire"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class UserLogin(CamelModel):
    """Login with either username or email"""
    username: Optional[str] = None
    email: Optional[str] = None
    password: str = Field(..., min_length=1)

    @field_validator('username', 'email')
    @classmethod
    def blank_to_none(cls, v):
        """Treat blank identifiers as absent"""
        if v is None:
            return None
        v = v.strip()
        return v or None


class AccountUpdate(CamelModel):
    """Account details update"""
    full_name: Optional[str] = None
    email: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    """Password change payload"""
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class RefreshTokenRequest(CamelModel):
    """Refresh token carried in the body for non-cookie clients"""
    refresh_token: Optional[str] = None


class UserResponse(CamelModel):
    """Sanitized user view: no password hash and no refresh-token state"""
    id: int
    username: str
    email: str
    full_name: str
    avatar_url: str
    cover_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TokenPair(CamelModel):
    """Freshly issued session tokens"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginResponse(TokenPair):
    """Login result mirrored in the body for non-browser clients"""
    user: UserResponse

"""Pydantic schemas for API validation"""

from videotube.schemas.user import (
    UserLogin,
    UserResponse,
    AccountUpdate,
    ChangePasswordRequest,
    RefreshTokenRequest,
    TokenPair,
    LoginResponse,
)
from videotube.schemas.channel import ChannelProfile, VideoOwner, WatchHistoryItem
from videotube.schemas.response import APIResponse, ErrorResponse, HealthResponse

__all__ = [
    "UserLogin", "UserResponse", "AccountUpdate", "ChangePasswordRequest", "RefreshTokenRequest",
    "TokenPair", "LoginResponse",
    "ChannelProfile", "VideoOwner", "WatchHistoryItem",
    "APIResponse", "ErrorResponse", "HealthResponse",
]

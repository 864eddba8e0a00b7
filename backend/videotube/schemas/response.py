"""Generic API response schemas"""

from pydantic import BaseModel, Field
from typing import Generic, Optional, Any, Dict, TypeVar
from datetime import datetime

DataT = TypeVar("DataT")


def _utc_timestamp() -> str:
    return datetime.utcnow().isoformat()


class APIResponse(BaseModel, Generic[DataT]):
    """Generic API success response"""
    success: bool = True
    message: str
    data: Optional[DataT] = None
    timestamp: str = Field(default_factory=_utc_timestamp)


class ErrorResponse(BaseModel):
    """Generic API error response"""
    success: bool = False
    error: str
    details: Optional[Dict[str, Any]] = None
    path: Optional[str] = None
    timestamp: str = Field(default_factory=_utc_timestamp)


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    timestamp: str

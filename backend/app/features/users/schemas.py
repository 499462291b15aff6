"""
User schemas.

Pydantic models for user operations.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class UserCreate(BaseModel):
    """Create user request."""

    name: str = Field(..., min_length=1, max_length=100)
    image_url: Optional[str] = None


class UserResponse(BaseModel):
    """User response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    image_url: Optional[str]
    created_at: datetime

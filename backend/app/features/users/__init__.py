"""
User management module.

Usage:
    from app.features.users import User, UserRepository

Models:
- User: A squad friend

Repositories:
- UserRepository: Data access for users
"""

from .models import User
from .schemas import UserCreate, UserResponse
from .repository import UserRepository

__all__ = [
    # Models
    "User",
    # Schemas
    "UserCreate",
    "UserResponse",
    # Repositories
    "UserRepository",
]

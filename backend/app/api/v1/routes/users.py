"""
User Routes

Endpoints for squad members.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_async_db
from app.features.users import UserRepository
from app.features.users.schemas import UserCreate, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# === Endpoints ===

@router.post("", response_model=UserResponse, status_code=201)
async def create_user(request: UserCreate, db: AsyncSession = Depends(get_async_db)):
    """Add a squad member."""
    user = await UserRepository(db).create(name=request.name, image_url=request.image_url)
    await db.commit()

    logger.info(f"Created user {user.id} ({user.name})")
    return user


@router.get("", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_async_db)):
    """All users ordered by name."""
    return await UserRepository(db).list_users()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: AsyncSession = Depends(get_async_db)):
    """Get user by ID."""
    user = await UserRepository(db).get_by_id(user_id)

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return user

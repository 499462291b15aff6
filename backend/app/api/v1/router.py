"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from app.api.v1.routes import admin, fitness, strava, users

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(strava.router, prefix="/strava", tags=["Strava"])
api_router.include_router(fitness.router, prefix="/fitness", tags=["Fitness"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])

"""
Admin Routes

Operator actions, protected by the X-Admin-Key header.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import verify_admin_key
from app.db.session import get_async_db
from app.features.fitness import FitnessService
from app.features.fitness.schemas import ReclassifyRequest, ReclassifyResponse

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_admin_key)])


@router.post("/reclassify", response_model=ReclassifyResponse)
async def reclassify_activities(
    request: ReclassifyRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Re-infer categories of Strava activities stored as 'other'.

    With dry_run nothing is written; the response shows what would change.
    """
    summary = await FitnessService(db).reclassify_other_activities(dry_run=request.dry_run)
    return summary

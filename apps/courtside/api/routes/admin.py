"""Admin maintenance and health check route handlers."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.database.db import get_db_session
from courtside.services import invitation_service
from courtside.api.auth_dependencies import require_system_admin
from courtside.models.schemas import ExpireInvitationsResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/admin/invitations/expire", response_model=ExpireInvitationsResponse)
async def expire_invitations(
    user: dict = Depends(require_system_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Run an invitation expiry sweep now (system_admin)."""
    try:
        expired_count = await invitation_service.expire_old_invitations(session)
        logger.info(f"Admin {user['id']} expired {expired_count} invitation(s)")
        return ExpireInvitationsResponse(expired_count=expired_count)
    except Exception as e:
        logger.error(f"Error expiring invitations: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error expiring invitations")


@router.get("/api/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Service status
    """
    return {"status": "healthy", "message": "API is running"}

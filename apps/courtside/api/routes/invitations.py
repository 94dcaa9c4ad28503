"""Team invitation route handlers."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.database.db import get_db_session
from courtside.database.models import InvitationStatus
from courtside.services import invitation_service
from courtside.services.errors import ServiceError
from courtside.api.auth_dependencies import get_current_user
from courtside.models.schemas import (
    AcceptInvitationResponse,
    InvitationListResponse,
    InvitationQuery,
    InvitationResponse,
)
from courtside.utils.constants import DEFAULT_INVITATION_PAGE_SIZE, MAX_INVITATION_PAGE_SIZE

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/invitations", response_model=InvitationListResponse)
async def list_invitations(
    status: Optional[InvitationStatus] = None,
    team_id: Optional[int] = None,
    player_id: Optional[int] = None,
    limit: int = Query(DEFAULT_INVITATION_PAGE_SIZE, ge=1, le=MAX_INVITATION_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    List invitations, newest first.

    Without filters returns the caller's own invitations. Filtering by team
    requires access to the team.
    """
    try:
        query = InvitationQuery(
            status=status, team_id=team_id, player_id=player_id, limit=limit, offset=offset
        )
        return await invitation_service.list_invitations(session, user["id"], query)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error listing invitations: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error listing invitations")


@router.get("/api/invitations/{invitation_id}", response_model=InvitationResponse)
async def get_invitation(
    invitation_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get a single invitation (the invited player or anyone with team access)."""
    try:
        return await invitation_service.get_invitation(session, invitation_id, user["id"])
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error fetching invitation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error fetching invitation")


@router.post("/api/invitations/{invitation_id}/accept", response_model=AcceptInvitationResponse)
async def accept_invitation(
    invitation_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Accept an invitation and join the team roster."""
    try:
        return await invitation_service.accept_invitation(session, invitation_id, user["id"])
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error accepting invitation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error accepting invitation")


@router.post("/api/invitations/{invitation_id}/reject", response_model=InvitationResponse)
async def reject_invitation(
    invitation_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Decline an invitation."""
    try:
        return await invitation_service.reject_invitation(session, invitation_id, user["id"])
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error rejecting invitation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error rejecting invitation")


@router.post("/api/invitations/{invitation_id}/cancel", response_model=InvitationResponse)
async def cancel_invitation(
    invitation_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Withdraw a pending invitation (manage-roster on the inviting team)."""
    try:
        return await invitation_service.cancel_invitation(session, invitation_id, user["id"])
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error cancelling invitation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error cancelling invitation")

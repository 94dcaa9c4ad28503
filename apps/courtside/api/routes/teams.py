"""Team, role and staff route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.database.db import get_db_session
from courtside.services import invitation_service, team_service
from courtside.services.errors import ServiceError
from courtside.api.auth_dependencies import get_current_user
from courtside.models.schemas import (
    InvitationCreate,
    InvitationResponse,
    StaffAssignmentCreate,
    TeamCreate,
    TeamPermissionsResponse,
    TeamResponse,
    TeamRoleCreate,
    TeamRoleResponse,
    TeamStaffResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/teams", response_model=TeamResponse, status_code=201)
async def create_team(
    payload: TeamCreate,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create a team in a season. The caller becomes its Head Coach.

    Requires league admin of the season's league or the COACH system role.
    """
    try:
        return await team_service.create_team(session, payload.season_id, payload.name, user["id"])
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating team: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error creating team")


@router.get("/api/teams/{team_id}/permissions", response_model=TeamPermissionsResponse)
async def get_team_permissions(
    team_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get the caller's capabilities on a team."""
    try:
        return await team_service.get_team_permissions(session, team_id, user["id"])
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error fetching team permissions: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error fetching team permissions")


@router.get("/api/teams/{team_id}/roles", response_model=List[TeamRoleResponse])
async def get_team_roles(
    team_id: int,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List a team's roles and who holds them."""
    try:
        return await team_service.get_team_roles(session, team_id, user["id"])
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error fetching team roles: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error fetching team roles")


@router.post("/api/teams/{team_id}/roles", response_model=TeamRoleResponse, status_code=201)
async def create_team_role(
    team_id: int,
    payload: TeamRoleCreate,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a custom role on a team (manage-team)."""
    try:
        return await team_service.create_custom_role(session, team_id, payload, user["id"])
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating team role: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error creating team role")


@router.post("/api/teams/{team_id}/staff", response_model=TeamStaffResponse, status_code=201)
async def add_staff_member(
    team_id: int,
    payload: StaffAssignmentCreate,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Assign a user to a team role (manage-team)."""
    try:
        return await team_service.add_staff_member(
            session, team_id, payload.user_id, payload.role_name, user["id"]
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error adding staff member: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error adding staff member")


@router.delete("/api/teams/{team_id}/staff/{user_id}")
async def remove_staff_member(
    team_id: int,
    user_id: int,
    role_name: str,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Remove a user's role assignment (manage-team)."""
    try:
        await team_service.remove_staff_member(session, team_id, user_id, role_name, user["id"])
        return {"success": True}
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error removing staff member: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error removing staff member")


@router.post("/api/teams/{team_id}/invitations", response_model=InvitationResponse, status_code=201)
async def create_invitation(
    team_id: int,
    payload: InvitationCreate,
    user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Invite a player to the team (manage-roster)."""
    try:
        return await invitation_service.create_invitation(session, team_id, payload, user["id"])
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating invitation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error creating invitation")

"""
Team administration service: teams, role templates and staff assignments.

Every team starts with the roles in DEFAULT_TEAM_ROLES. They are written in
the same transaction as the team itself, together with the creator's Head
Coach assignment.
"""

import logging
from typing import Dict, List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.database.models import Season, Team, TeamRole, TeamRoleType, TeamStaff, UserRole
from courtside.database.unit_of_work import UnitOfWork
from courtside.models.schemas import (
    Capability,
    TeamPermissionsResponse,
    TeamResponse,
    TeamRoleCreate,
    TeamRoleResponse,
    TeamStaffResponse,
)
from courtside.services.access_service import (
    can_access_team,
    get_team_league_id,
    get_user,
    is_league_admin,
    require_capability,
    resolve_capabilities,
)
from courtside.services.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from courtside.utils.constants import HEAD_COACH_ROLE_NAME

logger = logging.getLogger(__name__)

DEFAULT_TEAM_ROLES: List[Dict] = [
    {
        "type": TeamRoleType.HEAD_COACH,
        "name": HEAD_COACH_ROLE_NAME,
        "description": "Full control of the team, roster and stats",
        "can_manage_team": True,
        "can_manage_roster": True,
        "can_track_stats": True,
        "can_view_stats": True,
        "can_share_stats": True,
    },
    {
        "type": TeamRoleType.ASSISTANT_COACH,
        "name": "Assistant Coach",
        "description": "Helps run the team with the same permissions as the head coach",
        "can_manage_team": True,
        "can_manage_roster": True,
        "can_track_stats": True,
        "can_view_stats": True,
        "can_share_stats": True,
    },
    {
        "type": TeamRoleType.TEAM_MANAGER,
        "name": "Team Manager",
        "description": "Tracks and shares stats",
        "can_manage_team": False,
        "can_manage_roster": False,
        "can_track_stats": True,
        "can_view_stats": True,
        "can_share_stats": True,
    },
]

MANAGE_STAFF_DENIED = "You do not have permission to manage team staff"


async def _require_team(session: AsyncSession, team_id: int) -> Team:
    result = await session.execute(select(Team).where(Team.id == team_id))
    team = result.scalar_one_or_none()
    if not team:
        raise NotFoundError("Team not found")
    return team


async def _get_role_by_name(session: AsyncSession, team_id: int, role_name: str) -> TeamRole:
    result = await session.execute(
        select(TeamRole).where(TeamRole.team_id == team_id, TeamRole.name == role_name)
    )
    role = result.scalar_one_or_none()
    if not role:
        raise NotFoundError(f'Role "{role_name}" not found for this team')
    return role


async def _role_responses(session: AsyncSession, team_id: int) -> List[TeamRoleResponse]:
    roles = (
        await session.execute(
            select(TeamRole).where(TeamRole.team_id == team_id).order_by(TeamRole.type, TeamRole.name)
        )
    ).scalars().all()
    staff_rows = (
        await session.execute(
            select(TeamStaff.role_id, TeamStaff.user_id)
            .where(TeamStaff.team_id == team_id)
            .order_by(TeamStaff.user_id)
        )
    ).all()

    staff_by_role: Dict[int, List[int]] = {}
    for role_id, user_id in staff_rows:
        staff_by_role.setdefault(role_id, []).append(user_id)

    return [
        TeamRoleResponse.model_validate(role).model_copy(
            update={"staff_user_ids": staff_by_role.get(role.id, [])}
        )
        for role in roles
    ]


async def create_team(
    session: AsyncSession,
    season_id: int,
    name: str,
    creator_id: int,
) -> TeamResponse:
    """
    Create a team with its default roles and make the creator Head Coach.

    Args:
        session: Database session
        season_id: Season the team plays in
        name: Team name
        creator_id: User creating the team

    Returns:
        TeamResponse including the seeded roles

    Raises:
        NotFoundError: If the season does not exist
        ForbiddenError: If the creator is neither a league admin nor a coach
    """
    season = (await session.execute(select(Season).where(Season.id == season_id))).scalar_one_or_none()
    if not season:
        raise NotFoundError("Season not found")

    if not await is_league_admin(session, creator_id, season.league_id):
        creator = await get_user(session, creator_id)
        if creator is None or creator.role != UserRole.COACH.value:
            raise ForbiddenError("You do not have permission to create teams in this league")

    async with UnitOfWork(session).atomic():
        team = Team(season_id=season_id, name=name, created_by=creator_id)
        session.add(team)
        await session.flush()

        head_coach = None
        for template in DEFAULT_TEAM_ROLES:
            role = TeamRole(team_id=team.id, **{**template, "type": template["type"].value})
            session.add(role)
            if template["type"] == TeamRoleType.HEAD_COACH:
                head_coach = role
        await session.flush()

        session.add(TeamStaff(team_id=team.id, user_id=creator_id, role_id=head_coach.id))

    logger.info(f"User {creator_id} created team {team.id} ({name!r}) in season {season_id}")
    return TeamResponse(
        id=team.id,
        season_id=season_id,
        league_id=season.league_id,
        name=team.name,
        created_by=creator_id,
        roles=await _role_responses(session, team.id),
    )


async def create_custom_role(
    session: AsyncSession,
    team_id: int,
    payload: TeamRoleCreate,
    requester_id: int,
) -> TeamRoleResponse:
    """
    Create a custom role on a team.

    Raises:
        NotFoundError: If the team does not exist
        ForbiddenError: If the requester cannot manage the team
        ConflictError: If the team already has a role with this name
    """
    await _require_team(session, team_id)
    await require_capability(
        session, requester_id, team_id, Capability.MANAGE_TEAM,
        "You do not have permission to create team roles",
    )

    duplicate_message = "A role with this name already exists"
    existing = await session.execute(
        select(TeamRole.id).where(TeamRole.team_id == team_id, TeamRole.name == payload.name)
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(duplicate_message)

    role = TeamRole(team_id=team_id, type=TeamRoleType.CUSTOM.value, **payload.model_dump())
    async with UnitOfWork(session).atomic(conflict_message=duplicate_message):
        session.add(role)

    await session.refresh(role)
    logger.info(f"User {requester_id} created role {role.id} ({role.name!r}) on team {team_id}")
    return TeamRoleResponse.model_validate(role)


async def add_staff_member(
    session: AsyncSession,
    team_id: int,
    user_id: int,
    role_name: str,
    requester_id: int,
) -> TeamStaffResponse:
    """
    Assign a user to a team role.

    Args:
        session: Database session
        team_id: Team ID
        user_id: User being assigned
        role_name: Name of the role (e.g. "Head Coach", "Team Manager")
        requester_id: User making the assignment (needs manage-team)

    Returns:
        TeamStaffResponse for the new assignment

    Raises:
        NotFoundError: If the team, user or role does not exist
        ForbiddenError: If the requester cannot manage the team
        ConflictError: If the user already holds this role on the team
    """
    await _require_team(session, team_id)
    await require_capability(session, requester_id, team_id, Capability.MANAGE_TEAM, MANAGE_STAFF_DENIED)

    if await get_user(session, user_id) is None:
        raise NotFoundError("User not found")
    role = await _get_role_by_name(session, team_id, role_name)

    duplicate_message = "User already has this role on the team"
    existing = await session.execute(
        select(TeamStaff.id).where(
            TeamStaff.team_id == team_id,
            TeamStaff.user_id == user_id,
            TeamStaff.role_id == role.id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(duplicate_message)

    assignment = TeamStaff(team_id=team_id, user_id=user_id, role_id=role.id)
    async with UnitOfWork(session).atomic(conflict_message=duplicate_message):
        session.add(assignment)

    logger.info(f"User {requester_id} assigned user {user_id} as {role_name!r} on team {team_id}")
    return TeamStaffResponse(
        id=assignment.id,
        team_id=team_id,
        user_id=user_id,
        role_id=role.id,
        role_name=role.name,
    )


async def remove_staff_member(
    session: AsyncSession,
    team_id: int,
    user_id: int,
    role_name: str,
    requester_id: int,
) -> None:
    """
    Remove a user's assignment to a team role.

    Raises:
        NotFoundError: If the team, role or assignment does not exist
        ForbiddenError: If the requester cannot manage the team
        BadRequestError: If it would leave the team without a Head Coach
    """
    await _require_team(session, team_id)
    await require_capability(session, requester_id, team_id, Capability.MANAGE_TEAM, MANAGE_STAFF_DENIED)

    role = await _get_role_by_name(session, team_id, role_name)

    result = await session.execute(
        select(TeamStaff).where(
            TeamStaff.team_id == team_id,
            TeamStaff.user_id == user_id,
            TeamStaff.role_id == role.id,
        )
    )
    assignment = result.scalar_one_or_none()
    if not assignment:
        raise NotFoundError("Staff assignment not found")

    if role.type == TeamRoleType.HEAD_COACH.value:
        head_coach_count = (
            await session.execute(
                select(func.count()).select_from(TeamStaff).where(TeamStaff.role_id == role.id)
            )
        ).scalar() or 0
        if head_coach_count <= 1:
            raise BadRequestError("Cannot remove the last Head Coach. Assign another Head Coach first.")

    async with UnitOfWork(session).atomic():
        await session.delete(assignment)

    logger.info(f"User {requester_id} removed user {user_id} from {role_name!r} on team {team_id}")


async def get_team_roles(
    session: AsyncSession,
    team_id: int,
    requester_id: int,
) -> List[TeamRoleResponse]:
    """
    List a team's roles with their assigned staff, ordered by type then name.

    Raises:
        NotFoundError: If the team does not exist
        ForbiddenError: If the requester has no access to the team
    """
    await _require_team(session, team_id)
    if not await can_access_team(session, requester_id, team_id):
        raise ForbiddenError("You do not have access to this team")
    return await _role_responses(session, team_id)


async def get_team_permissions(
    session: AsyncSession,
    team_id: int,
    requester_id: int,
) -> TeamPermissionsResponse:
    """Get the requester's resolved capabilities on a team."""
    if await get_team_league_id(session, team_id) is None:
        raise NotFoundError("Team not found")

    return TeamPermissionsResponse(
        team_id=team_id,
        user_id=requester_id,
        can_access=await can_access_team(session, requester_id, team_id),
        permissions=await resolve_capabilities(session, requester_id, team_id),
    )

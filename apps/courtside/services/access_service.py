"""
Team access resolution.

Derives a user's effective capabilities on a team from four independently
administered sources, checked in a fixed order. The first source that
applies decides the result; lower tiers are never merged in:

    1. system role ADMIN                -> every capability
    2. admin of the team's league       -> every capability
    3. staff role assignment(s)         -> OR of the assigned roles' flags
    4. team membership                  -> view stats only
    5. none of the above                -> no capabilities

This module only reads. A missing team or user resolves to no capabilities
rather than an error.
"""

import logging
from typing import Awaitable, Callable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.database.models import (
    LeagueAdmin,
    Season,
    Team,
    TeamMember,
    TeamRole,
    TeamStaff,
    User,
    UserRole,
)
from courtside.models.schemas import Capability, CapabilitySet
from courtside.services.errors import ForbiddenError

logger = logging.getLogger(__name__)

# A tier receives (session, user_id, team_id, league_id) and returns the
# capability set when it applies to the user, or None to fall through.
TierResolver = Callable[[AsyncSession, int, int, int], Awaitable[Optional[CapabilitySet]]]


# ---------------------------------------------------------------------------
# Store lookups
# ---------------------------------------------------------------------------


async def get_user(session: AsyncSession, user_id: int) -> Optional[User]:
    """Get a user by ID, or None."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_team_league_id(session: AsyncSession, team_id: int) -> Optional[int]:
    """
    Get the league that owns a team (through its season).

    Returns:
        League ID, or None if the team does not exist
    """
    result = await session.execute(
        select(Season.league_id)
        .select_from(Team)
        .join(Season, Team.season_id == Season.id)
        .where(Team.id == team_id)
    )
    return result.scalar_one_or_none()


async def list_staff_roles(session: AsyncSession, team_id: int, user_id: int) -> List[TeamRole]:
    """Get every role the user is assigned on the team."""
    result = await session.execute(
        select(TeamRole)
        .join(TeamStaff, TeamStaff.role_id == TeamRole.id)
        .where(TeamStaff.team_id == team_id, TeamStaff.user_id == user_id)
    )
    return list(result.scalars().all())


async def get_team_member(session: AsyncSession, team_id: int, user_id: int) -> Optional[TeamMember]:
    """Get the user's roster entry on the team, or None."""
    result = await session.execute(
        select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.player_id == user_id)
    )
    return result.scalar_one_or_none()


async def is_system_admin(session: AsyncSession, user_id: int) -> bool:
    """Check whether the user holds the ADMIN system role."""
    result = await session.execute(select(User.role).where(User.id == user_id))
    return result.scalar_one_or_none() == UserRole.ADMIN.value


async def is_league_admin(session: AsyncSession, user_id: int, league_id: int) -> bool:
    """
    Check whether the user administers a league.

    System admins count as admins of every league.
    """
    if await is_system_admin(session, user_id):
        return True
    return await _has_league_admin_row(session, user_id, league_id)


async def _has_league_admin_row(session: AsyncSession, user_id: int, league_id: int) -> bool:
    result = await session.execute(
        select(LeagueAdmin.id)
        .where(LeagueAdmin.league_id == league_id, LeagueAdmin.user_id == user_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Resolution tiers
# ---------------------------------------------------------------------------


async def _system_admin_tier(
    session: AsyncSession, user_id: int, team_id: int, league_id: int
) -> Optional[CapabilitySet]:
    if await is_system_admin(session, user_id):
        return CapabilitySet.all()
    return None


async def _league_admin_tier(
    session: AsyncSession, user_id: int, team_id: int, league_id: int
) -> Optional[CapabilitySet]:
    if await _has_league_admin_row(session, user_id, league_id):
        return CapabilitySet.all()
    return None


async def _staff_tier(
    session: AsyncSession, user_id: int, team_id: int, league_id: int
) -> Optional[CapabilitySet]:
    roles = await list_staff_roles(session, team_id, user_id)
    if not roles:
        return None
    capabilities = CapabilitySet.none()
    for role in roles:
        capabilities = capabilities | CapabilitySet.from_role(role)
    return capabilities


async def _member_tier(
    session: AsyncSession, user_id: int, team_id: int, league_id: int
) -> Optional[CapabilitySet]:
    if await get_team_member(session, team_id, user_id) is not None:
        return CapabilitySet.view_only()
    return None


# Evaluated top to bottom; the first tier returning a set wins.
ACCESS_TIERS: List[Tuple[str, TierResolver]] = [
    ("system_admin", _system_admin_tier),
    ("league_admin", _league_admin_tier),
    ("team_staff", _staff_tier),
    ("team_member", _member_tier),
]


async def _match_tier(
    session: AsyncSession, user_id: int, team_id: int
) -> Optional[Tuple[str, CapabilitySet]]:
    """Return (tier name, capabilities) for the first applicable tier, or None."""
    league_id = await get_team_league_id(session, team_id)
    if league_id is None:
        # Unknown team: no tier applies, system admins included
        return None

    for name, resolver in ACCESS_TIERS:
        capabilities = await resolver(session, user_id, team_id, league_id)
        if capabilities is not None:
            logger.debug(f"User {user_id} resolved on team {team_id} via tier {name}")
            return name, capabilities
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def resolve_capabilities(session: AsyncSession, user_id: int, team_id: int) -> CapabilitySet:
    """
    Get a user's effective capabilities on a team.

    Args:
        session: Database session
        user_id: User ID
        team_id: Team ID

    Returns:
        CapabilitySet (all-false if the team or user does not exist)
    """
    match = await _match_tier(session, user_id, team_id)
    if match is None:
        return CapabilitySet.none()
    return match[1]


async def has_capability(
    session: AsyncSession, user_id: int, team_id: int, capability: Capability
) -> bool:
    """Check a single capability flag for a user on a team."""
    capabilities = await resolve_capabilities(session, user_id, team_id)
    return capabilities.has(capability)


async def can_access_team(session: AsyncSession, user_id: int, team_id: int) -> bool:
    """
    Check whether a user may see a team at all.

    True for system admins, league admins of the team's league, anyone with a
    staff assignment (even one granting nothing) and rostered members.
    """
    return await _match_tier(session, user_id, team_id) is not None


async def require_capability(
    session: AsyncSession,
    user_id: int,
    team_id: int,
    capability: Capability,
    message: str,
) -> CapabilitySet:
    """
    Resolve capabilities and fail unless the given one is granted.

    Raises:
        ForbiddenError: With the supplied message if the capability is missing
    """
    capabilities = await resolve_capabilities(session, user_id, team_id)
    if not capabilities.has(capability):
        raise ForbiddenError(message)
    return capabilities

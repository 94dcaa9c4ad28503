"""
Team invitation service.

Implements the invitation lifecycle:

    PENDING -> ACCEPTED | REJECTED | CANCELLED | EXPIRED

Every outcome is terminal. Transitions are conditional updates guarded on
``status = 'PENDING'``, so a writer that loses a race matches zero rows and
gets a ConflictError instead of overwriting the winner. Acceptance flips the
invitation and inserts the roster row in one unit of work.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.database.models import (
    InvitationStatus,
    Team,
    TeamInvitation,
    TeamMember,
)
from courtside.database.unit_of_work import UnitOfWork
from courtside.models.schemas import (
    AcceptInvitationResponse,
    Capability,
    InvitationCreate,
    InvitationListResponse,
    InvitationQuery,
    InvitationResponse,
    TeamMemberResponse,
)
from courtside.services import notification_service
from courtside.services.access_service import (
    can_access_team,
    get_team_member,
    get_user,
    has_capability,
    is_system_admin,
    require_capability,
)
from courtside.services.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from courtside.utils.constants import (
    INVITATION_TOKEN_BYTES,
    MIN_INVITATION_EXPIRY_DAYS,
    MAX_INVITATION_EXPIRY_DAYS,
)
from courtside.utils.datetime_utils import utcnow, ensure_utc

logger = logging.getLogger(__name__)

PENDING_INVITATION_EXISTS = "A pending invitation already exists for this player"
ALREADY_ON_TEAM = "Player is already on this team"


def generate_invitation_token() -> str:
    """Generate an opaque, URL-safe invitation token (256 bits of entropy)."""
    return secrets.token_urlsafe(INVITATION_TOKEN_BYTES)


async def _get_invitation(session: AsyncSession, invitation_id: int) -> TeamInvitation:
    result = await session.execute(select(TeamInvitation).where(TeamInvitation.id == invitation_id))
    invitation = result.scalar_one_or_none()
    if not invitation:
        raise NotFoundError("Invitation not found")
    return invitation


async def _get_pending_invitation(
    session: AsyncSession, team_id: int, player_id: int
) -> Optional[TeamInvitation]:
    result = await session.execute(
        select(TeamInvitation).where(
            TeamInvitation.team_id == team_id,
            TeamInvitation.player_id == player_id,
            TeamInvitation.status == InvitationStatus.PENDING.value,
        )
    )
    return result.scalar_one_or_none()


async def _transition(
    session: AsyncSession,
    invitation_id: int,
    new_status: InvitationStatus,
    now: datetime,
    **values,
) -> bool:
    """
    Move a PENDING invitation to new_status.

    Returns:
        True if the row was still PENDING and has been updated, False otherwise
    """
    result = await session.execute(
        update(TeamInvitation)
        .where(
            TeamInvitation.id == invitation_id,
            TeamInvitation.status == InvitationStatus.PENDING.value,
        )
        .values(status=new_status.value, updated_at=now, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _require_pending(invitation: TeamInvitation, action: str) -> None:
    if invitation.status != InvitationStatus.PENDING.value:
        raise BadRequestError(f"Cannot {action} invitation with status: {invitation.status}")


def _require_invited_player(invitation: TeamInvitation, requester_id: int, action: str) -> None:
    if invitation.player_id != requester_id:
        raise ForbiddenError(f"You can only {action} your own invitations")


async def create_invitation(
    session: AsyncSession,
    team_id: int,
    payload: InvitationCreate,
    requester_id: int,
) -> InvitationResponse:
    """
    Invite a player to join a team.

    Args:
        session: Database session
        team_id: Team the player is invited to
        payload: Target player and optional jersey/position/message/expiry
        requester_id: User sending the invitation (needs manage-roster)

    Returns:
        InvitationResponse for the new PENDING invitation

    Raises:
        NotFoundError: If the team or player does not exist
        ForbiddenError: If the requester cannot manage the team roster
        ConflictError: If the player is already on the team or already has a
            pending invitation
        BadRequestError: If expires_in_days is outside the allowed range
    """
    team = (await session.execute(select(Team).where(Team.id == team_id))).scalar_one_or_none()
    if not team:
        raise NotFoundError("Team not found")

    await require_capability(
        session,
        requester_id,
        team_id,
        Capability.MANAGE_ROSTER,
        "You do not have permission to invite players to this team",
    )

    if await get_user(session, payload.player_id) is None:
        raise NotFoundError("Player not found")

    if await get_team_member(session, team_id, payload.player_id) is not None:
        raise ConflictError(ALREADY_ON_TEAM)

    if await _get_pending_invitation(session, team_id, payload.player_id) is not None:
        raise ConflictError(PENDING_INVITATION_EXISTS)

    if not MIN_INVITATION_EXPIRY_DAYS <= payload.expires_in_days <= MAX_INVITATION_EXPIRY_DAYS:
        raise BadRequestError(
            f"expires_in_days must be between {MIN_INVITATION_EXPIRY_DAYS} and {MAX_INVITATION_EXPIRY_DAYS}"
        )

    now = utcnow()
    invitation = TeamInvitation(
        team_id=team_id,
        player_id=payload.player_id,
        invited_by_id=requester_id,
        token=generate_invitation_token(),
        jersey_number=payload.jersey_number,
        position=payload.position,
        message=payload.message,
        status=InvitationStatus.PENDING.value,
        expires_at=now + timedelta(days=payload.expires_in_days),
        created_at=now,
        updated_at=now,
    )

    # The partial unique index catches a concurrent duplicate that passed the check above
    async with UnitOfWork(session).atomic(conflict_message=PENDING_INVITATION_EXISTS):
        session.add(invitation)

    await session.refresh(invitation)
    response = InvitationResponse.model_validate(invitation)
    logger.info(
        f"Created invitation {response.id} for player {response.player_id} "
        f"on team {team_id} by user {requester_id}"
    )

    try:
        await notification_service.notify_invitation_created(session, response)
    except Exception as e:
        await session.rollback()
        logger.warning(f"Failed to send invitation notification for invitation {response.id}: {e}")

    return response


async def accept_invitation(
    session: AsyncSession,
    invitation_id: int,
    requester_id: int,
) -> AcceptInvitationResponse:
    """
    Accept a pending invitation and join the team roster.

    An invitation found past its expiry is marked EXPIRED (and that change is
    committed) before the accept is refused.

    Args:
        session: Database session
        invitation_id: Invitation ID
        requester_id: User accepting (must be the invited player)

    Returns:
        AcceptInvitationResponse with the updated invitation and new roster entry

    Raises:
        NotFoundError: If the invitation does not exist
        ForbiddenError: If the requester is not the invited player
        BadRequestError: If the invitation is not pending, has expired, or the
            player is already on the team
        ConflictError: If a concurrent request settled the invitation first
    """
    invitation = await _get_invitation(session, invitation_id)
    _require_invited_player(invitation, requester_id, "accept")
    _require_pending(invitation, "accept")

    now = utcnow()
    if now > ensure_utc(invitation.expires_at):
        async with UnitOfWork(session).atomic():
            expired = await _transition(session, invitation_id, InvitationStatus.EXPIRED, now)
        if expired:
            logger.info(f"Invitation {invitation_id} expired at accept time")
        raise BadRequestError("This invitation has expired")

    if await get_team_member(session, invitation.team_id, invitation.player_id) is not None:
        raise BadRequestError("You are already on this team")

    team_member = TeamMember(
        team_id=invitation.team_id,
        player_id=invitation.player_id,
        jersey_number=invitation.jersey_number,
        position=invitation.position,
        created_at=now,
        updated_at=now,
    )
    async with UnitOfWork(session).atomic(conflict_message="You are already on this team"):
        if not await _transition(
            session, invitation_id, InvitationStatus.ACCEPTED, now, accepted_at=now
        ):
            raise ConflictError("This invitation has already been responded to")
        session.add(team_member)

    await session.refresh(invitation)
    await session.refresh(team_member)
    response = AcceptInvitationResponse(
        invitation=InvitationResponse.model_validate(invitation),
        team_member=TeamMemberResponse.model_validate(team_member),
    )
    logger.info(
        f"Player {requester_id} accepted invitation {invitation_id} "
        f"and joined team {response.team_member.team_id}"
    )

    try:
        await notification_service.notify_invitation_accepted(session, response.invitation)
    except Exception as e:
        await session.rollback()
        logger.warning(f"Failed to send acceptance notification for invitation {invitation_id}: {e}")

    return response


async def reject_invitation(
    session: AsyncSession,
    invitation_id: int,
    requester_id: int,
) -> InvitationResponse:
    """
    Reject a pending invitation.

    Raises:
        NotFoundError: If the invitation does not exist
        ForbiddenError: If the requester is not the invited player
        BadRequestError: If the invitation is not pending
        ConflictError: If a concurrent request settled the invitation first
    """
    invitation = await _get_invitation(session, invitation_id)
    _require_invited_player(invitation, requester_id, "reject")
    _require_pending(invitation, "reject")

    now = utcnow()
    async with UnitOfWork(session).atomic():
        if not await _transition(
            session, invitation_id, InvitationStatus.REJECTED, now, rejected_at=now
        ):
            raise ConflictError("This invitation has already been responded to")

    await session.refresh(invitation)
    logger.info(f"Player {requester_id} rejected invitation {invitation_id}")
    return InvitationResponse.model_validate(invitation)


async def cancel_invitation(
    session: AsyncSession,
    invitation_id: int,
    requester_id: int,
) -> InvitationResponse:
    """
    Cancel a pending invitation on behalf of the issuing team.

    Anyone with manage-roster on the invitation's team may cancel, not only
    the user who sent it.

    Raises:
        NotFoundError: If the invitation does not exist
        ForbiddenError: If the requester cannot manage the team roster
        BadRequestError: If the invitation is not pending
        ConflictError: If a concurrent request settled the invitation first
    """
    invitation = await _get_invitation(session, invitation_id)
    await require_capability(
        session,
        requester_id,
        invitation.team_id,
        Capability.MANAGE_ROSTER,
        "You do not have permission to cancel invitations for this team",
    )
    _require_pending(invitation, "cancel")

    now = utcnow()
    async with UnitOfWork(session).atomic():
        if not await _transition(session, invitation_id, InvitationStatus.CANCELLED, now):
            raise ConflictError("This invitation has already been responded to")

    await session.refresh(invitation)
    logger.info(f"User {requester_id} cancelled invitation {invitation_id}")
    return InvitationResponse.model_validate(invitation)


async def expire_old_invitations(session: AsyncSession) -> int:
    """
    Mark every overdue PENDING invitation as EXPIRED.

    System maintenance; no authorization. Running it twice in a row expires
    nothing the second time.

    Returns:
        Number of invitations expired by this call
    """
    now = utcnow()
    async with UnitOfWork(session).atomic():
        result = await session.execute(
            update(TeamInvitation)
            .where(
                TeamInvitation.status == InvitationStatus.PENDING.value,
                TeamInvitation.expires_at < now,
            )
            .values(status=InvitationStatus.EXPIRED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
    expired_count = result.rowcount or 0
    if expired_count:
        logger.info(f"Expired {expired_count} overdue invitation(s)")
    return expired_count


async def get_invitation(
    session: AsyncSession,
    invitation_id: int,
    requester_id: int,
) -> InvitationResponse:
    """
    Get an invitation visible to the requester.

    The invited player can always see it; otherwise the requester needs
    access to the invitation's team.

    Raises:
        NotFoundError: If the invitation does not exist
        ForbiddenError: If the requester may not see it
    """
    invitation = await _get_invitation(session, invitation_id)
    if invitation.player_id != requester_id and not await can_access_team(
        session, requester_id, invitation.team_id
    ):
        raise ForbiddenError("You do not have access to this invitation")
    return InvitationResponse.model_validate(invitation)


async def list_invitations(
    session: AsyncSession,
    requester_id: int,
    query: InvitationQuery,
) -> InvitationListResponse:
    """
    List invitations, newest first.

    With a team_id the requester needs access to that team and sees all of
    its invitations. Looking at another player's invitations additionally
    needs manage-roster on the given team (or system admin). Without filters
    the requester's own invitations are listed.

    Raises:
        NotFoundError: If team_id refers to a missing team
        ForbiddenError: If the requester may not see the requested invitations
    """
    conditions = []

    if query.team_id is not None:
        team = (
            await session.execute(select(Team.id).where(Team.id == query.team_id))
        ).scalar_one_or_none()
        if team is None:
            raise NotFoundError("Team not found")
        if not await can_access_team(session, requester_id, query.team_id):
            raise ForbiddenError("You do not have access to this team's invitations")
        conditions.append(TeamInvitation.team_id == query.team_id)

    if query.player_id is not None:
        if query.player_id != requester_id and not await is_system_admin(session, requester_id):
            if query.team_id is None or not await has_capability(
                session, requester_id, query.team_id, Capability.MANAGE_ROSTER
            ):
                raise ForbiddenError("You can only view your own invitations")
        conditions.append(TeamInvitation.player_id == query.player_id)
    elif query.team_id is None:
        conditions.append(TeamInvitation.player_id == requester_id)

    if query.status is not None:
        conditions.append(TeamInvitation.status == query.status.value)

    total = (
        await session.execute(select(func.count()).select_from(TeamInvitation).where(*conditions))
    ).scalar() or 0

    result = await session.execute(
        select(TeamInvitation)
        .where(*conditions)
        .order_by(TeamInvitation.created_at.desc(), TeamInvitation.id.desc())
        .limit(query.limit)
        .offset(query.offset)
    )
    invitations = [InvitationResponse.model_validate(row) for row in result.scalars().all()]

    return InvitationListResponse(
        invitations=invitations,
        total=total,
        limit=query.limit,
        offset=query.offset,
        has_more=query.offset + query.limit < total,
    )

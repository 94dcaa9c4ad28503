"""
Notification service for in-app user notifications.

Invitation events write a notification row for the affected user. Delivery
beyond the row itself (push, websocket) is handled elsewhere.
"""

from typing import Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from courtside.database.models import Notification, NotificationType, Team, User
from courtside.models.schemas import InvitationResponse
from courtside.utils.datetime_utils import isoformat_or_none
import json
import logging

logger = logging.getLogger(__name__)


async def create_notification(
    session: AsyncSession,
    user_id: int,
    type: str,
    title: str,
    message: str,
    data: Optional[Dict] = None,
    link_url: Optional[str] = None
) -> Dict:
    """
    Create a single notification for a user.

    Args:
        session: Database session
        user_id: ID of the user to notify
        type: Notification type (NotificationType enum value)
        title: Notification title
        message: Notification message text
        data: Optional JSON metadata (dict will be serialized to JSON string)
        link_url: Optional URL for navigation when notification is clicked

    Returns:
        Dict containing the created notification data

    Raises:
        ValueError: If required fields are missing or invalid
    """
    if not user_id:
        raise ValueError("user_id is required")
    if not type:
        raise ValueError("type is required")
    if not title:
        raise ValueError("title is required")
    if not message:
        raise ValueError("message is required")

    data_json = json.dumps(data) if data is not None else None

    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        data=data_json,
        link_url=link_url,
        is_read=False
    )

    session.add(notification)
    await session.flush()
    await session.refresh(notification)

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "data": json.loads(notification.data) if notification.data else None,
        "is_read": notification.is_read,
        "read_at": isoformat_or_none(notification.read_at),
        "link_url": notification.link_url,
        "created_at": isoformat_or_none(notification.created_at),
    }


async def _names(session: AsyncSession, team_id: int, user_id: int):
    team_name = (
        await session.execute(select(Team.name).where(Team.id == team_id))
    ).scalar_one_or_none()
    user_name = (
        await session.execute(select(User.full_name).where(User.id == user_id))
    ).scalar_one_or_none()
    return team_name or "a team", user_name or "Someone"


async def notify_invitation_created(session: AsyncSession, invitation: InvitationResponse) -> Dict:
    """Tell the invited player about a new team invitation."""
    team_name, inviter_name = await _names(session, invitation.team_id, invitation.invited_by_id)
    notification = await create_notification(
        session=session,
        user_id=invitation.player_id,
        type=NotificationType.TEAM_INVITATION.value,
        title="Team Invitation",
        message=f"{inviter_name} invited you to join {team_name}",
        data={
            "team_id": invitation.team_id,
            "invitation_id": invitation.id,
            "actions": [
                {"label": "Accept", "action": "accept_invitation", "style": "primary"},
                {"label": "Decline", "action": "reject_invitation", "style": "secondary"},
            ],
        },
        link_url=f"/invitations/{invitation.id}",
    )
    await session.commit()
    return notification


async def notify_invitation_accepted(session: AsyncSession, invitation: InvitationResponse) -> Dict:
    """Tell the issuer that their invitation was accepted."""
    team_name, player_name = await _names(session, invitation.team_id, invitation.player_id)
    notification = await create_notification(
        session=session,
        user_id=invitation.invited_by_id,
        type=NotificationType.TEAM_INVITATION_ACCEPTED.value,
        title="Invitation Accepted",
        message=f"{player_name} joined {team_name}",
        data={"team_id": invitation.team_id, "invitation_id": invitation.id},
        link_url=f"/teams/{invitation.team_id}",
    )
    await session.commit()
    return notification

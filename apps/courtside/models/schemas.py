"""
Pydantic models for API request/response validation.
"""

import enum
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator

from courtside.database.models import InvitationStatus
from courtside.utils.constants import (
    DEFAULT_INVITATION_EXPIRY_DAYS,
    MIN_INVITATION_EXPIRY_DAYS,
    MAX_INVITATION_EXPIRY_DAYS,
    MIN_JERSEY_NUMBER,
    MAX_JERSEY_NUMBER,
    MAX_POSITION_LENGTH,
    MAX_INVITATION_MESSAGE_LENGTH,
    DEFAULT_INVITATION_PAGE_SIZE,
    MAX_INVITATION_PAGE_SIZE,
    MAX_ROLE_NAME_LENGTH,
)
from courtside.utils.datetime_utils import ensure_utc


# ============================================================================
# Capabilities
# ============================================================================


class Capability(str, enum.Enum):
    """Team-scoped capability. Values match the TeamRole flag columns."""

    MANAGE_TEAM = "can_manage_team"
    MANAGE_ROSTER = "can_manage_roster"
    TRACK_STATS = "can_track_stats"
    VIEW_STATS = "can_view_stats"
    SHARE_STATS = "can_share_stats"


class CapabilitySet(BaseModel):
    """Effective capabilities of a user on a team.

    Immutable. Combine sets with ``|`` (logical OR per flag).
    """

    model_config = ConfigDict(frozen=True)

    can_manage_team: bool = False
    can_manage_roster: bool = False
    can_track_stats: bool = False
    can_view_stats: bool = False
    can_share_stats: bool = False

    @classmethod
    def none(cls) -> "CapabilitySet":
        return cls()

    @classmethod
    def all(cls) -> "CapabilitySet":
        return cls(**{capability.value: True for capability in Capability})

    @classmethod
    def view_only(cls) -> "CapabilitySet":
        return cls(can_view_stats=True)

    @classmethod
    def from_role(cls, role) -> "CapabilitySet":
        """Build a set from any object exposing the five ``can_*`` attributes."""
        return cls(**{capability.value: bool(getattr(role, capability.value)) for capability in Capability})

    def has(self, capability: Capability) -> bool:
        return getattr(self, Capability(capability).value)

    def __or__(self, other: "CapabilitySet") -> "CapabilitySet":
        if not isinstance(other, CapabilitySet):
            return NotImplemented
        return CapabilitySet(
            **{capability.value: self.has(capability) or other.has(capability) for capability in Capability}
        )


# ============================================================================
# Teams, roles and staff
# ============================================================================


class TeamCreate(BaseModel):
    """Request to create a team in a season."""

    season_id: int
    name: str = Field(min_length=1, max_length=100)


class TeamRoleCreate(BaseModel):
    """Request to create a custom team role. Defaults to view-only."""

    name: str = Field(min_length=1, max_length=MAX_ROLE_NAME_LENGTH)
    description: Optional[str] = None
    can_manage_team: bool = False
    can_manage_roster: bool = False
    can_track_stats: bool = False
    can_view_stats: bool = True
    can_share_stats: bool = False


class TeamRoleResponse(BaseModel):
    """Team role with its capability flags and assigned staff."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    team_id: int
    type: str
    name: str
    description: Optional[str] = None
    can_manage_team: bool
    can_manage_roster: bool
    can_track_stats: bool
    can_view_stats: bool
    can_share_stats: bool
    staff_user_ids: List[int] = []


class TeamResponse(BaseModel):
    """Team data with its roles."""

    id: int
    season_id: int
    league_id: int
    name: str
    created_by: Optional[int] = None
    roles: List[TeamRoleResponse] = []


class StaffAssignmentCreate(BaseModel):
    """Request to assign a user to a team role by role name."""

    user_id: int
    role_name: str = Field(min_length=1, max_length=MAX_ROLE_NAME_LENGTH)


class TeamStaffResponse(BaseModel):
    """Staff assignment."""

    id: int
    team_id: int
    user_id: int
    role_id: int
    role_name: str


class TeamPermissionsResponse(BaseModel):
    """Caller's resolved permissions on a team."""

    team_id: int
    user_id: int
    can_access: bool
    permissions: CapabilitySet


class TeamMemberResponse(BaseModel):
    """Rostered player."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    team_id: int
    player_id: int
    jersey_number: Optional[int] = None
    position: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def _normalize_timestamps(cls, value):
        return ensure_utc(value)


# ============================================================================
# Invitations
# ============================================================================


class InvitationCreate(BaseModel):
    """Request to invite a player to a team."""

    player_id: int
    jersey_number: Optional[int] = Field(default=None, ge=MIN_JERSEY_NUMBER, le=MAX_JERSEY_NUMBER)
    position: Optional[str] = Field(default=None, max_length=MAX_POSITION_LENGTH)
    message: Optional[str] = Field(default=None, max_length=MAX_INVITATION_MESSAGE_LENGTH)
    expires_in_days: int = Field(
        default=DEFAULT_INVITATION_EXPIRY_DAYS,
        ge=MIN_INVITATION_EXPIRY_DAYS,
        le=MAX_INVITATION_EXPIRY_DAYS,
    )


class InvitationResponse(BaseModel):
    """Team invitation."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    team_id: int
    player_id: int
    invited_by_id: int
    token: str
    jersey_number: Optional[int] = None
    position: Optional[str] = None
    message: Optional[str] = None
    status: InvitationStatus
    expires_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None

    @field_validator("expires_at", "created_at", "updated_at", "accepted_at", "rejected_at")
    @classmethod
    def _normalize_timestamps(cls, value):
        return ensure_utc(value)


class AcceptInvitationResponse(BaseModel):
    """Accepted invitation together with the roster entry it created."""

    invitation: InvitationResponse
    team_member: TeamMemberResponse


class InvitationQuery(BaseModel):
    """Filters for listing invitations."""

    status: Optional[InvitationStatus] = None
    team_id: Optional[int] = None
    player_id: Optional[int] = None
    limit: int = Field(default=DEFAULT_INVITATION_PAGE_SIZE, ge=1, le=MAX_INVITATION_PAGE_SIZE)
    offset: int = Field(default=0, ge=0)


class InvitationListResponse(BaseModel):
    """Paginated invitation list."""

    invitations: List[InvitationResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class ExpireInvitationsResponse(BaseModel):
    """Result of an expiry sweep."""

    expired_count: int

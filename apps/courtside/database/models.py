"""
SQLAlchemy ORM models for the basketball league team-management system.
"""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from courtside.database.db import Base


class UserRole(str, enum.Enum):
    """System-wide user role. ADMIN is the super-admin role."""

    COACH = "COACH"
    PARENT = "PARENT"
    PLAYER = "PLAYER"
    ADMIN = "ADMIN"


class TeamRoleType(str, enum.Enum):
    """Team role template type."""

    HEAD_COACH = "HEAD_COACH"
    ASSISTANT_COACH = "ASSISTANT_COACH"
    TEAM_MANAGER = "TEAM_MANAGER"
    CUSTOM = "CUSTOM"


class InvitationStatus(str, enum.Enum):
    """Team invitation status enum.

    PENDING is the only non-terminal status.
    """

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class NotificationType(str, enum.Enum):
    """Notification type enum."""

    TEAM_INVITATION = "team_invitation"
    TEAM_INVITATION_ACCEPTED = "team_invitation_accepted"


class User(Base):
    """User accounts and managed (no-login) player profiles."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=True, unique=True)
    full_name = Column(String, nullable=False)
    role = Column(String(20), nullable=False, server_default=UserRole.PLAYER.value)
    is_managed = Column(Boolean, default=False, nullable=False)  # guardian/coach-created profile
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    league_admin_assignments = relationship(
        "LeagueAdmin", back_populates="user", cascade="all, delete-orphan"
    )
    staff_assignments = relationship("TeamStaff", back_populates="user", cascade="all, delete-orphan")
    memberships = relationship("TeamMember", back_populates="player", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "role IN ('COACH', 'PARENT', 'PLAYER', 'ADMIN')", name="ck_users_role"
        ),
        Index("idx_users_email", "email"),
    )


class League(Base):
    """League groups."""

    __tablename__ = "leagues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    seasons = relationship("Season", back_populates="league", cascade="all, delete-orphan")
    admins = relationship("LeagueAdmin", back_populates="league", cascade="all, delete-orphan")


class LeagueAdmin(Base):
    """League administrators. Grants every capability on every team in the league."""

    __tablename__ = "league_admins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    league = relationship("League", back_populates="admins")
    user = relationship("User", back_populates="league_admin_assignments")

    __table_args__ = (
        UniqueConstraint("league_id", "user_id", name="uq_league_admins_league_user"),
        Index("idx_league_admins_user", "user_id"),
    )


class Season(Base):
    """League seasons."""

    __tablename__ = "seasons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    league_id = Column(Integer, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    league = relationship("League", back_populates="seasons")
    teams = relationship("Team", back_populates="season", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("league_id", "name", name="uq_seasons_league_name"),
        Index("idx_seasons_league_id", "league_id"),
    )


class Team(Base):
    """Teams. A team belongs to one season and, through it, one league."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    season_id = Column(Integer, ForeignKey("seasons.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    season = relationship("Season", back_populates="teams")
    roles = relationship("TeamRole", back_populates="team", cascade="all, delete-orphan")
    staff = relationship("TeamStaff", back_populates="team", cascade="all, delete-orphan")
    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")
    invitations = relationship("TeamInvitation", back_populates="team", cascade="all, delete-orphan")

    __table_args__ = (Index("idx_teams_season_id", "season_id"),)


class TeamRole(Base):
    """Team-scoped role template carrying five capability flags."""

    __tablename__ = "team_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False, server_default=TeamRoleType.CUSTOM.value)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    can_manage_team = Column(Boolean, default=False, nullable=False)
    can_manage_roster = Column(Boolean, default=False, nullable=False)
    can_track_stats = Column(Boolean, default=False, nullable=False)
    can_view_stats = Column(Boolean, default=False, nullable=False)
    can_share_stats = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    team = relationship("Team", back_populates="roles")
    assignments = relationship("TeamStaff", back_populates="role", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("team_id", "name", name="uq_team_roles_team_name"),
        CheckConstraint(
            "type IN ('HEAD_COACH', 'ASSISTANT_COACH', 'TEAM_MANAGER', 'CUSTOM')",
            name="ck_team_roles_type",
        ),
        Index("idx_team_roles_team_id", "team_id"),
    )


class TeamStaff(Base):
    """Assignment of a user to a team role. A user may hold several roles on one team."""

    __tablename__ = "team_staff"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role_id = Column(Integer, ForeignKey("team_roles.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    team = relationship("Team", back_populates="staff")
    user = relationship("User", back_populates="staff_assignments")
    role = relationship("TeamRole", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", "role_id", name="uq_team_staff_team_user_role"),
        Index("idx_team_staff_team_user", "team_id", "user_id"),
    )


class TeamMember(Base):
    """Rostered player on a team."""

    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    jersey_number = Column(Integer, nullable=True)
    position = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    team = relationship("Team", back_populates="members")
    player = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("team_id", "player_id", name="uq_team_members_team_player"),
        Index("idx_team_members_player", "player_id"),
    )


class TeamInvitation(Base):
    """Invitations for a user to join a team roster.

    Status transitions: pending → accepted | rejected | cancelled | expired.
    Rows are never deleted. At most one PENDING row per (team, player),
    enforced by a partial unique index.
    """

    __tablename__ = "team_invitations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    invited_by_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    token = Column(String(64), nullable=False, unique=True)
    jersey_number = Column(Integer, nullable=True)
    position = Column(String(50), nullable=True)
    message = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, server_default=InvitationStatus.PENDING.value)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    team = relationship("Team", back_populates="invitations")
    player = relationship("User", foreign_keys=[player_id])
    invited_by = relationship("User", foreign_keys=[invited_by_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'ACCEPTED', 'REJECTED', 'EXPIRED', 'CANCELLED')",
            name="ck_team_invitations_status",
        ),
        Index(
            "uq_team_invitations_pending",
            "team_id",
            "player_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
        Index("idx_team_invitations_player", "player_id"),
        Index("idx_team_invitations_team", "team_id"),
        Index("idx_team_invitations_status_expires", "status", "expires_at"),
    )


class Notification(Base):
    """User notifications for in-app messaging."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String, nullable=False)  # NotificationType enum value
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(
        Text, nullable=True
    )  # JSON string for flexible metadata (team_id, invitation_id, etc.)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    link_url = Column(String(500), nullable=True)  # Navigation target
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", backref="notifications")

    __table_args__ = (
        Index("idx_notifications_user_unread", "user_id", "is_read", "created_at"),
    )

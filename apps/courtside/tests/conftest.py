"""
Shared pytest configuration for courtside tests.

By default every test gets a fresh SQLite database file (through aiosqlite)
in its own temporary directory. Set TEST_DATABASE_URL to run against
PostgreSQL instead.

SAFETY: when TEST_DATABASE_URL is set, this module REFUSES to run against any
database whose name does not contain the substring "test". This prevents
accidental drop of the development or production database.
"""

import os
from datetime import date
from typing import Optional

import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from courtside.database.db import Base
from courtside.database.models import (
    League,
    LeagueAdmin,
    Season,
    Team,
    TeamMember,
    TeamRole,
    TeamRoleType,
    TeamStaff,
    User,
    UserRole,
)


def _resolve_test_database_url(tmp_path) -> str:
    """Build the test database URL with safety checks.

    Raises ``RuntimeError`` if TEST_DATABASE_URL points at a database whose
    name does not contain "test".
    """
    url = os.getenv("TEST_DATABASE_URL", "")
    if not url:
        return f"sqlite+aiosqlite:///{tmp_path / 'courtside_test.db'}"

    # ── Safety gate: database name MUST contain "test" ──────────────────
    db_name = url.rsplit("/", 1)[-1].split("?")[0]
    if "test" not in db_name.lower():
        raise RuntimeError(
            f"\n{'=' * 70}\n"
            f"  SAFETY: Refusing to run tests against database '{db_name}'.\n"
            f"  The database name must contain 'test' to prevent accidental\n"
            f"  data loss in development or production databases.\n\n"
            f"  Resolved URL: {url}\n\n"
            f"  Fix: set TEST_DATABASE_URL to a test database, e.g.:\n"
            f"    export TEST_DATABASE_URL=postgresql+asyncpg://.../{db_name}_test\n"
            f"{'=' * 70}"
        )
    return url


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a test database engine with all tables."""
    # NullPool avoids "Future attached to different loop" errors between tests
    engine = create_async_engine(
        _resolve_test_database_url(tmp_path),
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    # Code that opens its own sessions (the expiry worker) must see the test database
    from courtside.database import db

    original_async_session_local = db.AsyncSessionLocal
    db.AsyncSessionLocal = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    yield engine

    db.AsyncSessionLocal = original_async_session_local
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    """Session factory bound to the test engine, for tests that need several sessions."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------


async def make_user(session, full_name: str, role: UserRole = UserRole.PLAYER) -> User:
    """Insert a user and return it."""
    user = User(full_name=full_name, role=role.value)
    session.add(user)
    await session.flush()
    return user


async def make_role(
    session,
    team_id: int,
    name: str,
    role_type: TeamRoleType = TeamRoleType.CUSTOM,
    **flags,
) -> TeamRole:
    """Insert a team role. Capability flags default to False."""
    role = TeamRole(team_id=team_id, type=role_type.value, name=name, **flags)
    session.add(role)
    await session.flush()
    return role


async def assign_role(session, team_id: int, user_id: int, role_id: int) -> TeamStaff:
    assignment = TeamStaff(team_id=team_id, user_id=user_id, role_id=role_id)
    session.add(assignment)
    await session.flush()
    return assignment


async def add_member(
    session,
    team_id: int,
    player_id: int,
    jersey_number: Optional[int] = None,
    position: Optional[str] = None,
) -> TeamMember:
    member = TeamMember(
        team_id=team_id, player_id=player_id, jersey_number=jersey_number, position=position
    )
    session.add(member)
    await session.flush()
    return member


@pytest_asyncio.fixture
async def league_and_season(db_session):
    """Create a league with one active season."""
    league = League(name="Metro Youth Basketball")
    db_session.add(league)
    await db_session.flush()

    season = Season(
        league_id=league.id,
        name="Spring 2026",
        start_date=date(2026, 3, 1),
        end_date=date(2026, 6, 30),
        is_active=True,
    )
    db_session.add(season)
    await db_session.commit()
    return league, season


@pytest_asyncio.fixture
async def team_setup(db_session, league_and_season):
    """
    A team with the usual cast.

    Returns a dict with:
        league, season, team
        head_coach   - holds a manage-everything "Head Coach" role
        manager      - holds a stats-only "Team Manager" role
        member       - rostered player, no staff role
        player       - user not yet on the team
        outsider     - unrelated user
        league_admin - admin of the team's league, no team role
        admin        - system ADMIN
    """
    league, season = league_and_season

    head_coach = await make_user(db_session, "Hannah Coach", UserRole.COACH)
    manager = await make_user(db_session, "Marcus Manager", UserRole.PARENT)
    member = await make_user(db_session, "Mia Member")
    player = await make_user(db_session, "Paolo Player")
    outsider = await make_user(db_session, "Olga Outsider")
    league_admin = await make_user(db_session, "Leo LeagueAdmin", UserRole.COACH)
    admin = await make_user(db_session, "Ada Admin", UserRole.ADMIN)

    team = Team(season_id=season.id, name="Riverside Hawks", created_by=head_coach.id)
    db_session.add(team)
    await db_session.flush()

    head_coach_role = await make_role(
        db_session,
        team.id,
        "Head Coach",
        TeamRoleType.HEAD_COACH,
        can_manage_team=True,
        can_manage_roster=True,
        can_track_stats=True,
        can_view_stats=True,
        can_share_stats=True,
    )
    manager_role = await make_role(
        db_session,
        team.id,
        "Team Manager",
        TeamRoleType.TEAM_MANAGER,
        can_track_stats=True,
        can_view_stats=True,
        can_share_stats=True,
    )
    await assign_role(db_session, team.id, head_coach.id, head_coach_role.id)
    await assign_role(db_session, team.id, manager.id, manager_role.id)
    await add_member(db_session, team.id, member.id, jersey_number=4, position="Guard")

    db_session.add(LeagueAdmin(league_id=league.id, user_id=league_admin.id))
    await db_session.commit()

    return {
        "league": league,
        "season": season,
        "team": team,
        "head_coach": head_coach,
        "manager": manager,
        "member": member,
        "player": player,
        "outsider": outsider,
        "league_admin": league_admin,
        "admin": admin,
    }


@pytest_asyncio.fixture
async def team_ids(team_setup):
    """Plain integer IDs for the team_setup cast.

    A rollback expires ORM instances, so tests that drive a service into a
    rollback hold on to these instead of the instances.
    """
    return {key: value.id for key, value in team_setup.items()}

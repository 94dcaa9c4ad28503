"""001_initial_schema

Revision ID: 001
Revises:
Create Date: 2026-01-04 08:32:40.000000

Creates the team access and invitation schema from scratch:
- Identity and league tables: users, leagues, league_admins, seasons
- Team tables: teams, team_roles, team_staff, team_members
- Invitations: team_invitations, including the partial unique index that
  allows a single PENDING invitation per (team, player)
- notifications
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables from scratch."""
    from courtside.database.db import Base
    from courtside.database import models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.create_all(bind=bind, checkfirst=True)


def downgrade() -> None:
    """Drop all tables."""
    from courtside.database.db import Base
    from courtside.database import models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.drop_all(bind=bind, checkfirst=True)

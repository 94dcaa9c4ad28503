"""
Unit of work: the transactional boundary used by the service layer.

Every mutating service operation writes through ``UnitOfWork.atomic()``.
Either everything inside the block is committed or nothing is. Uniqueness
violations raised by the database surface as ``ConflictError`` so losing
writers in a race see a typed error instead of a driver exception.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.services.errors import ConflictError

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Commit-or-rollback wrapper around an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def atomic(
        self, conflict_message: str = "The request conflicts with the current state"
    ) -> AsyncIterator[AsyncSession]:
        """
        Run a block of writes as a single transaction.

        Args:
            conflict_message: User-facing message for a uniqueness violation

        Yields:
            The underlying AsyncSession

        Raises:
            ConflictError: If the database rejects the writes with an IntegrityError
        """
        try:
            yield self.session
            await self.session.flush()
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.info(f"Rolled back transaction on integrity error: {e.orig}")
            raise ConflictError(conflict_message) from e
        except Exception:
            await self.session.rollback()
            raise

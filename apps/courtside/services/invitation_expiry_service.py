"""
Invitation expiry service: marks overdue PENDING invitations as EXPIRED.

Background worker that polls every INVITATION_EXPIRY_POLL_SECONDS (default
one hour). Accepting an expired invitation already expires it on the spot;
this worker settles the ones nobody touches.
"""

import asyncio
import logging
import os
from typing import Optional

from courtside.database import db
from courtside.services import invitation_service

logger = logging.getLogger(__name__)

# How often the worker sweeps for overdue invitations (seconds)
POLL_INTERVAL_SECONDS = int(os.getenv("INVITATION_EXPIRY_POLL_SECONDS", "3600"))


class InvitationExpiryService:
    """Background service that expires overdue invitations."""

    def __init__(self, poll_interval_seconds: float = POLL_INTERVAL_SECONDS):
        self.poll_interval_seconds = poll_interval_seconds
        self._worker_task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._worker_task is not None and not self._worker_task.done()

    def start(self) -> None:
        """Start the background expiry worker."""
        if not self.is_running:
            self._stop_event.clear()
            self._worker_task = asyncio.create_task(self._poll_loop())
            logger.info("Invitation expiry worker started")

    def stop(self) -> None:
        """Stop the background expiry worker."""
        self._stop_event.set()
        if self.is_running:
            self._worker_task.cancel()
            logger.info("Invitation expiry worker stopped")

    async def _poll_loop(self) -> None:
        """Main loop: sweep, then sleep. Repeats until stopped."""
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Error in invitation expiry worker: {e}", exc_info=True)

            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.poll_interval_seconds
                )
                break
            except asyncio.TimeoutError:
                pass

    async def run_once(self) -> int:
        """
        Run a single sweep in a fresh database session.

        Returns:
            Number of invitations expired
        """
        async with db.AsyncSessionLocal() as session:
            return await invitation_service.expire_old_invitations(session)


# Global singleton
_expiry_service = InvitationExpiryService()


def get_invitation_expiry_service() -> InvitationExpiryService:
    """Get the global invitation expiry service instance."""
    return _expiry_service

"""
Background sweep of expired sessions
"""

import asyncio
from typing import Optional

import structlog

from lscs_core.services.session import SessionService

logger = structlog.get_logger()


class SessionCleanupJob:
    """Periodically deletes expired sessions until stopped"""

    def __init__(self, session_service: SessionService, interval: float = 3600.0) -> None:
        self.session_service = session_service
        self.interval = interval
        self.running = False
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self.running:
            logger.warning("Session cleanup already running")
            return

        self.running = True
        self._task = asyncio.create_task(self._cleanup_loop())
        logger.info("Session cleanup started", interval=self.interval)

    async def stop(self) -> None:
        if not self.running:
            return

        self.running = False
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

        logger.info("Session cleanup stopped")

    def is_running(self) -> bool:
        return self.running

    async def run_once(self) -> Optional[int]:
        """One sweep; returns the deleted count, or None when the sweep failed"""
        try:
            return await self.session_service.cleanup_expired_sessions()
        except Exception as e:
            logger.error("Session cleanup error", error=str(e))
            return None

    async def _cleanup_loop(self) -> None:
        # first sweep runs one interval after start
        try:
            while self.running:
                try:
                    await asyncio.sleep(self.interval)
                    await self.run_once()
                except asyncio.CancelledError:
                    break
        except asyncio.CancelledError:
            pass
        finally:
            logger.debug("Session cleanup loop exited")

"""
Background worker that cancels pending reservations past their check-in window
"""
import asyncio
from typing import Optional

from libseat.services.lifecycle_service import LifecycleService
import logging

logger = logging.getLogger(__name__)


class ExpiryWorker:
    """Runs the pending-expiry sweep on a fixed interval"""

    def __init__(self, lifecycle: LifecycleService, interval_seconds: float = 60.0):
        self.lifecycle = lifecycle
        self.interval_seconds = interval_seconds
        self.running = False
        self.task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the background worker"""
        if self.running:
            logger.warning("⚠️  Expiry worker already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._run())
        logger.info(f"✅ Expiry worker started (interval: {self.interval_seconds}s)")

    async def stop(self):
        """Stop the background worker"""
        if not self.running:
            return

        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        logger.info("🛑 Expiry worker stopped")

    async def run_once(self) -> int:
        expired_ids = await self.lifecycle.expire_pending()
        return len(expired_ids)

    async def _run(self):
        """Main worker loop"""
        interval = max(self.interval_seconds, 1.0)
        while self.running:
            try:
                await self.run_once()
                await asyncio.sleep(interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception(f"❌ Error in expiry worker: {e}")
                await asyncio.sleep(interval)

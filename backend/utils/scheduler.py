"""
SmartParking - Background Scheduler
Handles background tasks like space reservation expiry.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from typing import Optional
import logging

from config import get_settings
from services.space_service import get_space_service

# Configure logging
logger = logging.getLogger(__name__)


class ReservationScheduler:
    """
    Background scheduler for periodic tasks.
    Releases parking space reservations once they expire.
    """

    def __init__(self):
        self.scheduler = AsyncIOScheduler()
        self._is_running = False

    def start(self):
        """Start the background scheduler."""
        if self._is_running:
            logger.warning("Scheduler is already running")
            return

        settings = get_settings()

        self.scheduler.add_job(
            self._release_expired_reservations,
            trigger=IntervalTrigger(seconds=settings.reservation_check_interval_seconds),
            id="release_expired_reservations",
            name="Release expired space reservations",
            replace_existing=True
        )

        self.scheduler.start()
        self._is_running = True
        logger.info("Background scheduler started")

    def stop(self):
        """Stop the background scheduler."""
        if not self._is_running:
            return

        self.scheduler.shutdown(wait=False)
        self._is_running = False
        logger.info("Background scheduler stopped")

    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._is_running

    async def _release_expired_reservations(self):
        """
        Free every space whose reservation has expired.
        This runs periodically as a background task.
        """
        try:
            service = get_space_service()
            released = await service.release_expired_reservations()

            if released:
                logger.info(f"Released {len(released)} expired reservation(s)")

        except Exception as e:
            logger.error(f"Error releasing expired reservations: {e}")


# Singleton instance
_scheduler_instance: Optional[ReservationScheduler] = None


def get_scheduler() -> ReservationScheduler:
    """Get the scheduler singleton instance."""
    global _scheduler_instance
    if _scheduler_instance is None:
        _scheduler_instance = ReservationScheduler()
    return _scheduler_instance


def start_scheduler():
    """Start the background scheduler."""
    scheduler = get_scheduler()
    scheduler.start()


def stop_scheduler():
    """Stop the background scheduler."""
    scheduler = get_scheduler()
    scheduler.stop()

"""
Scheduling loop for the update engine.

discord.ext.tasks never starts the next iteration before the previous one
has returned, so ticks can not overlap.
"""
import structlog
from discord.ext import commands, tasks

from src.application.use_cases.poll_tracked_listings import PollTrackedListings, PollSummary

logger = structlog.get_logger(__name__)


class UpdateEngineCog(commands.Cog):
    def __init__(self, poll: PollTrackedListings, period_seconds: float = 60.0) -> None:
        self._poll = poll
        self.last_summary: PollSummary | None = None
        self.tick.change_interval(seconds=period_seconds)

    def start(self) -> None:
        if self.tick.is_running():
            return
        logger.info("update_engine_started", period_seconds=self.tick.seconds)
        self.tick.start()

    async def cog_unload(self) -> None:
        self.tick.cancel()

    @tasks.loop(seconds=60)
    async def tick(self) -> None:
        try:
            self.last_summary = await self._poll.execute()
        except Exception:
            # A failed tick must never stop the loop
            logger.exception("poll_tick_failed")

import asyncio

import discord
import structlog
import uvicorn
from discord.ext import commands

from src.api.dependencies import ApiServices
from src.api.main import build_server, create_app
from src.bot.cogs.listing_commands import ListingCommandsCog
from src.bot.cogs.update_engine import UpdateEngineCog
from src.config import Settings
from src.container import (
    build_data_source,
    build_event_publisher,
    build_store,
    build_use_cases,
    prepare_store,
)
from src.domain.exceptions import GatewayError, PersistenceError
from src.infrastructure.discord.messaging_gateway import DiscordMessagingGateway

logger = structlog.get_logger(__name__)


class ListingTrackerBot(commands.Bot):
    """
    Discord bot hosting the update engine, the listing commands and,
    optionally, the HTTP API on the same event loop.
    """

    def __init__(self, app_settings: Settings) -> None:
        intents = discord.Intents.default()
        super().__init__(command_prefix=commands.when_mentioned, intents=intents)

        self.app_settings = app_settings
        self.store = build_store(app_settings)
        self.event_publisher = build_event_publisher(app_settings)
        self.gateway = DiscordMessagingGateway(
            self,
            guild_id=app_settings.guild_id,
            staff_role_id=app_settings.staff_role_id,
        )
        self.use_cases = build_use_cases(
            app_settings,
            self.store,
            build_data_source(app_settings),
            self.gateway,
            self.event_publisher,
        )
        self.update_engine = UpdateEngineCog(self.use_cases.poll, app_settings.poll_period_seconds)
        self._api_task: asyncio.Task[None] | None = None
        self._api_server: uvicorn.Server | None = None

    async def setup_hook(self) -> None:
        await prepare_store(self.store)

        await self.add_cog(
            ListingCommandsCog(
                self.store,
                self.use_cases.track,
                self.use_cases.refresh,
                self.use_cases.transition,
                intake_channel_id=self.app_settings.intake_channel_id,
                staff_role_id=self.app_settings.staff_role_id,
            )
        )
        await self.add_cog(self.update_engine)

        if self.app_settings.guild_id:
            guild = discord.Object(id=int(self.app_settings.guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
        else:
            synced = await self.tree.sync()
        logger.info("app_commands_synced", count=len(synced))

        if self.app_settings.api_enabled:
            app = create_app(
                ApiServices(
                    store=self.store,
                    event_publisher=self.event_publisher,
                    transition=self.use_cases.transition,
                )
            )
            self._api_server = build_server(app, self.app_settings.api_host, self.app_settings.api_port)
            self._api_task = asyncio.create_task(self._api_server.serve())
            logger.info(
                "listing_api_serving",
                host=self.app_settings.api_host,
                port=self.app_settings.api_port,
            )

    async def on_ready(self) -> None:
        logger.info("bot_ready", user=str(self.user), guilds=len(self.guilds))
        if not self.app_settings.intake_channel_id:
            logger.warning("update_engine_not_started", reason="intake_channel_id is not configured")
            return
        await self._ensure_intake_panel()
        self.update_engine.start()

    async def _ensure_intake_panel(self) -> None:
        if self.use_cases.panel is None:
            return
        try:
            await self.use_cases.panel.execute()
        except (GatewayError, PersistenceError) as exc:
            logger.error("intake_panel_failed", error=str(exc))

    async def close(self) -> None:
        logger.info("bot_stopping")
        if self._api_server is not None and self._api_task is not None:
            self._api_server.should_exit = True
            await self._api_task
        await super().close()

"""
User-facing listing actions: the /track command (also reachable through the
intake panel modal) and the listing buttons.

Buttons are persistent (no view timeout), so they are dispatched from the
raw interaction event by custom_id rather than through View callbacks that
would not survive a restart.
"""
from collections.abc import Awaitable, Callable

import discord
import structlog
from discord import app_commands
from discord.ext import commands

from src.application.interfaces.listing_store import ListingStore
from src.application.presenters.listing_presenter import (
    BUTTON_CLOSE,
    BUTTON_REFRESH,
    BUTTON_SHIPPED,
    BUTTON_SOLD,
    BUTTON_TRACK_PANEL,
)
from src.application.use_cases.refresh_listing import ListingNotRefreshableError, RefreshListing
from src.application.use_cases.track_listing import TrackListing
from src.application.use_cases.transition_listing_status import (
    TransitionListingStatus,
    TransitionListingStatusInput,
)
from src.bot.authorization import can_manage_listing
from src.domain.enums.listing_status import ListingStatus
from src.domain.exceptions import (
    FetchError,
    GatewayError,
    InvalidListingUrlError,
    ListingAlreadyTrackedError,
    ListingNotFoundError,
    PersistenceError,
)
from src.domain.state_machine.lifecycle_state_machine import InvalidStatusTransitionError

logger = structlog.get_logger(__name__)

TRANSITION_BUTTONS: dict[str, ListingStatus] = {
    BUTTON_SOLD: ListingStatus.SOLD,
    BUTTON_SHIPPED: ListingStatus.SHIPPED,
    BUTTON_CLOSE: ListingStatus.CLOSED,
}

GENERIC_FAILURE_REPLY = "Something went wrong on our side. Please try again later."

TrackSubmit = Callable[[discord.Interaction, str], Awaitable[None]]


class TrackListingModal(discord.ui.Modal, title="Track an eBay Listing"):
    url = discord.ui.TextInput(
        label="eBay listing link",
        placeholder="https://www.ebay.com/itm/...",
        max_length=400,
    )

    def __init__(self, on_track: TrackSubmit) -> None:
        super().__init__()
        self._on_track = on_track

    async def on_submit(self, interaction: discord.Interaction) -> None:
        await self._on_track(interaction, self.url.value.strip())


class ListingCommandsCog(commands.Cog):
    def __init__(
        self,
        store: ListingStore,
        track: TrackListing,
        refresh: RefreshListing,
        transition: TransitionListingStatus,
        *,
        intake_channel_id: str | None,
        staff_role_id: str | None,
    ) -> None:
        self._store = store
        self._track = track
        self._refresh = refresh
        self._transition = transition
        self._intake_channel_id = intake_channel_id
        self._staff_role_id = staff_role_id

    # ---- /track and the intake panel ------------------------------------------

    @app_commands.command(name="track", description="Start tracking an eBay listing")
    @app_commands.describe(url="Link to the eBay listing")
    @app_commands.guild_only()
    async def track(self, interaction: discord.Interaction, url: str) -> None:
        if self._intake_channel_id and str(interaction.channel_id) != self._intake_channel_id:
            await interaction.response.send_message(
                f"Use this command in <#{self._intake_channel_id}>.", ephemeral=True
            )
            return
        await self.start_tracking(interaction, url)

    async def start_tracking(self, interaction: discord.Interaction, url: str) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            result = await self._track.execute(url, str(interaction.user.id))
        except InvalidListingUrlError:
            await interaction.followup.send("That does not look like an eBay listing link.", ephemeral=True)
            return
        except ListingAlreadyTrackedError as exc:
            await interaction.followup.send(
                f"That listing is already tracked in <#{exc.channel_id}>.", ephemeral=True
            )
            return
        except FetchError as exc:
            logger.warning("listing_track_fetch_failed", url=url, error=str(exc))
            await interaction.followup.send(
                "Could not load that listing from eBay. Please try again later.", ephemeral=True
            )
            return
        except GatewayError as exc:
            logger.error("listing_channel_create_failed", url=url, error=str(exc))
            await interaction.followup.send("Could not create a channel for that listing.", ephemeral=True)
            return
        except PersistenceError as exc:
            logger.error("listing_track_save_failed", url=url, error=str(exc))
            await interaction.followup.send(GENERIC_FAILURE_REPLY, ephemeral=True)
            return

        await interaction.followup.send(
            f"Now tracking **{result.record.title}** in <#{result.channel_id}>.", ephemeral=True
        )

    # ---- Buttons --------------------------------------------------------------

    @commands.Cog.listener()
    async def on_interaction(self, interaction: discord.Interaction) -> None:
        if interaction.type is not discord.InteractionType.component:
            return
        custom_id = (interaction.data or {}).get("custom_id")
        if custom_id == BUTTON_TRACK_PANEL:
            await interaction.response.send_modal(TrackListingModal(self.start_tracking))
            return
        if custom_id != BUTTON_REFRESH and custom_id not in TRANSITION_BUTTONS:
            return
        await self.handle_button(interaction, str(custom_id))

    async def handle_button(self, interaction: discord.Interaction, custom_id: str) -> None:
        channel_id = str(interaction.channel_id)
        actor_id = str(interaction.user.id)

        await interaction.response.defer(ephemeral=True, thinking=True)

        document = await self._store.load()
        record = document.get(channel_id)
        if record is None:
            await interaction.followup.send("This channel is not tracking a listing.", ephemeral=True)
            return
        if not can_manage_listing(interaction.user, record, self._staff_role_id):
            await interaction.followup.send(
                "Only the listing owner or staff can do that.", ephemeral=True
            )
            return

        try:
            if custom_id == BUTTON_REFRESH:
                await self._refresh.execute(channel_id, actor_id)
                reply = "Listing refreshed."
            else:
                output = await self._transition.execute(
                    TransitionListingStatusInput(
                        channel_id=channel_id,
                        to_status=TRANSITION_BUTTONS[custom_id],
                        actor_id=actor_id,
                    )
                )
                reply = f"Listing marked as {output.to_status.value}."
        except ListingNotFoundError:
            reply = "This channel is not tracking a listing."
        except ListingNotRefreshableError as exc:
            reply = f"This listing is {exc.status} and can no longer be refreshed."
        except InvalidStatusTransitionError as exc:
            reply = f"Can not move a {exc.from_status.value} listing to {exc.to_status.value}."
        except FetchError as exc:
            logger.warning("listing_refresh_fetch_failed", channel_id=channel_id, error=str(exc))
            reply = "Could not reach eBay right now. Please try again later."
        except (PersistenceError, GatewayError) as exc:
            logger.error("listing_button_failed", channel_id=channel_id, custom_id=custom_id, error=str(exc))
            reply = GENERIC_FAILURE_REPLY

        await interaction.followup.send(reply, ephemeral=True)

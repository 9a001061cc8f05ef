"""
Pushes a listing record's state out to its channel.

Shared by the update engine and the manual actions so the embed, the change
notification and the channel label are rendered the same way on every path.
"""
import structlog

from src.application.interfaces.listing_store import ListingStore
from src.application.interfaces.messaging_gateway import MessagingGateway
from src.application.presenters.listing_presenter import (
    build_buttons,
    build_change_notification,
    build_listing_embed,
    channel_name,
)
from src.domain.entities.listing_record import ListingChange, ListingRecord
from src.domain.enums.listing_status import ListingStatus
from src.domain.exceptions import GatewayError, MessageNotFoundError

logger = structlog.get_logger(__name__)


class ChannelSync:
    def __init__(
        self,
        gateway: MessagingGateway,
        store: ListingStore,
        category_by_status: dict[ListingStatus, str | None] | None = None,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._category_by_status = category_by_status or {}

    async def publish_fetch_result(self, record: ListingRecord, change: ListingChange) -> None:
        """Side effects of one completed fetch; never raises GatewayError."""
        await self.refresh_embed(record)

        text = build_change_notification(record, change)
        if text is not None:
            await self.post(record.channel_id, text)

        if change.just_ended:
            await self.apply_status_visuals(record)

    async def refresh_embed(self, record: ListingRecord) -> None:
        embed = build_listing_embed(record)
        buttons = build_buttons(record.status)
        try:
            if record.message_id is not None:
                try:
                    await self._gateway.edit_message(
                        record.channel_id, record.message_id, embed, buttons
                    )
                    return
                except MessageNotFoundError:
                    logger.warning(
                        "listing_embed_missing_resending",
                        channel_id=record.channel_id,
                        message_id=record.message_id,
                    )
            message_id = await self._gateway.send_embed(record.channel_id, embed, buttons)
        except GatewayError as exc:
            logger.error(
                "listing_embed_refresh_failed",
                channel_id=record.channel_id,
                operation=exc.operation,
                error=str(exc),
            )
            return

        record.message_id = message_id
        await self._store.update_record(
            record.channel_id, lambda stored: setattr(stored, "message_id", message_id)
        )

    async def post(self, channel_id: str, text: str) -> None:
        try:
            await self._gateway.post_message(channel_id, text)
        except GatewayError as exc:
            logger.error(
                "listing_notification_failed",
                channel_id=channel_id,
                error=str(exc),
            )

    async def apply_status_visuals(self, record: ListingRecord) -> None:
        """Best-effort rename to the status emoji and move to the status category."""
        new_name = channel_name(record.title, record.status)
        try:
            await self._gateway.rename_channel(record.channel_id, new_name)
        except GatewayError as exc:
            logger.warning(
                "listing_channel_rename_failed",
                channel_id=record.channel_id,
                new_name=new_name,
                error=str(exc),
            )

        category_id = self._category_by_status.get(record.status)
        if not category_id:
            return
        try:
            await self._gateway.move_channel(record.channel_id, category_id)
        except GatewayError as exc:
            logger.warning(
                "listing_channel_move_failed",
                channel_id=record.channel_id,
                category_id=category_id,
                error=str(exc),
            )

import structlog

from src.application.interfaces.listing_store import ListingStore
from src.application.interfaces.messaging_gateway import MessagingGateway
from src.application.presenters.listing_presenter import build_panel_buttons, build_panel_embed

logger = structlog.get_logger(__name__)


class EnsureIntakePanel:
    """
    Use case: make sure the intake channel carries exactly one panel message
    with the Track Listing button.

    The stored panel_message_id is reused across restarts; the panel is only
    posted again when that message no longer exists.
    """

    def __init__(
        self,
        store: ListingStore,
        gateway: MessagingGateway,
        intake_channel_id: str,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._intake_channel_id = intake_channel_id

    async def execute(self) -> str:
        document = await self._store.load()
        if document.panel_message_id and await self._gateway.message_exists(
            self._intake_channel_id, document.panel_message_id
        ):
            logger.info("intake_panel_reused", message_id=document.panel_message_id)
            return document.panel_message_id

        message_id = await self._gateway.send_embed(
            self._intake_channel_id, build_panel_embed(), build_panel_buttons()
        )
        await self._store.set_panel_message_id(message_id)
        logger.info(
            "intake_panel_posted",
            channel_id=self._intake_channel_id,
            message_id=message_id,
            replaced=document.panel_message_id,
        )
        return message_id

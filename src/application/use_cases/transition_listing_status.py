from dataclasses import dataclass

import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_store import ListingStore
from src.application.presenters.listing_presenter import build_status_confirmation
from src.application.services.channel_sync import ChannelSync
from src.domain.entities.listing_record import ListingRecord
from src.domain.enums.listing_status import ListingStatus
from src.domain.exceptions import ListingNotFoundError

logger = structlog.get_logger(__name__)


@dataclass
class TransitionListingStatusInput:
    channel_id: str
    to_status: ListingStatus
    actor_id: str


@dataclass
class TransitionListingStatusOutput:
    channel_id: str
    from_status: ListingStatus
    to_status: ListingStatus


class TransitionListingStatus:
    """
    Use case: owner/staff marks a listing sold, shipped or closed.

    Validates the transition via the state machine, persists the change,
    re-renders the channel and publishes domain events.
    """

    def __init__(
        self,
        store: ListingStore,
        channel_sync: ChannelSync,
        event_publisher: EventPublisher,
    ) -> None:
        self._store = store
        self._channel_sync = channel_sync
        self._event_publisher = event_publisher

    async def execute(
        self, input_data: TransitionListingStatusInput
    ) -> TransitionListingStatusOutput:
        from_statuses: list[ListingStatus] = []

        def transition(record: ListingRecord) -> None:
            from_statuses.append(record.status)
            # May raise InvalidStatusTransitionError; nothing is saved in that case
            record.transition_to(input_data.to_status, triggered_by=f"user:{input_data.actor_id}")

        record = await self._store.update_record(input_data.channel_id, transition)
        if record is None:
            raise ListingNotFoundError(input_data.channel_id)

        await self._channel_sync.refresh_embed(record)
        await self._channel_sync.post(
            record.channel_id, build_status_confirmation(record.status, input_data.actor_id)
        )
        await self._channel_sync.apply_status_visuals(record)
        await self._event_publisher.publish_many(record.collect_events())

        logger.info(
            "listing_status_transitioned",
            channel_id=record.channel_id,
            from_status=from_statuses[0].value,
            to_status=input_data.to_status.value,
            actor_id=input_data.actor_id,
        )

        return TransitionListingStatusOutput(
            channel_id=record.channel_id,
            from_status=from_statuses[0],
            to_status=input_data.to_status,
        )

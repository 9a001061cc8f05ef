from collections.abc import Callable
from dataclasses import dataclass

import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_data_source import ListingDataSource
from src.application.interfaces.listing_store import ListingStore
from src.application.interfaces.messaging_gateway import MessagingGateway
from src.application.presenters.listing_presenter import (
    build_buttons,
    build_listing_embed,
    channel_name,
)
from src.domain.entities.listing_record import ListingRecord, now_ms
from src.domain.enums.listing_status import ListingStatus
from src.domain.exceptions import GatewayError, ListingAlreadyTrackedError
from src.domain.listing_url import canonicalize_listing_url

logger = structlog.get_logger(__name__)


@dataclass
class TrackListingOutput:
    channel_id: str
    record: ListingRecord


class TrackListing:
    """
    Use case: start tracking an eBay listing in a new private channel.

    The record is only written once a snapshot has been resolved; FetchError
    and InvalidListingUrlError propagate to the caller.
    """

    def __init__(
        self,
        store: ListingStore,
        data_source: ListingDataSource,
        gateway: MessagingGateway,
        event_publisher: EventPublisher,
        listing_category_id: str | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._data_source = data_source
        self._gateway = gateway
        self._event_publisher = event_publisher
        self._listing_category_id = listing_category_id
        self._clock = clock

    async def execute(self, url: str, owner_id: str) -> TrackListingOutput:
        canonical_url = canonicalize_listing_url(url)

        document = await self._store.load()
        existing = document.find_open_by_url(canonical_url)
        if existing is not None:
            raise ListingAlreadyTrackedError(canonical_url, existing.channel_id)

        snapshot = await self._data_source.fetch(canonical_url)
        checked_at = self._clock()

        channel_id = await self._gateway.create_listing_channel(
            channel_name(snapshot.title, ListingStatus.ACTIVE),
            owner_id,
            self._listing_category_id,
        )

        record = ListingRecord.create_from_snapshot(
            channel_id=channel_id,
            url=canonical_url,
            owner_id=owner_id,
            snapshot=snapshot,
            checked_at=checked_at,
        )
        if snapshot.status is ListingStatus.ENDED:
            record.transition_to(ListingStatus.ENDED, triggered_by="intake", at=checked_at)

        try:
            record.message_id = await self._gateway.send_embed(
                channel_id, build_listing_embed(record), build_buttons(record.status)
            )
        except GatewayError as exc:
            logger.error("listing_embed_send_failed", channel_id=channel_id, error=str(exc))

        await self._store.insert_record(record)
        await self._event_publisher.publish_many(record.collect_events())

        logger.info(
            "listing_tracked",
            channel_id=channel_id,
            url=canonical_url,
            owner_id=owner_id,
            listing_type=record.listing_type.value,
            source=record.source.value,
        )
        return TrackListingOutput(channel_id=channel_id, record=record)

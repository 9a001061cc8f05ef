from collections.abc import Callable
from dataclasses import dataclass

import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_data_source import ListingDataSource
from src.application.interfaces.listing_store import ListingStore
from src.application.services.channel_sync import ChannelSync
from src.domain.entities.listing_record import ListingChange, ListingRecord, now_ms
from src.domain.exceptions import ListingNotFoundError
from src.domain.policies.interval_policy import next_interval

logger = structlog.get_logger(__name__)


class ListingNotRefreshableError(Exception):
    def __init__(self, channel_id: str, status: str) -> None:
        self.channel_id = channel_id
        self.status = status
        super().__init__(f"Listing in channel {channel_id} is {status} and can no longer be refreshed.")


@dataclass
class RefreshListingOutput:
    record: ListingRecord
    change: ListingChange


class RefreshListing:
    """
    Use case: user-triggered refresh of one listing, regardless of due-ness.

    Follows the same merge and transition rules as the update engine. A fetch
    failure propagates to the caller and leaves the record untouched.
    """

    def __init__(
        self,
        store: ListingStore,
        data_source: ListingDataSource,
        channel_sync: ChannelSync,
        event_publisher: EventPublisher,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._data_source = data_source
        self._channel_sync = channel_sync
        self._event_publisher = event_publisher
        self._clock = clock

    async def execute(self, channel_id: str, actor_id: str) -> RefreshListingOutput:
        document = await self._store.load()
        record = document.get(channel_id)
        if record is None:
            raise ListingNotFoundError(channel_id)
        if record.status.is_terminal:
            raise ListingNotRefreshableError(channel_id, record.status.value)

        force_ended = next_interval(record.end_time, self._clock()) is None

        # May raise FetchError; let it propagate to the caller
        snapshot = await self._data_source.fetch(record.url)
        checked_at = self._clock()
        changes: list[ListingChange] = []

        def merge(stored: ListingRecord) -> None:
            changes.append(stored.apply_snapshot(snapshot, checked_at, force_ended=force_ended))

        merged = await self._store.update_record(channel_id, merge)
        if merged is None:
            raise ListingNotFoundError(channel_id)

        change = changes[0]
        await self._channel_sync.publish_fetch_result(merged, change)
        await self._event_publisher.publish_many(merged.collect_events())

        logger.info(
            "listing_refreshed",
            channel_id=channel_id,
            actor_id=actor_id,
            price=merged.current_price,
            bid_count=merged.bid_count,
            status=merged.status.value,
        )
        return RefreshListingOutput(record=merged, change=change)

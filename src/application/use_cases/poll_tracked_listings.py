from collections.abc import Callable
from dataclasses import asdict, dataclass

import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_data_source import ListingDataSource
from src.application.interfaces.listing_store import ListingStore
from src.application.services.channel_sync import ChannelSync
from src.domain.entities.listing_record import ListingChange, ListingRecord, now_ms
from src.domain.policies.interval_policy import is_due, next_interval

logger = structlog.get_logger(__name__)


@dataclass
class PollSummary:
    checked: int = 0
    notified: int = 0
    ended: int = 0
    failed: int = 0
    skipped: int = 0


class PollTrackedListings:
    """
    Use case: one tick of the update engine.

    Scans every tracked listing, fetches the ones that are due according to
    the interval policy, merges the snapshot into the store and pushes the
    result to the listing's channel. Records are processed sequentially and
    each inside its own error boundary.
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

    async def execute(self, now: int | None = None) -> PollSummary:
        now = self._clock() if now is None else now
        summary = PollSummary()
        document = await self._store.load()

        for channel_id, record in list(document.listings.items()):
            if record.status.is_polling_excluded:
                summary.skipped += 1
                continue

            interval = next_interval(record.end_time, now)
            deadline_passed = interval is None
            if not deadline_passed and not is_due(record.last_checked, interval, now):
                summary.skipped += 1
                continue

            try:
                change = await self._poll_one(record, force_ended=deadline_passed)
            except Exception as exc:
                summary.failed += 1
                logger.exception(
                    "listing_poll_failed",
                    channel_id=channel_id,
                    url=record.url,
                    deadline_passed=deadline_passed,
                    error=str(exc),
                )
                continue

            if change is None:
                summary.skipped += 1
                continue
            summary.checked += 1
            if change.is_notable:
                summary.notified += 1
            if change.just_ended:
                summary.ended += 1

        logger.info("poll_tick_completed", **asdict(summary))
        return summary

    async def _poll_one(self, record: ListingRecord, *, force_ended: bool) -> ListingChange | None:
        snapshot = await self._data_source.fetch(record.url)
        checked_at = self._clock()
        changes: list[ListingChange] = []

        def merge(stored: ListingRecord) -> None:
            # A manual action may have closed or sold the listing meanwhile
            if stored.status.is_polling_excluded:
                return
            changes.append(stored.apply_snapshot(snapshot, checked_at, force_ended=force_ended))

        merged = await self._store.update_record(record.channel_id, merge)
        if merged is None or not changes:
            logger.info("listing_poll_discarded", channel_id=record.channel_id)
            return None

        change = changes[0]
        logger.info(
            "listing_polled",
            channel_id=merged.channel_id,
            source=merged.source.value,
            price=merged.current_price,
            bid_count=merged.bid_count,
            price_changed=change.price_changed,
            bid_count_changed=change.bid_count_changed,
            just_ended=change.just_ended,
        )

        await self._channel_sync.publish_fetch_result(merged, change)
        await self._event_publisher.publish_many(merged.collect_events())
        return change

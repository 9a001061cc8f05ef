"""Shared fixtures: an in-memory listing store and snapshot/record builders."""
import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.application.interfaces.listing_store import ListingStore
from src.domain.entities.listing_document import ListingDocument
from src.domain.entities.listing_record import ListingRecord
from src.domain.entities.listing_snapshot import ListingSnapshot
from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.listing_type import ListingType
from src.domain.enums.snapshot_source import SnapshotSource

NOW = 1_700_000_000_000


class InMemoryListingStore(ListingStore):
    """Copies on every load/save so callers never share objects with the store."""

    def __init__(self) -> None:
        self.document = ListingDocument()
        self.save_count = 0

    async def load(self) -> ListingDocument:
        return copy.deepcopy(self.document)

    async def save(self, document: ListingDocument) -> None:
        self.save_count += 1
        self.document = copy.deepcopy(document)
        # Real stores serialise fields only; pending events never persist
        for record in self.document.listings.values():
            record.collect_events()

    def seed(self, record: ListingRecord) -> ListingRecord:
        record.collect_events()
        self.document.put(copy.deepcopy(record))
        return record

    def stored(self, channel_id: str) -> ListingRecord | None:
        return self.document.get(channel_id)


def make_snapshot(**overrides) -> ListingSnapshot:
    values = dict(
        title="Vintage Camera",
        current_price="$100.00",
        bid_count=3,
        end_time=NOW + 10 * 60 * 60 * 1000,
        image_url="https://i.ebayimg.com/images/g/abc/s-l1600.jpg",
        description="Works great",
        views=40,
        watchers=5,
        status=ListingStatus.ACTIVE,
        source=SnapshotSource.API,
        listing_type=ListingType.AUCTION,
    )
    values.update(overrides)
    return ListingSnapshot(**values)


def make_record(
    channel_id: str = "1001",
    *,
    status: ListingStatus = ListingStatus.ACTIVE,
    last_checked: int = NOW - 60 * 60 * 1000,
    message_id: str | None = "5001",
    **snapshot_overrides,
) -> ListingRecord:
    record = ListingRecord.create_from_snapshot(
        channel_id=channel_id,
        url=f"https://www.ebay.com/itm/1234567890{channel_id[-1]}",
        owner_id="42",
        snapshot=make_snapshot(**snapshot_overrides),
        checked_at=last_checked,
    )
    record.status = status
    record.message_id = message_id
    record.collect_events()
    return record


@pytest.fixture()
def store() -> InMemoryListingStore:
    return InMemoryListingStore()


@pytest.fixture()
def gateway() -> MagicMock:
    gw = MagicMock()
    gw.post_message = AsyncMock()
    gw.send_embed = AsyncMock(return_value="9001")
    gw.edit_message = AsyncMock()
    gw.message_exists = AsyncMock(return_value=True)
    gw.rename_channel = AsyncMock()
    gw.move_channel = AsyncMock()
    gw.create_listing_channel = AsyncMock(return_value="2001")
    return gw


@pytest.fixture()
def publisher() -> MagicMock:
    pub = MagicMock()
    pub.publish = AsyncMock()
    pub.publish_many = AsyncMock()
    return pub

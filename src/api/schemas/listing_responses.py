from pydantic import BaseModel

from src.domain.entities.listing_record import ListingRecord
from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.listing_type import ListingType
from src.domain.enums.snapshot_source import SnapshotSource


class ListingResponse(BaseModel):
    channel_id: str
    url: str
    owner_id: str
    title: str
    current_price: str
    price_amount: str | None = None
    bid_count: int
    end_time: int | None = None
    image_url: str | None = None
    views: int
    watchers: int
    status: ListingStatus
    source: SnapshotSource
    listing_type: ListingType
    buy_it_now_price: str | None = None
    created_at: int
    status_changed_at: int | None = None
    last_checked: int
    message_id: str | None = None

    @classmethod
    def from_record(cls, record: ListingRecord) -> "ListingResponse":
        return cls(
            channel_id=record.channel_id,
            url=record.url,
            owner_id=record.owner_id,
            title=record.title,
            current_price=record.current_price,
            price_amount=str(record.price_amount) if record.price_amount is not None else None,
            bid_count=record.bid_count,
            end_time=record.end_time,
            image_url=record.image_url,
            views=record.views,
            watchers=record.watchers,
            status=record.status,
            source=record.source,
            listing_type=record.listing_type,
            buy_it_now_price=record.buy_it_now_price,
            created_at=record.created_at,
            status_changed_at=record.status_changed_at,
            last_checked=record.last_checked,
            message_id=record.message_id,
        )


class ListingCollectionResponse(BaseModel):
    listings: list[ListingResponse]
    total: int


class TransitionRequest(BaseModel):
    to_status: ListingStatus
    actor_id: str = "admin_api"


class TransitionResponse(BaseModel):
    channel_id: str
    from_status: ListingStatus
    to_status: ListingStatus

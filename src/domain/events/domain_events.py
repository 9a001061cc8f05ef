from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from src.domain.enums.listing_status import ListingStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ListingTrackedEvent(DomainEvent):
    """Published when a new eBay listing starts being tracked in a channel."""

    channel_id: str = ""
    url: str = ""
    owner_id: str = ""
    title: str = ""
    current_price: str = ""


@dataclass(frozen=True)
class ListingUpdatedEvent(DomainEvent):
    """Published when a fetch changes the price or bid count of a listing."""

    channel_id: str = ""
    old_price: str = ""
    new_price: str = ""
    old_bid_count: int = 0
    new_bid_count: int = 0


@dataclass(frozen=True)
class ListingStatusChangedEvent(DomainEvent):
    """Published whenever a listing transitions between statuses."""

    channel_id: str = ""
    from_status: ListingStatus | None = None
    to_status: ListingStatus = ListingStatus.ACTIVE
    triggered_by: str = ""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from src.domain.entities.listing_snapshot import ListingSnapshot
from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.listing_type import ListingType
from src.domain.enums.snapshot_source import SnapshotSource
from src.domain.events.domain_events import (
    DomainEvent,
    ListingStatusChangedEvent,
    ListingTrackedEvent,
    ListingUpdatedEvent,
)
from src.domain.state_machine.lifecycle_state_machine import LifecycleStateMachine

_state_machine = LifecycleStateMachine()


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ListingChange:
    """Pre-merge vs post-merge values of the fields that drive notifications."""

    old_price: str
    new_price: str
    old_bid_count: int
    new_bid_count: int
    old_status: ListingStatus
    new_status: ListingStatus

    @property
    def price_changed(self) -> bool:
        return self.old_price != self.new_price

    @property
    def bid_count_changed(self) -> bool:
        return self.old_bid_count != self.new_bid_count

    @property
    def just_ended(self) -> bool:
        return self.old_status is ListingStatus.ACTIVE and self.new_status is ListingStatus.ENDED

    @property
    def is_notable(self) -> bool:
        return self.price_changed or self.bid_count_changed or self.just_ended


@dataclass
class ListingRecord:
    """
    A tracked eBay listing, keyed externally by the channel it is posted in.

    All timestamps are epoch milliseconds. Emits domain events on merges and
    status transitions; callers collect and publish them.
    """

    # Identity (immutable after creation)
    channel_id: str
    url: str
    owner_id: str
    created_at: int = field(default_factory=now_ms)

    # Marketplace data (replaced wholesale on every fetch)
    title: str = ""
    current_price: str = ""
    price_amount: Decimal | None = None
    bid_count: int = 0
    end_time: int | None = None
    image_url: str | None = None
    description: str = ""
    views: int = 0
    watchers: int = 0
    source: SnapshotSource = SnapshotSource.SCRAPE
    listing_type: ListingType = ListingType.BUY_IT_NOW
    buy_it_now_price: str | None = None

    # Lifecycle
    status: ListingStatus = ListingStatus.ACTIVE
    status_changed_at: int | None = None
    last_checked: int = 0

    # Discord message carrying the listing embed
    message_id: str | None = None

    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def create_from_snapshot(
        cls,
        *,
        channel_id: str,
        url: str,
        owner_id: str,
        snapshot: ListingSnapshot,
        checked_at: int,
    ) -> "ListingRecord":
        record = cls(channel_id=channel_id, url=url, owner_id=owner_id, created_at=checked_at)
        record._copy_snapshot(snapshot)
        record.last_checked = checked_at
        record._events.append(
            ListingTrackedEvent(
                channel_id=channel_id,
                url=url,
                owner_id=owner_id,
                title=record.title,
                current_price=record.current_price,
            )
        )
        return record

    # -------------------------------------------------------------------------
    # Merge
    # -------------------------------------------------------------------------

    def apply_snapshot(
        self, snapshot: ListingSnapshot, checked_at: int, *, force_ended: bool = False
    ) -> ListingChange:
        """
        Overwrite marketplace fields from a fresh snapshot and return the diff.

        An ACTIVE listing moves to ENDED when the snapshot reports it or when
        force_ended is set (deadline already passed); the move happens once.
        """
        old_price = self.current_price
        old_bid_count = self.bid_count
        old_status = self.status

        self._copy_snapshot(snapshot)
        self.last_checked = max(self.last_checked, checked_at)

        if self.status is ListingStatus.ACTIVE and (
            force_ended or snapshot.status is ListingStatus.ENDED
        ):
            self.transition_to(ListingStatus.ENDED, triggered_by="update_engine", at=checked_at)

        change = ListingChange(
            old_price=old_price,
            new_price=self.current_price,
            old_bid_count=old_bid_count,
            new_bid_count=self.bid_count,
            old_status=old_status,
            new_status=self.status,
        )
        if change.price_changed or change.bid_count_changed:
            self._events.append(
                ListingUpdatedEvent(
                    channel_id=self.channel_id,
                    old_price=old_price,
                    new_price=self.current_price,
                    old_bid_count=old_bid_count,
                    new_bid_count=self.bid_count,
                )
            )
        return change

    def _copy_snapshot(self, snapshot: ListingSnapshot) -> None:
        self.title = snapshot.title
        self.current_price = snapshot.current_price
        self.price_amount = snapshot.price_amount
        self.bid_count = snapshot.bid_count
        self.end_time = snapshot.end_time
        self.image_url = snapshot.image_url
        self.description = snapshot.description
        self.views = snapshot.views
        self.watchers = snapshot.watchers
        self.source = snapshot.source
        self.listing_type = snapshot.listing_type
        self.buy_it_now_price = snapshot.buy_it_now_price

    # -------------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------------

    def transition_to(
        self, new_status: ListingStatus, triggered_by: str, at: int | None = None
    ) -> None:
        """Validate and apply a status transition, recording the domain event."""
        _state_machine.validate_transition(self.status, new_status)

        old_status = self.status
        self.status = new_status
        self.status_changed_at = at if at is not None else now_ms()

        self._events.append(
            ListingStatusChangedEvent(
                channel_id=self.channel_id,
                from_status=old_status,
                to_status=new_status,
                triggered_by=triggered_by,
            )
        )

    # -------------------------------------------------------------------------
    # Event collection
    # -------------------------------------------------------------------------

    def collect_events(self) -> list[DomainEvent]:
        """Return pending events and clear the internal buffer."""
        events = list(self._events)
        self._events.clear()
        return events

    # -------------------------------------------------------------------------
    # Document mapping
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "owner_id": self.owner_id,
            "created_at": self.created_at,
            "title": self.title,
            "current_price": self.current_price,
            "price_amount": str(self.price_amount) if self.price_amount is not None else None,
            "bid_count": self.bid_count,
            "end_time": self.end_time,
            "image_url": self.image_url,
            "description": self.description,
            "views": self.views,
            "watchers": self.watchers,
            "source": self.source.value,
            "listing_type": self.listing_type.value,
            "buy_it_now_price": self.buy_it_now_price,
            "status": self.status.value,
            "status_changed_at": self.status_changed_at,
            "last_checked": self.last_checked,
            "message_id": self.message_id,
        }

    @classmethod
    def from_dict(cls, channel_id: str, data: dict[str, Any]) -> "ListingRecord":
        price_amount = data.get("price_amount")
        return cls(
            channel_id=channel_id,
            url=data["url"],
            owner_id=str(data["owner_id"]),
            created_at=int(data.get("created_at") or 0),
            title=data.get("title") or "",
            current_price=data.get("current_price") or "",
            price_amount=Decimal(price_amount) if price_amount is not None else None,
            bid_count=int(data.get("bid_count") or 0),
            end_time=data.get("end_time"),
            image_url=data.get("image_url"),
            description=data.get("description") or "",
            views=int(data.get("views") or 0),
            watchers=int(data.get("watchers") or 0),
            source=SnapshotSource(data.get("source", SnapshotSource.SCRAPE.value)),
            listing_type=ListingType(data.get("listing_type", ListingType.BUY_IT_NOW.value)),
            buy_it_now_price=data.get("buy_it_now_price"),
            status=ListingStatus(data.get("status", ListingStatus.ACTIVE.value)),
            status_changed_at=data.get("status_changed_at"),
            last_checked=int(data.get("last_checked") or 0),
            message_id=data.get("message_id"),
        )

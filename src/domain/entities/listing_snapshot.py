import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.listing_type import ListingType
from src.domain.enums.snapshot_source import SnapshotSource

_AMOUNT_RE = re.compile(r"\d[\d,]*(?:\.\d+)?")


def parse_price_amount(display_price: str | None) -> Decimal | None:
    """Best-effort numeric value of a display price such as "US $1,204.50"."""
    if not display_price:
        return None
    match = _AMOUNT_RE.search(display_price)
    if match is None:
        return None
    try:
        return Decimal(match.group(0).replace(",", ""))
    except InvalidOperation:
        return None


@dataclass(frozen=True)
class ListingSnapshot:
    """
    Normalised result of a single fetch from the listing data source.

    Prices are opaque display strings; their exact text is what change
    detection compares.
    """

    title: str
    current_price: str
    bid_count: int = 0
    end_time: int | None = None
    image_url: str | None = None
    description: str = ""
    views: int = 0
    watchers: int = 0
    status: ListingStatus = ListingStatus.ACTIVE
    source: SnapshotSource = SnapshotSource.SCRAPE
    listing_type: ListingType = ListingType.BUY_IT_NOW
    buy_it_now_price: str | None = None

    @property
    def price_amount(self) -> Decimal | None:
        return parse_price_amount(self.current_price)

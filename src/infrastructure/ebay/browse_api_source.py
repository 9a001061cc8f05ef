"""Listing data source backed by the eBay Browse API."""
import time

import httpx
import structlog
from bs4 import BeautifulSoup

from src.application.interfaces.listing_data_source import ListingDataSource
from src.domain.entities.listing_snapshot import ListingSnapshot
from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.listing_type import classify_listing_type
from src.domain.enums.snapshot_source import SnapshotSource
from src.domain.exceptions import FetchError, ListingParseError
from src.domain.listing_url import extract_item_id
from src.infrastructure.ebay.normalize import format_money, iso_to_epoch_ms, truncate
from src.infrastructure.ebay.token_cache import EbayTokenCache

logger = structlog.get_logger(__name__)


def parse_browse_item(
    data: dict, *, now_ms: int, description_max_length: int  # type: ignore[type-arg]
) -> ListingSnapshot:
    """Normalise a getItemByLegacyId response into a snapshot."""
    try:
        title = data["title"]
    except KeyError as exc:
        raise ListingParseError("Browse API item has no title") from exc

    options = set(data.get("buyingOptions") or [])
    has_bidding = "AUCTION" in options
    has_buy_it_now = "FIXED_PRICE" in options
    listing_type = classify_listing_type(has_bidding, has_buy_it_now)

    fixed_price = format_money(data.get("price"))
    if has_bidding:
        current_price = format_money(data.get("currentBidPrice")) or fixed_price
        buy_it_now_price = fixed_price if has_buy_it_now else None
    else:
        current_price = fixed_price
        buy_it_now_price = fixed_price
    if current_price is None:
        raise ListingParseError(f"Browse API item {data.get('itemId')} has no price")

    end_time = iso_to_epoch_ms(data["itemEndDate"]) if data.get("itemEndDate") else None

    availabilities = data.get("estimatedAvailabilities") or [{}]
    out_of_stock = availabilities[0].get("estimatedAvailabilityStatus") == "OUT_OF_STOCK"
    ended = (end_time is not None and end_time < now_ms) or (not has_bidding and out_of_stock)

    description = data.get("shortDescription") or ""
    if not description and data.get("description"):
        description = BeautifulSoup(data["description"], "html.parser").get_text(" ", strip=True)

    return ListingSnapshot(
        title=title,
        current_price=current_price,
        bid_count=int(data.get("bidCount") or 0),
        end_time=end_time,
        image_url=(data.get("image") or {}).get("imageUrl"),
        description=truncate(description, description_max_length),
        views=0,
        watchers=0,
        status=ListingStatus.ENDED if ended else ListingStatus.ACTIVE,
        source=SnapshotSource.API,
        listing_type=listing_type,
        buy_it_now_price=buy_it_now_price,
    )


class EbayBrowseApiSource(ListingDataSource):
    """Fetches listings through the Browse API using an application token."""

    def __init__(
        self,
        token_cache: EbayTokenCache,
        *,
        base_url: str = "https://api.ebay.com",
        marketplace_id: str = "EBAY_US",
        timeout: float = 20.0,
        description_max_length: int = 500,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_cache = token_cache
        self._item_url = f"{base_url.rstrip('/')}/buy/browse/v1/item/get_item_by_legacy_id"
        self._marketplace_id = marketplace_id
        self._timeout = timeout
        self._description_max_length = description_max_length
        self._transport = transport

    async def fetch(self, url: str) -> ListingSnapshot:
        item_id = extract_item_id(url)
        token = await self._token_cache.get_token()

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.get(
                    self._item_url,
                    params={"legacy_item_id": item_id},
                    headers={
                        "Authorization": f"Bearer {token}",
                        "X-EBAY-C-MARKETPLACE-ID": self._marketplace_id,
                    },
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code == 401:
                    self._token_cache.invalidate()
                logger.warning(
                    "ebay_api_request_failed",
                    item_id=item_id,
                    status_code=exc.response.status_code,
                )
                raise FetchError(
                    f"Browse API returned {exc.response.status_code} for item {item_id}", url=url
                ) from exc
            except httpx.RequestError as exc:
                raise FetchError(f"Failed to reach Browse API: {exc}", url=url) from exc
            except ValueError as exc:
                raise ListingParseError(f"Browse API returned invalid JSON: {exc}", url=url) from exc

        return parse_browse_item(
            data,
            now_ms=int(time.time() * 1000),
            description_max_length=self._description_max_length,
        )

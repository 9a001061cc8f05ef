"""
Listing data source that scrapes the public eBay item page.

Selectors target the current "x-" item page layout with fallbacks to Open
Graph metadata, which eBay keeps stable across redesigns.
"""
import re
import time

import httpx
import structlog
from bs4 import BeautifulSoup

from src.application.interfaces.listing_data_source import ListingDataSource
from src.domain.entities.listing_snapshot import ListingSnapshot
from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.listing_type import ListingType, classify_listing_type
from src.domain.enums.snapshot_source import SnapshotSource
from src.domain.exceptions import FetchError, ListingParseError
from src.infrastructure.ebay.normalize import (
    collapse_whitespace,
    parse_int,
    timestamp_to_epoch_ms,
    truncate,
)

logger = structlog.get_logger(__name__)

_SCRIPT_END_TIME_RE = re.compile(
    r'"endTime"\s*:\s*(?:\{\s*"value"\s*:\s*)?"?(\d{10,13}|\d{4}-\d{2}-\d{2}T[\d:.]+(?:Z|[+-]\d{2}:?\d{2})?)'
)
_RELATIVE_TIME_RE = re.compile(r"(?:Ends in|Time left:?)\s*((?:\d+\s*[dhms]\s*)+)", re.IGNORECASE)
_RELATIVE_PART_RE = re.compile(r"(\d+)\s*([dhms])", re.IGNORECASE)
_BID_COUNT_RE = re.compile(r"(\d[\d,]*)\s+bids?\b", re.IGNORECASE)
_WATCHERS_RE = re.compile(r"(\d[\d,]*)\s+(?:watchers|watching|people are watching)", re.IGNORECASE)
_VIEWS_RE = re.compile(r"(\d[\d,]*)\s+(?:viewed|views)\b", re.IGNORECASE)
_ENDED_RE = re.compile(
    r"This listing (?:has ended|was ended)|Bidding has ended|This listing sold", re.IGNORECASE
)

_UNIT_MS = {"d": 86_400_000, "h": 3_600_000, "m": 60_000, "s": 1_000}


def _meta(soup: BeautifulSoup, *, prop: str | None = None, name: str | None = None) -> str | None:
    tag = soup.find("meta", attrs={"property": prop} if prop else {"name": name})
    if tag and tag.get("content"):
        return str(tag["content"]).strip()
    return None


def _text(soup: BeautifulSoup, selector: str) -> str | None:
    element = soup.select_one(selector)
    if element is None:
        return None
    text = collapse_whitespace(element.get_text(" ", strip=True))
    return text or None


def parse_relative_duration(text: str) -> int | None:
    """Convert "1d 5h" / "3h 20m" / "45m 10s" style text to milliseconds."""
    parts = _RELATIVE_PART_RE.findall(text)
    if not parts:
        return None
    return sum(int(amount) * _UNIT_MS[unit.lower()] for amount, unit in parts)


def extract_end_time(soup: BeautifulSoup, page_text: str, fetched_at: int) -> int | None:
    """
    Deadline fallback chain: embedded structured timestamp, then DOM countdown
    attribute, then relative display text added to the fetch time.
    """
    for script in soup.find_all("script"):
        match = _SCRIPT_END_TIME_RE.search(script.string or script.get_text() or "")
        if match:
            end_time = timestamp_to_epoch_ms(match.group(1))
            if end_time is not None:
                return end_time

    countdown = soup.select_one("[data-end-time], [data-endtime]")
    if countdown is not None:
        raw = countdown.get("data-end-time") or countdown.get("data-endtime")
        end_time = timestamp_to_epoch_ms(str(raw)) if raw else None
        if end_time is not None:
            return end_time

    timer_text = _text(soup, ".ux-timer__text")
    candidates = [timer_text] if timer_text else []
    relative = _RELATIVE_TIME_RE.search(page_text)
    if relative:
        candidates.append(relative.group(1))
    for candidate in candidates:
        duration = parse_relative_duration(candidate)
        if duration is not None:
            return fetched_at + duration
    return None


def _extract_title(soup: BeautifulSoup) -> str | None:
    title = _text(soup, "h1.x-item-title__mainTitle") or _meta(soup, prop="og:title")
    if title is None and soup.title is not None and soup.title.string:
        title = soup.title.string
    if title is None:
        return None
    return re.sub(r"\s*\|\s*eBay\s*$", "", collapse_whitespace(title)) or None


def _extract_price(soup: BeautifulSoup) -> str | None:
    price = _text(soup, ".x-price-primary") or _text(soup, "#prcIsum") or _text(soup, "#prcIsum_bidPrice")
    if price is None:
        itemprop = soup.select_one("[itemprop=price]")
        if itemprop is not None:
            price = itemprop.get("content") or collapse_whitespace(itemprop.get_text())
    return str(price) if price else None


def parse_listing_page(html: str, *, fetched_at: int, description_max_length: int = 500) -> ListingSnapshot:
    soup = BeautifulSoup(html, "html.parser")
    page_text = collapse_whitespace(soup.get_text(" ", strip=True))

    title = _extract_title(soup)
    if title is None:
        raise ListingParseError("Could not find a listing title on the page")
    price = _extract_price(soup)
    if price is None:
        raise ListingParseError(f"Could not find a price for '{title}'")

    bid_text = _text(soup, ".x-bid-count")
    bid_match = _BID_COUNT_RE.search(bid_text or page_text)
    bid_count = parse_int(bid_match.group(1)) if bid_match else 0

    has_bidding = bool(
        bid_match
        or "place bid" in page_text.lower()
        or soup.select_one("#bidBtn_btn, [data-testid='x-bid-action']") is not None
    )
    has_buy_it_now = "buy it now" in page_text.lower()
    listing_type = classify_listing_type(has_bidding, has_buy_it_now)

    buy_it_now_price = None
    if listing_type is ListingType.AUCTION_WITH_BIN:
        buy_it_now_price = _text(soup, ".x-bin-price .x-price-primary") or _text(soup, ".x-bin-price")
    elif listing_type is ListingType.BUY_IT_NOW:
        buy_it_now_price = price

    watchers_match = _WATCHERS_RE.search(page_text)
    views_match = _VIEWS_RE.search(page_text)
    description = _meta(soup, name="description") or _meta(soup, prop="og:description") or ""

    return ListingSnapshot(
        title=title,
        current_price=price,
        bid_count=bid_count,
        end_time=extract_end_time(soup, page_text, fetched_at),
        image_url=_meta(soup, prop="og:image"),
        description=truncate(description, description_max_length),
        views=parse_int(views_match.group(1)) if views_match else 0,
        watchers=parse_int(watchers_match.group(1)) if watchers_match else 0,
        status=ListingStatus.ENDED if _ENDED_RE.search(page_text) else ListingStatus.ACTIVE,
        source=SnapshotSource.SCRAPE,
        listing_type=listing_type,
        buy_it_now_price=buy_it_now_price,
    )


class EbayPageScrapeSource(ListingDataSource):
    """Fetches the item page over plain HTTP and parses it with BeautifulSoup."""

    def __init__(
        self,
        *,
        user_agent: str,
        timeout: float = 20.0,
        description_max_length: int = 500,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._headers = {
            "User-Agent": user_agent,
            "Accept-Language": "en-US,en;q=0.9",
            "Accept": "text/html,application/xhtml+xml",
        }
        self._timeout = timeout
        self._description_max_length = description_max_length
        self._transport = transport

    async def fetch(self, url: str) -> ListingSnapshot:
        async with httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
            headers=self._headers,
        ) as client:
            try:
                response = await client.get(url)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                logger.warning(
                    "ebay_page_request_failed",
                    url=url,
                    status_code=exc.response.status_code,
                )
                raise FetchError(f"eBay returned {exc.response.status_code} for {url}", url=url) from exc
            except httpx.RequestError as exc:
                raise FetchError(f"Failed to reach eBay: {exc}", url=url) from exc

        fetched_at = int(time.time() * 1000)
        try:
            return parse_listing_page(
                response.text,
                fetched_at=fetched_at,
                description_max_length=self._description_max_length,
            )
        except ListingParseError as exc:
            exc.url = url
            raise

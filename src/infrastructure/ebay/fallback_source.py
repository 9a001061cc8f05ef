import structlog

from src.application.interfaces.listing_data_source import ListingDataSource
from src.domain.entities.listing_snapshot import ListingSnapshot
from src.domain.exceptions import FetchError

logger = structlog.get_logger(__name__)


class FallbackListingDataSource(ListingDataSource):
    """
    Tries each strategy in order and returns the first snapshot produced.

    Any failure of a strategy moves on to the next one; when all fail, a
    FetchError chained to the last underlying cause is raised.
    """

    def __init__(self, strategies: list[ListingDataSource]) -> None:
        if not strategies:
            raise ValueError("At least one listing data source strategy is required.")
        self._strategies = strategies

    async def fetch(self, url: str) -> ListingSnapshot:
        last_error: Exception | None = None
        for strategy in self._strategies:
            try:
                return await strategy.fetch(url)
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "listing_source_failed",
                    strategy=type(strategy).__name__,
                    url=url,
                    error=str(exc),
                )
        raise FetchError(f"All listing sources failed for {url}: {last_error}", url=url) from last_error

from abc import ABC, abstractmethod

from src.domain.entities.listing_snapshot import ListingSnapshot


class ListingDataSource(ABC):
    """Port for fetching a normalised snapshot of an eBay listing."""

    @abstractmethod
    async def fetch(self, url: str) -> ListingSnapshot:
        """Raises FetchError when no snapshot can be produced."""
        ...

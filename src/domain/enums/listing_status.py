from enum import Enum


class ListingStatus(str, Enum):
    """All possible states in a tracked listing's lifecycle."""

    ACTIVE = "active"
    ENDED = "ended"
    SOLD = "sold"
    SHIPPED = "shipped"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        """Terminal states are never polled again."""
        return self in (ListingStatus.SOLD, ListingStatus.SHIPPED, ListingStatus.CLOSED)

    @property
    def is_polling_excluded(self) -> bool:
        """ENDED has already received its final automatic update."""
        return self is not ListingStatus.ACTIVE

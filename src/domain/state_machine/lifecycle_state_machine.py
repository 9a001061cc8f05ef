from src.domain.enums.listing_status import ListingStatus


# Mapping of valid transitions: from_status -> set of allowed to_statuses
VALID_TRANSITIONS: dict[ListingStatus, frozenset[ListingStatus]] = {
    ListingStatus.ACTIVE: frozenset(
        {ListingStatus.ENDED, ListingStatus.SOLD, ListingStatus.SHIPPED, ListingStatus.CLOSED}
    ),
    ListingStatus.ENDED: frozenset(
        {ListingStatus.SOLD, ListingStatus.SHIPPED, ListingStatus.CLOSED}
    ),
    ListingStatus.SOLD: frozenset({ListingStatus.SHIPPED, ListingStatus.CLOSED}),
    # Close is an unconditional override from any open status
    ListingStatus.SHIPPED: frozenset({ListingStatus.CLOSED}),
    ListingStatus.CLOSED: frozenset(),
}


class InvalidStatusTransitionError(Exception):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, from_status: ListingStatus, to_status: ListingStatus) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition from {from_status.value} to {to_status.value}. "
            f"Allowed transitions: {sorted(s.value for s in VALID_TRANSITIONS.get(from_status, frozenset()))}"
        )


class LifecycleStateMachine:
    """
    Validates status transitions for a tracked listing.

    Stateless; call validate_transition() with explicit statuses.
    """

    def can_transition(self, from_status: ListingStatus, to_status: ListingStatus) -> bool:
        """Return True if transitioning from_status → to_status is permitted."""
        return to_status in VALID_TRANSITIONS.get(from_status, frozenset())

    def validate_transition(self, from_status: ListingStatus, to_status: ListingStatus) -> None:
        """Raise InvalidStatusTransitionError if the transition is not permitted."""
        if not self.can_transition(from_status, to_status):
            raise InvalidStatusTransitionError(from_status, to_status)

    def get_allowed_transitions(self, from_status: ListingStatus) -> frozenset[ListingStatus]:
        """Return the set of statuses reachable from from_status."""
        return VALID_TRANSITIONS.get(from_status, frozenset())

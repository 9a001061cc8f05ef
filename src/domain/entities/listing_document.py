from dataclasses import dataclass, field
from typing import Any

from src.domain.entities.listing_record import ListingRecord


@dataclass
class ListingDocument:
    """The whole persisted store: every tracked listing keyed by channel id."""

    listings: dict[str, ListingRecord] = field(default_factory=dict)
    panel_message_id: str | None = None
    # Raw entries that could not be parsed; written back untouched on save
    unreadable: dict[str, Any] = field(default_factory=dict)

    def get(self, channel_id: str) -> ListingRecord | None:
        return self.listings.get(channel_id)

    def put(self, record: ListingRecord) -> None:
        self.listings[record.channel_id] = record
        self.unreadable.pop(record.channel_id, None)

    def find_open_by_url(self, url: str) -> ListingRecord | None:
        """Return a non-closed record already tracking url, if any."""
        for record in self.listings.values():
            if record.url == url and not record.status.is_terminal:
                return record
        return None

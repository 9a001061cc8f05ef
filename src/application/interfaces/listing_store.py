from abc import ABC, abstractmethod
from collections.abc import Callable

from src.domain.entities.listing_document import ListingDocument
from src.domain.entities.listing_record import ListingRecord

RecordMutation = Callable[[ListingRecord], None]


class ListingStore(ABC):
    """
    Port for the durable channel-id → ListingRecord mapping.

    Granularity is the whole document: load() returns everything and save()
    writes everything back. load() never raises; a missing or unreadable
    document yields an empty one.
    """

    @abstractmethod
    async def load(self) -> ListingDocument:
        ...

    @abstractmethod
    async def save(self, document: ListingDocument) -> None:
        """Raises PersistenceError when the document cannot be written."""
        ...

    async def update_record(
        self, channel_id: str, mutate: RecordMutation
    ) -> ListingRecord | None:
        """
        Re-read the store, apply mutate to one record and write it back.

        Returns the mutated record, or None if the channel is not tracked.
        """
        document = await self.load()
        record = document.get(channel_id)
        if record is None:
            return None
        mutate(record)
        await self.save(document)
        return record

    async def insert_record(self, record: ListingRecord) -> None:
        document = await self.load()
        document.put(record)
        await self.save(document)

    async def set_panel_message_id(self, message_id: str | None) -> None:
        document = await self.load()
        document.panel_message_id = message_id
        await self.save(document)

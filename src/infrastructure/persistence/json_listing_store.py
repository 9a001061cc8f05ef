"""
JSON-file listing store.

The whole document is read and rewritten on every mutation. Writes go to a
temporary file first and are swapped in with os.replace, so a crash mid-write
never leaves a truncated document behind.
"""
import asyncio
import json
import os
from pathlib import Path
from typing import Any

import structlog

from src.application.interfaces.listing_store import ListingStore, RecordMutation
from src.domain.entities.listing_document import ListingDocument
from src.domain.entities.listing_record import ListingRecord
from src.domain.exceptions import PersistenceError

logger = structlog.get_logger(__name__)


def document_from_dict(data: dict[str, Any]) -> ListingDocument:
    """
    Build a document from parsed JSON.

    Raises ValueError when the listings section is not an object. Individual
    records that cannot be parsed are kept raw in document.unreadable so a
    later save() writes them back instead of dropping them.
    """
    listings = data.get("listings") or {}
    if not isinstance(listings, dict):
        raise ValueError("listings is not an object")

    panel_message_id = data.get("panel_message_id")
    document = ListingDocument(
        panel_message_id=str(panel_message_id) if panel_message_id is not None else None
    )
    for channel_id, raw in listings.items():
        try:
            document.put(ListingRecord.from_dict(str(channel_id), raw))
        except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as exc:
            logger.error("listing_record_unreadable", channel_id=channel_id, error=str(exc))
            document.unreadable[str(channel_id)] = raw
    return document


def document_to_dict(document: ListingDocument) -> dict[str, Any]:
    listings: dict[str, Any] = dict(document.unreadable)
    listings.update(
        (channel_id, record.to_dict()) for channel_id, record in document.listings.items()
    )
    return {
        "panel_message_id": document.panel_message_id,
        "listings": listings,
    }


class JsonFileListingStore(ListingStore):
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        # Serialises read-modify-write sequences issued from this process
        self._lock = asyncio.Lock()

    async def load(self) -> ListingDocument:
        return await asyncio.to_thread(self._read)

    async def save(self, document: ListingDocument) -> None:
        await asyncio.to_thread(self._write, document)

    async def update_record(
        self, channel_id: str, mutate: RecordMutation
    ) -> ListingRecord | None:
        async with self._lock:
            return await super().update_record(channel_id, mutate)

    async def insert_record(self, record: ListingRecord) -> None:
        async with self._lock:
            await super().insert_record(record)

    async def set_panel_message_id(self, message_id: str | None) -> None:
        async with self._lock:
            await super().set_panel_message_id(message_id)

    def _read(self) -> ListingDocument:
        if not self._path.exists():
            return ListingDocument()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("top-level JSON value is not an object")
            return document_from_dict(data)
        except (OSError, ValueError) as exc:
            error = PersistenceError(f"Could not read {self._path}: {exc}")
            logger.error("listing_store_load_failed", path=str(self._path), error=str(error))
            return ListingDocument()

    def _write(self, document: ListingDocument) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(document_to_dict(document), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(tmp_path, self._path)
        except OSError as exc:
            logger.error("listing_store_save_failed", path=str(self._path), error=str(exc))
            raise PersistenceError(f"Could not write {self._path}: {exc}") from exc

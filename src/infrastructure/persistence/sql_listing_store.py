"""
SQLAlchemy-backed listing store.

Offers the same whole-document contract as the JSON store, but
update_record() runs as a single transaction on one row, so a manual action
and the update engine cannot overwrite each other's change to a record.
"""
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
import structlog

from src.application.interfaces.listing_store import ListingStore, RecordMutation
from src.domain.entities.listing_document import ListingDocument
from src.domain.entities.listing_record import ListingRecord
from src.domain.exceptions import PersistenceError
from src.infrastructure.database.connection import Base, create_session_factory
from src.infrastructure.database.models import BotStateModel, ListingRecordModel

logger = structlog.get_logger(__name__)

_PANEL_MESSAGE_KEY = "panel_message_id"


def _apply_to_model(model: ListingRecordModel, record: ListingRecord) -> None:
    model.url = record.url
    model.owner_id = record.owner_id
    model.status = record.status.value
    model.last_checked = record.last_checked
    model.payload = record.to_dict()


def _to_model(record: ListingRecord) -> ListingRecordModel:
    model = ListingRecordModel(channel_id=record.channel_id)
    _apply_to_model(model, record)
    return model


class SqlAlchemyListingStore(ListingStore):
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = create_session_factory(engine)

    async def init_schema(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def load(self) -> ListingDocument:
        try:
            async with self._session_factory() as session:
                rows = (await session.execute(select(ListingRecordModel))).scalars().all()
                panel = await session.get(BotStateModel, _PANEL_MESSAGE_KEY)
        except SQLAlchemyError as exc:
            logger.error("listing_store_load_failed", error=str(exc))
            return ListingDocument()

        document = ListingDocument(panel_message_id=panel.value if panel else None)
        for row in rows:
            try:
                document.put(ListingRecord.from_dict(row.channel_id, row.payload))
            except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as exc:
                logger.error("listing_record_unreadable", channel_id=row.channel_id, error=str(exc))
                document.unreadable[row.channel_id] = row.payload
        return document

    async def save(self, document: ListingDocument) -> None:
        # Rows are only ever upserted, so unreadable rows stay as they are
        try:
            async with self._session_factory() as session, session.begin():
                for record in document.listings.values():
                    await self._upsert(session, record)
                await session.merge(
                    BotStateModel(key=_PANEL_MESSAGE_KEY, value=document.panel_message_id)
                )
        except SQLAlchemyError as exc:
            logger.error("listing_store_save_failed", error=str(exc))
            raise PersistenceError(f"Could not save listing document: {exc}") from exc

    async def update_record(
        self, channel_id: str, mutate: RecordMutation
    ) -> ListingRecord | None:
        try:
            async with self._session_factory() as session, session.begin():
                model = await session.get(ListingRecordModel, channel_id, with_for_update=True)
                if model is None:
                    return None
                record = ListingRecord.from_dict(channel_id, model.payload)
                mutate(record)
                _apply_to_model(model, record)
                return record
        except SQLAlchemyError as exc:
            logger.error("listing_record_update_failed", channel_id=channel_id, error=str(exc))
            raise PersistenceError(f"Could not update listing {channel_id}: {exc}") from exc

    async def insert_record(self, record: ListingRecord) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                await self._upsert(session, record)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not insert listing {record.channel_id}: {exc}") from exc

    async def set_panel_message_id(self, message_id: str | None) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                await session.merge(BotStateModel(key=_PANEL_MESSAGE_KEY, value=message_id))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not store panel message id: {exc}") from exc

    @staticmethod
    async def _upsert(session: AsyncSession, record: ListingRecord) -> None:
        model = await session.get(ListingRecordModel, record.channel_id)
        if model is None:
            session.add(_to_model(record))
        else:
            _apply_to_model(model, record)

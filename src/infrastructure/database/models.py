"""
SQLAlchemy ORM models.

The full record lives in the JSON payload column; status, url and
last_checked are duplicated into indexed columns for filtering.
"""
from datetime import datetime, timezone

from sqlalchemy import JSON, BigInteger, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.connection import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ListingRecordModel(Base):
    __tablename__ = "listing_records"

    channel_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    url: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    last_checked: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)  # type: ignore[type-arg]

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )


class BotStateModel(Base):
    """Document-level values that do not belong to a single listing."""

    __tablename__ = "bot_state"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str | None] = mapped_column(String(256), nullable=True)

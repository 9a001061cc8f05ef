"""
RabbitMQ event publisher.

Uses pika in a thread-pool executor so blocking I/O doesn't stall the
bot's event loop. A new connection is opened per publish call; listing
events are infrequent (a few per tick at most).
"""
import asyncio
import json
from functools import partial
from typing import Any

import pika
import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.domain.events.domain_events import (
    DomainEvent,
    ListingStatusChangedEvent,
    ListingTrackedEvent,
    ListingUpdatedEvent,
)

logger = structlog.get_logger(__name__)

EXCHANGE_NAME = "listing_tracker.events"


def event_to_routing_key(event: DomainEvent) -> str:
    if isinstance(event, ListingStatusChangedEvent):
        return f"listing.status.{event.to_status.value}"
    if isinstance(event, ListingUpdatedEvent):
        return "listing.updated"
    if isinstance(event, ListingTrackedEvent):
        return "listing.tracked"
    return "event.unknown"


def serialise_event(event: DomainEvent) -> str:
    payload: dict[str, Any] = {
        "event_type": event_to_routing_key(event),
        "event_id": str(event.event_id),
        "occurred_at": event.occurred_at.isoformat(),
    }

    if isinstance(event, ListingStatusChangedEvent):
        payload.update(
            {
                "channel_id": event.channel_id,
                "from_status": event.from_status.value if event.from_status else None,
                "to_status": event.to_status.value,
                "triggered_by": event.triggered_by,
            }
        )
    elif isinstance(event, ListingUpdatedEvent):
        payload.update(
            {
                "channel_id": event.channel_id,
                "old_price": event.old_price,
                "new_price": event.new_price,
                "old_bid_count": event.old_bid_count,
                "new_bid_count": event.new_bid_count,
            }
        )
    elif isinstance(event, ListingTrackedEvent):
        payload.update(
            {
                "channel_id": event.channel_id,
                "url": event.url,
                "owner_id": event.owner_id,
                "title": event.title,
                "current_price": event.current_price,
            }
        )

    return json.dumps(payload, default=str)


def _blocking_publish(rabbitmq_url: str, routing_key: str, body: str) -> None:
    connection = pika.BlockingConnection(pika.URLParameters(rabbitmq_url))
    try:
        channel = connection.channel()
        channel.exchange_declare(
            exchange=EXCHANGE_NAME, exchange_type="topic", durable=True
        )
        channel.basic_publish(
            exchange=EXCHANGE_NAME,
            routing_key=routing_key,
            body=body.encode(),
            properties=pika.BasicProperties(
                delivery_mode=pika.DeliveryMode.Persistent,
                content_type="application/json",
            ),
        )
    finally:
        connection.close()


class RabbitMQPublisher(EventPublisher):
    """Publishes listing events to a RabbitMQ topic exchange."""

    def __init__(self, rabbitmq_url: str) -> None:
        self._url = rabbitmq_url

    async def publish(self, event: DomainEvent) -> None:
        routing_key = event_to_routing_key(event)
        body = serialise_event(event)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                partial(_blocking_publish, self._url, routing_key, body),
            )
            logger.debug("event_published", routing_key=routing_key, event_id=str(event.event_id))
        except Exception as exc:
            logger.error(
                "failed_to_publish_event",
                routing_key=routing_key,
                error=str(exc),
            )
            # Don't re-raise: event publishing failure must not fail the listing update.

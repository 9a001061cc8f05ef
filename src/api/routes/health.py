import asyncio

import pika
from fastapi import APIRouter, Depends

from src.api.dependencies import get_listing_store, get_settings
from src.application.interfaces.listing_store import ListingStore
from src.config import Settings

router = APIRouter(tags=["health"])


def _check_rabbitmq(url: str) -> None:
    connection = pika.BlockingConnection(pika.URLParameters(url))
    connection.close()


@router.get("/health")
async def health_check(
    store: ListingStore = Depends(get_listing_store),
    app_settings: Settings = Depends(get_settings),
) -> dict:  # type: ignore[type-arg]
    """Liveness + dependency health check."""
    store_status = "connected"
    tracked = 0
    try:
        document = await store.load()
        tracked = len(document.listings)
    except Exception as exc:
        store_status = f"error: {exc}"

    # RabbitMQ is optional; a lightweight connection attempt when configured
    rabbitmq_status = "disabled"
    if app_settings.rabbitmq_url:
        rabbitmq_status = "connected"
        try:
            await asyncio.to_thread(_check_rabbitmq, app_settings.rabbitmq_url)
        except Exception as exc:
            rabbitmq_status = f"error: {exc}"

    healthy = store_status == "connected" and rabbitmq_status in ("connected", "disabled")

    return {
        "status": "healthy" if healthy else "degraded",
        "store": store_status,
        "rabbitmq": rabbitmq_status,
        "tracked_listings": tracked,
    }

"""
Composition root shared by the Discord bot and the HTTP API.

Each builder returns a fully-constructed adapter chosen from settings, so
the delivery layers never import infrastructure classes directly.
"""
from dataclasses import dataclass

import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_data_source import ListingDataSource
from src.application.interfaces.listing_store import ListingStore
from src.application.interfaces.messaging_gateway import MessagingGateway
from src.application.services.channel_sync import ChannelSync
from src.application.use_cases.ensure_intake_panel import EnsureIntakePanel
from src.application.use_cases.poll_tracked_listings import PollTrackedListings
from src.application.use_cases.refresh_listing import RefreshListing
from src.application.use_cases.track_listing import TrackListing
from src.application.use_cases.transition_listing_status import TransitionListingStatus
from src.config import Settings
from src.infrastructure.database.connection import create_engine_for
from src.infrastructure.ebay.browse_api_source import EbayBrowseApiSource
from src.infrastructure.ebay.fallback_source import FallbackListingDataSource
from src.infrastructure.ebay.page_scrape_source import EbayPageScrapeSource
from src.infrastructure.ebay.token_cache import EbayTokenCache
from src.infrastructure.messaging.noop_publisher import NoOpEventPublisher
from src.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher
from src.infrastructure.persistence.json_listing_store import JsonFileListingStore
from src.infrastructure.persistence.sql_listing_store import SqlAlchemyListingStore

logger = structlog.get_logger(__name__)


def build_store(settings: Settings) -> ListingStore:
    if settings.store_backend == "sql":
        return SqlAlchemyListingStore(create_engine_for(settings.database_url))
    if settings.store_backend != "json":
        raise ValueError(f"Unknown store_backend {settings.store_backend!r}")
    return JsonFileListingStore(settings.data_file)


async def prepare_store(store: ListingStore) -> None:
    if isinstance(store, SqlAlchemyListingStore):
        await store.init_schema()


def build_data_source(settings: Settings) -> ListingDataSource:
    scrape = EbayPageScrapeSource(
        user_agent=settings.scrape_user_agent,
        timeout=settings.http_timeout_seconds,
        description_max_length=settings.description_max_length,
    )
    if not settings.ebay_api_configured:
        logger.info("ebay_api_disabled_using_scrape_only")
        return FallbackListingDataSource([scrape])

    assert settings.ebay_client_id and settings.ebay_client_secret
    token_cache = EbayTokenCache(
        settings.ebay_client_id,
        settings.ebay_client_secret,
        base_url=settings.ebay_api_base_url,
        scope=settings.ebay_oauth_scope,
        timeout=settings.http_timeout_seconds,
    )
    api = EbayBrowseApiSource(
        token_cache,
        base_url=settings.ebay_api_base_url,
        marketplace_id=settings.ebay_marketplace_id,
        timeout=settings.http_timeout_seconds,
        description_max_length=settings.description_max_length,
    )
    return FallbackListingDataSource([api, scrape])


def build_event_publisher(settings: Settings) -> EventPublisher:
    if settings.rabbitmq_url:
        return RabbitMQPublisher(settings.rabbitmq_url)
    return NoOpEventPublisher()


@dataclass
class UseCases:
    poll: PollTrackedListings
    refresh: RefreshListing
    transition: TransitionListingStatus
    track: TrackListing
    panel: EnsureIntakePanel | None = None


def build_use_cases(
    settings: Settings,
    store: ListingStore,
    data_source: ListingDataSource,
    gateway: MessagingGateway,
    event_publisher: EventPublisher,
) -> UseCases:
    channel_sync = ChannelSync(gateway, store, settings.category_by_status)
    return UseCases(
        poll=PollTrackedListings(store, data_source, channel_sync, event_publisher),
        refresh=RefreshListing(store, data_source, channel_sync, event_publisher),
        transition=TransitionListingStatus(store, channel_sync, event_publisher),
        track=TrackListing(
            store,
            data_source,
            gateway,
            event_publisher,
            listing_category_id=settings.listing_category_id,
        ),
        panel=(
            EnsureIntakePanel(store, gateway, settings.intake_channel_id)
            if settings.intake_channel_id
            else None
        ),
    )

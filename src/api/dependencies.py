"""
FastAPI dependency injection wiring.

The bot process attaches its already-built collaborators to ``app.state``
so the API shares the same store, gateway and event publisher as the
update engine. Route handlers only ever see the ports.
"""
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_store import ListingStore
from src.application.use_cases.transition_listing_status import TransitionListingStatus
from src.config import Settings, settings


@dataclass
class ApiServices:
    store: ListingStore
    event_publisher: EventPublisher
    transition: TransitionListingStatus | None = None


# ---- Low-level dependencies ------------------------------------------------

def get_settings() -> Settings:
    return settings


def get_services(request: Request) -> ApiServices:
    services: ApiServices | None = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Listing services are not initialised.",
        )
    return services


def get_listing_store(services: ApiServices = Depends(get_services)) -> ListingStore:
    return services.store


def get_event_publisher(services: ApiServices = Depends(get_services)) -> EventPublisher:
    return services.event_publisher


# ---- Use-case dependencies -------------------------------------------------

def get_transition_use_case(
    services: ApiServices = Depends(get_services),
) -> TransitionListingStatus:
    if services.transition is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Status transitions need a connected Discord gateway.",
        )
    return services.transition

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.dependencies import get_listing_store, get_transition_use_case
from src.api.schemas.listing_responses import (
    ListingCollectionResponse,
    ListingResponse,
    TransitionRequest,
    TransitionResponse,
)
from src.application.interfaces.listing_store import ListingStore
from src.application.use_cases.transition_listing_status import (
    TransitionListingStatus,
    TransitionListingStatusInput,
)
from src.domain.enums.listing_status import ListingStatus
from src.domain.exceptions import ListingNotFoundError
from src.domain.state_machine.lifecycle_state_machine import InvalidStatusTransitionError

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/listings", response_model=ListingCollectionResponse)
async def list_listings(
    listing_status: ListingStatus | None = Query(default=None, alias="status"),
    store: ListingStore = Depends(get_listing_store),
) -> ListingCollectionResponse:
    """List tracked listings, optionally filtered by status."""
    document = await store.load()
    records = [
        record
        for record in document.listings.values()
        if listing_status is None or record.status is listing_status
    ]
    records.sort(key=lambda record: record.created_at)
    return ListingCollectionResponse(
        listings=[ListingResponse.from_record(record) for record in records],
        total=len(records),
    )


@router.get("/listings/{channel_id}", response_model=ListingResponse)
async def get_listing(
    channel_id: str,
    store: ListingStore = Depends(get_listing_store),
) -> ListingResponse:
    document = await store.load()
    record = document.get(channel_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found.")
    return ListingResponse.from_record(record)


@router.post("/listings/{channel_id}/transition", response_model=TransitionResponse)
async def transition_listing(
    channel_id: str,
    body: TransitionRequest,
    use_case: TransitionListingStatus = Depends(get_transition_use_case),
) -> TransitionResponse:
    """Manually move a listing along its lifecycle (sold, shipped, closed)."""
    try:
        result = await use_case.execute(
            TransitionListingStatusInput(
                channel_id=channel_id,
                to_status=body.to_status,
                actor_id=body.actor_id,
            )
        )
    except ListingNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found.")
    except InvalidStatusTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    return TransitionResponse(
        channel_id=result.channel_id,
        from_status=result.from_status,
        to_status=result.to_status,
    )

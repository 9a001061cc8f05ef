"""
eBay Marketplace Account Deletion endpoint.

eBay requires every application using its APIs to expose this endpoint.
The GET handshake proves ownership of the endpoint; POST delivers the
actual deletion notifications. No eBay user data is stored, so a
notification only needs to be acknowledged.
"""
import hashlib
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from src.api.dependencies import get_settings
from src.config import Settings

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/ebay", tags=["ebay"])


def compute_challenge_response(challenge_code: str, verification_token: str, endpoint_url: str) -> str:
    digest = hashlib.sha256()
    digest.update(challenge_code.encode("utf-8"))
    digest.update(verification_token.encode("utf-8"))
    digest.update(endpoint_url.encode("utf-8"))
    return digest.hexdigest()


@router.get("/deletion")
async def deletion_challenge(
    challenge_code: str | None = Query(default=None),
    app_settings: Settings = Depends(get_settings),
) -> dict[str, str]:
    if not challenge_code:
        return {"status": "Endpoint active"}

    if not app_settings.ebay_verification_token or not app_settings.ebay_deletion_endpoint_url:
        logger.error("ebay_deletion_endpoint_not_configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Deletion endpoint is not configured.",
        )

    logger.info("ebay_deletion_challenge_received")
    return {
        "challengeResponse": compute_challenge_response(
            challenge_code,
            app_settings.ebay_verification_token,
            app_settings.ebay_deletion_endpoint_url,
        )
    }


@router.post("/deletion")
async def deletion_notification(
    payload: dict[str, Any] = Body(default_factory=dict),
) -> dict[str, str]:
    notification = payload.get("notification") or {}
    data = notification.get("data") or {}
    logger.info(
        "ebay_account_deletion_received",
        notification_id=notification.get("notificationId"),
        topic=(payload.get("metadata") or {}).get("topic"),
        user_id=data.get("userId"),
    )
    return {"status": "received"}

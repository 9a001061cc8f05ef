"""OAuth application-token cache for the eBay Browse API."""
import asyncio
import time
from collections.abc import Callable

import httpx
import structlog

from src.domain.exceptions import EbayAuthError

logger = structlog.get_logger(__name__)


class EbayTokenCache:
    """
    Holds one client-credentials access token and refreshes it on demand.

    Tokens are treated as expired EXPIRY_MARGIN_SECONDS before eBay says so,
    so a request never goes out with a token that lapses in flight.
    """

    EXPIRY_MARGIN_SECONDS = 60.0

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        base_url: str = "https://api.ebay.com",
        scope: str = "https://api.ebay.com/oauth/api_scope",
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = f"{base_url.rstrip('/')}/identity/v1/oauth2/token"
        self._scope = scope
        self._timeout = timeout
        self._transport = transport
        self._clock = clock
        self._lock = asyncio.Lock()
        self.access_token: str | None = None
        self.expires_at: float = 0.0

    def is_expired(self, now: float | None = None) -> bool:
        if self.access_token is None:
            return True
        now = self._clock() if now is None else now
        return now >= self.expires_at - self.EXPIRY_MARGIN_SECONDS

    def invalidate(self) -> None:
        self.access_token = None
        self.expires_at = 0.0

    async def get_token(self) -> str:
        async with self._lock:
            if self.is_expired():
                await self._refresh()
            assert self.access_token is not None
            return self.access_token

    async def _refresh(self) -> None:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    self._token_url,
                    data={"grant_type": "client_credentials", "scope": self._scope},
                    auth=(self._client_id, self._client_secret),
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
                response.raise_for_status()
                data = response.json()
                token = data["access_token"]
                expires_in = float(data.get("expires_in", 7200))
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "ebay_token_request_failed",
                    status_code=exc.response.status_code,
                    response=exc.response.text[:500],
                )
                raise EbayAuthError(
                    f"eBay OAuth returned {exc.response.status_code}"
                ) from exc
            except httpx.RequestError as exc:
                raise EbayAuthError(f"Failed to reach eBay OAuth: {exc}") from exc
            except (KeyError, ValueError) as exc:
                raise EbayAuthError(f"Malformed eBay OAuth response: {exc}") from exc

        self.access_token = token
        self.expires_at = self._clock() + expires_in
        logger.info("ebay_token_refreshed", expires_in=expires_in)

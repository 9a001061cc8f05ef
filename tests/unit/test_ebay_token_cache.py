"""Unit tests for the eBay OAuth token cache, using httpx.MockTransport."""
import httpx
import pytest

from src.domain.exceptions import EbayAuthError
from src.infrastructure.ebay.token_cache import EbayTokenCache


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _token_transport(calls: list[httpx.Request], *, status_code: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if status_code != 200:
            return httpx.Response(status_code, json={"error": "invalid_client"})
        return httpx.Response(200, json={"access_token": f"token-{len(calls)}", "expires_in": 7200})

    return httpx.MockTransport(handler)


def _make_cache(calls: list[httpx.Request], clock: FakeClock, **kwargs) -> EbayTokenCache:
    return EbayTokenCache(
        "client-id",
        "client-secret",
        transport=_token_transport(calls, **kwargs),
        clock=clock,
    )


class TestEbayTokenCache:
    @pytest.mark.asyncio
    async def test_fetches_token_with_client_credentials(self) -> None:
        calls: list[httpx.Request] = []
        cache = _make_cache(calls, FakeClock())

        token = await cache.get_token()

        assert token == "token-1"
        request = calls[0]
        assert request.url.path == "/identity/v1/oauth2/token"
        assert b"grant_type=client_credentials" in request.content
        assert request.headers["Authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_reuses_unexpired_token(self) -> None:
        calls: list[httpx.Request] = []
        clock = FakeClock()
        cache = _make_cache(calls, clock)

        await cache.get_token()
        clock.now += 3600
        token = await cache.get_token()

        assert token == "token-1"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_refreshes_token_inside_expiry_margin(self) -> None:
        calls: list[httpx.Request] = []
        clock = FakeClock()
        cache = _make_cache(calls, clock)

        await cache.get_token()
        clock.now += 7200 - EbayTokenCache.EXPIRY_MARGIN_SECONDS
        token = await cache.get_token()

        assert token == "token-2"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_invalidate_forces_refresh(self) -> None:
        calls: list[httpx.Request] = []
        cache = _make_cache(calls, FakeClock())

        await cache.get_token()
        cache.invalidate()
        assert cache.is_expired() is True
        assert await cache.get_token() == "token-2"

    @pytest.mark.asyncio
    async def test_rejected_credentials_raise_auth_error(self) -> None:
        calls: list[httpx.Request] = []
        cache = _make_cache(calls, FakeClock(), status_code=401)

        with pytest.raises(EbayAuthError):
            await cache.get_token()
        assert cache.access_token is None

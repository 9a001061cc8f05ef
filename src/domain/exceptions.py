"""
Error taxonomy shared by the domain, application and infrastructure layers.

Adapters wrap library-specific failures (httpx, discord, sqlalchemy) in these
types so the application layer never has to know which backend raised.
"""


class FetchError(Exception):
    """The listing data source could not produce a snapshot."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        self.url = url
        super().__init__(message)


class EbayAuthError(FetchError):
    """OAuth token could not be obtained from eBay."""


class ListingParseError(FetchError):
    """A response was received but could not be normalised into a snapshot."""


class InvalidListingUrlError(ValueError):
    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Not a recognisable eBay listing URL: {url}")


class PersistenceError(Exception):
    """The listing store could not be read or written."""


class GatewayError(Exception):
    """A messaging-gateway operation (send, edit, rename, move) failed."""

    def __init__(self, operation: str, channel_id: str, message: str) -> None:
        self.operation = operation
        self.channel_id = channel_id
        super().__init__(f"{operation} failed for channel {channel_id}: {message}")


class MessageNotFoundError(GatewayError):
    """The message being edited no longer exists."""


class ListingNotFoundError(Exception):
    def __init__(self, channel_id: str) -> None:
        self.channel_id = channel_id
        super().__init__(f"No tracked listing for channel {channel_id}.")


class ListingAlreadyTrackedError(Exception):
    def __init__(self, url: str, channel_id: str) -> None:
        self.url = url
        self.channel_id = channel_id
        super().__init__(f"{url} is already tracked in channel {channel_id}.")

import re
from urllib.parse import urlsplit

from src.domain.exceptions import InvalidListingUrlError

CANONICAL_ITEM_URL = "https://www.ebay.com/itm/{item_id}"

# /itm/123456789012 or /itm/some-title-slug/123456789012
_ITEM_PATH_RE = re.compile(r"/itm/(?:[^/]+/)?(\d{9,15})(?:[/?#]|$)")

# ebay.com, www.ebay.co.uk, m.ebay.de, ...
_EBAY_HOST_RE = re.compile(
    r"(?:^|\.)ebay\.(?:co\.uk|com\.au|com\.hk|com\.my|com\.sg|com|ca|de|fr|it|es|at|ch|ie|nl|be|pl|ph|in)$"
)


def extract_item_id(url: str) -> str:
    parts = urlsplit(url.strip())
    host = (parts.hostname or "").lower()
    if not _EBAY_HOST_RE.search(host):
        raise InvalidListingUrlError(url)
    match = _ITEM_PATH_RE.search(parts.path + "/")
    if match is None:
        raise InvalidListingUrlError(url)
    return match.group(1)


def canonicalize_listing_url(url: str) -> str:
    """Strip tracking parameters and regional variations from an item URL."""
    return CANONICAL_ITEM_URL.format(item_id=extract_item_id(url))

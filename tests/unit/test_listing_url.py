import pytest

from src.domain.exceptions import InvalidListingUrlError
from src.domain.listing_url import canonicalize_listing_url, extract_item_id


class TestExtractItemId:
    def test_plain_item_url(self) -> None:
        assert extract_item_id("https://www.ebay.com/itm/123456789012") == "123456789012"

    def test_slugged_url_with_tracking_params(self) -> None:
        url = "https://www.ebay.co.uk/itm/Canon-AE-1-Program/285123456789?hash=item42&var=0"
        assert extract_item_id(url) == "285123456789"

    def test_bare_ebay_host(self) -> None:
        assert extract_item_id("https://ebay.com/itm/123456789012/") == "123456789012"

    def test_mobile_regional_host(self) -> None:
        assert extract_item_id("https://m.ebay.com.au/itm/123456789012") == "123456789012"

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.example.com/itm/123456789012",
            "https://notebay.com/itm/123456789012",
            "https://ebay.com.attacker.io/itm/123456789012",
            "https://www.ebay.evil.example/itm/123456789012",
            "https://www.ebay.com/sch/i.html?_nkw=camera",
            "https://www.ebay.com/itm/12345",
            "not a url",
        ],
    )
    def test_rejects_non_listing_urls(self, url: str) -> None:
        with pytest.raises(InvalidListingUrlError):
            extract_item_id(url)


def test_canonical_url_drops_region_and_query() -> None:
    url = "https://www.ebay.de/itm/Leica-M6/285123456789?_trkparms=abc"
    assert canonicalize_listing_url(url) == "https://www.ebay.com/itm/285123456789"

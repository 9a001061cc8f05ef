from enum import Enum


class ListingType(str, Enum):
    AUCTION = "auction"
    BUY_IT_NOW = "buy_it_now"
    AUCTION_WITH_BIN = "auction_with_bin"

    @property
    def accepts_bids(self) -> bool:
        return self in (ListingType.AUCTION, ListingType.AUCTION_WITH_BIN)

    @property
    def has_buy_it_now(self) -> bool:
        return self in (ListingType.BUY_IT_NOW, ListingType.AUCTION_WITH_BIN)


def classify_listing_type(has_bidding: bool, has_buy_it_now: bool) -> ListingType:
    """Best-effort classification from the affordances a listing exhibits."""
    if has_bidding and has_buy_it_now:
        return ListingType.AUCTION_WITH_BIN
    if has_bidding:
        return ListingType.AUCTION
    return ListingType.BUY_IT_NOW

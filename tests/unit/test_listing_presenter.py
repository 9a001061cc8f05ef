from conftest import NOW, make_record, make_snapshot
from src.application.presenters.listing_presenter import (
    BUTTON_CLOSE,
    BUTTON_REFRESH,
    BUTTON_SHIPPED,
    BUTTON_SOLD,
    build_buttons,
    build_change_notification,
    build_listing_embed,
    build_status_confirmation,
    channel_name,
    slugify,
)
from src.domain.enums.listing_status import ListingStatus
from src.domain.enums.listing_type import ListingType


class TestChannelName:
    def test_slugify_lowercases_and_collapses_separators(self) -> None:
        assert slugify("Canon AE-1 Program!! 50mm") == "canon-ae-1-program-50mm"

    def test_slug_is_capped_at_thirty_characters(self) -> None:
        slug = slugify("A" * 80)
        assert len(slug) == 30

    def test_channel_name_prefixes_status_emoji(self) -> None:
        assert channel_name("Leica M6", ListingStatus.ENDED) == "🔴-leica-m6"

    def test_empty_slug_falls_back(self) -> None:
        assert channel_name("***", ListingStatus.ACTIVE) == "🟢-listing"


class TestButtons:
    def test_buttons_follow_status(self) -> None:
        assert [b.custom_id for b in build_buttons(ListingStatus.ACTIVE)] == [
            BUTTON_REFRESH,
            BUTTON_SOLD,
            BUTTON_CLOSE,
        ]
        assert [b.custom_id for b in build_buttons(ListingStatus.SOLD)] == [BUTTON_SHIPPED, BUTTON_CLOSE]
        assert build_buttons(ListingStatus.CLOSED) == []


class TestEmbed:
    def test_auction_embed_shows_bids_and_deadline(self) -> None:
        record = make_record(listing_type=ListingType.AUCTION, bid_count=7)
        embed = build_listing_embed(record)

        fields = {field.name: field.value for field in embed.fields}
        assert fields["Current Bid"] == "$100.00"
        assert fields["Bids"] == "7"
        assert "Ends" in fields
        assert embed.url == record.url

    def test_fixed_price_embed_has_no_bid_field(self) -> None:
        record = make_record(listing_type=ListingType.BUY_IT_NOW, end_time=None)
        fields = {field.name for field in build_listing_embed(record).fields}
        assert "Price" in fields
        assert "Bids" not in fields
        assert "Ends" not in fields


class TestChangeNotification:
    def test_no_notification_without_changes(self) -> None:
        record = make_record()
        change = record.apply_snapshot(make_snapshot(), NOW)
        assert build_change_notification(record, change) is None

    def test_update_lists_changed_fields(self) -> None:
        record = make_record()
        change = record.apply_snapshot(make_snapshot(current_price="$120.00"), NOW)
        text = build_change_notification(record, change)

        assert text is not None
        assert "Price: $100.00 → $120.00" in text
        assert "Bids:" not in text

    def test_ended_notification_reports_final_values(self) -> None:
        record = make_record()
        change = record.apply_snapshot(
            make_snapshot(current_price="$250.00", bid_count=12, status=ListingStatus.ENDED), NOW
        )
        text = build_change_notification(record, change)

        assert text is not None
        assert "Listing ended!" in text
        assert "$250.00" in text
        assert "12" in text


def test_status_confirmation_mentions_actor() -> None:
    text = build_status_confirmation(ListingStatus.SOLD, "42")
    assert "<@42>" in text
    assert "sold" in text

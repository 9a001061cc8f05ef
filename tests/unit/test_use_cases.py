"""Unit tests for the manual listing use cases; collaborators are mocked."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import NOW, InMemoryListingStore, make_record, make_snapshot
from src.application.presenters.listing_presenter import BUTTON_TRACK_PANEL
from src.application.services.channel_sync import ChannelSync
from src.application.use_cases.ensure_intake_panel import EnsureIntakePanel
from src.application.use_cases.refresh_listing import ListingNotRefreshableError, RefreshListing
from src.application.use_cases.track_listing import TrackListing
from src.application.use_cases.transition_listing_status import (
    TransitionListingStatus,
    TransitionListingStatusInput,
)
from src.domain.enums.listing_status import ListingStatus
from src.domain.events.domain_events import ListingStatusChangedEvent, ListingTrackedEvent
from src.domain.exceptions import (
    FetchError,
    GatewayError,
    InvalidListingUrlError,
    ListingAlreadyTrackedError,
    ListingNotFoundError,
)
from src.domain.state_machine.lifecycle_state_machine import InvalidStatusTransitionError

SOLD_CATEGORY = "7004"
ARCHIVE_CATEGORY = "7005"


def _make_data_source(snapshot=None, side_effect=None) -> MagicMock:
    source = MagicMock()
    source.fetch = AsyncMock(return_value=snapshot or make_snapshot(), side_effect=side_effect)
    return source


def _channel_sync(gateway, store) -> ChannelSync:
    return ChannelSync(
        gateway,
        store,
        {
            ListingStatus.SOLD: SOLD_CATEGORY,
            ListingStatus.SHIPPED: ARCHIVE_CATEGORY,
            ListingStatus.CLOSED: ARCHIVE_CATEGORY,
        },
    )


class TestTrackListing:
    @pytest.mark.asyncio
    async def test_creates_channel_embed_and_record(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        use_case = TrackListing(
            store, _make_data_source(), gateway, publisher, listing_category_id="7001", clock=lambda: NOW
        )

        result = await use_case.execute("https://www.ebay.com/itm/Vintage-Camera/123456789012?x=1", "42")

        assert result.channel_id == "2001"
        gateway.create_listing_channel.assert_awaited_once_with("🟢-vintage-camera", "42", "7001")
        gateway.send_embed.assert_awaited_once()
        stored = store.stored("2001")
        assert stored.url == "https://www.ebay.com/itm/123456789012"
        assert stored.owner_id == "42"
        assert stored.message_id == "9001"
        assert stored.last_checked == NOW
        events = publisher.publish_many.await_args.args[0]
        assert isinstance(events[0], ListingTrackedEvent)

    @pytest.mark.asyncio
    async def test_already_tracked_url_is_refused(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        existing = store.seed(make_record("1001"))
        data_source = _make_data_source()
        use_case = TrackListing(store, data_source, gateway, publisher)

        with pytest.raises(ListingAlreadyTrackedError) as exc_info:
            await use_case.execute(existing.url + "?hash=abc", "99")

        assert exc_info.value.channel_id == "1001"
        data_source.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_closed_listing_can_be_tracked_again(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        existing = store.seed(make_record("1001", status=ListingStatus.CLOSED))
        use_case = TrackListing(store, _make_data_source(), gateway, publisher)

        result = await use_case.execute(existing.url, "42")

        assert result.channel_id == "2001"

    @pytest.mark.asyncio
    async def test_invalid_url_raises(self, store: InMemoryListingStore, gateway, publisher) -> None:
        use_case = TrackListing(store, _make_data_source(), gateway, publisher)
        with pytest.raises(InvalidListingUrlError):
            await use_case.execute("https://example.com/item/1", "42")
        gateway.create_listing_channel.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fetch_failure_creates_nothing(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        use_case = TrackListing(
            store, _make_data_source(side_effect=FetchError("down")), gateway, publisher
        )
        with pytest.raises(FetchError):
            await use_case.execute("https://www.ebay.com/itm/123456789012", "42")

        gateway.create_listing_channel.assert_not_awaited()
        assert store.document.listings == {}

    @pytest.mark.asyncio
    async def test_ended_snapshot_is_tracked_as_ended(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        use_case = TrackListing(
            store, _make_data_source(make_snapshot(status=ListingStatus.ENDED)), gateway, publisher
        )
        result = await use_case.execute("https://www.ebay.com/itm/123456789012", "42")
        assert store.stored(result.channel_id).status is ListingStatus.ENDED

    @pytest.mark.asyncio
    async def test_embed_failure_still_persists_record(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        gateway.send_embed = AsyncMock(side_effect=GatewayError("send_embed", "2001", "missing access"))
        use_case = TrackListing(store, _make_data_source(), gateway, publisher)

        result = await use_case.execute("https://www.ebay.com/itm/123456789012", "42")

        assert store.stored(result.channel_id).message_id is None


class TestRefreshListing:
    @pytest.mark.asyncio
    async def test_refresh_ignores_due_ness(self, store: InMemoryListingStore, gateway, publisher) -> None:
        store.seed(make_record(last_checked=NOW))
        data_source = _make_data_source(make_snapshot(current_price="$180.00"))
        use_case = RefreshListing(
            store, data_source, _channel_sync(gateway, store), publisher, clock=lambda: NOW + 1000
        )

        output = await use_case.execute("1001", "42")

        assert output.change.price_changed is True
        assert store.stored("1001").current_price == "$180.00"
        assert store.stored("1001").last_checked == NOW + 1000
        gateway.post_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refresh_after_deadline_ends_listing(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        store.seed(make_record(end_time=NOW - 1000))
        use_case = RefreshListing(
            store, _make_data_source(), _channel_sync(gateway, store), publisher, clock=lambda: NOW
        )

        output = await use_case.execute("1001", "42")

        assert output.change.just_ended is True
        assert store.stored("1001").status is ListingStatus.ENDED

    @pytest.mark.asyncio
    async def test_ended_listing_can_still_be_refreshed(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        store.seed(make_record(status=ListingStatus.ENDED))
        data_source = _make_data_source()
        use_case = RefreshListing(store, data_source, _channel_sync(gateway, store), publisher)

        await use_case.execute("1001", "42")

        data_source.fetch.assert_awaited_once()
        assert store.stored("1001").status is ListingStatus.ENDED

    @pytest.mark.asyncio
    async def test_terminal_listing_is_not_refreshable(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        store.seed(make_record(status=ListingStatus.SOLD))
        data_source = _make_data_source()
        use_case = RefreshListing(store, data_source, _channel_sync(gateway, store), publisher)

        with pytest.raises(ListingNotRefreshableError):
            await use_case.execute("1001", "42")
        data_source.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates_without_merge(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        store.seed(make_record(last_checked=NOW - 5000))
        use_case = RefreshListing(
            store,
            _make_data_source(side_effect=FetchError("down")),
            _channel_sync(gateway, store),
            publisher,
        )

        with pytest.raises(FetchError):
            await use_case.execute("1001", "42")
        assert store.stored("1001").last_checked == NOW - 5000
        assert store.save_count == 0

    @pytest.mark.asyncio
    async def test_unknown_channel_raises(self, store: InMemoryListingStore, gateway, publisher) -> None:
        use_case = RefreshListing(store, _make_data_source(), _channel_sync(gateway, store), publisher)
        with pytest.raises(ListingNotFoundError):
            await use_case.execute("404", "42")


class TestTransitionListingStatus:
    @pytest.mark.asyncio
    async def test_mark_sold_persists_and_moves_channel(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        store.seed(make_record(status=ListingStatus.ENDED))
        use_case = TransitionListingStatus(store, _channel_sync(gateway, store), publisher)

        result = await use_case.execute(
            TransitionListingStatusInput(channel_id="1001", to_status=ListingStatus.SOLD, actor_id="42")
        )

        assert result.from_status is ListingStatus.ENDED
        assert result.to_status is ListingStatus.SOLD
        assert store.stored("1001").status is ListingStatus.SOLD
        gateway.edit_message.assert_awaited_once()
        gateway.rename_channel.assert_awaited_once_with("1001", "💰-vintage-camera")
        gateway.move_channel.assert_awaited_once_with("1001", SOLD_CATEGORY)
        assert "<@42>" in gateway.post_message.await_args.args[1]
        events = publisher.publish_many.await_args.args[0]
        assert isinstance(events[0], ListingStatusChangedEvent)
        assert events[0].triggered_by == "user:42"

    @pytest.mark.asyncio
    async def test_close_moves_to_archive(self, store: InMemoryListingStore, gateway, publisher) -> None:
        store.seed(make_record(status=ListingStatus.ACTIVE))
        use_case = TransitionListingStatus(store, _channel_sync(gateway, store), publisher)

        await use_case.execute(
            TransitionListingStatusInput(channel_id="1001", to_status=ListingStatus.CLOSED, actor_id="7")
        )

        assert store.stored("1001").status is ListingStatus.CLOSED
        gateway.move_channel.assert_awaited_once_with("1001", ARCHIVE_CATEGORY)

    @pytest.mark.asyncio
    async def test_invalid_transition_saves_nothing(
        self, store: InMemoryListingStore, gateway, publisher
    ) -> None:
        store.seed(make_record(status=ListingStatus.CLOSED))
        use_case = TransitionListingStatus(store, _channel_sync(gateway, store), publisher)

        with pytest.raises(InvalidStatusTransitionError):
            await use_case.execute(
                TransitionListingStatusInput(channel_id="1001", to_status=ListingStatus.SOLD, actor_id="42")
            )

        assert store.save_count == 0
        gateway.post_message.assert_not_awaited()
        publisher.publish_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_channel_raises(self, store: InMemoryListingStore, gateway, publisher) -> None:
        use_case = TransitionListingStatus(store, _channel_sync(gateway, store), publisher)
        with pytest.raises(ListingNotFoundError):
            await use_case.execute(
                TransitionListingStatusInput(channel_id="404", to_status=ListingStatus.SOLD, actor_id="42")
            )


class TestEnsureIntakePanel:
    INTAKE = "900"

    @pytest.mark.asyncio
    async def test_posts_panel_when_none_stored(self, store: InMemoryListingStore, gateway) -> None:
        store.seed(make_record("1001"))

        message_id = await EnsureIntakePanel(store, gateway, self.INTAKE).execute()

        assert message_id == "9001"
        channel_id, embed, buttons = gateway.send_embed.await_args.args
        assert channel_id == self.INTAKE
        assert embed.url is None
        assert [button.custom_id for button in buttons] == [BUTTON_TRACK_PANEL]
        assert store.document.panel_message_id == "9001"
        assert store.stored("1001") is not None

    @pytest.mark.asyncio
    async def test_reuses_existing_panel(self, store: InMemoryListingStore, gateway) -> None:
        store.document.panel_message_id = "777"

        message_id = await EnsureIntakePanel(store, gateway, self.INTAKE).execute()

        assert message_id == "777"
        gateway.message_exists.assert_awaited_once_with(self.INTAKE, "777")
        gateway.send_embed.assert_not_awaited()
        assert store.save_count == 0

    @pytest.mark.asyncio
    async def test_reposts_deleted_panel(self, store: InMemoryListingStore, gateway) -> None:
        store.document.panel_message_id = "777"
        gateway.message_exists.return_value = False

        message_id = await EnsureIntakePanel(store, gateway, self.INTAKE).execute()

        assert message_id == "9001"
        assert store.document.panel_message_id == "9001"

    @pytest.mark.asyncio
    async def test_gateway_failure_propagates(self, store: InMemoryListingStore, gateway) -> None:
        gateway.send_embed.side_effect = GatewayError("send_embed", self.INTAKE, "missing access")

        with pytest.raises(GatewayError):
            await EnsureIntakePanel(store, gateway, self.INTAKE).execute()

        assert store.document.panel_message_id is None

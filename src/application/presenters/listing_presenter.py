"""
Pure rendering of listing records into embeds, buttons, texts and channel names.

Nothing here talks to the chat platform; the messaging gateway translates the
returned dataclasses into platform objects.
"""
import re

from src.application.interfaces.messaging_gateway import EmbedField, ListingButton, ListingEmbed
from src.domain.entities.listing_record import ListingChange, ListingRecord
from src.domain.enums.listing_status import ListingStatus

STATUS_EMOJI: dict[ListingStatus, str] = {
    ListingStatus.ACTIVE: "🟢",
    ListingStatus.ENDED: "🔴",
    ListingStatus.SOLD: "💰",
    ListingStatus.SHIPPED: "📦",
    ListingStatus.CLOSED: "🔒",
}

STATUS_COLOR: dict[ListingStatus, int] = {
    ListingStatus.ACTIVE: 0x2ECC71,
    ListingStatus.ENDED: 0xE74C3C,
    ListingStatus.SOLD: 0xF1C40F,
    ListingStatus.SHIPPED: 0x3498DB,
    ListingStatus.CLOSED: 0x95A5A6,
}

BUTTON_REFRESH = "listing_refresh"
BUTTON_SOLD = "listing_sold"
BUTTON_SHIPPED = "listing_shipped"
BUTTON_CLOSE = "listing_close"
BUTTON_TRACK_PANEL = "listing_create"

_REFRESH = ListingButton(custom_id=BUTTON_REFRESH, label="Refresh", style="primary")
_SOLD = ListingButton(custom_id=BUTTON_SOLD, label="Mark Sold", style="success")
_SHIPPED = ListingButton(custom_id=BUTTON_SHIPPED, label="Mark Shipped", style="success")
_CLOSE = ListingButton(custom_id=BUTTON_CLOSE, label="Close", style="secondary")

_BUTTONS_BY_STATUS: dict[ListingStatus, list[ListingButton]] = {
    ListingStatus.ACTIVE: [_REFRESH, _SOLD, _CLOSE],
    ListingStatus.ENDED: [_REFRESH, _SOLD, _CLOSE],
    ListingStatus.SOLD: [_SHIPPED, _CLOSE],
    ListingStatus.SHIPPED: [_CLOSE],
    ListingStatus.CLOSED: [],
}

MAX_CHANNEL_NAME = 90
MAX_SLUG = 30
_EMBED_TITLE_LIMIT = 256


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", str(text).lower()).strip("-")
    return slug[:MAX_SLUG].strip("-")


def channel_name(title: str, status: ListingStatus) -> str:
    slug = slugify(title) or "listing"
    return f"{STATUS_EMOJI[status]}-{slug}"[:MAX_CHANNEL_NAME]


def _discord_timestamp(epoch_ms: int, style: str = "R") -> str:
    return f"<t:{epoch_ms // 1000}:{style}>"


def build_listing_embed(record: ListingRecord) -> ListingEmbed:
    price_label = "Current Bid" if record.listing_type.accepts_bids else "Price"
    fields: list[EmbedField] = [
        EmbedField(price_label, record.current_price or "-"),
    ]
    if record.listing_type.accepts_bids:
        fields.append(EmbedField("Bids", str(record.bid_count)))
    if record.listing_type.accepts_bids and record.buy_it_now_price:
        fields.append(EmbedField("Buy It Now", record.buy_it_now_price))
    if record.end_time is not None:
        label = "Ended" if record.status is not ListingStatus.ACTIVE else "Ends"
        fields.append(
            EmbedField(
                label,
                f"{_discord_timestamp(record.end_time, 'f')} ({_discord_timestamp(record.end_time)})",
                inline=False,
            )
        )
    fields.extend(
        [
            EmbedField("Status", f"{STATUS_EMOJI[record.status]} {record.status.value.title()}"),
            EmbedField("Watchers", str(record.watchers)),
            EmbedField("Views", str(record.views)),
            EmbedField("Owner", f"<@{record.owner_id}>"),
        ]
    )
    if record.last_checked:
        fields.append(EmbedField("Last Checked", _discord_timestamp(record.last_checked)))

    return ListingEmbed(
        title=(record.title or record.url)[:_EMBED_TITLE_LIMIT],
        url=record.url,
        description=record.description,
        color=STATUS_COLOR[record.status],
        image_url=record.image_url,
        fields=tuple(fields),
        footer=f"{record.listing_type.value.replace('_', ' ')} · via {record.source.value}",
    )


def build_buttons(status: ListingStatus) -> list[ListingButton]:
    return list(_BUTTONS_BY_STATUS[status])


def build_change_notification(record: ListingRecord, change: ListingChange) -> str | None:
    """Text to post for a completed fetch, or None when nothing notable changed."""
    if not change.is_notable:
        return None

    if change.just_ended:
        return (
            f"{STATUS_EMOJI[ListingStatus.ENDED]} **Listing ended!** "
            f"Final price: **{change.new_price}** · Total bids: **{change.new_bid_count}**"
        )

    lines = [f"📈 **Listing updated:** {record.title}"]
    if change.price_changed:
        lines.append(f"Price: {change.old_price} → {change.new_price}")
    if change.bid_count_changed:
        lines.append(f"Bids: {change.old_bid_count} → {change.new_bid_count}")
    return "\n".join(lines)


def build_status_confirmation(status: ListingStatus, actor_id: str) -> str:
    return f"{STATUS_EMOJI[status]} Listing marked as **{status.value}** by <@{actor_id}>."


def build_panel_embed() -> ListingEmbed:
    return ListingEmbed(
        title="Track an eBay Listing",
        description=(
            "Press the button below and paste the link to an eBay listing.\n\n"
            "A private channel will be created where the listing is kept up to date "
            "until it ends."
        ),
        color=0x3498DB,
    )


def build_panel_buttons() -> list[ListingButton]:
    return [ListingButton(custom_id=BUTTON_TRACK_PANEL, label="Track Listing", style="primary")]

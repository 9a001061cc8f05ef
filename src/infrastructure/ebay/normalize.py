"""Small normalisation helpers shared by the API and scrape strategies."""
import re
from datetime import datetime, timezone

_WHITESPACE_RE = re.compile(r"\s+")
_CURRENCY_SYMBOLS = {"USD": "$", "GBP": "£", "EUR": "€", "AUD": "AU $", "CAD": "C $"}


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate(text: str, max_length: int) -> str:
    text = collapse_whitespace(text)
    if len(text) <= max_length:
        return text
    return text[: max_length - 1].rstrip() + "…"


def parse_int(text: str | None) -> int:
    if not text:
        return 0
    digits = re.sub(r"[^\d]", "", text)
    return int(digits) if digits else 0


def iso_to_epoch_ms(value: str) -> int | None:
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def timestamp_to_epoch_ms(value: str) -> int | None:
    """Accept epoch seconds, epoch milliseconds or ISO-8601."""
    value = value.strip()
    if value.isdigit():
        number = int(value)
        return number if number >= 10**12 else number * 1000
    return iso_to_epoch_ms(value)


def format_money(amount: dict | None) -> str | None:  # type: ignore[type-arg]
    """Render a Browse API amount object ({"value": "12.50", "currency": "USD"})."""
    if not amount or amount.get("value") is None:
        return None
    currency = amount.get("currency", "USD")
    symbol = _CURRENCY_SYMBOLS.get(currency)
    if symbol is None:
        return f"{amount['value']} {currency}"
    return f"{symbol}{amount['value']}"

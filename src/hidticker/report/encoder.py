"""Encodes a quote map into a fixed-size HID output report payload.

Layout (UTF-8 text, zero padded to ``report_size`` bytes)::

    GOLD: 2650$\\nTSLA: 430$

Each entry is ``SYMBOL: PRICE`` followed by the symbol's currency suffix.
Symbols are cut to four characters, prices are rounded to an integer
with Python's round-half-to-even. Entries that would push the payload
past ``report_size`` are dropped whole, together with every entry after
them, so the firmware never sees a partial line.
"""

from __future__ import annotations

import logging
import math
from typing import Mapping

from hidticker.domain.models import QuoteMap

logger = logging.getLogger(__name__)

# Raw HID endpoint size used by QMK firmware
DEFAULT_REPORT_SIZE = 32
MAX_SYMBOL_LENGTH = 4
DEFAULT_CURRENCY = "$"
DEFAULT_SEPARATOR = "\n"
# Rendered for NaN/inf so that encoding never fails
UNKNOWN_PRICE = "?"


def format_price(price: float) -> str:
    """Render a price as an integer string (round-half-to-even)."""
    if not math.isfinite(price):
        return UNKNOWN_PRICE
    return str(round(price))


def format_entry(symbol: str, price: float, currency: str = DEFAULT_CURRENCY) -> str:
    """Render one ``SYMBOL: PRICE$`` entry."""
    return f"{symbol[:MAX_SYMBOL_LENGTH]}: {format_price(price)}{currency}"


def encode(
    quotes: QuoteMap,
    report_size: int = DEFAULT_REPORT_SIZE,
    currencies: Mapping[str, str] | None = None,
    separator: str = DEFAULT_SEPARATOR,
) -> bytes:
    """Encode quotes into exactly ``report_size`` bytes.

    Args:
        quotes: Symbol -> price, iterated in its own (lexicographic) order.
        report_size: Payload length of one HID output report.
        currencies: Optional per-symbol currency suffix; missing symbols
                    use ``$``.
        separator: Placed between entries.

    Returns:
        The UTF-8 payload, zero padded to ``report_size``. An empty map
        yields ``report_size`` zero bytes.
    """
    if report_size <= 0:
        raise ValueError(f"report_size must be positive, got {report_size}")
    currencies = currencies or {}
    sep = separator.encode("utf-8")

    payload = b""
    for index, (symbol, price) in enumerate(quotes.items()):
        entry = format_entry(symbol, price, currencies.get(symbol, DEFAULT_CURRENCY))
        chunk = entry.encode("utf-8")
        if payload:
            chunk = sep + chunk
        if len(payload) + len(chunk) > report_size:
            logger.debug(
                "Report full at %d/%d bytes, dropping %d of %d entries",
                len(payload), report_size, len(quotes) - index, len(quotes),
            )
            break
        payload += chunk

    return payload.ljust(report_size, b"\x00")


def decode_report(report: bytes) -> str:
    """Recover the display text from a report payload."""
    return report.rstrip(b"\x00").decode("utf-8", errors="replace")

"""Core domain models for the hidticker system.

These models represent the data flowing through one refresh cycle: the
tickers to request, the quote map produced by the quote source, the
identity of the target keyboard, and the outcome of each cycle.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

# A QuoteMap is a plain dict whose keys are inserted in lexicographic
# order; build one with make_quote_map() rather than by hand.
QuoteMap = dict[str, float]


def make_quote_map(pairs: Iterable[tuple[str, float]] | Mapping[str, float]) -> QuoteMap:
    """Build a QuoteMap ordered lexicographically by symbol.

    Duplicate symbols collapse to the last value seen.
    """
    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    merged: dict[str, float] = {}
    for symbol, price in items:
        merged[symbol] = float(price)
    return {symbol: merged[symbol] for symbol in sorted(merged)}


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class CycleStatus(str, enum.Enum):
    """Outcome of one refresh cycle."""

    SENT = "sent"
    FETCH_FAILED = "fetch_failed"
    DEVICE_NOT_FOUND = "device_not_found"
    SEND_FAILED = "send_failed"


class LoopState(str, enum.Enum):
    """Whether the refresh loop is waiting for a tick or running a cycle."""

    IDLE = "idle"
    ACTIVE = "active"


# ---------------------------------------------------------------------------
# Configuration-facing value objects
# ---------------------------------------------------------------------------


class TickerSpec(BaseModel):
    """One ticker to request from the quote provider.

    ``symbol`` is what the provider understands (e.g. ``VWRL.AS``),
    ``display`` is the key used in the quote map and shown on the device.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(min_length=1)
    display: str = Field(default="", description="Name shown on the device")
    currency: str = Field(default="$", description="Suffix rendered after the price")

    @property
    def label(self) -> str:
        return self.display or self.symbol


class DeviceIdentity(BaseModel):
    """USB identity of the target keyboard.

    Keyboards expose several HID interfaces under the same vendor/product
    pair; ``usage_page`` and ``usage`` narrow the match to the raw HID one.
    """

    model_config = ConfigDict(frozen=True)

    vendor_id: int = Field(ge=0, le=0xFFFF)
    product_id: int = Field(ge=0, le=0xFFFF)
    usage_page: int | None = Field(default=None, ge=0, le=0xFFFF)
    usage: int | None = Field(default=None, ge=0, le=0xFFFF)

    @field_validator("vendor_id", "product_id", "usage_page", "usage", mode="before")
    @classmethod
    def _parse_hex(cls, value: object) -> object:
        if isinstance(value, str):
            return int(value, 0)
        return value

    def __str__(self) -> str:
        return f"{self.vendor_id:04x}:{self.product_id:04x}"


class DeviceInfo(BaseModel):
    """One enumerated HID interface, as reported by the OS."""

    path: bytes
    vendor_id: int
    product_id: int
    usage_page: int = 0
    usage: int = 0
    interface_number: int = -1
    manufacturer: str = ""
    product: str = ""
    serial_number: str = ""

    def __str__(self) -> str:
        return (
            f"{self.vendor_id:04x}:{self.product_id:04x} "
            f"{self.manufacturer or '?'} {self.product or '?'} "
            f"(usage_page=0x{self.usage_page:04x} usage=0x{self.usage:02x} "
            f"interface={self.interface_number})"
        )


# ---------------------------------------------------------------------------
# Cycle outcome
# ---------------------------------------------------------------------------


class CycleResult(BaseModel):
    """The result of one fetch -> encode -> locate -> send cycle."""

    cycle: int = Field(ge=0)
    status: CycleStatus
    quotes: QuoteMap | None = None
    bytes_written: int = 0
    error: str = ""
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status == CycleStatus.SENT

    @property
    def duration(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

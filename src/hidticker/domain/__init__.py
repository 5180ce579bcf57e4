"""Domain models for hidticker.

All structured data uses Pydantic v2 models; the quote map itself is a
plain ordered dict.
"""

from hidticker.domain.models import (
    CycleResult,
    CycleStatus,
    DeviceIdentity,
    DeviceInfo,
    LoopState,
    QuoteMap,
    TickerSpec,
    make_quote_map,
)

__all__ = [
    "CycleResult",
    "CycleStatus",
    "DeviceIdentity",
    "DeviceInfo",
    "LoopState",
    "QuoteMap",
    "TickerSpec",
    "make_quote_map",
]

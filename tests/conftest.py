"""Shared test fixtures for the hidticker test suite.

Provides sample quote maps, ticker lists, a canned quote source and
fake hidapi devices so that no test touches the network or real USB.
"""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from hidticker.device.locator import HidDeviceHandle
from hidticker.domain.models import (
    DeviceIdentity,
    DeviceInfo,
    QuoteMap,
    TickerSpec,
    make_quote_map,
)
from hidticker.errors import FetchError
from hidticker.quotes.base import QuoteSource


# ---------------------------------------------------------------------------
# Quote Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_quotes() -> QuoteMap:
    """The three default tickers at plausible prices."""
    return make_quote_map({"TSLA": 430.2, "VWRL": 130.0, "GOLD": 2650.4})


@pytest.fixture
def sample_tickers() -> list[TickerSpec]:
    return [
        TickerSpec(symbol="TSLA", display="TSLA"),
        TickerSpec(symbol="AAPL"),
    ]


class StaticQuoteSource(QuoteSource):
    """Returns canned quotes, or raises the queued errors first."""

    def __init__(self, quotes: QuoteMap, errors: list[Exception] | None = None) -> None:
        self.quotes = quotes
        self.errors = list(errors or [])
        self.calls = 0
        self.opened = False
        self.closed = False

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.closed = True

    async def fetch_quotes(self) -> QuoteMap:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return dict(self.quotes)


@pytest.fixture
def quote_source_cls() -> type[StaticQuoteSource]:
    """The canned QuoteSource class, for tests that need to subclass it."""
    return StaticQuoteSource


@pytest.fixture
def static_source(sample_quotes: QuoteMap) -> StaticQuoteSource:
    return StaticQuoteSource(sample_quotes)


@pytest.fixture
def failing_source(sample_quotes: QuoteMap) -> StaticQuoteSource:
    return StaticQuoteSource(sample_quotes, errors=[FetchError("timeout", symbol="TSLA")])


# ---------------------------------------------------------------------------
# Device Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def identity() -> DeviceIdentity:
    return DeviceIdentity(vendor_id=0x8D1D, product_id=0x9D9D, usage_page=0xFF60, usage=0x61)


@pytest.fixture
def device_info() -> DeviceInfo:
    return DeviceInfo(
        path=b"/dev/hidraw3",
        vendor_id=0x8D1D,
        product_id=0x9D9D,
        usage_page=0xFF60,
        usage=0x61,
        interface_number=1,
        manufacturer="splitkb.com",
        product="Elora",
    )


@pytest.fixture
def fake_hid_device() -> MagicMock:
    """A stand-in for ``hid.device`` that accepts every write."""
    dev = MagicMock()
    dev.write.side_effect = lambda data: len(data)
    dev.error.return_value = ""
    return dev


@pytest.fixture
def hid_handle(fake_hid_device: MagicMock, device_info: DeviceInfo) -> HidDeviceHandle:
    return HidDeviceHandle(fake_hid_device, device_info, report_size=32)


@pytest.fixture
def mock_locator(identity: DeviceIdentity, hid_handle: HidDeviceHandle) -> MagicMock:
    """A DeviceLocator stand-in that always finds the device."""
    locator = MagicMock()
    locator.identity = identity
    locator.locate = AsyncMock(return_value=hid_handle)
    return locator


# ---------------------------------------------------------------------------
# Logging Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hidticker_logger():
    """The package logger, with level and handlers restored afterwards."""
    logger = logging.getLogger("hidticker")
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)

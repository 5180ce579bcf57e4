"""Error hierarchy for hidticker.

The refresh loop catches these at the cycle boundary and turns them into
a cycle result, so none of them ends the process.
"""

from __future__ import annotations


class HidTickerError(Exception):
    """Base class for all hidticker errors."""


class ConfigError(HidTickerError):
    """Raised when the configuration file is missing required structure."""


class FetchError(HidTickerError):
    """Raised when quotes cannot be fetched or parsed."""

    def __init__(self, message: str, symbol: str = "") -> None:
        super().__init__(message)
        self.symbol = symbol


class DeviceNotFound(HidTickerError):
    """Raised by callers that require the target device to be attached."""


class SendError(HidTickerError):
    """Raised when writing a report to the HID device fails."""

    def __init__(self, message: str, device: str = "") -> None:
        super().__init__(message)
        self.device = device

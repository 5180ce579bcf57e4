"""HID report encoding for hidticker."""

from hidticker.report.encoder import (
    DEFAULT_REPORT_SIZE,
    MAX_SYMBOL_LENGTH,
    decode_report,
    encode,
    format_entry,
)

__all__ = [
    "DEFAULT_REPORT_SIZE",
    "MAX_SYMBOL_LENGTH",
    "decode_report",
    "encode",
    "format_entry",
]

"""Quote source module for hidticker.

Public API:
    QuoteSource -- Abstract base class
    HttpQuoteSource -- Regex-scraping HTTP implementation
"""

from hidticker.errors import FetchError
from hidticker.quotes.base import QuoteSource

__all__ = ["QuoteSource", "FetchError", "HttpQuoteSource"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "HttpQuoteSource":
        from hidticker.quotes.http_source import HttpQuoteSource
        return HttpQuoteSource
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

"""Abstract base class for quote sources.

All quote sources must conform to this interface, so the refresh loop
can be driven by the HTTP scraper in production and by canned data in
tests without changing anything else.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from hidticker.domain.models import QuoteMap

logger = logging.getLogger(__name__)


class QuoteSource(ABC):
    """Abstract interface for fetching the current price of each ticker.

    Example usage::

        async with HttpQuoteSource(tickers) as source:
            quotes = await source.fetch_quotes()
    """

    async def open(self) -> None:
        """Acquire any resources (HTTP client, etc.). Default: nothing."""

    async def close(self) -> None:
        """Release resources. Safe to call multiple times. Default: nothing."""

    @abstractmethod
    async def fetch_quotes(self) -> QuoteMap:
        """Fetch one price per configured ticker.

        Returns:
            A QuoteMap with an entry for every configured ticker, ordered
            lexicographically by display symbol.

        Raises:
            FetchError: If any ticker cannot be fetched or parsed. No
                partial map is ever returned.
        """
        ...

    async def __aenter__(self) -> QuoteSource:
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()

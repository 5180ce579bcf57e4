"""HTTP quote source.

Requests one page per ticker from a finance data endpoint and extracts
the price with a regular expression. Any failure fails the whole fetch,
so callers always see either a complete quote map or a FetchError.
"""

from __future__ import annotations

import logging
import math
import re

import httpx

from hidticker.config.settings import (
    DEFAULT_PRICE_PATTERN,
    DEFAULT_URL_TEMPLATE,
    DEFAULT_USER_AGENT,
)
from hidticker.domain.models import QuoteMap, TickerSpec, make_quote_map
from hidticker.errors import FetchError
from hidticker.quotes.base import QuoteSource

logger = logging.getLogger(__name__)


class HttpQuoteSource(QuoteSource):
    """Scrapes ticker prices over HTTP with a browser-like User-Agent."""

    def __init__(
        self,
        tickers: list[TickerSpec],
        url_template: str = DEFAULT_URL_TEMPLATE,
        price_pattern: str = DEFAULT_PRICE_PATTERN,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._tickers = list(tickers)
        self._url_template = url_template
        self._pattern = re.compile(price_pattern)
        if self._pattern.groups < 1:
            raise ValueError("price_pattern must contain a capture group for the price")
        self._user_agent = user_agent
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def tickers(self) -> list[TickerSpec]:
        return list(self._tickers)

    async def open(self) -> None:
        """Create the pooled HTTP client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            headers={
                "User-Agent": self._user_agent,
                "Accept": "text/html,application/json;q=0.9,*/*;q=0.8",
            },
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_quotes(self) -> QuoteMap:
        if self._client is None:
            await self.open()
        pairs = []
        for ticker in self._tickers:
            price = await self._fetch_price(ticker)
            logger.debug("Fetched %s (%s): %s", ticker.label, ticker.symbol, price)
            pairs.append((ticker.label, price))
        return make_quote_map(pairs)

    async def _fetch_price(self, ticker: TickerSpec) -> float:
        try:
            url = self._url_template.format(symbol=ticker.symbol)
        except (KeyError, IndexError, ValueError) as e:
            raise FetchError(
                f"{ticker.symbol}: bad url_template {self._url_template!r}: {e!r}",
                symbol=ticker.symbol,
            ) from e
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"{ticker.symbol}: HTTP {e.response.status_code} from {url}",
                symbol=ticker.symbol,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(
                f"{ticker.symbol}: request to {url} failed: {e!r}",
                symbol=ticker.symbol,
            ) from e
        return self.parse_price(resp.text, ticker.symbol)

    def parse_price(self, body: str, symbol: str = "") -> float:
        """Extract the price from a response body.

        Thousands separators are dropped before conversion.

        Raises:
            FetchError: If the pattern does not match or the match is not
                a finite number.
        """
        match = self._pattern.search(body)
        if match is None:
            raise FetchError(f"{symbol}: price not found in response", symbol=symbol)
        raw = match.group(1).replace(",", "").strip()
        try:
            price = float(raw)
        except ValueError as e:
            raise FetchError(f"{symbol}: unparseable price {raw!r}", symbol=symbol) from e
        if not math.isfinite(price):
            raise FetchError(f"{symbol}: non-finite price {raw!r}", symbol=symbol)
        return price

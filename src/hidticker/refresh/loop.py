"""The refresh loop that orchestrates the whole system.

Each cycle runs fetch -> encode -> locate -> send to completion, then
the loop sleeps for the configured interval, whatever the outcome.
Failures are converted to a CycleResult at the cycle boundary and never
stop the loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import datetime
from typing import Mapping

from hidticker.device.locator import DeviceLocator, HidDeviceHandle
from hidticker.device.transmitter import Transmitter
from hidticker.domain.models import CycleResult, CycleStatus, LoopState, QuoteMap
from hidticker.errors import FetchError, SendError
from hidticker.quotes.base import QuoteSource
from hidticker.report.encoder import DEFAULT_REPORT_SIZE, DEFAULT_SEPARATOR, decode_report, encode

logger = logging.getLogger(__name__)


class RefreshLoop:
    """Periodically pushes fresh quotes to the keyboard.

    Coordinates: fetch -> encode -> locate -> send -> sleep -> repeat
    """

    def __init__(
        self,
        source: QuoteSource,
        locator: DeviceLocator,
        transmitter: Transmitter,
        interval: float = 60.0,
        report_size: int = DEFAULT_REPORT_SIZE,
        currencies: Mapping[str, str] | None = None,
        separator: str = DEFAULT_SEPARATOR,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._source = source
        self._locator = locator
        self._transmitter = transmitter
        self._interval = interval
        self._report_size = report_size
        self._currencies = dict(currencies or {})
        self._separator = separator
        self._running = False
        self._state = LoopState.IDLE
        self._cycle_count = 0
        self._stats: Counter[CycleStatus] = Counter()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    @property
    def stats(self) -> dict[CycleStatus, int]:
        return dict(self._stats)

    async def run(self, max_cycles: int | None = None) -> list[CycleResult]:
        """Run cycles until stopped, or until ``max_cycles`` have run.

        Returns:
            The results of every cycle when ``max_cycles`` is given; an
            empty list for an unbounded run, which keeps only counters.

        Raises:
            ValueError: If ``max_cycles`` is below 1.
        """
        if max_cycles is not None and max_cycles < 1:
            raise ValueError(f"max_cycles must be at least 1, got {max_cycles}")
        self._running = True
        results: list[CycleResult] = []
        logger.info(
            "Refresh loop starting: interval=%.1fs, device=%s",
            self._interval, self._locator.identity,
        )

        try:
            async with self._source:
                while self._running:
                    result = await self.run_cycle()
                    if max_cycles is not None:
                        results.append(result)
                        if len(results) >= max_cycles:
                            break
                    if not self._running:
                        break
                    await asyncio.sleep(self._interval)
        finally:
            self._running = False
            self._state = LoopState.IDLE
            logger.info(
                "Refresh loop finished after %d cycles: %s",
                self._cycle_count,
                ", ".join(f"{s.value}={n}" for s, n in sorted(self._stats.items())) or "none",
            )
        return results

    def stop(self) -> None:
        """Ask the loop to exit after the current cycle or sleep."""
        self._running = False
        logger.info("Refresh loop stop requested")

    async def run_cycle(self) -> CycleResult:
        """Run one fetch -> encode -> locate -> send cycle.

        Never raises (except for cancellation); every failure is reported
        through the returned CycleResult.
        """
        self._state = LoopState.ACTIVE
        cycle = self._cycle_count
        self._cycle_count += 1
        result = CycleResult(cycle=cycle, status=CycleStatus.FETCH_FAILED)
        try:
            result = await self._run_stages(result)
        finally:
            result.finished_at = datetime.now()
            self._stats[result.status] += 1
            self._state = LoopState.IDLE
        return result

    async def _run_stages(self, result: CycleResult) -> CycleResult:
        # 1. Fetch
        try:
            quotes = await self._source.fetch_quotes()
        except asyncio.CancelledError:
            raise
        except FetchError as e:
            logger.error("Cycle %d: fetch failed: %s", result.cycle, e)
            result.error = str(e)
            return result
        except Exception as e:
            logger.exception("Cycle %d: unexpected error while fetching", result.cycle)
            result.error = repr(e)
            return result
        result.quotes = quotes

        # 2. Encode
        report = self.encode(quotes)
        logger.debug("Cycle %d: report %r", result.cycle, decode_report(report))

        # 3. Locate
        try:
            handle = await self._locator.locate()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Cycle %d: unexpected error while locating device", result.cycle)
            handle = None
            result.error = repr(e)
        if handle is None:
            logger.info("Cycle %d: device %s not attached, skipping", result.cycle, self._locator.identity)
            result.status = CycleStatus.DEVICE_NOT_FOUND
            return result

        # 4. Send
        return await self._send(result, handle, report)

    async def _send(self, result: CycleResult, handle: HidDeviceHandle, report: bytes) -> CycleResult:
        try:
            result.bytes_written = await self._transmitter.send(handle, report)
            result.status = CycleStatus.SENT
            logger.info(
                "Cycle %d: sent %s",
                result.cycle,
                " | ".join(f"{s}={p:.2f}" for s, p in (result.quotes or {}).items()),
            )
        except asyncio.CancelledError:
            raise
        except SendError as e:
            logger.error("Cycle %d: send failed: %s", result.cycle, e)
            result.status = CycleStatus.SEND_FAILED
            result.error = str(e)
        except Exception as e:
            logger.exception("Cycle %d: unexpected error while sending", result.cycle)
            result.status = CycleStatus.SEND_FAILED
            result.error = repr(e)
        finally:
            # waits for a timed-out write still running in the executor
            await handle.aclose()
        return result

    def encode(self, quotes: QuoteMap) -> bytes:
        """Encode quotes with this loop's report settings."""
        return encode(
            quotes,
            report_size=self._report_size,
            currencies=self._currencies,
            separator=self._separator,
        )

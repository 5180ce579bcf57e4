"""Command-line interface for hidticker.

Provides the main entry point for running the refresh loop, plus a few
commands for checking the individual pieces (quote fetching, report
encoding, device discovery) in isolation.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="hidticker",
        description="Show stock quotes on a USB HID keyboard display",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/hidticker.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the refresh loop until interrupted")
    run_parser.add_argument(
        "--interval", type=_positive_float, default=None,
        help="Seconds between refresh cycles (overrides config)",
    )
    subparsers.add_parser("once", help="Run a single refresh cycle")
    subparsers.add_parser("fetch", help="Fetch and print the current quotes")
    subparsers.add_parser("preview", help="Fetch quotes and print the encoded report")
    subparsers.add_parser("devices", help="List attached HID devices matching the config")

    return parser.parse_args(argv)


def _build_source(settings):
    from hidticker.quotes.http_source import HttpQuoteSource

    return HttpQuoteSource(
        tickers=settings.quotes.tickers,
        url_template=settings.quotes.url_template,
        price_pattern=settings.quotes.price_pattern,
        user_agent=settings.quotes.user_agent,
        timeout=settings.quotes.timeout,
    )


def _build_loop(settings, interval: float | None = None):
    from hidticker.device.locator import DeviceLocator
    from hidticker.device.transmitter import Transmitter
    from hidticker.refresh.loop import RefreshLoop

    return RefreshLoop(
        source=_build_source(settings),
        locator=DeviceLocator(
            settings.device.identity,
            report_size=settings.device.report_size,
        ),
        transmitter=Transmitter(
            report_id=settings.device.report_id,
            write_timeout=settings.device.write_timeout,
        ),
        interval=interval if interval is not None else settings.refresh.interval,
        report_size=settings.device.report_size,
        currencies=settings.quotes.currencies,
        separator=settings.refresh.separator,
    )


async def _run(settings, args) -> int:
    loop = _build_loop(settings, interval=args.interval)
    await loop.run()
    return 0


async def _once(settings) -> int:
    loop = _build_loop(settings)
    results = await loop.run(max_cycles=1)
    result = results[0]
    print(f"Cycle status: {result.status.value}")
    if result.error:
        print(f"Error: {result.error}")
    return 0 if result.ok else 1


async def _fetch(settings) -> int:
    from hidticker.errors import FetchError

    try:
        async with _build_source(settings) as source:
            quotes = await source.fetch_quotes()
    except FetchError as e:
        print(f"Fetch failed: {e}", file=sys.stderr)
        return 1
    for symbol, price in quotes.items():
        print(f"{symbol:<8} {price:>12.2f}")
    return 0


async def _preview(settings) -> int:
    from hidticker.errors import FetchError
    from hidticker.report.encoder import decode_report, encode

    try:
        async with _build_source(settings) as source:
            quotes = await source.fetch_quotes()
    except FetchError as e:
        print(f"Fetch failed: {e}", file=sys.stderr)
        return 1
    report = encode(
        quotes,
        report_size=settings.device.report_size,
        currencies=settings.quotes.currencies,
        separator=settings.refresh.separator,
    )
    print(decode_report(report))
    print("-" * 40)
    print(f"{len(report)} bytes: {report.hex(' ')}")
    return 0


def _devices(settings) -> int:
    from hidticker.device.locator import DeviceLocator

    locator = DeviceLocator(settings.device.identity)
    devices = locator.list_devices()
    if not devices:
        print(f"No HID devices found for {settings.device.identity}")
        return 1
    for info in devices:
        print(info)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``hidticker`` console script."""
    args = parse_args(argv)

    from pydantic import ValidationError

    from hidticker.config.settings import load_settings
    from hidticker.errors import ConfigError
    from hidticker.utils.logging import setup_logging

    try:
        settings = load_settings(args.config)
    except (ConfigError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    setup_logging(settings.logging, verbose=args.verbose)

    command = args.command or "run"
    if command == "run" and not hasattr(args, "interval"):
        args.interval = None

    try:
        if command == "run":
            return asyncio.run(_run(settings, args))
        if command == "once":
            return asyncio.run(_once(settings))
        if command == "fetch":
            return asyncio.run(_fetch(settings))
        if command == "preview":
            return asyncio.run(_preview(settings))
        if command == "devices":
            return _devices(settings)
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        return 0

    print(f"Unknown command: {command}", file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main())

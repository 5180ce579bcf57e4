"""Writes encoded reports to an open HID device.

hidapi expects the report ID as the first byte of every write, so the
bytes on the wire are ``report_id`` followed by the payload.
"""

from __future__ import annotations

import asyncio
import logging

from hidticker.device.locator import HidDeviceHandle
from hidticker.errors import SendError

logger = logging.getLogger(__name__)

DEFAULT_WRITE_TIMEOUT = 2.0


class Transmitter:
    """Sends one HID output report per call. Never retries."""

    def __init__(self, report_id: int = 0, write_timeout: float = DEFAULT_WRITE_TIMEOUT) -> None:
        if not 0 <= report_id <= 0xFF:
            raise ValueError(f"report_id must fit in one byte, got {report_id}")
        self._report_id = report_id
        self._write_timeout = write_timeout

    async def send(self, handle: HidDeviceHandle, report: bytes) -> int:
        """Write ``report`` to ``handle``.

        Returns:
            The number of bytes hidapi reports as written.

        Raises:
            SendError: On size mismatch, I/O failure (e.g. the device was
                unplugged), or a write that exceeds the timeout.
        """
        device = str(handle)
        if len(report) != handle.report_size:
            raise SendError(
                f"Report must be {handle.report_size} bytes, got {len(report)}",
                device=device,
            )

        data = bytes([self._report_id]) + report
        loop = asyncio.get_running_loop()
        try:
            written = await asyncio.wait_for(
                loop.run_in_executor(None, handle.write, data),
                timeout=self._write_timeout,
            )
        except asyncio.TimeoutError as e:
            raise SendError(
                f"HID write timed out after {self._write_timeout:.1f}s", device=device
            ) from e
        except (OSError, ValueError) as e:
            raise SendError(f"Failed to write HID report: {e}", device=device) from e

        if written is None or written < 0:
            reason = handle.last_error() or "device not responding"
            raise SendError(f"Failed to write HID report: {reason}", device=device)

        logger.debug("Wrote %d bytes to %s", written, device)
        return written

"""Finds and opens the target keyboard among the attached HID devices.

Absence of the device is an expected condition (the keyboard is simply
unplugged), so ``locate()`` returns ``None`` instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
import threading

import hid

from hidticker.domain.models import DeviceIdentity, DeviceInfo
from hidticker.report.encoder import DEFAULT_REPORT_SIZE

logger = logging.getLogger(__name__)


def _decode(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def device_info_from_dict(raw: dict) -> DeviceInfo:
    """Convert one ``hid.enumerate()`` entry into a DeviceInfo."""
    path = raw.get("path", b"")
    if isinstance(path, str):
        path = path.encode()
    return DeviceInfo(
        path=path,
        vendor_id=raw.get("vendor_id", 0),
        product_id=raw.get("product_id", 0),
        usage_page=raw.get("usage_page", 0) or 0,
        usage=raw.get("usage", 0) or 0,
        interface_number=raw.get("interface_number", -1),
        manufacturer=_decode(raw.get("manufacturer_string")),
        product=_decode(raw.get("product_string")),
        serial_number=_decode(raw.get("serial_number")),
    )


def matches(info: DeviceInfo, identity: DeviceIdentity) -> bool:
    """Whether an enumerated interface belongs to the target device."""
    if info.vendor_id != identity.vendor_id or info.product_id != identity.product_id:
        return False
    if identity.usage_page is not None and info.usage_page != identity.usage_page:
        return False
    if identity.usage is not None and info.usage != identity.usage:
        return False
    return True


class HidDeviceHandle:
    """An open HID interface of the target keyboard.

    Wraps a ``hid.device`` together with what we know about it. Handles
    live for one refresh cycle; close them when the cycle ends.

    ``write()`` and ``close()`` share one lock: a write abandoned by a
    timeout may still be running in an executor thread, and hidapi must
    not free the device underneath it.
    """

    def __init__(self, device: hid.device, info: DeviceInfo, report_size: int) -> None:
        self._device = device
        self._info = info
        self._report_size = report_size
        self._lock = threading.Lock()

    @property
    def info(self) -> DeviceInfo:
        return self._info

    @property
    def report_size(self) -> int:
        return self._report_size

    @property
    def is_open(self) -> bool:
        return self._device is not None

    def write(self, data: bytes) -> int:
        """Write raw bytes (report ID included). Blocking."""
        with self._lock:
            if self._device is None:
                raise OSError("HID device is closed")
            return self._device.write(data)

    def last_error(self) -> str:
        with self._lock:
            if self._device is None:
                return ""
            try:
                return _decode(self._device.error())
            except (AttributeError, OSError, ValueError):
                return ""

    def close(self) -> None:
        """Close the device. Safe to call multiple times.

        Blocks until any write in flight has returned.
        """
        with self._lock:
            if self._device is None:
                return
            device, self._device = self._device, None
            try:
                device.close()
            except (OSError, ValueError) as e:
                logger.debug("Ignoring error while closing %s: %s", self._info, e)

    async def aclose(self) -> None:
        """Close from async code without blocking the event loop."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.close)

    def __enter__(self) -> HidDeviceHandle:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.close()

    def __str__(self) -> str:
        return str(self._info)


class DeviceLocator:
    """Enumerates HID devices and opens the first one matching an identity.

    Usage::

        locator = DeviceLocator(DeviceIdentity(vendor_id=0x8D1D, product_id=0x9D9D))
        handle = await locator.locate()
        if handle is not None:
            with handle:
                ...
    """

    def __init__(self, identity: DeviceIdentity, report_size: int = DEFAULT_REPORT_SIZE) -> None:
        self._identity = identity
        self._report_size = report_size

    @property
    def identity(self) -> DeviceIdentity:
        return self._identity

    def list_devices(self) -> list[DeviceInfo]:
        """Return every attached HID interface matching the identity."""
        try:
            raw_devices = hid.enumerate(self._identity.vendor_id, self._identity.product_id)
        except (OSError, ValueError) as e:
            logger.warning("HID enumeration failed: %s", e)
            return []
        found = []
        for raw in raw_devices:
            info = device_info_from_dict(raw)
            if matches(info, self._identity):
                found.append(info)
        return found

    def locate_sync(self) -> HidDeviceHandle | None:
        """Open the first matching device, or return None if there is none."""
        for info in self.list_devices():
            device = hid.device()
            try:
                device.open_path(info.path)
            except (OSError, ValueError) as e:
                logger.warning("Cannot open HID device %s: %s", info, e)
                continue
            logger.debug("Opened HID device %s", info)
            return HidDeviceHandle(device, info, self._report_size)
        return None

    async def locate(self) -> HidDeviceHandle | None:
        """Async wrapper running enumeration and open in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.locate_sync)

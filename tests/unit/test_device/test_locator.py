"""Tests for the DeviceLocator (hidapi mocked out)."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from hidticker.device.locator import (
    DeviceLocator,
    HidDeviceHandle,
    device_info_from_dict,
    matches,
)
from hidticker.domain.models import DeviceIdentity, DeviceInfo


def enum_entry(path: bytes, usage_page: int, usage: int, vid: int = 0x8D1D, pid: int = 0x9D9D) -> dict:
    return {
        "path": path,
        "vendor_id": vid,
        "product_id": pid,
        "serial_number": "",
        "release_number": 0x0100,
        "manufacturer_string": "splitkb.com",
        "product_string": "Elora",
        "usage_page": usage_page,
        "usage": usage,
        "interface_number": 1 if usage_page == 0xFF60 else 0,
    }


KEYBOARD_IFACE = enum_entry(b"/dev/hidraw2", 0x0001, 0x06)
RAW_HID_IFACE = enum_entry(b"/dev/hidraw3", 0xFF60, 0x61)


@pytest.fixture
def mock_hid():
    with patch("hidticker.device.locator.hid") as mock:
        mock.enumerate.return_value = []
        yield mock


class TestMatching:
    def test_device_info_from_dict(self) -> None:
        info = device_info_from_dict(RAW_HID_IFACE)
        assert info.path == b"/dev/hidraw3"
        assert info.product == "Elora"
        assert info.usage_page == 0xFF60

    def test_matches_by_vid_pid_only(self) -> None:
        ident = DeviceIdentity(vendor_id=0x8D1D, product_id=0x9D9D)
        assert matches(device_info_from_dict(KEYBOARD_IFACE), ident)
        assert matches(device_info_from_dict(RAW_HID_IFACE), ident)

    def test_usage_page_filter(self, identity: DeviceIdentity) -> None:
        assert not matches(device_info_from_dict(KEYBOARD_IFACE), identity)
        assert matches(device_info_from_dict(RAW_HID_IFACE), identity)

    def test_rejects_other_product(self) -> None:
        ident = DeviceIdentity(vendor_id=0x8D1D, product_id=0x9D9D)
        other = device_info_from_dict(enum_entry(b"/dev/hidraw9", 0xFF60, 0x61, pid=0x1234))
        assert not matches(other, ident)


class TestLocate:
    @pytest.mark.asyncio
    async def test_absent_device_returns_none(self, mock_hid: MagicMock, identity: DeviceIdentity) -> None:
        locator = DeviceLocator(identity)
        assert await locator.locate() is None
        mock_hid.enumerate.assert_called_once_with(0x8D1D, 0x9D9D)
        mock_hid.device.assert_not_called()

    @pytest.mark.asyncio
    async def test_opens_raw_hid_interface(self, mock_hid: MagicMock, identity: DeviceIdentity) -> None:
        mock_hid.enumerate.return_value = [KEYBOARD_IFACE, RAW_HID_IFACE]
        locator = DeviceLocator(identity, report_size=32)
        handle = await locator.locate()
        assert isinstance(handle, HidDeviceHandle)
        assert handle.report_size == 32
        assert handle.info.path == b"/dev/hidraw3"
        mock_hid.device.return_value.open_path.assert_called_once_with(b"/dev/hidraw3")

    @pytest.mark.asyncio
    async def test_first_match_wins_without_usage_filter(self, mock_hid: MagicMock) -> None:
        mock_hid.enumerate.return_value = [KEYBOARD_IFACE, RAW_HID_IFACE]
        locator = DeviceLocator(DeviceIdentity(vendor_id=0x8D1D, product_id=0x9D9D))
        handle = await locator.locate()
        assert handle is not None
        assert handle.info.path == b"/dev/hidraw2"

    @pytest.mark.asyncio
    async def test_open_failure_returns_none(self, mock_hid: MagicMock, identity: DeviceIdentity) -> None:
        mock_hid.enumerate.return_value = [RAW_HID_IFACE]
        mock_hid.device.return_value.open_path.side_effect = OSError("open failed")
        assert await DeviceLocator(identity).locate() is None

    @pytest.mark.asyncio
    async def test_enumeration_failure_returns_none(self, mock_hid: MagicMock, identity: DeviceIdentity) -> None:
        mock_hid.enumerate.side_effect = OSError("hidapi init failed")
        assert await DeviceLocator(identity).locate() is None

    def test_list_devices(self, mock_hid: MagicMock, identity: DeviceIdentity) -> None:
        mock_hid.enumerate.return_value = [KEYBOARD_IFACE, RAW_HID_IFACE]
        devices = DeviceLocator(identity).list_devices()
        assert [d.path for d in devices] == [b"/dev/hidraw3"]


class TestHidDeviceHandle:
    def test_close_is_idempotent(self, fake_hid_device: MagicMock, device_info: DeviceInfo) -> None:
        handle = HidDeviceHandle(fake_hid_device, device_info, report_size=32)
        with handle:
            assert handle.is_open
        handle.close()
        assert not handle.is_open
        fake_hid_device.close.assert_called_once()

    def test_write_after_close_raises(self, hid_handle: HidDeviceHandle) -> None:
        hid_handle.close()
        with pytest.raises(OSError, match="closed"):
            hid_handle.write(b"\x00" * 33)

    def test_close_swallows_device_error(self, fake_hid_device: MagicMock, device_info: DeviceInfo) -> None:
        fake_hid_device.close.side_effect = OSError("already gone")
        handle = HidDeviceHandle(fake_hid_device, device_info, report_size=32)
        handle.close()
        assert not handle.is_open

    def test_close_waits_for_write_in_flight(self, device_info: DeviceInfo) -> None:
        started = threading.Event()
        events: list[str] = []

        def slow_write(data: bytes) -> int:
            started.set()
            time.sleep(0.2)
            events.append("write")
            return len(data)

        device = MagicMock()
        device.write.side_effect = slow_write
        device.close.side_effect = lambda: events.append("close")
        handle = HidDeviceHandle(device, device_info, report_size=32)

        writer = threading.Thread(target=handle.write, args=(b"\x00" * 33,))
        writer.start()
        assert started.wait(timeout=1.0)
        handle.close()
        writer.join()

        assert events == ["write", "close"]

    @pytest.mark.asyncio
    async def test_aclose(self, hid_handle: HidDeviceHandle, fake_hid_device: MagicMock) -> None:
        await hid_handle.aclose()
        assert not hid_handle.is_open
        fake_hid_device.close.assert_called_once()

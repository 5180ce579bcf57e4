"""USB HID device access for hidticker.

Public API:
    DeviceLocator -- Finds and opens the target keyboard
    HidDeviceHandle -- An open device interface
    Transmitter -- Writes reports to an open device
"""

from hidticker.device.locator import DeviceLocator, HidDeviceHandle
from hidticker.device.transmitter import Transmitter
from hidticker.errors import SendError

__all__ = ["DeviceLocator", "HidDeviceHandle", "SendError", "Transmitter"]

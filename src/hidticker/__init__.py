"""hidticker -- Stock quotes on a USB HID keyboard display.

This package periodically fetches a handful of quote prices over HTTP,
encodes them into a fixed-size raw HID output report and writes that
report to an attached keyboard, whose firmware renders the text on its
own display. The refresh loop tolerates network failures and the
keyboard being unplugged and plugged back in.
"""

__version__ = "0.1.0"

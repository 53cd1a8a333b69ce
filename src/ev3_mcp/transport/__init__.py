"""Transports: Bluetooth RFCOMM (primary) and USB HID."""

from .base import Transport
from .rfcomm import RFCOMMTransport, validate_address
from .usb_connection import USBTransport

"""USB HID link to the EV3.

Supports both ``hidapi`` (preferred) and ``pyusb`` backends.
The brick enumerates as a HID device (0x0694:0x0005) and carries the same
command frames as the Bluetooth link, one frame per 1024-byte report,
on endpoints 0x01 (OUT) and 0x81 (IN).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import ConnectError, TransportError, TransportTimeout
from ..protocol.framing import frame_length
from .base import Transport

logger = logging.getLogger(__name__)

EV3_VENDOR_ID = 0x0694
EV3_PRODUCT_ID = 0x0005
HID_INTERFACE = 0
EP_IN = 0x81
EP_OUT = 0x01
HID_REPORT_SIZE = 1024
READ_TIMEOUT_MS = 2000


@dataclass
class DeviceInfo:
    """Basic device identification from USB descriptors."""

    vendor_id: int = EV3_VENDOR_ID
    product_id: int = EV3_PRODUCT_ID
    manufacturer: str = ""
    product: str = ""


class USBTransport(Transport):
    """HID connection to a brick plugged in over USB.

    Usage::

        link = USBTransport()
        link.open()
        reply = link.send_and_receive(frame)
        link.close()
    """

    def __init__(
        self,
        vendor_id: int = EV3_VENDOR_ID,
        product_id: int = EV3_PRODUCT_ID,
        read_timeout_ms: int = READ_TIMEOUT_MS,
    ) -> None:
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._read_timeout_ms = read_timeout_ms
        self._device = None
        self._backend: str = ""
        self._connected = False
        self._device_info = DeviceInfo(vendor_id=vendor_id, product_id=product_id)

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def device_info(self) -> DeviceInfo:
        return self._device_info

    def open(self) -> None:
        """Open the brick, trying hidapi first, then pyusb.

        Raises:
            ConnectError: If the brick cannot be found or opened.
        """
        try:
            self._open_hidapi()
            return
        except Exception as e:
            logger.debug("hidapi backend failed: %s, trying pyusb", e)

        try:
            self._open_pyusb()
        except Exception as e:
            raise ConnectError(
                f"Could not open EV3 over USB "
                f"({self._vendor_id:#06x}:{self._product_id:#06x}). "
                f"Ensure the brick is plugged in and you have permissions. "
                f"Last error: {e}"
            ) from e

    def _open_hidapi(self) -> None:
        import hid

        device = hid.device()
        device.open(self._vendor_id, self._product_id)
        device.set_nonblocking(False)

        self._device = device
        self._backend = "hidapi"
        self._connected = True
        self._device_info = DeviceInfo(
            vendor_id=self._vendor_id,
            product_id=self._product_id,
            manufacturer=device.get_manufacturer_string() or "",
            product=device.get_product_string() or "",
        )
        logger.info(
            "Connected via hidapi: %s %s",
            self._device_info.manufacturer,
            self._device_info.product,
        )

    def _open_pyusb(self) -> None:
        import usb.core
        import usb.util

        dev = usb.core.find(idVendor=self._vendor_id, idProduct=self._product_id)
        if dev is None:
            raise ConnectError("Brick not found via pyusb")

        if dev.is_kernel_driver_active(HID_INTERFACE):
            dev.detach_kernel_driver(HID_INTERFACE)
        dev.set_configuration()
        usb.util.claim_interface(dev, HID_INTERFACE)

        self._device = dev
        self._backend = "pyusb"
        self._connected = True
        self._device_info = DeviceInfo(
            vendor_id=self._vendor_id,
            product_id=self._product_id,
            manufacturer=usb.util.get_string(dev, dev.iManufacturer) or "",
            product=usb.util.get_string(dev, dev.iProduct) or "",
        )
        logger.info(
            "Connected via pyusb: %s %s",
            self._device_info.manufacturer,
            self._device_info.product,
        )

    def close(self) -> None:
        if not self._connected:
            return

        try:
            if self._backend == "hidapi":
                self._device.close()
            elif self._backend == "pyusb":
                import usb.util
                usb.util.release_interface(self._device, HID_INTERFACE)
                usb.util.dispose_resources(self._device)
        except Exception as e:
            logger.warning("Error closing device: %s", e)
        finally:
            self._device = None
            self._connected = False
            logger.info("Disconnected")

    def write(self, data: bytes) -> int:
        """Write one frame as a single zero-padded HID report."""
        if not self._connected:
            raise TransportError("Not connected to brick")

        report = bytes(data).ljust(HID_REPORT_SIZE, b"\x00")
        try:
            if self._backend == "hidapi":
                # hidapi expects the report ID as the first byte
                written = self._device.write(b"\x00" + report)
            else:
                written = self._device.write(EP_OUT, report, timeout=self._read_timeout_ms)
        except Exception as e:
            raise TransportError(f"USB write failed: {e}") from e
        if written is not None and written < 0:
            raise TransportError("USB write failed")
        return len(data)

    def read(self, size: int) -> bytes:
        """Read one HID report and return at most ``size`` bytes of it."""
        if not self._connected:
            raise TransportError("Not connected to brick")

        try:
            if self._backend == "hidapi":
                data = self._device.read(HID_REPORT_SIZE, self._read_timeout_ms)
            else:
                data = self._device.read(EP_IN, HID_REPORT_SIZE, timeout=self._read_timeout_ms)
        except Exception as e:
            if "timeout" in str(e).lower():
                raise TransportTimeout(f"No reply within {self._read_timeout_ms} ms") from e
            raise TransportError(f"USB read failed: {e}") from e
        if not data:
            raise TransportTimeout(f"No reply within {self._read_timeout_ms} ms")
        return bytes(data[:size])

    def receive_frame(self) -> bytes:
        """Slice the reply frame out of one padded HID report."""
        report = self.read(HID_REPORT_SIZE)
        total = frame_length(report) + 2
        if len(report) < total:
            raise TransportError(
                f"Reply declares {total} bytes but the report holds {len(report)}"
            )
        return report[:total]

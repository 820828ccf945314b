"""Thermal printer transports.

Two variants share one capability, ``write_section``:

* ``ConnectedTransport`` drives a python-escpos printer.
* ``UnavailableTransport`` is used when no printer could be opened; it
  writes nothing and the app keeps working in mock mode.

``connect_transport`` picks the variant once at startup. The connection is
chosen with environment variables:
  PRINTER_CONNECTION=usb|network|serial|file|none (default usb)
  PRINTER_USB_VENDOR_ID / PRINTER_USB_PRODUCT_ID (default 0x0483 / 0x5743)
  PRINTER_HOST / PRINTER_PORT, PRINTER_SERIAL_DEVICE, PRINTER_FILE_DEVICE
  PRINTER_TIMEOUT=<seconds> (default 10)
"""

import logging
import os
import socket
import threading
from contextlib import contextmanager
from typing import Sequence, Union

from dotenv import load_dotenv
from escpos.exceptions import Error as EscposError
from escpos.printer import File, Network, Serial, Usb

from .errors import PrinterUnavailableError, TransportWriteError

load_dotenv()

logger = logging.getLogger(__name__)

PrinterDevice = Union[Usb, Serial, Network, File]

DEFAULT_PRINTER_HOST = "192.168.2.120"
DEFAULT_PRINTER_PORT = 9100


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw, 0)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default


def _get_printer() -> PrinterDevice:
    """Configure printer device from the environment (not yet opened)."""
    connection = os.getenv("PRINTER_CONNECTION", "usb").strip().lower()
    timeout = _env_int("PRINTER_TIMEOUT", 10)

    if connection == "usb":
        vendor_id = _env_int("PRINTER_USB_VENDOR_ID", 0x0483)
        product_id = _env_int("PRINTER_USB_PRODUCT_ID", 0x5743)
        logger.info("Attempting USB printer (vendor 0x%04x, product 0x%04x)", vendor_id, product_id)
        # pyusb timeouts are in milliseconds
        return Usb(idVendor=vendor_id, idProduct=product_id, timeout=timeout * 1000)

    if connection == "network":
        host = os.getenv("PRINTER_HOST", DEFAULT_PRINTER_HOST)
        port = _env_int("PRINTER_PORT", DEFAULT_PRINTER_PORT)
        logger.info("Attempting network printer at %s:%s", host, port)
        return Network(host, port, timeout=timeout)

    if connection == "serial":
        devfile = os.getenv("PRINTER_SERIAL_DEVICE", "/dev/ttyUSB0")
        logger.info("Attempting serial printer on %s", devfile)
        return Serial(devfile=devfile, timeout=timeout)

    if connection == "file":
        devfile = os.getenv("PRINTER_FILE_DEVICE", "/dev/usb/lp0")
        logger.info("Attempting device file printer %s", devfile)
        return File(devfile=devfile)

    if connection == "none":
        raise PrinterUnavailableError("Printing disabled (PRINTER_CONNECTION=none)")

    raise PrinterUnavailableError(f"Unknown PRINTER_CONNECTION {connection!r}")


class ConnectedTransport:
    """A reachable escpos printer, held exclusively by one print job at a time."""

    mode = "printer"

    def __init__(self, printer) -> None:
        self.printer = printer
        self._lock = threading.Lock()

    @contextmanager
    def session(self):
        with self._lock:
            yield self

    def write_section(self, lines: Sequence[str], feed: int) -> None:
        """Print ``lines`` as large centered text, feed, then cut."""
        try:
            self.printer.set(
                align="center",
                font="a",
                bold=True,
                underline=1,
                double_width=True,
                double_height=True,
            )
            for line in lines:
                self.printer.textln(line)
            self.printer.ln(feed)
            self.printer.cut()
        except (EscposError, OSError) as exc:
            logger.error("Printer write failed: %s", exc)
            raise TransportWriteError(str(exc)) from exc

    def close(self) -> None:
        try:
            self.printer.close()
        except (EscposError, OSError):
            logger.exception("Failed to close printer")
        else:
            logger.info("Printer disconnected")


class UnavailableTransport:
    """Stand-in used when no printer is attached. Nothing reaches paper."""

    mode = "mock"

    def __init__(self, reason: str = "printer not connected") -> None:
        self.reason = reason

    @contextmanager
    def session(self):
        yield self

    def write_section(self, lines: Sequence[str], feed: int) -> None:
        logger.info("(Mock mode - printer not connected) %d line(s), feed %d, cut", len(lines), feed)

    def close(self) -> None:
        return


Transport = Union[ConnectedTransport, UnavailableTransport]


def connect_transport() -> Transport:
    """Open the configured printer, falling back to mock mode on any failure."""
    try:
        printer = _get_printer()
        printer.open()
    except PrinterUnavailableError as exc:
        logger.info("%s - running in mock mode", exc)
        return UnavailableTransport(str(exc))
    except (EscposError, OSError, RuntimeError, ValueError) as exc:
        # RuntimeError: escpos raises it when the pyusb/pyserial backend is missing
        logger.warning("Printer connection failed (%s) - running in mock mode", exc)
        logger.warning("The app will still work, but printing will only show in the log")
        return UnavailableTransport(str(exc))

    logger.info("Printer connected successfully")
    return ConnectedTransport(printer)


def check_printer_reachable(timeout: float = 1.5) -> dict:
    """Best-effort network reachability check for the configured printer."""
    connection = os.getenv("PRINTER_CONNECTION", "usb").strip().lower()
    if connection != "network":
        return {"ok": None, "connection": connection, "error": "Reachability check needs a network printer"}

    host = os.getenv("PRINTER_HOST", DEFAULT_PRINTER_HOST)
    port = _env_int("PRINTER_PORT", DEFAULT_PRINTER_PORT)
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return {"ok": True, "connection": connection, "host": host, "port": port}
    except OSError as exc:
        return {"ok": False, "connection": connection, "host": host, "port": port, "error": str(exc)}

# -*- coding: utf-8 -*-
# Copyright (c) 2023, IMOGI and contributors
# For license information, please see license.txt

"""
Bluetooth printer connection manager.

Tracks the single printer this process talks to, persists the last connected
device so it can be reconnected after a restart, and sends formatted receipts.

Every public operation is best-effort: failures come back as ``False`` /
``None`` / ``[]`` and the reason is kept in ``last_error``. Wording the message
for the operator is left to the caller.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from laundry_pos.config import DEFAULT_ENCODING, DEFAULT_WRITE_TIMEOUT, load_config
from laundry_pos.printer.errors import (
    ConnectionFailed,
    DeviceNotFound,
    InvalidInput,
    NotConnected,
    PermissionDenied,
    PrinterError,
    WriteFailed,
)
from laundry_pos.printer.storage import JsonFileStore, PrinterPreferences
from laundry_pos.printer.transport import BluetoothDevice, BluetoothTransport, RfcommTransport
from laundry_pos.receipt.formatter import format_receipt, format_test_page
from laundry_pos.receipt.models import PaperWidth

logger = logging.getLogger(__name__)

# Extra feed after every job so the last line clears the tear-off bar
TRAILING_FEED = "\n\n\n"


def _as_printer_error(error: Exception, default_cls) -> PrinterError:
    if isinstance(error, PrinterError):
        return error
    return default_cls(str(error) or error.__class__.__name__)


class PrinterConnectionManager:
    """
    Owns the connection to one Bluetooth thermal printer.

    Create one instance per process and hand it to whoever needs to print.
    Connection state changes only through :meth:`connect` (Disconnected ->
    Connected) and :meth:`disconnect` or a failed write (Connected ->
    Disconnected). Operations are serialized with a lock so rapid repeated
    calls from the UI cannot interleave state changes.

    Args:
        transport (BluetoothTransport): Radio access.
        preferences (PrinterPreferences): Persisted device id and paper width.
        write_timeout (float, optional): Seconds allowed for one print job.
        encoding (str, optional): Encoding for receipt text on the wire.
    """

    def __init__(
        self,
        transport: BluetoothTransport,
        preferences: PrinterPreferences,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
        encoding: str = DEFAULT_ENCODING,
    ):
        self.transport = transport
        self.preferences = preferences
        self.write_timeout = write_timeout
        self.encoding = encoding
        self.connected_device: Optional[BluetoothDevice] = None
        self.last_error: Optional[PrinterError] = None
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "PrinterConnectionManager":
        """Build a manager on the RFCOMM transport and the JSON settings file."""
        config = config or load_config()
        return cls(
            transport=RfcommTransport(rfcomm_port=config.get("rfcomm_port")),
            preferences=PrinterPreferences(JsonFileStore(config["settings_path"])),
            write_timeout=config.get("write_timeout", DEFAULT_WRITE_TIMEOUT),
            encoding=config.get("encoding", DEFAULT_ENCODING),
        )

    def _fail(self, error: PrinterError, exc_info: bool = False) -> None:
        self.last_error = error
        logger.error(f"[printer] {error.code}: {error.message}", exc_info=exc_info)

    def _fail_with(self, error: Exception, default_cls) -> None:
        # Only unexpected errors deserve a traceback in the log
        self._fail(_as_printer_error(error, default_cls), exc_info=not isinstance(error, PrinterError))

    def get_connected_device(self) -> Optional[BluetoothDevice]:
        return self.connected_device

    def check_bluetooth_enabled(self) -> bool:
        with self._lock:
            try:
                return bool(self.transport.is_enabled())
            except Exception as e:
                self._fail_with(e, ConnectionFailed)
                return False

    def list_paired_devices(self) -> List[BluetoothDevice]:
        """
        List printers already paired with this host.

        Returns an empty list when permission is refused; ``last_error`` is
        then a :class:`PermissionDenied`.
        """
        with self._lock:
            self.last_error = None
            try:
                if not self.transport.request_permissions():
                    self._fail(PermissionDenied("Bluetooth permission denied"))
                    return []
                return list(self.transport.bonded_devices())
            except Exception as e:
                self._fail_with(e, ConnectionFailed)
                return []

    def _find_bonded_device(self, device_id: str) -> BluetoothDevice:
        for device in self.transport.bonded_devices():
            if device.id == device_id:
                return device
        raise DeviceNotFound(f"Device {device_id} is not paired")

    def _link_is_up(self, device_id: str) -> bool:
        return device_id in self.transport.connected_device_ids()

    def _clear_saved_device(self) -> None:
        try:
            self.preferences.clear_device_id()
        except Exception as e:
            logger.error(f"Failed to clear saved printer id: {str(e)}")

    def _release(self, device: BluetoothDevice, clear_saved: bool) -> None:
        """Close ``device`` best-effort and forget it."""
        try:
            self.transport.disconnect(device.id)
        except Exception as e:
            logger.warning(f"Error closing link to {device.id}: {str(e)}")
        self.connected_device = None
        if clear_saved:
            self._clear_saved_device()

    def connect(self, device_id: str) -> Optional[BluetoothDevice]:
        """
        Connect to a paired printer.

        Connecting to the printer that is already connected reuses the live
        link; connecting to another one opens the new link first and
        closes the current one only once the new link is up.

        Returns:
            BluetoothDevice: The connected device, or ``None`` on failure.
        """
        with self._lock:
            self.last_error = None
            if not device_id:
                self._fail(InvalidInput("Device id is required"))
                return None

            try:
                device = self._find_bonded_device(device_id)

                current = self.connected_device
                if current is not None and current.id == device.id and self._link_is_up(device.id):
                    logger.info(f"Printer {device.id} already connected")
                    return current

                if not self.transport.connect(device):
                    raise ConnectionFailed(f"Connection to {device.id} failed")
            except Exception as e:
                self._fail_with(e, ConnectionFailed)
                return None

            # The previous printer stays usable until the new link is up
            if current is not None and current.id != device.id:
                self._release(current, clear_saved=False)
            self.connected_device = device
            try:
                self.preferences.save_device_id(device.id)
            except Exception as e:
                logger.error(f"Connected but failed to remember printer {device.id}: {str(e)}")

            logger.info(f"Connected to printer: {device.name or device.id}")
            return device

    def disconnect(self) -> bool:
        """
        Disconnect the current printer.

        In-memory state and the saved device id are cleared even when closing
        the link fails; holding on to a dead handle is worse than a clean reset.

        Returns:
            bool: ``True`` when idle or closed cleanly, ``False`` if the close failed.
        """
        with self._lock:
            self.last_error = None
            device = self.connected_device
            if device is None:
                logger.info("No device to disconnect")
                return True

            success = True
            try:
                self.transport.disconnect(device.id)
            except Exception as e:
                self._fail_with(e, ConnectionFailed)
                success = False
            finally:
                self.connected_device = None
                self._clear_saved_device()

            if success:
                logger.info(f"Disconnected from printer: {device.name or device.id}")
            return success

    def is_connected(self) -> bool:
        """Ask the radio whether the current printer link is still up."""
        with self._lock:
            device = self.connected_device
            if device is None:
                return False
            try:
                return self._link_is_up(device.id)
            except Exception as e:
                logger.error(f"Failed to check connection state: {str(e)}")
                return False

    def reconnect_if_needed(self) -> Optional[BluetoothDevice]:
        """One-shot reconnect to the saved printer, e.g. at startup."""
        with self._lock:
            self.last_error = None
            if self.is_connected():
                return self.connected_device

            device_id = self.preferences.get_device_id()
            if not device_id:
                return None

            logger.info(f"Reconnecting to saved printer {device_id}")
            return self.connect(device_id)

    def get_paper_width(self) -> str:
        """Saved paper width code, or the default when none is saved."""
        return PaperWidth.resolve(self.preferences.get_paper_width())

    def set_paper_width(self, width: str) -> bool:
        with self._lock:
            self.last_error = None
            try:
                self.preferences.save_paper_width(width)
            except Exception as e:
                self._fail_with(e, InvalidInput)
                return False
            return True

    def status(self) -> Dict[str, Any]:
        with self._lock:
            connected = self.is_connected()
            device = self.connected_device
            return {
                "connected": connected,
                "device": device.as_dict() if device else None,
                "paper_width": self.get_paper_width(),
            }

    def _write(self, text: str) -> bool:
        device = self.connected_device
        if device is None or not self.is_connected():
            self._fail(NotConnected("No printer connected"))
            return False

        try:
            payload = (text + TRAILING_FEED).encode(self.encoding, errors="replace")
        except LookupError as e:
            self._fail(InvalidInput(f"Unknown printer encoding: {str(e)}"))
            return False

        try:
            logger.info(f"Sending {len(payload)} bytes to printer {device.id}")
            if not self.transport.write(device.id, payload, timeout=self.write_timeout):
                raise WriteFailed(f"Printer {device.id} did not accept the data")
        except Exception as e:
            self._fail_with(e, WriteFailed)
            # Force a fresh connect instead of failing again on a dead handle
            self._release(device, clear_saved=True)
            return False

        logger.info("Receipt sent to printer successfully")
        return True

    def print_receipt(self, transaction, shop_profile=None) -> bool:
        """
        Format and print a receipt on the connected printer.

        Args:
            transaction: Transaction record or its plain-dict shape.
            shop_profile (optional): Shop header source.

        Returns:
            bool: ``True`` when the printer accepted the job.
        """
        with self._lock:
            self.last_error = None
            try:
                receipt = format_receipt(transaction, shop_profile, self.get_paper_width())
            except Exception as e:
                self._fail_with(e, InvalidInput)
                return False
            if not receipt:
                self._fail(InvalidInput("Nothing to print"))
                return False
            return self._write(receipt)

    def print_raw(self, text: str) -> bool:
        """Print text that is already formatted (control codes included)."""
        with self._lock:
            self.last_error = None
            if not text:
                self._fail(InvalidInput("Nothing to print"))
                return False
            return self._write(text)

    def print_test_page(self) -> bool:
        with self._lock:
            self.last_error = None
            return self._write(format_test_page(self.get_paper_width()))

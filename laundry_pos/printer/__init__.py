"""
Laundry POS Printer Package

Owns the single Bluetooth thermal printer connection:
- errors.py: Failure taxonomy shared by transports and the manager
- transport.py: Bluetooth transports (RFCOMM via BlueZ/PyBluez)
- storage.py: Persisted printer preferences
- manager.py: Connection lifecycle and receipt printing
"""

from laundry_pos.printer.errors import (
    ConnectionFailed,
    DeviceNotFound,
    InvalidInput,
    NotConnected,
    PermissionDenied,
    PrinterError,
    WriteFailed,
)
from laundry_pos.printer.manager import PrinterConnectionManager
from laundry_pos.printer.storage import JsonFileStore, MemoryStore, PrinterPreferences
from laundry_pos.printer.transport import BluetoothDevice, BluetoothTransport, RfcommTransport

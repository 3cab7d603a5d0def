# -*- coding: utf-8 -*-
# Copyright (c) 2023, IMOGI and contributors
# For license information, please see license.txt

"""
Printer failure taxonomy.

Transports raise these; :class:`~laundry_pos.printer.manager.PrinterConnectionManager`
turns them into boolean/optional results and keeps the last one around so the
UI layer can word its own message.
"""


class PrinterError(Exception):
    """Base class for recoverable printer failures."""

    code = "printer_error"
    http_status = 500

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def as_dict(self):
        return {"code": self.code, "message": self.message}


class PermissionDenied(PrinterError):
    """Bluetooth scan/connect is not authorized for this process."""

    code = "permission_denied"
    http_status = 403


class DeviceNotFound(PrinterError):
    """Requested device id is not among the paired devices."""

    code = "device_not_found"
    http_status = 404


class ConnectionFailed(PrinterError):
    code = "connection_failed"
    http_status = 502


class NotConnected(PrinterError):
    code = "not_connected"
    http_status = 409


class WriteFailed(PrinterError):
    code = "write_failed"
    http_status = 502


class InvalidInput(PrinterError):
    code = "invalid_input"
    http_status = 400

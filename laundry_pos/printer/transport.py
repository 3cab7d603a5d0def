# -*- coding: utf-8 -*-
# Copyright (c) 2023, IMOGI and contributors
# For license information, please see license.txt

"""
Bluetooth transports for thermal printers.

A transport only moves bytes; connection bookkeeping, persistence and the
"one printer at a time" rule live in the connection manager.

RfcommTransport talks to Serial Port Profile printers on Linux/BlueZ:
- Paired devices: ``bluetoothctl devices Paired`` (BlueZ 5.65+)
- Connections: RFCOMM sockets from PyBluez (``pip install pybluez``)
"""

import errno
import logging
import re
import subprocess
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from laundry_pos.printer.errors import (
    ConnectionFailed,
    NotConnected,
    PermissionDenied,
    WriteFailed,
)

logger = logging.getLogger(__name__)

DEFAULT_RFCOMM_PORT = 1

_DEVICE_LINE_RE = re.compile(r"^Device\s+(?P<address>(?:[0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2})\s*(?P<name>.*)$")
_PERMISSION_MARKERS = ("not authorized", "permission denied", "access denied")


@dataclass
class BluetoothDevice:
    id: str
    name: Optional[str]
    address: str

    def as_dict(self):
        return {"id": self.id, "name": self.name, "address": self.address}


class BluetoothTransport:
    """Interface every printer transport implements."""

    def is_enabled(self) -> bool:
        raise NotImplementedError

    def request_permissions(self) -> bool:
        """Return True when this process may scan and connect."""
        raise NotImplementedError

    def bonded_devices(self) -> List[BluetoothDevice]:
        """Already paired devices. No discovery or pairing is performed."""
        raise NotImplementedError

    def connect(self, device: BluetoothDevice) -> bool:
        raise NotImplementedError

    def connected_device_ids(self) -> List[str]:
        """Ids of devices whose link is up right now, as seen by the radio."""
        raise NotImplementedError

    def write(self, device_id: str, payload: bytes, timeout: Optional[float] = None) -> bool:
        raise NotImplementedError

    def disconnect(self, device_id: str) -> None:
        raise NotImplementedError


def parse_bluetoothctl_devices(output: str) -> List[BluetoothDevice]:
    """Parse ``Device <MAC> <name>`` lines printed by ``bluetoothctl``."""
    devices = []
    for line in (output or "").splitlines():
        match = _DEVICE_LINE_RE.match(line.strip())
        if not match:
            continue
        address = match.group("address").upper()
        devices.append(BluetoothDevice(id=address, name=match.group("name") or None, address=address))
    return devices


class RfcommTransport(BluetoothTransport):
    """
    Serial Port Profile transport over RFCOMM sockets.

    Args:
        rfcomm_port (int, optional): Fixed RFCOMM channel. When not set the
            channel is looked up through SDP and falls back to channel 1.
        command_timeout (int, optional): Timeout for ``bluetoothctl`` calls.
    """

    def __init__(self, rfcomm_port: Optional[int] = None, command_timeout: float = 5):
        self.rfcomm_port = rfcomm_port
        self.command_timeout = command_timeout
        self._sockets: Dict[str, object] = {}

    def _bluetooth(self):
        try:
            import bluetooth
        except ImportError:
            raise ConnectionFailed("Bluetooth support not installed. Run: pip install pybluez")
        return bluetooth

    def _bluetoothctl(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["bluetoothctl", *args],
                capture_output=True,
                text=True,
                timeout=self.command_timeout,
            )
        except FileNotFoundError:
            raise ConnectionFailed("bluetoothctl not found. Install BlueZ")
        except subprocess.TimeoutExpired:
            raise ConnectionFailed(f"bluetoothctl {' '.join(args)} timed out")

        combined = f"{result.stdout or ''}\n{result.stderr or ''}".lower()
        if any(marker in combined for marker in _PERMISSION_MARKERS):
            raise PermissionDenied("Not authorized to use the Bluetooth adapter")
        if result.returncode != 0:
            raise ConnectionFailed(
                f"bluetoothctl {' '.join(args)} failed: {(result.stderr or '').strip()}"
            )
        return result.stdout or ""

    def is_enabled(self) -> bool:
        return "powered: yes" in self._bluetoothctl("show").lower()

    def request_permissions(self) -> bool:
        try:
            self._bluetoothctl("show")
        except PermissionDenied:
            return False
        return True

    def bonded_devices(self) -> List[BluetoothDevice]:
        return parse_bluetoothctl_devices(self._bluetoothctl("devices", "Paired"))

    def _find_spp_port(self, bluetooth, address: str) -> int:
        try:
            services = bluetooth.find_service(uuid=bluetooth.SERIAL_PORT_CLASS, address=address)
        except bluetooth.BluetoothError as e:
            logger.warning(f"SDP lookup failed for {address}, using channel {DEFAULT_RFCOMM_PORT}: {str(e)}")
            return DEFAULT_RFCOMM_PORT

        for service in services or []:
            if service.get("port"):
                return int(service["port"])
        return DEFAULT_RFCOMM_PORT

    def connect(self, device: BluetoothDevice) -> bool:
        bluetooth = self._bluetooth()
        port = self.rfcomm_port or self._find_spp_port(bluetooth, device.address)

        logger.info(f"Opening RFCOMM channel {port} to {device.address}")
        sock = bluetooth.BluetoothSocket(bluetooth.RFCOMM)
        try:
            sock.connect((device.address, port))
        except OSError as e:
            sock.close()
            if getattr(e, "errno", None) in (errno.EACCES, errno.EPERM):
                raise PermissionDenied(f"Not allowed to connect to {device.address}")
            raise ConnectionFailed(f"Bluetooth connection error: {str(e)}")

        self._sockets[device.id] = sock
        return True

    def connected_device_ids(self) -> List[str]:
        alive = []
        for device_id, sock in list(self._sockets.items()):
            try:
                sock.getpeername()
            except OSError:
                # Link dropped without a local event
                logger.info(f"RFCOMM link to {device_id} is gone")
                self._sockets.pop(device_id, None)
                self._close_quietly(sock)
                continue
            alive.append(device_id)
        return alive

    def write(self, device_id: str, payload: bytes, timeout: Optional[float] = None) -> bool:
        sock = self._sockets.get(device_id)
        if sock is None:
            raise NotConnected(f"No open RFCOMM socket for {device_id}")

        remaining = payload
        # The timeout bounds the whole job, not each send
        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            while remaining:
                if deadline is None:
                    sock.settimeout(None)
                else:
                    left = deadline - time.monotonic()
                    if left <= 0:
                        raise WriteFailed(
                            f"Write to {device_id} timed out after {timeout}s with {len(remaining)} bytes left"
                        )
                    sock.settimeout(left)
                sent = sock.send(remaining)
                if not sent:
                    raise WriteFailed(f"Printer {device_id} accepted no data")
                remaining = remaining[sent:]
        except OSError as e:
            raise WriteFailed(f"Bluetooth write error: {str(e)}")
        return True

    def disconnect(self, device_id: str) -> None:
        sock = self._sockets.pop(device_id, None)
        if sock is not None:
            sock.close()

    def _close_quietly(self, sock) -> None:
        try:
            sock.close()
        except OSError as e:
            logger.debug(f"Ignoring close error on dead socket: {str(e)}")

import subprocess
import sys
import types

import pytest

sys.path.insert(0, ".")

from laundry_pos.printer import transport as transport_module  # noqa: E402
from laundry_pos.printer.errors import (  # noqa: E402
    ConnectionFailed,
    NotConnected,
    PermissionDenied,
    WriteFailed,
)
from laundry_pos.printer.transport import (  # noqa: E402
    BluetoothDevice,
    RfcommTransport,
    parse_bluetoothctl_devices,
)

PAIRED_OUTPUT = """Device 66:22:B3:10:4F:01 RPP02N
Device 66:22:b3:10:4f:02 MTP-II
[CHG] Controller 00:1A:7D:DA:71:13 Discovering: no
Device 11:22:33:44:55:66
"""

PRINTER = BluetoothDevice(id="66:22:B3:10:4F:01", name="RPP02N", address="66:22:B3:10:4F:01")


def completed(stdout="", stderr="", returncode=0):
    return types.SimpleNamespace(stdout=stdout, stderr=stderr, returncode=returncode)


@pytest.fixture
def bluetoothctl(monkeypatch):
    calls = []
    responses = {}

    def fake_run(cmd, capture_output=True, text=True, timeout=None):
        calls.append(cmd)
        result = responses.get(tuple(cmd[1:]), completed())
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(transport_module.subprocess, "run", fake_run)
    return calls, responses


@pytest.fixture
def bluetooth_module(monkeypatch):
    bluetooth = types.ModuleType("bluetooth")
    bluetooth.RFCOMM = 3
    bluetooth.SERIAL_PORT_CLASS = "1101"

    class BluetoothError(OSError):
        pass

    class FakeSocket:
        instances = []

        def __init__(self, proto):
            self.proto = proto
            self.peer = None
            self.sent = b""
            self.timeout = None
            self.closed = False
            self.connect_error = None
            self.send_error = None
            FakeSocket.instances.append(self)

        def connect(self, address):
            if bluetooth.next_connect_error:
                raise bluetooth.next_connect_error
            self.peer = address

        def settimeout(self, timeout):
            self.timeout = timeout

        def send(self, data):
            if self.send_error:
                raise self.send_error
            # Radio accepts small chunks at a time
            chunk = data[:16]
            self.sent += chunk
            return len(chunk)

        def getpeername(self):
            if self.peer is None or self.closed:
                raise BluetoothError(107, "Transport endpoint is not connected")
            return self.peer

        def close(self):
            self.closed = True

    bluetooth.BluetoothError = BluetoothError
    bluetooth.BluetoothSocket = FakeSocket
    bluetooth.next_connect_error = None
    bluetooth.services = [{"name": "Serial Port", "host": PRINTER.address, "port": 2}]
    bluetooth.find_service = lambda uuid=None, address=None: bluetooth.services

    monkeypatch.setitem(sys.modules, "bluetooth", bluetooth)
    return bluetooth


def test_parse_bluetoothctl_devices():
    devices = parse_bluetoothctl_devices(PAIRED_OUTPUT)

    assert [(d.id, d.name) for d in devices] == [
        ("66:22:B3:10:4F:01", "RPP02N"),
        ("66:22:B3:10:4F:02", "MTP-II"),
        ("11:22:33:44:55:66", None),
    ]


def test_bonded_devices_uses_bluetoothctl(bluetoothctl):
    calls, responses = bluetoothctl
    responses[("devices", "Paired")] = completed(PAIRED_OUTPUT)

    devices = RfcommTransport().bonded_devices()

    assert len(devices) == 3
    assert calls == [["bluetoothctl", "devices", "Paired"]]


def test_is_enabled_reads_power_state(bluetoothctl):
    _, responses = bluetoothctl
    responses[("show",)] = completed("Controller 00:1A:7D:DA:71:13\n\tPowered: yes\n")
    assert RfcommTransport().is_enabled() is True

    responses[("show",)] = completed("Controller 00:1A:7D:DA:71:13\n\tPowered: no\n")
    assert RfcommTransport().is_enabled() is False


def test_request_permissions_detects_denial(bluetoothctl):
    _, responses = bluetoothctl
    responses[("show",)] = completed(stderr="Access denied: org.bluez.Error.NotAuthorized", returncode=1)

    assert RfcommTransport().request_permissions() is False


def test_missing_bluetoothctl_is_a_connection_failure(bluetoothctl):
    _, responses = bluetoothctl
    responses[("devices", "Paired")] = FileNotFoundError("bluetoothctl")

    with pytest.raises(ConnectionFailed):
        RfcommTransport().bonded_devices()


def test_bluetoothctl_timeout(bluetoothctl):
    _, responses = bluetoothctl
    responses[("show",)] = subprocess.TimeoutExpired(["bluetoothctl", "show"], 5)

    with pytest.raises(ConnectionFailed):
        RfcommTransport().is_enabled()


def test_connect_uses_spp_channel(bluetooth_module):
    transport = RfcommTransport()

    assert transport.connect(PRINTER) is True

    sock = bluetooth_module.BluetoothSocket.instances[-1]
    assert sock.proto == bluetooth_module.RFCOMM
    assert sock.peer == (PRINTER.address, 2)
    assert transport.connected_device_ids() == [PRINTER.id]


def test_connect_with_fixed_channel_skips_lookup(bluetooth_module):
    def no_lookup(**kwargs):
        raise AssertionError("SDP lookup should be skipped")

    bluetooth_module.find_service = no_lookup
    transport = RfcommTransport(rfcomm_port=5)
    transport.connect(PRINTER)

    assert bluetooth_module.BluetoothSocket.instances[-1].peer == (PRINTER.address, 5)


def test_connect_falls_back_to_channel_one(bluetooth_module):
    bluetooth_module.services = []
    RfcommTransport().connect(PRINTER)

    assert bluetooth_module.BluetoothSocket.instances[-1].peer == (PRINTER.address, 1)


def test_connect_error_is_reported(bluetooth_module):
    bluetooth_module.next_connect_error = bluetooth_module.BluetoothError(112, "Host is down")
    transport = RfcommTransport(rfcomm_port=1)

    with pytest.raises(ConnectionFailed):
        transport.connect(PRINTER)
    assert bluetooth_module.BluetoothSocket.instances[-1].closed is True
    assert transport.connected_device_ids() == []


def test_connect_permission_error(bluetooth_module):
    bluetooth_module.next_connect_error = PermissionError(13, "Permission denied")

    with pytest.raises(PermissionDenied):
        RfcommTransport(rfcomm_port=1).connect(PRINTER)


def test_connect_without_pybluez(monkeypatch):
    monkeypatch.setitem(sys.modules, "bluetooth", None)

    with pytest.raises(ConnectionFailed):
        RfcommTransport().connect(PRINTER)


def test_write_sends_every_byte_with_timeout(bluetooth_module):
    transport = RfcommTransport(rfcomm_port=1)
    transport.connect(PRINTER)
    payload = b"\x1b@" + b"Cuci Kering 3kg @10000/kg" * 4 + b"\n\n\n"

    assert transport.write(PRINTER.id, payload, timeout=5) is True

    sock = bluetooth_module.BluetoothSocket.instances[-1]
    assert sock.sent == payload
    assert 0 < sock.timeout <= 5


def test_write_timeout_bounds_the_whole_job(bluetooth_module, monkeypatch):
    transport = RfcommTransport(rfcomm_port=1)
    transport.connect(PRINTER)
    sock = bluetooth_module.BluetoothSocket.instances[-1]

    clock = {"now": 100.0}
    monkeypatch.setattr(transport_module, "time", types.SimpleNamespace(monotonic=lambda: clock["now"]))
    original_send = sock.send

    def slow_send(data):
        # Every chunk is accepted, but each one takes a second
        clock["now"] += 1.0
        return original_send(data)

    sock.send = slow_send
    payload = b"x" * 160

    with pytest.raises(WriteFailed):
        transport.write(PRINTER.id, payload, timeout=3)
    assert 0 < len(sock.sent) < len(payload)


def test_write_without_timeout_blocks(bluetooth_module):
    transport = RfcommTransport(rfcomm_port=1)
    transport.connect(PRINTER)

    assert transport.write(PRINTER.id, b"hello", timeout=None) is True
    assert bluetooth_module.BluetoothSocket.instances[-1].timeout is None


def test_write_error_raises_write_failed(bluetooth_module):
    transport = RfcommTransport(rfcomm_port=1)
    transport.connect(PRINTER)
    bluetooth_module.BluetoothSocket.instances[-1].send_error = bluetooth_module.BluetoothError("timed out")

    with pytest.raises(WriteFailed):
        transport.write(PRINTER.id, b"data", timeout=1)


def test_write_without_socket():
    with pytest.raises(NotConnected):
        RfcommTransport().write(PRINTER.id, b"data")


def test_dropped_link_is_detected(bluetooth_module):
    transport = RfcommTransport(rfcomm_port=1)
    transport.connect(PRINTER)
    sock = bluetooth_module.BluetoothSocket.instances[-1]

    sock.peer = None

    assert transport.connected_device_ids() == []
    assert sock.closed is True
    with pytest.raises(NotConnected):
        transport.write(PRINTER.id, b"data")


def test_disconnect_closes_socket(bluetooth_module):
    transport = RfcommTransport(rfcomm_port=1)
    transport.connect(PRINTER)
    sock = bluetooth_module.BluetoothSocket.instances[-1]

    transport.disconnect(PRINTER.id)
    transport.disconnect(PRINTER.id)

    assert sock.closed is True
    assert transport.connected_device_ids() == []

import sys

import pytest

# Ensure package root is on path
sys.path.insert(0, ".")

from laundry_pos.printer.errors import ConnectionFailed  # noqa: E402
from laundry_pos.printer.manager import PrinterConnectionManager  # noqa: E402
from laundry_pos.printer.storage import MemoryStore, PrinterPreferences  # noqa: E402
from laundry_pos.printer.transport import BluetoothDevice, BluetoothTransport  # noqa: E402

PRINTER_ID = "66:22:B3:10:4F:01"
OTHER_PRINTER_ID = "66:22:B3:10:4F:02"


class StubTransport(BluetoothTransport):
    """In-memory radio: paired devices, live links and written payloads."""

    def __init__(self, devices=None):
        self.devices = devices if devices is not None else [
            BluetoothDevice(id=PRINTER_ID, name="RPP02N", address=PRINTER_ID),
            BluetoothDevice(id=OTHER_PRINTER_ID, name="MTP-II", address=OTHER_PRINTER_ID),
        ]
        self.enabled = True
        self.permission = True
        self.links = set()
        self.writes = []
        self.calls = []
        self.connect_error = None
        self.connect_result = True
        self.write_error = None
        self.write_result = True
        self.disconnect_error = None

    def is_enabled(self):
        return self.enabled

    def request_permissions(self):
        return self.permission

    def bonded_devices(self):
        return list(self.devices)

    def connect(self, device):
        self.calls.append(("connect", device.id))
        if self.connect_error:
            raise self.connect_error
        if self.connect_result:
            self.links.add(device.id)
        return self.connect_result

    def connected_device_ids(self):
        return sorted(self.links)

    def write(self, device_id, payload, timeout=None):
        self.calls.append(("write", device_id))
        if self.write_error:
            raise self.write_error
        self.writes.append((device_id, payload, timeout))
        return self.write_result

    def disconnect(self, device_id):
        self.calls.append(("disconnect", device_id))
        self.links.discard(device_id)
        if self.disconnect_error:
            raise self.disconnect_error

    def drop_link(self, device_id):
        """Simulate the printer going out of range."""
        self.links.discard(device_id)


@pytest.fixture
def transaction_data():
    return {
        "_id": "TRX-0001",
        "customer": {
            "customerId": "CUST-1",
            "name": "Budi",
            "phoneNumber": "081234567890",
            "address": "Jl. Merdeka No. 10, Bandung",
        },
        "services": [
            {
                "serviceId": "SVC-1",
                "name": "Cuci Kering",
                "pricePerKg": 10000,
                "weight": 3,
                "totalPrice": 30000,
            }
        ],
        "totalWeight": 3,
        "totalPrice": 30000,
        "createdAt": "2024-05-01T10:30:00",
        "status": "pending",
    }


@pytest.fixture
def shop_profile():
    return {
        "shopName": "Laundry Bersih",
        "address": "Jl. Asia Afrika 8, Bandung",
        "phone": "022-1234567",
    }


@pytest.fixture
def transport():
    return StubTransport()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def manager(transport, store):
    return PrinterConnectionManager(transport, PrinterPreferences(store), write_timeout=3)


@pytest.fixture
def connection_failure():
    return ConnectionFailed("Bluetooth connection error: host is down")

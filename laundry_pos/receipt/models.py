# -*- coding: utf-8 -*-
# Copyright (c) 2023, IMOGI and contributors
# For license information, please see license.txt

"""
Plain data records handed to the receipt formatter.

Records are snapshots supplied by the persistence layer. The customer block is
a denormalized copy taken when the transaction was created, so later edits to
the customer do not alter historical receipts.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, accepting both camelCase and snake_case."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _to_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a creation timestamp.

    Accepts ``datetime`` objects, ISO-8601 strings (a trailing ``Z`` is
    understood) and epoch milliseconds as produced by JavaScript clients.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"Timestamp out of range: {value!r}") from e
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    raise ValueError(f"Unsupported timestamp: {value!r}")


class TransactionStatus:
    """Transaction lifecycle codes and their receipt labels."""

    PENDING = "pending"
    WAITING_FOR_PICKUP = "waiting_for_pickup"
    COMPLETED = "completed"
    CANCELED = "canceled"

    LABELS = {
        PENDING: "Diproses",
        WAITING_FOR_PICKUP: "Menunggu Diambil",
        COMPLETED: "Selesai",
        CANCELED: "Dibatalkan",
    }

    # Spellings seen in stored records
    ALIASES = {
        "waiting": WAITING_FOR_PICKUP,
        "waiting-for-pickup": WAITING_FOR_PICKUP,
        "cancelled": CANCELED,
    }

    @classmethod
    def normalize(cls, status: Optional[str]) -> Optional[str]:
        if not status:
            return None
        code = str(status).strip().lower()
        return cls.ALIASES.get(code, code)

    @classmethod
    def label(cls, status: Optional[str]) -> str:
        """Display label for a status; unknown codes are shown verbatim."""
        code = cls.normalize(status)
        if not code:
            return ""
        return cls.LABELS.get(code, str(status))


class PaperWidth:
    """Supported paper widths and their character-column counts."""

    NARROW = "58"
    MEDIUM = "76"
    WIDE = "80"

    DEFAULT = WIDE

    COLUMNS = {
        NARROW: 32,
        MEDIUM: 42,
        WIDE: 60,
    }

    ALIASES = {
        "narrow": NARROW,
        "medium": MEDIUM,
        "wide": WIDE,
        "58mm": NARROW,
        "76mm": MEDIUM,
        "80mm": WIDE,
    }

    @classmethod
    def parse(cls, value: Any) -> Optional[str]:
        """Return the width code for ``value`` or ``None`` when unrecognized."""
        if value is None:
            return None
        code = str(value).strip().lower()
        if code in cls.COLUMNS:
            return code
        return cls.ALIASES.get(code)

    @classmethod
    def resolve(cls, value: Any) -> str:
        """Like :meth:`parse` but missing or unknown values fall back to ``DEFAULT``."""
        return cls.parse(value) or cls.DEFAULT

    @classmethod
    def columns(cls, value: Any) -> int:
        return cls.COLUMNS[cls.resolve(value)]


@dataclass
class CustomerSnapshot:
    name: str = ""
    phone_number: str = ""
    address: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CustomerSnapshot":
        data = data or {}
        return cls(
            name=str(_pick(data, "name", default="")),
            phone_number=str(_pick(data, "phoneNumber", "phone_number", "phone", default="")),
            address=str(_pick(data, "address", default="")),
        )


@dataclass
class ServiceLine:
    """One line item. ``total_price`` is the stored value, never recomputed."""

    name: str
    price_per_kg: float
    weight: float
    total_price: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceLine":
        weight = _to_float(_pick(data, "weight"))
        if weight < 0:
            raise ValueError(f"Negative weight for service {data.get('name')!r}")
        return cls(
            name=str(_pick(data, "name", default="")),
            price_per_kg=_to_float(_pick(data, "pricePerKg", "price_per_kg")),
            weight=weight,
            total_price=_to_float(_pick(data, "totalPrice", "total_price")),
        )


@dataclass
class TransactionRecord:
    id: str
    customer: CustomerSnapshot
    services: List[ServiceLine] = field(default_factory=list)
    total_weight: float = 0.0
    total_price: float = 0.0
    created_at: Optional[datetime] = None
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionRecord":
        """Build a record from the plain-dict shape used by the persistence layer."""
        services = [
            service if isinstance(service, ServiceLine) else ServiceLine.from_dict(service)
            for service in (_pick(data, "services", default=[]) or [])
        ]
        customer = _pick(data, "customer")
        if not isinstance(customer, CustomerSnapshot):
            customer = CustomerSnapshot.from_dict(customer)
        return cls(
            id=str(_pick(data, "_id", "id", default="")),
            customer=customer,
            services=services,
            total_weight=_to_float(_pick(data, "totalWeight", "total_weight")),
            total_price=_to_float(_pick(data, "totalPrice", "total_price")),
            created_at=parse_timestamp(_pick(data, "createdAt", "created_at")),
            status=_pick(data, "status"),
        )


@dataclass
class ShopProfile:
    """Receipt header source. Only ``name`` is expected; the rest may be absent."""

    name: str = ""
    address: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ShopProfile":
        data = data or {}
        return cls(
            name=str(_pick(data, "shopName", "shop_name", "name", default="")),
            address=_pick(data, "address", "shopAddress", "shop_address"),
            phone=_pick(data, "phone", "phoneNumber", "phone_number", "shopPhone"),
        )

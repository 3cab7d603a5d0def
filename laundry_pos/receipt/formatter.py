# -*- coding: utf-8 -*-
# Copyright (c) 2023, IMOGI and contributors
# For license information, please see license.txt

"""
Receipt formatter for laundry transactions.

Renders a transaction snapshot and the shop profile into the text sent to an
ESC/POS thermal printer. Formatting is pure: the shop profile is passed in by
the caller and nothing here touches storage or the printer.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from laundry_pos.receipt import escpos
from laundry_pos.receipt.layout import (
    ADDRESS_BLOCK_WIDTH,
    center,
    format_weight,
    labeled_field,
    right,
    separator,
    service_line,
    wrap_block,
)
from laundry_pos.receipt.models import (
    PaperWidth,
    ShopProfile,
    TransactionRecord,
    TransactionStatus,
)
from laundry_pos.utils.currency import format_rupiah

logger = logging.getLogger(__name__)

RECEIPT_TITLE = "STRUK LAUNDRY"
SERVICES_HEADER = "LAYANAN"
ADDRESS_HEADER = "Alamat:"
THANK_YOU = "TERIMA KASIH"
DATE_FORMAT = "%d/%m/%Y %H:%M"
MISSING_VALUE = "-"

# Customer block labels share one width so the values line up
LABEL_WIDTH = 8
TOTALS_LABEL_WIDTH = 12

FEED_LINES = 3


def _coerce_transaction(transaction: Union[TransactionRecord, Dict[str, Any], None]) -> Optional[TransactionRecord]:
    if transaction is None:
        return None
    if isinstance(transaction, TransactionRecord):
        return transaction
    if isinstance(transaction, dict):
        if not transaction:
            return None
        try:
            return TransactionRecord.from_dict(transaction)
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning(f"Cannot format receipt, invalid transaction: {str(e)}")
            return None
    logger.warning(f"Cannot format receipt for {type(transaction).__name__}")
    return None


def _coerce_shop_profile(shop_profile: Union[ShopProfile, Dict[str, Any], None]) -> Optional[ShopProfile]:
    if shop_profile is None or isinstance(shop_profile, ShopProfile):
        return shop_profile
    if isinstance(shop_profile, dict):
        return ShopProfile.from_dict(shop_profile)
    return None


def _text(value) -> str:
    return " ".join(str(value).split()) if value is not None else ""


def _header_lines(shop: Optional[ShopProfile], width: int) -> List[str]:
    if shop is None:
        return []

    lines = []
    name = _text(shop.name)
    if name:
        lines.append(center(name, width))
    phone = _text(shop.phone)
    if phone:
        lines.append(center(phone, width))
    for address_line in wrap_block(shop.address, width):
        lines.append(center(address_line, width))
    return lines


def _local_time(value: datetime) -> datetime:
    """Shop clock time. Naive values are taken as already local."""
    if value.tzinfo is None:
        return value
    try:
        return value.astimezone()
    except (OverflowError, OSError, ValueError):
        return value


def _customer_lines(transaction: TransactionRecord, width: int) -> List[str]:
    created_at = _local_time(transaction.created_at).strftime(DATE_FORMAT) if transaction.created_at else ""
    fields = [
        ("No. Nota", transaction.id),
        ("Nama", transaction.customer.name),
        ("No. Hp", transaction.customer.phone_number),
        ("Tanggal", created_at),
        ("Status", TransactionStatus.label(transaction.status)),
    ]
    return [
        labeled_field(label.ljust(LABEL_WIDTH), _text(value) or MISSING_VALUE, width)
        for label, value in fields
    ]


def _address_lines(transaction: TransactionRecord, width: int) -> List[str]:
    block_width = min(ADDRESS_BLOCK_WIDTH, width)
    lines = [ADDRESS_HEADER]
    lines.extend(wrap_block(transaction.customer.address, block_width) or [MISSING_VALUE])
    return lines


def _service_lines(transaction: TransactionRecord, width: int) -> List[str]:
    lines = []
    for service in transaction.services:
        lines.extend(
            service_line(service.name, service.weight, service.price_per_kg, service.total_price, width)
        )
    return lines


def _totals_lines(transaction: TransactionRecord, width: int) -> List[str]:
    return [
        labeled_field("Total Berat".ljust(TOTALS_LABEL_WIDTH), f"{format_weight(transaction.total_weight)} kg", width),
        labeled_field("Total Harga".ljust(TOTALS_LABEL_WIDTH), format_rupiah(transaction.total_price), width),
    ]


def format_receipt(
    transaction: Union[TransactionRecord, Dict[str, Any], None],
    shop_profile: Union[ShopProfile, Dict[str, Any], None] = None,
    paper_width: Optional[str] = None,
) -> str:
    """
    Format a transaction as ESC/POS receipt text.

    Args:
        transaction: Transaction snapshot, as a record or its plain-dict shape.
        shop_profile (optional): Shop header source. Missing fields are omitted.
        paper_width (str, optional): Paper width code ("58", "76" or "80").
            Missing or unknown codes use the 80mm default.

    Returns:
        str: Receipt text with embedded control codes, or an empty string
            when there is no transaction to format.
    """
    record = _coerce_transaction(transaction)
    if record is None:
        return ""

    shop = _coerce_shop_profile(shop_profile)
    width = PaperWidth.columns(paper_width)
    rule = separator(width)
    major_rule = separator(width, "=")

    lines = []
    lines.extend(_header_lines(shop, width))
    lines.append(major_rule)
    lines.append(center(RECEIPT_TITLE, width))
    lines.append(major_rule)
    lines.extend(_customer_lines(record, width))
    lines.append(rule)
    lines.extend(_address_lines(record, width))
    lines.append(rule)
    lines.append(SERVICES_HEADER)
    lines.append(rule)
    lines.extend(_service_lines(record, width))
    lines.append(rule)
    lines.extend(_totals_lines(record, width))
    lines.append(major_rule)
    lines.append(center(THANK_YOU, width))
    lines.append(major_rule)

    body = "\n".join(lines)
    prefix = escpos.INIT + escpos.FONT_NARROW + escpos.ALIGN_LEFT
    return prefix + body + "\n" + escpos.INIT + "\n" * FEED_LINES


def format_test_page(paper_width: Optional[str] = None) -> str:
    """Render a short page to check alignment and the selected paper width."""
    code = PaperWidth.resolve(paper_width)
    width = PaperWidth.COLUMNS[code]

    lines = [
        separator(width, "="),
        center("TES PRINTER", width),
        separator(width, "="),
        f"Lebar kertas: {code}mm ({width} kolom)",
        separator(width),
        "Kiri",
        center("Tengah", width),
        right("Kanan", width),
        separator(width),
        "".join(str(i % 10) for i in range(1, width + 1)),
        separator(width, "="),
    ]

    prefix = escpos.INIT + escpos.FONT_NARROW + escpos.ALIGN_LEFT
    return prefix + "\n".join(lines) + "\n" + escpos.INIT + "\n" * FEED_LINES

# -*- coding: utf-8 -*-
# Copyright (c) 2023, IMOGI and contributors
# For license information, please see license.txt

from laundry_pos.receipt.formatter import format_receipt, format_test_page
from laundry_pos.receipt.models import (
    CustomerSnapshot,
    PaperWidth,
    ServiceLine,
    ShopProfile,
    TransactionRecord,
    TransactionStatus,
)

__all__ = [
    "format_receipt",
    "format_test_page",
    "CustomerSnapshot",
    "PaperWidth",
    "ServiceLine",
    "ShopProfile",
    "TransactionRecord",
    "TransactionStatus",
]

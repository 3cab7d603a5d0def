# -*- coding: utf-8 -*-
# Copyright (c) 2023, IMOGI and contributors
# For license information, please see license.txt

"""
Fixed-width text layout primitives for thermal receipts.

All helpers work on a column count ``width`` and never truncate text: a
receipt that silently drops characters is worse than one with an overflowing
line.
"""

from typing import List

from laundry_pos.utils.currency import format_rupiah

# Column budget for the free-text address block, capped by the paper width
ADDRESS_BLOCK_WIDTH = 32


def separator(width: int, char: str = "-") -> str:
    """Return a full-width rule made of ``char``."""
    return (char or "-")[0] * width


def center(text: str, width: int) -> str:
    """Pad ``text`` on both sides so it sits in the middle of ``width``.

    The odd space, if any, goes to the right. Text as wide as the paper or
    wider is returned unchanged.
    """
    text = text or ""
    if len(text) >= width:
        return text
    padding = width - len(text)
    left = padding // 2
    return " " * left + text + " " * (padding - left)


def right(text: str, width: int) -> str:
    """Left-pad ``text`` with spaces up to ``width``."""
    return (text or "").rjust(width)


def format_quantity(value) -> str:
    """Render a number without a useless fraction: ``3.0`` -> ``3``, ``2.50`` -> ``2.5``."""
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return str(value)
    if number.is_integer():
        return str(int(number))
    return f"{number:.2f}".rstrip("0").rstrip(".")


def format_weight(value) -> str:
    return format_quantity(value)


def _greedy_lines(words: List[str], width: int) -> List[str]:
    lines: List[str] = []
    current = ""
    for word in words:
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= width:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def labeled_field(label: str, value, width: int) -> str:
    """Render ``"<label>: <value>"`` with a hanging indent when it does not fit.

    Continuation lines are indented by ``len(label) + 2`` so they line up with
    the first character of the value. Only spaces are break points; a word that
    is longer than the space left for values is kept whole on its own line.
    """
    prefix = f"{label}: "
    words = str(value if value is not None else "").split()
    if not words:
        return prefix.rstrip()
    line = prefix + " ".join(words)
    if len(line) <= width:
        return line

    available = max(width - len(prefix), 1)
    wrapped = _greedy_lines(words, available)
    indent = " " * len(prefix)
    return "\n".join([prefix + wrapped[0]] + [indent + part for part in wrapped[1:]])


def wrap_block(text, width: int) -> List[str]:
    """Hard-wrap free text so that no line is longer than ``width``.

    Words longer than ``width`` are cut into ``width``-sized chunks.
    """
    width = max(width, 1)
    words: List[str] = []
    for word in str(text or "").split():
        while len(word) > width:
            words.append(word[:width])
            word = word[width:]
        if word:
            words.append(word)
    return _greedy_lines(words, width)


def service_line(name: str, weight, price_per_kg, total_price, width: int) -> List[str]:
    """Render one service row: description on the left, line total on the right.

    When both pieces do not fit on one row with at least one space between
    them, the price is moved to its own right-justified line below.
    """
    left = f"{name} {format_weight(weight)}kg @{format_quantity(price_per_kg)}/kg"
    price = format_rupiah(total_price)
    if len(left) + 1 + len(price) > width:
        return [left, right(price, width)]
    return [left + " " * (width - len(left) - len(price)) + price]

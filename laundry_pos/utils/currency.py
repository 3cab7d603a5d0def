"""Currency utilities for Laundry POS."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CURRENCY_SYMBOL = "Rp"
THOUSANDS_SEPARATOR = "."


def _to_whole_units(amount) -> int:
    """Round an amount to whole rupiah, half away from zero."""
    if amount is None or amount == "":
        return 0
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return 0
    if not value.is_finite():
        return 0
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_number(amount) -> str:
    """Return ``amount`` as whole units grouped with ``.`` (``30000`` -> ``30.000``)."""
    value = _to_whole_units(amount)
    grouped = f"{abs(value):,}".replace(",", THOUSANDS_SEPARATOR)
    return f"-{grouped}" if value < 0 else grouped


def format_rupiah(amount) -> str:
    """Format an amount for a receipt, e.g. ``Rp30.000``.

    Laundry prices are whole-rupiah amounts so fractional units are rounded
    away. Negative amounts carry the sign in front of the symbol (``-Rp5.000``).
    """
    value = _to_whole_units(amount)
    grouped = format_number(abs(value))
    if value < 0:
        return f"-{CURRENCY_SYMBOL}{grouped}"
    return f"{CURRENCY_SYMBOL}{grouped}"

"""
Fixed-point token amount formatting.

Raw token amounts are unsigned base-unit integers; the number of decimal
places comes from mint metadata at runtime.  Python ints are unbounded,
so ``10 ** decimals`` never overflows even for high-decimal mints.
"""

from __future__ import annotations

from .constants import MAX_DECIMALS


def group_thousands(value: int) -> str:
    """Insert a comma every three digits from the right: ``1234567`` → ``"1,234,567"``."""
    return f"{value:,}"


def format_amount(raw_amount: int, decimals: int) -> str:
    """Render *raw_amount* base units as a human-readable decimal string.

    The integer part is grouped with commas; the fractional part is
    padded to *decimals* digits and then stripped of trailing zeros.  The
    decimal point is omitted when nothing remains after stripping.

    >>> format_amount(1234567, 2)
    '12,345.67'
    >>> format_amount(100, 3)
    '0.1'
    """
    if raw_amount < 0:
        raise ValueError(f"raw_amount must be non-negative, got {raw_amount}")
    if not 0 <= decimals <= MAX_DECIMALS:
        raise ValueError(f"decimals must be within 0..{MAX_DECIMALS}, got {decimals}")

    if decimals == 0:
        return group_thousands(raw_amount)

    integer_part, fractional_part = divmod(raw_amount, 10 ** decimals)
    frac = str(fractional_part).rjust(decimals, "0").rstrip("0")
    whole = group_thousands(integer_part)
    return f"{whole}.{frac}" if frac else whole

"""Money handling utilities.

Amounts are plain ``Decimal`` values in the ledger's single currency.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENTS = Decimal('0.01')
ZERO = Decimal('0')


def to_amount(value) -> Decimal:
    """Convert a number (or numeric string) to a 2-place Decimal."""
    if value is None:
        return ZERO.quantize(CENTS)
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"Invalid money value: {value}") from e
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_amount(value: str) -> Decimal:
    """Parse money from user input string."""
    if not value:
        return to_amount(0)

    # Remove common formatting
    cleaned = str(value).replace(' ', '').replace(',', '')
    return to_amount(cleaned)


def round_percent(part, whole) -> float:
    """Percentage of ``part`` in ``whole``, rounded to one decimal (0 when whole is 0)."""
    whole = Decimal(str(whole))
    if whole == 0:
        return 0.0
    ratio = Decimal(str(part)) / whole * 100
    return float(ratio.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def format_amount(value, symbol: str = 'Rp') -> str:
    """Format money for display."""
    rounded = to_amount(value)
    if rounded == rounded.to_integral_value():
        formatted = f"{rounded:,.0f}"
    else:
        formatted = f"{rounded:,.2f}"
    return f"{symbol} {formatted}" if symbol else formatted

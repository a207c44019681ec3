"""
Numeric and date helpers shared by the monitoring calculators.
"""

from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone


def to_decimal(value) -> Decimal:
    """Convert ints, floats, strings and Decimals without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def non_negative(value) -> Decimal:
    """
    Clamp a quantity to zero.

    Negative weights and amounts are data-entry errors; they contribute
    nothing to a total instead of failing the calculation.
    """
    if value is None:
        return Decimal('0')
    amount = to_decimal(value)
    return amount if amount > 0 else Decimal('0')


def round_half_up(value, places: int) -> float:
    """Round like a spreadsheet does (0.125 -> 0.13), returning a float."""
    exponent = Decimal(1).scaleb(-places)
    return float(to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP))


def format_number(value) -> str:
    """Shortest plain rendering of a number: 5.0 -> '5', 0.050 -> '0.05'."""
    normalized = to_decimal(float(value)).normalize()
    return format(normalized, 'f')


def as_datetime(value) -> datetime:
    """
    Normalise a date or datetime to an aware datetime.

    Plain dates become local midnight; naive datetimes are read in the
    current time zone.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time.min)
    else:
        raise TypeError(f"Expected a date or datetime, got {type(value).__name__}")
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)
    return moment

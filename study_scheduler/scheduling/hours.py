from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

HOURS_QUANTUM = Decimal("0.01")
ZERO = Decimal("0")


def to_hours(value: Union[Decimal, int, float, str]) -> Decimal:
    """Normalize an hours value to a two-decimal Decimal.

    Floats go through ``str`` first so 1.5 becomes Decimal("1.50") rather
    than its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    try:
        hours = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid hours value: {value!r}") from exc
    if not hours.is_finite():
        raise ValueError(f"Invalid hours value: {value!r}")
    return hours.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)

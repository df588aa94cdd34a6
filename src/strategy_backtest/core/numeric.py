from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from decimal import ROUND_FLOOR, ROUND_HALF_EVEN, Context, Decimal, InvalidOperation, localcontext
from typing import Any

# Every price, size and percentage in the engine is computed under this context.
DECIMAL_CONTEXT = Context(prec=28, rounding=ROUND_HALF_EVEN)

ZERO = Decimal(0)
ONE = Decimal(1)
HUNDRED = Decimal(100)


@contextmanager
def decimal_math() -> Iterator[Context]:
    with localcontext(DECIMAL_CONTEXT) as ctx:
        yield ctx


def as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Cannot convert bool to Decimal")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # str() keeps 0.1 as 0.1 instead of its binary expansion.
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a decimal number: {value!r}") from exc
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")


def as_decimal_optional(value: Any) -> Decimal | None:
    if value is None:
        return None
    return as_decimal(value)


def floor_units(value: Decimal) -> Decimal:
    with decimal_math():
        return value.to_integral_value(rounding=ROUND_FLOOR)

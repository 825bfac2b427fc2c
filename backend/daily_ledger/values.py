# daily_ledger/values.py
"""
Value objects and money helpers shared by the ledger modules.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from daily_ledger.exceptions import LedgerValidationError


ZERO = Decimal("0.00")
TWOPLACES = Decimal("0.01")


def q2(amount) -> Decimal:
    return (amount or ZERO).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_amount(value, field: str = "amount") -> Decimal:
    """Coerce `value` to a finite Decimal. Floats go through str() so 0.1 stays 0.1."""
    if isinstance(value, bool):
        raise LedgerValidationError(f"{field} must be a number, got {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise LedgerValidationError(f"{field} must be a number, got {value!r}")
    if not amount.is_finite():
        raise LedgerValidationError(f"{field} must be finite, got {value!r}")
    return amount


def to_quantity(value, field: str = "quantity") -> int:
    """Quantities are whole units."""
    if isinstance(value, bool):
        raise LedgerValidationError(f"{field} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        return int(value)
    raise LedgerValidationError(f"{field} must be an integer, got {value!r}")


@dataclass(frozen=True)
class StockFigure:
    """A (quantity, amount) pair: opening/closing stock or a day's accumulator."""

    quantity: int = 0
    amount: Decimal = ZERO

    def __add__(self, other: "StockFigure") -> "StockFigure":
        return StockFigure(self.quantity + other.quantity, self.amount + other.amount)

    def __neg__(self) -> "StockFigure":
        return StockFigure(-self.quantity, -self.amount)

    @property
    def is_zero(self) -> bool:
        return self.quantity == 0 and self.amount == 0

    def as_dict(self) -> dict:
        return {"quantity": self.quantity, "amount": q2(self.amount)}


@dataclass(frozen=True)
class TotalCount:
    """`{total, count}` summary returned by transaction aggregate providers."""

    total: Decimal = ZERO
    count: int = 0

    def __add__(self, other: "TotalCount") -> "TotalCount":
        return TotalCount(self.total + other.total, self.count + other.count)

    def as_dict(self) -> dict:
        return {"total": q2(self.total), "count": self.count}

"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from ims.domain.exceptions import InvalidPriceError, ValidationError


@dataclass(frozen=True)
class Money:
    """Monetary amount with currency.

    Uses Decimal to avoid floating-point rounding errors that would be
    unacceptable for purchase and clearance prices.
    """

    amount: Decimal
    currency: str = "EUR"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise InvalidPriceError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}",
                amount=self.amount,
            )
        if self.amount < Decimal("0"):
            raise InvalidPriceError(
                f"Money amount cannot be negative, got {self.amount}",
                amount=self.amount,
            )

    @property
    def is_positive(self) -> bool:
        return self.amount > Decimal("0")

    def __str__(self) -> str:
        return f"€{self.amount:.2f}"

    # --- Factories ------------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | Decimal) -> Money:
        """Convenient factory that coerces to Decimal safely."""
        try:
            return Money(Decimal(str(amount)))
        except (InvalidOperation, ValueError) as exc:
            raise InvalidPriceError(
                f"Invalid money amount: {amount!r}", amount=amount
            ) from exc

    @staticmethod
    def positive(amount: str | float | int | Decimal | Money, field: str) -> Money:
        """Coerce *amount* and require it to be strictly greater than zero."""
        money = amount if isinstance(amount, Money) else Money.of(amount)
        if not money.is_positive:
            raise InvalidPriceError(
                f"{field.replace('_', ' ').capitalize()} must be greater than zero",
                field=field,
                amount=money.amount,
            )
        return money


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that a delivery line cannot order zero or
    negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}",
                field="quantity",
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive", field="quantity")

    def __str__(self) -> str:
        return str(self.value)

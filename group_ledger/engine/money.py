"""
Exact money arithmetic.

Money is an integer count of minor units (cents for USD) plus
a currency code. Floats never enter the ledger: external input
is converted from Decimal or text exactly, or rejected.

Any division that does not come out even hands the leftover
minor units, one at a time, to the first parts in order. The
parts therefore always add back up to the original amount.
"""

import math
import re
from dataclasses import dataclass
from decimal import Decimal, DecimalException, InvalidOperation
from fractions import Fraction
from functools import total_ordering
from typing import Iterable, Sequence

from group_ledger.engine.errors import (
    CurrencyMismatch,
    InvalidMagnitude,
    MoneyError,
)


DEFAULT_EXPONENT = 2

# ISO 4217 currencies whose minor unit is not the cent
CURRENCY_EXPONENTS: dict[str, int] = {
    "JPY": 0,
    "KRW": 0,
    "VND": 0,
    "CLP": 0,
    "ISK": 0,
    "BHD": 3,
    "KWD": 3,
    "OMR": 3,
    "JOD": 3,
    "TND": 3,
}

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
    "INR": "₹",
    "KRW": "₩",
    "SGD": "S$",
    "AUD": "A$",
    "CAD": "C$",
    "HKD": "HK$",
    "NZD": "NZ$",
    "PHP": "₱",
    "THB": "฿",
    "VND": "₫",
}

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")

# Symbols and separators users type around an amount
_AMOUNT_NOISE = re.compile(r"[$€£¥₹₩₱฿₫,\s]")


def currency_exponent(currency: str) -> int:
    """Number of decimal places in the currency's minor unit."""
    return CURRENCY_EXPONENTS.get(currency, DEFAULT_EXPONENT)


@total_ordering
@dataclass(frozen=True)
class Money:
    """
    An immutable amount in minor units.

    Signed values are allowed so that balances can be carried
    as Money; amounts coming from users go through from_decimal()
    or parse(), which only accept non-negative magnitudes.
    """

    minor: int
    currency: str

    def __post_init__(self):
        if isinstance(self.minor, bool) or not isinstance(self.minor, int):
            raise InvalidMagnitude(
                f"minor units must be an integer, got {self.minor!r}"
            )
        if not isinstance(self.currency, str) or not _CURRENCY_CODE.match(
            self.currency
        ):
            raise MoneyError(
                f"Invalid currency code {self.currency!r} "
                f"(must be 3-letter ISO 4217)"
            )

    # --- Construction ---

    @classmethod
    def zero(cls, currency: str) -> "Money":
        return cls(0, currency)

    @classmethod
    def from_decimal(cls, value, currency: str) -> "Money":
        """
        Build Money from a non-negative Decimal, int or numeric string.

        Raises InvalidMagnitude for floats, NaN, infinities,
        negative values, values the decimal context cannot scale,
        and values finer than the currency's minor unit (e.g.
        1.005 USD).
        """
        if isinstance(value, (float, bool)):
            raise InvalidMagnitude(
                f"refusing binary floating point amount {value!r}"
            )
        try:
            amount = value if isinstance(value, Decimal) else Decimal(value)
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidMagnitude(f"'{value}' is not a number") from None

        if not amount.is_finite():
            raise InvalidMagnitude(f"'{value}' is not a finite amount")
        if amount < 0:
            raise InvalidMagnitude(f"amount must not be negative: {value}")

        try:
            scaled = amount.scaleb(currency_exponent(currency))
            fractional = scaled != scaled.to_integral_value()
        except DecimalException:
            raise InvalidMagnitude(f"{value} is out of range") from None
        if fractional:
            raise InvalidMagnitude(
                f"{value} has more decimal places than {currency} allows"
            )
        return cls(int(scaled), currency)

    @classmethod
    def parse(cls, text: str, currency: str) -> "Money":
        """Parse user input such as '$1,250.50' or '12'."""
        cleaned = _AMOUNT_NOISE.sub("", str(text))
        if not cleaned:
            raise InvalidMagnitude(f"'{text}' is not an amount")
        return cls.from_decimal(cleaned, currency)

    # --- Conversion ---

    @property
    def exponent(self) -> int:
        return currency_exponent(self.currency)

    def to_decimal(self) -> Decimal:
        quantum = Decimal(1).scaleb(-self.exponent)
        return Decimal(self.minor).scaleb(-self.exponent).quantize(quantum)

    def format_plain(self) -> str:
        """Amount without symbol, e.g. '33.34' or '-5.00'."""
        return f"{self.to_decimal():.{self.exponent}f}"

    def to_display_string(self, currency: str | None = None) -> str:
        """
        Render for people: '$1,234.50', '-€3.00', 'CHF 12.00'.

        `currency` picks the symbol to use and defaults to the
        value's own currency. Decimal places always follow the
        value's currency.
        """
        code = currency or self.currency
        digits = f"{abs(self.to_decimal()):,.{self.exponent}f}"
        sign = "-" if self.minor < 0 else ""
        symbol = CURRENCY_SYMBOLS.get(code)
        if symbol:
            return f"{sign}{symbol}{digits}"
        return f"{sign}{code} {digits}"

    def __str__(self) -> str:
        return self.to_display_string()

    # --- Arithmetic ---

    def _check_currency(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError(f"expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatch(
                f"cannot combine {self.currency} with {other.currency}"
            )

    def add(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.minor + other.minor, self.currency)

    def subtract(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.minor - other.minor, self.currency)

    def negate(self) -> "Money":
        return Money(-self.minor, self.currency)

    def abs(self) -> "Money":
        return Money(abs(self.minor), self.currency)

    def is_zero(self) -> bool:
        return self.minor == 0

    def is_negative(self) -> bool:
        return self.minor < 0

    def is_positive(self) -> bool:
        return self.minor > 0

    __add__ = add
    __sub__ = subtract
    __neg__ = negate
    __abs__ = abs

    def __lt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.minor < other.minor

    # --- Division ---

    def split_evenly(self, count: int) -> list["Money"]:
        """
        Split into `count` parts that add up to exactly this amount.

        Leftover minor units go to the first parts:
        100.00 / 3 -> [33.34, 33.33, 33.33].
        """
        if count <= 0:
            raise ValueError("count must be positive")

        sign = -1 if self.minor < 0 else 1
        base, remainder = divmod(abs(self.minor), count)
        return [
            Money(sign * (base + (1 if i < remainder else 0)), self.currency)
            for i in range(count)
        ]

    def allocate(self, weights: Sequence) -> list["Money"]:
        """
        Split proportionally to `weights` (ints or Decimals).

        Each part is floored; the units lost to flooring go one
        at a time to the first parts with a non-zero weight, in
        input order, the same rule split_evenly() uses.
        """
        ratios = [Fraction(w) for w in weights]
        if any(r < 0 for r in ratios):
            raise ValueError("weights must not be negative")
        total_weight = sum(ratios)
        if total_weight <= 0:
            raise ValueError("total weight must be positive")

        sign = -1 if self.minor < 0 else 1
        magnitude = abs(self.minor)
        parts = [math.floor(magnitude * r / total_weight) for r in ratios]

        leftover = magnitude - sum(parts)
        for i, ratio in enumerate(ratios):
            if leftover == 0:
                break
            if ratio > 0:
                parts[i] += 1
                leftover -= 1

        return [Money(sign * p, self.currency) for p in parts]


def sum_money(values: Iterable[Money], currency: str) -> Money:
    """Sum Money values, starting from zero in `currency`."""
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total

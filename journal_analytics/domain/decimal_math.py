"""Decimal arithmetic for money and quantities.

All financial arithmetic in the package goes through a DecimalMath instance:
- Fixed precision and rounding, taken from an immutable DecimalConfig
- Silent-degrade parsing: None, "" and garbage become zero
- Division by zero returns zero instead of raising
- Tolerance-based zero/sign checks

The configuration is threaded in at construction. The process-wide
decimal context is never touched, so two callers with different precision
needs cannot interfere with each other.

Example:
    >>> m = DecimalMath()
    >>> m.to_string(m.add("0.1", "0.2"))
    '0.3'
    >>> m.to_string(m.divide("1", "0"))
    '0'
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Union

logger = logging.getLogger(__name__)

# Anything the parser accepts
Numeric = Union[str, int, float, Decimal, None]

ZERO = Decimal(0)


@dataclass(frozen=True, slots=True)
class DecimalConfig:
    """Precision policy for a DecimalMath instance.

    Attributes:
        precision: Significant digits kept by every operation
        rounding: decimal rounding mode name
        zero_tolerance: Values with |x| <= tolerance count as zero
    """

    precision: int = 20
    rounding: str = ROUND_HALF_UP
    zero_tolerance: Decimal = Decimal("0.000001")

    def __post_init__(self) -> None:
        if self.precision < 20:
            raise ValueError(f"precision must be at least 20, got: {self.precision}")
        if self.zero_tolerance < 0:
            raise ValueError(
                f"zero_tolerance must be non-negative, got: {self.zero_tolerance}"
            )


class DecimalMath:
    """Arbitrary-precision arithmetic bound to one DecimalConfig."""

    def __init__(self, config: DecimalConfig | None = None):
        self._config = config or DecimalConfig()
        self._ctx = Context(
            prec=self._config.precision,
            rounding=self._config.rounding,
        )

    @property
    def config(self) -> DecimalConfig:
        return self._config

    # --- Conversion ---

    def to_decimal(self, value: Numeric) -> Decimal:
        """Parse a value into a Decimal, degrading invalid input to zero.

        Floats go through their shortest repr so 0.1 becomes Decimal("0.1")
        rather than its binary expansion.
        """
        if value is None or value == "":
            return ZERO
        if isinstance(value, Decimal):
            result = value
        else:
            try:
                if isinstance(value, float):
                    result = Decimal(repr(value))
                else:
                    result = Decimal(str(value).strip())
            except (InvalidOperation, ValueError, TypeError):
                logger.warning("Invalid decimal value: %r, defaulting to 0", value)
                return ZERO
        if not result.is_finite():
            logger.warning("Non-finite decimal value: %r, defaulting to 0", value)
            return ZERO
        return result

    def to_string(self, value: Numeric) -> str:
        """Exact base-10 string without exponent or trailing zeros."""
        d = self.to_decimal(value)
        if d.is_zero():
            return "0"
        return format(d.normalize(self._ctx), "f")

    def to_number(self, value: Numeric) -> float:
        """Convert to float. Loses precision; use for ratios only."""
        return float(self.to_decimal(value))

    # --- Arithmetic ---

    def add(self, *values: Numeric) -> Decimal:
        result = ZERO
        for value in values:
            result = self._ctx.add(result, self.to_decimal(value))
        return result

    def subtract(self, initial: Numeric, *values: Numeric) -> Decimal:
        result = self.to_decimal(initial)
        for value in values:
            result = self._ctx.subtract(result, self.to_decimal(value))
        return result

    def multiply(self, *values: Numeric) -> Decimal:
        if not values:
            return ZERO
        result = self.to_decimal(values[0])
        for value in values[1:]:
            result = self._ctx.multiply(result, self.to_decimal(value))
        return result

    def divide(self, numerator: Numeric, *denominators: Numeric) -> Decimal:
        """Divide by each denominator in turn. Zero denominators yield 0."""
        result = self.to_decimal(numerator)
        for denominator in denominators:
            d = self.to_decimal(denominator)
            if d.is_zero():
                logger.warning("Division by zero, returning 0")
                return ZERO
            result = self._ctx.divide(result, d)
        return result

    def abs(self, value: Numeric) -> Decimal:
        return self._ctx.abs(self.to_decimal(value))

    def sqrt(self, value: Numeric) -> Decimal:
        """Square root; negative input degrades to zero."""
        d = self.to_decimal(value)
        if d < 0:
            logger.warning("Square root of negative value %s, returning 0", d)
            return ZERO
        return self._ctx.sqrt(d)

    def round(self, value: Numeric, places: int = 2) -> Decimal:
        exponent = Decimal(1).scaleb(-places)
        return self.to_decimal(value).quantize(
            exponent, rounding=self._config.rounding, context=self._ctx
        )

    def min(self, *values: Numeric) -> Decimal:
        if not values:
            return ZERO
        return min(self.to_decimal(v) for v in values)

    def max(self, *values: Numeric) -> Decimal:
        if not values:
            return ZERO
        return max(self.to_decimal(v) for v in values)

    # --- Comparison ---

    def compare(self, a: Numeric, b: Numeric) -> int:
        """Return -1, 0 or 1."""
        return int(self.to_decimal(a).compare(self.to_decimal(b)))

    def equals(self, a: Numeric, b: Numeric) -> bool:
        return self.to_decimal(a) == self.to_decimal(b)

    def greater_than(self, a: Numeric, b: Numeric) -> bool:
        return self.to_decimal(a) > self.to_decimal(b)

    def less_than(self, a: Numeric, b: Numeric) -> bool:
        return self.to_decimal(a) < self.to_decimal(b)

    def is_zero(self, value: Numeric, tolerance: Numeric = None) -> bool:
        return self.abs(value) <= self._tolerance(tolerance)

    def is_positive(self, value: Numeric, tolerance: Numeric = None) -> bool:
        return self.to_decimal(value) > self._tolerance(tolerance)

    def is_negative(self, value: Numeric, tolerance: Numeric = None) -> bool:
        return self.to_decimal(value) < -self._tolerance(tolerance)

    def _tolerance(self, tolerance: Numeric) -> Decimal:
        if tolerance is None:
            return self._config.zero_tolerance
        return self.to_decimal(tolerance)


def is_valid_financial_number(value: object) -> bool:
    """Check that a value is a finite number or numeric string."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, Decimal)):
        return Decimal(value).is_finite()
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        try:
            return Decimal(value.strip()).is_finite()
        except InvalidOperation:
            return False
    return False


# Default instance (immutable config, safe to share)
DEFAULT_MATH = DecimalMath()

"""Unit tests for domain/decimal_math.py."""

import logging
from decimal import ROUND_HALF_UP, Decimal

import pytest

from journal_analytics.domain.decimal_math import (
    DEFAULT_MATH,
    DecimalConfig,
    DecimalMath,
    is_valid_financial_number,
)


# =============================================================================
# DecimalConfig Tests
# =============================================================================

class TestDecimalConfig:
    """Tests for DecimalConfig."""

    def test_defaults(self):
        """Defaults: 20 digits, half-up, 1e-6 zero tolerance."""
        config = DecimalConfig()
        assert config.precision == 20
        assert config.rounding == ROUND_HALF_UP
        assert config.zero_tolerance == Decimal("0.000001")

    def test_precision_below_20_rejected(self):
        with pytest.raises(ValueError, match="precision must be at least 20"):
            DecimalConfig(precision=10)

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValueError, match="zero_tolerance must be non-negative"):
            DecimalConfig(zero_tolerance=Decimal("-1"))

    def test_frozen(self):
        """DecimalConfig should be immutable."""
        config = DecimalConfig()
        with pytest.raises(AttributeError):
            config.precision = 30


# =============================================================================
# Parsing & Formatting Tests
# =============================================================================

class TestConversion:
    """Tests for to_decimal / to_string / to_number."""

    @pytest.mark.parametrize("value", [None, "", "abc", "1.2.3"])
    def test_invalid_input_degrades_to_zero(self, value):
        assert DEFAULT_MATH.to_decimal(value) == 0

    def test_invalid_input_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            DEFAULT_MATH.to_decimal("not-a-number")
        assert "Invalid decimal value" in caplog.text

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_degrades_to_zero(self, value):
        assert DEFAULT_MATH.to_decimal(value) == 0

    def test_float_uses_shortest_repr(self):
        """0.1 must not leak its binary expansion."""
        assert DEFAULT_MATH.to_decimal(0.1) == Decimal("0.1")

    def test_int_and_string(self):
        assert DEFAULT_MATH.to_decimal(42) == Decimal("42")
        assert DEFAULT_MATH.to_decimal(" 1.50 ") == Decimal("1.50")

    def test_to_string_strips_trailing_zeros(self):
        assert DEFAULT_MATH.to_string(Decimal("110.000")) == "110"
        assert DEFAULT_MATH.to_string(Decimal("1.2300")) == "1.23"

    def test_to_string_never_uses_exponent(self):
        assert DEFAULT_MATH.to_string(Decimal("1E+3")) == "1000"
        assert DEFAULT_MATH.to_string(Decimal("1E-9")) == "0.000000001"

    def test_to_string_zero(self):
        assert DEFAULT_MATH.to_string(Decimal("-0.000")) == "0"

    def test_to_number(self):
        assert DEFAULT_MATH.to_number("2.5") == 2.5


# =============================================================================
# Arithmetic Tests
# =============================================================================

class TestArithmetic:
    """Tests for add / subtract / multiply / divide."""

    def test_add_is_exact(self):
        assert DEFAULT_MATH.to_string(DEFAULT_MATH.add("0.1", "0.2")) == "0.3"

    def test_variadic(self):
        m = DEFAULT_MATH
        assert m.add(1, 2, 3) == 6
        assert m.subtract(10, 1, 2) == 7
        assert m.multiply(2, 3, 4) == 24
        assert m.divide(100, 2, 5) == 10

    def test_mixed_inputs(self):
        assert DEFAULT_MATH.add("1.5", 2, Decimal("0.5"), None) == 4

    def test_divide_by_zero_returns_zero(self, caplog):
        """Division by zero never raises."""
        with caplog.at_level(logging.WARNING):
            assert DEFAULT_MATH.divide(1, 0) == 0
        assert "Division by zero" in caplog.text

    def test_divide_precision(self):
        """1/3 keeps 20 significant digits."""
        result = DEFAULT_MATH.divide(1, 3)
        assert str(result) == "0.33333333333333333333"

    def test_precision_is_per_instance(self):
        """Two instances with different precision do not interfere."""
        wide = DecimalMath(DecimalConfig(precision=40))
        assert len(str(wide.divide(1, 3))) == len("0.") + 40
        assert len(str(DEFAULT_MATH.divide(1, 3))) == len("0.") + 20

    def test_abs_min_max(self):
        m = DEFAULT_MATH
        assert m.abs("-5") == 5
        assert m.min(3, "1", 2) == 1
        assert m.max(3, "1", 2) == 3

    def test_sqrt(self):
        assert DEFAULT_MATH.sqrt(16) == 4
        assert DEFAULT_MATH.sqrt(-4) == 0

    def test_round_half_up(self):
        assert DEFAULT_MATH.round("2.345") == Decimal("2.35")
        assert DEFAULT_MATH.round("2.5", places=0) == Decimal("3")


# =============================================================================
# Comparison Tests
# =============================================================================

class TestComparison:
    """Tests for tolerance-aware comparisons."""

    def test_compare(self):
        assert DEFAULT_MATH.compare(1, 2) == -1
        assert DEFAULT_MATH.compare("2.0", 2) == 0
        assert DEFAULT_MATH.compare(3, 2) == 1

    def test_is_zero_uses_default_tolerance(self):
        assert DEFAULT_MATH.is_zero("0.0000005")
        assert not DEFAULT_MATH.is_zero("0.00001")

    def test_is_zero_custom_tolerance(self):
        assert not DEFAULT_MATH.is_zero("0.0000005", tolerance="0.00000001")

    def test_sign_checks_respect_tolerance(self):
        assert not DEFAULT_MATH.is_positive("0.0000001")
        assert DEFAULT_MATH.is_positive("0.01")
        assert DEFAULT_MATH.is_negative("-0.01")
        assert not DEFAULT_MATH.is_negative("-0.0000001")


class TestIsValidFinancialNumber:
    """Tests for is_valid_financial_number."""

    @pytest.mark.parametrize("value", [1, 1.5, "2.50", Decimal("3")])
    def test_valid(self, value):
        assert is_valid_financial_number(value)

    @pytest.mark.parametrize("value", [None, "abc", float("nan"), float("inf"), True, "NaN"])
    def test_invalid(self, value):
        assert not is_valid_financial_number(value)

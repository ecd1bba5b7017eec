"""Tests for fixed 30-day proration."""

from decimal import Decimal

import pytest

from placement_billing.calculators.prorator import PRORATION_BASIS_DAYS, prorate
from placement_billing.calculators.types import ComputationInvariantError


class TestProrate:
    """Test round(rate * days / 30)."""

    def test_basis_is_thirty_days(self):
        assert PRORATION_BASIS_DAYS == 30

    def test_exact_result(self):
        assert prorate(Decimal("1500"), 17) == Decimal("850")

    def test_rounds_up_from_two_thirds(self):
        # 2500 * 17 / 30 = 1416.67
        assert prorate(Decimal("2500"), 17) == Decimal("1417")

    def test_half_rounds_up(self):
        # 45 * 1 / 30 = 1.5
        assert prorate(Decimal("45"), 1) == Decimal("2")

    def test_below_half_rounds_down(self):
        # 1000 * 1 / 30 = 33.33
        assert prorate(Decimal("1000"), 1) == Decimal("33")

    def test_thirty_days_reproduces_rate(self):
        assert prorate(Decimal("1800"), 30) == Decimal("1800")

    def test_thirty_one_day_month_exceeds_rate(self):
        # 1800 * 31 / 30 = 1860
        assert prorate(Decimal("1800"), 31) == Decimal("1860")

    def test_february_is_below_rate(self):
        # 1800 * 28 / 30 = 1680
        assert prorate(Decimal("1800"), 28) == Decimal("1680")

    def test_zero_days(self):
        assert prorate(Decimal("1800"), 0) == Decimal("0")

    def test_zero_rate(self):
        assert prorate(Decimal("0"), 31) == Decimal("0")

    def test_fractional_rate(self):
        # 1234.50 * 10 / 30 = 411.5
        assert prorate(Decimal("1234.50"), 10) == Decimal("412")

    def test_negative_days_rejected(self):
        with pytest.raises(ComputationInvariantError):
            prorate(Decimal("1800"), -1)

    def test_negative_rate_rejected(self):
        with pytest.raises(ComputationInvariantError):
            prorate(Decimal("-1"), 10)

"""Tests for currency and number formatting."""

from decimal import Decimal

from household_ledger.analytics import (
    format_compact,
    format_currency,
    format_currency_precise,
    format_percentage,
)


class TestCurrency:
    """Tests for en_IN currency strings."""

    def test_lakh_grouping(self):
        """Test lakh/crore digit grouping without decimals."""
        assert format_currency(1234567) == "₹12,34,567"

    def test_rounds_to_whole_units(self):
        assert format_currency(Decimal("999.5")) == "₹1,000"

    def test_negative(self):
        assert format_currency(-1500) == "-₹1,500"

    def test_precise(self):
        """Test two-decimal output."""
        assert format_currency_precise(Decimal("1234.5")) == "₹1,234.50"


class TestNumbers:
    """Tests for percentages and compact amounts."""

    def test_percentage(self):
        assert format_percentage(Decimal("12.345")) == "12.3%"
        assert format_percentage(15, decimals=2) == "15.00%"

    def test_compact(self):
        """Test crore, lakh and thousand suffixes."""
        assert format_compact(25000000) == "₹2.5Cr"
        assert format_compact(150000) == "₹1.5L"
        assert format_compact(12500) == "₹12.5K"
        assert format_compact(999) == "₹999"

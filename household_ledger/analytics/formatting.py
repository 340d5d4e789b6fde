"""
Currency & Number Formatting

Locale-aware money strings via Babel. The default en_IN locale groups
digits in lakhs and crores: 1234567 -> "₹12,34,567".
"""

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from babel import Locale
from babel.numbers import format_currency as babel_format_currency

from household_ledger.analytics.finance_math import Number, to_decimal
from household_ledger.config import get_settings


CRORE = Decimal("10000000")
LAKH = Decimal("100000")
THOUSAND = Decimal("1000")


def _defaults(currency: Optional[str], locale: Optional[str]) -> tuple[str, str]:
    settings = get_settings().ledger
    return currency or settings.default_currency, locale or settings.locale


def _whole_number_pattern(locale: str) -> str:
    """The locale's currency pattern with the fraction part removed."""
    pattern = Locale.parse(locale).currency_formats["standard"].pattern
    return re.sub(r"\.[0#]+", "", pattern)


def format_currency(
    amount: Number, currency: Optional[str] = None, locale: Optional[str] = None
) -> str:
    """Whole-unit currency string, e.g. "₹12,34,567"."""
    currency, locale = _defaults(currency, locale)
    value = to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return babel_format_currency(
        value,
        currency,
        format=_whole_number_pattern(locale),
        locale=locale,
        currency_digits=False,
    )


def format_currency_precise(
    amount: Number, currency: Optional[str] = None, locale: Optional[str] = None
) -> str:
    """Currency string with two decimals, e.g. "₹1,234.50"."""
    currency, locale = _defaults(currency, locale)
    value = to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return babel_format_currency(value, currency, locale=locale)


def format_percentage(value: Number, decimals: int = 1) -> str:
    quantum = Decimal(1).scaleb(-decimals)
    return f"{to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)}%"


def format_compact(amount: Number) -> str:
    """Short rupee amounts: ₹1.5Cr, ₹2.5L, ₹10.0K; smaller values in full."""
    value = to_decimal(amount)
    for threshold, suffix in ((CRORE, "Cr"), (LAKH, "L"), (THOUSAND, "K")):
        if abs(value) >= threshold:
            scaled = (value / threshold).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
            return f"₹{scaled}{suffix}"
    return format_currency(value)

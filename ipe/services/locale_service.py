"""Locale service for currency formatting and amount parsing.

Uses babel. The locale comes from the LOCALE setting (default: pt_BR); the
currency is derived from its territory.

Example:
    >>> from ipe.services.locale_service import format_amount, parse_localized_decimal
    >>> format_amount(Decimal("5625"))
    'R$\xa05.625,00'
    >>> parse_localized_decimal("5.625,00")
    Decimal('5625.00')
"""

import logging
from decimal import Decimal

from babel import Locale, UnknownLocaleError
from babel.numbers import get_territory_currencies
from babel.numbers import format_currency as babel_format_currency
from babel.numbers import format_decimal as babel_format_decimal
from babel.numbers import parse_decimal as babel_parse_decimal

from ipe.services.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "pt_BR"
DEFAULT_CURRENCY = "BRL"


def _get_locale() -> str:
    """Configured locale, validated against babel's data."""
    locale_str = get_settings().locale
    try:
        Locale.parse(locale_str)
        return locale_str
    except (UnknownLocaleError, ValueError) as e:
        logger.warning(f"Invalid LOCALE '{locale_str}': {e}. Falling back to '{DEFAULT_LOCALE}'")
        return DEFAULT_LOCALE


def _get_currency_from_locale(locale_str: str) -> str:
    try:
        territory = Locale.parse(locale_str).territory
        if territory:
            currencies = get_territory_currencies(territory)
            if currencies:
                return currencies[0]
    except (UnknownLocaleError, ValueError) as e:
        logger.warning(f"Could not derive currency from locale '{locale_str}': {e}")
    return DEFAULT_CURRENCY


def get_currency_code() -> str:
    """ISO 4217 code for the configured locale (e.g. 'BRL')."""
    return _get_currency_from_locale(_get_locale())


def format_amount(amount: Decimal | float, include_symbol: bool = True) -> str:
    """Format a monetary amount for display (e.g. 'R$ 5.625,00')."""
    locale = _get_locale()
    if include_symbol:
        return babel_format_currency(amount, _get_currency_from_locale(locale), locale=locale)
    return babel_format_decimal(amount, format="#,##0.00", locale=locale)


def parse_localized_decimal(value: str) -> Decimal:
    """Parse an amount typed in the locale's notation ('5.625,00' in pt_BR).

    Raises:
        NumberFormatError (a ValueError): text is not a number in this locale
    """
    return babel_parse_decimal(value.strip(), locale=_get_locale())


__all__ = ["format_amount", "get_currency_code", "parse_localized_decimal"]

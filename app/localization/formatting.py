"""Locale-aware number formatting backed by Babel.

The template evaluator delegates every ``number`` argument (and every ``#``
in plural bodies) to ``format_number``.
"""

from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Optional

from babel.core import Locale as BabelLocale
from babel.core import UnknownLocaleError
from babel.numbers import (
    format_compact_decimal,
    format_currency,
    format_decimal,
    format_percent,
    get_territory_currencies,
)

from core.config import settings
from localization.models import LocaleTag
from localization.nodes import DEFAULT_NUMBER_STYLE, NumberStyle
from localization.plurals import to_decimal

GENERIC_CURRENCY_SIGN = "¤"


@lru_cache(maxsize=256)
def _parse_babel_locale(identifier: str) -> Optional[BabelLocale]:
    try:
        return BabelLocale.parse(identifier)
    except (UnknownLocaleError, ValueError):
        return None


def get_babel_locale(locale: LocaleTag) -> Optional[BabelLocale]:
    """Find the closest Babel locale for a tag, walking up its parents.

    Returns:
        Babel Locale, or None for the invariant locale and unknown languages.
    """
    current: Optional[LocaleTag] = locale
    while current is not None and not current.is_invariant:
        babel_locale = _parse_babel_locale(current.to_babel())
        if babel_locale is not None:
            return babel_locale
        current = current.parent()
    return None


def number_locale(locale: LocaleTag) -> BabelLocale:
    """Babel locale used for number symbols, with the configured fallback."""
    babel_locale = get_babel_locale(locale)
    if babel_locale is not None:
        return babel_locale
    fallback = _parse_babel_locale(settings.localization.FALLBACK_NUMBER_LOCALE)
    return fallback or BabelLocale("en")


def _default_currency(babel_locale: BabelLocale) -> Optional[str]:
    if not babel_locale.territory:
        return None
    currencies = get_territory_currencies(babel_locale.territory)
    return currencies[0] if currencies else None


def format_number(
    value,
    locale: LocaleTag = LocaleTag.INVARIANT,
    style: Optional[NumberStyle] = None,
) -> str:
    """Format a number for a locale.

    Args:
        value: int, float, Decimal or numeric string.
        locale: Locale whose number symbols apply.
        style: NumberStyle from the template; None means plain "number".

    Returns:
        Formatted text. Non-numeric values are returned as ``str(value)``
        ("" for None).
    """
    number = to_decimal(value)
    if number is None:
        return "" if value is None else str(value)

    style = style or DEFAULT_NUMBER_STYLE
    babel_locale = number_locale(locale)

    if style.kind == "integer":
        return format_decimal(number.quantize(Decimal(1), rounding=ROUND_HALF_UP), locale=babel_locale)
    if style.kind == "percent":
        return format_percent(number, locale=babel_locale)
    if style.kind == "currency":
        currency = style.currency or _default_currency(babel_locale)
        if currency is None:
            return GENERIC_CURRENCY_SIGN + format_decimal(
                number, format="#,##0.00", locale=babel_locale
            )
        return format_currency(number, currency, locale=babel_locale)
    if style.kind in ("compact-short", "compact-long"):
        return format_compact_decimal(
            number,
            format_type=style.kind.split("-")[1],
            locale=babel_locale,
            fraction_digits=1,
        )
    if style.kind == "pattern":
        return format_decimal(number, format=style.pattern, locale=babel_locale)
    return format_decimal(number, locale=babel_locale)

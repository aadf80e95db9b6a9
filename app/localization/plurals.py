"""Plural and ordinal category rules.

Maps a number to one of the CLDR categories (zero, one, two, few, many,
other) for a locale. Cardinal rules come from a per-locale registry, then
Babel's CLDR data, then the English one/other rule. Ordinal rules are only
registered for English (and the invariant locale, which formats like
English); every other locale yields "other" for all values.
"""

import threading
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Callable, Dict, Optional, Union

from babel.core import Locale as BabelLocale
from babel.core import UnknownLocaleError

from core.logging import get_module_logger
from localization.models import LocaleTag

logger = get_module_logger()

Number = Union[int, float, Decimal]
PluralRule = Callable[[Decimal], str]


def to_decimal(value) -> Optional[Decimal]:
    """Convert a numeric (or numeric string) value to Decimal.

    Returns:
        Decimal, or None when the value is not a finite number.
    """
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        number = Decimal(int(value)) if value.is_integer() else Decimal(repr(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


def english_cardinal(n: Decimal) -> str:
    """English cardinal rule: exactly 1 (no visible fraction) is "one"."""
    return "one" if n == 1 and n.as_tuple().exponent >= 0 else "other"


def french_cardinal(n: Decimal) -> str:
    """French cardinal rule: integer part 0 or 1 is "one"."""
    return "one" if int(abs(n)) in (0, 1) else "other"


def english_ordinal(n: Decimal) -> str:
    """English ordinal rule (1st, 2nd, 3rd, 4th, 11th, 21st...)."""
    if n != n.to_integral_value():
        return "other"
    i = abs(int(n))
    mod10 = i % 10
    mod100 = i % 100
    if mod10 == 1 and mod100 != 11:
        return "one"
    if mod10 == 2 and mod100 != 12:
        return "two"
    if mod10 == 3 and mod100 != 13:
        return "few"
    return "other"


@lru_cache(maxsize=256)
def _babel_locale(tag: str) -> Optional[BabelLocale]:
    try:
        return BabelLocale.parse(tag)
    except (UnknownLocaleError, ValueError):
        return None


def _babel_cardinal(locale: LocaleTag, n: Decimal) -> Optional[str]:
    if locale.is_invariant:
        return None
    babel_locale = _babel_locale(locale.to_babel())
    if babel_locale is None:
        return None
    return babel_locale.plural_form(n)


class PluralRules:
    """Registry of cardinal and ordinal rules keyed by locale tag.

    Lookups try the exact tag and then each parent ("pt-BR" -> "pt"), so a
    rule registered for a language covers all of its regional variants.
    Registration is thread-safe; lookups read an immutable snapshot.

    Attributes:
        use_cldr: Whether Babel's CLDR data backs unregistered cardinals.
    """

    def __init__(self, use_cldr: bool = True):
        self.use_cldr = use_cldr
        self._lock = threading.Lock()
        self._cardinal: Dict[LocaleTag, PluralRule] = {}
        self._ordinal: Dict[LocaleTag, PluralRule] = {}

    def register_cardinal(self, locale, rule: PluralRule) -> None:
        """Register (or replace) the cardinal rule for a locale."""
        tag = LocaleTag.parse(locale)
        with self._lock:
            updated = dict(self._cardinal)
            updated[tag] = rule
            self._cardinal = updated
        logger.debug("cardinal_rule_registered", locale=tag.tag)

    def register_ordinal(self, locale, rule: PluralRule) -> None:
        """Register (or replace) the ordinal rule for a locale."""
        tag = LocaleTag.parse(locale)
        with self._lock:
            updated = dict(self._ordinal)
            updated[tag] = rule
            self._ordinal = updated
        logger.debug("ordinal_rule_registered", locale=tag.tag)

    @staticmethod
    def _find(table: Dict[LocaleTag, PluralRule], locale: LocaleTag) -> Optional[PluralRule]:
        current: Optional[LocaleTag] = locale
        while current is not None and (current == locale or not current.is_invariant):
            rule = table.get(current)
            if rule is not None:
                return rule
            current = current.parent()
        return None

    def category(self, locale, number: Number, ordinal: bool = False) -> str:
        """Return the plural category of a number in a locale.

        Args:
            locale: LocaleTag or tag string.
            number: Value to categorize.
            ordinal: Use ordinal (selectordinal) rules instead of cardinal ones.

        Returns:
            One of "zero", "one", "two", "few", "many", "other".
        """
        tag = LocaleTag.parse(locale)
        n = to_decimal(number)
        if n is None:
            return "other"

        if ordinal:
            rule = self._find(self._ordinal, tag)
            return rule(n) if rule is not None else "other"

        rule = self._find(self._cardinal, tag)
        if rule is not None:
            return rule(n)
        if self.use_cldr:
            category = _babel_cardinal(tag, n)
            if category is not None:
                return category
        return english_cardinal(n)


def _build_default_rules() -> PluralRules:
    rules = PluralRules()
    rules.register_cardinal(LocaleTag.INVARIANT, english_cardinal)
    rules.register_cardinal("en", english_cardinal)
    rules.register_cardinal("fr", french_cardinal)
    rules.register_ordinal(LocaleTag.INVARIANT, english_ordinal)
    rules.register_ordinal("en", english_ordinal)
    return rules


default_rules = _build_default_rules()


def cardinal_category(locale, number: Number) -> str:
    return default_rules.category(locale, number)


def ordinal_category(locale, number: Number) -> str:
    return default_rules.category(locale, number, ordinal=True)

"""Tests for localization.formatting module."""

from decimal import Decimal

import pytest

from localization import LocaleTag, format_number
from localization.formatting import get_babel_locale, number_locale
from localization.nodes import NumberStyle


class TestBabelLocale:
    """Tests for Babel locale lookup."""

    def test_known_locale(self):
        """Known tags map to the matching Babel locale."""
        babel_locale = get_babel_locale(LocaleTag("de-AT"))
        assert str(babel_locale) == "de_AT"

    def test_unknown_region_uses_language(self):
        """Unknown subtags are stripped until Babel knows the locale."""
        babel_locale = get_babel_locale(LocaleTag("de-x1"))
        assert str(babel_locale) == "de"

    def test_invariant_has_no_babel_locale(self):
        """The invariant locale has no Babel counterpart."""
        assert get_babel_locale(LocaleTag.INVARIANT) is None

    def test_number_locale_fallback(self):
        """Invariant and unknown locales format numbers with the fallback locale."""
        assert str(number_locale(LocaleTag.INVARIANT)) == "en"
        assert str(number_locale(LocaleTag("qaa"))) == "en"


class TestFormatNumber:
    """Tests for format_number()."""

    def test_default_style_english(self):
        """Plain numbers use locale grouping and decimal symbols."""
        assert format_number(1234.5, LocaleTag("en")) == "1,234.5"

    def test_default_style_german(self):
        """German swaps grouping and decimal separators."""
        assert format_number(Decimal("1234.5"), LocaleTag("de")) == "1.234,5"

    def test_integer_style_rounds(self):
        """The integer style rounds half up and drops the fraction."""
        assert format_number(1234.56, LocaleTag("en"), NumberStyle("integer")) == "1,235"

    def test_percent_style(self):
        """The percent style scales by 100."""
        assert format_number(0.25, LocaleTag("en"), NumberStyle("percent")) == "25%"

    def test_currency_with_code(self):
        """An explicit currency code is used as given."""
        style = NumberStyle("currency", currency="USD")
        assert format_number(1234.5, LocaleTag("en"), style) == "$1,234.50"

    def test_currency_from_region(self):
        """Without a code, the region's currency is used."""
        result = format_number(1.5, LocaleTag("de-DE"), NumberStyle("currency"))
        assert "€" in result
        assert "1,50" in result

    def test_currency_without_region(self):
        """Without a code or region, the generic currency sign is used."""
        assert format_number(1.5, LocaleTag("en"), NumberStyle("currency")) == "¤1.50"

    def test_compact_short(self):
        """Compact notation keeps one fraction digit."""
        assert format_number(1234, LocaleTag("en"), NumberStyle("compact-short")) == "1.2K"

    def test_custom_pattern(self):
        """Custom CLDR patterns are applied with locale symbols."""
        style = NumberStyle("pattern", pattern="#,##0.00")
        assert format_number(1234.5, LocaleTag("en"), style) == "1,234.50"

    def test_invariant_formats_like_fallback(self):
        """The invariant locale formats like the fallback locale."""
        assert format_number(1234.5) == "1,234.5"

    def test_numeric_string(self):
        """Numeric strings are formatted as numbers."""
        assert format_number("42", LocaleTag("en")) == "42"

    @pytest.mark.parametrize("value,expected", [("abc", "abc"), (None, "")])
    def test_non_numeric_values(self, value, expected):
        """Non-numeric values are returned as text."""
        assert format_number(value, LocaleTag("en")) == expected

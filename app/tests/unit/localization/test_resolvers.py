"""Tests for localization.resolvers module."""

import pytest

from localization import LocaleResolver, LocaleTag, parse_accept_language
from localization.resolvers import LanguageNegotiator, likely_locales

DE = LocaleTag("de")
EN = LocaleTag("en")
FR = LocaleTag("fr")
INVARIANT = LocaleTag.INVARIANT


class TestLocaleResolver:
    """Tests for LocaleResolver.resolve()."""

    def test_exact_match(self, resolver):
        """The requested locale wins when available."""
        assert resolver.resolve("de", {DE, EN}, "en") == DE

    def test_parent_fallback(self, resolver):
        """Regional requests fall back to their language."""
        assert resolver.resolve("de-AT", {DE, EN}, "en") == DE

    def test_multi_level_parent_fallback(self, resolver):
        """Every subtag is stripped in turn."""
        assert resolver.resolve("zh-Hant-TW", {LocaleTag("zh-Hant"), EN}, "en") == LocaleTag(
            "zh-Hant"
        )

    def test_default_locale_fallback(self, resolver):
        """Unavailable languages use the default locale."""
        assert resolver.resolve("ja", {DE, EN}, "en") == EN

    def test_default_locale_parent(self, resolver):
        """The default locale's parents are tried too."""
        assert resolver.resolve("ja", {DE, EN}, "en-GB") == EN

    def test_invariant_when_nothing_matches(self, resolver):
        """The invariant locale is the last resort."""
        assert resolver.resolve("ja", {INVARIANT, DE}, "en") == INVARIANT
        assert resolver.resolve("ja", set(), "en") == INVARIANT

    def test_invariant_request(self, resolver):
        """An invariant request goes straight to the default locale."""
        assert resolver.resolve("", {DE, EN}, "de") == DE

    def test_accepts_strings_with_underscores(self, resolver):
        """Tags are normalized before matching."""
        assert resolver.resolve("de_at", {DE}, "") == DE

    @pytest.mark.parametrize("requested", ["de-AT", "fr-CA", "ja", "", "en-US-posix"])
    def test_result_is_available_or_invariant(self, resolver, requested):
        """The resolved locale is always available or the invariant locale."""
        available = {DE, FR, LocaleTag("fr-CA")}
        result = resolver.resolve(requested, available, "en")
        assert result in available or result == INVARIANT

    def test_resolution_is_deterministic(self, resolver):
        """The same inputs always give the same result."""
        available = [LocaleTag("pt-PT"), LocaleTag("pt-BR"), EN]
        results = {resolver.resolve("pt", available, "en") for _ in range(10)}
        assert len(results) == 1


class TestFallbackChain:
    """Tests for LocaleResolver.fallback_chain()."""

    def test_chain_order(self, resolver):
        """Requested chain, then default chain, then invariant."""
        chain = resolver.fallback_chain("de-AT", "en-GB")
        assert chain == (LocaleTag("de-AT"), DE, LocaleTag("en-GB"), EN, INVARIANT)

    def test_chain_has_no_duplicates(self, resolver):
        """Shared ancestors appear once."""
        chain = resolver.fallback_chain("en-US", "en-GB")
        assert chain == (LocaleTag("en-US"), EN, LocaleTag("en-GB"), INVARIANT)

    def test_likely_region_step(self):
        """With likely regions on, a bare language tries its likely locale."""
        resolver = LocaleResolver(use_likely_region=True)
        chain = resolver.fallback_chain("de", "en")
        assert chain.index(LocaleTag("de-DE")) == chain.index(DE) + 2
        assert chain.index(LocaleTag("de-DE")) < chain.index(EN)

    def test_likely_region_resolves(self):
        """A bare language can resolve to its likely regional text."""
        resolver = LocaleResolver(use_likely_region=True)
        assert resolver.resolve("de", {LocaleTag("de-DE"), EN}, "en") == LocaleTag("de-DE")

    def test_likely_region_disabled(self, resolver):
        """Without likely regions, regional texts do not serve bare languages."""
        assert resolver.resolve("de", {LocaleTag("de-DE"), EN}, "en") == EN


class TestLikelyLocales:
    """Tests for likely_locales()."""

    def test_known_language(self):
        """Known languages expand through CLDR likely subtags."""
        assert likely_locales("de") == (LocaleTag("de-Latn-DE"), LocaleTag("de-DE"))

    @pytest.mark.parametrize("language", ["", "qaa"])
    def test_unknown_language(self, language):
        """Unknown or empty languages expand to nothing."""
        assert likely_locales(language) == ()


class TestMatch:
    """Tests for LocaleResolver.match()."""

    def test_match_without_default(self, resolver):
        """match() never falls back to a default."""
        assert resolver.match("de-AT", {DE, EN}) == DE
        assert resolver.match("ja", {DE, EN}) is None


class TestAcceptLanguage:
    """Tests for Accept-Language handling."""

    def test_parse_orders_by_quality(self):
        """Ranges are ordered by descending quality."""
        tags = parse_accept_language("en;q=0.5, fr-CA, de;q=0.8")
        assert tags == [LocaleTag("fr-CA"), DE, EN]

    def test_parse_keeps_header_order_for_equal_quality(self):
        """Equal qualities keep their header order."""
        assert parse_accept_language("fr, de, en") == [FR, DE, EN]

    def test_parse_skips_wildcards_and_zero_quality(self):
        """'*', q=0 and malformed ranges are ignored."""
        tags = parse_accept_language("*, de;q=0, en, 12-!!, fr;q=abc")
        assert tags == [EN, FR]

    @pytest.mark.parametrize("header", [None, ""])
    def test_parse_empty(self, header):
        """Empty headers yield no tags."""
        assert parse_accept_language(header) == []

    def test_resolve_from_header_first_match(self, resolver):
        """The best-quality range with a match wins."""
        result = resolver.resolve_from_header("ja, fr-CA;q=0.9, de;q=0.8", {DE, FR, EN}, "en")
        assert result == FR

    def test_resolve_from_header_language_only(self, resolver):
        """A sibling region of the requested language is accepted."""
        available = {LocaleTag("pt-PT"), EN}
        assert resolver.resolve_from_header("pt-BR", available, "en") == LocaleTag("pt-PT")

    def test_resolve_from_header_default(self, resolver):
        """Without any match the default chain applies."""
        assert resolver.resolve_from_header("ja, ko", {DE, EN}, "en") == EN
        assert resolver.resolve_from_header(None, {DE, EN}, "de") == DE


class TestLanguageNegotiator:
    """Tests for LanguageNegotiator."""

    def test_matches_language_exact(self):
        """Identical tags match in strict mode."""
        assert LanguageNegotiator.matches_language("en-US", "en_us", strict=True) is True

    def test_matches_language_loose(self):
        """Language-only matching ignores regions."""
        assert LanguageNegotiator.matches_language("en-US", "en-GB") is True
        assert LanguageNegotiator.matches_language("en-US", "en-GB", strict=True) is False

    def test_matches_language_invalid(self):
        """Malformed tags never match."""
        assert LanguageNegotiator.matches_language("??", "en") is False

    def test_find_best_match(self):
        """Exact matches are preferred over language-only matches."""
        assert LanguageNegotiator.find_best_match(["fr-CA", "en"], ["fr", "fr-CA"]) == "fr-CA"
        assert LanguageNegotiator.find_best_match(["fr-CA"], ["en", "fr-FR"]) == "fr-FR"
        assert LanguageNegotiator.find_best_match(["ja"], ["en"], default="en") == "en"


class TestResolverSettings:
    """Tests for settings-driven resolver defaults."""

    def test_likely_region_from_settings(self, localization_settings):
        """The likely-region step follows USE_LIKELY_REGION by default."""
        localization_settings(USE_LIKELY_REGION=False)
        assert LocaleResolver().use_likely_region is False
        localization_settings(USE_LIKELY_REGION=True)
        assert LocaleResolver().use_likely_region is True

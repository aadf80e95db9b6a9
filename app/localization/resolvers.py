"""Locale resolution for translation lookups.

Chooses which of a unit's available locales serves a requested locale, and
which locale an HTTP Accept-Language header asks for.
"""

from typing import Collection, Iterable, List, Optional, Tuple

from babel.core import get_global

from core.config import settings
from core.logging import get_module_logger
from localization.exceptions import InvalidLocaleError
from localization.models import LocaleTag

logger = get_module_logger()


def likely_locales(language: str) -> Tuple[LocaleTag, ...]:
    """Most likely specific locales for a bare language from CLDR data.

    "de" expands to ("de-Latn-DE", "de-DE"); unknown languages expand to
    nothing.
    """
    if not language:
        return ()
    likely = get_global("likely_subtags").get(language.lower())
    if not likely:
        return ()
    try:
        full = LocaleTag(likely)
    except InvalidLocaleError:
        return ()
    candidates = [full]
    if full.script and full.region:
        candidates.append(LocaleTag(f"{full.language}-{full.region}"))
    return tuple(tag for tag in candidates if tag.language == language.lower())


class LocaleResolver:
    """Resolves a requested locale against the locales a unit provides.

    Candidate order, first available wins:
    1. The requested tag.
    2. Its parents, stripping the rightmost subtag each time ("de-AT" -> "de").
    3. The likely specific locale of its language ("de" -> "de-DE"), when
       ``use_likely_region`` is on.
    4. The default locale, then its parents.
    5. The invariant locale.

    Resolution is pure: the same inputs always give the same answer.

    Attributes:
        use_likely_region: Whether step 3 is enabled.
    """

    def __init__(self, use_likely_region: Optional[bool] = None):
        if use_likely_region is None:
            use_likely_region = settings.localization.USE_LIKELY_REGION
        self.use_likely_region = use_likely_region

    def _requested_candidates(self, requested: LocaleTag) -> List[LocaleTag]:
        candidates: List[LocaleTag] = []
        current: Optional[LocaleTag] = requested
        while current is not None and not current.is_invariant:
            candidates.append(current)
            current = current.parent()
        if self.use_likely_region and not requested.is_invariant:
            candidates.extend(likely_locales(requested.language))
        return candidates

    def fallback_chain(
        self, requested, default_locale=LocaleTag.INVARIANT
    ) -> Tuple[LocaleTag, ...]:
        """List the candidate locales for a request, in the order they are tried.

        Args:
            requested: LocaleTag or tag string.
            default_locale: LocaleTag or tag string of the default locale.

        Returns:
            Distinct candidates, always ending with the invariant locale.
        """
        requested = LocaleTag.parse(requested)
        default_locale = LocaleTag.parse(default_locale)

        candidates = self._requested_candidates(requested)
        current: Optional[LocaleTag] = default_locale
        while current is not None and not current.is_invariant:
            candidates.append(current)
            current = current.parent()
        candidates.append(LocaleTag.INVARIANT)

        return tuple(dict.fromkeys(candidates))

    def resolve(
        self,
        requested,
        available: Collection[LocaleTag],
        default_locale=LocaleTag.INVARIANT,
    ) -> LocaleTag:
        """Pick the best available locale for a request.

        Args:
            requested: LocaleTag or tag string.
            available: Locales that have text.
            default_locale: LocaleTag or tag string of the default locale.

        Returns:
            The first candidate present in ``available``, or the invariant
            locale when none is.
        """
        available = set(available)
        for candidate in self.fallback_chain(requested, default_locale):
            if candidate in available:
                return candidate
        return LocaleTag.INVARIANT

    def match(self, requested, available: Collection[LocaleTag]) -> Optional[LocaleTag]:
        """Like ``resolve`` without the default and invariant fallbacks."""
        available = set(available)
        for candidate in self._requested_candidates(LocaleTag.parse(requested)):
            if candidate in available:
                return candidate
        return None

    def resolve_from_header(
        self,
        accept_language: Optional[str],
        available: Collection[LocaleTag],
        default_locale=LocaleTag.INVARIANT,
    ) -> LocaleTag:
        """Resolve a locale from an HTTP Accept-Language header.

        Each language range is tried in quality order through the requested
        part of the fallback chain, then any available locale sharing a
        requested language is accepted, and finally the default chain applies.

        Args:
            accept_language: Header value (e.g. "fr-CA,fr;q=0.9,en;q=0.5").
            available: Locales that have text.
            default_locale: LocaleTag or tag string of the default locale.

        Returns:
            Resolved LocaleTag.
        """
        requested = parse_accept_language(accept_language)
        available = list(available)

        for tag in requested:
            matched = self.match(tag, available)
            if matched is not None:
                logger.debug("resolved_from_header", locale=matched.tag, range=tag.tag)
                return matched

        best = LanguageNegotiator.find_best_match(
            [tag.tag for tag in requested],
            [tag.tag for tag in available if not tag.is_invariant],
        )
        if best is not None:
            logger.debug("resolved_from_header", locale=best, language_only=True)
            return LocaleTag(best)

        resolved = self.resolve(LocaleTag.INVARIANT, available, default_locale)
        logger.debug("no_matching_locale_in_header", header=accept_language, locale=resolved.tag)
        return resolved


def parse_accept_language(accept_language: Optional[str]) -> List[LocaleTag]:
    """Parse an Accept-Language header into tags ordered by quality.

    Wildcards, malformed ranges and ranges with q=0 are skipped. Ranges with
    equal quality keep their header order.
    """
    if not accept_language:
        return []

    # "en-US,en;q=0.9,fr-FR;q=0.8" -> [(en-US, 1.0), (en, 0.9), (fr-FR, 0.8)]
    preferences = []
    for part in accept_language.split(","):
        lang_range, _, params = part.partition(";")
        lang_range = lang_range.strip()
        if not lang_range or lang_range == "*":
            continue

        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 1.0
        if quality <= 0:
            continue

        try:
            preferences.append((LocaleTag(lang_range), quality))
        except InvalidLocaleError:
            logger.debug("invalid_language_range", range=lang_range)

    ordered = sorted(preferences, key=lambda item: item[1], reverse=True)
    return list(dict.fromkeys(tag for tag, _ in ordered))


class LanguageNegotiator:
    """Language-range matching in the spirit of RFC 4647.

    Used when no fallback candidate matches exactly, e.g. a request for
    "pt-BR" where only "pt-PT" is available.
    """

    @staticmethod
    def matches_language(
        requested: str,
        available: str,
        strict: bool = False,
    ) -> bool:
        """Check if an available language tag matches a requested one.

        Args:
            requested: Requested language tag (e.g., "en-US").
            available: Available language tag (e.g., "en").
            strict: If True, requires exact match. If False, allows language-only match.

        Returns:
            True if languages match.
        """
        try:
            requested_tag = LocaleTag.parse(requested)
            available_tag = LocaleTag.parse(available)
        except InvalidLocaleError:
            return False

        if requested_tag == available_tag:
            return True
        if strict:
            return False
        return requested_tag.language == available_tag.language

    @staticmethod
    def find_best_match(
        requested: Iterable[str],
        available: Iterable[str],
        default: Optional[str] = None,
    ) -> Optional[str]:
        """Find best matching language from available options.

        Args:
            requested: Requested language tags in preference order.
            available: Available language tags.
            default: Default if no match found.

        Returns:
            Best matching language from available, or default if no match.
        """
        available = list(available)
        for req_lang in requested:
            for avail_lang in available:
                if LanguageNegotiator.matches_language(req_lang, avail_lang, strict=True):
                    return avail_lang

            for avail_lang in available:
                if LanguageNegotiator.matches_language(req_lang, avail_lang, strict=False):
                    return avail_lang

        return default

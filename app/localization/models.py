"""Core value types for the localization engine.

Defines locale tags, translation keys and the entries returned by lookups.
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Optional, Tuple, Union

from localization.exceptions import InvalidKeyError, InvalidLocaleError

if TYPE_CHECKING:
    from localization.cache import PlaceholderValueCache
    from localization.hooks import HookChain
    from localization.nodes import Node

_SUBTAG_PATTERN = re.compile(r"^[A-Za-z0-9]{1,8}$")
_LANGUAGE_PATTERN = re.compile(r"^[A-Za-z]{1,8}$")
_KEY_SEGMENT_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _normalize_tag(value: str) -> str:
    parts = value.strip().replace("_", "-").split("-")
    if not parts or any(not part for part in parts):
        raise InvalidLocaleError(f"Malformed locale tag: {value!r}")

    language, rest = parts[0], parts[1:]
    if not _LANGUAGE_PATTERN.match(language):
        raise InvalidLocaleError(f"Malformed language subtag in locale tag: {value!r}")

    normalized = [language.lower()]
    for subtag in rest:
        if not _SUBTAG_PATTERN.match(subtag):
            raise InvalidLocaleError(f"Malformed subtag {subtag!r} in locale tag: {value!r}")
        if len(subtag) == 4 and subtag.isalpha():
            normalized.append(subtag.title())
        elif (len(subtag) == 2 and subtag.isalpha()) or (
            len(subtag) == 3 and subtag.isdigit()
        ):
            normalized.append(subtag.upper())
        else:
            normalized.append(subtag.lower())
    return "-".join(normalized)


@dataclass(frozen=True)
class LocaleTag:
    """Normalized BCP 47 style locale identifier.

    Accepts '-' or '_' separators and normalizes casing, so
    ``LocaleTag("de_at") == LocaleTag("DE-AT")``. The empty tag is the
    distinguished invariant locale (``LocaleTag.INVARIANT``), used for texts
    that are not bound to any language.

    Attributes:
        tag: Normalized tag string (e.g. "de-AT", "zh-Hant-TW", "" for invariant).
    """

    tag: str = ""

    def __post_init__(self):
        raw = self.tag if self.tag is not None else ""
        if not isinstance(raw, str):
            raise InvalidLocaleError(f"Locale tag must be a string: {raw!r}")
        normalized = _normalize_tag(raw) if raw.strip() else ""
        object.__setattr__(self, "tag", normalized)

    def __str__(self) -> str:
        return self.tag

    @classmethod
    def parse(cls, value: Union["LocaleTag", str, None]) -> "LocaleTag":
        """Convert a string (or None) into a LocaleTag.

        Args:
            value: LocaleTag, tag string, or None/"" for the invariant locale.

        Returns:
            LocaleTag instance.

        Raises:
            InvalidLocaleError: If the string is not a well-formed tag.
        """
        if isinstance(value, LocaleTag):
            return value
        if value is None:
            return cls.INVARIANT
        return cls(value)

    @property
    def is_invariant(self) -> bool:
        return not self.tag

    @property
    def subtags(self) -> Tuple[str, ...]:
        return tuple(self.tag.split("-")) if self.tag else ()

    @property
    def language(self) -> str:
        """Language part of the tag (e.g. "de" from "de-AT")."""
        return self.subtags[0] if self.tag else ""

    @property
    def script(self) -> str:
        for subtag in self.subtags[1:]:
            if len(subtag) == 4 and subtag.isalpha():
                return subtag
        return ""

    @property
    def region(self) -> str:
        for subtag in self.subtags[1:]:
            if (len(subtag) == 2 and subtag.isalpha()) or (
                len(subtag) == 3 and subtag.isdigit()
            ):
                return subtag
        return ""

    def parent(self) -> Optional["LocaleTag"]:
        """Strip the rightmost subtag.

        Returns:
            The parent tag ("de-AT" -> "de", "de" -> invariant), or None for
            the invariant locale itself.
        """
        if self.is_invariant:
            return None
        subtags = self.subtags
        if len(subtags) == 1:
            return LocaleTag.INVARIANT
        return LocaleTag("-".join(subtags[:-1]))

    def to_babel(self) -> str:
        """Identifier in the underscore form Babel expects (e.g. "de_AT")."""
        return self.tag.replace("-", "_")


LocaleTag.INVARIANT = LocaleTag("")


@dataclass(frozen=True)
class TranslationKey:
    """Dot-separated path identifying a translation unit.

    Each segment starts with a letter or underscore followed by letters,
    digits or underscores. Keys compare case-insensitively but keep their
    original spelling for display.

    Attributes:
        path: Key as written (e.g. "menu.file.open").
    """

    path: str = field(compare=False)
    normalized: str = field(init=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.path, str) or not self.path:
            raise InvalidKeyError(f"Translation key must be a non-empty string: {self.path!r}")
        for segment in self.path.split("."):
            if not _KEY_SEGMENT_PATTERN.match(segment):
                raise InvalidKeyError(
                    f"Invalid segment {segment!r} in translation key: {self.path}"
                )
        object.__setattr__(self, "normalized", self.path.lower())

    def __str__(self) -> str:
        return self.path

    @classmethod
    def from_string(cls, key_string: Union["TranslationKey", str]) -> "TranslationKey":
        """Create a TranslationKey from a dot-separated string.

        Raises:
            InvalidKeyError: If any segment is not an identifier.
        """
        if isinstance(key_string, TranslationKey):
            return key_string
        return cls(key_string)

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(self.path.split("."))

    @property
    def name(self) -> str:
        return self.segments[-1]

    @property
    def group_path(self) -> str:
        return ".".join(self.segments[:-1])


@dataclass(frozen=True)
class TranslationEntry:
    """Result of a translation lookup.

    Attributes:
        key: Requested key.
        text: Localized text (or the key itself when nothing was found).
        contains_placeholders: True when text must be rendered with arguments.
        locale: Locale the caller asked for.
        resolved_locale: Locale of the variant that supplied the text, None
            when the text did not come from a catalog.
        node: Compiled template, None for literal texts.
        found: False when the text is the key-as-fallback.
    """

    key: str
    text: str
    contains_placeholders: bool = False
    locale: LocaleTag = LocaleTag.INVARIANT
    resolved_locale: Optional[LocaleTag] = None
    node: Optional["Node"] = field(default=None, repr=False)
    found: bool = True

    @property
    def render_locale(self) -> LocaleTag:
        """Locale whose plural rules and number formats apply to this text."""
        if self.resolved_locale is not None and not self.resolved_locale.is_invariant:
            return self.resolved_locale
        return self.locale

    def render(
        self,
        *args: Any,
        arguments: Optional[Mapping[str, Any]] = None,
        cache: Optional["PlaceholderValueCache"] = None,
        value_needed: Optional["HookChain"] = None,
        **kwargs: Any,
    ) -> str:
        """Render the entry with positional and/or named arguments.

        Literal entries are returned unchanged. Named values whose names clash
        with a parameter of this method go in ``arguments``; keyword
        arguments win over it on conflict.
        """
        if self.node is None:
            return self.text

        from localization.evaluator import ArgumentLookup, render

        lookup = ArgumentLookup(
            positional=args,
            named={**(arguments or {}), **kwargs},
            cache=cache,
            value_needed=value_needed,
            locale=self.render_locale,
        )
        return render(self.node, self.render_locale, lookup)


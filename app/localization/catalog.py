"""In-memory catalog of translation units.

A catalog is a tree of groups holding translation units; each unit holds one
text variant per locale. Format adapters populate a catalog through the
builder operations (``add_group``, ``add_unit``, ``add_variant``) and then
call ``freeze``. A frozen catalog is read-only and may be shared freely
between threads.

Usage:
    catalog = Catalog(default_locale="en")
    catalog.add_variant("menu.open", "", "Open")
    catalog.add_variant("menu.open", "de", "Öffnen")
    catalog.freeze()
    catalog.get_unit("menu.open").get_variant("de").text
"""

import threading
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from core.config import settings
from core.logging import get_module_logger
from localization.exceptions import (
    CatalogError,
    CatalogFrozenError,
    CatalogLoadError,
    DuplicateKeyError,
    DuplicateVariantError,
    InvalidKeyError,
    TemplateSyntaxError,
)
from localization.models import LocaleTag, TranslationEntry, TranslationKey
from localization.nodes import Literal, Node, Sequence, has_arguments
from localization.parser import looks_templated, parse

logger = get_module_logger()

LocaleLike = Union[LocaleTag, str, None]
KeyLike = Union[TranslationKey, str]


class TextVariant:
    """Text of one unit in one locale.

    The compiled template is memoized: it is built at most once, under a
    lock, by whichever thread asks first. A syntax error is logged once and
    kept: ``compile`` re-raises it while ``node`` returns None, so the variant
    renders its source text literally.

    Attributes:
        key: Full key of the owning unit.
        locale: Locale of the text.
        text: Source text.
        is_templated: True when template syntax was detected or declared.
        source: Name of the file the text came from, if known.
    """

    def __init__(
        self,
        key: str,
        locale: LocaleTag,
        text: str,
        is_templated: bool,
        source: Optional[str] = None,
    ):
        self.key = key
        self.locale = locale
        self.text = text
        self.is_templated = is_templated
        self.source = source
        self._lock = threading.Lock()
        self._compiled = False
        self._node: Optional[Node] = None
        self._error: Optional[TemplateSyntaxError] = None

    def __repr__(self) -> str:
        return f"TextVariant(key={self.key!r}, locale={self.locale.tag!r}, text={self.text!r})"

    def compile(self) -> Optional[Node]:
        """Compile the text, or reuse the earlier compilation.

        A failed compilation is remembered too: later calls re-raise the
        same error without parsing again.

        Returns:
            The template tree, or None for literal texts.

        Raises:
            TemplateSyntaxError: If the templated text is malformed.
        """
        if not self._compiled:
            with self._lock:
                if not self._compiled:
                    try:
                        self._node = parse(self.text) if self.is_templated else None
                    except TemplateSyntaxError as e:
                        logger.error(
                            "template_compile_failed",
                            key=self.key,
                            locale=self.locale.tag,
                            error=e.message,
                            line=e.line,
                            column=e.column,
                        )
                        self._error = e
                    self._compiled = True
        if self._error is not None:
            raise self._error
        return self._node

    @property
    def node(self) -> Optional[Node]:
        """Compiled template; None for literal or unparseable texts."""
        try:
            return self.compile()
        except TemplateSyntaxError:
            return None

    @property
    def compile_error(self) -> Optional[TemplateSyntaxError]:
        return self._error

    @property
    def contains_placeholders(self) -> bool:
        node = self.node
        return node is not None and has_arguments(node)

    @property
    def display_text(self) -> str:
        """Text shown when no arguments are needed (escapes resolved)."""
        node = self.node
        if node is None or has_arguments(node):
            return self.text
        if isinstance(node, Sequence):
            return "".join(child.text for child in node.children if isinstance(child, Literal))
        return self.text

    def to_entry(self, key: str, requested: LocaleTag) -> TranslationEntry:
        """Build the lookup result for this variant."""
        placeholders = self.contains_placeholders
        return TranslationEntry(
            key=key,
            text=self.text if placeholders else self.display_text,
            contains_placeholders=placeholders,
            locale=requested,
            resolved_locale=self.locale,
            node=self.node if placeholders else None,
        )


class TranslationUnit:
    """One translatable message with its per-locale variants.

    Attributes:
        key: Full key of the unit.
        description: Optional note for translators.
        context: Optional usage context.
        properties: Free-form metadata supplied by the adapter.
    """

    def __init__(
        self,
        key: TranslationKey,
        description: Optional[str] = None,
        context: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
    ):
        self.key = key
        self.description = description
        self.context = context
        self.properties = dict(properties or {})
        self._variants: Dict[LocaleTag, TextVariant] = {}
        self._explicit_default: Optional[LocaleTag] = None
        self._default: Optional[LocaleTag] = None

    def __repr__(self) -> str:
        return f"TranslationUnit(key={self.key.path!r}, locales={[t.tag for t in self._variants]!r})"

    @property
    def name(self) -> str:
        return self.key.name

    @property
    def variants(self) -> Dict[LocaleTag, TextVariant]:
        return dict(self._variants)

    @property
    def locales(self) -> Tuple[LocaleTag, ...]:
        return tuple(self._variants)

    def get_variant(self, locale: LocaleLike) -> Optional[TextVariant]:
        """Return the variant for exactly this locale, if any."""
        return self._variants.get(LocaleTag.parse(locale))

    @property
    def default_variant(self) -> Optional[TextVariant]:
        if self._default is None:
            return None
        return self._variants[self._default]

    def _assign_default(self, catalog_default: LocaleTag) -> None:
        if self._explicit_default is not None:
            self._default = self._explicit_default
        elif LocaleTag.INVARIANT in self._variants:
            self._default = LocaleTag.INVARIANT
        elif catalog_default in self._variants:
            self._default = catalog_default
        else:
            raise CatalogError(
                f"Translation key '{self.key.path}' has no default text "
                f"(no invariant text and no text for '{catalog_default.tag or 'invariant'}')"
            )


class Group:
    """Named node of the catalog tree; the root group has an empty name."""

    def __init__(self, name: str = "", parent: Optional["Group"] = None):
        self.name = name
        self.parent = parent
        self._groups: Dict[str, Group] = {}
        self._units: Dict[str, TranslationUnit] = {}

    def __repr__(self) -> str:
        return f"Group(path={self.path!r})"

    @property
    def path(self) -> str:
        names: List[str] = []
        current: Optional[Group] = self
        while current is not None and current.parent is not None:
            names.append(current.name)
            current = current.parent
        return ".".join(reversed(names))

    @property
    def groups(self) -> Tuple["Group", ...]:
        return tuple(self._groups.values())

    @property
    def units(self) -> Tuple[TranslationUnit, ...]:
        return tuple(self._units.values())

    def get_group(self, name: str) -> Optional["Group"]:
        return self._groups.get(name.lower())

    def get_unit(self, name: str) -> Optional[TranslationUnit]:
        return self._units.get(name.lower())


class Catalog:
    """Tree of groups and translation units for one logical translation set.

    Attributes:
        default_locale: Locale whose text becomes a unit's default when the
            unit has no invariant text and no explicit default.
        name: Optional label used in log events.
    """

    def __init__(self, default_locale: LocaleLike = LocaleTag.INVARIANT, name: str = ""):
        self.default_locale = LocaleTag.parse(default_locale)
        self.name = name
        self.root = Group()
        self._units: Dict[str, TranslationUnit] = {}
        self._lock = threading.Lock()
        self._frozen = False

    def __repr__(self) -> str:
        return f"Catalog(name={self.name!r}, units={len(self._units)}, frozen={self._frozen})"

    # -- builder ---------------------------------------------------------

    def _check_mutable(self) -> None:
        if self._frozen:
            raise CatalogFrozenError(f"Catalog '{self.name}' is frozen and cannot be modified")

    def _ensure_group(self, segments: Tuple[str, ...]) -> Group:
        group = self.root
        for segment in segments:
            child = group.get_group(segment)
            if child is None:
                child = Group(segment, parent=group)
                group._groups[segment.lower()] = child
            group = child
        return group

    def add_group(self, path: str) -> Group:
        """Create a group (and any missing ancestors), or return the existing one.

        Raises:
            InvalidKeyError: If the path is not a dot-separated identifier path.
            CatalogFrozenError: If the catalog is frozen.
        """
        segments = TranslationKey.from_string(path).segments
        with self._lock:
            self._check_mutable()
            return self._ensure_group(segments)

    def _create_unit(
        self,
        key: TranslationKey,
        description: Optional[str],
        context: Optional[str],
        properties: Optional[Dict[str, Any]],
    ) -> TranslationUnit:
        group = self._ensure_group(key.segments[:-1])
        unit = TranslationUnit(key, description, context, properties)
        group._units[key.name.lower()] = unit
        self._units[key.normalized] = unit
        return unit

    def add_unit(
        self,
        key: KeyLike,
        description: Optional[str] = None,
        context: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> TranslationUnit:
        """Create a translation unit.

        Args:
            key: Full dot-separated key.
            description: Optional note for translators.
            context: Optional usage context.
            properties: Free-form metadata.

        Returns:
            The new unit.

        Raises:
            DuplicateKeyError: If a unit with the same key (ignoring case)
                already exists.
            CatalogFrozenError: If the catalog is frozen.
        """
        key = TranslationKey.from_string(key)
        with self._lock:
            self._check_mutable()
            if key.normalized in self._units:
                raise DuplicateKeyError(key.path)
            return self._create_unit(key, description, context, properties)

    def add_variant(
        self,
        key: KeyLike,
        locale: LocaleLike,
        text: str,
        templated: Optional[bool] = None,
        default: bool = False,
        source: Optional[str] = None,
    ) -> TextVariant:
        """Add the text of a unit for one locale, creating the unit if needed.

        Args:
            key: Full dot-separated key.
            locale: Locale of the text; None or "" for the invariant text.
            text: Source text.
            templated: Whether the text uses template syntax; None detects it.
            default: Mark this text as the unit's default variant.
            source: Name of the file the text came from, for error reports.

        Returns:
            The new variant.

        Raises:
            DuplicateVariantError: If the unit already has a text for the locale.
            CatalogError: If a second variant is marked as the default.
            CatalogFrozenError: If the catalog is frozen.
        """
        key = TranslationKey.from_string(key)
        tag = LocaleTag.parse(locale)
        if not isinstance(text, str):
            raise CatalogError(f"Text of '{key.path}' for locale '{tag.tag}' must be a string")
        if templated is None:
            templated = looks_templated(text)

        with self._lock:
            self._check_mutable()
            unit = self._units.get(key.normalized)
            if unit is None:
                unit = self._create_unit(key, None, None, None)
            if tag in unit._variants:
                raise DuplicateVariantError(unit.key.path, tag.tag)
            if default:
                if unit._explicit_default is not None:
                    raise CatalogError(
                        f"Translation key '{unit.key.path}' already has a default text "
                        f"for locale '{unit._explicit_default.tag or 'invariant'}'"
                    )
                unit._explicit_default = tag
            variant = TextVariant(unit.key.path, tag, text, templated, source)
            unit._variants[tag] = variant
            return variant

    def freeze(self, validate: Optional[bool] = None) -> "Catalog":
        """Finish loading: assign default variants and make the catalog read-only.

        Args:
            validate: Compile every templated text now so syntax errors are
                reported at load time. Defaults to the COMPILE_ON_LOAD setting.

        Returns:
            The catalog itself.

        Raises:
            CatalogError: If a unit has no default variant.
            TemplateLoadError: If a templated text is malformed. A missing
                'other' case raises MissingOtherCaseLoadError, which is also a
                MissingOtherCaseError.
        """
        if validate is None:
            validate = settings.localization.COMPILE_ON_LOAD

        with self._lock:
            if self._frozen:
                return self
            for unit in self._units.values():
                unit._assign_default(self.default_locale)
            if validate:
                for unit in self._units.values():
                    for variant in unit._variants.values():
                        try:
                            variant.compile()
                        except TemplateSyntaxError as e:
                            raise CatalogLoadError.from_syntax_error(
                                e,
                                key=unit.key.path,
                                locale=variant.locale.tag,
                                file_name=variant.source,
                            ) from e
            self._frozen = True

        logger.info(
            "catalog_frozen",
            catalog=self.name,
            units=len(self._units),
            locales=[tag.tag for tag in self.locales],
            validated=validate,
        )
        return self

    # -- reads -----------------------------------------------------------

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def locales(self) -> Tuple[LocaleTag, ...]:
        """All locales that have at least one text, in first-seen order."""
        seen: Dict[LocaleTag, None] = {}
        for unit in self._units.values():
            for tag in unit._variants:
                seen.setdefault(tag, None)
        return tuple(seen)

    def get_unit(self, key: KeyLike) -> Optional[TranslationUnit]:
        """Return the unit for a key (case-insensitive), or None.

        Invalid keys are treated as unknown.
        """
        try:
            key = TranslationKey.from_string(key)
        except InvalidKeyError:
            return None
        return self._units.get(key.normalized)

    def get_group(self, path: str) -> Optional[Group]:
        if not path:
            return self.root
        group: Optional[Group] = self.root
        for segment in path.split("."):
            group = group.get_group(segment)
            if group is None:
                return None
        return group

    def enumerate_group(self, path: str = "") -> Tuple[Union[Group, TranslationUnit], ...]:
        """List child groups, then units, of a group in insertion order.

        Returns:
            Tuple of groups and units; empty when the group does not exist.
        """
        group = self.get_group(path)
        if group is None:
            return ()
        return group.groups + group.units

    def list_locales_for(self, key: KeyLike) -> Tuple[LocaleTag, ...]:
        """Locales for which a unit has text; empty for unknown keys."""
        unit = self.get_unit(key)
        return unit.locales if unit is not None else ()

    def iter_units(self) -> Iterator[TranslationUnit]:
        return iter(list(self._units.values()))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, TranslationKey)):
            return False
        return self.get_unit(key) is not None

    def __len__(self) -> int:
        return len(self._units)

"""Translation manager: lookups, override hooks and the current locale.

Usage:
    catalog = CatalogLoader("locales", "messages").load()
    manager = TranslationManager(TranslationConfiguration(catalog))
    manager.translate("inbox.summary", count=3, locale="fr")

    manager.set_locale("de")
    manager.get_value("menu.open").text
"""

import threading
from typing import Any, Callable, Mapping, Optional

from core.config import settings
from core.logging import get_module_logger
from localization.catalog import Catalog
from localization.exceptions import LocalizationError, TemplateSyntaxError
from localization.hooks import (
    Channel,
    HookChain,
    LocaleChangedEvent,
    ValueFoundEvent,
    ValueNeededEvent,
    ValueNotFoundEvent,
)
from localization.models import LocaleTag, TranslationEntry
from localization.nodes import has_arguments
from localization.parser import looks_templated, parse
from localization.resolvers import LocaleResolver

logger = get_module_logger()

LocaleListener = Callable[[LocaleChangedEvent], Any]


class TranslationConfiguration:
    """Binds a catalog to its default locale.

    The catalog reference is swapped as a whole on reload; lookups already
    in flight keep reading the catalog they started with.

    Attributes:
        name: Label used in log events.
        default_locale: Locale tried after the requested locale's own
            fallbacks.
    """

    def __init__(self, catalog: Catalog, default_locale=None, name: str = "default"):
        self._catalog = catalog
        self._lock = threading.Lock()
        self.name = name
        if default_locale is None:
            default_locale = settings.localization.DEFAULT_LOCALE or catalog.default_locale
        self.default_locale = LocaleTag.parse(default_locale)

    def __repr__(self) -> str:
        return (
            f"TranslationConfiguration(name={self.name!r}, "
            f"default_locale={self.default_locale.tag!r})"
        )

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def replace_catalog(self, catalog: Catalog) -> Catalog:
        """Swap in a reloaded catalog.

        Returns:
            The catalog that was replaced.
        """
        with self._lock:
            previous = self._catalog
            self._catalog = catalog
        logger.info(
            "catalog_replaced",
            configuration=self.name,
            previous_units=len(previous),
            units=len(catalog),
        )
        return previous


class TranslationManager:
    """Resolves translation entries and owns the current locale.

    Lookups run through three override hook chains:

    - ``on_value_needed`` before the catalog is consulted; a handler may
      return the text (or a TranslationEntry) and skip the catalog.
    - ``on_value_found`` after a catalog hit; a handler may return a
      replacement.
    - ``on_value_not_found`` after a catalog miss; a handler may supply the
      text. Otherwise the key itself is returned.

    Lookups with an explicit locale never read the current locale, so one
    manager can serve different locales to concurrent callers.

    Attributes:
        default_configuration: Configuration used by ``get_value`` and
            ``translate``.
        resolver: LocaleResolver picking the variant for a locale.
    """

    def __init__(
        self,
        configuration: Optional[TranslationConfiguration] = None,
        resolver: Optional[LocaleResolver] = None,
        current_locale=LocaleTag.INVARIANT,
    ):
        self.default_configuration = configuration
        self.resolver = resolver or LocaleResolver()
        self._locale = LocaleTag.parse(current_locale)
        self._locale_lock = threading.RLock()
        self._locale_listeners: Channel[LocaleChangedEvent] = Channel("locale_changed")
        self.on_value_needed: HookChain[ValueNeededEvent] = HookChain("value_needed")
        self.on_value_found: HookChain[ValueFoundEvent] = HookChain("value_found")
        self.on_value_not_found: HookChain[ValueNotFoundEvent] = HookChain("value_not_found")

    # -- current locale --------------------------------------------------

    @property
    def current_locale(self) -> LocaleTag:
        return self._locale

    @current_locale.setter
    def current_locale(self, locale) -> None:
        self.set_locale(locale)

    def set_locale(self, locale) -> bool:
        """Change the current locale and notify listeners.

        Listeners run synchronously, after the new locale is in place, while
        the locale lock is held; a listener may read ``current_locale`` or
        even change it again.

        Args:
            locale: LocaleTag or tag string.

        Returns:
            True if the locale changed.

        Raises:
            InvalidLocaleError: If the tag is malformed.
        """
        tag = LocaleTag.parse(locale)
        with self._locale_lock:
            if tag == self._locale:
                return False
            previous = self._locale
            self._locale = tag
            logger.info("locale_changed", previous=previous.tag, current=tag.tag)
            self._locale_listeners.publish(LocaleChangedEvent(previous=previous, current=tag))
        return True

    def add_locale_listener(self, listener: LocaleListener) -> LocaleListener:
        return self._locale_listeners.register(listener)

    def remove_locale_listener(self, listener: LocaleListener) -> bool:
        return self._locale_listeners.unregister(listener)

    # -- lookups ---------------------------------------------------------

    def _configuration(
        self, configuration: Optional[TranslationConfiguration]
    ) -> TranslationConfiguration:
        configuration = configuration or self.default_configuration
        if configuration is None:
            raise LocalizationError(
                "No translation configuration was given and none is set as default"
            )
        return configuration

    def _to_entry(self, result: Any, key: str, locale: LocaleTag) -> TranslationEntry:
        """Turn a hook result into an entry."""
        if isinstance(result, TranslationEntry):
            return result

        text = str(result)
        node = None
        if looks_templated(text):
            try:
                node = parse(text)
            except TemplateSyntaxError as e:
                logger.warning(
                    "hook_template_invalid",
                    key=key,
                    locale=locale.tag,
                    error=e.message,
                )
        if node is not None and has_arguments(node):
            return TranslationEntry(
                key=key, text=text, contains_placeholders=True, locale=locale, node=node
            )
        if node is not None:
            text = "".join(getattr(child, "text", "") for child in node.children)
        return TranslationEntry(key=key, text=text, locale=locale)

    def get_entry(
        self,
        configuration: Optional[TranslationConfiguration],
        key,
        locale=None,
    ) -> TranslationEntry:
        """Look up the entry for a key.

        Args:
            configuration: Configuration to read; None uses the default one.
            key: TranslationKey or dot-separated key string.
            locale: LocaleTag or tag string; None uses the current locale.

        Returns:
            TranslationEntry. On a miss that no hook handles, the entry holds
            the key itself and ``found`` is False.
        """
        configuration = self._configuration(configuration)
        tag = self._locale if locale is None else LocaleTag.parse(locale)
        key_text = str(key)

        supplied = self.on_value_needed.dispatch(
            ValueNeededEvent(configuration=configuration, key=key_text, locale=tag)
        )
        if supplied is not None:
            return self._to_entry(supplied, key_text, tag)

        catalog = configuration.catalog
        unit = catalog.get_unit(key_text)
        variant = None
        if unit is not None:
            resolved = self.resolver.resolve(tag, unit.locales, configuration.default_locale)
            variant = unit.get_variant(resolved) or unit.default_variant

        if variant is not None:
            entry = variant.to_entry(key_text, tag)
            replaced = self.on_value_found.dispatch(
                ValueFoundEvent(configuration=configuration, key=key_text, locale=tag, entry=entry)
            )
            if replaced is not None:
                return self._to_entry(replaced, key_text, tag)
            return entry

        supplied = self.on_value_not_found.dispatch(
            ValueNotFoundEvent(configuration=configuration, key=key_text, locale=tag)
        )
        if supplied is not None:
            return self._to_entry(supplied, key_text, tag)

        logger.warning(
            "translation_not_found",
            key=key_text,
            locale=tag.tag,
            configuration=configuration.name,
        )
        return TranslationEntry(key=key_text, text=key_text, locale=tag, found=False)

    def get_value(self, key, locale=None) -> TranslationEntry:
        """Look up an entry in the default configuration."""
        return self.get_entry(None, key, locale)

    def translate(
        self,
        key,
        *args: Any,
        locale=None,
        arguments: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> str:
        """Look up a key in the default configuration and render it.

        Args:
            key: TranslationKey or dot-separated key string.
            *args: Positional template arguments.
            locale: LocaleTag or tag string; None uses the current locale.
            arguments: Named template arguments, including names such as
                ``locale`` that cannot be passed as keywords.
            **kwargs: Named template arguments.

        Returns:
            Rendered text.
        """
        return self.get_value(key, locale).render(*args, arguments=arguments, **kwargs)

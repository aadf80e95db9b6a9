"""Translation unit bindings for long-lived consumers.

A binding ties one key of one configuration to a manager so that a UI-like
consumer can ask for its current text repeatedly and be told when that text
may have changed (the manager's locale changed, or a cached placeholder value
was updated).

Usage:
    greeting = TemplatedBoundUnit(manager, configuration, "home.greeting")
    greeting.cache.set("user", "Ada")
    greeting.cache.notify()
    greeting.current_value  # "Hello Ada!"
"""

import threading
import weakref
from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Mapping, Optional

from localization.cache import PlaceholderValueCache
from localization.hooks import (
    Channel,
    HookChain,
    LocaleChangedEvent,
    PlaceholderValueNeededEvent,
)
from localization.manager import TranslationConfiguration, TranslationManager
from localization.models import LocaleTag, TranslationEntry, TranslationKey


@dataclass(frozen=True)
class ValueChangedEvent:
    """Sent to value listeners when a binding's text may have changed.

    Attributes:
        unit: The binding whose value changed.
        locale: Current locale of the manager.
        placeholders: Names of the cached placeholders that changed; empty
            for locale changes.
    """

    unit: "BoundUnit"
    locale: LocaleTag
    placeholders: FrozenSet[str] = field(default_factory=frozenset)


ValueListener = Callable[[ValueChangedEvent], Any]


class BoundUnit:
    """Binding of a translation key to a manager and configuration.

    Attributes:
        manager: TranslationManager used for lookups.
        configuration: Configuration holding the key.
        key: Key of the bound unit.
    """

    def __init__(
        self,
        manager: TranslationManager,
        configuration: TranslationConfiguration,
        key,
    ):
        self.manager = manager
        self.configuration = configuration
        self.key = TranslationKey.from_string(key)
        self._value_listeners: Channel[ValueChangedEvent] = Channel("unit_value_changed")
        self._subscription_lock = threading.Lock()
        self._detach: Optional[weakref.finalize] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self.key.path!r})"

    def get_entry(self, locale=None) -> TranslationEntry:
        return self.manager.get_entry(self.configuration, self.key, locale)

    def get_value(self, locale=None) -> str:
        """Text of the unit for a locale (None uses the manager's current locale)."""
        return self.get_entry(locale).text

    @property
    def current_value(self) -> str:
        return self.get_value()

    @property
    def has_translation(self) -> bool:
        return self.get_entry().found

    def add_value_listener(self, listener: ValueListener) -> ValueListener:
        """Register a listener for value changes.

        The first registration subscribes the binding to the manager's locale
        changes. The manager only holds a weak reference to the binding: the
        subscription is dropped when the binding is garbage collected or
        ``close`` is called.
        """
        with self._subscription_lock:
            if self._detach is None:
                forward = _weak_locale_forwarder(self)
                self.manager.add_locale_listener(forward)
                self._detach = weakref.finalize(
                    self, self.manager.remove_locale_listener, forward
                )
        return self._value_listeners.register(listener)

    def remove_value_listener(self, listener: ValueListener) -> bool:
        return self._value_listeners.unregister(listener)

    def close(self) -> None:
        """Detach from the manager and drop all value listeners."""
        with self._subscription_lock:
            if self._detach is not None:
                self._detach()
                self._detach = None
        self._value_listeners.clear()

    def _on_locale_changed(self, event: LocaleChangedEvent) -> None:
        self._value_listeners.publish(ValueChangedEvent(unit=self, locale=event.current))


def _weak_locale_forwarder(unit: BoundUnit) -> Callable[[LocaleChangedEvent], None]:
    handler = weakref.WeakMethod(unit._on_locale_changed)

    def forward(event: LocaleChangedEvent) -> None:
        bound = handler()
        if bound is not None:
            bound(event)

    return forward


class TemplatedBoundUnit(BoundUnit):
    """Binding of a templated unit with its own placeholder value cache.

    Arguments passed to ``get_value`` take precedence over cached values;
    arguments found in neither are requested from the
    ``on_placeholder_value_needed`` hook chain.

    Attributes:
        cache: PlaceholderValueCache owned by this binding.
        on_placeholder_value_needed: Hook chain of
            PlaceholderValueNeededEvent handlers.
    """

    def __init__(
        self,
        manager: TranslationManager,
        configuration: TranslationConfiguration,
        key,
    ):
        super().__init__(manager, configuration, key)
        self.cache = PlaceholderValueCache()
        self.cache.add_listener(self._on_placeholders_changed)
        self.on_placeholder_value_needed: HookChain[PlaceholderValueNeededEvent] = HookChain(
            "placeholder_value_needed"
        )

    def get_template(self, locale=None) -> str:
        """Unrendered template text for a locale."""
        return self.get_entry(locale).text

    def get_value(
        self,
        *args: Any,
        locale=None,
        arguments: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> str:
        """Render the unit for a locale.

        Args:
            *args: Positional template arguments.
            locale: LocaleTag or tag string; None uses the manager's current
                locale.
            arguments: Named template arguments, including names such as
                ``locale`` that cannot be passed as keywords.
            **kwargs: Named template arguments.

        Returns:
            Rendered text.
        """
        return self.get_entry(locale).render(
            *args,
            arguments=arguments,
            cache=self.cache,
            value_needed=self.on_placeholder_value_needed,
            **kwargs,
        )

    def _on_placeholders_changed(self, names: FrozenSet[str]) -> None:
        self._value_listeners.publish(
            ValueChangedEvent(unit=self, locale=self.manager.current_locale, placeholders=names)
        )

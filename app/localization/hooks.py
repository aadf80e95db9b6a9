"""Override hooks and change notifications.

Two dispatch styles are provided:

- ``HookChain``: ordered handlers invoked synchronously in registration order.
  The first handler that returns something other than None supplies the
  result and the rest of the chain is skipped.
- ``Channel``: broadcast to every listener, in registration order.

A handler that raises is logged and skipped; dispatch continues with the
remaining handlers so a faulty hook can never break a lookup or render.
"""

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, List, Optional, Tuple, TypeVar

from core.logging import get_module_logger
from localization.models import LocaleTag, TranslationEntry

if TYPE_CHECKING:
    from localization.manager import TranslationConfiguration

logger = get_module_logger()

EventT = TypeVar("EventT")
Handler = Callable[[EventT], Any]


@dataclass
class ValueNeededEvent:
    """Raised before a catalog lookup; a handler may return the text or entry."""

    configuration: "TranslationConfiguration"
    key: str
    locale: LocaleTag


@dataclass
class ValueFoundEvent:
    """Raised after a catalog hit; a handler may return a replacement."""

    configuration: "TranslationConfiguration"
    key: str
    locale: LocaleTag
    entry: TranslationEntry


@dataclass
class ValueNotFoundEvent:
    """Raised after a catalog miss; a handler may supply the text or entry."""

    configuration: "TranslationConfiguration"
    key: str
    locale: LocaleTag


@dataclass
class PlaceholderValueNeededEvent:
    """Raised when a template argument was neither passed nor cached.

    A handler supplies the value by returning it. Setting ``cache_value``
    stores the supplied value in the placeholder cache of the renderer.

    Attributes:
        name: Argument name as written in the template.
        index: Positional index of the argument.
        locale: Locale the template is rendered in.
        cache_value: Whether to remember the supplied value.
    """

    name: str
    index: int
    locale: LocaleTag = LocaleTag.INVARIANT
    cache_value: bool = False


@dataclass(frozen=True)
class LocaleChangedEvent:
    previous: LocaleTag
    current: LocaleTag


def _handler_name(handler: Callable) -> str:
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", repr(handler))


class _HandlerList(Generic[EventT]):
    """Copy-on-write list of handlers; dispatch iterates a stable snapshot."""

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._handlers: Tuple[Handler, ...] = ()

    def register(self, handler: Handler) -> Handler:
        """Append a handler. Returns it unchanged so this works as a decorator."""
        with self._lock:
            self._handlers = self._handlers + (handler,)
            total = len(self._handlers)
        logger.debug(
            "registered_hook_handler",
            hook=self.name,
            handler=_handler_name(handler),
            total_handlers=total,
        )
        return handler

    def unregister(self, handler: Handler) -> bool:
        """Remove the first registration of a handler.

        Returns:
            True when the handler was registered.
        """
        with self._lock:
            handlers = list(self._handlers)
            if handler not in handlers:
                return False
            handlers.remove(handler)
            self._handlers = tuple(handlers)
        return True

    def clear(self) -> None:
        with self._lock:
            self._handlers = ()

    @property
    def handlers(self) -> Tuple[Handler, ...]:
        return self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __bool__(self) -> bool:
        return bool(self._handlers)

    def _invoke(self, handler: Handler, event: EventT) -> Any:
        try:
            return handler(event)
        except Exception as e:
            logger.error(
                "hook_handler_failed",
                hook=self.name,
                handler=_handler_name(handler),
                error=str(e),
            )
            return None


class HookChain(_HandlerList[EventT]):
    """Ordered override hooks with short-circuit on the first result."""

    def dispatch(self, event: EventT) -> Optional[Any]:
        """Invoke handlers in order until one returns a value.

        Args:
            event: Event passed to each handler.

        Returns:
            The first non-None handler result, or None when no handler
            supplied one.
        """
        for handler in self._handlers:
            result = self._invoke(handler, event)
            if result is not None:
                return result
        return None


class Channel(_HandlerList[EventT]):
    """Broadcast channel; every listener sees every event."""

    def publish(self, event: EventT) -> List[Any]:
        """Deliver an event to all listeners.

        Returns:
            Listener return values in order (None for a listener that failed).
        """
        return [self._invoke(listener, event) for listener in self._handlers]

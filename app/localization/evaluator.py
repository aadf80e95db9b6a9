"""Template evaluator.

Renders a parsed template for a locale. Rendering never raises for a tree
produced by the parser: missing arguments render as empty text, unmatched
select/plural values fall back to the ``other`` case, and formatter failures
degrade to the plain value.

Usage:
    render_template("{count, plural, one{# item} other{# items}}", "en", count=5)
"""

from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence as SequenceType

from core.logging import get_module_logger
from localization.cache import MISSING, PlaceholderValueCache
from localization.formatting import format_number
from localization.hooks import HookChain, PlaceholderValueNeededEvent
from localization.models import LocaleTag
from localization.nodes import (
    OTHER,
    ArgumentRef,
    Literal,
    Node,
    NumberArg,
    NumberStyle,
    PluralArg,
    SelectArg,
    Sequence,
    SimpleArg,
)
from localization.parser import parse
from localization.plurals import PluralRules, default_rules, to_decimal

logger = get_module_logger()

NumberFormatter = Callable[[Decimal, LocaleTag, NumberStyle], str]


class ArgumentLookup:
    """Resolve template arguments from call arguments, cache and hooks.

    Precedence: named argument by exact name, named argument by
    case-insensitive name, positional argument by index, placeholder cache,
    then the value-needed hook chain. Each argument is resolved at most once
    per lookup instance, so a hook is not asked twice during one render.

    Attributes:
        positional: Positional argument values.
        named: Named argument values.
        cache: Optional placeholder cache consulted before the hook chain.
        value_needed: Optional hook chain of PlaceholderValueNeededEvent
            handlers.
        locale: Locale reported to hook handlers.
    """

    def __init__(
        self,
        positional: SequenceType[Any] = (),
        named: Optional[Mapping[str, Any]] = None,
        cache: Optional[PlaceholderValueCache] = None,
        value_needed: Optional[HookChain] = None,
        locale: LocaleTag = LocaleTag.INVARIANT,
    ):
        self.positional = tuple(positional)
        self.named = dict(named or {})
        self.cache = cache
        self.value_needed = value_needed
        self.locale = locale
        self._folded: Optional[Dict[str, Any]] = None
        self._resolved: Dict[ArgumentRef, Any] = {}

    def _named_folded(self) -> Dict[str, Any]:
        if self._folded is None:
            folded: Dict[str, Any] = {}
            for name, value in self.named.items():
                folded.setdefault(name.lower(), value)
            self._folded = folded
        return self._folded

    def __call__(self, ref: ArgumentRef) -> Any:
        if ref not in self._resolved:
            self._resolved[ref] = self._find(ref)
        return self._resolved[ref]

    def _find(self, ref: ArgumentRef) -> Any:
        if ref.name in self.named:
            return self.named[ref.name]
        folded = self._named_folded()
        if ref.name.lower() in folded:
            return folded[ref.name.lower()]
        if 0 <= ref.position < len(self.positional):
            return self.positional[ref.position]

        if self.cache is not None:
            cached = self.cache.get(ref.name)
            if cached is not MISSING:
                return cached

        if self.value_needed is not None:
            event = PlaceholderValueNeededEvent(
                name=ref.name, index=ref.position, locale=self.locale
            )
            value = self.value_needed.dispatch(event)
            if value is not None:
                if event.cache_value and self.cache is not None:
                    self.cache.set(ref.name, value)
                return value
        return MISSING


def _to_text(value: Any) -> str:
    if value is MISSING or value is None:
        return ""
    return str(value)


def _format_number(
    node: NumberArg, value: Any, locale: LocaleTag, formatter: NumberFormatter
) -> str:
    if value is MISSING or value is None:
        return ""
    number = to_decimal(value)
    if number is None:
        return str(value)
    adjusted = number - node.offset
    try:
        return formatter(adjusted, locale, node.style)
    except Exception as e:
        logger.warning(
            "number_format_failed",
            argument=node.arg.name,
            locale=locale.tag,
            style=node.style.kind,
            error=str(e),
        )
        return str(adjusted)


def _select_case(node: SelectArg, value: Any) -> Node:
    if value is not MISSING and value is not None:
        case = node.cases.get(str(value))
        if case is not None:
            return case
    return node.cases[OTHER]


def _plural_case(node: PluralArg, value: Any, locale: LocaleTag, rules: PluralRules) -> Node:
    number = None if value is MISSING or value is None else to_decimal(value)
    if number is None:
        return node.cases[OTHER]

    adjusted = number - node.offset
    if adjusted == adjusted.to_integral_value():
        exact = node.cases.get(f"={int(adjusted)}")
        if exact is not None:
            return exact

    category = rules.category(locale, adjusted, ordinal=node.ordinal)
    return node.cases.get(category, node.cases[OTHER])


def render(
    node: Node,
    locale,
    lookup: Callable[[ArgumentRef], Any],
    *,
    formatter: NumberFormatter = format_number,
    rules: PluralRules = default_rules,
) -> str:
    """Render a parsed template.

    Args:
        node: Tree returned by ``parse``.
        locale: LocaleTag or tag string whose rules and number formats apply.
        lookup: Callable mapping an ArgumentRef to its value or MISSING.
        formatter: Number formatter for ``number`` arguments and ``#``.
        rules: Plural rule registry.

    Returns:
        Rendered text.
    """
    locale = LocaleTag.parse(locale)
    output: List[str] = []
    stack: List[Node] = [node]

    while stack:
        current = stack.pop()
        if isinstance(current, Literal):
            output.append(current.text)
        elif isinstance(current, Sequence):
            stack.extend(reversed(current.children))
        elif isinstance(current, SimpleArg):
            output.append(_to_text(lookup(current.arg)))
        elif isinstance(current, NumberArg):
            output.append(_format_number(current, lookup(current.arg), locale, formatter))
        elif isinstance(current, SelectArg):
            stack.append(_select_case(current, lookup(current.arg)))
        elif isinstance(current, PluralArg):
            stack.append(_plural_case(current, lookup(current.arg), locale, rules))

    return "".join(output)


def render_template(source: str, locale=LocaleTag.INVARIANT, *args: Any, **kwargs: Any) -> str:
    """Parse and render a template in one step.

    Raises:
        TemplateSyntaxError: If the source is malformed.
    """
    locale = LocaleTag.parse(locale)
    return render(parse(source), locale, ArgumentLookup(args, kwargs, locale=locale))

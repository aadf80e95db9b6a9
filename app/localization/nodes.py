"""Abstract syntax tree produced by the template parser.

Nodes are immutable and shared freely between threads. A parsed template is
always a ``Sequence``; adjacent literal runs are merged into one ``Literal``.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple, Union

PLURAL_CATEGORIES = ("zero", "one", "two", "few", "many", "other")
OTHER = "other"


@dataclass(frozen=True)
class ArgumentRef:
    """Reference to an argument by name and declaration position.

    Attributes:
        name: Argument name as written; digits for positional references.
        position: Index matched against positional arguments. Numeric
            references use their own number; named references use the order
            in which distinct arguments first appear in the source text.
    """

    name: str
    position: int

    @property
    def is_positional(self) -> bool:
        return self.name.isdigit()


@dataclass(frozen=True)
class NumberStyle:
    """Formatting style of a ``number`` argument.

    Attributes:
        kind: "number", "integer", "percent", "currency", "compact-short" or
            "pattern".
        currency: ISO 4217 code for currency styles, if given.
        pattern: CLDR number pattern for the "pattern" kind.
    """

    kind: str = "number"
    currency: Optional[str] = None
    pattern: Optional[str] = None


DEFAULT_NUMBER_STYLE = NumberStyle()


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Sequence:
    children: Tuple["Node", ...] = ()


@dataclass(frozen=True)
class SimpleArg:
    arg: ArgumentRef


@dataclass(frozen=True)
class NumberArg:
    """Locale-formatted number; ``offset`` is subtracted before formatting.

    The parser emits this node for ``{n, number, ...}`` and for ``#`` inside
    plural case bodies (bound to the enclosing plural argument and offset).
    """

    arg: ArgumentRef
    style: NumberStyle = DEFAULT_NUMBER_STYLE
    offset: int = 0


@dataclass(frozen=True)
class SelectArg:
    arg: ArgumentRef
    cases: Mapping[str, "Node"] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "cases", MappingProxyType(dict(self.cases)))


@dataclass(frozen=True)
class PluralArg:
    """Plural or selectordinal argument.

    Case keys are plural categories ("one", "few", ...) or exact values in
    the form "=N".
    """

    arg: ArgumentRef
    offset: int = 0
    cases: Mapping[str, "Node"] = field(default_factory=dict)
    ordinal: bool = False

    def __post_init__(self):
        object.__setattr__(self, "cases", MappingProxyType(dict(self.cases)))


Node = Union[Literal, Sequence, SimpleArg, NumberArg, SelectArg, PluralArg]
ArgumentNode = (SimpleArg, NumberArg, SelectArg, PluralArg)


def walk(node: Node) -> Iterator[Node]:
    """Yield the node and all of its descendants depth-first, in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if isinstance(current, Sequence):
            stack.extend(reversed(current.children))
        elif isinstance(current, (SelectArg, PluralArg)):
            stack.extend(reversed(list(current.cases.values())))


def has_arguments(node: Node) -> bool:
    """Return True when the tree contains any argument node."""
    return any(isinstance(child, ArgumentNode) for child in walk(node))


def collect_arguments(node: Node) -> Tuple[ArgumentRef, ...]:
    """List distinct argument references in declaration order."""
    seen = {}
    for child in walk(node):
        if isinstance(child, ArgumentNode):
            seen.setdefault(child.arg.name, child.arg)
    return tuple(seen.values())

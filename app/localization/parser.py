"""Recursive-descent parser for the placeholder template language.

Grammar:
    template    := (literal | placeholder)*
    literal     := characters except unescaped '{', '}', '#'
                   ('\\{', '\\}', '\\#' and '\\\\' are escapes)
    placeholder := '{' ws argRef ws (',' ws type ws (',' ws body)?)? '}'
    argRef      := identifier | nonNegativeInteger
    type        := 'number' | 'select' | 'plural' offset? | 'selectordinal' offset?
    offset      := 'offset' ws ':' ws integer
    body        := number style | select cases | plural cases

Every structural mistake is reported here, at load time, as a
``TemplateSyntaxError`` so that rendering a parsed template cannot fail.

Usage:
    node = parse("{count, plural, one{# item} other{# items}}")
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from babel.numbers import parse_pattern

from core.config import settings
from localization.exceptions import MissingOtherCaseError, TemplateSyntaxError
from localization.nodes import (
    OTHER,
    PLURAL_CATEGORIES,
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

ESCAPABLE = "{}#\\"
DIGITS = "0123456789"
ARGUMENT_TYPES = ("number", "select", "plural", "selectordinal")
NUMBER_KEYWORD_STYLES = ("number", "integer", "percent", "currency")
NUMBER_SKELETONS = {"compact-short": "compact-short", "compact-long": "compact-long"}


@dataclass(frozen=True)
class _PluralContext:
    """Binding for '#' inside the case bodies of a plural argument."""

    arg: ArgumentRef
    offset: int


class TemplateParser:
    """Single-use parser for one template source text.

    Attributes:
        source: Template text being parsed.
        max_depth: Deepest allowed placeholder nesting.
    """

    def __init__(self, source: str, max_depth: Optional[int] = None):
        self.source = source
        self.max_depth = max_depth or settings.localization.MAX_NESTING_DEPTH
        self.pos = 0
        self._positions: Dict[str, int] = {}

    def parse(self) -> Sequence:
        """Parse the whole source text.

        Returns:
            Sequence node for the template.

        Raises:
            TemplateSyntaxError: If the text is malformed.
            MissingOtherCaseError: If a select/plural lacks an 'other' case.
        """
        try:
            return self._parse_template(depth=0, plural=None, nested=False)
        except RecursionError:
            raise self._error(
                "Template nesting is too deep", 0, len(self.source)
            ) from None

    # -- error reporting -------------------------------------------------

    def _error(
        self,
        message: str,
        start: int,
        end: Optional[int] = None,
        error_class=TemplateSyntaxError,
    ) -> TemplateSyntaxError:
        start = max(0, min(start, len(self.source)))
        end = start + 1 if end is None else end
        end = max(start, min(end, len(self.source)))
        line = self.source.count("\n", 0, start) + 1
        column = start - (self.source.rfind("\n", 0, start) + 1) + 1
        return error_class(message, start, end, line, column)

    # -- low level reading ----------------------------------------------

    @property
    def _eof(self) -> bool:
        return self.pos >= len(self.source)

    def _peek(self) -> str:
        return self.source[self.pos] if self.pos < len(self.source) else ""

    def _skip_ws(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos].isspace():
            self.pos += 1

    def _expect(self, char: str, message: str, start: Optional[int] = None) -> None:
        if self._peek() != char:
            raise self._error(message, self.pos if start is None else start, self.pos + 1)
        self.pos += 1

    def _read_identifier(self) -> str:
        start = self.pos
        if self._eof or not (self.source[self.pos].isalpha() or self.source[self.pos] == "_"):
            return ""
        self.pos += 1
        while not self._eof and (
            self.source[self.pos].isalnum() or self.source[self.pos] == "_"
        ):
            self.pos += 1
        return self.source[start : self.pos]

    def _read_digits(self) -> str:
        start = self.pos
        while not self._eof and self.source[self.pos] in DIGITS:
            self.pos += 1
        return self.source[start : self.pos]

    def _read_integer(self, message: str) -> int:
        start = self.pos
        if self._peek() in ("-", "+"):
            self.pos += 1
        digits = self._read_digits()
        if not digits:
            raise self._error(message, start, self.pos + 1)
        return int(self.source[start : self.pos])

    # -- grammar ---------------------------------------------------------

    def _parse_template(
        self, depth: int, plural: Optional[_PluralContext], nested: bool
    ) -> Sequence:
        children: List[Node] = []
        buffer: List[str] = []

        def flush():
            if buffer:
                children.append(Literal("".join(buffer)))
                buffer.clear()

        while not self._eof:
            char = self.source[self.pos]

            if char == "\\":
                if self.pos + 1 >= len(self.source):
                    raise self._error("Hanging backslash at end of text", self.pos)
                following = self.source[self.pos + 1]
                if following in ESCAPABLE:
                    buffer.append(following)
                else:
                    buffer.append(char + following)
                self.pos += 2
            elif char == "{":
                flush()
                children.append(self._parse_placeholder(depth + 1, plural))
            elif char == "}":
                if nested:
                    break
                raise self._error("Unmatched closing brace '}'", self.pos)
            elif char == "#" and plural is not None:
                flush()
                children.append(NumberArg(plural.arg, offset=plural.offset))
                self.pos += 1
            else:
                buffer.append(char)
                self.pos += 1

        flush()
        return Sequence(tuple(children))

    def _argument_ref(self, name: str) -> ArgumentRef:
        if name not in self._positions:
            self._positions[name] = len(self._positions)
        position = int(name) if name[0] in DIGITS else self._positions[name]
        return ArgumentRef(name=name, position=position)

    def _parse_placeholder(self, depth: int, plural: Optional[_PluralContext]) -> Node:
        start = self.pos
        self.pos += 1  # '{'

        if depth > self.max_depth:
            raise self._error(
                f"Template nesting exceeds the maximum depth of {self.max_depth}",
                start,
            )

        self._skip_ws()
        if self._peek() and self._peek() in DIGITS:
            name = self._read_digits()
        else:
            name = self._read_identifier()
        if not name:
            if self._eof:
                raise self._error("Unclosed placeholder", start, self.pos)
            raise self._error("Expected an argument name or index", self.pos)

        arg = self._argument_ref(name)
        self._skip_ws()

        if self._peek() == "}":
            self.pos += 1
            return SimpleArg(arg)
        if self._eof:
            raise self._error("Unclosed placeholder", start, self.pos)
        if self._peek() != ",":
            raise self._error("Expected ',' or '}' after argument name", self.pos)
        self.pos += 1
        self._skip_ws()

        type_start = self.pos
        arg_type = self._read_identifier()
        if arg_type not in ARGUMENT_TYPES:
            shown = arg_type or self._peek()
            raise self._error(
                f"Unknown argument type '{shown}' (supported: {', '.join(ARGUMENT_TYPES)})",
                type_start,
                max(self.pos, type_start + 1),
            )
        self._skip_ws()

        if arg_type == "number":
            return self._parse_number(start, arg)
        if arg_type == "select":
            self._expect(",", "Expected ',' followed by select cases")
            cases = self._parse_cases(start, depth, "select", plural)
            return SelectArg(arg, cases)

        offset = self._try_offset()
        self._skip_ws()
        self._expect(",", f"Expected ',' followed by {arg_type} cases")
        self._skip_ws()
        body_offset = self._try_offset()
        if body_offset is not None:
            if offset is not None:
                raise self._error("Plural offset is specified twice", self.pos - 1)
            offset = body_offset
        offset = offset or 0
        context = _PluralContext(arg, offset)
        cases = self._parse_cases(start, depth, arg_type, context)
        return PluralArg(arg, offset=offset, cases=cases, ordinal=arg_type == "selectordinal")

    def _try_offset(self) -> Optional[int]:
        mark = self.pos
        if not self.source.startswith("offset", self.pos):
            return None
        self.pos += len("offset")
        following = self._peek()
        if following and (following.isalnum() or following == "_"):
            self.pos = mark
            return None
        self._skip_ws()
        if self._peek() != ":":
            self.pos = mark
            return None
        self.pos += 1
        self._skip_ws()
        return self._read_integer("Expected an integer after 'offset:'")

    def _parse_number(self, start: int, arg: ArgumentRef) -> NumberArg:
        if self._peek() == "}":
            self.pos += 1
            return NumberArg(arg)
        if self._eof:
            raise self._error("Unclosed placeholder", start, self.pos)
        self._expect(",", "Expected ',' or '}' after 'number'")
        self._skip_ws()

        style_start = self.pos
        chars: List[str] = []
        in_quotes = False
        while not self._eof:
            char = self.source[self.pos]
            if char == "'":
                in_quotes = not in_quotes
            elif char == "}" and not in_quotes:
                break
            elif char == "{" and not in_quotes:
                raise self._error("Unexpected '{' in number style", self.pos)
            chars.append(char)
            self.pos += 1
        if self._eof:
            raise self._error("Unclosed placeholder", start, self.pos)
        self.pos += 1  # '}'

        style = self._parse_number_style("".join(chars).strip(), style_start)
        return NumberArg(arg, style=style)

    def _parse_number_style(self, text: str, start: int) -> NumberStyle:
        end = start + max(len(text), 1)
        if not text:
            raise self._error("Empty number style", start, end)

        if text.startswith("::"):
            skeleton = text[2:].strip().lower()
            if skeleton not in NUMBER_SKELETONS:
                raise self._error(f"Unsupported number skeleton '{text}'", start, end)
            return NumberStyle(kind=NUMBER_SKELETONS[skeleton])

        if text.startswith("'") or text[0] in "#0":
            pattern = text
            if text.startswith("'"):
                if len(text) < 2 or not text.endswith("'"):
                    raise self._error("Unterminated quoted number pattern", start, end)
                pattern = text[1:-1].replace("''", "'")
            if not pattern:
                raise self._error("Empty number pattern", start, end)
            try:
                parse_pattern(pattern)
            except (ValueError, TypeError) as e:
                raise self._error(f"Invalid number pattern '{pattern}': {e}", start, end)
            return NumberStyle(kind="pattern", pattern=pattern)

        keyword, separator, currency = text.partition(":")
        keyword = keyword.strip().lower()
        if keyword not in NUMBER_KEYWORD_STYLES:
            raise self._error(f"Unsupported number style '{text}'", start, end)
        if separator:
            currency = currency.strip()
            if keyword != "currency" or len(currency) != 3 or not currency.isalpha():
                raise self._error(f"Invalid currency code in number style '{text}'", start, end)
            return NumberStyle(kind="currency", currency=currency.upper())
        return NumberStyle(kind=keyword)

    def _read_case_key(self, arg_type: str) -> str:
        key_start = self.pos
        if arg_type != "select" and self._peek() == "=":
            self.pos += 1
            value = self._read_integer("Expected an integer after '='")
            return f"={value}"

        while not self._eof:
            char = self.source[self.pos]
            if char.isspace() or char in "{},":
                break
            self.pos += 1
        key = self.source[key_start : self.pos]
        if not key:
            raise self._error("Expected a case keyword", key_start)
        if arg_type != "select" and key not in PLURAL_CATEGORIES:
            raise self._error(
                f"Unknown {arg_type} category '{key}' "
                f"(expected one of {', '.join(PLURAL_CATEGORIES)} or '=N')",
                key_start,
                self.pos,
            )
        return key

    def _parse_cases(
        self,
        start: int,
        depth: int,
        arg_type: str,
        plural: Optional[_PluralContext],
    ) -> Dict[str, Sequence]:
        cases: Dict[str, Sequence] = {}

        while True:
            self._skip_ws()
            if self._eof:
                raise self._error("Unclosed placeholder", start, self.pos)
            if self._peek() == "}":
                self.pos += 1
                break

            key_start = self.pos
            key = self._read_case_key(arg_type)
            if key in cases:
                raise self._error(f"Duplicate case '{key}'", key_start, self.pos)

            self._skip_ws()
            self._expect("{", f"Expected '{{' after case '{key}'")
            body_start = self.pos - 1
            body = self._parse_template(depth, plural, nested=True)
            if self._eof:
                raise self._error(f"Unclosed body of case '{key}'", body_start, self.pos)
            self.pos += 1  # '}'
            cases[key] = body

        if not cases:
            raise self._error(f"The {arg_type} argument has no cases", start, self.pos)
        if OTHER not in cases:
            raise self._error(
                f"The {arg_type} argument has no 'other' case",
                start,
                self.pos,
                error_class=MissingOtherCaseError,
            )
        return cases


def parse(source: str, max_depth: Optional[int] = None) -> Sequence:
    """Parse template text into an immutable AST.

    Args:
        source: Template text.
        max_depth: Optional override of the maximum placeholder nesting.

    Returns:
        Sequence node.

    Raises:
        TemplateSyntaxError: If the text is malformed.
        MissingOtherCaseError: If a select/plural lacks an 'other' case.
    """
    return TemplateParser(source, max_depth=max_depth).parse()


def looks_templated(text: str) -> bool:
    """Detect unescaped '{' or '#' tokens that make a text a template.

    Used by format adapters to decide whether a text needs compiling.
    """
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char in "{#":
            return True
        index += 1
    return False

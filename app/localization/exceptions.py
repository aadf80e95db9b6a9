"""Custom exceptions for the localization engine.

Load-time problems (malformed templates, duplicate keys, broken catalog files)
are raised as exceptions. Lookup and render problems are never raised: they
degrade to the key itself or to an empty substitution.
"""

from typing import Optional


class LocalizationError(Exception):
    """Base exception for all localization errors.

    Example:
        try:
            catalog = loader.load()
        except LocalizationError as e:
            logger.error("catalog_load_failed", error=str(e))
    """

    pass


class InvalidKeyError(LocalizationError, ValueError):
    """Raised when a translation key is not a dot-separated identifier path."""

    pass


class InvalidLocaleError(LocalizationError, ValueError):
    """Raised when a locale tag cannot be parsed."""

    pass


class TemplateSyntaxError(LocalizationError):
    """Raised when placeholder template text is malformed.

    Attributes:
        message: Human readable description of the problem.
        offset_start: Offset of the first offending character.
        offset_end: Offset just past the offending fragment.
        line: 1-based line of offset_start.
        column: 1-based column of offset_start.
    """

    def __init__(
        self,
        message: str,
        offset_start: int,
        offset_end: int,
        line: int,
        column: int,
    ):
        self.message = message
        self.offset_start = offset_start
        self.offset_end = offset_end
        self.line = line
        self.column = column
        super().__init__(f"{message} (line {line}, column {column})")


class MissingOtherCaseError(TemplateSyntaxError):
    """Raised when a select, plural or selectordinal lacks its 'other' case."""

    pass


class CatalogError(LocalizationError):
    """Base exception for catalog construction problems."""

    pass


class DuplicateKeyError(CatalogError):
    """Raised when two units resolve to the same full key.

    Example:
        >>> catalog.add_unit("menu.file")
        >>> catalog.add_unit("Menu.File")
        Traceback (most recent call last):
        ...
        DuplicateKeyError: Translation key 'Menu.File' is already defined
    """

    def __init__(self, key: str, message: Optional[str] = None):
        self.key = key
        super().__init__(message or f"Translation key '{key}' is already defined")


class DuplicateVariantError(DuplicateKeyError):
    """Raised when a unit receives a second text for the same locale."""

    def __init__(self, key: str, locale: str):
        self.locale = locale
        super().__init__(
            key,
            f"Translation key '{key}' already has a text for locale "
            f"'{locale or 'invariant'}'",
        )


class CatalogFrozenError(CatalogError):
    """Raised when a builder operation is attempted on a frozen catalog."""

    pass


class CatalogLoadError(CatalogError):
    """Raised when a catalog (or one of its units) fails to load.

    Carries as much location context as is known so callers can point at the
    offending file, key and character.
    """

    def __init__(
        self,
        message: str,
        file_name: Optional[str] = None,
        key: Optional[str] = None,
        locale: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.message = message
        self.file_name = file_name
        self.key = key
        self.locale = locale
        self.line = line
        self.column = column
        self.offset = offset

        location = []
        if file_name:
            location.append(f"file '{file_name}'")
        if key:
            location.append(f"key '{key}'")
        if locale:
            location.append(f"locale '{locale}'")
        if line is not None and column is not None:
            location.append(f"line {line}, column {column}")
        if offset is not None:
            location.append(f"offset {offset}")
        suffix = f" [{'; '.join(location)}]" if location else ""
        # Explicit base call: subclasses also inherit TemplateSyntaxError.__init__.
        CatalogError.__init__(self, f"{message}{suffix}")

    @classmethod
    def from_syntax_error(
        cls,
        error: TemplateSyntaxError,
        key: Optional[str] = None,
        locale: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> "TemplateLoadError":
        """Wrap a template syntax error with catalog location context.

        The result is both a CatalogLoadError and an instance of the syntax
        error's own class, so ``except MissingOtherCaseError`` still matches
        around a catalog load.
        """
        if isinstance(error, MissingOtherCaseError):
            return MissingOtherCaseLoadError(error, key=key, locale=locale, file_name=file_name)
        return TemplateLoadError(error, key=key, locale=locale, file_name=file_name)


class TemplateLoadError(CatalogLoadError, TemplateSyntaxError):
    """Raised when a catalog text fails to parse during loading."""

    def __init__(
        self,
        error: TemplateSyntaxError,
        key: Optional[str] = None,
        locale: Optional[str] = None,
        file_name: Optional[str] = None,
    ):
        CatalogLoadError.__init__(
            self,
            error.message,
            file_name=file_name,
            key=key,
            locale=locale,
            line=error.line,
            column=error.column,
            offset=error.offset_start,
        )
        self.offset_start = error.offset_start
        self.offset_end = error.offset_end


class MissingOtherCaseLoadError(TemplateLoadError, MissingOtherCaseError):
    """Raised when a catalog text has a select or plural without 'other'."""

    pass

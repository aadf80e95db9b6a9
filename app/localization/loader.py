"""Catalog file loading.

Format adapters turn the content of one translation file into catalog
builder calls. Adapters are registered by file extension; ``CatalogLoader``
picks the adapter for each file of a catalog directory.

Expected layout for a catalog named "messages":

    messages.yml          invariant texts
    messages.de.yml       German texts
    messages.fr-CA.json   Canadian French texts

Usage:
    catalog = CatalogLoader("locales", "messages", default_locale="en").load()
"""

import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from core.config import settings
from core.logging import get_module_logger
from localization.catalog import Catalog
from localization.exceptions import (
    CatalogError,
    CatalogLoadError,
    InvalidKeyError,
    InvalidLocaleError,
)
from localization.models import LocaleTag

logger = get_module_logger()


class CatalogAdapter(ABC):
    """Abstract base for translation file formats.

    Implementations must only use the catalog builder operations.

    Attributes:
        extensions: File extensions handled, with the leading dot.
    """

    extensions: Tuple[str, ...] = ()

    @abstractmethod
    def load(
        self,
        content: str,
        catalog: Catalog,
        locale: LocaleTag,
        source: str = "",
    ) -> int:
        """Add the texts of one file to a catalog.

        Args:
            content: File content.
            catalog: Catalog being built.
            locale: Locale of every text in the file.
            source: File name, for error reports.

        Returns:
            Number of texts added.

        Raises:
            CatalogLoadError: If the content is malformed.
        """
        pass


class MappingCatalogAdapter(CatalogAdapter):
    """Base for formats that decode to nested mappings.

    Nested mappings become groups; string leaves become texts keyed by their
    dotted path. Numbers are stored as their text.
    """

    def _add_texts(
        self,
        data: Mapping[str, Any],
        catalog: Catalog,
        locale: LocaleTag,
        source: str,
        prefix: str = "",
    ) -> int:
        added = 0
        for name, value in data.items():
            name = str(name)
            if name.startswith("@"):
                continue
            key = f"{prefix}.{name}" if prefix else name

            if isinstance(value, Mapping):
                self._add_metadata(data, catalog, key)
                catalog.add_group(key)
                added += self._add_texts(value, catalog, locale, source, key)
            elif value is None:
                logger.debug("empty_translation_skipped", key=key, file=source)
            elif isinstance(value, (str, int, float)) and not isinstance(value, bool):
                self._add_metadata(data, catalog, key)
                catalog.add_variant(key, locale, str(value), source=source)
                added += 1
            else:
                raise CatalogLoadError(
                    f"Unsupported value of type {type(value).__name__}",
                    file_name=source,
                    key=key,
                    locale=locale.tag,
                )
        return added

    def _add_metadata(self, data: Mapping[str, Any], catalog: Catalog, key: str) -> None:
        """Hook for formats that carry unit metadata next to the texts."""
        pass


class YAMLCatalogAdapter(MappingCatalogAdapter):
    """Adapter for YAML translation files.

    Expected format:
        menu:
          open: Open
          recent: "{count, plural, one{# recent file} other{# recent files}}"
    """

    extensions = (".yml", ".yaml")

    def load(
        self,
        content: str,
        catalog: Catalog,
        locale: LocaleTag,
        source: str = "",
    ) -> int:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            logger.error("yaml_parse_error", file=source, error=str(e))
            raise CatalogLoadError(
                f"Failed to parse YAML: {getattr(e, 'problem', None) or e}",
                file_name=source,
                line=mark.line + 1 if mark is not None else None,
                column=mark.column + 1 if mark is not None else None,
                offset=mark.index if mark is not None else None,
            ) from e

        if data is None:
            return 0
        if not isinstance(data, dict):
            raise CatalogLoadError(
                f"Expected a mapping at the top level, got {type(data).__name__}",
                file_name=source,
            )
        return self._add_texts(data, catalog, locale, source)


class JSONCatalogAdapter(MappingCatalogAdapter):
    """Adapter for JSON translation files.

    ARB-style metadata entries ("@key") next to a text provide the unit's
    description and context; other metadata fields become unit properties.
    Global entries ("@@locale") are ignored.

    Expected format:
        {
          "greeting": "Hello {name}!",
          "@greeting": {"description": "Shown on the home page"}
        }
    """

    extensions = (".json",)

    def load(
        self,
        content: str,
        catalog: Catalog,
        locale: LocaleTag,
        source: str = "",
    ) -> int:
        try:
            data = json.loads(content) if content.strip() else None
        except json.JSONDecodeError as e:
            logger.error("json_parse_error", file=source, error=str(e))
            raise CatalogLoadError(
                f"Failed to parse JSON: {e.msg}",
                file_name=source,
                line=e.lineno,
                column=e.colno,
                offset=e.pos,
            ) from e

        if data is None:
            return 0
        if not isinstance(data, dict):
            raise CatalogLoadError(
                f"Expected an object at the top level, got {type(data).__name__}",
                file_name=source,
            )
        return self._add_texts(data, catalog, locale, source)

    def _add_metadata(self, data: Mapping[str, Any], catalog: Catalog, key: str) -> None:
        name = key.rsplit(".", 1)[-1]
        metadata = data.get(f"@{name}")
        if not isinstance(metadata, Mapping) or isinstance(data.get(name), Mapping):
            return
        if catalog.get_unit(key) is not None:
            logger.debug("unit_metadata_ignored", key=key, reason="unit_exists")
            return
        properties = {
            field: value
            for field, value in metadata.items()
            if field not in ("description", "context")
        }
        catalog.add_unit(
            key,
            description=metadata.get("description"),
            context=metadata.get("context"),
            properties=properties,
        )


_ADAPTERS: Dict[str, CatalogAdapter] = {}
_adapters_lock = threading.Lock()


def register_adapter(adapter: CatalogAdapter) -> CatalogAdapter:
    """Register an adapter for each of its extensions (replacing earlier ones).

    Returns:
        The adapter.
    """
    with _adapters_lock:
        for extension in adapter.extensions:
            _ADAPTERS[extension.lower()] = adapter
    logger.debug(
        "registered_catalog_adapter",
        adapter=type(adapter).__name__,
        extensions=list(adapter.extensions),
    )
    return adapter


def get_adapter(extension: str) -> Optional[CatalogAdapter]:
    """Return the adapter for a file extension ("json" or ".json")."""
    extension = extension.lower()
    if not extension.startswith("."):
        extension = f".{extension}"
    return _ADAPTERS.get(extension)


def supported_extensions() -> Tuple[str, ...]:
    return tuple(sorted(_ADAPTERS))


register_adapter(YAMLCatalogAdapter())
register_adapter(JSONCatalogAdapter())


class CatalogLoader:
    """Loads every file of one catalog from a directory into a frozen Catalog.

    Files are named ``<base_name><ext>`` for invariant texts and
    ``<base_name>.<locale><ext>`` for localized texts. Files of other
    catalogs, files with unknown extensions and files whose locale part is
    not a valid tag are skipped.

    Attributes:
        directory: Directory holding the catalog files.
        base_name: Catalog name shared by its files.
        default_locale: Default locale of the catalog.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        base_name: str,
        default_locale=None,
    ):
        self.directory = Path(directory)
        self.base_name = base_name
        if default_locale is None:
            default_locale = settings.localization.DEFAULT_LOCALE
        self.default_locale = LocaleTag.parse(default_locale)

        if not self.directory.is_dir():
            raise ValueError(f"Catalog directory not found: {self.directory}")

    def _locale_of(self, path: Path) -> Optional[LocaleTag]:
        stem = path.name[: -len(path.suffix)] if path.suffix else path.name
        if stem.lower() == self.base_name.lower():
            return LocaleTag.INVARIANT
        prefix = f"{self.base_name.lower()}."
        if not stem.lower().startswith(prefix):
            return None
        try:
            return LocaleTag(stem[len(prefix) :])
        except InvalidLocaleError:
            logger.warning("catalog_file_skipped", file=path.name, reason="invalid_locale")
            return None

    def discover(self) -> List[Tuple[Path, LocaleTag]]:
        """List the catalog's files, invariant file first, then by name."""
        found = []
        for path in self.directory.iterdir():
            if not path.is_file() or get_adapter(path.suffix) is None:
                continue
            locale = self._locale_of(path)
            if locale is not None:
                found.append((path, locale))
        return sorted(found, key=lambda item: (not item[1].is_invariant, item[0].name))

    def load(self, validate: Optional[bool] = None) -> Catalog:
        """Load and freeze the catalog.

        Args:
            validate: Compile templated texts at load time; defaults to the
                COMPILE_ON_LOAD setting.

        Returns:
            Frozen Catalog.

        Raises:
            CatalogLoadError: If no file is found, a file is malformed, or a
                text is invalid. The error names the offending file.
        """
        files = self.discover()
        if not files:
            raise CatalogLoadError(
                f"No files for catalog '{self.base_name}' found in {self.directory}"
            )

        catalog = Catalog(default_locale=self.default_locale, name=self.base_name)
        for path, locale in files:
            self._load_file(catalog, path, locale)

        try:
            catalog.freeze(validate=validate)
        except CatalogLoadError:
            raise
        except CatalogError as e:
            raise CatalogLoadError(str(e), file_name=self.base_name) from e

        logger.info(
            "catalog_loaded",
            catalog=self.base_name,
            directory=str(self.directory),
            file_count=len(files),
            unit_count=len(catalog),
        )
        return catalog

    def _load_file(self, catalog: Catalog, path: Path, locale: LocaleTag) -> int:
        adapter = get_adapter(path.suffix)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CatalogLoadError(
                f"Cannot read file: {e}", file_name=path.name, locale=locale.tag
            ) from e

        try:
            added = adapter.load(content, catalog, locale, path.name)
        except CatalogLoadError:
            raise
        except (CatalogError, InvalidKeyError) as e:
            raise CatalogLoadError(
                str(e),
                file_name=path.name,
                key=getattr(e, "key", None),
                locale=locale.tag,
            ) from e

        logger.info("catalog_file_loaded", file=path.name, locale=locale.tag, texts=added)
        return added


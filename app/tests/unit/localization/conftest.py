"""Feature-level fixtures for localization engine tests."""

import pytest

from localization import LocaleResolver, PluralRules
from localization.plurals import english_cardinal, english_ordinal, french_cardinal
from tests.factories.localization import (
    make_catalog,
    make_configuration,
    make_manager,
    write_json_file,
    write_yaml_file,
)


@pytest.fixture
def catalog():
    """Frozen catalog with the default test texts."""
    return make_catalog()


@pytest.fixture
def configuration(catalog):
    """Configuration around the default catalog, default locale "en"."""
    return make_configuration(catalog)


@pytest.fixture
def manager(configuration):
    """TranslationManager over the default configuration."""
    return make_manager(configuration)


@pytest.fixture
def resolver():
    """LocaleResolver with likely-region fallback disabled."""
    return LocaleResolver(use_likely_region=False)


@pytest.fixture
def plural_rules():
    """Registry with the built-in rules only, isolated from the shared default registry."""
    rules = PluralRules()
    rules.register_cardinal("", english_cardinal)
    rules.register_cardinal("en", english_cardinal)
    rules.register_cardinal("fr", french_cardinal)
    rules.register_ordinal("", english_ordinal)
    rules.register_ordinal("en", english_ordinal)
    return rules


@pytest.fixture
def catalog_dir(tmp_path):
    """Directory with a "messages" catalog in YAML and JSON files.

    Files:
    - messages.yml (invariant)
    - messages.de.yml
    - messages.fr-CA.json
    - other.yml (a different catalog, ignored)
    - notes.txt (unknown extension, ignored)
    """
    write_yaml_file(
        tmp_path,
        "messages.yml",
        {
            "menu": {"file": {"open": "Open", "close": "Close"}},
            "inbox": {"summary": "{count, plural, one{# message} other{# messages}}"},
        },
    )
    write_yaml_file(
        tmp_path,
        "messages.de.yml",
        {
            "menu": {"file": {"open": "Öffnen"}},
            "inbox": {"summary": "{count, plural, one{# Nachricht} other{# Nachrichten}}"},
        },
    )
    write_json_file(
        tmp_path,
        "messages.fr-CA.json",
        {
            "menu": {
                "file": {
                    "open": "Ouvrir",
                    "@open": {"description": "File menu entry", "context": "menu"},
                }
            }
        },
    )
    write_yaml_file(tmp_path, "other.yml", {"unrelated": "Ignored"})
    (tmp_path / "notes.txt").write_text("not a catalog", encoding="utf-8")
    return tmp_path

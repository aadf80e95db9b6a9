"""Tests for localization.catalog module."""

import threading
from unittest.mock import patch

import pytest

from localization import (
    Catalog,
    CatalogError,
    CatalogFrozenError,
    CatalogLoadError,
    DuplicateKeyError,
    DuplicateVariantError,
    Group,
    InvalidKeyError,
    LocaleTag,
    MissingOtherCaseError,
    TemplateSyntaxError,
    TranslationUnit,
)
from localization import catalog as catalog_module
from tests.factories.localization import make_catalog


class TestBuilder:
    """Tests for the catalog builder operations."""

    def test_add_variant_creates_unit_and_groups(self):
        """add_variant() creates the unit and its group path."""
        catalog = Catalog()
        catalog.add_variant("menu.file.open", "", "Open")
        unit = catalog.get_unit("menu.file.open")
        assert isinstance(unit, TranslationUnit)
        assert catalog.get_group("menu.file").path == "menu.file"

    def test_add_unit_with_metadata(self):
        """add_unit() stores description, context and properties."""
        catalog = Catalog()
        unit = catalog.add_unit(
            "menu.save", description="Save button", context="toolbar", properties={"max": 10}
        )
        assert unit.description == "Save button"
        assert unit.context == "toolbar"
        assert unit.properties == {"max": 10}

    def test_duplicate_unit_raises(self):
        """Keys collide case-insensitively."""
        catalog = Catalog()
        catalog.add_unit("menu.file")
        with pytest.raises(DuplicateKeyError) as exc_info:
            catalog.add_unit("Menu.File")
        assert exc_info.value.key == "Menu.File"

    def test_duplicate_variant_raises(self):
        """A unit has one text per locale."""
        catalog = Catalog()
        catalog.add_variant("greeting", "de", "Hallo")
        with pytest.raises(DuplicateVariantError) as exc_info:
            catalog.add_variant("greeting", "DE", "Servus")
        assert isinstance(exc_info.value, DuplicateKeyError)
        assert exc_info.value.locale == "de"

    def test_invalid_key_raises(self):
        """Keys must be dot-separated identifiers."""
        with pytest.raises(InvalidKeyError):
            Catalog().add_variant("menu..open", "", "Open")

    def test_templated_detection(self):
        """Template syntax is detected unless declared."""
        catalog = Catalog()
        literal = catalog.add_variant("a", "", "plain")
        templated = catalog.add_variant("b", "", "Hi {name}")
        forced = catalog.add_variant("c", "", "Hi {name}", templated=False)
        assert literal.is_templated is False
        assert templated.is_templated is True
        assert forced.is_templated is False

    def test_second_explicit_default_raises(self):
        """Only one variant of a unit can be the explicit default."""
        catalog = Catalog()
        catalog.add_variant("a", "en", "A", default=True)
        with pytest.raises(CatalogError):
            catalog.add_variant("a", "de", "A", default=True)

    def test_add_group_returns_existing(self):
        """add_group() is idempotent and case-insensitive."""
        catalog = Catalog()
        first = catalog.add_group("menu.file")
        assert catalog.add_group("Menu.File") is first
        assert isinstance(first, Group)


class TestFreeze:
    """Tests for Catalog.freeze()."""

    def test_default_variant_prefers_explicit_flag(self):
        """An explicit default wins over the invariant text."""
        catalog = Catalog()
        catalog.add_variant("a", "", "invariant")
        catalog.add_variant("a", "de", "deutsch", default=True)
        catalog.freeze()
        assert catalog.get_unit("a").default_variant.text == "deutsch"

    def test_default_variant_is_invariant(self):
        """The invariant text is the default when nothing is flagged."""
        catalog = make_catalog()
        assert catalog.get_unit("menu.file.open").default_variant.locale == LocaleTag.INVARIANT

    def test_default_variant_uses_catalog_default_locale(self):
        """Without an invariant text the catalog's default locale is used."""
        catalog = Catalog(default_locale="en")
        catalog.add_variant("a", "en", "English")
        catalog.add_variant("a", "de", "Deutsch")
        catalog.freeze()
        assert catalog.get_unit("a").default_variant.text == "English"

    def test_missing_default_raises(self):
        """A unit without any usable default text cannot be frozen."""
        catalog = Catalog(default_locale="en")
        catalog.add_variant("a", "de", "Deutsch")
        with pytest.raises(CatalogError):
            catalog.freeze()

    def test_builder_rejected_after_freeze(self):
        """A frozen catalog is read-only."""
        catalog = make_catalog()
        with pytest.raises(CatalogFrozenError):
            catalog.add_variant("new.key", "", "New")
        with pytest.raises(CatalogFrozenError):
            catalog.add_unit("another.key")
        with pytest.raises(CatalogFrozenError):
            catalog.add_group("new")

    def test_freeze_validates_templates(self):
        """Malformed templates are reported at load time with context."""
        catalog = Catalog()
        catalog.add_variant("inbox.count", "en", "{n, plural, one{# item}}", default=True)
        with pytest.raises(CatalogLoadError) as exc_info:
            catalog.freeze(validate=True)
        error = exc_info.value
        assert error.key == "inbox.count"
        assert error.locale == "en"
        assert error.line == 1
        assert "other" in str(error)

    def test_missing_other_case_keeps_its_type(self):
        """A plural without 'other' is still a MissingOtherCaseError at load time."""
        catalog = Catalog()
        catalog.add_variant("inbox.count", "", "{n, plural, one{# item}}")
        with pytest.raises(MissingOtherCaseError) as exc_info:
            catalog.freeze(validate=True)
        assert isinstance(exc_info.value, TemplateSyntaxError)
        assert exc_info.value.key == "inbox.count"
        assert exc_info.value.offset_start == exc_info.value.offset

    def test_other_syntax_errors_keep_their_type(self):
        """Other malformed templates surface as TemplateSyntaxError too."""
        catalog = Catalog()
        catalog.add_variant("greeting", "", "Hello {name")
        with pytest.raises(TemplateSyntaxError) as exc_info:
            catalog.freeze(validate=True)
        assert isinstance(exc_info.value, CatalogLoadError)
        assert not isinstance(exc_info.value, MissingOtherCaseError)

    def test_freeze_without_validation_degrades_lazily(self):
        """Without validation, a malformed template renders as literal text."""
        catalog = Catalog()
        catalog.add_variant("broken", "", "Hello {name")
        catalog.freeze(validate=False)
        variant = catalog.get_unit("broken").default_variant
        assert variant.node is None
        assert variant.compile_error is not None
        assert variant.to_entry("broken", LocaleTag.INVARIANT).text == "Hello {name"

    def test_freeze_is_idempotent(self):
        """Freezing twice is harmless."""
        catalog = make_catalog()
        assert catalog.freeze() is catalog
        assert catalog.frozen is True


class TestReads:
    """Tests for catalog read operations."""

    def test_get_unit_case_insensitive(self, catalog):
        """Units are found regardless of key case."""
        assert catalog.get_unit("MENU.File.Open") is catalog.get_unit("menu.file.open")

    def test_get_unit_unknown_and_invalid(self, catalog):
        """Unknown or malformed keys return None."""
        assert catalog.get_unit("menu.missing") is None
        assert catalog.get_unit("not a key") is None

    def test_enumerate_group_order(self, catalog):
        """Child groups come first, then units, in insertion order."""
        assert [item.name for item in catalog.enumerate_group("")] == ["menu", "home", "inbox", "race"]
        assert [item.name for item in catalog.enumerate_group("menu.file")] == ["open", "close"]

    def test_enumerate_unknown_group(self, catalog):
        """Unknown groups enumerate as empty."""
        assert catalog.enumerate_group("nope") == ()

    def test_list_locales_for(self, catalog):
        """Locales are listed in insertion order."""
        assert catalog.list_locales_for("menu.file.open") == (
            LocaleTag.INVARIANT,
            LocaleTag("de"),
            LocaleTag("fr"),
        )
        assert catalog.list_locales_for("unknown") == ()

    def test_contains_len_and_iteration(self, catalog):
        """The catalog supports membership, size and iteration."""
        assert "home.greeting" in catalog
        assert "home.unknown" not in catalog
        assert 42 not in catalog
        assert len(catalog) == 5
        assert {unit.key.path for unit in catalog.iter_units()} == {
            "menu.file.open",
            "menu.file.close",
            "home.greeting",
            "inbox.summary",
            "race.place",
        }

    def test_catalog_locales(self, catalog):
        """All locales with text are reported."""
        assert set(catalog.locales) == {LocaleTag.INVARIANT, LocaleTag("de"), LocaleTag("fr")}


class TestTextVariant:
    """Tests for TextVariant compilation and entries."""

    def test_literal_entry(self, catalog):
        """Literal texts produce entries without placeholders."""
        entry = catalog.get_unit("menu.file.open").get_variant("de").to_entry(
            "menu.file.open", LocaleTag("de-AT")
        )
        assert entry.text == "Öffnen"
        assert entry.contains_placeholders is False
        assert entry.locale == LocaleTag("de-AT")
        assert entry.resolved_locale == LocaleTag("de")
        assert entry.node is None

    def test_templated_entry(self, catalog):
        """Templated texts keep their source and compiled tree."""
        variant = catalog.get_unit("home.greeting").default_variant
        entry = variant.to_entry("home.greeting", LocaleTag.INVARIANT)
        assert entry.contains_placeholders is True
        assert entry.text == "Hello {name}!"
        assert entry.render(name="Ada") == "Hello Ada!"

    def test_hash_only_text_is_not_placeholder(self):
        """Texts with '#' but no arguments render as plain text."""
        catalog = Catalog()
        variant = catalog.add_variant("a", "", "Item #3")
        assert variant.is_templated is True
        assert variant.contains_placeholders is False
        assert variant.display_text == "Item #3"

    def test_compile_once_under_concurrency(self):
        """Concurrent first reads compile a variant exactly once."""
        catalog = Catalog()
        variant = catalog.add_variant("a", "", "{n, plural, one{# x} other{# xs}}")
        catalog.freeze(validate=False)

        barrier = threading.Barrier(8)
        results = []

        def read():
            barrier.wait()
            results.append(variant.node)

        with patch.object(catalog_module, "parse", wraps=catalog_module.parse) as parse_spy:
            threads = [threading.Thread(target=read) for _ in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        assert parse_spy.call_count == 1
        assert len(results) == 8
        assert all(node is results[0] for node in results)

    def test_failed_compile_parses_once(self):
        """A malformed text is parsed once; later reads reuse the recorded error."""
        catalog = Catalog()
        variant = catalog.add_variant("a", "", "{n, plural, one{# x}}")
        catalog.freeze(validate=False)

        barrier = threading.Barrier(8)
        results = []

        def read():
            barrier.wait()
            results.append(variant.node)

        with patch.object(catalog_module, "parse", wraps=catalog_module.parse) as parse_spy:
            threads = [threading.Thread(target=read) for _ in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
            with pytest.raises(MissingOtherCaseError) as exc_info:
                variant.compile()

        assert parse_spy.call_count == 1
        assert results == [None] * 8
        assert exc_info.value is variant.compile_error


class TestCompileSetting:
    """Tests for the COMPILE_ON_LOAD setting."""

    def test_setting_disables_validation(self, localization_settings):
        """freeze() skips validation when the setting is off."""
        localization_settings(COMPILE_ON_LOAD=False)
        catalog = Catalog()
        catalog.add_variant("broken", "", "{n, plural, one{#}}")
        assert catalog.freeze().frozen is True

    def test_setting_enables_validation(self, localization_settings):
        """freeze() validates when the setting is on."""
        localization_settings(COMPILE_ON_LOAD=True)
        catalog = Catalog()
        catalog.add_variant("broken", "", "{n, plural, one{#}}")
        with pytest.raises(CatalogLoadError):
            catalog.freeze()

import pytest
from pydantic import ValidationError

from core.config import LocalizationSettings, Settings


def test_localization_settings_defaults(monkeypatch):
    for name in ("DEFAULT_LOCALE", "COMPILE_ON_LOAD", "MAX_NESTING_DEPTH"):
        monkeypatch.delenv(f"LOCALIZATION_{name}", raising=False)

    s = LocalizationSettings(_env_file=None)
    assert s.DEFAULT_LOCALE == ""
    assert s.COMPILE_ON_LOAD is True
    assert s.MAX_NESTING_DEPTH == 64


def test_localization_settings_from_environment(monkeypatch):
    monkeypatch.setenv("LOCALIZATION_DEFAULT_LOCALE", " de-AT ")
    monkeypatch.setenv("LOCALIZATION_COMPILE_ON_LOAD", "false")

    s = LocalizationSettings(_env_file=None)
    assert s.DEFAULT_LOCALE == "de-AT"
    assert s.COMPILE_ON_LOAD is False


def test_localization_settings_nesting_depth_must_be_positive():
    with pytest.raises(ValidationError):
        LocalizationSettings(MAX_NESTING_DEPTH=0, _env_file=None)


def test_settings_builds_nested_localization_settings():
    s = Settings(_env_file=None)
    assert isinstance(s.localization, LocalizationSettings)


def test_settings_production_mode_follows_prefix():
    assert Settings(PREFIX="", _env_file=None).is_production is True
    assert Settings(PREFIX="dev-", _env_file=None).is_production is False

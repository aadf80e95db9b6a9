"""Shared fixtures for all test suites."""

import pytest

import core.config as core_config


@pytest.fixture
def localization_settings(monkeypatch):
    """Override localization settings for one test.

    Usage:
        def test_something(localization_settings):
            localization_settings(COMPILE_ON_LOAD=False)
    """

    def _override(**values):
        for name, value in values.items():
            monkeypatch.setattr(core_config.settings.localization, name, value)
        return core_config.settings.localization

    return _override

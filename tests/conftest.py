"""Test configuration and fixtures for the Urban Balance test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from urban_balance.game_logic.configuration import get_default_rules_configuration
from urban_balance.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Ensure settings are loaded with predictable values during tests."""
    monkeypatch.setenv("URBAN_BALANCE_AI_STRATEGY", "balanced")
    get_settings.cache_clear()
    get_default_rules_configuration.cache_clear()
    yield
    get_settings.cache_clear()
    get_default_rules_configuration.cache_clear()

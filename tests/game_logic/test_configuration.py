"""Tests for rules configuration loading and per-match overrides."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from urban_balance.game_logic.configuration import (
    MatchOverrides,
    RulesConfiguration,
    RulesDefaults,
    build_match_configuration,
    get_default_rules_configuration,
)


def test_defaults_match_the_table_rules() -> None:
    config = RulesConfiguration()

    assert config.max_stories == 30
    assert config.max_hand_size == 5
    assert config.balance_threshold == 10
    assert config.initial_recall_tokens == 2
    assert config.recall_score_penalty == 3
    assert config.recall_max_floor == 12
    assert config.lead_block_size == 5
    assert config.turn_duration_seconds == 30


def test_rules_defaults_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("URBAN_BALANCE_RULES_MAX_STORIES", "12")
    monkeypatch.setenv("URBAN_BALANCE_RULES_BALANCE_THRESHOLD", "4")

    config = RulesDefaults().to_config()

    assert config.max_stories == 12
    assert config.balance_threshold == 4


def test_default_configuration_is_cached() -> None:
    assert get_default_rules_configuration() is get_default_rules_configuration()


def test_overrides_apply_on_top_of_defaults() -> None:
    overrides = MatchOverrides(max_stories=8, turn_duration_seconds=0)

    config = build_match_configuration(overrides)

    assert config.max_stories == 8
    assert config.turn_duration_seconds == 0
    assert config.balance_threshold == 10
    assert build_match_configuration() is get_default_rules_configuration()


def test_empty_overrides_keep_the_configuration() -> None:
    config = RulesConfiguration(max_stories=6)
    assert config.for_match(MatchOverrides()) is config
    assert config.for_match(None) is config


def test_starting_hand_cannot_exceed_hand_limit() -> None:
    with pytest.raises(ValidationError):
        RulesConfiguration(max_hand_size=3, starting_hand_size=4)
    with pytest.raises(ValidationError):
        MatchOverrides(max_hand_size=3).apply(RulesConfiguration())

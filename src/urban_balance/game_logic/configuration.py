"""Rule and pacing configuration objects for matches."""

from __future__ import annotations

from functools import cache

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class RulesDefaults(BaseSettings):
    """Load default rule parameters from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="URBAN_BALANCE_RULES_",
        extra="ignore",
    )

    max_stories: int = Field(default=30, ge=1)
    max_hand_size: int = Field(default=5, ge=1)
    starting_hand_size: int = Field(default=5, ge=0)
    balance_threshold: int = Field(default=10, ge=0)
    initial_recall_tokens: int = Field(default=2, ge=0)
    recall_score_penalty: int = Field(default=3, ge=0)
    recall_max_floor: int = Field(default=12, ge=1)
    lead_block_size: int = Field(default=5, ge=1)
    turn_duration_seconds: int = Field(default=30, ge=0)
    timer_warning_seconds: int = Field(default=10, ge=0)
    ai_turn_delay_seconds: float = Field(default=1.0, ge=0)
    ai_counter_delay_seconds: float = Field(default=1.5, ge=0)
    refill_hands: bool = True
    max_event_history: int = Field(default=100, ge=1)

    def to_config(self) -> RulesConfiguration:
        """Convert defaults into an immutable configuration object."""
        return RulesConfiguration.model_validate(self.model_dump())


class RulesConfiguration(BaseModel):
    """Immutable representation of the rules and pacing for a match."""

    model_config = ConfigDict(frozen=True)

    max_stories: int = Field(default=30, ge=1)
    max_hand_size: int = Field(default=5, ge=1)
    starting_hand_size: int = Field(default=5, ge=0)
    balance_threshold: int = Field(default=10, ge=0)
    initial_recall_tokens: int = Field(default=2, ge=0)
    recall_score_penalty: int = Field(default=3, ge=0)
    recall_max_floor: int = Field(default=12, ge=1)
    lead_block_size: int = Field(default=5, ge=1)
    turn_duration_seconds: int = Field(default=30, ge=0)
    timer_warning_seconds: int = Field(default=10, ge=0)
    ai_turn_delay_seconds: float = Field(default=1.0, ge=0)
    ai_counter_delay_seconds: float = Field(default=1.5, ge=0)
    refill_hands: bool = True
    max_event_history: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def _validate_hand_sizes(self) -> RulesConfiguration:
        """The opening hand must fit inside the hand limit."""
        if self.starting_hand_size > self.max_hand_size:
            msg = "Starting hand size cannot exceed the maximum hand size."
            raise ValueError(msg)
        return self

    def for_match(self, overrides: MatchOverrides | None = None) -> RulesConfiguration:
        """Create a match-specific configuration by applying overrides if provided."""
        if overrides is None:
            return self
        return overrides.apply(self)


class MatchOverrides(BaseModel):
    """Optional per-match overrides for rule settings."""

    model_config = ConfigDict(frozen=True)

    max_stories: int | None = Field(default=None, ge=1)
    max_hand_size: int | None = Field(default=None, ge=1)
    starting_hand_size: int | None = Field(default=None, ge=0)
    balance_threshold: int | None = Field(default=None, ge=0)
    initial_recall_tokens: int | None = Field(default=None, ge=0)
    recall_score_penalty: int | None = Field(default=None, ge=0)
    recall_max_floor: int | None = Field(default=None, ge=1)
    lead_block_size: int | None = Field(default=None, ge=1)
    turn_duration_seconds: int | None = Field(default=None, ge=0)
    ai_turn_delay_seconds: float | None = Field(default=None, ge=0)
    ai_counter_delay_seconds: float | None = Field(default=None, ge=0)
    refill_hands: bool | None = None

    def apply(self, config: RulesConfiguration) -> RulesConfiguration:
        """Return a copy of *config* with overrides applied."""
        changes = self.model_dump(exclude_none=True)
        if not changes:
            return config
        return RulesConfiguration.model_validate({**config.model_dump(), **changes})


@cache
def get_default_rules_configuration() -> RulesConfiguration:
    """Return the cached default rules configuration."""
    return RulesDefaults().to_config()


def build_match_configuration(
    overrides: MatchOverrides | None = None,
) -> RulesConfiguration:
    """Construct a configuration for a match, applying optional overrides."""
    defaults = get_default_rules_configuration()
    if overrides is None:
        return defaults
    return overrides.apply(defaults)


__all__ = [
    "MatchOverrides",
    "RulesConfiguration",
    "RulesDefaults",
    "build_match_configuration",
    "get_default_rules_configuration",
]

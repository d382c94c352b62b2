"""Core rules and mechanics that drive Urban Balance gameplay."""

from urban_balance.game_logic.actions import (
    GAME_ACTION_ADAPTER,
    AcceptProposal,
    CounterPropose,
    DrawCard,
    GameAction,
    PassProposal,
    ProposeCard,
    ResetGame,
    StartGame,
    UseRecall,
)
from urban_balance.game_logic.ai import (
    AggressiveStrategy,
    AIDecisionProcedure,
    BalancedStrategy,
    DecisionSnapshot,
    Intent,
    Strategy,
    get_strategy,
    intent_to_action,
)
from urban_balance.game_logic.catalog import (
    CardCatalog,
    CardDefinition,
    CardInstance,
    get_default_catalog,
)
from urban_balance.game_logic.configuration import (
    MatchOverrides,
    RulesConfiguration,
    RulesDefaults,
    build_match_configuration,
    get_default_rules_configuration,
)
from urban_balance.game_logic.engine import ActionResult, GameEngine
from urban_balance.game_logic.errors import (
    ActionValidationError,
    InvariantViolationError,
)
from urban_balance.game_logic.journal import EventSink, InMemoryEventJournal
from urban_balance.game_logic.orchestration import (
    GameNotStartedError,
    GameOrchestrator,
)
from urban_balance.game_logic.scoring import determine_winner, evaluate_game_end
from urban_balance.game_logic.state import (
    BuildingLedger,
    FloorState,
    GameState,
    PlacedCard,
    PlayerState,
)
from urban_balance.game_logic.timers import TurnTick, TurnTimer

__all__ = [
    "GAME_ACTION_ADAPTER",
    "AIDecisionProcedure",
    "AcceptProposal",
    "ActionResult",
    "ActionValidationError",
    "AggressiveStrategy",
    "BalancedStrategy",
    "BuildingLedger",
    "CardCatalog",
    "CardDefinition",
    "CardInstance",
    "CounterPropose",
    "DecisionSnapshot",
    "DrawCard",
    "EventSink",
    "FloorState",
    "GameAction",
    "GameEngine",
    "GameNotStartedError",
    "GameOrchestrator",
    "GameState",
    "InMemoryEventJournal",
    "Intent",
    "InvariantViolationError",
    "MatchOverrides",
    "PassProposal",
    "PlacedCard",
    "PlayerState",
    "ProposeCard",
    "ResetGame",
    "RulesConfiguration",
    "RulesDefaults",
    "StartGame",
    "Strategy",
    "TurnTick",
    "TurnTimer",
    "UseRecall",
    "build_match_configuration",
    "determine_winner",
    "evaluate_game_end",
    "get_default_catalog",
    "get_default_rules_configuration",
    "get_strategy",
    "intent_to_action",
]

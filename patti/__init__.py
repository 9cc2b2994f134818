"""Teen Patti rules engine shared by the practice server and scripts."""

from .ai import (
    AIContext,
    AIDecision,
    AIDecisionParams,
    Personality,
    calculate_ai_thinking_time,
    make_ai_decision,
)
from .cards import Card, RANKS, SUITS, build_deck, deal, deal_hands, parse_cards, shuffle
from .errors import EngineError
from .evaluator import HandRank, HandResult, calculate_hand_strength, compare_hands, evaluate_hand, find_winners
from .game import (
    GameEngine,
    distribute_pot,
    get_available_actions,
    initialize_game,
    process_action,
)
from .models import ActionType, GameState, PlayerStatus, SessionStatus, TableConfig, Variant

__all__ = [
    "AIContext",
    "AIDecision",
    "AIDecisionParams",
    "Personality",
    "calculate_ai_thinking_time",
    "make_ai_decision",
    "Card",
    "RANKS",
    "SUITS",
    "build_deck",
    "deal",
    "deal_hands",
    "parse_cards",
    "shuffle",
    "EngineError",
    "HandRank",
    "HandResult",
    "calculate_hand_strength",
    "compare_hands",
    "evaluate_hand",
    "find_winners",
    "GameEngine",
    "distribute_pot",
    "get_available_actions",
    "initialize_game",
    "process_action",
    "ActionType",
    "GameState",
    "PlayerStatus",
    "SessionStatus",
    "TableConfig",
    "Variant",
]

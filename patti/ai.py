"""Personality-driven decisions for computer-controlled seats.

Everything here is a pure function of its inputs plus an optional ``rng``;
nothing touches a GameState. Callers turn the decision into an action and
submit it through ``process_action`` like any other player.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .models import ActionType, GamePlayer, GameState

MIN_THINKING_TIME_MS = 500


class Personality(str, Enum):
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


@dataclass(frozen=True)
class AIDecisionParams:
    fold_threshold: float
    raise_threshold: float
    bluff_chance: float
    slow_play_chance: float
    thinking_time_base_ms: int
    thinking_time_variance_ms: int


AI_PARAMS: Dict[Personality, AIDecisionParams] = {
    Personality.CONSERVATIVE: AIDecisionParams(
        fold_threshold=0.35,
        raise_threshold=0.75,
        bluff_chance=0.05,
        slow_play_chance=0.1,
        thinking_time_base_ms=2500,
        thinking_time_variance_ms=800,
    ),
    Personality.BALANCED: AIDecisionParams(
        fold_threshold=0.25,
        raise_threshold=0.6,
        bluff_chance=0.12,
        slow_play_chance=0.2,
        thinking_time_base_ms=2000,
        thinking_time_variance_ms=700,
    ),
    Personality.AGGRESSIVE: AIDecisionParams(
        fold_threshold=0.15,
        raise_threshold=0.45,
        bluff_chance=0.25,
        slow_play_chance=0.3,
        thinking_time_base_ms=1500,
        thinking_time_variance_ms=600,
    ),
}


@dataclass(frozen=True)
class AIContext:
    hand_strength: float
    personality: Personality
    pot_odds: float
    players_remaining: int
    is_blind: bool
    round_number: int = 1


@dataclass(frozen=True)
class AIDecision:
    action: ActionType
    should_raise: bool = False
    is_bluff: bool = False


def get_decision_params(personality: Personality) -> AIDecisionParams:
    return AI_PARAMS[Personality(personality)]


def _continue(context: AIContext) -> AIDecision:
    return AIDecision(ActionType.BLIND if context.is_blind else ActionType.CHAAL)


def make_ai_decision(context: AIContext, rng: Optional[random.Random] = None) -> AIDecision:
    """Pick pack, continue or raise from hand strength and personality.

    Weak hands sometimes bluff-raise and otherwise fold with a probability
    that grows with pot odds and the number of opponents. Strong hands raise
    unless slow-played. Anything in between raises now and then, more often
    the closer it sits to the raise threshold.
    """
    rng = rng or random.Random()
    params = get_decision_params(context.personality)
    strength = context.hand_strength

    if strength < params.fold_threshold:
        if rng.random() < params.bluff_chance:
            return AIDecision(ActionType.RAISE, should_raise=True, is_bluff=True)
        fold_probability = (
            (1 - strength) * (1 + 0.5 * context.pot_odds) * (context.players_remaining / 4)
        )
        if rng.random() < fold_probability * 0.8:
            return AIDecision(ActionType.PACK)
    elif strength > params.raise_threshold:
        if rng.random() < params.slow_play_chance:
            return _continue(context)
        return AIDecision(ActionType.RAISE, should_raise=True)

    span = params.raise_threshold - params.fold_threshold
    raise_probability = 0.3 * (strength - params.fold_threshold) / span
    raise_probability = max(0.0, min(0.3, raise_probability))
    if rng.random() < raise_probability:
        return AIDecision(ActionType.RAISE, should_raise=True)
    return _continue(context)


def calculate_ai_thinking_time(
    hand_strength: float, personality: Personality, rng: Optional[random.Random] = None
) -> int:
    """Milliseconds to wait before acting; strong hands decide faster."""
    rng = rng or random.Random()
    params = get_decision_params(personality)
    factor = 1.0 - 0.5 * max(0.0, min(1.0, hand_strength))
    jitter = rng.uniform(-params.thinking_time_variance_ms, params.thinking_time_variance_ms)
    return max(MIN_THINKING_TIME_MS, int(params.thinking_time_base_ms * factor + jitter))


def build_ai_context(
    state: GameState, player: GamePlayer, hand_strength: float, personality: Personality
) -> AIContext:
    session = state.session
    return AIContext(
        hand_strength=hand_strength,
        personality=Personality(personality),
        pot_odds=session.current_bet / max(1, session.pot),
        players_remaining=sum(1 for p in session.players if p.is_active),
        is_blind=player.is_blind,
        round_number=session.round_number,
    )

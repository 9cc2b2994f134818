from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from patti.ai import Personality, build_ai_context, calculate_ai_thinking_time, make_ai_decision
from patti.evaluator import calculate_hand_strength
from patti.game import GameEngine, calculate_bet_amount
from patti.models import ActionType, GamePlayer, GameState

_RNG = random.Random()

HOUSE_ROSTER: List[Tuple[str, Personality]] = [
    ("Sharma Ji", Personality.CONSERVATIVE),
    ("Priya", Personality.BALANCED),
    ("Bunty", Personality.AGGRESSIVE),
]

_ACTION_MESSAGES: Dict[ActionType, List[str]] = {
    ActionType.PACK: ["{name} folded", "{name} packed their cards", "{name} is out this round"],
    ActionType.CHAAL: ["{name} called", "{name} matched the bet", "{name} is staying in"],
    ActionType.BLIND: ["{name} played blind", "{name} continues blind", "{name} trusts their luck"],
    ActionType.RAISE: ["{name} raised!", "{name} increased the stakes", "{name} is confident!"],
    ActionType.SHOW: ["{name} called for a show", "{name} wants to see cards", "{name} revealed!"],
    ActionType.SIDESHOW: ["{name} called sideshow", "{name} challenged their neighbor"],
}
_BLUFF_MESSAGES = ["{name} raised! (Bluffing?)", "{name} bumped it up!", "{name} is feeling bold!"]


@dataclass
class HouseMove:
    action: ActionType
    amount: Optional[int]
    thinking_ms: int
    is_bluff: bool
    message: str


def action_message(name: str, action: ActionType, is_bluff: bool = False, rng: Optional[random.Random] = None) -> str:
    rng = rng or _RNG
    templates = _BLUFF_MESSAGES if is_bluff and action == ActionType.RAISE else _ACTION_MESSAGES[action]
    return rng.choice(templates).format(name=name)


def house_roster(count: int) -> List[Tuple[str, Personality]]:
    """Names and personalities for ``count`` house seats, repeating the roster if needed."""
    roster = []
    for idx in range(count):
        name, personality = HOUSE_ROSTER[idx % len(HOUSE_ROSTER)]
        if idx >= len(HOUSE_ROSTER):
            name = f"{name} {idx // len(HOUSE_ROSTER) + 1}"
        roster.append((name, personality))
    return roster


def _fit_to_legal(
    state: GameState, player: GamePlayer, wanted: ActionType, legal: List[ActionType]
) -> ActionType:
    # The model only knows pack/continue/raise; the table decides what is allowed.
    if wanted == ActionType.PACK:
        return ActionType.PACK
    if state.showdown_players:
        # Opponent already showed; this seat is the only one still playing.
        if ActionType.SHOW in legal:
            return ActionType.SHOW
        if calculate_bet_amount(state, player, ActionType.CHAAL) <= player.chips:
            return ActionType.CHAAL
        return ActionType.PACK
    if wanted == ActionType.RAISE and ActionType.RAISE in legal:
        return ActionType.RAISE
    # Heads-up and seen: settle it instead of trading chaals.
    if ActionType.SHOW in legal:
        return ActionType.SHOW
    continuation = ActionType.BLIND if ActionType.BLIND in legal else ActionType.CHAAL
    if calculate_bet_amount(state, player, continuation) <= player.chips:
        return continuation
    return ActionType.PACK


def house_move(engine: GameEngine, player_id: str, rng: Optional[random.Random] = None) -> HouseMove:
    """Choose a legal move for a house seat. The caller submits it via ``engine.apply_action``."""
    rng = rng or _RNG
    state = engine.state
    player = engine.current_player()
    if state is None or player is None or player.player_id != player_id:
        raise RuntimeError(f"{player_id} is not due to act")

    legal = engine.legal_actions(player_id)
    seat = engine.seat_of(player_id)
    personality = Personality(seat.personality) if seat and seat.personality else Personality.BALANCED

    strength = 0.5
    if player.hand:
        strength = calculate_hand_strength(player.hand, state.session.variant)

    context = build_ai_context(state, player, strength, personality)
    decision = make_ai_decision(context, rng)
    action = _fit_to_legal(state, player, decision.action, legal)
    is_bluff = decision.is_bluff and action == ActionType.RAISE

    return HouseMove(
        action=action,
        amount=None,
        thinking_ms=calculate_ai_thinking_time(strength, personality, rng),
        is_bluff=is_bluff,
        message=action_message(player.name, action, is_bluff, rng),
    )

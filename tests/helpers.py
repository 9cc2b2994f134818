from __future__ import annotations

import random
from typing import Iterable, List, Optional, Sequence, Tuple

from patti.cards import Card, build_deck, parse_cards
from patti.game import GameEngine, initialize_game, process_action
from patti.models import ActionType, GameState, TableConfig, Variant
from practice.bots import house_move


class DealerRng:
    """Stands in for the round rng when only the dealer pick matters."""

    def __init__(self, dealer: int) -> None:
        self.dealer = dealer

    def randrange(self, stop: int) -> int:
        return self.dealer % stop


def stacked_deck(hands: Sequence[Sequence[str]]) -> List[Card]:
    """Deck whose first cards deal ``hands`` to seat 0, 1, ... in order."""
    top = [card for labels in hands for card in parse_cards(labels)]
    assert len(set(top)) == len(top), "duplicate card in rigged hands"
    return top + [card for card in build_deck() if card not in top]


def rig_deck(monkeypatch, hands: Sequence[Sequence[str]]) -> None:
    deck = stacked_deck(hands)
    monkeypatch.setattr("patti.game.shuffle", lambda cards, rng=None: list(deck))


def new_round(
    monkeypatch,
    hands: Sequence[Sequence[str]],
    *,
    chips: int = 1_000,
    boot: int = 10,
    variant: Variant = Variant.CLASSIC,
) -> GameState:
    """Start a round with known hands where seat 0 acts first."""
    rig_deck(monkeypatch, hands)
    players = [{"id": f"P{idx}", "name": f"Player{idx}", "chips": chips} for idx in range(len(hands))]
    return initialize_game("ROOM", players, boot, variant, rng=DealerRng(len(hands) - 1))


def perform_actions(
    state: GameState, actions: Iterable[Tuple[str, ActionType, Optional[int]]]
) -> GameState:
    """Apply a scripted sequence of (player_id, action, amount)."""
    for player_id, action, amount in actions:
        state = process_action(state, player_id, action, amount)
    return state


def create_engine(
    *,
    seats: int = 4,
    starting_stack: int = 1_000,
    boot: int = 10,
    variant: Variant = Variant.CLASSIC,
    move_time_ms: int = 15_000,
) -> GameEngine:
    """Instantiate an engine with every seat filled."""
    engine = GameEngine(
        TableConfig(
            seats=seats,
            starting_stack=starting_stack,
            boot=boot,
            move_time_ms=move_time_ms,
            variant=variant,
            think_time_scale=0.0,
        )
    )
    for idx in range(seats):
        engine.assign_seat(f"Player{idx}")
    return engine


def auto_complete_round(engine: GameEngine, rng: Optional[random.Random] = None) -> int:
    """Let the house model play every seat until the round settles. Returns turns taken."""
    rng = rng or random.Random(0)
    turns = 0
    while not engine.is_round_complete():
        actor = engine.next_actor()
        assert actor is not None
        move = house_move(engine, actor, rng)
        engine.apply_action(actor, move.action, move.amount)
        turns += 1
        assert turns < 5_000, "round did not settle"
    return turns

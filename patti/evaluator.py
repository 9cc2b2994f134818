from __future__ import annotations

import functools
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from .cards import HAND_SIZE, Card, sort_cards
from .models import Variant


class HandRank(str, Enum):
    HIGH_CARD = "high_card"
    PAIR = "pair"
    COLOR = "color"
    SEQUENCE = "sequence"
    PURE_SEQUENCE = "pure_sequence"
    TRAIL = "trail"


HAND_RANK_VALUES = {
    HandRank.HIGH_CARD: 1,
    HandRank.PAIR: 2,
    HandRank.COLOR: 3,
    HandRank.SEQUENCE: 4,
    HandRank.PURE_SEQUENCE: 5,
    HandRank.TRAIL: 6,
}

HAND_RANK_NAMES = {
    HandRank.TRAIL: "Trail (Three of a Kind)",
    HandRank.PURE_SEQUENCE: "Pure Sequence (Straight Flush)",
    HandRank.SEQUENCE: "Sequence (Straight)",
    HandRank.COLOR: "Color (Flush)",
    HandRank.PAIR: "Pair",
    HandRank.HIGH_CARD: "High Card",
}

# Share of all 22,100 three-card deals, for display.
HAND_PROBABILITIES = {
    HandRank.TRAIL: "0.24%",
    HandRank.PURE_SEQUENCE: "0.22%",
    HandRank.SEQUENCE: "3.26%",
    HandRank.COLOR: "4.96%",
    HandRank.PAIR: "16.94%",
    HandRank.HIGH_CARD: "74.39%",
}

# Base scores for the bot heuristic; muflis uses 1 - base.
HAND_STRENGTH_BASE = {
    HandRank.TRAIL: 1.0,
    HandRank.PURE_SEQUENCE: 0.85,
    HandRank.SEQUENCE: 0.65,
    HandRank.COLOR: 0.5,
    HandRank.PAIR: 0.3,
    HandRank.HIGH_CARD: 0.1,
}
HIGH_CARD_BONUS = 0.15

_LOW_RUN = (14, 3, 2)


@dataclass(frozen=True)
class HandResult:
    rank: HandRank
    cards: Tuple[Card, ...]
    high_card: int
    description: str

    @property
    def score(self) -> Tuple[int, int, Tuple[int, ...]]:
        return HAND_RANK_VALUES[self.rank], self.high_card, tuple(card.value for card in self.cards)


def evaluate_hand(cards: Sequence[Card], variant: Variant = Variant.CLASSIC) -> HandResult:
    """Classify exactly three cards. ``variant`` only matters when comparing."""
    if len(cards) != HAND_SIZE:
        raise ValueError("Teen Patti hands have exactly 3 cards")

    ordered = tuple(sort_cards(cards))
    values = tuple(card.value for card in ordered)
    labels = "-".join(card.rank for card in ordered)
    same_suit = len({card.suit for card in cards}) == 1
    low_run = values == _LOW_RUN
    is_run = low_run or (values[0] - values[1] == 1 and values[1] - values[2] == 1)
    run_high = 3 if low_run else values[0]

    if values[0] == values[1] == values[2]:
        return HandResult(HandRank.TRAIL, ordered, values[0], f"Trail of {ordered[0].rank}s")
    if is_run and same_suit:
        return HandResult(HandRank.PURE_SEQUENCE, ordered, run_high, f"Pure Sequence {labels}")
    if is_run:
        return HandResult(HandRank.SEQUENCE, ordered, run_high, f"Sequence {labels}")
    if same_suit:
        return HandResult(HandRank.COLOR, ordered, values[0], f"Color ({ordered[0].suit})")
    if values[0] == values[1] or values[1] == values[2]:
        # Sorted, so the pair is always adjacent and always includes the middle card.
        pair_card = ordered[1]
        return HandResult(HandRank.PAIR, ordered, pair_card.value, f"Pair of {pair_card.rank}s")
    return HandResult(HandRank.HIGH_CARD, ordered, values[0], f"High Card {ordered[0].rank}")


def compare_hands(first: HandResult, second: HandResult, variant: Variant = Variant.CLASSIC) -> int:
    """Positive if ``first`` wins, negative if ``second`` wins, 0 on a true tie."""
    multiplier = -1 if variant == Variant.MUFLIS else 1
    a, b = first.score, second.score
    if a == b:
        return 0
    return multiplier if a > b else -multiplier


def find_winners(hands: Sequence[Tuple[str, HandResult]], variant: Variant = Variant.CLASSIC) -> List[str]:
    if not hands:
        return []
    key = functools.cmp_to_key(lambda x, y: compare_hands(x[1], y[1], variant))
    _, best = max(hands, key=key)
    return [player_id for player_id, hand in hands if compare_hands(hand, best, variant) == 0]


def calculate_hand_strength(cards: Sequence[Card], variant: Variant = Variant.CLASSIC) -> float:
    """Heuristic 0..1 score for bots; ordered like compare_hands, not a win rate."""
    result = evaluate_hand(cards, variant)
    base = HAND_STRENGTH_BASE[result.rank]
    kicker = (result.high_card - 2) / 12
    if variant == Variant.MUFLIS:
        base = 1.0 - base
        kicker = 1.0 - kicker
    return max(0.0, min(1.0, base + HIGH_CARD_BONUS * kicker))


def hand_rank_name(rank: HandRank) -> str:
    return HAND_RANK_NAMES[rank]


def hand_probability(rank: HandRank) -> str:
    return HAND_PROBABILITIES[rank]

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import InsufficientCards

RANKS = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")
SUITS = ("hearts", "diamonds", "clubs", "spades")

RANK_VALUE = {rank: idx for idx, rank in enumerate(RANKS, start=2)}
SUIT_CODES = {"hearts": "h", "diamonds": "d", "clubs": "c", "spades": "s"}
SUIT_SYMBOLS = {"hearts": "♥", "diamonds": "♦", "clubs": "♣", "spades": "♠"}
_SUIT_BY_CODE = {code: suit for suit, code in SUIT_CODES.items()}

HAND_SIZE = 3

_SYSTEM_RNG = random.SystemRandom()


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANK_VALUE:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUIT_CODES:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def value(self) -> int:
        # Ace plays high (14); the A-3-2 run is special-cased by the evaluator.
        return RANK_VALUE[self.rank]

    @property
    def label(self) -> str:
        return f"{self.rank}{SUIT_CODES[self.suit]}"

    @property
    def display(self) -> str:
        return f"{self.rank}{SUIT_SYMBOLS[self.suit]}"

    @property
    def is_red(self) -> bool:
        return self.suit in ("hearts", "diamonds")


def build_deck() -> List[Card]:
    return [Card(rank, suit) for suit in SUITS for rank in RANKS]


def shuffle(deck: Sequence[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """Fisher-Yates over a copy; the caller's deck is left as it was.

    Without an explicit ``rng`` the OS entropy pool is used. Pass a seeded
    ``random.Random`` for reproducible deals.
    """
    rng = rng or _SYSTEM_RNG
    shuffled = list(deck)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randrange(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def deal(deck: Sequence[Card], count: int) -> Tuple[List[Card], List[Card]]:
    if count < 0:
        raise ValueError("Cannot deal a negative number of cards")
    if len(deck) < count:
        raise InsufficientCards(f"Not enough cards left in deck: need {count}, have {len(deck)}")
    return list(deck[:count]), list(deck[count:])


def deal_hands(
    deck: Sequence[Card], num_players: int, cards_per_player: int = HAND_SIZE
) -> Tuple[List[List[Card]], List[Card]]:
    # Whole hands go out one seat at a time, seat 0 first.
    hands: List[List[Card]] = []
    remaining = list(deck)
    for _ in range(num_players):
        hand, remaining = deal(remaining, cards_per_player)
        hands.append(hand)
    return hands, remaining


def sort_cards(cards: Iterable[Card]) -> List[Card]:
    return sorted(cards, key=lambda card: card.value, reverse=True)


def cards_to_labels(cards: Iterable[Card]) -> List[str]:
    return [card.label for card in cards]


def parse_label(label: str) -> Card:
    if len(label) not in (2, 3):
        raise ValueError(f"Invalid card label: {label}")
    rank, code = label[:-1].upper(), label[-1].lower()
    if rank == "T":
        rank = "10"
    suit = _SUIT_BY_CODE.get(code)
    if suit is None:
        raise ValueError(f"Invalid suit: {code}")
    return Card(rank, suit)


def parse_cards(labels: Sequence[str]) -> List[Card]:
    return [parse_label(label) for label in labels]

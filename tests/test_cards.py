import random
from collections import Counter

import pytest

from patti.cards import Card, build_deck, deal, deal_hands, parse_cards, parse_label, shuffle
from patti.errors import InsufficientCards


def test_build_deck_has_52_unique_cards():
    deck = build_deck()
    assert len(deck) == 52
    assert len(set(deck)) == 52
    assert {card.value for card in deck} == set(range(2, 15))
    assert Counter(card.suit for card in deck) == {"hearts": 13, "diamonds": 13, "clubs": 13, "spades": 13}


def test_ace_is_high():
    assert Card("A", "spades").value == 14
    assert Card("2", "hearts").value == 2
    assert Card("10", "clubs").label == "10c"
    assert Card("Q", "hearts").display == "Q♥"
    assert Card("Q", "hearts").is_red and not Card("Q", "spades").is_red


def test_shuffle_is_a_permutation_and_leaves_input_alone():
    deck = build_deck()
    original = list(deck)
    shuffled = shuffle(deck, random.Random(7))
    assert deck == original
    assert shuffled is not deck
    assert Counter(shuffled) == Counter(deck)


def test_seeded_shuffle_is_reproducible():
    assert shuffle(build_deck(), random.Random(99)) == shuffle(build_deck(), random.Random(99))
    assert shuffle(build_deck(), random.Random(99)) != shuffle(build_deck(), random.Random(100))


def test_shuffle_has_no_positional_bias():
    deck = build_deck()
    rng = random.Random(2024)
    trials = 10_400
    counts = Counter(shuffle(deck, rng)[0] for _ in range(trials))
    expected = trials / len(deck)
    chi_square = sum((counts.get(card, 0) - expected) ** 2 / expected for card in deck)
    # 51 degrees of freedom; 100 sits well past the 0.1% critical value.
    assert chi_square < 100


def test_deal_splits_without_mutating():
    deck = build_deck()
    dealt, remaining = deal(deck, 3)
    assert dealt == deck[:3]
    assert remaining == deck[3:]
    assert len(deck) == 52


def test_deal_hands_goes_seat_by_seat():
    deck = build_deck()
    hands, remaining = deal_hands(deck, 4)
    assert hands[0] == deck[0:3]
    assert hands[3] == deck[9:12]
    assert len(remaining) == 40


def test_deal_rejects_overdraw():
    dealt, remaining = deal(build_deck(), 51)
    with pytest.raises(InsufficientCards, match="Not enough cards"):
        deal(remaining, 3)
    with pytest.raises(InsufficientCards):
        deal_hands(build_deck(), 18)


def test_parse_label_accepts_ten_shorthand():
    assert parse_label("Th") == Card("10", "hearts")
    assert parse_label("10h") == Card("10", "hearts")
    assert parse_cards(["As", "kd"]) == [Card("A", "spades"), Card("K", "diamonds")]


def test_card_validation_rejects_invalid_labels():
    with pytest.raises(ValueError, match="Invalid rank"):
        parse_label("1h")
    with pytest.raises(ValueError, match="Invalid suit"):
        parse_label("Ax")
    with pytest.raises(ValueError, match="Invalid card label"):
        parse_label("Ahhh")
    with pytest.raises(ValueError, match="Invalid suit"):
        Card("A", "stars")

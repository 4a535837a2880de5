"""Deck creation, shuffling and dealing for Hukum."""

from __future__ import annotations

from random import Random
from typing import Callable, List, Optional, Sequence, Tuple

from .cards import Card, Rank, Suit

DECK_SIZE = 32
HALF_HAND = 4

# Toss points share the rank scale: A=8 down to 7=1.
TOSS_POINTS: dict[Rank, int] = {
    Rank.ACE: 8,
    Rank.KING: 7,
    Rank.QUEEN: 6,
    Rank.JACK: 5,
    Rank.TEN: 4,
    Rank.NINE: 3,
    Rank.EIGHT: 2,
    Rank.SEVEN: 1,
}

_LCG_MULTIPLIER = 1103515245
_LCG_INCREMENT = 12345
_LCG_MASK = 0x7FFFFFFF


def build_deck() -> List[Card]:
    """Return the ordered 32-card deck, suits outer and ranks inner."""
    return [Card(suit, rank) for suit in Suit for rank in Rank]


def seeded_random(seed: int) -> Callable[[], float]:
    """Linear-congruential generator yielding floats in [0, 1]."""
    state = seed & _LCG_MASK

    def draw() -> float:
        nonlocal state
        state = (state * _LCG_MULTIPLIER + _LCG_INCREMENT) & _LCG_MASK
        return state / _LCG_MASK

    return draw


def shuffle(
    deck: Sequence[Card],
    seed: Optional[int] = None,
    *,
    rng: Optional[Random] = None,
) -> List[Card]:
    """Return a Fisher-Yates permutation of ``deck``.

    A ``seed`` gives the same permutation every time. Without one the
    shuffle draws from ``rng`` (or a fresh ``Random``).
    """
    cards = list(deck)
    if seed is not None:
        draw = seeded_random(seed)
    else:
        draw = (rng or Random()).random

    for i in range(len(cards) - 1, 0, -1):
        # The LCG can return exactly 1.0.
        j = min(int(draw() * (i + 1)), i)
        cards[i], cards[j] = cards[j], cards[i]
    return cards


def deal(
    deck: Sequence[Card],
    num_players: int = 4,
    per_player: int = HALF_HAND,
) -> Tuple[List[List[Card]], List[Card]]:
    """Deal round-robin, one card per player per round, preserving deck order."""
    hands: List[List[Card]] = [[] for _ in range(num_players)]
    index = 0
    for _ in range(per_player):
        for player in range(num_players):
            if index < len(deck):
                hands[player].append(deck[index])
                index += 1
    return hands, list(deck[index:])


def draw_toss(num_players: int = 4, *, rng: Optional[Random] = None) -> List[Card]:
    """Draw one card per player from a freshly shuffled deck."""
    return shuffle(build_deck(), rng=rng)[:num_players]


def toss_points(toss_cards: Sequence[Card]) -> Tuple[int, int]:
    """Return ``(team_a_total, team_b_total)``; even toss indexes belong to team A."""
    team_a = 0
    team_b = 0
    for index, card in enumerate(toss_cards):
        if index % 2 == 0:
            team_a += TOSS_POINTS[card.rank]
        else:
            team_b += TOSS_POINTS[card.rank]
    return team_a, team_b

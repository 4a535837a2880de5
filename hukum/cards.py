"""Card-related data structures and helpers for Hukum."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple, Union


class Suit(Enum):
    SPADE = "SPADE"
    HEART = "HEART"
    DIAMOND = "DIAMOND"
    CLUB = "CLUB"

    def __str__(self) -> str:
        return self.value


class Rank(Enum):
    ACE = "A"
    KING = "K"
    QUEEN = "Q"
    JACK = "J"
    TEN = "10"
    NINE = "9"
    EIGHT = "8"
    SEVEN = "7"

    def __str__(self) -> str:
        return self.value


# Rank order from lowest to highest for trick resolution.
RANK_ORDER: list[Rank] = [
    Rank.SEVEN,
    Rank.EIGHT,
    Rank.NINE,
    Rank.TEN,
    Rank.JACK,
    Rank.QUEEN,
    Rank.KING,
    Rank.ACE,
]

RANK_VALUES: dict[Rank, int] = {rank: index + 1 for index, rank in enumerate(RANK_ORDER)}

SUIT_SYMBOLS: dict[Suit, str] = {
    Suit.SPADE: "♠",
    Suit.HEART: "♥",
    Suit.DIAMOND: "♦",
    Suit.CLUB: "♣",
}

NOT_IN_HAND = "You do not have this card"


@dataclass(frozen=True)
class Card:
    """Immutable representation of a playing card."""

    suit: Suit
    rank: Rank

    @property
    def id(self) -> str:
        return f"{self.suit.value}_{self.rank.value}"

    def __str__(self) -> str:
        return self.id


PlayedCard = Tuple[str, Card]


def rank_value(card: Card) -> int:
    """Return the 1..8 strength of the card's rank (7 lowest, A highest)."""
    return RANK_VALUES[card.rank]


def compare_cards(first: Card, second: Card) -> int:
    """Positive if ``first`` outranks ``second``, negative if lower, zero for equal rank.

    Only meaningful for cards of the same suit.
    """
    return rank_value(first) - rank_value(second)


def determine_winner(played: Sequence[PlayedCard], trump: Optional[Suit]) -> Optional[str]:
    """Return the player id that wins ``played``, or None for an empty trick.

    The highest trump wins if any trump was played, otherwise the highest
    card of the suit that was led.
    """
    if not played:
        return None
    lead_suit = played[0][1].suit

    candidates = [play for play in played if trump is not None and play[1].suit is trump]
    if not candidates:
        candidates = [play for play in played if play[1].suit is lead_suit]

    winner_id, winning_card = candidates[0]
    for player_id, card in candidates[1:]:
        if compare_cards(card, winning_card) > 0:
            winner_id, winning_card = player_id, card
    return winner_id


def follow_suit_message(suit: Suit) -> str:
    return f"You must follow suit ({suit.value})"


def validate_play(card: Card, hand: Iterable[Card], lead_suit: Optional[Suit]) -> Union[bool, str]:
    """Return True if ``card`` may be played, otherwise the rejection reason."""
    cards = list(hand)
    if card not in cards:
        return NOT_IN_HAND
    if lead_suit is None:
        return True
    holds_lead = any(held.suit is lead_suit for held in cards)
    if holds_lead and card.suit is not lead_suit:
        return follow_suit_message(lead_suit)
    return True


def parse_suit(name: str) -> Suit:
    try:
        return Suit[name.strip().upper()]
    except KeyError as exc:
        raise ValueError(f"Unknown suit: {name!r}") from exc


def parse_card_id(card_id: str) -> Card:
    """Inverse of ``Card.id``; raises ValueError on malformed ids."""
    suit_name, sep, rank_name = card_id.partition("_")
    if not sep:
        raise ValueError(f"Malformed card id: {card_id!r}")
    suit = parse_suit(suit_name)
    try:
        rank = Rank(rank_name.upper())
    except ValueError as exc:
        raise ValueError(f"Unknown rank in card id: {card_id!r}") from exc
    return Card(suit, rank)


def serialize_card(card: Card) -> dict[str, str]:
    return {"suit": card.suit.value, "rank": card.rank.value, "id": card.id}


def card_label(card: Card) -> str:
    return f"{card.rank.value}{SUIT_SYMBOLS[card.suit]}"

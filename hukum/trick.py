"""Trick representation, resolution and turn order."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .cards import Card, PlayedCard, Suit, determine_winner

NUM_SEATS = 4
NORMAL_TRICK_SIZE = 4
VAKKAI_TRICK_SIZE = 3


class TrickError(RuntimeError):
    """Raised when trick play breaks ordering constraints."""


@dataclass
class Trick:
    cards: List[PlayedCard] = field(default_factory=list)
    lead_suit: Optional[Suit] = None
    winner_id: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.cards

    def add_card(self, player_id: str, card: Card) -> None:
        if self.winner_id is not None:
            raise TrickError("Trick already resolved.")
        if any(player_id == played_by for played_by, _ in self.cards):
            raise TrickError("Player already played to this trick.")
        if not self.cards:
            self.lead_suit = card.suit
        self.cards.append((player_id, card))

    def is_complete(self, vakkai_active: bool = False) -> bool:
        required = VAKKAI_TRICK_SIZE if vakkai_active else NORMAL_TRICK_SIZE
        return len(self.cards) >= required

    def resolve_winner(self, trump: Optional[Suit]) -> str:
        if not self.cards:
            raise TrickError("Cannot determine winner on empty trick.")
        winner = determine_winner(self.cards, trump)
        assert winner is not None
        self.winner_id = winner
        return winner


def partner_seat(seat: int) -> int:
    return (seat + 2) % NUM_SEATS


def next_seat(current_seat: int, vakkai_active: bool = False, declarer_seat: Optional[int] = None) -> int:
    """Seat that plays after ``current_seat``; Vakkai skips the declarer's partner."""
    seat = (current_seat + 1) % NUM_SEATS
    if vakkai_active:
        if declarer_seat is None:
            raise TrickError("Vakkai turn order needs the declarer seat.")
        if seat == partner_seat(declarer_seat):
            seat = (seat + 1) % NUM_SEATS
    return seat


def turn_order(leader_seat: int, vakkai_active: bool = False, declarer_seat: Optional[int] = None) -> List[int]:
    """Seats in playing order for one trick.

    In Vakkai the declarer always leads and the partner is left out.
    """
    if not vakkai_active:
        return [(leader_seat + offset) % NUM_SEATS for offset in range(NUM_SEATS)]
    if declarer_seat is None:
        raise TrickError("Vakkai turn order needs the declarer seat.")
    skipped = partner_seat(declarer_seat)
    order = [declarer_seat]
    for offset in range(1, NUM_SEATS):
        seat = (declarer_seat + offset) % NUM_SEATS
        if seat != skipped:
            order.append(seat)
    return order

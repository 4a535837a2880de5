"""Game state aggregates and the views handed to the transport layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .cards import Card, Suit, serialize_card
from .phases import Phase
from .scoring import HandResult, Score, Team
from .trick import Trick


@dataclass
class Player:
    id: str
    name: str
    seat: int
    team: Team
    hand: List[Card] = field(default_factory=list)
    is_ready: bool = False
    is_connected: bool = True
    wants_switch: bool = False


@dataclass
class VakkaiState:
    active: bool = False
    declarer_id: Optional[str] = None
    consecutive_wins: int = 0


def empty_trick_counts() -> Dict[Team, int]:
    return {Team.A: 0, Team.B: 0}


@dataclass
class GameState:
    phase: Phase = Phase.WAITING_FOR_PLAYERS
    dealer_id: Optional[str] = None
    trump_chooser_id: Optional[str] = None
    current_turn_id: Optional[str] = None
    trump_suit: Optional[Suit] = None
    vakkai: VakkaiState = field(default_factory=VakkaiState)
    current_trick: Trick = field(default_factory=Trick)
    trick_counts: Dict[Team, int] = field(default_factory=empty_trick_counts)
    score: Score = field(default_factory=Score)
    toss_cards: Dict[str, Card] = field(default_factory=dict)
    dealer_team: Optional[Team] = None
    trump_team: Optional[Team] = None
    vakkai_decision_index: int = 0
    last_trick: Optional[Trick] = None
    last_hand_result: Optional[HandResult] = None


@dataclass(frozen=True)
class PlayResult:
    success: bool
    error: Optional[str] = None
    card: Optional[Card] = None
    trick_winner_id: Optional[str] = None
    hand_result: Optional[HandResult] = None


@dataclass(frozen=True)
class TossResult:
    dealer_team: Team
    trump_team: Team
    cards: Dict[str, Card]


@dataclass(frozen=True)
class SwitchResult:
    accepted: bool
    wants_switch: bool = False
    swapped_with: Optional[str] = None


# Views -----------------------------------------------------------------


@dataclass
class TrickCardView:
    player_id: str
    card: dict


@dataclass
class TrickView:
    cards: List[TrickCardView]
    lead_suit: Optional[str]
    winner_id: Optional[str]


@dataclass
class VakkaiView:
    active: bool
    declarer_id: Optional[str]
    consecutive_wins: int


@dataclass
class PublicPlayerView:
    id: str
    name: str
    seat: int
    team: str
    card_count: int
    is_ready: bool
    is_connected: bool
    wants_switch: bool


@dataclass
class PublicGameState:
    phase: str
    dealer_id: Optional[str]
    trump_chooser_id: Optional[str]
    current_turn_id: Optional[str]
    trump_suit: Optional[str]
    vakkai: VakkaiView
    current_trick: TrickView
    trick_counts: Dict[str, int]
    score: Dict[str, int]
    players: List[PublicPlayerView]
    dealer_team: Optional[str]
    trump_team: Optional[str]


@dataclass
class PrivateGameState:
    state: PublicGameState
    hand: List[dict]


def trick_view(trick: Trick) -> TrickView:
    return TrickView(
        cards=[TrickCardView(player_id=pid, card=serialize_card(card)) for pid, card in trick.cards],
        lead_suit=trick.lead_suit.value if trick.lead_suit else None,
        winner_id=trick.winner_id,
    )


def public_player_view(player: Player) -> PublicPlayerView:
    return PublicPlayerView(
        id=player.id,
        name=player.name,
        seat=player.seat,
        team=player.team.value,
        card_count=len(player.hand),
        is_ready=player.is_ready,
        is_connected=player.is_connected,
        wants_switch=player.wants_switch,
    )


def build_public_state(state: GameState, players: List[Player]) -> PublicGameState:
    """Project the full state into a broadcastable one that never includes hands."""
    return PublicGameState(
        phase=state.phase.value,
        dealer_id=state.dealer_id,
        trump_chooser_id=state.trump_chooser_id,
        current_turn_id=state.current_turn_id,
        trump_suit=state.trump_suit.value if state.trump_suit else None,
        vakkai=VakkaiView(
            active=state.vakkai.active,
            declarer_id=state.vakkai.declarer_id,
            consecutive_wins=state.vakkai.consecutive_wins,
        ),
        current_trick=trick_view(state.current_trick),
        trick_counts={team.value: count for team, count in state.trick_counts.items()},
        score=state.score.as_dict(),
        players=[public_player_view(player) for player in sorted(players, key=lambda p: p.seat)],
        dealer_team=state.dealer_team.value if state.dealer_team else None,
        trump_team=state.trump_team.value if state.trump_team else None,
    )

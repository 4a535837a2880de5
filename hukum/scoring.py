"""Hand and match scoring helpers for Hukum."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Mapping, Optional


class Team(Enum):
    A = "A"
    B = "B"

    def __str__(self) -> str:
        return self.value


VAKKAI_SUCCESS_POINTS = 8
VAKKAI_FAILURE_POINTS = 16
TRUMP_TEAM_WIN_POINTS = 5
DEALER_TEAM_WIN_POINTS = 10
TRUMP_TEAM_TARGET = 5
DEALER_TEAM_TARGET = 4
VAKKAI_TARGET = 4
MATCH_END_THRESHOLD = 16


class ScoringError(ValueError):
    """Raised when a score update is malformed."""


@dataclass(frozen=True)
class Score:
    a: int = 0
    b: int = 0

    def __getitem__(self, team: Team) -> int:
        return self.a if team is Team.A else self.b

    def as_dict(self) -> dict[str, int]:
        return {"A": self.a, "B": self.b}


@dataclass(frozen=True)
class HandResult:
    team: Team
    points: int
    reason: str


@dataclass(frozen=True)
class VakkaiResult:
    winner_team: Team
    points: int
    success: bool


def create_score() -> Score:
    return Score()


def get_opposite_team(team: Team) -> Team:
    return Team.B if team is Team.A else Team.A


def team_for_seat(seat: int) -> Team:
    return Team.A if seat % 2 == 0 else Team.B


def apply_score(score: Score, winning_team: Team, points: int) -> Score:
    """Zero-sum update: the winner gains ``points`` and the other team loses them."""
    if points < 0:
        raise ScoringError("Points awarded must be non-negative.")
    if winning_team is Team.A:
        return replace(score, a=score.a + points, b=score.b - points)
    return replace(score, a=score.a - points, b=score.b + points)


def check_hand_winner(
    trick_counts: Mapping[Team, int],
    trump_team: Team,
    dealer_team: Team,
) -> Optional[HandResult]:
    """Return the hand result once either team reaches its trick target.

    The trump team's condition is checked first.
    """
    if trick_counts.get(trump_team, 0) >= TRUMP_TEAM_TARGET:
        return HandResult(
            team=trump_team,
            points=TRUMP_TEAM_WIN_POINTS,
            reason=f"Trump team won {TRUMP_TEAM_TARGET} tricks",
        )
    if trick_counts.get(dealer_team, 0) >= DEALER_TEAM_TARGET:
        return HandResult(
            team=dealer_team,
            points=DEALER_TEAM_WIN_POINTS,
            reason=f"Dealer team won {DEALER_TEAM_TARGET} tricks",
        )
    return None


def calculate_vakkai_result(consecutive_wins: int, declarer_team: Team) -> VakkaiResult:
    if consecutive_wins >= VAKKAI_TARGET:
        return VakkaiResult(winner_team=declarer_team, points=VAKKAI_SUCCESS_POINTS, success=True)
    return VakkaiResult(
        winner_team=get_opposite_team(declarer_team),
        points=VAKKAI_FAILURE_POINTS,
        success=False,
    )


def is_match_end(score: Score) -> bool:
    return abs(score.a) >= MATCH_END_THRESHOLD or abs(score.b) >= MATCH_END_THRESHOLD


def match_winner(score: Score) -> Optional[Team]:
    if score.a >= MATCH_END_THRESHOLD:
        return Team.A
    if score.b >= MATCH_END_THRESHOLD:
        return Team.B
    if score.a <= -MATCH_END_THRESHOLD:
        return Team.B
    if score.b <= -MATCH_END_THRESHOLD:
        return Team.A
    return None


def get_dealer_choosing_team(score: Score) -> Team:
    """The team holding the negative score picks the next dealer; A at 0-0."""
    if score.a < 0:
        return Team.A
    if score.b < 0:
        return Team.B
    return Team.A

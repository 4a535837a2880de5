"""Game phase state machine."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet, List

logger = logging.getLogger(__name__)


class Phase(Enum):
    WAITING_FOR_PLAYERS = "WAITING_FOR_PLAYERS"
    READY_CHECK = "READY_CHECK"
    INITIAL_TOSS = "INITIAL_TOSS"
    DEALING_FIRST = "DEALING_FIRST"
    VAKKAI_DECISION = "VAKKAI_DECISION"
    HUKUM_SELECTION = "HUKUM_SELECTION"
    DEALING_SECOND = "DEALING_SECOND"
    TRICK_PLAY = "TRICK_PLAY"
    VAKKAI_PLAY = "VAKKAI_PLAY"
    HAND_END = "HAND_END"
    DEALER_SELECTION = "DEALER_SELECTION"
    MATCH_END = "MATCH_END"

    def __str__(self) -> str:
        return self.value


VALID_TRANSITIONS: Dict[Phase, FrozenSet[Phase]] = {
    Phase.WAITING_FOR_PLAYERS: frozenset({Phase.READY_CHECK}),
    Phase.READY_CHECK: frozenset({Phase.INITIAL_TOSS, Phase.WAITING_FOR_PLAYERS}),
    Phase.INITIAL_TOSS: frozenset({Phase.DEALING_FIRST}),
    Phase.DEALING_FIRST: frozenset({Phase.VAKKAI_DECISION}),
    Phase.VAKKAI_DECISION: frozenset({Phase.HUKUM_SELECTION, Phase.VAKKAI_PLAY}),
    Phase.HUKUM_SELECTION: frozenset({Phase.DEALING_SECOND}),
    Phase.DEALING_SECOND: frozenset({Phase.TRICK_PLAY}),
    Phase.TRICK_PLAY: frozenset({Phase.TRICK_PLAY, Phase.HAND_END, Phase.MATCH_END}),
    Phase.VAKKAI_PLAY: frozenset({Phase.VAKKAI_PLAY, Phase.HAND_END, Phase.MATCH_END}),
    Phase.HAND_END: frozenset({Phase.DEALER_SELECTION, Phase.MATCH_END}),
    Phase.DEALER_SELECTION: frozenset({Phase.DEALING_FIRST}),
    Phase.MATCH_END: frozenset(),
}

PLAYING_PHASES = frozenset({Phase.TRICK_PLAY, Phase.VAKKAI_PLAY})


class InvalidTransition(RuntimeError):
    """Raised when the engine requests a phase change the table does not allow.

    This is an engine bug, never a user error.
    """


class PhaseMachine:
    def __init__(self, initial: Phase = Phase.WAITING_FOR_PLAYERS) -> None:
        self._phase = initial
        self._history: List[Phase] = [initial]

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def history(self) -> List[Phase]:
        return list(self._history)

    def can_transition_to(self, target: Phase) -> bool:
        return target in VALID_TRANSITIONS[self._phase]

    def transition_to(self, target: Phase) -> None:
        if not self.can_transition_to(target):
            allowed = ", ".join(sorted(p.value for p in VALID_TRANSITIONS[self._phase])) or "none"
            raise InvalidTransition(
                f"Invalid transition: {self._phase.value} -> {target.value}. Valid transitions: {allowed}"
            )
        logger.debug("Phase %s -> %s", self._phase.value, target.value)
        self._phase = target
        self._history.append(target)

    def force_phase(self, target: Phase) -> None:
        """Jump to ``target`` without consulting the transition table.

        Only the engine's own reset logic uses this.
        """
        logger.debug("Phase forced %s -> %s", self._phase.value, target.value)
        self._phase = target
        self._history.append(target)

    def is_terminal(self) -> bool:
        return self._phase is Phase.MATCH_END

    def is_playing(self) -> bool:
        return self._phase in PLAYING_PHASES

    def reset(self) -> None:
        self._phase = Phase.WAITING_FOR_PLAYERS
        self._history = [Phase.WAITING_FOR_PLAYERS]

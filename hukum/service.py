"""Room bookkeeping around game engines for transport layers."""

from __future__ import annotations

import logging
import string
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from random import Random
from typing import Dict, List, Optional, Tuple

from .cards import parse_suit
from .config import ServiceSettings
from .game import GameEngine
from .phases import Phase
from .state import Player, PlayResult, PrivateGameState, PublicGameState, SwitchResult, TossResult

logger = logging.getLogger(__name__)


class RoomError(LookupError):
    """Base class for room lookup failures."""


class RoomNotFound(RoomError):
    """Raised when no room exists for the given code."""


class RoomFull(RoomError):
    """Raised when a room cannot seat another player."""


class UnknownPlayer(RoomError):
    """Raised when the player id is not seated in the room."""


class MatchInProgress(RoomError):
    """Raised when a room has a free seat but is past its lobby."""


@dataclass
class Room:
    code: str
    engine: GameEngine
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class RoomService:
    """Owns every room's engine; one caller at a time per room."""

    def __init__(self, settings: Optional[ServiceSettings] = None, rng: Optional[Random] = None) -> None:
        self.settings = settings or ServiceSettings()
        self.rng = rng or Random()
        self.rooms: Dict[str, Room] = {}
        self.rooms_created = 0

    # Room lifecycle ----------------------------------------------------

    def create_room(self, player_name: str) -> Tuple[Room, Player]:
        code = self._new_code()
        engine = GameEngine(seed=self._room_seed())
        self.rooms_created += 1
        room = Room(code=code, engine=engine)
        self.rooms[code] = room
        logger.info("Room %s created", code)
        return room, self._seat(room, player_name)

    def join_room(self, code: str, player_name: str) -> Tuple[Room, Player]:
        room = self.get_room(code)
        player = self._seat(room, player_name)
        if len(room.engine.players) == 4:
            room.engine.start_ready_check()
        return room, player

    def leave_room(self, code: str, player_id: str) -> bool:
        """Remove the player if the engine allows it, otherwise mark them disconnected."""
        room = self.get_room(code)
        self._require_player(room, player_id)
        removed = room.engine.remove_player(player_id)
        if not removed:
            room.engine.set_connected(player_id, False)
        if all(not p.is_connected for p in room.engine.get_all_players()):
            del self.rooms[room.code]
            logger.info("Room %s closed", room.code)
        return removed

    def get_room(self, code: str) -> Room:
        room = self.rooms.get(code.upper())
        if room is None:
            raise RoomNotFound(f"Room {code} not found")
        return room

    def room_codes(self) -> List[str]:
        return list(self.rooms)

    # Actions -----------------------------------------------------------

    def ready(self, code: str, player_id: str) -> Tuple[bool, Optional[TossResult]]:
        """Mark the player ready; the last ready player triggers the toss and first deal."""
        engine = self._engine_for(code, player_id)
        if not engine.set_ready(player_id, True):
            return False, None
        if not engine.all_ready() or engine.get_phase() is not Phase.READY_CHECK:
            return True, None
        toss = engine.perform_initial_toss()
        engine.deal_first_half()
        return True, toss

    def toggle_switch(self, code: str, player_id: str) -> SwitchResult:
        return self._engine_for(code, player_id).toggle_switch_request(player_id)

    def pass_vakkai(self, code: str, player_id: str) -> bool:
        return self._engine_for(code, player_id).pass_vakkai(player_id)

    def declare_vakkai(self, code: str, player_id: str) -> bool:
        return self._engine_for(code, player_id).declare_vakkai(player_id)

    def choose_hukum(self, code: str, player_id: str, suit_name: str) -> bool:
        suit = parse_suit(suit_name)
        return self._engine_for(code, player_id).choose_hukum(player_id, suit)

    def play_card(self, code: str, player_id: str, card_id: str) -> PlayResult:
        return self._engine_for(code, player_id).play_card(player_id, card_id)

    def select_dealer(self, code: str, player_id: str, dealer_id: str) -> bool:
        engine = self._engine_for(code, player_id)
        requester = engine.players[player_id]
        if requester.team is not engine.state.dealer_team:
            return False
        return engine.select_dealer(dealer_id)

    # Delayed callbacks -------------------------------------------------

    def after_hand_end(self, code: str) -> bool:
        """Move a finished hand on to dealer selection; no-op if the phase has moved on."""
        room = self.rooms.get(code)
        if room is None or room.engine.get_phase() is not Phase.HAND_END:
            return False
        room.engine.transition_to_dealer_selection()
        if self.settings.auto_select_dealer and not room.engine.auto_select_dealer():
            logger.error("Room %s: automatic dealer selection failed", code)
            return False
        logger.info("Room %s advanced past hand end", code)
        return True

    def restart_match(self, code: str) -> bool:
        room = self.rooms.get(code)
        if room is None:
            return False
        restarted = room.engine.reset_match()
        if restarted:
            logger.info("Room %s match restarted", code)
        return restarted

    # Views -------------------------------------------------------------

    def public_snapshot(self, code: str) -> PublicGameState:
        return self.get_room(code).engine.get_public_state()

    def snapshot(self, code: str, player_id: str) -> PrivateGameState:
        return self._engine_for(code, player_id).get_private_state(player_id)

    # Helpers -----------------------------------------------------------

    def _seat(self, room: Room, player_name: str) -> Player:
        if len(room.engine.players) >= 4:
            raise RoomFull(f"Room {room.code} cannot seat another player")
        player = room.engine.add_player(uuid.uuid4().hex, player_name)
        if player is None:
            raise MatchInProgress(f"Room {room.code} is mid-match ({room.engine.get_phase().value})")
        return player

    def _room_seed(self) -> Optional[int]:
        if self.settings.seed is None:
            return None
        return self.settings.seed + self.rooms_created

    def _engine_for(self, code: str, player_id: str) -> GameEngine:
        room = self.get_room(code)
        self._require_player(room, player_id)
        return room.engine

    def _require_player(self, room: Room, player_id: str) -> None:
        if room.engine.get_player(player_id) is None:
            raise UnknownPlayer(f"Player {player_id} is not in room {room.code}")

    def _new_code(self) -> str:
        while True:
            code = "".join(self.rng.choice(string.ascii_uppercase) for _ in range(self.settings.room_code_length))
            if code not in self.rooms:
                return code

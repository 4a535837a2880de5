"""REST service that hosts Hukum rooms."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import Callable, Dict, Optional, TypeVar

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from hukum.cards import serialize_card
from hukum.config import settings_from_env
from hukum.phases import Phase
from hukum.service import MatchInProgress, RoomFull, RoomNotFound, RoomService, UnknownPlayer
from hukum.state import PlayResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CreateRoomRequest(BaseModel):
    player_name: str


class JoinRoomRequest(BaseModel):
    player_name: str


class HukumRequest(BaseModel):
    suit: str


class PlayCardRequest(BaseModel):
    card_id: str


class SelectDealerRequest(BaseModel):
    dealer_id: str


service = RoomService(settings_from_env())

app = FastAPI(title="Hukum Room Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def guarded(action: Callable[..., T], *args) -> T:
    """Run a service call, translating room and parsing errors into HTTP errors."""
    try:
        return action(*args)
    except (RoomNotFound, UnknownPlayer) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except (RoomFull, MatchInProgress) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def require(accepted: bool, detail: str) -> None:
    if not accepted:
        raise HTTPException(status_code=400, detail=detail)


def player_state(code: str, player_id: str) -> Dict[str, object]:
    return asdict(guarded(service.snapshot, code, player_id))


def schedule_followups(code: str) -> None:
    """Queue the timer-driven advance for a room whose hand or match just ended."""
    room = service.get_room(code)
    phase = room.engine.get_phase()
    loop = asyncio.get_running_loop()
    if phase is Phase.HAND_END:
        loop.call_later(service.settings.hand_end_delay, service.after_hand_end, room.code)
    elif phase is Phase.MATCH_END:
        loop.call_later(service.settings.match_restart_delay, service.restart_match, room.code)
    else:
        return
    logger.info("Room %s: scheduled follow-up after %s", room.code, phase)


def describe_play(result: PlayResult) -> Dict[str, object]:
    hand_result = result.hand_result
    return {
        "card": serialize_card(result.card) if result.card else None,
        "trickWinnerId": result.trick_winner_id,
        "handResult": (
            {"team": hand_result.team.value, "points": hand_result.points, "reason": hand_result.reason}
            if hand_result
            else None
        ),
    }


@app.post("/rooms")
async def create_room(request: CreateRoomRequest) -> Dict[str, object]:
    room, player = guarded(service.create_room, request.player_name)
    return {
        "room_code": room.code,
        "player_id": player.id,
        "seat": player.seat,
        "state": player_state(room.code, player.id),
    }


@app.post("/rooms/{code}/join")
async def join_room(code: str, request: JoinRoomRequest) -> Dict[str, object]:
    room, player = guarded(service.join_room, code, request.player_name)
    return {
        "room_code": room.code,
        "player_id": player.id,
        "seat": player.seat,
        "state": player_state(room.code, player.id),
    }


@app.get("/rooms/{code}/state")
async def get_state(code: str, player_id: Optional[str] = None) -> Dict[str, object]:
    if player_id is None:
        return {"state": asdict(guarded(service.public_snapshot, code))}
    return player_state(code, player_id)


@app.delete("/rooms/{code}/players/{player_id}")
async def leave_room(code: str, player_id: str) -> Dict[str, object]:
    removed = guarded(service.leave_room, code, player_id)
    return {"removed": removed}


@app.post("/rooms/{code}/players/{player_id}/ready")
async def ready(code: str, player_id: str) -> Dict[str, object]:
    accepted, toss = guarded(service.ready, code, player_id)
    require(accepted, "Cannot ready up now")
    payload: Dict[str, object] = {"state": player_state(code, player_id), "toss": None}
    if toss is not None:
        payload["toss"] = {
            "dealerTeam": toss.dealer_team.value,
            "trumpTeam": toss.trump_team.value,
            "cards": {pid: serialize_card(card) for pid, card in toss.cards.items()},
        }
    return payload


@app.post("/rooms/{code}/players/{player_id}/switch")
async def toggle_switch(code: str, player_id: str) -> Dict[str, object]:
    result = guarded(service.toggle_switch, code, player_id)
    require(result.accepted, "Cannot toggle switch request now")
    return {
        "wantsSwitch": result.wants_switch,
        "swappedWith": result.swapped_with,
        "state": player_state(code, player_id),
    }


@app.post("/rooms/{code}/players/{player_id}/vakkai/pass")
async def pass_vakkai(code: str, player_id: str) -> Dict[str, object]:
    require(guarded(service.pass_vakkai, code, player_id), "Cannot pass Vakkai now")
    return player_state(code, player_id)


@app.post("/rooms/{code}/players/{player_id}/vakkai/declare")
async def declare_vakkai(code: str, player_id: str) -> Dict[str, object]:
    require(guarded(service.declare_vakkai, code, player_id), "Cannot declare Vakkai now")
    return player_state(code, player_id)


@app.post("/rooms/{code}/players/{player_id}/hukum")
async def choose_hukum(code: str, player_id: str, request: HukumRequest) -> Dict[str, object]:
    require(guarded(service.choose_hukum, code, player_id, request.suit), "Cannot choose Hukum now")
    return player_state(code, player_id)


@app.post("/rooms/{code}/players/{player_id}/play")
async def play_card(code: str, player_id: str, request: PlayCardRequest) -> Dict[str, object]:
    result = guarded(service.play_card, code, player_id, request.card_id)
    require(result.success, result.error or "Cannot play card")
    if result.hand_result is not None:
        schedule_followups(code)
    return {"play": describe_play(result), "state": player_state(code, player_id)}


@app.post("/rooms/{code}/players/{player_id}/dealer")
async def select_dealer(code: str, player_id: str, request: SelectDealerRequest) -> Dict[str, object]:
    require(guarded(service.select_dealer, code, player_id, request.dealer_id), "Cannot select that dealer")
    return player_state(code, player_id)

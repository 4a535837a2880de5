from random import Random

import pytest

from hukum.cards import parse_card_id
from hukum.config import ServiceSettings
from hukum.phases import Phase
from hukum.scoring import Score, Team
from hukum.service import MatchInProgress, RoomFull, RoomNotFound, RoomService, UnknownPlayer


def full_room(service: RoomService):
    room, host = service.create_room("Host")
    ids = [host.id]
    for name in ("Bea", "Cal", "Dee"):
        _, player = service.join_room(room.code, name)
        ids.append(player.id)
    return room, ids


def ready_all(service: RoomService, code: str, ids):
    toss = None
    for player_id in ids:
        accepted, toss = service.ready(code, player_id)
        assert accepted
    return toss


def finish_hand_with_dealer_sweep(service: RoomService, code: str) -> None:
    engine = service.get_room(code).engine
    for _ in range(4):
        service.pass_vakkai(code, engine.state.current_turn_id)
    assert service.choose_hukum(code, engine.state.trump_chooser_id, "spade")
    leader_seat = engine.get_player(engine.state.current_turn_id).seat
    hands = [
        ["HEART_A", "HEART_K", "HEART_Q", "HEART_J"],
        ["CLUB_7", "CLUB_8", "CLUB_9", "CLUB_10"],
        ["DIAMOND_A", "DIAMOND_K", "DIAMOND_Q", "DIAMOND_J"],
        ["CLUB_J", "CLUB_Q", "CLUB_K", "CLUB_A"],
    ]
    for offset, card_ids in enumerate(hands):
        engine.get_player_by_seat((leader_seat + offset) % 4).hand = [parse_card_id(c) for c in card_ids]
    for index in range(4):
        for card_ids in hands:
            result = service.play_card(code, engine.state.current_turn_id, card_ids[index])
            assert result.success, result.error


def test_create_and_fill_room_starts_ready_check():
    service = RoomService(rng=Random(5))
    room, ids = full_room(service)

    assert len(room.code) == 6
    assert room.code.isupper()
    assert len(set(ids)) == 4
    assert room.engine.get_phase() is Phase.READY_CHECK
    assert service.room_codes() == [room.code]

    with pytest.raises(RoomFull):
        service.join_room(room.code, "Eve")


def test_room_codes_are_unique_and_case_insensitive():
    service = RoomService(ServiceSettings(room_code_length=4), rng=Random(1))
    codes = {service.create_room(f"Host {i}")[0].code for i in range(20)}
    assert len(codes) == 20
    code = next(iter(codes))
    assert service.get_room(code.lower()).code == code


def test_unknown_room_and_player():
    service = RoomService()
    with pytest.raises(RoomNotFound):
        service.get_room("NOPE")
    room, _ = service.create_room("Host")
    with pytest.raises(UnknownPlayer):
        service.pass_vakkai(room.code, "stranger")


def test_last_ready_player_triggers_toss_and_deal():
    service = RoomService(ServiceSettings(seed=9))
    room, ids = full_room(service)

    toss = ready_all(service, room.code, ids)

    assert toss is not None
    assert set(toss.cards) == set(ids)
    assert room.engine.get_phase() is Phase.VAKKAI_DECISION
    snapshot = service.snapshot(room.code, ids[0])
    assert len(snapshot.hand) == 4
    assert snapshot.state.phase == "VAKKAI_DECISION"


def test_bad_suit_name_raises_value_error():
    service = RoomService()
    room, ids = full_room(service)
    ready_all(service, room.code, ids)
    with pytest.raises(ValueError):
        service.choose_hukum(room.code, ids[0], "stars")


def test_after_hand_end_auto_selects_dealer():
    service = RoomService(ServiceSettings(seed=4))
    room, ids = full_room(service)
    ready_all(service, room.code, ids)

    assert not service.after_hand_end(room.code)
    finish_hand_with_dealer_sweep(service, room.code)
    assert room.engine.get_phase() is Phase.HAND_END

    assert service.after_hand_end(room.code)
    assert room.engine.get_phase() is Phase.VAKKAI_DECISION
    assert not service.after_hand_end(room.code)


def test_manual_dealer_selection_when_auto_disabled():
    service = RoomService(ServiceSettings(seed=4, auto_select_dealer=False))
    room, ids = full_room(service)
    ready_all(service, room.code, ids)
    finish_hand_with_dealer_sweep(service, room.code)

    assert service.after_hand_end(room.code)
    engine = room.engine
    assert engine.get_phase() is Phase.DEALER_SELECTION

    choosers = [p for p in engine.get_all_players() if p.team is engine.state.dealer_team]
    others = [p for p in engine.get_all_players() if p.team is not engine.state.dealer_team]
    assert not service.select_dealer(room.code, others[0].id, choosers[0].id)
    assert service.select_dealer(room.code, choosers[0].id, choosers[1].id)
    assert engine.state.dealer_id == choosers[1].id


def test_restart_match_only_after_match_end():
    service = RoomService()
    room, ids = full_room(service)
    assert not service.restart_match(room.code)
    assert not service.restart_match("GONE")


def test_leaving_empties_and_closes_room():
    service = RoomService()
    room, host = service.create_room("Host")
    _, guest = service.join_room(room.code, "Guest")

    assert service.leave_room(room.code, guest.id)
    assert service.leave_room(room.code, host.id)
    assert service.room_codes() == []


def test_leaving_mid_match_marks_disconnected():
    service = RoomService()
    room, ids = full_room(service)
    ready_all(service, room.code, ids)

    assert not service.leave_room(room.code, ids[1])
    player = room.engine.get_player(ids[1])
    assert player is not None
    assert not player.is_connected


def test_room_closes_when_everyone_disconnects_mid_match():
    service = RoomService()
    room, ids = full_room(service)
    ready_all(service, room.code, ids)

    for player_id in ids[:3]:
        assert not service.leave_room(room.code, player_id)
    assert service.room_codes() == [room.code]

    assert not service.leave_room(room.code.lower(), ids[3])
    assert service.room_codes() == []
    with pytest.raises(RoomNotFound):
        service.get_room(room.code)


def end_match_with_dealer_sweep(service: RoomService, code: str) -> None:
    engine = service.get_room(code).engine
    # The sweep is worth 10 to the dealer team, enough to reach 16.
    if engine.state.dealer_team is Team.A:
        engine.state.score = Score(a=6, b=-6)
    else:
        engine.state.score = Score(a=-6, b=6)
    finish_hand_with_dealer_sweep(service, code)
    assert engine.get_phase() is Phase.MATCH_END


def test_joining_after_match_end_reports_match_in_progress():
    service = RoomService(ServiceSettings(seed=4))
    room, ids = full_room(service)
    ready_all(service, room.code, ids)
    end_match_with_dealer_sweep(service, room.code)

    assert service.leave_room(room.code, ids[3])
    with pytest.raises(MatchInProgress):
        service.join_room(room.code, "Eve")

    assert service.restart_match(room.code)
    assert room.engine.get_phase() is Phase.WAITING_FOR_PLAYERS
    _, newcomer = service.join_room(room.code, "Eve")
    assert newcomer.seat == 3
    assert room.engine.get_phase() is Phase.READY_CHECK


def test_seeded_rooms_get_distinct_reproducible_rngs():
    first_service = RoomService(ServiceSettings(seed=9), rng=Random(1))
    second_service = RoomService(ServiceSettings(seed=9), rng=Random(2))

    one, _ = first_service.create_room("Host")
    two, _ = first_service.create_room("Host")
    replay, _ = second_service.create_room("Host")

    draws = [room.engine.rng.random() for room in (one, two, replay)]
    assert draws[0] != draws[1]
    assert draws[0] == draws[2]

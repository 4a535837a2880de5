from hukum.cards import parse_card_id
from hukum.game import GameEngine
from hukum.phases import Phase
from hukum.scoring import Score, get_opposite_team


def declared_engine(seed: int = 11) -> GameEngine:
    engine = GameEngine(seed=seed)
    for index in range(4):
        engine.add_player(f"p{index}", f"Player {index}")
    engine.start_ready_check()
    for player in engine.get_all_players():
        engine.set_ready(player.id)
    engine.perform_initial_toss()
    engine.deal_first_half()
    assert engine.declare_vakkai(engine.state.current_turn_id)
    return engine


def give(engine: GameEngine, seat: int, card_ids) -> None:
    engine.get_player_by_seat(seat % 4).hand = [parse_card_id(card_id) for card_id in card_ids]


def test_declaring_skips_hukum_and_second_deal():
    engine = declared_engine()
    declarer = engine.state.current_turn_id

    assert engine.get_phase() is Phase.VAKKAI_PLAY
    assert engine.state.vakkai.active
    assert engine.state.vakkai.declarer_id == declarer
    assert engine.state.vakkai.consecutive_wins == 0
    assert engine.state.trump_suit is None
    assert all(len(p.hand) == 4 for p in engine.get_all_players())
    assert len(engine.remaining_deck) == 16


def test_vakkai_success_after_four_consecutive_tricks():
    engine = declared_engine()
    declarer = engine.get_player(engine.state.vakkai.declarer_id)
    seat = declarer.seat
    partner = engine.get_player_by_seat((seat + 2) % 4)
    give(engine, seat, ["HEART_A", "HEART_K", "HEART_Q", "HEART_J"])
    give(engine, seat + 1, ["CLUB_A", "CLUB_K", "CLUB_Q", "CLUB_J"])
    give(engine, seat + 2, ["HEART_10", "HEART_9", "HEART_8", "HEART_7"])
    give(engine, seat + 3, ["DIAMOND_A", "DIAMOND_K", "DIAMOND_Q", "DIAMOND_J"])

    last = None
    for lead, first, second in [
        ("HEART_A", "CLUB_A", "DIAMOND_A"),
        ("HEART_K", "CLUB_K", "DIAMOND_K"),
        ("HEART_Q", "CLUB_Q", "DIAMOND_Q"),
        ("HEART_J", "CLUB_J", "DIAMOND_J"),
    ]:
        assert engine.state.current_turn_id == declarer.id
        assert engine.play_card(declarer.id, lead).success
        assert engine.state.current_turn_id == engine.get_player_by_seat((seat + 1) % 4).id
        assert engine.play_card(engine.state.current_turn_id, first).success
        assert engine.state.current_turn_id == engine.get_player_by_seat((seat + 3) % 4).id
        assert engine.state.current_turn_id != partner.id
        last = engine.play_card(engine.state.current_turn_id, second)
        assert last.success

    assert last.hand_result.team is declarer.team
    assert last.hand_result.points == 8
    assert engine.state.vakkai.consecutive_wins == 4
    assert engine.state.score[declarer.team] == 8
    assert engine.get_phase() is Phase.HAND_END
    assert len(partner.hand) == 4


def test_vakkai_fails_on_first_lost_trick():
    engine = declared_engine()
    declarer = engine.get_player(engine.state.vakkai.declarer_id)
    seat = declarer.seat
    opponents = get_opposite_team(declarer.team)
    give(engine, seat, ["HEART_7", "HEART_K", "HEART_Q", "HEART_J"])
    give(engine, seat + 1, ["HEART_A", "CLUB_K", "CLUB_Q", "CLUB_J"])
    give(engine, seat + 3, ["DIAMOND_A", "DIAMOND_K", "DIAMOND_Q", "DIAMOND_J"])

    engine.play_card(declarer.id, "HEART_7")
    engine.play_card(engine.state.current_turn_id, "HEART_A")
    result = engine.play_card(engine.state.current_turn_id, "DIAMOND_A")

    assert result.trick_winner_id == engine.get_player_by_seat((seat + 1) % 4).id
    assert result.hand_result.team is opponents
    assert result.hand_result.points == 16
    assert engine.state.score[opponents] == 16
    assert engine.state.score[declarer.team] == -16
    # 16 is the match threshold, so a failed Vakkai from 0-0 ends the match.
    assert engine.get_phase() is Phase.MATCH_END
    assert len(declarer.hand) == 3


def test_vakkai_failure_mid_sequence_resets_nothing_else():
    engine = declared_engine()
    declarer = engine.get_player(engine.state.vakkai.declarer_id)
    seat = declarer.seat
    engine.state.score = Score(a=-10, b=10) if declarer.team.value == "B" else Score(a=10, b=-10)
    give(engine, seat, ["HEART_A", "SPADE_7", "HEART_Q", "HEART_J"])
    give(engine, seat + 1, ["CLUB_A", "SPADE_A", "CLUB_Q", "CLUB_J"])
    give(engine, seat + 3, ["DIAMOND_A", "DIAMOND_K", "DIAMOND_Q", "DIAMOND_J"])

    engine.play_card(declarer.id, "HEART_A")
    engine.play_card(engine.state.current_turn_id, "CLUB_A")
    first = engine.play_card(engine.state.current_turn_id, "DIAMOND_A")
    assert first.hand_result is None
    assert engine.state.vakkai.consecutive_wins == 1
    assert engine.state.current_turn_id == declarer.id

    engine.play_card(declarer.id, "SPADE_7")
    engine.play_card(engine.state.current_turn_id, "SPADE_A")
    second = engine.play_card(engine.state.current_turn_id, "DIAMOND_K")

    assert second.hand_result.points == 16
    assert engine.state.score[declarer.team] == -6
    assert engine.get_phase() is Phase.HAND_END
    assert engine.state.dealer_team is declarer.team

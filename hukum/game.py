"""High-level game orchestration for Hukum."""

from __future__ import annotations

import logging
from random import Random
from typing import Dict, List, Optional, Tuple

from .cards import NOT_IN_HAND, Card, Suit, serialize_card, validate_play
from .deck import HALF_HAND, build_deck, deal, draw_toss, shuffle, toss_points
from .phases import Phase, PhaseMachine
from .scoring import (
    HandResult,
    Team,
    apply_score,
    calculate_vakkai_result,
    check_hand_winner,
    get_dealer_choosing_team,
    get_opposite_team,
    is_match_end,
    match_winner,
    team_for_seat,
)
from .state import (
    GameState,
    Player,
    PlayResult,
    PrivateGameState,
    PublicGameState,
    SwitchResult,
    TossResult,
    VakkaiState,
    build_public_state,
    empty_trick_counts,
)
from .trick import NUM_SEATS, Trick, next_seat, turn_order

logger = logging.getLogger(__name__)

NOT_IN_PLAY = "Not in trick play phase"
NOT_YOUR_TURN = "Not your turn"

LOBBY_PHASES = (Phase.WAITING_FOR_PLAYERS, Phase.READY_CHECK)


class GameEngine:
    """Authoritative state machine for one room's match.

    All methods assume a single caller at a time. User actions that break
    a rule return a failure value; an illegal internal phase change raises
    ``InvalidTransition``.
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[Random] = None) -> None:
        self.rng = rng or Random(seed)
        self.machine = PhaseMachine()
        self.players: Dict[str, Player] = {}
        self.state = GameState()
        self.remaining_deck: List[Card] = []

    # Players -----------------------------------------------------------

    def add_player(self, player_id: str, name: str) -> Optional[Player]:
        if self.state.phase is not Phase.WAITING_FOR_PLAYERS:
            return None
        if len(self.players) >= NUM_SEATS or player_id in self.players:
            return None
        taken = {player.seat for player in self.players.values()}
        seat = next(s for s in range(NUM_SEATS) if s not in taken)
        player = Player(id=player_id, name=name, seat=seat, team=team_for_seat(seat))
        self.players[player_id] = player
        logger.info("Player %s (%s) joined seat %d, team %s", player_id, name, seat, player.team)
        return player

    def remove_player(self, player_id: str) -> bool:
        """Remove a player before the match starts or after it ends.

        Mid-match departures are tracked with ``set_connected`` instead.
        """
        if player_id not in self.players:
            return False
        if self.state.phase not in LOBBY_PHASES and self.state.phase is not Phase.MATCH_END:
            return False
        del self.players[player_id]
        if self.state.phase is Phase.READY_CHECK:
            self._move_to(Phase.WAITING_FOR_PLAYERS)
            for player in self.players.values():
                player.is_ready = False
        return True

    def set_connected(self, player_id: str, connected: bool) -> bool:
        player = self.players.get(player_id)
        if player is None:
            return False
        player.is_connected = connected
        return True

    def get_player(self, player_id: str) -> Optional[Player]:
        return self.players.get(player_id)

    def get_player_by_seat(self, seat: int) -> Optional[Player]:
        for player in self.players.values():
            if player.seat == seat:
                return player
        return None

    def get_all_players(self) -> List[Player]:
        return sorted(self.players.values(), key=lambda p: p.seat)

    def get_player_hand(self, player_id: str) -> List[Card]:
        player = self.players.get(player_id)
        return list(player.hand) if player else []

    def set_ready(self, player_id: str, ready: bool = True) -> bool:
        player = self.players.get(player_id)
        if player is None or self.state.phase not in LOBBY_PHASES:
            return False
        player.is_ready = ready
        return True

    def all_ready(self) -> bool:
        if len(self.players) != NUM_SEATS:
            return False
        return all(player.is_ready for player in self.players.values())

    def toggle_switch_request(self, player_id: str) -> SwitchResult:
        """Flip the player's switch request and swap seats with a willing opponent.

        Two players on opposite teams who both want to switch exchange seats
        (and therefore teams); their ready flags reset.
        """
        player = self.players.get(player_id)
        if player is None or self.state.phase not in LOBBY_PHASES:
            return SwitchResult(accepted=False)

        player.wants_switch = not player.wants_switch
        if not player.wants_switch:
            return SwitchResult(accepted=True, wants_switch=False)

        partner = next(
            (
                other
                for other in self.get_all_players()
                if other.wants_switch and other.team is not player.team
            ),
            None,
        )
        if partner is None:
            return SwitchResult(accepted=True, wants_switch=True)

        player.seat, partner.seat = partner.seat, player.seat
        for swapped in (player, partner):
            swapped.team = team_for_seat(swapped.seat)
            swapped.wants_switch = False
            swapped.is_ready = False
        logger.info("Players %s and %s swapped seats", player.id, partner.id)
        return SwitchResult(accepted=True, wants_switch=False, swapped_with=partner.id)

    # Match flow --------------------------------------------------------

    def start_ready_check(self) -> bool:
        if self.state.phase is not Phase.WAITING_FOR_PLAYERS or len(self.players) != NUM_SEATS:
            return False
        self._move_to(Phase.READY_CHECK)
        return True

    def perform_initial_toss(self) -> Optional[TossResult]:
        """Draw one card per seat; the team with the lower total deals, ties go to team A."""
        if self.state.phase is not Phase.READY_CHECK or not self.all_ready():
            return None
        self._move_to(Phase.INITIAL_TOSS)

        seated = self.get_all_players()
        drawn = draw_toss(len(seated), rng=self.rng)
        cards = {player.id: card for player, card in zip(seated, drawn)}
        team_a, team_b = toss_points(drawn)

        dealer_team = Team.A if team_a <= team_b else Team.B
        trump_team = get_opposite_team(dealer_team)
        self.state.toss_cards = cards
        self.state.dealer_team = dealer_team
        self.state.trump_team = trump_team

        dealer = next(player for player in seated if player.team is dealer_team)
        self._assign_dealer(dealer)
        logger.info(
            "Toss A=%d B=%d: dealer team %s, trump team %s, dealer %s",
            team_a,
            team_b,
            dealer_team,
            trump_team,
            dealer.id,
        )
        return TossResult(dealer_team=dealer_team, trump_team=trump_team, cards=dict(cards))

    def deal_first_half(self) -> bool:
        if self.state.phase is not Phase.INITIAL_TOSS:
            return False
        self._move_to(Phase.DEALING_FIRST)
        self._deal_first_half()
        return True

    def pass_vakkai(self, player_id: str) -> bool:
        if not self._is_turn(player_id, Phase.VAKKAI_DECISION):
            return False
        self.state.vakkai_decision_index += 1
        if self.state.vakkai_decision_index >= NUM_SEATS:
            self._move_to(Phase.HUKUM_SELECTION)
            self.state.current_turn_id = self.state.trump_chooser_id
        else:
            self._advance_clockwise(player_id)
        return True

    def declare_vakkai(self, player_id: str) -> bool:
        """Start Vakkai play with the four cards already dealt and no trump."""
        if not self._is_turn(player_id, Phase.VAKKAI_DECISION):
            return False
        self.state.vakkai = VakkaiState(active=True, declarer_id=player_id, consecutive_wins=0)
        self.state.trump_suit = None
        self._move_to(Phase.VAKKAI_PLAY)
        self.state.current_trick = Trick()
        self.state.current_turn_id = player_id
        logger.info("Player %s declared Vakkai", player_id)
        return True

    def choose_hukum(self, player_id: str, suit: Suit) -> bool:
        if self.state.phase is not Phase.HUKUM_SELECTION or self.state.trump_chooser_id != player_id:
            return False
        self.state.trump_suit = suit
        self._move_to(Phase.DEALING_SECOND)
        hands, _ = deal(self.remaining_deck, NUM_SEATS, HALF_HAND)
        for player, extra in zip(self.get_all_players(), hands):
            player.hand.extend(extra)
        self.remaining_deck = []

        self._move_to(Phase.TRICK_PLAY)
        self.state.current_trick = Trick()
        chooser = self.players[player_id]
        self.state.current_turn_id = self._seat_id(next_seat(chooser.seat))
        logger.info("Hukum %s chosen by %s", suit, player_id)
        return True

    def play_card(self, player_id: str, card_id: str) -> PlayResult:
        if self.state.phase not in (Phase.TRICK_PLAY, Phase.VAKKAI_PLAY):
            return self._reject(NOT_IN_PLAY)
        if self.state.current_turn_id != player_id:
            return self._reject(NOT_YOUR_TURN)

        player = self.players[player_id]
        card = next((held for held in player.hand if held.id == card_id), None)
        if card is None:
            return self._reject(NOT_IN_HAND)
        verdict = validate_play(card, player.hand, self.state.current_trick.lead_suit)
        if verdict is not True:
            return self._reject(str(verdict))

        player.hand.remove(card)
        self.state.current_trick.add_card(player_id, card)

        if not self.state.current_trick.is_complete(self.state.vakkai.active):
            self._advance_after_play(player)
            return PlayResult(success=True, card=card)

        winner_id, hand_result = self._resolve_trick()
        return PlayResult(success=True, card=card, trick_winner_id=winner_id, hand_result=hand_result)

    def legal_cards(self, player_id: str) -> List[Card]:
        player = self.players.get(player_id)
        if player is None or self.state.current_turn_id != player_id:
            return []
        if self.state.phase not in (Phase.TRICK_PLAY, Phase.VAKKAI_PLAY):
            return []
        lead = self.state.current_trick.lead_suit
        return [card for card in player.hand if validate_play(card, player.hand, lead) is True]

    def transition_to_dealer_selection(self) -> bool:
        if self.state.phase is not Phase.HAND_END:
            return False
        self._move_to(Phase.DEALER_SELECTION)
        return True

    def select_dealer(self, dealer_id: str) -> bool:
        """Seat the next dealer and deal the first half of the next hand."""
        if self.state.phase not in (Phase.HAND_END, Phase.DEALER_SELECTION):
            return False
        dealer = self.players.get(dealer_id)
        if dealer is None or dealer.team is not self.state.dealer_team:
            return False

        if self.state.phase is Phase.HAND_END:
            self._move_to(Phase.DEALER_SELECTION)
        self._assign_dealer(dealer)
        self._reset_for_new_hand()
        self._move_to(Phase.DEALING_FIRST)
        self._deal_first_half()
        return True

    def auto_select_dealer(self) -> bool:
        team = self.state.dealer_team
        candidate = next((p for p in self.get_all_players() if p.team is team), None)
        if candidate is None:
            return False
        return self.select_dealer(candidate.id)

    def reset_match(self) -> bool:
        """Start a fresh match with the same seats once the current one is over."""
        if self.state.phase is not Phase.MATCH_END:
            return False
        self.state = GameState()
        self.remaining_deck = []
        for player in self.players.values():
            player.hand = []
            player.is_ready = False
            player.wants_switch = False
        target = Phase.READY_CHECK if len(self.players) == NUM_SEATS else Phase.WAITING_FOR_PLAYERS
        self.machine.force_phase(target)
        self.state.phase = target
        logger.info("Match reset, phase %s", target)
        return True

    # Views -------------------------------------------------------------

    def get_phase(self) -> Phase:
        return self.state.phase

    def get_game_state(self) -> GameState:
        return self.state

    def get_public_state(self) -> PublicGameState:
        return build_public_state(self.state, list(self.players.values()))

    def get_private_state(self, player_id: str) -> PrivateGameState:
        return PrivateGameState(
            state=self.get_public_state(),
            hand=[serialize_card(card) for card in self.get_player_hand(player_id)],
        )

    def match_winner(self) -> Optional[Team]:
        return match_winner(self.state.score)

    # Helpers -----------------------------------------------------------

    def _move_to(self, phase: Phase) -> None:
        self.machine.transition_to(phase)
        self.state.phase = phase

    def _reject(self, reason: str) -> PlayResult:
        logger.debug("Play rejected: %s", reason)
        return PlayResult(success=False, error=reason)

    def _is_turn(self, player_id: str, phase: Phase) -> bool:
        return self.state.phase is phase and self.state.current_turn_id == player_id

    def _seat_id(self, seat: int) -> str:
        player = self.get_player_by_seat(seat)
        assert player is not None, f"seat {seat} is empty"
        return player.id

    def _assign_dealer(self, dealer: Player) -> None:
        self.state.dealer_id = dealer.id
        self.state.trump_chooser_id = self._seat_id(next_seat(dealer.seat))

    def _advance_clockwise(self, player_id: str) -> None:
        self.state.current_turn_id = self._seat_id(next_seat(self.players[player_id].seat))

    def _advance_after_play(self, player: Player) -> None:
        vakkai = self.state.vakkai
        if not vakkai.active:
            self._advance_clockwise(player.id)
            return
        declarer_seat = self.players[vakkai.declarer_id].seat
        order = turn_order(declarer_seat, True, declarer_seat)
        following = order[(order.index(player.seat) + 1) % len(order)]
        self.state.current_turn_id = self._seat_id(following)

    def _deal_first_half(self) -> None:
        deck = shuffle(build_deck(), rng=self.rng)
        hands, self.remaining_deck = deal(deck, NUM_SEATS, HALF_HAND)
        for player, hand in zip(self.get_all_players(), hands):
            player.hand = hand

        self._move_to(Phase.VAKKAI_DECISION)
        dealer = self.players[self.state.dealer_id]
        self.state.current_turn_id = self._seat_id(next_seat(dealer.seat))
        self.state.vakkai_decision_index = 0

    def _resolve_trick(self) -> Tuple[str, Optional[HandResult]]:
        trick = self.state.current_trick
        winner_id = trick.resolve_winner(self.state.trump_suit)
        team = self.players[winner_id].team
        self.state.trick_counts[team] += 1
        self.state.last_trick = trick
        logger.debug("Trick won by %s (team %s)", winner_id, team)

        if self.state.vakkai.active:
            result = self._resolve_vakkai_trick(winner_id)
        else:
            result = self._resolve_normal_trick()

        if result is None:
            self.state.current_trick = Trick()
            self.state.current_turn_id = winner_id
            # Phase stays put; the self-transition records the trick boundary.
            self._move_to(self.state.phase)
        else:
            self._end_hand(result)
        return winner_id, result

    def _resolve_vakkai_trick(self, winner_id: str) -> Optional[HandResult]:
        vakkai = self.state.vakkai
        declarer_team = self.players[vakkai.declarer_id].team
        if winner_id != vakkai.declarer_id:
            outcome = calculate_vakkai_result(0, declarer_team)
            return HandResult(outcome.winner_team, outcome.points, "Vakkai failure - lost a trick")

        vakkai.consecutive_wins += 1
        outcome = calculate_vakkai_result(vakkai.consecutive_wins, declarer_team)
        if not outcome.success:
            return None
        return HandResult(outcome.winner_team, outcome.points, "Vakkai success - won 4 consecutive tricks")

    def _resolve_normal_trick(self) -> Optional[HandResult]:
        assert self.state.trump_team is not None and self.state.dealer_team is not None
        return check_hand_winner(self.state.trick_counts, self.state.trump_team, self.state.dealer_team)

    def _end_hand(self, result: HandResult) -> None:
        self.state.score = apply_score(self.state.score, result.team, result.points)
        self.state.last_hand_result = result
        self.state.current_turn_id = None
        logger.info(
            "Hand won by team %s for %d (%s); score A=%d B=%d",
            result.team,
            result.points,
            result.reason,
            self.state.score.a,
            self.state.score.b,
        )

        if is_match_end(self.state.score):
            self._move_to(Phase.MATCH_END)
            logger.info("Match won by team %s", match_winner(self.state.score))
            return

        self._move_to(Phase.HAND_END)
        choosing = get_dealer_choosing_team(self.state.score)
        self.state.dealer_team = choosing
        self.state.trump_team = get_opposite_team(choosing)

    def _reset_for_new_hand(self) -> None:
        self.state.vakkai = VakkaiState()
        self.state.vakkai_decision_index = 0
        self.state.trump_suit = None
        self.state.current_trick = Trick()
        self.state.trick_counts = empty_trick_counts()
        self.state.last_trick = None
        self.state.last_hand_result = None
        self.remaining_deck = []
        for player in self.players.values():
            player.hand = []

from __future__ import annotations

import copy
import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from .cards import HAND_SIZE, build_deck, cards_to_labels, deal_hands, shuffle
from .errors import (
    IllegalAction,
    InsufficientChips,
    InvalidShowContext,
    InvalidSideshowContext,
    NotYourTurn,
    PlayerNotActive,
    PlayerNotFound,
    RoundFinished,
)
from .evaluator import HandResult, compare_hands, evaluate_hand, find_winners, hand_rank_name
from .models import (
    STAKE_ACTIONS,
    Action,
    ActionType,
    GamePlayer,
    GameSession,
    GameState,
    LastAction,
    Payout,
    PlayerSeat,
    PlayerStatus,
    SessionStatus,
    TableConfig,
    Variant,
)

LOGGER = logging.getLogger("patti.engine")

MAX_SEATS = 52 // HAND_SIZE

# Round rules are plain functions over GameState. Each transition works on a
# copy and hands back a new state, so a rejected action never leaves a trace.
# GameEngine below owns the table (seats, stacks, round counter) and is the
# only thing that keeps a state around between calls.


def _now() -> datetime:
    return datetime.now(timezone.utc)


def initialize_game(
    room_id: str,
    players: Sequence[Mapping[str, object]],
    boot_amount: int,
    variant: Variant = Variant.CLASSIC,
    rng: Optional[random.Random] = None,
    round_number: int = 1,
) -> GameState:
    """Shuffle, deal three cards per seat, collect the boot and hand the first turn out.

    ``players`` entries carry ``id``, ``name`` and ``chips``; list order is seat order.
    """
    if len(players) < 2:
        raise ValueError("At least two players are required")
    if boot_amount <= 0:
        raise ValueError("Boot amount must be positive")
    ids = [str(entry["id"]) for entry in players]
    if len(set(ids)) != len(ids):
        raise ValueError("Player ids must be unique")

    rng = rng or random.SystemRandom()
    deck = shuffle(build_deck(), rng)
    hands, remaining = deal_hands(deck, len(players), HAND_SIZE)
    dealer = rng.randrange(len(players))
    first = (dealer + 1) % len(players)

    game_players: List[GamePlayer] = []
    for seat, (entry, hand) in enumerate(zip(players, hands)):
        chips = int(entry["chips"])  # type: ignore[arg-type]
        name = str(entry.get("name") or entry["id"])
        if chips < boot_amount:
            raise InsufficientChips(f"{name} cannot cover the boot of {boot_amount}")
        game_players.append(
            GamePlayer(
                player_id=ids[seat],
                name=name,
                seat=seat,
                chips=chips - boot_amount,
                current_bet=boot_amount,
                hand=hand,
                status=PlayerStatus.PLAYING,
                is_blind=True,
                is_dealer=seat == dealer,
                is_turn=seat == first,
            )
        )

    session = GameSession(
        id=uuid.uuid4().hex,
        room_id=room_id,
        variant=Variant(variant),
        dealer_position=dealer,
        current_turn=first,
        pot=boot_amount * len(players),
        current_bet=boot_amount,
        boot_amount=boot_amount,
        status=SessionStatus.PLAYING,
        round_number=round_number,
        players=game_players,
        started_at=_now(),
    )
    return GameState(session=session, deck=remaining, current_player_index=first)


def get_current_player(state: GameState) -> Optional[GamePlayer]:
    if state.is_game_over:
        return None
    player = state.session.players[state.current_player_index]
    if player.status != PlayerStatus.PLAYING or not player.is_turn:
        return None
    return player


def get_active_players(state: GameState) -> List[GamePlayer]:
    return [player for player in state.session.players if player.is_active]


def calculate_bet_amount(state: GameState, player: GamePlayer, action: ActionType = ActionType.CHAAL) -> int:
    """Standard stake for a blind, chaal or raise by ``player`` right now."""
    current_bet = state.session.current_bet
    if action == ActionType.BLIND:
        return current_bet
    if action == ActionType.CHAAL:
        return current_bet * 2
    if action == ActionType.RAISE:
        continuation = current_bet if player.is_blind else current_bet * 2
        return continuation * 2
    raise IllegalAction(f"{action} does not commit chips")


def get_available_actions(state: GameState) -> List[ActionType]:
    player = get_current_player(state)
    if player is None:
        return []

    legal: List[ActionType] = [ActionType.PACK]
    if player.is_blind:
        legal.append(ActionType.BLIND)
    legal.append(ActionType.CHAAL)
    if player.chips >= calculate_bet_amount(state, player, ActionType.RAISE):
        legal.append(ActionType.RAISE)

    active = len(get_active_players(state))
    if active == 2 and not player.is_blind:
        legal.append(ActionType.SHOW)
    if active > 2 and not player.is_blind:
        prev_idx = _previous_active_index(state, state.current_player_index)
        if prev_idx is not None and not state.session.players[prev_idx].is_blind:
            legal.append(ActionType.SIDESHOW)
    return legal


def process_action(
    state: GameState,
    player_id: str,
    action: object,
    amount: Optional[int] = None,
) -> GameState:
    """Validate and apply one action, returning the next state.

    Raises an ``EngineError`` subclass for anything illegal; ``state`` itself is
    never modified.
    """
    request = Action.parse(action, amount)
    if state.is_game_over:
        raise RoundFinished("Round is already over")

    index = _find_player_index(state, player_id)
    player = state.session.players[index]
    if not player.is_turn:
        raise NotYourTurn("Not your turn")
    if player.status != PlayerStatus.PLAYING:
        raise PlayerNotActive("Player cannot act")

    new_state = copy.deepcopy(state)
    actor = new_state.session.players[index]
    committed: Optional[int] = None

    if request.type in STAKE_ACTIONS:
        committed = _commit_stake(new_state, actor, request)
    elif request.type == ActionType.PACK:
        _fold(actor)
    elif request.type == ActionType.SHOW:
        _call_show(new_state, actor)
    elif request.type == ActionType.SIDESHOW:
        _resolve_sideshow(new_state, index)
    else:
        raise IllegalAction(f"Unsupported action {request.type}")

    new_state.last_action = LastAction(player_id=player_id, action=request.type, amount=committed)

    if not new_state.is_game_over:
        active = get_active_players(new_state)
        if len(active) == 1:
            _finish(new_state, [active[0].player_id])
        else:
            _advance_turn(new_state)
    return new_state


def distribute_pot(state: GameState) -> List[Payout]:
    """Split the pot between winners; odd chips go one each from the lowest seat up."""
    if not state.winners:
        return []
    seat_of = {player.player_id: player.seat for player in state.session.players}
    winners = sorted(state.winners, key=lambda player_id: seat_of[player_id])
    share, remainder = divmod(state.session.pot, len(winners))
    return [
        Payout(player_id=player_id, amount=share + (1 if idx < remainder else 0))
        for idx, player_id in enumerate(winners)
    ]


def _find_player_index(state: GameState, player_id: str) -> int:
    for idx, player in enumerate(state.session.players):
        if player.player_id == player_id:
            return idx
    raise PlayerNotFound(f"Player {player_id} not found")


def _commit_stake(state: GameState, player: GamePlayer, request: Action) -> int:
    if request.type == ActionType.BLIND and not player.is_blind:
        raise IllegalAction("Only blind players can play blind")

    stake = calculate_bet_amount(state, player, request.type)
    amount = stake if request.amount is None else request.amount
    if amount < stake:
        raise IllegalAction(f"Minimum {request.type.value} is {stake}")
    if amount > player.chips:
        raise InsufficientChips(f"Not enough chips: {request.type.value} needs {amount}, have {player.chips}")

    session = state.session
    player.chips -= amount
    player.current_bet += amount
    session.pot += amount

    # current_bet is kept in blind units: seen stakes count half.
    if request.type == ActionType.RAISE:
        player.is_blind = False
        session.current_bet = amount // 2
    elif request.type == ActionType.CHAAL:
        player.is_blind = False
        session.current_bet = max(session.current_bet, amount // 2)
    else:
        session.current_bet = max(session.current_bet, amount)
    return amount


def _fold(player: GamePlayer) -> None:
    player.status = PlayerStatus.FOLDED
    player.is_turn = False
    player.hand = None


def _call_show(state: GameState, player: GamePlayer) -> None:
    active = get_active_players(state)
    if len(active) != 2:
        raise InvalidShowContext(f"Show needs exactly 2 players left, found {len(active)}")
    if player.is_blind:
        raise InvalidShowContext("Blind players cannot ask for a show")

    player.status = PlayerStatus.SHOW
    player.is_turn = False
    if player.player_id not in state.showdown_players:
        state.showdown_players.append(player.player_id)
    if all(other.player_id in state.showdown_players for other in active):
        _resolve_showdown(state)


def _resolve_sideshow(state: GameState, index: int) -> None:
    players = state.session.players
    actor = players[index]
    active = get_active_players(state)
    if len(active) <= 2:
        raise InvalidSideshowContext("Sideshow needs more than 2 players left; ask for a show")
    if actor.is_blind:
        raise InvalidSideshowContext("Blind players cannot ask for a sideshow")
    prev_idx = _previous_active_index(state, index)
    if prev_idx is None:
        raise InvalidSideshowContext("Previous player not active")
    target = players[prev_idx]
    if target.is_blind:
        raise InvalidSideshowContext("Both players must be seen for a sideshow")

    variant = state.session.variant
    outcome = compare_hands(_hand_of(actor, variant), _hand_of(target, variant), variant)
    # The player asking loses ties.
    _fold(actor if outcome <= 0 else target)


def _hand_of(player: GamePlayer, variant: Variant) -> HandResult:
    assert player.hand is not None
    return evaluate_hand(player.hand, variant)


def _previous_active_index(state: GameState, index: int) -> Optional[int]:
    players = state.session.players
    for step in range(1, len(players)):
        idx = (index - step) % len(players)
        if players[idx].status == PlayerStatus.PLAYING:
            return idx
    return None


def _advance_turn(state: GameState) -> None:
    players = state.session.players
    start = state.current_player_index
    for step in range(1, len(players) + 1):
        idx = (start + step) % len(players)
        if players[idx].status == PlayerStatus.PLAYING:
            for pos, player in enumerate(players):
                player.is_turn = pos == idx
            state.current_player_index = idx
            state.session.current_turn = idx
            return


def _resolve_showdown(state: GameState) -> None:
    variant = state.session.variant
    hands = [
        (player.player_id, _hand_of(player, variant))
        for player in state.session.players
        if player.player_id in state.showdown_players
    ]
    _finish(state, find_winners(hands, variant))


def _finish(state: GameState, winners: List[str]) -> None:
    state.winners = list(winners)
    state.is_game_over = True
    state.session.status = SessionStatus.FINISHED
    state.session.ended_at = _now()
    for player in state.session.players:
        player.is_turn = False


class GameEngine:
    """Teen Patti table: seats and stacks across rounds, one round at a time."""

    def __init__(self, config: TableConfig, room_id: str = "T-1") -> None:
        if not 2 <= config.seats <= MAX_SEATS:
            raise ValueError(f"Seats must be between 2 and {MAX_SEATS}")
        if config.boot <= 0:
            raise ValueError("Boot must be positive")
        self.config = config
        self.room_id = room_id
        self.seats: List[Optional[PlayerSeat]] = [None] * config.seats
        self.round_counter = 0
        self.state: Optional[GameState] = None
        self.payouts: List[Payout] = []
        self.pre_events: List[Dict[str, object]] = []
        self._seat_by_player: Dict[str, int] = {}

    # Seat management -------------------------------------------------

    def assign_seat(self, name: str, player_id: Optional[str] = None, personality: Optional[str] = None) -> PlayerSeat:
        display = name.strip()
        if not display:
            raise ValueError("NAME_REQUIRED")

        name_key = self._normalize_name(display)
        existing = self._find_seat_by_key(name_key)
        if existing:
            if player_id is not None and existing.player_id != player_id:
                raise ValueError("NAME_TAKEN")
            existing.name = display
            return existing

        for idx in range(self.config.seats):
            if self.seats[idx] is None:
                seat = PlayerSeat(
                    seat=idx,
                    player_id=player_id or f"P{idx}",
                    name=display,
                    name_key=name_key,
                    stack=self.config.starting_stack,
                    personality=personality,
                )
                self.seats[idx] = seat
                return seat

        raise RuntimeError("Table is full")

    def _normalize_name(self, name: str) -> str:
        return name.strip().casefold()

    def _find_seat_by_key(self, name_key: str) -> Optional[PlayerSeat]:
        for seat in self.seats:
            if seat and seat.name_key == name_key:
                return seat
        return None

    def seat_of(self, player_id: str) -> Optional[PlayerSeat]:
        for seat in self.seats:
            if seat and seat.player_id == player_id:
                return seat
        return None

    def set_connected(self, seat_idx: int, connected: bool) -> None:
        seat = self.seats[seat_idx]
        if seat:
            seat.connected = connected

    def funded_seats(self) -> List[PlayerSeat]:
        return [seat for seat in self.seats if seat and seat.stack >= self.config.boot]

    # Round lifecycle -------------------------------------------------

    def can_start_round(self) -> bool:
        return len(self.funded_seats()) >= 2

    def start_round(self, seed: Optional[int] = None) -> GameState:
        if self.state is not None and not self.state.is_game_over:
            raise RuntimeError("Round already in progress")
        if not self.can_start_round():
            raise RuntimeError("Not enough funded players to start a round")

        funded = self.funded_seats()
        rng = random.Random(seed) if seed is not None else None
        self.round_counter += 1
        state = initialize_game(
            self.room_id,
            [{"id": seat.player_id, "name": seat.name, "chips": seat.stack} for seat in funded],
            self.config.boot,
            self.config.variant,
            rng=rng,
            round_number=self.round_counter,
        )
        self.state = state
        self.payouts = []
        self._seat_by_player = {seat.player_id: seat.seat for seat in funded}
        self._sync_stacks()

        dealer = state.session.players[state.session.dealer_position]
        first = state.session.players[state.current_player_index]
        self.pre_events = [
            {"ev": "BOOT", "amount": self.config.boot, "pot": state.session.pot},
            {"ev": "DEAL", "dealer": self._seat_by_player[dealer.player_id], "first": first.player_id},
        ]
        LOGGER.info(
            "Round %s started: %s players, pot=%s, dealer=%s",
            self.round_counter,
            len(funded),
            state.session.pot,
            dealer.name,
        )
        return state

    def consume_pre_events(self) -> List[Dict[str, object]]:
        events = list(self.pre_events)
        self.pre_events.clear()
        return events

    def current_player(self) -> Optional[GamePlayer]:
        if not self.state:
            return None
        return get_current_player(self.state)

    def next_actor(self) -> Optional[str]:
        player = self.current_player()
        return player.player_id if player else None

    def legal_actions(self, player_id: str) -> List[ActionType]:
        if not self.state:
            raise RuntimeError("Round not in progress")
        player = get_current_player(self.state)
        if player is None or player.player_id != player_id:
            return []
        return get_available_actions(self.state)

    def stakes(self, player_id: str) -> Dict[str, int]:
        state = self._require_state()
        player = state.session.players[_find_player_index(state, player_id)]
        return {
            action.value: calculate_bet_amount(state, player, action)
            for action in (ActionType.BLIND, ActionType.CHAAL, ActionType.RAISE)
        }

    def apply_action(self, player_id: str, action: object, amount: Optional[int] = None) -> List[Dict[str, object]]:
        before = self._require_state()
        after = process_action(before, player_id, action, amount)
        self.state = after
        self._sync_stacks()

        events = self._describe_action(before, after)
        LOGGER.debug("Applied %s", events[0])
        if after.is_game_over:
            events.extend(self._settle_round(after))
        return events

    def is_round_complete(self) -> bool:
        return bool(self.state and self.state.is_game_over)

    def is_match_over(self) -> bool:
        return len(self.funded_seats()) <= 1

    def _require_state(self) -> GameState:
        if not self.state:
            raise RuntimeError("Round not in progress")
        return self.state

    def _sync_stacks(self) -> None:
        assert self.state is not None
        for player in self.state.session.players:
            seat = self.seats[self._seat_by_player[player.player_id]]
            if seat:
                seat.stack = player.chips

    def _table_seat(self, player_id: str) -> int:
        return self._seat_by_player[player_id]

    def _describe_action(self, before: GameState, after: GameState) -> List[Dict[str, object]]:
        last = after.last_action
        assert last is not None
        event: Dict[str, object] = {
            "ev": last.action.value.upper(),
            "player": last.player_id,
            "seat": self._table_seat(last.player_id),
        }
        if last.amount is not None:
            event["amount"] = last.amount
            event["pot"] = after.session.pot
        if last.action == ActionType.SIDESHOW:
            folded = [
                new.player_id
                for old, new in zip(before.session.players, after.session.players)
                if old.status != PlayerStatus.FOLDED and new.status == PlayerStatus.FOLDED
            ]
            loser = folded[0]
            target_idx = _previous_active_index(before, _find_player_index(before, last.player_id))
            assert target_idx is not None
            target = before.session.players[target_idx].player_id
            event["target"] = target
            event["loser"] = loser
            event["winner"] = target if loser == last.player_id else last.player_id
        events = [event]

        if after.is_game_over and after.showdown_players:
            variant = after.session.variant
            for player in after.session.players:
                if player.player_id not in after.showdown_players or player.hand is None:
                    continue
                result = evaluate_hand(player.hand, variant)
                events.append(
                    {
                        "ev": "SHOWDOWN",
                        "player": player.player_id,
                        "seat": self._table_seat(player.player_id),
                        "hand": cards_to_labels(player.hand),
                        "rank": result.rank.value,
                        "description": result.description,
                    }
                )
        return events

    def _settle_round(self, state: GameState) -> List[Dict[str, object]]:
        events: List[Dict[str, object]] = []
        self.payouts = distribute_pot(state)
        for payout in self.payouts:
            seat_idx = self._table_seat(payout.player_id)
            seat = self.seats[seat_idx]
            if seat:
                seat.stack += payout.amount
            events.append({"ev": "POT_AWARD", "player": payout.player_id, "seat": seat_idx, "amount": payout.amount})

        for seat in self.seats:
            if seat and seat.player_id in self._seat_by_player and seat.stack < self.config.boot:
                events.append({"ev": "ELIMINATED", "player": seat.player_id, "seat": seat.seat})

        events.append({"ev": "ROUND_END", "round": state.session.round_number, "winners": list(state.winners)})
        names = ", ".join(self.seats[self._table_seat(pid)].name for pid in state.winners)  # type: ignore[union-attr]
        LOGGER.info("Round %s finished: pot=%s won by %s", state.session.round_number, state.session.pot, names)
        return events

    # Public/Snapshot helpers -----------------------------------------

    def _player_entry(self, player: GamePlayer, reveal: bool, variant: Variant) -> Dict[str, object]:
        entry: Dict[str, object] = {
            "player_id": player.player_id,
            "name": player.name,
            "seat": self._table_seat(player.player_id),
            "chips": player.chips,
            "current_bet": player.current_bet,
            "status": player.status.value,
            "is_blind": player.is_blind,
            "is_dealer": player.is_dealer,
            "is_turn": player.is_turn,
            "cards": None,
            "hand": None,
        }
        if reveal and player.hand is not None:
            result = evaluate_hand(player.hand, variant)
            entry["cards"] = cards_to_labels(player.hand)
            entry["hand"] = {
                "rank": result.rank.value,
                "name": hand_rank_name(result.rank),
                "description": result.description,
            }
        return entry

    def _round_header(self, state: GameState) -> Dict[str, object]:
        session = state.session
        last = state.last_action
        return {
            "round_id": session.id,
            "room_id": session.room_id,
            "round": session.round_number,
            "variant": session.variant.value,
            "status": session.status.value,
            "pot": session.pot,
            "current_bet": session.current_bet,
            "boot": session.boot_amount,
            "dealer": self._table_seat(session.players[session.dealer_position].player_id),
            "next_actor": self.next_actor(),
            "last_action": (
                {"player": last.player_id, "action": last.action.value, "amount": last.amount} if last else None
            ),
            "winners": list(state.winners),
            "is_game_over": state.is_game_over,
        }

    def snapshot_payload(self, player_id: str, time_ms_remaining: Optional[int] = None) -> Dict[str, object]:
        """Seat-private view: own cards once seen, showdown hands once the round ends."""
        state = self._require_state()
        variant = state.session.variant
        _find_player_index(state, player_id)

        players = []
        for player in state.session.players:
            if player.player_id == player_id:
                reveal = not player.is_blind or state.is_game_over
            else:
                reveal = state.is_game_over and player.player_id in state.showdown_players
            players.append(self._player_entry(player, reveal, variant))

        payload = self._round_header(state)
        payload["you"] = next(entry for entry in players if entry["player_id"] == player_id)
        payload["players"] = players
        payload["time_ms_remaining"] = time_ms_remaining
        if self.next_actor() == player_id:
            payload["legal"] = [action.value for action in get_available_actions(state)]
            payload["stakes"] = self.stakes(player_id)
        return payload

    def spectator_state(self, time_ms_remaining: Optional[int] = None) -> Optional[Dict[str, object]]:
        if not self.state:
            return None
        state = self.state
        payload = self._round_header(state)
        payload["players"] = [self._player_entry(player, True, state.session.variant) for player in state.session.players]
        payload["time_remaining_ms"] = time_ms_remaining if payload["next_actor"] is not None else None
        return payload

    def end_round_payload(self) -> Dict[str, object]:
        state = self._require_state()
        return {
            "round_id": state.session.id,
            "round": state.session.round_number,
            "winners": list(state.winners),
            "payouts": [{"player": payout.player_id, "amount": payout.amount} for payout in self.payouts],
            "stacks": [
                {"seat": seat.seat, "player": seat.player_id, "stack": seat.stack}
                for seat in self.seats
                if seat is not None
            ],
        }

    def lobby_state(self) -> Dict[str, object]:
        return {
            "players": [
                {
                    "seat": seat.seat,
                    "player": seat.player_id,
                    "name": seat.name,
                    "connected": seat.connected,
                    "stack": seat.stack,
                }
                for seat in self.seats
                if seat is not None
            ]
        }

    def match_result_payload(self) -> Dict[str, object]:
        funded = self.funded_seats()
        winner = max(funded, key=lambda seat: seat.stack) if funded else None
        return {
            "winner": {"seat": winner.seat, "player": winner.player_id, "name": winner.name} if winner else None,
            "rounds": self.round_counter,
            "final_stacks": [
                {"seat": seat.seat, "player": seat.player_id, "name": seat.name, "stack": seat.stack}
                for seat in self.seats
                if seat is not None
            ],
        }

import pytest

from patti.errors import (
    EngineError,
    IllegalAction,
    InsufficientChips,
    InvalidShowContext,
    InvalidSideshowContext,
    NotYourTurn,
    PlayerNotActive,
    PlayerNotFound,
    RoundFinished,
)
from patti.game import GameEngine, initialize_game, process_action
from patti.models import Action, ActionType, PlayerStatus, TableConfig

from .helpers import create_engine, new_round, perform_actions

THREE_HANDS = [["Ah", "Ad", "Ac"], ["2h", "5d", "9c"], ["3h", "7d", "Jc"]]


def test_out_of_turn_action_rejected(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS)
    with pytest.raises(NotYourTurn) as info:
        process_action(state, "P1", ActionType.CHAAL)
    assert info.value.code == "NOT_YOUR_TURN"


def test_unknown_player_rejected(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS)
    with pytest.raises(PlayerNotFound, match="Player ghost not found"):
        process_action(state, "ghost", ActionType.PACK)


def test_unknown_action_rejected(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS)
    with pytest.raises(IllegalAction, match="Unsupported action"):
        process_action(state, "P0", "check")
    with pytest.raises(IllegalAction, match="Unsupported action"):
        process_action(state, "P0", None)


def test_action_names_are_case_insensitive(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS)
    state = process_action(state, "P0", " CHAAL ")
    assert state.last_action.action == ActionType.CHAAL


def test_amount_only_for_stake_actions():
    with pytest.raises(IllegalAction, match="does not take an amount"):
        Action(ActionType.PACK, 10)
    for bad in (0, -5, 2.5, "10", True):
        with pytest.raises(IllegalAction, match="positive whole number"):
            Action(ActionType.CHAAL, bad)  # type: ignore[arg-type]


def test_stake_below_minimum_rejected(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS)
    with pytest.raises(IllegalAction, match="Minimum chaal is 20"):
        process_action(state, "P0", ActionType.CHAAL, 15)


def test_stake_above_chips_rejected(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS, chips=30)
    with pytest.raises(InsufficientChips, match="Not enough chips"):
        process_action(state, "P0", ActionType.CHAAL, 40)
    assert state.session.players[0].chips == 20


def test_seen_player_cannot_play_blind(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS)
    state = perform_actions(
        state,
        [("P0", ActionType.CHAAL, None), ("P1", ActionType.BLIND, None), ("P2", ActionType.BLIND, None)],
    )
    with pytest.raises(IllegalAction, match="Only blind players"):
        process_action(state, "P0", ActionType.BLIND)


def test_show_needs_two_players(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS)
    state = perform_actions(
        state,
        [("P0", ActionType.CHAAL, None), ("P1", ActionType.CHAAL, None), ("P2", ActionType.CHAAL, None)],
    )
    with pytest.raises(InvalidShowContext, match="exactly 2 players"):
        process_action(state, "P0", ActionType.SHOW)


def test_blind_player_cannot_show(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS[:2])
    with pytest.raises(InvalidShowContext, match="Blind players"):
        process_action(state, "P0", ActionType.SHOW)


def test_sideshow_context_checks(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS)
    with pytest.raises(InvalidSideshowContext, match="Blind players"):
        process_action(state, "P0", ActionType.SIDESHOW)

    state = perform_actions(
        state,
        [("P0", ActionType.CHAAL, None), ("P1", ActionType.CHAAL, None), ("P2", ActionType.BLIND, None)],
    )
    with pytest.raises(InvalidSideshowContext, match="Both players must be seen"):
        process_action(state, "P0", ActionType.SIDESHOW)

    heads_up = new_round(monkeypatch, THREE_HANDS[:2])
    heads_up = perform_actions(heads_up, [("P0", ActionType.CHAAL, None), ("P1", ActionType.CHAAL, None)])
    with pytest.raises(InvalidSideshowContext, match="more than 2 players"):
        process_action(heads_up, "P0", ActionType.SIDESHOW)


def test_actions_after_round_end_rejected(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS[:2])
    state = process_action(state, "P0", ActionType.PACK)
    with pytest.raises(RoundFinished):
        process_action(state, "P1", ActionType.CHAAL)


def test_player_marked_on_turn_but_not_playing_rejected(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS)
    state.session.players[0].status = PlayerStatus.FOLDED
    with pytest.raises(PlayerNotActive):
        process_action(state, "P0", ActionType.CHAAL)


def test_rejected_action_leaves_state_untouched(monkeypatch):
    state = new_round(monkeypatch, THREE_HANDS)
    pot = state.session.pot
    with pytest.raises(EngineError):
        process_action(state, "P0", ActionType.CHAAL, 10_000)
    assert state.session.pot == pot
    assert state.session.players[0].is_blind
    assert state.session.players[0].is_turn


def test_engine_errors_are_value_errors():
    assert issubclass(EngineError, ValueError)
    error = InsufficientChips("short")
    assert error.code == "INSUFFICIENT_CHIPS"
    assert error.msg == "short"


def test_initialize_game_validates_inputs():
    two = [{"id": "A", "name": "A", "chips": 100}, {"id": "B", "name": "B", "chips": 100}]
    with pytest.raises(ValueError, match="At least two players"):
        initialize_game("ROOM", two[:1], 10)
    with pytest.raises(ValueError, match="Boot amount must be positive"):
        initialize_game("ROOM", two, 0)
    with pytest.raises(ValueError, match="unique"):
        initialize_game("ROOM", [two[0], two[0]], 10)
    with pytest.raises(InsufficientChips, match="cannot cover the boot"):
        initialize_game("ROOM", [two[0], {"id": "C", "name": "C", "chips": 5}], 10)


def test_engine_config_validation():
    with pytest.raises(ValueError, match="Seats must be between"):
        GameEngine(TableConfig(seats=1))
    with pytest.raises(ValueError, match="Seats must be between"):
        GameEngine(TableConfig(seats=18))
    with pytest.raises(ValueError, match="Boot must be positive"):
        GameEngine(TableConfig(boot=0))


def test_engine_requires_a_round():
    engine = create_engine(seats=2)
    with pytest.raises(RuntimeError, match="Round not in progress"):
        engine.legal_actions("P0")
    with pytest.raises(RuntimeError, match="Round not in progress"):
        engine.apply_action("P0", ActionType.PACK)


def test_start_round_twice_rejected():
    engine = create_engine(seats=2)
    engine.start_round(seed=1)
    with pytest.raises(RuntimeError, match="already in progress"):
        engine.start_round(seed=2)


def test_seat_assignment_errors():
    engine = create_engine(seats=2)
    with pytest.raises(ValueError, match="NAME_REQUIRED"):
        engine.assign_seat("   ")
    with pytest.raises(RuntimeError, match="Table is full"):
        engine.assign_seat("Overflow")
    with pytest.raises(ValueError, match="NAME_TAKEN"):
        engine.assign_seat("player0", player_id="SOMEONE_ELSE")

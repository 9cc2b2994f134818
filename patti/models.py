from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .cards import Card
from .errors import IllegalAction


class Variant(str, Enum):
    CLASSIC = "classic"
    JOKER = "joker"
    MUFLIS = "muflis"
    AK47 = "ak47"


class ActionType(str, Enum):
    PACK = "pack"
    BLIND = "blind"
    CHAAL = "chaal"
    RAISE = "raise"
    SHOW = "show"
    SIDESHOW = "sideshow"


# Actions that commit chips and may carry an explicit stake.
STAKE_ACTIONS = frozenset({ActionType.BLIND, ActionType.CHAAL, ActionType.RAISE})


class PlayerStatus(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    FOLDED = "folded"
    ALL_IN = "all_in"
    SHOW = "show"


class SessionStatus(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


@dataclass(frozen=True)
class Action:
    """A validated action request.

    Only stake actions (blind, chaal, raise) accept an amount; leaving it out
    means "the standard stake for this turn".
    """

    type: ActionType
    amount: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, ActionType):
            raise IllegalAction(f"Unsupported action {self.type!r}")
        if self.amount is None:
            return
        if self.type not in STAKE_ACTIONS:
            raise IllegalAction(f"{self.type.value} does not take an amount")
        if isinstance(self.amount, bool) or not isinstance(self.amount, int) or self.amount <= 0:
            raise IllegalAction("Amount must be a positive whole number of chips")

    @classmethod
    def parse(cls, action: object, amount: Optional[int] = None) -> "Action":
        if isinstance(action, Action):
            return action
        if isinstance(action, str) and not isinstance(action, ActionType):
            action = action.strip().lower()
        try:
            action_type = ActionType(action)
        except ValueError:
            raise IllegalAction(f"Unsupported action {action!r}") from None
        return cls(action_type, amount)


@dataclass
class TableConfig:
    seats: int = 6
    starting_stack: int = 10_000
    boot: int = 10
    move_time_ms: int = 30_000
    variant: Variant = Variant.CLASSIC
    think_time_scale: float = 1.0


@dataclass
class PlayerSeat:
    # Table-level seat; lives across rounds, unlike GamePlayer.
    seat: int
    player_id: str
    name: str
    name_key: str
    stack: int
    connected: bool = False
    personality: Optional[str] = None


@dataclass
class GamePlayer:
    player_id: str
    name: str
    seat: int
    chips: int
    current_bet: int = 0
    hand: Optional[List[Card]] = None
    status: PlayerStatus = PlayerStatus.WAITING
    is_blind: bool = True
    is_dealer: bool = False
    is_turn: bool = False

    @property
    def is_active(self) -> bool:
        return self.status in (PlayerStatus.PLAYING, PlayerStatus.SHOW)


@dataclass
class GameSession:
    id: str
    room_id: str
    variant: Variant
    dealer_position: int
    current_turn: int
    pot: int
    current_bet: int
    boot_amount: int
    status: SessionStatus
    round_number: int
    players: List[GamePlayer]
    started_at: datetime
    ended_at: Optional[datetime] = None


@dataclass(frozen=True)
class LastAction:
    """Most recent action in a round.

    ``amount`` is the chips actually committed by a blind, chaal or raise (the
    standard stake when none was given) and ``None`` for pack, show and sideshow.
    """

    player_id: str
    action: ActionType
    amount: Optional[int] = None


@dataclass
class GameState:
    session: GameSession
    deck: List[Card]
    current_player_index: int
    last_action: Optional[LastAction] = None
    showdown_players: List[str] = field(default_factory=list)
    winners: List[str] = field(default_factory=list)
    is_game_over: bool = False


@dataclass(frozen=True)
class Payout:
    player_id: str
    amount: int

"""Errors raised by the round engine.

All of them are recoverable: the offending request is rejected and the state
it was applied to is left untouched. ``code`` is a stable identifier for
transport envelopes; ``msg`` is meant for people.
"""

from __future__ import annotations


class EngineError(ValueError):
    code = "ENGINE_ERROR"

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.msg = msg


class NotYourTurn(EngineError):
    code = "NOT_YOUR_TURN"


class PlayerNotActive(EngineError):
    code = "PLAYER_NOT_ACTIVE"


class PlayerNotFound(EngineError):
    code = "PLAYER_NOT_FOUND"


class InsufficientChips(EngineError):
    code = "INSUFFICIENT_CHIPS"


class InsufficientCards(EngineError):
    code = "INSUFFICIENT_CARDS"


class InvalidShowContext(EngineError):
    code = "INVALID_SHOW"


class InvalidSideshowContext(EngineError):
    code = "INVALID_SIDESHOW"


class IllegalAction(EngineError):
    code = "ILLEGAL_ACTION"


class RoundFinished(EngineError):
    code = "ROUND_FINISHED"

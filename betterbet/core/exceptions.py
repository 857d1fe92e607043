"""
Wager rejection errors.

Every error is raised before any state is touched, so a caller that catches
one can assume balance, history, boards and hands are exactly as they were.
"""


class WagerError(Exception):
    """Base class for all rejections raised by the engine."""

    code = "wager_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class InvalidWagerAmount(WagerError):
    """Non-positive, non-finite or out-of-limits stake."""

    code = "invalid_wager_amount"


class InsufficientBalance(WagerError):
    code = "insufficient_balance"


class InvalidGameParameters(WagerError):
    """Risk, target, mine count, bet type etc. outside the declared bounds."""

    code = "invalid_game_parameters"


class IllegalStateTransition(WagerError):
    """Action not allowed in the round's current state (hit after stand, ...)."""

    code = "illegal_state_transition"


class RoundNotFound(IllegalStateTransition):
    code = "round_not_found"

"""
Shared types: game kinds, wager parameters, wagers and outcomes.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class GameKind(str, Enum):
    DICE = "dice"
    MINES = "mines"
    PLINKO = "plinko"
    BLACKJACK = "blackjack"
    ROULETTE = "roulette"
    BACCARAT = "baccarat"
    SLOTS = "slots"


class Direction(str, Enum):
    OVER = "over"
    UNDER = "under"


class Risk(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ==================== Game Parameters ====================

class DiceParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: float
    direction: Direction


class MinesParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    mine_count: int = 3
    grid_size: int = 25


class PlinkoParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    rows: int = 8
    risk: Risk = Risk.MEDIUM


class RouletteBet(BaseModel):
    """One sub-wager on the layout. `value` is the number, dozen or column."""
    model_config = ConfigDict(frozen=True)

    bet_type: str
    amount: float
    value: Optional[int] = None


class RouletteParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    bets: List[RouletteBet]


class BaccaratBet(BaseModel):
    model_config = ConfigDict(frozen=True)

    bet_type: str
    amount: float


class BaccaratParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    bets: List[BaccaratBet]


class NoParams(BaseModel):
    """Blackjack and slots take no static parameters."""
    model_config = ConfigDict(frozen=True)


GameParameters = Union[
    DiceParams, MinesParams, PlinkoParams, RouletteParams, BaccaratParams, NoParams
]


# ==================== Wager / Outcome ====================

class Wager(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: float
    game: GameKind
    parameters: GameParameters = Field(default_factory=NoParams)


class Outcome(BaseModel):
    """
    Resolved result of one wager. `payout` is always derived from
    `amount * multiplier`; `details` carries display data only.
    """
    model_config = ConfigDict(frozen=True)

    won: bool
    multiplier: float
    amount: float
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def payout(self) -> float:
        return round(self.amount * self.multiplier, 2)

    @property
    def net(self) -> float:
        return round(self.payout - self.amount, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.details,
            "win": self.won,
            "multiplier": self.multiplier,
            "bet": self.amount,
            "payout": self.payout,
            "net": self.net,
        }

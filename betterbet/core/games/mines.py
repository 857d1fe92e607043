"""
Mines - a 5x5 grid hides a chosen number of mines. Each gem revealed raises
the multiplier; hitting a mine loses the stake. The player may cash out at
any point after the first gem.
"""

import threading
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from betterbet.core.exceptions import (
    IllegalStateTransition,
    InvalidGameParameters,
    RoundNotFound,
)
from betterbet.core.logger import get_logger
from betterbet.core.models import MinesParams, Outcome
from betterbet.core.odds import get_game_odds, get_house_edge
from betterbet.core.rng import RandomSource, rng as default_rng

logger = get_logger("mines")


class Tile(str, Enum):
    HIDDEN = "hidden"
    GEM = "gem"
    MINE = "mine"


def survival_probability(gems: int, mines: int, grid_size: int = 25) -> float:
    """Chance of picking `gems` safe tiles in a row without replacement."""
    probability = 1.0
    for i in range(gems):
        probability *= (grid_size - mines - i) / (grid_size - i)
    return probability


def mines_multiplier(
    gems: int,
    mines: int,
    grid_size: int = 25,
    house_edge: float = 0.01,
    decimals: int = 2,
) -> float:
    """Inverse survival probability scaled by (1 - house edge). Zero gems pays 1x."""
    if gems == 0:
        return 1.0
    return round((1 - house_edge) / survival_probability(gems, mines, grid_size), decimals)


class MinesBoard:
    """State of one mines round."""

    def __init__(
        self,
        round_id: str,
        bet_amount: float,
        mine_positions: Set[int],
        grid_size: int,
        house_edge: float,
        decimals: int = 2,
    ):
        self.round_id = round_id
        self.bet_amount = bet_amount
        self.mine_positions = frozenset(mine_positions)
        self.mine_count = len(mine_positions)
        self.grid_size = grid_size
        self.house_edge = house_edge
        self.decimals = decimals
        self.grid: List[Tile] = [Tile.HIDDEN] * grid_size
        self.gems_revealed = 0
        self.status = "playing"
        # Updated one factor per reveal
        self._survival = 1.0

    @property
    def safe_tiles(self) -> int:
        return self.grid_size - self.mine_count

    @property
    def multiplier(self) -> float:
        if self.gems_revealed == 0:
            return 1.0
        return round((1 - self.house_edge) / self._survival, self.decimals)

    @property
    def next_multiplier(self) -> Optional[float]:
        if self.gems_revealed >= self.safe_tiles:
            return None
        step = (self.safe_tiles - self.gems_revealed) / (self.grid_size - self.gems_revealed)
        return round((1 - self.house_edge) / (self._survival * step), self.decimals)

    def reveal(self, index: int) -> Tile:
        if self.status != "playing":
            raise IllegalStateTransition("Round is already finished")
        if not isinstance(index, int) or not 0 <= index < self.grid_size:
            raise InvalidGameParameters(f"Tile must be between 0 and {self.grid_size - 1}")
        if self.grid[index] != Tile.HIDDEN:
            raise IllegalStateTransition(f"Tile {index} is already revealed")

        if index in self.mine_positions:
            self._reveal_mines()
            self.status = "lost"
            return Tile.MINE

        self._survival *= (self.safe_tiles - self.gems_revealed) / (
            self.grid_size - self.gems_revealed
        )
        self.grid[index] = Tile.GEM
        self.gems_revealed += 1
        if self.gems_revealed == self.safe_tiles:
            self.status = "won"
        return Tile.GEM

    def cash_out(self):
        if self.status != "playing":
            raise IllegalStateTransition("Round is already finished")
        if self.gems_revealed == 0:
            raise IllegalStateTransition("Reveal at least one gem before cashing out")
        self._reveal_mines()
        self.status = "won"

    def _reveal_mines(self):
        for position in self.mine_positions:
            self.grid[position] = Tile.MINE

    def to_dict(self) -> Dict:
        finished = self.status != "playing"
        return {
            "round_id": self.round_id,
            "grid": [tile.value for tile in self.grid],
            "mine_count": self.mine_count,
            "gems_revealed": self.gems_revealed,
            "multiplier": self.multiplier,
            "next_multiplier": self.next_multiplier,
            "status": self.status,
            "mines": sorted(self.mine_positions) if finished else None,
            "bet": self.bet_amount,
        }


class MinesGame:
    """Keeps every open board; several rounds may run at once."""

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or default_rng
        self.active_boards: Dict[str, MinesBoard] = {}
        self._lock = threading.Lock()

    def _get_odds(self) -> dict:
        return get_game_odds("mines")

    def validate(self, params: MinesParams):
        grid_size = self._get_odds()["grid_size"]
        if params.grid_size != grid_size:
            raise InvalidGameParameters(f"Grid size is fixed at {grid_size}")
        if not 1 <= params.mine_count <= grid_size - 1:
            raise InvalidGameParameters(f"Mine count must be between 1 and {grid_size - 1}")

    def multiplier(self, gems: int, params: MinesParams) -> float:
        self.validate(params)
        if not 0 <= gems <= params.grid_size - params.mine_count:
            raise InvalidGameParameters("Gem count out of range for this board")
        return mines_multiplier(
            gems,
            params.mine_count,
            params.grid_size,
            get_house_edge("mines"),
            self._get_odds().get("multiplier_decimals", 2),
        )

    def start(self, round_id: str, bet_amount: float, params: MinesParams) -> MinesBoard:
        """Lay the mines for a new round."""
        self.validate(params)
        positions = self.rng.choice_without_replacement(params.grid_size, params.mine_count)
        board = MinesBoard(
            round_id=round_id,
            bet_amount=bet_amount,
            mine_positions=positions,
            grid_size=params.grid_size,
            house_edge=get_house_edge("mines"),
            decimals=self._get_odds().get("multiplier_decimals", 2),
        )
        with self._lock:
            self.active_boards[round_id] = board
        return board

    def get_board(self, round_id: str) -> MinesBoard:
        with self._lock:
            board = self.active_boards.get(round_id)
        if board is None:
            raise RoundNotFound(f"Mines round {round_id} not found")
        return board

    def _finish(self, board: MinesBoard) -> Outcome:
        with self._lock:
            self.active_boards.pop(board.round_id, None)
        won = board.status == "won"
        return Outcome(
            won=won,
            multiplier=board.multiplier if won else 0.0,
            amount=board.bet_amount,
            details=board.to_dict(),
        )

    def reveal(self, round_id: str, index: int) -> Tuple[MinesBoard, Optional[Outcome]]:
        """
        Reveal one tile. Returns the board and, when the round ended
        (mine hit or every gem found), its Outcome.
        """
        board = self.get_board(round_id)
        tile = board.reveal(index)
        if board.status == "playing":
            return board, None

        if tile == Tile.MINE:
            logger.debug(f"Mines {round_id}: mine at {index} after {board.gems_revealed} gems")
        return board, self._finish(board)

    def cash_out(self, round_id: str) -> Outcome:
        board = self.get_board(round_id)
        board.cash_out()
        return self._finish(board)

    def discard(self, round_id: str):
        with self._lock:
            self.active_boards.pop(round_id, None)

    def get_active_game_count(self) -> int:
        with self._lock:
            return len(self.active_boards)

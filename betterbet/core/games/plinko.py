import math
from typing import List, Optional

from betterbet.core.exceptions import InvalidGameParameters
from betterbet.core.models import Outcome, PlinkoParams
from betterbet.core.odds import get_plinko_table, plinko_row_counts, validate_plinko_table
from betterbet.core.rng import RandomSource, rng as default_rng


class PlinkoGame:
    """
    Plinko board without physics.
    The ball bounces left or right with equal chance at every row, so the
    landing slot follows Binomial(rows, 1/2): central slots are hit most,
    which is why they pay least.

    Multiplier tables are loaded from the odds configuration.
    """

    BIG_WIN_MULTIPLIER = 3

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or default_rng

    def multipliers(self, params: PlinkoParams) -> List[float]:
        """Validated multiplier row for the board."""
        if params.rows not in plinko_row_counts():
            raise InvalidGameParameters(
                f"Rows must be one of {plinko_row_counts()}"
            )
        table = get_plinko_table(params.rows, params.risk.value)
        if table is None:
            raise InvalidGameParameters(f"No payout table for risk {params.risk.value}")
        if not validate_plinko_table(params.rows, table):
            raise InvalidGameParameters(
                f"Payout table for {params.rows} rows / {params.risk.value} is malformed"
            )
        return table

    @staticmethod
    def landing_probabilities(rows: int) -> List[float]:
        """Chance of the ball ending in each of the rows + 1 slots."""
        total = 2 ** rows
        return [math.comb(rows, k) / total for k in range(rows + 1)]

    def expected_return(self, params: PlinkoParams) -> float:
        """Return to player of a board: sum of slot probability times multiplier."""
        table = self.multipliers(params)
        probabilities = self.landing_probabilities(params.rows)
        return sum(p * m for p, m in zip(probabilities, table))

    def slot_for_path(self, path: List[str]) -> int:
        return sum(1 for step in path if step == "R")

    def drop(self, bet_amount: float, params: PlinkoParams) -> Outcome:
        """
        Drop one ball.

        Returns:
            Outcome with path, final slot and the board's multipliers in its details
        """
        multipliers = self.multipliers(params)

        path = ["L" if self.rng.uniform01() < 0.5 else "R" for _ in range(params.rows)]
        slot_index = self.slot_for_path(path)
        multiplier = multipliers[slot_index]

        return Outcome(
            # Anything returning at least the stake counts as a win
            won=multiplier >= 1,
            multiplier=multiplier,
            amount=bet_amount,
            details={
                "path": path,
                "final_slot": slot_index,
                "rows": params.rows,
                "risk": params.risk.value,
                "multipliers": multipliers,
                "big_win": multiplier >= self.BIG_WIN_MULTIPLIER,
            },
        )

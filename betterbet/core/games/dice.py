"""
Dice - roll a number in [0, 100) and bet on it landing over or under a target.
The target sets the win chance; the multiplier pays (1 - house edge) / chance.
"""

import math
from typing import Optional

from betterbet.core.exceptions import InvalidGameParameters
from betterbet.core.models import DiceParams, Direction, Outcome
from betterbet.core.odds import get_game_odds, get_house_edge
from betterbet.core.rng import RandomSource, rng as default_rng


class DiceGame:
    """
    Over/under dice.

    A roll exactly on the target counts as UNDER, so OVER wins on
    `roll > target` and UNDER wins on `roll <= target`.
    """

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or default_rng

    def _get_odds(self) -> dict:
        return get_game_odds("dice")

    def win_chance(self, params: DiceParams) -> float:
        """Implied win chance in percent."""
        if params.direction == Direction.OVER:
            return 100.0 - params.target
        return params.target

    def validate(self, params: DiceParams):
        odds = self._get_odds()
        if not math.isfinite(params.target) or not 0 < params.target < 100:
            raise InvalidGameParameters("Target must be between 0 and 100 (exclusive)")

        chance = self.win_chance(params)
        if chance < odds["min_chance"] or chance > odds["max_chance"]:
            raise InvalidGameParameters(
                f"Win chance must be between {odds['min_chance']}% and {odds['max_chance']}%"
            )

    def multiplier(self, params: DiceParams) -> float:
        """Payout multiplier for a win: (1 - house edge) / probability."""
        self.validate(params)
        probability = self.win_chance(params) / 100.0
        decimals = self._get_odds().get("multiplier_decimals", 4)
        return round((1 - get_house_edge("dice")) / probability, decimals)

    @staticmethod
    def is_win(roll: float, params: DiceParams) -> bool:
        if params.direction == Direction.OVER:
            return roll > params.target
        return roll <= params.target

    def roll(self, bet_amount: float, params: DiceParams) -> Outcome:
        """
        Roll the dice and resolve the bet.

        Returns:
            Outcome with the roll, target and win chance in its details
        """
        multiplier = self.multiplier(params)

        roll = self.rng.uniform01() * 100
        win = self.is_win(roll, params)

        return Outcome(
            won=win,
            multiplier=multiplier if win else 0.0,
            amount=bet_amount,
            details={
                "roll": roll,
                "target": params.target,
                "direction": params.direction.value,
                "win_chance": round(self.win_chance(params), 2),
                "win_multiplier": multiplier,
            },
        )

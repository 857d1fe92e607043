import math
from typing import Dict, List, Optional

from betterbet.config import settings
from betterbet.core.exceptions import InvalidGameParameters, InvalidWagerAmount
from betterbet.core.models import Outcome, RouletteBet, RouletteParams
from betterbet.core.odds import get_game_odds
from betterbet.core.rng import RandomSource, rng as default_rng


class RouletteGame:
    """
    European Roulette (37 pockets: 0-36).
    Several sub-wagers ride on one spin; each is settled on its own and the
    round pays the sum of the winning ones.
    """

    # Red numbers on European roulette wheel
    RED_NUMBERS = {1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36}
    BLACK_NUMBERS = {2, 4, 6, 8, 10, 11, 13, 15, 17, 20, 22, 24, 26, 28, 29, 31, 33, 35}

    # Bet types that need a value, with its allowed range
    VALUE_RANGES = {
        "straight": (0, 36),
        "dozen": (1, 3),
        "column": (1, 3),
    }

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or default_rng

    def _get_payouts(self) -> Dict[str, float]:
        return get_game_odds("roulette")["payouts"]

    def _get_color(self, number: int) -> str:
        """Get the color of a roulette number."""
        if number == 0:
            return "green"
        elif number in self.RED_NUMBERS:
            return "red"
        else:
            return "black"

    def validate(self, params: RouletteParams):
        if not params.bets:
            raise InvalidGameParameters("Place at least one bet")

        payouts = self._get_payouts()
        min_bet = settings.games.get("roulette").min_bet
        for bet in params.bets:
            if bet.bet_type not in payouts:
                raise InvalidGameParameters(f"Invalid bet type: {bet.bet_type}")
            if not math.isfinite(bet.amount) or bet.amount <= 0:
                raise InvalidWagerAmount("Every bet must be greater than 0")
            if bet.amount < min_bet:
                raise InvalidWagerAmount(f"Each bet must be at least {min_bet}")

            value_range = self.VALUE_RANGES.get(bet.bet_type)
            if value_range is not None:
                low, high = value_range
                if bet.value is None or not low <= bet.value <= high:
                    raise InvalidGameParameters(
                        f"{bet.bet_type} bets need a value between {low} and {high}"
                    )

    def total_stake(self, params: RouletteParams) -> float:
        return round(sum(bet.amount for bet in params.bets), 2)

    def _check_win(self, number: int, bet: RouletteBet) -> bool:
        """Check if a bet wins based on the spin result."""
        bet_type = bet.bet_type

        if bet_type == "straight":
            return number == bet.value

        elif bet_type == "red":
            return number in self.RED_NUMBERS

        elif bet_type == "black":
            return number in self.BLACK_NUMBERS

        elif bet_type == "odd":
            return number != 0 and number % 2 == 1

        elif bet_type == "even":
            return number != 0 and number % 2 == 0

        elif bet_type == "low":
            return 1 <= number <= 18

        elif bet_type == "high":
            return 19 <= number <= 36

        elif bet_type == "dozen":
            return number != 0 and (number - 1) // 12 + 1 == bet.value

        elif bet_type == "column":
            # Column 1: 1,4,7,10... Column 2: 2,5,8,11... Column 3: 3,6,9,12...
            return number != 0 and number % 3 == bet.value % 3

        return False

    def settle(self, number: int, params: RouletteParams) -> Outcome:
        """Settle every sub-wager against a known pocket."""
        self.validate(params)
        payouts = self._get_payouts()

        results: List[Dict] = []
        winnings = 0.0
        for bet in params.bets:
            win = self._check_win(number, bet)
            payout = round(bet.amount * payouts[bet.bet_type], 2) if win else 0.0
            winnings += payout
            results.append(
                {
                    "bet_type": bet.bet_type,
                    "value": bet.value,
                    "amount": bet.amount,
                    "win": win,
                    "payout": payout,
                }
            )

        stake = self.total_stake(params)
        winnings = round(winnings, 2)

        return Outcome(
            won=winnings > 0,
            multiplier=winnings / stake,
            amount=stake,
            details={
                "number": number,
                "color": self._get_color(number),
                "bets": results,
                "winnings": winnings,
            },
        )

    def spin(self, params: RouletteParams) -> Outcome:
        """Spin the roulette wheel (0-36) and settle all bets."""
        self.validate(params)
        return self.settle(self.rng.uniform_int(37), params)

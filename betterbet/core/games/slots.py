from typing import List, Optional

from betterbet.core.models import Outcome
from betterbet.core.odds import get_game_odds, get_house_edge
from betterbet.core.rng import RandomSource, rng as default_rng


class SlotsGame:
    """
    Two-reel "6-7" machine. Each reel shows one of the symbols with equal
    chance; only the exact winning line (6 then 7) pays.
    Odds are loaded from the odds configuration.
    """

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or default_rng

    def _get_odds(self) -> tuple:
        config = get_game_odds("slots")
        return config["symbols"], config["winning_line"]

    def win_probability(self) -> float:
        symbols, winning_line = self._get_odds()
        return (1 / len(symbols)) ** len(winning_line)

    def multiplier(self) -> float:
        """Win multiplier: (1 - house edge) / chance of the winning line."""
        return round((1 - get_house_edge("slots")) / self.win_probability(), 2)

    def _spin_reel(self, symbols: List[str]) -> str:
        """Spin a single reel and return the symbol."""
        return symbols[self.rng.uniform_int(len(symbols))]

    def spin(self, bet_amount: float) -> Outcome:
        """
        Spin the slot machine.

        Returns:
            Outcome with the reels in its details
        """
        symbols, winning_line = self._get_odds()

        reels = [self._spin_reel(symbols) for _ in winning_line]
        win = reels == list(winning_line)
        multiplier = self.multiplier()

        return Outcome(
            won=win,
            multiplier=multiplier if win else 0.0,
            amount=bet_amount,
            details={
                "reels": reels,
                "winning_line": list(winning_line),
                "win_multiplier": multiplier,
            },
        )

"""Outcome resolvers, one per game kind."""

from .dice import DiceGame
from .mines import MinesGame, MinesBoard
from .plinko import PlinkoGame
from .blackjack import BlackjackGame
from .roulette import RouletteGame
from .baccarat import BaccaratGame
from .slots import SlotsGame

__all__ = [
    "DiceGame",
    "MinesGame",
    "MinesBoard",
    "PlinkoGame",
    "BlackjackGame",
    "RouletteGame",
    "BaccaratGame",
    "SlotsGame",
]

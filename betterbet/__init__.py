"""BetterBet demo casino: wager evaluation and payout engine."""

__version__ = "0.3.0"

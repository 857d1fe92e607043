"""
WagerLedger: the only component that changes a balance.

A wager is first *placed* (validated and reserved against the balance), then
*settled* exactly once with its Outcome. Every balance write happens under one
lock, so concurrent resolutions (several plinko balls, several mines boards)
never race on the read-modify-write.
"""

import math
import threading
import time
import uuid
from typing import Dict, Optional

from pydantic import BaseModel

from betterbet.config import settings
from betterbet.core.exceptions import (
    IllegalStateTransition,
    InsufficientBalance,
    InvalidGameParameters,
    InvalidWagerAmount,
)
from betterbet.core.logger import get_logger
from betterbet.core.models import Outcome, Wager
from betterbet.core.wallet import BalanceStore

logger = get_logger("ledger")


class Ticket(BaseModel):
    """An accepted, not yet settled wager."""

    round_id: str
    wager: Wager
    placed_at: float
    settled: bool = False

    @property
    def amount(self) -> float:
        return self.wager.amount


class LedgerStats(BaseModel):
    total_wagered: float = 0.0
    total_won: float = 0.0
    total_lost: float = 0.0
    bets_placed: int = 0
    total_returned: float = 0.0  # every payout, winning or not

    @property
    def net_profit(self) -> float:
        return round(self.total_returned - self.total_wagered, 2)


def _round_context(ticket: Ticket) -> dict:
    return {"game": ticket.wager.game.value, "round_id": ticket.round_id}


def check_amount(amount: float, what: str = "Bet amount") -> float:
    """Reject non-numeric, non-finite and non-positive amounts."""
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise InvalidWagerAmount(f"{what} must be a number")
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidWagerAmount(f"{what} must be greater than 0")
    return amount


class WagerLedger:
    """Applies outcomes to a BalanceStore and keeps session statistics."""

    def __init__(self, store: BalanceStore, starting_balance: Optional[float] = None):
        self.store = store
        self.starting_balance = (
            settings.economy.starting_balance if starting_balance is None else starting_balance
        )
        self.stats = LedgerStats()
        self._pending: Dict[str, Ticket] = {}
        self._lock = threading.RLock()

    # ==================== Queries ====================

    @property
    def balance(self) -> float:
        return self.store.get_balance()

    def reserved(self) -> float:
        """Total stake of placed but unsettled wagers."""
        with self._lock:
            return round(sum(t.amount for t in self._pending.values()), 2)

    def available_balance(self) -> float:
        with self._lock:
            return round(self.store.get_balance() - self.reserved(), 2)

    def pending(self, round_id: str) -> Optional[Ticket]:
        return self._pending.get(round_id)

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "balance": round(self.store.get_balance(), 2),
                "available": self.available_balance(),
                "in_play": self.reserved(),
                "total_wagered": round(self.stats.total_wagered, 2),
                "total_won": round(self.stats.total_won, 2),
                "total_lost": round(self.stats.total_lost, 2),
                "bets_placed": self.stats.bets_placed,
                "net_profit": self.stats.net_profit,
            }

    # ==================== Wagers ====================

    def _check_limits(self, wager: Wager):
        game_config = settings.games.get(wager.game.value)
        if not game_config.enabled:
            raise InvalidGameParameters(f"{wager.game.value} is disabled")
        if wager.amount < game_config.min_bet or wager.amount > game_config.max_bet:
            raise InvalidWagerAmount(
                f"Bet must be between {game_config.min_bet} and {game_config.max_bet}"
            )

    def place(self, wager: Wager) -> Ticket:
        """
        Accept a wager: validate the stake, reserve it against the balance and
        count it in the statistics. Raises without touching anything on rejection.
        """
        check_amount(wager.amount)
        self._check_limits(wager)

        with self._lock:
            available = self.available_balance()
            if wager.amount > available:
                logger.info(
                    f"Rejected {wager.game.value} bet of {wager.amount:.2f}: "
                    f"only {available:.2f} available"
                )
                raise InsufficientBalance("Insufficient balance")

            ticket = Ticket(
                round_id=uuid.uuid4().hex[:12],
                wager=wager,
                placed_at=time.time(),
            )
            self._pending[ticket.round_id] = ticket
            self.stats.bets_placed += 1
            self.stats.total_wagered += wager.amount

        logger.debug(f"Placed bet of {wager.amount:.2f}", extra=_round_context(ticket))
        return ticket

    def raise_stake(self, ticket: Ticket, extra: float) -> Ticket:
        """Add `extra` to an unsettled wager (blackjack double down)."""
        extra = check_amount(extra, "Additional stake")

        with self._lock:
            if self._pending.get(ticket.round_id) is not ticket:
                raise IllegalStateTransition("Round is not open for additional stake")
            if extra > self.available_balance():
                raise InsufficientBalance("Insufficient balance to raise the stake")

            ticket.wager = ticket.wager.model_copy(
                update={"amount": round(ticket.wager.amount + extra, 2)}
            )
            self.stats.total_wagered += extra

        logger.debug(f"Raised stake to {ticket.amount:.2f}", extra=_round_context(ticket))
        return ticket

    def apply_outcome(self, ticket: Ticket, outcome: Outcome) -> float:
        """
        Settle a placed wager: balance += payout - stake, clamped at zero.
        A ticket can be settled only once. Returns the new balance.
        """
        with self._lock:
            if ticket.settled or self._pending.get(ticket.round_id) is not ticket:
                raise IllegalStateTransition(f"Round {ticket.round_id} is already settled")
            if not math.isclose(outcome.amount, ticket.amount, abs_tol=1e-9):
                raise IllegalStateTransition(
                    f"Outcome stake {outcome.amount} does not match wager {ticket.amount}"
                )

            balance = self.store.get_balance()
            new_balance = round(balance + outcome.payout - ticket.amount, 2)
            if new_balance < 0:
                logger.warning(
                    f"Balance would go negative ({new_balance:.2f}); clamping",
                    extra=_round_context(ticket),
                )
                new_balance = 0.0

            self.store.set_balance(new_balance)

            self.stats.total_returned += outcome.payout
            if outcome.won:
                self.stats.total_won += outcome.payout
            else:
                self.stats.total_lost += max(0.0, ticket.amount - outcome.payout)

            del self._pending[ticket.round_id]
            ticket.settled = True

        logger.debug(
            f"Settled x{outcome.multiplier}: payout {outcome.payout:.2f}, balance {new_balance:.2f}",
            extra=_round_context(ticket),
        )
        return new_balance

    def cancel(self, ticket: Ticket):
        """Withdraw a placed wager that never got an outcome, as if it was never placed."""
        with self._lock:
            if self._pending.pop(ticket.round_id, None) is None:
                raise IllegalStateTransition(f"Round {ticket.round_id} is not open")
            self.stats.bets_placed -= 1
            self.stats.total_wagered -= ticket.amount

        logger.debug("Cancelled", extra=_round_context(ticket))

    # ==================== Wallet ====================

    def deposit(self, amount: float) -> float:
        """Cash in virtual credits."""
        amount = check_amount(amount, "Deposit")
        if amount > settings.economy.max_deposit:
            raise InvalidWagerAmount(f"Deposit cannot exceed {settings.economy.max_deposit}")

        with self._lock:
            new_balance = round(self.store.get_balance() + amount, 2)
            self.store.set_balance(new_balance)

        logger.info(f"Deposited {amount:.2f}, balance {new_balance:.2f}")
        return new_balance

    def withdraw(self, amount: float) -> float:
        """Cash out; money riding on open rounds cannot be withdrawn."""
        amount = check_amount(amount, "Withdrawal")

        with self._lock:
            if amount > self.available_balance():
                raise InsufficientBalance("Insufficient balance")
            new_balance = round(self.store.get_balance() - amount, 2)
            self.store.set_balance(new_balance)

        logger.info(f"Withdrew {amount:.2f}, balance {new_balance:.2f}")
        return new_balance

    def reset(self) -> float:
        """Restore the starting balance, clear statistics and drop open rounds."""
        with self._lock:
            self._pending.clear()
            self.stats = LedgerStats()
            self.store.set_balance(self.starting_balance)

        logger.info(f"Wallet reset to {self.starting_balance:.2f}")
        return self.starting_balance

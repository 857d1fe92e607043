"""
CasinoSession wires the pieces together for one player:

    wager -> WagerLedger.place -> resolver -> WagerLedger.apply_outcome -> SessionHistory

Resolvers never touch the balance and the ledger never draws randomness.
Rounds that span several actions (mines, blackjack) keep their ticket open
until the resolver reports a final Outcome.
"""

from typing import Dict, List, Optional, Tuple

from betterbet.config import settings
from betterbet.core.exceptions import InvalidGameParameters, RoundNotFound
from betterbet.core.games.baccarat import BaccaratGame
from betterbet.core.games.blackjack import BlackjackGame, BlackjackRound
from betterbet.core.games.dice import DiceGame
from betterbet.core.games.mines import MinesBoard, MinesGame
from betterbet.core.games.plinko import PlinkoGame
from betterbet.core.games.roulette import RouletteGame
from betterbet.core.games.slots import SlotsGame
from betterbet.core.history import SessionHistory, make_entry
from betterbet.core.ledger import Ticket, WagerLedger
from betterbet.core.logger import get_logger
from betterbet.core.models import (
    BaccaratParams,
    DiceParams,
    GameKind,
    MinesParams,
    Outcome,
    PlinkoParams,
    RouletteParams,
    Wager,
)
from betterbet.core.rng import RandomSource, rng as default_rng
from betterbet.core.wallet import BalanceStore, InMemoryBalanceStore, JsonFileBalanceStore

logger = get_logger("session")


class CasinoSession:
    def __init__(
        self,
        store: BalanceStore,
        rng: Optional[RandomSource] = None,
        starting_balance: Optional[float] = None,
        history_sizes: Optional[Dict[GameKind, int]] = None,
    ):
        rng = rng or default_rng
        self.ledger = WagerLedger(store, starting_balance)

        self.dice = DiceGame(rng)
        self.mines = MinesGame(rng)
        self.plinko = PlinkoGame(rng)
        self.blackjack = BlackjackGame(rng)
        self.roulette = RouletteGame(rng)
        self.baccarat = BaccaratGame(rng)
        self.slots = SlotsGame(rng)

        sizes = history_sizes or {}
        self.histories: Dict[GameKind, SessionHistory] = {
            kind: SessionHistory(sizes.get(kind, settings.games.get(kind.value).history_size))
            for kind in GameKind
        }
        # Tickets of rounds still waiting for their outcome
        self._open: Dict[str, Ticket] = {}

    @classmethod
    def in_memory(cls, balance: Optional[float] = None, rng: Optional[RandomSource] = None):
        starting = settings.economy.starting_balance if balance is None else balance
        return cls(InMemoryBalanceStore(starting), rng=rng, starting_balance=starting)

    @classmethod
    def from_settings(cls, rng: Optional[RandomSource] = None):
        store = JsonFileBalanceStore(
            settings.paths.get_wallet_path(), settings.economy.starting_balance
        )
        return cls(store, rng=rng)

    # ==================== Plumbing ====================

    def history(self, game: GameKind) -> SessionHistory:
        return self.histories[game]

    def _settle(self, ticket: Ticket, outcome: Outcome) -> Tuple[Outcome, float]:
        new_balance = self.ledger.apply_outcome(ticket, outcome)
        self._open.pop(ticket.round_id, None)
        self.histories[ticket.wager.game].record(make_entry(ticket.round_id, ticket.wager, outcome))
        return outcome, new_balance

    def _play(self, wager: Wager, resolve) -> Tuple[Outcome, float]:
        """Place, resolve and settle a single-step round."""
        ticket = self.ledger.place(wager)
        try:
            outcome = resolve()
        except Exception:
            self.ledger.cancel(ticket)
            raise
        return self._settle(ticket, outcome)

    def _ticket(self, round_id: str) -> Ticket:
        ticket = self._open.get(round_id)
        if ticket is None:
            raise RoundNotFound(f"Round {round_id} not found")
        return ticket

    # ==================== Single-step games ====================

    def play_dice(self, amount: float, params: DiceParams) -> Tuple[Outcome, float]:
        self.dice.validate(params)
        wager = Wager(amount=amount, game=GameKind.DICE, parameters=params)
        return self._play(wager, lambda: self.dice.roll(amount, params))

    def drop_plinko(self, amount: float, params: PlinkoParams) -> Tuple[Outcome, float]:
        self.plinko.multipliers(params)
        wager = Wager(amount=amount, game=GameKind.PLINKO, parameters=params)
        return self._play(wager, lambda: self.plinko.drop(amount, params))

    def drop_plinko_many(self, amount: float, params: PlinkoParams, count: int) -> List[Tuple[Outcome, float]]:
        """
        Auto-drop: `count` independent balls. Stops at the first ball the
        balance can no longer cover; already dropped balls stay settled.
        """
        if not 1 <= count <= 100:
            raise InvalidGameParameters("Ball count must be between 1 and 100")
        results = []
        for _ in range(count):
            if results and amount > self.ledger.available_balance():
                break
            results.append(self.drop_plinko(amount, params))
        return results

    def spin_roulette(self, params: RouletteParams) -> Tuple[Outcome, float]:
        self.roulette.validate(params)
        wager = Wager(
            amount=self.roulette.total_stake(params), game=GameKind.ROULETTE, parameters=params
        )
        return self._play(wager, lambda: self.roulette.spin(params))

    def deal_baccarat(self, params: BaccaratParams) -> Tuple[Outcome, float]:
        self.baccarat.validate(params)
        wager = Wager(
            amount=self.baccarat.total_stake(params), game=GameKind.BACCARAT, parameters=params
        )
        return self._play(wager, lambda: self.baccarat.deal(params))

    def spin_slots(self, amount: float) -> Tuple[Outcome, float]:
        wager = Wager(amount=amount, game=GameKind.SLOTS)
        return self._play(wager, lambda: self.slots.spin(amount))

    # ==================== Mines ====================

    def start_mines(self, amount: float, params: MinesParams) -> MinesBoard:
        self.mines.validate(params)
        ticket = self.ledger.place(Wager(amount=amount, game=GameKind.MINES, parameters=params))
        try:
            board = self.mines.start(ticket.round_id, amount, params)
        except Exception:
            self.ledger.cancel(ticket)
            raise
        self._open[ticket.round_id] = ticket
        return board

    def reveal_mine_tile(self, round_id: str, index: int) -> Tuple[MinesBoard, Optional[Outcome], float]:
        ticket = self._ticket(round_id)
        board, outcome = self.mines.reveal(round_id, index)
        if outcome is None:
            return board, None, self.ledger.balance
        _, new_balance = self._settle(ticket, outcome)
        return board, outcome, new_balance

    def cash_out_mines(self, round_id: str) -> Tuple[Outcome, float]:
        ticket = self._ticket(round_id)
        outcome = self.mines.cash_out(round_id)
        return self._settle(ticket, outcome)

    # ==================== Blackjack ====================

    def _after_blackjack_action(self, game: BlackjackRound) -> Tuple[BlackjackRound, float]:
        if game.outcome is not None:
            _, new_balance = self._settle(self._open[game.round_id], game.outcome)
            return game, new_balance
        return game, self.ledger.balance

    def deal_blackjack(self, amount: float) -> Tuple[BlackjackRound, float]:
        ticket = self.ledger.place(Wager(amount=amount, game=GameKind.BLACKJACK))
        try:
            game = self.blackjack.deal(ticket.round_id, amount)
        except Exception:
            self.ledger.cancel(ticket)
            raise
        self._open[ticket.round_id] = ticket
        return self._after_blackjack_action(game)

    def hit_blackjack(self, round_id: str) -> Tuple[BlackjackRound, float]:
        self._ticket(round_id)
        return self._after_blackjack_action(self.blackjack.hit(round_id))

    def stand_blackjack(self, round_id: str) -> Tuple[BlackjackRound, float]:
        self._ticket(round_id)
        return self._after_blackjack_action(self.blackjack.stand(round_id))

    def double_blackjack(self, round_id: str) -> Tuple[BlackjackRound, float]:
        """Double down: legality first, then funds, then the card."""
        ticket = self._ticket(round_id)
        self.blackjack.check_double(round_id)
        self.ledger.raise_stake(ticket, ticket.amount)
        game = self.blackjack.double_down(round_id, ticket.amount)
        return self._after_blackjack_action(game)

    # ==================== Wallet ====================

    def reset(self) -> float:
        """Fresh wallet: open rounds are abandoned and history cleared."""
        for round_id in list(self._open):
            self.mines.discard(round_id)
            self.blackjack.discard(round_id)
        self._open.clear()
        for history in self.histories.values():
            history.clear()
        return self.ledger.reset()

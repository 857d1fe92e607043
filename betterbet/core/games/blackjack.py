import threading
from enum import Enum
from typing import Dict, List, Optional

from betterbet.core.exceptions import IllegalStateTransition, RoundNotFound
from betterbet.core.models import Outcome
from betterbet.core.odds import get_game_odds
from betterbet.core.rng import RandomSource, rng as default_rng


class Card:
    """Represents a playing card."""

    SUITS = ["♠", "♥", "♦", "♣"]
    RANKS = ["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]

    def __init__(self, rank: str, suit: str = "♠"):
        self.rank = rank
        self.suit = suit

    @property
    def value(self) -> int:
        """Get the blackjack value of the card."""
        if self.rank in ["J", "Q", "K"]:
            return 10
        elif self.rank == "A":
            return 11  # Ace is 11 by default, adjusted in hand calculation
        else:
            return int(self.rank)

    def to_dict(self) -> Dict:
        return {"rank": self.rank, "suit": self.suit, "display": f"{self.rank}{self.suit}"}

    def __repr__(self):
        return f"{self.rank}{self.suit}"


class BlackjackHand:
    """Represents a blackjack hand."""

    def __init__(self, cards: Optional[List[Card]] = None):
        self.cards: List[Card] = list(cards or [])

    def add_card(self, card: Card):
        self.cards.append(card)

    @property
    def value(self) -> int:
        """Calculate the best hand value, adjusting aces as needed."""
        total = sum(card.value for card in self.cards)
        aces = sum(1 for card in self.cards if card.rank == "A")

        # Adjust aces from 11 to 1 if busting
        while total > 21 and aces > 0:
            total -= 10
            aces -= 1

        return total

    @property
    def is_bust(self) -> bool:
        return self.value > 21

    @property
    def is_blackjack(self) -> bool:
        return len(self.cards) == 2 and self.value == 21

    def to_list(self) -> List[Dict]:
        return [card.to_dict() for card in self.cards]


class HandState(str, Enum):
    BETTING = "betting"
    PLAYER_TURN = "player_turn"
    DEALER_TURN = "dealer_turn"
    SETTLED = "settled"


class BlackjackRound:
    """One hand: Betting -> PlayerTurn -> DealerTurn -> Settled."""

    def __init__(self, round_id: str, bet_amount: float, deck: List[Card]):
        self.round_id = round_id
        self.bet = bet_amount
        self.deck = deck
        self.player_hand = BlackjackHand()
        self.dealer_hand = BlackjackHand()
        self.state = HandState.BETTING
        self.doubled = False
        self.result: Optional[str] = None
        self.outcome: Optional[Outcome] = None

    def draw(self) -> Card:
        if not self.deck:
            raise IllegalStateTransition("No cards remaining")
        return self.deck.pop()

    def require(self, state: HandState, action: str):
        if self.state != state:
            raise IllegalStateTransition(f"Cannot {action} while {self.state.value}")

    def to_dict(self) -> Dict:
        settled = self.state == HandState.SETTLED
        data = {
            "game_id": self.round_id,
            "player_hand": self.player_hand.to_list(),
            "player_value": self.player_hand.value,
            "status": self.state.value,
            "bet": self.bet,
            "doubled": self.doubled,
            "can_double": self.state == HandState.PLAYER_TURN and len(self.player_hand.cards) == 2,
            "dealer_hidden": not settled,
        }
        if settled:
            data["dealer_hand"] = self.dealer_hand.to_list()
            data["dealer_value"] = self.dealer_hand.value
            data["outcome"] = self.result
        elif self.dealer_hand.cards:
            data["dealer_up_card"] = self.dealer_hand.cards[0].to_dict()
        return data


class BlackjackGame:
    """
    Standard Blackjack game logic.
    Supports deal, hit, stand and double down. The dealer draws below 17
    and stands on every 17, soft or hard.
    """

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or default_rng
        # Open hands by round id
        self.active_games: Dict[str, BlackjackRound] = {}
        self._lock = threading.Lock()

    def _get_odds(self) -> dict:
        return get_game_odds("blackjack")

    def _create_deck(self) -> List[Card]:
        """Create and shuffle a standard 52-card deck."""
        deck = [Card(rank, suit) for suit in Card.SUITS for rank in Card.RANKS]
        return self.rng.shuffle(deck)

    def _get_game(self, round_id: str) -> BlackjackRound:
        with self._lock:
            game = self.active_games.get(round_id)
        if game is None:
            raise RoundNotFound(f"Blackjack hand {round_id} not found")
        return game

    def deal(self, round_id: str, bet_amount: float, deck: Optional[List[Card]] = None) -> BlackjackRound:
        """
        Start a new hand: two cards each, alternating, player first.
        Naturals settle immediately. `deck` is drawn from the end.
        """
        game = BlackjackRound(round_id, bet_amount, deck if deck is not None else self._create_deck())

        game.player_hand.add_card(game.draw())
        game.dealer_hand.add_card(game.draw())
        game.player_hand.add_card(game.draw())
        game.dealer_hand.add_card(game.draw())
        game.state = HandState.PLAYER_TURN

        odds = self._get_odds()
        if game.player_hand.is_blackjack:
            if game.dealer_hand.is_blackjack:
                return self._finalize_game(game, "push", odds["push_payout"])
            return self._finalize_game(game, "blackjack", odds["blackjack_payout"])

        if game.dealer_hand.is_blackjack:
            return self._finalize_game(game, "dealer_blackjack", 0)

        with self._lock:
            self.active_games[round_id] = game
        return game

    def hit(self, round_id: str) -> BlackjackRound:
        """Draw another card for the player."""
        game = self._get_game(round_id)
        game.require(HandState.PLAYER_TURN, "hit")

        game.player_hand.add_card(game.draw())

        if game.player_hand.is_bust:
            return self._finalize_game(game, "bust", 0)

        # 21 stands automatically
        if game.player_hand.value == 21:
            return self.stand(round_id)

        return game

    def stand(self, round_id: str) -> BlackjackRound:
        """Player stands. Dealer plays out their hand."""
        game = self._get_game(round_id)
        game.require(HandState.PLAYER_TURN, "stand")
        return self._play_dealer(game)

    def check_double(self, round_id: str) -> BlackjackRound:
        """Raise unless doubling is legal right now (first action on two cards)."""
        game = self._get_game(round_id)
        game.require(HandState.PLAYER_TURN, "double down")
        if len(game.player_hand.cards) != 2:
            raise IllegalStateTransition("Double down is only allowed on the first two cards")
        return game

    def double_down(self, round_id: str, new_bet: float) -> BlackjackRound:
        """
        Double the stake, take exactly one card, then the dealer plays.
        The caller has already secured `new_bet` against the balance.
        """
        game = self.check_double(round_id)
        game.bet = new_bet
        game.doubled = True

        game.player_hand.add_card(game.draw())
        if game.player_hand.is_bust:
            return self._finalize_game(game, "bust", 0)

        return self._play_dealer(game)

    def _play_dealer(self, game: BlackjackRound) -> BlackjackRound:
        game.state = HandState.DEALER_TURN
        odds = self._get_odds()
        dealer_hand = game.dealer_hand

        while dealer_hand.value < odds["dealer_stands_on"]:
            dealer_hand.add_card(game.draw())

        player_val = game.player_hand.value
        dealer_val = dealer_hand.value

        if dealer_hand.is_bust:
            return self._finalize_game(game, "dealer_bust", odds["win_payout"])
        elif player_val > dealer_val:
            return self._finalize_game(game, "win", odds["win_payout"])
        elif player_val < dealer_val:
            return self._finalize_game(game, "lose", 0)
        return self._finalize_game(game, "push", odds["push_payout"])

    def _finalize_game(self, game: BlackjackRound, result: str, multiplier: float) -> BlackjackRound:
        """Settle the hand and drop it from the open hands."""
        game.state = HandState.SETTLED
        game.result = result
        game.outcome = Outcome(
            won=result in ("blackjack", "win", "dealer_bust"),
            multiplier=multiplier,
            amount=game.bet,
            details=game.to_dict(),
        )

        with self._lock:
            self.active_games.pop(game.round_id, None)

        return game

    def discard(self, round_id: str):
        with self._lock:
            self.active_games.pop(round_id, None)

    def get_active_game_count(self) -> int:
        with self._lock:
            return len(self.active_games)

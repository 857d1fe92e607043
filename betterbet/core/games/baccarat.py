"""
Baccarat (punto banco) from an eight-deck shoe.
Bets: player, banker, tie and the two pair side bets. On a tie the
player and banker bets lose.
"""

import math
from typing import Dict, List, Optional

from betterbet.config import settings
from betterbet.core.exceptions import InvalidGameParameters, InvalidWagerAmount
from betterbet.core.games.blackjack import Card
from betterbet.core.models import BaccaratParams, Outcome
from betterbet.core.odds import get_game_odds
from betterbet.core.rng import RandomSource, rng as default_rng

MAIN_BETS = ("player", "banker", "tie")


def card_points(card: Card) -> int:
    if card.rank == "A":
        return 1
    if card.rank in ("10", "J", "Q", "K"):
        return 0
    return int(card.rank)


def hand_score(cards: List[Card]) -> int:
    return sum(card_points(card) for card in cards) % 10


def is_pair(cards: List[Card]) -> bool:
    return len(cards) >= 2 and cards[0].rank == cards[1].rank


def banker_draws(banker_score: int, player_third: Optional[Card]) -> bool:
    """Third-card rule for the banker."""
    if player_third is None:
        return banker_score <= 5

    p3 = card_points(player_third)
    if banker_score <= 2:
        return True
    if banker_score == 3:
        return p3 != 8
    if banker_score == 4:
        return 2 <= p3 <= 7
    if banker_score == 5:
        return 4 <= p3 <= 7
    if banker_score == 6:
        return p3 in (6, 7)
    return False


class BaccaratGame:
    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or default_rng

    def _get_odds(self) -> dict:
        return get_game_odds("baccarat")

    def _create_shoe(self) -> List[Card]:
        decks = self._get_odds().get("decks", 8)
        shoe = [
            Card(rank, suit)
            for _ in range(decks)
            for suit in Card.SUITS
            for rank in Card.RANKS
        ]
        return self.rng.shuffle(shoe)

    def validate(self, params: BaccaratParams):
        payouts = self._get_odds()["payouts"]
        min_bet = settings.games.get("baccarat").min_bet
        if not params.bets:
            raise InvalidGameParameters("Place at least one bet")
        for bet in params.bets:
            if bet.bet_type not in payouts:
                raise InvalidGameParameters(f"Invalid bet type: {bet.bet_type}")
            if not math.isfinite(bet.amount) or bet.amount <= 0:
                raise InvalidWagerAmount("Every bet must be greater than 0")
            if bet.amount < min_bet:
                raise InvalidWagerAmount(f"Each bet must be at least {min_bet}")
        if not any(bet.bet_type in MAIN_BETS for bet in params.bets):
            raise InvalidGameParameters("Bet on player, banker or tie")

    def total_stake(self, params: BaccaratParams) -> float:
        return round(sum(bet.amount for bet in params.bets), 2)

    def deal_hands(self, shoe: List[Card]) -> Dict[str, List[Card]]:
        """Deal both hands from the end of `shoe`, applying the tableau."""
        player = [shoe.pop(), shoe.pop()]
        banker = [shoe.pop(), shoe.pop()]

        player_score = hand_score(player)
        banker_score = hand_score(banker)

        # Naturals (8 or 9) stand on two cards
        if player_score < 8 and banker_score < 8:
            player_third = None
            if player_score <= 5:
                player_third = shoe.pop()
                player.append(player_third)
            if banker_draws(banker_score, player_third):
                banker.append(shoe.pop())

        return {"player": player, "banker": banker}

    def settle(self, player: List[Card], banker: List[Card], params: BaccaratParams) -> Outcome:
        self.validate(params)
        payouts = self._get_odds()["payouts"]

        player_score = hand_score(player)
        banker_score = hand_score(banker)
        if player_score > banker_score:
            result = "player"
        elif banker_score > player_score:
            result = "banker"
        else:
            result = "tie"

        winners = {result}
        if is_pair(player):
            winners.add("player_pair")
        if is_pair(banker):
            winners.add("banker_pair")

        winnings = 0.0
        for bet in params.bets:
            if bet.bet_type in winners:
                winnings += round(bet.amount * payouts[bet.bet_type], 2)
        winnings = round(winnings, 2)
        stake = self.total_stake(params)

        return Outcome(
            won=winnings > 0,
            multiplier=winnings / stake,
            amount=stake,
            details={
                "player_hand": [card.to_dict() for card in player],
                "banker_hand": [card.to_dict() for card in banker],
                "player_score": player_score,
                "banker_score": banker_score,
                "result": result,
                "player_pair": is_pair(player),
                "banker_pair": is_pair(banker),
                "winnings": winnings,
            },
        )

    def deal(self, params: BaccaratParams) -> Outcome:
        self.validate(params)
        hands = self.deal_hands(self._create_shoe())
        return self.settle(hands["player"], hands["banker"], params)

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address

from betterbet.config import settings
from betterbet.core.exceptions import InvalidGameParameters
from betterbet.core.logger import get_logger
from betterbet.core.models import (
    BaccaratBet,
    BaccaratParams,
    DiceParams,
    Direction,
    GameKind,
    MinesParams,
    PlinkoParams,
    Risk,
    RouletteBet,
    RouletteParams,
)
from betterbet.core.odds import get_game_odds, get_house_edge, plinko_row_counts
from betterbet.core.session import CasinoSession

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit.enabled)

logger = get_logger("api")

router = APIRouter()

# ==================== Request Models ====================

class BetRequest(BaseModel):
    bet: float

class AmountRequest(BaseModel):
    amount: float

class DiceRequest(BaseModel):
    bet: float
    target: float
    direction: Direction

class MinesStartRequest(BaseModel):
    bet: float
    mines: int = 3

class MinesRevealRequest(BaseModel):
    game_id: str
    tile: int

class GameIdRequest(BaseModel):
    game_id: str

class PlinkoRequest(BaseModel):
    bet: float
    rows: int = 8
    risk: Risk = Risk.MEDIUM
    balls: int = 1

class RouletteRequest(BaseModel):
    bets: List[RouletteBet]

class BaccaratRequest(BaseModel):
    bets: List[BaccaratBet]

class LegacyRequest(BaseModel):
    kind: str
    amount: float
    guess: Optional[str] = None


# ==================== Helpers ====================

def get_session(request: Request) -> CasinoSession:
    return request.app.state.session

def get_rate_limit():
    """Get rate limit string from config."""
    return settings.rate_limit.game_requests

def get_api_rate_limit():
    return settings.rate_limit.api_requests

def get_game(game: str) -> GameKind:
    try:
        return GameKind(game)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown game: {game}")


# ==================== Wallet Endpoints ====================

@router.get("/wallet")
@limiter.limit(get_api_rate_limit)
async def get_wallet(request: Request):
    return get_session(request).ledger.snapshot()

@router.post("/wallet/deposit")
@limiter.limit(get_api_rate_limit)
async def deposit(request: Request, data: AmountRequest):
    session = get_session(request)
    session.ledger.deposit(data.amount)
    return session.ledger.snapshot()

@router.post("/wallet/withdraw")
@limiter.limit(get_api_rate_limit)
async def withdraw(request: Request, data: AmountRequest):
    session = get_session(request)
    session.ledger.withdraw(data.amount)
    return session.ledger.snapshot()

@router.post("/wallet/reset")
@limiter.limit(get_api_rate_limit)
async def reset_wallet(request: Request):
    session = get_session(request)
    session.reset()
    logger.info("Wallet reset through the API")
    return session.ledger.snapshot()

@router.get("/history/{game}")
@limiter.limit(get_api_rate_limit)
async def get_history(request: Request, game: str):
    history = get_session(request).history(get_game(game))
    return {"game": game, "history": [entry.to_dict() for entry in history.list()]}

@router.get("/odds/{game}")
@limiter.limit(get_api_rate_limit)
async def get_odds(request: Request, game: str):
    kind = get_game(game)
    session = get_session(request)
    odds = dict(get_game_odds(kind.value))

    if kind in (GameKind.DICE, GameKind.MINES, GameKind.SLOTS):
        odds["house_edge"] = get_house_edge(kind.value)
    if kind == GameKind.PLINKO:
        odds["expected_return"] = {
            str(rows): {
                risk.value: round(session.plinko.expected_return(PlinkoParams(rows=rows, risk=risk)), 4)
                for risk in Risk
            }
            for rows in plinko_row_counts()
        }
    if kind == GameKind.SLOTS:
        odds["win_multiplier"] = session.slots.multiplier()
    return {"game": kind.value, "odds": odds}


# ==================== Game Endpoints ====================

@router.post("/games/dice/roll")
@limiter.limit(get_rate_limit)
async def dice_roll(request: Request, data: DiceRequest):
    session = get_session(request)
    outcome, _ = session.play_dice(data.bet, DiceParams(target=data.target, direction=data.direction))
    return {**outcome.to_dict(), "balance": session.ledger.snapshot()}

@router.post("/games/mines/start")
@limiter.limit(get_rate_limit)
async def mines_start(request: Request, data: MinesStartRequest):
    session = get_session(request)
    board = session.start_mines(data.bet, MinesParams(mine_count=data.mines))
    return {**board.to_dict(), "balance": session.ledger.snapshot()}

@router.post("/games/mines/reveal")
@limiter.limit(get_rate_limit)
async def mines_reveal(request: Request, data: MinesRevealRequest):
    session = get_session(request)
    board, outcome, _ = session.reveal_mine_tile(data.game_id, data.tile)
    result = outcome.to_dict() if outcome is not None else board.to_dict()
    return {**result, "balance": session.ledger.snapshot()}

@router.post("/games/mines/cashout")
@limiter.limit(get_rate_limit)
async def mines_cashout(request: Request, data: GameIdRequest):
    session = get_session(request)
    outcome, _ = session.cash_out_mines(data.game_id)
    return {**outcome.to_dict(), "balance": session.ledger.snapshot()}

@router.post("/games/plinko/drop")
@limiter.limit(get_rate_limit)
async def plinko_drop(request: Request, data: PlinkoRequest):
    session = get_session(request)
    params = PlinkoParams(rows=data.rows, risk=data.risk)

    if data.balls == 1:
        outcome, _ = session.drop_plinko(data.bet, params)
        return {**outcome.to_dict(), "balance": session.ledger.snapshot()}

    results = session.drop_plinko_many(data.bet, params, data.balls)
    return {
        "balls": [outcome.to_dict() for outcome, _ in results],
        "balance": session.ledger.snapshot(),
    }

@router.post("/games/blackjack/deal")
@limiter.limit(get_rate_limit)
async def blackjack_deal(request: Request, data: BetRequest):
    session = get_session(request)
    game, _ = session.deal_blackjack(data.bet)
    return _blackjack_response(session, game)

@router.post("/games/blackjack/hit")
@limiter.limit(get_rate_limit)
async def blackjack_hit(request: Request, data: GameIdRequest):
    session = get_session(request)
    game, _ = session.hit_blackjack(data.game_id)
    return _blackjack_response(session, game)

@router.post("/games/blackjack/stand")
@limiter.limit(get_rate_limit)
async def blackjack_stand(request: Request, data: GameIdRequest):
    session = get_session(request)
    game, _ = session.stand_blackjack(data.game_id)
    return _blackjack_response(session, game)

@router.post("/games/blackjack/double")
@limiter.limit(get_rate_limit)
async def blackjack_double(request: Request, data: GameIdRequest):
    session = get_session(request)
    game, _ = session.double_blackjack(data.game_id)
    return _blackjack_response(session, game)

def _blackjack_response(session: CasinoSession, game) -> dict:
    result = game.outcome.to_dict() if game.outcome is not None else game.to_dict()
    return {**result, "balance": session.ledger.snapshot()}

@router.post("/games/roulette/spin")
@limiter.limit(get_rate_limit)
async def roulette_spin(request: Request, data: RouletteRequest):
    session = get_session(request)
    outcome, _ = session.spin_roulette(RouletteParams(bets=data.bets))
    return {**outcome.to_dict(), "balance": session.ledger.snapshot()}

@router.post("/games/baccarat/deal")
@limiter.limit(get_rate_limit)
async def baccarat_deal(request: Request, data: BaccaratRequest):
    session = get_session(request)
    outcome, _ = session.deal_baccarat(BaccaratParams(bets=data.bets))
    return {**outcome.to_dict(), "balance": session.ledger.snapshot()}

@router.post("/games/slots/spin")
@limiter.limit(get_rate_limit)
async def slots_spin(request: Request, data: BetRequest):
    session = get_session(request)
    outcome, _ = session.spin_slots(data.bet)
    return {**outcome.to_dict(), "balance": session.ledger.snapshot()}


# ==================== Legacy Endpoints ====================
# Kept for old clients: a HIGH/LOW roll around 50 plus cash-in.

@router.post("/betterbet")
@limiter.limit(get_rate_limit)
async def legacy_bet(request: Request, data: LegacyRequest):
    session = get_session(request)

    if data.kind == "cashin":
        new_balance = session.ledger.deposit(data.amount)
        return {"ok": True, "newBalance": new_balance}

    if data.kind == "bet":
        if data.guess not in ("HIGH", "LOW"):
            raise InvalidGameParameters("Invalid guess.")
        direction = Direction.OVER if data.guess == "HIGH" else Direction.UNDER
        outcome, new_balance = session.play_dice(
            data.amount, DiceParams(target=50.0, direction=direction)
        )
        return {
            "ok": True,
            "roll": outcome.details["roll"],
            "outcome": "WIN" if outcome.won else "LOSE",
            "newBalance": new_balance,
        }

    raise InvalidGameParameters("Unknown operation.")

@router.get("/betterbet/wallet")
@limiter.limit(get_api_rate_limit)
async def legacy_wallet(request: Request):
    return {"balance": get_session(request).ledger.balance}

@router.post("/betterbet/cashin")
@limiter.limit(get_api_rate_limit)
async def legacy_cashin(request: Request, data: AmountRequest):
    new_balance = get_session(request).ledger.deposit(data.amount)
    return {"ok": True, "newBalance": new_balance}

import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from betterbet.config import settings
from betterbet.core.games.blackjack import Card
from betterbet.core.rng import ScriptedRNG, SeededRNG
from betterbet.core.session import CasinoSession
from betterbet.main import create_app
from betterbet.routers import api


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        api.limiter.reset()
        self.use_rng(SeededRNG(42))

    def use_rng(self, rng):
        self.session = CasinoSession.in_memory(1000.0, rng=rng)
        self.client = TestClient(create_app(session=self.session))


class TestWalletApi(ApiTestCase):

    def test_wallet_snapshot(self):
        response = self.client.get("/api/wallet")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["balance"], 1000.0)
        self.assertEqual(data["in_play"], 0.0)

    def test_security_headers(self):
        response = self.client.get("/api/wallet")
        self.assertEqual(response.headers["X-Frame-Options"], "DENY")
        self.assertEqual(response.headers["X-Content-Type-Options"], "nosniff")

    def test_deposit_withdraw_reset(self):
        self.assertEqual(self.client.post("/api/wallet/deposit", json={"amount": 50}).json()["balance"], 1050.0)
        self.assertEqual(self.client.post("/api/wallet/withdraw", json={"amount": 100}).json()["balance"], 950.0)
        self.assertEqual(self.client.post("/api/wallet/reset").json()["balance"], 1000.0)

    def test_overdraw_rejected(self):
        response = self.client.post("/api/wallet/withdraw", json={"amount": 5000})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "insufficient_balance")

    def test_odds(self):
        data = self.client.get("/api/odds/plinko").json()
        self.assertEqual(set(data["odds"]["expected_return"]), {"8", "12", "16"})
        self.assertEqual(self.client.get("/api/odds/slots").json()["odds"]["win_multiplier"], 3.6)
        self.assertEqual(self.client.get("/api/odds/craps").status_code, 404)


class TestGameApi(ApiTestCase):

    def test_dice_win(self):
        self.use_rng(ScriptedRNG(floats=[0.75]))
        response = self.client.post(
            "/api/games/dice/roll", json={"bet": 10, "target": 50, "direction": "over"}
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["win"])
        self.assertEqual(data["payout"], 19.8)
        self.assertEqual(data["balance"]["balance"], 1009.8)

        history = self.client.get("/api/history/dice").json()["history"]
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0]["payout"], 19.8)

    def test_dice_rejections(self):
        bad_target = self.client.post(
            "/api/games/dice/roll", json={"bet": 10, "target": 99.5, "direction": "under"}
        )
        self.assertEqual(bad_target.status_code, 400)
        self.assertEqual(bad_target.json()["error"], "invalid_game_parameters")

        too_big = self.client.post(
            "/api/games/dice/roll", json={"bet": 5000, "target": 50, "direction": "over"}
        )
        self.assertEqual(too_big.json()["error"], "insufficient_balance")

        bad_amount = self.client.post(
            "/api/games/dice/roll", json={"bet": 0, "target": 50, "direction": "over"}
        )
        self.assertEqual(bad_amount.json()["error"], "invalid_wager_amount")

        bad_direction = self.client.post(
            "/api/games/dice/roll", json={"bet": 1, "target": 50, "direction": "sideways"}
        )
        self.assertEqual(bad_direction.status_code, 422)
        self.assertEqual(self.session.ledger.balance, 1000.0)

    def test_mines_flow(self):
        self.use_rng(ScriptedRNG(ints=[0, 0, 0]))
        start = self.client.post("/api/games/mines/start", json={"bet": 10, "mines": 3}).json()
        self.assertEqual(start["status"], "playing")
        self.assertIsNone(start["mines"])
        self.assertEqual(start["balance"]["in_play"], 10.0)

        game_id = start["round_id"]
        reveal = self.client.post("/api/games/mines/reveal", json={"game_id": game_id, "tile": 12}).json()
        self.assertEqual(reveal["gems_revealed"], 1)

        cashout = self.client.post("/api/games/mines/cashout", json={"game_id": game_id}).json()
        self.assertTrue(cashout["win"])
        self.assertEqual(cashout["mines"], [0, 1, 2])

        again = self.client.post("/api/games/mines/cashout", json={"game_id": game_id})
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.json()["error"], "round_not_found")

    def test_blackjack_flow(self):
        cards = [Card(rank) for rank in reversed(["10", "9", "6", "7", "K"])]
        with patch.object(self.session.blackjack, "_create_deck", return_value=cards):
            deal = self.client.post("/api/games/blackjack/deal", json={"bet": 10}).json()
        self.assertEqual(deal["status"], "player_turn")
        self.assertTrue(deal["dealer_hidden"])

        hit = self.client.post("/api/games/blackjack/hit", json={"game_id": deal["game_id"]}).json()
        self.assertEqual(hit["outcome"], "bust")
        self.assertFalse(hit["win"])
        self.assertEqual(hit["balance"]["balance"], 990.0)

        stand = self.client.post("/api/games/blackjack/stand", json={"game_id": deal["game_id"]})
        self.assertEqual(stand.status_code, 400)

    def test_plinko_multiple_balls(self):
        response = self.client.post("/api/games/plinko/drop", json={"bet": 1, "rows": 12, "risk": "high", "balls": 3})
        data = response.json()
        self.assertEqual(len(data["balls"]), 3)
        self.assertEqual(data["balance"]["bets_placed"], 3)

    def test_plinko_bad_rows(self):
        response = self.client.post("/api/games/plinko/drop", json={"bet": 1, "rows": 9})
        self.assertEqual(response.status_code, 400)

    def test_roulette_spin(self):
        self.use_rng(ScriptedRNG(ints=[19]))
        response = self.client.post("/api/games/roulette/spin", json={"bets": [
            {"bet_type": "red", "amount": 10},
            {"bet_type": "odd", "amount": 10},
            {"bet_type": "straight", "amount": 5, "value": 5},
        ]})
        data = response.json()
        self.assertEqual(data["number"], 19)
        self.assertEqual(data["payout"], 40.0)
        self.assertEqual(data["balance"]["balance"], 1015.0)

    def test_baccarat_deal(self):
        response = self.client.post("/api/games/baccarat/deal", json={"bets": [{"bet_type": "player", "amount": 10}]})
        self.assertEqual(response.status_code, 200)
        self.assertIn(response.json()["result"], ("player", "banker", "tie"))

    def test_slots_spin(self):
        self.use_rng(ScriptedRNG(ints=[0, 1]))
        data = self.client.post("/api/games/slots/spin", json={"bet": 10}).json()
        self.assertEqual(data["reels"], ["6", "7"])
        self.assertEqual(data["balance"]["balance"], 1026.0)


class TestLegacyApi(ApiTestCase):

    def test_high_bet(self):
        self.use_rng(ScriptedRNG(floats=[0.75]))
        data = self.client.post("/api/betterbet", json={"kind": "bet", "amount": 10, "guess": "HIGH"}).json()
        self.assertTrue(data["ok"])
        self.assertEqual(data["outcome"], "WIN")
        self.assertEqual(data["roll"], 75.0)
        self.assertEqual(data["newBalance"], 1009.8)

    def test_low_bet_loses_on_high_roll(self):
        self.use_rng(ScriptedRNG(floats=[0.75]))
        data = self.client.post("/api/betterbet", json={"kind": "bet", "amount": 10, "guess": "LOW"}).json()
        self.assertEqual(data["outcome"], "LOSE")
        self.assertEqual(data["newBalance"], 990.0)

    def test_invalid_requests(self):
        no_amount = self.client.post("/api/betterbet", json={"kind": "bet", "amount": 0, "guess": "HIGH"})
        self.assertEqual(no_amount.status_code, 400)

        no_guess = self.client.post("/api/betterbet", json={"kind": "bet", "amount": 1})
        self.assertEqual(no_guess.status_code, 400)

        unknown = self.client.post("/api/betterbet", json={"kind": "steal", "amount": 1})
        self.assertEqual(unknown.status_code, 400)
        self.assertEqual(unknown.json()["error"], "invalid_game_parameters")

    def test_unrecognised_guess_is_a_400(self):
        response = self.client.post("/api/betterbet", json={"kind": "bet", "amount": 1, "guess": "MIDDLE"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "invalid_game_parameters")
        self.assertEqual(self.client.get("/api/betterbet/wallet").json()["balance"], 1000.0)

    def test_cashin_and_wallet(self):
        data = self.client.post("/api/betterbet/cashin", json={"amount": 25}).json()
        self.assertEqual(data["newBalance"], 1025.0)
        self.assertEqual(self.client.get("/api/betterbet/wallet").json()["balance"], 1025.0)

        data = self.client.post("/api/betterbet", json={"kind": "cashin", "amount": 5}).json()
        self.assertEqual(data["newBalance"], 1030.0)


class TestApiRateLimit(ApiTestCase):

    def setUp(self):
        super().setUp()
        self._saved = (api.limiter.enabled, settings.rate_limit.game_requests)
        api.limiter.enabled = True
        settings.rate_limit.game_requests = "3/minute"

    def tearDown(self):
        api.limiter.enabled, settings.rate_limit.game_requests = self._saved
        api.limiter.reset()

    def test_rate_limit_applied_to_game_endpoints(self):
        for i in range(3):
            response = self.client.post("/api/games/slots/spin", json={"bet": 1})
            self.assertNotEqual(response.status_code, 429, f"Request {i + 1} should have succeeded")

        response = self.client.post("/api/games/slots/spin", json={"bet": 1})
        self.assertEqual(response.status_code, 429)


def test_unknown_history_game(client):
    assert client.get("/api/history/craps").status_code == 404
    assert client.get("/api/history/roulette").json() == {"game": "roulette", "history": []}

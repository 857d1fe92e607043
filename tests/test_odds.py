import json

import pytest

from betterbet.core import odds
from betterbet.core.odds import get_default_odds, get_game_odds, get_house_edge, load_odds


@pytest.fixture(autouse=True)
def restore_default_odds():
    yield
    load_odds(force_reload=True)


def test_defaults_cover_every_game():
    defaults = get_default_odds()
    for game in ("dice", "mines", "plinko", "blackjack", "roulette", "baccarat", "slots"):
        assert game in defaults


def test_default_copy_is_independent():
    copy = get_default_odds()
    copy["dice"]["house_edge"] = 0.5
    assert odds.DEFAULT_ODDS["dice"]["house_edge"] == 0.01


def test_override_file_merges_over_defaults(tmp_path):
    odds_file = tmp_path / "ODDS.json"
    odds_file.write_text(json.dumps({
        "_comment": "ignored",
        "dice": {"house_edge": 0.02},
        "roulette": {"payouts": {"straight": 36}},
    }))

    loaded = load_odds(force_reload=True, odds_file=odds_file)
    assert loaded["dice"]["house_edge"] == 0.02
    assert loaded["dice"]["max_chance"] == 98.0
    assert loaded["roulette"]["payouts"]["straight"] == 36
    assert loaded["roulette"]["payouts"]["red"] == 2
    assert "_comment" not in loaded


def test_invalid_json_falls_back_to_defaults(tmp_path):
    odds_file = tmp_path / "ODDS.json"
    odds_file.write_text("{broken")
    assert load_odds(force_reload=True, odds_file=odds_file) == get_default_odds()


def test_house_edges():
    assert get_house_edge("dice") == 0.01
    assert get_house_edge("slots") == 0.10
    assert get_house_edge("roulette") == 0.0
    assert get_game_odds("blackjack")["blackjack_payout"] == 2.25

import json

from betterbet.config import PROJECT_ROOT, AppConfig, load_config, save_config


def test_defaults():
    config = AppConfig()
    assert config.server.name == "BetterBet"
    assert config.economy.starting_balance == 1000.0
    assert config.games.get("roulette").history_size == 12
    assert config.games.get("baccarat").history_size == 30
    assert config.games.get("dice").house_edge is None


def test_load_from_file(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "economy": {"starting_balance": 250},
        "games": {"slots": {"enabled": False, "max_bet": 50}},
    }))

    config = load_config(config_path)
    assert config.economy.starting_balance == 250
    assert not config.games.slots.enabled
    assert config.games.slots.max_bet == 50
    assert config.games.dice.enabled


def test_environment_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"server": {"port": 9000}}))
    monkeypatch.setenv("SERVER_PORT", "8123")
    monkeypatch.setenv("STARTING_BALANCE", "42.5")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")

    config = load_config(config_path)
    assert config.server.port == 8123
    assert config.economy.starting_balance == 42.5
    assert not config.rate_limit.enabled


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.json")
    assert config.rate_limit.game_requests == "120/minute"


def test_save_round_trip(tmp_path):
    config_path = tmp_path / "config.json"
    config = AppConfig()
    config.economy.max_deposit = 500.0
    save_config(config, config_path)

    assert load_config(config_path).economy.max_deposit == 500.0


def test_unparsable_environment_value_ignored(tmp_path, monkeypatch):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"server": {"port": 9000}}))
    monkeypatch.setenv("SERVER_PORT", "not-a-port")

    assert load_config(config_path).server.port == 9000


def test_paths_resolve_against_project_root():
    config = AppConfig()
    assert config.paths.get_wallet_path() == PROJECT_ROOT / "data" / "wallet.json"

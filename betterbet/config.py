"""
Configuration for BetterBet.

Values come from config.json at the project root (optional) and are then
overridden by environment variables, including those from a .env file.
Relative paths are resolved against the project root.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()

# Parent of the 'betterbet' package
PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_CONFIG_FILE = PROJECT_ROOT / "config.json"


def parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def get_env(key: str, cast: Callable[[str], Any] = str, default: Any = None) -> Any:
    """Environment variable converted with `cast`; `default` if unset or unparsable."""
    raw = os.environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        return default


# ==================== Configuration Models ====================

class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = True
    name: str = "BetterBet"


class EconomyConfig(BaseModel):
    starting_balance: float = 1000.0  # first-use and reset balance
    max_deposit: float = 100000.0


class GameConfig(BaseModel):
    model_config = ConfigDict(extra="allow")  # game-specific keys

    enabled: bool = True
    min_bet: float = 0.01
    max_bet: float = 100000.0
    house_edge: Optional[float] = None  # None: use the odds table default
    history_size: int = 10


class GamesConfig(BaseModel):
    dice: GameConfig = Field(default_factory=GameConfig)
    mines: GameConfig = Field(default_factory=GameConfig)
    plinko: GameConfig = Field(default_factory=GameConfig)
    blackjack: GameConfig = Field(default_factory=GameConfig)
    roulette: GameConfig = Field(default_factory=lambda: GameConfig(history_size=12))
    baccarat: GameConfig = Field(default_factory=lambda: GameConfig(history_size=30))
    slots: GameConfig = Field(default_factory=GameConfig)

    def get(self, game: str) -> GameConfig:
        return getattr(self, game)


class RateLimitConfig(BaseModel):
    enabled: bool = True
    game_requests: str = "120/minute"  # Game actions (rolls, spins, reveals)
    api_requests: str = "60/minute"    # Wallet, history and odds calls


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_to_file: bool = False
    formatter: str = "color"  # color | json


class PathsConfig(BaseModel):
    wallet_file: str = "data/wallet.json"
    odds_file: str = "ODDS.json"
    log_file: str = "data/betterbet.log"

    @staticmethod
    def resolve(path: str) -> Path:
        return PROJECT_ROOT / Path(path).expanduser()

    def get_wallet_path(self) -> Path:
        return self.resolve(self.wallet_file)

    def get_odds_path(self) -> Path:
        return self.resolve(self.odds_file)

    def get_log_path(self) -> Path:
        return self.resolve(self.log_file)


class AppConfig(BaseModel):
    """Main application configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    economy: EconomyConfig = Field(default_factory=EconomyConfig)
    games: GamesConfig = Field(default_factory=GamesConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)


# ==================== Configuration Loading ====================

# Environment variable -> (section, key, parser)
ENV_OVERRIDES: Dict[str, Tuple[str, str, Callable[[str], Any]]] = {
    "SERVER_HOST": ("server", "host", str),
    "SERVER_PORT": ("server", "port", int),
    "DEBUG": ("server", "debug", parse_bool),
    "STARTING_BALANCE": ("economy", "starting_balance", float),
    "MAX_DEPOSIT": ("economy", "max_deposit", float),
    "WALLET_FILE": ("paths", "wallet_file", str),
    "ODDS_FILE": ("paths", "odds_file", str),
    "LOG_LEVEL": ("logging", "level", str),
    "LOG_TO_FILE": ("logging", "log_to_file", parse_bool),
    "LOG_FORMATTER": ("logging", "formatter", str),
    "RATE_LIMIT_ENABLED": ("rate_limit", "enabled", parse_bool),
    "RATE_LIMIT_GAME_REQUESTS": ("rate_limit", "game_requests", str),
    "RATE_LIMIT_API_REQUESTS": ("rate_limit", "api_requests", str),
}


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from config.json with environment variable overrides.
    Environment variables take precedence over config.json values.
    """
    config_path = config_path or DEFAULT_CONFIG_FILE

    data: Dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

    for variable, (section, key, cast) in ENV_OVERRIDES.items():
        value = get_env(variable, cast)
        if value is not None:
            data.setdefault(section, {})[key] = value

    return AppConfig(**data)


def save_config(config: AppConfig, config_path: Optional[Path] = None):
    """Write everything except paths back to config.json."""
    config_path = config_path or DEFAULT_CONFIG_FILE
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(exclude={"paths"}), f, indent=4)


# Global config instance
settings = load_config()

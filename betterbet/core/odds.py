"""
Payout tables and house edges for every game.
Defaults live here; an optional ODDS.json at the project root overrides them
and is reloaded when its modification time changes.
"""

import copy
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from betterbet.config import settings
from betterbet.core.logger import get_logger

logger = get_logger("odds")

# Cache for loaded odds
_odds_cache: Optional[Dict] = None
_last_load_time: Optional[datetime] = None
_loaded_from: Optional[Path] = None


DEFAULT_ODDS: Dict[str, Any] = {
    "dice": {
        "house_edge": 0.01,
        # Implied win chance bounds, in percent
        "min_chance": 0.01,
        "max_chance": 98.0,
        "multiplier_decimals": 4,
    },
    "mines": {
        "house_edge": 0.01,
        "grid_size": 25,
        "multiplier_decimals": 2,
    },
    "plinko": {
        # Fair binomial landing; each table is symmetric, lowest in the middle
        "multipliers": {
            "8": {
                "low": [1.5, 1.2, 1.1, 1.0, 0.5, 1.0, 1.1, 1.2, 1.5],
                "medium": [3, 1.5, 1.2, 0.8, 0.4, 0.8, 1.2, 1.5, 3],
                "high": [10, 3, 1.5, 0.5, 0.2, 0.5, 1.5, 3, 10],
            },
            "12": {
                "low": [10, 3, 1.6, 1.4, 1.1, 1, 0.5, 1, 1.1, 1.4, 1.6, 3, 10],
                "medium": [33, 11, 4, 2, 1.1, 0.6, 0.3, 0.6, 1.1, 2, 4, 11, 33],
                "high": [170, 24, 8.1, 2, 0.7, 0.2, 0.2, 0.2, 0.7, 2, 8.1, 24, 170],
            },
            "16": {
                "low": [16, 9, 2, 1.4, 1.4, 1.2, 1.1, 1, 0.5, 1, 1.1, 1.2, 1.4, 1.4, 2, 9, 16],
                "medium": [110, 41, 10, 5, 3, 1.5, 1, 0.5, 0.3, 0.5, 1, 1.5, 3, 5, 10, 41, 110],
                "high": [1000, 130, 26, 9, 4, 2, 0.2, 0.2, 0.2, 0.2, 0.2, 2, 4, 9, 26, 130, 1000],
            },
        },
    },
    "blackjack": {
        "blackjack_payout": 2.25,
        "win_payout": 1.8,
        "push_payout": 1.0,
        "dealer_stands_on": 17,
    },
    "roulette": {
        "payouts": {
            "straight": 35,
            "dozen": 3,
            "column": 3,
            "red": 2,
            "black": 2,
            "odd": 2,
            "even": 2,
            "low": 2,
            "high": 2,
        },
    },
    "baccarat": {
        "decks": 8,
        "payouts": {
            "player": 2,
            "banker": 1.95,
            "tie": 9,
            "player_pair": 12,
            "banker_pair": 12,
        },
    },
    "slots": {
        "house_edge": 0.10,
        "symbols": ["6", "7"],
        "winning_line": ["6", "7"],
    },
}


def get_default_odds() -> Dict[str, Any]:
    """Return a copy of the built-in odds."""
    return copy.deepcopy(DEFAULT_ODDS)


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if key.startswith("_"):
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_odds(force_reload: bool = False, odds_file: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load game odds, merging ODDS.json over the defaults.
    Caches the result and reloads if the file has changed.
    """
    global _odds_cache, _last_load_time, _loaded_from

    if odds_file is None:
        odds_file = settings.paths.get_odds_path()

    if _odds_cache is not None and not force_reload and _loaded_from == odds_file:
        try:
            file_mtime = datetime.fromtimestamp(odds_file.stat().st_mtime)
        except FileNotFoundError:
            # No override file, defaults stay valid
            if _last_load_time is None:
                return _odds_cache
        else:
            if _last_load_time and file_mtime <= _last_load_time:
                return _odds_cache

    try:
        with open(odds_file, "r", encoding="utf-8") as f:
            overrides = json.load(f)
        _odds_cache = _merge(DEFAULT_ODDS, overrides)
        _last_load_time = datetime.now()
        logger.info(f"Loaded game odds from {odds_file.name}")
    except FileNotFoundError:
        _odds_cache = get_default_odds()
        _last_load_time = None
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {odds_file.name}: {e}")
        _odds_cache = get_default_odds()
        _last_load_time = datetime.now()

    _loaded_from = odds_file
    return _odds_cache


def get_game_odds(game: str) -> Dict[str, Any]:
    """Get odds for a specific game (dice, mines, plinko, ...)."""
    return load_odds().get(game, {})


def get_house_edge(game: str) -> float:
    """House edge for a game: config override first, then the odds table."""
    configured = settings.games.get(game).house_edge
    if configured is not None:
        return configured
    return float(get_game_odds(game).get("house_edge", 0.0))


def get_plinko_table(rows: int, risk: str) -> Optional[List[float]]:
    """Multiplier row for a (rows, risk) pair, or None if the pair is unknown."""
    tables = get_game_odds("plinko").get("multipliers", {})
    return tables.get(str(rows), {}).get(risk)


def plinko_row_counts() -> List[int]:
    return sorted(int(rows) for rows in get_game_odds("plinko").get("multipliers", {}))


def validate_plinko_table(rows: int, table: List[float]) -> bool:
    """
    A usable table has rows + 1 slots, is symmetric about the center, pays
    least in the middle and most at the edges.
    """
    if len(table) != rows + 1 or any(m < 0 for m in table):
        return False
    if table != table[::-1]:
        return False
    center = table[len(table) // 2]
    return center == min(table) and table[0] == max(table)

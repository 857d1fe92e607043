"""
Balance stores.

The engine never persists anything itself: it reads and writes the balance
through a BalanceStore. Stores notify subscribers after every write so other
components (API responses, other sessions sharing the file) can refresh.
"""

import threading
from pathlib import Path
from typing import Callable, List

import orjson

from betterbet.core.logger import get_logger

logger = get_logger("wallet")

BalanceListener = Callable[[float, float], None]


class BalanceStore:
    """Key-value style balance storage with change notification."""

    def __init__(self):
        self._listeners: List[BalanceListener] = []
        self._listeners_lock = threading.Lock()

    def get_balance(self) -> float:
        raise NotImplementedError

    def _write(self, amount: float):
        raise NotImplementedError

    def set_balance(self, amount: float):
        old = self.get_balance()
        self._write(amount)
        self._notify(old, amount)

    def subscribe(self, listener: BalanceListener) -> Callable[[], None]:
        """Register `listener(old, new)`; returns a function that unsubscribes it."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, old: float, new: float):
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(old, new)
            except Exception as e:
                # A broken observer must not undo a committed write
                logger.warning(f"Balance listener {listener!r} failed: {e}")


class InMemoryBalanceStore(BalanceStore):
    def __init__(self, starting_balance: float = 0.0):
        super().__init__()
        self._balance = float(starting_balance)

    def get_balance(self) -> float:
        return self._balance

    def _write(self, amount: float):
        self._balance = float(amount)


class JsonFileBalanceStore(BalanceStore):
    """
    Balance kept in a small JSON document on disk.
    The file is re-read on every access so writes from another process are seen.
    """

    def __init__(self, path: Path, starting_balance: float = 1000.0):
        super().__init__()
        self.path = Path(path)
        self.starting_balance = float(starting_balance)

    def _read(self) -> dict:
        try:
            return orjson.loads(self.path.read_bytes())
        except FileNotFoundError:
            logger.info(f"Creating wallet at {self.path} with {self.starting_balance:.2f}")
            data = {"balance": self.starting_balance}
            self._dump(data)
            return data
        except orjson.JSONDecodeError as e:
            logger.warning(f"Corrupt wallet file {self.path}: {e}; restoring starting balance")
            data = {"balance": self.starting_balance}
            self._dump(data)
            return data

    def _dump(self, data: dict):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        tmp_path.replace(self.path)

    def get_balance(self) -> float:
        return float(self._read().get("balance", self.starting_balance))

    def _write(self, amount: float):
        data = self._read()
        data["balance"] = float(amount)
        self._dump(data)

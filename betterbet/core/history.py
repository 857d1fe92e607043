import itertools
import threading
import time
from collections import deque
from typing import Iterator, List

from pydantic import BaseModel, ConfigDict

from betterbet.core.models import Outcome, Wager

_entry_ids = itertools.count(1)


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    timestamp: float
    round_id: str
    wager: Wager
    outcome: Outcome

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "round_id": self.round_id,
            "game": self.wager.game.value,
            **self.outcome.to_dict(),
        }


def make_entry(round_id: str, wager: Wager, outcome: Outcome) -> HistoryEntry:
    """Snapshot a settled round; ids increase with creation time."""
    return HistoryEntry(
        id=next(_entry_ids),
        timestamp=time.time(),
        round_id=round_id,
        wager=wager,
        outcome=outcome,
    )


class SessionHistory:
    """Most-recent-first log of settled rounds, holding at most `bound` entries."""

    def __init__(self, bound: int = 10):
        if bound < 1:
            raise ValueError("History bound must be at least 1")
        self.bound = bound
        self._entries = deque(maxlen=bound)
        self._lock = threading.Lock()

    def record(self, entry: HistoryEntry):
        with self._lock:
            # appendleft on a full deque drops the oldest entry from the right
            self._entries.appendleft(entry)

    def list(self) -> List[HistoryEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self.list())

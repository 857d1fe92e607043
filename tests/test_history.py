import pytest

from betterbet.core.history import SessionHistory, make_entry
from betterbet.core.models import GameKind, Outcome, Wager


def entry(n):
    wager = Wager(amount=n, game=GameKind.SLOTS)
    return make_entry(f"round-{n}", wager, Outcome(won=False, multiplier=0, amount=n))


def test_keeps_only_most_recent_entries():
    history = SessionHistory(10)
    for n in range(1, 16):
        history.record(entry(n))

    rounds = [e.round_id for e in history.list()]
    assert len(history) == 10
    assert rounds[0] == "round-15"
    assert rounds[-1] == "round-6"
    assert "round-5" not in rounds


def test_entries_are_most_recent_first():
    history = SessionHistory(3)
    for n in (1, 2):
        history.record(entry(n))
    ids = [e.id for e in history]
    assert ids == sorted(ids, reverse=True)


def test_clear():
    history = SessionHistory(2)
    history.record(entry(1))
    history.clear()
    assert history.list() == []


def test_bound_must_be_positive():
    with pytest.raises(ValueError):
        SessionHistory(0)


def test_entry_dict_flattens_outcome():
    data = entry(4).to_dict()
    assert data["game"] == "slots"
    assert data["bet"] == 4
    assert data["payout"] == 0.0
    assert data["round_id"] == "round-4"


def test_default_bounds_per_game(session):
    assert session.history(GameKind.DICE).bound == 10
    assert session.history(GameKind.ROULETTE).bound == 12
    assert session.history(GameKind.BACCARAT).bound == 30

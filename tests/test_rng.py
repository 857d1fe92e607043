import pytest

from betterbet.core.rng import ScriptedRNG, SeededRNG, TrueRNG


def test_seeded_rng_is_reproducible():
    a = SeededRNG(99)
    b = SeededRNG(99)
    assert [a.uniform01() for _ in range(5)] == [b.uniform01() for _ in range(5)]
    assert [a.uniform_int(37) for _ in range(5)] == [b.uniform_int(37) for _ in range(5)]


def test_true_rng_ranges():
    rng = TrueRNG()
    for _ in range(500):
        assert 0.0 <= rng.uniform01() < 1.0
        assert 0 <= rng.uniform_int(6) < 6
        assert 1 <= rng.random_int(1, 6) <= 6


def test_uniform_int_rejects_empty_range():
    with pytest.raises(ValueError):
        TrueRNG().uniform_int(0)
    with pytest.raises(ValueError):
        SeededRNG(1).uniform_int(-3)


def test_random_int_bounds_checked():
    with pytest.raises(ValueError):
        SeededRNG(1).random_int(5, 1)


def test_choice_without_replacement_is_distinct():
    rng = SeededRNG(7)
    for k in (0, 1, 3, 24, 25):
        picked = rng.choice_without_replacement(25, k)
        assert len(picked) == k
        assert all(0 <= p < 25 for p in picked)

    with pytest.raises(ValueError):
        rng.choice_without_replacement(5, 6)


def test_shuffle_keeps_elements_and_input():
    deck = list(range(52))
    for rng in (TrueRNG(), SeededRNG(3)):
        shuffled = rng.shuffle(deck)
        assert sorted(shuffled) == deck
        assert deck == list(range(52))


def test_scripted_rng_replays_in_order():
    rng = ScriptedRNG(floats=[0.25, 0.75], ints=[3, 0])
    assert rng.uniform01() == 0.25
    assert rng.uniform01() == 0.75
    assert rng.uniform_int(5) == 3
    assert rng.choice(["a", "b"]) == "a"

    with pytest.raises(IndexError):
        rng.uniform01()


def test_scripted_rng_rejects_out_of_range_value():
    with pytest.raises(ValueError):
        ScriptedRNG(ints=[5]).uniform_int(5)

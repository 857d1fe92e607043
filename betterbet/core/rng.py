import secrets
import random
from typing import List, Optional, Sequence, Set


class RandomSource:
    """
    Uniform randomness used by every game.

    Subclasses only have to provide `uniform01` and `uniform_int`; the rest
    is derived from those two.
    """

    def uniform01(self) -> float:
        """Returns a random float in the range [0.0, 1.0)."""
        raise NotImplementedError

    def uniform_int(self, n_exclusive: int) -> int:
        """Returns a random integer in the range [0, n_exclusive)."""
        raise NotImplementedError

    def random_int(self, min_val: int, max_val: int) -> int:
        """Returns a random integer in the range [min_val, max_val] (inclusive)."""
        if min_val > max_val:
            raise ValueError("min_val must be less than or equal to max_val")
        return min_val + self.uniform_int(max_val - min_val + 1)

    def choice(self, options: Sequence):
        """Returns a random element from a non-empty sequence."""
        if not options:
            raise IndexError("Cannot choose from an empty sequence")
        return options[self.uniform_int(len(options))]

    def choice_without_replacement(self, n: int, k: int) -> Set[int]:
        """Returns k distinct integers drawn from [0, n)."""
        if not 0 <= k <= n:
            raise ValueError(f"Cannot draw {k} distinct values from {n}")
        # Partial Fisher-Yates over the index range
        pool = list(range(n))
        for i in range(k):
            j = i + self.uniform_int(n - i)
            pool[i], pool[j] = pool[j], pool[i]
        return set(pool[:k])

    def shuffle(self, deck: list) -> list:
        """Returns a new list with the elements shuffled."""
        shuffled = deck[:]
        for i in range(len(shuffled) - 1, 0, -1):
            j = self.uniform_int(i + 1)
            shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
        return shuffled


class TrueRNG(RandomSource):
    """
    A wrapper around Python's `secrets` module to provide cryptographically strong
    random numbers, suitable for casino game logic.
    """

    PRECISION = 2**53

    def uniform01(self) -> float:
        # secrets.randbelow(n) returns [0, n); 2**53 keeps every value exactly representable
        return secrets.randbelow(self.PRECISION) / self.PRECISION

    def uniform_int(self, n_exclusive: int) -> int:
        if n_exclusive <= 0:
            raise ValueError("n_exclusive must be positive")
        return secrets.randbelow(n_exclusive)

    def shuffle(self, deck: list) -> list:
        # SystemRandom uses os.urandom()
        shuffled_deck = deck[:]
        random.SystemRandom().shuffle(shuffled_deck)
        return shuffled_deck


class SeededRNG(RandomSource):
    """Deterministic source backed by `random.Random`, for tests and replays."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def uniform01(self) -> float:
        return self._random.random()

    def uniform_int(self, n_exclusive: int) -> int:
        if n_exclusive <= 0:
            raise ValueError("n_exclusive must be positive")
        return self._random.randrange(n_exclusive)


class ScriptedRNG(RandomSource):
    """
    Replays fixed draws in order. `floats` feed `uniform01`, `ints` feed
    `uniform_int`; running out of either raises IndexError.
    """

    def __init__(self, floats: Optional[List[float]] = None, ints: Optional[List[int]] = None):
        self._floats = list(floats or [])
        self._ints = list(ints or [])

    def uniform01(self) -> float:
        return self._floats.pop(0)

    def uniform_int(self, n_exclusive: int) -> int:
        value = self._ints.pop(0)
        if not 0 <= value < n_exclusive:
            raise ValueError(f"Scripted value {value} outside [0, {n_exclusive})")
        return value


# Process-wide default source
rng = TrueRNG()

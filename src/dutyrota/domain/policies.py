"""Policy definitions for the rotation engine.

This module contains the injectable policies the engine depends on: the
source of randomness used for weighted selection, and the rule deciding
which participants receive the remainder units of the target distribution.
Policies are kept separate from the engine so they can be swapped and
seeded independently in tests.
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

from dutyrota.domain.models import Participant, ParticipantId


class RandomSource(ABC):
    """Abstract source of uniform random floats."""

    @abstractmethod
    def random(self) -> float:
        """Return the next float in [0, 1)."""
        pass


@dataclass
class SeededRandomSource(RandomSource):
    """Random source backed by a private ``random.Random`` instance.

    Passing the same seed gives the same sequence. A ``None`` seed uses
    system entropy.
    """

    seed: Optional[int] = None
    _rng: random.Random = field(init=False, repr=False)

    def __post_init__(self):
        self._rng = random.Random(self.seed)

    def random(self) -> float:
        return self._rng.random()


@dataclass
class SequenceRandomSource(RandomSource):
    """Random source replaying a fixed list of values, cycling at the end.

    Useful to force a particular draw in tests.
    """

    values: Sequence[float]
    _index: int = field(default=0, init=False, repr=False)

    def __post_init__(self):
        if not self.values:
            raise ValueError("SequenceRandomSource needs at least one value")
        for value in self.values:
            if not 0.0 <= value < 1.0:
                raise ValueError(f"Random value out of range [0, 1): {value}")

    def random(self) -> float:
        value = self.values[self._index % len(self.values)]
        self._index += 1
        return value


def shuffled(items: Sequence, rng: RandomSource) -> list:
    """Fisher-Yates shuffle driven by a RandomSource."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        result[i], result[j] = result[j], result[i]
    return result


class RemainderPolicy(ABC):
    """Abstract policy choosing who receives the extra duty units.

    When the duty-day count does not divide evenly by the roster size,
    ``remainder`` participants get one duty more than the base share.
    """

    @abstractmethod
    def select_recipients(
        self,
        roster: Sequence[Participant],
        remainder: int,
        rng: RandomSource,
    ) -> set[ParticipantId]:
        """Choose which participants get one extra unit.

        Args:
            roster: Participants in roster order.
            remainder: Number of extra units to hand out (< len(roster)).
            rng: Random source, for policies that need one.

        Returns:
            Set of exactly ``remainder`` participant IDs.
        """
        pass


@dataclass
class PositionalRemainderPolicy(RemainderPolicy):
    """Extra units go to the first participants in roster order."""

    def select_recipients(
        self,
        roster: Sequence[Participant],
        remainder: int,
        rng: RandomSource,
    ) -> set[ParticipantId]:
        return {p.id for p in roster[:remainder]}


@dataclass
class ShuffledRemainderPolicy(RemainderPolicy):
    """Extra units go to participants drawn from a shuffled roster.

    The shuffle uses the engine's random source, so a seeded source keeps
    the choice reproducible.
    """

    def select_recipients(
        self,
        roster: Sequence[Participant],
        remainder: int,
        rng: RandomSource,
    ) -> set[ParticipantId]:
        return {p.id for p in shuffled(roster, rng)[:remainder]}

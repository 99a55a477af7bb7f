from __future__ import annotations

import random
from typing import Optional, Protocol


class Dice(Protocol):
    """
    Anything the simulator can draw from. One method:
    randint(a, b) -> uniform integer in [a, b], inclusive.
    """

    def randint(self, a: int, b: int) -> int: ...


class RandomDice:
    """
    Default dice, backed by a private random.Random.

    Seeding with the battle's stored rng_seed makes a battle replayable:
      dice = RandomDice(seed=battle.rng_seed)
    """

    def __init__(self, seed: Optional[int | str] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def randint(self, a: int, b: int) -> int:
        return self._random.randint(a, b)


def roll_d20(dice: Dice) -> int:
    return dice.randint(1, 20)


def chance(dice: Dice, percent: int) -> bool:
    """True with probability percent/100, using a single d100 draw."""
    if percent <= 0:
        return False
    if percent >= 100:
        return True
    return dice.randint(1, 100) <= percent


def pick(dice: Dice, items: list):
    if not items:
        raise ValueError("cannot pick from an empty list")
    return items[dice.randint(0, len(items) - 1)]

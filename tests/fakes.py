"""Deterministic dice for tests."""

import itertools


class ScriptedDice:
    """
    Returns the scripted values in order, cycling when cycle=True.
    Every value must fall inside the requested range.
    """

    def __init__(self, values, cycle=True):
        self._values = list(values)
        self._iter = itertools.cycle(self._values) if cycle else iter(self._values)
        self.calls = []

    def randint(self, a, b):
        value = next(self._iter)
        self.calls.append((a, b, value))
        if not a <= value <= b:
            raise AssertionError(f"scripted value {value} outside [{a}, {b}]")
        return value


# attacker d20, defender d20, action d100 (<= 75 is an attack)
ALWAYS_ATTACK_15_10 = (15, 10, 1)

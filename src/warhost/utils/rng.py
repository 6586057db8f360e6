"""Deterministic dice rollers for combat resolution.

All randomness used by the combat engine flows through a roller object so a
sequence of rolls can be reproduced exactly:

- Reproducibility: the same seed always yields the same rolls
- Replay: a scripted roller feeds recorded dice back into the engine
- Audit trail: every roller remembers the values it produced

Examples:
    >>> seed = generate_seed("game-1", turn=2, phase="shooting", context="bolt-rifle")
    >>> roller = SeededRoller(seed)
    >>> 1 <= roller.roll() <= 6
    True

    >>> scripted = ScriptedRoller([6, 1, 4])
    >>> scripted.rolls(3)
    [6, 1, 4]
"""

from __future__ import annotations

import hashlib
import random
from collections.abc import Iterable


def generate_seed(game_id: str, turn: int, phase: str, context: str, *, prefix: str = "") -> str:
    """Generate a deterministic seed from game state.

    Format: "[prefix:]game_id:turn:phase:context"

    Args:
        game_id: Identifier of the game the roll belongs to
        turn: Current battle round (0 for pre-game rolls)
        phase: Current phase name ('shooting', 'fight', ...)
        context: What the roll is for (e.g. 'attack-unit-3-bolt-rifle')
        prefix: Optional namespace mixed into the seed

    Returns:
        Seed string for SeededRoller

    Examples:
        >>> generate_seed("g1", 3, "fight", "choppa")
        'g1:3:fight:choppa'

    Raises:
        ValueError: If game_id is empty or turn is negative
    """
    if not game_id:
        raise ValueError("game_id must be a non-empty string")
    if turn < 0:
        raise ValueError(f"turn must be non-negative, got {turn}")

    seed = f"{game_id}:{turn}:{phase}:{context}"
    return f"{prefix}:{seed}" if prefix else seed


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random()."""

    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False)


class SeededRoller:
    """Dice roller backed by a seeded ``random.Random`` instance."""

    def __init__(self, seed: str) -> None:
        self.seed = seed
        self._rng = random.Random(_seed_to_int(seed))
        self.history: list[int] = []

    def roll(self, sides: int = 6) -> int:
        """Roll one die with ``sides`` faces."""

        if sides <= 0:
            raise ValueError(f"Number of sides must be positive, got {sides}")
        value = self._rng.randint(1, sides)
        self.history.append(value)
        return value

    def rolls(self, count: int, sides: int = 6) -> list[int]:
        """Roll ``count`` dice with ``sides`` faces."""

        return [self.roll(sides) for _ in range(count)]


class ScriptedRoller:
    """Roller that replays a fixed sequence of die results.

    Used by tests and by clients replaying a recorded exchange. Each scripted
    value must fit on the die being rolled.
    """

    def __init__(self, values: Iterable[int]) -> None:
        self._values = list(values)
        self._position = 0
        self.history: list[int] = []

    @property
    def remaining(self) -> int:
        return len(self._values) - self._position

    def roll(self, sides: int = 6) -> int:
        if self._position >= len(self._values):
            raise ValueError("scripted dice exhausted")
        value = self._values[self._position]
        if not 1 <= value <= sides:
            raise ValueError(f"scripted value {value} does not fit a d{sides}")
        self._position += 1
        self.history.append(value)
        return value

    def rolls(self, count: int, sides: int = 6) -> list[int]:
        return [self.roll(sides) for _ in range(count)]

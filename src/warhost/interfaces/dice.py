"""Dice Roller Protocol Interface.

This module defines the protocol (interface) for dice sources consumed by the
combat engine.
"""

from typing import Protocol


class IDiceRoller(Protocol):
    """Protocol defining the interface for dice sources.

    Implementations must be deterministic for a given construction so that a
    recorded exchange can be replayed on another client.
    """

    def roll(self, sides: int = 6) -> int:
        """Roll a single die.

        Args:
            sides: Number of faces on the die

        Returns:
            Result between 1 and ``sides``
        """
        ...

    def rolls(self, count: int, sides: int = 6) -> list[int]:
        """Roll several dice of the same size.

        Args:
            count: Number of dice
            sides: Number of faces on each die

        Returns:
            List of results in roll order
        """
        ...

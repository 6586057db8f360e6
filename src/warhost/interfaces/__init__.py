"""Protocol-based interfaces for Warhost services.

This module exports the protocols for the external collaborators the combat
service depends on, enabling dependency injection and testing with fakes.
"""

from warhost.interfaces.broadcast import ICombatBroadcaster
from warhost.interfaces.dice import IDiceRoller

__all__ = [
    "ICombatBroadcaster",
    "IDiceRoller",
]

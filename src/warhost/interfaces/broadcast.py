"""Broadcast Channel Protocol Interface.

This module defines the protocol (interface) for the realtime channel used to
mirror combat results to the opposing client.
"""

from typing import Any, Protocol


class ICombatBroadcaster(Protocol):
    """Protocol for a publish/subscribe channel keyed by game id and topic.

    The engine only publishes fully serialised payloads; transport, delivery
    guarantees and subscription handling belong to the host.
    """

    def publish(self, game_id: str, topic: str, payload: dict[str, Any]) -> None:
        """Publish a JSON-compatible payload for a game.

        Args:
            game_id: Identifier of the game the payload belongs to
            topic: Named topic within the game channel
            payload: JSON-compatible message body
        """
        ...

"""Service layer for Warhost.

Services depend on Protocol interfaces (IDiceRoller, ICombatBroadcaster) and
are wired for production in :mod:`warhost.factory`.  Tests inject fakes.

Production Usage:
    from warhost.factory import create_combat_service
    combat = create_combat_service(broadcaster)
    result = combat.start(boyz, marines, choppa, game)

Testing Usage:
    from warhost.services.combat_service import CombatService
    from warhost.utils.rng import ScriptedRoller

    class FakeBroadcaster:
        def __init__(self):
            self.sent = []

        def publish(self, game_id, topic, payload):
            self.sent.append((game_id, topic, payload))

    service = CombatService(lambda seed: ScriptedRoller([6, 6, 6]), FakeBroadcaster())
"""

from warhost.services.combat_service import CombatService

__all__ = [
    "CombatService",
]

"""Service Factory for Warhost.

This module wires services with their production collaborators.  Use these
functions in host applications; in tests, construct the services directly
with protocol-based fakes.

Example:
    # Production usage
    from warhost.factory import create_combat_service
    combat = create_combat_service(channel)

    # Testing usage
    from warhost.services.combat_service import CombatService
    from warhost.utils.rng import ScriptedRoller

    combat = CombatService(lambda seed: ScriptedRoller([4, 5, 6]), FakeBroadcaster())
"""

from warhost.config import Settings, get_settings
from warhost.interfaces.broadcast import ICombatBroadcaster
from warhost.repository.rule_store import RuleLibrary
from warhost.services.combat_service import CombatService
from warhost.utils.rng import SeededRoller


def create_combat_service(
    broadcaster: ICombatBroadcaster, settings: Settings | None = None
) -> CombatService:
    """Create a CombatService with seeded dice.

    Args:
        broadcaster: Channel used to mirror results to the other client
        settings: Optional settings override (defaults to environment)

    Returns:
        CombatService rolling deterministic dice seeded from the game position
    """
    settings = settings or get_settings()
    return CombatService(
        SeededRoller,
        broadcaster,
        topic=settings.result_topic,
        seed_prefix=settings.dice_seed_prefix,
    )


def create_rule_library(settings: Settings | None = None) -> RuleLibrary:
    """Load every rule pack from the configured rules directory.

    Args:
        settings: Optional settings override (defaults to environment)

    Returns:
        RuleLibrary with all packs indexed by rule id
    """
    settings = settings or get_settings()
    return RuleLibrary.from_directory(settings.rules_dir, expected_version=settings.rules_version)

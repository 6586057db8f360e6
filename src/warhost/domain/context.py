"""Combat context assembled for a single attack instance."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from warhost.domain.enums import CombatPhase, CombatRole
from warhost.domain.models import ArmyState, GameSnapshot, Unit, Weapon
from warhost.domain.modifiers import ModifierStack
from warhost.domain.profiles import WeaponProfile, target_profile, weapon_profile
from warhost.domain.rules import AnyRule


@dataclass(frozen=True, slots=True)
class CombatOptions:
    """Player-supplied facts about the attack being resolved."""

    models_firing: int = 1
    within_half_range: bool = False
    target_visible: bool = True
    unit_has_charged: bool = False
    unit_remained_stationary: bool = False
    target_in_cover: bool = False
    user_inputs: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Combatant:
    """Participant view used by condition evaluation."""

    unit_id: str
    name: str
    army_id: str | None = None
    categories: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    model_count: int = 0
    toughness: int = 0
    save: int = 7
    invulnerable_save: int | None = None
    feel_no_pain: int | None = None
    is_leader: bool = False
    leader_id: str | None = None
    is_attached_leader: bool = False


@dataclass(slots=True)
class CombatContext:
    """Evaluation context for one attack instance.

    Everything except ``modifiers``, ``ability_details`` and ``diagnostics``
    is treated as read-only.  A context is never shared across attacks.
    """

    attacker: Combatant
    defender: Combatant
    weapon: WeaponProfile
    game: GameSnapshot
    combat_phase: CombatPhase
    combat_role: CombatRole
    options: CombatOptions
    rules: tuple[AnyRule, ...]
    army_states: frozenset[str]
    modifiers: ModifierStack = field(default_factory=ModifierStack)
    ability_details: dict[str, object] = field(default_factory=dict)
    diagnostics: list[str] = field(default_factory=list)

    @property
    def user_inputs(self) -> dict[str, Any]:
        return self.options.user_inputs

    @property
    def evaluated(self) -> Combatant:
        """The participant whose rules this context evaluates."""

        return self.attacker if self.combat_role == CombatRole.ATTACKER else self.defender


def combatant_from_unit(unit: Unit) -> Combatant:
    stats = target_profile(unit)
    is_leader = unit.leads_unit
    return Combatant(
        unit_id=unit.id,
        name=unit.name,
        army_id=unit.army_id,
        categories=tuple(unit.categories),
        keywords=tuple(unit.keywords),
        model_count=stats.model_count,
        toughness=stats.toughness,
        save=stats.save,
        invulnerable_save=stats.invulnerable_save,
        feel_no_pain=stats.feel_no_pain,
        is_leader=is_leader,
        leader_id=unit.leaders[0].id if unit.leaders else None,
        is_attached_leader=is_leader and bool(unit.bodyguard_units),
    )


def _state_names(army_states: Iterable[ArmyState | str]) -> frozenset[str]:
    return frozenset(state.state if isinstance(state, ArmyState) else state for state in army_states)


def build_combat_context(
    attacker: Unit,
    defender: Unit,
    weapon: Weapon | WeaponProfile,
    game: GameSnapshot,
    *,
    combat_phase: CombatPhase | None = None,
    combat_role: CombatRole = CombatRole.ATTACKER,
    options: CombatOptions | None = None,
    rules: Sequence[AnyRule] = (),
    army_states: Iterable[ArmyState | str] = (),
) -> CombatContext:
    """Assemble a fresh evaluation context for one attack instance.

    ``army_states`` must already be scoped to the army whose rules are being
    evaluated (the attacker's for ``ATTACKER``, the defender's otherwise).
    """

    profile = weapon_profile(weapon)
    if combat_phase is None:
        combat_phase = CombatPhase.MELEE if profile.is_melee else CombatPhase.SHOOTING

    return CombatContext(
        attacker=combatant_from_unit(attacker),
        defender=combatant_from_unit(defender),
        weapon=profile,
        game=game,
        combat_phase=combat_phase,
        combat_role=CombatRole(combat_role),
        options=options or CombatOptions(),
        rules=tuple(rules),
        army_states=_state_names(army_states),
    )

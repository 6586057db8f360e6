"""Unit tests for the battlefield snapshot dataclasses and profiles."""

from warhost.domain import models as dm
from warhost.domain.context import combatant_from_unit
from warhost.domain.profiles import target_profile, weapon_profile


def _unit(**kwargs):
    return dm.Unit(id=dm.UnitID("u1"), name="Unit", **kwargs)


class TestUnit:
    """Leader detection."""

    def test_character_category_implies_leader(self):
        assert _unit(categories=["CHARACTER"]).leads_unit
        assert not _unit(categories=["Infantry"]).leads_unit

    def test_explicit_flag_wins(self):
        assert not _unit(categories=["Character"], is_leader=False).leads_unit
        assert _unit(is_leader=True).leads_unit


def test_weapon_usage_tracking():
    weapon = dm.Weapon(
        id=dm.WeaponID("w"), name="Power klaw", range=0, attacks="3", skill=4, strength=9, ap=-2, damage="2",
        turns_fired=["1-p1"],
    )
    assert weapon.is_melee
    assert weapon.has_fired("1-p1")
    assert not weapon.has_fired("2-p1")
    assert weapon_profile(weapon).is_melee


def test_army_active_states():
    army = dm.Army(
        id=dm.ArmyID("orks"),
        name="Orks",
        states=[dm.ArmyState(army_id=dm.ArmyID("orks"), state="waaagh")],
    )
    assert army.active_states == frozenset({"waaagh"})


def test_target_profile_uses_first_model_and_keyword_fallback():
    unit = _unit(
        categories=["Infantry"],
        keywords=["Invulnerable Save 4+", "Feel No Pain 6+"],
        models=[
            dm.Model(id=dm.ModelID("a"), name="Nob", toughness=5, save=4, feel_no_pain=5),
            dm.Model(id=dm.ModelID("b"), name="Boy"),
        ],
    )
    profile = target_profile(unit)
    assert (profile.toughness, profile.save, profile.model_count) == (5, 4, 2)
    assert profile.invulnerable_save == 4
    assert profile.feel_no_pain == 5
    assert profile.has_category("infantry")


def test_empty_unit_profile():
    profile = target_profile(_unit())
    assert (profile.toughness, profile.save, profile.model_count) == (0, 7, 0)


def test_combatant_from_attached_leader():
    bodyguard = _unit()
    leader = dm.Unit(id=dm.UnitID("boss"), name="Boss", categories=["Character"], bodyguard_units=[bodyguard])
    combatant = combatant_from_unit(leader)
    assert combatant.is_leader
    assert combatant.is_attached_leader
    assert combatant.leader_id is None

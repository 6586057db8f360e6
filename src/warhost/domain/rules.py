"""Typed rule definitions and payload parsing.

Rules arrive from the data store as opaque JSON text attached to units,
models and weapons.  A payload decodes to either one rule object or a list of
rule objects (abilities that bundle several effects under one name).  This
module validates such payloads into immutable pydantic models before any
other part of the engine sees them.

Every tagged variant carries a ``t`` discriminator (``kind`` for the rule
variants themselves), mirroring the JSON representation one-to-one.
"""

from __future__ import annotations

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from warhost.domain.enums import (
    Phase,
    RerollKind,
    RollPhase,
    RuleScope,
    ThresholdKind,
    TriggerType,
    TurnContext,
    UsageLimit,
    WeaponType,
    parse_phase,
)
from warhost.errors import RuleValidationError


class RuleSchemaModel(BaseModel):
    """Base configuration shared by every rule schema node."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


# --- Typed abilities -------------------------------------------------------------

UnitAbilityFlag = Literal[
    "deepStrike",
    "fightsFirst",
    "infiltrators",
    "leader",
    "loneOperative",
    "stealth",
]

WeaponAbilityFlag = Literal[
    "assault",
    "blast",
    "devastatingWounds",
    "extraAttacks",
    "hazardous",
    "heavy",
    "ignoresCover",
    "indirectFire",
    "lance",
    "lethalHits",
    "pistol",
    "precision",
    "torrent",
    "twinLinked",
]


class DeadlyDemise(RuleSchemaModel):
    t: Literal["deadlyDemise"] = "deadlyDemise"
    x: int = Field(..., ge=1)


class FeelNoPainAbility(RuleSchemaModel):
    t: Literal["feelNoPain"] = "feelNoPain"
    threshold: int = Field(..., ge=2, le=6)


class Scouts(RuleSchemaModel):
    t: Literal["scouts"] = "scouts"
    distance: int = Field(..., ge=1, le=12)


class UnitFlag(RuleSchemaModel):
    t: Literal["flag"] = "flag"
    id: UnitAbilityFlag


UnitAbility = Annotated[
    Union[DeadlyDemise, FeelNoPainAbility, Scouts, UnitFlag],
    Field(discriminator="t"),
]


class RapidFire(RuleSchemaModel):
    t: Literal["rapidFire"] = "rapidFire"
    x: int = Field(..., ge=1)


class SustainedHits(RuleSchemaModel):
    t: Literal["sustainedHits"] = "sustainedHits"
    x: int = Field(..., ge=1)


class Melta(RuleSchemaModel):
    t: Literal["melta"] = "melta"
    x: int = Field(..., ge=1)


class Anti(RuleSchemaModel):
    t: Literal["anti"] = "anti"
    keyword: str = Field(..., min_length=1)
    threshold: int = Field(..., ge=2, le=6)


class WeaponFlag(RuleSchemaModel):
    t: Literal["flag"] = "flag"
    id: WeaponAbilityFlag


WeaponAbility = Annotated[
    Union[RapidFire, SustainedHits, Melta, Anti, WeaponFlag],
    Field(discriminator="t"),
]


# --- Conditions (When tree) ------------------------------------------------------


class Always(RuleSchemaModel):
    t: Literal["true"] = "true"


class Never(RuleSchemaModel):
    t: Literal["false"] = "false"


class WeaponTypeIs(RuleSchemaModel):
    t: Literal["weaponType"] = "weaponType"
    types: tuple[WeaponType, ...] = Field(..., alias="any", min_length=1)


class TargetCategory(RuleSchemaModel):
    t: Literal["targetCategory"] = "targetCategory"
    categories: tuple[str, ...] = Field(..., alias="any", min_length=1)


class UnitStatus(RuleSchemaModel):
    t: Literal["unitStatus"] = "unitStatus"
    has: tuple[str, ...] = Field(..., min_length=1)


class ArmyStateCondition(RuleSchemaModel):
    t: Literal["armyState"] = "armyState"
    states: tuple[str, ...] = Field(..., alias="is", min_length=1)


class IsLeading(RuleSchemaModel):
    t: Literal["isLeading"] = "isLeading"


class CombatRoleIs(RuleSchemaModel):
    t: Literal["combatRole"] = "combatRole"
    role: Literal["attacker", "defender"]


class UserInputEquals(RuleSchemaModel):
    t: Literal["userInput"] = "userInput"
    id: str = Field(..., min_length=1)
    equals: bool | int | str


class WeaponHasAbility(RuleSchemaModel):
    t: Literal["weaponHasAbility"] = "weaponHasAbility"
    ability: WeaponAbility


class UnitHasAbility(RuleSchemaModel):
    t: Literal["unitHasAbility"] = "unitHasAbility"
    ability: UnitAbility


class AllOf(RuleSchemaModel):
    t: Literal["all"] = "all"
    xs: tuple[When, ...] = ()


class AnyOf(RuleSchemaModel):
    t: Literal["any"] = "any"
    xs: tuple[When, ...] = ()


class Not(RuleSchemaModel):
    t: Literal["not"] = "not"
    x: When


When = Annotated[
    Union[
        Always,
        Never,
        WeaponTypeIs,
        TargetCategory,
        UnitStatus,
        ArmyStateCondition,
        IsLeading,
        CombatRoleIs,
        UserInputEquals,
        WeaponHasAbility,
        UnitHasAbility,
        AllOf,
        AnyOf,
        Not,
    ],
    Field(discriminator="t"),
]


# --- Effects ---------------------------------------------------------------------


class ModifyHit(RuleSchemaModel):
    """Offensive hit roll modifier (applies while this unit attacks)."""

    t: Literal["modHit"] = "modHit"
    add: int


class ModifyWound(RuleSchemaModel):
    """Offensive wound roll modifier."""

    t: Literal["modWound"] = "modWound"
    add: int


class ModifyHitAgainst(RuleSchemaModel):
    """Defensive modifier to hit rolls made against this unit."""

    t: Literal["modHitAgainst"] = "modHitAgainst"
    add: int


class ModifyWoundAgainst(RuleSchemaModel):
    """Defensive modifier to wound rolls made against this unit."""

    t: Literal["modWoundAgainst"] = "modWoundAgainst"
    add: int


class ModifyWeaponStat(RuleSchemaModel):
    t: Literal["modWeaponStat"] = "modWeaponStat"
    stat: Literal["S", "AP", "A", "D"]
    add: int


class ModifyDefensiveStat(RuleSchemaModel):
    t: Literal["modDefensiveStat"] = "modDefensiveStat"
    stat: Literal["T", "SV"]
    add: int


class AddWeaponAbility(RuleSchemaModel):
    t: Literal["addWeaponAbility"] = "addWeaponAbility"
    ability: WeaponAbility


class AddUnitAbility(RuleSchemaModel):
    t: Literal["addUnitAbility"] = "addUnitAbility"
    ability: UnitAbility


class AddKeyword(RuleSchemaModel):
    """Free-form keyword added to the attacking weapon (e.g. ``"Lance"``)."""

    t: Literal["addKeyword"] = "addKeyword"
    keyword: str = Field(..., min_length=1)


class SetInvulnerableSave(RuleSchemaModel):
    t: Literal["setInvuln"] = "setInvuln"
    n: int = Field(..., ge=2, le=7)


class SetFeelNoPain(RuleSchemaModel):
    t: Literal["setFNP"] = "setFNP"
    n: int = Field(..., ge=2, le=7)


class GrantReroll(RuleSchemaModel):
    t: Literal["reroll"] = "reroll"
    phase: RollPhase
    kind: RerollKind


class OverrideThreshold(RuleSchemaModel):
    """Replace a roll target outright; does not stack with other overrides."""

    t: Literal["overrideThreshold"] = "overrideThreshold"
    which: ThresholdKind
    n: int = Field(..., ge=2, le=7)


Fx = Annotated[
    Union[
        ModifyHit,
        ModifyWound,
        ModifyHitAgainst,
        ModifyWoundAgainst,
        ModifyWeaponStat,
        ModifyDefensiveStat,
        AddWeaponAbility,
        AddUnitAbility,
        AddKeyword,
        SetInvulnerableSave,
        SetFeelNoPain,
        GrantReroll,
        OverrideThreshold,
    ],
    Field(discriminator="t"),
]


# --- Blocks ----------------------------------------------------------------------


class DoBlock(RuleSchemaModel):
    t: Literal["do"] = "do"
    fx: tuple[Fx, ...] = ()


class IfBlock(RuleSchemaModel):
    t: Literal["if"] = "if"
    when: When
    then: tuple[Block, ...] = Field(..., min_length=1)


Block = Annotated[Union[DoBlock, IfBlock], Field(discriminator="t")]


# --- Choices ---------------------------------------------------------------------


class ChoiceOption(RuleSchemaModel):
    v: str
    label: str
    then: tuple[Block, ...] = Field(..., min_length=1)


class Choice(RuleSchemaModel):
    id: str = Field(..., min_length=1)
    prompt: str
    lifetime: Literal["roll", "turn", "game"] = "roll"
    options: tuple[ChoiceOption, ...] = Field(..., min_length=2)

    def option(self, value: object) -> ChoiceOption | None:
        """Return the option whose value matches ``value``."""

        for option in self.options:
            if option.v == value:
                return option
        return None


# --- Rules -----------------------------------------------------------------------


class Trigger(RuleSchemaModel):
    """When an ability is relevant: phase(s), turn side, and reactivity."""

    t: TriggerType = TriggerType.AUTOMATIC
    phase: Phase | tuple[Phase, ...] = Phase.ANY
    turn: TurnContext = TurnContext.BOTH
    limit: UsageLimit = UsageLimit.NONE

    @field_validator("phase", mode="before")
    @classmethod
    def _accept_phase_aliases(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_phase(value)
        if isinstance(value, list | tuple):
            return tuple(parse_phase(item) if isinstance(item, str) else item for item in value)
        return value

    @property
    def phases(self) -> tuple[Phase, ...]:
        if isinstance(self.phase, tuple):
            return self.phase
        return (self.phase,)

    def matches_phase(self, phase: Phase | str) -> bool:
        return Phase.ANY in self.phases or parse_phase(phase) in self.phases

    def matches_turn(self, turn: TurnContext | str) -> bool:
        turn = TurnContext(turn)
        return TurnContext.BOTH in (self.turn, turn) or self.turn == turn


class RuleBase(RuleSchemaModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = ""
    faction: str = ""
    scope: RuleScope
    trigger: Trigger | None = None
    when: When | None = None

    @property
    def is_reactive(self) -> bool:
        return self.trigger is not None and self.trigger.t == TriggerType.REACTIVE

    def is_reactive_for(self, phase: Phase | str) -> bool:
        """True when this ability can be used reactively during ``phase``."""

        return self.is_reactive and self.trigger is not None and self.trigger.matches_phase(phase)


class PassiveRule(RuleBase):
    kind: Literal["passive"] = "passive"
    then: tuple[Block, ...] = Field(..., min_length=1)


class ChoiceRule(RuleBase):
    kind: Literal["choice"] = "choice"
    choice: Choice


class ReminderRule(RuleBase):
    kind: Literal["reminder"] = "reminder"


Rule = Annotated[Union[PassiveRule, ChoiceRule, ReminderRule], Field(discriminator="kind")]
AnyRule = PassiveRule | ChoiceRule | ReminderRule

for _model in (AllOf, AnyOf, Not, IfBlock, ChoiceOption, Choice, PassiveRule, ChoiceRule):
    _model.model_rebuild()

RULE_ADAPTER: TypeAdapter[AnyRule] = TypeAdapter(Rule)
RULE_LIST_ADAPTER: TypeAdapter[list[AnyRule]] = TypeAdapter(list[Rule])


def validate_rules(raw: object) -> list[AnyRule]:
    """Validate already-decoded JSON (one rule object or a list) into rules."""

    items = raw if isinstance(raw, list) else [raw]
    if not items:
        raise RuleValidationError("rule payload decoded to an empty list")
    try:
        return RULE_LIST_ADAPTER.validate_python(items)
    except ValidationError as exc:
        raise RuleValidationError(f"invalid rule payload: {exc}") from exc


def parse_rule_payload(payload: str | bytes) -> list[AnyRule]:
    """Decode a serialized rule payload into a flat list of validated rules.

    Raises:
        RuleValidationError: If the payload is not JSON or fails validation.
    """

    try:
        raw = json.loads(payload)
    except (json.JSONDecodeError, TypeError) as exc:
        raise RuleValidationError(f"rule payload is not valid JSON: {exc}") from exc
    return validate_rules(raw)


def dump_rule(rule: AnyRule) -> str:
    """Serialize a rule back to the JSON text stored on rule links."""

    return rule.model_dump_json(by_alias=True, exclude_none=True)

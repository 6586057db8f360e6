"""JSON rule packs: versioned, validated collections of rule definitions."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from warhost.domain.models import RuleLink
from warhost.domain.rules import AnyRule, Rule, dump_rule
from warhost.errors import RuleValidationError

logger = logging.getLogger(__name__)

PACK_FORMAT_VERSION = 1


class RulePack(BaseModel):
    """A faction's (or the core game's) rule definitions."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    format_version: int = PACK_FORMAT_VERSION
    version: str = "1"
    faction: str | None = None
    rules: tuple[Rule, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> RulePack:
        seen: set[str] = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(f"duplicate rule id {rule.id!r}")
            seen.add(rule.id)
        if self.format_version != PACK_FORMAT_VERSION:
            raise ValueError(f"unsupported rule pack format {self.format_version}")
        return self


RULE_PACK_ADAPTER: TypeAdapter[RulePack] = TypeAdapter(RulePack)


def load_rule_pack(data: str | bytes) -> RulePack:
    """Validate a serialized rule pack.

    Raises:
        RuleValidationError: If the pack is malformed.
    """

    try:
        return RULE_PACK_ADAPTER.validate_json(data)
    except ValidationError as exc:
        raise RuleValidationError(f"invalid rule pack: {exc}") from exc


def load_rule_pack_file(path: Path) -> RulePack:
    pack = load_rule_pack(path.read_bytes())
    logger.info("Loaded %d rules from %s (version %s)", len(pack.rules), path, pack.version)
    return pack


class RuleLibrary:
    """Rules from one or more packs, indexed by id."""

    def __init__(self, packs: tuple[RulePack, ...] | list[RulePack] = ()) -> None:
        self._rules: dict[str, AnyRule] = {}
        for pack in packs:
            self.add_pack(pack)

    @classmethod
    def from_directory(
        cls, directory: Path, pattern: str = "*.json", *, expected_version: str | None = None
    ) -> RuleLibrary:
        """Load every pack in ``directory`` (sorted by file name).

        With ``expected_version`` set, a pack of any other version is rejected.
        """

        packs = [load_rule_pack_file(path) for path in sorted(directory.glob(pattern))]
        if expected_version is not None:
            for pack in packs:
                if pack.version != expected_version:
                    raise RuleValidationError(
                        f"rule pack {pack.faction or 'core'!r} is version {pack.version}, expected {expected_version}"
                    )
        return cls(packs)

    def add_pack(self, pack: RulePack) -> None:
        for rule in pack.rules:
            if rule.id in self._rules:
                raise RuleValidationError(f"rule id {rule.id!r} defined by more than one pack")
            self._rules[rule.id] = rule

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[AnyRule]:
        return iter(self._rules.values())

    def get(self, rule_id: str) -> AnyRule:
        try:
            return self._rules[rule_id]
        except KeyError:
            raise KeyError(f"unknown rule id {rule_id!r}") from None

    def link(self, *rule_ids: str, name: str | None = None) -> RuleLink:
        """Build a rule link carrying one rule, or several bundled under ``name``."""

        if not rule_ids:
            raise ValueError("at least one rule id is required")
        rules = [self.get(rule_id) for rule_id in rule_ids]
        if len(rules) == 1:
            return RuleLink(name=name or rules[0].name, rule_object=dump_rule(rules[0]))
        payload = "[" + ",".join(dump_rule(rule) for rule in rules) + "]"
        return RuleLink(name=name or rules[0].name, rule_object=payload)

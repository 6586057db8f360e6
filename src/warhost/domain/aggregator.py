"""Rule aggregation across a unit, its models, and leader attachments.

A unit's effective rule set is built from its own abilities plus the
``unit``-scoped abilities of whatever it is attached to.  ``model``-scoped
abilities never cross an attachment: they stay with the model bearing them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from warhost.domain.enums import RuleScope
from warhost.domain.models import RuleLink, Unit
from warhost.domain.rules import AnyRule, parse_rule_payload
from warhost.errors import AttachmentConflictError

logger = logging.getLogger(__name__)


def attached_leaders_of(unit: Unit) -> list[Unit]:
    """Leader units attached to ``unit`` (``unit`` is the bodyguard)."""

    return list(unit.leaders)


def bodyguards_of(unit: Unit) -> list[Unit]:
    """Bodyguard units ``unit`` is leading (``unit`` is the leader)."""

    return list(unit.bodyguard_units)


def _decode_links(links: Iterable[RuleLink]) -> Iterator[AnyRule]:
    for link in links:
        if not link.rule_object:
            continue
        # one-or-many payload; malformed text raises RuleValidationError
        yield from parse_rule_payload(link.rule_object)


def _own_rules(unit: Unit, *, include_model_rules: bool, include_weapon_rules: bool) -> Iterator[AnyRule]:
    yield from _decode_links(unit.unit_rules)
    for model in unit.models:
        if include_model_rules:
            yield from _decode_links(model.model_rules)
        if include_weapon_rules:
            for weapon in model.weapons:
                yield from _decode_links(weapon.weapon_rules)


def _transferred_rules(source: Unit, relation: str) -> Iterator[AnyRule]:
    """Unit-scoped rules of ``source`` and its models, crossing the attachment."""

    links = [*source.unit_rules, *(link for model in source.models for link in model.model_rules)]
    for rule in _decode_links(links):
        if rule.scope == RuleScope.UNIT:
            logger.debug("Transferring %s rule %s (%s) from %s", relation, rule.id, rule.name, source.name)
            yield rule
        else:
            logger.debug(
                "Keeping %s rule %s (scope %s) local to %s", relation, rule.id, rule.scope, source.name
            )


def get_all_unit_rules(
    unit: Unit,
    *,
    include_leaders: bool = True,
    include_model_rules: bool = True,
    include_weapon_rules: bool = True,
) -> list[AnyRule]:
    """Return the deduplicated rule set that applies to ``unit``.

    Order: the unit's own rules (every scope), its models' rules, its
    weapons' rules, then unit-scoped rules inherited from attached leaders
    or, when ``unit`` is itself the leader, from its bodyguards.  On a
    duplicate id the first occurrence wins.

    Raises:
        AttachmentConflictError: If both ``leaders`` and ``bodyguard_units``
            are populated.
        RuleValidationError: If any attached rule payload is malformed.
    """

    leaders = attached_leaders_of(unit)
    bodyguards = bodyguards_of(unit)
    if leaders and bodyguards:
        raise AttachmentConflictError(
            f"unit {unit.id} reports both attached leaders and bodyguard units"
        )

    sources: list[Iterable[AnyRule]] = [
        _own_rules(unit, include_model_rules=include_model_rules, include_weapon_rules=include_weapon_rules)
    ]
    if include_leaders:
        sources.extend(_transferred_rules(leader, "leader") for leader in leaders)
        sources.extend(_transferred_rules(bodyguard, "bodyguard") for bodyguard in bodyguards)

    rules: list[AnyRule] = []
    seen: set[str] = set()
    for source in sources:
        for rule in source:
            if rule.id in seen:
                continue
            seen.add(rule.id)
            rules.append(rule)
    return rules

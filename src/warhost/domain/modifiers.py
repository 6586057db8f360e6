"""Modifier accumulator shared by the rule applier and the combat engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Operation(StrEnum):
    ADD = "+"
    SET = "set"


@dataclass(frozen=True, slots=True)
class Modifier:
    """A single stat modification contributed by a rule."""

    source: str
    stat: str
    value: int
    operation: Operation = Operation.ADD
    priority: int = 0


@dataclass(slots=True)
class ModifierStack:
    """Collects modifiers per stat.

    Additive modifiers stack order-independently.  ``SET`` modifiers replace
    the running value, so the last one applied (in priority, then insertion
    order) wins.
    """

    _modifiers: dict[str, list[Modifier]] = field(default_factory=dict)

    def add(self, modifier: Modifier) -> None:
        mods = self._modifiers.setdefault(modifier.stat, [])
        mods.append(modifier)
        # sort is stable: equal priorities keep insertion order
        mods.sort(key=lambda mod: mod.priority)

    def get(self, stat: str) -> int:
        """Return the net additive modifier for ``stat``."""

        return sum(mod.value for mod in self._modifiers.get(stat, []) if mod.operation == Operation.ADD)

    def last_set(self, stat: str) -> int | None:
        """Return the winning ``SET`` value for ``stat``, if any."""

        values = [mod.value for mod in self._modifiers.get(stat, []) if mod.operation == Operation.SET]
        return values[-1] if values else None

    def has(self, stat: str) -> bool:
        return any(mod.value > 0 for mod in self._modifiers.get(stat, []))

    def sources(self, stat: str) -> list[str]:
        """Unique rule ids that contributed to ``stat``, in application order."""

        return list(dict.fromkeys(mod.source for mod in self._modifiers.get(stat, [])))

    def stats(self) -> list[str]:
        return list(self._modifiers)

"""Rules engine and combat-resolution core for Warhost.

Everything here is a pure, in-memory transformation over snapshots handed in
by the host application:

* Rule schema and payload parsing (see :mod:`rules`).
* Condition evaluation, rule aggregation across leader attachments and
  effect application (:mod:`conditions`, :mod:`aggregator`, :mod:`applier`).
* The combat step machine and its serializable result (:mod:`combat`).
* Reminder filtering, the ability glossary and phase-cycle helpers.
"""

from . import (
    aggregator,
    applier,
    combat,
    combat_state,
    conditions,
    context,
    dice,
    enums,
    glossary,
    keywords,
    models,
    modifiers,
    profiles,
    reminders,
    rules,
    rules_config,
    turns,
)

__all__ = [
    "aggregator",
    "applier",
    "combat",
    "combat_state",
    "conditions",
    "context",
    "dice",
    "enums",
    "glossary",
    "keywords",
    "models",
    "modifiers",
    "profiles",
    "reminders",
    "rules",
    "rules_config",
    "turns",
]

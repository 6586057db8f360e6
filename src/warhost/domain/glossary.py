"""Plain-language explanations for core and parameterised abilities."""

from __future__ import annotations

import re
from collections.abc import Callable
from types import MappingProxyType

NO_DESCRIPTION = "No description available."


def _plural(count: str, word: str) -> str:
    return word if count == "1" else f"{word}s"


_Template = Callable[[re.Match[str]], str]

PATTERNS: tuple[tuple[re.Pattern[str], _Template], ...] = (
    (
        re.compile(r"^Anti-(\w+)\s+(\d+)\+$"),
        lambda m: (
            f"Wound rolls of {m[2]}+ against {m[1]} units are Critical Wounds and succeed automatically."
        ),
    ),
    (
        re.compile(r"^Rapid Fire (\d+)$"),
        lambda m: f"Fires {m[1]} extra {_plural(m[1], 'shot')} against targets within half range.",
    ),
    (
        re.compile(r"^Melta (\d+)$"),
        lambda m: f"Deals {m[1]} extra damage against targets within half range.",
    ),
    (
        re.compile(r"^Sustained Hits (\d+)$"),
        lambda m: f"Each Critical Hit scores {m[1]} additional {_plural(m[1], 'hit')}.",
    ),
    (
        re.compile(r"^Feel No Pain (\d+)\+$"),
        lambda m: f"Roll a D6 each time a wound would be lost; on a {m[1]}+ it is not lost.",
    ),
    (
        re.compile(r'^Scouts (\d+)"$'),
        lambda m: f'May make a free {m[1]}" move after deployment, before the first turn.',
    ),
    (
        re.compile(r"^Firing Deck (\d+)$"),
        lambda m: (
            f"May shoot with up to {m[1]} {_plural(m[1], 'weapon')} carried by models embarked in this transport."
        ),
    ),
    (
        re.compile(r"^Deadly Demise (\d+)$"),
        lambda m: (
            f"When destroyed, roll a D6: on a 6, each nearby unit suffers {m[1]} mortal "
            f"{_plural(m[1], 'wound')}."
        ),
    ),
)

COMMON_RULES: MappingProxyType[str, str] = MappingProxyType(
    {
        # weapon abilities
        "Assault": "Can shoot in a turn in which the unit Advanced.",
        "Blast": "Gains one attack for every five models in the target unit.",
        "Conversion": "Hit rolls of 4+ are Critical Hits against targets more than 12\" away.",
        "Devastating Wounds": "Critical Wounds cannot be saved, not even with an invulnerable save.",
        "Extra Attacks": "Attacks in addition to the bearer's other melee weapon; its Attacks cannot be modified.",
        "Hazardous": "After attacking, roll a D6 per Hazardous weapon; on a 1 the bearer suffers the consequences.",
        "Heavy": "+1 to hit if the unit Remained Stationary this turn.",
        "Ignores Cover": "The target does not get the Benefit of Cover.",
        "Indirect Fire": "Can target units out of sight, at -1 to hit, and the target gets the Benefit of Cover.",
        "Lance": "+1 to wound in a turn in which the unit made a Charge.",
        "Lethal Hits": "Critical Hits wound automatically without a wound roll.",
        "Linked Fire": "Can measure range and visibility from another friendly unit it can see.",
        "Pistol": "Can shoot while within Engagement Range, but only at units it is engaged with.",
        "Precision": "Attacks can be allocated to a Character attached to the target unit.",
        "Psychic": "A psychic attack; some abilities react to it.",
        "Torrent": "Hits automatically; no hit roll is made.",
        "Twin-linked": "Can re-roll failed wound rolls.",
        # core abilities
        "Deep Strike": "Can be set up from Reserves more than 9\" away from all enemy units.",
        "Fights First": "Fights in the Fights First step of the Fight phase.",
        "Infiltrators": "Can deploy anywhere more than 9\" away from the enemy.",
        "Leader": "This Character can be attached to a Bodyguard unit before the battle.",
        "Lone Operative": "Cannot be targeted by ranged attacks from more than 12\" away.",
        "Stealth": "Ranged attacks against a unit where every model has Stealth are at -1 to hit.",
    }
)


def describe_parameterised(name: str) -> str | None:
    """Explain ``name`` when it matches a parameterised ability pattern."""

    text = name.strip()
    for pattern, template in PATTERNS:
        if match := pattern.match(text):
            return template(match)
    return None


def describe_rule(name: str, description: str | None = None) -> str:
    """Best available explanation: pattern, then ``description``, then core rule."""

    return (
        describe_parameterised(name)
        or description
        or COMMON_RULES.get(name.strip())
        or NO_DESCRIPTION
    )

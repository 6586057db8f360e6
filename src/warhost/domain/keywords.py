"""Weapon and unit keyword parsing.

Weapon keywords are free text on the profile ("Sustained Hits 1",
"Anti-Vehicle 4+", "Twin-linked").  The engine only ever consumes the parsed
:class:`WeaponKeywords` view.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from warhost.domain.rules import (
    Anti,
    DeadlyDemise,
    FeelNoPainAbility,
    Melta,
    RapidFire,
    Scouts,
    SustainedHits,
    UnitFlag,
    WeaponFlag,
)

_RAPID_FIRE_RE = re.compile(r"^rapid\s+fire\s+(\d+)$", re.IGNORECASE)
_SUSTAINED_HITS_RE = re.compile(r"^sustained\s+hits\s+(\d+)$", re.IGNORECASE)
_MELTA_RE = re.compile(r"^melta\s+(\d+)$", re.IGNORECASE)
_ANTI_RE = re.compile(r"^anti[- ](.+?)\s+(\d+)\+?$", re.IGNORECASE)
_INVULN_RE = re.compile(r"^invulnerable\s+save\s+(\d+)\+?$", re.IGNORECASE)
_FNP_RE = re.compile(r"^feel\s+no\s+pain\s+(\d+)\+?$", re.IGNORECASE)
_CAMEL_RE = re.compile(r"([A-Z])")

_FLAG_KEYWORDS = {
    "assault": "assault",
    "blast": "blast",
    "devastatingwounds": "devastating_wounds",
    "extraattacks": "extra_attacks",
    "hazardous": "hazardous",
    "heavy": "heavy",
    "ignorescover": "ignores_cover",
    "indirectfire": "indirect_fire",
    "lance": "lance",
    "lethalhits": "lethal_hits",
    "pistol": "pistol",
    "precision": "precision",
    "torrent": "torrent",
    "twinlinked": "twin_linked",
}


def normalize_keyword(keyword: str) -> str:
    """Fold case and drop punctuation so "Twin-linked" equals "twinLinked"."""

    return re.sub(r"[^a-z0-9]", "", keyword.lower())


@dataclass(frozen=True, slots=True)
class WeaponKeywords:
    """Parsed special rules of a weapon profile."""

    rapid_fire: int = 0
    sustained_hits: int = 0
    melta: int = 0
    anti: tuple[tuple[str, int], ...] = ()
    assault: bool = False
    blast: bool = False
    devastating_wounds: bool = False
    extra_attacks: bool = False
    hazardous: bool = False
    heavy: bool = False
    ignores_cover: bool = False
    indirect_fire: bool = False
    lance: bool = False
    lethal_hits: bool = False
    pistol: bool = False
    precision: bool = False
    torrent: bool = False
    twin_linked: bool = False

    def anti_threshold(self, categories: Iterable[str]) -> int | None:
        """Best (lowest) Anti-X threshold that applies to a target."""

        wanted = {normalize_keyword(cat) for cat in categories}
        matches = [threshold for keyword, threshold in self.anti if normalize_keyword(keyword) in wanted]
        return min(matches) if matches else None


def parse_weapon_keywords(keywords: Iterable[str]) -> WeaponKeywords:
    values: dict[str, object] = {}
    anti: list[tuple[str, int]] = []
    for raw in keywords:
        keyword = raw.strip()
        if match := _RAPID_FIRE_RE.match(keyword):
            values["rapid_fire"] = max(int(match.group(1)), int(values.get("rapid_fire", 0)))
        elif match := _SUSTAINED_HITS_RE.match(keyword):
            values["sustained_hits"] = max(int(match.group(1)), int(values.get("sustained_hits", 0)))
        elif match := _MELTA_RE.match(keyword):
            values["melta"] = max(int(match.group(1)), int(values.get("melta", 0)))
        elif match := _ANTI_RE.match(keyword):
            anti.append((match.group(1).strip(), int(match.group(2))))
        elif (field_name := _FLAG_KEYWORDS.get(normalize_keyword(keyword))) is not None:
            values[field_name] = True
    return WeaponKeywords(anti=tuple(anti), **values)  # type: ignore[arg-type]


def parse_unit_keywords(keywords: Iterable[str]) -> tuple[int | None, int | None]:
    """Extract ``(invulnerable_save, feel_no_pain)`` from unit keywords."""

    invuln: int | None = None
    fnp: int | None = None
    for keyword in keywords:
        keyword = keyword.strip()
        if match := _INVULN_RE.match(keyword):
            invuln = int(match.group(1))
        elif match := _FNP_RE.match(keyword):
            fnp = int(match.group(1))
    return invuln, fnp


def _title_from_camel(name: str) -> str:
    spaced = _CAMEL_RE.sub(r" \1", name).strip()
    return spaced[:1].upper() + spaced[1:]


def format_ability(ability: object) -> str:
    """Render a typed ability as the keyword text shown on a profile."""

    match ability:
        case WeaponFlag(id=flag) | UnitFlag(id=flag):
            return _title_from_camel(flag)
        case Scouts(distance=distance):
            return f"Scouts {distance}"
        case FeelNoPainAbility(threshold=threshold):
            return f"Feel No Pain {threshold}"
        case DeadlyDemise(x=x):
            return f"Deadly Demise {x}"
        case RapidFire(x=x):
            return f"Rapid Fire {x}"
        case SustainedHits(x=x):
            return f"Sustained Hits {x}"
        case Melta(x=x):
            return f"Melta {x}"
        case Anti(keyword=keyword, threshold=threshold):
            return f"Anti-{keyword} {threshold}+"
        case _:
            return _title_from_camel(str(getattr(ability, "t", ability)))


def ability_key(ability: object) -> str:
    """Stable key used to record a granted ability (``flag`` uses its id)."""

    if isinstance(ability, (WeaponFlag, UnitFlag)):
        return ability.id
    return str(getattr(ability, "t", ability))


def keywords_include(keywords: Iterable[str], ability: object) -> bool:
    """Whether ``ability`` appears among free-text ``keywords``."""

    wanted = normalize_keyword(format_ability(ability))
    return any(normalize_keyword(keyword) == wanted for keyword in keywords)

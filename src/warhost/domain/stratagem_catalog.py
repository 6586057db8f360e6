"""Stratagem catalog: core stratagems plus per-detachment lists."""

from __future__ import annotations

from dataclasses import dataclass

from warhost.domain.enums import Phase, RoundRestriction, TurnContext, parse_phase


@dataclass(frozen=True, slots=True)
class Stratagem:
    """A command-point ability the player spends during a phase.

    ``faction``/``detachment`` are ``None`` for core stratagems.  ``turn`` is
    whose turn it can be used in; ``phases`` may hold :attr:`Phase.ANY`.
    """

    id: str
    name: str
    cost: int
    phases: tuple[Phase, ...]
    when: str
    effect: str
    turn: TurnContext = TurnContext.BOTH
    faction: str | None = None
    detachment: str | None = None
    round_restriction: RoundRestriction = RoundRestriction.ANY

    @property
    def is_core(self) -> bool:
        return self.faction is None

    def matches_phase(self, phase: Phase | str) -> bool:
        return Phase.ANY in self.phases or parse_phase(phase) in self.phases

    def usable_on(self, turn_context: TurnContext | str) -> bool:
        """Whether the stratagem can be used on the given side's turn."""

        return self.turn == TurnContext.BOTH or self.turn == TurnContext(turn_context)

    def allowed_in_round(self, battle_round: int) -> bool:
        match self.round_restriction:
            case RoundRestriction.FIRST_ROUND_ONLY:
                return battle_round == 1
            case RoundRestriction.SECOND_ROUND_ONWARDS:
                return battle_round >= 2
            case _:
                return True


ANY_PHASE = (Phase.ANY,)
COMMAND = (Phase.COMMAND,)
MOVEMENT = (Phase.MOVEMENT,)
SHOOTING = (Phase.SHOOTING,)
CHARGE = (Phase.CHARGE,)
FIGHT = (Phase.FIGHT,)

OWN = TurnContext.OWN
OPPONENT = TurnContext.OPPONENT

# --- Core ------------------------------------------------------------------------

CORE_STRATAGEMS: tuple[Stratagem, ...] = (
    Stratagem(
        "command-reroll",
        "Command Re-roll",
        1,
        ANY_PHASE,
        "Any phase",
        "Re-roll one Hit roll, Wound roll, Damage roll, saving throw, Advance roll, Charge roll, "
        "Desperate Escape test, Hazardous test, or the number of attacks made with a weapon.",
    ),
    Stratagem(
        "grenade",
        "Grenade",
        1,
        SHOOTING,
        "Your Shooting phase",
        'Select one enemy unit within 8" of and visible to a GRENADES unit from your army. '
        "Roll six D6: for each 4+, that enemy unit suffers 1 mortal wound.",
        turn=OWN,
    ),
    Stratagem(
        "fire-overwatch",
        "Fire Overwatch",
        1,
        ANY_PHASE,
        "Your opponent's Charge or Movement phase, just after an enemy unit is set up or when an enemy "
        "unit starts or ends a Normal, Advance, Fall Back or Charge move",
        'Select one unit from your army within 24" of that enemy unit that would be eligible to shoot. '
        "That unit can shoot that enemy unit as if it were your Shooting phase, but an unmodified Hit "
        "roll of 6 is required to score a hit.",
        turn=OPPONENT,
    ),
    Stratagem(
        "heroic-intervention",
        "Heroic Intervention",
        2,
        CHARGE,
        "Your opponent's Charge phase, just after an enemy unit ends a Charge move",
        'Select one unit from your army within 6" of that enemy unit. That unit can declare a charge '
        "against that enemy unit as if it were your Charge phase.",
        turn=OPPONENT,
    ),
    Stratagem(
        "smokescreen",
        "Smokescreen",
        1,
        SHOOTING,
        "Your opponent's Shooting phase, just after an enemy unit has selected its targets",
        "Select one SMOKE unit from your army that was selected as a target. Until the end of the "
        "phase, models in that unit have the Benefit of Cover and the Stealth ability.",
        turn=OPPONENT,
    ),
    Stratagem(
        "go-to-ground",
        "Go to Ground",
        1,
        ANY_PHASE,
        "Your opponent's Shooting phase, just after an enemy unit has selected its targets",
        "Select one INFANTRY unit from your army that was selected as a target. Until the end of the "
        "phase, models in that unit have a 6+ invulnerable save and the Benefit of Cover.",
        turn=OPPONENT,
    ),
    Stratagem(
        "insane-bravery",
        "Insane Bravery",
        1,
        ANY_PHASE,
        "Any phase, just after you have failed a Battle-shock test for a unit from your army",
        "That unit is treated as having passed that test instead.",
    ),
    Stratagem(
        "tank-shock",
        "Tank Shock",
        1,
        CHARGE,
        "Your Charge phase, when a VEHICLE unit from your army ends a Charge move",
        "Select one enemy unit within Engagement Range and roll one D6 per model in it: for each 5+, "
        "that enemy unit suffers 1 mortal wound (to a maximum of 6).",
        turn=OWN,
    ),
    Stratagem(
        "rapid-ingress",
        "Rapid Ingress",
        1,
        MOVEMENT,
        "End of your opponent's Movement phase",
        'Select one unit from your army in Reserves and set it up more than 9" horizontally away '
        "from all enemy models.",
        turn=OPPONENT,
    ),
    Stratagem(
        "epic-challenge",
        "Epic Challenge",
        1,
        FIGHT,
        "Your opponent's Fight phase, just after an enemy unit has selected its targets",
        "Select one CHARACTER model from your army within Engagement Range of that enemy unit. Until "
        "the end of the phase, that model's unit is the only eligible target of that enemy unit.",
        turn=OPPONENT,
    ),
    Stratagem(
        "new-orders",
        "New Orders",
        1,
        COMMAND,
        "Your Command phase",
        "Once per battle, discard your active Secondary Mission and select a new one.",
        turn=OWN,
        round_restriction=RoundRestriction.SECOND_ROUND_ONWARDS,
    ),
)

# --- Orks ------------------------------------------------------------------------

ORKS_GREEN_TIDE: tuple[Stratagem, ...] = (
    Stratagem(
        "braggin-rights",
        "Braggin' Rights",
        1,
        COMMAND,
        "Your Command phase",
        'Select 2 BOYZ units within 6" of each other. Until your next Command phase, both count as '
        "having 10 or more models for their Mob Mentality ability.",
        turn=OWN,
        faction="Orks",
        detachment="Green Tide",
    ),
    Stratagem(
        "come-on-ladz",
        "Come On Ladz!",
        1,
        COMMAND,
        "Your Command phase",
        "Select one BOYZ unit. Return D3+2 destroyed models (excluding CHARACTER models) to it.",
        turn=OWN,
        faction="Orks",
        detachment="Green Tide",
    ),
    Stratagem(
        "tide-of-muscle",
        "Tide of Muscle",
        1,
        CHARGE,
        "Your Charge phase, when a BOYZ unit from your army is selected to declare a charge",
        "Add the current battle round number to that unit's Charge roll this turn.",
        turn=OWN,
        faction="Orks",
        detachment="Green Tide",
    ),
    Stratagem(
        "competitive-streak",
        "Competitive Streak",
        1,
        FIGHT,
        "Your Fight phase, when a BOYZ unit from your army is selected to fight",
        "Until the end of the phase, improve the AP of that unit's melee weapons by 1, or by 2 if it "
        "has 10 or more models.",
        turn=OWN,
        faction="Orks",
        detachment="Green Tide",
    ),
)

ORKS_SPEED_FREEKS: tuple[Stratagem, ...] = (
    Stratagem(
        "speediest-freeks",
        "Speediest Freeks",
        1,
        ANY_PHASE,
        "Your opponent's Shooting phase or Fight phase, after an enemy unit selects its targets",
        "Select one SPEED FREEKS or TRUKK unit that was selected as a target. Until the end of the "
        "phase it has a 5+ invulnerable save (4+ for a VEHICLE with Toughness 8 or less).",
        turn=OPPONENT,
        faction="Orks",
        detachment="Speed Freeks",
    ),
    Stratagem(
        "dakkastorm",
        "Dakkastorm",
        1,
        SHOOTING,
        "Your Shooting phase, when a SPEED FREEKS unit from your army is selected to shoot",
        "Until the end of the phase, that unit's ranged weapons have [SUSTAINED HITS 1], or "
        '[SUSTAINED HITS 2] if the target is within 9".',
        turn=OWN,
        faction="Orks",
        detachment="Speed Freeks",
    ),
    Stratagem(
        "blitza-fire",
        "Blitza Fire",
        1,
        SHOOTING,
        "Your Shooting phase, when a SPEED FREEKS unit from your army is selected to shoot",
        'Until the end of the phase, that unit\'s ranged weapons have [LETHAL HITS]; if the target is within 9", '
        "they score Critical Hits on unmodified Hit rolls of 5+.",
        turn=OWN,
        faction="Orks",
        detachment="Speed Freeks",
    ),
    Stratagem(
        "full-throttle",
        "Full Throttle!",
        1,
        CHARGE,
        "Your Charge phase, after a SPEED FREEKS unit from your army ends a Charge move",
        "Until the end of the turn, add 1 to the Wound roll for that unit's melee attacks.",
        turn=OWN,
        faction="Orks",
        detachment="Speed Freeks",
    ),
    Stratagem(
        "squig-flingin",
        "Squig Flingin'",
        1,
        MOVEMENT,
        "Your Movement phase, just after a SPEED FREEKS or TRUKK unit ends a Normal, Advance or Fall Back move",
        'Select one enemy unit within 9". It must take a Battle-shock test, subtracting 1 from the result.',
        turn=OWN,
        faction="Orks",
        detachment="Speed Freeks",
    ),
    Stratagem(
        "more-gitz-over-ere",
        "More Gitz Over 'Ere!",
        1,
        MOVEMENT,
        "Your opponent's Movement phase, after an enemy unit ends a move",
        'Select one SPEED FREEKS unit within 9" of that enemy unit and not in Engagement Range. It can '
        'make a Normal move of up to 6".',
        turn=OPPONENT,
        faction="Orks",
        detachment="Speed Freeks",
    ),
)

# --- Space Wolves ----------------------------------------------------------------

SPACE_WOLVES_SAGA_OF_THE_HUNTER: tuple[Stratagem, ...] = (
    Stratagem(
        "envelop-and-ensnare",
        "Envelop and Ensnare",
        1,
        FIGHT,
        "Your Fight phase, when a SPACE WOLVES unit (excluding MONSTERS or VEHICLES) has not been selected to fight",
        'That unit can make 6" Pile-in and Consolidation moves, ending closer to the closest enemy unit.',
        turn=OWN,
        faction="Space Wolves",
        detachment="Saga of the Hunter",
    ),
    Stratagem(
        "territorial-advantage",
        "Territorial Advantage",
        1,
        FIGHT,
        "Your Fight phase, just after an enemy unit is destroyed by an ADEPTUS ASTARTES unit from your army",
        "Pick one objective marker that unit is within range of. It stays under your control until your "
        "opponent controls it.",
        turn=OWN,
        faction="Space Wolves",
        detachment="Saga of the Hunter",
    ),
    Stratagem(
        "overwhelming-onslaught",
        "Overwhelming Onslaught",
        1,
        FIGHT,
        "Your opponent's Fight phase, just after an enemy unit has selected its targets",
        "Until the end of the phase, subtract 1 from Hit rolls made by that enemy unit.",
        turn=OPPONENT,
        faction="Space Wolves",
        detachment="Saga of the Hunter",
    ),
    Stratagem(
        "chosen-prey",
        "Chosen Prey",
        1,
        MOVEMENT,
        "Your Movement phase, just after a SPACE WOLVES unit from your army Falls Back",
        "That unit can shoot and declare a charge this turn.",
        turn=OWN,
        faction="Space Wolves",
        detachment="Saga of the Hunter",
    ),
    Stratagem(
        "bounding-advance",
        "Bounding Advance",
        1,
        ANY_PHASE,
        "Your Movement phase or Charge phase",
        "Until the end of the phase, models in that unit can move through non-TITANIC models.",
        turn=OWN,
        faction="Space Wolves",
        detachment="Saga of the Hunter",
    ),
    Stratagem(
        "marked-for-destruction",
        "Marked for Destruction",
        1,
        SHOOTING,
        "Your Shooting phase, select two ADEPTUS ASTARTES units that have not been selected to shoot",
        "Select one enemy unit visible to both. Your units can only target it this phase, and re-roll "
        "Wound rolls of 1 against it.",
        turn=OWN,
        faction="Space Wolves",
        detachment="Saga of the Hunter",
    ),
)

# --- Adeptus Astartes ------------------------------------------------------------

GLADIUS_TASK_FORCE: tuple[Stratagem, ...] = (
    Stratagem(
        "armour-of-contempt",
        "Armour of Contempt",
        1,
        ANY_PHASE,
        "Your opponent's Shooting phase or Fight phase, just after an enemy unit has selected its targets",
        "Until the attacking unit has finished making its attacks, worsen the AP of those attacks by 1.",
        turn=OPPONENT,
        faction="Adeptus Astartes",
        detachment="Gladius Task Force",
    ),
    Stratagem(
        "only-in-death-does-duty-end",
        "Only in Death Does Duty End",
        2,
        FIGHT,
        "Fight phase, just after an enemy unit has selected its targets",
        "Until the end of the phase, destroyed models that have not fought can fight before being removed.",
        turn=OPPONENT,
        faction="Adeptus Astartes",
        detachment="Gladius Task Force",
    ),
    Stratagem(
        "honour-the-chapter",
        "Honour the Chapter",
        1,
        FIGHT,
        "Fight phase",
        "Until the end of the phase, your unit's melee weapons have [LANCE]; under the Assault Doctrine "
        "also improve their AP by 1.",
        turn=OWN,
        faction="Adeptus Astartes",
        detachment="Gladius Task Force",
    ),
    Stratagem(
        "adaptive-strategy",
        "Adaptive Strategy",
        1,
        COMMAND,
        "Your Command phase",
        "Select a Combat Doctrine. Until your next Command phase, it is active for that unit instead.",
        turn=OWN,
        faction="Adeptus Astartes",
        detachment="Gladius Task Force",
    ),
    Stratagem(
        "storm-of-fire",
        "Storm of Fire",
        1,
        SHOOTING,
        "Your Shooting phase",
        "Until the end of the phase, your unit's ranged weapons have [IGNORES COVER]; under the "
        "Devastator Doctrine also improve their AP by 1.",
        turn=OWN,
        faction="Adeptus Astartes",
        detachment="Gladius Task Force",
    ),
    Stratagem(
        "squad-tactics",
        "Squad Tactics",
        1,
        MOVEMENT,
        "Your opponent's Movement phase, just after an enemy unit ends a Normal, Advance or Fall Back move",
        'Your unit can make a Normal move of up to D6", or 6" under the Tactical Doctrine.',
        turn=OPPONENT,
        faction="Adeptus Astartes",
        detachment="Gladius Task Force",
    ),
)

# --- Death Guard -----------------------------------------------------------------

DEATH_GUARD_MORTARIONS_HAMMER: tuple[Stratagem, ...] = (
    Stratagem(
        "blighted-land",
        "Blighted Land",
        2,
        MOVEMENT,
        "End of your Movement phase",
        'Select one terrain feature within 24" of a DEATH GUARD VEHICLE. Until your next turn, enemy '
        'units within 3" of it are Afflicted.',
        turn=OWN,
        faction="Death Guard",
        detachment="Mortarion's Hammer",
    ),
    Stratagem(
        "relentless-grind",
        "Relentless Grind",
        1,
        (Phase.MOVEMENT, Phase.CHARGE),
        "Your Movement phase or your Charge phase",
        "Until the end of the phase, a DEATH GUARD VEHICLE unit can move horizontally through terrain.",
        turn=OWN,
        faction="Death Guard",
        detachment="Mortarion's Hammer",
    ),
    Stratagem(
        "drawn-to-despair",
        "Drawn to Despair",
        1,
        SHOOTING,
        "Your Shooting phase",
        "Until the end of the phase, you can re-roll the Hit roll for attacks against visible enemy units "
        "(excluding AIRCRAFT) in your opponent's deployment zone.",
        turn=OWN,
        faction="Death Guard",
        detachment="Mortarion's Hammer",
    ),
    Stratagem(
        "font-of-filth",
        "Font of Filth",
        1,
        SHOOTING,
        "Your Shooting phase",
        "Until the end of the phase, ranged weapons of a DEATH GUARD VEHICLE unit have [ASSAULT].",
        turn=OWN,
        faction="Death Guard",
        detachment="Mortarion's Hammer",
    ),
    Stratagem(
        "eyestinger-storm",
        "Eyestinger Storm",
        1,
        COMMAND,
        "Your opponent's Command phase",
        "Each Afflicted enemy unit within range of an objective visible to your unit must take a "
        "Battle-shock test.",
        turn=OPPONENT,
        faction="Death Guard",
        detachment="Mortarion's Hammer",
    ),
    Stratagem(
        "stinking-mire",
        "Stinking Mire",
        1,
        CHARGE,
        "Start of your opponent's Charge phase",
        "Until the end of the phase, subtract 2 from Charge rolls targeting your DEATH GUARD VEHICLE unit.",
        turn=OPPONENT,
        faction="Death Guard",
        detachment="Mortarion's Hammer",
    ),
)

# (faction fragment, accepted detachment names, stratagems); names compare
# after normalize_keyword
DETACHMENT_STRATAGEMS: tuple[tuple[str, tuple[str, ...], tuple[Stratagem, ...]], ...] = (
    ("ork", ("Green Tide",), ORKS_GREEN_TIDE),
    ("ork", ("Speed Freeks", "Kult of Speed"), ORKS_SPEED_FREEKS),
    ("space wolves", ("Saga of the Hunter",), SPACE_WOLVES_SAGA_OF_THE_HUNTER),
    ("adeptus astartes", ("Gladius Task Force",), GLADIUS_TASK_FORCE),
    ("death guard", ("Mortarion's Hammer",), DEATH_GUARD_MORTARIONS_HAMMER),
)

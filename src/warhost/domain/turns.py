"""Read-only helpers over the host's phase cycle.

The host owns the turn counter, current phase and active player.  These
helpers only compute neighbouring positions and the views the rules engine
needs (turn context, weapon usage keys); they never store anything.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from warhost.domain.enums import Phase, TurnContext, parse_phase

PHASE_CYCLE: tuple[Phase, ...] = (
    Phase.COMMAND,
    Phase.MOVEMENT,
    Phase.SHOOTING,
    Phase.CHARGE,
    Phase.FIGHT,
)


@dataclass(frozen=True, slots=True)
class PhasePosition:
    """Where the game is: battle round, phase and whose turn it is."""

    turn: int
    phase: Phase
    active_player_id: str


def _player_index(players: Sequence[str], player_id: str) -> int:
    try:
        return list(players).index(player_id)
    except ValueError:
        raise ValueError(f"unknown active player {player_id!r}") from None


def next_position(position: PhasePosition, players: Sequence[str]) -> PhasePosition:
    """Step one phase forward.

    After the fight phase the next player starts at the command phase; the
    battle round advances once every player has had a turn.
    """

    index = PHASE_CYCLE.index(position.phase)
    if index < len(PHASE_CYCLE) - 1:
        return PhasePosition(position.turn, PHASE_CYCLE[index + 1], position.active_player_id)

    player = (_player_index(players, position.active_player_id) + 1) % len(players)
    turn = position.turn + 1 if player == 0 else position.turn
    return PhasePosition(turn, PHASE_CYCLE[0], players[player])


def previous_position(position: PhasePosition, players: Sequence[str]) -> PhasePosition:
    """Step one phase back; never moves before battle round 1."""

    index = PHASE_CYCLE.index(position.phase)
    if index > 0:
        return PhasePosition(position.turn, PHASE_CYCLE[index - 1], position.active_player_id)

    current = _player_index(players, position.active_player_id)
    player = (current - 1) % len(players)
    turn = max(1, position.turn - 1) if current == 0 else position.turn
    return PhasePosition(turn, PHASE_CYCLE[-1], players[player])


def next_phase(phase: Phase | str) -> Phase:
    phase = parse_phase(phase)
    return PHASE_CYCLE[(PHASE_CYCLE.index(phase) + 1) % len(PHASE_CYCLE)]


def previous_phase(phase: Phase | str) -> Phase:
    phase = parse_phase(phase)
    return PHASE_CYCLE[(PHASE_CYCLE.index(phase) - 1) % len(PHASE_CYCLE)]


def turn_context_for(active_player_id: str | None, viewing_player_id: str) -> TurnContext:
    """``own`` when the viewer is the active player, otherwise ``opponent``."""

    return TurnContext.OWN if active_player_id == viewing_player_id else TurnContext.OPPONENT


def turn_key(turn: int | None, player_id: str | None) -> str | None:
    """Key recorded in ``Weapon.turns_fired``; ``None`` until the game has started."""

    if not turn or not player_id:
        return None
    return f"{turn}-{player_id}"

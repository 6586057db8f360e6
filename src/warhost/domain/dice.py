"""Dice-expression parsing for attacks and damage characteristics."""

from __future__ import annotations

import re
from dataclasses import dataclass

from warhost.errors import DiceExpressionError
from warhost.interfaces.dice import IDiceRoller

_EXPRESSION_RE = re.compile(r"^(?:(\d*)\s*[dD]\s*(\d+))?\s*(?:([+-])?\s*(\d+))?$")


@dataclass(frozen=True, slots=True)
class DiceExpression:
    """``count``D``sides`` + ``bonus``; a literal value has ``count == 0``."""

    count: int = 0
    sides: int = 0
    bonus: int = 0

    @property
    def is_fixed(self) -> bool:
        return self.count == 0

    @property
    def minimum(self) -> int:
        return self.count + self.bonus

    def resolve(self, roller: IDiceRoller) -> tuple[int, list[int]]:
        """Roll the expression, returning the total and the individual dice."""

        rolls = roller.rolls(self.count, self.sides) if self.count else []
        return sum(rolls) + self.bonus, rolls

    def __str__(self) -> str:
        if self.is_fixed:
            return str(self.bonus)
        text = f"{self.count if self.count > 1 else ''}D{self.sides}"
        if self.bonus > 0:
            text += f"+{self.bonus}"
        elif self.bonus < 0:
            text += str(self.bonus)
        return text


def parse_dice_expression(text: str | int) -> DiceExpression:
    """Parse ``"2"``, ``"D3"``, ``"2D6"``, ``"D6+3"`` and friends.

    Raises:
        DiceExpressionError: If ``text`` is not a recognised expression.
    """

    if isinstance(text, int):
        if text < 0:
            raise DiceExpressionError(f"negative dice value: {text}")
        return DiceExpression(bonus=text)

    raw = text.strip()
    match = _EXPRESSION_RE.match(raw) if raw else None
    if match is None:
        raise DiceExpressionError(f"malformed dice expression: {text!r}")

    count_text, sides_text, sign, bonus_text = match.groups()
    if sides_text is None:
        if bonus_text is None or sign == "-":
            raise DiceExpressionError(f"malformed dice expression: {text!r}")
        return DiceExpression(bonus=int(bonus_text))

    count = int(count_text) if count_text else 1
    sides = int(sides_text)
    if count < 1 or sides < 1:
        raise DiceExpressionError(f"malformed dice expression: {text!r}")
    bonus = int(bonus_text) if bonus_text else 0
    if bonus_text is not None and sign is None:
        # "D6 3" needs an explicit sign
        raise DiceExpressionError(f"malformed dice expression: {text!r}")
    return DiceExpression(count=count, sides=sides, bonus=-bonus if sign == "-" else bonus)

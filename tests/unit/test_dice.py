"""Unit tests for dice expression parsing."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from warhost.domain.dice import DiceExpression, parse_dice_expression
from warhost.errors import DiceExpressionError
from warhost.utils.rng import ScriptedRoller, SeededRoller


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2", DiceExpression(bonus=2)),
        (3, DiceExpression(bonus=3)),
        ("D3", DiceExpression(1, 3, 0)),
        ("d6", DiceExpression(1, 6, 0)),
        ("2D6", DiceExpression(2, 6, 0)),
        ("D6+3", DiceExpression(1, 6, 3)),
        (" 2d3 - 1 ", DiceExpression(2, 3, -1)),
    ],
)
def test_parse_valid(text, expected):
    assert parse_dice_expression(text) == expected


@pytest.mark.parametrize("text", ["", "lots", "D", "0D6", "D0", "D6 3", "-1", "D6+", -2])
def test_parse_invalid(text):
    with pytest.raises(DiceExpressionError):
        parse_dice_expression(text)


def test_str_is_canonical():
    assert str(parse_dice_expression("1d6+0")) == "D6"
    assert str(parse_dice_expression("2D3-1")) == "2D3-1"
    assert str(parse_dice_expression("4")) == "4"


def test_resolve_rolls_each_die():
    total, rolls = parse_dice_expression("2D6+1").resolve(ScriptedRoller([3, 4]))
    assert (total, rolls) == (8, [3, 4])
    assert parse_dice_expression("5").resolve(ScriptedRoller([])) == (5, [])


@given(
    count=st.integers(min_value=1, max_value=4),
    sides=st.sampled_from([3, 6]),
    bonus=st.integers(min_value=-3, max_value=6),
    seed=st.text(min_size=1, max_size=12),
)
def test_resolve_stays_within_bounds(count, sides, bonus, seed):
    expression = DiceExpression(count, sides, bonus)
    assert parse_dice_expression(str(expression)) == expression
    total, rolls = expression.resolve(SeededRoller(seed))
    assert len(rolls) == count
    assert expression.minimum <= total <= count * sides + bonus

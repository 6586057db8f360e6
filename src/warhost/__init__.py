"""Warhost: rules engine and combat resolution for tabletop battles."""

from warhost.errors import (
    AttachmentConflictError,
    CombatStepError,
    DiceExpressionError,
    RuleValidationError,
    WarhostError,
)

__version__ = "0.1.0"

__all__ = [
    "AttachmentConflictError",
    "CombatStepError",
    "DiceExpressionError",
    "RuleValidationError",
    "WarhostError",
    "__version__",
]

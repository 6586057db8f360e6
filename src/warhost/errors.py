"""Exceptions raised by the Warhost rules engine."""


class WarhostError(Exception):
    """Base exception for the rules engine."""


class RuleValidationError(WarhostError, ValueError):
    """Raised when a rule payload or rule pack fails schema validation."""


class AttachmentConflictError(WarhostError, ValueError):
    """Raised when a unit reports both attached leaders and bodyguard units."""


class DiceExpressionError(WarhostError, ValueError):
    """Raised when an attacks or damage characteristic cannot be parsed."""


class CombatStepError(WarhostError, RuntimeError):
    """Raised when a combat step is invoked out of sequence."""

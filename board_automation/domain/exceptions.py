"""Domain level exceptions shared by the automation engine."""


class BoardAutomationError(Exception):
    """Base class for errors raised by the automation engine."""


class NotFoundError(BoardAutomationError, LookupError):
    """A card, column or rule does not exist in the expected board."""


class RuleValidationError(BoardAutomationError, ValueError):
    """An automation rule payload violates the rule invariants."""


__all__ = ["BoardAutomationError", "NotFoundError", "RuleValidationError"]

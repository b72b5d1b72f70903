"""
Exceptions raised by the bracket engine.
"""


class BracketError(Exception):
    """Base class for all bracket engine errors."""


class InvalidRosterError(BracketError):
    """The competitor list cannot be turned into a bracket."""


class ValidationError(BracketError):
    """A submitted result was rejected. The bracket is left unchanged."""

    def __init__(self, message, match_id=None):
        super().__init__(message)
        self.match_id = match_id


class InvariantViolationError(BracketError):
    """The bracket topology is inconsistent (a construction bug, not user error)."""

    def __init__(self, message, match_id=None):
        super().__init__(message)
        self.match_id = match_id


class StorageError(BracketError):
    """A bracket or roster file could not be read or written."""

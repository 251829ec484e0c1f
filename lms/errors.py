class LMSError(Exception):
    """Base class for errors raised by course, quiz and progress operations."""


class ValidationError(LMSError, ValueError):
    """Incomplete submission or malformed question/answer shape."""


class Conflict(LMSError):
    """The write would break an at-most-one rule (duplicate attempt, second quiz, ...)."""


class PermissionDenied(LMSError, PermissionError):
    """The acting user may not perform the operation."""


class NotFound(LMSError, LookupError):
    """A referenced course, lesson, quiz or user does not exist."""

"""
Exception types raised by the gym tracker core.

Not-found reads are not errors: store lookups return None and callers
render an empty state.
"""


class GymTrackerError(Exception):
    """Base class for all gym tracker errors."""

    pass


class PreconditionError(GymTrackerError, ValueError):
    """Raised when a caller omits a required identifier (owner, session, template)."""

    pass


class TemplateValidationError(GymTrackerError, ValueError):
    """Raised when a template cannot be saved."""

    pass


class SessionLockedError(GymTrackerError):
    """Raised when a finished session is mutated."""

    pass


class DocumentNotFoundError(GymTrackerError, KeyError):
    """Raised when an update targets a document that does not exist."""

    pass


def require(value: str | None, name: str) -> str:
    """
    Fail loudly when a required identifier is missing.

    Args:
        value: Identifier supplied by the caller
        name: Name for error message

    Returns:
        The identifier if present

    Raises:
        PreconditionError: If value is empty or None
    """
    if not value:
        raise PreconditionError(f"Missing {name}")
    return value

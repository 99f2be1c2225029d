"""
Errors raised by the commission and leveling services.

API routes translate these into HTTP responses; scheduler jobs log them.
"""


class CommissionError(Exception):
    """Base class for service errors."""


class InvalidInputError(CommissionError, ValueError):
    """A numeric argument is malformed or out of range.

    Never clamped or defaulted: it means the caller passed unvalidated data.
    """


class NotFoundError(CommissionError, LookupError):
    """A referenced deal, workspace, profile, commission or dispute is missing."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidStateError(CommissionError):
    """The record is in a state that does not allow the operation."""


class WriteFailedError(CommissionError):
    """Persisting the commission failed; the operation was not applied."""

"""
Error taxonomy for Jobly.

Client errors derive from BadRequestError so a caller can map the whole
family to one response; NotFoundError stands on its own.
"""

from typing import List, Optional


class JoblyError(Exception):
    """Base class for all Jobly errors."""
    pass


class BadRequestError(JoblyError):
    """Raised when the caller supplied unusable input."""
    pass


class InvalidArgumentError(BadRequestError):
    """Raised when an update payload is empty."""
    pass


class InvalidCriteriaError(BadRequestError):
    """Raised when search criteria are unknown, malformed or inconsistent."""
    pass


class DuplicateError(BadRequestError):
    """Raised when a create would violate a uniqueness precondition."""
    pass


class ValidationError(BadRequestError):
    """Raised when a payload fails schema checks."""

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "; ".join(self.errors))


class NotFoundError(JoblyError):
    """Raised when a keyed lookup, update or delete matches no row."""
    pass

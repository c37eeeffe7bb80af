"""
Custom exceptions for the application.
"""


class FrancoPathException(Exception):
    """Base exception for all FrancoPath application exceptions."""
    pass


class ValidationError(FrancoPathException):
    """Raised when validation fails."""
    pass


class InvalidInputError(ValidationError):
    """Raised when a quality rating or plan field is outside its allowed range."""
    pass


class NotFoundError(FrancoPathException):
    """Raised when a requested resource is not found."""
    pass


class ConflictError(FrancoPathException):
    """Raised when there's a conflict (e.g., reviewing a burned card)."""
    pass


class AdvisoryUnavailableError(FrancoPathException):
    """Raised when the plan advisor call fails, times out or answers garbage.

    Always recovered by the deck planner, which falls back to the default plan.
    """
    pass

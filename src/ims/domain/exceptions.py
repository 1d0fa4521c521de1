"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

Each class carries a machine-readable ``code`` and every instance a
``context`` dict with the structured details (offending field, conflicting
id, ...).  Callers branch on the type or the code, never on the message.
"""

from __future__ import annotations

from typing import Any


class DomainException(Exception):
    """Base class for all domain errors."""

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.context: dict[str, Any] = context


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    code = "VALIDATION_ERROR"


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    code = "NOT_FOUND"


NotFoundError = EntityNotFoundError


class InvalidStateError(ValidationError):
    """The operation is not allowed from the entity's current status."""

    code = "INVALID_STATE"


class InvalidStatusError(ValidationError):
    """An unknown device status value was supplied."""

    code = "INVALID_STATUS"


class NoChangeError(ValidationError):
    """The requested update would not change anything."""

    code = "NO_CHANGE"


class MissingRequiredFieldError(ValidationError):
    code = "MISSING_REQUIRED_FIELD"


class IncompleteAssessmentError(MissingRequiredFieldError):
    """A damage assessment left identifiers of the delivery undecided."""

    code = "INCOMPLETE_ASSESSMENT"


class DuplicateIdentifierError(ValidationError):
    """An IMEI or serial number is already used by another identifier."""

    code = "DUPLICATE_IDENTIFIER"


class TrackingModeMismatchError(ValidationError):
    code = "TRACKING_MODE_MISMATCH"


class InvalidPriceError(ValidationError):
    code = "INVALID_PRICE"


class InsufficientStockError(ValidationError):
    """A bulk stock adjustment would take the quantity below zero."""

    code = "INSUFFICIENT_STOCK"


class InvalidActionError(ValidationError):
    """Unrecognised disposition action."""

    code = "INVALID_ACTION"


class ImmutabilityViolationError(DomainException):
    """Something tried to update or delete an audit record."""

    code = "IMMUTABILITY_VIOLATION"

"""
Valuation error kinds.

Every pipeline-level failure raised by the core carries a stable,
machine-readable ``code`` plus a human-readable message. Row-level and
field-level problems are never raised; they are returned as data.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


# =============================================================================
# Error Codes
# =============================================================================

MALFORMED_INPUT = "MALFORMED_INPUT"
VALIDATION_ERROR = "VALIDATION_ERROR"
INSUFFICIENT_COMPS = "INSUFFICIENT_COMPS"
REGRESSION_FAILED = "REGRESSION_FAILED"


# =============================================================================
# Exceptions
# =============================================================================


class ValuationError(Exception):
    """Base class for all hard failures surfaced by the valuation core."""

    code: str = "VALUATION_ERROR"
    user_fixable: bool = True

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def is_user_fixable(self) -> bool:
        """Whether the caller can resolve this by changing the input."""
        return self.user_fixable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class MalformedInputError(ValuationError):
    """Raised when CSV input is empty, unparseable or has no usable rows."""

    code = MALFORMED_INPUT

    def __init__(self, errors: Sequence[str], warnings: Sequence[str] = ()):
        self.errors = list(errors)
        self.warnings = list(warnings)
        summary = self.errors[0] if self.errors else "Malformed input"
        if len(self.errors) > 1:
            summary = f"{summary} (+{len(self.errors) - 1} more)"
        super().__init__(summary, details={"errors": self.errors, "warnings": self.warnings})


class ValidationError(ValuationError):
    """Raised when a subject or comp fails schema/range checks."""

    code = VALIDATION_ERROR

    def __init__(self, errors: Sequence[Any], message: str = "Validation failed"):
        self.errors = list(errors)
        details = [e.to_dict() if hasattr(e, "to_dict") else e for e in self.errors]
        super().__init__(message, details=details)


class InsufficientCompsError(ValuationError):
    """Raised when fewer comps than the configured minimum are supplied."""

    code = INSUFFICIENT_COMPS

    def __init__(self, minimum: int, received: int):
        self.minimum = minimum
        self.received = received
        super().__init__(
            f"Insufficient comps: minimum {minimum} required, received {received}",
            details={"minimum": minimum, "received": received},
        )


class DegenerateRegressionError(ValuationError):
    """
    Raised when the regression cannot be solved numerically.

    Retrying with identical input will fail again; the caller needs comps
    with more variation in their features.
    """

    code = REGRESSION_FAILED
    user_fixable = False

    def __init__(self, message: str):
        super().__init__(
            f"{message}. Add comparable sales with more variation in their features."
        )

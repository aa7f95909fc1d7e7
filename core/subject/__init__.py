"""
Subject Property Layer

Validation and normalisation of the property being valued, plus the
best-effort geocoder that fills in its coordinates.
"""

from core.subject.validator import (
    FieldError,
    SubjectValidationResult,
    validate_subject_property,
)
from core.subject.geocoding import GeocodingClient, attach_coordinates

__all__ = [
    "FieldError",
    "SubjectValidationResult",
    "validate_subject_property",
    "GeocodingClient",
    "attach_coordinates",
]

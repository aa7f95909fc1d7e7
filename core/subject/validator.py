"""
Subject Validation - Normalising the Property Being Valued

Checks raw subject input (a JSON body or form payload) against the subject
bounds and produces an immutable SubjectProperty. Every field problem is
collected; validation never stops at the first failure.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from core.clock import Clock, resolve_clock
from core.comp_engine.models import Coordinates, SubjectProperty
from core.ingestion.columns import (
    normalise_condition,
    normalise_finish_level,
    normalise_property_type,
)


# =============================================================================
# Bounds
# =============================================================================

MIN_BEDS, MAX_BEDS = 1, 10
MIN_BATHS, MAX_BATHS = 0.5, 10.0
MIN_GLA, MAX_GLA = 100, 20000
MIN_LOT_SIZE, MAX_LOT_SIZE = 0.01, 100.0
MIN_YEAR_BUILT = 1800


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class FieldError:
    """A single problem with one input field."""
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class SubjectValidationResult:
    """Outcome of subject validation. ``normalized`` is set only when valid."""
    valid: bool
    normalized: Optional[SubjectProperty] = None
    errors: tuple[FieldError, ...] = ()

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "normalized": self.normalized.to_dict() if self.normalized else None,
            "errors": [e.to_dict() for e in self.errors],
        }


# =============================================================================
# Helpers
# =============================================================================


def _pick(data: Mapping[str, Any], camel: str, snake: str) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake)


def _to_number(value: Any) -> Optional[float]:
    """Read a JSON number or numeric string. Booleans are not numbers."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _check_number(
    errors: list[FieldError],
    name: str,
    value: Any,
    minimum: float,
    maximum: float,
    integer: bool = False,
    step: Optional[float] = None,
) -> Optional[float]:
    """
    Validate one numeric field, appending at most one error.

    Returns:
        The parsed number when valid, else None
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        errors.append(FieldError(name, f"{name} is required"))
        return None

    number = _to_number(value)
    if number is None:
        errors.append(FieldError(name, f"{name} must be a number"))
        return None
    if integer and not number.is_integer():
        errors.append(FieldError(name, f"{name} must be a whole number"))
        return None
    if not minimum <= number <= maximum:
        errors.append(FieldError(name, f"{name} must be between {minimum:g} and {maximum:g}"))
        return None
    if step is not None and not (number / step).is_integer():
        errors.append(FieldError(name, f"{name} must be in increments of {step:g}"))
        return None
    return number


def _check_coordinates(errors: list[FieldError], raw: Any) -> Optional[Coordinates]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        errors.append(FieldError("coordinates", "coordinates must be an object"))
        return None

    latitude = _check_number(errors, "coordinates.latitude", raw.get("latitude"), -90, 90)
    longitude = _check_number(errors, "coordinates.longitude", raw.get("longitude"), -180, 180)
    if latitude is None or longitude is None:
        return None
    return Coordinates(latitude=latitude, longitude=longitude)


# =============================================================================
# Validation
# =============================================================================


def validate_subject_property(
    data: Mapping[str, Any],
    clock: Optional[Clock] = None,
) -> SubjectValidationResult:
    """
    Validate and normalise raw subject input.

    Accepts camelCase (wire) or snake_case keys. Property type, condition
    and finish level are canonicalised through the alias tables;
    unrecognised text is dropped without error.

    Args:
        data: Raw subject fields
        clock: Source of the current year for age and yearBuilt bounds

    Returns:
        SubjectValidationResult with every field error collected
    """
    current_year = resolve_clock(clock).current_year()
    errors: list[FieldError] = []

    # === Required fields ===
    address = data.get("address")
    if address is None or not str(address).strip():
        errors.append(FieldError("address", "address is required and cannot be empty"))

    beds = _check_number(errors, "beds", data.get("beds"), MIN_BEDS, MAX_BEDS, integer=True)
    baths = _check_number(errors, "baths", data.get("baths"), MIN_BATHS, MAX_BATHS, step=0.5)
    gla = _check_number(errors, "gla", data.get("gla"), MIN_GLA, MAX_GLA, integer=True)
    lot_size = _check_number(
        errors, "lotSize", _pick(data, "lotSize", "lot_size"), MIN_LOT_SIZE, MAX_LOT_SIZE
    )
    year_built = _check_number(
        errors,
        "yearBuilt",
        _pick(data, "yearBuilt", "year_built"),
        MIN_YEAR_BUILT,
        current_year,
        integer=True,
    )

    # === Optional fields ===
    coordinates = _check_coordinates(errors, data.get("coordinates"))

    notes = data.get("notes")
    if notes is not None and not isinstance(notes, str):
        errors.append(FieldError("notes", "notes must be text"))

    if errors:
        return SubjectValidationResult(valid=False, errors=tuple(errors))

    subject = SubjectProperty(
        address=str(address).strip(),
        beds=int(beds),
        baths=baths,
        gla=gla,
        lot_size=lot_size,
        year_built=int(year_built),
        age=max(0, current_year - int(year_built)),
        coordinates=coordinates,
        property_type=normalise_property_type(_pick(data, "propertyType", "property_type")),
        condition=normalise_condition(data.get("condition")),
        finish_level=normalise_finish_level(_pick(data, "finishLevel", "finish_level")),
        notes=notes,
    )
    return SubjectValidationResult(valid=True, normalized=subject)

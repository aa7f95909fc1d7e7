"""
Comp Valuation Engine - Core Business Logic

Pipeline:
1. Ingestion (CSV / JSON comps -> ComparableProperty)
2. Subject validation (raw input -> SubjectProperty)
3. Comp preparation (distance, age, days since sale)
4. Regression (OLS / ridge, outliers, confidence)
5. Valuation (point estimate and range)
"""

from .clock import Clock, SYSTEM_CLOCK
from .errors import (
    ValuationError,
    MalformedInputError,
    ValidationError,
    InsufficientCompsError,
    DegenerateRegressionError,
)

from .comp_engine import (
    PropertyType,
    PropertyCondition,
    FinishLevel,
    ModelType,
    ConfidenceGrade,
    Coordinates,
    SubjectProperty,
    ComparableProperty,
    RegressionConfig,
    RegressionResult,
    ValuationResult,
    prepare_comps,
    run_regression,
    calculate_valuation,
    similarity_scores,
)

from .ingestion import ParseResult, parse_csv, comp_from_mapping, validate_comp

from .subject import (
    FieldError,
    SubjectValidationResult,
    validate_subject_property,
    GeocodingClient,
    attach_coordinates,
)

__all__ = [
    # Clock
    "Clock",
    "SYSTEM_CLOCK",
    # Errors
    "ValuationError",
    "MalformedInputError",
    "ValidationError",
    "InsufficientCompsError",
    "DegenerateRegressionError",
    # Comp Engine
    "PropertyType",
    "PropertyCondition",
    "FinishLevel",
    "ModelType",
    "ConfidenceGrade",
    "Coordinates",
    "SubjectProperty",
    "ComparableProperty",
    "RegressionConfig",
    "RegressionResult",
    "ValuationResult",
    "prepare_comps",
    "run_regression",
    "calculate_valuation",
    "similarity_scores",
    # Ingestion
    "ParseResult",
    "parse_csv",
    "comp_from_mapping",
    "validate_comp",
    # Subject
    "FieldError",
    "SubjectValidationResult",
    "validate_subject_property",
    "GeocodingClient",
    "attach_coordinates",
]

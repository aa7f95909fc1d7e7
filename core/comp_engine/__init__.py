"""
Comp Engine v1.0

Comparable sales regression pipeline: comp preparation, OLS / ridge
regression with outlier detection and confidence scoring, similarity
scoring and the final valuation.
"""

from .models import (
    PropertyType,
    PropertyCondition,
    FinishLevel,
    ModelType,
    ConfidenceGrade,
    Coordinates,
    SubjectProperty,
    ComparableProperty,
    RegressionConfig,
    RegressionCoefficients,
    RegressionMetrics,
    RegressionResult,
    ValueRange,
    ValuationResult,
)
from .preparation import haversine_miles, prepare_comp, prepare_comps
from .regression import (
    compute_metrics,
    confidence_score,
    detect_outliers,
    run_regression,
)
from .similarity import similarity_score, similarity_scores
from .valuation import calculate_valuation

__all__ = [
    # Models
    "PropertyType",
    "PropertyCondition",
    "FinishLevel",
    "ModelType",
    "ConfidenceGrade",
    "Coordinates",
    "SubjectProperty",
    "ComparableProperty",
    "RegressionConfig",
    "RegressionCoefficients",
    "RegressionMetrics",
    "RegressionResult",
    "ValueRange",
    "ValuationResult",
    # Pipeline
    "haversine_miles",
    "prepare_comp",
    "prepare_comps",
    "run_regression",
    "compute_metrics",
    "detect_outliers",
    "confidence_score",
    "similarity_score",
    "similarity_scores",
    "calculate_valuation",
]

__version__ = "1.0"

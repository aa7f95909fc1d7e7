"""
Data models for the comp regression engine.

Defines the subject and comparable property records, the regression
configuration and the regression/valuation results. All records are
immutable; derived values are produced as new copies.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


# =============================================================================
# Enumerations
# =============================================================================

class PropertyType(Enum):
    """Property type classification."""
    SINGLE_FAMILY = "single_family"
    CONDOMINIUM = "condominium"
    TOWNHOUSE = "townhouse"
    MULTI_FAMILY = "multi_family"


class PropertyCondition(Enum):
    """Overall physical condition."""
    NEW_CONSTRUCTION = "new_construction"
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class FinishLevel(Enum):
    """Interior finish quality (subject only)."""
    LUXURY = "luxury"
    HIGH = "high"
    STANDARD = "standard"
    BASIC = "basic"


class ModelType(Enum):
    """
    Regression variant.

    LINEAR: ordinary least squares
    RIDGE: L2-regularised least squares
    """
    LINEAR = "linear"
    RIDGE = "ridge"

    @classmethod
    def from_string(cls, value: str) -> Optional["ModelType"]:
        normalised = value.lower().strip()
        if normalised in ("ols", "linear"):
            return cls.LINEAR
        if normalised == "ridge":
            return cls.RIDGE
        return None


# Confidence grade thresholds (score >= threshold)
GRADE_A_THRESHOLD = 0.85
GRADE_B_THRESHOLD = 0.70
GRADE_C_THRESHOLD = 0.55


class ConfidenceGrade(Enum):
    """
    Confidence grade for a valuation.

    A: score >= 0.85
    B: score >= 0.70
    C: score >= 0.55
    D: below 0.55
    """
    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @classmethod
    def from_score(cls, score: float) -> "ConfidenceGrade":
        """Step function from a [0, 1] score to a grade."""
        if score >= GRADE_A_THRESHOLD:
            return cls.A
        if score >= GRADE_B_THRESHOLD:
            return cls.B
        if score >= GRADE_C_THRESHOLD:
            return cls.C
        return cls.D


def _enum_value(member: Optional[Enum]) -> Optional[str]:
    return member.value if member is not None else None


# =============================================================================
# Properties
# =============================================================================

@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair in degrees."""
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90 <= self.latitude <= 90:
            raise ValueError("latitude must be between -90 and 90")
        if not -180 <= self.longitude <= 180:
            raise ValueError("longitude must be between -180 and 180")

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class SubjectProperty:
    """
    The property being valued.

    Built once per request by the subject validator; ``age`` is derived
    from ``year_built`` at normalisation time.
    """
    address: str
    beds: int
    baths: float
    gla: float  # Gross living area, sqft
    lot_size: float  # Acres
    year_built: int
    age: int

    coordinates: Optional[Coordinates] = None
    property_type: Optional[PropertyType] = None
    condition: Optional[PropertyCondition] = None
    finish_level: Optional[FinishLevel] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        data = {
            "address": self.address,
            "beds": self.beds,
            "baths": self.baths,
            "gla": self.gla,
            "lotSize": self.lot_size,
            "yearBuilt": self.year_built,
            "age": self.age,
            "propertyType": _enum_value(self.property_type),
            "condition": _enum_value(self.condition),
            "finishLevel": _enum_value(self.finish_level),
            "notes": self.notes,
        }
        if self.coordinates is not None:
            data["coordinates"] = self.coordinates.to_dict()
        return data


@dataclass(frozen=True)
class ComparableProperty:
    """
    A historical sale used as market evidence.

    ``age``, ``distance`` and ``days_since_sale`` are left unset by the
    parser and filled in by comp preparation.
    """
    address: str
    sale_price: float
    sale_date: date
    gla: float
    beds: int
    baths: float
    lot_size: float
    year_built: int

    property_type: Optional[PropertyType] = None
    condition: Optional[PropertyCondition] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Derived during preparation
    age: Optional[int] = None
    distance: Optional[float] = None  # Miles from subject
    days_since_sale: Optional[int] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def schema_errors(self, current_year: int) -> List[str]:
        """
        Range/type checks for a normalised comp.

        Args:
            current_year: Upper bound for year_built

        Returns:
            List of messages, empty when the comp is valid
        """
        errors = []
        if not self.address:
            errors.append("address must not be empty")
        if not _is_positive(self.sale_price):
            errors.append("salePrice must be a positive number")
        if not isinstance(self.sale_date, date):
            errors.append("saleDate must be a calendar date")
        if not _is_positive(self.gla):
            errors.append("gla must be a positive number")
        if not isinstance(self.beds, int) or self.beds <= 0:
            errors.append("beds must be a positive integer")
        if not _is_positive(self.baths):
            errors.append("baths must be a positive number")
        if not _is_finite(self.lot_size) or self.lot_size < 0:
            errors.append("lotSize must be non-negative")
        if not isinstance(self.year_built, int) or not 1800 <= self.year_built <= current_year:
            errors.append(f"yearBuilt must be an integer between 1800 and {current_year}")
        if self.latitude is not None and not -90 <= self.latitude <= 90:
            errors.append("latitude must be between -90 and 90")
        if self.longitude is not None and not -180 <= self.longitude <= 180:
            errors.append("longitude must be between -180 and 180")
        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "address": self.address,
            "salePrice": self.sale_price,
            "saleDate": self.sale_date.isoformat(),
            "gla": self.gla,
            "beds": self.beds,
            "baths": self.baths,
            "lotSize": self.lot_size,
            "yearBuilt": self.year_built,
            "propertyType": _enum_value(self.property_type),
            "condition": _enum_value(self.condition),
            "latitude": self.latitude,
            "longitude": self.longitude,
            "age": self.age,
            "distance": self.distance,
            "daysSinceSale": self.days_since_sale,
        }


def _is_finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_positive(value: Any) -> bool:
    return _is_finite(value) and value > 0


# =============================================================================
# Regression Configuration
# =============================================================================

DEFAULT_RIDGE_REGULARIZATION = 1.0
DEFAULT_OUTLIER_THRESHOLD = 2.0


@dataclass(frozen=True)
class RegressionConfig:
    """Configuration for a single regression run."""
    model_type: ModelType = ModelType.LINEAR
    include_time_adjustment: bool = True
    include_distance_adjustment: bool = True
    min_comps: int = 3
    max_comps: int = 15
    outlier_threshold: Optional[float] = None  # Standard deviations
    regularization: Optional[float] = None  # Ridge strength

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.min_comps < 1:
            raise ValueError("min_comps must be positive")
        if self.max_comps < self.min_comps:
            raise ValueError("max_comps must be >= min_comps")
        if self.outlier_threshold is not None and self.outlier_threshold <= 0:
            raise ValueError("outlier_threshold must be positive")
        if self.regularization is not None and self.regularization < 0:
            raise ValueError("regularization must be non-negative")

    @property
    def ridge_strength(self) -> float:
        """L2 penalty applied to the normal equations (0 for OLS)."""
        if self.model_type == ModelType.LINEAR:
            return 0.0
        if self.regularization is None:
            return DEFAULT_RIDGE_REGULARIZATION
        return self.regularization

    @property
    def outlier_multiplier(self) -> float:
        if self.outlier_threshold is None:
            return DEFAULT_OUTLIER_THRESHOLD
        return self.outlier_threshold

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RegressionConfig":
        """
        Build a config from a JSON-style mapping (camelCase or snake_case keys).

        Raises:
            ValueError: if a value is missing its expected type or out of range
        """
        def pick(camel: str, snake: str, default: Any = None) -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        def flag(camel: str, snake: str, default: bool) -> bool:
            value = pick(camel, snake, default)
            if not isinstance(value, bool):
                raise ValueError(f"{camel} must be true or false, got {value!r}")
            return value

        def count(camel: str, snake: str, default: int) -> int:
            value = pick(camel, snake, default)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{camel} must be an integer, got {value!r}")
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"{camel} must be a whole number, got {value!r}")
            return int(value)

        def number(camel: str, snake: str) -> Optional[float]:
            value = pick(camel, snake)
            if value is None:
                return None
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{camel} must be a number, got {value!r}")
            return float(value)

        raw_model = pick("modelType", "model_type", ModelType.LINEAR.value)
        model_type = raw_model if isinstance(raw_model, ModelType) else ModelType.from_string(str(raw_model))
        if model_type is None:
            raise ValueError(f"Invalid modelType: {raw_model}")

        return cls(
            model_type=model_type,
            include_time_adjustment=flag("includeTimeAdjustment", "include_time_adjustment", True),
            include_distance_adjustment=flag(
                "includeDistanceAdjustment", "include_distance_adjustment", True
            ),
            min_comps=count("minComps", "min_comps", 3),
            max_comps=count("maxComps", "max_comps", 15),
            outlier_threshold=number("outlierThreshold", "outlier_threshold"),
            regularization=number("regularization", "regularization"),
        )

    def to_dict(self) -> dict:
        return {
            "modelType": self.model_type.value,
            "includeTimeAdjustment": self.include_time_adjustment,
            "includeDistanceAdjustment": self.include_distance_adjustment,
            "minComps": self.min_comps,
            "maxComps": self.max_comps,
            "outlierThreshold": self.outlier_threshold,
            "regularization": self.regularization,
        }


# =============================================================================
# Regression Results
# =============================================================================

# Feature order used for fitting. distance/time are appended only when enabled.
BASE_FEATURES: Tuple[str, ...] = ("gla", "beds", "baths", "lot_size", "age")
DISTANCE_FEATURE = "distance"
TIME_FEATURE = "time"

_CAMEL_KEYS = {"lot_size": "lotSize"}


@dataclass(frozen=True)
class RegressionCoefficients:
    """
    Fitted intercept and per-feature weights.

    The same vector is read three ways, and the call sites must not mix them:

    - fitted slope: ``predict(comp_values)`` is the model's price for a comp
      from its own features (used for residuals and R²)
    - adjustment weight: ``adjustments(subject_values, comp_values)`` prices
      the *difference* (subject - comp) per feature (used for adjusted prices)
    - subject evaluation: ``predict(subject_values)`` is the absolute point
      estimate for the subject (used by the valuation calculator)

    ``distance`` and ``time`` are None unless the matching adjustment was
    enabled in the regression config.
    """
    intercept: float
    gla: float
    beds: float
    baths: float
    lot_size: float
    age: float
    distance: Optional[float] = None
    time: Optional[float] = None

    def weights(self) -> Dict[str, float]:
        """Feature weights in fitting order, enabled features only."""
        result = {name: getattr(self, name) for name in BASE_FEATURES}
        if self.distance is not None:
            result[DISTANCE_FEATURE] = self.distance
        if self.time is not None:
            result[TIME_FEATURE] = self.time
        return result

    def predict(self, values: Mapping[str, float]) -> float:
        """Absolute form: intercept + sum(weight * value). Missing values count as 0."""
        total = self.intercept
        for name, weight in self.weights().items():
            total += weight * values.get(name, 0.0)
        return total

    def adjustments(
        self,
        subject_values: Mapping[str, float],
        comp_values: Mapping[str, float],
    ) -> Dict[str, float]:
        """Difference form: (subject - comp) * weight, per feature."""
        return {
            name: (subject_values.get(name, 0.0) - comp_values.get(name, 0.0)) * weight
            for name, weight in self.weights().items()
        }

    def to_dict(self) -> dict:
        data = {"intercept": self.intercept}
        for name, weight in self.weights().items():
            data[_CAMEL_KEYS.get(name, name)] = weight
        return data


@dataclass(frozen=True)
class RegressionMetrics:
    """Fit quality."""
    r_squared: float
    adjusted_r_squared: float
    standard_error: float

    def to_dict(self) -> dict:
        return {
            "rSquared": self.r_squared,
            "adjustedRSquared": self.adjusted_r_squared,
            "standardError": self.standard_error,
        }


@dataclass(frozen=True)
class RegressionResult:
    """
    Output of the regression engine.

    ``adjusted_prices``, ``residuals`` and ``similarity_scores`` are
    parallel to the comps passed in. ``model_type`` is the model actually
    fitted, which is RIDGE when an underdetermined OLS request fell back.
    """
    model_type: ModelType
    coefficients: RegressionCoefficients
    metrics: RegressionMetrics
    adjusted_prices: Tuple[float, ...]
    residuals: Tuple[float, ...]
    outliers: Tuple[int, ...]
    confidence_grade: ConfidenceGrade
    confidence_score: float
    similarity_scores: Tuple[float, ...] = field(default_factory=tuple)
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        data = {
            "modelType": self.model_type.value,
            "coefficients": self.coefficients.to_dict(),
            "metrics": self.metrics.to_dict(),
            "adjustedPrices": list(self.adjusted_prices),
            "residuals": list(self.residuals),
            "outliers": list(self.outliers),
            "confidenceGrade": self.confidence_grade.value,
            "confidenceScore": self.confidence_score,
        }
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data


@dataclass(frozen=True)
class ValueRange:
    low: float
    high: float

    def to_dict(self) -> dict:
        return {"low": self.low, "high": self.high}


@dataclass(frozen=True)
class ValuationResult:
    """Point estimate and interval for the subject."""
    estimated_value: float
    value_range: ValueRange
    confidence_grade: ConfidenceGrade
    confidence_score: float
    methodology: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "estimatedValue": self.estimated_value,
            "valueRange": self.value_range.to_dict(),
            "confidenceGrade": self.confidence_grade.value,
            "confidenceScore": self.confidence_score,
            "methodology": self.methodology,
        }

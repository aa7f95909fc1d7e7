"""
Regression Engine

Fits sale price against the fixed comp feature set with ordinary least
squares or ridge regression, then derives adjusted prices, residuals, fit
metrics, outliers and a confidence score.

Feature columns (in order):
    gla, beds, baths, lot_size, age
    distance   (when include_distance_adjustment)
    time       (days since sale, when include_time_adjustment)

Columns are standardised before solving so the ridge penalty treats them
evenly; weights are mapped back to raw units afterwards. An OLS system too
small or too collinear to identify every weight is fitted as ridge, and the
result records that.
"""

import logging
import math
from typing import Dict, List, Sequence, Tuple

import numpy as np

from core.errors import DegenerateRegressionError, InsufficientCompsError
from .models import (
    BASE_FEATURES,
    DEFAULT_RIDGE_REGULARIZATION,
    DISTANCE_FEATURE,
    TIME_FEATURE,
    ComparableProperty,
    ConfidenceGrade,
    ModelType,
    RegressionCoefficients,
    RegressionConfig,
    RegressionMetrics,
    RegressionResult,
    SubjectProperty,
)
from .similarity import similarity_scores


logger = logging.getLogger(__name__)


# =============================================================================
# Confidence Blend
# =============================================================================

R_SQUARED_WEIGHT = 0.5
SIMILARITY_WEIGHT = 0.3
PRECISION_WEIGHT = 0.2

# Standard deviation below which a column is treated as constant
_VARIANCE_TOLERANCE = 1e-12


# =============================================================================
# Feature Extraction
# =============================================================================

def feature_names(config: RegressionConfig) -> List[str]:
    """Feature columns for a config, in fitting order."""
    names = list(BASE_FEATURES)
    if config.include_distance_adjustment:
        names.append(DISTANCE_FEATURE)
    if config.include_time_adjustment:
        names.append(TIME_FEATURE)
    return names


def comp_features(comp: ComparableProperty) -> Dict[str, float]:
    """Feature values for a prepared comp. Missing distance counts as 0."""
    return {
        "gla": float(comp.gla),
        "beds": float(comp.beds),
        "baths": float(comp.baths),
        "lot_size": float(comp.lot_size),
        "age": float(comp.age or 0),
        DISTANCE_FEATURE: float(comp.distance or 0.0),
        TIME_FEATURE: float(comp.days_since_sale or 0),
    }


def subject_features(subject: SubjectProperty) -> Dict[str, float]:
    """
    Feature values for the subject.

    The subject sits at its own location and is valued today, so its
    distance and days-since-sale are both 0.
    """
    return {
        "gla": float(subject.gla),
        "beds": float(subject.beds),
        "baths": float(subject.baths),
        "lot_size": float(subject.lot_size),
        "age": float(subject.age),
        DISTANCE_FEATURE: 0.0,
        TIME_FEATURE: 0.0,
    }


# =============================================================================
# Fitting
# =============================================================================

def _fit(
    X: np.ndarray,
    y: np.ndarray,
    names: Sequence[str],
    ridge_strength: float,
) -> Tuple[RegressionCoefficients, float]:
    """
    Solve for the intercept and raw-unit weights.

    A least-squares system with fewer comps than parameters, or with
    collinear columns, has no unique solution and would pass exactly through
    every comp. Such systems are solved with the default ridge penalty
    instead.

    Args:
        X: n x k feature matrix
        y: n sale prices
        names: Column names for X
        ridge_strength: L2 penalty on standardised weights (0 for OLS)

    Returns:
        (coefficients, penalty actually applied)

    Raises:
        DegenerateRegressionError: No varying column, failed solve, or
            non-finite coefficients
    """
    means = X.mean(axis=0)
    stds = X.std(axis=0)
    varying = stds > _VARIANCE_TOLERANCE

    if not varying.any():
        raise DegenerateRegressionError("No feature varies across the comps")

    constant = [name for name, keep in zip(names, varying) if not keep]
    if constant:
        logger.debug("Constant feature columns fixed at weight 0: %s", ", ".join(constant))

    Z = (X[:, varying] - means[varying]) / stds[varying]
    y_mean = y.mean()
    y_centred = y - y_mean
    n, k = Z.shape

    try:
        if ridge_strength <= 0:
            rank = int(np.linalg.matrix_rank(Z))
            if rank < k or n - k - 1 <= 0:
                logger.warning(
                    "Least squares is underdetermined (%d comps, %d varying features, rank %d); "
                    "using ridge penalty %.2f",
                    n,
                    k,
                    rank,
                    DEFAULT_RIDGE_REGULARIZATION,
                )
                ridge_strength = DEFAULT_RIDGE_REGULARIZATION

        if ridge_strength > 0:
            gram = Z.T @ Z + ridge_strength * np.eye(k)
            beta = np.linalg.solve(gram, Z.T @ y_centred)
        else:
            beta, _, _, _ = np.linalg.lstsq(Z, y_centred, rcond=None)
    except np.linalg.LinAlgError as e:
        raise DegenerateRegressionError(f"Regression solve failed: {e}") from e

    weights = np.zeros(X.shape[1])
    weights[varying] = beta / stds[varying]
    intercept = y_mean - float(weights @ means)

    if not (np.all(np.isfinite(weights)) and math.isfinite(intercept)):
        raise DegenerateRegressionError("Regression produced non-finite coefficients")

    fitted = dict(zip(names, (float(w) for w in weights)))
    coefficients = RegressionCoefficients(
        intercept=float(intercept),
        gla=fitted["gla"],
        beds=fitted["beds"],
        baths=fitted["baths"],
        lot_size=fitted["lot_size"],
        age=fitted["age"],
        distance=fitted.get(DISTANCE_FEATURE),
        time=fitted.get(TIME_FEATURE),
    )
    return coefficients, ridge_strength


# =============================================================================
# Metrics, Outliers, Confidence
# =============================================================================

def compute_metrics(
    prices: Sequence[float],
    residuals: Sequence[float],
    feature_count: int,
) -> RegressionMetrics:
    """
    R², adjusted R² and standard error (RMS of residuals).

    R² is clamped to [0, 1]. Adjusted R² is floored at 0 and is 0 when
    there are too few comps for the feature count.
    """
    y = np.asarray(prices, dtype=float)
    r = np.asarray(residuals, dtype=float)
    n = len(y)

    ss_res = float(np.sum(r ** 2))
    ss_tot = float(np.sum((y - y.mean()) ** 2))

    if ss_tot == 0:
        r_squared = 1.0 if ss_res == 0 else 0.0
    else:
        r_squared = max(0.0, min(1.0, 1.0 - ss_res / ss_tot))

    dof = n - feature_count - 1
    if dof <= 0:
        adjusted = 0.0
    else:
        adjusted = max(0.0, 1.0 - (1.0 - r_squared) * (n - 1) / dof)

    standard_error = math.sqrt(ss_res / n) if n else 0.0
    return RegressionMetrics(
        r_squared=r_squared,
        adjusted_r_squared=adjusted,
        standard_error=standard_error,
    )


def detect_outliers(residuals: Sequence[float], threshold: float) -> List[int]:
    """
    Indices whose residual lies more than ``threshold`` population standard
    deviations from the mean residual.
    """
    if not residuals:
        return []
    r = np.asarray(residuals, dtype=float)
    sigma = float(r.std())
    if sigma == 0:
        return []
    deviation = np.abs(r - r.mean())
    return [int(i) for i in np.flatnonzero(deviation > threshold * sigma)]


def confidence_score(
    r_squared: float,
    similarities: Sequence[float],
    standard_error: float,
    mean_price: float,
) -> float:
    """
    Blend fit quality, comp similarity and relative precision into [0, 1].

    score = 0.5 * R² + 0.3 * mean similarity
            + 0.2 * (1 - min(1, standard_error / mean_price))
    """
    mean_similarity = sum(similarities) / len(similarities) if similarities else 0.0
    if mean_price > 0:
        precision = 1.0 - min(1.0, standard_error / mean_price)
    else:
        precision = 0.0

    score = (
        R_SQUARED_WEIGHT * r_squared
        + SIMILARITY_WEIGHT * mean_similarity
        + PRECISION_WEIGHT * precision
    )
    return max(0.0, min(1.0, score))


# =============================================================================
# Public API
# =============================================================================

def run_regression(
    subject: SubjectProperty,
    comps: Sequence[ComparableProperty],
    config: RegressionConfig,
) -> RegressionResult:
    """
    Fit the configured model to the comps and adjust each toward the subject.

    Args:
        subject: Normalised subject property
        comps: Prepared comps (age / distance / days_since_sale derived)
        config: Model choice and adjustment switches

    Returns:
        RegressionResult with per-comp arrays parallel to ``comps``

    Raises:
        InsufficientCompsError: Fewer than config.min_comps comps
        DegenerateRegressionError: The system cannot be solved
    """
    if len(comps) < config.min_comps:
        raise InsufficientCompsError(config.min_comps, len(comps))

    names = feature_names(config)
    rows = [comp_features(comp) for comp in comps]
    X = np.array([[row[name] for name in names] for row in rows], dtype=float)
    y = np.array([comp.sale_price for comp in comps], dtype=float)

    coefficients, penalty = _fit(X, y, names, config.ridge_strength)

    warnings = []
    model_type = config.model_type
    if penalty != config.ridge_strength:
        model_type = ModelType.RIDGE
        warnings.append(
            f"Too few or too similar comps to fit {len(names)} features by least squares; "
            f"ridge regression (penalty {penalty:g}) was used instead"
        )

    # Difference form: move each comp's price to the subject's features
    subject_values = subject_features(subject)
    adjusted_prices = tuple(
        comp.sale_price + sum(coefficients.adjustments(subject_values, row).values())
        for comp, row in zip(comps, rows)
    )

    # Absolute form: the model's price for each comp from its own features
    residuals = tuple(
        comp.sale_price - coefficients.predict(row)
        for comp, row in zip(comps, rows)
    )

    metrics = compute_metrics(y, residuals, len(names))
    outliers = tuple(detect_outliers(residuals, config.outlier_multiplier))

    similarities = tuple(similarity_scores(subject, comps))
    score = confidence_score(
        metrics.r_squared,
        similarities,
        metrics.standard_error,
        float(y.mean()),
    )
    grade = ConfidenceGrade.from_score(score)

    logger.info(
        "Regression (%s) on %d comps: R2=%.3f SE=%.0f outliers=%d grade=%s",
        model_type.value,
        len(comps),
        metrics.r_squared,
        metrics.standard_error,
        len(outliers),
        grade.value,
    )

    return RegressionResult(
        model_type=model_type,
        coefficients=coefficients,
        metrics=metrics,
        adjusted_prices=adjusted_prices,
        residuals=residuals,
        outliers=outliers,
        confidence_grade=grade,
        confidence_score=score,
        similarity_scores=similarities,
        warnings=tuple(warnings),
    )

"""
Valuation Calculator

Turns a fitted regression into a point estimate and a 90% value range for
the subject.
"""

import logging

from .models import (
    BASE_FEATURES,
    ModelType,
    RegressionResult,
    SubjectProperty,
    ValuationResult,
    ValueRange,
)
from .regression import subject_features


logger = logging.getLogger(__name__)


# Two-sided 90% interval under a normal error assumption
INTERVAL_Z = 1.645

METHODOLOGY = {
    ModelType.LINEAR: "Ordinary least squares regression",
    ModelType.RIDGE: "Ridge (L2-regularised) regression",
}


def calculate_valuation(
    subject: SubjectProperty,
    regression: RegressionResult,
) -> ValuationResult:
    """
    Evaluate the fitted model at the subject.

    The estimate uses the absolute form of the coefficients over the base
    features. The subject sits at distance 0 and is valued today, so neither
    the distance nor the time term contributes.

    Args:
        subject: Normalised subject property
        regression: Output of run_regression

    Returns:
        ValuationResult with estimate, range, and the regression's grade
    """
    values = subject_features(subject)
    evaluated = {name: values[name] for name in BASE_FEATURES}

    # predict() reads only the features present; absent ones count as 0
    estimate = max(0.0, regression.coefficients.predict(evaluated))

    margin = INTERVAL_Z * regression.metrics.standard_error
    value_range = ValueRange(low=max(0.0, estimate - margin), high=estimate + margin)

    methodology = (
        f"{METHODOLOGY[regression.model_type]} on {len(regression.residuals)} comparable sales"
    )

    logger.debug(
        "Valuation for %s: %.0f (%.0f - %.0f)",
        subject.address,
        estimate,
        value_range.low,
        value_range.high,
    )

    return ValuationResult(
        estimated_value=estimate,
        value_range=value_range,
        confidence_grade=regression.confidence_grade,
        confidence_score=regression.confidence_score,
        methodology=methodology,
    )

"""
Report assembly.

Runs the full valuation pipeline for one subject and a set of comps and
packages everything the report needs into a single Report record.

Usage:
    from reporting import generate_report

    report = generate_report(subject, comps, RegressionConfig())
    payload = report.to_dict()
"""

import logging
import random
import string
import time
from typing import Optional, Sequence

from core.clock import Clock, resolve_clock
from core.comp_engine.models import (
    ComparableProperty,
    RegressionConfig,
    RegressionResult,
    SubjectProperty,
)
from core.comp_engine.preparation import prepare_comps
from core.comp_engine.regression import comp_features, run_regression, subject_features
from core.comp_engine.valuation import calculate_valuation
from core.errors import InsufficientCompsError

from .charts import generate_chart_data
from .schemas import PropertyAdjustments, Report, ReportComp, ReportMetadata


logger = logging.getLogger(__name__)


_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 7


def generate_report_id(clock: Optional[Clock] = None, rng: Optional[random.Random] = None) -> str:
    """Report id of the form ``report_<epoch-ms>_<7 base-36 chars>``."""
    epoch_ms = int(resolve_clock(clock).now().timestamp() * 1000)
    suffix = "".join((rng or random).choices(_ID_ALPHABET, k=_ID_SUFFIX_LENGTH))
    return f"report_{epoch_ms}_{suffix}"


def build_report_comps(
    subject: SubjectProperty,
    comps: Sequence[ComparableProperty],
    regression: RegressionResult,
) -> tuple:
    """
    Per-comp adjustment rows, parallel to ``comps``.

    Adjustments use the difference form of the coefficients, so each
    adjusted price is the comp's sale price moved to the subject's features.
    """
    subject_values = subject_features(subject)
    outliers = set(regression.outliers)

    rows = []
    for i, comp in enumerate(comps):
        by_feature = regression.coefficients.adjustments(subject_values, comp_features(comp))
        total = sum(by_feature.values())
        adjustments = PropertyAdjustments(
            gla=by_feature["gla"],
            beds=by_feature["beds"],
            baths=by_feature["baths"],
            lot_size=by_feature["lot_size"],
            age=by_feature["age"],
            distance=by_feature.get("distance"),
            time=by_feature.get("time"),
            total=total,
        )
        rows.append(
            ReportComp(
                original=comp,
                similarity_score=regression.similarity_scores[i],
                adjustments=adjustments,
                adjusted_price=comp.sale_price + total,
                residual=regression.residuals[i],
                is_outlier=i in outliers,
            )
        )
    return tuple(rows)


def generate_report(
    subject: SubjectProperty,
    comps: Sequence[ComparableProperty],
    config: RegressionConfig,
    clock: Optional[Clock] = None,
) -> Report:
    """
    Value the subject against the comps and assemble the report.

    Comps beyond ``config.max_comps`` are dropped (first ones kept) after
    the minimum-comps check. Pipeline errors propagate unchanged.

    Args:
        subject: Normalised subject property
        comps: Parsed comps (derived fields are recomputed here)
        config: Regression configuration
        clock: Source of "now" for preparation and metadata

    Returns:
        Report

    Raises:
        InsufficientCompsError: Fewer than config.min_comps comps
        DegenerateRegressionError: The regression cannot be solved
    """
    started = time.perf_counter()
    clock = resolve_clock(clock)

    if len(comps) < config.min_comps:
        raise InsufficientCompsError(config.min_comps, len(comps))

    warnings = []
    if len(comps) > config.max_comps:
        logger.info("Truncating %d comps to the first %d", len(comps), config.max_comps)
        warnings.append(f"Only the first {config.max_comps} of {len(comps)} comps were used")
        comps = comps[: config.max_comps]

    prepared = prepare_comps(subject, comps, clock)
    fit_started = time.perf_counter()
    regression = run_regression(subject, prepared, config)
    fit_ms = (time.perf_counter() - fit_started) * 1000
    warnings.extend(regression.warnings)

    valuation = calculate_valuation(subject, regression)
    adjusted_comps = build_report_comps(subject, prepared, regression)
    charts = generate_chart_data(subject, prepared, adjusted_comps, regression)

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.debug("Regression took %.1f ms of %.1f ms total", fit_ms, elapsed_ms)
    report = Report(
        report_id=generate_report_id(clock),
        subject=subject,
        comps=tuple(prepared),
        adjusted_comps=adjusted_comps,
        regression=regression,
        valuation=valuation,
        outliers=regression.outliers,
        charts=charts,
        metadata=ReportMetadata(
            generated_at=clock.now().isoformat(),
            comp_count=len(prepared),
            processing_time_ms=round(elapsed_ms, 3),
        ),
        config=config,
        warnings=tuple(warnings),
    )

    logger.info(
        "Report %s: %s valued at %.0f (grade %s, %d comps, %.1f ms)",
        report.report_id,
        subject.address,
        valuation.estimated_value,
        valuation.confidence_grade.value,
        len(prepared),
        elapsed_ms,
    )
    return report

"""
Chart data generation.

Builds the series the report front end plots: price vs GLA with the fitted
GLA line, the adjusted/unadjusted price distribution and the sale price
trend over time.
"""

from typing import Sequence

from core.comp_engine.models import ComparableProperty, RegressionResult, SubjectProperty

from .schemas import ChartData, ChartPoint, RegressionLinePoint, ReportComp, TrendPoint


REGRESSION_LINE_POINTS = 21


def _regression_line(
    subject: SubjectProperty,
    comps: Sequence[ComparableProperty],
    regression: RegressionResult,
) -> tuple:
    """Evenly spaced points of intercept + gla_coef * gla across the GLA range."""
    glas = [comp.gla for comp in comps] + [subject.gla]
    low, high = min(glas), max(glas)
    step = (high - low) / (REGRESSION_LINE_POINTS - 1)

    coefficients = regression.coefficients
    points = []
    for i in range(REGRESSION_LINE_POINTS):
        gla = low + step * i
        points.append(RegressionLinePoint(gla=gla, price=coefficients.intercept + coefficients.gla * gla))
    return tuple(points)


def generate_chart_data(
    subject: SubjectProperty,
    comps: Sequence[ComparableProperty],
    adjusted_comps: Sequence[ReportComp],
    regression: RegressionResult,
) -> ChartData:
    """
    Generate chart series for a report.

    The subject's point on the scatter is priced from the comps, not from
    the absolute model: it is the mean of the comps' adjusted prices, each
    of which is that comp moved to the subject's features.

    Args:
        subject: Normalised subject property
        comps: Prepared comps, parallel to ``adjusted_comps``
        adjusted_comps: Per-comp adjustment rows
        regression: The fitted regression

    Returns:
        ChartData ready for serialisation
    """
    points = [
        ChartPoint(
            gla=comp.gla,
            price=comp.sale_price,
            adjusted_price=row.adjusted_price,
            address=comp.address,
        )
        for comp, row in zip(comps, adjusted_comps)
    ]

    if adjusted_comps:
        subject_price = sum(row.adjusted_price for row in adjusted_comps) / len(adjusted_comps)
        points.append(
            ChartPoint(
                gla=subject.gla,
                price=subject_price,
                adjusted_price=subject_price,
                address=subject.address,
                is_subject=True,
            )
        )

    # Sort positions, not comps, so each sale keeps its own adjusted price
    by_date = sorted(range(len(comps)), key=lambda i: comps[i].sale_date)
    trend = tuple(
        TrendPoint(
            date=comps[i].sale_date.isoformat(),
            price=comps[i].sale_price,
            adjusted_price=adjusted_comps[i].adjusted_price,
        )
        for i in by_date
    )

    return ChartData(
        price_vs_gla=tuple(points),
        regression_line=_regression_line(subject, comps, regression) if comps else (),
        unadjusted_prices=tuple(comp.sale_price for comp in comps),
        adjusted_prices=tuple(row.adjusted_price for row in adjusted_comps),
        sale_price_trend=trend,
    )

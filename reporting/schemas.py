"""
Report schemas.

These records define the exact structure of a valuation report: the
per-comp adjustment grid, the chart series and the report envelope.
``to_dict()`` produces the JSON wire shape (camelCase keys).
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from core.comp_engine.models import (
    ComparableProperty,
    RegressionConfig,
    RegressionResult,
    SubjectProperty,
    ValuationResult,
)


MODEL_VERSION = "1.0"


# =============================================================================
# Comp Grid
# =============================================================================

@dataclass(frozen=True)
class PropertyAdjustments:
    """
    Dollar adjustments moving one comp toward the subject.

    ``distance`` and ``time`` are None when that adjustment is disabled.
    """
    gla: float
    beds: float
    baths: float
    lot_size: float
    age: float
    total: float
    distance: Optional[float] = None
    time: Optional[float] = None

    def to_dict(self) -> dict:
        data = {
            "gla": self.gla,
            "beds": self.beds,
            "baths": self.baths,
            "lotSize": self.lot_size,
            "age": self.age,
        }
        if self.distance is not None:
            data["distance"] = self.distance
        if self.time is not None:
            data["time"] = self.time
        data["total"] = self.total
        return data


@dataclass(frozen=True)
class ReportComp:
    """A prepared comp together with its adjustments and fit diagnostics."""
    original: ComparableProperty
    similarity_score: float
    adjustments: PropertyAdjustments
    adjusted_price: float
    residual: float
    is_outlier: bool

    @property
    def distance(self) -> Optional[float]:
        return self.original.distance

    def to_dict(self) -> dict:
        return {
            "original": self.original.to_dict(),
            "distance": self.distance,
            "similarityScore": self.similarity_score,
            "adjustments": self.adjustments.to_dict(),
            "adjustedPrice": self.adjusted_price,
            "residual": self.residual,
            "isOutlier": self.is_outlier,
        }


# =============================================================================
# Charts
# =============================================================================

@dataclass(frozen=True)
class ChartPoint:
    """A point on the price vs GLA scatter."""
    gla: float
    price: float
    adjusted_price: float
    address: str = ""
    is_subject: bool = False

    def to_dict(self) -> dict:
        data = {
            "gla": self.gla,
            "price": self.price,
            "adjustedPrice": self.adjusted_price,
            "address": self.address,
        }
        if self.is_subject:
            data["isSubject"] = True
        return data


@dataclass(frozen=True)
class RegressionLinePoint:
    gla: float
    price: float

    def to_dict(self) -> dict:
        return {"gla": self.gla, "price": self.price}


@dataclass(frozen=True)
class TrendPoint:
    """One sale on the sale price trend, oldest first."""
    date: str  # ISO-8601
    price: float
    adjusted_price: float

    def to_dict(self) -> dict:
        return {"date": self.date, "price": self.price, "adjustedPrice": self.adjusted_price}


@dataclass(frozen=True)
class ChartData:
    price_vs_gla: Tuple[ChartPoint, ...]
    regression_line: Tuple[RegressionLinePoint, ...]
    unadjusted_prices: Tuple[float, ...]
    adjusted_prices: Tuple[float, ...]
    sale_price_trend: Tuple[TrendPoint, ...]

    def to_dict(self) -> dict:
        return {
            "priceVsGla": {
                "points": [p.to_dict() for p in self.price_vs_gla],
                "regressionLine": [p.to_dict() for p in self.regression_line],
            },
            "priceDistribution": {
                "adjusted": list(self.adjusted_prices),
                "unadjusted": list(self.unadjusted_prices),
            },
            "salePriceTrend": [p.to_dict() for p in self.sale_price_trend],
        }


# =============================================================================
# Report Envelope
# =============================================================================

@dataclass(frozen=True)
class ReportMetadata:
    generated_at: str  # ISO-8601
    comp_count: int
    processing_time_ms: float
    model_version: str = MODEL_VERSION

    def to_dict(self) -> dict:
        return {
            "generatedAt": self.generated_at,
            "compCount": self.comp_count,
            "modelVersion": self.model_version,
            "processingTimeMs": self.processing_time_ms,
        }


@dataclass(frozen=True)
class Report:
    """
    Complete valuation report.

    ``comps`` and ``adjusted_comps`` are parallel; ``outliers`` holds indices
    into both.
    """
    report_id: str
    subject: SubjectProperty
    comps: Tuple[ComparableProperty, ...]
    adjusted_comps: Tuple[ReportComp, ...]
    regression: RegressionResult
    valuation: ValuationResult
    outliers: Tuple[int, ...]
    charts: ChartData
    metadata: ReportMetadata
    config: Optional[RegressionConfig] = None
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        data = {
            "id": self.report_id,
            "subject": self.subject.to_dict(),
            "comps": [c.to_dict() for c in self.comps],
            "adjustedComps": [c.to_dict() for c in self.adjusted_comps],
            "regression": self.regression.to_dict(),
            "valuation": self.valuation.to_dict(),
            "outliers": list(self.outliers),
            "charts": self.charts.to_dict(),
            "metadata": self.metadata.to_dict(),
        }
        if self.config is not None:
            data["config"] = self.config.to_dict()
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data

"""
Similarity Scoring

Scores how closely a prepared comp resembles the subject on a 0..1 scale.
The score is a weighted blend of per-feature closeness; it feeds the
confidence score and is shown next to each comp in the report.
"""

from typing import List, Optional, Sequence

from .models import ComparableProperty, SubjectProperty


# =============================================================================
# Weights (sum to 1.0)
# =============================================================================

GLA_WEIGHT = 0.30
ROOMS_WEIGHT = 0.20
AGE_WEIGHT = 0.20
DISTANCE_WEIGHT = 0.15
LOT_WEIGHT = 0.10
RECENCY_WEIGHT = 0.05

# Distance and recency at which those components reach zero
MAX_DISTANCE_MILES = 5.0
MAX_DAYS_SINCE_SALE = 365.0

# Component score used when the comp has no distance / sale age
UNKNOWN_SCORE = 0.5


def _closeness(a: float, b: float, scale: float) -> float:
    return 1.0 - min(1.0, abs(a - b) / scale)


def _decay(value: Optional[float], limit: float) -> float:
    if value is None:
        return UNKNOWN_SCORE
    return max(0.0, min(1.0, 1.0 - value / limit))


def similarity_score(subject: SubjectProperty, comp: ComparableProperty) -> float:
    """
    Weighted similarity between the subject and one prepared comp.

    Args:
        subject: Normalised subject property
        comp: Comp with derived age / distance / days_since_sale

    Returns:
        Score in [0, 1], 1 meaning identical on every compared feature
    """
    gla_score = _closeness(subject.gla, comp.gla, max(subject.gla, comp.gla))

    beds_score = 1.0 if subject.beds == comp.beds else 0.5
    baths_score = 1.0 if abs(subject.baths - comp.baths) < 0.5 else 0.5
    rooms_score = (beds_score + baths_score) / 2

    comp_age = comp.age if comp.age is not None else 0
    age_score = _closeness(subject.age, comp_age, max(subject.age, comp_age, 1))

    lot_score = _closeness(
        subject.lot_size, comp.lot_size, max(subject.lot_size, comp.lot_size, 0.01)
    )

    score = (
        GLA_WEIGHT * gla_score
        + ROOMS_WEIGHT * rooms_score
        + AGE_WEIGHT * age_score
        + DISTANCE_WEIGHT * _decay(comp.distance, MAX_DISTANCE_MILES)
        + LOT_WEIGHT * lot_score
        + RECENCY_WEIGHT * _decay(comp.days_since_sale, MAX_DAYS_SINCE_SALE)
    )
    return max(0.0, min(1.0, score))


def similarity_scores(
    subject: SubjectProperty,
    comps: Sequence[ComparableProperty],
) -> List[float]:
    """Similarity for each comp, in input order."""
    return [similarity_score(subject, comp) for comp in comps]

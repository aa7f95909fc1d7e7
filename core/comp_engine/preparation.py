"""
Comp Preparation

Derives the per-comp values the regression needs relative to a subject:
distance from the subject, days since the sale and building age. Each comp
is handled independently and returned as a new record.
"""

import dataclasses
import logging
import math
from typing import List, Optional, Sequence

from core.clock import Clock, resolve_clock
from .models import ComparableProperty, SubjectProperty


logger = logging.getLogger(__name__)


# Earth radius in miles
EARTH_RADIUS_MILES = 3959.0


def haversine_miles(
    lat1: float, lon1: float,
    lat2: float, lon2: float,
) -> float:
    """
    Calculate distance between two points in miles using Haversine formula.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in miles
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a fractionally above 1 for antipodal points
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return EARTH_RADIUS_MILES * c


def prepare_comp(
    subject: SubjectProperty,
    comp: ComparableProperty,
    clock: Optional[Clock] = None,
) -> ComparableProperty:
    """Derive distance, days-since-sale and age for a single comp."""
    clock = resolve_clock(clock)

    distance = None
    if subject.coordinates is not None and comp.has_coordinates:
        distance = haversine_miles(
            subject.coordinates.latitude, subject.coordinates.longitude,
            comp.latitude, comp.longitude,
        )

    return dataclasses.replace(
        comp,
        distance=distance,
        days_since_sale=(clock.today() - comp.sale_date).days,
        age=max(0, clock.current_year() - comp.year_built),
    )


def prepare_comps(
    subject: SubjectProperty,
    comps: Sequence[ComparableProperty],
    clock: Optional[Clock] = None,
) -> List[ComparableProperty]:
    """
    Prepare every comp against the subject.

    Args:
        subject: Normalised subject property
        comps: Parsed comps (left untouched)
        clock: Source of today's date and the current year

    Returns:
        New comp records, in input order
    """
    clock = resolve_clock(clock)
    prepared = [prepare_comp(subject, comp, clock) for comp in comps]

    with_distance = sum(1 for comp in prepared if comp.distance is not None)
    logger.debug("Prepared %d comps (%d with distance)", len(prepared), with_distance)
    return prepared

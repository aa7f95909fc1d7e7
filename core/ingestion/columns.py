"""
Column and enumeration alias tables.

MLS, Cloud CMA and RPR exports label the same field many different ways.
Headers are matched case-insensitively after trimming, against these lists
in order; the first alias present in the file wins.
"""

from __future__ import annotations

from typing import Final, Iterable, Optional

from core.comp_engine.models import FinishLevel, PropertyCondition, PropertyType


# =============================================================================
# Header Aliases
# =============================================================================

COLUMN_ALIASES: Final[dict[str, tuple[str, ...]]] = {
    "address": ("address", "property address", "property_address"),
    "sale_price": (
        "saleprice",
        "sale price",
        "sale_price",
        "sold price",
        "sold_price",
        "soldprice",
        "price",
    ),
    "sale_date": (
        "saledate",
        "sale date",
        "sale_date",
        "close date",
        "close_date",
        "closedate",
        "sold date",
        "sold_date",
    ),
    "gla": (
        "gla",
        "square feet",
        "square_feet",
        "squarefeet",
        "living area",
        "living_area",
        "livingarea",
        "sqft",
    ),
    "beds": ("beds", "bedrooms", "bed"),
    "baths": ("baths", "bathrooms", "bath"),
    "year_built": ("yearbuilt", "year built", "year_built", "year"),
    "lot_size": (
        "lotsize",
        "lot size",
        "lot_size",
        "lot size (acres)",
        "lot_size_(acres)",
        "lot acres",
        "lot_acres",
        "lotacres",
        "acres",
    ),
    "latitude": ("latitude", "lat"),
    "longitude": ("longitude", "lng", "lon"),
    "property_type": ("propertytype", "property type", "property_type", "type"),
    "condition": ("condition", "cond"),
}


def _clean_header(header: str) -> str:
    return str(header).strip().lower()


def resolve_columns(headers: Iterable[str]) -> dict[str, Optional[str]]:
    """
    Map each logical field to the actual header that carries it.

    Args:
        headers: Header names as they appear in the file

    Returns:
        Dict of logical field -> original header (None when absent)
    """
    by_clean: dict[str, str] = {}
    for header in headers:
        # First occurrence wins if two headers collapse to the same key
        by_clean.setdefault(_clean_header(header), header)

    resolved: dict[str, Optional[str]] = {}
    for field_name, aliases in COLUMN_ALIASES.items():
        resolved[field_name] = None
        for alias in aliases:
            header = by_clean.get(_clean_header(alias))
            if header is not None:
                resolved[field_name] = header
                break
    return resolved


# =============================================================================
# Enumeration Aliases
# =============================================================================

PROPERTY_TYPE_MAP: Final[dict[str, PropertyType]] = {
    "single_family": PropertyType.SINGLE_FAMILY,
    "single family": PropertyType.SINGLE_FAMILY,
    "single-family": PropertyType.SINGLE_FAMILY,
    "sf": PropertyType.SINGLE_FAMILY,
    "sfr": PropertyType.SINGLE_FAMILY,
    "condominium": PropertyType.CONDOMINIUM,
    "condo": PropertyType.CONDOMINIUM,
    "townhouse": PropertyType.TOWNHOUSE,
    "town house": PropertyType.TOWNHOUSE,
    "townhome": PropertyType.TOWNHOUSE,
    "multi_family": PropertyType.MULTI_FAMILY,
    "multi family": PropertyType.MULTI_FAMILY,
    "multi-family": PropertyType.MULTI_FAMILY,
    "duplex": PropertyType.MULTI_FAMILY,
}

CONDITION_MAP: Final[dict[str, PropertyCondition]] = {
    "new_construction": PropertyCondition.NEW_CONSTRUCTION,
    "new construction": PropertyCondition.NEW_CONSTRUCTION,
    "new": PropertyCondition.NEW_CONSTRUCTION,
    "excellent": PropertyCondition.EXCELLENT,
    "good": PropertyCondition.GOOD,
    "fair": PropertyCondition.FAIR,
    "average": PropertyCondition.FAIR,
    "poor": PropertyCondition.POOR,
}

FINISH_LEVEL_MAP: Final[dict[str, FinishLevel]] = {
    "luxury": FinishLevel.LUXURY,
    "high": FinishLevel.HIGH,
    "high end": FinishLevel.HIGH,
    "standard": FinishLevel.STANDARD,
    "basic": FinishLevel.BASIC,
}


def normalise_property_type(raw: Optional[object]) -> Optional[PropertyType]:
    """Map free text to PropertyType. Unrecognised text returns None."""
    if isinstance(raw, PropertyType):
        return raw
    if raw is None:
        return None
    return PROPERTY_TYPE_MAP.get(str(raw).lower().strip())


def normalise_condition(raw: Optional[object]) -> Optional[PropertyCondition]:
    """Map free text to PropertyCondition. Unrecognised text returns None."""
    if isinstance(raw, PropertyCondition):
        return raw
    if raw is None:
        return None
    return CONDITION_MAP.get(str(raw).lower().strip())


def normalise_finish_level(raw: Optional[object]) -> Optional[FinishLevel]:
    """Map free text to FinishLevel. Unrecognised text returns None."""
    if isinstance(raw, FinishLevel):
        return raw
    if raw is None:
        return None
    return FINISH_LEVEL_MAP.get(str(raw).lower().strip())

"""
Ingestion Layer

Single entry point for comparable sales entering the valuation pipeline.
CSV exports and JSON comp objects both normalise to ComparableProperty.
"""

from core.ingestion.columns import (
    COLUMN_ALIASES,
    resolve_columns,
    normalise_property_type,
    normalise_condition,
    normalise_finish_level,
)
from core.ingestion.csv_parser import (
    ParseResult,
    parse_csv,
    comp_from_mapping,
    validate_comp,
)

__all__ = [
    # Column resolution
    "COLUMN_ALIASES",
    "resolve_columns",
    # Enum canonicalisation
    "normalise_property_type",
    "normalise_condition",
    "normalise_finish_level",
    # Parsing
    "ParseResult",
    "parse_csv",
    "comp_from_mapping",
    "validate_comp",
]

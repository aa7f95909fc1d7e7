"""
CSV Parser - Comparable Sales Ingestion

Parses MLS / Cloud CMA / RPR style CSV exports into normalised
ComparableProperty records. Column headers are matched against alias
tables, values are cleaned (currency symbols, thousands separators, date
formats) and each row is validated on its own. Bad rows are dropped and
reported; they never abort the batch unless nothing survives.
"""

from __future__ import annotations

import io
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional

import pandas as pd

from core.clock import Clock, resolve_clock
from core.comp_engine.models import ComparableProperty
from core.errors import ValidationError
from core.ingestion.columns import (
    COLUMN_ALIASES,
    normalise_condition,
    normalise_property_type,
    resolve_columns,
)


logger = logging.getLogger(__name__)


EMPTY_FILE_MESSAGE = "CSV file is empty or has no valid rows"
NO_VALID_ROWS_MESSAGE = "No valid comparable properties found"

MIN_YEAR_BUILT = 1800

# Leading number, the way a lenient float parser reads "1800 sqft"
_NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_STRIP_PATTERN = re.compile(r"[$£€,\s]")

# Wire names for mappings (JSON bodies) that bypass the CSV header lookup
_MAPPING_KEYS: dict[str, tuple[str, ...]] = {
    "address": ("address",),
    "sale_price": ("salePrice", "sale_price"),
    "sale_date": ("saleDate", "sale_date"),
    "gla": ("gla",),
    "beds": ("beds",),
    "baths": ("baths",),
    "year_built": ("yearBuilt", "year_built"),
    "lot_size": ("lotSize", "lot_size"),
    "latitude": ("latitude",),
    "longitude": ("longitude",),
    "property_type": ("propertyType", "property_type"),
    "condition": ("condition",),
}


# =============================================================================
# Result
# =============================================================================


@dataclass(frozen=True)
class ParseResult:
    """
    Outcome of parsing a CSV batch.

    ``errors`` and ``warnings`` may be non-empty on success; they then
    describe rows that were skipped or patched, not a batch failure.
    """

    success: bool
    comps: tuple[ComparableProperty, ...] = ()
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "comps": [c.to_dict() for c in self.comps],
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass
class _RowOutcome:
    comp: Optional[ComparableProperty] = None
    problems: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# Value Normalisation
# =============================================================================


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a numeric cell.

    Strips currency symbols and thousands separators, then reads the
    leading number. Returns None when nothing numeric is present.
    """
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = _STRIP_PATTERN.sub("", str(value))
        match = _NUMBER_PATTERN.match(cleaned)
        if not match:
            return None
        number = float(match.group(0))
    return number if math.isfinite(number) else None


def parse_date(value: Any) -> Optional[date]:
    """Parse a date cell in any common format, dropping any time part."""
    if _is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = pd.to_datetime(str(value).strip(), errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def parse_text(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    return str(value).strip()


# =============================================================================
# Row Normalisation
# =============================================================================


def _normalise_record(
    values: Mapping[str, Any],
    row_label: str,
    current_year: int,
) -> _RowOutcome:
    """
    Turn one record of raw values (keyed by logical field) into a comp.

    Args:
        values: Raw values keyed by logical field name
        row_label: Prefix for messages, e.g. "Row 3"
        current_year: Upper bound for yearBuilt

    Returns:
        _RowOutcome with either a comp or the reasons it was rejected
    """
    outcome = _RowOutcome()

    address = parse_text(values.get("address"))
    sale_price = parse_number(values.get("sale_price"))
    sale_date = parse_date(values.get("sale_date"))
    gla = parse_number(values.get("gla"))
    beds = parse_number(values.get("beds"))
    baths = parse_number(values.get("baths"))
    year_built = parse_number(values.get("year_built"))
    lot_size = parse_number(values.get("lot_size"))
    latitude = parse_number(values.get("latitude"))
    longitude = parse_number(values.get("longitude"))

    # === Required fields ===
    if not address:
        outcome.problems.append("Missing required field: address")
    if sale_price is None or sale_price <= 0:
        outcome.problems.append("Missing or invalid salePrice")
    if sale_date is None:
        outcome.problems.append("Missing required field: saleDate")
    if gla is None or gla <= 0:
        outcome.problems.append("Missing or invalid gla")
    if beds is None or beds <= 0:
        outcome.problems.append("Missing or invalid beds")
    if baths is None or baths <= 0:
        outcome.problems.append("Missing or invalid baths")
    if year_built is None or year_built < MIN_YEAR_BUILT:
        outcome.problems.append("Missing or invalid yearBuilt")

    # === Optional fields ===
    if lot_size is None:
        outcome.warnings.append(f"{row_label}: Missing optional field: lotSize")
    if latitude is None or longitude is None:
        outcome.warnings.append(f"{row_label}: Missing optional fields: latitude/longitude")

    if outcome.problems:
        return outcome

    has_coordinates = latitude is not None and longitude is not None
    comp = ComparableProperty(
        address=address,
        sale_price=sale_price,
        sale_date=sale_date,
        gla=gla,
        beds=int(math.floor(beds)),
        baths=baths,
        lot_size=lot_size if lot_size is not None else 0.0,
        year_built=int(math.floor(year_built)),
        property_type=normalise_property_type(parse_text(values.get("property_type"))),
        condition=normalise_condition(parse_text(values.get("condition"))),
        latitude=latitude if has_coordinates else None,
        longitude=longitude if has_coordinates else None,
    )

    schema_errors = comp.schema_errors(current_year)
    if schema_errors:
        outcome.problems.append(f"Validation failed: {'; '.join(schema_errors)}")
        return outcome

    outcome.comp = comp
    return outcome


# =============================================================================
# Public API
# =============================================================================


def _read_frame(content: str) -> pd.DataFrame:
    frame = pd.read_csv(
        io.StringIO(content),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )
    frame.columns = [str(c).strip() for c in frame.columns]
    return frame


def parse_csv(content: str, clock: Optional[Clock] = None) -> ParseResult:
    """
    Parse CSV content into comparable properties.

    Args:
        content: Raw CSV text with a header row
        clock: Source of the current year for yearBuilt bounds

    Returns:
        ParseResult; ``success`` is False when the input is empty or
        unreadable, or when no row survives validation
    """
    if not content or not content.strip():
        return ParseResult(success=False, errors=(EMPTY_FILE_MESSAGE,))

    try:
        frame = _read_frame(content)
    except pd.errors.EmptyDataError:
        return ParseResult(success=False, errors=(EMPTY_FILE_MESSAGE,))
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        logger.warning("CSV could not be tokenised: %s", e)
        return ParseResult(success=False, errors=(f"CSV parse error: {e}",))

    if frame.empty:
        return ParseResult(success=False, errors=(EMPTY_FILE_MESSAGE,))

    current_year = resolve_clock(clock).current_year()
    columns = resolve_columns(frame.columns)
    missing_columns = [name for name, header in columns.items() if header is None]
    if missing_columns:
        logger.debug("CSV columns not found: %s", ", ".join(missing_columns))

    errors: list[str] = []
    warnings: list[str] = []
    comps: list[ComparableProperty] = []

    for index, record in enumerate(frame.to_dict(orient="records")):
        row_label = f"Row {index + 1}"
        values = {
            name: record.get(header) if header is not None else None
            for name, header in columns.items()
        }
        outcome = _normalise_record(values, row_label, current_year)
        warnings.extend(outcome.warnings)

        if outcome.comp is None:
            message = f"{row_label}: {'; '.join(outcome.problems)}"
            errors.append(message)
            logger.warning("Dropped CSV row: %s", message)
            continue

        comps.append(outcome.comp)

    logger.info(
        "Parsed CSV: %d rows read, %d kept, %d dropped",
        len(frame),
        len(comps),
        len(frame) - len(comps),
    )

    if not comps:
        return ParseResult(
            success=False,
            errors=tuple(errors) if errors else (NO_VALID_ROWS_MESSAGE,),
            warnings=tuple(warnings),
        )

    return ParseResult(
        success=True,
        comps=tuple(comps),
        errors=tuple(errors),
        warnings=tuple(warnings),
    )


def comp_from_mapping(
    data: Mapping[str, Any],
    clock: Optional[Clock] = None,
    label: str = "Comp",
) -> ComparableProperty:
    """
    Build a comp from a JSON-style mapping (camelCase or snake_case keys).

    Applies the same cleaning and validation rules as a CSV row.

    Raises:
        ValidationError: if the mapping does not describe a valid comp
    """
    values: dict[str, Any] = {}
    for name in COLUMN_ALIASES:
        for key in _MAPPING_KEYS[name]:
            if key in data:
                values[name] = data[key]
                break

    outcome = _normalise_record(values, label, resolve_clock(clock).current_year())
    if outcome.comp is None:
        raise ValidationError(
            [f"{label}: {problem}" for problem in outcome.problems],
            message=f"{label} failed validation",
        )
    return outcome.comp


def validate_comp(comp: ComparableProperty, clock: Optional[Clock] = None) -> bool:
    """Whether an already-built comp satisfies the comp schema."""
    return not comp.schema_errors(resolve_clock(clock).current_year())

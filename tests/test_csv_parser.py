"""
Tests for CSV ingestion.

Verifies:
- Header aliases from common MLS / CMA exports resolve
- Currency, thousands separators and date formats are cleaned
- A bad row is dropped without affecting the others
- Batch failures (empty file, no valid rows, tokeniser errors)
"""

from datetime import date

import pytest

from core.comp_engine.models import PropertyCondition, PropertyType
from core.errors import ValidationError
from core.ingestion.columns import COLUMN_ALIASES, resolve_columns
from core.ingestion.csv_parser import (
    EMPTY_FILE_MESSAGE,
    comp_from_mapping,
    parse_csv,
    parse_date,
    parse_number,
    validate_comp,
)


HEADER = "address,salePrice,saleDate,gla,beds,baths,yearBuilt,lotSize,latitude,longitude"


def make_csv(*rows: str, header: str = HEADER) -> str:
    return "\n".join((header,) + rows) + "\n"


VALID_ROW = "12 Elm St,450000,2024-01-15,1850,3,2,1995,0.25,40.01,-75.02"

# One value per aliased field, in COLUMN_ALIASES order
ALIAS_ROW = {
    "address": "12 Elm St",
    "sale_price": "450000",
    "sale_date": "2024-01-15",
    "gla": "1850",
    "beds": "3",
    "baths": "2",
    "year_built": "1995",
    "lot_size": "0.25",
    "latitude": "40.01",
    "longitude": "-75.02",
    "property_type": "single_family",
    "condition": "good",
}


# =============================================================================
# Column Resolution
# =============================================================================

class TestColumnResolution:
    """Tests for header alias matching."""

    def test_aliases_are_case_insensitive_and_trimmed(self):
        columns = resolve_columns(["  Sold Price ", "CLOSE DATE", "Living Area", "Bedrooms"])

        assert columns["sale_price"] == "  Sold Price "
        assert columns["sale_date"] == "CLOSE DATE"
        assert columns["gla"] == "Living Area"
        assert columns["beds"] == "Bedrooms"

    def test_missing_column_resolves_to_none(self):
        columns = resolve_columns(["address"])

        assert columns["address"] == "address"
        assert columns["latitude"] is None

    def test_first_alias_in_list_order_wins(self):
        # "sale price" precedes the generic "price" alias
        columns = resolve_columns(["Price", "Sale Price"])

        assert columns["sale_price"] == "Sale Price"

    @pytest.mark.parametrize("field_name,alias", [
        (field_name, alias)
        for field_name, aliases in COLUMN_ALIASES.items()
        for alias in aliases
    ])
    def test_every_alias_reads_like_the_first(self, field_name, alias, clock):
        canonical = {name: aliases[0] for name, aliases in COLUMN_ALIASES.items()}
        renamed = dict(canonical, **{field_name: alias})

        def parse(headers):
            header = ",".join(headers[name] for name in ALIAS_ROW)
            return parse_csv(make_csv(",".join(ALIAS_ROW.values()), header=header), clock=clock)

        expected = parse(canonical)
        result = parse(renamed)

        assert expected.success and result.success
        assert result.comps[0] == expected.comps[0]
        assert result.comps[0].property_type == PropertyType.SINGLE_FAMILY
        assert result.comps[0].condition == PropertyCondition.GOOD

    def test_mls_export_headers_parse(self, clock):
        content = make_csv(
            '"7 Birch Rd","$512,500",03/15/2024,"2,100",4,2.5,2001,0.3,40.1,-75.1',
            header="Property Address,Sold Price,Close Date,Square Feet,Bedrooms,"
            "Bathrooms,Year Built,Lot Acres,Lat,Lng",
        )

        result = parse_csv(content, clock=clock)

        assert result.success
        comp = result.comps[0]
        assert comp.address == "7 Birch Rd"
        assert comp.sale_price == 512500
        assert comp.sale_date == date(2024, 3, 15)
        assert comp.gla == 2100
        assert comp.beds == 4
        assert comp.baths == 2.5
        assert comp.year_built == 2001
        assert comp.lot_size == 0.3
        assert comp.latitude == 40.1
        assert comp.longitude == -75.1


# =============================================================================
# Value Cleaning
# =============================================================================

class TestValueCleaning:
    """Tests for numeric and date normalisation."""

    @pytest.mark.parametrize("raw,expected", [
        ("$450,000", 450000.0),
        ("1,850", 1850.0),
        ("  2.5 ", 2.5),
        ("1800 sqft", 1800.0),
        (725, 725.0),
    ])
    def test_parse_number(self, raw, expected):
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "n/a", None, "inf", True])
    def test_unparseable_number_is_absent(self, raw):
        assert parse_number(raw) is None

    @pytest.mark.parametrize("raw", ["2024-01-15", "01/15/2024", "2024-01-15T13:45:00"])
    def test_parse_date_formats(self, raw):
        assert parse_date(raw) == date(2024, 1, 15)

    def test_bad_date_is_absent(self):
        assert parse_date("not a date") is None

    def test_beds_and_year_built_truncated(self, clock):
        result = parse_csv(
            make_csv("12 Elm St,450000,2024-01-15,1850,3.7,2,1995.6,0.25,40.01,-75.02"),
            clock=clock,
        )

        assert result.success
        assert result.comps[0].beds == 3
        assert result.comps[0].year_built == 1995

    def test_enumerations_use_alias_tables(self, clock):
        content = make_csv(
            "1 A St,400000,2024-01-15,1800,3,2,1990,0.2,Condo,Average",
            "2 B St,410000,2024-01-16,1850,3,2,1991,0.2,Castle,Pristine",
            header="address,salePrice,saleDate,gla,beds,baths,yearBuilt,lotSize,"
            "propertyType,condition",
        )

        result = parse_csv(content, clock=clock)

        assert result.comps[0].property_type == PropertyType.CONDOMINIUM
        assert result.comps[0].condition == PropertyCondition.FAIR
        assert result.comps[1].property_type is None
        assert result.comps[1].condition is None


# =============================================================================
# Row Handling
# =============================================================================

class TestRowHandling:
    """Tests for per-row validation and isolation."""

    def test_valid_row_parses(self, clock):
        result = parse_csv(make_csv(VALID_ROW), clock=clock)

        assert result.success
        assert len(result.comps) == 1
        assert result.errors == ()
        assert result.comps[0].age is None  # Derived later, during preparation

    def test_bad_row_does_not_affect_others(self, clock):
        content = make_csv(
            VALID_ROW,
            "13 Elm St,-5,2024-01-15,1850,3,2,1995,0.25,40.01,-75.02",
            "14 Elm St,455000,2024-02-15,1900,3,2,1996,0.25,40.01,-75.02",
        )

        result = parse_csv(content, clock=clock)

        assert result.success
        assert [c.address for c in result.comps] == ["12 Elm St", "14 Elm St"]
        assert result.errors == ("Row 2: Missing or invalid salePrice",)

    def test_one_error_message_per_dropped_row(self, clock):
        content = make_csv(
            ",450000,2024-01-15,1850,3,2,1995,0.25,40.01,-75.02",
            "13 Elm St,450000,,0,3,2,1995,0.25,40.01,-75.02",
            VALID_ROW,
            "15 Elm St,450000,2024-01-15,1850,3,2,1700,0.25,40.01,-75.02",
        )

        result = parse_csv(content, clock=clock)

        assert len(result.comps) == 1
        assert len(result.errors) == 3
        assert result.errors[0] == "Row 1: Missing required field: address"
        assert result.errors[1].startswith("Row 2: ")
        assert "saleDate" in result.errors[1] and "gla" in result.errors[1]
        assert result.errors[2] == "Row 4: Missing or invalid yearBuilt"

    def test_missing_lot_size_defaults_to_zero_with_warning(self, clock):
        result = parse_csv(
            make_csv("12 Elm St,450000,2024-01-15,1850,3,2,1995,,40.01,-75.02"),
            clock=clock,
        )

        assert result.success
        assert result.comps[0].lot_size == 0.0
        assert "Row 1: Missing optional field: lotSize" in result.warnings

    def test_partial_coordinates_are_dropped_with_warning(self, clock):
        result = parse_csv(
            make_csv("12 Elm St,450000,2024-01-15,1850,3,2,1995,0.25,40.01,"),
            clock=clock,
        )

        comp = result.comps[0]
        assert comp.latitude is None
        assert comp.longitude is None
        assert "Row 1: Missing optional fields: latitude/longitude" in result.warnings

    def test_future_year_built_fails_schema_check(self, clock):
        result = parse_csv(
            make_csv("12 Elm St,450000,2024-01-15,1850,3,2,2030,0.25,40.01,-75.02"),
            clock=clock,
        )

        assert not result.success
        assert result.errors[0].startswith("Row 1: Validation failed: ")
        assert "yearBuilt" in result.errors[0]

    def test_out_of_range_latitude_fails_schema_check(self, clock):
        result = parse_csv(
            make_csv("12 Elm St,450000,2024-01-15,1850,3,2,1995,0.25,95,-75.02"),
            clock=clock,
        )

        assert not result.success
        assert "latitude" in result.errors[0]


# =============================================================================
# Batch Outcomes
# =============================================================================

class TestBatchOutcomes:
    """Tests for whole-file failures."""

    @pytest.mark.parametrize("content", ["", "   \n  ", HEADER + "\n"])
    def test_empty_input(self, content, clock):
        result = parse_csv(content, clock=clock)

        assert not result.success
        assert result.errors == (EMPTY_FILE_MESSAGE,)
        assert result.comps == ()

    def test_all_rows_invalid(self, clock):
        content = make_csv(
            "1 A St,0,2024-01-15,1850,3,2,1995,0.25,,",
            "2 B St,450000,2024-01-15,1850,0,2,1995,0.25,,",
        )

        result = parse_csv(content, clock=clock)

        assert not result.success
        assert result.comps == ()
        assert len(result.errors) == 2
        assert all(e.startswith("Row ") for e in result.errors)

    def test_tokeniser_error(self, clock):
        result = parse_csv("a,b\n1,2\n1,2,3,4\n", clock=clock)

        assert not result.success
        assert result.errors[0].startswith("CSV parse error: ")

    def test_generated_export_round_trip(self, comps_csv, linear_comps, clock):
        result = parse_csv(comps_csv, clock=clock)

        assert result.success
        assert len(result.comps) == len(linear_comps)
        for parsed, original in zip(result.comps, linear_comps):
            assert parsed.sale_price == pytest.approx(original.sale_price)
            assert parsed.sale_date == original.sale_date

    def test_to_dict_uses_wire_names(self, clock):
        payload = parse_csv(make_csv(VALID_ROW), clock=clock).to_dict()

        assert payload["success"] is True
        assert payload["comps"][0]["salePrice"] == 450000
        assert payload["comps"][0]["saleDate"] == "2024-01-15"


# =============================================================================
# JSON Comps
# =============================================================================

class TestCompFromMapping:
    """Tests for comps arriving as JSON objects."""

    def test_camel_case_mapping(self, clock):
        comp = comp_from_mapping(
            {
                "address": "9 Pine Ct",
                "salePrice": 480000,
                "saleDate": "2024-02-01",
                "gla": 1900,
                "beds": 3,
                "baths": 2,
                "yearBuilt": 1999,
                "lotSize": 0.2,
            },
            clock=clock,
        )

        assert comp.sale_price == 480000
        assert comp.sale_date == date(2024, 2, 1)
        assert validate_comp(comp, clock=clock)

    def test_invalid_mapping_raises(self, clock):
        with pytest.raises(ValidationError) as exc_info:
            comp_from_mapping({"address": "9 Pine Ct", "salePrice": 0}, clock=clock, label="Comp 2")

        assert exc_info.value.code == "VALIDATION_ERROR"
        assert all(e.startswith("Comp 2: ") for e in exc_info.value.errors)

    def test_validate_comp_rejects_future_build_year(self, create_comp, clock):
        assert not validate_comp(create_comp(year_built=2030), clock=clock)

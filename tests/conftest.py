"""
Shared fixtures for the valuation engine tests.

The standard comp set is priced by an exact linear formula over the base
features, so an OLS fit recovers it and the subject's value is known.
"""

from datetime import date
from pathlib import Path
import sys

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.clock import Clock
from core.comp_engine.models import ComparableProperty, Coordinates, SubjectProperty


REFERENCE_DATE = date(2024, 6, 1)

# price = 50000 + 200*gla + 10000*beds + 15000*baths + 20000*lot - 1000*age
LINEAR_TRUTH = {
    "intercept": 50000.0,
    "gla": 200.0,
    "beds": 10000.0,
    "baths": 15000.0,
    "lot_size": 20000.0,
    "age": -1000.0,
}

# (gla, beds, baths, lot_size, year_built, sale_date)
COMP_ROWS = [
    (1800, 3, 2.0, 0.20, 1995, date(2024, 1, 10)),
    (2100, 4, 2.5, 0.30, 2005, date(2023, 11, 2)),
    (1950, 3, 2.0, 0.25, 1990, date(2024, 3, 20)),
    (2200, 4, 3.0, 0.35, 2010, date(2023, 9, 15)),
    (1700, 2, 1.5, 0.18, 1985, date(2024, 2, 1)),
    (2050, 3, 2.5, 0.22, 2000, date(2023, 12, 12)),
    (1900, 3, 2.0, 0.28, 1998, date(2024, 4, 5)),
    (2300, 4, 3.0, 0.40, 2015, date(2023, 10, 20)),
]

# Subject: 2000 sqft, 3 bed, 2 bath, 0.25 ac, built 2000 (age 24 in 2024)
SUBJECT_VALUE = 491000.0


def linear_price(gla, beds, baths, lot_size, age) -> float:
    t = LINEAR_TRUTH
    return (
        t["intercept"]
        + t["gla"] * gla
        + t["beds"] * beds
        + t["baths"] * baths
        + t["lot_size"] * lot_size
        + t["age"] * age
    )


@pytest.fixture
def reference_date():
    """Fixed reference date for deterministic tests."""
    return REFERENCE_DATE


@pytest.fixture
def clock(reference_date):
    """Clock frozen at the reference date."""
    return Clock.at(reference_date)


@pytest.fixture
def subject_property():
    """Standard subject property for testing."""
    return SubjectProperty(
        address="100 Main St, Springfield",
        beds=3,
        baths=2.0,
        gla=2000,
        lot_size=0.25,
        year_built=2000,
        age=24,
        coordinates=Coordinates(latitude=40.0, longitude=-75.0),
    )


@pytest.fixture
def create_comp():
    """Factory fixture for creating comparable properties."""
    def _create(
        sale_price: float = 450000,
        sale_date: date = date(2024, 1, 15),
        gla: float = 2000,
        beds: int = 3,
        baths: float = 2.0,
        lot_size: float = 0.25,
        year_built: int = 2000,
        address: str = None,
        latitude: float = None,
        longitude: float = None,
        **derived,
    ) -> ComparableProperty:
        return ComparableProperty(
            address=address or f"{int(gla)} Comp Ave",
            sale_price=sale_price,
            sale_date=sale_date,
            gla=gla,
            beds=beds,
            baths=baths,
            lot_size=lot_size,
            year_built=year_built,
            latitude=latitude,
            longitude=longitude,
            **derived,
        )
    return _create


@pytest.fixture
def linear_comps(create_comp, reference_date):
    """Eight comps priced exactly by LINEAR_TRUTH (ages as of the reference date)."""
    comps = []
    for i, (gla, beds, baths, lot, year_built, sold) in enumerate(COMP_ROWS):
        age = reference_date.year - year_built
        comps.append(
            create_comp(
                sale_price=linear_price(gla, beds, baths, lot, age),
                sale_date=sold,
                gla=gla,
                beds=beds,
                baths=baths,
                lot_size=lot,
                year_built=year_built,
                address=f"{i + 1} Oak St",
            )
        )
    return comps


@pytest.fixture
def comps_csv(linear_comps):
    """CSV export of the linear comp set, MLS-style headers."""
    lines = ["Address,Sale Price,Sale Date,GLA,Beds,Baths,Year Built,Lot Size"]
    for comp in linear_comps:
        lines.append(
            f'"{comp.address}","${comp.sale_price:,.0f}",{comp.sale_date.isoformat()},'
            f"{comp.gla},{comp.beds},{comp.baths},{comp.year_built},{comp.lot_size}"
        )
    return "\n".join(lines) + "\n"

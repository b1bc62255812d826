"""
Shared fixtures for the assessment check tests.
"""

import pytest
from datetime import date, timedelta
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.comp_engine import (
    PropertyCharacteristics,
    RawComparable,
    SubjectProperty,
)


@pytest.fixture
def reference_date():
    """Fixed reference date for deterministic tests."""
    return date(2024, 6, 1)


@pytest.fixture
def subject_characteristics():
    return PropertyCharacteristics(
        living_area_sqft=2000,
        bedrooms=3,
        bathrooms=2,
        lot_size_acres=0.25,
        year_built=2010,
        property_type="Single Family",
    )


@pytest.fixture
def subject_property(subject_characteristics):
    """Standard subject property: 2000 sqft, 3 bed, 2 bath, 0.25 ac, 2010, assessed $500k."""
    return SubjectProperty(
        property_id="123-Main-St,-Denver,-CO-80203",
        address_line1="123 Main St",
        city="Denver",
        state="CO",
        zip_code="80203",
        county="Denver",
        latitude=39.7392,
        longitude=-104.9903,
        characteristics=subject_characteristics,
        current_assessed_value=500000,
        assessment_year=2024,
    )


@pytest.fixture
def create_comp(reference_date):
    """Factory fixture for creating comparable sales identical to the subject by default."""
    def _create(
        sale_price: float,
        sale_date: date = None,
        sqft: float = 2000,
        bedrooms: float = 3,
        bathrooms: float = 2,
        lot_size_acres: float = 0.25,
        year_built: int = 2010,
        distance_miles: float = 0.5,
        comparable_id: str = None,
    ) -> RawComparable:
        sale_date = sale_date or reference_date - timedelta(days=30)
        return RawComparable(
            comparable_id=comparable_id or f"COMP-{sale_price}-{sale_date.isoformat()}",
            address="456 Oak Ave, Denver, CO 80203",
            sale_price=sale_price,
            sale_date=sale_date,
            characteristics=PropertyCharacteristics(
                living_area_sqft=sqft,
                bedrooms=bedrooms,
                bathrooms=bathrooms,
                lot_size_acres=lot_size_acres,
                year_built=year_built,
                property_type="Single Family",
            ),
            distance_miles=distance_miles,
            source="test",
        )
    return _create

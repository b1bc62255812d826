"""
Data models for the Comp Engine

Defines the subject property, raw comparable sales, adjusted comparables
and the valuation result produced from them.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from core.errors import InputError


class ConfidenceLevel(Enum):
    """
    Confidence rating for a comparable-based valuation.

    High: >= 5 comps
    Medium: 3-4 comps
    Low: < 3 comps
    """
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class PropertyCharacteristics:
    """Physical features used for filtering and adjustments."""
    living_area_sqft: float = 0
    bedrooms: float = 0
    bathrooms: float = 0
    lot_size_acres: float = 0
    year_built: int = 0
    property_type: str = ""

    def to_dict(self) -> dict:
        return {
            "sqft": self.living_area_sqft,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "lotSize": self.lot_size_acres,
            "yearBuilt": self.year_built,
            "propertyType": self.property_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PropertyCharacteristics":
        """Build from the camelCase wire shape, tolerating missing fields."""
        if not isinstance(data, dict):
            raise InputError("characteristics must be an object")
        try:
            return cls(
                living_area_sqft=float(data.get("sqft") or 0),
                bedrooms=float(data.get("bedrooms") or 0),
                bathrooms=float(data.get("bathrooms") or 0),
                lot_size_acres=float(data.get("lotSize") or 0),
                year_built=int(data.get("yearBuilt") or 0),
                property_type=str(data.get("propertyType") or ""),
            )
        except (TypeError, ValueError) as exc:
            raise InputError(f"Invalid property characteristics: {exc}") from exc


@dataclass(frozen=True)
class SubjectProperty:
    """
    The property whose assessment is being checked.

    Immutable once built; the pipeline never mutates it.
    """
    address_line1: str
    city: str
    state: str
    zip_code: str
    characteristics: PropertyCharacteristics

    address_line2: str = ""
    county: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Assessment data
    current_assessed_value: Optional[float] = None
    assessment_year: Optional[int] = None
    assessment_date: Optional[date] = None
    tax_amount: Optional[float] = None

    # Provider metadata
    property_id: str = ""
    parcel_number: str = ""
    owner_name: str = ""

    @property
    def full_address(self) -> str:
        """Construct the single-line address used for provider lookups."""
        line = self.address_line1
        if self.address_line2:
            line = f"{line} {self.address_line2}"
        return f"{line}, {self.city}, {self.state} {self.zip_code}".strip()

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def assessed_value(self) -> float:
        """Assessed value, 0 when the record carries none."""
        return self.current_assessed_value or 0

    def to_dict(self) -> dict:
        """Convert to the camelCase JSON shape used by the web boundary."""
        return {
            "id": self.property_id or None,
            "addressLine1": self.address_line1,
            "addressLine2": self.address_line2 or None,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "county": self.county or None,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "parcelNumber": self.parcel_number or None,
            "characteristics": self.characteristics.to_dict(),
            "currentAssessedValue": self.current_assessed_value,
            "assessmentYear": self.assessment_year,
            "assessmentDate": self.assessment_date.isoformat() if self.assessment_date else None,
            "taxAmount": self.tax_amount,
            "ownerName": self.owner_name or None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubjectProperty":
        """
        Rebuild a subject property from its JSON shape.

        Used for client-verified property data, so every problem is
        reported as an InputError rather than a server error.

        Raises:
            InputError: If a required field is missing or malformed.
        """
        if not isinstance(data, dict):
            raise InputError("verifiedProperty must be an object")

        for required in ("addressLine1", "city", "state", "zipCode", "characteristics"):
            if not data.get(required):
                raise InputError(f"verifiedProperty.{required} is required")

        try:
            assessment_date = data.get("assessmentDate") or None
            if assessment_date is not None:
                if not isinstance(assessment_date, str):
                    raise InputError("verifiedProperty.assessmentDate must be an ISO-8601 date string")
                assessment_date = date.fromisoformat(assessment_date[:10])

            return cls(
                address_line1=str(data["addressLine1"]),
                address_line2=str(data.get("addressLine2") or ""),
                city=str(data["city"]),
                state=str(data["state"]),
                zip_code=str(data["zipCode"]),
                county=str(data.get("county") or ""),
                latitude=_optional_float(data.get("latitude")),
                longitude=_optional_float(data.get("longitude")),
                characteristics=PropertyCharacteristics.from_dict(data["characteristics"]),
                current_assessed_value=_optional_float(data.get("currentAssessedValue")),
                assessment_year=int(data["assessmentYear"]) if data.get("assessmentYear") else None,
                assessment_date=assessment_date or None,
                tax_amount=_optional_float(data.get("taxAmount")),
                property_id=str(data.get("id") or ""),
                parcel_number=str(data.get("parcelNumber") or ""),
                owner_name=str(data.get("ownerName") or ""),
            )
        except InputError:
            raise
        except (TypeError, ValueError) as exc:
            raise InputError(f"Invalid verifiedProperty: {exc}") from exc


@dataclass(frozen=True)
class RawComparable:
    """
    An unadjusted candidate sale returned by a property data provider.

    distance_miles is None when the provider gave no distance and it
    could not be computed from coordinates.
    """
    address: str
    sale_price: float
    sale_date: date
    characteristics: PropertyCharacteristics
    distance_miles: Optional[float] = None

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    comparable_id: str = ""
    source: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.comparable_id or None,
            "address": self.address,
            "salePrice": self.sale_price,
            "saleDate": self.sale_date.isoformat(),
            "distanceMiles": self.distance_miles,
            "characteristics": self.characteristics.to_dict(),
            "source": self.source or None,
        }


@dataclass(frozen=True)
class AdjustedComparable:
    """
    A comparable that survived filtering, with per-feature adjustments.

    adjusted_price = sale_price + sum(adjustments.values())
    """
    comparable: RawComparable
    adjustments: Dict[str, float]
    adjusted_price: float

    @property
    def sale_price(self) -> float:
        return self.comparable.sale_price

    @property
    def total_adjustment(self) -> float:
        return self.adjusted_price - self.comparable.sale_price

    def to_dict(self) -> dict:
        data = self.comparable.to_dict()
        data["adjustments"] = dict(self.adjustments)
        data["adjustedPrice"] = self.adjusted_price
        return data


@dataclass(frozen=True)
class ValuationResult:
    """Comparable-derived market value with its supporting evidence."""
    market_value_estimate: float
    confidence: ConfidenceLevel
    comparables_used: Tuple[AdjustedComparable, ...] = field(default_factory=tuple)
    sample_size: int = 0

    # Raw candidates before filtering (audit trail)
    candidates_considered: int = 0

    @property
    def adjusted_prices(self) -> list:
        return [c.adjusted_price for c in self.comparables_used]


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)

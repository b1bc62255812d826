"""
RentCast Property Data Provider

Fetches property records, comparable sales and AVM estimates from the
RentCast API (https://developers.rentcast.io/) and normalises them into
Comp Engine models.

- Single requests.Session with the API key header
- 404 / empty result mapped to PropertyNotFoundError
- 429 mapped to RateLimitedError
- Other listings failures yield no comparables
- AVM lookups never raise
"""

import logging
import threading
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from core.assessment import AvmEstimate, AvmResult, AvmUnavailable
from core.comp_engine import (
    PropertyCharacteristics,
    RawComparable,
    SubjectProperty,
    haversine_distance,
)
from core.comp_engine.filters import subtract_months
from core.errors import AssessmentError, PropertyNotFoundError, RateLimitedError
from .base import PropertyDataProvider, ValuationProvider


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_BASE_URL = "https://api.rentcast.io/v1"
REQUEST_TIMEOUT_SECONDS = 10

SQFT_PER_ACRE = 43_560

# Listing statuses that represent a completed sale
SOLD_STATUSES = ("Sold", "Inactive")

# AVM price range width (as % of price) for confidence bands
AVM_HIGH_CONFIDENCE_RANGE = 20
AVM_LOW_CONFIDENCE_RANGE = 40

SOURCE_NAME = "rentcast"


# =============================================================================
# Normaliser
# =============================================================================

def _parse_date(value: Optional[str]) -> Optional[date]:
    """Parse an ISO-8601 date or datetime string to a date."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _optional_number(value: Any) -> Optional[float]:
    """Float value, or None when missing or not numeric."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _json_object(response: requests.Response) -> Dict[str, Any]:
    """
    Decode a response body that must be a JSON object.

    Raises:
        ValueError: If the body is not JSON or not an object.
    """
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _latest_by_year(records: Optional[Dict[str, Any]]) -> tuple:
    """Return (year, record) for the highest year key, or (None, None)."""
    if not records:
        return None, None
    year = max(records.keys())
    return year, records[year]


class RentCastNormaliser:
    """Maps raw RentCast records to Comp Engine models."""

    @staticmethod
    def characteristics(record: Dict[str, Any]) -> PropertyCharacteristics:
        """
        Extract physical features.

        RentCast reports lot size in square feet; the engine works in acres.
        """
        lot_sqft = record.get("lotSize") or 0
        return PropertyCharacteristics(
            living_area_sqft=record.get("squareFootage") or 0,
            bedrooms=record.get("bedrooms") or 0,
            bathrooms=record.get("bathrooms") or 0,
            lot_size_acres=lot_sqft / SQFT_PER_ACRE,
            year_built=record.get("yearBuilt") or 0,
            property_type=record.get("propertyType") or "",
        )

    @classmethod
    def to_subject(cls, record: Dict[str, Any]) -> SubjectProperty:
        """Map a /properties record, taking the latest tax assessment."""
        assessment_year, assessment = _latest_by_year(record.get("taxAssessments"))
        _, tax = _latest_by_year(record.get("propertyTaxes"))
        owner_names = (record.get("owner") or {}).get("names") or []

        year = int(assessment_year) if assessment_year else None

        return SubjectProperty(
            property_id=record.get("id") or "",
            address_line1=record.get("addressLine1") or "",
            address_line2=record.get("addressLine2") or "",
            city=record.get("city") or "",
            state=record.get("state") or "",
            zip_code=record.get("zipCode") or "",
            county=record.get("county") or "",
            latitude=record.get("latitude"),
            longitude=record.get("longitude"),
            parcel_number=record.get("assessorID") or "",
            characteristics=cls.characteristics(record),
            current_assessed_value=(assessment or {}).get("value") or None,
            assessment_year=year,
            assessment_date=date(year, 1, 1) if year else None,
            tax_amount=(tax or {}).get("total") or None,
            owner_name=owner_names[0] if owner_names else "",
        )

    @classmethod
    def to_comparable(
        cls,
        record: Dict[str, Any],
        subject: SubjectProperty,
    ) -> Optional[RawComparable]:
        """
        Map a /listings/sale record.

        Returns None when the record has no usable sale price or date.
        Distance comes from the record, or is computed when both
        coordinate pairs are known.
        """
        sale_date = cls.sale_date(record)
        sale_price = record.get("price") or record.get("lastSalePrice") or 0
        if sale_date is None or sale_price <= 0:
            return None

        latitude = record.get("latitude")
        longitude = record.get("longitude")

        distance = record.get("distance")
        if distance is None and subject.has_coordinates and latitude is not None and longitude is not None:
            distance = haversine_distance(
                subject.latitude, subject.longitude,
                latitude, longitude,
            )

        address = record.get("formattedAddress") or (
            f"{record.get('addressLine1', '')}, {record.get('city', '')}, "
            f"{record.get('state', '')} {record.get('zipCode', '')}"
        ).strip()

        return RawComparable(
            comparable_id=record.get("id") or "",
            address=address,
            sale_price=sale_price,
            sale_date=sale_date,
            characteristics=cls.characteristics(record),
            distance_miles=distance,
            latitude=latitude,
            longitude=longitude,
            source=SOURCE_NAME,
        )

    @staticmethod
    def sale_date(record: Dict[str, Any]) -> Optional[date]:
        """Best available sale date: last sale, then removal, then listing."""
        for key in ("lastSaleDate", "removedDate", "listedDate"):
            parsed = _parse_date(record.get(key))
            if parsed:
                return parsed
        return None

    @staticmethod
    def avm_confidence(price: float, low: float, high: float) -> str:
        """Confidence band from the width of the AVM price range."""
        if not price or low is None or high is None:
            return "medium"
        range_percent = (high - low) / price * 100
        if range_percent < AVM_HIGH_CONFIDENCE_RANGE:
            return "high"
        if range_percent > AVM_LOW_CONFIDENCE_RANGE:
            return "low"
        return "medium"


# =============================================================================
# Client
# =============================================================================

class RentCastClient(PropertyDataProvider, ValuationProvider):
    """
    RentCast API client.

    Blocking and sequential; retries belong to the caller. FastAPI runs
    sync routes in a threadpool, so each thread gets its own
    requests.Session unless one is injected.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: requests.Session = None,
        reference_date: date = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._reference_date = reference_date
        self._headers = {
            "X-Api-Key": api_key or "",
            "Accept": "application/json",
        }

        self._injected_session = session
        if session is not None:
            session.headers.update(self._headers)

        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """Session for the calling thread."""
        if self._injected_session is not None:
            return self._injected_session

        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self._headers)
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def _get(self, path: str, params: Dict[str, Any] = None) -> requests.Response:
        return self.session.get(
            f"{self._base_url}{path}",
            params=params,
            timeout=self._timeout,
        )

    @staticmethod
    def _check(response: requests.Response, not_found: str) -> None:
        """Map provider status codes onto the error taxonomy."""
        if response.status_code == 404:
            raise PropertyNotFoundError(not_found)
        if response.status_code == 429:
            raise RateLimitedError("RentCast API rate limit exceeded")
        response.raise_for_status()

    # -------------------------------------------------------------------------
    # PropertyDataProvider
    # -------------------------------------------------------------------------

    def fetch_property_record(self, address: str) -> Dict[str, Any]:
        """Fetch the raw /properties record for an address."""
        response = self._get("/properties", {"address": address})
        self._check(response, f"Property not found: {address}")

        records = response.json()
        if not isinstance(records, list):
            raise ValueError("Unexpected response format from RentCast")
        if not records:
            raise PropertyNotFoundError(f"Property not found: {address}")
        return records[0]

    def lookup_property(self, address: str) -> SubjectProperty:
        return RentCastNormaliser.to_subject(self.fetch_property_record(address))

    def get_property_by_id(self, property_id: str) -> SubjectProperty:
        response = self._get(f"/properties/{property_id}")
        self._check(response, f"Property not found: {property_id}")
        return RentCastNormaliser.to_subject(response.json())

    def get_comparable_sales(
        self,
        subject: SubjectProperty,
        radius_miles: float,
        months_back: int,
        limit: int = 20,
    ) -> List[RawComparable]:
        """
        Fetch sold listings near the subject via address search.

        The listings endpoint handles proximity itself; radius_miles is
        enforced later by the Comp Engine filter.

        Only a rate limit is raised. Any other listings failure leaves the
        analysis without comparables.

        Raises:
            RateLimitedError: Upstream quota exhausted.
        """
        params = {
            "address": subject.address_line1,
            "city": subject.city,
            "state": subject.state,
            "status": "Inactive",
            "limit": limit,
        }
        if subject.zip_code:
            params["zipCode"] = subject.zip_code

        records = self._fetch_listings(params, subject)

        cutoff = None
        if months_back > 0:
            cutoff = subtract_months(self._reference_date or date.today(), months_back)

        comparables = []
        for record in records:
            if not isinstance(record, dict):
                continue
            if record.get("status") not in SOLD_STATUSES and not record.get("lastSaleDate"):
                continue

            try:
                comp = RentCastNormaliser.to_comparable(record, subject)
            except (TypeError, ValueError) as exc:
                logger.warning("Skipped listing %s: %s", record.get("id"), exc)
                continue
            if comp is None:
                logger.warning("Skipped listing %s: no sale price or date", record.get("id"))
                continue
            if cutoff and comp.sale_date < cutoff:
                continue
            comparables.append(comp)

        return comparables

    def _fetch_listings(self, params: Dict[str, Any], subject: SubjectProperty) -> list:
        try:
            response = self._get("/listings/sale", params)
            if response.status_code == 429:
                raise RateLimitedError("RentCast API rate limit exceeded")
            response.raise_for_status()
            records = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning(
                "Listings search failed for %s, no comparables: %s",
                subject.full_address,
                exc,
            )
            return []

        if not isinstance(records, list):
            logger.warning("Unexpected listings payload for %s", subject.full_address)
            return []
        return records

    # -------------------------------------------------------------------------
    # ValuationProvider
    # -------------------------------------------------------------------------

    def get_valuation(self, address: str) -> AvmResult:
        """
        Fetch the /avm/value estimate, falling back to the per-property
        value estimate when the AVM endpoint has no record.

        Never raises: malformed payloads and transport errors are
        returned as AvmUnavailable.
        """
        try:
            response = self._get("/avm/value", {"address": address})
            if response.status_code == 404:
                return self._fallback_valuation(address)
            response.raise_for_status()

            data = _json_object(response)
            if not data.get("price"):
                return AvmUnavailable("AVM returned no price")
            price = float(data["price"])

            return AvmEstimate(
                value=price,
                confidence=RentCastNormaliser.avm_confidence(
                    price,
                    _optional_number(data.get("priceRangeLow")),
                    _optional_number(data.get("priceRangeHigh")),
                ),
                source=SOURCE_NAME,
            )
        except (requests.RequestException, ValueError, TypeError, AssessmentError) as exc:
            logger.info("AVM valuation not available for %s: %s", address, exc)
            return AvmUnavailable(str(exc))

    def _fallback_valuation(self, address: str) -> AvmResult:
        record = self.fetch_property_record(address)
        if not isinstance(record, dict) or not record.get("id"):
            return AvmUnavailable("No property ID for value estimate")

        response = self._get(f"/properties/{record['id']}/value-estimate")
        response.raise_for_status()

        estimate = _json_object(response).get("estimate")
        if not estimate:
            return AvmUnavailable("No value estimate")
        return AvmEstimate(value=float(estimate), confidence="medium", source=SOURCE_NAME)

    def close(self) -> None:
        """Close every session opened by this client."""
        if self._injected_session is not None:
            self._injected_session.close()
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

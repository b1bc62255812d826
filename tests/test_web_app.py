"""
Tests for the JSON API.

The analyzer is injected, so no provider traffic happens.
"""

import pytest
from fastapi.testclient import TestClient

from core import (
    AssessmentAnalyzer,
    AvmUnavailable,
    InputError,
    PropertyNotFoundError,
    RateLimitedError,
)
from providers.base import PropertyDataProvider, ValuationProvider
from utils.config import Config
from web.app import create_app, resolve_address


class StubPropertyProvider(PropertyDataProvider):

    def __init__(self, subject, comparables=(), error=None):
        self.subject = subject
        self.comparables = list(comparables)
        self.error = error
        self.looked_up = []

    def lookup_property(self, address):
        self.looked_up.append(address)
        if self.error:
            raise self.error
        return self.subject

    def get_property_by_id(self, property_id):
        self.looked_up.append(property_id)
        if self.error:
            raise self.error
        return self.subject

    def get_comparable_sales(self, subject, radius_miles, months_back, limit=20):
        return self.comparables


class ExplodingProvider(StubPropertyProvider):

    def get_comparable_sales(self, subject, radius_miles, months_back, limit=20):
        raise KeyError("unexpected payload")


class NoAvm(ValuationProvider):

    def get_valuation(self, address):
        return AvmUnavailable("not configured")


@pytest.fixture
def comps(create_comp):
    return [
        create_comp(sale_price=440000, comparable_id="A1"),
        create_comp(sale_price=435000, comparable_id="A2"),
        create_comp(sale_price=455000, comparable_id="A3"),
    ]


@pytest.fixture
def make_api(reference_date):
    def _make(provider, raise_server_exceptions=True):
        analyzer = AssessmentAnalyzer(
            provider, NoAvm(), config=Config(), reference_date=reference_date,
        )
        app = create_app(analyzer=analyzer, config=Config())
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)
    return _make


# =============================================================================
# Test: Address Resolution
# =============================================================================

class TestResolveAddress:

    def test_free_text(self):
        assert resolve_address("  123 Main St  ", None) == "123 Main St"

    def test_structured_data_wins(self):
        data = {"line1": "123 Main St", "city": "Denver", "state": "CO", "zipCode": "80203"}

        assert resolve_address("123 main", data) == "123 Main St, Denver, CO 80203"

    def test_incomplete_structured_data_ignored(self):
        data = {"line1": "123 Main St", "city": "Denver", "state": "CO"}

        assert resolve_address("123 main", data) == "123 main"

    @pytest.mark.parametrize("address", [None, "", "   ", 42])
    def test_missing_address(self, address):
        with pytest.raises(InputError):
            resolve_address(address, None)


# =============================================================================
# Test: Routes
# =============================================================================

class TestHealth:

    def test_root_and_health(self, make_api, subject_property):
        api = make_api(StubPropertyProvider(subject_property))

        assert api.get("/").json() == {"status": "ok"}
        assert api.get("/health").json() == {"status": "healthy"}

    def test_api_health(self, make_api, subject_property):
        data = make_api(StubPropertyProvider(subject_property)).get("/api/health").json()

        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"


class TestPropertyLookup:

    def test_returns_subject(self, make_api, subject_property):
        api = make_api(StubPropertyProvider(subject_property))

        response = api.post("/api/property", json={"address": "123 Main St, Denver, CO 80203"})

        assert response.status_code == 200
        data = response.json()
        assert data["addressLine1"] == "123 Main St"
        assert data["currentAssessedValue"] == 500000
        assert data["characteristics"]["sqft"] == 2000

    def test_missing_address_is_400(self, make_api, subject_property):
        response = make_api(StubPropertyProvider(subject_property)).post("/api/property", json={})

        assert response.status_code == 400
        assert "error" in response.json()

    def test_non_string_address_is_400(self, make_api, subject_property):
        api = make_api(StubPropertyProvider(subject_property))

        response = api.post("/api/property", json={"address": ["123 Main St"]})

        assert response.status_code == 400

    def test_not_found_is_404(self, make_api, subject_property):
        api = make_api(StubPropertyProvider(subject_property, error=PropertyNotFoundError("none")))

        response = api.post("/api/property", json={"address": "1 Nowhere Rd"})

        assert response.status_code == 404
        assert response.json()["error"].startswith("Property not found")


class TestAnalysis:

    def test_full_analysis(self, make_api, subject_property, comps):
        api = make_api(StubPropertyProvider(subject_property, comps))

        response = api.post("/api/analysis", json={"address": "123 Main St, Denver, CO 80203"})

        assert response.status_code == 200
        data = response.json()
        assert data["verdict"] == "over-assessed"
        assert data["marketValue"] == 440000
        assert data["confidence"] == "medium"
        assert data["annualSavings"] == pytest.approx(3300)
        assert len(data["comparablesUsed"]) == 3

    def test_address_data_precedence(self, make_api, subject_property, comps):
        provider = StubPropertyProvider(subject_property, comps)
        api = make_api(provider)

        api.post("/api/analysis", json={
            "address": "123 main",
            "addressData": {"line1": "123 Main St", "city": "Denver", "state": "CO", "zipCode": "80203"},
        })

        assert provider.looked_up == ["123 Main St, Denver, CO 80203"]

    def test_verified_property_skips_lookup(self, make_api, subject_property, comps):
        provider = StubPropertyProvider(subject_property, comps)
        api = make_api(provider)
        verified = subject_property.to_dict()
        verified["currentAssessedValue"] = 440000

        response = api.post("/api/analysis", json={
            "address": "123 Main St, Denver, CO 80203",
            "verifiedProperty": verified,
        })

        assert response.status_code == 200
        assert provider.looked_up == []
        assert response.json()["verdict"] == "fair"

    @pytest.mark.parametrize("verified", [
        {"addressLine1": "123 Main St"},
        {
            "addressLine1": "123 Main St", "city": "Denver", "state": "CO", "zipCode": "80203",
            "characteristics": {"sqft": "lots"},
        },
        {
            "addressLine1": "123 Main St", "city": "Denver", "state": "CO", "zipCode": "80203",
            "characteristics": {"sqft": 2000}, "assessmentDate": 12345,
        },
        {
            "addressLine1": "123 Main St", "city": "Denver", "state": "CO", "zipCode": "80203",
            "characteristics": {"sqft": 2000}, "assessmentDate": "last spring",
        },
        "not an object",
    ])
    def test_malformed_verified_property_is_400(self, make_api, subject_property, verified):
        api = make_api(StubPropertyProvider(subject_property))

        response = api.post("/api/analysis", json={
            "address": "123 Main St",
            "verifiedProperty": verified,
        })

        assert response.status_code == 400

    def test_no_comparables(self, make_api, subject_property):
        api = make_api(StubPropertyProvider(subject_property))

        data = api.post("/api/analysis", json={"address": "123 Main St"}).json()

        assert data["verdict"] == "insufficient-data"
        assert data["sampleSize"] == 0
        assert data["confidence"] == "low"

    def test_rate_limited_is_429(self, make_api, subject_property):
        api = make_api(StubPropertyProvider(subject_property, error=RateLimitedError("quota")))

        response = api.post("/api/analysis", json={"address": "123 Main St"})

        assert response.status_code == 429
        assert response.json()["retryable"] is True

    def test_unexpected_error_is_500(self, make_api, subject_property):
        api = make_api(ExplodingProvider(subject_property), raise_server_exceptions=False)

        response = api.post("/api/analysis", json={"address": "123 Main St"})

        assert response.status_code == 500
        assert "unexpected payload" not in response.text

    def test_analysis_by_property_id(self, make_api, subject_property, comps):
        provider = StubPropertyProvider(subject_property, comps)
        api = make_api(provider)

        response = api.get("/api/analysis/123-Main-St,-Denver,-CO-80203")

        assert response.status_code == 200
        assert provider.looked_up == ["123-Main-St,-Denver,-CO-80203"]
        assert response.json()["marketValue"] == 440000

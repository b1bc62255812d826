"""
FastAPI application for the assessment check service.

JSON API only. Status mapping:
- 400: malformed or missing address / verified property
- 404: subject property not found
- 429: upstream data provider rate limited
- 500: unexpected failure
"""

import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core import (
    AssessmentAnalyzer,
    AssessmentError,
    InputError,
    PropertyNotFoundError,
    RateLimitedError,
    SubjectProperty,
)
from providers import RentCastClient
from utils.config import Config


logger = logging.getLogger(__name__)


# =============================================================================
# Environment Configuration
# =============================================================================

IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else []
if not ALLOWED_ORIGINS and not IS_PRODUCTION:
    # Development fallback only
    ALLOWED_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

API_VERSION = "0.1.0"

GENERIC_ERROR_MESSAGE = "An error occurred while analyzing the property. Please try again."


# =============================================================================
# API Request Models
# =============================================================================

class PropertyRequest(BaseModel):
    """Request body for property lookup."""
    address: Optional[str] = None
    addressData: Optional[Dict[str, Any]] = None


class AnalysisRequest(BaseModel):
    """Request body for a full assessment analysis."""
    address: Optional[str] = None
    addressData: Optional[Dict[str, Any]] = None
    verifiedProperty: Optional[Dict[str, Any]] = None


def resolve_address(address: Optional[str], address_data: Optional[Dict[str, Any]]) -> str:
    """
    Pick the address string sent to the data provider.

    Structured autocomplete data (line1, city, state, zipCode all present
    as strings) wins over the free-text address.

    Raises:
        InputError: If the free-text address is missing or blank.
    """
    if not isinstance(address, str) or not address.strip():
        raise InputError("Address is required and must be a string")

    if isinstance(address_data, dict):
        parts = [address_data.get(k) for k in ("line1", "city", "state", "zipCode")]
        if all(isinstance(p, str) and p for p in parts):
            line1, city, state, zip_code = parts
            return f"{line1}, {city}, {state} {zip_code}".strip()

    return address.strip()


def build_default_analyzer(config: Config) -> AssessmentAnalyzer:
    """RentCast serves as both the property data and AVM provider."""
    client = RentCastClient(
        api_key=config.rentcast_api_key,
        base_url=config.rentcast_base_url,
        timeout=config.request_timeout,
    )
    return AssessmentAnalyzer(client, client, config=config)


def create_app(analyzer: AssessmentAnalyzer = None, config: Config = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        analyzer: Injected analyzer (default: RentCast-backed)
        config: Application configuration (default: from environment)
    """
    config = config or Config.load()

    app = FastAPI(
        title="Assessment Check",
        description="Checks a property tax assessment against comparable sales",
        version=API_VERSION,
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=config.debug and not IS_PRODUCTION,
    )
    app.state.analyzer = analyzer or build_default_analyzer(config)

    # Healthchecks: no dependencies, no IO
    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "healthy"}

    if ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    # ==========================================================================
    # Error mapping
    # ==========================================================================

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": "Malformed request body"}, status_code=400)

    @app.exception_handler(InputError)
    async def input_error_handler(request: Request, exc: InputError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(PropertyNotFoundError)
    async def not_found_handler(request: Request, exc: PropertyNotFoundError):
        logger.info("Property not found: %s", exc)
        return JSONResponse({"error": exc.user_message}, status_code=404)

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError):
        logger.warning("Upstream rate limit: %s", exc)
        return JSONResponse(
            {"error": exc.user_message, "retryable": True},
            status_code=429,
        )

    @app.exception_handler(AssessmentError)
    async def assessment_error_handler(request: Request, exc: AssessmentError):
        logger.error("Assessment error: %s", exc)
        return JSONResponse({"error": exc.user_message}, status_code=500)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unexpected error on %s", request.url.path)
        return JSONResponse({"error": GENERIC_ERROR_MESSAGE}, status_code=500)

    # ==========================================================================
    # Routes
    # ==========================================================================

    @app.post("/api/property")
    def property_lookup(body: PropertyRequest):
        """
        Fetch the subject property for the user to verify before analysis.

        No comparables or AVM are fetched.
        """
        address = resolve_address(body.address, body.addressData)
        subject = app.state.analyzer.lookup_property(address)
        return subject.to_dict()

    @app.post("/api/analysis")
    def run_analysis(body: AnalysisRequest):
        """
        Run the full assessment analysis.

        A verifiedProperty in the body skips the provider lookup.
        """
        address = resolve_address(body.address, body.addressData)
        analyzer = app.state.analyzer

        if body.verifiedProperty is not None:
            subject = SubjectProperty.from_dict(body.verifiedProperty)
            result = analyzer.analyze_subject(subject, avm_address=address)
        else:
            result = analyzer.analyze_address(address)

        return result.to_dict()

    @app.get("/api/analysis/{property_id}")
    def analysis_by_property_id(property_id: str):
        """Re-run the analysis for a property already looked up by ID."""
        if not property_id.strip():
            raise InputError("Property ID is required")
        return app.state.analyzer.analyze_property_id(property_id).to_dict()

    @app.get("/api/health")
    def api_health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": API_VERSION,
            "environment": "production" if IS_PRODUCTION else "development",
        }

    return app


# Create app instance for uvicorn
app = create_app()

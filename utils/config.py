"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    # Property data provider
    rentcast_api_key: Optional[str] = field(default_factory=lambda: os.getenv("RENTCAST_API_KEY"))
    rentcast_base_url: str = field(
        default_factory=lambda: os.getenv("RENTCAST_BASE_URL", "https://api.rentcast.io/v1")
    )
    request_timeout: float = field(default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "10")))

    # Comparable search
    comp_radius_miles: float = field(default_factory=lambda: float(os.getenv("COMP_RADIUS_MILES", "1.0")))
    comp_months_back: int = field(default_factory=lambda: int(os.getenv("COMP_MONTHS_BACK", "6")))
    comp_limit: int = field(default_factory=lambda: int(os.getenv("COMP_LIMIT", "20")))

    # Savings
    tax_rate: float = field(default_factory=lambda: float(os.getenv("TAX_RATE", "0.055")))

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

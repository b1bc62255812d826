"""
Property data providers.

Thin I/O wrappers around third-party property data APIs.
"""

from .base import PropertyDataProvider, ValuationProvider
from .rentcast import RentCastClient, RentCastNormaliser

__all__ = [
    "PropertyDataProvider",
    "ValuationProvider",
    "RentCastClient",
    "RentCastNormaliser",
]

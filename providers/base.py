"""
Data provider interfaces.
"""

from abc import ABC, abstractmethod
from typing import List

from core.assessment import AvmResult
from core.comp_engine import RawComparable, SubjectProperty


class PropertyDataProvider(ABC):
    """Abstract base class for property record and comparable sale sources."""

    @abstractmethod
    def lookup_property(self, address: str) -> SubjectProperty:
        """
        Fetch the property record for an address.

        Args:
            address: Single-line address.

        Returns:
            SubjectProperty with assessment data.

        Raises:
            PropertyNotFoundError: No record matches.
            RateLimitedError: Upstream quota exhausted.
        """
        pass

    @abstractmethod
    def get_property_by_id(self, property_id: str) -> SubjectProperty:
        """
        Fetch a property record by the provider's own ID.

        Raises:
            PropertyNotFoundError: No record has this ID.
            RateLimitedError: Upstream quota exhausted.
        """
        pass

    @abstractmethod
    def get_comparable_sales(
        self,
        subject: SubjectProperty,
        radius_miles: float,
        months_back: int,
        limit: int = 20,
    ) -> List[RawComparable]:
        """
        Fetch recent sales near the subject.

        Returns an empty list when nothing matches; never raises for
        "no results".
        """
        pass


class ValuationProvider(ABC):
    """Abstract base class for automated valuation model (AVM) sources."""

    @abstractmethod
    def get_valuation(self, address: str) -> AvmResult:
        """
        Fetch an AVM estimate.

        Must never raise: every failure is returned as AvmUnavailable.
        """
        pass

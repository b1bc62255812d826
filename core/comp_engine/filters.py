"""
Comp Eligibility Filters for the Comp Engine

Implements hard similarity filters for comparable sale selection:
- Living area (within ±20%)
- Bedrooms and bathrooms (within ±1)
- Lot size (within ±25%)
- Geographic radius (1.0 mile)
- Sale date (last 6 calendar months)

No relaxation tier exists. Thin results are reported downstream through
the confidence rating and optional AVM blending.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from .models import RawComparable, SubjectProperty


# =============================================================================
# Configuration Constants
# =============================================================================

SIZE_RATIO_MIN = 0.8
SIZE_RATIO_MAX = 1.2

MAX_BEDROOM_DIFFERENCE = 1
MAX_BATHROOM_DIFFERENCE = 1

LOT_RATIO_MIN = 0.75
LOT_RATIO_MAX = 1.25

MAX_RADIUS_MILES = 1.0
MAX_SALE_AGE_MONTHS = 6


@dataclass(frozen=True)
class FilterConfig:
    """Thresholds for comp filtering."""
    size_ratio_min: float = SIZE_RATIO_MIN
    size_ratio_max: float = SIZE_RATIO_MAX
    max_bedroom_difference: float = MAX_BEDROOM_DIFFERENCE
    max_bathroom_difference: float = MAX_BATHROOM_DIFFERENCE
    lot_ratio_min: float = LOT_RATIO_MIN
    lot_ratio_max: float = LOT_RATIO_MAX
    max_radius_miles: float = MAX_RADIUS_MILES
    max_sale_age_months: int = MAX_SALE_AGE_MONTHS


def subtract_months(reference: date, months: int) -> date:
    """
    Step back a number of calendar months, clamping the day.

    31 August minus 6 months is 28/29 February, not 3 March.
    """
    month_index = reference.year * 12 + (reference.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(reference.day, last_day))


class CompEligibilityFilter:
    """
    Applies hard filters to select eligible comparable sales.

    A candidate must pass ALL filters to qualify as a comp. Each predicate
    is independent and side-effect free, so evaluation order is irrelevant.
    """

    def __init__(self, reference_date: date = None, config: FilterConfig = None):
        """
        Initialize filter with reference date.

        Args:
            reference_date: Date to calculate sale age from (default: today)
            config: Threshold overrides (default: FilterConfig())
        """
        self._reference_date = reference_date or date.today()
        self._config = config or FilterConfig()

    @property
    def sale_date_cutoff(self) -> date:
        return subtract_months(self._reference_date, self._config.max_sale_age_months)

    def filter_comps(
        self,
        subject: SubjectProperty,
        candidates: List[RawComparable],
    ) -> List[RawComparable]:
        """
        Filter candidates to eligible comps.

        Args:
            subject: The subject property being valued
            candidates: All potential comparable sales

        Returns:
            Eligible comps, in their original order
        """
        return [c for c in candidates if self.is_eligible(subject, c)]

    def is_eligible(self, subject: SubjectProperty, comp: RawComparable) -> bool:
        """Check a single candidate against every filter."""
        return (
            self._is_similar_size(subject, comp)
            and self._is_similar_rooms(subject, comp)
            and self._is_similar_lot(subject, comp)
            and self._is_within_radius(comp)
            and self._is_within_date_range(comp.sale_date)
        )

    def _is_similar_size(self, subject: SubjectProperty, comp: RawComparable) -> bool:
        ratio = _ratio(
            comp.characteristics.living_area_sqft,
            subject.characteristics.living_area_sqft,
        )
        if ratio is None:
            return False
        return self._config.size_ratio_min <= ratio <= self._config.size_ratio_max

    def _is_similar_rooms(self, subject: SubjectProperty, comp: RawComparable) -> bool:
        bedroom_diff = abs(comp.characteristics.bedrooms - subject.characteristics.bedrooms)
        if bedroom_diff > self._config.max_bedroom_difference:
            return False

        bathroom_diff = abs(comp.characteristics.bathrooms - subject.characteristics.bathrooms)
        return bathroom_diff <= self._config.max_bathroom_difference

    def _is_similar_lot(self, subject: SubjectProperty, comp: RawComparable) -> bool:
        ratio = _ratio(
            comp.characteristics.lot_size_acres,
            subject.characteristics.lot_size_acres,
        )
        if ratio is None:
            return False
        return self._config.lot_ratio_min <= ratio <= self._config.lot_ratio_max

    def _is_within_radius(self, comp: RawComparable) -> bool:
        # Unknown distance cannot be shown to be nearby
        if comp.distance_miles is None:
            return False
        return comp.distance_miles <= self._config.max_radius_miles

    def _is_within_date_range(self, sale_date: date) -> bool:
        """Check if sale date is within allowed range."""
        return sale_date >= self.sale_date_cutoff


def _ratio(value: float, base: float) -> Optional[float]:
    """Ratio of value to base, or None when base is not positive."""
    if not base or base <= 0:
        return None
    return value / base

"""
Valuation Engine for the Comp Engine

Implements:
- Comp filtering and per-feature adjustment
- Outlier trimming (bottom and top 20% of adjusted prices)
- Market value as the median of the trimmed set
- Confidence rating from comp count
"""

import math
from datetime import date
from typing import List, Sequence

from .adjustments import DEFAULT_RATES, AdjustmentRates, adjust_comparable
from .filters import CompEligibilityFilter, FilterConfig
from .models import (
    AdjustedComparable,
    ConfidenceLevel,
    RawComparable,
    SubjectProperty,
    ValuationResult,
)


# =============================================================================
# Configuration Constants
# =============================================================================

# Share of adjusted prices trimmed from EACH end
OUTLIER_TRIM_FRACTION = 0.2

# Comp counts for confidence tiers
MIN_COMPS_HIGH = 5
MIN_COMPS_MEDIUM = 3


def trim_outliers(prices: Sequence[float], fraction: float = OUTLIER_TRIM_FRACTION) -> List[float]:
    """
    Sort prices and drop floor(n * fraction) from each end.

    Args:
        prices: Adjusted prices, any order
        fraction: Share trimmed from each end

    Returns:
        Remaining prices, ascending
    """
    ordered = sorted(prices)
    remove_count = math.floor(len(ordered) * fraction)
    if remove_count == 0:
        return ordered
    return ordered[remove_count:len(ordered) - remove_count]


def median(values: Sequence[float]) -> float:
    """Median of an ascending sequence; 0 when empty."""
    n = len(values)
    if n == 0:
        return 0.0

    mid = n // 2
    if n % 2 == 1:
        return float(values[mid])
    return (values[mid - 1] + values[mid]) / 2


def calculate_market_value(comps: Sequence[AdjustedComparable]) -> float:
    """
    Calculate market value from adjusted comparables.

    Market value = median(trimmed adjusted prices). Returns 0 with no
    comps; surfacing "insufficient data" is the caller's job.
    """
    if not comps:
        return 0.0
    return median(trim_outliers([c.adjusted_price for c in comps]))


def determine_confidence(sample_size: int) -> ConfidenceLevel:
    """
    Determine confidence rating from the number of adjusted comps.

    >= 5: High, 3-4: Medium, < 3: Low
    """
    if sample_size >= MIN_COMPS_HIGH:
        return ConfidenceLevel.HIGH
    if sample_size >= MIN_COMPS_MEDIUM:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


class CompValuationEngine:
    """
    Comparable sales valuation pipeline.

    Pipeline order:
    1. FILTER - Apply similarity, distance and recency filters
    2. ADJUST - Price each comp as if it were the subject
    3. VALUATE - Median of outlier-trimmed adjusted prices
    4. RATE - Confidence from comp count

    Holds configuration only, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        reference_date: date = None,
        rates: AdjustmentRates = DEFAULT_RATES,
        filter_config: FilterConfig = None,
    ):
        """
        Initialize valuation engine.

        Args:
            reference_date: Reference date for sale age (default: today)
            rates: Adjustment rates
            filter_config: Filter thresholds
        """
        self._rates = rates
        self._filter = CompEligibilityFilter(
            reference_date=reference_date,
            config=filter_config,
        )

    def valuate(
        self,
        subject: SubjectProperty,
        candidates: List[RawComparable],
    ) -> ValuationResult:
        """
        Perform comparable valuation for a subject property.

        Args:
            subject: The property being valued
            candidates: Raw comparable sales from the data provider

        Returns:
            ValuationResult with market value, confidence and comps used
        """
        adjusted = self.select_comps(subject, candidates)

        return ValuationResult(
            market_value_estimate=calculate_market_value(adjusted),
            confidence=determine_confidence(len(adjusted)),
            comparables_used=tuple(adjusted),
            sample_size=len(adjusted),
            candidates_considered=len(candidates),
        )

    def select_comps(
        self,
        subject: SubjectProperty,
        candidates: List[RawComparable],
    ) -> List[AdjustedComparable]:
        """
        Filter and adjust comps without valuation.

        Useful for auditing the selection process.
        """
        eligible = self._filter.filter_comps(subject, candidates)
        return [adjust_comparable(subject, c, self._rates) for c in eligible]

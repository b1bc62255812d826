"""
Comp Engine

Comparable sales selection and valuation pipeline: filters recent nearby
sales against a subject property, adjusts each for feature differences,
and reduces the adjusted prices to a market value and confidence rating.
"""

from .models import (
    PropertyCharacteristics,
    SubjectProperty,
    RawComparable,
    AdjustedComparable,
    ConfidenceLevel,
    ValuationResult,
)
from .distance import haversine_distance
from .filters import CompEligibilityFilter, FilterConfig
from .adjustments import (
    AdjustmentRates,
    calculate_adjustments,
    apply_adjustments,
    adjust_comparable,
)
from .valuation import (
    CompValuationEngine,
    calculate_market_value,
    determine_confidence,
    trim_outliers,
)

__all__ = [
    # Models
    "PropertyCharacteristics",
    "SubjectProperty",
    "RawComparable",
    "AdjustedComparable",
    "ConfidenceLevel",
    "ValuationResult",
    # Distance
    "haversine_distance",
    # Filtering
    "CompEligibilityFilter",
    "FilterConfig",
    # Adjustments
    "AdjustmentRates",
    "calculate_adjustments",
    "apply_adjustments",
    "adjust_comparable",
    # Engine
    "CompValuationEngine",
    "calculate_market_value",
    "determine_confidence",
    "trim_outliers",
]

__version__ = "1.0"

"""
Per-feature price adjustments for comparable sales.

A comparable that is larger or better than the subject receives a
negative adjustment, pulling its price toward what the subject would
sell for. Adjustment sign is always opposite the feature difference.
"""

from dataclasses import dataclass
from typing import Dict

from .models import AdjustedComparable, RawComparable, SubjectProperty


# =============================================================================
# Configuration Constants
# =============================================================================

SIZE_RATE_PER_SQFT = 150
BEDROOM_RATE = 25_000
BATHROOM_RATE = 15_000
LOT_RATE_PER_ACRE = 50_000
AGE_RATE_PER_YEAR = 1_000

# Adjustment names, in reporting order
SIZE = "size"
BEDROOM = "bedroom"
BATHROOM = "bathroom"
LOT_SIZE = "lotSize"
AGE = "age"


@dataclass(frozen=True)
class AdjustmentRates:
    """
    Dollar value of a one-unit feature difference.

    Injectable so rates can be tuned per jurisdiction without touching
    the adjustment algorithm.
    """
    size_per_sqft: float = SIZE_RATE_PER_SQFT
    bedroom: float = BEDROOM_RATE
    bathroom: float = BATHROOM_RATE
    lot_per_acre: float = LOT_RATE_PER_ACRE
    age_per_year: float = AGE_RATE_PER_YEAR


DEFAULT_RATES = AdjustmentRates()


def calculate_adjustments(
    subject: SubjectProperty,
    comp: RawComparable,
    rates: AdjustmentRates = DEFAULT_RATES,
) -> Dict[str, float]:
    """
    Calculate price adjustments for one comparable.

    Args:
        subject: The subject property
        comp: A comparable that passed filtering
        rates: Dollar rates per unit of difference

    Returns:
        Mapping of adjustment name to signed dollar amount
    """
    s = subject.characteristics
    c = comp.characteristics

    differences = {
        SIZE: (c.living_area_sqft - s.living_area_sqft, rates.size_per_sqft),
        BEDROOM: (c.bedrooms - s.bedrooms, rates.bedroom),
        BATHROOM: (c.bathrooms - s.bathrooms, rates.bathroom),
        LOT_SIZE: (c.lot_size_acres - s.lot_size_acres, rates.lot_per_acre),
        AGE: (c.year_built - s.year_built, rates.age_per_year),
    }

    # 0.0 rather than -0.0 when there is no difference
    return {
        name: -(diff * rate) if diff else 0.0
        for name, (diff, rate) in differences.items()
    }


def apply_adjustments(comp: RawComparable, adjustments: Dict[str, float]) -> AdjustedComparable:
    """Build the adjusted comparable; the raw record is left untouched."""
    return AdjustedComparable(
        comparable=comp,
        adjustments=dict(adjustments),
        adjusted_price=comp.sale_price + sum(adjustments.values()),
    )


def adjust_comparable(
    subject: SubjectProperty,
    comp: RawComparable,
    rates: AdjustmentRates = DEFAULT_RATES,
) -> AdjustedComparable:
    """Calculate and apply adjustments in one step."""
    return apply_adjustments(comp, calculate_adjustments(subject, comp, rates))

"""
Assessment comparison: AVM blending, verdict and tax savings.

Takes the comparable-derived market value from the Comp Engine and turns
it into the figures a property owner acts on.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple, Union

from core.comp_engine import AdjustedComparable, ConfidenceLevel, SubjectProperty
from utils.formatting import format_currency, format_percent


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Constants
# =============================================================================

# AVM is blended in only below this comp count
AVM_BLEND_MAX_COMPS = 3
COMPARABLE_WEIGHT = 0.7
AVM_WEIGHT = 0.3

# |percentage difference| at or under this is a fair assessment
FAIR_BAND_PERCENT = 5.0

# Placeholder rate, not derived from jurisdiction data
DEFAULT_TAX_RATE = 0.055


class Verdict(Enum):
    """
    Assessment verdict.

    INSUFFICIENT_DATA is reported instead of a numeric verdict when no
    comparable survived filtering.
    """
    OVER_ASSESSED = "over-assessed"
    FAIR = "fair"
    UNDER_ASSESSED = "under-assessed"
    INSUFFICIENT_DATA = "insufficient-data"


# =============================================================================
# AVM Lookup Result
# =============================================================================

@dataclass(frozen=True)
class AvmEstimate:
    """Returned when the valuation provider produced an estimate."""

    value: float
    confidence: str = "medium"
    source: str = ""


@dataclass(frozen=True)
class AvmUnavailable:
    """Returned when no usable AVM estimate exists."""

    reason: str = ""


AvmResult = Union[AvmEstimate, AvmUnavailable]


def avm_value(avm: Optional[AvmResult]) -> Optional[float]:
    """
    Usable AVM value, or None.

    Non-numeric and non-positive estimates count as unavailable.
    """
    if not isinstance(avm, AvmEstimate):
        return None
    value = avm.value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return float(value)


# =============================================================================
# Blending
# =============================================================================

@dataclass(frozen=True)
class BlendOutcome:
    """Final market value and how it was reached."""

    final_value: float
    comparable_value: float
    avm_value: Optional[float]
    blended: bool


def blend_with_avm(
    market_value: float,
    avm: Optional[AvmResult],
    sample_size: int,
) -> BlendOutcome:
    """
    Hedge a thin comparable valuation against an AVM estimate.

    - AVM available, fewer than 3 comps: 0.7 * market + 0.3 * AVM
    - AVM available, 3+ comps: market value (AVM logged for validation)
    - AVM unavailable: market value

    Args:
        market_value: Comparable-derived market value
        avm: Result of the optional AVM lookup
        sample_size: Number of adjusted comps behind market_value

    Returns:
        BlendOutcome with the final value
    """
    avm_amount = avm_value(avm)

    if avm_amount is None:
        return BlendOutcome(market_value, market_value, None, blended=False)

    if sample_size < AVM_BLEND_MAX_COMPS:
        final_value = COMPARABLE_WEIGHT * market_value + AVM_WEIGHT * avm_amount
        logger.info(
            "Using blended value: comparables %s, AVM %s, final %s",
            format_currency(market_value),
            format_currency(avm_amount),
            format_currency(final_value),
        )
        return BlendOutcome(final_value, market_value, avm_amount, blended=True)

    if market_value > 0:
        logger.info(
            "AVM comparison: comparables %s, AVM %s, difference %s",
            format_currency(market_value),
            format_currency(avm_amount),
            format_percent(abs(market_value - avm_amount) / market_value * 100),
        )
    return BlendOutcome(market_value, market_value, avm_amount, blended=False)


# =============================================================================
# Verdict
# =============================================================================

@dataclass(frozen=True)
class VerdictOutcome:
    difference: float
    percentage_difference: float
    verdict: Verdict


def percentage_difference(assessed_value: float, final_value: float) -> float:
    """(assessed - final) / assessed * 100, or 0 when assessed <= 0."""
    if not assessed_value or assessed_value <= 0:
        return 0.0
    return (assessed_value - final_value) / assessed_value * 100


def classify_verdict(assessed_value: float, final_value: float) -> VerdictOutcome:
    """
    Compare the assessment with the final market value.

    |pct| <= 5: fair, pct > 5: over-assessed, pct < -5: under-assessed
    """
    assessed_value = assessed_value or 0
    difference = assessed_value - final_value
    pct = percentage_difference(assessed_value, final_value)

    if abs(pct) <= FAIR_BAND_PERCENT:
        verdict = Verdict.FAIR
    elif pct > FAIR_BAND_PERCENT:
        verdict = Verdict.OVER_ASSESSED
    else:
        verdict = Verdict.UNDER_ASSESSED

    return VerdictOutcome(difference, pct, verdict)


# =============================================================================
# Savings
# =============================================================================

@dataclass(frozen=True)
class SavingsEstimate:
    annual_savings: float
    monthly_savings: float
    tax_rate: float


def estimate_savings(
    difference: float,
    verdict: Verdict,
    tax_rate: float = DEFAULT_TAX_RATE,
) -> SavingsEstimate:
    """Tax saved by appealing; zero unless the property is over-assessed."""
    annual = abs(difference) * tax_rate if verdict == Verdict.OVER_ASSESSED else 0.0
    return SavingsEstimate(
        annual_savings=annual,
        monthly_savings=annual / 12,
        tax_rate=tax_rate,
    )


# =============================================================================
# Analysis Result
# =============================================================================

@dataclass(frozen=True)
class AnalysisResult:
    """
    Final output of one assessment analysis.

    Built once per request and never mutated.
    """
    subject_property: SubjectProperty
    comparables_used: Tuple[AdjustedComparable, ...]
    market_value: float
    assessed_value: float
    difference: float
    percentage_difference: float
    tax_rate: float
    annual_savings: float
    monthly_savings: float
    confidence: ConfidenceLevel
    sample_size: int
    verdict: Verdict

    # Blend audit trail
    comparable_market_value: float = 0.0
    avm_value: Optional[float] = None
    blended: bool = False

    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_sufficient_data(self) -> bool:
        return self.verdict != Verdict.INSUFFICIENT_DATA

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output (dates as ISO-8601)."""
        return {
            "subjectProperty": self.subject_property.to_dict(),
            "comparablesUsed": [c.to_dict() for c in self.comparables_used],
            "marketValue": self.market_value,
            "comparableMarketValue": self.comparable_market_value,
            "avmValue": self.avm_value,
            "blended": self.blended,
            "assessedValue": self.assessed_value,
            "difference": self.difference,
            "percentageDifference": self.percentage_difference,
            "taxRate": self.tax_rate,
            "annualSavings": self.annual_savings,
            "monthlySavings": self.monthly_savings,
            "confidence": self.confidence.value,
            "sampleSize": self.sample_size,
            "verdict": self.verdict.value,
            "generatedAt": self.generated_at.isoformat(),
        }

"""
Assessment Analyzer - Integrated Comp Engine Pipeline

raw comparables -> filter -> adjust -> aggregate -> (optional) AVM blend
-> verdict -> savings -> AnalysisResult

`analyze` is the pure entry point. `AssessmentAnalyzer` wires it to the
property data and valuation providers.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, List, Optional

from .assessment import (
    DEFAULT_TAX_RATE,
    AnalysisResult,
    AvmResult,
    AvmUnavailable,
    Verdict,
    blend_with_avm,
    classify_verdict,
    estimate_savings,
)
from .comp_engine import (
    AdjustmentRates,
    CompValuationEngine,
    FilterConfig,
    RawComparable,
    SubjectProperty,
)
from .comp_engine.adjustments import DEFAULT_RATES
from utils.config import Config
from utils.formatting import format_currency, format_percent

if TYPE_CHECKING:
    from providers.base import PropertyDataProvider, ValuationProvider


logger = logging.getLogger(__name__)


def analyze(
    subject: SubjectProperty,
    raw_comparables: List[RawComparable],
    avm: Optional[AvmResult] = None,
    tax_rate: float = DEFAULT_TAX_RATE,
    reference_date: date = None,
    rates: AdjustmentRates = DEFAULT_RATES,
    filter_config: FilterConfig = None,
) -> AnalysisResult:
    """
    Run the full assessment analysis for one subject property.

    Args:
        subject: The property whose assessment is checked
        raw_comparables: Unfiltered candidate sales
        avm: Optional AVM lookup result (AvmEstimate or AvmUnavailable)
        tax_rate: Rate applied to the over-assessment
        reference_date: Date sale age is measured from (default: today)
        rates: Adjustment rates
        filter_config: Filter thresholds

    Returns:
        AnalysisResult. With no surviving comparables the verdict is
        INSUFFICIENT_DATA and no savings are claimed.
    """
    engine = CompValuationEngine(
        reference_date=reference_date,
        rates=rates,
        filter_config=filter_config,
    )
    valuation = engine.valuate(subject, raw_comparables)

    blend = blend_with_avm(
        valuation.market_value_estimate,
        avm if avm is not None else AvmUnavailable(),
        valuation.sample_size,
    )

    assessed_value = subject.assessed_value

    if valuation.sample_size == 0:
        logger.info(
            "No comparables survived filtering for %s (%d candidates)",
            subject.full_address,
            valuation.candidates_considered,
        )
        difference, pct, verdict = 0.0, 0.0, Verdict.INSUFFICIENT_DATA
    else:
        outcome = classify_verdict(assessed_value, blend.final_value)
        difference, pct, verdict = (
            outcome.difference,
            outcome.percentage_difference,
            outcome.verdict,
        )

    savings = estimate_savings(difference, verdict, tax_rate)

    return AnalysisResult(
        subject_property=subject,
        comparables_used=valuation.comparables_used,
        market_value=blend.final_value,
        assessed_value=assessed_value,
        difference=difference,
        percentage_difference=pct,
        tax_rate=tax_rate,
        annual_savings=savings.annual_savings,
        monthly_savings=savings.monthly_savings,
        confidence=valuation.confidence,
        sample_size=valuation.sample_size,
        verdict=verdict,
        comparable_market_value=blend.comparable_value,
        avm_value=blend.avm_value,
        blended=blend.blended,
    )


class AssessmentAnalyzer:
    """
    Provider-backed assessment analyzer.

    Fetches the subject, its comparable sales and an optional AVM
    estimate, then runs `analyze`. Provider errors (not found, rate
    limited) propagate; AVM failures never do.
    """

    def __init__(
        self,
        property_provider: PropertyDataProvider,
        valuation_provider: Optional[ValuationProvider] = None,
        config: Config = None,
        reference_date: date = None,
    ):
        """
        Initialize the analyzer.

        Args:
            property_provider: Source of property records and comparables
            valuation_provider: Optional AVM source
            config: Search radius, months back, limit and tax rate
            reference_date: Reference date for comp filtering (default: today)
        """
        self._properties = property_provider
        self._valuations = valuation_provider
        self._config = config or Config.load()
        self._reference_date = reference_date

    def lookup_property(self, address: str) -> SubjectProperty:
        return self._properties.lookup_property(address)

    def analyze_address(self, address: str) -> AnalysisResult:
        """Look up the subject by address, then analyze it."""
        subject = self._properties.lookup_property(address)
        return self.analyze_subject(subject, avm_address=address)

    def analyze_property_id(self, property_id: str) -> AnalysisResult:
        """Analyze a previously looked-up property by provider ID."""
        subject = self._properties.get_property_by_id(property_id)
        return self.analyze_subject(subject)

    def analyze_subject(
        self,
        subject: SubjectProperty,
        avm_address: str = None,
    ) -> AnalysisResult:
        """
        Analyze an already-known subject (e.g. client-verified data).

        Args:
            subject: The subject property
            avm_address: Address for the AVM lookup (default: subject address)
        """
        raw_comparables = self._properties.get_comparable_sales(
            subject,
            radius_miles=self._config.comp_radius_miles,
            months_back=self._config.comp_months_back,
            limit=self._config.comp_limit,
        )

        avm = self._fetch_avm(avm_address or subject.full_address)

        result = analyze(
            subject,
            raw_comparables,
            avm=avm,
            tax_rate=self._config.tax_rate,
            reference_date=self._reference_date,
        )

        logger.info(
            "Analysis completed for %s: %s (market %s, assessed %s, %s, %d comps, %s confidence)",
            subject.full_address,
            result.verdict.value,
            format_currency(result.market_value),
            format_currency(result.assessed_value),
            format_percent(result.percentage_difference, signed=True),
            result.sample_size,
            result.confidence.value,
        )
        return result

    def _fetch_avm(self, address: str) -> AvmResult:
        if self._valuations is None:
            return AvmUnavailable("No valuation provider configured")
        # The AVM is optional: no provider failure may abort the analysis
        try:
            return self._valuations.get_valuation(address)
        except Exception as exc:
            logger.warning("AVM lookup failed for %s: %s", address, exc)
            return AvmUnavailable(str(exc))

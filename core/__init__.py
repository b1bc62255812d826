"""
Assessment Check - Core Business Logic

Pipeline:
1. Comp Engine (filter, adjust, aggregate, confidence)
2. Optional AVM blending when comparable evidence is thin
3. Verdict classification (over-assessed / fair / under-assessed)
4. Tax savings estimate
"""

from .comp_engine import (
    PropertyCharacteristics,
    SubjectProperty,
    RawComparable,
    AdjustedComparable,
    ConfidenceLevel,
    ValuationResult,
    AdjustmentRates,
    FilterConfig,
    CompEligibilityFilter,
    CompValuationEngine,
)

from .assessment import (
    AnalysisResult,
    AvmEstimate,
    AvmUnavailable,
    AvmResult,
    Verdict,
    blend_with_avm,
    classify_verdict,
    estimate_savings,
)

from .assessment_analyzer import AssessmentAnalyzer, analyze

from .errors import (
    AssessmentError,
    InputError,
    PropertyNotFoundError,
    RateLimitedError,
)

__all__ = [
    # Comp Engine
    "PropertyCharacteristics",
    "SubjectProperty",
    "RawComparable",
    "AdjustedComparable",
    "ConfidenceLevel",
    "ValuationResult",
    "AdjustmentRates",
    "FilterConfig",
    "CompEligibilityFilter",
    "CompValuationEngine",
    # Assessment
    "AnalysisResult",
    "AvmEstimate",
    "AvmUnavailable",
    "AvmResult",
    "Verdict",
    "blend_with_avm",
    "classify_verdict",
    "estimate_savings",
    # Analyzer
    "AssessmentAnalyzer",
    "analyze",
    # Errors
    "AssessmentError",
    "InputError",
    "PropertyNotFoundError",
    "RateLimitedError",
]

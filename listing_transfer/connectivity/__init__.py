"""Connectivity probing and response classification."""

from .indicators import IndicatorSet
from .prober import ConnectivityProber
from .results import ConnectivityResult, Outcome, Recommendation, Verdict
from .systems import SOURCE, SYSTEMS, TARGET, SystemProfile
from .taxonomy import SOURCE_TAXONOMY, ResponseTaxonomy

__all__ = [
    "ConnectivityProber",
    "ConnectivityResult",
    "IndicatorSet",
    "Outcome",
    "Recommendation",
    "ResponseTaxonomy",
    "SOURCE",
    "SOURCE_TAXONOMY",
    "SYSTEMS",
    "SystemProfile",
    "TARGET",
    "Verdict",
]

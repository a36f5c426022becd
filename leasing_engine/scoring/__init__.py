"""
Scoring Module for vehicle leasing credit checks.

Contains the score delta lookups and the adjusted score calculation.
"""

from .deltas import (
    DeltaResult,
    get_postcode_delta,
    get_worst_numeric_nace_delta,
    get_nace_restriction_for_tier,
    get_worst_numeric_age_delta,
    get_age_restriction_for_tier,
)

from .calculator import (
    ScoreCalculationInput,
    ScoreCalculationResult,
    ScoreCalculator,
    calculate_adjusted_score,
)

__all__ = [
    # Deltas
    "DeltaResult",
    "get_postcode_delta",
    "get_worst_numeric_nace_delta",
    "get_nace_restriction_for_tier",
    "get_worst_numeric_age_delta",
    "get_age_restriction_for_tier",
    # Calculator
    "ScoreCalculationInput",
    "ScoreCalculationResult",
    "ScoreCalculator",
    "calculate_adjusted_score",
]

"""
Configuration module for the vehicle leasing credit check engine.

This module contains the tier thresholds, score delta tables and external
service settings.
"""

from .tier_config import TIER_THRESHOLDS, get_tier_thresholds, get_financial_terms
from .delta_config import (
    POSTCODE_DELTAS,
    NACE_DELTAS,
    AGE_DELTAS,
    REJECT,
    MANUAL,
    Restriction,
)
from .service_config import SERVICE_CONFIG

__all__ = [
    "TIER_THRESHOLDS",
    "get_tier_thresholds",
    "get_financial_terms",
    "POSTCODE_DELTAS",
    "NACE_DELTAS",
    "AGE_DELTAS",
    "REJECT",
    "MANUAL",
    "Restriction",
    "SERVICE_CONFIG",
]

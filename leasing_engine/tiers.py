"""
Risk tiers for vehicle leasing applications.
Tiers are ordered: a lower value is a worse outcome.
"""

from typing import Dict, Optional
from dataclasses import dataclass, asdict
from enum import IntEnum


class Tier(IntEnum):
    """Risk tier classifications, ordered from worst to best."""
    REJECTED = 0
    MANUAL_REVIEW = 1
    POOR = 2
    FAIR = 3
    GOOD = 4
    EXCELLENT = 5


# Funnel order: best to worst
CONCRETE_TIERS = (Tier.EXCELLENT, Tier.GOOD, Tier.FAIR, Tier.POOR)


@dataclass(frozen=True)
class FinancialTerms:
    """Financing terms attached to a concrete tier."""
    yearly_interest_percent: float
    min_downpayment_percent: float
    max_financing_period_months: int
    max_residual_value_percent: float
    can_finance_registration_tax: bool

    def to_dict(self) -> Dict:
        return asdict(self)


def is_concrete(tier: Tier) -> bool:
    """True for the four tiers that carry financial terms."""
    return tier in CONCRETE_TIERS


def tier_to_string(tier: Tier) -> str:
    """Lowercase tier name used in API responses (e.g. "manual_review")."""
    return tier.name.lower()


def tier_key(tier: Tier) -> Optional[str]:
    """Column key in the delta tables, or None for terminal tiers."""
    if not is_concrete(tier):
        return None
    return tier.name.lower()

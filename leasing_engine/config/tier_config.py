"""
Tier configuration for vehicle leasing credit checks.
Contains per-tier thresholds consulted by the rules and the financing terms of each tier.
"""

from typing import Dict, Optional

from ..tiers import Tier, FinancialTerms, is_concrete

# Per-tier thresholds
# Credit floors are applied to the adjusted score (base score + deltas)
TIER_THRESHOLDS = {
    Tier.EXCELLENT: {
        # Company
        "credit_rating_min": 70,
        "min_company_years": 5,
        "requires_financial_disclosure": True,

        # Administrator
        "max_admin_bankruptcies": 0,
        "bankruptcy_scope_years": 10,
        "min_admin_track_record_years": 3,

        # Fraud / screening
        "fraud_score_max": 30,
        "sanction_list_allowed": False,
        "adverse_media_allowed": False,

        "allowed_legal_forms": ["BV", "NV", "VOF", "CommV"],

        # Asset
        "allows_second_hand": False,  # New vehicles only
        "min_vehicle_value": 10000,
        "max_second_hand_mileage": None,
        "max_second_hand_age": None,

        "withholding_obligation_allowed": False,

        "financial_terms": FinancialTerms(
            yearly_interest_percent=3,
            min_downpayment_percent=0,
            max_financing_period_months=60,
            max_residual_value_percent=15,
            can_finance_registration_tax=True,
        ),
    },

    Tier.GOOD: {
        "credit_rating_min": 55,
        "min_company_years": 3,
        "requires_financial_disclosure": True,

        "max_admin_bankruptcies": 1,
        "bankruptcy_scope_years": 7,
        "min_admin_track_record_years": 3,

        "fraud_score_max": 40,
        "sanction_list_allowed": False,
        "adverse_media_allowed": False,

        "allowed_legal_forms": ["BV", "NV", "VOF", "CommV"],

        "allows_second_hand": True,
        "min_vehicle_value": 10000,
        "max_second_hand_mileage": 6000,  # km
        "max_second_hand_age": 0.5,  # years

        "withholding_obligation_allowed": False,

        "financial_terms": FinancialTerms(
            yearly_interest_percent=5.5,
            min_downpayment_percent=0,
            max_financing_period_months=60,
            max_residual_value_percent=15,
            can_finance_registration_tax=True,
        ),
    },

    Tier.FAIR: {
        "credit_rating_min": 35,
        "min_company_years": 2,
        "requires_financial_disclosure": False,

        "max_admin_bankruptcies": 2,
        "bankruptcy_scope_years": 5,
        "min_admin_track_record_years": 3,

        "fraud_score_max": 60,
        "sanction_list_allowed": False,
        "adverse_media_allowed": False,

        "allowed_legal_forms": ["BV", "VOF", "CommV"],  # No NV

        "allows_second_hand": True,
        "min_vehicle_value": 10000,
        "max_second_hand_mileage": 6000,
        "max_second_hand_age": 0.5,

        "withholding_obligation_allowed": False,

        "financial_terms": FinancialTerms(
            yearly_interest_percent=12,
            min_downpayment_percent=10,
            max_financing_period_months=60,
            max_residual_value_percent=15,
            can_finance_registration_tax=False,
        ),
    },

    Tier.POOR: {
        "credit_rating_min": 0,
        "min_company_years": 1,
        "requires_financial_disclosure": False,

        "max_admin_bankruptcies": 3,
        "bankruptcy_scope_years": 3,
        "min_admin_track_record_years": 0.5,

        "fraud_score_max": 70,
        "sanction_list_allowed": "manual_review",  # Allowed after review
        "adverse_media_allowed": True,

        "allowed_legal_forms": ["BV", "NV", "VOF", "CommV", "CV", "VZW", "Eenmanszaak"],

        "allows_second_hand": True,
        "min_vehicle_value": 20000,  # Higher collateral than other tiers
        "max_second_hand_mileage": 50000,
        "max_second_hand_age": 3,

        "withholding_obligation_allowed": True,

        # Insurance checks only apply to POOR
        "insurance_checks": {
            "min_driver_age": 25,
            "min_license_years": 5,
            "max_accidents_at_fault": 3,
            "max_accidents_not_at_fault": 5,
            "max_vehicle_horsepower": 150,
        },

        "financial_terms": FinancialTerms(
            yearly_interest_percent=22,
            min_downpayment_percent=20,
            max_financing_period_months=60,
            max_residual_value_percent=5,
            can_finance_registration_tax=False,
        ),
    },
}


def get_tier_thresholds(tier: Tier, thresholds: Optional[Dict] = None) -> Optional[Dict]:
    """
    Get thresholds for a tier.

    Returns None for REJECTED and MANUAL_REVIEW.
    """
    if not is_concrete(tier):
        return None
    thresholds = thresholds if thresholds is not None else TIER_THRESHOLDS
    return thresholds[tier]


def get_financial_terms(tier: Tier, thresholds: Optional[Dict] = None) -> Optional[FinancialTerms]:
    """Get financial terms for a tier, or None for terminal tiers."""
    tier_thresholds = get_tier_thresholds(tier, thresholds)
    if tier_thresholds is None:
        return None
    return tier_thresholds["financial_terms"]

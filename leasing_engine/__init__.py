"""
Vehicle Leasing Credit Check Engine.

Classifies a Belgian company applying for a vehicle lease into a risk tier:

- config: Tier thresholds, score delta tables and external service settings
- scoring: Adjusted credit score from postcode, NACE and company age deltas
- enrichment: Creditsafe, VIES and KYC Protect lookups
- rules: Rule framework, registered rules and tier aggregation
- engine: CreditCheckEngine tying it all together

Usage:
    from leasing_engine import CreditCheckEngine, parse_credit_check_request

    company, questionnaire = parse_credit_check_request(payload)
    async with CreditCheckEngine.from_config() as engine:
        decision = await engine.evaluate(company, questionnaire)
"""

__version__ = "1.0.0"

from .tiers import Tier, FinancialTerms, CONCRETE_TIERS, tier_to_string
from .request import (
    InvalidRequestError,
    CompanyInfo,
    Questionnaire,
    parse_credit_check_request,
)
from .engine import CreditCheckEngine, CreditCheckDecision, run_credit_check

__all__ = [
    "Tier",
    "FinancialTerms",
    "CONCRETE_TIERS",
    "tier_to_string",
    "InvalidRequestError",
    "CompanyInfo",
    "Questionnaire",
    "parse_credit_check_request",
    "CreditCheckEngine",
    "CreditCheckDecision",
    "run_credit_check",
]

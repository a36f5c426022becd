"""
Fraud and compliance rules: Creditsafe fraud score and KYC Protect screening hits.
"""

from typing import Dict

from ..tiers import Tier, CONCRETE_TIERS
from .base import EnrichedContext, Verdict, funnel, manual_review, not_restricting, per_tier, rejected

SCREENING_UNAVAILABLE = "Compliance screening unavailable - requires manual review"


def check_fraud_score(context: EnrichedContext, thresholds: Dict) -> Verdict:
    """Lower is better. An unavailable fraud score is not penalized."""
    report = context.creditsafe
    if report is None or report.fraud_score is None:
        return not_restricting(
            "Fraud score not available - no penalty applied", None, "Fraud score check optional"
        )

    score = report.fraud_score
    return funnel(
        thresholds,
        lambda t: score <= t["fraud_score_max"],
        lambda tier, t: f"Fraud score {score} is within {tier.name} limit (<= {t['fraud_score_max']})",
        f"Fraud score {score} exceeds maximum of {thresholds[Tier.POOR]['fraud_score_max']}",
        actual_value={"score": score, "description": report.fraud_description},
        expected_value={tier: f"<= {limit}" for tier, limit in per_tier(thresholds, "fraud_score_max").items()},
    )


def check_sanction_list(context: EnrichedContext, thresholds: Dict) -> Verdict:
    """A hit takes the best tier allowing it, else manual review if a tier accepts it after review."""
    if not context.has_screening:
        return manual_review(SCREENING_UNAVAILABLE, None, False)

    if not context.screening.has_sanction_hit:
        return not_restricting("No sanction list hit", False, False)

    policies = [thresholds[tier]["sanction_list_allowed"] for tier in CONCRETE_TIERS]
    if True in policies:
        return funnel(
            thresholds,
            lambda t: t["sanction_list_allowed"] is True,
            lambda tier, t: f"Sanction list hit - allowed for {tier.name} tier",
            "Sanction list hit - not allowed",
            actual_value=True,
            expected_value=False,
        )
    if "manual_review" in policies:
        return manual_review("Sanction list hit detected - requires manual review", True, False)
    return rejected("Sanction list hit - not allowed", True, False)


def check_adverse_media(context: EnrichedContext, thresholds: Dict) -> Verdict:
    if not context.has_screening:
        return manual_review(SCREENING_UNAVAILABLE, None, False)

    if not context.screening.has_adverse_media_hit:
        return not_restricting("No adverse media hit", False, False)

    return funnel(
        thresholds,
        lambda t: t["adverse_media_allowed"],
        lambda tier, t: f"Adverse media hit - best available tier is {tier.name}",
        "Adverse media hit - not allowed",
        actual_value=True,
        expected_value=per_tier(thresholds, "adverse_media_allowed"),
    )


def check_pep_exposure(context: EnrichedContext, thresholds: Dict) -> Verdict:
    if not context.has_screening:
        return manual_review(SCREENING_UNAVAILABLE, None, False)

    if context.screening.has_pep_hit:
        return manual_review("Politically exposed person hit - requires manual review", True, False)
    return not_restricting("No politically exposed person hit", False, False)

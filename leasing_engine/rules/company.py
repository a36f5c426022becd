"""
Company rules: VAT validity, status, credit rating, score restrictions, age,
financial disclosure and withholding obligations.
"""

from typing import Dict

from ..config.delta_config import is_numeric
from ..tiers import Tier, CONCRETE_TIERS
from .base import (
    EnrichedContext,
    Verdict,
    funnel,
    manual_review,
    not_restricting,
    per_tier,
    rejected,
)

BUREAU_UNAVAILABLE = "Creditsafe data unavailable - requires manual review"


def check_vat_valid(context: EnrichedContext, thresholds: Dict) -> Verdict:
    """Valid VAT number does not restrict; invalid or unverifiable goes to manual review."""
    vies = context.vies
    expected = "Valid VAT number"

    if vies is None:
        return manual_review("VAT validation not performed", None, expected)

    if context.vies_failed or vies.failed:
        return manual_review(
            f"VAT validation failed: {vies.error}. Requires manual review.", vies.error, expected
        )

    if vies.valid:
        return not_restricting(
            f"VAT number valid. Company: {vies.company_name}",
            {"valid": True, "name": vies.company_name},
            expected,
        )

    return manual_review("VAT number is invalid. Requires manual review.", {"valid": False}, expected)


def check_company_active(context: EnrichedContext, thresholds: Dict) -> Verdict:
    if not context.has_company_report:
        return manual_review(BUREAU_UNAVAILABLE, None, "Active")

    report = context.creditsafe
    if not report.is_active:
        return rejected(f"Company is not active (status: {report.company_status})", report.company_status, "Active")
    return not_restricting("Company is active", report.company_status, "Active")


def check_credit_rating(context: EnrichedContext, thresholds: Dict) -> Verdict:
    """
    Grade the adjusted credit score against each tier's credit floor.

    The raw Creditsafe rating is used when no score calculation is available.
    """
    expected = per_tier(thresholds, "credit_rating_min")
    if not context.has_company_report:
        return manual_review(BUREAU_UNAVAILABLE, None, expected)

    calculation = context.score_calculation
    if calculation is not None:
        score = calculation.adjusted_score
        label = f"Adjusted credit score {score:g} (base {calculation.base_score:g})"
    elif context.creditsafe.credit_rating is None:
        return manual_review("Credit rating not reported - requires manual review", None, expected)
    else:
        score = context.creditsafe.credit_rating
        label = f"Credit rating {score}"

    return funnel(
        thresholds,
        lambda t: score >= t["credit_rating_min"],
        lambda tier, t: f"{label} meets {tier.name} threshold (>= {t['credit_rating_min']})",
        f"{label} is below minimum threshold of {thresholds[Tier.POOR]['credit_rating_min']}",
        actual_value=score,
        expected_value=expected,
    )


def check_score_restrictions(context: EnrichedContext, thresholds: Dict) -> Verdict:
    """Apply the NACE and company age restrictions found by the score calculation."""
    calculation = context.score_calculation
    if calculation is None:
        reason = "Score calculation unavailable - requires manual review"
        if context.has_company_report and context.creditsafe.credit_rating is None:
            reason = "Credit rating not reported, score calculation skipped - requires manual review"
        return manual_review(reason)

    actual = {
        "determined_tier": calculation.determined_tier.name,
        "nace_restriction": calculation.nace_restriction.value if calculation.nace_restriction else None,
        "age_restriction": calculation.age_restriction.value if calculation.age_restriction else None,
    }
    restrictions = [d.description for d in calculation.deltas if not is_numeric(d.outcome)]

    if calculation.has_reject:
        reason = "; ".join(restrictions) or f"Adjusted score {calculation.adjusted_score:g} below every tier"
        return rejected(reason, actual, "No restrictions")

    if calculation.has_manual_review:
        return manual_review("; ".join(restrictions), actual, "No restrictions")

    return not_restricting(
        f"No NACE or company age restrictions at {calculation.determined_tier.name} tier",
        actual,
        "No restrictions",
    )


def check_company_age(context: EnrichedContext, thresholds: Dict) -> Verdict:
    if not context.has_company_report:
        return manual_review(BUREAU_UNAVAILABLE, None, per_tier(thresholds, "min_company_years"))

    report = context.creditsafe
    if report.incorporation_date is None or report.company_age_years is None:
        return manual_review("Incorporation date unavailable - requires manual review")

    age = round(report.company_age_years, 1)
    return funnel(
        thresholds,
        lambda t: report.company_age_years >= t["min_company_years"],
        lambda tier, t: f"Company is {age} years old, meets {tier.name} threshold (>= {t['min_company_years']})",
        f"Company is {age} years old, below minimum of {thresholds[Tier.POOR]['min_company_years']} year",
        actual_value=age,
        expected_value=per_tier(thresholds, "min_company_years"),
    )


def check_financial_disclosure(context: EnrichedContext, thresholds: Dict) -> Verdict:
    if not context.has_company_report:
        return manual_review(BUREAU_UNAVAILABLE, None, per_tier(thresholds, "requires_financial_disclosure"))

    disclosed = context.creditsafe.has_financial_disclosure
    return funnel(
        thresholds,
        lambda t: disclosed or not t["requires_financial_disclosure"],
        lambda tier, t: (
            "Financial statements disclosed" if disclosed
            else f"No financial disclosure - best available tier is {tier.name}"
        ),
        "No financial disclosure and every tier requires it",
        actual_value=disclosed,
        expected_value=per_tier(thresholds, "requires_financial_disclosure"),
    )


def check_withholding_obligation(context: EnrichedContext, thresholds: Dict) -> Verdict:
    """Self-declared debt to RSZ/FOD Financiën, only tolerated by the tiers allowing it."""
    has_debt = context.questionnaire.self_declared_withholding_debt
    if not has_debt:
        return not_restricting("No self-declared debt to RSZ/FOD Financiën", has_debt, False)

    allowed = [tier.name for tier in CONCRETE_TIERS if thresholds[tier]["withholding_obligation_allowed"]]
    return funnel(
        thresholds,
        lambda t: t["withholding_obligation_allowed"],
        lambda tier, t: f"Self-declared debt to RSZ/FOD Financiën - only allowed from {tier.name} tier",
        "Debt to RSZ/FOD Financiën not allowed",
        actual_value=has_debt,
        expected_value=f"Only allowed for {', '.join(allowed)} tier" if allowed else False,
    )

"""
Legal status rule: the company's legal form must be allowed for the tier.
"""

from typing import Dict

from ..enrichment.creditsafe import normalize_legal_form
from .base import EnrichedContext, Verdict, funnel, manual_review, per_tier


def check_legal_form(context: EnrichedContext, thresholds: Dict) -> Verdict:
    """
    Best tier allowing the legal form.

    The normalized Creditsafe legal form is preferred over the declared one.
    """
    expected = per_tier(thresholds, "allowed_legal_forms")

    legal_form = None
    if context.creditsafe and context.creditsafe.legal_form:
        legal_form = context.creditsafe.legal_form
    elif context.company.legal_form:
        legal_form = normalize_legal_form(context.company.legal_form)

    if not legal_form:
        return manual_review("Legal form unknown - requires manual review", None, expected)

    return funnel(
        thresholds,
        lambda t: legal_form in t["allowed_legal_forms"],
        lambda tier, t: f'Legal form "{legal_form}" is allowed for {tier.name} tier',
        f'Legal form "{legal_form}" is not allowed for vehicle leasing',
        actual_value=legal_form,
        expected_value=expected,
    )

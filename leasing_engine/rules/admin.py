"""
Administrator rules: bankruptcy history and track record of the contact as director.
"""

from typing import Dict

from ..enrichment.creditsafe import count_bankruptcies_in_scope, find_director_by_name
from ..tiers import Tier
from .base import EnrichedContext, Verdict, funnel, manual_review, per_tier
from .company import BUREAU_UNAVAILABLE


def check_admin_bankruptcies(context: EnrichedContext, thresholds: Dict) -> Verdict:
    """
    Count bankruptcies within each tier's lookback window.

    The best tier whose cap holds for its own window wins.
    """
    if not context.has_company_report:
        return manual_review(BUREAU_UNAVAILABLE, None, per_tier(thresholds, "max_admin_bankruptcies"))

    bankruptcies = context.creditsafe.bankruptcies
    poor = thresholds[Tier.POOR]

    def within_cap(t: Dict) -> bool:
        return count_bankruptcies_in_scope(bankruptcies, t["bankruptcy_scope_years"]) <= t["max_admin_bankruptcies"]

    def passed_reason(tier: Tier, t: Dict) -> str:
        count = count_bankruptcies_in_scope(bankruptcies, t["bankruptcy_scope_years"])
        return (
            f"Administrator has {count} bankruptcies in the last {t['bankruptcy_scope_years']} years, "
            f"within {tier.name} limit (<= {t['max_admin_bankruptcies']})"
        )

    poor_count = count_bankruptcies_in_scope(bankruptcies, poor["bankruptcy_scope_years"])
    return funnel(
        thresholds,
        within_cap,
        passed_reason,
        f"Administrator has {poor_count} bankruptcies in the last {poor['bankruptcy_scope_years']} years, "
        f"exceeds maximum of {poor['max_admin_bankruptcies']}",
        actual_value=len(bankruptcies),
        expected_value={
            tier: f"<= {limit}" for tier, limit in per_tier(thresholds, "max_admin_bankruptcies").items()
        },
    )


def check_admin_track_record(context: EnrichedContext, thresholds: Dict) -> Verdict:
    """Grade how long the contact has been a director of the company."""
    expected = per_tier(thresholds, "min_admin_track_record_years")
    if not context.has_company_report:
        return manual_review(BUREAU_UNAVAILABLE, None, expected)

    contact = context.questionnaire.contact
    director = find_director_by_name(context.creditsafe.directors, contact.first_name, contact.last_name)
    if director is None:
        return manual_review(
            f"{contact.first_name} {contact.last_name} not found among the company directors",
            None,
            expected,
        )
    if director.date_appointed is None:
        return manual_review(f"Appointment date of {director.name} unavailable", None, expected)

    tenure = round(director.appointed_years_ago, 1)
    return funnel(
        thresholds,
        lambda t: director.appointed_years_ago >= t["min_admin_track_record_years"],
        lambda tier, t: (
            f"Director for {tenure} years, meets {tier.name} threshold "
            f"(>= {t['min_admin_track_record_years']})"
        ),
        f"Director for {tenure} years, below minimum of "
        f"{thresholds[Tier.POOR]['min_admin_track_record_years']} years",
        actual_value=tenure,
        expected_value=expected,
    )

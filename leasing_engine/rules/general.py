"""
General eligibility rules on the contact person and the self-declared legal history.

Eligibility failures are hard rejections. Legal history answers do not restrict
the tier but send the application to manual review.
"""

from datetime import date
from typing import Dict

from ..tiers import Tier
from .base import EnrichedContext, Verdict, not_restricting, rejected

MINIMUM_CONTACT_AGE = 18


def calculate_age(date_of_birth: date, on: date) -> int:
    """Age in completed years on a given date."""
    age = on.year - date_of_birth.year
    if (on.month, on.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def check_minimum_age(context: EnrichedContext, thresholds: Dict) -> Verdict:
    age = calculate_age(context.questionnaire.contact.date_of_birth, context.evaluated_on)
    if age < MINIMUM_CONTACT_AGE:
        return rejected(
            f"Contact is {age} years old, minimum age is {MINIMUM_CONTACT_AGE}",
            actual_value=age,
            expected_value=f">= {MINIMUM_CONTACT_AGE}",
        )
    return not_restricting(
        f"Contact is {age} years old, meets minimum age requirement",
        actual_value=age,
        expected_value=f">= {MINIMUM_CONTACT_AGE}",
    )


def check_belgium_residency(context: EnrichedContext, thresholds: Dict) -> Verdict:
    resident = context.questionnaire.contact.belgium_resident
    if not resident:
        return rejected("Contact must be a Belgium resident", resident, True)
    return not_restricting("Contact is a Belgium resident", resident, True)


def check_is_administrator(context: EnrichedContext, thresholds: Dict) -> Verdict:
    is_administrator = context.questionnaire.contact.is_administrator
    if not is_administrator:
        return rejected("Contact must be an administrator of the company", is_administrator, True)
    return not_restricting("Contact is an administrator of the company", is_administrator, True)


# Legal history: a yes escalates to manual review without failing the rule

def _escalate(reason: str, actual_value) -> Verdict:
    return Verdict(
        tier=Tier.MANUAL_REVIEW,
        passed=True,
        reason=reason,
        actual_value=actual_value,
        expected_value="None, or manual review",
    )


def check_contact_with_legal_authorities(context: EnrichedContext, thresholds: Dict) -> Verdict:
    has_contact = context.questionnaire.legal_history.contact_with_legal_authorities
    if has_contact:
        return _escalate("Contact with legal authorities detected - requires manual review", has_contact)
    return not_restricting("No contact with legal authorities", has_contact, False)


def check_trouble_with_payment(context: EnrichedContext, thresholds: Dict) -> Verdict:
    has_trouble = context.questionnaire.legal_history.trouble_with_payment_at_financing_company
    if has_trouble:
        return _escalate(
            "Trouble with payment at another financing company - requires manual review",
            has_trouble,
        )
    return not_restricting("No trouble with payment at other financing company", has_trouble, False)


def check_blacklisted_banks(context: EnrichedContext, thresholds: Dict) -> Verdict:
    banks = context.questionnaire.legal_history.blacklisted_banks
    if banks:
        return _escalate(
            f"Blacklisted banks detected ({', '.join(banks)}) - requires manual review",
            list(banks),
        )
    return not_restricting("No blacklisted banks", [], [])

"""
Insurance rules.

Only the POOR tier carries insurance criteria, and every application is checked
against them whichever rule funnels it down. A failed check is a rejection: no
other tier is open to the applicant at that point.
"""

from typing import Callable, Dict

from ..tiers import Tier
from .base import EnrichedContext, Verdict, not_restricting, rejected


def _insurance_check(
    thresholds: Dict,
    key: str,
    actual,
    within: Callable[[float, float], bool],
    passed_reason: str,
    failed_reason: str,
) -> Verdict:
    limit = thresholds[Tier.POOR]["insurance_checks"][key]
    if within(actual, limit):
        return not_restricting(passed_reason.format(actual=actual, limit=limit), actual, limit)
    return rejected(failed_reason.format(actual=actual, limit=limit), actual, limit)


def check_driver_age(context: EnrichedContext, thresholds: Dict) -> Verdict:
    return _insurance_check(
        thresholds, "min_driver_age",
        context.questionnaire.insurance_history.driver_age,
        lambda actual, limit: actual >= limit,
        "Driver age {actual} meets minimum requirement (>= {limit})",
        "Driver age {actual} is below minimum {limit} required for POOR tier",
    )


def check_license_duration(context: EnrichedContext, thresholds: Dict) -> Verdict:
    return _insurance_check(
        thresholds, "min_license_years",
        context.questionnaire.insurance_history.license_years,
        lambda actual, limit: actual >= limit,
        "License duration {actual} years meets minimum (>= {limit})",
        "License duration {actual} years is below minimum {limit} years required for POOR tier",
    )


def check_accidents_at_fault(context: EnrichedContext, thresholds: Dict) -> Verdict:
    return _insurance_check(
        thresholds, "max_accidents_at_fault",
        context.questionnaire.insurance_history.accidents_at_fault,
        lambda actual, limit: actual <= limit,
        "At-fault accidents ({actual}) within limit (<= {limit})",
        "At-fault accidents ({actual}) exceeds maximum {limit} allowed for POOR tier",
    )


def check_accidents_not_at_fault(context: EnrichedContext, thresholds: Dict) -> Verdict:
    return _insurance_check(
        thresholds, "max_accidents_not_at_fault",
        context.questionnaire.insurance_history.accidents_not_at_fault,
        lambda actual, limit: actual <= limit,
        "Not-at-fault accidents ({actual}) within limit (<= {limit})",
        "Not-at-fault accidents ({actual}) exceeds maximum {limit} allowed for POOR tier",
    )


def check_vehicle_horsepower(context: EnrichedContext, thresholds: Dict) -> Verdict:
    return _insurance_check(
        thresholds, "max_vehicle_horsepower",
        context.questionnaire.vehicle.horsepower,
        lambda actual, limit: actual <= limit,
        "Vehicle horsepower ({actual} HP) within limit (<= {limit} HP)",
        "Vehicle horsepower ({actual} HP) exceeds maximum {limit} HP allowed for POOR tier",
    )

"""
Asset rules on the financed vehicle: type, value, and for second-hand
vehicles their mileage and age.
"""

from typing import Dict

from ..tiers import Tier
from .base import EnrichedContext, Verdict, funnel, not_restricting, per_tier


def check_vehicle_type(context: EnrichedContext, thresholds: Dict) -> Verdict:
    vehicle = context.questionnaire.vehicle
    if vehicle.is_new:
        return not_restricting("New vehicle - allowed for all tiers", vehicle.type, "new")

    return funnel(
        thresholds,
        lambda t: t["allows_second_hand"],
        lambda tier, t: f"Second-hand vehicle - best available tier is {tier.name}",
        "Second-hand vehicles not allowed",
        actual_value=vehicle.type,
        expected_value=per_tier(thresholds, "allows_second_hand"),
    )


def check_vehicle_value(context: EnrichedContext, thresholds: Dict) -> Verdict:
    """Funnel on minimum vehicle value. POOR asks for more collateral than the better tiers."""
    value = context.questionnaire.vehicle.value
    return funnel(
        thresholds,
        lambda t: value >= t["min_vehicle_value"],
        lambda tier, t: f"Vehicle value €{value:,.0f} meets {tier.name} minimum (>= €{t['min_vehicle_value']:,})",
        f"Vehicle value €{value:,.0f} is below minimum €{thresholds[Tier.POOR]['min_vehicle_value']:,}",
        actual_value=value,
        expected_value=per_tier(thresholds, "min_vehicle_value"),
    )


def _second_hand_within(t: Dict, key: str, value: float) -> bool:
    limit = t[key]
    return t["allows_second_hand"] and limit is not None and value <= limit


def check_vehicle_mileage(context: EnrichedContext, thresholds: Dict) -> Verdict:
    vehicle = context.questionnaire.vehicle
    if vehicle.is_new:
        return not_restricting("New vehicle - mileage check not applicable")

    mileage = vehicle.mileage
    return funnel(
        thresholds,
        lambda t: _second_hand_within(t, "max_second_hand_mileage", mileage),
        lambda tier, t: (
            f"Second-hand mileage {mileage:,.0f} km within {tier.name} limit "
            f"(<= {t['max_second_hand_mileage']:,} km)"
        ),
        f"Second-hand mileage {mileage:,.0f} km exceeds maximum "
        f"{thresholds[Tier.POOR]['max_second_hand_mileage']:,} km",
        actual_value=mileage,
        expected_value=per_tier(thresholds, "max_second_hand_mileage"),
    )


def check_vehicle_age(context: EnrichedContext, thresholds: Dict) -> Verdict:
    vehicle = context.questionnaire.vehicle
    if vehicle.is_new:
        return not_restricting("New vehicle - age check not applicable")

    age = vehicle.age_years
    return funnel(
        thresholds,
        lambda t: _second_hand_within(t, "max_second_hand_age", age),
        lambda tier, t: f"Second-hand age {age:g} years within {tier.name} limit (<= {t['max_second_hand_age']:g} years)",
        f"Second-hand age {age:g} years exceeds maximum {thresholds[Tier.POOR]['max_second_hand_age']:g} years",
        actual_value=age,
        expected_value=per_tier(thresholds, "max_second_hand_age"),
    )

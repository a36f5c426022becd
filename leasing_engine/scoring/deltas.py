"""
Score delta lookups for postcode, NACE code and company age.

Each lookup returns a DeltaResult describing the numeric adjustment applied to
the base credit rating. NACE and age tables additionally hold per-tier
sentinels (REJECT / MANUAL) that are checked once a tier has been determined.
"""

from typing import Dict, List, Optional, Tuple, Union
from dataclasses import dataclass
import re

from ..config.delta_config import (
    POSTCODE_DELTAS,
    NACE_DELTAS,
    AGE_DELTAS,
    TIER_COLUMNS,
    DeltaOutcome,
    Restriction,
    REJECT,
    MANUAL,
    is_numeric,
)
from ..tiers import Tier, tier_key

# Higher is more severe
_SEVERITY = {MANUAL: 1, REJECT: 2}


@dataclass(frozen=True)
class DeltaResult:
    """Result of a single delta lookup."""
    source: str  # "postcode", "nace" or "age"
    source_value: Union[str, float, None]
    outcome: DeltaOutcome
    description: str

    @property
    def numeric_value(self) -> float:
        """Numeric adjustment, 0 for sentinel outcomes."""
        return self.outcome if is_numeric(self.outcome) else 0

    def to_dict(self) -> Dict:
        outcome = self.outcome.value if isinstance(self.outcome, Restriction) else self.outcome
        return {
            "source": self.source,
            "source_value": self.source_value,
            "outcome": outcome,
            "description": self.description,
        }


# ---------------------------------------------------------------------------
# Postcode
# ---------------------------------------------------------------------------

def get_postcode_delta(postal_code: Optional[str], table: Optional[List[Dict]] = None) -> DeltaResult:
    """
    Find the postcode delta using the longest matching prefix.

    Args:
        postal_code: Company postal code (e.g. "1340"), may be None
        table: Postcode delta table (defaults to POSTCODE_DELTAS)

    Returns:
        DeltaResult with the applicable delta (0 when nothing matches)
    """
    table = POSTCODE_DELTAS if table is None else table

    if not postal_code:
        return DeltaResult(
            source="postcode",
            source_value="unknown",
            outcome=0,
            description="Postal code unavailable: no adjustment applied",
        )

    clean_code = re.sub(r"\D", "", postal_code)
    if not clean_code:
        return DeltaResult(
            source="postcode",
            source_value=postal_code,
            outcome=0,
            description=f'Invalid postal code "{postal_code}": no adjustment applied',
        )

    best_match = None
    for entry in table:
        if clean_code.startswith(entry["prefix"]):
            if best_match is None or len(entry["prefix"]) > len(best_match["prefix"]):
                best_match = entry

    if best_match is None:
        return DeltaResult(
            source="postcode",
            source_value=postal_code,
            outcome=0,
            description=f"Postal code {postal_code}: no adjustment (default region)",
        )

    delta = best_match["delta"]
    return DeltaResult(
        source="postcode",
        source_value=postal_code,
        outcome=delta,
        description=f"Postal code {postal_code} ({best_match['region']}): {delta:+g}",
    )


# ---------------------------------------------------------------------------
# NACE
# ---------------------------------------------------------------------------

def nace_code_matches(code: str, patterns: List[str]) -> bool:
    """
    Check whether a NACE code matches any of the patterns.

    Exact matches always count. A 2-character pattern also matches as a
    segment prefix: "55" matches "55" and "55.10" but not "551".
    """
    clean_code = re.sub(r"\s+", "", code)
    for pattern in patterns:
        if clean_code == pattern:
            return True
        if len(pattern) == 2 and clean_code.startswith(pattern + "."):
            return True
    return False


def find_nace_entry(code: str, table: Optional[List[Dict]] = None) -> Optional[Dict]:
    """Find the first NACE delta entry matching a code."""
    table = NACE_DELTAS if table is None else table
    for entry in table:
        if nace_code_matches(code, entry["codes"]):
            return entry
    return None


def get_worst_numeric_nace_delta(nace_codes: List[str], table: Optional[List[Dict]] = None) -> DeltaResult:
    """
    Get the most negative numeric delta across all matching NACE codes.

    Every tier column of every matching entry is considered; sentinel
    outcomes are ignored here and handled by the restriction check.
    """
    if not nace_codes:
        return DeltaResult(
            source="nace",
            source_value="none",
            outcome=0,
            description="No NACE codes: no adjustment applied",
        )

    worst_delta = 0
    matched_entry = None
    matched_code = None

    for code in nace_codes:
        entry = find_nace_entry(code, table)
        if entry is None:
            continue
        for column in TIER_COLUMNS:
            value = entry[column]
            if is_numeric(value) and value < worst_delta:
                worst_delta = value
                matched_entry = entry
                matched_code = code

    if matched_entry is not None:
        return DeltaResult(
            source="nace",
            source_value=matched_code,
            outcome=worst_delta,
            description=f"NACE {matched_code} ({matched_entry['sector']}): {worst_delta}",
        )

    return DeltaResult(
        source="nace",
        source_value=", ".join(nace_codes),
        outcome=0,
        description="No matching NACE delta rules: no adjustment applied",
    )


def get_nace_restriction_for_tier(
    nace_codes: List[str],
    tier: Tier,
    table: Optional[List[Dict]] = None,
) -> Optional[Tuple[Restriction, Dict, str]]:
    """
    Get the most severe NACE sentinel at a specific tier column.

    REJECT outranks MANUAL. Among codes with equally severe sentinels the
    first code in the applicant's order is reported.

    Returns:
        (restriction, entry, code), or None if no code yields a sentinel
    """
    column = tier_key(tier)
    if not nace_codes or column is None:
        return None

    worst = None
    for code in nace_codes:
        entry = find_nace_entry(code, table)
        if entry is None:
            continue
        outcome = entry[column]
        if is_numeric(outcome):
            continue
        if worst is None or _SEVERITY[outcome] > _SEVERITY[worst[0]]:
            worst = (outcome, entry, code)

    return worst


# ---------------------------------------------------------------------------
# Company age
# ---------------------------------------------------------------------------

def find_age_bracket(age_months: float, table: Optional[List[Dict]] = None) -> Optional[Dict]:
    """Find the bracket with min_months <= age < max_months."""
    table = AGE_DELTAS if table is None else table
    for entry in table:
        if entry["min_months"] <= age_months < entry["max_months"]:
            return entry
    return None


def get_worst_numeric_age_delta(company_age_years: float, table: Optional[List[Dict]] = None) -> DeltaResult:
    """Get the most negative numeric delta across the tier columns of the age bracket."""
    bracket = find_age_bracket(company_age_years * 12, table)

    if bracket is None:
        return DeltaResult(
            source="age",
            source_value=company_age_years,
            outcome=0,
            description=f"Company age {company_age_years:.1f} years: no matching bracket",
        )

    worst_delta = 0
    for column in TIER_COLUMNS:
        value = bracket[column]
        if is_numeric(value) and value < worst_delta:
            worst_delta = value

    if worst_delta < 0:
        description = f"Company age {company_age_years:.1f} years ({bracket['label']}): {worst_delta}"
    else:
        description = f"Company age {company_age_years:.1f} years ({bracket['label']}): no adjustment"

    return DeltaResult(
        source="age",
        source_value=company_age_years,
        outcome=worst_delta,
        description=description,
    )


def get_age_restriction_for_tier(
    company_age_years: float,
    tier: Tier,
    table: Optional[List[Dict]] = None,
) -> Optional[Tuple[Restriction, Dict]]:
    """
    Get the age sentinel at a specific tier column.

    Returns:
        (restriction, bracket), or None if the outcome is numeric or no bracket matches
    """
    column = tier_key(tier)
    if column is None:
        return None

    bracket = find_age_bracket(company_age_years * 12, table)
    if bracket is None:
        return None

    outcome = bracket[column]
    if is_numeric(outcome):
        return None
    return outcome, bracket

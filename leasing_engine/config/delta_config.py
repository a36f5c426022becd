"""
Delta configuration for credit score adjustments.

Lookup tables for:
    - Postcode (Belgian postal code prefixes)
    - NACE codes (industry sectors)
    - Company age (months since incorporation)

Deltas are applied to the base Creditsafe credit rating to obtain the adjusted
score used for tier determination. A tier column holds either a number or one
of the two sentinels REJECT / MANUAL.
"""

import math
from enum import Enum
from typing import Union


class Restriction(Enum):
    """Sentinel delta outcomes that override the numeric score."""
    REJECT = "reject"
    MANUAL = "manual"


REJECT = Restriction.REJECT
MANUAL = Restriction.MANUAL

# A delta outcome is a numeric adjustment or a Restriction sentinel
DeltaOutcome = Union[int, float, Restriction]


def is_numeric(outcome: DeltaOutcome) -> bool:
    """True for the numeric variant of a delta outcome."""
    return not isinstance(outcome, Restriction)


# Postcode deltas keyed by prefix. No two entries share a prefix;
# the longest matching prefix wins.
POSTCODE_DELTAS = [
    # 4-digit prefixes
    {"prefix": "1340", "region": "Louvain-la-Neuve", "delta": 20},
    {"prefix": "8300", "region": "Knokke-Heist", "delta": 20},

    # 3-digit prefixes
    {"prefix": "200", "region": "Antwerpen stad", "delta": -30},
    {"prefix": "100", "region": "Brussel stad", "delta": -30},
    {"prefix": "108", "region": "Molenbeek", "delta": -30},

    # Brussel Rand
    {"prefix": "10", "region": "Brussel Rand", "delta": -20},
    {"prefix": "11", "region": "Brussel Rand", "delta": -20},
    {"prefix": "12", "region": "Brussel Rand", "delta": -20},

    # Antwerpen Haven
    {"prefix": "20", "region": "Antwerpen Haven", "delta": -15},
    {"prefix": "21", "region": "Antwerpen Haven", "delta": -15},
]

POSTCODE_DELTAS += [
    {"prefix": str(p), "region": "Antwerpse Kempen", "delta": 0} for p in range(22, 30)
]
POSTCODE_DELTAS += [
    {"prefix": str(p), "region": "Vlaams-Brabant", "delta": 10} for p in range(30, 35)
]
POSTCODE_DELTAS += [
    {"prefix": str(p), "region": "Luik", "delta": -20} for p in range(40, 50)
]
POSTCODE_DELTAS += [
    {"prefix": str(p), "region": "Namen", "delta": 0} for p in range(50, 60)
]
POSTCODE_DELTAS += [
    {"prefix": str(p), "region": "Charleroi", "delta": -25} for p in range(60, 66)
]
# 66-79 (rest of Henegouwen) falls through to the default delta of 0
POSTCODE_DELTAS += [
    {"prefix": str(p), "region": "West-Vlaanderen", "delta": 10} for p in range(80, 90)
]
POSTCODE_DELTAS += [
    {"prefix": str(p), "region": "Oost-Vlaanderen", "delta": 0} for p in range(90, 100)
]


# NACE deltas with a per-tier outcome.
# 2-character codes match as a segment prefix ("55" matches "55.10").
NACE_DELTAS = [
    {
        "codes": ["46.72"],
        "sector": "Diamanthandel",
        "excellent": REJECT,
        "good": REJECT,
        "fair": REJECT,
        "poor": MANUAL,
    },
    {
        "codes": ["45.11", "45.19"],
        "sector": "Autohandel",
        "excellent": -20,
        "good": -20,
        "fair": 0,
        "poor": REJECT,
    },
    {
        "codes": ["49.32"],
        "sector": "Taxi's",
        "excellent": -20,
        "good": -20,
        "fair": 0,
        "poor": REJECT,
    },
    {
        "codes": ["77.11"],
        "sector": "Autoverhuur",
        "excellent": -20,
        "good": -20,
        "fair": 0,
        "poor": REJECT,
    },
    {
        "codes": ["55", "56"],
        "sector": "Horeca",
        "excellent": -20,
        "good": -20,
        "fair": 0,
        "poor": 0,
    },
    {
        "codes": ["92", "93"],
        "sector": "Gokken, Sport & Recreatie",
        "excellent": REJECT,
        "good": REJECT,
        "fair": 0,
        "poor": MANUAL,
    },
]


# Company age brackets in months, half-open [min_months, max_months)
AGE_DELTAS = [
    {"min_months": 0, "max_months": 3, "label": "<3m",
     "excellent": REJECT, "good": REJECT, "fair": REJECT, "poor": 0},
    {"min_months": 3, "max_months": 6, "label": "3-6m",
     "excellent": REJECT, "good": REJECT, "fair": REJECT, "poor": 0},
    {"min_months": 6, "max_months": 12, "label": "6-12m",
     "excellent": REJECT, "good": REJECT, "fair": -30, "poor": 0},
    {"min_months": 12, "max_months": 24, "label": "12-24m (1-2y)",
     "excellent": REJECT, "good": -20, "fair": -20, "poor": 0},
    {"min_months": 24, "max_months": 36, "label": "24-36m (2-3y)",
     "excellent": -20, "good": -15, "fair": -10, "poor": 0},
    {"min_months": 36, "max_months": 48, "label": "36-48m (3-4y)",
     "excellent": -15, "good": -15, "fair": 0, "poor": 0},
    {"min_months": 48, "max_months": 60, "label": "48-60m (4-5y)",
     "excellent": -5, "good": 0, "fair": 0, "poor": 0},
    {"min_months": 60, "max_months": math.inf, "label": "5+ years",
     "excellent": 0, "good": 0, "fair": 0, "poor": 0},
]

TIER_COLUMNS = ("excellent", "good", "fair", "poor")

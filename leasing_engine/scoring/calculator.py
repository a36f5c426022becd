"""
Adjusted credit score calculation.

Two phases:
    1. Adjusted score = base rating + postcode delta + worst numeric NACE delta
       + worst numeric age delta, clamped to 0-100.
    2. Tier determination from the adjusted score, then a restriction check of
       the NACE and age tables at the determined tier's column. A REJECT from
       either source wins over a MANUAL from either source.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass, field
import logging

from ..config.delta_config import (
    POSTCODE_DELTAS,
    NACE_DELTAS,
    AGE_DELTAS,
    Restriction,
    REJECT,
    MANUAL,
)
from ..config.tier_config import TIER_THRESHOLDS
from ..tiers import Tier, CONCRETE_TIERS
from .deltas import (
    DeltaResult,
    get_postcode_delta,
    get_worst_numeric_nace_delta,
    get_worst_numeric_age_delta,
    get_nace_restriction_for_tier,
    get_age_restriction_for_tier,
)

logger = logging.getLogger(__name__)


@dataclass
class ScoreCalculationInput:
    """Data required for score calculation."""
    credit_rating: float  # Base score from Creditsafe (0-100)
    postal_code: Optional[str] = None
    nace_codes: List[str] = field(default_factory=list)
    company_age_years: Optional[float] = None  # None when the incorporation date is unknown


@dataclass(frozen=True)
class ScoreCalculationResult:
    """Complete score calculation result."""
    base_score: float = 0.0
    adjusted_score: float = 0.0
    deltas: List[DeltaResult] = field(default_factory=list)
    total_numeric_delta: float = 0.0

    determined_tier: Tier = Tier.REJECTED

    # Sentinels found at the determined tier's column (None if numeric)
    nace_restriction: Optional[Restriction] = None
    age_restriction: Optional[Restriction] = None

    final_tier: Tier = Tier.REJECTED
    has_reject: bool = False
    has_manual_review: bool = False

    def to_dict(self) -> Dict:
        return {
            "base_score": self.base_score,
            "adjusted_score": self.adjusted_score,
            "deltas": [d.to_dict() for d in self.deltas],
            "total_numeric_delta": self.total_numeric_delta,
            "determined_tier": self.determined_tier.name,
            "nace_restriction": self.nace_restriction.value if self.nace_restriction else None,
            "age_restriction": self.age_restriction.value if self.age_restriction else None,
            "final_tier": self.final_tier.name,
            "has_reject": self.has_reject,
            "has_manual_review": self.has_manual_review,
        }


class ScoreCalculator:
    """Calculates the adjusted credit score and the score-based tier."""

    def __init__(
        self,
        thresholds: Optional[Dict] = None,
        postcode_deltas: Optional[List[Dict]] = None,
        nace_deltas: Optional[List[Dict]] = None,
        age_deltas: Optional[List[Dict]] = None,
    ):
        """Initialize the calculator with tier thresholds and delta tables."""
        self.thresholds = TIER_THRESHOLDS if thresholds is None else thresholds
        self.postcode_deltas = POSTCODE_DELTAS if postcode_deltas is None else postcode_deltas
        self.nace_deltas = NACE_DELTAS if nace_deltas is None else nace_deltas
        self.age_deltas = AGE_DELTAS if age_deltas is None else age_deltas

    def calculate(self, score_input: ScoreCalculationInput) -> ScoreCalculationResult:
        """
        Calculate the adjusted score and the final score-based tier.

        An unknown company age adds no age delta and routes the result to
        manual review, unless a NACE restriction rejects it.

        Args:
            score_input: Base rating, postal code, NACE codes and company age

        Returns:
            ScoreCalculationResult with deltas, determined tier and restrictions
        """
        base_score = score_input.credit_rating
        age_years = score_input.company_age_years

        # Phase 1: adjusted score
        deltas = [
            get_postcode_delta(score_input.postal_code, self.postcode_deltas),
            get_worst_numeric_nace_delta(score_input.nace_codes, self.nace_deltas),
            self._age_delta(age_years),
        ]

        total_numeric_delta = sum(d.numeric_value for d in deltas)
        adjusted_score = max(0, min(100, base_score + total_numeric_delta))

        # Phase 2: tier determination
        determined_tier = self.determine_tier(adjusted_score)

        # Already rejected by score: restrictions are not checked
        if determined_tier == Tier.REJECTED:
            logger.debug(
                "Adjusted score %.1f below %s floor: rejected", adjusted_score, Tier.POOR.name
            )
            return ScoreCalculationResult(
                base_score=base_score,
                adjusted_score=adjusted_score,
                deltas=deltas,
                total_numeric_delta=total_numeric_delta,
                determined_tier=determined_tier,
                final_tier=Tier.REJECTED,
                has_reject=True,
            )

        nace_match = get_nace_restriction_for_tier(
            score_input.nace_codes, determined_tier, self.nace_deltas
        )
        nace_restriction = nace_match[0] if nace_match else None

        if age_years is None:
            age_match = None
            age_restriction = MANUAL
        else:
            age_match = get_age_restriction_for_tier(age_years, determined_tier, self.age_deltas)
            age_restriction = age_match[0] if age_match else None

        final_tier = determined_tier
        for severity in (REJECT, MANUAL):
            if nace_restriction != severity and age_restriction != severity:
                continue

            final_tier = Tier.REJECTED if severity == REJECT else Tier.MANUAL_REVIEW
            verb = "causes rejection" if severity == REJECT else "requires manual review"

            if nace_restriction == severity:
                _, entry, code = nace_match
                deltas.append(DeltaResult(
                    source="nace",
                    source_value=code,
                    outcome=severity,
                    description=f"NACE {code} ({entry['sector']}) {verb} for {determined_tier.name} tier",
                ))
            if age_restriction == severity:
                if age_match is None:
                    label = "Company age unknown"
                else:
                    label = f"Company age {age_years:.1f} years ({age_match[1]['label']})"
                deltas.append(DeltaResult(
                    source="age",
                    source_value=age_years,
                    outcome=severity,
                    description=f"{label} {verb} for {determined_tier.name} tier",
                ))
            break

        logger.debug(
            "Score calculation: base=%s adjusted=%s determined=%s final=%s",
            base_score, adjusted_score, determined_tier.name, final_tier.name,
        )
        return ScoreCalculationResult(
            base_score=base_score,
            adjusted_score=adjusted_score,
            deltas=deltas,
            total_numeric_delta=total_numeric_delta,
            determined_tier=determined_tier,
            nace_restriction=nace_restriction,
            age_restriction=age_restriction,
            final_tier=final_tier,
            has_reject=final_tier == Tier.REJECTED,
            has_manual_review=final_tier == Tier.MANUAL_REVIEW,
        )

    def _age_delta(self, age_years: Optional[float]) -> DeltaResult:
        if age_years is None:
            return DeltaResult(
                source="age",
                source_value=None,
                outcome=0,
                description="Company age unknown: no adjustment",
            )
        return get_worst_numeric_age_delta(age_years, self.age_deltas)

    def determine_tier(self, adjusted_score: float) -> Tier:
        """Return the best tier whose credit floor is met, or REJECTED."""
        for tier in CONCRETE_TIERS:
            if adjusted_score >= self.thresholds[tier]["credit_rating_min"]:
                return tier
        return Tier.REJECTED


def calculate_adjusted_score(score_input: ScoreCalculationInput) -> ScoreCalculationResult:
    """Calculate the adjusted score with the default configuration."""
    return ScoreCalculator().calculate(score_input)

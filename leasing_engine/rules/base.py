"""
Rule framework primitives.

A rule is a plain function of the enriched context and the tier thresholds
returning a Verdict; the Rule wrapper stamps its id and category on the
verdict to produce a RuleResult.
"""

from typing import Any, Callable, Dict, Optional
from dataclasses import dataclass, field
from datetime import date

from ..enrichment.creditsafe import CompanyReport
from ..enrichment.kyc_protect import ScreeningResult
from ..enrichment.vies import ViesResult
from ..request import CompanyInfo, Questionnaire
from ..scoring.calculator import ScoreCalculationResult
from ..tiers import Tier, CONCRETE_TIERS, tier_key, tier_to_string


@dataclass(frozen=True)
class EnrichedContext:
    """Everything the rules may read for one credit check. Built once, never mutated."""
    questionnaire: Questionnaire
    company: CompanyInfo
    creditsafe: Optional[CompanyReport] = None
    creditsafe_failed: bool = False
    vies: Optional[ViesResult] = None
    vies_failed: bool = False
    screening: Optional[ScreeningResult] = None
    kyc_failed: bool = False
    score_calculation: Optional[ScoreCalculationResult] = None
    evaluated_on: date = field(default_factory=date.today)

    @property
    def has_company_report(self) -> bool:
        return self.creditsafe is not None and not self.creditsafe_failed

    @property
    def has_screening(self) -> bool:
        return self.screening is not None and not self.kyc_failed


@dataclass(frozen=True)
class Verdict:
    """Outcome of a rule check before it is attributed to a rule."""
    tier: Tier
    passed: bool
    reason: str
    actual_value: Any = None
    expected_value: Any = None


@dataclass(frozen=True)
class RuleResult:
    """Outcome of a single rule. The tier is the consequence, even when passed is False."""
    rule_id: str
    category: str
    tier: Tier
    passed: bool
    reason: str
    actual_value: Any = None
    expected_value: Any = None

    def to_dict(self) -> Dict:
        return {
            "rule_id": self.rule_id,
            "category": self.category,
            "tier": tier_to_string(self.tier),
            "passed": self.passed,
            "reason": self.reason,
            "actual_value": self.actual_value,
            "expected_value": self.expected_value,
        }


@dataclass(frozen=True)
class Rule:
    """A registered rule: identity plus its check function."""
    id: str
    category: str
    check: Callable[[EnrichedContext, Dict], Verdict]

    def evaluate(self, context: EnrichedContext, thresholds: Dict) -> RuleResult:
        verdict = self.check(context, thresholds)
        return RuleResult(
            rule_id=self.id,
            category=self.category,
            tier=verdict.tier,
            passed=verdict.passed,
            reason=verdict.reason,
            actual_value=verdict.actual_value,
            expected_value=verdict.expected_value,
        )


def funnel(
    thresholds: Dict,
    qualifies: Callable[[Dict], bool],
    passed_reason: Callable[[Tier, Dict], str],
    rejected_reason: str,
    actual_value: Any = None,
    expected_value: Any = None,
) -> Verdict:
    """
    Walk the concrete tiers best to worst and return the first one qualifying.

    Args:
        thresholds: Thresholds per tier
        qualifies: Predicate on a tier's thresholds
        passed_reason: Builds the reason for the tier found
        rejected_reason: Reason when no tier qualifies
        actual_value: Value being graded, reported as-is
        expected_value: Expected value; defaults to None

    Returns:
        Verdict for the best qualifying tier, or REJECTED
    """
    for tier in CONCRETE_TIERS:
        if qualifies(thresholds[tier]):
            return Verdict(
                tier=tier,
                passed=True,
                reason=passed_reason(tier, thresholds[tier]),
                actual_value=actual_value,
                expected_value=expected_value,
            )

    return rejected(rejected_reason, actual_value, expected_value)


def per_tier(thresholds: Dict, key: str) -> Dict:
    """Threshold values keyed by tier name, for expected_value reporting."""
    return {tier_key(tier): thresholds[tier][key] for tier in CONCRETE_TIERS}


def manual_review(reason: str, actual_value: Any = None, expected_value: Any = None) -> Verdict:
    """Verdict for data that is missing or needs a human decision."""
    return Verdict(
        tier=Tier.MANUAL_REVIEW,
        passed=False,
        reason=reason,
        actual_value=actual_value,
        expected_value=expected_value,
    )


def not_restricting(reason: str, actual_value: Any = None, expected_value: Any = None) -> Verdict:
    """Verdict that leaves the tier untouched."""
    return Verdict(
        tier=Tier.EXCELLENT,
        passed=True,
        reason=reason,
        actual_value=actual_value,
        expected_value=expected_value,
    )


def rejected(reason: str, actual_value: Any = None, expected_value: Any = None) -> Verdict:
    return Verdict(
        tier=Tier.REJECTED,
        passed=False,
        reason=reason,
        actual_value=actual_value,
        expected_value=expected_value,
    )

"""
Rule evaluation and tier aggregation.

Aggregation precedence:
    1. Any REJECTED result -> REJECTED
    2. Any MANUAL_REVIEW result -> MANUAL_REVIEW
    3. Otherwise the worst (lowest) tier among the results
An empty result list means nothing restricts the application: EXCELLENT.
"""

from typing import Dict, List, Optional, Tuple
import logging

from ..config.tier_config import TIER_THRESHOLDS
from ..tiers import Tier
from .base import EnrichedContext, Rule, RuleResult
from .registry import ALL_RULES

logger = logging.getLogger(__name__)


def evaluate_all_rules(
    context: EnrichedContext,
    rules: Optional[List[Rule]] = None,
    thresholds: Optional[Dict] = None,
) -> List[RuleResult]:
    """
    Run every rule in registration order.

    Args:
        context: Enriched context of the application
        rules: Rules to run (defaults to ALL_RULES)
        thresholds: Tier thresholds (defaults to TIER_THRESHOLDS)

    Returns:
        One RuleResult per rule, in the same order
    """
    rules = ALL_RULES if rules is None else rules
    thresholds = TIER_THRESHOLDS if thresholds is None else thresholds

    results = []
    for rule in rules:
        result = rule.evaluate(context, thresholds)
        logger.debug("Rule %s -> %s: %s", rule.id, result.tier.name, result.reason)
        results.append(result)
    return results


def aggregate_results(results: List[RuleResult]) -> Tuple[Tier, Optional[RuleResult]]:
    """
    Reduce rule results to the final tier.

    Returns:
        (final_tier, triggering_rule); the trigger is the first result holding
        the final tier, None for an empty list
    """
    for terminal in (Tier.REJECTED, Tier.MANUAL_REVIEW):
        for result in results:
            if result.tier == terminal:
                return terminal, result

    if not results:
        return Tier.EXCELLENT, None

    worst = results[0]
    for result in results[1:]:
        if result.tier < worst.tier:
            worst = result
    return worst.tier, worst

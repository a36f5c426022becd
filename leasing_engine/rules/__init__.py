"""
Rules Module for vehicle leasing credit checks.

Contains the rule framework, the registered rules and the tier aggregation.
"""

from .base import EnrichedContext, Rule, RuleResult, Verdict, funnel
from .registry import ALL_RULES, get_rule
from .engine import evaluate_all_rules, aggregate_results

__all__ = [
    "EnrichedContext",
    "Rule",
    "RuleResult",
    "Verdict",
    "funnel",
    "ALL_RULES",
    "get_rule",
    "evaluate_all_rules",
    "aggregate_results",
]

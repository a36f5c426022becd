"""
Blocklist rule: an enforcement hit in the compliance screening is a hard rejection.
"""

from typing import Dict

from .base import EnrichedContext, Verdict, manual_review, not_restricting, rejected


def check_blocklist(context: EnrichedContext, thresholds: Dict) -> Verdict:
    if not context.has_screening:
        return manual_review("Blocklist screening unavailable - requires manual review", None, False)

    hit = context.screening.has_enforcement_hit
    if hit:
        return rejected("Blocklist hit - application rejected", hit, False)
    return not_restricting("No blocklist hit", hit, False)

"""
Vehicle Leasing Credit Check Engine.
Enriches the applicant, scores the company, evaluates every rule and attaches
the financing terms of the final tier.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass, field
import asyncio
import logging

import httpx

from .config.service_config import SERVICE_CONFIG
from .config.tier_config import TIER_THRESHOLDS, get_financial_terms
from .enrichment.creditsafe import CompanyReport, CreditsafeClient, CreditsafeTokenCache
from .enrichment.kyc_protect import KycProtectClient
from .enrichment.orchestrator import DataEnrichmentService, EnrichmentResult
from .enrichment.vies import ViesClient
from .request import CompanyInfo, Questionnaire, parse_credit_check_request
from .rules.base import EnrichedContext, Rule, RuleResult
from .rules.engine import aggregate_results, evaluate_all_rules
from .scoring.calculator import ScoreCalculationInput, ScoreCalculationResult, ScoreCalculator
from .tiers import FinancialTerms, Tier, tier_to_string

logger = logging.getLogger(__name__)

# Reused by every run_credit_check call so the bearer token outlives one request
_shared_token_cache = CreditsafeTokenCache()


@dataclass
class CreditCheckDecision:
    """Complete credit check decision for an application."""
    final_tier: Tier = Tier.MANUAL_REVIEW
    requires_manual_review: bool = True
    financial_terms: Optional[FinancialTerms] = None

    rule_results: List[RuleResult] = field(default_factory=list)
    triggering_rule: Optional[RuleResult] = None

    score_calculation: Optional[ScoreCalculationResult] = None
    enriched_data: Optional[EnrichmentResult] = None
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "final_tier": tier_to_string(self.final_tier),
            "requires_manual_review": self.requires_manual_review,
            "financial_terms": self.financial_terms.to_dict() if self.financial_terms else None,
            "rule_results": [r.to_dict() for r in self.rule_results],
            "triggering_rule": self.triggering_rule.to_dict() if self.triggering_rule else None,
            "score_calculation": self.score_calculation.to_dict() if self.score_calculation else None,
            "enriched_data": self.enriched_data.to_dict() if self.enriched_data else None,
            "errors": list(self.errors),
        }


class CreditCheckEngine:
    """Vehicle leasing credit check engine."""

    def __init__(
        self,
        enrichment: DataEnrichmentService,
        score_calculator: Optional[ScoreCalculator] = None,
        rules: Optional[List[Rule]] = None,
        thresholds: Optional[Dict] = None,
    ):
        """
        Args:
            enrichment: Service fetching the external data
            score_calculator: Adjusted score calculator (default configuration if omitted)
            rules: Rules to evaluate (defaults to every registered rule)
            thresholds: Tier thresholds (defaults to TIER_THRESHOLDS)
        """
        self.enrichment = enrichment
        self.thresholds = TIER_THRESHOLDS if thresholds is None else thresholds
        self.score_calculator = score_calculator or ScoreCalculator(thresholds=self.thresholds)
        self.rules = rules

    @classmethod
    def from_config(
        cls,
        service_config: Optional[Dict] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token_cache: Optional[CreditsafeTokenCache] = None,
    ) -> "CreditCheckEngine":
        """
        Build the engine and its HTTP clients from service configuration.

        Args:
            service_config: Defaults to SERVICE_CONFIG
            transport: httpx transport shared by every client, used by tests
            token_cache: Creditsafe token cache to reuse across engines
                (a fresh one if omitted)
        """
        service_config = service_config or SERVICE_CONFIG
        creditsafe = CreditsafeClient.from_config(
            service_config["creditsafe"], transport=transport, token_cache=token_cache
        )
        vies = ViesClient.from_config(service_config["vies"], transport=transport)
        kyc_protect = KycProtectClient(
            creditsafe, timeout=service_config["kyc_protect"]["timeout_seconds"]
        )
        return cls(DataEnrichmentService(creditsafe, vies, kyc_protect))

    async def close(self) -> None:
        await self.enrichment.creditsafe.close()
        await self.enrichment.vies.close()

    async def __aenter__(self) -> "CreditCheckEngine":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def calculate_score(self, report: Optional[CompanyReport]) -> Optional[ScoreCalculationResult]:
        """
        Score the bureau report.

        Returns None without a report or a reported credit rating. Without an
        incorporation date the company age is unknown and left out.
        """
        if report is None or report.credit_rating is None:
            return None
        age_years = None if report.incorporation_date is None else report.company_age_years
        return self.score_calculator.calculate(ScoreCalculationInput(
            credit_rating=report.credit_rating,
            postal_code=report.postal_code,
            nace_codes=report.nace_codes,
            company_age_years=age_years,
        ))

    async def evaluate(self, company: CompanyInfo, questionnaire: Questionnaire) -> CreditCheckDecision:
        """
        Run a full credit check.

        Args:
            company: Company identification from the request
            questionnaire: Applicant questionnaire

        Returns:
            CreditCheckDecision; external failures are reported in errors and
            routed to manual review rather than raised
        """
        enrichment = await self.enrichment.enrich(company.vat_number, company.name)

        report = enrichment.creditsafe
        score_calculation = self.calculate_score(report)

        context = EnrichedContext(
            questionnaire=questionnaire,
            company=company,
            creditsafe=report,
            creditsafe_failed=enrichment.creditsafe_failed,
            vies=enrichment.vies,
            vies_failed=enrichment.vies_failed,
            screening=enrichment.screening,
            kyc_failed=enrichment.kyc_failed,
            score_calculation=score_calculation,
        )

        rule_results = evaluate_all_rules(context, self.rules, self.thresholds)
        final_tier, triggering_rule = aggregate_results(rule_results)

        logger.info(
            "Credit check %s: %s (triggered by %s)",
            company.vat_number,
            final_tier.name,
            triggering_rule.rule_id if triggering_rule else "none",
        )

        return CreditCheckDecision(
            final_tier=final_tier,
            requires_manual_review=final_tier == Tier.MANUAL_REVIEW,
            financial_terms=get_financial_terms(final_tier, self.thresholds),
            rule_results=rule_results,
            triggering_rule=triggering_rule,
            score_calculation=score_calculation,
            enriched_data=enrichment,
            errors=list(enrichment.errors),
        )


async def _run_credit_check(
    company: CompanyInfo,
    questionnaire: Questionnaire,
    service_config: Optional[Dict],
    transport: Optional[httpx.AsyncBaseTransport],
    token_cache: CreditsafeTokenCache,
) -> CreditCheckDecision:
    engine = CreditCheckEngine.from_config(service_config, transport=transport, token_cache=token_cache)
    async with engine:
        return await engine.evaluate(company, questionnaire)


def run_credit_check(
    request: Dict,
    service_config: Optional[Dict] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    token_cache: Optional[CreditsafeTokenCache] = None,
) -> Dict:
    """
    Evaluate one credit check request with the configured services.

    Args:
        request: {"company": {...}, "questionnaire": {...}} with camelCase keys
        service_config: Defaults to SERVICE_CONFIG
        transport: httpx transport override, used by tests
        token_cache: Defaults to the process-wide Creditsafe token cache

    Returns:
        The decision as a dict

    Raises:
        InvalidRequestError: If the request is malformed
    """
    company, questionnaire = parse_credit_check_request(request)
    token_cache = _shared_token_cache if token_cache is None else token_cache
    decision = asyncio.run(
        _run_credit_check(company, questionnaire, service_config, transport, token_cache)
    )
    return decision.to_dict()

"""
Creditsafe KYC Protect compliance screening.

Screens the company name against sanctions, enforcement, PEP and adverse media
datasets. Only hits confirmed as true matches on the exact company name raise
flags.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass, field
import logging

from ..config.service_config import SERVICE_CONFIG
from .creditsafe import CreditsafeClient

logger = logging.getLogger(__name__)

SEARCH_ENDPOINT = "/compliance/kyc-protect/searches/businesses"

DATASET_LABELS = {
    "SAN": "Sanctions",
    "PEP": "PEP",
    "AM": "Adverse Media",
    "ENF": "Enforcement",
    "POI": "Persons of Interest",
    "INS": "Insolvency",
    "SOE": "State-Owned Enterprises",
}


@dataclass
class ScreeningHit:
    """Single hit returned by a screening search."""
    hit_id: str
    name: str
    match_score: float = 0
    datasets: List[str] = field(default_factory=list)
    decision: Optional[str] = None  # "undecided", "trueMatch", "falsePositive", "discarded"


@dataclass
class ScreeningResult:
    """Screening flags for rule evaluation."""
    search_id: str
    company_name: str
    has_sanction_hit: bool = False
    has_enforcement_hit: bool = False
    has_pep_hit: bool = False
    has_adverse_media_hit: bool = False
    hits: List[ScreeningHit] = field(default_factory=list)  # relevant hits only

    @property
    def total_hits(self) -> int:
        return len(self.hits)

    def to_dict(self) -> Dict:
        return {
            "search_id": self.search_id,
            "company_name": self.company_name,
            "has_sanction_hit": self.has_sanction_hit,
            "has_enforcement_hit": self.has_enforcement_hit,
            "has_pep_hit": self.has_pep_hit,
            "has_adverse_media_hit": self.has_adverse_media_hit,
            "total_hits": self.total_hits,
            "datasets": describe_datasets(self.hits),
        }


def parse_hit(item: Dict) -> ScreeningHit:
    datasets = item.get("datasets") or item.get("categories") or []
    return ScreeningHit(
        hit_id=str(item.get("hitId") or item.get("id") or ""),
        name=item.get("name") or "",
        match_score=item.get("matchScore") or 0,
        datasets=[str(d).upper() for d in datasets],
        decision=item.get("decision") or item.get("matchDecision"),
    )


def is_relevant_hit(hit: ScreeningHit, searched_name: str) -> bool:
    """A hit counts only if confirmed as a true match on the exact (case-insensitive) name."""
    if hit.decision != "trueMatch":
        return False
    return hit.name.lower().strip() == searched_name.lower().strip()


def map_kyc_protect_response(search_id: str, hits: List[ScreeningHit], company_name: str) -> ScreeningResult:
    """
    Reduce the hits of a search to screening flags.

    Args:
        search_id: Id of the screening search
        hits: All hits returned for the search
        company_name: Name that was screened

    Returns:
        ScreeningResult holding the relevant hits and their dataset flags
    """
    relevant = [hit for hit in hits if is_relevant_hit(hit, company_name)]

    def flagged(code: str) -> bool:
        return any(code in hit.datasets for hit in relevant)

    return ScreeningResult(
        search_id=search_id,
        company_name=company_name,
        has_sanction_hit=flagged("SAN"),
        has_enforcement_hit=flagged("ENF"),
        has_pep_hit=flagged("PEP"),
        has_adverse_media_hit=flagged("AM"),
        hits=relevant,
    )


def describe_datasets(hits: List[ScreeningHit]) -> str:
    """Readable list of the datasets present in the hits, "None" if empty."""
    codes = []
    for hit in hits:
        for code in hit.datasets:
            if code not in codes:
                codes.append(code)
    if not codes:
        return "None"
    return ", ".join(DATASET_LABELS.get(code, code) for code in codes)


class KycProtectClient:
    """Screening client riding on the Creditsafe client's authentication."""

    def __init__(
        self,
        creditsafe: CreditsafeClient,
        timeout: float = SERVICE_CONFIG["kyc_protect"]["timeout_seconds"],
    ):
        self.creditsafe = creditsafe
        self.timeout = timeout

    async def screen_company(self, company_name: str, country_code: Optional[str] = None) -> ScreeningResult:
        """
        Screen a business name and map the hits to flags.

        Raises:
            CreditsafeError: If the search or hit retrieval fails
        """
        body = {"name": company_name}
        if country_code:
            body["countries"] = [country_code]

        search = await self.creditsafe.request(
            "POST", SEARCH_ENDPOINT, json=body, timeout=self.timeout
        )
        search_id = str(search.get("id", ""))
        hit_count = search.get("totalHitCount", search.get("hitCount"))

        if hit_count == 0:
            return map_kyc_protect_response(search_id, [], company_name)

        response = await self.creditsafe.request(
            "GET", f"{SEARCH_ENDPOINT}/{search_id}/hits", timeout=self.timeout
        )
        items = response.get("items") or response.get("hits") or []
        hits = [parse_hit(item) for item in items]

        result = map_kyc_protect_response(search_id, hits, company_name)
        logger.debug(
            "Screening of %r: %d hits, %d relevant", company_name, len(hits), result.total_hits
        )
        return result

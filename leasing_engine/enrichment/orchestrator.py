"""
External data enrichment.

Fetches the Creditsafe report and the VIES validation concurrently, then screens
the company with KYC Protect. A failing source never aborts the enrichment: it
is flagged and reported in the error list so the rules can route the
application to manual review.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass, field
import asyncio
import logging

from .creditsafe import CreditsafeClient, CreditsafeError, CompanyReport
from .kyc_protect import KycProtectClient, ScreeningResult
from .vies import ViesClient, ViesResult

logger = logging.getLogger(__name__)

# Placeholder VIES returns when a member state does not disclose the name
VIES_UNDISCLOSED_NAME = "---"


@dataclass
class EnrichmentResult:
    """Data gathered from the external sources, with per-source failure flags."""
    creditsafe: Optional[CompanyReport] = None
    vies: Optional[ViesResult] = None
    screening: Optional[ScreeningResult] = None
    creditsafe_failed: bool = False
    vies_failed: bool = False
    kyc_failed: bool = False
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "creditsafe": self.creditsafe.to_dict() if self.creditsafe else None,
            "vies": self.vies.to_dict() if self.vies else None,
            "screening": self.screening.to_dict() if self.screening else None,
            "creditsafe_failed": self.creditsafe_failed,
            "vies_failed": self.vies_failed,
            "kyc_failed": self.kyc_failed,
            "errors": list(self.errors),
        }


class DataEnrichmentService:
    """Runs the external lookups for one credit check."""

    def __init__(self, creditsafe: CreditsafeClient, vies: ViesClient, kyc_protect: KycProtectClient):
        self.creditsafe = creditsafe
        self.vies = vies
        self.kyc_protect = kyc_protect

    async def enrich(self, vat_number: str, company_name: Optional[str] = None) -> EnrichmentResult:
        """
        Enrich a company with bureau, VAT registry and screening data.

        Args:
            vat_number: Company VAT number, e.g. "BE0123456789"
            company_name: Name supplied with the request, used for screening
                when neither the bureau nor VIES returns one

        Returns:
            EnrichmentResult; never raises for a failing source
        """
        result = EnrichmentResult()

        report_outcome, vies_outcome = await asyncio.gather(
            self._fetch_company_report(vat_number),
            self.vies.validate_vat_number(vat_number),
            return_exceptions=True,
        )

        if isinstance(report_outcome, BaseException):
            result.creditsafe_failed = True
            result.errors.append(f"Creditsafe API error: {report_outcome}")
            self._log_failure("Creditsafe", report_outcome)
        elif report_outcome is None:
            result.creditsafe_failed = True
            result.errors.append(f"Company not found in Creditsafe: {vat_number}")
            logger.warning("Company %s not found in Creditsafe", vat_number)
        else:
            result.creditsafe = report_outcome

        if isinstance(vies_outcome, BaseException):
            result.vies_failed = True
            result.errors.append(f"VIES API error: {vies_outcome}")
            self._log_failure("VIES", vies_outcome)
        else:
            result.vies = vies_outcome
            if vies_outcome.failed:
                result.vies_failed = True
                result.errors.append(f"VIES error: {vies_outcome.error}")
                logger.warning("VIES validation of %s failed: %s", vat_number, vies_outcome.error)

        screening_name = self._resolve_company_name(result, company_name)
        if not screening_name:
            result.kyc_failed = True
            result.errors.append("KYC Protect screening skipped: cannot screen unnamed company")
            logger.warning("No company name available to screen %s", vat_number)
            return result

        try:
            result.screening = await self._screen(screening_name, vat_number[:2].upper())
        except Exception as e:
            result.kyc_failed = True
            result.errors.append(f"KYC Protect error: {e}")
            self._log_failure("KYC Protect", e)

        return result

    async def _fetch_company_report(self, vat_number: str) -> Optional[CompanyReport]:
        if not self.creditsafe.is_configured:
            raise CreditsafeError("Creditsafe credentials not configured")
        return await self.creditsafe.get_company_report_by_vat(vat_number)

    async def _screen(self, company_name: str, country_code: str) -> ScreeningResult:
        if not self.creditsafe.is_configured:
            raise CreditsafeError("Creditsafe credentials not configured")
        return await self.kyc_protect.screen_company(company_name, country_code)

    @staticmethod
    def _resolve_company_name(result: EnrichmentResult, requested_name: Optional[str]) -> Optional[str]:
        """Bureau name first, then the VIES name, then the name from the request."""
        if result.creditsafe and result.creditsafe.company_name:
            return result.creditsafe.company_name
        if result.vies and result.vies.company_name:
            name = result.vies.company_name.strip()
            if name and name != VIES_UNDISCLOSED_NAME:
                return name
        if requested_name and requested_name.strip():
            return requested_name.strip()
        return None

    @staticmethod
    def _log_failure(source: str, error: BaseException) -> None:
        if isinstance(error, CreditsafeError):
            logger.warning("%s lookup failed: %s", source, error)
        else:
            logger.error("Unexpected %s failure: %r", source, error)

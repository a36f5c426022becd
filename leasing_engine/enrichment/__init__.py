"""
Enrichment Module for vehicle leasing credit checks.

Contains the Creditsafe, VIES and KYC Protect clients and the service that
combines them.
"""

from .creditsafe import (
    CreditsafeClient,
    CreditsafeError,
    CreditsafeTokenCache,
    CompanyReport,
    Director,
    Bankruptcy,
    map_creditsafe_report,
    normalize_legal_form,
    count_bankruptcies_in_scope,
    find_director_by_name,
)

from .vies import ViesClient, ViesResult, ViesTransientError

from .kyc_protect import (
    KycProtectClient,
    ScreeningHit,
    ScreeningResult,
    map_kyc_protect_response,
)

from .orchestrator import DataEnrichmentService, EnrichmentResult

__all__ = [
    # Creditsafe
    "CreditsafeClient",
    "CreditsafeError",
    "CreditsafeTokenCache",
    "CompanyReport",
    "Director",
    "Bankruptcy",
    "map_creditsafe_report",
    "normalize_legal_form",
    "count_bankruptcies_in_scope",
    "find_director_by_name",
    # VIES
    "ViesClient",
    "ViesResult",
    "ViesTransientError",
    # KYC Protect
    "KycProtectClient",
    "ScreeningHit",
    "ScreeningResult",
    "map_kyc_protect_response",
    # Orchestration
    "DataEnrichmentService",
    "EnrichmentResult",
]

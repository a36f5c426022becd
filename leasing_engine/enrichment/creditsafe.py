"""
Creditsafe company report client.

Authenticates against the Creditsafe Connect API, looks a Belgian company up by
VAT number and maps the full company report into a CompanyReport for the rules.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional
from dataclasses import dataclass, field, asdict
from datetime import date
import asyncio
import logging
import re
import time

import httpx

from ..config.service_config import SERVICE_CONFIG

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.25


class CreditsafeError(Exception):
    """Raised when Creditsafe authentication or an API call fails."""


# ---------------------------------------------------------------------------
# Normalized report
# ---------------------------------------------------------------------------

@dataclass
class Director:
    """Current director of the company."""
    id: str
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    type: str = ""  # "Director", "Administrator", ...
    date_appointed: Optional[date] = None
    appointed_years_ago: Optional[float] = None


@dataclass
class Bankruptcy:
    """Bankruptcy record from the negative information section."""
    type: str
    date: Optional[date]
    status: str
    years_ago: Optional[float] = None  # None when the bureau gives no date


@dataclass
class CompanyReport:
    """Creditsafe company report, normalized for rule evaluation."""
    company_name: str
    vat_number: Optional[str] = None
    registration_number: str = ""
    incorporation_date: Optional[date] = None
    company_age_years: Optional[float] = None  # None without an incorporation date
    legal_form: str = ""  # "BV", "NV", ... or the raw description if unknown
    is_active: bool = False
    company_status: str = ""

    # Credit
    credit_rating: Optional[int] = None  # 0-100, None when not reported
    credit_rating_grade: str = ""  # "A", "B", ...
    credit_rating_description: str = ""
    credit_limit: Optional[float] = None  # EUR

    # Fraud, higher is riskier
    fraud_score: Optional[float] = None
    fraud_description: Optional[str] = None

    directors: List[Director] = field(default_factory=list)
    bankruptcies: List[Bankruptcy] = field(default_factory=list)
    ccj_count: int = 0
    has_financial_disclosure: bool = False

    # Score delta inputs
    postal_code: Optional[str] = None
    nace_codes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["incorporation_date"] = _iso(self.incorporation_date)
        for director in data["directors"]:
            director["date_appointed"] = _iso(director["date_appointed"])
        for bankruptcy in data["bankruptcies"]:
            bankruptcy["date"] = _iso(bankruptcy["date"])
        return data


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_date(value: Any) -> Optional[date]:
    """Parse the date part of an ISO timestamp, None if absent or malformed."""
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def years_since(value: Optional[date], today: Optional[date] = None) -> Optional[float]:
    """Years elapsed since a date (365.25-day years), never negative. None for no date."""
    if value is None:
        return None
    today = today or date.today()
    return max(0.0, (today - value).days / DAYS_PER_YEAR)


# Dutch, French and English descriptions mapped to the legal form codes used in
# tier configuration.
LEGAL_FORM_MAPPINGS = {
    # BV / SRL
    "BV": "BV",
    "BVBA": "BV",
    "SRL": "BV",
    "SPRL": "BV",
    "BESLOTEN VENNOOTSCHAP": "BV",
    "SOCIÉTÉ À RESPONSABILITÉ LIMITÉE": "BV",
    "SOCIÉTÉ PRIVÉE À RESPONSABILITÉ LIMITÉE": "BV",
    "PRIVATE COMPANY": "BV",

    # NV / SA
    "NV": "NV",
    "SA": "NV",
    "NAAMLOZE VENNOOTSCHAP": "NV",
    "SOCIÉTÉ ANONYME": "NV",

    # VOF / SNC
    "VOF": "VOF",
    "SNC": "VOF",
    "VENNOOTSCHAP ONDER FIRMA": "VOF",
    "SOCIÉTÉ EN NOM COLLECTIF": "VOF",

    # CommV / SComm
    "COMMV": "CommV",
    "COMM.V": "CommV",
    "SCOMM": "CommV",
    "COMMANDITAIRE VENNOOTSCHAP": "CommV",
    "SOCIÉTÉ EN COMMANDITE": "CommV",

    # CV / SC
    "CV": "CV",
    "SC": "CV",
    "COÖPERATIEVE VENNOOTSCHAP": "CV",
    "SOCIÉTÉ COOPÉRATIVE": "CV",

    # VZW / ASBL
    "VZW": "VZW",
    "ASBL": "VZW",
    "VERENIGING ZONDER WINSTOOGMERK": "VZW",
    "ASSOCIATION SANS BUT LUCRATIF": "VZW",

    "EENMANSZAAK": "Eenmanszaak",
    "ENTREPRISE INDIVIDUELLE": "Eenmanszaak",
    "SOLE PROPRIETORSHIP": "Eenmanszaak",
    "PHYSICAL PERSON": "Eenmanszaak",
}

_KEYS_LONGEST_FIRST = sorted(LEGAL_FORM_MAPPINGS, key=len, reverse=True)


def normalize_legal_form(description: Optional[str]) -> str:
    """
    Normalize a Belgian legal form description to its short code.

    Exact match first, then the longest mapping key found in the description
    as a whole word, so "SA" does not match inside "RESPONSABILITÉ". Unknown
    descriptions are returned unchanged.
    """
    if not description:
        return ""

    normalized = description.upper().strip()
    if normalized in LEGAL_FORM_MAPPINGS:
        return LEGAL_FORM_MAPPINGS[normalized]

    for key in _KEYS_LONGEST_FIRST:
        if re.search(rf"\b{re.escape(key)}\b", normalized):
            return LEGAL_FORM_MAPPINGS[key]

    return description


def _parse_rating(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def map_creditsafe_report(payload: Dict, today: Optional[date] = None) -> CompanyReport:
    """
    Map a Creditsafe company report response to a CompanyReport.

    Args:
        payload: Raw JSON body of GET /companies/{id}
        today: Reference date for ages and tenures (defaults to today)

    Returns:
        CompanyReport
    """
    report = payload.get("report") or {}
    identification = report.get("companyIdentification") or {}
    basic = identification.get("basicInformation") or {}
    summary = report.get("companySummary") or {}
    credit = (report.get("creditScore") or {}).get("currentCreditRating") or {}
    fraud = (report.get("additionalInformation") or {}).get("fraudScore") or {}
    negative = report.get("negativeInformation") or {}

    directors = []
    for entry in (report.get("directors") or {}).get("currentDirectors") or []:
        positions = entry.get("positions") or [{}]
        appointed = parse_date(positions[0].get("dateAppointed"))
        directors.append(Director(
            id=str(entry.get("id", "")),
            name=entry.get("name") or "",
            first_name=entry.get("firstName"),
            last_name=entry.get("lastName"),
            date_of_birth=entry.get("dateOfBirth"),
            type=entry.get("directorType") or "",
            date_appointed=appointed,
            appointed_years_ago=years_since(appointed, today),
        ))

    bankruptcies = []
    for entry in negative.get("bankruptcyInformation") or []:
        declared = parse_date(entry.get("date"))
        bankruptcies.append(Bankruptcy(
            type=entry.get("type") or "",
            date=declared,
            status=entry.get("status") or "",
            years_ago=years_since(declared, today),
        ))

    status = (summary.get("companyStatus") or {}).get("status") or ""
    incorporated = parse_date(basic.get("companyRegistrationDate"))
    credit_limit = (credit.get("creditLimit") or {}).get("value")

    has_financial_disclosure = (
        bool(report.get("financialStatements"))
        or summary.get("latestShareholdersEquityFigure") is not None
    )

    nace_codes = []
    principal = (basic.get("principalActivity") or {}).get("code")
    if principal:
        nace_codes.append(principal)
    for classification in identification.get("activityClassifications") or []:
        for activity in classification.get("activities") or []:
            code = activity.get("code")
            if code and code not in nace_codes:
                nace_codes.append(code)

    main_address = (report.get("contactInformation") or {}).get("mainAddress") or {}

    return CompanyReport(
        company_name=basic.get("businessName") or basic.get("registeredCompanyName") or "",
        vat_number=basic.get("vatRegistrationNumber"),
        registration_number=basic.get("companyRegistrationNumber") or "",
        incorporation_date=incorporated,
        company_age_years=years_since(incorporated, today),
        legal_form=normalize_legal_form((basic.get("legalForm") or {}).get("description")),
        is_active=status.lower() in ("active", "actief"),
        company_status=status,
        credit_rating=_parse_rating((credit.get("providerValue") or {}).get("value")),
        credit_rating_grade=credit.get("commonValue") or "",
        credit_rating_description=credit.get("commonDescription") or "",
        credit_limit=credit_limit,
        fraud_score=fraud.get("value"),
        fraud_description=fraud.get("description"),
        directors=directors,
        bankruptcies=bankruptcies,
        ccj_count=(negative.get("ccjSummary") or {}).get("numberOfExact") or 0,
        has_financial_disclosure=has_financial_disclosure,
        postal_code=main_address.get("postalCode"),
        nace_codes=nace_codes,
    )


def count_bankruptcies_in_scope(bankruptcies: List[Bankruptcy], scope_years: float) -> int:
    """Count bankruptcies declared at most scope_years ago. Undated records always count."""
    return sum(1 for b in bankruptcies if b.years_ago is None or b.years_ago <= scope_years)


def find_director_by_name(
    directors: List[Director], first_name: str, last_name: str
) -> Optional[Director]:
    """
    Match the contact person to a director.

    Uses the first/last name fields when the bureau provides both, otherwise
    requires both names to appear in the full name.
    """
    search_first = first_name.lower().strip()
    search_last = last_name.lower().strip()

    for director in directors:
        if director.first_name and director.last_name:
            if (director.first_name.lower().strip() == search_first
                    and director.last_name.lower().strip() == search_last):
                return director
            continue

        full_name = director.name.lower()
        if search_first in full_name and search_last in full_name:
            return director

    return None


# ---------------------------------------------------------------------------
# Token cache
# ---------------------------------------------------------------------------

class CreditsafeTokenCache:
    """
    In-memory cache for the Creditsafe bearer token.

    Tokens are valid for 60 minutes and cached for ttl_seconds. Lookups are
    serialized by an asyncio.Lock so concurrent callers authenticate once. The
    lock is created per event loop, so one cache can outlive several
    asyncio.run() calls.
    """

    def __init__(
        self,
        ttl_seconds: float = SERVICE_CONFIG["creditsafe"]["token_ttl_seconds"],
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    def _get_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def get_token(self, authenticate: Callable[[], Awaitable[str]]) -> str:
        """
        Return the cached token, calling authenticate() when absent or expired.

        Raises:
            CreditsafeError: If authentication fails
        """
        async with self._get_lock():
            if self._token and self._clock() < self._expires_at:
                return self._token

            token = await authenticate()
            self._token = token
            self._expires_at = self._clock() + self.ttl_seconds
            logger.info("Creditsafe token refreshed, valid for %.0f seconds", self.ttl_seconds)
            return token

    def invalidate(self) -> None:
        """Drop the cached token, forcing re-authentication on the next call."""
        self._token = None
        self._expires_at = 0.0


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class CreditsafeClient:
    """
    Async client for the Creditsafe Connect API.

    Also used by the KYC Protect client, which shares the same authentication.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        timeout: float = 10.0,
        country: str = "BE",
        token_cache: Optional[CreditsafeTokenCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: API root, e.g. https://connect.creditsafe.com/v1
            username: Creditsafe account user
            password: Creditsafe account password
            timeout: Per-request timeout in seconds
            country: Country searched for companies
            token_cache: Shared token cache (a private one is created if omitted)
            transport: httpx transport override, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self.country = country
        self.token_cache = token_cache or CreditsafeTokenCache()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(
        cls,
        config: Optional[Dict] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token_cache: Optional[CreditsafeTokenCache] = None,
    ) -> "CreditsafeClient":
        config = config or SERVICE_CONFIG["creditsafe"]
        if token_cache is None:
            token_cache = CreditsafeTokenCache(ttl_seconds=config["token_ttl_seconds"])
        return cls(
            base_url=config["base_url"],
            username=config["username"],
            password=config["password"],
            timeout=config["timeout_seconds"],
            country=config["country"],
            token_cache=token_cache,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password)

    async def initialize(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "CreditsafeClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            await self.initialize()
        return self._client

    async def authenticate(self) -> str:
        """
        Obtain a fresh bearer token.

        Raises:
            CreditsafeError: On rejected credentials, timeout or transport error
        """
        client = await self._ensure_client()
        try:
            response = await client.post(
                "/authenticate",
                json={"username": self.username, "password": self.password},
            )
        except httpx.TimeoutException as e:
            raise CreditsafeError("Creditsafe authentication timeout") from e
        except httpx.HTTPError as e:
            raise CreditsafeError(f"Creditsafe authentication failed: {e}") from e

        if response.is_error:
            raise CreditsafeError(
                f"Creditsafe auth failed: {_error_message(response)}"
            )

        token = _json_body(response).get("token")
        if not token:
            raise CreditsafeError("Creditsafe auth failed: no token in response")
        return token

    async def request(
        self,
        method: str,
        endpoint: str,
        timeout: Optional[float] = None,
        **kwargs,
    ) -> Dict:
        """
        Perform an authenticated API call and return the decoded JSON body.

        A 401 invalidates the cached token and the call is retried once.

        Raises:
            CreditsafeError: On API error, timeout or transport error
        """
        client = await self._ensure_client()
        request_timeout = self.timeout if timeout is None else timeout

        for attempt in range(2):
            token = await self.token_cache.get_token(self.authenticate)
            try:
                response = await client.request(
                    method,
                    endpoint,
                    headers={"Authorization": f"Bearer {token}"},
                    timeout=request_timeout,
                    **kwargs,
                )
            except httpx.TimeoutException as e:
                raise CreditsafeError("Creditsafe API timeout") from e
            except httpx.HTTPError as e:
                raise CreditsafeError(f"Creditsafe API error: {e}") from e

            if response.status_code == 401 and attempt == 0:
                logger.info("Creditsafe token rejected, re-authenticating")
                self.token_cache.invalidate()
                continue

            if response.is_error:
                raise CreditsafeError(f"Creditsafe API error: {_error_message(response)}")
            return _json_body(response)

        raise CreditsafeError("Creditsafe API error: token rejected after refresh")

    async def search_company_by_vat(self, vat_number: str) -> Optional[str]:
        """
        Find the company's connect id by VAT number.

        Args:
            vat_number: VAT number with or without the country prefix

        Returns:
            The connect id, or None if the company is not found
        """
        clean_vat = vat_number.upper()
        if clean_vat.startswith(self.country):
            clean_vat = clean_vat[len(self.country):]

        result = await self.request(
            "GET",
            "/companies",
            params={"countries": self.country, "vatNo": clean_vat, "pageSize": "1"},
        )
        companies = result.get("companies") or []
        if not companies:
            return None
        return companies[0].get("id")

    async def get_company_report(self, connect_id: str) -> Dict:
        return await self.request(
            "GET", f"/companies/{connect_id}", params={"customData": "true"}
        )

    async def get_company_report_by_vat(self, vat_number: str) -> Optional[CompanyReport]:
        """
        Search the company and fetch its mapped report.

        Returns:
            CompanyReport, or None if the company is not found
        """
        connect_id = await self.search_company_by_vat(vat_number)
        if not connect_id:
            logger.info("Company %s not found in Creditsafe", vat_number)
            return None

        payload = await self.get_company_report(connect_id)
        return map_creditsafe_report(payload)


def _json_body(response: httpx.Response) -> Dict:
    try:
        body = response.json()
    except ValueError as e:
        raise CreditsafeError(f"Creditsafe returned invalid JSON: {e}") from e
    if not isinstance(body, dict):
        raise CreditsafeError("Creditsafe returned an unexpected response body")
    return body


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    message = body.get("message") if isinstance(body, dict) else None
    return message or f"HTTP {response.status_code}"

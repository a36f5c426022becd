"""
EU VIES VAT number validation.

Transient failures (timeouts, 5xx, concurrency limits reported in the body)
are retried with exponential backoff and jitter. Exhausted retries produce a
failed ViesResult; the client never raises for a failed validation.
"""

from typing import Awaitable, Callable, Dict, List, Optional
from dataclasses import dataclass, asdict
import asyncio
import logging

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from ..config.service_config import SERVICE_CONFIG

logger = logging.getLogger(__name__)


class ViesTransientError(Exception):
    """A failure worth retrying: timeout, transport error, 5xx or a busy member state."""


@dataclass
class ViesResult:
    """Outcome of a VAT number validation."""
    valid: bool
    company_name: Optional[str] = None
    company_address: Optional[str] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict:
        return asdict(self)


class ViesClient:
    """Async client for the VIES REST API."""

    def __init__(
        self,
        base_url: str = SERVICE_CONFIG["vies"]["base_url"],
        timeout: float = 10.0,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        max_delay: float = 16.0,
        max_jitter: float = 0.5,
        supported_countries: Optional[List[str]] = None,
        retryable_errors: Optional[List[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            base_url: VIES REST API root
            timeout: Per-attempt timeout in seconds
            max_attempts: Total attempts including the first
            base_delay: Backoff delay after the first failed attempt
            max_delay: Cap on the exponential part of the delay
            max_jitter: Upper bound of the uniform jitter added to each delay
            supported_countries: Country prefixes accepted for validation
            retryable_errors: userError codes treated as transient
            transport: httpx transport override, used by tests
            sleep: Coroutine used to wait between attempts
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.max_jitter = max_jitter
        self.supported_countries = supported_countries or SERVICE_CONFIG["vies"]["supported_countries"]
        self.retryable_errors = retryable_errors or SERVICE_CONFIG["vies"]["retryable_errors"]
        self._transport = transport
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(
        cls,
        config: Optional[Dict] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ViesClient":
        config = config or SERVICE_CONFIG["vies"]
        return cls(
            base_url=config["base_url"],
            timeout=config["timeout_seconds"],
            max_attempts=config["max_attempts"],
            base_delay=config["base_delay_seconds"],
            max_delay=config["max_delay_seconds"],
            max_jitter=config["max_jitter_seconds"],
            supported_countries=config["supported_countries"],
            retryable_errors=config["retryable_errors"],
            transport=transport,
        )

    async def initialize(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ViesClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def is_retryable_error(self, user_error: Optional[str]) -> bool:
        """True if a userError contains one of the transient codes (case-insensitive)."""
        if not user_error:
            return False
        upper = user_error.upper()
        return any(code in upper for code in self.retryable_errors)

    async def validate_vat_number(self, vat_number: str) -> ViesResult:
        """
        Validate a VAT number against VIES.

        Args:
            vat_number: Full VAT number with country prefix, e.g. "BE0123456789"

        Returns:
            ViesResult; error is set when validation could not be completed
        """
        country_code = vat_number[:2].upper()
        number = vat_number[2:]

        if country_code not in self.supported_countries:
            return ViesResult(
                valid=False,
                error=f"Only Belgian VAT numbers supported. Got country code: {country_code}",
            )

        url = f"{self.base_url}/ms/{country_code}/vat/{number}"
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=(
                wait_exponential(multiplier=self.base_delay, max=self.max_delay)
                + wait_random(0, self.max_jitter)
            ),
            retry=retry_if_exception_type(ViesTransientError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    result = await self._request_once(url)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            logger.warning(
                "VIES validation of %s failed after %d attempts: %s",
                vat_number, self.max_attempts, last_error,
            )
            return ViesResult(valid=False, error=str(last_error))

        return result

    async def _request_once(self, url: str) -> ViesResult:
        """
        Perform one validation call.

        Raises:
            ViesTransientError: For failures that should be retried
        """
        client = await self._ensure_client()
        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            raise ViesTransientError("VIES API timeout") from e
        except httpx.HTTPError as e:
            raise ViesTransientError(f"VIES API error: {e}") from e

        if response.is_server_error:
            raise ViesTransientError(f"VIES API returned status {response.status_code}")
        if response.is_error:
            # Client errors are not retried
            return ViesResult(valid=False, error=f"VIES API returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ViesTransientError(f"VIES API returned invalid JSON: {e}") from e

        user_error = data.get("userError")
        if self.is_retryable_error(user_error):
            raise ViesTransientError(user_error)

        return ViesResult(
            valid=bool(data.get("isValid")),
            company_name=data.get("name"),
            company_address=data.get("address"),
            # A valid number comes back with userError "VALID"
            error=None if user_error in (None, "", "VALID") else user_error,
        )

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            await self.initialize()
        return self._client

"""
External service configuration for data enrichment.
Credentials and endpoints are read from the environment.
"""

import os

SERVICE_CONFIG = {
    "creditsafe": {
        "base_url": os.environ.get(
            "CREDITSAFE_BASE_URL", "https://connect.creditsafe.com/v1"
        ),
        "username": os.environ.get("CREDITSAFE_USERNAME", ""),
        "password": os.environ.get("CREDITSAFE_PASSWORD", ""),
        "timeout_seconds": 10.0,
        "country": "BE",
        # Tokens live 60 minutes; cache for 55 to keep a safety margin
        "token_ttl_seconds": 55 * 60,
    },
    "kyc_protect": {
        "timeout_seconds": 15.0,  # Screening searches can take longer
    },
    "vies": {
        "base_url": os.environ.get(
            "VIES_BASE_URL", "https://ec.europa.eu/taxation_customs/vies/rest-api"
        ),
        "timeout_seconds": 10.0,
        "max_attempts": 5,
        "base_delay_seconds": 1.0,
        "max_delay_seconds": 16.0,
        "max_jitter_seconds": 0.5,
        "supported_countries": ["BE"],
        # userError codes returned inside a 2xx body that warrant a retry
        "retryable_errors": [
            "MS_MAX_CONCURRENT_REQ",
            "GLOBAL_MAX_CONCURRENT_REQ",
            "MS_UNAVAILABLE",
            "SERVICE_UNAVAILABLE",
            "TIMEOUT",
        ],
    },
}

"""
Test the Creditsafe client: token caching, authenticated requests, company
lookup by VAT number and the mapping of the report into a CompanyReport.
"""

import asyncio
import json
import unittest
from datetime import date

import httpx

from leasing_engine.enrichment.creditsafe import (
    Bankruptcy,
    CreditsafeClient,
    CreditsafeError,
    CreditsafeTokenCache,
    count_bankruptcies_in_scope,
    map_creditsafe_report,
    normalize_legal_form,
    parse_date,
    years_since,
)

from credit_check_fixtures import EVALUATION_DATE, creditsafe_report_payload

BASE_URL = "https://connect.test/v1"
CONNECT_ID = "BE-X-0123456789"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestCreditsafeTokenCache(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.calls = 0

    async def authenticate(self):
        self.calls += 1
        await asyncio.sleep(0)
        return f"token-{self.calls}"

    async def test_concurrent_callers_authenticate_once(self):
        cache = CreditsafeTokenCache()
        tokens = await asyncio.gather(*(cache.get_token(self.authenticate) for _ in range(5)))

        self.assertEqual(self.calls, 1)
        self.assertEqual(set(tokens), {"token-1"})

    async def test_token_expires_after_ttl(self):
        clock = FakeClock()
        cache = CreditsafeTokenCache(ttl_seconds=100, clock=clock)

        self.assertEqual(await cache.get_token(self.authenticate), "token-1")
        clock.now = 99.9
        self.assertEqual(await cache.get_token(self.authenticate), "token-1")
        clock.now = 100
        self.assertEqual(await cache.get_token(self.authenticate), "token-2")

    async def test_invalidate_forces_refresh(self):
        cache = CreditsafeTokenCache()
        await cache.get_token(self.authenticate)
        cache.invalidate()
        self.assertEqual(await cache.get_token(self.authenticate), "token-2")

    async def test_failed_authentication_is_not_cached(self):
        cache = CreditsafeTokenCache()

        async def failing():
            raise CreditsafeError("Creditsafe auth failed: Invalid credentials")

        with self.assertRaises(CreditsafeError):
            await cache.get_token(failing)
        self.assertEqual(await cache.get_token(self.authenticate), "token-1")


class TestTokenCacheAcrossEventLoops(unittest.TestCase):

    def test_token_survives_separate_asyncio_runs(self):
        calls = []

        async def authenticate():
            calls.append(1)
            return f"token-{len(calls)}"

        async def concurrent_lookups(cache):
            return await asyncio.gather(*(cache.get_token(authenticate) for _ in range(3)))

        cache = CreditsafeTokenCache()
        first = asyncio.run(concurrent_lookups(cache))
        second = asyncio.run(concurrent_lookups(cache))

        self.assertEqual(len(calls), 1)
        self.assertEqual(set(first + second), {"token-1"})


class FakeCreditsafeApi:
    """Minimal Creditsafe Connect API served through httpx.MockTransport."""

    def __init__(self, companies=None, report=None):
        self.companies = [{"id": CONNECT_ID}] if companies is None else companies
        self.report = report or creditsafe_report_payload()
        self.auth_count = 0
        self.requests = []
        # Status codes to return, in order, before serving company calls normally
        self.company_failures = []
        self.auth_status = 200

    def handler(self, request):
        self.requests.append(request)
        path = request.url.path

        if path == "/v1/authenticate":
            self.auth_count += 1
            if self.auth_status != 200:
                return httpx.Response(self.auth_status, json={"message": "Invalid credentials"})
            return httpx.Response(200, json={"token": f"token-{self.auth_count}"})

        if self.company_failures:
            return httpx.Response(self.company_failures.pop(0))
        if request.headers.get("Authorization") != f"Bearer token-{self.auth_count}":
            return httpx.Response(401)

        if path == "/v1/companies":
            return httpx.Response(200, json={"totalSize": len(self.companies), "companies": self.companies})
        if path == f"/v1/companies/{CONNECT_ID}":
            return httpx.Response(200, json=self.report)
        return httpx.Response(404, json={"message": "Not found"})

    def client(self):
        return CreditsafeClient(
            base_url=BASE_URL,
            username="user@example.be",
            password="secret",
            transport=httpx.MockTransport(self.handler),
        )


class TestCreditsafeClient(unittest.IsolatedAsyncioTestCase):

    async def test_report_by_vat(self):
        api = FakeCreditsafeApi()
        async with api.client() as client:
            report = await client.get_company_report_by_vat("BE0123456789")

        self.assertEqual(report.company_name, "Peeters Logistics BV")
        self.assertEqual(report.credit_rating, 85)
        self.assertEqual(api.auth_count, 1)

        auth, search, fetch = api.requests
        self.assertEqual(json.loads(auth.content), {"username": "user@example.be", "password": "secret"})
        self.assertEqual(search.url.params["vatNo"], "0123456789")
        self.assertEqual(search.url.params["countries"], "BE")
        self.assertEqual(search.url.params["pageSize"], "1")
        self.assertEqual(fetch.url.path, f"/v1/companies/{CONNECT_ID}")
        self.assertEqual(fetch.url.params["customData"], "true")

    async def test_company_not_found(self):
        api = FakeCreditsafeApi(companies=[])
        async with api.client() as client:
            report = await client.get_company_report_by_vat("BE0123456789")

        self.assertIsNone(report)
        self.assertEqual([r.url.path for r in api.requests], ["/v1/authenticate", "/v1/companies"])

    async def test_rejected_token_refreshed_once(self):
        api = FakeCreditsafeApi()
        api.company_failures = [401]
        async with api.client() as client:
            report = await client.get_company_report_by_vat("BE0123456789")

        self.assertIsNotNone(report)
        self.assertEqual(api.auth_count, 2)

    async def test_repeated_token_rejection_raises(self):
        api = FakeCreditsafeApi()
        api.company_failures = [401, 401]
        async with api.client() as client:
            with self.assertRaises(CreditsafeError):
                await client.search_company_by_vat("BE0123456789")
        self.assertEqual(api.auth_count, 2)

    async def test_server_error_raises(self):
        api = FakeCreditsafeApi()
        api.company_failures = [500]
        async with api.client() as client:
            with self.assertRaises(CreditsafeError) as ctx:
                await client.search_company_by_vat("BE0123456789")
        self.assertEqual(str(ctx.exception), "Creditsafe API error: HTTP 500")

    async def test_rejected_credentials(self):
        api = FakeCreditsafeApi()
        api.auth_status = 401
        async with api.client() as client:
            with self.assertRaises(CreditsafeError) as ctx:
                await client.get_company_report_by_vat("BE0123456789")
        self.assertEqual(str(ctx.exception), "Creditsafe auth failed: Invalid credentials")

    async def test_timeout_raises(self):
        def handler(request):
            if request.url.path == "/v1/authenticate":
                return httpx.Response(200, json={"token": "token-1"})
            raise httpx.ReadTimeout("timed out", request=request)

        client = CreditsafeClient(BASE_URL, "user", "secret", transport=httpx.MockTransport(handler))
        async with client:
            with self.assertRaises(CreditsafeError) as ctx:
                await client.search_company_by_vat("BE0123456789")
        self.assertEqual(str(ctx.exception), "Creditsafe API timeout")

    async def test_shared_token_cache(self):
        api = FakeCreditsafeApi()
        async with api.client() as client:
            await client.search_company_by_vat("BE0123456789")
            await client.search_company_by_vat("BE0123456789")
        self.assertEqual(api.auth_count, 1)

    def test_is_configured(self):
        self.assertTrue(CreditsafeClient(BASE_URL, "user", "secret").is_configured)
        self.assertFalse(CreditsafeClient(BASE_URL, "", "").is_configured)

    def test_from_config(self):
        config = {
            "base_url": BASE_URL + "/",
            "username": "user",
            "password": "secret",
            "timeout_seconds": 5.0,
            "country": "BE",
            "token_ttl_seconds": 600,
        }
        client = CreditsafeClient.from_config(config)
        self.assertEqual(client.base_url, BASE_URL)
        self.assertEqual(client.timeout, 5.0)
        self.assertEqual(client.token_cache.ttl_seconds, 600)

        shared = CreditsafeTokenCache()
        self.assertIs(CreditsafeClient.from_config(config, token_cache=shared).token_cache, shared)


class TestMapCreditsafeReport(unittest.TestCase):

    def test_maps_clean_report(self):
        report = map_creditsafe_report(creditsafe_report_payload(), today=EVALUATION_DATE)

        self.assertEqual(report.company_name, "Peeters Logistics BV")
        self.assertEqual(report.vat_number, "BE0123456789")
        self.assertEqual(report.incorporation_date, date(2010, 3, 1))
        self.assertAlmostEqual(report.company_age_years, 15.25, places=1)
        self.assertEqual(report.legal_form, "BV")
        self.assertTrue(report.is_active)
        self.assertEqual(report.credit_rating, 85)
        self.assertEqual(report.credit_rating_grade, "A")
        self.assertEqual(report.credit_limit, 50000)
        self.assertEqual(report.fraud_score, 10)
        self.assertTrue(report.has_financial_disclosure)
        self.assertEqual(report.postal_code, "9000")
        self.assertEqual(report.nace_codes, ["49.41", "52.29"])

        director = report.directors[0]
        self.assertEqual(director.first_name, "Jan")
        self.assertEqual(director.date_appointed, date(2010, 3, 1))
        self.assertAlmostEqual(director.appointed_years_ago, 15.25, places=1)

    def test_bankruptcies_and_status(self):
        payload = creditsafe_report_payload(
            negativeInformation={
                "bankruptcyInformation": [
                    {"type": "Faillissement", "date": "2021-06-01T00:00:00Z", "status": "Closed"},
                ],
                "ccjSummary": {"numberOfExact": 2},
            },
            companySummary={"companyStatus": {"status": "Non-Active"}},
        )
        report = map_creditsafe_report(payload, today=EVALUATION_DATE)

        self.assertFalse(report.is_active)
        self.assertEqual(report.company_status, "Non-Active")
        self.assertEqual(len(report.bankruptcies), 1)
        self.assertAlmostEqual(report.bankruptcies[0].years_ago, 4.0, places=1)
        self.assertEqual(report.ccj_count, 2)

    def test_sparse_report(self):
        report = map_creditsafe_report({"report": {}}, today=EVALUATION_DATE)

        self.assertEqual(report.company_name, "")
        self.assertIsNone(report.incorporation_date)
        self.assertIsNone(report.company_age_years)
        self.assertIsNone(report.credit_rating)
        self.assertIsNone(report.fraud_score)
        self.assertIsNone(report.postal_code)
        self.assertEqual(report.nace_codes, [])
        self.assertFalse(report.has_financial_disclosure)

    def test_to_dict_serializes_dates(self):
        data = map_creditsafe_report(creditsafe_report_payload(), today=EVALUATION_DATE).to_dict()
        self.assertEqual(data["incorporation_date"], "2010-03-01")
        self.assertEqual(data["directors"][0]["date_appointed"], "2010-03-01")
        self.assertEqual(data["bankruptcies"], [])

    def test_missing_credit_score_is_not_a_zero_rating(self):
        report = map_creditsafe_report(creditsafe_report_payload(creditScore={}), today=EVALUATION_DATE)
        self.assertIsNone(report.credit_rating)
        self.assertEqual(report.credit_rating_grade, "")

    def test_unparsable_rating_is_unknown(self):
        payload = creditsafe_report_payload(creditScore={
            "currentCreditRating": {"commonValue": "E", "providerValue": {"value": "NR"}},
        })
        report = map_creditsafe_report(payload, today=EVALUATION_DATE)
        self.assertIsNone(report.credit_rating)
        self.assertEqual(report.credit_rating_grade, "E")


class TestCreditsafeHelpers(unittest.TestCase):

    def test_normalize_legal_form(self):
        self.assertEqual(normalize_legal_form("SRL"), "BV")
        self.assertEqual(normalize_legal_form("Société Anonyme"), "NV")
        self.assertEqual(normalize_legal_form("Besloten vennootschap met beperkte aansprakelijkheid"), "BV")
        self.assertEqual(normalize_legal_form("Stichting"), "Stichting")
        self.assertEqual(normalize_legal_form("Peeters SA"), "NV")
        self.assertEqual(normalize_legal_form(None), "")

    def test_short_codes_only_match_whole_words(self):
        self.assertEqual(normalize_legal_form("Association sans but lucratif (ASBL)"), "VZW")
        self.assertEqual(normalize_legal_form("Société coopérative à responsabilité limitée"), "CV")
        self.assertEqual(normalize_legal_form("Société privée à responsabilité limitée"), "BV")
        self.assertEqual(normalize_legal_form("Vereniging zonder winstoogmerk"), "VZW")
        self.assertEqual(normalize_legal_form("Comm.V Janssens"), "CommV")

    def test_parse_date(self):
        self.assertEqual(parse_date("2010-03-01T00:00:00Z"), date(2010, 3, 1))
        self.assertIsNone(parse_date("03/01/2010"))
        self.assertIsNone(parse_date(None))

    def test_years_since(self):
        self.assertIsNone(years_since(None))
        self.assertEqual(years_since(date(2030, 1, 1), EVALUATION_DATE), 0.0)
        self.assertAlmostEqual(years_since(date(2024, 6, 1), EVALUATION_DATE), 1.0, places=2)

    def test_count_bankruptcies_in_scope(self):
        records = [Bankruptcy(type="", date=None, status="", years_ago=y) for y in (1, 3, 3.5, 8)]
        self.assertEqual(count_bankruptcies_in_scope(records, 3), 2)
        self.assertEqual(count_bankruptcies_in_scope(records, 10), 4)

    def test_undated_bankruptcy_counts_in_every_scope(self):
        records = [Bankruptcy(type="Faillissement", date=None, status="Open")]
        self.assertEqual(count_bankruptcies_in_scope(records, 1), 1)


if __name__ == "__main__":
    unittest.main()

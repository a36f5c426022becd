"""
Test KYC Protect business screening and the reduction of hits to flags.
"""

import json
import unittest

import httpx

from leasing_engine.enrichment.creditsafe import CreditsafeClient, CreditsafeError
from leasing_engine.enrichment.kyc_protect import (
    SEARCH_ENDPOINT,
    KycProtectClient,
    ScreeningHit,
    describe_datasets,
    is_relevant_hit,
    map_kyc_protect_response,
    parse_hit,
)

COMPANY = "Peeters Logistics BV"


def hit(name=COMPANY, datasets=("SAN",), decision="trueMatch"):
    return ScreeningHit(hit_id="H-1", name=name, match_score=98, datasets=list(datasets), decision=decision)


class TestScreeningMapping(unittest.TestCase):

    def test_only_confirmed_exact_matches_count(self):
        self.assertTrue(is_relevant_hit(hit(name="PEETERS LOGISTICS BV "), COMPANY))
        self.assertFalse(is_relevant_hit(hit(decision="undecided"), COMPANY))
        self.assertFalse(is_relevant_hit(hit(decision="falsePositive"), COMPANY))
        self.assertFalse(is_relevant_hit(hit(name="Peeters Logistics"), COMPANY))

    def test_dataset_flags(self):
        hits = [
            hit(datasets=["SAN", "PEP"]),
            hit(datasets=["ENF"]),
            hit(datasets=["AM"], decision="undecided"),
        ]
        result = map_kyc_protect_response("S-1", hits, COMPANY)

        self.assertTrue(result.has_sanction_hit)
        self.assertTrue(result.has_pep_hit)
        self.assertTrue(result.has_enforcement_hit)
        self.assertFalse(result.has_adverse_media_hit)
        self.assertEqual(result.total_hits, 2)

    def test_no_hits(self):
        result = map_kyc_protect_response("S-1", [], COMPANY)
        self.assertFalse(result.has_sanction_hit or result.has_enforcement_hit)
        self.assertEqual(result.total_hits, 0)
        self.assertEqual(result.to_dict()["datasets"], "None")

    def test_describe_datasets(self):
        hits = [hit(datasets=["SAN", "AM"]), hit(datasets=["AM", "XYZ"])]
        self.assertEqual(describe_datasets(hits), "Sanctions, Adverse Media, XYZ")

    def test_parse_hit_accepts_alternative_keys(self):
        parsed = parse_hit({"id": 7, "name": COMPANY, "categories": ["san"], "matchDecision": "trueMatch"})
        self.assertEqual(parsed.hit_id, "7")
        self.assertEqual(parsed.datasets, ["SAN"])
        self.assertEqual(parsed.decision, "trueMatch")


class TestKycProtectClient(unittest.IsolatedAsyncioTestCase):

    def _client(self, search_body, hits_body=None):
        requests = []

        def handler(request):
            requests.append(request)
            path = request.url.path
            if path == "/v1/authenticate":
                return httpx.Response(200, json={"token": "token-1"})
            if path == "/v1" + SEARCH_ENDPOINT:
                return httpx.Response(200, json=search_body)
            if path == f"/v1{SEARCH_ENDPOINT}/S-42/hits" and hits_body is not None:
                return httpx.Response(200, json=hits_body)
            return httpx.Response(500)

        creditsafe = CreditsafeClient(
            "https://connect.test/v1", "user", "secret", transport=httpx.MockTransport(handler)
        )
        return KycProtectClient(creditsafe, timeout=5), requests

    async def test_search_without_hits_skips_hit_retrieval(self):
        client, requests = self._client({"id": "S-42", "totalHitCount": 0})
        result = await client.screen_company(COMPANY, "BE")
        await client.creditsafe.close()

        self.assertEqual(result.search_id, "S-42")
        self.assertFalse(result.has_sanction_hit)
        self.assertEqual(len(requests), 2)
        self.assertEqual(json.loads(requests[1].content), {"name": COMPANY, "countries": ["BE"]})

    async def test_hits_are_retrieved_and_mapped(self):
        hits_body = {"items": [
            {"hitId": "H-1", "name": COMPANY, "datasets": ["ENF"], "decision": "trueMatch"},
            {"hitId": "H-2", "name": "Peeters Transport", "datasets": ["SAN"], "decision": "trueMatch"},
        ]}
        client, requests = self._client({"id": "S-42", "totalHitCount": 2}, hits_body)
        result = await client.screen_company(COMPANY)
        await client.creditsafe.close()

        self.assertTrue(result.has_enforcement_hit)
        self.assertFalse(result.has_sanction_hit)
        self.assertEqual([h.hit_id for h in result.hits], ["H-1"])
        self.assertEqual(json.loads(requests[1].content), {"name": COMPANY})

    async def test_hit_retrieval_failure_raises(self):
        client, _ = self._client({"id": "S-42", "totalHitCount": 1})
        with self.assertRaises(CreditsafeError):
            await client.screen_company(COMPANY, "BE")
        await client.creditsafe.close()


if __name__ == "__main__":
    unittest.main()

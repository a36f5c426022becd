"""
Test the adjusted score calculation and score-based tier determination.
"""

import dataclasses
import unittest

from leasing_engine.config.delta_config import MANUAL, REJECT
from leasing_engine.config.tier_config import TIER_THRESHOLDS
from leasing_engine.scoring.calculator import (
    ScoreCalculationInput,
    ScoreCalculator,
    calculate_adjusted_score,
)
from leasing_engine.tiers import Tier


class TestScoreCalculator(unittest.TestCase):
    """Test phase 1 (adjusted score) and phase 2 (tier and restrictions)."""

    def setUp(self):
        self.calculator = ScoreCalculator()

    def test_deltas_are_summed(self):
        """Antwerpen stad (-30) takes an 80 down to FAIR."""
        result = self.calculator.calculate(ScoreCalculationInput(
            credit_rating=80, postal_code="2000", company_age_years=10,
        ))
        self.assertEqual(result.total_numeric_delta, -30)
        self.assertEqual(result.adjusted_score, 50)
        self.assertEqual(result.determined_tier, Tier.FAIR)
        self.assertEqual(result.final_tier, Tier.FAIR)
        self.assertFalse(result.has_reject)
        self.assertFalse(result.has_manual_review)
        self.assertEqual([d.source for d in result.deltas], ["postcode", "nace", "age"])

    def test_adjusted_score_clamped_to_100(self):
        result = self.calculator.calculate(ScoreCalculationInput(
            credit_rating=95, postal_code="1340", company_age_years=10,
        ))
        self.assertEqual(result.adjusted_score, 100)
        self.assertEqual(result.determined_tier, Tier.EXCELLENT)

    def test_adjusted_score_clamped_to_0(self):
        result = self.calculator.calculate(ScoreCalculationInput(
            credit_rating=10, postal_code="1080", company_age_years=0.5,
        ))
        self.assertEqual(result.total_numeric_delta, -60)
        self.assertEqual(result.adjusted_score, 0)
        # The POOR floor is 0, so a clamped score still lands in POOR
        self.assertEqual(result.determined_tier, Tier.POOR)
        self.assertEqual(result.final_tier, Tier.POOR)

    def test_nace_reject_at_determined_tier(self):
        """Diamond trade is rejected at EXCELLENT despite a high score."""
        result = self.calculator.calculate(ScoreCalculationInput(
            credit_rating=90, nace_codes=["46.72"], company_age_years=10,
        ))
        self.assertEqual(result.determined_tier, Tier.EXCELLENT)
        self.assertEqual(result.nace_restriction, REJECT)
        self.assertIsNone(result.age_restriction)
        self.assertEqual(result.final_tier, Tier.REJECTED)
        self.assertTrue(result.has_reject)

        sentinel_deltas = [d for d in result.deltas if d.outcome == REJECT]
        self.assertEqual(len(sentinel_deltas), 1)
        self.assertIn("causes rejection for EXCELLENT tier", sentinel_deltas[0].description)

    def test_nace_manual_at_poor(self):
        result = self.calculator.calculate(ScoreCalculationInput(
            credit_rating=20, nace_codes=["92.01"], company_age_years=10,
        ))
        self.assertEqual(result.determined_tier, Tier.POOR)
        self.assertEqual(result.nace_restriction, MANUAL)
        self.assertEqual(result.final_tier, Tier.MANUAL_REVIEW)
        self.assertTrue(result.has_manual_review)
        self.assertFalse(result.has_reject)

    def test_age_reject_beats_nace_manual(self):
        manual_everywhere = [{
            "codes": ["62.01"],
            "sector": "Software",
            "excellent": MANUAL,
            "good": MANUAL,
            "fair": MANUAL,
            "poor": MANUAL,
        }]
        calculator = ScoreCalculator(nace_deltas=manual_everywhere)
        result = calculator.calculate(ScoreCalculationInput(
            credit_rating=50, nace_codes=["62.01"], company_age_years=4 / 12,
        ))
        self.assertEqual(result.determined_tier, Tier.FAIR)
        self.assertEqual(result.nace_restriction, MANUAL)
        self.assertEqual(result.age_restriction, REJECT)
        self.assertEqual(result.final_tier, Tier.REJECTED)
        self.assertTrue(result.has_reject)
        self.assertFalse(result.has_manual_review)

    def test_score_below_poor_floor_skips_restrictions(self):
        thresholds = {tier: dict(values) for tier, values in TIER_THRESHOLDS.items()}
        thresholds[Tier.POOR]["credit_rating_min"] = 30
        calculator = ScoreCalculator(thresholds=thresholds)

        result = calculator.calculate(ScoreCalculationInput(
            credit_rating=20, nace_codes=["46.72"], company_age_years=10,
        ))
        self.assertEqual(result.determined_tier, Tier.REJECTED)
        self.assertEqual(result.final_tier, Tier.REJECTED)
        self.assertTrue(result.has_reject)
        self.assertIsNone(result.nace_restriction)
        self.assertEqual(len(result.deltas), 3)

    def test_unknown_company_age_requires_manual_review(self):
        result = self.calculator.calculate(ScoreCalculationInput(credit_rating=85))

        age_delta = result.deltas[2]
        self.assertEqual(age_delta.source, "age")
        self.assertEqual(age_delta.outcome, 0)
        self.assertEqual(age_delta.description, "Company age unknown: no adjustment")
        self.assertEqual(result.adjusted_score, 85)
        self.assertEqual(result.determined_tier, Tier.EXCELLENT)
        self.assertEqual(result.age_restriction, MANUAL)
        self.assertEqual(result.final_tier, Tier.MANUAL_REVIEW)
        self.assertTrue(result.has_manual_review)
        self.assertIn("Company age unknown requires manual review", result.deltas[-1].description)

    def test_result_is_immutable(self):
        result = self.calculator.calculate(ScoreCalculationInput(credit_rating=85, company_age_years=10))
        with self.assertRaises(dataclasses.FrozenInstanceError):
            result.final_tier = Tier.POOR

    def test_determine_tier_floors(self):
        self.assertEqual(self.calculator.determine_tier(70), Tier.EXCELLENT)
        self.assertEqual(self.calculator.determine_tier(69.9), Tier.GOOD)
        self.assertEqual(self.calculator.determine_tier(55), Tier.GOOD)
        self.assertEqual(self.calculator.determine_tier(35), Tier.FAIR)
        self.assertEqual(self.calculator.determine_tier(0), Tier.POOR)

    def test_to_dict_uses_sentinel_values(self):
        result = calculate_adjusted_score(ScoreCalculationInput(
            credit_rating=90, nace_codes=["46.72"], company_age_years=10,
        ))
        data = result.to_dict()
        self.assertEqual(data["final_tier"], "REJECTED")
        self.assertEqual(data["nace_restriction"], "reject")
        self.assertEqual(data["deltas"][-1]["outcome"], "reject")


if __name__ == "__main__":
    unittest.main()

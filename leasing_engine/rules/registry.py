"""
Registered rules in evaluation order.

Hard rejections come first. Score restrictions run after the credit rating they
refine; insurance checks run last.
"""

from .base import Rule
from . import admin, asset, blocklist, company, fraud, general, insurance, legal_status

ALL_RULES = [
    # Blocklist
    Rule("blocklist", "blocklist", blocklist.check_blocklist),

    # General eligibility and legal history
    Rule("minimum-age", "general", general.check_minimum_age),
    Rule("belgium-residency", "general", general.check_belgium_residency),
    Rule("is-administrator", "general", general.check_is_administrator),
    Rule("contact-with-legal-authorities", "general", general.check_contact_with_legal_authorities),
    Rule("trouble-with-payment", "general", general.check_trouble_with_payment),
    Rule("blacklisted-banks", "general", general.check_blacklisted_banks),

    # Company
    Rule("vat-valid", "company", company.check_vat_valid),
    Rule("company-active", "company", company.check_company_active),
    Rule("credit-rating", "company", company.check_credit_rating),
    Rule("score-restrictions", "company", company.check_score_restrictions),
    Rule("company-age", "company", company.check_company_age),
    Rule("financial-disclosure", "company", company.check_financial_disclosure),
    Rule("withholding-obligation", "company", company.check_withholding_obligation),

    # Administrator
    Rule("admin-bankruptcies", "admin", admin.check_admin_bankruptcies),
    Rule("admin-track-record", "admin", admin.check_admin_track_record),

    # Fraud and compliance
    Rule("fraud-score", "fraud", fraud.check_fraud_score),
    Rule("sanction-list", "fraud", fraud.check_sanction_list),
    Rule("adverse-media", "fraud", fraud.check_adverse_media),
    Rule("pep-exposure", "fraud", fraud.check_pep_exposure),

    # Legal status
    Rule("legal-form", "legal_status", legal_status.check_legal_form),

    # Asset
    Rule("vehicle-type", "asset", asset.check_vehicle_type),
    Rule("vehicle-value", "asset", asset.check_vehicle_value),
    Rule("vehicle-mileage", "asset", asset.check_vehicle_mileage),
    Rule("vehicle-age", "asset", asset.check_vehicle_age),

    # Insurance (POOR tier criteria)
    Rule("driver-age", "insurance", insurance.check_driver_age),
    Rule("license-duration", "insurance", insurance.check_license_duration),
    Rule("accidents-at-fault", "insurance", insurance.check_accidents_at_fault),
    Rule("accidents-not-at-fault", "insurance", insurance.check_accidents_not_at_fault),
    Rule("vehicle-horsepower", "insurance", insurance.check_vehicle_horsepower),
]


def get_rule(rule_id: str) -> Rule:
    """Look a registered rule up by id. Raises KeyError if unknown."""
    for rule in ALL_RULES:
        if rule.id == rule_id:
            return rule
    raise KeyError(rule_id)

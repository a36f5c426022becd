"""
Credit check request model.
Parses the company identification and the applicant questionnaire from API payloads.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import date
import re


class InvalidRequestError(Exception):
    """Raised when the request payload cannot be turned into a credit check request."""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__("Invalid credit check request: " + "; ".join(problems))


@dataclass(frozen=True)
class ContactInfo:
    """Contact person filling in the questionnaire."""
    first_name: str
    last_name: str
    date_of_birth: date
    belgium_resident: bool
    is_administrator: bool


@dataclass(frozen=True)
class LegalHistory:
    """Self-declared legal and payment history."""
    contact_with_legal_authorities: bool = False
    trouble_with_payment_at_financing_company: bool = False
    blacklisted_banks: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class InsuranceHistory:
    """Driving history of the primary driver."""
    driver_age: int
    license_years: float
    accidents_at_fault: int = 0
    accidents_not_at_fault: int = 0


@dataclass(frozen=True)
class VehicleInfo:
    """Vehicle being financed."""
    type: str  # "new" or "secondHand"
    horsepower: float
    value: float  # EUR
    mileage: float = 0  # km
    age_years: float = 0  # 0.5 = 6 months

    @property
    def is_new(self) -> bool:
        return self.type == "new"


@dataclass(frozen=True)
class Questionnaire:
    """Full applicant questionnaire."""
    contact: ContactInfo
    legal_history: LegalHistory
    insurance_history: InsuranceHistory
    vehicle: VehicleInfo
    self_declared_withholding_debt: bool = False  # Debt at RSZ/FOD Financiën


@dataclass(frozen=True)
class CompanyInfo:
    """Company identification supplied with the request."""
    vat_number: str  # e.g. "BE0123456789"
    name: Optional[str] = None
    legal_form: Optional[str] = None


VEHICLE_TYPES = ("new", "secondHand")
VAT_NUMBER_PATTERN = re.compile(r"^[A-Z]{2}[0-9A-Z]{2,13}$")


class _PayloadReader:
    """Reads typed fields from nested dicts, collecting problems instead of failing fast."""

    def __init__(self):
        self.problems: List[str] = []

    def section(self, data: Dict, key: str) -> Dict:
        value = data.get(key)
        if not isinstance(value, dict):
            self.problems.append(f"{key}: expected an object")
            return {}
        return value

    def value(self, data: Dict, key: str, kind, path: str, default: Any = ...) -> Any:
        if key not in data or data[key] is None:
            if default is ...:
                self.problems.append(f"{path}.{key}: required")
            return None if default is ... else default

        raw = data[key]
        if kind is bool:
            if isinstance(raw, bool):
                return raw
        elif kind is float:
            if isinstance(raw, (int, float)) and not isinstance(raw, bool):
                return raw
        elif kind is int:
            if isinstance(raw, int) and not isinstance(raw, bool):
                return raw
        elif kind is str:
            if isinstance(raw, str):
                return raw.strip()
        elif kind is list:
            if isinstance(raw, list) and all(isinstance(item, str) for item in raw):
                return raw
        elif kind is date:
            if isinstance(raw, date):
                return raw
            if isinstance(raw, str):
                try:
                    return date.fromisoformat(raw[:10])
                except ValueError:
                    pass

        self.problems.append(f"{path}.{key}: expected {kind.__name__}")
        return None


def parse_company(data: Dict) -> CompanyInfo:
    """Parse company identification, raising InvalidRequestError on bad input."""
    reader = _PayloadReader()
    company = _read_company(reader, data)
    if reader.problems:
        raise InvalidRequestError(reader.problems)
    return company


def parse_questionnaire(data: Dict) -> Questionnaire:
    """Parse the questionnaire, raising InvalidRequestError on bad input."""
    reader = _PayloadReader()
    questionnaire = _read_questionnaire(reader, data)
    if reader.problems:
        raise InvalidRequestError(reader.problems)
    return questionnaire


def parse_credit_check_request(payload: Dict) -> tuple:
    """
    Parse a full credit check payload.

    Args:
        payload: {"company": {...}, "questionnaire": {...}} with camelCase keys

    Returns:
        (CompanyInfo, Questionnaire)

    Raises:
        InvalidRequestError: listing every problem found
    """
    if not isinstance(payload, dict):
        raise InvalidRequestError(["request body: expected an object"])

    reader = _PayloadReader()
    company = _read_company(reader, reader.section(payload, "company"))
    questionnaire = _read_questionnaire(reader, reader.section(payload, "questionnaire"))
    if reader.problems:
        raise InvalidRequestError(reader.problems)
    return company, questionnaire


def _read_company(reader: _PayloadReader, data: Dict) -> Optional[CompanyInfo]:
    vat_number = reader.value(data, "vatNumber", str, "company")
    if vat_number is not None:
        vat_number = re.sub(r"[\s.]", "", vat_number).upper()
        if not VAT_NUMBER_PATTERN.match(vat_number):
            reader.problems.append(f"company.vatNumber: invalid format '{vat_number}'")

    return CompanyInfo(
        vat_number=vat_number,
        name=reader.value(data, "name", str, "company", default=None) or None,
        legal_form=reader.value(data, "legalForm", str, "company", default=None) or None,
    )


def _read_questionnaire(reader: _PayloadReader, data: Dict) -> Optional[Questionnaire]:
    contact_data = reader.section(data, "contact")
    legal_data = reader.section(data, "legalHistory")
    insurance_data = reader.section(data, "insuranceHistory")
    vehicle_data = reader.section(data, "vehicle")
    withholding_data = data.get("withholdingObligation")
    if not isinstance(withholding_data, dict):
        withholding_data = {}

    contact = ContactInfo(
        first_name=reader.value(contact_data, "firstName", str, "contact"),
        last_name=reader.value(contact_data, "lastName", str, "contact"),
        date_of_birth=reader.value(contact_data, "dateOfBirth", date, "contact"),
        belgium_resident=reader.value(contact_data, "belgiumResident", bool, "contact"),
        is_administrator=reader.value(contact_data, "isAdministrator", bool, "contact"),
    )

    legal_history = LegalHistory(
        contact_with_legal_authorities=reader.value(
            legal_data, "contactWithLegalAuthorities", bool, "legalHistory"
        ),
        trouble_with_payment_at_financing_company=reader.value(
            legal_data, "troubleWithPaymentAtFinancingCompany", bool, "legalHistory"
        ),
        blacklisted_banks=reader.value(
            legal_data, "blacklistedBanks", list, "legalHistory", default=[]
        ),
    )

    insurance_history = InsuranceHistory(
        driver_age=reader.value(insurance_data, "driverAge", int, "insuranceHistory"),
        license_years=reader.value(insurance_data, "licenseYears", float, "insuranceHistory"),
        accidents_at_fault=reader.value(
            insurance_data, "accidentsAtFault", int, "insuranceHistory", default=0
        ),
        accidents_not_at_fault=reader.value(
            insurance_data, "accidentsNotAtFault", int, "insuranceHistory", default=0
        ),
    )

    vehicle_type = reader.value(vehicle_data, "type", str, "vehicle")
    if vehicle_type is not None and vehicle_type not in VEHICLE_TYPES:
        reader.problems.append(f"vehicle.type: expected one of {', '.join(VEHICLE_TYPES)}")

    # Second-hand vehicles must state their mileage and age
    required_if_used = ... if vehicle_type == "secondHand" else 0
    vehicle = VehicleInfo(
        type=vehicle_type,
        horsepower=reader.value(vehicle_data, "horsepower", float, "vehicle"),
        value=reader.value(vehicle_data, "value", float, "vehicle"),
        mileage=reader.value(vehicle_data, "mileage", float, "vehicle", default=required_if_used),
        age_years=reader.value(vehicle_data, "ageYears", float, "vehicle", default=required_if_used),
    )

    return Questionnaire(
        contact=contact,
        legal_history=legal_history,
        insurance_history=insurance_history,
        vehicle=vehicle,
        self_declared_withholding_debt=reader.value(
            withholding_data, "selfDeclaredDebt", bool, "withholdingObligation", default=False
        ),
    )

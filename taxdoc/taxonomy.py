"""Canonical tax document taxonomy.

Single source of truth for the per-country, per-category list of document
types.  Used by the classifier (system prompt + validation) and by any
filter UI, so both always see the same labels.

The table is read-only: countries map to categories, categories map to an
ordered tuple of document type labels.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class DocumentCategory(str, Enum):
    """Top-level document category within a country."""
    COMPANY = "CompanyDocuments"
    EMPLOYEE = "EmployeeDocuments"

    @classmethod
    def parse(cls, value: object) -> "DocumentCategory | None":
        """Map a raw label to a category, None if it is not one of ours."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        cleaned = value.strip()
        for member in cls:
            if member.value.lower() == cleaned.lower():
                return member
        return None

    @property
    def other(self) -> "DocumentCategory":
        """The alternate category (Company ↔ Employee)."""
        if self is DocumentCategory.COMPANY:
            return DocumentCategory.EMPLOYEE
        return DocumentCategory.COMPANY


Taxonomy = Mapping[str, Mapping[DocumentCategory, tuple[str, ...]]]


_RAW_TAXONOMY: dict[str, dict[DocumentCategory, tuple[str, ...]]] = {
    "India": {
        DocumentCategory.COMPANY: (
            "Certificate of Incorporation",
            "PAN Card",
            "TAN Registration Certificate",
            "GST Registration Certificate",
            "MOA and AOA",
            "Business/Trade License",
            "Shops & Establishment Registration",
            "Professional Tax Registration",
            "Import Export Code (IEC)",
            "Annual Financial Statements",
            "Tax Audit Reports (Form 3CA/3CB & 3CD)",
            "Income Tax Returns (ITR copies)",
            "GST Returns (GSTR-1, GSTR-3B, GSTR-9)",
            "PF and ESI Registration",
            "PF and ESI Challans and Returns",
            "Board Resolutions",
            "Director KYC (DIR-3)",
        ),
        DocumentCategory.EMPLOYEE: (
            "PAN Card",
            "Aadhaar Card",
            "Form 16",
            "Salary Slips",
            "Bank Statements",
            "Investment Proofs",
            "Previous Employment Form 16",
            "Medical Insurance Proof",
            "Rent Receipts",
            "Loan Certificates",
            "LTA Proofs",
        ),
    },
    "Germany": {
        DocumentCategory.COMPANY: (
            "Trade Registration Certificate",
            "VAT Registration",
            "Articles of Association",
            "Handelsregisterauszug",
            "Annual Financial Statements",
            "Tax Number Assignment Letter",
            "Tax Assessment Notices",
            "VAT Returns",
            "Social Security Registration",
        ),
        DocumentCategory.EMPLOYEE: (
            "Steueridentifikationsnummer",
            "Sozialversicherungsausweis",
            "Salary Certificates",
            "ELSTER Reports",
            "Health Insurance Certificate",
            "Lohnsteuerbescheinigung",
            "Previous Employer Salary Proof",
            "Pension Contribution Proofs",
        ),
    },
    "China": {
        DocumentCategory.COMPANY: (
            "Business License",
            "Organization Code Certificate",
            "Tax Registration Certificate",
            "Social Insurance Registration",
            "VAT Registration Certificate",
            "Financial Statements",
            "Corporate Income Tax Return",
            "VAT Returns",
            "Tax Clearance Certificate",
        ),
        DocumentCategory.EMPLOYEE: (
            "National ID Card",
            "Labor Contract Copy",
            "Payslips",
            "IIT Payment Certificates",
            "Social Insurance Contribution Record",
            "Housing Provident Fund Contribution Proof",
            "Previous Employer Income Proof",
            "Residence Permit",
        ),
    },
    "USA": {
        DocumentCategory.COMPANY: (
            "Certificate of Incorporation / Formation",
            "EIN",
            "State Tax Registration Certificate",
            "IRS Tax Filings",
            "Financial Statements",
            "State Annual Reports",
            "W-2 Forms for employees",
            "1099 Forms for contractors",
            "Payroll Tax Returns",
            "Sales Tax Registration and Returns",
        ),
        DocumentCategory.EMPLOYEE: (
            "Social Security Number (SSN)",
            "W-2 Forms",
            "1099-NEC",
            "Paystubs",
            "Investment Proofs",
            "Health Insurance Documents",
            "Previous Employer Pay Records",
            "Mortgage or Student Loan Interest Statements",
        ),
    },
    "Japan": {
        DocumentCategory.COMPANY: (
            "Certificate of Registered Matters",
            "Corporate Number Notification",
            "Articles of Incorporation",
            "Business License",
            "Tax Payment Slips",
            "Consumption Tax Return",
            "Financial Statements",
            "Annual Corporate Tax Return",
            "Labor Insurance Registration Certificate",
            "Social Insurance Participation Certificate",
        ),
        DocumentCategory.EMPLOYEE: (
            "My Number Card",
            "Gensen Chōshūhyō",
            "Salary Statements",
            "Health Insurance Card",
            "Employment Contract",
            "Residence Card",
            "Previous Employer Gensen Chōshūhyō",
        ),
    },
    "UAE": {
        DocumentCategory.COMPANY: (
            "Trade License",
            "VAT Registration Certificate",
            "Corporate Bank Account Proof",
            "Memorandum of Association (MOA)",
            "Certificate of Incorporation",
            "Lease Agreement (Ejari)",
            "Financial Audit Reports",
            "VAT Returns Filing Receipts",
            "UBO Declaration",
        ),
        DocumentCategory.EMPLOYEE: (
            "Emirates ID",
            "Labor Contract",
            "Passport Copy",
            "Visa Copy",
            "Salary Certificates",
            "Payslips",
            "Health Insurance Card",
            "WPS Salary Transfer Proof",
            "End of Service Benefits Calculation Sheets",
        ),
    },
}

TAX_TAXONOMY: Taxonomy = MappingProxyType(
    {country: MappingProxyType(categories) for country, categories in _RAW_TAXONOMY.items()}
)

# Documents every country accepts in addition to its own list.
# Offered as filter options only, never used to validate a classification.
SUPPORTING_DOCUMENTS: tuple[str, ...] = (
    "Tax Payment Receipts",
    "Previous Years' Tax Filing Receipts",
    "Tax Notices / Assessment Letters",
    "Bank Statements",
    "Proof of Foreign Income",
    "Advance Tax Challans",
    "Loan Statements",
    "Charitable Donation Receipts",
    "Investment Proofs",
    "Rental Income Proof",
)


def countries(taxonomy: Taxonomy = TAX_TAXONOMY) -> list[str]:
    """All country names in table order."""
    return list(taxonomy.keys())


def canonical_country(name: str | None, taxonomy: Taxonomy = TAX_TAXONOMY) -> str | None:
    """Return the taxonomy spelling of a country name, or None if unknown.

    Exact matches win; otherwise a case-insensitive match is accepted
    ("india" → "India").
    """
    if not name:
        return None
    if name in taxonomy:
        return name
    lowered = name.strip().lower()
    for country in taxonomy:
        if country.lower() == lowered:
            return country
    return None


def document_types(
    country: str,
    category: DocumentCategory,
    taxonomy: Taxonomy = TAX_TAXONOMY,
) -> tuple[str, ...]:
    """Valid document types for a country and category (empty if unknown)."""
    return taxonomy.get(country, {}).get(category, ())


def to_jsonable(taxonomy: Taxonomy = TAX_TAXONOMY) -> dict[str, dict[str, list[str]]]:
    """Plain dict form of the table, for embedding into prompts."""
    return {
        country: {category.value: list(types) for category, types in categories.items()}
        for country, categories in taxonomy.items()
    }

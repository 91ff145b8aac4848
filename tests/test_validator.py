import pytest

from taxdoc.classifier.models import ClassificationCandidate
from taxdoc.classifier.validator import validate_candidate
from taxdoc.taxonomy import TAX_TAXONOMY, DocumentCategory


def candidate(**kwargs) -> ClassificationCandidate:
    return ClassificationCandidate(**kwargs)


def test_valid_candidate_is_unchanged():
    c = validate_candidate(
        candidate(country="India", document_type="PAN Card", category=DocumentCategory.COMPANY)
    )

    assert c.country == "India"
    assert c.document_type == "PAN Card"
    assert c.category is DocumentCategory.COMPANY


def test_type_from_other_category_reassigns_category():
    c = validate_candidate(
        candidate(country="India", document_type="Form 16", category=DocumentCategory.COMPANY)
    )

    assert c.document_type == "Form 16"
    assert c.category is DocumentCategory.EMPLOYEE


def test_type_in_neither_category_is_dropped():
    c = validate_candidate(
        candidate(country="India", document_type="Totally Unknown Doc", category=DocumentCategory.COMPANY)
    )

    assert c.document_type is None
    assert c.country == "India"
    assert c.category is DocumentCategory.COMPANY


def test_unknown_country_is_dropped_and_type_left_unchecked():
    c = validate_candidate(candidate(country="Atlantis", document_type="Scroll of Taxes"))

    assert c.country is None
    assert c.document_type == "Scroll of Taxes"


def test_country_spelling_is_normalised():
    c = validate_candidate(candidate(country="germany", document_type="VAT Returns"))

    assert c.country == "Germany"
    assert c.document_type == "VAT Returns"


def test_type_without_country_is_kept():
    c = validate_candidate(
        candidate(country=None, document_type="Form 16", category=DocumentCategory.COMPANY)
    )

    assert c.document_type == "Form 16"
    # No country to look the type up in, so the category is not corrected
    assert c.category is DocumentCategory.COMPANY


@pytest.mark.parametrize("country", sorted(TAX_TAXONOMY))
@pytest.mark.parametrize("category", list(DocumentCategory))
def test_every_listed_type_validates_under_its_category(country, category):
    for doc_type in TAX_TAXONOMY[country][category]:
        c = validate_candidate(candidate(country=country, document_type=doc_type, category=category))
        assert c.document_type == doc_type
        assert c.category is category


@pytest.mark.parametrize("country", sorted(TAX_TAXONOMY))
def test_type_found_only_in_alternate_category_is_kept_and_moved(country):
    company = set(TAX_TAXONOMY[country][DocumentCategory.COMPANY])
    employee_only = [t for t in TAX_TAXONOMY[country][DocumentCategory.EMPLOYEE] if t not in company]

    for doc_type in employee_only:
        c = validate_candidate(
            candidate(country=country, document_type=doc_type, category=DocumentCategory.COMPANY)
        )
        assert c.document_type == doc_type
        assert c.category is DocumentCategory.EMPLOYEE


def test_custom_taxonomy():
    taxonomy = {"Ireland": {DocumentCategory.COMPANY: ("CRO Certificate",), DocumentCategory.EMPLOYEE: ()}}

    c = validate_candidate(candidate(country="Ireland", document_type="CRO Certificate"), taxonomy)
    assert c.country == "Ireland"
    assert c.document_type == "CRO Certificate"

    c = validate_candidate(candidate(country="India", document_type="PAN Card"), taxonomy)
    assert c.country is None

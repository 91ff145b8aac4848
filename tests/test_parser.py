import json

import pytest

from taxdoc.classifier.models import ResponseSource
from taxdoc.classifier.parser import parse_confidence, parse_model_output
from taxdoc.taxonomy import DocumentCategory

from conftest import INDIA_PAN_ANSWER


def test_parse_labelled_lines():
    parsed = parse_model_output(INDIA_PAN_ANSWER)

    assert parsed.source is ResponseSource.TEXT
    candidate = parsed.candidate
    assert candidate.country == "India"
    assert candidate.document_type == "PAN Card"
    assert candidate.category is DocumentCategory.COMPANY
    assert candidate.subtype is None
    assert candidate.confidence_score == pytest.approx(0.92)


def test_parse_labels_case_insensitive_and_stops_at_asterisk():
    raw = (
        "Here is my analysis.\n"
        "country of origin: Germany **\n"
        "DOCUMENT TYPE: VAT Returns*\n"
        "Document Category: CompanyDocuments\n"
        "Document Subtype: Quarterly\n"
        "Confidence Score: 0.8 (fairly sure)\n"
    )
    candidate = parse_model_output(raw).candidate

    assert candidate.country == "Germany"
    assert candidate.document_type == "VAT Returns"
    assert candidate.subtype == "Quarterly"
    assert candidate.confidence_score == pytest.approx(0.8)


def test_parse_missing_fields_default():
    parsed = parse_model_output("I could not read this document.")

    assert parsed.source is ResponseSource.TEXT
    candidate = parsed.candidate
    assert candidate.country is None
    assert candidate.document_type is None
    assert candidate.category is DocumentCategory.COMPANY
    assert candidate.confidence_score == 0.0


def test_parse_null_placeholders_become_none():
    raw = "Country of Origin: null\nDocument Type: null\nDocument Subtype: null"
    candidate = parse_model_output(raw).candidate

    assert candidate.country is None
    assert candidate.document_type is None
    assert candidate.subtype is None


def test_parse_unrecognised_category_defaults_to_company():
    raw = "Country of Origin: India\nDocument Category: Receipts"
    assert parse_model_output(raw).candidate.category is DocumentCategory.COMPANY


def test_parse_employee_category():
    raw = "Country of Origin: India\nDocument Category: EmployeeDocuments"
    assert parse_model_output(raw).candidate.category is DocumentCategory.EMPLOYEE


def test_parse_label_without_value_does_not_swallow_next_line():
    raw = "Country of Origin:\nDocument Type: PAN Card"
    candidate = parse_model_output(raw).candidate

    assert candidate.country is None
    assert candidate.document_type == "PAN Card"


def test_parse_structured_json():
    raw = json.dumps(
        {
            "Country of Origin": "USA",
            "Document Type": "Totally Unknown Doc",
            "Document Category": "EmployeeDocuments",
            "Document Subtype": "Draft",
            "Confidence Score": 0.4,
        }
    )
    parsed = parse_model_output(raw)

    assert parsed.source is ResponseSource.STRUCTURED
    assert parsed.candidate.document_type == "Totally Unknown Doc"
    assert parsed.candidate.category is DocumentCategory.EMPLOYEE
    assert parsed.candidate.subtype == "Draft"
    assert parsed.candidate.confidence_score == pytest.approx(0.4)


def test_parse_structured_json_in_code_fence():
    raw = '```json\n{"Country of Origin": "China", "Document Type": "Payslips"}\n```'
    parsed = parse_model_output(raw)

    assert parsed.source is ResponseSource.STRUCTURED
    assert parsed.candidate.country == "China"
    assert parsed.candidate.category is DocumentCategory.COMPANY


def test_parse_json_without_expected_keys_falls_back_to_text():
    parsed = parse_model_output('{"answer": "Country of Origin: Japan"}')

    assert parsed.source is ResponseSource.TEXT
    assert parsed.candidate.country == 'Japan"}'


def test_parse_unexpected_error_is_swallowed(mocker):
    mocker.patch(
        "taxdoc.classifier.parser._candidate_from_text",
        side_effect=RuntimeError("regex engine exploded"),
    )

    parsed = parse_model_output(INDIA_PAN_ANSWER)

    assert parsed.source is ResponseSource.UNPARSEABLE
    assert parsed.error == "regex engine exploded"
    assert parsed.candidate.country is None
    assert parsed.candidate.confidence_score == 0.0


@pytest.mark.parametrize(
    "value, expected",
    [
        (0.92, 0.92),
        ("0.5", 0.5),
        (".75 approx", 0.75),
        ("high", 0.0),
        (None, 0.0),
        (True, 0.0),
        (float("nan"), 0.0),
        (85, 1.0),
        ("-0.3", 0.0),
    ],
)
def test_parse_confidence(value, expected):
    assert parse_confidence(value) == pytest.approx(expected)

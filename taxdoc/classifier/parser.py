"""Reading classification answers from free-form model output.

The model is asked for five labelled lines, but vision models sometimes
answer with a JSON object instead.  Both shapes are accepted:

1. Strict JSON object carrying the label keys → STRUCTURED (trusted as-is)
2. Otherwise labelled lines such as ``Country of Origin: India`` → TEXT
3. Any unexpected error while parsing → UNPARSEABLE (never raised)
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from taxdoc.classifier.models import (
    ClassificationCandidate,
    ParsedResponse,
    ResponseSource,
)
from taxdoc.logging_config import get_logger
from taxdoc.taxonomy import DocumentCategory

logger = get_logger("classifier")

LABEL_COUNTRY = "Country of Origin"
LABEL_TYPE = "Document Type"
LABEL_CATEGORY = "Document Category"
LABEL_SUBTYPE = "Document Subtype"
LABEL_CONFIDENCE = "Confidence Score"

EXPECTED_KEYS = (LABEL_COUNTRY, LABEL_TYPE, LABEL_CATEGORY, LABEL_SUBTYPE, LABEL_CONFIDENCE)

# Value runs to the end of the line or up to a literal '*' (markdown emphasis)
_FIELD_PATTERNS = {
    label: re.compile(rf"{re.escape(label)}:[ \t]*([^\n*]+)", re.IGNORECASE)
    for label in EXPECTED_KEYS
}

# Leading float like JavaScript parseFloat: "0.92 (high)" → 0.92
_LEADING_NUMBER = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

_CODEBLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

# Placeholders the prompt allows for "unknown"
_NULL_WORDS = {"", "null", "none", "n/a", "unknown"}


def parse_confidence(value: Any) -> float:
    """Confidence as a float in [0, 1]; 0.0 if it cannot be read."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value.strip())
        if not match:
            return 0.0
        number = float(match.group(0))
    else:
        return 0.0
    if math.isnan(number):
        return 0.0
    return min(max(number, 0.0), 1.0)


def _clean_text_value(value: str) -> str | None:
    cleaned = value.strip()
    if cleaned.lower() in _NULL_WORDS:
        return None
    return cleaned


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _try_structured(raw_text: str) -> dict[str, Any] | None:
    """Decode the answer as a JSON object with at least one expected key."""
    cleaned = raw_text.strip()
    codeblock = _CODEBLOCK.search(cleaned)
    if codeblock:
        cleaned = codeblock.group(1).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    if not any(key in data for key in EXPECTED_KEYS):
        return None
    return data


def _candidate_from_json(data: dict[str, Any]) -> ClassificationCandidate:
    return ClassificationCandidate(
        country=_optional_str(data.get(LABEL_COUNTRY)),
        document_type=_optional_str(data.get(LABEL_TYPE)),
        category=DocumentCategory.parse(data.get(LABEL_CATEGORY)) or DocumentCategory.COMPANY,
        subtype=_optional_str(data.get(LABEL_SUBTYPE)),
        confidence_score=parse_confidence(data.get(LABEL_CONFIDENCE)),
    )


def _candidate_from_text(raw_text: str) -> ClassificationCandidate:
    fields: dict[str, str | None] = {}
    for label, pattern in _FIELD_PATTERNS.items():
        match = pattern.search(raw_text)
        fields[label] = _clean_text_value(match.group(1)) if match else None

    confidence = fields[LABEL_CONFIDENCE]
    return ClassificationCandidate(
        country=fields[LABEL_COUNTRY],
        document_type=fields[LABEL_TYPE],
        category=DocumentCategory.parse(fields[LABEL_CATEGORY]) or DocumentCategory.COMPANY,
        subtype=fields[LABEL_SUBTYPE],
        confidence_score=parse_confidence(confidence) if confidence else 0.0,
    )


def parse_model_output(raw_text: str) -> ParsedResponse:
    """Turn raw model output into a tagged classification candidate.

    Never raises: an unexpected error yields an UNPARSEABLE response with an
    empty candidate, so one odd answer cannot take the pipeline down.

    Args:
        raw_text: Answer text from ``choices[0].message.content``.

    Returns:
        ParsedResponse tagged STRUCTURED, TEXT or UNPARSEABLE.
    """
    try:
        data = _try_structured(raw_text)
        if data is not None:
            return ParsedResponse(ResponseSource.STRUCTURED, _candidate_from_json(data))
        return ParsedResponse(ResponseSource.TEXT, _candidate_from_text(raw_text))
    except Exception as exc:
        logger.error("Could not extract document details: %s", exc)
        return ParsedResponse(
            ResponseSource.UNPARSEABLE,
            ClassificationCandidate(),
            error=str(exc),
        )

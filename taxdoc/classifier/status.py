"""Status policy: how confidently was a document classified?

Counts three signals that may overlap:
  (a) document type and country are both set
  (b) category is one of the two known categories
  (c) country is set

≥ 2 → classified, 1 → pending_review, 0 → non_classified.

Because (c) is implied by (a), any country signal pushes the result
towards classified/pending_review rather than non_classified.
"""

from __future__ import annotations

from taxdoc.classifier.models import ClassificationCandidate, ClassificationStatus
from taxdoc.taxonomy import DocumentCategory

THRESHOLD_CLASSIFIED = 2
THRESHOLD_PENDING_REVIEW = 1


def count_valid_fields(candidate: ClassificationCandidate) -> int:
    signals = (
        candidate.document_type is not None and candidate.country is not None,
        candidate.category in (DocumentCategory.COMPANY, DocumentCategory.EMPLOYEE),
        candidate.country is not None,
    )
    return sum(signals)


def determine_status(candidate: ClassificationCandidate) -> ClassificationStatus:
    """Derive the lifecycle status of a validated candidate."""
    valid_fields = count_valid_fields(candidate)
    if valid_fields >= THRESHOLD_CLASSIFIED:
        return ClassificationStatus.CLASSIFIED
    if valid_fields == THRESHOLD_PENDING_REVIEW:
        return ClassificationStatus.PENDING_REVIEW
    return ClassificationStatus.NON_CLASSIFIED

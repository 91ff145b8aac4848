"""Data structures of the classification pipeline.

Flow of types:
    raw model text
      → ParsedResponse (tagged by ResponseSource, carries a ClassificationCandidate)
      → ClassificationCandidate (validated against the taxonomy for TEXT responses)
      → ClassificationResult (candidate + status, immutable)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from taxdoc.taxonomy import DocumentCategory


class ClassificationStatus(str, Enum):
    """Lifecycle status written onto the document record."""
    CLASSIFIED = "classified"
    PENDING_REVIEW = "pending_review"
    NON_CLASSIFIED = "non_classified"


class ClassificationCandidate(BaseModel):
    """Fields extracted from a model answer, before status assignment.

    Mutable: the taxonomy validator corrects it in place.
    """

    model_config = ConfigDict(validate_assignment=True)

    country: Optional[str] = None
    document_type: Optional[str] = None
    category: DocumentCategory = DocumentCategory.COMPANY
    subtype: Optional[str] = None
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)


class ClassificationResult(BaseModel):
    """Final classification of one file.  Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    country: Optional[str] = None
    document_type: Optional[str] = None
    document_category: DocumentCategory = DocumentCategory.COMPANY
    document_subtype: Optional[str] = None
    status: ClassificationStatus = ClassificationStatus.NON_CLASSIFIED
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)

    @classmethod
    def from_candidate(
        cls,
        candidate: ClassificationCandidate,
        status: ClassificationStatus,
    ) -> "ClassificationResult":
        return cls(
            country=candidate.country,
            document_type=candidate.document_type,
            document_category=candidate.category,
            document_subtype=candidate.subtype,
            status=status,
            confidence_score=candidate.confidence_score,
        )

    @classmethod
    def unclassified(cls) -> "ClassificationResult":
        """All-null result used when the answer could not be read at all."""
        return cls()


class ResponseSource(str, Enum):
    """How a model answer was read."""
    STRUCTURED = "structured"    # strict JSON object with the expected keys
    TEXT = "text"                # labelled lines, needs taxonomy validation
    UNPARSEABLE = "unparseable"  # parsing raised; candidate is empty


@dataclass(frozen=True)
class ParsedResponse:
    """Tagged result of the parser.

    ``source`` decides what happens next: STRUCTURED is trusted as-is,
    TEXT goes through taxonomy validation and the status policy,
    UNPARSEABLE becomes a non_classified result.
    """

    source: ResponseSource
    candidate: ClassificationCandidate
    error: str | None = None

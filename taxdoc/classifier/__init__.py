"""Classifier core – document classification pipeline.

Public API:
- ClassificationClient: file URL → ClassificationResult (cached, single-flight)
- BatchVerifier: staggered re-classification of several documents
- parse_model_output / validate_candidate / determine_status: pure pipeline steps
- interpret_model_output: the three steps chained
"""

from taxdoc.classifier.batch import (
    BatchVerifier,
    BatchVerifyResult,
    DocumentsNotFoundError,
)
from taxdoc.classifier.client import (
    ClassificationClient,
    ClassificationInProgressError,
    interpret_model_output,
)
from taxdoc.classifier.models import (
    ClassificationCandidate,
    ClassificationResult,
    ClassificationStatus,
    ParsedResponse,
    ResponseSource,
)
from taxdoc.classifier.parser import parse_model_output
from taxdoc.classifier.status import determine_status
from taxdoc.classifier.validator import validate_candidate

__all__ = [
    # Clients
    "ClassificationClient",
    "BatchVerifier",
    "BatchVerifyResult",
    # Exceptions
    "ClassificationInProgressError",
    "DocumentsNotFoundError",
    # Models
    "ClassificationCandidate",
    "ClassificationResult",
    "ClassificationStatus",
    "ParsedResponse",
    "ResponseSource",
    # Pipeline steps
    "parse_model_output",
    "validate_candidate",
    "determine_status",
    "interpret_model_output",
]

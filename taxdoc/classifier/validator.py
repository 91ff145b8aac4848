"""Taxonomy validation of text-parsed classification candidates.

Two-pass repair, applied in place:

1. A country that is not in the taxonomy is dropped.
2. A document type that is not listed under the candidate's category is
   looked up in the other category of the same country; if it is found
   there the category is corrected, otherwise the type is dropped.

Step 2 only runs when a country survived step 1.  A document type whose
country is missing or unknown is left untouched; the status signals that
involve the type also need a country (see taxdoc.classifier.status).
"""

from __future__ import annotations

from taxdoc.classifier.models import ClassificationCandidate
from taxdoc.logging_config import get_logger
from taxdoc.taxonomy import TAX_TAXONOMY, Taxonomy, canonical_country, document_types

logger = get_logger("classifier")


def validate_candidate(
    candidate: ClassificationCandidate,
    taxonomy: Taxonomy = TAX_TAXONOMY,
) -> ClassificationCandidate:
    """Check and correct a candidate against the taxonomy.

    Args:
        candidate: Candidate from the text parser (mutated and returned).
        taxonomy: Country → category → document types.

    Returns:
        The same candidate, corrected.
    """
    if candidate.country is not None:
        country = canonical_country(candidate.country, taxonomy)
        if country is None:
            logger.info("Unknown country '%s' dropped", candidate.country)
        candidate.country = country

    if candidate.document_type is None or candidate.country is None:
        return candidate

    if candidate.document_type in document_types(candidate.country, candidate.category, taxonomy):
        return candidate

    alternate = candidate.category.other
    if candidate.document_type in document_types(candidate.country, alternate, taxonomy):
        logger.info(
            "Category corrected for '%s' (%s): %s → %s",
            candidate.document_type,
            candidate.country,
            candidate.category.value,
            alternate.value,
        )
        candidate.category = alternate
        return candidate

    logger.info(
        "Document type '%s' not in taxonomy for %s – dropped",
        candidate.document_type,
        candidate.country,
    )
    candidate.document_type = None
    return candidate

"""Batch verification: re-classify a set of the caller's documents.

All documents are dispatched at once but start staggered (document i waits
i × stagger seconds) so the model endpoint is not hit in a burst.  The
join waits for every document and never cancels on the first failure; the
outcome is summarised as a count.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Iterable

from taxdoc.classifier.client import ClassificationClient
from taxdoc.classifier.models import ClassificationResult
from taxdoc.logging_config import get_logger
from taxdoc.supabase.client import SupabaseClient
from taxdoc.supabase.models import Document, User

logger = get_logger("classifier")

ACTIVITY_BATCH_VERIFY = "batch_verify"


class DocumentsNotFoundError(Exception):
    """None of the requested documents exist for the caller."""

    def __init__(self, document_ids: list[str]) -> None:
        self.document_ids = document_ids
        super().__init__("No documents found")


@dataclass
class BatchVerifyResult:
    """Outcome of a batch verification.

    ``success`` is True when at least one document went through;
    ``error`` carries the failure summary (or the reason nothing was
    dispatched).
    """

    success: bool
    error: str | None = None
    succeeded: int = 0
    failed: int = 0


def document_update_fields(document: Document, result: ClassificationResult) -> dict[str, Any]:
    """Columns written back onto a document after classification.

    Existing metadata keys are kept.
    """
    return {
        "document_type": result.document_type,
        "country_of_origin": result.country,
        "document_category": result.document_category.value,
        "status": result.status.value,
        "metadata": {
            **document.metadata,
            "confidence_score": result.confidence_score,
            "classification_timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }


class BatchVerifier:
    """Re-classifies documents of the signed-in user.

    Usage:
        verifier = BatchVerifier(supabase, classifier, stagger_seconds=1.0)
        outcome = await verifier.batch_verify(["doc-1", "doc-2"])
    """

    def __init__(
        self,
        store: SupabaseClient,
        classifier: ClassificationClient,
        *,
        stagger_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._classifier = classifier
        self._stagger_seconds = stagger_seconds
        self._sleep = sleep

    async def batch_verify(self, document_ids: Iterable[str]) -> BatchVerifyResult:
        """Classify every listed document owned by the caller.

        Args:
            document_ids: IDs to verify; IDs of other users are ignored.

        Returns:
            BatchVerifyResult.  Per-document failures are counted, not
            raised; any failure before dispatch (auth, lookup, unreadable
            rows, no documents) yields ``success=False`` with its message.
        """
        ids = list(document_ids)
        try:
            user = await self._store.get_current_user()
            documents = await self._store.get_documents(ids, owner_id=user.id)
            if not documents:
                raise DocumentsNotFoundError(ids)
        except Exception as exc:
            logger.error("Batch verify error: %s", exc)
            return BatchVerifyResult(success=False, error=str(exc))

        logger.info("Batch verify start: %d document(s)", len(documents))

        outcomes = await asyncio.gather(
            *(
                self._verify_document(document, index, user)
                for index, document in enumerate(documents)
            ),
            return_exceptions=True,
        )

        failed = sum(1 for outcome in outcomes if isinstance(outcome, BaseException))
        succeeded = len(outcomes) - failed

        logger.info("Batch verify done: %d succeeded, %d failed", succeeded, failed)
        return BatchVerifyResult(
            success=succeeded > 0,
            error=f"{failed} documents failed to process" if failed > 0 else None,
            succeeded=succeeded,
            failed=failed,
        )

    async def _verify_document(
        self,
        document: Document,
        index: int,
        user: User,
    ) -> ClassificationResult:
        """Classify one document after its stagger delay and persist the result."""
        await self._sleep(index * self._stagger_seconds)

        try:
            cached = self._classifier.cached_result(document.public_url)
            if cached is not None:
                logger.debug("Batch verify: cached result for document %s", document.id)
                return cached

            result = await self._classifier.classify(document.public_url)

            await self._store.update_document(document.id, document_update_fields(document, result))
            await self._store.insert_activity(
                document.id,
                user.id,
                ACTIVITY_BATCH_VERIFY,
                {
                    "old_status": document.status,
                    "new_status": result.status.value,
                    "classification_result": result.model_dump(mode="json"),
                },
            )
            return result
        except Exception as exc:
            logger.error("Error processing document %s: %s", document.id, exc)
            raise

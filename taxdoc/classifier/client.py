"""Classification client: file URL in, ClassificationResult out.

Flow per call:

 1. Reject if a classification for the same URL is already running
 2. Serve a non-expired cached result
 3. Download the file and encode it as a data URL
 4. Build the request (PDF inline with OCR plugin, or image reference)
 5. Ask the model
 6. Parse → validate against the taxonomy → derive status
 7. Cache the result for the URL

The in-flight marker for the URL is cleared on every exit path of a call
that set it.  Persisting the result onto the document record is left to
the caller.
"""

from __future__ import annotations

import time
from typing import Any, Protocol

from taxdoc.cache import ExpiringCache, InFlightGuard
from taxdoc.classifier.models import (
    ClassificationResult,
    ClassificationStatus,
    ResponseSource,
)
from taxdoc.classifier.parser import parse_model_output
from taxdoc.classifier.prompts import (
    CLASSIFICATION_TITLE,
    CLASSIFY_IMAGE_INSTRUCTION,
    CLASSIFY_PDF_INSTRUCTION,
    build_classification_prompt,
)
from taxdoc.classifier.status import determine_status
from taxdoc.classifier.validator import validate_candidate
from taxdoc.llm.attachments import (
    FileKind,
    detect_file_kind,
    file_part,
    filename_from_url,
    image_part,
    plugins_for,
    text_part,
    to_data_url,
)
from taxdoc.llm.client import ChatCompletionsClient
from taxdoc.logging_config import get_logger
from taxdoc.taxonomy import TAX_TAXONOMY, Taxonomy

logger = get_logger("classifier")

DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_TOKENS = 1000


class ClassificationInProgressError(Exception):
    """A classification for this file URL is already outstanding."""

    def __init__(self, file_url: str) -> None:
        self.file_url = file_url
        super().__init__(f"Classification already in progress for {file_url}")


class FileSource(Protocol):
    async def fetch_as_bytes(self, url: str) -> bytes: ...


def interpret_model_output(
    raw_text: str,
    taxonomy: Taxonomy = TAX_TAXONOMY,
) -> ClassificationResult:
    """Parse, validate and grade a model answer.

    STRUCTURED answers are trusted and marked classified without
    validation; TEXT answers are validated and graded by the status
    policy; UNPARSEABLE answers become non_classified.
    """
    parsed = parse_model_output(raw_text)

    if parsed.source is ResponseSource.UNPARSEABLE:
        return ClassificationResult.unclassified()

    if parsed.source is ResponseSource.STRUCTURED:
        return ClassificationResult.from_candidate(
            parsed.candidate, ClassificationStatus.CLASSIFIED
        )

    candidate = validate_candidate(parsed.candidate, taxonomy)
    return ClassificationResult.from_candidate(candidate, determine_status(candidate))


class ClassificationClient:
    """Classifies stored files with a vision model.

    Cache and in-flight guard are injected so one instance of each can be
    shared per process (see taxdoc.services).

    Usage:
        client = ClassificationClient(supabase, model_client, model="x-ai/grok-2-vision-1212",
                                      cache=ExpiringCache(300), guard=InFlightGuard())
        result = await client.classify(document.public_url)
    """

    def __init__(
        self,
        files: FileSource,
        model_client: ChatCompletionsClient,
        *,
        model: str,
        cache: ExpiringCache[ClassificationResult],
        guard: InFlightGuard,
        taxonomy: Taxonomy = TAX_TAXONOMY,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        self._files = files
        self._model_client = model_client
        self._model = model
        self._cache = cache
        self._guard = guard
        self._taxonomy = taxonomy
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._system_prompt = build_classification_prompt(taxonomy)

    @property
    def is_classifying(self) -> bool:
        return bool(self._guard.active_keys)

    # --- Main method ---

    async def classify(self, file_url: str) -> ClassificationResult:
        """Classify the file behind ``file_url``.

        Raises:
            ClassificationInProgressError: same URL already being classified.
            ModelNotConfiguredError: no model API key.
            FileNotAccessibleError: the file could not be downloaded.
            ModelAPIError: non-success answer from the model endpoint.
            ModelResponseError: success answer without content.
        """
        # Check and mark without an await in between
        if self._guard.is_in_flight(file_url):
            logger.warning("Classification already in progress: %s", file_url)
            raise ClassificationInProgressError(file_url)

        cached = self._cache.get(file_url)
        if cached is not None:
            logger.debug("Classification cache hit: %s", file_url)
            return cached

        self._guard.mark(file_url)
        start_time = time.monotonic()
        try:
            self._model_client.require_configured()

            filename = filename_from_url(file_url)
            kind = detect_file_kind(filename)
            logger.info("Classification start: %s (%s)", filename, kind.value)

            content = await self._files.fetch_as_bytes(file_url)
            data_url = to_data_url(content, filename)

            answer = await self._model_client.complete(
                model=self._model,
                messages=self._build_messages(filename, kind, data_url),
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                title=CLASSIFICATION_TITLE,
                response_format={"type": "text"},
                plugins=plugins_for(kind),
            )

            result = interpret_model_output(answer, self._taxonomy)
            self._cache.set(file_url, result)
            logger.info(
                "Classification done: %s → %s (country=%s, type=%s, confidence=%.2f), %.1fs",
                filename,
                result.status.value,
                result.country,
                result.document_type,
                result.confidence_score,
                time.monotonic() - start_time,
            )
            return result
        except Exception as exc:
            logger.error("Error classifying document %s: %s", file_url, exc)
            raise
        finally:
            self._guard.release(file_url)

    # --- Cache maintenance ---

    def cached_result(self, file_url: str) -> ClassificationResult | None:
        """Non-expired cached result for a URL, without classifying."""
        return self._cache.get(file_url)

    def clear_cache(self, file_url: str) -> None:
        self._cache.delete(file_url)

    def clear_all_cache(self) -> None:
        self._cache.clear()

    # --- Request construction ---

    def _build_messages(self, filename: str, kind: FileKind, data_url: str) -> list[dict[str, Any]]:
        if kind is FileKind.PDF:
            user_content = [
                text_part(CLASSIFY_PDF_INSTRUCTION),
                file_part(filename, data_url),
            ]
        else:
            user_content = [
                text_part(CLASSIFY_IMAGE_INSTRUCTION),
                image_part(data_url),
            ]
        return [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": user_content},
        ]

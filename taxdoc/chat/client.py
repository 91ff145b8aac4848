"""Document chat: ask a vision model questions about one document.

Each exchange is appended to the document's transcript (document_chat
table) as a user message followed by the model's reply.  Transcripts are
cached per document for a short time and mirrored in an in-memory list
that always holds the latest known transcript.
"""

from __future__ import annotations

from typing import Any

from taxdoc.cache import ExpiringCache, InFlightGuard
from taxdoc.classifier.prompts import CHAT_SYSTEM_PROMPT, CHAT_TITLE, build_chat_question
from taxdoc.llm.attachments import (
    FileKind,
    file_part,
    image_part,
    plugins_for,
    text_part,
    to_data_url,
)
from taxdoc.llm.client import ChatCompletionsClient
from taxdoc.logging_config import get_logger
from taxdoc.supabase.client import SupabaseClient
from taxdoc.supabase.models import ChatMessage, DocumentContext

logger = get_logger("chat")

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000


class DocumentChatClient:
    """Per-document Q&A with transcript persistence.

    Usage:
        chat = DocumentChatClient(supabase, model_client, model=..., cache=ExpiringCache(60),
                                  guard=InFlightGuard())
        question, answer = await chat.send_message(doc.id, "What year is this?", context)
        history = await chat.get_chat_history(doc.id)
    """

    def __init__(
        self,
        store: SupabaseClient,
        model_client: ChatCompletionsClient,
        *,
        model: str,
        cache: ExpiringCache[list[ChatMessage]],
        guard: InFlightGuard,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        self._store = store
        self._model_client = model_client
        self._model = model
        self._cache = cache
        self._guard = guard
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._messages: dict[str, list[ChatMessage]] = {}

    def messages(self, document_id: str) -> list[ChatMessage]:
        """In-memory transcript of a document (copy)."""
        return list(self._messages.get(document_id, []))

    async def send_message(
        self,
        document_id: str,
        message: str,
        document_context: DocumentContext,
    ) -> tuple[ChatMessage, ChatMessage]:
        """Ask a question about a document and record the exchange.

        Args:
            document_id: Document the transcript belongs to.
            message: The user's question.
            document_context: URL, MIME type and name of the document.

        Returns:
            (user message, model reply) as stored.

        Raises:
            ModelNotConfiguredError: no model API key.
            SupabaseAuthError: no signed-in user.
            FileNotAccessibleError: the document could not be downloaded.
            ModelAPIError / ModelResponseError: model call failed.
            SupabaseError: storing a message failed.
        """
        try:
            self._model_client.require_configured()
            user = await self._store.get_current_user()

            content = await self._store.fetch_as_bytes(document_context.url)
            kind = FileKind.PDF if document_context.is_pdf else FileKind.IMAGE

            answer = await self._model_client.complete(
                model=self._model,
                messages=self._build_messages(message, document_context, kind, content),
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                title=CHAT_TITLE,
                plugins=plugins_for(kind),
            )

            user_message = await self._store.insert_chat_message(
                document_id,
                user.id,
                message,
                is_user=True,
                document_context=document_context,
            )
            ai_message = await self._store.insert_chat_message(
                document_id,
                user.id,
                answer,
                is_user=False,
            )
        except Exception as exc:
            logger.error("Error sending message for document %s: %s", document_id, exc)
            raise

        # Cache and in-memory list change together, with no await in between
        loaded = document_id in self._messages
        transcript = [*self._messages.get(document_id, []), user_message, ai_message]
        if loaded:
            self._cache.set(document_id, transcript)
        else:
            # Earlier messages were never loaded; the next history call reads the table
            self._cache.delete(document_id)
        self._messages[document_id] = transcript

        logger.info("Chat exchange stored for document %s (%d messages)", document_id, len(transcript))
        return user_message, ai_message

    async def get_chat_history(self, document_id: str) -> list[ChatMessage]:
        """Transcript of a document, oldest first.

        A second call for the same document while one is loading returns
        the in-memory list instead of querying again.
        """
        if self._guard.is_in_flight(document_id):
            logger.debug("Chat history already loading for %s", document_id)
            return self.messages(document_id)

        cached = self._cache.get(document_id)
        if cached is not None:
            self._messages[document_id] = cached
            return list(cached)

        self._guard.mark(document_id)
        try:
            transcript = await self._store.get_chat_messages(document_id)
            self._cache.set(document_id, transcript)
            self._messages[document_id] = transcript
            return list(transcript)
        except Exception as exc:
            logger.error("Error fetching chat history for %s: %s", document_id, exc)
            raise
        finally:
            self._guard.release(document_id)

    def clear_cache(self, document_id: str) -> None:
        self._cache.delete(document_id)

    def clear_all_cache(self) -> None:
        self._cache.clear()

    # --- Request construction ---

    @staticmethod
    def _build_messages(
        question: str,
        context: DocumentContext,
        kind: FileKind,
        content: bytes,
    ) -> list[dict[str, Any]]:
        parts: list[dict[str, Any]] = [text_part(build_chat_question(question))]
        if kind is FileKind.PDF:
            parts.append(file_part(context.name, to_data_url(content, context.name, context.type or None)))
        else:
            # Images are referenced by their public URL
            parts.append(image_part(context.url))
        return [
            {"role": "system", "content": CHAT_SYSTEM_PROMPT},
            {"role": "user", "content": parts},
        ]

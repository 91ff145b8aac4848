"""Long-lived service objects of the classifier.

Builds the HTTP clients, caches, in-flight guards and the three
user-facing services once per process and hands them out by reference.
Nothing here is module-level state; whoever enters create_services() owns
the container for as long as the context is open.

Lifecycle:
1. create_services()  – clients built, caches sized from Settings
2. ... services used ...
3. exit               – HTTP clients closed
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator

import httpx

from taxdoc import __version__
from taxdoc.cache import ExpiringCache, InFlightGuard
from taxdoc.chat.client import DocumentChatClient
from taxdoc.classifier.batch import BatchVerifier
from taxdoc.classifier.client import ClassificationClient
from taxdoc.classifier.models import ClassificationResult
from taxdoc.config import Settings
from taxdoc.health import check_api_key_present, check_storage_reachable
from taxdoc.llm.client import ChatCompletionsClient
from taxdoc.logging_config import get_logger
from taxdoc.supabase.client import SupabaseClient
from taxdoc.supabase.models import ChatMessage

logger = get_logger("app")


@dataclass
class Services:
    """Container for everything a request handler needs."""

    settings: Settings
    supabase: SupabaseClient
    model_client: ChatCompletionsClient
    classification_cache: ExpiringCache[ClassificationResult]
    classification_guard: InFlightGuard
    chat_cache: ExpiringCache[list[ChatMessage]]
    chat_guard: InFlightGuard
    classifier: ClassificationClient
    batch_verifier: BatchVerifier
    chat: DocumentChatClient

    async def health_check(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> dict[str, Any]:
        """Status of each subsystem plus an overall verdict.

        healthy: storage reachable and API key present
        degraded: one of them missing
        """
        storage = await check_storage_reachable(self.settings, transport)
        api_key = check_api_key_present(self.settings)
        all_ok = storage["status"] == "ok" and api_key["status"] == "ok"
        return {
            "status": "healthy" if all_ok else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "checks": {
                "storage": storage,
                "openrouter_api_key": api_key,
                "classifications_in_flight": len(self.classification_guard.active_keys),
            },
        }


@asynccontextmanager
async def create_services(
    settings: Settings,
    *,
    access_token: str | None = None,
    supabase_transport: httpx.AsyncBaseTransport | None = None,
    model_transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[Services]:
    """Build all services for one process and close them afterwards.

    Args:
        settings: Loaded configuration.
        access_token: Session JWT of the signed-in user, if any.
        supabase_transport / model_transport: httpx transports (tests).
    """
    supabase = SupabaseClient(
        settings.supabase_url,
        settings.supabase_anon_key,
        access_token=access_token,
        bucket=settings.storage_bucket,
        transport=supabase_transport,
    )
    model_client = ChatCompletionsClient(
        settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        referer=settings.app_origin,
        timeout_seconds=settings.model_timeout_seconds,
        transport=model_transport,
    )

    classification_cache: ExpiringCache[ClassificationResult] = ExpiringCache(
        settings.classification_cache_ttl_seconds, name="classification-cache"
    )
    classification_guard = InFlightGuard(name="classification")
    chat_cache: ExpiringCache[list[ChatMessage]] = ExpiringCache(
        settings.chat_cache_ttl_seconds, name="chat-cache"
    )
    chat_guard = InFlightGuard(name="chat-history")

    classifier = ClassificationClient(
        supabase,
        model_client,
        model=settings.classification_model,
        cache=classification_cache,
        guard=classification_guard,
    )

    async with supabase, model_client:
        services = Services(
            settings=settings,
            supabase=supabase,
            model_client=model_client,
            classification_cache=classification_cache,
            classification_guard=classification_guard,
            chat_cache=chat_cache,
            chat_guard=chat_guard,
            classifier=classifier,
            batch_verifier=BatchVerifier(
                supabase,
                classifier,
                stagger_seconds=settings.batch_stagger_seconds,
            ),
            chat=DocumentChatClient(
                supabase,
                model_client,
                model=settings.chat_model,
                cache=chat_cache,
                guard=chat_guard,
            ),
        )
        logger.info(
            "Services ready: classification_model=%s, chat_model=%s, api_key=%s",
            settings.classification_model,
            settings.chat_model,
            "set" if settings.has_model_credentials else "missing",
        )
        yield services
    logger.info("Services closed")

"""
Shared pytest fixtures and fakes.

Async code is driven with ``asyncio.run`` inside plain test functions.
HTTP collaborators use ``httpx.MockTransport``; the storage and table
collaborator is replaced by small in-memory fakes where a test only cares
about the pipeline around it.
"""

from __future__ import annotations

import asyncio
import json
import os
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from taxdoc.config import Settings
from taxdoc.supabase.exceptions import FileNotAccessibleError, SupabaseAuthError
from taxdoc.supabase.models import ChatMessage, Document, DocumentActivity, User

PDF_URL = "https://proj.supabase.co/storage/v1/object/public/docu/user-1/abc-1700000000000.pdf"
PNG_URL = "https://proj.supabase.co/storage/v1/object/public/docu/user-1/scan.png"

INDIA_PAN_ANSWER = (
    "Country of Origin: India\n"
    "Document Type: PAN Card\n"
    "Document Category: CompanyDocuments\n"
    "Confidence Score: 0.92"
)


@pytest.fixture
def settings(mocker):
    mocker.patch.dict(
        os.environ,
        {
            "SUPABASE_URL": "https://proj.supabase.co/",
            "SUPABASE_ANON_KEY": "anon-key",
            "OPENROUTER_API_KEY": "sk-or-test-key",
        },
        clear=True,
    )
    return Settings(_env_file=None)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def completion(content):
    """Chat-completions success body."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class ModelEndpoint:
    """MockTransport handler recording every chat-completions request."""

    def __init__(self, content: str = INDIA_PAN_ANSWER, status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": {"message": "boom"}})
        return httpx.Response(200, json=completion(self.content))

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class FakeStore:
    """In-memory stand-in for SupabaseClient (storage, tables, auth)."""

    def __init__(self, user: User | None = None) -> None:
        self.user = user if user is not None else User(id="user-1", email="a@example.com")
        self.files: dict[str, bytes] = {
            PDF_URL: b"%PDF-1.7 fake",
            PNG_URL: b"\x89PNG fake",
        }
        self.documents: dict[str, Document] = {}
        self.updates: list[tuple[str, dict]] = []
        self.activities: list[DocumentActivity] = []
        self.chat_rows: list[ChatMessage] = []
        self.fetch_calls: list[str] = []
        self.chat_queries = 0
        self.chat_gate: asyncio.Event | None = None
        self._next_id = 1
        self._created = datetime(2024, 1, 1, tzinfo=timezone.utc)

    async def get_current_user(self) -> User:
        if self.user is None:
            raise SupabaseAuthError("Not authenticated: no access token set")
        return self.user

    async def fetch_as_bytes(self, url: str) -> bytes:
        self.fetch_calls.append(url)
        if url not in self.files:
            raise FileNotAccessibleError(url, status_code=404)
        return self.files[url]

    async def get_documents(self, document_ids, *, owner_id):
        return [
            d for d in self.documents.values()
            if d.id in document_ids and d.user_id == owner_id
        ]

    async def update_document(self, document_id, fields):
        self.updates.append((document_id, fields))
        return self.documents[document_id].model_copy(update=fields)

    async def insert_activity(self, document_id, user_id, activity_type, details):
        activity = DocumentActivity(
            document_id=document_id,
            user_id=user_id,
            activity_type=activity_type,
            activity_details=details,
        )
        self.activities.append(activity)
        return activity

    async def get_chat_messages(self, document_id):
        self.chat_queries += 1
        if self.chat_gate is not None:
            await self.chat_gate.wait()
        return [m for m in self.chat_rows if m.document_id == document_id]

    async def insert_chat_message(self, document_id, user_id, message, *, is_user, document_context=None):
        row = ChatMessage(
            id=f"msg-{self._next_id}",
            document_id=document_id,
            user_id=user_id,
            message=message,
            is_user=is_user,
            created_at=self._created + timedelta(seconds=self._next_id),
            document_context=document_context,
        )
        self._next_id += 1
        self.chat_rows.append(row)
        return row

    def add_document(self, doc_id: str, url: str, *, user_id: str = "user-1", status: str = "pending") -> Document:
        document = Document(
            id=doc_id,
            user_id=user_id,
            public_url=url,
            status=status,
            metadata={"companyName": "Acme"},
        )
        self.documents[doc_id] = document
        self.files.setdefault(url, b"%PDF-1.7 fake")
        return document


@pytest.fixture
def store():
    return FakeStore()

"""Asynchronous client for the Supabase backend.

Wraps all HTTP communication with the three Supabase services the
classifier relies on and offers typed methods for them:

- Storage (/storage/v1): download, upload, public URLs, delete, list
- PostgREST (/rest/v1):  documents, document_activities, document_chat
- Auth (/auth/v1):       the signed-in user

Features:
- httpx AsyncClient with connection pooling
- Specific exceptions per failure class (see exceptions.py)
- No automatic retries: a failure is surfaced once to the caller
"""

from __future__ import annotations

import mimetypes
import secrets
import time
from typing import Any

import httpx

from taxdoc.logging_config import get_logger
from taxdoc.supabase.exceptions import (
    FileNotAccessibleError,
    SupabaseAuthError,
    SupabaseConnectionError,
    SupabaseError,
    SupabaseNotFoundError,
    SupabaseServerError,
    SupabaseValidationError,
)
from taxdoc.supabase.models import (
    ChatMessage,
    Document,
    DocumentActivity,
    DocumentContext,
    StoredObject,
    UploadedFile,
    User,
)

logger = get_logger("supabase")

DEFAULT_TIMEOUT = httpx.Timeout(
    connect=10.0,
    read=30.0,
    write=10.0,
    pool=10.0,
)

# Downloads and uploads of large scans
TRANSFER_TIMEOUT = httpx.Timeout(
    connect=10.0,
    read=120.0,
    write=120.0,
    pool=10.0,
)

DOCUMENTS_TABLE = "documents"
ACTIVITIES_TABLE = "document_activities"
CHAT_TABLE = "document_chat"


def _in_filter(values: list[str]) -> str:
    """PostgREST ``in`` filter with quoted values."""
    quoted = ",".join('"' + v.replace('"', '\\"') + '"' for v in values)
    return f"in.({quoted})"


class SupabaseClient:
    """Asynchronous client for the Supabase REST APIs.

    Usage:
        async with SupabaseClient(url, anon_key, access_token=jwt) as client:
            user = await client.get_current_user()
            docs = await client.get_documents(["id-1"], owner_id=user.id)
            pdf = await client.fetch_as_bytes(docs[0].public_url)

    ``access_token`` is the session JWT of the signed-in user.  Without it
    requests run with the anon role and get_current_user() fails.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        access_token: str | None = None,
        bucket: str = "docu",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            base_url: Project URL without trailing slash
            api_key: Public anon key of the project
            access_token: Session JWT of the signed-in user (optional)
            bucket: Storage bucket for documents
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self._api_key = api_key
        self._access_token = access_token
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def __aenter__(self) -> SupabaseClient:
        """Create the httpx AsyncClient when entering the context."""
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=DEFAULT_TIMEOUT,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Close the httpx AsyncClient."""
        await self.close()

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    @property
    def http(self) -> httpx.AsyncClient:
        """The httpx client; raises if the context manager was not entered."""
        if self._http is None:
            raise SupabaseError(
                "SupabaseClient not initialised – use it as an async context manager: "
                "'async with SupabaseClient(url, key) as client:'"
            )
        return self._http

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def set_access_token(self, token: str | None) -> None:
        """Switch the session the client acts for (e.g. after sign-in)."""
        self._access_token = token

    # =========================================================================
    # HTTP base methods with error handling
    # =========================================================================

    def _auth_headers(self) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token or self._api_key}",
        }

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Raise a specific exception based on the HTTP status.

        Raises:
            SupabaseAuthError: on 401/403
            SupabaseError: on 404 (callers map to SupabaseNotFoundError)
            SupabaseValidationError: on 400
            SupabaseServerError: on 5xx
            SupabaseError: on anything else
        """
        if response.is_success:
            return

        status = response.status_code
        try:
            detail = response.json()
        except ValueError:
            detail = response.text[:500]

        if status in (401, 403):
            raise SupabaseAuthError(
                f"Authentication failed (HTTP {status}): {detail}",
                status_code=status,
            )
        if status == 404:
            raise SupabaseError(
                f"Resource not found (HTTP 404): {response.url}",
                status_code=404,
            )
        if status == 400:
            raise SupabaseValidationError(
                f"Invalid request (HTTP 400): {detail}",
                details=detail if isinstance(detail, dict) else {},
            )
        if status >= 500:
            raise SupabaseServerError(
                f"Server error (HTTP {status}): {detail}",
                status_code=status,
            )
        raise SupabaseError(
            f"Unexpected HTTP status {status}: {detail}",
            status_code=status,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> httpx.Response:
        """Run an authenticated HTTP request against the project.

        Raises:
            SupabaseConnectionError: on network errors
            SupabaseAuthError / SupabaseServerError / ...: via _raise_for_status
        """
        request_headers = self._auth_headers()
        if headers:
            request_headers.update(headers)
        try:
            response = await self.http.request(
                method,
                path,
                params=params,
                json=json_data,
                content=content,
                headers=request_headers,
                timeout=timeout or DEFAULT_TIMEOUT,
            )
        except httpx.TimeoutException as e:
            raise SupabaseConnectionError(f"Timeout on {method} {path}: {e}") from e
        except httpx.RequestError as e:
            raise SupabaseConnectionError(f"Connection error on {method} {path}: {e}") from e

        self._raise_for_status(response)
        return response

    async def _select(self, table: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        response = await self._request("GET", f"/rest/v1/{table}", params={"select": "*", **params})
        return response.json()

    async def _insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored (server defaults applied)."""
        response = await self._request(
            "POST",
            f"/rest/v1/{table}",
            json_data=row,
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            raise SupabaseError(f"Insert into {table} returned no row")
        return rows[0]

    # =========================================================================
    # Auth
    # =========================================================================

    async def get_current_user(self) -> User:
        """Return the signed-in user.

        Raises:
            SupabaseAuthError: if there is no session or it is invalid
        """
        if not self._access_token:
            raise SupabaseAuthError("Not authenticated: no access token set")
        response = await self._request("GET", "/auth/v1/user")
        return User.model_validate(response.json())

    # =========================================================================
    # Storage
    # =========================================================================

    async def fetch_as_bytes(self, url: str) -> bytes:
        """Download a file by its (public) URL.

        The URL may point anywhere, so no project credentials are sent.

        Raises:
            FileNotAccessibleError: on network failure or non-2xx status
        """
        try:
            response = await self.http.get(url, timeout=TRANSFER_TIMEOUT)
        except httpx.RequestError as e:
            raise FileNotAccessibleError(url, reason=str(e)) from e
        if not response.is_success:
            raise FileNotAccessibleError(url, status_code=response.status_code)
        logger.debug("Fetched %s (%d bytes)", url, len(response.content))
        return response.content

    def get_public_url(self, file_path: str) -> str:
        """Public URL of an object in the document bucket."""
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{file_path}"

    async def upload_file(
        self,
        user_id: str,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> UploadedFile:
        """Upload a file into the user's folder under a unique name.

        The stored name is ``<random>-<epoch ms>.<ext>``; the original
        filename only contributes its extension.
        """
        ext = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
        file_name = f"{secrets.token_hex(6)}-{int(time.time() * 1000)}.{ext}"
        file_path = f"{user_id}/{file_name}"
        mime = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"

        await self._request(
            "POST",
            f"/storage/v1/object/{self.bucket}/{file_path}",
            content=content,
            headers={"Content-Type": mime, "Cache-Control": "3600", "x-upsert": "false"},
            timeout=TRANSFER_TIMEOUT,
        )
        logger.info("Uploaded %s as %s (%d bytes)", filename, file_path, len(content))
        return UploadedFile(
            file_name=file_name,
            file_path=file_path,
            public_url=self.get_public_url(file_path),
        )

    async def delete_files(self, file_paths: list[str]) -> None:
        """Remove objects from the document bucket."""
        await self._request(
            "DELETE",
            f"/storage/v1/object/{self.bucket}",
            json_data={"prefixes": file_paths},
        )
        logger.info("Deleted %d file(s) from %s", len(file_paths), self.bucket)

    async def list_user_files(self, user_id: str) -> list[StoredObject]:
        """List the objects in the user's folder."""
        response = await self._request(
            "POST",
            f"/storage/v1/object/list/{self.bucket}",
            json_data={"prefix": user_id},
        )
        return [StoredObject.model_validate(item) for item in response.json()]

    # =========================================================================
    # Documents
    # =========================================================================

    async def get_documents(self, document_ids: list[str], *, owner_id: str) -> list[Document]:
        """Documents with the given IDs that belong to ``owner_id``.

        IDs owned by someone else are silently left out.
        """
        if not document_ids:
            return []
        rows = await self._select(
            DOCUMENTS_TABLE,
            {"id": _in_filter(document_ids), "user_id": f"eq.{owner_id}"},
        )
        return [Document.model_validate(row) for row in rows]

    async def update_document(self, document_id: str, fields: dict[str, Any]) -> Document:
        """Patch a document row (only the given fields change).

        Raises:
            SupabaseNotFoundError: if no row matched
        """
        response = await self._request(
            "PATCH",
            f"/rest/v1/{DOCUMENTS_TABLE}",
            params={"id": f"eq.{document_id}"},
            json_data=fields,
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            raise SupabaseNotFoundError("Document", document_id)
        return Document.model_validate(rows[0])

    async def insert_activity(
        self,
        document_id: str,
        user_id: str,
        activity_type: str,
        details: dict[str, Any],
    ) -> DocumentActivity:
        """Append an entry to the document activity log."""
        row = await self._insert(
            ACTIVITIES_TABLE,
            {
                "document_id": document_id,
                "user_id": user_id,
                "activity_type": activity_type,
                "activity_details": details,
            },
        )
        return DocumentActivity.model_validate(row)

    # =========================================================================
    # Chat transcript
    # =========================================================================

    async def get_chat_messages(self, document_id: str) -> list[ChatMessage]:
        """Full transcript of a document, oldest message first."""
        rows = await self._select(
            CHAT_TABLE,
            {"document_id": f"eq.{document_id}", "order": "created_at.asc"},
        )
        return [ChatMessage.model_validate(row) for row in rows]

    async def insert_chat_message(
        self,
        document_id: str,
        user_id: str,
        message: str,
        *,
        is_user: bool,
        document_context: DocumentContext | None = None,
    ) -> ChatMessage:
        """Append one message to a document transcript and return the stored row."""
        row: dict[str, Any] = {
            "document_id": document_id,
            "user_id": user_id,
            "message": message,
            "is_user": is_user,
        }
        if document_context is not None:
            row["document_context"] = document_context.model_dump()
        stored = await self._insert(CHAT_TABLE, row)
        return ChatMessage.model_validate(stored)

"""Supabase backend client package.

Public API:
    SupabaseClient – async HTTP client for storage, tables and auth
    Document, ChatMessage, User, ... – pydantic models

Exceptions:
    SupabaseError, SupabaseConnectionError, SupabaseAuthError, ...

Typical usage:
    from taxdoc.supabase import SupabaseClient

    async with SupabaseClient(url, anon_key, access_token=jwt) as client:
        user = await client.get_current_user()
        content = await client.fetch_as_bytes(public_url)
"""

from taxdoc.supabase.client import SupabaseClient
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

__all__ = [
    "SupabaseClient",
    # Models
    "ChatMessage",
    "Document",
    "DocumentActivity",
    "DocumentContext",
    "StoredObject",
    "UploadedFile",
    "User",
    # Exceptions
    "FileNotAccessibleError",
    "SupabaseAuthError",
    "SupabaseConnectionError",
    "SupabaseError",
    "SupabaseNotFoundError",
    "SupabaseServerError",
    "SupabaseValidationError",
]

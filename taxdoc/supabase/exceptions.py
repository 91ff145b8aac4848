"""Specific exceptions for the Supabase client.

Hierarchy:
    SupabaseError (base)
    ├── SupabaseConnectionError     – network error, timeout
    ├── SupabaseAuthError           – 401/403, no signed-in user
    ├── SupabaseNotFoundError       – 404, resource does not exist
    ├── SupabaseValidationError     – 400, invalid data sent
    ├── SupabaseServerError         – 5xx, server-side failure
    └── FileNotAccessibleError      – stored file could not be fetched
"""

from __future__ import annotations


class SupabaseError(Exception):
    """Base class for all Supabase client errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class SupabaseConnectionError(SupabaseError):
    """Network error: Supabase unreachable or timed out."""
    pass


class SupabaseAuthError(SupabaseError):
    """Not authenticated: token missing, invalid or expired (401/403)."""
    pass


class SupabaseNotFoundError(SupabaseError):
    """Resource not found (404)."""

    def __init__(self, resource_type: str, resource_id: int | str) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            f"{resource_type} with ID {resource_id} not found",
            status_code=404,
        )


class SupabaseValidationError(SupabaseError):
    """Invalid data sent to the API (400)."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, status_code=400)


class SupabaseServerError(SupabaseError):
    """Server-side error (5xx)."""
    pass


class FileNotAccessibleError(SupabaseError):
    """A stored file could not be downloaded (network failure or non-2xx)."""

    def __init__(self, url: str, status_code: int | None = None, reason: str = "") -> None:
        self.url = url
        detail = f" ({reason})" if reason else ""
        super().__init__(f"File not accessible: {url}{detail}", status_code=status_code)

"""Pydantic models for Supabase rows and auth objects.

Only the fields the classifier needs are modelled.  Unknown fields are
ignored via model_config so schema additions on the database side do not
break parsing.

Tables: documents, document_activities, document_chat.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Signed-in user as returned by /auth/v1/user."""
    model_config = ConfigDict(extra="ignore")

    id: str
    email: str | None = None


# =============================================================================
# Documents
# =============================================================================

class Document(BaseModel):
    """Row of the documents table.

    status lifecycle: pending → classified | pending_review | non_classified,
    or failed when processing broke.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    file_path: str = ""
    file_name: str = ""
    file_type: str = ""
    file_size: int = 0
    public_url: str
    preview_url: str | None = None
    status: str = "pending"
    country_of_origin: str | None = None
    document_type: str | None = None
    document_subtype: str | None = None
    document_category: str = "CompanyDocuments"
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DocumentActivity(BaseModel):
    """Row of the document_activities table (audit log)."""
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    document_id: str
    user_id: str
    activity_type: str
    activity_details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None


# =============================================================================
# Chat
# =============================================================================

class DocumentContext(BaseModel):
    """The document a chat question refers to."""
    model_config = ConfigDict(extra="ignore")

    url: str
    type: str = ""
    name: str = ""

    @property
    def is_pdf(self) -> bool:
        """True if the MIME type names a PDF."""
        return "pdf" in self.type.lower()


class ChatMessage(BaseModel):
    """Row of the document_chat table.  Transcripts are append-only."""
    model_config = ConfigDict(extra="ignore")

    id: str
    document_id: str
    user_id: str | None = None
    message: str
    is_user: bool
    created_at: datetime | None = None
    document_context: DocumentContext | None = None


# =============================================================================
# Storage
# =============================================================================

class UploadedFile(BaseModel):
    """Result of a storage upload."""

    file_name: str
    file_path: str
    public_url: str


class StoredObject(BaseModel):
    """Entry of a storage folder listing."""
    model_config = ConfigDict(extra="ignore")

    name: str
    id: str | None = None
    created_at: datetime | None = None
    metadata: dict[str, Any] | None = None

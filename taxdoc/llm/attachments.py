"""Multimodal message parts for document attachments.

A document travels to the model in one of two shapes:
- PDF: an inlined ``file`` part with a base64 data URL, plus the
  ``file-parser`` plugin so the endpoint extracts text and tables via OCR.
- Anything else: an ``image_url`` part (data URL or plain URL).
"""

from __future__ import annotations

import base64
import mimetypes
from enum import Enum
from typing import Any
from urllib.parse import unquote, urlsplit

PDF_PARSER_PLUGIN: dict[str, Any] = {
    "id": "file-parser",
    "pdf": {
        "engine": "mistral-ocr",
        "extract_text": True,
        "extract_tables": True,
    },
}


class FileKind(str, Enum):
    PDF = "pdf"
    IMAGE = "image"


def filename_from_url(url: str, default: str = "document.pdf") -> str:
    """Last path segment of a URL, ignoring query string and fragment."""
    path = urlsplit(url).path
    name = unquote(path.rsplit("/", 1)[-1]) if path else ""
    return name or default


def detect_file_kind(filename: str) -> FileKind:
    """PDF by extension; every other file is treated as a raster image."""
    if filename.lower().endswith(".pdf"):
        return FileKind.PDF
    return FileKind.IMAGE


def to_data_url(content: bytes, filename: str, mime: str | None = None) -> str:
    """Encode file bytes as ``data:<mime>;base64,<payload>``.

    The MIME type is guessed from the filename unless given.
    """
    mime = mime or mimetypes.guess_type(filename)[0] or "application/octet-stream"
    payload = base64.b64encode(content).decode("ascii")
    return f"data:{mime};base64,{payload}"


def file_part(filename: str, data_url: str) -> dict[str, Any]:
    return {"type": "file", "file": {"filename": filename, "file_data": data_url}}


def image_part(url: str) -> dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": url}}


def text_part(text: str) -> dict[str, Any]:
    return {"type": "text", "text": text}


def plugins_for(kind: FileKind) -> list[dict[str, Any]] | None:
    """Endpoint plugins needed for a file kind (None for images)."""
    if kind is FileKind.PDF:
        return [PDF_PARSER_PLUGIN]
    return None

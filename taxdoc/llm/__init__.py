"""Chat-completions client for vision-capable models.

Typical usage:
    from taxdoc.llm import ChatCompletionsClient

    async with ChatCompletionsClient(api_key=key) as client:
        text = await client.complete(model=..., messages=[...], ...)
"""

from taxdoc.llm.attachments import (
    PDF_PARSER_PLUGIN,
    FileKind,
    detect_file_kind,
    file_part,
    filename_from_url,
    image_part,
    plugins_for,
    text_part,
    to_data_url,
)
from taxdoc.llm.client import (
    ChatCompletionsClient,
    ModelAPIError,
    ModelError,
    ModelNotConfiguredError,
    ModelResponseError,
)

__all__ = [
    "ChatCompletionsClient",
    # Exceptions
    "ModelError",
    "ModelNotConfiguredError",
    "ModelAPIError",
    "ModelResponseError",
    # Attachments
    "FileKind",
    "PDF_PARSER_PLUGIN",
    "detect_file_kind",
    "file_part",
    "filename_from_url",
    "image_part",
    "plugins_for",
    "text_part",
    "to_data_url",
]

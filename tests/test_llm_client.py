import asyncio
import json

import httpx
import pytest

from taxdoc.llm.attachments import (
    FileKind,
    detect_file_kind,
    filename_from_url,
    plugins_for,
    to_data_url,
)
from taxdoc.llm.client import (
    ChatCompletionsClient,
    ModelAPIError,
    ModelNotConfiguredError,
    ModelResponseError,
)

from conftest import completion

MESSAGES = [{"role": "user", "content": "hi"}]


def call(handler, *, api_key="sk-or-test-key", **kwargs):
    async def scenario():
        async with ChatCompletionsClient(
            api_key,
            base_url="https://openrouter.test/api/v1/",
            referer="https://app.example.com",
            transport=httpx.MockTransport(handler),
        ) as client:
            return await client.complete(
                model="some/model",
                messages=MESSAGES,
                temperature=0.2,
                max_tokens=50,
                title="Test Title",
                **kwargs,
            )

    return asyncio.run(scenario())


def test_complete_returns_content_and_sends_headers():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=completion("hello"))

    assert call(handler) == "hello"

    request = seen[0]
    assert str(request.url) == "https://openrouter.test/api/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-or-test-key"
    assert request.headers["HTTP-Referer"] == "https://app.example.com"
    assert request.headers["X-Title"] == "Test Title"
    body = json.loads(request.content)
    assert body == {"model": "some/model", "messages": MESSAGES, "temperature": 0.2, "max_tokens": 50}


def test_complete_includes_optional_fields_when_given():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=completion("ok"))

    call(handler, response_format={"type": "text"}, plugins=[{"id": "file-parser"}])

    assert seen[0]["response_format"] == {"type": "text"}
    assert seen[0]["plugins"] == [{"id": "file-parser"}]


@pytest.mark.parametrize("status", [400, 401, 429, 500, 503])
def test_complete_non_success_status(status):
    def handler(request):
        return httpx.Response(status, json={"error": {"message": "nope"}})

    with pytest.raises(ModelAPIError) as excinfo:
        call(handler)

    assert excinfo.value.status_code == status
    assert str(excinfo.value).startswith(f"OpenRouter API error: {status}")


def test_complete_connection_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ModelAPIError) as excinfo:
        call(handler)

    assert excinfo.value.status_code is None


def test_complete_without_api_key_sends_nothing():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=completion("x"))

    with pytest.raises(ModelNotConfiguredError):
        call(handler, api_key=None)
    assert seen == []


@pytest.mark.parametrize(
    "body",
    [
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": None}}]},
        {"choices": [{"message": {"content": ""}}]},
        {"error": "weird"},
    ],
)
def test_complete_missing_answer_field(body):
    def handler(request):
        return httpx.Response(200, json=body)

    with pytest.raises(ModelResponseError, match="Invalid response from OpenRouter API"):
        call(handler)


def test_complete_non_json_body():
    def handler(request):
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(ModelResponseError) as excinfo:
        call(handler)
    assert "gateway" in excinfo.value.raw_response


# --- attachments ---


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://x.test/docu/u/abc-1.pdf", "abc-1.pdf"),
        ("https://x.test/docu/u/my%20scan.PNG?token=1#p", "my scan.PNG"),
        ("https://x.test/", "document.pdf"),
    ],
)
def test_filename_from_url(url, expected):
    assert filename_from_url(url) == expected


def test_detect_file_kind():
    assert detect_file_kind("A.PDF") is FileKind.PDF
    assert detect_file_kind("scan.jpeg") is FileKind.IMAGE
    assert detect_file_kind("noext") is FileKind.IMAGE


def test_to_data_url():
    assert to_data_url(b"abc", "x.png") == "data:image/png;base64,YWJj"
    assert to_data_url(b"abc", "x.unknownext") == "data:application/octet-stream;base64,YWJj"
    assert to_data_url(b"abc", "x", "application/pdf").startswith("data:application/pdf;")


def test_plugins_for():
    assert plugins_for(FileKind.PDF)[0]["pdf"]["engine"] == "mistral-ocr"
    assert plugins_for(FileKind.IMAGE) is None

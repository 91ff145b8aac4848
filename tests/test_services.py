import asyncio
import json

import httpx

from taxdoc.classifier.models import ClassificationStatus
from taxdoc.services import create_services

from conftest import PDF_URL, ModelEndpoint


class SupabaseBackend:
    """MockTransport handler for the Supabase endpoints used end to end."""

    def __init__(self, storage_status=200):
        self.storage_status = storage_status
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/storage/v1/object/public/"):
            return httpx.Response(200, content=b"%PDF-1.7 fake")
        if path.startswith("/storage/v1/bucket/"):
            return httpx.Response(self.storage_status, json={"id": "docu"})
        if path == "/auth/v1/user":
            return httpx.Response(200, json={"id": "user-1"})
        if path == "/rest/v1/documents" and request.method == "GET":
            return httpx.Response(
                200,
                json=[{"id": "d1", "user_id": "user-1", "public_url": PDF_URL, "status": "pending"}],
            )
        if path == "/rest/v1/documents" and request.method == "PATCH":
            fields = json.loads(request.content)
            return httpx.Response(
                200,
                json=[{"id": "d1", "user_id": "user-1", "public_url": PDF_URL, **fields}],
            )
        if path == "/rest/v1/document_activities":
            return httpx.Response(201, json=[{**json.loads(request.content), "id": "a1"}])
        return httpx.Response(404)


def test_services_batch_verify_end_to_end(settings):
    backend = SupabaseBackend()
    endpoint = ModelEndpoint()

    async def scenario():
        async with create_services(
            settings,
            access_token="user-jwt",
            supabase_transport=httpx.MockTransport(backend),
            model_transport=endpoint.transport(),
        ) as services:
            outcome = await services.batch_verifier.batch_verify(["d1"])
            cached = services.classifier.cached_result(PDF_URL)
        return outcome, cached

    outcome, cached = asyncio.run(scenario())

    assert outcome.success is True
    assert outcome.error is None
    assert cached.status is ClassificationStatus.CLASSIFIED
    assert len(endpoint.requests) == 1
    methods = [(r.method, r.url.path) for r in backend.requests]
    assert ("PATCH", "/rest/v1/documents") in methods
    assert ("POST", "/rest/v1/document_activities") in methods


def test_services_health_check(settings):
    backend = SupabaseBackend()

    async def scenario():
        async with create_services(settings, supabase_transport=httpx.MockTransport(backend)) as services:
            return await services.health_check(httpx.MockTransport(backend))

    health = asyncio.run(scenario())

    assert health["status"] == "healthy"
    assert health["checks"]["storage"]["status"] == "ok"
    assert health["checks"]["openrouter_api_key"]["key_prefix"] == "sk-or-te..."
    assert health["checks"]["classifications_in_flight"] == 0


def test_services_health_degraded_without_storage(settings):
    backend = SupabaseBackend(storage_status=503)

    async def scenario():
        async with create_services(settings) as services:
            return await services.health_check(httpx.MockTransport(backend))

    health = asyncio.run(scenario())

    assert health["status"] == "degraded"
    assert health["checks"]["storage"] == {
        "status": "error",
        "url": "https://proj.supabase.co",
        "http_status": 503,
    }


def test_services_health_unreachable_storage(settings):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async def scenario():
        async with create_services(settings) as services:
            return await services.health_check(httpx.MockTransport(handler))

    health = asyncio.run(scenario())

    assert health["status"] == "degraded"
    assert health["checks"]["storage"]["status"] == "unreachable"


def test_services_batch_verify_unreadable_document_row(settings):
    def handler(request):
        if request.url.path == "/auth/v1/user":
            return httpx.Response(200, json={"id": "user-1"})
        if request.url.path == "/rest/v1/documents":
            return httpx.Response(200, json=[{"id": "d1", "user_id": "user-1", "public_url": None}])
        return httpx.Response(404)

    endpoint = ModelEndpoint()

    async def scenario():
        async with create_services(
            settings,
            access_token="user-jwt",
            supabase_transport=httpx.MockTransport(handler),
            model_transport=endpoint.transport(),
        ) as services:
            return await services.batch_verifier.batch_verify(["d1"])

    outcome = asyncio.run(scenario())

    assert outcome.success is False
    assert "public_url" in outcome.error
    assert endpoint.requests == []

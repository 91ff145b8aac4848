"""Health-check functions for subsystem checks.

Side-effect free; aggregated by Services.health_check().
"""

from __future__ import annotations

from typing import Any

import httpx

from taxdoc.config import Settings


async def check_storage_reachable(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """Check whether the Supabase storage API answers.

    Not a hard failure: classification of cached results and chat history
    from cache keep working while storage is down.
    """
    try:
        async with httpx.AsyncClient(timeout=5.0, follow_redirects=True, transport=transport) as client:
            response = await client.get(
                f"{settings.supabase_url}/storage/v1/bucket/{settings.storage_bucket}",
                headers={
                    "apikey": settings.supabase_anon_key,
                    "Authorization": f"Bearer {settings.supabase_anon_key}",
                },
            )
            if response.status_code < 500:
                return {"status": "ok", "url": settings.supabase_url}
            return {
                "status": "error",
                "url": settings.supabase_url,
                "http_status": response.status_code,
            }
    except httpx.RequestError as e:
        return {"status": "unreachable", "url": settings.supabase_url, "error": str(e)}


def check_api_key_present(settings: Settings) -> dict[str, Any]:
    """Check whether the model API key is configured.

    Only checks presence, not validity (that would cost a request).
    """
    if settings.has_model_credentials:
        return {"status": "ok", "key_prefix": settings.openrouter_api_key[:8] + "..."}
    return {"status": "not_configured"}

"""
spotlight_api/core/http_client.py
Shared async httpx client.
  • rest_client() → client for the PostgREST endpoint (apikey headers baked in)
"""

import httpx
from spotlight_api.core.config import REST_HEADERS, REST_URL

_rest_client: httpx.AsyncClient | None = None

_LIMITS  = httpx.Limits(max_connections=10, max_keepalive_connections=5)
_TIMEOUT = httpx.Timeout(30.0, connect=15.0)


def rest_client() -> httpx.AsyncClient:
    global _rest_client
    if _rest_client is None or _rest_client.is_closed:
        _rest_client = httpx.AsyncClient(
            base_url=REST_URL,
            headers=REST_HEADERS,
            timeout=_TIMEOUT,
            follow_redirects=True,
            limits=_LIMITS,
        )
    return _rest_client


async def close_all() -> None:
    global _rest_client
    if _rest_client and not _rest_client.is_closed:
        await _rest_client.aclose()
    _rest_client = None

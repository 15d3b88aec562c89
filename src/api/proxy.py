"""Pass-through proxy to the chat backend.

Forwards GET, POST and DELETE calls to http://{host}/{endpoint} so the
browser-facing app can reach a backend on another origin.
"""

import logging
from typing import Any

import httpx
from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse

from src.api.dependencies import get_upstream_transport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proxy", tags=["proxy"])

POST_TIMEOUT = 15.0
DEFAULT_TIMEOUT = 30.0


def _missing_params() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Missing host or endpoint parameters"},
    )


def _json_or_empty(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return {}


def _error_response(
    method: str,
    endpoint: str,
    error: httpx.HTTPError,
    include_body: bool = False,
) -> JSONResponse:
    """Translate an upstream failure into the proxy's error body."""
    logger.error(f"Proxy error for {method} {endpoint}: {error}")

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    details = str(error) or error.__class__.__name__
    upstream_body: Any = {}

    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        upstream_body = _json_or_empty(error.response) or {}
        if isinstance(upstream_body, dict) and upstream_body.get("detail"):
            details = upstream_body["detail"]

    content = {
        "error": "Failed to proxy request",
        "details": details,
        "status": status_code,
    }
    if include_body:
        content["errorResponse"] = upstream_body
    return JSONResponse(status_code=status_code, content=content)


async def _forward(
    method: str,
    host: str,
    endpoint: str,
    api_key: str | None,
    transport: httpx.AsyncBaseTransport | None,
    body: Any = None,
) -> JSONResponse:
    url = f"http://{host}/{endpoint}"
    headers: dict[str, str] = {}
    if api_key:
        headers["X-API-Key"] = api_key

    if method == "POST":
        headers["Content-Type"] = "application/json"
        logger.info(f"Proxying POST request to: {url} (api_key={'yes' if api_key else 'no'})")
    else:
        logger.info(f"Proxying {method} request to: {url}")

    timeout = POST_TIMEOUT if method == "POST" else DEFAULT_TIMEOUT
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        try:
            response = await client.request(
                method,
                url,
                headers=headers,
                json=body if method == "POST" else None,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            return _error_response(method, endpoint, e, include_body=method == "POST")

    return JSONResponse(content=_json_or_empty(response))


@router.get("")
async def proxy_get(
    host: str | None = None,
    endpoint: str | None = None,
    x_api_key: str | None = Header(default=None),
    transport: httpx.AsyncBaseTransport | None = Depends(get_upstream_transport),
) -> JSONResponse:
    """Forward a GET request to the chat backend."""
    if not host or not endpoint:
        return _missing_params()
    return await _forward("GET", host, endpoint, x_api_key, transport)


@router.post("")
async def proxy_post(
    request: Request,
    host: str | None = None,
    endpoint: str | None = None,
    x_api_key: str | None = Header(default=None),
    transport: httpx.AsyncBaseTransport | None = Depends(get_upstream_transport),
) -> JSONResponse:
    """Forward a JSON POST request to the chat backend."""
    if not host or not endpoint:
        return _missing_params()

    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Request body must be valid JSON"},
        )

    return await _forward("POST", host, endpoint, x_api_key, transport, body=body)


@router.delete("")
async def proxy_delete(
    host: str | None = None,
    endpoint: str | None = None,
    x_api_key: str | None = Header(default=None),
    transport: httpx.AsyncBaseTransport | None = Depends(get_upstream_transport),
) -> JSONResponse:
    """Forward a DELETE request to the chat backend."""
    if not host or not endpoint:
        return _missing_params()
    return await _forward("DELETE", host, endpoint, x_api_key, transport)

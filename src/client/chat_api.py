"""Async HTTP client for the session-oriented chat backend.

Wraps the five backend endpoints (health, sessions, conversation, chat,
session delete) and validates every response into a Pydantic model.
"""

import logging
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from src.models.schemas import (
    ChatRequest,
    ChatResponse,
    ConversationResponse,
    HealthResponse,
    SessionsResponse,
)

logger = logging.getLogger(__name__)

HEALTHY_STATUS = "healthy"


class ChatApiError(Exception):
    """Raised when a chat backend call fails.

    Attributes:
        status_code: HTTP status returned by the backend, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def build_api_url(
    host: str,
    endpoint: str,
    proxy_base_url: str | None = None,
) -> str:
    """Build the URL for a backend endpoint.

    Args:
        host: Backend host and port.
        endpoint: Endpoint path, optionally with a query string.
        proxy_base_url: When set, route through this app's /api/proxy route.

    Returns:
        Absolute request URL.
    """
    if proxy_base_url:
        query = urlencode({"host": host, "endpoint": endpoint})
        return f"{proxy_base_url.rstrip('/')}/api/proxy?{query}"
    return f"http://{host}/{endpoint}"


class ChatApiClient:
    """Client for one backend host and API key.

    A fresh httpx.AsyncClient is opened per request, so instances are cheap
    and can be created whenever credentials change.
    """

    def __init__(
        self,
        host: str,
        api_key: str,
        proxy_base_url: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            host: Backend host and port.
            api_key: Value of the X-API-Key header.
            proxy_base_url: Route requests through the local proxy when set.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.host = host
        self._api_key = api_key
        self._proxy_base_url = proxy_base_url
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "X-API-Key": self._api_key,
            "X-Requested-With": "XMLHttpRequest",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        model: type[BaseModel] | None,
        payload: dict | None = None,
    ) -> BaseModel | None:
        url = build_api_url(self.host, endpoint, self._proxy_base_url)
        headers = self._headers()
        if payload is not None:
            headers["Content-Type"] = "application/json"

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            try:
                response = await client.request(method, url, json=payload, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ChatApiError(
                    f"{method} {endpoint} returned HTTP {e.response.status_code}",
                    status_code=e.response.status_code,
                ) from e
            except httpx.RequestError as e:
                raise ChatApiError(f"Connection failed for {method} {endpoint}: {e}") from e

        if model is None:
            return None

        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ChatApiError(f"Malformed response from {endpoint}: {e}") from e

    async def health(self) -> HealthResponse:
        """Probe GET /health."""
        return await self._request("GET", "health", HealthResponse)

    async def is_healthy(self) -> bool:
        """Check whether the backend reports itself healthy."""
        return (await self.health()).status == HEALTHY_STATUS

    async def list_sessions(self, user_id: str) -> SessionsResponse:
        """Fetch GET /sessions for a user."""
        endpoint = f"sessions?{urlencode({'user_id': user_id})}"
        return await self._request("GET", endpoint, SessionsResponse)

    async def get_conversation(self, user_id: str, session_id: str) -> ConversationResponse:
        """Fetch the full transcript of one session."""
        query = urlencode({"user_id": user_id, "session_id": session_id})
        return await self._request("GET", f"conversation?{query}", ConversationResponse)

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Post a question to POST /chat.

        session_id is left out of the body when the request has none.
        """
        payload = request.model_dump(exclude_none=True)
        return await self._request("POST", "chat", ChatResponse, payload=payload)

    async def delete_session(self, user_id: str, session_id: str) -> None:
        """Delete one session via DELETE /session."""
        query = urlencode({"user_id": user_id, "session_id": session_id})
        await self._request("DELETE", f"session?{query}", None)

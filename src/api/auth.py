"""Account registration endpoint.

Validates the registration form and forwards it to the authentication service.
"""

import logging

import httpx
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from src.api.dependencies import get_config, get_upstream_transport
from src.client.config import ApiConfig
from src.models.schemas import RegisterRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register")
async def register(
    request: Request,
    config: ApiConfig = Depends(get_config),
    transport: httpx.AsyncBaseTransport | None = Depends(get_upstream_transport),
) -> JSONResponse:
    """Register a new account.

    Returns:
        201 with the service's message on success.

    Raises:
        400: Form validation failed (error lists each problem).
        4xx/5xx: Status passed through from the authentication service.
        500: Authentication service unreachable.
    """
    try:
        body = await request.json()
        registration = RegisterRequest.model_validate(body)
    except ValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": e.errors(include_url=False, include_context=False, include_input=False)},
        )
    except ValueError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Request body must be valid JSON"},
        )

    url = f"{config.auth_api_url.rstrip('/')}/auth/register"
    try:
        async with httpx.AsyncClient(timeout=config.request_timeout, transport=transport) as client:
            response = await client.post(url, json=registration.upstream_payload())
    except httpx.RequestError as e:
        logger.error(f"Registration request failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    try:
        data = response.json()
    except ValueError:
        data = {}
    message = data.get("message") if isinstance(data, dict) else None

    if not response.is_success:
        logger.warning(f"Registration rejected with HTTP {response.status_code}")
        return JSONResponse(
            status_code=response.status_code,
            content={"error": message or "Registration failed"},
        )

    logger.info(f"Registered user {registration.username}")
    return JSONResponse(status_code=status.HTTP_201_CREATED, content={"message": message})

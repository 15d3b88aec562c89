"""Shared FastAPI dependencies for the route modules."""

import httpx

from src.client.config import ApiConfig, get_api_config


def get_upstream_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for outbound calls; None uses the network (tests override)."""
    return None


def get_config() -> ApiConfig:
    """Backend configuration for request handlers."""
    return get_api_config()

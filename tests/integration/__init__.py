"""Integration tests for components working together.

Coverage:
    - Store synchronization against the fake chat backend
    - Proxy, storage and registration routes through the FastAPI app

Uses in-process fakes via httpx ASGITransport. No external services required.
"""

"""FastAPI endpoints for the BizChat front-end.

Thin HTTP routes with async request handling. No chat logic lives here;
every call is forwarded to the chat backend, S3 or the auth service.

Endpoints:
    - GET /health: Service health status
    - GET|POST|DELETE /api/proxy: Chat backend pass-through
    - POST /api/s3/upload, DELETE /api/s3/delete: Document storage
    - GET /api/s3/get-url, GET /api/s3/test-connection: Downloads and checks
    - POST /api/auth/register: Account registration
"""

from src.api.app import app, create_app

__all__ = ["app", "create_app"]

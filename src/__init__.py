"""BizChat front-end - business chat client for a session-oriented chat API.

Combines NiceGUI for the web interface, FastAPI for proxy and storage routes,
httpx for backend calls, boto3 for document storage, and Pydantic for data
validation.

Components:
    - api: Proxy, object storage and registration routes
    - client: Chat backend HTTP client and configuration
    - store: Conversation/session state container
    - storage: S3 document storage service
    - ui: Web interface for chat and uploads
    - models: Request/response schemas and store state types
"""

__version__ = "0.1.0"

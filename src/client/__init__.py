"""Chat backend access layer.

Talks to the remote session-oriented chat API on behalf of the store.

Responsibilities:
    - Backend and storage configuration from the environment
    - Health, session list, transcript, chat and delete calls
    - Direct or proxied URL construction with API-key headers

Maintains clean separation from the UI and from local state.
"""

from src.client.chat_api import ChatApiClient, ChatApiError, build_api_url
from src.client.config import (
    ApiConfig,
    StorageConfig,
    get_api_config,
    get_storage_config,
)

__all__ = [
    "ApiConfig",
    "ChatApiClient",
    "ChatApiError",
    "StorageConfig",
    "build_api_url",
    "get_api_config",
    "get_storage_config",
]

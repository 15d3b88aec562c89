"""Client-side state for the chat interface.

Coordinates the local conversation view with the remote session API.

Responsibilities:
    - Conversation list, message threads and selection
    - Session list cache and lazy transcript loading
    - Temporary-id to session-id reconciliation
    - Connection credentials and upload list

Contains no rendering. Delegates all remote calls to the client layer.
"""

from src.store.conversation_store import (
    ConversationSessionStore,
    create_title_from_content,
    group_by_month,
    is_session_id,
)

__all__ = [
    "ConversationSessionStore",
    "create_title_from_content",
    "group_by_month",
    "is_session_id",
]

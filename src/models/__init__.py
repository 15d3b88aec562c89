"""Pydantic models shared by the store, the backend client and the routes.

Provides type safety and validation for payloads exchanged with the chat
backend, plus the local state types held by the conversation store.

Models:
    - Message / Conversation: Local conversation view state
    - SessionSummary: Remote session descriptor
    - ConnectionState: Backend credentials and status
    - UploadedFile: Document upload tracking
    - OperationResult: Applied/failed outcome of store operations
    - Health/Sessions/Conversation/Chat responses: Backend wire formats
"""

from src.models.schemas import (
    ApiMessage,
    ChatRequest,
    ChatResponse,
    ConnectionState,
    Conversation,
    ConversationMetadata,
    ConversationResponse,
    FileStatus,
    HealthResponse,
    Message,
    OperationResult,
    OperationStatus,
    PendingMessage,
    RegisterRequest,
    Role,
    SessionsResponse,
    SessionSummary,
    UploadedFile,
)

__all__ = [
    "ApiMessage",
    "ChatRequest",
    "ChatResponse",
    "ConnectionState",
    "Conversation",
    "ConversationMetadata",
    "ConversationResponse",
    "FileStatus",
    "HealthResponse",
    "Message",
    "OperationResult",
    "OperationStatus",
    "PendingMessage",
    "RegisterRequest",
    "Role",
    "SessionSummary",
    "SessionsResponse",
    "UploadedFile",
]

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)


class Role(str, Enum):
    """Speaker of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class FileStatus(str, Enum):
    """Lifecycle of a document upload as shown in the file list."""

    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    ERROR = "error"


class OperationStatus(str, Enum):
    """Outcome of a store operation that talks to the backend."""

    APPLIED = "applied"
    FAILED = "failed"


# === Local state ===


class Message(BaseModel):
    """A single message in a conversation thread.

    Attributes:
        role: Who wrote the message.
        content: The message text.
        timestamp: When the message was appended (or created server-side).
    """

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)


class Conversation(BaseModel):
    """Local view of a conversation.

    The id is either a temporary client-generated identifier or the
    session id assigned by the backend.

    Attributes:
        id: Conversation identifier.
        title: Display title.
        messages: Messages in append order.
        created_at: Creation time.
        last_updated_at: Time of the last appended message.
    """

    id: str
    title: str
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    last_updated_at: datetime = Field(default_factory=datetime.now)


class SessionSummary(BaseModel):
    """Lightweight descriptor of a session persisted by the backend.

    Attributes:
        session_id: Server-assigned session UUID.
        title: Session title.
        created_at: Creation timestamp as returned by the backend.
        last_updated: Last update timestamp as returned by the backend.
        message_count: Number of messages stored in the session.
    """

    session_id: str
    title: str = ""
    created_at: str = ""
    last_updated: str = ""
    message_count: int = Field(default=0, ge=0)

    @field_validator("title", "created_at", "last_updated", mode="before")
    @classmethod
    def null_as_empty(cls, v: str | None) -> str:
        """Treat a null text field from the backend as empty."""
        return "" if v is None else v


class ConnectionState(BaseModel):
    """Credentials and status of the chat backend connection."""

    api_host: str
    api_key: str = ""
    user_id: str = ""
    is_connected: bool = False
    connection_error: str | None = None


class UploadedFile(BaseModel):
    """A document tracked in the upload list.

    Attributes:
        id: Client-side identifier.
        name: Original file name.
        size: Size in bytes.
        status: Current upload status.
        s3_key: Object key once stored.
        error: Error message when the upload failed.
    """

    id: str
    name: str
    size: int = Field(ge=0)
    status: FileStatus = FileStatus.UPLOADING
    s3_key: str | None = None
    error: str | None = None


class OperationResult(BaseModel):
    """Result of a store operation: either applied or failed with a reason."""

    status: OperationStatus
    reason: str | None = None

    @property
    def applied(self) -> bool:
        return self.status == OperationStatus.APPLIED

    @classmethod
    def ok(cls) -> "OperationResult":
        return cls(status=OperationStatus.APPLIED)

    @classmethod
    def failed(cls, reason: str) -> "OperationResult":
        return cls(status=OperationStatus.FAILED, reason=reason)


# === Chat backend wire formats ===


class ApiMessage(BaseModel):
    """Message as stored and returned by the chat backend."""

    role: Role
    content: str


class HealthResponse(BaseModel):
    """Response of GET /health."""

    status: str


class SessionsResponse(BaseModel):
    """Response of GET /sessions."""

    sessions: list[SessionSummary] | None = None


class ConversationMetadata(BaseModel):
    """Metadata block of a conversation transcript."""

    created_at: str
    last_updated: str
    message_count: int = 0
    title: str = ""

    @field_validator("created_at", "last_updated", "title", mode="before")
    @classmethod
    def null_as_empty(cls, v: str | None) -> str:
        return "" if v is None else v


class ConversationResponse(BaseModel):
    """Response of GET /conversation."""

    session_id: str
    user_id: str
    messages: list[ApiMessage] | None = None
    metadata: ConversationMetadata


class ChatRequest(BaseModel):
    """Request payload for POST /chat.

    Attributes:
        question: The user's message.
        user_id: Owner of the session.
        session_id: Existing session to continue; omitted to start a new one.
    """

    question: str
    user_id: str
    session_id: str | None = None


class ChatResponse(BaseModel):
    """Response of POST /chat.

    Attributes:
        generation: The assistant's answer.
        session_id: Session the exchange was stored under.
        messages: Full message history of the session, passed through unchecked.
        db_search: Optional database search details.
    """

    generation: str = ""
    session_id: str | None = None
    messages: list[Any] | None = None
    db_search: Any | None = None

    @field_validator("generation", mode="before")
    @classmethod
    def null_as_empty(cls, v: str | None) -> str:
        return "" if v is None else v


# === Registration ===


class RegisterRequest(BaseModel):
    """Registration form payload.

    Attributes:
        fullname: Full name, at least 2 characters.
        username: Login name.
        email: Contact email.
        password: Password, at least 6 characters.
        confirm_password: Must equal password.
        phone: Phone number, at least 10 characters.
        dob: Date of birth in DD/MM/YYYY format.
    """

    model_config = ConfigDict(populate_by_name=True)

    fullname: str = Field(..., min_length=2)
    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    confirm_password: str = Field(..., alias="confirmPassword")
    phone: str = Field(..., min_length=10)
    dob: str = Field(..., pattern=r"^\d{2}/\d{2}/\d{4}$")

    @field_validator("fullname", "username", mode="before")
    @classmethod
    def strip_names(cls, v: str) -> str:
        """Strip whitespace from name fields before validation."""
        if isinstance(v, str):
            return v.strip()
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self

    def upstream_payload(self) -> dict[str, str]:
        """Payload forwarded to the auth service (no confirmation field)."""
        return self.model_dump(exclude={"confirm_password"})


class PendingMessage(BaseModel):
    """A chat exchange whose user message is applied but not yet answered.

    Attributes:
        request: Payload to post to the chat endpoint.
        conversation_id: Conversation the user message was appended to.
    """

    request: ChatRequest
    conversation_id: str | None = None

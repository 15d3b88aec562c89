"""Conversation/session state container.

Keeps the local conversation view in step with the remote chat backend:

1. **Optimistic append** - A user's message is appended to local state before
   the chat request is sent, so the thread updates immediately.

2. **Reconciliation** - A brand-new conversation lives under a temporary id
   until the backend answers with its session id; the conversation is then
   renamed in place and the session list is refreshed.

3. **Lazy transcripts** - Session summaries come from the session list;
   full transcripts are fetched only when a session is opened.

4. **Degrade, never crash** - Read and write failures are logged and reported
   as failed OperationResults. Only the connect step surfaces an error text.

One store exists per UI client. All I/O methods are coroutines on the event
loop, so mutations never interleave mid-operation.
"""

import logging
import re
import uuid
from collections.abc import Callable
from datetime import datetime

import httpx

from src.client.chat_api import ChatApiClient, ChatApiError
from src.client.config import ApiConfig, get_api_config
from src.models.schemas import (
    ChatRequest,
    ConnectionState,
    Conversation,
    Message,
    OperationResult,
    PendingMessage,
    Role,
    SessionSummary,
    UploadedFile,
)

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 30
TITLE_MIN_BREAK = 10
TITLE_BREAK_CHARS = (" ", ",", ".", "?", "!")
TITLE_ELLIPSIS = "..."

NEW_CONVERSATION_TITLE = "New conversation"
PLACEHOLDER_TITLES = frozenset({NEW_CONVERSATION_TITLE, "New Chat"})
LOADED_CONVERSATION_TITLE = "Conversation"

SESSION_ID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)


def create_title_from_content(content: str) -> str:
    """Derive a conversation title from a message.

    Content up to 30 characters is used as is. Longer content is cut after
    the last space or punctuation mark within the first 30 characters, as
    long as that break falls past position 10; otherwise it is cut at 30.
    Truncated titles end with an ellipsis.

    Args:
        content: The message text.

    Returns:
        The title.
    """
    if len(content) <= TITLE_MAX_LENGTH:
        return content

    cut = TITLE_MAX_LENGTH
    for char in TITLE_BREAK_CHARS:
        index = content.rfind(char, 0, TITLE_MAX_LENGTH + 1)
        if index > TITLE_MIN_BREAK:
            cut = index + 1
            break

    return content[:cut].strip() + TITLE_ELLIPSIS


def is_session_id(value: str) -> bool:
    """Check whether a value looks like a canonical session UUID."""
    return SESSION_ID_PATTERN.fullmatch(value) is not None


def _parse_timestamp(value: str | None, fallback: datetime) -> datetime:
    if not value:
        return fallback
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Unparseable timestamp from backend: {value!r}")
        return fallback


def group_by_month(conversations: list[Conversation]) -> list[tuple[str, list[Conversation]]]:
    """Group conversations by creation month, most recent month first.

    Args:
        conversations: Conversations in display order.

    Returns:
        (label, conversations) pairs such as ("March 2025", [...]).
    """
    groups: dict[tuple[int, int], list[Conversation]] = {}
    for conversation in conversations:
        key = (conversation.created_at.year, conversation.created_at.month)
        groups.setdefault(key, []).append(conversation)

    return [
        (datetime(year, month, 1).strftime("%B %Y"), items)
        for (year, month), items in sorted(groups.items(), reverse=True)
    ]


class ConversationSessionStore:
    """State container for conversations, sessions and connection settings.

    Attributes:
        connection: Backend credentials and connection status.
        conversations: Local conversations, most recent first.
        sessions: Session summaries as last returned by the backend.
        current_conversation_id: Selected conversation, if any.
        files: Documents in the upload list.
        is_loading: True while a backend call is in flight.
    """

    def __init__(
        self,
        config: ApiConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize an empty store.

        Args:
            config: Backend configuration. Loads from environment if not provided.
            transport: Optional httpx transport for backend calls (used by tests).
            id_factory: Generator for temporary conversation ids.
        """
        self._config = config or get_api_config()
        self._transport = transport
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))

        self.connection = ConnectionState(
            api_host=self._config.host,
            api_key=self._config.default_api_key,
        )
        self.conversations: list[Conversation] = []
        self.sessions: list[SessionSummary] = []
        self.current_conversation_id: str | None = None
        self.files: list[UploadedFile] = []
        self.is_loading = False

    def _api(self) -> ChatApiClient:
        proxy_base_url = self._config.proxy_base_url if self._config.use_proxy else None
        return ChatApiClient(
            host=self.connection.api_host,
            api_key=self.connection.api_key,
            proxy_base_url=proxy_base_url,
            timeout=self._config.request_timeout,
            transport=self._transport,
        )

    # === Lookups ===

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return next((c for c in self.conversations if c.id == conversation_id), None)

    def get_session(self, session_id: str) -> SessionSummary | None:
        return next((s for s in self.sessions if s.session_id == session_id), None)

    @property
    def current_conversation(self) -> Conversation | None:
        if self.current_conversation_id is None:
            return None
        return self.get_conversation(self.current_conversation_id)

    def history(self) -> list[Conversation]:
        """Conversations to list in the sidebar.

        Local conversations come first, followed by stubs (no messages) for
        sessions whose transcript has not been loaded yet.
        """
        loaded = {c.id for c in self.conversations}
        now = datetime.now()
        stubs = [
            Conversation(
                id=s.session_id,
                title=s.title or LOADED_CONVERSATION_TITLE,
                created_at=_parse_timestamp(s.created_at, now),
                last_updated_at=_parse_timestamp(s.last_updated, now),
            )
            for s in self.sessions
            if s.session_id not in loaded
        ]
        return [*self.conversations, *stubs]

    def resumable_session_id(self) -> str | None:
        """Session id to send with the next chat request, if any.

        The current id is only sent when the backend knows it: it must be in
        the session list and look like a session UUID. Temporary ids never
        qualify.
        """
        current = self.current_conversation_id
        if (
            current
            and self.get_session(current) is not None
            and is_session_id(current)
        ):
            return current
        return None

    # === Connection settings ===

    def set_api_key(self, api_key: str) -> None:
        self.connection.api_key = api_key

    def set_api_host(self, api_host: str) -> None:
        self.connection.api_host = api_host

    def set_user_id(self, user_id: str) -> None:
        """Switch user; conversations of the previous user are dropped."""
        self.connection.user_id = user_id
        self.conversations = []
        self.current_conversation_id = None

    def set_loading(self, loading: bool) -> None:
        self.is_loading = loading

    def _connection_failed(self, reason: str) -> OperationResult:
        self.connection.is_connected = False
        self.connection.connection_error = reason
        self.is_loading = False
        return OperationResult.failed(reason)

    async def connect(self) -> OperationResult:
        """Probe backend health and start a fresh view of the user's sessions.

        On success every local conversation is discarded (the new connection
        may belong to another user) and the session list is reloaded. On
        failure connection_error describes the problem.

        Returns:
            Applied when the backend reports itself healthy.
        """
        self.is_loading = True
        self.connection.connection_error = None

        try:
            healthy = await self._api().is_healthy()
        except ChatApiError as e:
            logger.error(f"Connection error: {e}")
            return self._connection_failed(
                f"Failed to connect to API at {self.connection.api_host}. "
                "Check the host and API key and try again."
            )

        if not healthy:
            logger.error(f"API at {self.connection.api_host} is not healthy")
            return self._connection_failed("API is not healthy")

        self.connection.is_connected = True
        self.is_loading = False
        self.conversations = []
        self.current_conversation_id = None

        await self.load_sessions()
        return OperationResult.ok()

    # === Sessions ===

    async def load_sessions(self) -> OperationResult:
        """Replace the session list with the backend's list for the current user.

        On failure the previous list is kept.
        """
        self.is_loading = True

        try:
            response = await self._api().list_sessions(self.connection.user_id)
        except ChatApiError as e:
            logger.error(f"Failed to load sessions: {e}")
            self.is_loading = False
            return OperationResult.failed(str(e))

        self.is_loading = False
        if response.sessions is None:
            logger.error("Session list missing from backend response")
            return OperationResult.failed("Session list missing from response")

        self.sessions = response.sessions
        return OperationResult.ok()

    async def load_conversation(self, session_id: str) -> OperationResult:
        """Fetch a session transcript, store it locally and select it.

        Any local conversation with the same id is replaced.
        """
        self.is_loading = True

        try:
            response = await self._api().get_conversation(self.connection.user_id, session_id)
        except ChatApiError as e:
            logger.error(f"Failed to load conversation {session_id}: {e}")
            self.is_loading = False
            return OperationResult.failed(str(e))

        if response.messages is None:
            logger.error(f"Conversation {session_id} returned no messages")
            self.is_loading = False
            return OperationResult.failed("Conversation missing from response")

        now = datetime.now()
        created_at = _parse_timestamp(response.metadata.created_at, now)
        conversation = Conversation(
            id=session_id,
            title=response.metadata.title or LOADED_CONVERSATION_TITLE,
            messages=[
                Message(role=m.role, content=m.content, timestamp=created_at)
                for m in response.messages
            ],
            created_at=created_at,
            last_updated_at=_parse_timestamp(response.metadata.last_updated, created_at),
        )

        self.conversations = [
            c for c in self.conversations if c.id != session_id
        ] + [conversation]
        self.current_conversation_id = session_id
        self.is_loading = False
        return OperationResult.ok()

    async def set_current_conversation(self, conversation_id: str) -> OperationResult:
        """Select a conversation, fetching its transcript if not loaded yet."""
        if self.get_conversation(conversation_id) is not None:
            self.current_conversation_id = conversation_id
            return OperationResult.ok()
        return await self.load_conversation(conversation_id)

    def start_new_conversation(self) -> None:
        """Deselect; the next message opens a new conversation."""
        self.current_conversation_id = None

    async def delete_session(self, session_id: str) -> OperationResult:
        """Delete a session remotely, then drop it from local state.

        Local state is only touched once the backend confirms the delete.
        Deleting the selected conversation leaves nothing selected.
        """
        self.is_loading = True

        try:
            await self._api().delete_session(self.connection.user_id, session_id)
        except ChatApiError as e:
            logger.error(f"Failed to delete session {session_id}: {e}")
            self.is_loading = False
            return OperationResult.failed(str(e))

        self.conversations = [c for c in self.conversations if c.id != session_id]
        self.sessions = [s for s in self.sessions if s.session_id != session_id]
        if self.current_conversation_id == session_id:
            self.current_conversation_id = None
        self.is_loading = False
        return OperationResult.ok()

    async def delete_conversation(self, conversation_id: str) -> OperationResult:
        return await self.delete_session(conversation_id)

    # === Messages ===

    def add_message(self, content: str, role: Role | str) -> None:
        """Append a message to the current conversation.

        With nothing selected a new conversation is created under a temporary
        id and selected. A selected id known only from the session list is
        materialized into a local conversation. The title is set from the
        first user message and never overwritten afterwards.

        Args:
            content: Message text.
            role: Who wrote the message.
        """
        role = Role(role)
        now = datetime.now()
        message = Message(role=role, content=content, timestamp=now)
        current_id = self.current_conversation_id

        if current_id is None:
            temp_id = self._new_id()
            title = (
                create_title_from_content(content)
                if role == Role.USER
                else NEW_CONVERSATION_TITLE
            )
            self.conversations.insert(
                0,
                Conversation(
                    id=temp_id,
                    title=title,
                    messages=[message],
                    created_at=now,
                    last_updated_at=now,
                ),
            )
            self.current_conversation_id = temp_id
            return

        conversation = self.get_conversation(current_id)
        if conversation is not None:
            if role == Role.USER and (
                not conversation.messages or conversation.title in PLACEHOLDER_TITLES
            ):
                conversation.title = create_title_from_content(content)
            conversation.messages.append(message)
            conversation.last_updated_at = now
            return

        session = self.get_session(current_id)
        if session is not None and session.title:
            title = session.title
        elif role == Role.USER:
            title = create_title_from_content(content)
        else:
            title = NEW_CONVERSATION_TITLE

        created_at = _parse_timestamp(session.created_at, now) if session else now
        self.conversations.insert(
            0,
            Conversation(
                id=current_id,
                title=title,
                messages=[message],
                created_at=created_at,
                last_updated_at=now,
            ),
        )

    def _rename_conversation(self, old_id: str | None, new_id: str) -> None:
        # A stale copy already keyed by new_id would break id uniqueness.
        self.conversations = [
            c for c in self.conversations if c.id != new_id or c.id == old_id
        ]
        for conversation in self.conversations:
            if conversation.id == old_id:
                conversation.id = new_id
        if self.current_conversation_id == old_id:
            self.current_conversation_id = new_id

    def _append_reply(self, conversation_id: str | None, content: str) -> None:
        conversation = (
            self.get_conversation(conversation_id) if conversation_id is not None else None
        )
        if conversation is None:
            # Target is gone (deleted or reset); fall back to the selection.
            self.add_message(content, Role.ASSISTANT)
            return
        now = datetime.now()
        conversation.messages.append(Message(role=Role.ASSISTANT, content=content, timestamp=now))
        conversation.last_updated_at = now

    def prepare_message(self, content: str) -> PendingMessage:
        """Phase one of sending: build the request and append the user message.

        The session id is decided before the append, so a conversation that
        does not exist yet never leaks its temporary id to the backend.

        Args:
            content: The user's message.

        Returns:
            The pending exchange to pass to deliver_message.
        """
        self.is_loading = True

        session_id = self.resumable_session_id()
        request = ChatRequest(
            question=content,
            user_id=self.connection.user_id,
            session_id=session_id,
        )
        if session_id:
            logger.info(f"Continuing session {session_id}")
        else:
            logger.info("Starting new session")

        self.add_message(content, Role.USER)
        return PendingMessage(request=request, conversation_id=self.current_conversation_id)

    async def deliver_message(self, pending: PendingMessage) -> OperationResult:
        """Phase two of sending: post the request and merge the answer.

        The answer goes to the conversation that holds the user message, even
        if the selection changed while the request was in flight. The user
        message stays if the request fails. When the backend answers under a
        different session id, that conversation is renamed to it and the
        session list is refreshed.

        Args:
            pending: Result of prepare_message.

        Returns:
            Applied when an answer was received and merged.
        """
        try:
            response = await self._api().chat(pending.request)
        except ChatApiError as e:
            logger.error(f"Failed to send message: {e}")
            self.is_loading = False
            return OperationResult.failed(str(e))

        if not response.generation:
            logger.warning("Chat response carried no generation")
            self.is_loading = False
            return OperationResult.failed("Backend returned no generation")

        self._append_reply(pending.conversation_id, response.generation)

        target_id = pending.conversation_id
        received_id = response.session_id
        if received_id and received_id != target_id:
            logger.info(f"Updating session ID from {target_id or 'none'} to {received_id}")
            self._rename_conversation(target_id, received_id)
            await self.load_sessions()

        self.is_loading = False
        return OperationResult.ok()

    async def send_message(self, content: str) -> OperationResult:
        """Send a user message and merge the backend's answer.

        Callers reject blank content beforehand.
        """
        return await self.deliver_message(self.prepare_message(content))

    # === Uploaded files ===

    def add_file(self, file: UploadedFile) -> None:
        self.files.append(file)

    def update_file(self, file_id: str, **updates: object) -> None:
        """Apply field updates to a tracked file; unknown ids are ignored."""
        self.files = [
            UploadedFile.model_validate({**f.model_dump(), **updates}) if f.id == file_id else f
            for f in self.files
        ]

    def remove_file(self, file_id: str) -> None:
        self.files = [f for f in self.files if f.id != file_id]

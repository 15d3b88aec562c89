"""Integration tests for store and backend reconciliation.

The store talks to FakeChatBackend over ASGITransport, so every request goes
through the real client, URL building and response validation.
"""

import pytest_check as check

from src.client.config import ApiConfig
from src.models.schemas import Conversation, Role, SessionSummary
from src.store.conversation_store import ConversationSessionStore
from tests.mocks.fake_chat_backend import FakeChatBackend, unreachable_transport

NEW_SESSION = "33333333-3333-3333-3333-333333333333"


class TestConnect:
    """Tests for the connect flow."""

    async def test_connect_loads_sessions_and_drops_local_state(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend, session_id: str
    ) -> None:
        fake_backend.add_session(session_id)
        store.add_message("Unsent draft", Role.USER)

        result = await store.connect()

        check.is_true(result.applied)
        check.is_true(store.connection.is_connected)
        check.is_none(store.connection.connection_error)
        check.equal(store.conversations, [])
        check.is_none(store.current_conversation_id)
        check.equal([s.session_id for s in store.sessions], [session_id])
        check.is_false(store.is_loading)

    async def test_unhealthy_backend(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        fake_backend.healthy = False

        result = await store.connect()

        check.is_false(result.applied)
        check.is_false(store.connection.is_connected)
        check.equal(store.connection.connection_error, "API is not healthy")

    async def test_unreachable_backend(self, api_config: ApiConfig) -> None:
        store = ConversationSessionStore(config=api_config, transport=unreachable_transport())

        result = await store.connect()

        check.is_false(result.applied)
        check.is_false(store.connection.is_connected)
        check.is_in("backend.test:8000", store.connection.connection_error)
        check.is_false(store.is_loading)

    async def test_failing_health_endpoint(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        fake_backend.failing.add("health")

        result = await store.connect()

        check.is_false(result.applied)
        check.is_true(store.connection.connection_error.startswith("Failed to connect"))


class TestSessions:
    """Tests for session listing, loading and deletion."""

    async def test_load_sessions_failure_keeps_previous_list(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend, session_id: str
    ) -> None:
        store.sessions = [SessionSummary(session_id=session_id, title="Cached")]
        fake_backend.failing.add("sessions")

        result = await store.load_sessions()

        check.is_false(result.applied)
        check.equal([s.title for s in store.sessions], ["Cached"])

    async def test_load_conversation_replaces_local_copy(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend, session_id: str
    ) -> None:
        fake_backend.add_session(
            session_id,
            messages=[
                {"role": "user", "content": "Show me Q1 sales"},
                {"role": "assistant", "content": "Q1 sales were 1.2M"},
            ],
        )
        store.conversations = [Conversation(id=session_id, title="Stale local copy")]

        result = await store.load_conversation(session_id)

        check.is_true(result.applied)
        check.equal(len(store.conversations), 1)
        conversation = store.get_conversation(session_id)
        check.equal(conversation.title, "Quarterly revenue")
        check.equal(
            [(m.role, m.content) for m in conversation.messages],
            [(Role.USER, "Show me Q1 sales"), (Role.ASSISTANT, "Q1 sales were 1.2M")],
        )
        check.equal(store.current_conversation_id, session_id)

    async def test_load_unknown_conversation_fails(
        self, store: ConversationSessionStore, session_id: str
    ) -> None:
        result = await store.load_conversation(session_id)

        check.is_false(result.applied)
        check.equal(store.conversations, [])
        check.is_none(store.current_conversation_id)

    async def test_set_current_conversation_fetches_when_missing(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend, session_id: str
    ) -> None:
        fake_backend.add_session(session_id, messages=[{"role": "user", "content": "Hi"}])

        result = await store.set_current_conversation(session_id)

        check.is_true(result.applied)
        check.equal(store.current_conversation.title, "Quarterly revenue")

    async def test_set_current_conversation_uses_local_copy(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        store.add_message("Local only", Role.USER)
        local_id = store.current_conversation_id
        store.start_new_conversation()

        result = await store.set_current_conversation(local_id)

        check.is_true(result.applied)
        check.equal(store.current_conversation_id, local_id)
        check.equal(fake_backend.headers, [])

    async def test_delete_current_session(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend, session_id: str
    ) -> None:
        fake_backend.add_session(session_id)
        await store.connect()
        await store.load_conversation(session_id)

        result = await store.delete_conversation(session_id)

        check.is_true(result.applied)
        check.is_false(fake_backend.has_session(session_id))
        check.is_none(store.get_conversation(session_id))
        check.equal(store.sessions, [])
        check.is_none(store.current_conversation_id)

    async def test_delete_other_session_keeps_selection(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend, session_id: str
    ) -> None:
        other_id = "22222222-2222-2222-2222-222222222222"
        fake_backend.add_session(session_id)
        fake_backend.add_session(other_id, title="Pipeline")
        await store.connect()
        await store.load_conversation(session_id)

        await store.delete_session(other_id)

        check.equal(store.current_conversation_id, session_id)
        check.equal([s.session_id for s in store.sessions], [session_id])

    async def test_failed_delete_leaves_state_untouched(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend, session_id: str
    ) -> None:
        fake_backend.add_session(session_id)
        await store.connect()
        await store.load_conversation(session_id)
        fake_backend.failing.add("session")

        result = await store.delete_session(session_id)

        check.is_false(result.applied)
        check.is_not_none(store.get_conversation(session_id))
        check.equal(len(store.sessions), 1)
        check.equal(store.current_conversation_id, session_id)
        check.is_false(store.is_loading)


class TestSendMessage:
    """Tests for the optimistic send and session-id reconciliation."""

    async def test_first_message_adopts_backend_session_id(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        fake_backend.next_session_id = NEW_SESSION
        await store.connect()

        result = await store.send_message("Show me Q1 sales")

        check.is_true(result.applied)
        check.equal(fake_backend.chat_requests[0], {"question": "Show me Q1 sales", "user_id": "user-1"})
        check.equal(store.current_conversation_id, NEW_SESSION)
        check.equal(len(store.conversations), 1)
        conversation = store.current_conversation
        check.equal(conversation.title, "Show me Q1 sales")
        check.equal(
            [(m.role, m.content) for m in conversation.messages],
            [(Role.USER, "Show me Q1 sales"), (Role.ASSISTANT, "Here are your Q1 results")],
        )
        check.equal([s.session_id for s in store.sessions], [NEW_SESSION])
        check.is_false(store.is_loading)

    async def test_follow_up_continues_session(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        fake_backend.next_session_id = NEW_SESSION
        await store.connect()
        await store.send_message("Show me Q1 sales")

        await store.send_message("And Q2?")

        check.equal(fake_backend.chat_requests[1]["session_id"], NEW_SESSION)
        check.equal(len(store.conversations), 1)
        check.equal(len(store.current_conversation.messages), 4)
        check.equal(store.current_conversation.title, "Show me Q1 sales")

    async def test_temporary_id_never_sent(
        self, fake_backend: FakeChatBackend, api_config: ApiConfig
    ) -> None:
        store = ConversationSessionStore(
            config=api_config,
            transport=fake_backend.transport(),
            id_factory=lambda: "temp-xyz",
        )
        store.set_user_id("user-1")
        store.add_message("Draft", Role.USER)

        await store.send_message("Show me Q1 sales")

        check.is_not_in("session_id", fake_backend.chat_requests[0])
        check.is_none(store.get_conversation("temp-xyz"))

    async def test_selected_session_is_resumed(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend, session_id: str
    ) -> None:
        fake_backend.add_session(
            session_id, messages=[{"role": "user", "content": "Show me Q1 sales"}]
        )
        await store.connect()
        await store.set_current_conversation(session_id)

        await store.send_message("And Q2?")

        check.equal(fake_backend.chat_requests[0]["session_id"], session_id)
        check.equal(store.current_conversation_id, session_id)
        check.equal(store.current_conversation.title, "Quarterly revenue")

    async def test_failed_send_keeps_user_message(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        await store.connect()
        fake_backend.failing.add("chat")

        result = await store.send_message("Show me Q1 sales")

        check.is_false(result.applied)
        check.equal(len(store.conversations), 1)
        check.equal(
            [m.role for m in store.current_conversation.messages], [Role.USER]
        )
        check.is_false(store.is_loading)

    async def test_empty_generation_is_a_failure(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        fake_backend.generation = ""
        await store.connect()

        result = await store.send_message("Show me Q1 sales")

        check.is_false(result.applied)
        check.equal(result.reason, "Backend returned no generation")
        check.equal(len(store.current_conversation.messages), 1)

    async def test_prepare_applies_message_before_delivery(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        await store.connect()

        pending = store.prepare_message("Show me Q1 sales")

        check.is_true(store.is_loading)
        check.equal(pending.conversation_id, store.current_conversation_id)
        check.is_none(pending.request.session_id)
        check.equal(fake_backend.chat_requests, [])

        await store.deliver_message(pending)

        check.equal(len(fake_backend.chat_requests), 1)
        check.is_false(store.is_loading)


class TestLenientBackendReplies:
    """Tests for backend replies carrying nulls or extra data the store ignores."""

    async def test_null_session_title_is_listed(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend, session_id: str
    ) -> None:
        fake_backend.add_session(session_id, title=None)

        result = await store.load_sessions()

        check.is_true(result.applied)
        check.equal([s.session_id for s in store.sessions], [session_id])
        check.equal(store.sessions[0].title, "")
        check.equal([c.title for c in store.history()], ["Conversation"])

    async def test_null_title_session_gets_title_from_message(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend, session_id: str
    ) -> None:
        fake_backend.add_session(session_id, title=None)
        await store.load_sessions()
        store.current_conversation_id = session_id

        store.add_message("Pipeline by stage", Role.USER)

        assert store.get_conversation(session_id).title == "Pipeline by stage"

    async def test_unexpected_history_entries_do_not_fail_send(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        fake_backend.next_session_id = NEW_SESSION
        fake_backend.reply_messages = [{"role": "system", "content": "tool trace"}, None]
        await store.connect()

        result = await store.send_message("Show me Q1 sales")

        check.is_true(result.applied)
        check.equal(store.current_conversation_id, NEW_SESSION)
        check.equal(
            [m.role for m in store.current_conversation.messages],
            [Role.USER, Role.ASSISTANT],
        )


class TestSelectionChangesDuringSend:
    """Tests for a send whose answer arrives after the selection changed."""

    async def test_reply_lands_in_original_conversation(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        fake_backend.next_session_id = NEW_SESSION
        await store.connect()

        pending = store.prepare_message("Show me Q1 sales")
        store.start_new_conversation()
        result = await store.deliver_message(pending)

        check.is_true(result.applied)
        check.equal(len(store.conversations), 1)
        conversation = store.get_conversation(NEW_SESSION)
        check.equal(conversation.title, "Show me Q1 sales")
        check.equal([m.role for m in conversation.messages], [Role.USER, Role.ASSISTANT])
        check.is_none(store.current_conversation_id)

    async def test_reply_with_other_conversation_selected(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        fake_backend.next_session_id = NEW_SESSION
        await store.connect()
        store.add_message("Other thread", Role.USER)
        other_id = store.current_conversation_id
        store.start_new_conversation()

        pending = store.prepare_message("Show me Q1 sales")
        await store.set_current_conversation(other_id)
        await store.deliver_message(pending)

        check.equal(store.current_conversation_id, other_id)
        check.equal(len(store.get_conversation(other_id).messages), 1)
        check.equal(len(store.get_conversation(NEW_SESSION).messages), 2)

    async def test_reply_after_target_deleted_goes_to_selection(
        self, store: ConversationSessionStore, fake_backend: FakeChatBackend
    ) -> None:
        fake_backend.next_session_id = NEW_SESSION
        await store.connect()

        pending = store.prepare_message("Show me Q1 sales")
        store.conversations = []
        store.current_conversation_id = None
        result = await store.deliver_message(pending)

        check.is_true(result.applied)
        check.equal(len(store.conversations), 1)
        check.equal(
            [m.role for m in store.conversations[0].messages], [Role.ASSISTANT]
        )

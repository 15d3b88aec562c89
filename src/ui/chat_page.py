"""NiceGUI chat interface backed by the conversation store."""

from nicegui import ui

from src.models.schemas import Conversation, Message, Role
from src.store.conversation_store import group_by_month
from src.ui.state import get_store

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #f3f4f6; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.08);
        overflow: hidden;
    }

    .header { background: #1f2937; }
    .sidebar { background: #1f2937; color: white; }

    .message-user {
        background: #2563eb;
        color: white;
        border-radius: 12px 12px 4px 12px;
    }

    .message-assistant {
        background: #f3f4f6;
        color: #111827;
        border-radius: 12px 12px 12px 4px;
    }

    .typing-dot {
        width: 8px; height: 8px;
        background: #6b7280;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }

    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }
</style>
"""


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)
    store = get_store()

    history_container: ui.column
    messages_container: ui.column
    status_label: ui.label
    input_field: ui.input
    send_btn: ui.button
    new_chat_btn: ui.button

    def refresh_status() -> None:
        connection = store.connection
        if connection.is_connected:
            status_label.set_text(f"Connected to {connection.api_host}")
            status_label.classes(replace="text-xs text-green-400")
        elif connection.connection_error:
            status_label.set_text(connection.connection_error)
            status_label.classes(replace="text-xs text-red-400")
        else:
            status_label.set_text("Not connected")
            status_label.classes(replace="text-xs text-gray-400")

    def render_history_item(conversation: Conversation) -> None:
        selected = conversation.id == store.current_conversation_id
        row_bg = "bg-gray-700" if selected else "hover:bg-gray-700/50"
        with ui.row().classes(
            f"w-full items-center gap-2 px-3 py-2 rounded-lg cursor-pointer {row_bg}"
        ).on("click", lambda c=conversation: select_conversation(c.id)):
            ui.icon("chat_bubble_outline").classes("text-sm")
            ui.label(conversation.title).classes("flex-grow truncate text-sm")
            ui.button(icon="delete").props("flat dense round size=sm color=grey-5").on(
                "click.stop", lambda c=conversation: delete_conversation(c.id)
            )

    def refresh_history() -> None:
        history_container.clear()
        with history_container:
            entries = store.history()
            if not entries:
                ui.label("No conversations yet").classes("text-sm text-gray-400 px-3")
                return
            for month, conversations in group_by_month(entries):
                with ui.expansion(month, value=True).classes("w-full text-gray-300"):
                    for conversation in conversations:
                        render_history_item(conversation)

    def render_message(message: Message) -> None:
        is_user = message.role == Role.USER
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"

        with ui.row().classes(f"w-full {align}"):
            with ui.column().classes("max-w-[80%] gap-1"):
                with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                    if is_user:
                        ui.label(message.content).classes("text-sm whitespace-pre-wrap")
                    else:
                        ui.markdown(message.content).classes("text-sm")
                ui.label(message.timestamp.strftime("%I:%M %p")).classes(
                    f"text-[10px] text-gray-400 {'self-end' if is_user else 'self-start'}"
                )

    def render_typing_indicator() -> None:
        with ui.row().classes("w-full justify-start"):
            with ui.element("div").classes("message-assistant px-4 py-3"):
                with ui.row().classes("gap-1"):
                    for _ in range(3):
                        ui.element("div").classes("typing-dot")

    def refresh_messages() -> None:
        messages_container.clear()
        with messages_container:
            conversation = store.current_conversation
            if conversation is None or not conversation.messages:
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("forum").classes("text-5xl text-gray-300")
                    ui.label("Start a conversation by sending a message").classes(
                        "text-gray-400"
                    )
            else:
                for message in conversation.messages:
                    render_message(message)
            if store.is_loading:
                render_typing_indicator()

    def refresh_all() -> None:
        refresh_status()
        refresh_history()
        refresh_messages()
        for button in (send_btn, new_chat_btn):
            button.set_enabled(not store.is_loading)

    async def connect(host: str, api_key: str, user_id: str) -> None:
        store.set_api_host(host.strip())
        store.set_api_key(api_key.strip())
        if user_id.strip() != store.connection.user_id:
            store.set_user_id(user_id.strip())
        refresh_all()
        result = await store.connect()
        refresh_all()
        if result.applied:
            ui.notify(f"Loaded {len(store.sessions)} conversations", type="positive")
        else:
            ui.notify(store.connection.connection_error, type="negative")

    async def select_conversation(conversation_id: str) -> None:
        await store.set_current_conversation(conversation_id)
        refresh_all()

    async def delete_conversation(conversation_id: str) -> None:
        await store.delete_conversation(conversation_id)
        refresh_all()

    async def reload_sessions() -> None:
        await store.load_sessions()
        refresh_all()

    def new_chat() -> None:
        store.start_new_conversation()
        refresh_all()

    async def send_message() -> None:
        text = (input_field.value or "").strip()
        if not text or store.is_loading:
            return

        input_field.value = ""
        pending = store.prepare_message(text)
        refresh_all()
        await store.deliver_message(pending)
        refresh_all()

    # === UI Layout ===
    with ui.row().classes("w-full min-h-screen no-wrap gap-0"):
        # Sidebar
        with ui.column().classes("sidebar w-80 min-h-screen p-4 gap-4"):
            ui.label("Connection").classes("text-lg font-semibold")
            host_input = ui.input("API host", value=store.connection.api_host).props(
                "dark dense outlined"
            ).classes("w-full")
            key_input = ui.input(
                "API key",
                value=store.connection.api_key,
                password=True,
                password_toggle_button=True,
            ).props("dark dense outlined").classes("w-full")
            user_input = ui.input("User ID", value=store.connection.user_id).props(
                "dark dense outlined"
            ).classes("w-full")
            ui.button(
                "Connect",
                on_click=lambda: connect(host_input.value, key_input.value, user_input.value),
            ).classes("w-full")
            status_label = ui.label()

            ui.separator().classes("bg-gray-600")
            with ui.row().classes("w-full items-center justify-between"):
                ui.label("Chat History").classes("text-lg font-semibold")
                ui.button(icon="refresh", on_click=reload_sessions).props(
                    "flat round color=white"
                )
            history_container = ui.column().classes("w-full gap-1")

        # Main
        with ui.column().classes("flex-grow p-4 md:p-8"):
            with ui.column().classes("w-full max-w-4xl mx-auto app-container").style(
                "height: calc(100vh - 4rem)"
            ):
                with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
                    with ui.row().classes("items-center gap-3"):
                        ui.icon("business_center").classes("text-white text-3xl")
                        ui.label("BizMate Chat").classes("text-lg font-semibold text-white")
                    with ui.row().classes("items-center gap-2"):
                        new_chat_btn = ui.button(
                            "New Chat", icon="add", on_click=new_chat
                        ).props("flat color=white")
                        ui.link("Upload Documents", "/upload").classes(
                            "text-white text-sm underline"
                        )

                with (
                    ui.scroll_area().classes("flex-grow w-full bg-gray-50"),
                    ui.column().classes("w-full p-5"),
                ):
                    messages_container = ui.column().classes("w-full gap-4")

                with ui.row().classes("w-full p-4 gap-3 items-center bg-white border-t"):
                    input_field = (
                        ui.input(placeholder="Ask about your business data...")
                        .props("outlined dense")
                        .classes("flex-grow")
                        .on("keydown.enter", send_message)
                    )
                    send_btn = ui.button("Send", on_click=send_message).props("unelevated")

    refresh_all()


"""NiceGUI interface - thin visualization layer for the chat front-end.

Responsibilities:
    - Connection settings and session history sidebar
    - Message thread with optimistic user messages
    - Document upload list with view and delete

Contains no business logic. Delegates state to the conversation store and
storage operations to the API.
"""

"""Per-browser conversation stores shared by the UI pages."""

import logging
import os
from collections import OrderedDict

from nicegui import app

from src.store.conversation_store import ConversationSessionStore

logger = logging.getLogger(__name__)

MAX_STORES = int(os.getenv("MAX_BROWSER_STORES", "500"))

# Least recently used first
_stores: OrderedDict[str, ConversationSessionStore] = OrderedDict()


def get_store() -> ConversationSessionStore:
    """Return the store of the current browser, creating it on first visit.

    Must be called from within a page function so the browser storage is
    available.
    """
    return get_or_create_store(app.storage.browser["id"])


def get_or_create_store(browser_id: str) -> ConversationSessionStore:
    """Look up a browser's store, evicting the least recently used past MAX_STORES."""
    store = _stores.get(browser_id)
    if store is not None:
        _stores.move_to_end(browser_id)
        return store

    logger.info(f"Creating conversation store for browser {browser_id[:8]}")
    store = ConversationSessionStore()
    _stores[browser_id] = store
    while len(_stores) > MAX_STORES:
        evicted_id, _ = _stores.popitem(last=False)
        logger.info(f"Evicted conversation store for browser {evicted_id[:8]}")
    return store

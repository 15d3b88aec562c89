"""Unit tests for the per-browser store registry."""

from collections import OrderedDict

import pytest
import pytest_check as check

from src.ui import state


@pytest.fixture
def registry(monkeypatch: pytest.MonkeyPatch) -> OrderedDict:
    """Empty registry capped at two stores."""
    stores: OrderedDict = OrderedDict()
    monkeypatch.setattr(state, "_stores", stores)
    monkeypatch.setattr(state, "MAX_STORES", 2)
    return stores


def test_same_browser_gets_same_store(registry: OrderedDict) -> None:
    first = state.get_or_create_store("browser-a")

    assert state.get_or_create_store("browser-a") is first


def test_least_recently_used_store_is_evicted(registry: OrderedDict) -> None:
    store_a = state.get_or_create_store("browser-a")
    state.get_or_create_store("browser-b")
    state.get_or_create_store("browser-a")

    state.get_or_create_store("browser-c")

    check.equal(list(registry), ["browser-a", "browser-c"])
    check.is_(registry["browser-a"], store_a)

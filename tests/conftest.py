"""Shared fixtures for event_layers tests."""

from collections.abc import Callable
from typing import Any

import pytest

from event_layers.events import ConversationEvent

EventFactory = Callable[..., ConversationEvent]


@pytest.fixture
def make_event() -> EventFactory:
    """Factory building events with sequential ids.

    Extra keyword arguments become payload fields.
    """
    counter = 0

    def _make(event_type: str, timestamp: float = 0, **kwargs: Any) -> ConversationEvent:
        nonlocal counter
        counter += 1
        kwargs.setdefault("id", f"e{counter}")
        return ConversationEvent(type=event_type, timestamp=timestamp, **kwargs)

    return _make

"""Live-session layer tracking.

EventTimeline accumulates events for one conversation and re-runs the full
aggregation pass whenever layers are requested after a change. Recomputing
from scratch keeps the result identical to a one-shot ``aggregate`` over the
same events; session-sized inputs make the O(n) pass cheap enough.
"""

from __future__ import annotations

from collections.abc import Iterable

from event_layers._logger import get_logger
from event_layers.aggregator import EventAggregator, EventMergeConfig
from event_layers.events import ConversationEvent
from event_layers.types import EventLayer

logger = get_logger(__name__)


class EventTimeline:
    """Accumulate events for a single conversation and expose its layers.

    The expanded/collapsed state of each layer is remembered by milestone id,
    so re-aggregating after new events does not collapse layers the user
    opened. Do not share a timeline between conversations.
    """

    def __init__(self, config: EventMergeConfig | None = None, aggregator: EventAggregator | None = None) -> None:
        self._aggregator = aggregator or EventAggregator(config)
        self._events: list[ConversationEvent] = []
        self._layers: list[EventLayer] | None = None
        self._expanded: set[str] = set()

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> list[ConversationEvent]:
        """Accumulated events, in arrival order."""
        return list(self._events)

    @property
    def layers(self) -> list[EventLayer]:
        """Current layers, recomputed lazily after each change."""
        if self._layers is None:
            layers = self._aggregator.aggregate(self._events)
            for layer in layers:
                layer.is_expanded = layer.milestone.id in self._expanded
            self._layers = layers
        return self._layers

    def append(self, event: ConversationEvent) -> None:
        self._events.append(event)
        self._layers = None

    def extend(self, events: Iterable[ConversationEvent]) -> None:
        self._events.extend(events)
        self._layers = None

    def toggle(self, index: int) -> bool:
        """Flip the expanded flag of the layer at ``index``.

        Returns:
            The new expanded state.

        Raises:
            IndexError: If there is no layer at ``index``.
        """
        layer = self.layers[index]
        layer.is_expanded = not layer.is_expanded
        if layer.is_expanded:
            self._expanded.add(layer.milestone.id)
        else:
            self._expanded.discard(layer.milestone.id)
        return layer.is_expanded

    def clear(self) -> None:
        """Drop all events and remembered display state."""
        logger.debug("Clearing timeline with %d events", len(self._events))
        self._events.clear()
        self._expanded.clear()
        self._layers = None

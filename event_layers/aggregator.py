"""Event aggregation.

Turns a flat, chronologically ordered event sequence into a list of
EventLayer objects in a single forward pass:

- milestone events open a new layer;
- lifecycle begin events open a layer that stays ``running`` until the end
  event with the same correlation id arrives;
- incremental events fold into the nearest compatible layer, or into a
  synthesized placeholder milestone when none exists;
- reasoning and unrecognized events nest under the most recent layer.

Malformed input never raises. Unmatched end events, missing correlation ids
and orphan deltas all degrade to standalone layers.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, Field

from event_layers._logger import get_logger
from event_layers.classifier import (
    Locale,
    classify,
    find_pair_definition,
    is_lifecycle_begin,
    is_lifecycle_end,
    should_attach_under,
    virtual_milestone_for,
)
from event_layers.events import ConversationEvent, EventStatus
from event_layers.types import AggregatedData, EventCategory, EventLayer, LifecycleData, LifecycleStatus

logger = get_logger(__name__)


class EventOrderError(ValueError):
    """Raised by the optional ordering check when timestamps decrease."""


class EventMergeConfig(BaseModel):
    """Per-call aggregation options."""

    enable_incremental_merging: bool = True
    """When False, every incremental event gets its own placeholder layer."""

    merge_time_window: float | None = Field(default=None, ge=0)
    """Max gap between a layer's last update and an incremental event folded into it. None disables the bound."""

    max_merge_count: int | None = Field(default=None, ge=1)
    """Max number of events folded into one layer. None disables the bound."""

    preserve_original_events: bool = True
    """Keep folded incremental events in ``related_events``, not just in the counters."""

    locale: Locale = "en"
    """Language of the placeholder text on synthesized milestones."""

    check_ordering: bool = False
    """Raise EventOrderError when input timestamps decrease. Debug aid only."""


DEFAULT_EVENT_MERGE_CONFIG = EventMergeConfig()


def _new_layer(event: ConversationEvent, category: EventCategory) -> EventLayer:
    return EventLayer(
        milestone=event,
        category=category,
        aggregated_data=AggregatedData(total_updates=1, last_update_time=event.timestamp),
    )


class EventAggregator:
    """Builds layers from an ordered event sequence.

    An aggregator holds only configuration; every ``aggregate`` call starts
    from an empty tracker, so one instance may be reused across sessions.
    """

    def __init__(self, config: EventMergeConfig | None = None) -> None:
        self.config = config or DEFAULT_EVENT_MERGE_CONFIG

    def aggregate(self, events: Iterable[ConversationEvent]) -> list[EventLayer]:
        """Aggregate events into layers, preserving the order layers were opened."""
        layers: list[EventLayer] = []
        # correlation id -> index of the open lifecycle layer in ``layers``
        open_lifecycles: dict[str, int] = {}
        previous: ConversationEvent | None = None
        count = 0

        for event in events:
            if self.config.check_ordering and previous is not None and event.timestamp < previous.timestamp:
                raise EventOrderError(
                    f"Event {event.id} ({event.timestamp}) precedes event {previous.id} ({previous.timestamp})"
                )
            previous = event
            count += 1

            category = classify(event.type)
            if category == EventCategory.LIFECYCLE:
                self._handle_lifecycle(layers, open_lifecycles, event)
            elif category == EventCategory.MILESTONE:
                layers.append(_new_layer(event, category))
            elif category == EventCategory.INCREMENTAL:
                self._handle_incremental(layers, event)
            elif layers:
                self._fold(layers[-1], event)
            else:
                layers.append(_new_layer(event, category))

        if open_lifecycles:
            logger.debug("%d lifecycle(s) still running after pass: %s", len(open_lifecycles), sorted(open_lifecycles))
        logger.debug("Aggregated %d events into %d layers", count, len(layers))
        return layers

    def _handle_lifecycle(
        self,
        layers: list[EventLayer],
        open_lifecycles: dict[str, int],
        event: ConversationEvent,
    ) -> None:
        call_id = event.correlation_id
        pair = find_pair_definition(event.type)

        if not call_id or pair is None:
            logger.debug("Lifecycle event %s (%s) has no call id, treating as milestone", event.id, event.type)
            layers.append(_new_layer(event, EventCategory.MILESTONE))
            return

        if is_lifecycle_begin(event.type):
            if call_id in open_lifecycles:
                logger.debug("Call id %s reopened before its end event arrived", call_id)
            layer = _new_layer(event, EventCategory.LIFECYCLE)
            layer.lifecycle_data = LifecycleData(begin_event=event, pair_type=pair)
            layers.append(layer)
            open_lifecycles[call_id] = len(layers) - 1
            return

        if is_lifecycle_end(event.type):
            index = open_lifecycles.pop(call_id, None)
            if index is None:
                logger.debug("End event %s for unknown call id %s, treating as milestone", event.id, call_id)
                layers.append(_new_layer(event, EventCategory.MILESTONE))
                return

            layer = layers[index]
            lifecycle = layer.lifecycle_data
            if lifecycle is None:  # pragma: no cover - tracker only holds lifecycle layers
                layers.append(_new_layer(event, EventCategory.MILESTONE))
                return

            lifecycle.end_event = event
            lifecycle.status = LifecycleStatus.ERROR if event.status == EventStatus.ERROR else LifecycleStatus.COMPLETED
            lifecycle.duration = event.timestamp - lifecycle.begin_event.timestamp
            # Closing completes the begin update rather than adding a new one
            layer.aggregated_data.last_update_time = max(layer.aggregated_data.last_update_time, event.timestamp)

    def _handle_incremental(self, layers: list[EventLayer], event: ConversationEvent) -> None:
        target = self._find_target_layer(layers, event) if self.config.enable_incremental_merging else None

        if target is None or not self._within_bounds(target, event):
            self._open_virtual_layer(layers, event)
            return

        self._fold(target, event, keep=self.config.preserve_original_events)

        lifecycle = target.lifecycle_data
        if lifecycle is not None and event.type == lifecycle.pair_type.output_delta_type:
            lifecycle.output_content = (lifecycle.output_content or "") + (event.delta or "")

    def _find_target_layer(self, layers: list[EventLayer], event: ConversationEvent) -> EventLayer | None:
        for layer in reversed(layers):
            # Closed operations accept no more output
            if layer.lifecycle_data is not None and layer.lifecycle_data.status != LifecycleStatus.RUNNING:
                continue
            if should_attach_under(event, layer.milestone):
                return layer
        return None

    def _within_bounds(self, layer: EventLayer, event: ConversationEvent) -> bool:
        window = self.config.merge_time_window
        if window is not None and event.timestamp - layer.aggregated_data.last_update_time > window:
            return False
        max_count = self.config.max_merge_count
        if max_count is None:
            return True
        # A placeholder's first update is the orphan event itself
        folded = layer.aggregated_data.total_updates - (0 if layer.is_virtual else 1)
        return folded < max_count

    def _open_virtual_layer(self, layers: list[EventLayer], event: ConversationEvent) -> None:
        placeholder = virtual_milestone_for(event.type, self.config.locale)
        milestone = ConversationEvent(
            id=f"virtual-{event.id}",
            type=placeholder.type,
            timestamp=event.timestamp,
            correlation_id=event.correlation_id,
            status=EventStatus.PROCESSING,
            conversation_id=event.conversation_id,
            payload={"message": placeholder.message},
        )
        layer = _new_layer(milestone, EventCategory.MILESTONE)
        layer.is_virtual = True
        layer.related_events.append(event)
        layer.aggregated_data.combined_content = event.delta
        layers.append(layer)
        logger.debug("Synthesized %s placeholder for orphan %s event %s", placeholder.type, event.type, event.id)

    @staticmethod
    def _fold(layer: EventLayer, event: ConversationEvent, keep: bool = True) -> None:
        if keep:
            layer.related_events.append(event)
        data = layer.aggregated_data
        data.total_updates += 1
        data.last_update_time = max(data.last_update_time, event.timestamp)
        delta = event.delta
        if delta is not None:
            data.combined_content = (data.combined_content or "") + delta


def aggregate_events(
    events: Iterable[ConversationEvent],
    config: EventMergeConfig | None = None,
) -> list[EventLayer]:
    """Aggregate events with a one-off EventAggregator."""
    return EventAggregator(config).aggregate(events)

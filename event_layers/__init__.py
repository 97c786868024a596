"""event-layers: group agent protocol event streams into collapsible display layers."""

import importlib.metadata

from event_layers.aggregator import (
    DEFAULT_EVENT_MERGE_CONFIG,
    EventAggregator,
    EventMergeConfig,
    EventOrderError,
    aggregate_events,
)
from event_layers.classifier import (
    PAIRED_EVENT_TYPES,
    can_merge,
    classify,
    find_pair_definition,
    is_lifecycle_begin,
    is_lifecycle_end,
    lifecycle_partner,
    should_attach_under,
    virtual_milestone_for,
)
from event_layers.events import ConversationEvent, EventDecodeError, EventStatus, EventType
from event_layers.timeline import EventTimeline
from event_layers.types import (
    AggregatedData,
    EventCategory,
    EventLayer,
    LifecycleData,
    LifecycleStatus,
    PairDefinition,
    VirtualMilestone,
)

__all__ = [
    "DEFAULT_EVENT_MERGE_CONFIG",
    "PAIRED_EVENT_TYPES",
    "AggregatedData",
    "ConversationEvent",
    "EventAggregator",
    "EventCategory",
    "EventDecodeError",
    "EventLayer",
    "EventMergeConfig",
    "EventOrderError",
    "EventStatus",
    "EventTimeline",
    "EventType",
    "LifecycleData",
    "LifecycleStatus",
    "PairDefinition",
    "VirtualMilestone",
    "__version__",
    "aggregate_events",
    "can_merge",
    "classify",
    "find_pair_definition",
    "is_lifecycle_begin",
    "is_lifecycle_end",
    "lifecycle_partner",
    "should_attach_under",
    "virtual_milestone_for",
]

try:
    __version__ = importlib.metadata.version("event-layers")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"  # Fallback for development mode

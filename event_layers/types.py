"""Type definitions for the layer model.

Contains the enums and models shared by the classifier and the aggregator.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field

from event_layers.events import ConversationEvent


class EventCategory(str, enum.Enum):
    """Semantic category of an event, derived from its type tag."""

    MILESTONE = "milestone"
    INCREMENTAL = "incremental"
    REASONING = "reasoning"
    LIFECYCLE = "lifecycle"
    OTHER = "other"


class LifecycleStatus(str, enum.Enum):
    """State of a begin/end operation."""

    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class PairDefinition(BaseModel):
    """A begin/end event pair sharing a correlation id."""

    model_config = ConfigDict(frozen=True)

    begin_type: str
    end_type: str
    label: str
    output_delta_type: str | None = None


class VirtualMilestone(BaseModel):
    """Canonical milestone kind and placeholder text for an orphan delta."""

    model_config = ConfigDict(frozen=True)

    type: str
    message: str


class AggregatedData(BaseModel):
    """Running counters of a layer."""

    total_updates: int = 1
    last_update_time: float
    combined_content: str | None = None


class LifecycleData(BaseModel):
    """Begin/end state of a lifecycle layer."""

    begin_event: ConversationEvent
    end_event: ConversationEvent | None = None
    pair_type: PairDefinition
    status: LifecycleStatus = LifecycleStatus.RUNNING
    duration: float | None = None
    output_content: str | None = None


class EventLayer(BaseModel):
    """One milestone plus the events nested under it.

    Layers are built and mutated by a single aggregation pass and should be
    treated as read-only afterwards, except for ``is_expanded`` which belongs
    to the presentation layer.
    """

    milestone: ConversationEvent
    related_events: list[ConversationEvent] = Field(default_factory=list)
    is_expanded: bool = False
    category: EventCategory
    aggregated_data: AggregatedData
    lifecycle_data: LifecycleData | None = None
    is_virtual: bool = False

    @property
    def is_lifecycle(self) -> bool:
        return self.lifecycle_data is not None

    @property
    def is_running(self) -> bool:
        """Whether this is a lifecycle layer still waiting for its end event."""
        return self.lifecycle_data is not None and self.lifecycle_data.status == LifecycleStatus.RUNNING

    @property
    def event_count(self) -> int:
        """Number of real input events referenced by this layer.

        A synthesized milestone is not counted; a lifecycle end event is.
        """
        count = len(self.related_events)
        if not self.is_virtual:
            count += 1
        if self.lifecycle_data is not None and self.lifecycle_data.end_event is not None:
            count += 1
        return count

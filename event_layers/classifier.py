"""Event classification.

Maps an event's type tag to an EventCategory and answers the pairing and
attachment questions the aggregator asks. All classification knowledge lives
here: the category sets, the lifecycle pair table, the attach rules and the
virtual-milestone table. Everything in this module is stateless.
"""

from __future__ import annotations

from typing import Literal

from event_layers.events import ConversationEvent, EventType, event_tag
from event_layers.types import EventCategory, PairDefinition, VirtualMilestone

Locale = Literal["en", "zh"]

# Headline events shown in the collapsed view
MILESTONE_EVENT_TYPES: frozenset[str] = frozenset({
    EventType.USER_MESSAGE.value,
    EventType.AGENT_MESSAGE.value,
    EventType.TASK_COMPLETE.value,
    EventType.TASK_STARTED.value,
    EventType.MCP_TOOL_CALL_BEGIN.value,
    EventType.MCP_TOOL_CALL_END.value,
    EventType.WEB_SEARCH_BEGIN.value,
    EventType.WEB_SEARCH_END.value,
    EventType.EXEC_COMMAND_BEGIN.value,
    EventType.EXEC_COMMAND_END.value,
    EventType.EXEC_APPROVAL_REQUEST.value,
    EventType.APPLY_PATCH_APPROVAL_REQUEST.value,
    EventType.ERROR.value,
    EventType.SESSION_CONFIGURED.value,
})

# Streaming updates that elaborate a milestone
INCREMENTAL_EVENT_TYPES: frozenset[str] = frozenset({
    EventType.AGENT_MESSAGE_DELTA.value,
    EventType.AGENT_REASONING_DELTA.value,
    EventType.AGENT_REASONING_RAW_CONTENT_DELTA.value,
    EventType.EXEC_COMMAND_OUTPUT_DELTA.value,
})

# Optional detail events
REASONING_EVENT_TYPES: frozenset[str] = frozenset({
    EventType.AGENT_REASONING.value,
    EventType.AGENT_REASONING_RAW_CONTENT.value,
    EventType.AGENT_REASONING_SECTION_BREAK.value,
})

PAIRED_EVENT_TYPES: tuple[PairDefinition, ...] = (
    PairDefinition(
        begin_type=EventType.EXEC_COMMAND_BEGIN.value,
        end_type=EventType.EXEC_COMMAND_END.value,
        label="Command execution",
        output_delta_type=EventType.EXEC_COMMAND_OUTPUT_DELTA.value,
    ),
    PairDefinition(
        begin_type=EventType.MCP_TOOL_CALL_BEGIN.value,
        end_type=EventType.MCP_TOOL_CALL_END.value,
        label="Tool call",
    ),
    PairDefinition(
        begin_type=EventType.WEB_SEARCH_BEGIN.value,
        end_type=EventType.WEB_SEARCH_END.value,
        label="Web search",
    ),
    PairDefinition(
        begin_type=EventType.PATCH_APPLY_BEGIN.value,
        end_type=EventType.PATCH_APPLY_END.value,
        label="Patch apply",
    ),
)

_PAIRS_BY_BEGIN: dict[str, PairDefinition] = {pair.begin_type: pair for pair in PAIRED_EVENT_TYPES}
_PAIRS_BY_END: dict[str, PairDefinition] = {pair.end_type: pair for pair in PAIRED_EVENT_TYPES}

# Incremental kind -> milestone kind it attaches under
ATTACH_RULES: dict[str, str] = {
    EventType.AGENT_MESSAGE_DELTA.value: EventType.AGENT_MESSAGE.value,
    EventType.AGENT_REASONING_DELTA.value: EventType.AGENT_REASONING.value,
    EventType.AGENT_REASONING_RAW_CONTENT_DELTA.value: EventType.AGENT_REASONING_RAW_CONTENT.value,
    EventType.EXEC_COMMAND_OUTPUT_DELTA.value: EventType.EXEC_COMMAND_BEGIN.value,
}

PLACEHOLDER_MESSAGES: dict[Locale, dict[str, str]] = {
    "en": {
        EventType.AGENT_MESSAGE_DELTA.value: "Assistant is replying...",
        EventType.AGENT_REASONING_DELTA.value: "Assistant is reasoning...",
        EventType.AGENT_REASONING_RAW_CONTENT_DELTA.value: "Processing reasoning content...",
        EventType.EXEC_COMMAND_OUTPUT_DELTA.value: "Command is running...",
    },
    "zh": {
        EventType.AGENT_MESSAGE_DELTA.value: "智能助手正在回复...",
        EventType.AGENT_REASONING_DELTA.value: "智能助手正在推理...",
        EventType.AGENT_REASONING_RAW_CONTENT_DELTA.value: "正在处理推理内容...",
        EventType.EXEC_COMMAND_OUTPUT_DELTA.value: "命令正在执行...",
    },
}

FALLBACK_MILESTONE_TYPE = EventType.TASK_STARTED.value
FALLBACK_MESSAGES: dict[Locale, str] = {"en": "Processing...", "zh": "正在处理..."}


def is_milestone(event_type: str | EventType) -> bool:
    return event_tag(event_type) in MILESTONE_EVENT_TYPES


def is_incremental(event_type: str | EventType) -> bool:
    return event_tag(event_type) in INCREMENTAL_EVENT_TYPES


def is_reasoning(event_type: str | EventType) -> bool:
    return event_tag(event_type) in REASONING_EVENT_TYPES


def is_lifecycle_begin(event_type: str | EventType) -> bool:
    return event_tag(event_type) in _PAIRS_BY_BEGIN


def is_lifecycle_end(event_type: str | EventType) -> bool:
    return event_tag(event_type) in _PAIRS_BY_END


def find_pair_definition(event_type: str | EventType) -> PairDefinition | None:
    """Return the pair whose begin or end tag matches, if any."""
    tag = event_tag(event_type)
    return _PAIRS_BY_BEGIN.get(tag) or _PAIRS_BY_END.get(tag)


def lifecycle_partner(event_type: str | EventType) -> str | None:
    """Given either half of a pair, return the other half's tag."""
    tag = event_tag(event_type)
    if tag in _PAIRS_BY_BEGIN:
        return _PAIRS_BY_BEGIN[tag].end_type
    if tag in _PAIRS_BY_END:
        return _PAIRS_BY_END[tag].begin_type
    return None


def classify(event_type: str | EventType) -> EventCategory:
    """Map a type tag to its category.

    Total over all strings. Lifecycle tags win over the milestone set they
    also belong to; anything unrecognized is OTHER.
    """
    tag = event_tag(event_type)
    if tag in _PAIRS_BY_BEGIN or tag in _PAIRS_BY_END:
        return EventCategory.LIFECYCLE
    if tag in MILESTONE_EVENT_TYPES:
        return EventCategory.MILESTONE
    if tag in INCREMENTAL_EVENT_TYPES:
        return EventCategory.INCREMENTAL
    if tag in REASONING_EVENT_TYPES:
        return EventCategory.REASONING
    return EventCategory.OTHER


def can_merge(first: ConversationEvent, second: ConversationEvent) -> bool:
    """Only incremental events of the same type can merge."""
    return first.type == second.type and is_incremental(first.type)


def should_attach_under(incremental_event: ConversationEvent, milestone_event: ConversationEvent) -> bool:
    """Check whether an incremental event belongs under a candidate milestone.

    Message deltas additionally require the same role when both sides carry
    one, and command output carrying a call id must match the begin event's.
    Whether a command layer is still open is the caller's concern.
    """
    expected = ATTACH_RULES.get(incremental_event.type)
    if expected is None or milestone_event.type != expected:
        return False

    if incremental_event.type == EventType.AGENT_MESSAGE_DELTA.value:
        delta_role, message_role = incremental_event.role, milestone_event.role
        if delta_role is not None and message_role is not None and delta_role != message_role:
            return False

    if incremental_event.type == EventType.EXEC_COMMAND_OUTPUT_DELTA.value:
        call_id = incremental_event.correlation_id
        if call_id is not None and milestone_event.correlation_id is not None:
            return call_id == milestone_event.correlation_id

    return True


def virtual_milestone_for(event_type: str | EventType, locale: Locale = "en") -> VirtualMilestone:
    """Canonical milestone kind and placeholder text for an orphan incremental event."""
    tag = event_tag(event_type)
    messages = PLACEHOLDER_MESSAGES.get(locale, PLACEHOLDER_MESSAGES["en"])
    milestone_type = ATTACH_RULES.get(tag)
    if milestone_type is None:
        return VirtualMilestone(type=FALLBACK_MILESTONE_TYPE, message=FALLBACK_MESSAGES.get(locale, FALLBACK_MESSAGES["en"]))
    return VirtualMilestone(type=milestone_type, message=messages[tag])

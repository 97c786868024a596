"""Event value model consumed by the aggregation engine.

Events arrive already decoded and ordered from the host application. This
module only describes their shape; it never performs I/O. Every event carries
a ``type`` tag from the agent protocol (see EventType), a comparable
``timestamp`` and a free-form ``payload``. Tags the engine does not know about
are still valid events and classify as "other".
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EventDecodeError(ValueError):
    """Raised when a wire object cannot be turned into a ConversationEvent."""


class EventType(str, enum.Enum):
    """Type tags of the agent protocol."""

    # Messages
    USER_MESSAGE = "user_message"
    AGENT_MESSAGE = "agent_message"
    AGENT_MESSAGE_DELTA = "agent_message_delta"

    # Reasoning
    AGENT_REASONING = "agent_reasoning"
    AGENT_REASONING_DELTA = "agent_reasoning_delta"
    AGENT_REASONING_RAW_CONTENT = "agent_reasoning_raw_content"
    AGENT_REASONING_RAW_CONTENT_DELTA = "agent_reasoning_raw_content_delta"
    AGENT_REASONING_SECTION_BREAK = "agent_reasoning_section_break"

    # Task / session
    SESSION_CONFIGURED = "session_configured"
    TASK_STARTED = "task_started"
    TASK_COMPLETE = "task_complete"
    TURN_ABORTED = "turn_aborted"
    TURN_DIFF = "turn_diff"
    TOKEN_COUNT = "token_count"
    PLAN_UPDATE = "plan_update"
    SHUTDOWN_COMPLETE = "shutdown_complete"
    ENTERED_REVIEW_MODE = "entered_review_mode"
    EXITED_REVIEW_MODE = "exited_review_mode"

    # Commands
    EXEC_COMMAND_BEGIN = "exec_command_begin"
    EXEC_COMMAND_OUTPUT_DELTA = "exec_command_output_delta"
    EXEC_COMMAND_END = "exec_command_end"
    EXEC_APPROVAL_REQUEST = "exec_approval_request"

    # Tools
    MCP_TOOL_CALL_BEGIN = "mcp_tool_call_begin"
    MCP_TOOL_CALL_END = "mcp_tool_call_end"
    MCP_LIST_TOOLS_RESPONSE = "mcp_list_tools_response"

    # Web search
    WEB_SEARCH_BEGIN = "web_search_begin"
    WEB_SEARCH_END = "web_search_end"

    # Patches
    PATCH_APPLY_BEGIN = "patch_apply_begin"
    PATCH_APPLY_END = "patch_apply_end"
    APPLY_PATCH_APPROVAL_REQUEST = "apply_patch_approval_request"

    # Misc responses and diagnostics
    BACKGROUND_EVENT = "background_event"
    STREAM_ERROR = "stream_error"
    ERROR = "error"
    CONVERSATION_PATH = "conversation_path"
    GET_HISTORY_ENTRY_RESPONSE = "get_history_entry_response"
    LIST_CUSTOM_PROMPTS_RESPONSE = "list_custom_prompts_response"


class EventStatus(str, enum.Enum):
    """Status hint carried by an event."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


# Envelope keys of the host's wire shape that are not part of the payload
_ENVELOPE_KEYS = frozenset({
    "id",
    "type",
    "timestamp",
    "status",
    "conversationId",
    "conversation_id",
    "correlationId",
    "correlation_id",
    "event",
})


def event_tag(value: str | enum.Enum) -> str:
    """Wire tag of an event type given as a string or an enum member."""
    return value.value if isinstance(value, enum.Enum) else value


class ConversationEvent(BaseModel):
    """A single protocol event as delivered by the host application.

    Unknown keyword arguments are folded into ``payload``, so
    ``ConversationEvent(type="agent_message_delta", timestamp=1, delta="Hi")``
    is equivalent to passing ``payload={"delta": "Hi"}``. When no explicit
    ``correlation_id`` is given, the protocol's ``call_id`` payload field is
    used.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: str
    timestamp: float = 0
    correlation_id: str | None = None
    status: EventStatus | str | None = None
    conversation_id: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_payload(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data

        values = {key: value for key, value in data.items() if key in cls.model_fields}
        payload = dict(values.get("payload") or {})
        payload.update({key: value for key, value in data.items() if key not in cls.model_fields})
        values["payload"] = payload

        if isinstance(values.get("type"), enum.Enum):
            values["type"] = event_tag(values["type"])
        if values.get("correlation_id") is None and payload.get("call_id") is not None:
            values["correlation_id"] = payload["call_id"]
        # Call ids are opaque; hosts sometimes send them as numbers
        for key in ("id", "correlation_id"):
            if values.get(key) is not None and not isinstance(values[key], str):
                values[key] = str(values[key])
        return values

    @property
    def delta(self) -> str | None:
        """Streamed text carried by this event, if any."""
        for key in ("delta", "chunk"):
            value = self.payload.get(key)
            if isinstance(value, str):
                return value
        return None

    @property
    def message(self) -> str | None:
        value = self.payload.get("message")
        return value if isinstance(value, str) else None

    @property
    def role(self) -> str | None:
        value = self.payload.get("role")
        return value if isinstance(value, str) else None

    def is_type(self, event_type: str | EventType) -> bool:
        return self.type == event_tag(event_type)

    @classmethod
    def from_wire(cls, obj: Any) -> ConversationEvent:
        """Build an event from the host's JSON shape.

        Accepts either the enveloped form::

            {"id": "e1", "conversationId": "c1", "timestamp": 10, "status": "completed",
             "event": {"type": "agent_message", "message": "hello"}}

        or a flat object with ``type`` and ``timestamp`` next to the payload fields.

        Raises:
            EventDecodeError: If the object is not a mapping or has no string type tag.
        """
        if not isinstance(obj, Mapping):
            raise EventDecodeError(f"Expected an object, got {type(obj).__name__}")

        body = obj.get("event")
        if not isinstance(body, Mapping):
            body = obj

        event_type = body.get("type")
        if not isinstance(event_type, str) or not event_type:
            raise EventDecodeError("Event has no type tag")

        payload = {key: value for key, value in body.items() if key not in _ENVELOPE_KEYS}

        values: dict[str, Any] = {
            "type": event_type,
            "timestamp": obj.get("timestamp", body.get("timestamp", 0)),
            "status": obj.get("status", body.get("status")),
            "conversation_id": obj.get("conversationId", obj.get("conversation_id")),
            "correlation_id": obj.get("correlationId", obj.get("correlation_id")),
            "payload": payload,
        }
        event_id = obj.get("id")
        if event_id is not None:
            values["id"] = str(event_id)

        try:
            return cls.model_validate(values)
        except ValueError as e:
            raise EventDecodeError(str(e)) from e

"""Audit events for the approval workflow lifecycle.

This module defines the events the engine emits for every created workflow
and every accepted approval action. Each event carries the workflow status
and the acted-on step before and after the transition, so a history view
can be rebuilt from events alone.

Events serialize to JSON with :func:`encode_event` and back with
:func:`decode_event`; the ``event_type`` tag selects the concrete class.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID

import msgspec

from litestar_approvals.core.types import ApprovalAction, WorkflowStatus

__all__ = [
    "EVENT_TYPES",
    "ApprovalRecorded",
    "WorkflowCompleted",
    "WorkflowCreated",
    "WorkflowEvent",
    "WorkflowRejected",
    "WorkflowStepAdvanced",
    "decode_event",
    "encode_event",
    "snapshot",
]


def snapshot(value: Any) -> dict[str, Any] | None:
    """Convert a step (or any model) into a plain, JSON-ready dictionary.

    The value goes through a JSON round-trip so that tuples become lists and
    the snapshot compares equal to its decoded form.
    """
    if value is None:
        return None
    return msgspec.json.decode(msgspec.json.encode(value))


@dataclass
class WorkflowEvent:
    """Base class for all audit events.

    Attributes:
        workflow_id: Unique identifier of the workflow.
        timestamp: When the transition happened.
        actor_id: User who triggered the transition.
        after_status: Workflow status after the transition.
        before_status: Workflow status before the transition; None on creation.
        step_id: Step the action was recorded on.
        action: The recorded approval action.
        comment: Comment attached to the action.
        before_step: Snapshot of the step before the action.
        after_step: Snapshot of the step after the action.
        before_step_index: Current step index before the transition.
        after_step_index: Current step index after the transition.
    """

    event_type: ClassVar[str] = "workflow.event"

    workflow_id: UUID
    timestamp: datetime
    actor_id: str
    after_status: WorkflowStatus
    before_status: WorkflowStatus | None = None
    step_id: UUID | None = None
    action: ApprovalAction | None = None
    comment: str | None = None
    before_step: dict[str, Any] | None = None
    after_step: dict[str, Any] | None = None
    before_step_index: int | None = None
    after_step_index: int | None = None


@dataclass
class WorkflowCreated(WorkflowEvent):
    """Event emitted when a workflow is created from a template.

    Attributes:
        content_id: Identifier of the content under review.
        content_type: Content-type tag of the content.
        template_id: Template the workflow was materialized from.
        template_version: Version of that template.
        due_date: Optional deadline of the workflow.
    """

    event_type: ClassVar[str] = "workflow.created"

    content_id: str = ""
    content_type: str = ""
    template_id: UUID | None = None
    template_version: int | None = None
    due_date: datetime | None = None


@dataclass
class ApprovalRecorded(WorkflowEvent):
    """Event emitted when an action is accepted but the step stays open."""

    event_type: ClassVar[str] = "workflow.approval_recorded"


@dataclass
class WorkflowStepAdvanced(WorkflowEvent):
    """Event emitted when a step reaches its threshold and the next step opens.

    Attributes:
        next_step_id: The step that is now accepting actions.
    """

    event_type: ClassVar[str] = "workflow.step_advanced"

    next_step_id: UUID | None = None


@dataclass
class WorkflowCompleted(WorkflowEvent):
    """Event emitted when the last step reaches its threshold.

    Attributes:
        duration_seconds: Seconds between submission and approval.
    """

    event_type: ClassVar[str] = "workflow.completed"

    duration_seconds: float | None = None


@dataclass
class WorkflowRejected(WorkflowEvent):
    """Event emitted when an approver rejects the content."""

    event_type: ClassVar[str] = "workflow.rejected"


EVENT_TYPES: dict[str, type[WorkflowEvent]] = {
    cls.event_type: cls
    for cls in (
        WorkflowCreated,
        ApprovalRecorded,
        WorkflowStepAdvanced,
        WorkflowCompleted,
        WorkflowRejected,
    )
}
"""Mapping of wire tags to event classes."""


def encode_event(event: WorkflowEvent) -> bytes:
    """Serialize an event to JSON, tagged with its ``event_type``.

    Args:
        event: The event to serialize.

    Returns:
        UTF-8 encoded JSON.
    """
    payload = msgspec.to_builtins(event)
    payload["event_type"] = event.event_type
    return msgspec.json.encode(payload)


def decode_event(data: bytes | str) -> WorkflowEvent:
    """Deserialize an event produced by :func:`encode_event`.

    Args:
        data: JSON document.

    Returns:
        An instance of the event class named by ``event_type``.

    Raises:
        ValueError: If the tag is missing or unknown.
    """
    payload = msgspec.json.decode(data)
    tag = payload.pop("event_type", None)
    if tag not in EVENT_TYPES:
        msg = f"Unknown workflow event type: {tag!r}"
        raise ValueError(msg)
    return msgspec.convert(payload, type=EVENT_TYPES[tag])

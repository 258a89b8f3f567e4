"""Core type definitions for litestar-approvals.

This module defines the closed enumerations used throughout the approval
engine: the actions an approver can take, and the statuses of steps and
workflows.
"""

from __future__ import annotations

import sys
from enum import Enum

# StrEnum backport for Python < 3.11
if sys.version_info >= (3, 11):
    from enum import StrEnum
else:

    class StrEnum(str, Enum):
        """String enumeration compatibility for Python < 3.11."""

        def __str__(self) -> str:
            return str(self.value)


__all__ = [
    "TERMINAL_WORKFLOW_STATUSES",
    "ApprovalAction",
    "StepStatus",
    "WorkflowStatus",
]


class ApprovalAction(StrEnum):
    """Decision an approver records against the current step.

    Attributes:
        APPROVED: Counts towards the step's approval threshold.
        REJECTED: Rejects the whole workflow immediately.
        REQUESTED_CHANGES: Advisory feedback; the step stays open.
    """

    APPROVED = "approved"
    REJECTED = "rejected"
    REQUESTED_CHANGES = "requested_changes"

    @property
    def requires_comment(self) -> bool:
        """Whether a non-empty comment must accompany this action."""
        return self is not ApprovalAction.APPROVED


class StepStatus(StrEnum):
    """Status of a single step within a workflow.

    Attributes:
        PENDING: Step has not been reached yet.
        IN_PROGRESS: Step is the current step and accepts actions.
        COMPLETED: Threshold met, or the step carried the rejecting action.
        SKIPPED: Step was bypassed and counts as done.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"

    @property
    def is_done(self) -> bool:
        return self in (StepStatus.COMPLETED, StepStatus.SKIPPED)


class WorkflowStatus(StrEnum):
    """Overall status of a workflow.

    Attributes:
        PENDING: Created, no action recorded yet.
        IN_PROGRESS: At least one action recorded, not yet terminal.
        APPROVED: Every step completed.
        REJECTED: An approver rejected the content.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_WORKFLOW_STATUSES


TERMINAL_WORKFLOW_STATUSES = frozenset({WorkflowStatus.APPROVED, WorkflowStatus.REJECTED})
"""Statuses after which a workflow accepts no further mutation."""

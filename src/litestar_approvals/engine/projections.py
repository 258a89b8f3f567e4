"""Display-oriented projections of workflow snapshots.

Every function here is pure: it reads an immutable ``Workflow`` (or ``Step``)
snapshot and returns a derived value. None of them lock, so they can run
concurrently with mutations of any workflow.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from litestar_approvals.core.models import Step, Workflow
from litestar_approvals.core.types import ApprovalAction, WorkflowStatus

__all__ = [
    "URGENCY_WINDOW",
    "ApproverMetrics",
    "WorkflowMetrics",
    "approver_metrics",
    "days_until_due",
    "is_urgent",
    "pending_approvers",
    "progress",
    "requires_action",
    "step_progress",
    "workflow_metrics",
]

URGENCY_WINDOW = timedelta(days=2)
"""How close to its due date a workflow needing action becomes urgent."""


def progress(workflow: Workflow) -> float:
    """Percentage of steps that are completed or skipped.

    Returns:
        A value between 0 and 100; 0 for a workflow without steps.
    """
    if not workflow.steps:
        return 0.0
    done = sum(1 for step in workflow.steps if step.status.is_done)
    return done / len(workflow.steps) * 100


def step_progress(step: Step) -> float:
    """Percentage of a step's approval threshold that has been reached, capped at 100."""
    if step.required_approvals <= 0:
        return 100.0
    return min(step.approved_count / step.required_approvals * 100, 100.0)


def requires_action(workflow: Workflow, user_id: str) -> bool:
    """Whether ``user_id`` is expected to act on the current step.

    True when the current step is still open, the user is assigned to it and
    has not recorded any action on it yet.
    """
    step = workflow.current_step
    if step is None or step.status.is_done:
        return False
    return step.is_assigned(user_id) and not step.has_acted(user_id)


def pending_approvers(workflow: Workflow) -> list[str]:
    """Assigned users of the current step who still need to act, sorted."""
    step = workflow.current_step
    if step is None:
        return []
    return sorted(user_id for user_id in step.assigned_user_ids if requires_action(workflow, user_id))


def is_urgent(workflow: Workflow, now: datetime, window: timedelta = URGENCY_WINDOW) -> bool:
    """Whether the workflow is due within ``window`` and someone still has to act.

    Args:
        workflow: The snapshot to inspect.
        now: Reference time.
        window: How close to the due date counts as urgent.
    """
    if workflow.due_date is None:
        return False
    if workflow.due_date - now > window:
        return False
    return bool(pending_approvers(workflow))


def days_until_due(workflow: Workflow, now: datetime) -> int | None:
    """Whole days left until the due date, rounded up; negative when overdue."""
    if workflow.due_date is None:
        return None
    return math.ceil((workflow.due_date - now) / timedelta(days=1))


@dataclass(frozen=True)
class ApproverMetrics:
    """Decisions and turnaround of a single approver.

    Attributes:
        user_id: The approver.
        total_actions: Number of recorded decisions.
        approved: Decisions that approved.
        rejected: Decisions that rejected.
        requested_changes: Decisions that asked for changes.
        approval_rate: Percentage of decisions that approved.
        average_response_hours: Mean time from a step opening to the approver's decision.
    """

    user_id: str
    total_actions: int
    approved: int
    rejected: int
    requested_changes: int
    approval_rate: float
    average_response_hours: float


@dataclass(frozen=True)
class WorkflowMetrics:
    """Aggregate figures over a set of workflows.

    Attributes:
        total: Number of workflows.
        pending: Workflows with no action recorded yet.
        in_progress: Workflows under review.
        approved: Approved workflows.
        rejected: Rejected workflows.
        approval_rate: Percentage of terminal workflows that were approved.
        rejection_rate: Percentage of terminal workflows that were rejected.
        average_completion_hours: Mean submit-to-terminal time, None if nothing finished.
        approvers: Per-approver figures, ordered by user id.
    """

    total: int
    pending: int
    in_progress: int
    approved: int
    rejected: int
    approval_rate: float
    rejection_rate: float
    average_completion_hours: float | None
    approvers: tuple[ApproverMetrics, ...] = ()


def workflow_metrics(workflows: Iterable[Workflow]) -> WorkflowMetrics:
    """Summarize outcomes and turnaround times of ``workflows``."""
    workflows = list(workflows)
    counts = dict.fromkeys(WorkflowStatus, 0)
    durations: list[float] = []

    for workflow in workflows:
        counts[workflow.status] += 1
        if workflow.completed_at is not None:
            durations.append((workflow.completed_at - workflow.submitted_at).total_seconds() / 3600)

    finished = counts[WorkflowStatus.APPROVED] + counts[WorkflowStatus.REJECTED]
    return WorkflowMetrics(
        total=sum(counts.values()),
        pending=counts[WorkflowStatus.PENDING],
        in_progress=counts[WorkflowStatus.IN_PROGRESS],
        approved=counts[WorkflowStatus.APPROVED],
        rejected=counts[WorkflowStatus.REJECTED],
        approval_rate=counts[WorkflowStatus.APPROVED] / finished * 100 if finished else 0.0,
        rejection_rate=counts[WorkflowStatus.REJECTED] / finished * 100 if finished else 0.0,
        average_completion_hours=sum(durations) / len(durations) if durations else None,
        approvers=approver_metrics(workflows),
    )


def approver_metrics(workflows: Iterable[Workflow]) -> tuple[ApproverMetrics, ...]:
    """Per-approver decision counts and response times over ``workflows``.

    A step opens when the workflow is submitted (first step) or when the
    previous step reaches its threshold, which is the time of that step's
    last decision. Response time runs from the step opening to the decision.
    """
    actions: dict[str, list[ApprovalAction]] = defaultdict(list)
    response_hours: dict[str, list[float]] = defaultdict(list)

    for workflow in workflows:
        opened_at = workflow.submitted_at
        for step in workflow.steps:
            if not step.approvals:
                break
            for approval in step.approvals:
                actions[approval.user_id].append(approval.action)
                response_hours[approval.user_id].append((approval.timestamp - opened_at).total_seconds() / 3600)
            opened_at = max(approval.timestamp for approval in step.approvals)

    summaries = []
    for user_id in sorted(actions):
        decisions = actions[user_id]
        approved = decisions.count(ApprovalAction.APPROVED)
        hours = response_hours[user_id]
        summaries.append(
            ApproverMetrics(
                user_id=user_id,
                total_actions=len(decisions),
                approved=approved,
                rejected=decisions.count(ApprovalAction.REJECTED),
                requested_changes=decisions.count(ApprovalAction.REQUESTED_CHANGES),
                approval_rate=approved / len(decisions) * 100,
                average_response_hours=sum(hours) / len(hours),
            )
        )
    return tuple(summaries)

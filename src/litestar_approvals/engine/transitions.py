"""Pure state transitions for approval workflows.

Nothing in this module touches storage, locks or sinks. Given a workflow
snapshot and a requested action, :func:`apply_action` either raises the
matching precondition error or returns the next snapshot together with the
audit event describing the transition.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from litestar_approvals.core.events import (
    ApprovalRecorded,
    WorkflowCompleted,
    WorkflowCreated,
    WorkflowEvent,
    WorkflowRejected,
    WorkflowStepAdvanced,
    snapshot,
)
from litestar_approvals.core.models import Approval, Step, Workflow
from litestar_approvals.core.types import ApprovalAction, StepStatus, WorkflowStatus
from litestar_approvals.exceptions import (
    AlreadyActedError,
    CommentRequiredError,
    NotAssignedError,
    StepNotCurrentError,
    TemplateMismatchError,
    WorkflowTerminalError,
)

if TYPE_CHECKING:
    from datetime import datetime

    from litestar_approvals.core.models import WorkflowTemplate

__all__ = ["Transition", "apply_action", "check_action", "materialize"]


@dataclass(frozen=True)
class Transition:
    """Result of an accepted action.

    Attributes:
        workflow: The workflow snapshot after the action.
        event: The audit event describing the transition.
    """

    workflow: Workflow
    event: WorkflowEvent


def materialize(
    template: WorkflowTemplate,
    *,
    content_id: str,
    content_title: str,
    content_type: str,
    submitted_by: str,
    now: datetime,
    due_date: datetime | None = None,
    submitted_by_name: str | None = None,
    workflow_id: UUID | None = None,
) -> Transition:
    """Instantiate a workflow from a template.

    The template's step definitions are copied into fresh ``Step`` values, so
    later template revisions never reach running workflows.

    Raises:
        TemplateMismatchError: If the template does not cover ``content_type``.
    """
    if not template.applies_to(content_type):
        raise TemplateMismatchError(template.id, content_type)

    steps = tuple(
        Step.from_definition(
            definition,
            status=StepStatus.IN_PROGRESS if index == 0 else StepStatus.PENDING,
        )
        for index, definition in enumerate(template.steps)
    )
    workflow = Workflow(
        id=workflow_id or uuid4(),
        content_id=content_id,
        content_title=content_title,
        content_type=content_type,
        template_id=template.id,
        template_version=template.version,
        steps=steps,
        current_step_index=0,
        status=WorkflowStatus.PENDING,
        submitted_by=submitted_by,
        submitted_by_name=submitted_by_name,
        submitted_at=now,
        due_date=due_date,
    )
    event = WorkflowCreated(
        workflow_id=workflow.id,
        timestamp=now,
        actor_id=submitted_by,
        after_status=workflow.status,
        after_step_index=0,
        content_id=content_id,
        content_type=content_type,
        template_id=template.id,
        template_version=template.version,
        due_date=due_date,
    )
    return Transition(workflow=workflow, event=event)


def check_action(
    workflow: Workflow,
    step_id: UUID,
    user_id: str,
    action: ApprovalAction,
    comment: str | None,
) -> Step:
    """Validate an action against a workflow snapshot.

    Checks run in a fixed order and the first violation is raised.

    Returns:
        The current step, which the action targets.

    Raises:
        WorkflowTerminalError: If the workflow is approved or rejected.
        StepNotCurrentError: If ``step_id`` is not the current step.
        NotAssignedError: If the user is not assigned to the step.
        AlreadyActedError: If the user already acted on the step.
        CommentRequiredError: If a reject/request-changes has no comment.
    """
    if workflow.is_terminal:
        raise WorkflowTerminalError(workflow.id, workflow.status)

    step = workflow.current_step
    if step is None or step.id != step_id:
        raise StepNotCurrentError(workflow.id, step_id, step.id if step else None)

    if not step.is_assigned(user_id):
        raise NotAssignedError(step.id, user_id)

    previous = step.approval_for(user_id)
    if previous is not None:
        raise AlreadyActedError(step.id, user_id, previous.action)

    if action.requires_comment and not (comment and comment.strip()):
        raise CommentRequiredError(action)

    return step


def apply_action(
    workflow: Workflow,
    step_id: UUID,
    user_id: str,
    user_name: str,
    action: ApprovalAction,
    comment: str | None,
    now: datetime,
) -> Transition:
    """Apply one approval action to a workflow snapshot.

    Args:
        workflow: The current snapshot.
        step_id: The step the actor is acting on.
        user_id: The acting user.
        user_name: Display name of the acting user.
        action: The decision being recorded.
        comment: Optional comment; required for reject and request-changes.
        now: Timestamp of the action.

    Returns:
        The next snapshot and the audit event describing the transition.

    Raises:
        ApprovalsError: The first failed precondition, see :func:`check_action`.
    """
    step = check_action(workflow, step_id, user_id, action, comment)
    index = workflow.current_step_index

    approval = Approval(
        user_id=user_id,
        user_name=user_name,
        action=action,
        timestamp=now,
        comment=comment or None,
    )
    acted = step.with_approval(approval)
    steps = list(workflow.steps)
    common = {
        "workflow_id": workflow.id,
        "timestamp": now,
        "actor_id": user_id,
        "before_status": workflow.status,
        "step_id": step.id,
        "action": action,
        "comment": approval.comment,
        "before_step": snapshot(step),
        "before_step_index": index,
    }

    if action is ApprovalAction.REJECTED:
        steps[index] = replace(acted, status=StepStatus.COMPLETED)
        updated = _commit(workflow, steps, status=WorkflowStatus.REJECTED, completed_at=now)
        event: WorkflowEvent = WorkflowRejected(
            **common,
            after_status=updated.status,
            after_step=snapshot(steps[index]),
            after_step_index=index,
        )

    elif action is ApprovalAction.REQUESTED_CHANGES:
        steps[index] = acted
        updated = _commit(workflow, steps, status=WorkflowStatus.IN_PROGRESS)
        event = ApprovalRecorded(
            **common,
            after_status=updated.status,
            after_step=snapshot(acted),
            after_step_index=index,
        )

    elif action is ApprovalAction.APPROVED:
        if not acted.threshold_met:
            steps[index] = acted
            updated = _commit(workflow, steps, status=WorkflowStatus.IN_PROGRESS)
            event = ApprovalRecorded(
                **common,
                after_status=updated.status,
                after_step=snapshot(acted),
                after_step_index=index,
            )
        elif index == len(steps) - 1:
            steps[index] = replace(acted, status=StepStatus.COMPLETED)
            updated = _commit(
                workflow,
                steps,
                status=WorkflowStatus.APPROVED,
                completed_at=now,
                current_step_index=len(steps),
            )
            event = WorkflowCompleted(
                **common,
                after_status=updated.status,
                after_step=snapshot(steps[index]),
                after_step_index=updated.current_step_index,
                duration_seconds=(now - workflow.submitted_at).total_seconds(),
            )
        else:
            steps[index] = replace(acted, status=StepStatus.COMPLETED)
            steps[index + 1] = replace(steps[index + 1], status=StepStatus.IN_PROGRESS)
            updated = _commit(
                workflow,
                steps,
                status=WorkflowStatus.IN_PROGRESS,
                current_step_index=index + 1,
            )
            event = WorkflowStepAdvanced(
                **common,
                after_status=updated.status,
                after_step=snapshot(steps[index]),
                after_step_index=updated.current_step_index,
                next_step_id=steps[index + 1].id,
            )

    else:
        msg = f"Unhandled approval action: {action!r}"
        raise ValueError(msg)

    return Transition(workflow=updated, event=event)


def _commit(workflow: Workflow, steps: list[Step], **changes: object) -> Workflow:
    return replace(workflow, steps=tuple(steps), revision=workflow.revision + 1, **changes)

"""Data Transfer Objects for the approval web API.

This module defines DTOs for serializing and deserializing templates and
workflows in REST API requests and responses, plus the helpers that build
them from engine snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from litestar_approvals.core.models import Step, StepDefinition, Workflow, WorkflowTemplate
from litestar_approvals.core.types import ApprovalAction
from litestar_approvals.engine.projections import progress, step_progress

if TYPE_CHECKING:
    from collections.abc import Sequence

    from litestar_approvals.engine.local import BulkActionResult

__all__ = [
    "ApprovalDTO",
    "BulkActionDTO",
    "BulkActionItemDTO",
    "BulkActionResultDTO",
    "CreateTemplateDTO",
    "CreateWorkflowDTO",
    "RecordActionDTO",
    "StepDTO",
    "StepDefinitionDTO",
    "StepDefinitionInputDTO",
    "TemplateDTO",
    "WorkflowDTO",
    "WorkflowProgressDTO",
    "bulk_results_to_dto",
    "template_to_dto",
    "workflow_to_dto",
]


@dataclass
class StepDefinitionInputDTO:
    """DTO for one step of a template being created.

    Attributes:
        name: Display name of the step.
        required_approvals: Approvals needed to close the step.
        assigned_user_ids: Users eligible to act on the step.
        order: Zero-based position of the step.
        description: Optional description.
        is_parallel: Display hint; does not change approval counting.
    """

    name: str
    required_approvals: int
    assigned_user_ids: list[str]
    order: int
    description: str = ""
    is_parallel: bool = False

    def to_definition(self) -> StepDefinition:
        return StepDefinition(
            name=self.name,
            required_approvals=self.required_approvals,
            assigned_user_ids=frozenset(self.assigned_user_ids),
            order=self.order,
            description=self.description,
            is_parallel=self.is_parallel,
        )


@dataclass
class CreateTemplateDTO:
    """DTO for creating a workflow template.

    Attributes:
        name: Template name.
        description: Human-readable description.
        content_types: Content types the template applies to.
        steps: Step definitions.
        is_default: Whether the template is the default for its content types.
        created_by: User creating the template.
    """

    name: str
    content_types: list[str]
    steps: list[StepDefinitionInputDTO]
    description: str = ""
    is_default: bool = False
    created_by: str | None = None


@dataclass
class StepDefinitionDTO:
    """DTO for a template step."""

    id: UUID
    name: str
    description: str
    required_approvals: int
    assigned_user_ids: list[str]
    order: int
    is_parallel: bool


@dataclass
class TemplateDTO:
    """DTO for a workflow template version."""

    id: UUID
    name: str
    description: str
    content_types: list[str]
    steps: list[StepDefinitionDTO]
    version: int
    is_default: bool
    created_by: str | None = None
    created_at: datetime | None = None


@dataclass
class CreateWorkflowDTO:
    """DTO for submitting content for approval.

    Attributes:
        template_id: Template to instantiate (latest version is used).
        content_id: Identifier of the content.
        content_title: Title of the content.
        content_type: Content-type tag; must be covered by the template.
        submitted_by: User submitting the content.
        submitted_by_name: Display name of the submitter.
        due_date: Optional review deadline.
    """

    template_id: UUID
    content_id: str
    content_title: str
    content_type: str
    submitted_by: str
    submitted_by_name: str | None = None
    due_date: datetime | None = None


@dataclass
class RecordActionDTO:
    """DTO for an approver's decision.

    Attributes:
        user_id: Acting user.
        user_name: Display name of the acting user.
        action: ``approved``, ``rejected`` or ``requested_changes``.
        comment: Required when rejecting or requesting changes.
    """

    user_id: str
    user_name: str
    action: ApprovalAction
    comment: str | None = None


@dataclass
class BulkActionDTO:
    """DTO for one decision applied to the current step of several workflows.

    Attributes:
        workflow_ids: Workflows to act on, in order.
        user_id: Acting user.
        user_name: Display name of the acting user.
        action: ``approved``, ``rejected`` or ``requested_changes``.
        comment: Required when rejecting or requesting changes.
    """

    workflow_ids: list[UUID]
    user_id: str
    user_name: str
    action: ApprovalAction
    comment: str | None = None


@dataclass
class BulkActionItemDTO:
    """DTO for the outcome of a bulk decision on one workflow."""

    workflow_id: UUID
    succeeded: bool
    status: str | None = None
    error: str | None = None
    message: str | None = None


@dataclass
class BulkActionResultDTO:
    """DTO for the outcome of a bulk decision."""

    results: list[BulkActionItemDTO]
    succeeded: int
    failed: int


@dataclass
class ApprovalDTO:
    """DTO for a recorded approval action."""

    id: UUID
    user_id: str
    user_name: str
    action: str
    timestamp: datetime
    comment: str | None = None


@dataclass
class StepDTO:
    """DTO for a step instance, including its threshold progress."""

    id: UUID
    name: str
    description: str
    order: int
    status: str
    required_approvals: int
    approved_count: int
    progress: float
    is_parallel: bool
    assigned_user_ids: list[str]
    approvals: list[ApprovalDTO] = field(default_factory=list)


@dataclass
class WorkflowDTO:
    """DTO for a workflow snapshot."""

    id: UUID
    content_id: str
    content_title: str
    content_type: str
    template_id: UUID
    template_version: int
    status: str
    current_step_index: int
    current_step_id: UUID | None
    progress: float
    submitted_by: str
    submitted_at: datetime
    steps: list[StepDTO]
    submitted_by_name: str | None = None
    completed_at: datetime | None = None
    due_date: datetime | None = None
    revision: int = 0


@dataclass
class WorkflowProgressDTO:
    """DTO for the projections of one workflow, optionally for one user.

    Attributes:
        workflow_id: The workflow.
        status: Current workflow status.
        progress: Percentage of completed or skipped steps.
        current_step_id: Step accepting actions, if any.
        current_step_progress: Threshold progress of that step.
        pending_approvers: Users still expected to act on that step.
        is_urgent: Whether the due date is close and action is pending.
        days_until_due: Days left until the due date.
        requires_action: Whether the queried user needs to act; None without a user.
    """

    workflow_id: UUID
    status: str
    progress: float
    current_step_id: UUID | None
    current_step_progress: float | None
    pending_approvers: list[str]
    is_urgent: bool
    days_until_due: int | None = None
    requires_action: bool | None = None


def template_to_dto(template: WorkflowTemplate) -> TemplateDTO:
    """Build the API representation of a template."""
    return TemplateDTO(
        id=template.id,
        name=template.name,
        description=template.description,
        content_types=sorted(template.applicable_content_types),
        steps=[
            StepDefinitionDTO(
                id=step.id,
                name=step.name,
                description=step.description,
                required_approvals=step.required_approvals,
                assigned_user_ids=sorted(step.assigned_user_ids),
                order=step.order,
                is_parallel=step.is_parallel,
            )
            for step in template.steps
        ],
        version=template.version,
        is_default=template.is_default,
        created_by=template.created_by,
        created_at=template.created_at,
    )


def _step_to_dto(step: Step) -> StepDTO:
    return StepDTO(
        id=step.id,
        name=step.name,
        description=step.description,
        order=step.order,
        status=step.status.value,
        required_approvals=step.required_approvals,
        approved_count=step.approved_count,
        progress=step_progress(step),
        is_parallel=step.is_parallel,
        assigned_user_ids=sorted(step.assigned_user_ids),
        approvals=[
            ApprovalDTO(
                id=approval.id,
                user_id=approval.user_id,
                user_name=approval.user_name,
                action=approval.action.value,
                timestamp=approval.timestamp,
                comment=approval.comment,
            )
            for approval in step.approvals
        ],
    )


def workflow_to_dto(workflow: Workflow) -> WorkflowDTO:
    """Build the API representation of a workflow snapshot."""
    current = workflow.current_step
    return WorkflowDTO(
        id=workflow.id,
        content_id=workflow.content_id,
        content_title=workflow.content_title,
        content_type=workflow.content_type,
        template_id=workflow.template_id,
        template_version=workflow.template_version,
        status=workflow.status.value,
        current_step_index=workflow.current_step_index,
        current_step_id=current.id if current else None,
        progress=progress(workflow),
        submitted_by=workflow.submitted_by,
        submitted_at=workflow.submitted_at,
        steps=[_step_to_dto(step) for step in workflow.steps],
        submitted_by_name=workflow.submitted_by_name,
        completed_at=workflow.completed_at,
        due_date=workflow.due_date,
        revision=workflow.revision,
    )


def bulk_results_to_dto(results: Sequence[BulkActionResult]) -> BulkActionResultDTO:
    """Build the API representation of a bulk decision."""
    items = []
    for result in results:
        if result.error is not None:
            items.append(
                BulkActionItemDTO(
                    workflow_id=result.workflow_id,
                    succeeded=False,
                    error=result.error.code,
                    message=str(result.error),
                )
            )
        else:
            items.append(
                BulkActionItemDTO(
                    workflow_id=result.workflow_id,
                    succeeded=True,
                    status=result.workflow.status.value if result.workflow else None,
                )
            )

    succeeded = sum(1 for item in items if item.succeeded)
    return BulkActionResultDTO(results=items, succeeded=succeeded, failed=len(items) - succeeded)

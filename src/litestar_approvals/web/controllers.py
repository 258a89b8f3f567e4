"""REST API controllers for approval workflows.

This module provides two controller classes:
- TemplateController: Create and browse workflow templates
- ApprovalWorkflowController: Submit content, record decisions and query progress

Engine errors are not caught here; the exception handler registered by the
plugin turns them into responses.
"""

from __future__ import annotations

from typing import ClassVar
from uuid import UUID

from litestar import Controller, get, post
from litestar.exceptions import NotFoundException
from litestar.params import Parameter
from litestar.status_codes import HTTP_200_OK

from litestar_approvals.core.types import WorkflowStatus
from litestar_approvals.engine.local import ApprovalEngine  # noqa: TC001 - needed for DI
from litestar_approvals.engine.projections import (
    WorkflowMetrics,
    days_until_due,
    is_urgent,
    pending_approvers,
    progress,
    requires_action,
    step_progress,
    workflow_metrics,
)
from litestar_approvals.engine.registry import TemplateRegistry  # noqa: TC001 - needed for DI
from litestar_approvals.web.dto import (
    BulkActionDTO,
    BulkActionResultDTO,
    CreateTemplateDTO,
    CreateWorkflowDTO,
    RecordActionDTO,
    TemplateDTO,
    WorkflowDTO,
    WorkflowProgressDTO,
    bulk_results_to_dto,
    template_to_dto,
    workflow_to_dto,
)

__all__ = [
    "ApprovalWorkflowController",
    "TemplateController",
]


class TemplateController(Controller):
    """API controller for workflow templates.

    Tags: Approval Templates
    """

    path = "/templates"
    tags: ClassVar[list[str]] = ["Approval Templates"]

    @get("/")
    async def list_templates(
        self,
        template_registry: TemplateRegistry,
        content_type: str | None = Parameter(
            default=None,
            description="Only templates applicable to this content type",
        ),
    ) -> list[TemplateDTO]:
        """List the latest version of every registered template.

        Args:
            template_registry: Injected template registry.
            content_type: Optional content-type filter.

        Returns:
            List of template DTOs.
        """
        return [template_to_dto(template) for template in template_registry.list_templates(content_type)]

    @post("/", dto=None, return_dto=None)
    async def create_template(
        self,
        data: CreateTemplateDTO,
        approval_engine: ApprovalEngine,
    ) -> TemplateDTO:
        """Create and register a new template.

        Args:
            data: Template definition.
            approval_engine: Injected approval engine.

        Returns:
            The created template.
        """
        template = await approval_engine.create_template(
            data.name,
            data.description,
            data.content_types,
            [step.to_definition() for step in data.steps],
            is_default=data.is_default,
            created_by=data.created_by,
        )
        return template_to_dto(template)

    @get("/defaults/{content_type:str}")
    async def get_default_template(
        self,
        content_type: str,
        template_registry: TemplateRegistry,
    ) -> TemplateDTO:
        """Get the default template for a content type.

        Raises:
            NotFoundException: If no default template is registered.
        """
        template = template_registry.get_default_template(content_type)
        if template is None:
            raise NotFoundException(detail=f"No default template for '{content_type}' content")
        return template_to_dto(template)

    @get("/{template_id:uuid}")
    async def get_template(
        self,
        template_id: UUID,
        template_registry: TemplateRegistry,
        version: int | None = Parameter(
            default=None,
            description="Specific version to retrieve. If omitted, returns latest.",
        ),
    ) -> TemplateDTO:
        """Get a template by id.

        Args:
            template_id: The template id.
            template_registry: Injected template registry.
            version: Optional specific version.

        Returns:
            Template DTO.
        """
        return template_to_dto(template_registry.get_template(template_id, version=version))


class ApprovalWorkflowController(Controller):
    """API controller for approval workflows.

    Tags: Approval Workflows
    """

    path = "/workflows"
    tags: ClassVar[list[str]] = ["Approval Workflows"]

    @post("/", dto=None, return_dto=None)
    async def create_workflow(
        self,
        data: CreateWorkflowDTO,
        approval_engine: ApprovalEngine,
    ) -> WorkflowDTO:
        """Submit a content item for approval.

        Args:
            data: Submission parameters.
            approval_engine: Injected approval engine.

        Returns:
            The new workflow.
        """
        workflow = await approval_engine.create_workflow(
            data.template_id,
            content_id=data.content_id,
            content_title=data.content_title,
            content_type=data.content_type,
            submitted_by=data.submitted_by,
            submitted_by_name=data.submitted_by_name,
            due_date=data.due_date,
        )
        return workflow_to_dto(workflow)

    @post("/bulk-actions", dto=None, return_dto=None, status_code=HTTP_200_OK)
    async def bulk_record_action(
        self,
        data: BulkActionDTO,
        approval_engine: ApprovalEngine,
    ) -> BulkActionResultDTO:
        """Apply one decision to the current step of several workflows.

        Refused workflows are reported per item with their error code; they
        do not fail the request.

        Args:
            data: The decision and the workflows to apply it to.
            approval_engine: Injected approval engine.

        Returns:
            Per-workflow outcomes and totals.
        """
        results = await approval_engine.bulk_record_action(
            data.workflow_ids,
            user_id=data.user_id,
            user_name=data.user_name,
            action=data.action,
            comment=data.comment,
        )
        return bulk_results_to_dto(results)

    @get("/")
    async def list_workflows(
        self,
        approval_engine: ApprovalEngine,
        user_id: str | None = Parameter(
            default=None,
            description="Only workflows submitted by, or awaiting, this user",
        ),
        status: WorkflowStatus | None = Parameter(
            default=None,
            description="Filter by status",
        ),
    ) -> list[WorkflowDTO]:
        """List workflows with optional filtering.

        Args:
            approval_engine: Injected approval engine.
            user_id: Optional user filter.
            status: Optional status filter.

        Returns:
            List of workflow DTOs.
        """
        if user_id is not None:
            workflows = approval_engine.list_workflows_for_user(user_id)
            if status is not None:
                workflows = [workflow for workflow in workflows if workflow.status == status]
        else:
            workflows = approval_engine.list_workflows(status=status)

        return [workflow_to_dto(workflow) for workflow in workflows]

    @get("/metrics")
    async def get_metrics(self, approval_engine: ApprovalEngine) -> WorkflowMetrics:
        """Aggregate outcome and per-approver figures over every known workflow."""
        return workflow_metrics(approval_engine.list_workflows())

    @get("/{workflow_id:uuid}")
    async def get_workflow(
        self,
        workflow_id: UUID,
        approval_engine: ApprovalEngine,
    ) -> WorkflowDTO:
        """Get a workflow snapshot.

        Args:
            workflow_id: The workflow ID.
            approval_engine: Injected approval engine.

        Returns:
            Workflow DTO.
        """
        return workflow_to_dto(await approval_engine.get_workflow(workflow_id))

    @get("/{workflow_id:uuid}/progress")
    async def get_progress(
        self,
        workflow_id: UUID,
        approval_engine: ApprovalEngine,
        user_id: str | None = Parameter(
            default=None,
            description="User to evaluate requires_action for",
        ),
    ) -> WorkflowProgressDTO:
        """Get the display projections of a workflow.

        Args:
            workflow_id: The workflow ID.
            approval_engine: Injected approval engine.
            user_id: Optional user for the ``requires_action`` flag.

        Returns:
            Progress DTO.
        """
        workflow = await approval_engine.get_workflow(workflow_id)
        now = approval_engine.clock()
        current = workflow.current_step

        return WorkflowProgressDTO(
            workflow_id=workflow.id,
            status=workflow.status.value,
            progress=progress(workflow),
            current_step_id=current.id if current else None,
            current_step_progress=step_progress(current) if current else None,
            pending_approvers=pending_approvers(workflow),
            is_urgent=is_urgent(workflow, now, approval_engine.urgency_window),
            days_until_due=days_until_due(workflow, now),
            requires_action=requires_action(workflow, user_id) if user_id is not None else None,
        )

    @post("/{workflow_id:uuid}/steps/{step_id:uuid}/actions", dto=None, return_dto=None, status_code=HTTP_200_OK)
    async def record_action(
        self,
        workflow_id: UUID,
        step_id: UUID,
        data: RecordActionDTO,
        approval_engine: ApprovalEngine,
    ) -> WorkflowDTO:
        """Record an approve, reject or request-changes decision.

        Args:
            workflow_id: The workflow ID.
            step_id: The current step's ID.
            data: The decision.
            approval_engine: Injected approval engine.

        Returns:
            Updated workflow DTO.
        """
        workflow = await approval_engine.record_action(
            workflow_id,
            step_id,
            user_id=data.user_id,
            user_name=data.user_name,
            action=data.action,
            comment=data.comment,
        )
        return workflow_to_dto(workflow)

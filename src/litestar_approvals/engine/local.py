"""Local in-memory approval engine.

This module provides the approval workflow state machine for in-process
use. Workflows live in memory, optionally mirrored to a persistence layer,
and every mutation of a given workflow runs under that workflow's own lock.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING
from uuid import UUID

from litestar_approvals.core.definition import create_template, validate_template
from litestar_approvals.core.protocols import WorkflowLister
from litestar_approvals.core.types import ApprovalAction, WorkflowStatus
from litestar_approvals.engine.projections import URGENCY_WINDOW
from litestar_approvals.engine.transitions import apply_action, materialize
from litestar_approvals.exceptions import (
    ApprovalsError,
    InvalidActionError,
    WorkflowNotFoundError,
    WorkflowTerminalError,
)

if TYPE_CHECKING:
    from litestar_approvals.core.events import WorkflowEvent
    from litestar_approvals.core.models import StepDefinition, Workflow, WorkflowTemplate
    from litestar_approvals.core.protocols import AuditSink, TemplateStore, WorkflowPersistence

__all__ = ["ApprovalEngine", "BulkActionResult"]

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_action(action: ApprovalAction | str) -> ApprovalAction:
    try:
        return ApprovalAction(action)
    except ValueError:
        raise InvalidActionError(action) from None


@dataclass(frozen=True)
class BulkActionResult:
    """Outcome of one workflow in a bulk decision.

    Attributes:
        workflow_id: The workflow the decision was applied to.
        workflow: The updated snapshot, when the decision was accepted.
        error: The engine error, when it was refused.
    """

    workflow_id: UUID
    workflow: Workflow | None = None
    error: ApprovalsError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class ApprovalEngine:
    """In-memory async engine for content approval workflows.

    The engine owns no background tasks: every operation runs to completion
    inside the awaiting request. Mutations of the same workflow are serialized
    by a per-workflow :class:`asyncio.Lock`; different workflows never share a
    lock. Audit events are delivered after the lock is released, so a slow
    sink never holds up other approvers of the same workflow.

    Attributes:
        template_store: Source of workflow templates.
        audit_sink: Optional receiver of audit events.
        persistence: Optional persistence layer implementing save/load methods.
        urgency_window: How close to the due date a workflow becomes urgent.
        emit_timeout: Seconds to wait for the audit sink, or None to wait indefinitely.
        _workflows: In-memory storage of workflow snapshots.
        _locks: Map of workflow IDs to their mutation locks.
    """

    def __init__(
        self,
        template_store: TemplateStore,
        audit_sink: AuditSink | None = None,
        persistence: WorkflowPersistence | None = None,
        clock: Callable[[], datetime] | None = None,
        urgency_window: timedelta = URGENCY_WINDOW,
        emit_timeout: float | None = None,
    ) -> None:
        """Initialize the approval engine.

        Args:
            template_store: The template store.
            audit_sink: Optional audit sink implementing an async ``emit`` method.
            persistence: Optional persistence layer implementing save/load methods.
            clock: Callable returning the current time. Defaults to UTC now.
            urgency_window: Due-date window used by urgency projections.
            emit_timeout: Upper bound in seconds for a single audit delivery.
        """
        self.template_store = template_store
        self.audit_sink = audit_sink
        self.persistence = persistence
        self.emit_timeout = emit_timeout
        self.clock = clock or _utcnow
        self.urgency_window = urgency_window
        self._workflows: dict[UUID, Workflow] = {}
        self._locks: dict[UUID, asyncio.Lock] = {}

    async def create_template(
        self,
        name: str,
        description: str,
        content_types: Iterable[str],
        step_defs: Sequence[StepDefinition],
        *,
        is_default: bool = False,
        created_by: str | None = None,
    ) -> WorkflowTemplate:
        """Create a validated template and save it to the template store.

        Args:
            name: Display name of the template.
            description: Human-readable description.
            content_types: Content-type tags the template applies to.
            step_defs: Step definitions with contiguous ``order`` values.
            is_default: Whether the template is the default for its content types.
            created_by: Actor creating the template.

        Returns:
            The stored template.

        Raises:
            InvalidTemplateError: If the step definitions are invalid.
        """
        template = create_template(
            name,
            description,
            content_types,
            step_defs,
            is_default=is_default,
            created_by=created_by,
        )
        self.template_store.save_template(template)
        logger.info("Created template %s (%s) with %d steps", template.id, template.name, len(template.steps))
        return template

    async def create_workflow(
        self,
        template: WorkflowTemplate | UUID,
        content_id: str,
        content_title: str,
        content_type: str,
        submitted_by: str,
        due_date: datetime | None = None,
        submitted_by_name: str | None = None,
    ) -> Workflow:
        """Start the approval workflow of a content item.

        Args:
            template: A template, or the id of one in the template store.
            content_id: Identifier of the content under review.
            content_title: Title of the content under review.
            content_type: Content-type tag; must be covered by the template.
            submitted_by: Actor submitting the content.
            due_date: Optional review deadline. A naive datetime is taken as UTC.
            submitted_by_name: Display name of the submitter.

        Returns:
            The new workflow, ``pending`` with its first step in progress.

        Raises:
            TemplateNotFoundError: If a template id is unknown.
            InvalidTemplateError: If the template fails validation.
            TemplateMismatchError: If the template does not cover ``content_type``.

        Example:
            >>> workflow = await engine.create_workflow(
            ...     template_id, "post-1", "Launch post", "blog_post", submitted_by="alice"
            ... )
            >>> workflow.status
            <WorkflowStatus.PENDING: 'pending'>
        """
        if isinstance(template, UUID):
            template = self.template_store.get_template(template)
        validate_template(template)
        if due_date is not None and due_date.tzinfo is None:
            due_date = due_date.replace(tzinfo=timezone.utc)

        transition = materialize(
            template,
            content_id=content_id,
            content_title=content_title,
            content_type=content_type,
            submitted_by=submitted_by,
            submitted_by_name=submitted_by_name,
            due_date=due_date,
            now=self.clock(),
        )
        workflow = transition.workflow

        async with self._lock_for(workflow.id):
            await self._store(workflow)
        await self._emit(transition.event)

        logger.info(
            "Created workflow %s for content %s from template %s v%d",
            workflow.id,
            content_id,
            template.id,
            template.version,
        )
        return workflow

    async def record_action(
        self,
        workflow_id: UUID,
        step_id: UUID,
        user_id: str,
        user_name: str,
        action: ApprovalAction | str,
        comment: str | None = None,
    ) -> Workflow:
        """Record an approver's decision on the current step.

        The precondition checks, the append, the threshold recount and any
        step advance all happen under the workflow's lock, so concurrent
        approvers cannot both push a step over its threshold.

        Args:
            workflow_id: The workflow ID.
            step_id: The step the approver is acting on; must be the current step.
            user_id: ID of the acting user.
            user_name: Display name of the acting user.
            action: ``approved``, ``rejected`` or ``requested_changes``.
            comment: Required for ``rejected`` and ``requested_changes``.

        Returns:
            The workflow snapshot after the action.

        Raises:
            InvalidActionError: If ``action`` is not a known approval action.
            WorkflowNotFoundError: If the workflow is unknown.
            WorkflowTerminalError: If the workflow is already approved or rejected.
            StepNotCurrentError: If ``step_id`` is not the current step.
            NotAssignedError: If the user is not assigned to the step.
            AlreadyActedError: If the user already acted on the step.
            CommentRequiredError: If a required comment is missing.
        """
        action = _coerce_action(action)

        # Unknown ids must fail before a lock is created for them.
        await self.get_workflow(workflow_id)

        async with self._lock_for(workflow_id):
            current = await self.get_workflow(workflow_id)
            transition = apply_action(
                current,
                step_id=step_id,
                user_id=user_id,
                user_name=user_name,
                action=action,
                comment=comment,
                now=self.clock(),
            )
            await self._store(transition.workflow)
        await self._emit(transition.event)

        updated = transition.workflow
        logger.info(
            "Workflow %s: %s %s step %s (%s -> %s)",
            workflow_id,
            user_id,
            action,
            step_id,
            current.status,
            updated.status,
        )
        return updated

    async def approve(
        self,
        workflow_id: UUID,
        step_id: UUID,
        user_id: str,
        user_name: str,
        comment: str | None = None,
    ) -> Workflow:
        """Record an ``approved`` action. See :meth:`record_action`."""
        return await self.record_action(workflow_id, step_id, user_id, user_name, ApprovalAction.APPROVED, comment)

    async def reject(self, workflow_id: UUID, step_id: UUID, user_id: str, user_name: str, comment: str) -> Workflow:
        """Record a ``rejected`` action. See :meth:`record_action`."""
        return await self.record_action(workflow_id, step_id, user_id, user_name, ApprovalAction.REJECTED, comment)

    async def request_changes(
        self,
        workflow_id: UUID,
        step_id: UUID,
        user_id: str,
        user_name: str,
        comment: str,
    ) -> Workflow:
        """Record a ``requested_changes`` action. See :meth:`record_action`."""
        return await self.record_action(
            workflow_id, step_id, user_id, user_name, ApprovalAction.REQUESTED_CHANGES, comment
        )

    async def bulk_record_action(
        self,
        workflow_ids: Iterable[UUID],
        user_id: str,
        user_name: str,
        action: ApprovalAction | str,
        comment: str | None = None,
    ) -> list[BulkActionResult]:
        """Record the same decision on the current step of several workflows.

        Each workflow is handled on its own, under its own lock. A refused
        decision is reported in that workflow's result and does not stop the
        rest of the batch.

        Args:
            workflow_ids: The workflows to act on, in order.
            user_id: ID of the acting user.
            user_name: Display name of the acting user.
            action: ``approved``, ``rejected`` or ``requested_changes``.
            comment: Required for ``rejected`` and ``requested_changes``.

        Returns:
            One result per workflow id, in input order.

        Raises:
            InvalidActionError: If ``action`` is not a known approval action.
        """
        action = _coerce_action(action)
        results: list[BulkActionResult] = []

        for workflow_id in workflow_ids:
            try:
                workflow = await self.get_workflow(workflow_id)
                step = workflow.current_step
                if step is None:
                    raise WorkflowTerminalError(workflow.id, workflow.status)
                updated = await self.record_action(workflow_id, step.id, user_id, user_name, action, comment)
            except ApprovalsError as exc:
                results.append(BulkActionResult(workflow_id=workflow_id, error=exc))
            else:
                results.append(BulkActionResult(workflow_id=workflow_id, workflow=updated))

        accepted = sum(1 for result in results if result.succeeded)
        logger.info("Bulk %s by %s: %d of %d workflows updated", action, user_id, accepted, len(results))
        return results

    async def bulk_approve(
        self,
        workflow_ids: Iterable[UUID],
        user_id: str,
        user_name: str,
        comment: str | None = None,
    ) -> list[BulkActionResult]:
        """Approve the current step of several workflows. See :meth:`bulk_record_action`."""
        return await self.bulk_record_action(workflow_ids, user_id, user_name, ApprovalAction.APPROVED, comment)

    async def get_workflow(self, workflow_id: UUID) -> Workflow:
        """Retrieve a workflow snapshot by ID.

        Args:
            workflow_id: The workflow ID.

        Returns:
            The current snapshot.

        Raises:
            WorkflowNotFoundError: If the workflow is not found.
        """
        if workflow_id not in self._workflows:
            # Try loading from persistence
            if self.persistence:
                workflow = await self.persistence.load_workflow(workflow_id)
                if workflow:
                    self._workflows[workflow_id] = workflow
                    return workflow

            raise WorkflowNotFoundError(workflow_id)

        return self._workflows[workflow_id]

    def list_workflows_for_user(self, user_id: str) -> list[Workflow]:
        """Workflows the user submitted or is assigned to at the current step.

        Args:
            user_id: The user to filter for.

        Returns:
            Matching snapshots, oldest submission first.
        """
        return sorted(
            (workflow for workflow in self._workflows.values() if workflow.involves(user_id)),
            key=lambda workflow: workflow.submitted_at,
        )

    def list_workflows(
        self,
        status: WorkflowStatus | None = None,
        content_id: str | None = None,
    ) -> list[Workflow]:
        """List workflow snapshots with optional filtering.

        Args:
            status: Only include workflows with this status.
            content_id: Only include workflows for this content item.

        Returns:
            Matching snapshots, oldest submission first.
        """
        workflows = [
            workflow
            for workflow in self._workflows.values()
            if (status is None or workflow.status == status)
            and (content_id is None or workflow.content_id == content_id)
        ]
        return sorted(workflows, key=lambda workflow: workflow.submitted_at)

    async def restore(self) -> int:
        """Load every persisted workflow into memory.

        Listing queries and metrics only see workflows held in memory. Call
        this on startup when the persistence layer also implements
        :class:`~litestar_approvals.core.protocols.WorkflowLister`; otherwise
        workflows are loaded lazily by :meth:`get_workflow`.

        Returns:
            The number of workflows that were not in memory yet.
        """
        if not isinstance(self.persistence, WorkflowLister):
            return 0

        restored = 0
        for workflow in await self.persistence.list_workflows():
            if workflow.id not in self._workflows:
                self._workflows[workflow.id] = workflow
                restored += 1

        logger.info("Restored %d workflows from persistence", restored)
        return restored

    def _lock_for(self, workflow_id: UUID) -> asyncio.Lock:
        return self._locks.setdefault(workflow_id, asyncio.Lock())

    async def _store(self, workflow: Workflow) -> None:
        # Persist first so a failed save leaves the in-memory snapshot untouched.
        if self.persistence:
            await self.persistence.save_workflow(workflow)
        self._workflows[workflow.id] = workflow

    async def _emit(self, event: WorkflowEvent) -> None:
        if self.audit_sink is None:
            return
        try:
            await asyncio.wait_for(self.audit_sink.emit(event), timeout=self.emit_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Audit sink timed out after %ss delivering %s for workflow %s",
                self.emit_timeout,
                event.event_type,
                event.workflow_id,
            )
        except Exception:
            logger.exception("Audit sink failed to deliver %s for workflow %s", event.event_type, event.workflow_id)

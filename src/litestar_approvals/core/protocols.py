"""Core protocols for litestar-approvals.

This module defines the Protocol-based interfaces of the engine's external
collaborators: where templates come from, where audit events go, and where
workflow snapshots may be persisted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID

    from litestar_approvals.core.events import WorkflowEvent
    from litestar_approvals.core.models import Workflow, WorkflowTemplate


__all__ = ["AuditSink", "TemplateStore", "WorkflowLister", "WorkflowPersistence"]


@runtime_checkable
class TemplateStore(Protocol):
    """Protocol for the source of workflow templates.

    Templates handed out by a store are expected to be valid already; the
    engine re-validates them anyway before creating a workflow.
    """

    def get_template(self, template_id: UUID, version: int | None = None) -> WorkflowTemplate:
        """Retrieve a template by id.

        Args:
            template_id: The template identifier.
            version: A specific version, or None for the latest.

        Returns:
            The requested template.

        Raises:
            TemplateNotFoundError: If the template or version does not exist.
        """
        ...

    def save_template(self, template: WorkflowTemplate) -> None:
        """Store a newly created template.

        Args:
            template: The template to store.
        """
        ...


@runtime_checkable
class AuditSink(Protocol):
    """Protocol for receivers of audit events.

    The engine awaits :meth:`emit` after each committed transition but does
    not roll back if it raises. Delivery guarantees are the sink's concern.

    Example:
        >>> class PrintSink:
        ...     async def emit(self, event: WorkflowEvent) -> None:
        ...         print(event.event_type, event.workflow_id)
    """

    async def emit(self, event: WorkflowEvent) -> None:
        """Receive one audit event.

        Args:
            event: The event describing the transition.
        """
        ...


@runtime_checkable
class WorkflowPersistence(Protocol):
    """Protocol for optional workflow snapshot persistence."""

    async def save_workflow(self, workflow: Workflow) -> None:
        """Persist a workflow snapshot.

        Args:
            workflow: The snapshot to store. Replaces any previous snapshot
                with the same id.
        """
        ...

    async def load_workflow(self, workflow_id: UUID) -> Workflow | None:
        """Load a workflow snapshot.

        Args:
            workflow_id: The workflow identifier.

        Returns:
            The stored snapshot, or None if unknown.
        """
        ...


@runtime_checkable
class WorkflowLister(Protocol):
    """Optional extension of :class:`WorkflowPersistence` for listing every snapshot.

    Persistence layers that implement it let the engine reload all workflows
    on startup, so listing queries and metrics cover workflows saved before
    a restart.
    """

    async def list_workflows(self) -> list[Workflow]:
        """Return every stored workflow snapshot."""
        ...

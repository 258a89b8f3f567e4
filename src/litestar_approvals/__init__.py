"""Litestar Approvals - Content approval workflows for Litestar.

This package drives multi-step, multi-actor review of content items before
they are published.

Key Features:
    - Reusable, versioned approval templates per content type
    - Per-step approval thresholds with assigned approvers
    - Approve, reject and request-changes decisions with invariant checks
    - Per-workflow serialization of concurrent approvals
    - Audit events for every transition
    - Progress, urgency and "requires action" projections
    - Outcome and per-approver metrics
    - Bulk decisions across many workflows
    - REST API through a Litestar plugin

Example:
    >>> from litestar_approvals import ApprovalEngine, StepDefinition, TemplateRegistry
    >>>
    >>> engine = ApprovalEngine(template_store=TemplateRegistry())
    >>> template = await engine.create_template(
    ...     "Blog review",
    ...     "Editor sign-off",
    ...     {"blog_post"},
    ...     [StepDefinition(name="editor", required_approvals=1, assigned_user_ids={"ed"}, order=0)],
    ... )
    >>> workflow = await engine.create_workflow(template, "post-1", "Launch", "blog_post", "alice")
    >>> workflow = await engine.approve(workflow.id, workflow.steps[0].id, "ed", "Ed")
    >>> workflow.status
    <WorkflowStatus.APPROVED: 'approved'>
"""

from __future__ import annotations

from litestar_approvals.__metadata__ import __project__, __version__
from litestar_approvals.core.events import (
    ApprovalRecorded,
    WorkflowCompleted,
    WorkflowCreated,
    WorkflowEvent,
    WorkflowRejected,
    WorkflowStepAdvanced,
)
from litestar_approvals.core.models import Approval, Step, StepDefinition, Workflow, WorkflowTemplate
from litestar_approvals.core.types import ApprovalAction, StepStatus, WorkflowStatus
from litestar_approvals.engine.audit import CompositeAuditSink, InMemoryAuditSink, LoggingAuditSink
from litestar_approvals.engine.local import ApprovalEngine, BulkActionResult
from litestar_approvals.engine.projections import ApproverMetrics, WorkflowMetrics
from litestar_approvals.engine.registry import TemplateRegistry
from litestar_approvals.exceptions import (
    AlreadyActedError,
    ApprovalsError,
    CommentRequiredError,
    DefaultTemplateConflictError,
    EmptyAssignmentError,
    EmptyStepsError,
    InvalidActionError,
    InvalidStepOrderError,
    InvalidTemplateError,
    NonPositiveApprovalsError,
    NotAssignedError,
    NotFoundError,
    StepNotCurrentError,
    TemplateMismatchError,
    TemplateNotFoundError,
    TemplateVersionConflictError,
    WorkflowNotFoundError,
    WorkflowTerminalError,
)
from litestar_approvals.plugin import ApprovalPlugin, ApprovalPluginConfig

__all__ = (
    "AlreadyActedError",
    "Approval",
    "ApprovalAction",
    "ApprovalEngine",
    "ApprovalPlugin",
    "ApprovalPluginConfig",
    "ApprovalRecorded",
    "ApprovalsError",
    "ApproverMetrics",
    "BulkActionResult",
    "CommentRequiredError",
    "CompositeAuditSink",
    "DefaultTemplateConflictError",
    "EmptyAssignmentError",
    "EmptyStepsError",
    "InMemoryAuditSink",
    "InvalidActionError",
    "InvalidStepOrderError",
    "InvalidTemplateError",
    "LoggingAuditSink",
    "NonPositiveApprovalsError",
    "NotAssignedError",
    "NotFoundError",
    "Step",
    "StepDefinition",
    "StepNotCurrentError",
    "StepStatus",
    "TemplateMismatchError",
    "TemplateNotFoundError",
    "TemplateRegistry",
    "TemplateVersionConflictError",
    "Workflow",
    "WorkflowCompleted",
    "WorkflowCreated",
    "WorkflowEvent",
    "WorkflowMetrics",
    "WorkflowNotFoundError",
    "WorkflowRejected",
    "WorkflowStatus",
    "WorkflowStepAdvanced",
    "WorkflowTemplate",
    "WorkflowTerminalError",
    "__project__",
    "__version__",
)

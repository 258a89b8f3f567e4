"""Approval engine implementations.

This module provides the workflow state machine, the template registry,
audit sinks and the projection helpers built on workflow snapshots.
"""

from __future__ import annotations

from litestar_approvals.engine.audit import CompositeAuditSink, InMemoryAuditSink, LoggingAuditSink
from litestar_approvals.engine.local import ApprovalEngine
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
from litestar_approvals.engine.registry import TemplateRegistry
from litestar_approvals.engine.transitions import Transition, apply_action, materialize

__all__ = [
    "ApprovalEngine",
    "CompositeAuditSink",
    "InMemoryAuditSink",
    "LoggingAuditSink",
    "TemplateRegistry",
    "Transition",
    "WorkflowMetrics",
    "apply_action",
    "days_until_due",
    "is_urgent",
    "materialize",
    "pending_approvers",
    "progress",
    "requires_action",
    "step_progress",
    "workflow_metrics",
]

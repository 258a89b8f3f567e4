"""Core domain module for litestar-approvals.

This module exports the fundamental building blocks of the approval engine:
types, data models, template construction, audit events and protocols.
"""

from __future__ import annotations

from litestar_approvals.core.definition import create_template, validate_step_definitions, validate_template
from litestar_approvals.core.events import (
    ApprovalRecorded,
    WorkflowCompleted,
    WorkflowCreated,
    WorkflowEvent,
    WorkflowRejected,
    WorkflowStepAdvanced,
    decode_event,
    encode_event,
)
from litestar_approvals.core.models import Approval, Step, StepDefinition, Workflow, WorkflowTemplate
from litestar_approvals.core.protocols import AuditSink, TemplateStore, WorkflowPersistence
from litestar_approvals.core.types import ApprovalAction, StepStatus, WorkflowStatus

__all__ = [
    "Approval",
    "ApprovalAction",
    "ApprovalRecorded",
    "AuditSink",
    "Step",
    "StepDefinition",
    "StepStatus",
    "TemplateStore",
    "Workflow",
    "WorkflowCompleted",
    "WorkflowCreated",
    "WorkflowEvent",
    "WorkflowPersistence",
    "WorkflowRejected",
    "WorkflowStatus",
    "WorkflowStepAdvanced",
    "WorkflowTemplate",
    "create_template",
    "decode_event",
    "encode_event",
    "validate_step_definitions",
    "validate_template",
]

"""Web API for litestar-approvals.

This module provides REST API controllers for managing approval templates and
workflows through HTTP endpoints. The API is automatically enabled when using
ApprovalPlugin with enable_api=True (the default).

Example:
    Basic usage with ApprovalPlugin (API enabled by default)::

        from litestar import Litestar
        from litestar_approvals import ApprovalPlugin, ApprovalPluginConfig

        app = Litestar(
            plugins=[
                ApprovalPlugin(
                    config=ApprovalPluginConfig(
                        enable_api=True,  # Default
                        api_path_prefix="/approvals",
                    )
                ),
            ],
        )

    With authentication guards::

        config = ApprovalPluginConfig(
            api_path_prefix="/api/v1/approvals",
            api_guards=[require_auth_guard],
        )
"""

from __future__ import annotations

from litestar_approvals.web.controllers import ApprovalWorkflowController, TemplateController
from litestar_approvals.web.dto import (
    ApprovalDTO,
    CreateTemplateDTO,
    CreateWorkflowDTO,
    RecordActionDTO,
    StepDefinitionDTO,
    StepDefinitionInputDTO,
    StepDTO,
    TemplateDTO,
    WorkflowDTO,
    WorkflowProgressDTO,
)
from litestar_approvals.web.exceptions import approvals_error_handler, status_code_for

__all__ = [
    "ApprovalDTO",
    "ApprovalWorkflowController",
    "CreateTemplateDTO",
    "CreateWorkflowDTO",
    "RecordActionDTO",
    "StepDTO",
    "StepDefinitionDTO",
    "StepDefinitionInputDTO",
    "TemplateController",
    "TemplateDTO",
    "WorkflowDTO",
    "WorkflowProgressDTO",
    "approvals_error_handler",
    "status_code_for",
]

"""Minimal example of litestar-approvals integration.

This example demonstrates the basic usage of the ApprovalPlugin with a
two-step review of blog posts: an editor signs off, then two of three
legal reviewers must approve.

Run with:
    litestar --app examples.minimal.app:app run
"""

from __future__ import annotations

import logging
from typing import Any

from litestar import Controller, Litestar, get, post

from litestar_approvals import (
    ApprovalEngine,
    ApprovalPlugin,
    ApprovalPluginConfig,
    LoggingAuditSink,
    StepDefinition,
    TemplateRegistry,
)
from litestar_approvals.core.definition import create_template

logging.basicConfig(level=logging.INFO)

# =============================================================================
# Template Definition
# =============================================================================

BLOG_REVIEW = create_template(
    "Blog review",
    "Editor sign-off followed by legal review",
    {"blog_post"},
    [
        StepDefinition(
            name="editorial",
            description="Check tone, grammar and house style",
            required_approvals=1,
            assigned_user_ids={"editor"},
            order=0,
        ),
        StepDefinition(
            name="legal",
            description="Two of three lawyers clear the post",
            required_approvals=2,
            assigned_user_ids={"lawyer-1", "lawyer-2", "lawyer-3"},
            order=1,
            is_parallel=True,
        ),
    ],
    is_default=True,
    created_by="admin",
)


# =============================================================================
# API Controller
# =============================================================================


class PostController(Controller):
    """Application endpoints that hand posts over to the approval engine."""

    path = "/posts"
    tags = ["Posts"]

    @post("/{post_id:str}/submit")
    async def submit_post(
        self,
        post_id: str,
        data: dict[str, Any],
        approval_engine: ApprovalEngine,
        template_registry: TemplateRegistry,
    ) -> dict[str, Any]:
        """Submit a blog post for review with the default blog template."""
        template = template_registry.get_default_template("blog_post")
        workflow = await approval_engine.create_workflow(
            template or BLOG_REVIEW,
            content_id=post_id,
            content_title=data.get("title", post_id),
            content_type="blog_post",
            submitted_by=data["author"],
        )
        return {
            "workflow_id": str(workflow.id),
            "status": workflow.status.value,
            "current_step_id": str(workflow.steps[0].id),
        }

    @get("/inbox/{user_id:str}")
    async def inbox(self, user_id: str, approval_engine: ApprovalEngine) -> list[dict[str, Any]]:
        """Posts the user submitted or is asked to review right now."""
        return [
            {"workflow_id": str(workflow.id), "title": workflow.content_title, "status": workflow.status.value}
            for workflow in approval_engine.list_workflows_for_user(user_id)
        ]


# =============================================================================
# Application
# =============================================================================

# Configure the plugin
plugin_config = ApprovalPluginConfig(
    audit_sink=LoggingAuditSink(),
    auto_register_templates=[BLOG_REVIEW],
)

# Create the Litestar application
app = Litestar(
    route_handlers=[PostController],
    plugins=[ApprovalPlugin(config=plugin_config)],
    debug=True,
)


# =============================================================================
# Health Check (for testing)
# =============================================================================


@get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Add health check to app
app.register(health_check)

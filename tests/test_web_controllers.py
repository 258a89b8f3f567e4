"""Tests for the approvals REST API.

Coverage targets:
- Template creation, lookup, versions and defaults
- Workflow submission and decisions through the actions endpoint
- Mapping of engine errors to status codes and error codes
- Progress, listing and metrics projections
- Bulk decisions across several workflows
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import timedelta
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import pytest
from litestar import Litestar
from litestar.status_codes import (
    HTTP_200_OK,
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)
from litestar.testing import AsyncTestClient

from litestar_approvals import ApprovalPlugin, ApprovalPluginConfig

if TYPE_CHECKING:
    from litestar_approvals.core.models import WorkflowTemplate
    from litestar_approvals.engine.local import ApprovalEngine
    from litestar_approvals.engine.registry import TemplateRegistry


@pytest.fixture
async def client(
    engine: ApprovalEngine,
    template_registry: TemplateRegistry,
    two_step_template: WorkflowTemplate,
    quorum_template: WorkflowTemplate,
) -> AsyncIterator[AsyncTestClient]:
    app = Litestar(plugins=[ApprovalPlugin(config=ApprovalPluginConfig(engine=engine))])
    async with AsyncTestClient(app=app) as test_client:
        yield test_client


async def submit(client: AsyncTestClient, template: WorkflowTemplate, content_type: str, **extra: Any) -> dict:
    response = await client.post(
        "/approvals/workflows",
        json={
            "template_id": str(template.id),
            "content_id": extra.pop("content_id", "post-1"),
            "content_title": "Launch announcement",
            "content_type": content_type,
            "submitted_by": "alice",
            **extra,
        },
    )
    assert response.status_code == HTTP_201_CREATED, response.text
    return response.json()


async def act(client: AsyncTestClient, workflow: dict, step_index: int, user_id: str, action: str, comment=None):
    step_id = workflow["steps"][step_index]["id"]
    return await client.post(
        f"/approvals/workflows/{workflow['id']}/steps/{step_id}/actions",
        json={"user_id": user_id, "user_name": user_id.title(), "action": action, "comment": comment},
    )


@pytest.mark.integration
@pytest.mark.asyncio
class TestTemplateController:
    """Tests for TemplateController."""

    async def test_create_template(self, client: AsyncTestClient) -> None:
        response = await client.post(
            "/approvals/templates",
            json={
                "name": "Video review",
                "description": "Producer then brand",
                "content_types": ["video", "clip"],
                "created_by": "admin",
                "steps": [
                    {"name": "brand", "required_approvals": 1, "assigned_user_ids": ["bea"], "order": 1},
                    {"name": "producer", "required_approvals": 1, "assigned_user_ids": ["pete"], "order": 0},
                ],
            },
        )

        assert response.status_code == HTTP_201_CREATED
        data = response.json()
        assert data["content_types"] == ["clip", "video"]
        assert [step["name"] for step in data["steps"]] == ["producer", "brand"]
        assert data["version"] == 1
        assert data["created_by"] == "admin"

        fetched = await client.get(f"/approvals/templates/{data['id']}")
        assert fetched.status_code == HTTP_200_OK
        assert fetched.json()["name"] == "Video review"

    async def test_create_invalid_template(self, client: AsyncTestClient) -> None:
        response = await client.post(
            "/approvals/templates",
            json={
                "name": "Broken",
                "content_types": ["video"],
                "steps": [
                    {"name": "a", "required_approvals": 1, "assigned_user_ids": ["x"], "order": 0},
                    {"name": "b", "required_approvals": 1, "assigned_user_ids": ["y"], "order": 2},
                ],
            },
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "invalid_step_order"

    async def test_create_template_without_assignees(self, client: AsyncTestClient) -> None:
        response = await client.post(
            "/approvals/templates",
            json={
                "name": "Nobody",
                "content_types": ["video"],
                "steps": [{"name": "a", "required_approvals": 1, "assigned_user_ids": [], "order": 0}],
            },
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "empty_assignment"

    async def test_list_templates(
        self, client: AsyncTestClient, two_step_template: WorkflowTemplate, quorum_template: WorkflowTemplate
    ) -> None:
        response = await client.get("/approvals/templates")
        assert response.status_code == HTTP_200_OK
        assert {item["id"] for item in response.json()} == {str(two_step_template.id), str(quorum_template.id)}

        filtered = await client.get("/approvals/templates", params={"content_type": "newsletter"})
        assert [item["id"] for item in filtered.json()] == [str(two_step_template.id)]

    async def test_get_template_versions(
        self, client: AsyncTestClient, template_registry: TemplateRegistry, two_step_template: WorkflowTemplate
    ) -> None:
        template_registry.revise(two_step_template.id, name="Blog review v2")

        latest = await client.get(f"/approvals/templates/{two_step_template.id}")
        first = await client.get(f"/approvals/templates/{two_step_template.id}", params={"version": 1})
        missing = await client.get(f"/approvals/templates/{two_step_template.id}", params={"version": 9})

        assert latest.json()["version"] == 2
        assert latest.json()["name"] == "Blog review v2"
        assert first.json()["name"] == "Blog review"
        assert missing.status_code == HTTP_404_NOT_FOUND
        assert missing.json()["error"] == "template_not_found"

    async def test_get_unknown_template(self, client: AsyncTestClient) -> None:
        response = await client.get(f"/approvals/templates/{uuid4()}")

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["error"] == "template_not_found"

    async def test_default_templates(self, client: AsyncTestClient) -> None:
        missing = await client.get("/approvals/templates/defaults/podcast")
        assert missing.status_code == HTTP_404_NOT_FOUND

        body = {
            "name": "Podcast review",
            "content_types": ["podcast"],
            "is_default": True,
            "steps": [{"name": "host", "required_approvals": 1, "assigned_user_ids": ["hal"], "order": 0}],
        }
        created = await client.post("/approvals/templates", json=body)
        assert created.status_code == HTTP_201_CREATED

        found = await client.get("/approvals/templates/defaults/podcast")
        assert found.status_code == HTTP_200_OK
        assert found.json()["id"] == created.json()["id"]

        conflict = await client.post("/approvals/templates", json={**body, "name": "Rival podcast review"})
        assert conflict.status_code == HTTP_409_CONFLICT
        assert conflict.json()["error"] == "default_template_conflict"


@pytest.mark.integration
@pytest.mark.asyncio
class TestApprovalWorkflowController:
    """Tests for ApprovalWorkflowController."""

    async def test_submit_workflow(self, client: AsyncTestClient, two_step_template: WorkflowTemplate) -> None:
        workflow = await submit(client, two_step_template, "blog_post", submitted_by_name="Alice")

        assert workflow["status"] == "pending"
        assert workflow["current_step_index"] == 0
        assert workflow["current_step_id"] == workflow["steps"][0]["id"]
        assert [step["status"] for step in workflow["steps"]] == ["in_progress", "pending"]
        assert workflow["progress"] == 0
        assert workflow["submitted_by_name"] == "Alice"

        fetched = await client.get(f"/approvals/workflows/{workflow['id']}")
        assert fetched.status_code == HTTP_200_OK
        assert fetched.json() == workflow

    async def test_submit_with_mismatched_content_type(
        self, client: AsyncTestClient, two_step_template: WorkflowTemplate
    ) -> None:
        response = await client.post(
            "/approvals/workflows",
            json={
                "template_id": str(two_step_template.id),
                "content_id": "vid-1",
                "content_title": "Teaser",
                "content_type": "video",
                "submitted_by": "alice",
            },
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "template_mismatch"

    async def test_submit_with_unknown_template(self, client: AsyncTestClient) -> None:
        response = await client.post(
            "/approvals/workflows",
            json={
                "template_id": str(uuid4()),
                "content_id": "post-1",
                "content_title": "Post",
                "content_type": "blog_post",
                "submitted_by": "alice",
            },
        )

        assert response.status_code == HTTP_404_NOT_FOUND

    async def test_get_unknown_workflow(self, client: AsyncTestClient) -> None:
        response = await client.get(f"/approvals/workflows/{uuid4()}")

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["error"] == "workflow_not_found"

    async def test_full_approval(self, client: AsyncTestClient, two_step_template: WorkflowTemplate) -> None:
        workflow = await submit(client, two_step_template, "blog_post")

        first = await act(client, workflow, 0, "editor", "approved")
        assert first.status_code == HTTP_200_OK
        assert first.json()["current_step_index"] == 1
        assert first.json()["progress"] == 50

        second = await act(client, workflow, 1, "counsel", "approved", "Cleared")
        assert second.status_code == HTTP_200_OK
        data = second.json()
        assert data["status"] == "approved"
        assert data["current_step_id"] is None
        assert data["completed_at"] is not None
        assert data["steps"][1]["approvals"][0]["comment"] == "Cleared"

    async def test_rejection_then_terminal(self, client: AsyncTestClient, two_step_template: WorkflowTemplate) -> None:
        workflow = await submit(client, two_step_template, "blog_post")

        rejected = await act(client, workflow, 0, "editor", "rejected", "Not on brand")
        assert rejected.json()["status"] == "rejected"

        again = await act(client, workflow, 0, "editor", "approved")
        assert again.status_code == HTTP_409_CONFLICT
        assert again.json()["error"] == "workflow_terminal"

    async def test_action_errors(self, client: AsyncTestClient, quorum_template: WorkflowTemplate) -> None:
        workflow = await submit(client, quorum_template, "campaign")

        stranger = await act(client, workflow, 0, "mallory", "approved")
        assert stranger.status_code == HTTP_403_FORBIDDEN
        assert stranger.json() == {
            "error": "not_assigned",
            "message": f"User 'mallory' is not assigned to step '{workflow['steps'][0]['id']}'",
        }

        no_comment = await act(client, workflow, 0, "ana", "rejected")
        assert no_comment.status_code == HTTP_400_BAD_REQUEST
        assert no_comment.json()["error"] == "comment_required"

        assert (await act(client, workflow, 0, "ana", "approved")).status_code == HTTP_200_OK
        twice = await act(client, workflow, 0, "ana", "approved")
        assert twice.status_code == HTTP_409_CONFLICT
        assert twice.json()["error"] == "already_acted"

    async def test_step_not_current(self, client: AsyncTestClient, two_step_template: WorkflowTemplate) -> None:
        workflow = await submit(client, two_step_template, "blog_post")

        response = await act(client, workflow, 1, "counsel", "approved")

        assert response.status_code == HTTP_409_CONFLICT
        assert response.json()["error"] == "step_not_current"

    async def test_unknown_action_is_a_validation_error(
        self, client: AsyncTestClient, two_step_template: WorkflowTemplate
    ) -> None:
        workflow = await submit(client, two_step_template, "blog_post")

        response = await act(client, workflow, 0, "editor", "escalated")

        assert response.status_code == HTTP_400_BAD_REQUEST

    async def test_action_on_unknown_workflow(self, client: AsyncTestClient) -> None:
        response = await client.post(
            f"/approvals/workflows/{uuid4()}/steps/{uuid4()}/actions",
            json={"user_id": "editor", "user_name": "Eddie", "action": "approved"},
        )

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["error"] == "workflow_not_found"

    async def test_progress(self, client: AsyncTestClient, quorum_template: WorkflowTemplate, clock) -> None:
        due = (clock.now + timedelta(days=1, hours=12)).isoformat()
        workflow = await submit(client, quorum_template, "campaign", due_date=due)
        await act(client, workflow, 0, "ana", "approved")

        response = await client.get(f"/approvals/workflows/{workflow['id']}/progress", params={"user_id": "ben"})

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["status"] == "in_progress"
        assert data["progress"] == 0
        assert data["current_step_progress"] == 50
        assert data["pending_approvers"] == ["ben", "cai"]
        assert data["is_urgent"] is True
        assert data["days_until_due"] == 2
        assert data["requires_action"] is True

        anonymous = await client.get(f"/approvals/workflows/{workflow['id']}/progress")
        assert anonymous.json()["requires_action"] is None

    async def test_list_workflows(
        self, client: AsyncTestClient, two_step_template: WorkflowTemplate, quorum_template: WorkflowTemplate
    ) -> None:
        blog = await submit(client, two_step_template, "blog_post", content_id="blog")
        campaign = await submit(client, quorum_template, "campaign", content_id="camp")
        await act(client, campaign, 0, "ana", "rejected", "Off message")

        everything = await client.get("/approvals/workflows")
        assert {item["id"] for item in everything.json()} == {blog["id"], campaign["id"]}

        rejected = await client.get("/approvals/workflows", params={"status": "rejected"})
        assert [item["id"] for item in rejected.json()] == [campaign["id"]]

        for_editor = await client.get("/approvals/workflows", params={"user_id": "editor"})
        assert [item["id"] for item in for_editor.json()] == [blog["id"]]

        for_alice = await client.get("/approvals/workflows", params={"user_id": "alice", "status": "pending"})
        assert [item["id"] for item in for_alice.json()] == [blog["id"]]

    async def test_metrics(self, client: AsyncTestClient, two_step_template: WorkflowTemplate) -> None:
        approved = await submit(client, two_step_template, "blog_post", content_id="a")
        rejected = await submit(client, two_step_template, "blog_post", content_id="b")
        await act(client, approved, 0, "editor", "approved")
        await act(client, approved, 1, "counsel", "approved")
        await act(client, rejected, 0, "editor", "rejected", "Duplicate")

        response = await client.get("/approvals/workflows/metrics")

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["total"] == 2
        assert data["approved"] == 1
        assert data["rejected"] == 1
        assert data["approval_rate"] == 50.0
        assert data["average_completion_hours"] == 0.0
        editor = next(approver for approver in data["approvers"] if approver["user_id"] == "editor")
        assert editor["total_actions"] == 2
        assert editor["approved"] == 1
        assert editor["rejected"] == 1
        assert [approver["user_id"] for approver in data["approvers"]] == ["counsel", "editor"]

    async def test_naive_due_date_is_accepted(
        self, client: AsyncTestClient, two_step_template: WorkflowTemplate
    ) -> None:
        """A due date without an offset is read as UTC instead of breaking later projections."""
        workflow = await submit(client, two_step_template, "blog_post", due_date="2026-03-03T09:00:00")

        response = await client.get(f"/approvals/workflows/{workflow['id']}/progress")

        assert response.status_code == HTTP_200_OK
        assert response.json()["days_until_due"] == 1
        assert response.json()["is_urgent"] is True

    async def test_bulk_actions(self, client: AsyncTestClient, two_step_template: WorkflowTemplate) -> None:
        first = await submit(client, two_step_template, "blog_post", content_id="a")
        second = await submit(client, two_step_template, "newsletter", content_id="b")
        missing = str(uuid4())

        response = await client.post(
            "/approvals/workflows/bulk-actions",
            json={
                "workflow_ids": [first["id"], missing, second["id"]],
                "user_id": "editor",
                "user_name": "Eddie",
                "action": "approved",
            },
        )

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["succeeded"] == 2
        assert data["failed"] == 1
        assert [item["workflow_id"] for item in data["results"]] == [first["id"], missing, second["id"]]
        assert data["results"][0]["status"] == "in_progress"
        assert data["results"][1]["succeeded"] is False
        assert data["results"][1]["error"] == "workflow_not_found"

        fetched = await client.get(f"/approvals/workflows/{second['id']}")
        assert fetched.json()["current_step_index"] == 1

    async def test_bulk_action_with_unknown_action(
        self, client: AsyncTestClient, two_step_template: WorkflowTemplate
    ) -> None:
        workflow = await submit(client, two_step_template, "blog_post")

        response = await client.post(
            "/approvals/workflows/bulk-actions",
            json={"workflow_ids": [workflow["id"]], "user_id": "editor", "user_name": "Eddie", "action": "escalate"},
        )

        assert response.status_code == HTTP_400_BAD_REQUEST

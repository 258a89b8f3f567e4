"""Shared test fixtures for litestar-approvals test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID

import pytest

if TYPE_CHECKING:
    from litestar_approvals.core.events import WorkflowEvent
    from litestar_approvals.core.models import Workflow, WorkflowTemplate
    from litestar_approvals.engine.audit import InMemoryAuditSink
    from litestar_approvals.engine.local import ApprovalEngine
    from litestar_approvals.engine.registry import TemplateRegistry


START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Deterministic clock for the engine; advance it explicitly."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class MockPersistence:
    """Mock persistence layer for testing."""

    def __init__(self, fail_saves: bool = False) -> None:
        """Initialize mock persistence."""
        self.workflows: dict[UUID, Workflow] = {}
        self.fail_saves = fail_saves
        self.save_count = 0
        self.load_count = 0

    async def save_workflow(self, workflow: Workflow) -> None:
        """Save workflow to mock storage."""
        if self.fail_saves:
            msg = "storage unavailable"
            raise ConnectionError(msg)
        self.workflows[workflow.id] = workflow
        self.save_count += 1

    async def load_workflow(self, workflow_id: UUID) -> Workflow | None:
        """Load workflow from mock storage."""
        self.load_count += 1
        return self.workflows.get(workflow_id)

    async def list_workflows(self) -> list[Workflow]:
        """List every stored workflow."""
        return list(self.workflows.values())


class FailingAuditSink:
    """Audit sink whose delivery always fails."""

    def __init__(self) -> None:
        self.attempts = 0

    async def emit(self, event: WorkflowEvent) -> None:
        self.attempts += 1
        msg = "notification service down"
        raise RuntimeError(msg)


def step_def(name: str, order: int, users: set[str], required: int = 1, **kwargs: Any) -> Any:
    """Build a StepDefinition with terse arguments."""
    from litestar_approvals.core.models import StepDefinition

    return StepDefinition(name=name, required_approvals=required, assigned_user_ids=users, order=order, **kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    """Frozen clock starting at a fixed instant."""
    return FrozenClock()


@pytest.fixture
def template_registry() -> TemplateRegistry:
    """Create an empty template registry for testing."""
    from litestar_approvals.engine.registry import TemplateRegistry

    return TemplateRegistry()


@pytest.fixture
def audit_sink() -> InMemoryAuditSink:
    """Create an in-memory audit sink."""
    from litestar_approvals.engine.audit import InMemoryAuditSink

    return InMemoryAuditSink()


@pytest.fixture
def mock_persistence() -> MockPersistence:
    """Create mock persistence layer."""
    return MockPersistence()


@pytest.fixture
def engine(template_registry: TemplateRegistry, audit_sink: InMemoryAuditSink, clock: FrozenClock) -> ApprovalEngine:
    """Create an approval engine wired to the registry, sink and clock fixtures."""
    from litestar_approvals.engine.local import ApprovalEngine

    return ApprovalEngine(template_store=template_registry, audit_sink=audit_sink, clock=clock)


@pytest.fixture
def two_step_template(template_registry: TemplateRegistry) -> WorkflowTemplate:
    """Editorial review followed by legal review, one approver each."""
    from litestar_approvals.core.definition import create_template

    template = create_template(
        "Blog review",
        "Editor then legal",
        {"blog_post", "newsletter"},
        [
            step_def("editorial", 0, {"editor"}),
            step_def("legal", 1, {"counsel"}),
        ],
    )
    template_registry.register(template)
    return template


@pytest.fixture
def quorum_template(template_registry: TemplateRegistry) -> WorkflowTemplate:
    """Single parallel step needing two of three reviewers."""
    from litestar_approvals.core.definition import create_template

    template = create_template(
        "Campaign sign-off",
        "Two of three brand reviewers",
        {"campaign"},
        [step_def("brand", 0, {"ana", "ben", "cai"}, required=2, is_parallel=True)],
    )
    template_registry.register(template)
    return template


@pytest.fixture
def three_step_template(template_registry: TemplateRegistry) -> WorkflowTemplate:
    """Three sequential steps, the middle one needing two approvals."""
    from litestar_approvals.core.definition import create_template

    template = create_template(
        "Press release",
        "Draft, comms, executive",
        {"press_release"},
        [
            step_def("draft", 0, {"writer"}),
            step_def("comms", 1, {"pr1", "pr2", "pr3"}, required=2),
            step_def("executive", 2, {"ceo"}),
        ],
    )
    template_registry.register(template)
    return template


@pytest.fixture
def make_step() -> Any:
    """Factory for terse StepDefinition construction."""
    return step_def


@pytest.fixture
def failing_sink() -> FailingAuditSink:
    """Audit sink that raises on every event."""
    return FailingAuditSink()

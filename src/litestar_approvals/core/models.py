"""Concrete data models for litestar-approvals.

Templates, workflows, steps and approvals are frozen dataclasses. The engine
never mutates them in place; every accepted action produces a new
``Workflow`` value via :func:`dataclasses.replace`.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import UUID, uuid4

from litestar_approvals.core.types import ApprovalAction, StepStatus, WorkflowStatus

__all__ = [
    "Approval",
    "Step",
    "StepDefinition",
    "Workflow",
    "WorkflowTemplate",
]


def _freeze(values: Iterable[str]) -> frozenset[str]:
    return values if isinstance(values, frozenset) else frozenset(values)


@dataclass(frozen=True)
class StepDefinition:
    """A single gate inside a workflow template.

    Attributes:
        name: Display name of the step.
        required_approvals: Number of ``approved`` actions needed to close the step.
        assigned_user_ids: Actors eligible to act on this step.
        order: Zero-based position of the step within its template.
        description: Human-readable description of the step.
        is_parallel: Stored for display; approvals are counted the same way either way.
        id: Unique identifier of the step.
    """

    name: str
    required_approvals: int
    assigned_user_ids: frozenset[str]
    order: int
    description: str = ""
    is_parallel: bool = False
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "assigned_user_ids", _freeze(self.assigned_user_ids))


@dataclass(frozen=True)
class WorkflowTemplate:
    """Reusable, ordered definition of approval steps.

    Templates are immutable. Revisions are stored as new versions under the
    same ``id`` so running workflows keep pointing at the version they were
    created from.

    Attributes:
        id: Identifier shared by every version of the template.
        name: Display name.
        description: Human-readable description.
        applicable_content_types: Content-type tags this template may be used for.
        steps: Step definitions sorted by ``order``.
        version: Monotonic version number, starting at 1.
        is_default: Whether this is the default template for its content types.
        created_by: Actor who created this version.
        created_at: When this version was created.
    """

    id: UUID
    name: str
    description: str
    applicable_content_types: frozenset[str]
    steps: tuple[StepDefinition, ...]
    version: int = 1
    is_default: bool = False
    created_by: str | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "applicable_content_types", _freeze(self.applicable_content_types))
        object.__setattr__(self, "steps", tuple(self.steps))

    def applies_to(self, content_type: str) -> bool:
        return content_type in self.applicable_content_types


@dataclass(frozen=True)
class Approval:
    """A single actor's recorded decision on a step.

    Attributes:
        user_id: Actor who recorded the decision.
        user_name: Display name of the actor.
        action: The decision taken.
        timestamp: When the decision was recorded.
        comment: Optional free-text justification.
        id: Unique identifier of the record.
    """

    user_id: str
    user_name: str
    action: ApprovalAction
    timestamp: datetime
    comment: str | None = None
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class Step:
    """A step instance inside a running workflow.

    Carries every field of the :class:`StepDefinition` it was materialized
    from plus the append-only list of approvals and the step status.
    """

    id: UUID
    name: str
    description: str
    required_approvals: int
    assigned_user_ids: frozenset[str]
    order: int
    is_parallel: bool
    status: StepStatus = StepStatus.PENDING
    approvals: tuple[Approval, ...] = ()

    @classmethod
    def from_definition(cls, definition: StepDefinition, status: StepStatus = StepStatus.PENDING) -> Step:
        """Materialize a step instance from a template step definition.

        Args:
            definition: The template step to copy.
            status: Initial status of the new step.

        Returns:
            A new step with no approvals.
        """
        return cls(
            id=definition.id,
            name=definition.name,
            description=definition.description,
            required_approvals=definition.required_approvals,
            assigned_user_ids=frozenset(definition.assigned_user_ids),
            order=definition.order,
            is_parallel=definition.is_parallel,
            status=status,
        )

    @property
    def approved_count(self) -> int:
        """Number of ``approved`` actions recorded on this step."""
        return sum(1 for approval in self.approvals if approval.action is ApprovalAction.APPROVED)

    @property
    def threshold_met(self) -> bool:
        return self.approved_count >= self.required_approvals

    def is_assigned(self, user_id: str) -> bool:
        return user_id in self.assigned_user_ids

    def has_acted(self, user_id: str) -> bool:
        return any(approval.user_id == user_id for approval in self.approvals)

    def approval_for(self, user_id: str) -> Approval | None:
        """Return the approval recorded by ``user_id``, if any."""
        for approval in self.approvals:
            if approval.user_id == user_id:
                return approval
        return None

    def with_approval(self, approval: Approval) -> Step:
        return replace(self, approvals=(*self.approvals, approval))


@dataclass(frozen=True)
class Workflow:
    """One content item's approval journey.

    Attributes:
        id: Unique identifier of the workflow.
        content_id: Identifier of the content under review.
        content_title: Title of the content under review.
        content_type: Content-type tag the template was matched against.
        template_id: Identifier of the template this workflow was created from.
        template_version: Version of the template this workflow was created from.
        steps: Step instances in template order.
        current_step_index: Index of the step accepting actions; ``len(steps)``
            once the workflow is fully approved.
        status: Overall workflow status.
        submitted_by: Actor who submitted the content.
        submitted_at: When the workflow was created.
        submitted_by_name: Display name of the submitter.
        completed_at: When the workflow reached a terminal status.
        due_date: Optional deadline for the whole review.
        revision: Incremented on every accepted mutation.
    """

    id: UUID
    content_id: str
    content_title: str
    content_type: str
    template_id: UUID
    template_version: int
    steps: tuple[Step, ...]
    current_step_index: int
    status: WorkflowStatus
    submitted_by: str
    submitted_at: datetime
    submitted_by_name: str | None = None
    completed_at: datetime | None = None
    due_date: datetime | None = None
    revision: int = 0

    @property
    def current_step(self) -> Step | None:
        """The step accepting actions, or None once every step is done."""
        if 0 <= self.current_step_index < len(self.steps):
            return self.steps[self.current_step_index]
        return None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def get_step(self, step_id: UUID) -> Step | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def involves(self, user_id: str) -> bool:
        """Whether ``user_id`` submitted the workflow or is assigned to its current step."""
        if self.submitted_by == user_id:
            return True
        current = self.current_step
        return current is not None and current.is_assigned(user_id)

"""Workflow template construction and validation.

This module builds :class:`~litestar_approvals.core.models.WorkflowTemplate`
values from caller-supplied step definitions and checks the structural rules
every template must satisfy before a workflow can be created from it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from uuid import UUID, uuid4

from litestar_approvals.core.models import StepDefinition, WorkflowTemplate
from litestar_approvals.exceptions import (
    EmptyAssignmentError,
    EmptyStepsError,
    InvalidStepOrderError,
    NonPositiveApprovalsError,
)

__all__ = ["create_template", "validate_step_definitions", "validate_template"]


def validate_step_definitions(step_defs: Sequence[StepDefinition]) -> None:
    """Check the structural rules of a template's steps.

    The checks run in a fixed order and the first violation is raised.

    Args:
        step_defs: The step definitions to validate, in any order.

    Raises:
        EmptyStepsError: If there are no steps.
        InvalidStepOrderError: If orders are not a permutation of ``0..N-1``.
        EmptyAssignmentError: If a step has no assigned users.
        NonPositiveApprovalsError: If a step requires fewer than one approval.

    Example:
        >>> validate_step_definitions(
        ...     [StepDefinition(name="legal", required_approvals=1, assigned_user_ids={"ann"}, order=0)]
        ... )
    """
    if not step_defs:
        raise EmptyStepsError()

    orders = [step.order for step in step_defs]
    if sorted(orders) != list(range(len(orders))):
        raise InvalidStepOrderError(orders)

    for step in sorted(step_defs, key=lambda s: s.order):
        if not step.assigned_user_ids:
            raise EmptyAssignmentError(step.name)
        if step.required_approvals < 1:
            raise NonPositiveApprovalsError(step.name, step.required_approvals)


def validate_template(template: WorkflowTemplate) -> None:
    """Re-validate a template handed over by a template store.

    Args:
        template: The template to check.

    Raises:
        InvalidTemplateError: If any structural rule is violated.
    """
    validate_step_definitions(template.steps)


def create_template(
    name: str,
    description: str,
    content_types: Iterable[str],
    step_defs: Sequence[StepDefinition],
    *,
    is_default: bool = False,
    created_by: str | None = None,
    template_id: UUID | None = None,
    version: int = 1,
) -> WorkflowTemplate:
    """Build a validated workflow template.

    Args:
        name: Display name of the template.
        description: Human-readable description.
        content_types: Content-type tags the template applies to.
        step_defs: Step definitions; stored sorted by ``order``.
        is_default: Whether the template is the default for its content types.
        created_by: Actor creating the template.
        template_id: Identifier to reuse, for new versions of an existing template.
        version: Version number of the template.

    Returns:
        The new, immutable template.

    Raises:
        InvalidTemplateError: If the step definitions are invalid.

    Example:
        >>> template = create_template(
        ...     "Blog review",
        ...     "Editorial then legal",
        ...     {"blog_post"},
        ...     [
        ...         StepDefinition(name="editor", required_approvals=1, assigned_user_ids={"ed"}, order=0),
        ...         StepDefinition(name="legal", required_approvals=1, assigned_user_ids={"lee"}, order=1),
        ...     ],
        ... )
        >>> [step.name for step in template.steps]
        ['editor', 'legal']
    """
    validate_step_definitions(step_defs)

    return WorkflowTemplate(
        id=template_id or uuid4(),
        name=name,
        description=description,
        applicable_content_types=frozenset(content_types),
        steps=tuple(sorted(step_defs, key=lambda s: s.order)),
        version=version,
        is_default=is_default,
        created_by=created_by,
        created_at=datetime.now(timezone.utc),
    )

"""Exception hierarchy for litestar-approvals.

Every error carries a stable ``code`` so callers (and the REST layer) can map
it to a specific, actionable message without string matching.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from uuid import UUID

__all__ = (
    "AlreadyActedError",
    "ApprovalsError",
    "CommentRequiredError",
    "DefaultTemplateConflictError",
    "EmptyAssignmentError",
    "EmptyStepsError",
    "InvalidActionError",
    "InvalidStepOrderError",
    "InvalidTemplateError",
    "NonPositiveApprovalsError",
    "NotAssignedError",
    "NotFoundError",
    "StepNotCurrentError",
    "TemplateMismatchError",
    "TemplateNotFoundError",
    "TemplateVersionConflictError",
    "WorkflowNotFoundError",
    "WorkflowTerminalError",
)


class ApprovalsError(Exception):
    """Base exception for all litestar-approvals errors.

    All exceptions raised by litestar-approvals inherit from this class, so
    callers can catch every engine error with a single except clause.

    Attributes:
        code: Machine-readable error kind.
    """

    code: ClassVar[str] = "approvals_error"


class NotFoundError(ApprovalsError):
    """Base class for missing workflows and templates."""

    code: ClassVar[str] = "not_found"


class TemplateNotFoundError(NotFoundError):
    """Raised when a workflow template is not found.

    Attributes:
        template_id: The ID of the template that was not found.
        version: The specific version requested, if any.
    """

    code: ClassVar[str] = "template_not_found"

    def __init__(self, template_id: str | UUID, version: int | None = None) -> None:
        """Initialize the exception with template details.

        Args:
            template_id: The ID of the template that was not found.
            version: The specific version requested, if any.
        """
        self.template_id = template_id
        self.version = version
        msg = f"Workflow template '{template_id}'"
        if version is not None:
            msg += f" version {version}"
        msg += " not found"
        super().__init__(msg)


class WorkflowNotFoundError(NotFoundError):
    """Raised when a workflow is not found.

    Attributes:
        workflow_id: The ID of the workflow that was not found.
    """

    code: ClassVar[str] = "workflow_not_found"

    def __init__(self, workflow_id: str | UUID) -> None:
        """Initialize the exception with workflow details.

        Args:
            workflow_id: The ID of the workflow that was not found.
        """
        self.workflow_id = workflow_id
        super().__init__(f"Approval workflow '{workflow_id}' not found")


class TemplateMismatchError(ApprovalsError):
    """Raised when a template is used for a content type it does not cover.

    Attributes:
        template_id: The ID of the template.
        content_type: The content type that was requested.
    """

    code: ClassVar[str] = "template_mismatch"

    def __init__(self, template_id: str | UUID, content_type: str) -> None:
        self.template_id = template_id
        self.content_type = content_type
        super().__init__(f"Template '{template_id}' cannot be used for '{content_type}' content")


class InvalidTemplateError(ApprovalsError):
    """Base exception for template validation failures.

    Attributes:
        errors: List of validation error messages.
    """

    code: ClassVar[str] = "invalid_template"

    def __init__(self, errors: list[str]) -> None:
        """Initialize the exception with validation errors.

        Args:
            errors: List of validation error messages.
        """
        self.errors = errors
        super().__init__(f"Template validation failed: {'; '.join(errors)}")


class EmptyStepsError(InvalidTemplateError):
    """Raised when a template defines no steps."""

    code: ClassVar[str] = "empty_steps"

    def __init__(self) -> None:
        super().__init__(["A template needs at least one approval step"])


class InvalidStepOrderError(InvalidTemplateError):
    """Raised when step orders are not a contiguous 0..N-1 sequence.

    Attributes:
        orders: The orders that were supplied.
    """

    code: ClassVar[str] = "invalid_step_order"

    def __init__(self, orders: list[int]) -> None:
        self.orders = orders
        expected = list(range(len(orders)))
        super().__init__([f"Step orders {sorted(orders)} must be exactly {expected}"])


class EmptyAssignmentError(InvalidTemplateError):
    """Raised when a step has nobody assigned to it.

    Attributes:
        step_name: The step without assignees.
    """

    code: ClassVar[str] = "empty_assignment"

    def __init__(self, step_name: str) -> None:
        self.step_name = step_name
        super().__init__([f"Step '{step_name}' must have at least one assigned approver"])


class NonPositiveApprovalsError(InvalidTemplateError):
    """Raised when a step requires fewer than one approval.

    Attributes:
        step_name: The offending step.
        required_approvals: The value that was supplied.
    """

    code: ClassVar[str] = "non_positive_approvals"

    def __init__(self, step_name: str, required_approvals: int) -> None:
        self.step_name = step_name
        self.required_approvals = required_approvals
        super().__init__([f"Step '{step_name}' requires {required_approvals} approvals; at least 1 is needed"])


class DefaultTemplateConflictError(ApprovalsError):
    """Raised when a second default template is registered for a content type.

    Attributes:
        content_type: The contested content type.
        existing_template_id: The template that is already the default.
    """

    code: ClassVar[str] = "default_template_conflict"

    def __init__(self, content_type: str, existing_template_id: str | UUID) -> None:
        self.content_type = content_type
        self.existing_template_id = existing_template_id
        super().__init__(
            f"Template '{existing_template_id}' is already the default for '{content_type}' content"
        )


class TemplateVersionConflictError(ApprovalsError):
    """Raised when different content is registered under an existing template version.

    Attributes:
        template_id: The ID of the template.
        version: The version that is already taken.
    """

    code: ClassVar[str] = "template_version_conflict"

    def __init__(self, template_id: str | UUID, version: int) -> None:
        self.template_id = template_id
        self.version = version
        super().__init__(
            f"Template '{template_id}' version {version} already exists; revise the template to change it"
        )


class WorkflowTerminalError(ApprovalsError):
    """Raised when trying to act on an approved or rejected workflow.

    Attributes:
        workflow_id: The ID of the workflow.
        status: The terminal status of the workflow.
    """

    code: ClassVar[str] = "workflow_terminal"

    def __init__(self, workflow_id: str | UUID, status: str) -> None:
        self.workflow_id = workflow_id
        self.status = status
        super().__init__(f"Workflow '{workflow_id}' is already {status} and can no longer be changed")


class StepNotCurrentError(ApprovalsError):
    """Raised when an action targets a step other than the current one.

    Attributes:
        workflow_id: The ID of the workflow.
        step_id: The step the caller targeted.
        current_step_id: The step that currently accepts actions.
    """

    code: ClassVar[str] = "step_not_current"

    def __init__(self, workflow_id: str | UUID, step_id: str | UUID, current_step_id: str | UUID | None) -> None:
        self.workflow_id = workflow_id
        self.step_id = step_id
        self.current_step_id = current_step_id
        super().__init__(f"Step '{step_id}' is not the current step of workflow '{workflow_id}'")


class NotAssignedError(ApprovalsError):
    """Raised when a user acts on a step they are not assigned to.

    Attributes:
        step_id: The ID of the step.
        user_id: The ID of the user attempting the action.
    """

    code: ClassVar[str] = "not_assigned"

    def __init__(self, step_id: str | UUID, user_id: str) -> None:
        self.step_id = step_id
        self.user_id = user_id
        super().__init__(f"User '{user_id}' is not assigned to step '{step_id}'")


class AlreadyActedError(ApprovalsError):
    """Raised when a user acts twice on the same step.

    Attributes:
        step_id: The ID of the step.
        user_id: The ID of the user.
        previous_action: The action the user already recorded.
    """

    code: ClassVar[str] = "already_acted"

    def __init__(self, step_id: str | UUID, user_id: str, previous_action: str) -> None:
        self.step_id = step_id
        self.user_id = user_id
        self.previous_action = previous_action
        super().__init__(f"User '{user_id}' has already acted on step '{step_id}' ({previous_action})")


class CommentRequiredError(ApprovalsError):
    """Raised when rejecting or requesting changes without a comment.

    Attributes:
        action: The action that needs a comment.
    """

    code: ClassVar[str] = "comment_required"

    def __init__(self, action: str) -> None:
        self.action = action
        verb = "reject content" if action == "rejected" else "request changes"
        super().__init__(f"A comment is required to {verb}")


class InvalidActionError(ApprovalsError):
    """Raised when an action is not one of the known approval actions.

    Attributes:
        action: The value that was supplied.
    """

    code: ClassVar[str] = "invalid_action"

    def __init__(self, action: object) -> None:
        self.action = action
        super().__init__(f"Unknown approval action {action!r}; use approved, rejected or requested_changes")

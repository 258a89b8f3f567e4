"""Exception handling for approval web endpoints.

This module maps the engine's exception hierarchy onto HTTP responses. Each
error keeps its machine-readable ``code`` so clients can show the matching
message to the approver.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from litestar import Response
from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)

from litestar_approvals.exceptions import (
    AlreadyActedError,
    ApprovalsError,
    DefaultTemplateConflictError,
    NotAssignedError,
    NotFoundError,
    StepNotCurrentError,
    TemplateVersionConflictError,
    WorkflowTerminalError,
)

if TYPE_CHECKING:  # pragma: no cover
    from litestar import Request

__all__ = ["approvals_error_handler", "status_code_for"]

_STATUS_CODES: tuple[tuple[type[ApprovalsError], int], ...] = (
    (NotFoundError, HTTP_404_NOT_FOUND),
    (NotAssignedError, HTTP_403_FORBIDDEN),
    (WorkflowTerminalError, HTTP_409_CONFLICT),
    (StepNotCurrentError, HTTP_409_CONFLICT),
    (AlreadyActedError, HTTP_409_CONFLICT),
    (DefaultTemplateConflictError, HTTP_409_CONFLICT),
    (TemplateVersionConflictError, HTTP_409_CONFLICT),
)


def status_code_for(exc: ApprovalsError) -> int:
    """Return the HTTP status for an engine error; validation errors map to 400."""
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return HTTP_400_BAD_REQUEST


def approvals_error_handler(
    _request: Request,
    exc: ApprovalsError,
) -> Response:
    """Exception handler for ApprovalsError.

    Args:
        request: The Litestar request object.
        exc: The engine error.

    Returns:
        Response with the error code and its human-readable message.
    """
    return Response(
        content={
            "error": exc.code,
            "message": str(exc),
        },
        status_code=status_code_for(exc),
        media_type="application/json",
    )

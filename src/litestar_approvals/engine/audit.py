"""Audit sinks for approval workflow events.

The engine hands every committed transition to an :class:`AuditSink`. This
module provides the sinks shipped with the package: an in-memory history,
a logging sink and a fan-out sink.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from litestar_approvals.core.events import WorkflowEvent
    from litestar_approvals.core.protocols import AuditSink

__all__ = ["CompositeAuditSink", "InMemoryAuditSink", "LoggingAuditSink"]

logger = logging.getLogger(__name__)


class InMemoryAuditSink:
    """Keeps every event in memory, in emission order.

    Suitable for development, tests and history views of single-instance
    deployments.

    Attributes:
        events: All received events.
    """

    def __init__(self) -> None:
        self.events: list[WorkflowEvent] = []

    async def emit(self, event: WorkflowEvent) -> None:
        self.events.append(event)

    def history(self, workflow_id: UUID) -> list[WorkflowEvent]:
        """Return the events of one workflow, oldest first."""
        return [event for event in self.events if event.workflow_id == workflow_id]

    def clear(self) -> None:
        self.events.clear()


class LoggingAuditSink:
    """Writes one log line per event.

    Args:
        log: Logger to write to. Defaults to this module's logger.
        level: Log level used for every event.
    """

    def __init__(self, log: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self.log = log or logger
        self.level = level

    async def emit(self, event: WorkflowEvent) -> None:
        self.log.log(
            self.level,
            "%s workflow=%s step=%s actor=%s action=%s status=%s->%s",
            event.event_type,
            event.workflow_id,
            event.step_id,
            event.actor_id,
            event.action,
            event.before_status,
            event.after_status,
        )


class CompositeAuditSink:
    """Forwards each event to several sinks.

    A failing sink does not stop delivery to the others; its error is
    logged and the remaining sinks still receive the event.
    """

    def __init__(self, sinks: Sequence[AuditSink]) -> None:
        self.sinks = list(sinks)

    async def emit(self, event: WorkflowEvent) -> None:
        for sink in self.sinks:
            try:
                await sink.emit(event)
            except Exception:
                logger.exception("Audit sink %r failed for %s", sink, event.event_type)

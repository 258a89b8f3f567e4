"""Template registry for managing workflow templates.

This module provides an in-memory template store with support for
versioning and per-content-type default templates.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from litestar_approvals.core.definition import validate_template
from litestar_approvals.exceptions import (
    DefaultTemplateConflictError,
    TemplateNotFoundError,
    TemplateVersionConflictError,
)

if TYPE_CHECKING:
    from uuid import UUID

    from litestar_approvals.core.models import WorkflowTemplate

__all__ = ["TemplateRegistry"]

logger = logging.getLogger(__name__)


class TemplateRegistry:
    """Registry for storing and retrieving workflow templates.

    The registry maintains a mapping of template ids to versions and their
    templates. Templates are immutable; edits are stored as new versions via
    :meth:`revise`, so workflows created from an older version are unaffected.

    Attributes:
        _templates: Nested dict mapping template id -> version -> WorkflowTemplate.
    """

    def __init__(self) -> None:
        """Initialize an empty template registry."""
        self._templates: dict[UUID, dict[int, WorkflowTemplate]] = {}

    def register(self, template: WorkflowTemplate) -> None:
        """Register a template version with the registry.

        Args:
            template: The template to register.

        Raises:
            InvalidTemplateError: If the template's steps are invalid.
            DefaultTemplateConflictError: If the template is marked default for a
                content type that already has a default template.
            TemplateVersionConflictError: If a different template is already
                registered under the same id and version.

        Example:
            >>> registry = TemplateRegistry()
            >>> registry.register(blog_template)
        """
        validate_template(template)
        existing = self._templates.get(template.id, {}).get(template.version)
        if existing is not None:
            if existing != template:
                raise TemplateVersionConflictError(template.id, template.version)
            return
        if template.is_default:
            self._check_default_conflict(template)

        self._templates.setdefault(template.id, {})[template.version] = template
        logger.debug("Registered template %s version %d (%s)", template.id, template.version, template.name)

    def save_template(self, template: WorkflowTemplate) -> None:
        """Store a template; used by the engine when creating templates."""
        self.register(template)

    def get_template(self, template_id: UUID, version: int | None = None) -> WorkflowTemplate:
        """Retrieve a template by id and optional version.

        Args:
            template_id: The template id.
            version: The template version. If None, returns the latest version.

        Returns:
            The requested WorkflowTemplate.

        Raises:
            TemplateNotFoundError: If the template id or version is not found.

        Example:
            >>> template = registry.get_template(template_id)
            >>> template_v1 = registry.get_template(template_id, version=1)
        """
        versions = self._templates.get(template_id)
        if not versions:
            raise TemplateNotFoundError(template_id)

        if version is None:
            version = max(versions.keys())

        if version not in versions:
            raise TemplateNotFoundError(template_id, version)

        return versions[version]

    def revise(self, template_id: UUID, **changes: Any) -> WorkflowTemplate:
        """Store an edited copy of the latest version as a new version.

        Args:
            template_id: The template to revise.
            **changes: Fields to change, as accepted by :func:`dataclasses.replace`.

        Returns:
            The newly registered version.

        Raises:
            TemplateNotFoundError: If the template does not exist.
            InvalidTemplateError: If the revised steps are invalid.

        Example:
            >>> v2 = registry.revise(template_id, name="Blog review (strict)")
            >>> v2.version
            2
        """
        latest = self.get_template(template_id)
        changes.pop("id", None)
        if "steps" in changes:
            changes["steps"] = tuple(sorted(changes["steps"], key=lambda s: s.order))
        revised = replace(
            latest,
            **changes,
            version=latest.version + 1,
            created_at=datetime.now(timezone.utc),
        )
        self.register(revised)
        return revised

    def list_templates(self, content_type: str | None = None, latest_only: bool = True) -> list[WorkflowTemplate]:
        """List registered templates.

        Args:
            content_type: Only include templates applicable to this content type.
            latest_only: If True, only return the latest version of each template.
                If False, return all versions.

        Returns:
            List of WorkflowTemplate objects.
        """
        templates: list[WorkflowTemplate] = []

        for versions in self._templates.values():
            if latest_only:
                templates.append(versions[max(versions.keys())])
            else:
                templates.extend(versions.values())

        if content_type is not None:
            templates = [template for template in templates if template.applies_to(content_type)]

        return templates

    def get_default_template(self, content_type: str) -> WorkflowTemplate | None:
        """Return the default template for a content type, if one is registered.

        Args:
            content_type: The content-type tag.

        Returns:
            The latest version of the default template, or None.
        """
        for template in self.list_templates(content_type=content_type):
            if template.is_default:
                return template
        return None

    def unregister(self, template_id: UUID, version: int | None = None) -> None:
        """Remove a template from the registry.

        Args:
            template_id: The template id.
            version: The specific version to remove. If None, removes all versions.
        """
        if template_id not in self._templates:
            return

        if version is None:
            del self._templates[template_id]
            return

        self._templates[template_id].pop(version, None)
        if not self._templates[template_id]:
            del self._templates[template_id]

    def has_template(self, template_id: UUID, version: int | None = None) -> bool:
        """Check if a template exists in the registry.

        Args:
            template_id: The template id.
            version: Optional specific version to check.

        Returns:
            True if the template exists, False otherwise.
        """
        if template_id not in self._templates:
            return False

        if version is None:
            return True

        return version in self._templates[template_id]

    def get_versions(self, template_id: UUID) -> list[int]:
        """Get all versions of a template, oldest first.

        Raises:
            TemplateNotFoundError: If the template id is not found.
        """
        if template_id not in self._templates:
            raise TemplateNotFoundError(template_id)

        return sorted(self._templates[template_id].keys())

    def _check_default_conflict(self, template: WorkflowTemplate) -> None:
        for other in self.list_templates():
            if other.id == template.id or not other.is_default:
                continue
            shared = other.applicable_content_types & template.applicable_content_types
            if shared:
                raise DefaultTemplateConflictError(sorted(shared)[0], other.id)

"""Litestar plugin for approval workflow integration.

This module provides the ApprovalPlugin for integrating litestar-approvals
with Litestar applications.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from litestar.di import Provide
from litestar.exceptions import ImproperlyConfiguredException
from litestar.plugins import InitPluginProtocol

from litestar_approvals.core.protocols import WorkflowLister
from litestar_approvals.engine.local import ApprovalEngine
from litestar_approvals.engine.projections import URGENCY_WINDOW
from litestar_approvals.engine.registry import TemplateRegistry

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

    from litestar_approvals.core.models import WorkflowTemplate
    from litestar_approvals.core.protocols import AuditSink, WorkflowPersistence

__all__ = ["ApprovalPlugin", "ApprovalPluginConfig"]


@dataclass
class ApprovalPluginConfig:
    """Configuration for the ApprovalPlugin.

    Attributes:
        template_registry: Optional pre-configured TemplateRegistry. If not provided,
            a new one will be created.
        engine: Optional pre-configured ApprovalEngine. If not provided, one is
            created from the registry, audit sink and persistence settings. Its
            template store must be the registry the API serves.
        audit_sink: Audit sink handed to a newly created engine.
        persistence: Persistence layer handed to a newly created engine.
        auto_register_templates: Templates to register on app startup.
        urgency_window: Due-date window after which pending workflows are urgent.
        emit_timeout: Seconds a newly created engine waits for the audit sink per event.
        restore_on_startup: Whether to reload persisted workflows into the engine on
            app startup, when the persistence layer can list them. Defaults to True.
        dependency_key_registry: The key used for dependency injection of
            the TemplateRegistry. Defaults to "template_registry".
        dependency_key_engine: The key used for dependency injection of
            the ApprovalEngine. Defaults to "approval_engine".
        enable_api: Whether to enable the REST API endpoints. Defaults to True.
        api_path_prefix: URL path prefix for all approval API endpoints.
            Defaults to "/approvals".
        api_guards: List of Litestar guards to apply to all approval API endpoints.
        api_tags: OpenAPI tags to apply to approval API endpoints.
        include_api_in_schema: Whether to include API endpoints in OpenAPI schema.
            Defaults to True.
    """

    template_registry: TemplateRegistry | None = None
    engine: ApprovalEngine | None = None
    audit_sink: AuditSink | None = None
    persistence: WorkflowPersistence | None = None
    auto_register_templates: list[WorkflowTemplate] = field(default_factory=list)
    urgency_window: timedelta = URGENCY_WINDOW
    emit_timeout: float | None = None
    restore_on_startup: bool = True
    dependency_key_registry: str = "template_registry"
    dependency_key_engine: str = "approval_engine"
    enable_api: bool = True
    api_path_prefix: str = "/approvals"
    api_guards: list[Any] = field(default_factory=list)
    api_tags: list[str] = field(default_factory=lambda: ["Approvals"])
    include_api_in_schema: bool = True


class ApprovalPlugin(InitPluginProtocol):
    """Litestar plugin for content approval workflows.

    This plugin integrates litestar-approvals with a Litestar application,
    providing dependency injection for the TemplateRegistry and ApprovalEngine
    and, optionally, the REST API.

    Example:
        Basic usage with auto-registration::

            from litestar import Litestar
            from litestar_approvals import ApprovalPlugin, ApprovalPluginConfig

            app = Litestar(
                plugins=[ApprovalPlugin(config=ApprovalPluginConfig(auto_register_templates=[blog_template]))]
            )

        Using in a route handler::

            from litestar import post
            from litestar_approvals import ApprovalEngine


            @post("/posts/{post_id:str}/submit")
            async def submit_post(post_id: str, approval_engine: ApprovalEngine) -> dict:
                workflow = await approval_engine.create_workflow(
                    blog_template.id, post_id, "Launch post", "blog_post", submitted_by="alice"
                )
                return {"workflow_id": str(workflow.id), "status": workflow.status}
    """

    __slots__ = ("_config", "_engine", "_registry")

    def __init__(self, config: ApprovalPluginConfig | None = None) -> None:
        """Initialize the plugin.

        Args:
            config: Optional configuration for the plugin.
        """
        self._config = config or ApprovalPluginConfig()
        self._registry: TemplateRegistry | None = None
        self._engine: ApprovalEngine | None = None

    @property
    def registry(self) -> TemplateRegistry:
        """Get the template registry.

        Raises:
            RuntimeError: If accessed before plugin initialization.
        """
        if self._registry is None:
            msg = "ApprovalPlugin has not been initialized. Access registry after app startup."
            raise RuntimeError(msg)
        return self._registry

    @property
    def engine(self) -> ApprovalEngine:
        """Get the approval engine.

        Raises:
            RuntimeError: If accessed before plugin initialization.
        """
        if self._engine is None:
            msg = "ApprovalPlugin has not been initialized. Access engine after app startup."
            raise RuntimeError(msg)
        return self._engine

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Initialize the plugin when the Litestar app starts.

        This method:
        1. Creates or uses the provided TemplateRegistry
        2. Creates or uses the provided ApprovalEngine
        3. Registers any auto_register_templates
        4. Adds dependency providers to the app config
        5. Schedules the reload of persisted workflows on startup
        6. Optionally registers REST API controllers and the error handler

        Args:
            app_config: The Litestar application configuration.

        Returns:
            The modified application configuration.

        Raises:
            ImproperlyConfiguredException: If a provided engine reads templates
                from a store other than the registry the plugin serves.
        """
        config = self._config

        self._registry = self._resolve_registry(config)

        self._engine = config.engine or ApprovalEngine(
            template_store=self._registry,
            audit_sink=config.audit_sink,
            persistence=config.persistence,
            urgency_window=config.urgency_window,
            emit_timeout=config.emit_timeout,
        )

        for template in config.auto_register_templates:
            self._registry.register(template)

        def provide_registry() -> TemplateRegistry:
            return self._registry  # type: ignore[return-value]

        def provide_engine() -> ApprovalEngine:
            return self._engine  # type: ignore[return-value]

        app_config.dependencies[config.dependency_key_registry] = Provide(
            provide_registry,
            sync_to_thread=False,
        )
        app_config.dependencies[config.dependency_key_engine] = Provide(
            provide_engine,
            sync_to_thread=False,
        )

        if config.restore_on_startup and isinstance(self._engine.persistence, WorkflowLister):
            app_config.on_startup.append(self._engine.restore)

        if config.enable_api:
            from litestar import Router

            from litestar_approvals.exceptions import ApprovalsError
            from litestar_approvals.web.controllers import ApprovalWorkflowController, TemplateController
            from litestar_approvals.web.exceptions import approvals_error_handler

            approvals_router = Router(
                path=config.api_path_prefix,
                route_handlers=[TemplateController, ApprovalWorkflowController],
                guards=config.api_guards,
                tags=config.api_tags,
                include_in_schema=config.include_api_in_schema,
            )
            app_config.route_handlers.append(approvals_router)
            app_config.exception_handlers[ApprovalsError] = approvals_error_handler  # type: ignore[assignment]

        return app_config

    @staticmethod
    def _resolve_registry(config: ApprovalPluginConfig) -> TemplateRegistry:
        engine = config.engine
        if engine is None:
            return config.template_registry or TemplateRegistry()

        if config.template_registry is None:
            if isinstance(engine.template_store, TemplateRegistry):
                return engine.template_store
            msg = (
                "ApprovalPluginConfig.engine reads templates from a "
                f"{type(engine.template_store).__name__}, not a TemplateRegistry; "
                "pass a TemplateRegistry as the engine's template_store"
            )
            raise ImproperlyConfiguredException(msg)

        if engine.template_store is not config.template_registry:
            msg = "ApprovalPluginConfig.engine must use ApprovalPluginConfig.template_registry as its template_store"
            raise ImproperlyConfiguredException(msg)
        return config.template_registry

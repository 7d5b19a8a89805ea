"""Orchestrator: text in, task created on the chosen backend, result out."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Protocol

from .asana import AsanaClient
from .config import Settings
from .directory import AssigneeDirectory
from .errors import TaskValidationError, failure_kind
from .models import BACKEND_LABELS, BACKENDS, Backend, CreatedTask, TaskInput, TaskResult
from .parser import map_assignee_to_id, parse_task_input
from .planner import PlannerClient

logger = logging.getLogger(__name__)


class TaskBackend(Protocol):
    backend: str

    async def create_task(self, task: TaskInput) -> CreatedTask: ...

    async def aclose(self) -> None: ...


AdapterFactory = Callable[[Settings], TaskBackend]

DEFAULT_FACTORIES: dict[str, AdapterFactory] = {
    "asana": lambda s: AsanaClient(s.asana, timeout=s.timeout),
    "planner": lambda s: PlannerClient(s.planner, timeout=s.timeout),
}


def select_backend(settings: Settings) -> Backend:
    """Pick the default backend for requests that don't name one.

    An explicit default wins; otherwise the first configured backend. With
    nothing configured this still answers "asana" so the request fails on
    adapter construction with a clear configuration error.
    """
    if settings.default_backend:
        return settings.default_backend
    if settings.asana_configured:
        return "asana"
    if settings.planner_configured:
        return "planner"
    return "asana"


class AdapterProvider:
    """Builds each backend adapter on first use and reuses it afterwards."""

    def __init__(
        self,
        settings: Settings,
        factories: dict[str, AdapterFactory] | None = None,
    ) -> None:
        self.settings = settings
        self.factories = {**DEFAULT_FACTORIES, **(factories or {})}
        self._adapters: dict[str, TaskBackend] = {}

    def get(self, backend: str) -> TaskBackend:
        """Return the adapter for ``backend``, raising ConfigurationError if it can't be built."""
        adapter = self._adapters.get(backend)
        if adapter is None:
            factory = self.factories.get(backend)
            if factory is None:
                raise KeyError(f"Unknown backend: {backend}")
            adapter = factory(self.settings)
            self._adapters[backend] = adapter
            logger.debug("Initialized %s adapter", backend)
        return adapter

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()
        self._adapters.clear()


class TaskOrchestrator:
    """Parses free text and files it as a task on one backend.

    Every failure along the way (parsing, validation, configuration, API) is
    turned into an unsuccessful TaskResult rather than raised.
    """

    def __init__(
        self,
        settings: Settings,
        provider: AdapterProvider | None = None,
        directory: AssigneeDirectory | None = None,
    ) -> None:
        self.settings = settings
        self.provider = provider or AdapterProvider(settings)
        self.directory = directory if directory is not None else settings.assignees

    def select_backend(self) -> str:
        return select_backend(self.settings)

    async def handle(
        self,
        text: str,
        platform: str | None = None,
        assignee: str | None = None,
        today: date | None = None,
    ) -> TaskResult:
        """Create a task from ``text`` on ``platform`` (or the default backend)."""
        backend = platform or self.select_backend()
        label = BACKEND_LABELS.get(backend, backend)
        title = None
        try:
            if backend not in BACKENDS:
                raise TaskValidationError(f"Unknown platform: {backend}")

            payload = parse_task_input(text, today=today)
            title = payload.get("title")
            if assignee:
                user_id = map_assignee_to_id(assignee, backend, self.directory)
                if user_id:
                    payload["assignee"] = user_id
                else:
                    logger.debug("No %s user id for '%s'; leaving unassigned", backend, assignee)
            task = TaskInput.validate_payload(payload)

            adapter = self.provider.get(backend)
            created = await adapter.create_task(task)
        except Exception as e:
            logger.error("Failed to create task in %s: %s", label, e)
            what = f'task "{title}"' if title else "task"
            return TaskResult(
                success=False,
                backend=backend,
                message=f"Failed to create {what} in {label}",
                error=str(e) or e.__class__.__name__,
                error_kind=failure_kind(e),
            )

        message = f'Task "{task.title}" created successfully in {label}'
        if not created.enrichment_complete:
            message += " (some details could not be saved)"
        return TaskResult(
            success=True,
            backend=backend,
            message=message,
            task_url=created.url,
            warnings=list(created.warnings),
        )

    async def aclose(self) -> None:
        await self.provider.aclose()

"""Asana REST API adapter."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from .config import DEFAULT_TIMEOUT_S, AsanaConfig
from .errors import BackendAPIError
from .models import CreatedTask, TaskInput, format_links_block

logger = logging.getLogger(__name__)

ASANA_API_URL = "https://app.asana.com/api/1.0"
ASANA_TASK_URL = "https://app.asana.com/0/{project}/{gid}"


@dataclass
class AsanaTaskRequest:
    """Body of a ``POST /tasks`` call."""

    name: str
    projects: list[str] = field(default_factory=list)
    notes: str | None = None
    due_on: str | None = None
    assignee: str | None = None

    def to_payload(self) -> dict:
        data: dict = {"name": self.name, "projects": list(self.projects)}
        if self.notes:
            data["notes"] = self.notes
        if self.due_on:
            data["due_on"] = self.due_on
        if self.assignee:
            data["assignee"] = self.assignee
        return {"data": data}


def build_asana_request(task: TaskInput, project: str) -> AsanaTaskRequest:
    """Map a TaskInput onto Asana's task fields."""
    return AsanaTaskRequest(
        name=task.title,
        projects=[project],
        notes=format_links_block(task.description, task.links) or None,
        due_on=task.due_date,
        assignee=task.assignee,
    )


class AsanaClient:
    """Creates tasks in one Asana project, optionally filing them into a section."""

    backend = "asana"

    def __init__(
        self,
        config: AsanaConfig,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config.validate()
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=ASANA_API_URL,
            headers={
                "Authorization": f"Bearer {config.token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        """Issue a request and return the decoded body, raising on non-2xx."""
        resp = await self._client.request(method, path, **kwargs)
        if not resp.is_success:
            raise BackendAPIError("Asana", resp.status_code, resp.text)
        return resp.json()

    # ------------------------------------------------------------------
    # Task creation
    # ------------------------------------------------------------------

    async def create_task(self, task: TaskInput) -> CreatedTask:
        """Create a task and return its permalink.

        A section move that fails afterwards is reported as a warning on the
        result; the task itself already exists at that point.
        """
        project = task.project or self.config.project
        section = task.section or self.config.section
        request = build_asana_request(task, project)
        logger.debug("Creating Asana task '%s' in project %s", task.title, project)

        body = await self._request("POST", "/tasks", json=request.to_payload())
        data = body.get("data") or {}
        gid = data.get("gid")
        if not gid:
            raise BackendAPIError("Asana", 201, "task created response carried no task id")
        url = data.get("permalink_url")
        if not url:
            url = ASANA_TASK_URL.format(project=project, gid=gid)
            logger.warning("Asana returned no permalink for task %s; using %s", gid, url)
        created = CreatedTask(url=url, task_id=gid)
        logger.info("Created Asana task '%s' -> %s", task.title, created.url)

        if section and created.task_id:
            warning = await self.move_task_to_section(created.task_id, section)
            if warning:
                created.warnings.append(warning)
        return created

    async def move_task_to_section(self, task_gid: str, section_gid: str) -> str | None:
        """Best-effort move of a task into a section. Returns a warning on failure."""
        try:
            await self._request(
                "POST",
                f"/sections/{section_gid}/addTask",
                json={"data": {"task": task_gid}},
            )
        except (BackendAPIError, httpx.HTTPError) as e:
            logger.warning(
                "Failed to move Asana task %s to section %s: %s", task_gid, section_gid, e
            )
            return f"Task created but could not be moved to section {section_gid}: {e}"
        logger.debug("Moved Asana task %s to section %s", task_gid, section_gid)
        return None

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_project(self, project_gid: str | None = None) -> dict:
        """Fetch project details (defaults to the configured project)."""
        gid = project_gid or self.config.project
        body = await self._request("GET", f"/projects/{gid}")
        return body.get("data") or {}

    async def get_project_sections(self, project_gid: str | None = None) -> list[dict]:
        """List the sections of a project (defaults to the configured project)."""
        gid = project_gid or self.config.project
        body = await self._request("GET", f"/projects/{gid}/sections")
        return body.get("data") or []

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsanaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

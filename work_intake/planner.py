"""Microsoft Planner adapter (Microsoft Graph v1.0)."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from .config import DEFAULT_TIMEOUT_S, PlannerConfig
from .errors import BackendAPIError, ConfigurationError
from .models import CreatedTask, TaskInput, format_links_block

logger = logging.getLogger(__name__)

GRAPH_API_URL = "https://graph.microsoft.com/v1.0"
PLANNER_TASK_URL = "https://tasks.office.com/Home/Task/{task_id}"


@dataclass
class PlannerTaskRequest:
    """Body of a ``POST /planner/tasks`` call."""

    plan_id: str
    bucket_id: str
    title: str
    due_date_time: str | None = None
    assignee: str | None = None

    def to_payload(self) -> dict:
        payload: dict = {
            "planId": self.plan_id,
            "bucketId": self.bucket_id,
            "title": self.title,
        }
        if self.due_date_time:
            payload["dueDateTime"] = self.due_date_time
        if self.assignee:
            payload["assignments"] = {
                self.assignee: {
                    "@odata.type": "#microsoft.graph.plannerAssignment",
                    "orderHint": " !",
                }
            }
        return payload


def build_planner_request(task: TaskInput, plan_id: str, bucket_id: str) -> PlannerTaskRequest:
    """Map a TaskInput onto Planner's task fields.

    Planner wants a full timestamp for the due date; midnight UTC is used.
    """
    return PlannerTaskRequest(
        plan_id=plan_id,
        bucket_id=bucket_id,
        title=task.title,
        due_date_time=f"{task.due_date}T00:00:00Z" if task.due_date else None,
        assignee=task.assignee,
    )


class PlannerClient:
    """Creates tasks in one Planner plan."""

    backend = "planner"

    def __init__(
        self,
        config: PlannerConfig,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config.validate()
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=GRAPH_API_URL,
            headers={
                "Authorization": f"Bearer {config.token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        """Issue a request and return the decoded body, raising on non-2xx."""
        resp = await self._client.request(method, path, **kwargs)
        if not resp.is_success:
            raise BackendAPIError("Microsoft Graph", resp.status_code, resp.text)
        # PATCH on task details answers 204 with no body
        if resp.status_code == 204 or not resp.content:
            return {}
        return resp.json()

    # ------------------------------------------------------------------
    # Task creation
    # ------------------------------------------------------------------

    async def resolve_bucket_id(self, plan_id: str, bucket_id: str | None = None) -> str:
        """Return the bucket to file into: the given one, or the plan's default."""
        if bucket_id:
            return bucket_id
        plan = await self.get_plan(plan_id)
        default_bucket = plan.get("defaultBucketId")
        if not default_bucket:
            raise ConfigurationError(
                "No bucket ID specified and plan has no default bucket"
            )
        logger.debug("Using default bucket %s of plan %s", default_bucket, plan_id)
        return default_bucket

    async def create_task(self, task: TaskInput) -> CreatedTask:
        """Create a task and return its web URL.

        Description and links go into the task details with a second call;
        a failure there is reported as a warning on the result.
        """
        plan_id = task.project or self.config.plan_id
        bucket_id = await self.resolve_bucket_id(
            plan_id, task.section or self.config.bucket_id
        )
        request = build_planner_request(task, plan_id, bucket_id)
        logger.debug(
            "Creating Planner task '%s' in plan %s bucket %s", task.title, plan_id, bucket_id
        )

        data = await self._request("POST", "/planner/tasks", json=request.to_payload())
        task_id = data.get("id", "")
        created = CreatedTask(
            url=data.get("webUrl") or PLANNER_TASK_URL.format(task_id=task_id),
            task_id=task_id,
        )
        logger.info("Created Planner task '%s' -> %s", task.title, created.url)

        description = format_links_block(task.description, task.links)
        if description and task_id:
            warning = await self.update_task_details(task_id, description)
            if warning:
                created.warnings.append(warning)
        return created

    async def update_task_details(self, task_id: str, description: str) -> str | None:
        """Best-effort write of the task description. Returns a warning on failure."""
        try:
            await self._request(
                "PATCH",
                f"/planner/tasks/{task_id}/details",
                json={"description": description},
                headers={"If-Match": "*"},
            )
        except (BackendAPIError, httpx.HTTPError) as e:
            logger.warning("Failed to update Planner task details for %s: %s", task_id, e)
            return f"Task created but its description could not be saved: {e}"
        logger.debug("Updated details of Planner task %s", task_id)
        return None

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_plan(self, plan_id: str | None = None) -> dict:
        """Fetch plan details (defaults to the configured plan)."""
        return await self._request("GET", f"/planner/plans/{plan_id or self.config.plan_id}")

    async def get_plan_buckets(self, plan_id: str | None = None) -> list[dict]:
        """List the buckets of a plan."""
        body = await self._request(
            "GET", f"/planner/plans/{plan_id or self.config.plan_id}/buckets"
        )
        return body.get("value") or []

    async def get_plan_tasks(self, plan_id: str | None = None) -> list[dict]:
        """List the tasks of a plan."""
        body = await self._request(
            "GET", f"/planner/plans/{plan_id or self.config.plan_id}/tasks"
        )
        return body.get("value") or []

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "PlannerClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

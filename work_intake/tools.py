"""Agent-facing tool definitions for the backend adapters.

An AI agent sees two tools, one per backend, whose parameters are the
TaskInput schema. Calls are dispatched straight to the adapters.
"""

from __future__ import annotations

import json
import logging

from .errors import TaskValidationError, failure_kind
from .models import BACKEND_LABELS, TaskInput, TaskResult
from .orchestrator import AdapterProvider

logger = logging.getLogger(__name__)

TOOL_BACKENDS = {
    "asana_create_task": "asana",
    "planner_create_task": "planner",
}

TOOL_DESCRIPTIONS = {
    "asana_create_task": (
        "Create a task in Asana with optional due date, assignee, section, and links."
    ),
    "planner_create_task": (
        "Create a task in Microsoft Planner with optional due date, assignee, "
        "bucket (section), and links."
    ),
}

ASSISTANT_INSTRUCTIONS = """\
You are a personal assistant that creates tasks in project management tools.

Your job is to:
1. Parse natural language task descriptions from emails or dictation
2. Extract a clear title, description, due date (YYYY-MM-DD) and assignee
3. Create the task in Asana or Microsoft Planner, as the user prefers
4. Put any SharePoint or other links in the links field
5. Return the created task URL

If no platform is specified, use {default_backend}.
Resolve relative dates such as "next Friday", "tomorrow" or "in 3 days".
Leave out email signatures and quoted replies from descriptions.
If task creation fails, report the error message to the user.
"""


def tool_definitions() -> list[dict]:
    """Return the tool specs in the JSON-schema function-calling format."""
    schema = TaskInput.model_json_schema()
    return [
        {
            "type": "function",
            "name": name,
            "description": TOOL_DESCRIPTIONS[name],
            "parameters": schema,
        }
        for name in TOOL_BACKENDS
    ]


def assistant_instructions(default_backend: str) -> str:
    return ASSISTANT_INSTRUCTIONS.format(
        default_backend=BACKEND_LABELS.get(default_backend, default_backend)
    )


class ToolDispatcher:
    """Executes agent tool calls against the adapters."""

    def __init__(self, provider: AdapterProvider) -> None:
        self.provider = provider

    async def execute(self, name: str, arguments: dict | str) -> str:
        """Run tool ``name`` and return its result as a JSON string.

        Raises KeyError for an unknown tool name; every other failure is
        reported inside the returned JSON.
        """
        backend = TOOL_BACKENDS[name]
        label = BACKEND_LABELS[backend]
        title = None
        try:
            if isinstance(arguments, str):
                arguments = _decode_arguments(arguments)
            if isinstance(arguments, dict):
                title = arguments.get("title")
            task = TaskInput.validate_payload(arguments)
            created = await self.provider.get(backend).create_task(task)
        except Exception as e:
            logger.error("Tool %s failed: %s", name, e)
            what = f'task "{title}"' if title else "task"
            result = TaskResult(
                success=False,
                backend=backend,
                message=f"Failed to create {what} in {label}",
                error=str(e) or e.__class__.__name__,
                error_kind=failure_kind(e),
            )
        else:
            result = TaskResult(
                success=True,
                backend=backend,
                message=f'Task "{task.title}" created successfully in {label}',
                task_url=created.url,
                warnings=list(created.warnings),
            )
        return json.dumps(result.to_dict())


def _decode_arguments(raw: str) -> dict:
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise TaskValidationError(f"Tool arguments are not valid JSON: {e}") from e

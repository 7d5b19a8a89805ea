"""Tests for the Asana adapter against a mocked HTTP transport."""

from __future__ import annotations

import json

import httpx
import pytest

from work_intake.asana import AsanaClient, build_asana_request
from work_intake.config import AsanaConfig
from work_intake.errors import BackendAPIError, ConfigurationError
from work_intake.models import TaskInput

PERMALINK = "https://app.asana.com/0/111/999"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config(**kwargs) -> AsanaConfig:
    return AsanaConfig(token=kwargs.pop("token", "tok"), project=kwargs.pop("project", "111"), **kwargs)


def _created_response() -> httpx.Response:
    return httpx.Response(201, json={"data": {"gid": "999", "permalink_url": PERMALINK}})


def _client(routes: dict, calls: list, config: AsanaConfig | None = None) -> AsanaClient:
    """Build a client whose requests are answered from ``routes``.

    ``routes`` maps (method, path) to a Response or to an exception to raise.
    Every request is appended to ``calls``.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        answer = routes.get((request.method, request.url.path))
        if answer is None:
            return httpx.Response(404, json={"errors": [{"message": "Not found"}]})
        if isinstance(answer, Exception):
            raise answer
        return answer

    return AsanaClient(config or _config(), transport=httpx.MockTransport(handler))


def _body(request: httpx.Request) -> dict:
    return json.loads(request.content)


# ===================================================================
# Request mapping
# ===================================================================


class TestBuildAsanaRequest:
    def test_minimal(self):
        request = build_asana_request(TaskInput(title="Buy milk"), "111")
        assert request.to_payload() == {"data": {"name": "Buy milk", "projects": ["111"]}}

    def test_full(self):
        task = TaskInput(
            title="Ship",
            description="Details",
            due_date="2025-01-10",
            assignee="123456789",
            links=["https://sharepoint.example/doc"],
        )
        data = build_asana_request(task, "111").to_payload()["data"]
        assert data["notes"] == "Details\n\nLinks:\n- https://sharepoint.example/doc"
        assert data["due_on"] == "2025-01-10"
        assert data["assignee"] == "123456789"

    def test_attachments_are_not_sent(self):
        task = TaskInput(title="Ship", attachments=["file.pdf"])
        data = build_asana_request(task, "111").to_payload()["data"]
        assert "file.pdf" not in json.dumps(data)


# ===================================================================
# Construction
# ===================================================================


class TestConstruction:
    def test_missing_token(self):
        with pytest.raises(ConfigurationError, match="ASANA_TOKEN"):
            AsanaClient(AsanaConfig(project="111"))

    def test_missing_project(self):
        with pytest.raises(ConfigurationError, match="ASANA_PROJECT"):
            AsanaClient(AsanaConfig(token="tok"))


# ===================================================================
# create_task
# ===================================================================


class TestCreateTask:
    @pytest.mark.asyncio
    async def test_returns_permalink(self):
        calls: list = []
        client = _client({("POST", "/api/1.0/tasks"): _created_response()}, calls)

        created = await client.create_task(TaskInput(title="Buy milk", due_date="2025-01-10"))

        assert created.url == PERMALINK
        assert created.task_id == "999"
        assert created.enrichment_complete
        assert len(calls) == 1
        assert calls[0].headers["Authorization"] == "Bearer tok"
        assert _body(calls[0]) == {
            "data": {"name": "Buy milk", "projects": ["111"], "due_on": "2025-01-10"}
        }
        await client.aclose()

    @pytest.mark.asyncio
    async def test_moves_into_configured_section(self):
        calls: list = []
        client = _client(
            {
                ("POST", "/api/1.0/tasks"): _created_response(),
                ("POST", "/api/1.0/sections/222/addTask"): httpx.Response(200, json={"data": {}}),
            },
            calls,
            config=_config(section="222"),
        )

        created = await client.create_task(TaskInput(title="Buy milk"))

        assert created.enrichment_complete
        assert [c.url.path for c in calls] == ["/api/1.0/tasks", "/api/1.0/sections/222/addTask"]
        assert _body(calls[1]) == {"data": {"task": "999"}}

    @pytest.mark.asyncio
    async def test_task_level_project_and_section_override_config(self):
        calls: list = []
        client = _client(
            {
                ("POST", "/api/1.0/tasks"): _created_response(),
                ("POST", "/api/1.0/sections/555/addTask"): httpx.Response(200, json={"data": {}}),
            },
            calls,
        )

        await client.create_task(TaskInput(title="X", project="444", section="555"))

        assert _body(calls[0])["data"]["projects"] == ["444"]
        assert calls[1].url.path == "/api/1.0/sections/555/addTask"

    @pytest.mark.asyncio
    async def test_section_move_failure_is_a_warning(self):
        calls: list = []
        client = _client(
            {
                ("POST", "/api/1.0/tasks"): _created_response(),
                ("POST", "/api/1.0/sections/222/addTask"): httpx.Response(
                    403, json={"errors": [{"message": "Forbidden"}]}
                ),
            },
            calls,
            config=_config(section="222"),
        )

        created = await client.create_task(TaskInput(title="Buy milk"))

        assert created.url == PERMALINK
        assert not created.enrichment_complete
        assert "222" in created.warnings[0]

    @pytest.mark.asyncio
    async def test_section_move_network_error_is_a_warning(self):
        calls: list = []
        client = _client(
            {
                ("POST", "/api/1.0/tasks"): _created_response(),
                ("POST", "/api/1.0/sections/222/addTask"): httpx.ConnectError("reset"),
            },
            calls,
            config=_config(section="222"),
        )

        created = await client.create_task(TaskInput(title="Buy milk"))

        assert created.url == PERMALINK
        assert len(created.warnings) == 1

    @pytest.mark.asyncio
    async def test_api_error_carries_status_and_body(self):
        calls: list = []
        client = _client(
            {
                ("POST", "/api/1.0/tasks"): httpx.Response(
                    400, json={"errors": [{"message": "projects: Missing input"}]}
                ),
            },
            calls,
            config=_config(section="222"),
        )

        with pytest.raises(BackendAPIError) as exc_info:
            await client.create_task(TaskInput(title="Buy milk"))

        assert exc_info.value.status_code == 400
        assert "projects: Missing input" in str(exc_info.value)
        assert str(exc_info.value).startswith("Asana API error: 400")
        # No section move after a failed creation
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_missing_permalink_falls_back_to_task_link(self, caplog):
        calls: list = []
        client = _client(
            {("POST", "/api/1.0/tasks"): httpx.Response(201, json={"data": {"gid": "999"}})},
            calls,
        )

        with caplog.at_level("WARNING", logger="work_intake.asana"):
            created = await client.create_task(TaskInput(title="Buy milk"))

        assert created.url == PERMALINK
        assert created.task_id == "999"
        assert "no permalink" in caplog.text

    @pytest.mark.asyncio
    async def test_response_without_task_id_is_an_api_error(self):
        calls: list = []
        client = _client(
            {("POST", "/api/1.0/tasks"): httpx.Response(201, json={"data": {}})},
            calls,
            config=_config(section="222"),
        )

        with pytest.raises(BackendAPIError, match="no task id"):
            await client.create_task(TaskInput(title="Buy milk"))

        assert len(calls) == 1


# ===================================================================
# Read helpers
# ===================================================================


class TestReadHelpers:
    @pytest.mark.asyncio
    async def test_get_project_sections(self):
        calls: list = []
        client = _client(
            {
                ("GET", "/api/1.0/projects/111/sections"): httpx.Response(
                    200, json={"data": [{"gid": "222", "name": "Inbox"}]}
                ),
            },
            calls,
        )
        assert await client.get_project_sections() == [{"gid": "222", "name": "Inbox"}]

    @pytest.mark.asyncio
    async def test_get_project_error(self):
        client = _client({}, [])
        with pytest.raises(BackendAPIError) as exc_info:
            await client.get_project("nope")
        assert exc_info.value.status_code == 404

"""Tests for the CLI entry point."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

from work_intake.cli import main
from work_intake.models import TaskResult


def test_health(monkeypatch, capsys):
    monkeypatch.setenv("GRAPH_TOKEN", "tok")
    monkeypatch.setenv("PLANNER_PLAN", "P1")
    monkeypatch.delenv("ASANA_TOKEN", raising=False)
    monkeypatch.delenv("WORK_INTAKE_BACKEND", raising=False)

    assert main(["health"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["plannerConfigured"] is True
    assert out["defaultBackend"] == "planner"


def test_create_success_writes_json(tmp_path: Path):
    result = TaskResult(success=True, backend="asana", message="ok", task_url="https://a/1")
    out_file = tmp_path / "result.json"

    with patch(
        "work_intake.cli.TaskOrchestrator.handle", new=AsyncMock(return_value=result)
    ) as handle:
        code = main(["create", "Buy milk", "--platform", "asana", "--output-json", str(out_file)])

    assert code == 0
    handle.assert_awaited_once_with("Buy milk", platform="asana", assignee=None)
    assert json.loads(out_file.read_text())["taskUrl"] == "https://a/1"


def test_create_failure_exit_code():
    result = TaskResult(success=False, backend="asana", error="boom", error_kind="api")
    with patch("work_intake.cli.TaskOrchestrator.handle", new=AsyncMock(return_value=result)):
        assert main(["create", "Buy milk"]) == 1


def test_create_blank_text():
    assert main(["create", "   "]) == 1


def test_bad_environment(monkeypatch):
    monkeypatch.setenv("WORK_INTAKE_BACKEND", "jira")
    assert main(["health"]) == 1

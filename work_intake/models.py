"""Data models shared by the parser, the backend adapters and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ValidationError, field_validator

from .errors import TaskValidationError

Backend = Literal["asana", "planner"]
BACKENDS: tuple[str, ...] = ("asana", "planner")
BACKEND_LABELS = {"asana": "Asana", "planner": "Planner"}


class TaskInput(BaseModel):
    """A normalized task record, as handed to exactly one backend adapter."""

    title: str
    description: Optional[str] = None
    due_date: Optional[str] = None
    assignee: Optional[str] = None
    project: Optional[str] = None
    section: Optional[str] = None
    links: Optional[list[str]] = None
    attachments: Optional[list[str]] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("Title is required")
        return v2

    @field_validator("due_date")
    @classmethod
    def due_date_is_calendar_date(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        # Raises ValueError for anything that is not YYYY-MM-DD
        return date.fromisoformat(v).isoformat()

    @classmethod
    def validate_payload(cls, payload: dict) -> "TaskInput":
        """Validate a raw dict, raising TaskValidationError on bad input."""
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise TaskValidationError(_summarize_validation_error(e)) from e


def _summarize_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        # pydantic prefixes messages raised from validators with "Value error, "
        msg = msg.removeprefix("Value error, ")
        if loc == "title" and err.get("type") == "missing":
            msg = "Title is required"
        parts.append(f"{loc}: {msg}" if loc and loc != "title" else msg)
    return "; ".join(parts) or "Invalid task input"


def format_links_block(description: str | None, links: list[str] | None) -> str:
    """Append links to a description as a bulleted 'Links:' block."""
    text = description or ""
    if links:
        links_text = "\n".join(f"- {link}" for link in links)
        text += ("\n\n" if text else "") + "Links:\n" + links_text
    return text


@dataclass
class CreatedTask:
    """What an adapter reports after the primary creation call succeeded."""

    url: str
    task_id: str = ""
    warnings: list[str] = field(default_factory=list)

    @property
    def enrichment_complete(self) -> bool:
        return not self.warnings


@dataclass
class TaskResult:
    """Outcome of a single text-to-task request."""

    success: bool
    backend: str
    message: str = ""
    task_url: str | None = None
    error: str | None = None
    error_kind: str | None = None
    warnings: list[str] = field(default_factory=list)
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def enrichment_complete(self) -> bool:
        return self.success and not self.warnings

    def to_dict(self) -> dict:
        """Return the JSON shape used at the HTTP and CLI boundaries."""
        d: dict = {
            "success": self.success,
            "backend": self.backend,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.task_url:
            d["taskUrl"] = self.task_url
        if self.error:
            d["error"] = self.error
            d["errorKind"] = self.error_kind
        if self.warnings:
            d["warnings"] = list(self.warnings)
        return d

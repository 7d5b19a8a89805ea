"""Runtime configuration, read once from the environment at startup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping

from .directory import StaticAssigneeDirectory
from .errors import ConfigurationError
from .models import BACKENDS

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_PORT = 3000


@dataclass(frozen=True)
class AsanaConfig:
    """Credentials and target identifiers for Asana."""

    token: str = ""
    project: str = ""
    section: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.token and self.project)

    def validate(self) -> None:
        missing = [
            name
            for name, value in (("ASANA_TOKEN", self.token), ("ASANA_PROJECT", self.project))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                "Missing required Asana configuration: "
                f"{' and '.join(missing)} must be set"
            )


@dataclass(frozen=True)
class PlannerConfig:
    """Credentials and target identifiers for Microsoft Planner."""

    token: str = ""
    plan_id: str = ""
    bucket_id: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.token and self.plan_id)

    def validate(self) -> None:
        missing = [
            name
            for name, value in (("GRAPH_TOKEN", self.token), ("PLANNER_PLAN", self.plan_id))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                "Missing required Planner configuration: "
                f"{' and '.join(missing)} must be set"
            )


@dataclass(frozen=True)
class Settings:
    """Everything the pipeline needs, built once and passed around explicitly."""

    asana: AsanaConfig = field(default_factory=AsanaConfig)
    planner: PlannerConfig = field(default_factory=PlannerConfig)
    default_backend: str | None = None
    assignees: StaticAssigneeDirectory = field(default_factory=StaticAssigneeDirectory)
    timeout: float = DEFAULT_TIMEOUT_S
    port: int = DEFAULT_PORT

    @property
    def asana_configured(self) -> bool:
        return self.asana.is_configured

    @property
    def planner_configured(self) -> bool:
        return self.planner.is_configured

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Read settings from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ

        default_backend = _clean(env.get("WORK_INTAKE_BACKEND"))
        if default_backend:
            default_backend = default_backend.lower()
            if default_backend not in BACKENDS:
                raise ConfigurationError(
                    f"WORK_INTAKE_BACKEND must be one of {', '.join(BACKENDS)}, "
                    f"got {default_backend!r}"
                )

        return cls(
            asana=AsanaConfig(
                token=_clean(env.get("ASANA_TOKEN")) or "",
                project=_clean(env.get("ASANA_PROJECT")) or "",
                section=_clean(env.get("ASANA_SECTION")),
            ),
            planner=PlannerConfig(
                token=_clean(env.get("GRAPH_TOKEN")) or "",
                plan_id=_clean(env.get("PLANNER_PLAN")) or "",
                bucket_id=_clean(env.get("PLANNER_BUCKET")),
            ),
            default_backend=default_backend,
            assignees=StaticAssigneeDirectory.from_json(env.get("WORK_INTAKE_ASSIGNEES")),
            timeout=_parse_number(env, "WORK_INTAKE_TIMEOUT", DEFAULT_TIMEOUT_S, float),
            port=_parse_number(env, "PORT", DEFAULT_PORT, int),
        )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_number(env: Mapping[str, str], key: str, default, cast):
    raw = _clean(env.get(key))
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from e

"""Assignee lookup: maps a person's display name to a backend user id."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Mapping

logger = logging.getLogger(__name__)


class AssigneeDirectory(ABC):
    """Resolves display names to platform-specific user identifiers."""

    @abstractmethod
    def resolve(self, name: str, platform: str) -> str | None:
        """Return the user id for ``name`` on ``platform``, or None if unknown."""
        raise NotImplementedError


class StaticAssigneeDirectory(AssigneeDirectory):
    """In-memory directory backed by a fixed mapping.

    Stand-in for a real directory service. Entries look like
    ``{"jane smith": {"asana": "987654321", "planner": "jane.smith@company.com"}}``.
    """

    def __init__(self, entries: Mapping[str, Mapping[str, str]] | None = None) -> None:
        self._entries: dict[str, dict[str, str]] = {
            _normalize_name(name): dict(ids) for name, ids in (entries or {}).items()
        }

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self, name: str, platform: str) -> str | None:
        ids = self._entries.get(_normalize_name(name))
        if not ids:
            return None
        return ids.get(platform) or None

    @classmethod
    def from_json(cls, raw: str | None) -> "StaticAssigneeDirectory":
        """Build a directory from a JSON object string; bad JSON yields an empty one."""
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring malformed assignee map: %s", e)
            return cls()
        if not isinstance(data, dict):
            logger.warning("Ignoring assignee map: expected a JSON object")
            return cls()
        entries = {
            name: {k: str(v) for k, v in ids.items() if v}
            for name, ids in data.items()
            if isinstance(ids, dict)
        }
        return cls(entries)


def _normalize_name(name: str) -> str:
    return name.strip().lower()

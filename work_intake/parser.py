"""Extract task fields (title, due date, description) from free text."""

from __future__ import annotations

import re
from datetime import date, timedelta

from .directory import AssigneeDirectory, StaticAssigneeDirectory

# Regex patterns
WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}
RE_NEXT_WEEKDAY = {
    day: re.compile(rf"next\s+{day}", re.IGNORECASE) for day in WEEKDAYS
}
RE_TOMORROW = re.compile(r"tomorrow", re.IGNORECASE)
RE_IN_DAYS = re.compile(r"in\s+(\d+)\s+days?", re.IGNORECASE)
RE_ISO_DATE = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")

RE_SIGNATURE = re.compile(r"^--[ \t]*$.*", re.MULTILINE | re.DOTALL)
RE_REPLY_HEADER = re.compile(r"^On.*wrote:$", re.MULTILINE)
RE_QUOTED_LINE = re.compile(r"^>.*$", re.MULTILINE)
RE_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")

# Checked in order; the first match wins
TITLE_PREFIXES = (
    "follow up with",
    "remind me to",
    "schedule",
    "create task for",
    "add task:",
    "task:",
)

_EMPTY_DIRECTORY = StaticAssigneeDirectory()


def extract_due_date(text: str, today: date | None = None) -> str | None:
    """Turn phrases like "next Friday", "tomorrow" or "in 3 days" into YYYY-MM-DD.

    Pattern classes are tried in a fixed order: "next <weekday>", "tomorrow",
    "in N days", then a literal ISO date. "next <weekday>" is always in the
    future, so naming today's weekday lands seven days out.
    """
    today = today or date.today()

    for day, weekday in WEEKDAYS.items():
        if RE_NEXT_WEEKDAY[day].search(text):
            offset = (weekday - today.weekday() + 7) % 7 or 7
            return (today + timedelta(days=offset)).isoformat()

    if RE_TOMORROW.search(text):
        return (today + timedelta(days=1)).isoformat()

    m = RE_IN_DAYS.search(text)
    if m:
        try:
            return (today + timedelta(days=int(m.group(1)))).isoformat()
        except (OverflowError, ValueError):
            # Beyond the calendar; try the remaining patterns
            pass

    m = RE_ISO_DATE.search(text)
    if m:
        return m.group(1)

    return None


def extract_task_title(text: str) -> str:
    """Strip a leading intent phrase ("remind me to", ...) and capitalize."""
    title = text.strip()
    lowered = title.lower()
    for prefix in TITLE_PREFIXES:
        if lowered.startswith(prefix):
            title = title[len(prefix):].strip()
            break
    return title[:1].upper() + title[1:]


def clean_email_body(text: str) -> str:
    """Remove signatures, reply headers and quoted lines from an email body."""
    cleaned = text.replace("\r\n", "\n")
    cleaned = RE_SIGNATURE.sub("", cleaned)
    cleaned = RE_REPLY_HEADER.sub("", cleaned, count=1)
    cleaned = RE_QUOTED_LINE.sub("", cleaned)
    cleaned = RE_EXTRA_BLANK_LINES.sub("\n\n", cleaned)
    return cleaned.strip()


def map_assignee_to_id(
    name: str,
    platform: str,
    directory: AssigneeDirectory | None = None,
) -> str | None:
    """Look up a user id for ``name``; None means "leave unassigned"."""
    if not name or not name.strip():
        return None
    if directory is None:
        directory = _EMPTY_DIRECTORY
    return directory.resolve(name, platform)


def parse_task_input(text: str, today: date | None = None) -> dict:
    """Parse free text into a partial task payload.

    The description is the cleaned original text, not the extracted title.
    """
    payload: dict = {
        "title": extract_task_title(text),
        "description": clean_email_body(text),
    }
    due_date = extract_due_date(text, today=today)
    if due_date and _is_calendar_date(due_date):
        payload["due_date"] = due_date
    return payload


def _is_calendar_date(value: str) -> bool:
    # Literal matches such as part numbers ("2024-99-01") are not dates
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True

# src/ytcli/formatting.py
"""
Text and JSON renderers for YouTrack API responses.

Everything here is pure: functions take the decoded JSON returned by
`YouTrackClient` and return a string ready to echo.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

PLACEHOLDER = "—"


def to_json(data: Any, pretty: bool = False) -> str:
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False)
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


# -----------------------------
# Values
# -----------------------------
def _number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _name_of(value: Any) -> str:
    if isinstance(value, dict):
        name = value.get("name")
        if name is not None and name != "":
            return str(name)
    return ""


def format_field_value(value: Any) -> str:
    """Render a custom field value (None, str, number, object or list of objects)."""
    if value is None or isinstance(value, bool):
        return PLACEHOLDER
    if isinstance(value, str):
        return value or PLACEHOLDER
    if isinstance(value, (int, float)):
        return _number(value)
    if isinstance(value, list):
        return ", ".join(n for n in (_name_of(v) for v in value) if n) or PLACEHOLDER
    if isinstance(value, dict):
        return _name_of(value) or PLACEHOLDER
    return PLACEHOLDER


def get_custom_field(issue: Dict[str, Any], field_name: str) -> str:
    fields = issue.get("customFields")
    if not isinstance(fields, list):
        return PLACEHOLDER
    for cf in fields:
        if isinstance(cf, dict) and cf.get("name") == field_name:
            return format_field_value(cf.get("value"))
    return PLACEHOLDER


def format_timestamp(ts: Any) -> str:
    """Epoch milliseconds -> 'YYYY-MM-DD HH:MM UTC'. Zero counts as unset."""
    if not ts or isinstance(ts, bool) or not isinstance(ts, (int, float)):
        return PLACEHOLDER
    try:
        dt = datetime.fromtimestamp(ts / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return PLACEHOLDER
    return dt.strftime("%Y-%m-%d %H:%M") + " UTC"


def _user(user: Any, missing: str = PLACEHOLDER) -> str:
    if not isinstance(user, dict):
        return missing
    return f"{user.get('name')} ({user.get('login')})"


# -----------------------------
# Tables
# -----------------------------
def _table(headers: Sequence[str], minimums: Sequence[int], rows: List[Sequence[str]]) -> List[str]:
    # The last column is left unpadded.
    widths = [
        max([minimum] + [len(r[i]) for r in rows])
        for i, minimum in enumerate(minimums)
    ]

    def line(cells: Sequence[str]) -> str:
        padded = [c.ljust(w) for c, w in zip(cells, widths)]
        return "| " + " | ".join(padded + [cells[-1]]) + " |"

    sep = "|" + "|".join("-" * (w + 2) for w in widths) + "|" + "-" * (len(headers[-1]) + 2) + "|"
    return [line(headers), sep] + [line(r) for r in rows]


# -----------------------------
# Issues
# -----------------------------
def render_issue(issue: Dict[str, Any]) -> str:
    lines = [
        f"## {issue.get('idReadable') or issue.get('id') or '?'}: {issue.get('summary') or '(no summary)'}",
        "",
    ]

    project = issue.get("project")
    if isinstance(project, dict):
        lines.append(f"Project:   {project.get('shortName')} — {project.get('name')}")

    lines += [
        f"Reporter:  {_user(issue.get('reporter'))}",
        f"Assignee:  {_user(issue.get('assignee'))}",
        f"Created:   {format_timestamp(issue.get('created'))}",
        f"Updated:   {format_timestamp(issue.get('updated'))}",
        f"Resolved:  {format_timestamp(issue.get('resolved'))}",
    ]

    fields = issue.get("customFields")
    if isinstance(fields, list):
        meaningful = [
            (str(cf.get("name", "")), format_field_value(cf.get("value")))
            for cf in fields
            if isinstance(cf, dict)
        ]
        meaningful = [(name, value) for name, value in meaningful if value != PLACEHOLDER]
        if meaningful:
            lines += ["", "### Custom Fields"]
            lines += [f"{name.ljust(18)} {value}" for name, value in meaningful]

    description = issue.get("description")
    if isinstance(description, str) and description.strip():
        lines += ["", "### Description", description]

    return "\n".join(lines)


def render_issue_list(issues: List[Dict[str, Any]]) -> str:
    if not issues:
        return "No issues found."

    rows = []
    for issue in issues:
        assignee = issue.get("assignee")
        rows.append((
            str(issue.get("idReadable") or issue.get("id") or "?"),
            get_custom_field(issue, "State"),
            get_custom_field(issue, "Priority"),
            str(assignee.get("name")) if isinstance(assignee, dict) else PLACEHOLDER,
            str(issue.get("summary") or ""),
        ))

    lines = _table(("ID", "State", "Priority", "Assignee", "Summary"), (2, 5, 8, 8), rows)
    lines += ["", f"{len(rows)} issue(s) returned."]
    return "\n".join(lines)


# -----------------------------
# Comments
# -----------------------------
def render_comment(comment: Dict[str, Any]) -> str:
    lines = [
        f"Comment ID: {comment.get('id')}",
        f"Author:     {_user(comment.get('author'), missing='Unknown')}",
        f"Created:    {format_timestamp(comment.get('created'))}",
    ]
    updated = comment.get("updated")
    if updated and updated != comment.get("created"):
        lines.append(f"Updated:    {format_timestamp(updated)}")
    lines += ["", str(comment.get("text") or "")]
    return "\n".join(lines)


def render_comment_list(comments: List[Dict[str, Any]]) -> str:
    if not comments:
        return "No comments."
    blocks = ["---\n" + render_comment(c) for c in comments]
    return "\n\n".join(blocks)


# -----------------------------
# Projects / users
# -----------------------------
def render_project_list(projects: List[Dict[str, Any]]) -> str:
    if not projects:
        return "No projects found."

    rows = [(str(p.get("shortName", "")), str(p.get("name", "")), str(p.get("id", ""))) for p in projects]
    lines = _table(("Short Name", "Name", "ID"), (10, 4), rows)
    lines += ["", f"{len(rows)} project(s)."]
    return "\n".join(lines)


def render_user(user: Dict[str, Any]) -> str:
    lines = [
        "## Current User",
        "",
        f"Login:  {user.get('login')}",
        f"Name:   {user.get('name')}",
    ]
    if user.get("email"):
        lines.append(f"Email:  {user.get('email')}")
    lines.append(f"ID:     {user.get('id')}")
    return "\n".join(lines)

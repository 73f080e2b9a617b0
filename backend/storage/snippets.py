"""Snippet rows."""

from typing import Any

from copyworx.errors import NotFoundError
from copyworx.storage.core import new_id, now_iso, sanitize_text, validate_name
from copyworx.storage.snippets import MAX_SNIPPET_NAME_LENGTH, validate_snippet_content

from .core import find_row, read_table, replace_row, rows_for_project, write_table
from .projects import require_project


def _tags(tags: list[str] | None) -> list[str]:
    return [t for t in (sanitize_text(tag) for tag in tags or []) if t]


def list_snippets(project_id: str) -> list[dict[str, Any]]:
    """Snippets of a project, most recently modified first."""
    return sorted(rows_for_project("snippets", project_id), key=lambda s: s["modified_at"], reverse=True)


def get_snippet(snippet_id: str) -> dict[str, Any] | None:
    return find_row("snippets", snippet_id)


def _require(snippet_id: str) -> dict[str, Any]:
    snippet = get_snippet(snippet_id)
    if snippet is None:
        raise NotFoundError(f"Snippet not found: {snippet_id}")
    return snippet


def create_snippet(project_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    require_project(project_id)
    name = validate_name(fields.get("name"), "Snippet name", MAX_SNIPPET_NAME_LENGTH)
    validate_snippet_content(fields.get("content"))
    now = now_iso()
    snippet = {
        "id": new_id(),
        "project_id": project_id,
        "name": name,
        "content": fields["content"],
        "description": sanitize_text(fields["description"]) if fields.get("description") else None,
        "tags": _tags(fields.get("tags")),
        "usage_count": 0,
        "created_at": now,
        "modified_at": now,
    }
    write_table("snippets", [*read_table("snippets"), snippet])
    return snippet


def update_snippet(snippet_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    snippet = _require(snippet_id)
    if fields.get("name") is not None:
        snippet["name"] = validate_name(fields["name"], "Snippet name", MAX_SNIPPET_NAME_LENGTH)
    if fields.get("content") is not None:
        validate_snippet_content(fields["content"])
        snippet["content"] = fields["content"]
    if "description" in fields:
        snippet["description"] = sanitize_text(fields["description"]) if fields["description"] else None
    if fields.get("tags") is not None:
        snippet["tags"] = _tags(fields["tags"])
    snippet["modified_at"] = now_iso()
    replace_row("snippets", snippet)
    return snippet


def increment_usage(snippet_id: str) -> dict[str, Any]:
    snippet = _require(snippet_id)
    snippet["usage_count"] = snippet.get("usage_count", 0) + 1
    replace_row("snippets", snippet)
    return snippet


def delete_snippet(snippet_id: str) -> None:
    _require(snippet_id)
    write_table("snippets", [s for s in read_table("snippets") if s["id"] != snippet_id])

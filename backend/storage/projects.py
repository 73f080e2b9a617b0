"""Project rows, brand voices and user settings."""

import json
from typing import Any

from copyworx.errors import NotFoundError
from copyworx.models import BrandVoice
from copyworx.storage.core import new_id, now_iso, validate_name

from .core import (
    TABLES,
    data_dir,
    delete_where,
    find_row,
    read_table,
    replace_row,
    rows_for_project,
    write_table,
)


def list_projects() -> list[dict[str, Any]]:
    """Project rows, newest first."""
    return sorted(read_table("projects"), key=lambda p: p["created_at"], reverse=True)


def get_project(project_id: str) -> dict[str, Any] | None:
    return find_row("projects", project_id)


def require_project(project_id: str) -> dict[str, Any]:
    project = get_project(project_id)
    if project is None:
        raise NotFoundError(f"Project not found: {project_id}")
    return project


def create_project(name: str) -> dict[str, Any]:
    now = now_iso()
    project = {
        "id": new_id(),
        "name": validate_name(name, "Project name"),
        "created_at": now,
        "updated_at": now,
    }
    write_table("projects", [*read_table("projects"), project])
    return project


def update_project(project_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    project = require_project(project_id)
    if fields.get("name") is not None:
        project["name"] = validate_name(fields["name"], "Project name")
    project["updated_at"] = now_iso()
    replace_row("projects", project)
    return project


def touch_project(project_id: str) -> None:
    project = get_project(project_id)
    if project is not None:
        project["updated_at"] = now_iso()
        replace_row("projects", project)


def delete_project(project_id: str) -> None:
    """Delete a project together with every row that belongs to it."""
    require_project(project_id)
    for table in TABLES:
        if table != "projects":
            delete_where(table, "project_id", project_id)
    delete_where("projects", "id", project_id)
    settings = get_user_settings()
    if settings["active_project_id"] == project_id:
        update_user_settings({"active_project_id": None})


# ── Brand voices (one row per project) ─────────────────────


def get_brand_voice(project_id: str) -> dict[str, Any] | None:
    rows = rows_for_project("brand_voices", project_id)
    return rows[0] if rows else None


def save_brand_voice(project_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    """Insert or replace the project's brand voice."""
    require_project(project_id)
    voice = BrandVoice.model_validate(
        {**fields, "brand_name": validate_name(fields.get("brand_name"), "Brand name")}
    )
    existing = get_brand_voice(project_id)
    now = now_iso()
    row = {
        **voice.to_row(),
        "id": existing["id"] if existing else new_id(),
        "project_id": project_id,
        "saved_at": now,
        "created_at": existing["created_at"] if existing else now,
        "updated_at": now,
    }
    if existing:
        replace_row("brand_voices", row)
    else:
        write_table("brand_voices", [*read_table("brand_voices"), row])
    return row


def delete_brand_voice(project_id: str) -> None:
    delete_where("brand_voices", "project_id", project_id)


# ── User settings ─────────────────────────────────────────


def _settings_path():
    return data_dir() / "user_settings.json"


def get_user_settings() -> dict[str, Any]:
    path = _settings_path()
    if not path.is_file():
        return {"active_project_id": None, "settings": {}}
    stored = json.loads(path.read_text())
    return {
        "active_project_id": stored.get("active_project_id"),
        "settings": stored.get("settings") or {},
    }


def update_user_settings(fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into user settings and persist. Returns the full settings."""
    if fields.get("active_project_id") is not None:
        require_project(fields["active_project_id"])
    settings = get_user_settings()
    if "active_project_id" in fields:
        settings["active_project_id"] = fields["active_project_id"]
    if fields.get("settings") is not None:
        settings["settings"].update(fields["settings"])
    settings["updated_at"] = now_iso()
    _settings_path().write_text(json.dumps(settings, indent=2))
    return settings

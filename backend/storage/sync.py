"""Whole-account snapshot and one-shot import of local project trees."""

import logging
from datetime import datetime, timezone
from typing import Any

from copyworx.errors import StorageError
from copyworx.models import BrandVoice, MigrationCounts, MigrationReport, Project
from copyworx.storage.core import new_id, now_iso

from .core import read_table, rows_for_project, write_table
from .projects import get_brand_voice, get_user_settings, list_projects, update_user_settings

logger = logging.getLogger(__name__)


def build_snapshot() -> dict[str, Any]:
    """Every project with its nested collections, camelCase like the local blob."""
    projects = []
    for row in list_projects():
        voice = get_brand_voice(row["id"])
        project = Project.model_validate(
            {
                **row,
                "brand_voice": BrandVoice.model_validate(voice) if voice else None,
                "personas": rows_for_project("personas", row["id"]),
                "folders": rows_for_project("folders", row["id"]),
                "documents": rows_for_project("documents", row["id"]),
                "snippets": rows_for_project("snippets", row["id"]),
            }
        )
        projects.append(project.to_local())
    return {
        "projects": projects,
        "activeProjectId": get_user_settings()["active_project_id"],
        "lastSyncedAt": datetime.now(timezone.utc).isoformat(),
    }


def _append(table: str, rows: list[dict[str, Any]]) -> None:
    if rows:
        write_table(table, [*read_table(table), *rows])


def _import_project(project: Project, counts: MigrationCounts, id_mapping: dict[str, str]) -> None:
    now = now_iso()
    project_id = new_id()
    _append("projects", [{
        "id": project_id,
        "name": project.name,
        "created_at": project.created_at or now,
        "updated_at": project.updated_at or now,
    }])
    id_mapping[project.id] = project_id
    counts.projects += 1

    if project.brand_voice and project.brand_voice.brand_name:
        _append("brand_voices", [{
            **project.brand_voice.to_row(),
            "id": new_id(),
            "project_id": project_id,
            "created_at": now,
            "updated_at": now,
        }])
        counts.brand_voices += 1

    folder_ids = {f.id: new_id() for f in project.folders}
    _append("folders", [
        {
            **f.to_row(),
            "id": folder_ids[f.id],
            "project_id": project_id,
            "parent_folder_id": folder_ids.get(f.parent_folder_id) if f.parent_folder_id else None,
            "created_at": f.created_at or now,
            "updated_at": f.updated_at or now,
        }
        for f in project.folders
    ])
    counts.folders += len(project.folders)

    _append("personas", [
        {**p.to_row(), "id": new_id(), "project_id": project_id, "created_at": p.created_at or now,
         "updated_at": p.updated_at or now}
        for p in project.personas
    ])
    counts.personas += len(project.personas)

    doc_ids = {d.id: new_id() for d in project.documents}
    _append("documents", [
        {
            **d.to_row(),
            "id": doc_ids[d.id],
            "project_id": project_id,
            "folder_id": folder_ids.get(d.folder_id) if d.folder_id else None,
            "parent_version_id": doc_ids.get(d.parent_version_id) if d.parent_version_id else None,
            "created_at": d.created_at or now,
            "modified_at": d.modified_at or now,
        }
        for d in project.documents
    ])
    counts.documents += len(project.documents)

    _append("snippets", [
        {**s.to_row(), "id": new_id(), "project_id": project_id, "created_at": s.created_at or now,
         "modified_at": s.modified_at or now}
        for s in project.snippets
    ])
    counts.snippets += len(project.snippets)


def migrate_projects(projects: list[Project], active_project_id: str | None = None) -> MigrationReport:
    """Insert every project tree under fresh ids. Old ids map to new in ``id_mapping``."""
    counts = MigrationCounts()
    errors: list[str] = []
    id_mapping: dict[str, str] = {}

    for project in projects:
        try:
            _import_project(project, counts, id_mapping)
        except (StorageError, OSError) as e:
            logger.warning("Migration of project %r failed: %s", project.name, e)
            errors.append(f"Failed to create project \"{project.name}\": {e}")

    if active_project_id and active_project_id in id_mapping:
        update_user_settings({"active_project_id": id_mapping[active_project_id]})

    logger.info("Migrated %d project(s), %d error(s)", counts.projects, len(errors))
    return MigrationReport(success=not errors, migrated=counts, errors=errors, id_mapping=id_mapping)

"""Health check, user settings, sync and migration endpoints."""

import logging

from fastapi import APIRouter
from pydantic import ValidationError

from backend import storage
from copyworx.models import Project

from .models import MigrateBody, UpdateUserSettings

logger = logging.getLogger(__name__)

router = APIRouter()
db_router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@db_router.get("/user-settings")
async def get_user_settings():
    return storage.get_user_settings()


@db_router.post("/user-settings")
async def update_user_settings(body: UpdateUserSettings):
    """Partial update; omitted fields keep their stored values."""
    return storage.update_user_settings(body.model_dump(exclude_unset=True))


@db_router.get("/sync")
async def sync():
    """All projects with nested personas, folders, documents, snippets and brand voice."""
    return storage.build_snapshot()


@db_router.post("/migrate")
async def migrate(body: MigrateBody):
    """Import local project trees under fresh ids."""
    projects: list[Project] = []
    rejected: list[str] = []
    for raw in body.projects:
        try:
            projects.append(Project.model_validate(raw))
        except ValidationError as e:
            name = raw.get("name", "?") if isinstance(raw, dict) else "?"
            logger.warning("Rejected project %r in migration: %s", name, e)
            rejected.append(f"Invalid project \"{name}\": {e.error_count()} validation error(s)")

    report = storage.migrate_projects(projects, body.active_project_id)
    if rejected:
        report = report.model_copy(update={"success": False, "errors": [*rejected, *report.errors]})
    return report.model_dump(mode="json", by_alias=True)

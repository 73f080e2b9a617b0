"""Project store: the full project list as one JSON blob in a key-value engine.

Layout inside the engine:

    copyworx_projects            JSON array of Project aggregates (camelCase)
    copyworx_active_project_id   id of the project selected for editing

Every mutation reads the whole list, changes the in-memory copy and writes
the whole list back. There is no locking; the last writer wins.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from copyworx.errors import NotFoundError, QuotaExceededError
from copyworx.kv import KeyValueStore, StorageFullError
from copyworx.models import BrandVoice, Project

from .core import merge_record, new_id, now_iso, validate_name

logger = logging.getLogger(__name__)

PROJECTS_KEY = "copyworx_projects"
ACTIVE_PROJECT_KEY = "copyworx_active_project_id"
DEFAULT_PROJECT_NAME = "My First Project"

QUOTA_WARNING_PERCENT = 90.0


class ProjectStore:
    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    # ------------------------------------------------------------------
    # Raw engine access
    # ------------------------------------------------------------------

    def storage_usage_percent(self) -> float:
        if self._kv.capacity <= 0:
            return 100.0
        return self._kv.usage_bytes() / self._kv.capacity * 100

    def _projected_usage_percent(self, key: str, value: str) -> float:
        """Usage as it will be once ``key`` holds ``value``."""
        if self._kv.capacity <= 0:
            return 100.0
        previous = self._kv.get_item(key)
        replaced = len(key) + len(previous) if previous is not None else 0
        projected = self._kv.usage_bytes() - replaced + len(key) + len(value)
        return projected / self._kv.capacity * 100

    def _set_item(self, key: str, value: str) -> None:
        usage = self._projected_usage_percent(key, value)
        if usage > QUOTA_WARNING_PERCENT:
            logger.warning("Storage is %.1f%% full. Consider clearing old data.", usage)
        try:
            self._kv.set_item(key, value)
        except StorageFullError as e:
            raise QuotaExceededError(
                "Storage quota exceeded. Please clear some data to continue. "
                "You can delete old projects or brand voice data to free up space."
            ) from e

    # ------------------------------------------------------------------
    # Project list
    # ------------------------------------------------------------------

    def get_all_projects(self) -> list[Project]:
        """Load every project. Never raises; unusable data reads as empty."""
        raw = self._kv.get_item(PROJECTS_KEY)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("Stored projects are not valid JSON: %s", e)
            return []
        if not isinstance(data, list):
            logger.warning("Stored projects are not a list (got %s)", type(data).__name__)
            return []

        projects = []
        for entry in data:
            try:
                projects.append(Project.model_validate(entry))
            except ValidationError as e:
                logger.warning("Skipping unreadable project record: %s", e)
        logger.debug("Loaded %d project(s) from storage", len(projects))
        return projects

    def save_projects(self, projects: list[Project]) -> None:
        self._set_item(PROJECTS_KEY, json.dumps([p.to_local() for p in projects]))

    def replace_all_projects(self, projects: list[Project]) -> None:
        """Overwrite the cached list wholesale (used after a cloud sync)."""
        self.save_projects(projects)

    def get_project(self, project_id: str) -> Project | None:
        for project in self.get_all_projects():
            if project.id == project_id:
                return project
        return None

    def require_project(self, project_id: str) -> Project:
        project = self.get_project(project_id)
        if project is None:
            raise NotFoundError(f"Project not found: {project_id}")
        return project

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_project(self, name: str) -> Project:
        sanitized = validate_name(name, "Project name")
        now = now_iso()
        project = Project(id=new_id(), name=sanitized, created_at=now, updated_at=now)
        projects = self.get_all_projects()
        projects.append(project)
        self.save_projects(projects)
        logger.debug("Project created id=%s name=%r", project.id, project.name)
        return project

    def update_project(self, project_id: str, fields: dict[str, Any]) -> Project:
        projects = self.get_all_projects()
        for i, project in enumerate(projects):
            if project.id == project_id:
                break
        else:
            raise NotFoundError(f"Project not found: {project_id}")

        if "name" in fields:
            fields = {**fields, "name": validate_name(fields["name"], "Project name")}
        updated = merge_record(
            Project, project, fields, protected={"id", "created_at"}, updated_at=now_iso()
        )
        projects[i] = updated
        self.save_projects(projects)
        return updated

    def delete_project(self, project_id: str) -> None:
        projects = self.get_all_projects()
        remaining = [p for p in projects if p.id != project_id]
        if len(remaining) == len(projects):
            raise NotFoundError(f"Project not found: {project_id}")
        self.save_projects(remaining)
        logger.debug("Project deleted id=%s", project_id)

        if self.get_active_project_id() == project_id and remaining:
            self._set_item(ACTIVE_PROJECT_KEY, remaining[0].id)
            logger.debug("Active project switched to %s", remaining[0].id)

    # ------------------------------------------------------------------
    # Active project pointer
    # ------------------------------------------------------------------

    def get_active_project_id(self) -> str | None:
        return self._kv.get_item(ACTIVE_PROJECT_KEY)

    def set_active_project_id(self, project_id: str) -> None:
        if self.get_project(project_id) is None:
            raise NotFoundError(f"Cannot set active project: Project not found ({project_id})")
        self._set_item(ACTIVE_PROJECT_KEY, project_id)

    def get_current_project(self) -> Project | None:
        active_id = self.get_active_project_id()
        if not active_id:
            return None
        return self.get_project(active_id)

    def ensure_default_project(self) -> Project | None:
        """Create and activate a starter project when none exist."""
        if self.get_all_projects():
            return None
        project = self.create_project(DEFAULT_PROJECT_NAME)
        self.set_active_project_id(project.id)
        return project

    # ------------------------------------------------------------------
    # Brand voice (singleton per project)
    # ------------------------------------------------------------------

    def save_brand_voice(self, project_id: str, brand_voice: BrandVoice) -> Project:
        brand_name = validate_name(brand_voice.brand_name, "Brand name")
        voice = brand_voice.model_copy(update={"brand_name": brand_name, "saved_at": now_iso()})
        return self.update_project(project_id, {"brand_voice": voice})

    def delete_brand_voice(self, project_id: str) -> Project:
        return self.update_project(project_id, {"brand_voice": None})

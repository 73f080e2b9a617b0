"""Unified storage facade: cloud first, local fallback.

A UnifiedStorage instance is the session object for one user. It owns the
local bundle, the optional cloud mirror and the storage mode, so several
independent sessions can live side by side (tests do exactly that).

For every operation, when a cloud mirror is configured and the mode is not
"local", the cloud call runs first. If it raises RemoteUnavailableError the
failure is logged as a warning and the local store handles the call. Any
error from the local store propagates to the caller unchanged.

Snippet writes that succeed in the cloud are also applied to the local cache
so they are readable before the next full sync. That mirror is best effort:
a local failure there is only logged.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import BaseModel, Field

from copyworx.cloud import CloudStorage
from copyworx.config import Settings, StorageMode
from copyworx.errors import RemoteUnavailableError, StorageError
from copyworx.kv import FileKeyValueStore
from copyworx.models import (
    BrandVoice,
    Folder,
    Persona,
    PersonaDraft,
    Project,
    ProjectDocument,
    Snippet,
    SnippetDraft,
)
from copyworx.storage import LocalStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FALLBACK = object()


class MigrationOutcome(BaseModel):
    success: bool
    migrated: int = 0
    errors: list[str] = Field(default_factory=list)


class StorageStatus(BaseModel):
    mode: StorageMode
    migration_needed: bool
    migration_complete: bool


class UnifiedStorage:
    def __init__(
        self,
        local: LocalStorage,
        cloud: CloudStorage | None = None,
        mode: StorageMode = "hybrid",
    ) -> None:
        self.local = local
        self.cloud = cloud
        self.mode: StorageMode = mode

    @property
    def cloud_available(self) -> bool:
        return self.cloud is not None

    @property
    def uses_cloud(self) -> bool:
        return self.cloud is not None and self.mode != "local"

    async def _cloud(self, action: str, call: Callable[[], Awaitable[T]]) -> T | object:
        """Run a cloud call, returning _FALLBACK when the local store should take over."""
        if not self.uses_cloud:
            return _FALLBACK
        try:
            result = await call()
        except RemoteUnavailableError as e:
            logger.warning("Cloud %s failed, falling back to local: %s", action, e)
            return _FALLBACK
        logger.debug("Cloud %s succeeded", action)
        return result

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def get_all_projects(self) -> list[Project]:
        snapshot = await self._cloud("sync", lambda: self.cloud.sync_all_projects())
        if snapshot is not _FALLBACK:
            if snapshot.projects:
                # Other local views (folders, snippets) read from this cache.
                try:
                    self.local.projects.replace_all_projects(snapshot.projects)
                except StorageError as e:
                    logger.warning("Failed to cache synced projects locally: %s", e)
            return snapshot.projects
        return self.local.projects.get_all_projects()

    async def create_project(self, name: str) -> Project:
        project = await self._cloud("create project", lambda: self.cloud.create_project(name))
        if project is not _FALLBACK:
            return project
        return self.local.projects.create_project(name)

    async def update_project(self, project_id: str, fields: dict[str, Any]) -> Project:
        project = await self._cloud(
            "update project", lambda: self.cloud.update_project(project_id, fields)
        )
        if project is not _FALLBACK:
            return project
        return self.local.projects.update_project(project_id, fields)

    async def delete_project(self, project_id: str) -> None:
        if await self._cloud("delete project", lambda: self.cloud.delete_project(project_id)) is not _FALLBACK:
            return
        self.local.projects.delete_project(project_id)

    async def get_active_project_id(self) -> str | None:
        settings = await self._cloud("settings fetch", lambda: self.cloud.get_user_settings())
        if settings is not _FALLBACK:
            return settings["active_project_id"]
        return self.local.projects.get_active_project_id()

    async def set_active_project_id(self, project_id: str) -> None:
        result = await self._cloud(
            "settings update",
            lambda: self.cloud.update_user_settings(active_project_id=project_id),
        )
        if result is not _FALLBACK:
            return
        self.local.projects.set_active_project_id(project_id)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def get_all_documents(self, project_id: str) -> list[ProjectDocument]:
        docs = await self._cloud("document list", lambda: self.cloud.get_all_documents(project_id))
        if docs is not _FALLBACK:
            return docs
        return self.local.documents.get_all_documents(project_id)

    async def get_document(self, project_id: str, doc_id: str) -> ProjectDocument | None:
        doc = await self._cloud("document fetch", lambda: self.cloud.get_document(doc_id))
        if doc is not _FALLBACK:
            return doc
        return self.local.documents.get_document(project_id, doc_id)

    async def get_document_versions(self, project_id: str, base_title: str) -> list[ProjectDocument]:
        docs = await self._cloud(
            "version list", lambda: self.cloud.get_document_versions(project_id, base_title)
        )
        if docs is not _FALLBACK:
            return docs
        return self.local.documents.get_document_versions(project_id, base_title)

    async def get_latest_version(self, project_id: str, base_title: str) -> ProjectDocument | None:
        versions = await self.get_document_versions(project_id, base_title)
        return versions[-1] if versions else None

    async def create_document(
        self,
        project_id: str,
        base_title: str,
        content: str = "",
        folder_id: str | None = None,
        template_id: str | None = None,
    ) -> ProjectDocument:
        doc = await self._cloud(
            "create document",
            lambda: self.cloud.create_document(
                project_id, base_title, content, folder_id=folder_id, template_id=template_id
            ),
        )
        if doc is not _FALLBACK:
            return doc
        return self.local.documents.create_document(project_id, base_title, content, folder_id, template_id)

    async def create_document_version(
        self, project_id: str, source_id: str, new_content: str | None = None
    ) -> ProjectDocument:
        doc = await self._cloud(
            "create version",
            lambda: self.cloud.create_document_version(project_id, source_id, new_content),
        )
        if doc is not _FALLBACK:
            return doc
        return self.local.documents.create_document_version(project_id, source_id, new_content)

    async def update_document(self, project_id: str, doc_id: str, fields: dict[str, Any]) -> ProjectDocument:
        doc = await self._cloud("update document", lambda: self.cloud.update_document(doc_id, fields))
        if doc is not _FALLBACK:
            return doc
        return self.local.documents.update_document(project_id, doc_id, fields)

    async def rename_document(self, project_id: str, doc_id: str, new_base_title: str) -> ProjectDocument:
        doc = await self._cloud(
            "rename document", lambda: self.cloud.rename_document(doc_id, new_base_title)
        )
        if doc is not _FALLBACK:
            return doc
        return self.local.documents.rename_document(project_id, doc_id, new_base_title)

    async def delete_document(self, project_id: str, doc_id: str) -> None:
        if await self._cloud("delete document", lambda: self.cloud.delete_document(doc_id)) is not _FALLBACK:
            return
        self.local.documents.delete_document(project_id, doc_id)

    # ------------------------------------------------------------------
    # Brand voice
    # ------------------------------------------------------------------

    async def save_brand_voice(self, project_id: str, brand_voice: BrandVoice) -> None:
        result = await self._cloud(
            "save brand voice", lambda: self.cloud.save_brand_voice(project_id, brand_voice)
        )
        if result is not _FALLBACK:
            return
        self.local.projects.save_brand_voice(project_id, brand_voice)

    async def delete_brand_voice(self, project_id: str) -> None:
        result = await self._cloud(
            "delete brand voice", lambda: self.cloud.delete_brand_voice(project_id)
        )
        if result is not _FALLBACK:
            return
        self.local.projects.delete_brand_voice(project_id)

    # ------------------------------------------------------------------
    # Personas
    # ------------------------------------------------------------------

    async def get_project_personas(self, project_id: str) -> list[Persona]:
        personas = await self._cloud("persona list", lambda: self.cloud.get_personas(project_id))
        if personas is not _FALLBACK:
            return personas
        return self.local.personas.get_project_personas(project_id)

    async def create_persona(self, project_id: str, draft: PersonaDraft) -> Persona:
        persona = await self._cloud("create persona", lambda: self.cloud.create_persona(project_id, draft))
        if persona is not _FALLBACK:
            return persona
        return self.local.personas.create_persona(project_id, draft)

    async def update_persona(self, project_id: str, persona_id: str, fields: dict[str, Any]) -> Persona:
        persona = await self._cloud(
            "update persona", lambda: self.cloud.update_persona(persona_id, fields)
        )
        if persona is not _FALLBACK:
            return persona
        return self.local.personas.update_persona(project_id, persona_id, fields)

    async def delete_persona(self, project_id: str, persona_id: str) -> None:
        if await self._cloud("delete persona", lambda: self.cloud.delete_persona(persona_id)) is not _FALLBACK:
            return
        self.local.personas.delete_persona(project_id, persona_id)

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    async def get_all_folders(self, project_id: str) -> list[Folder]:
        folders = await self._cloud("folder list", lambda: self.cloud.get_folders(project_id))
        if folders is not _FALLBACK:
            return folders
        return self.local.folders.get_all_folders(project_id)

    async def create_folder(self, project_id: str, name: str, parent_id: str | None = None) -> Folder:
        folder = await self._cloud(
            "create folder", lambda: self.cloud.create_folder(project_id, name, parent_id)
        )
        if folder is not _FALLBACK:
            return folder
        return self.local.folders.create_folder(project_id, name, parent_id)

    async def update_folder(self, project_id: str, folder_id: str, fields: dict[str, Any]) -> Folder:
        name_only = {k: v for k, v in fields.items() if k == "name"}
        folder = await self._cloud(
            "update folder", lambda: self.cloud.update_folder(folder_id, name_only)
        )
        if folder is not _FALLBACK:
            return folder
        return self.local.folders.update_folder(project_id, folder_id, fields)

    async def move_folder(self, project_id: str, folder_id: str, new_parent_id: str | None) -> Folder:
        folder = await self._cloud(
            "move folder",
            lambda: self.cloud.update_folder(folder_id, {"parent_folder_id": new_parent_id}),
        )
        if folder is not _FALLBACK:
            return folder
        return self.local.folders.move_folder(project_id, folder_id, new_parent_id)

    async def delete_folder(self, project_id: str, folder_id: str) -> None:
        if await self._cloud("delete folder", lambda: self.cloud.delete_folder(folder_id)) is not _FALLBACK:
            return
        self.local.folders.delete_folder(project_id, folder_id)

    # ------------------------------------------------------------------
    # Snippets (cloud success is mirrored into the local cache)
    # ------------------------------------------------------------------

    def _mirror(self, action: str, apply: Callable[[], Any]) -> None:
        try:
            apply()
        except StorageError as e:
            logger.warning("Failed to mirror snippet %s into local storage: %s", action, e)

    async def get_all_snippets(self, project_id: str) -> list[Snippet]:
        snippets = await self._cloud("snippet list", lambda: self.cloud.get_snippets(project_id))
        if snippets is not _FALLBACK:
            return sorted(snippets, key=lambda s: s.modified_at, reverse=True)
        return self.local.snippets.get_all_snippets(project_id)

    async def create_snippet(self, project_id: str, draft: SnippetDraft) -> Snippet:
        snippet = await self._cloud("create snippet", lambda: self.cloud.create_snippet(project_id, draft))
        if snippet is not _FALLBACK:
            self._mirror("create", lambda: self.local.snippets.cache_snippet(snippet))
            return snippet
        return self.local.snippets.create_snippet(project_id, draft)

    async def update_snippet(self, project_id: str, snippet_id: str, fields: dict[str, Any]) -> Snippet:
        snippet = await self._cloud(
            "update snippet", lambda: self.cloud.update_snippet(snippet_id, fields)
        )
        if snippet is not _FALLBACK:
            self._mirror("update", lambda: self.local.snippets.cache_snippet(snippet))
            return snippet
        return self.local.snippets.update_snippet(project_id, snippet_id, fields)

    async def delete_snippet(self, project_id: str, snippet_id: str) -> None:
        result = await self._cloud("delete snippet", lambda: self.cloud.delete_snippet(snippet_id))
        if result is not _FALLBACK:
            self._mirror("delete", lambda: self.local.snippets.uncache_snippet(project_id, snippet_id))
            return
        self.local.snippets.delete_snippet(project_id, snippet_id)

    async def increment_snippet_usage(self, project_id: str, snippet_id: str) -> Snippet:
        snippet = await self._cloud(
            "increment snippet usage", lambda: self.cloud.increment_snippet_usage(snippet_id)
        )
        if snippet is not _FALLBACK:
            self._mirror("usage", lambda: self.local.snippets.cache_snippet(snippet))
            return snippet
        return self.local.snippets.increment_snippet_usage(project_id, snippet_id)

    # ------------------------------------------------------------------
    # Migration
    # ------------------------------------------------------------------

    def is_migration_complete(self) -> bool:
        return self.local.is_migrated()

    def has_local_data_to_migrate(self) -> bool:
        return self.local.has_data() and not self.is_migration_complete()

    async def migrate_local_to_cloud(self) -> MigrationOutcome:
        """Push every local project to the cloud once.

        The local flag is only set after a fully successful migration, so a
        failed attempt can be retried.
        """
        if self.cloud is None:
            return MigrationOutcome(success=False, errors=["Cloud storage not configured"])
        if self.is_migration_complete():
            return MigrationOutcome(success=True)

        projects = self.local.projects.get_all_projects()
        if not projects:
            self.local.mark_migrated()
            return MigrationOutcome(success=True)

        logger.info("Starting migration of %d project(s)", len(projects))
        try:
            report = await self.cloud.migrate(projects, self.local.projects.get_active_project_id())
        except RemoteUnavailableError as e:
            logger.error("Migration failed: %s", e)
            return MigrationOutcome(success=False, errors=[str(e)])

        if report.success:
            self.local.mark_migrated()
            logger.info("Migration completed successfully")
        else:
            logger.warning("Migration completed with errors: %s", report.errors)
        return MigrationOutcome(
            success=report.success, migrated=report.migrated.projects, errors=report.errors
        )

    def initialize(self) -> StorageStatus:
        """Pick the mode from cloud availability and report migration status."""
        complete = self.is_migration_complete()
        local_data = self.has_local_data_to_migrate()
        if self.mode != "local":
            self.mode = "hybrid" if self.cloud_available else "local"
        logger.debug(
            "Storage initialized mode=%s cloud=%s migration_complete=%s local_data=%s",
            self.mode, self.cloud_available, complete, local_data,
        )
        return StorageStatus(
            mode=self.mode,
            migration_needed=self.cloud_available and local_data and not complete,
            migration_complete=complete,
        )


def build_storage(settings: Settings) -> UnifiedStorage:
    """Wire a session from settings: file-backed local store plus optional cloud."""
    kv = FileKeyValueStore(settings.local_store_path, capacity=settings.storage_capacity)
    cloud = None
    if settings.cloud_configured:
        cloud = CloudStorage(settings.cloud_url, settings.cloud_api_key)
    return UnifiedStorage(LocalStorage(kv), cloud, settings.storage_mode)

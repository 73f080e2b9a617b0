"""Local storage bundle: one key-value engine behind every local store."""

from __future__ import annotations

from copyworx.errors import QuotaExceededError
from copyworx.kv import KeyValueStore, StorageFullError

from .documents import DocumentStore
from .folders import FolderStore
from .personas import PersonaStore
from .projects import ProjectStore
from .snippets import SnippetStore

MIGRATION_FLAG_KEY = "copyworx_supabase_migrated"


class LocalStorage:
    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv
        self.projects = ProjectStore(kv)
        self.folders = FolderStore(self.projects)
        self.documents = DocumentStore(self.projects)
        self.personas = PersonaStore(self.projects)
        self.snippets = SnippetStore(self.projects)

    def is_migrated(self) -> bool:
        return self.kv.get_item(MIGRATION_FLAG_KEY) == "true"

    def mark_migrated(self) -> None:
        try:
            self.kv.set_item(MIGRATION_FLAG_KEY, "true")
        except StorageFullError as e:
            raise QuotaExceededError("Storage quota exceeded while recording the migration.") from e

    def has_data(self) -> bool:
        return bool(self.projects.get_all_projects())

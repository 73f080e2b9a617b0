"""Folder hierarchy within a project.

Folders form a tree through ``parent_folder_id`` (None = project root). The
tree is kept acyclic on every move, and a folder can only be deleted once it
holds neither subfolders nor documents. Walks over the parent pointers carry
a visited set so already-corrupted data (an existing cycle) cannot hang them.
"""

from __future__ import annotations

import logging
from collections import deque

from copyworx.errors import CircularReferenceError, FolderNotEmptyError, NotFoundError
from copyworx.models import Folder

from .core import merge_record, new_id, now_iso, validate_name
from .projects import ProjectStore

logger = logging.getLogger(__name__)

MAX_FOLDER_NAME_LENGTH = 100


def is_circular_reference(folders: list[Folder], folder_id: str, new_parent_id: str) -> bool:
    """True if placing ``folder_id`` under ``new_parent_id`` would close a loop.

    Walks the ancestor chain upward from the prospective parent. Meeting the
    moved folder, or revisiting any folder, counts as circular.
    """
    if folder_id == new_parent_id:
        return True
    parents = {f.id: f.parent_folder_id for f in folders}
    visited: set[str] = set()
    current: str | None = new_parent_id
    while current:
        if current in visited:
            logger.warning("Existing circular reference in folder structure at %s", current)
            return True
        visited.add(current)
        if current == folder_id:
            return True
        current = parents.get(current)
    return False


def _sorted_by_name(folders: list[Folder]) -> list[Folder]:
    return sorted(folders, key=lambda f: f.name.lower())


class FolderStore:
    def __init__(self, projects: ProjectStore) -> None:
        self._projects = projects

    def _folders(self, project_id: str) -> list[Folder]:
        return self._projects.require_project(project_id).folders

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all_folders(self, project_id: str) -> list[Folder]:
        project = self._projects.get_project(project_id)
        if project is None:
            logger.warning("Project not found when listing folders: %s", project_id)
            return []
        return _sorted_by_name(project.folders)

    def get_folder(self, project_id: str, folder_id: str) -> Folder | None:
        for folder in self.get_all_folders(project_id):
            if folder.id == folder_id:
                return folder
        return None

    def folder_exists(self, project_id: str, folder_id: str) -> bool:
        return self.get_folder(project_id, folder_id) is not None

    def get_folder_count(self, project_id: str) -> int:
        return len(self.get_all_folders(project_id))

    def get_folder_children(self, project_id: str, parent_id: str | None) -> list[Folder]:
        """Immediate children of ``parent_id``; None lists root-level folders."""
        folders = self.get_all_folders(project_id)
        if parent_id is None:
            return [f for f in folders if not f.parent_folder_id]
        return [f for f in folders if f.parent_folder_id == parent_id]

    def get_folder_path(self, project_id: str, folder_id: str) -> list[str]:
        """Folder names from the root down to ``folder_id`` (breadcrumb).

        A cycle or a dangling parent reference ends the walk early; whatever
        was collected so far is returned.
        """
        by_id = {f.id: f for f in self.get_all_folders(project_id)}
        path: list[str] = []
        visited: set[str] = set()
        current: str | None = folder_id
        while current:
            if current in visited:
                logger.warning("Circular reference in folder path at %s", current)
                break
            visited.add(current)
            folder = by_id.get(current)
            if folder is None:
                if current != folder_id:
                    logger.warning("Dangling parent reference in folder path: %s", current)
                break
            path.append(folder.name)
            current = folder.parent_folder_id
        path.reverse()
        return path

    def get_all_descendant_ids(self, project_id: str, folder_id: str) -> list[str]:
        """Every folder below ``folder_id``, breadth first."""
        folders = self.get_all_folders(project_id)
        descendants: list[str] = []
        queue = deque([folder_id])
        visited: set[str] = set()
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)
            for child in folders:
                if child.parent_folder_id == current and child.id not in visited:
                    descendants.append(child.id)
                    queue.append(child.id)
        return descendants

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_folder(self, project_id: str, name: str, parent_id: str | None = None) -> Folder:
        sanitized = validate_name(name, "Folder name", MAX_FOLDER_NAME_LENGTH)
        folders = self._folders(project_id)
        if parent_id and not any(f.id == parent_id for f in folders):
            raise NotFoundError(f"Parent folder not found: {parent_id}")

        now = now_iso()
        folder = Folder(
            id=new_id(),
            name=sanitized,
            project_id=project_id,
            parent_folder_id=parent_id or None,
            created_at=now,
            updated_at=now,
        )
        self._projects.update_project(project_id, {"folders": [*folders, folder]})
        logger.debug("Folder created id=%s name=%r parent=%s", folder.id, folder.name, parent_id)
        return folder

    def update_folder(self, project_id: str, folder_id: str, fields: dict) -> Folder:
        """Rename a folder. Only ``name`` is writable here; use move_folder to re-parent."""
        folders = self._folders(project_id)
        index = self._index(folders, folder_id)
        changes = {}
        if "name" in fields:
            changes["name"] = validate_name(fields["name"], "Folder name", MAX_FOLDER_NAME_LENGTH)
        updated = merge_record(
            Folder, folders[index], changes, protected={"id", "project_id", "created_at"},
            updated_at=now_iso(),
        )
        folders[index] = updated
        self._projects.update_project(project_id, {"folders": folders})
        return updated

    def move_folder(self, project_id: str, folder_id: str, new_parent_id: str | None) -> Folder:
        folders = self._folders(project_id)
        index = self._index(folders, folder_id)
        folder = folders[index]

        if new_parent_id is not None:
            if new_parent_id == folder_id:
                raise CircularReferenceError(f"Cannot move folder \"{folder.name}\" into itself.")
            if not any(f.id == new_parent_id for f in folders):
                raise NotFoundError(f"New parent folder not found: {new_parent_id}")
            if is_circular_reference(folders, folder_id, new_parent_id):
                raise CircularReferenceError(
                    f"Cannot move folder \"{folder.name}\" into itself or one of its subfolders."
                )

        folders[index] = folder.model_copy(
            update={"parent_folder_id": new_parent_id, "updated_at": now_iso()}
        )
        self._projects.update_project(project_id, {"folders": folders})
        return folders[index]

    def delete_folder(self, project_id: str, folder_id: str) -> None:
        project = self._projects.require_project(project_id)
        index = self._index(project.folders, folder_id)
        folder = project.folders[index]

        if any(f.parent_folder_id == folder_id for f in project.folders):
            raise FolderNotEmptyError(
                f"Cannot delete folder \"{folder.name}\" because it contains subfolders. "
                "Please delete or move subfolders first."
            )
        if any(d.folder_id == folder_id for d in project.documents):
            raise FolderNotEmptyError(
                f"Cannot delete folder \"{folder.name}\" because it contains documents. "
                "Please delete or move documents first."
            )

        remaining = [f for f in project.folders if f.id != folder_id]
        self._projects.update_project(project_id, {"folders": remaining})
        logger.debug("Folder deleted id=%s", folder_id)

    @staticmethod
    def _index(folders: list[Folder], folder_id: str) -> int:
        for i, folder in enumerate(folders):
            if folder.id == folder_id:
                return i
        raise NotFoundError(f"Folder not found: {folder_id}")

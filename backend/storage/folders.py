"""Folder rows. Same structural rules as the local folder store."""

from typing import Any

from copyworx.errors import CircularReferenceError, FolderNotEmptyError, NotFoundError
from copyworx.models import Folder
from copyworx.storage.core import new_id, now_iso, validate_name
from copyworx.storage.folders import MAX_FOLDER_NAME_LENGTH, is_circular_reference

from .core import find_row, read_table, replace_row, rows_for_project, write_table
from .projects import require_project


def list_folders(project_id: str) -> list[dict[str, Any]]:
    return sorted(rows_for_project("folders", project_id), key=lambda f: f["name"].lower())


def get_folder(folder_id: str) -> dict[str, Any] | None:
    return find_row("folders", folder_id)


def _require_parent(project_id: str, parent_id: str) -> None:
    parent = get_folder(parent_id)
    if parent is None or parent["project_id"] != project_id:
        raise NotFoundError(f"Parent folder not found: {parent_id}")


def create_folder(project_id: str, name: str, parent_id: str | None = None) -> dict[str, Any]:
    require_project(project_id)
    sanitized = validate_name(name, "Folder name", MAX_FOLDER_NAME_LENGTH)
    if parent_id:
        _require_parent(project_id, parent_id)
    now = now_iso()
    folder = {
        "id": new_id(),
        "project_id": project_id,
        "name": sanitized,
        "parent_folder_id": parent_id or None,
        "created_at": now,
        "updated_at": now,
    }
    write_table("folders", [*read_table("folders"), folder])
    return folder


def update_folder(folder_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    """Rename and/or re-parent a folder. ``parent_folder_id`` None moves it to the root."""
    folder = get_folder(folder_id)
    if folder is None:
        raise NotFoundError(f"Folder not found: {folder_id}")

    if fields.get("name") is not None:
        folder["name"] = validate_name(fields["name"], "Folder name", MAX_FOLDER_NAME_LENGTH)

    if "parent_folder_id" in fields:
        parent_id = fields["parent_folder_id"] or None
        if parent_id is not None:
            if parent_id == folder_id:
                raise CircularReferenceError("A folder cannot be its own parent")
            _require_parent(folder["project_id"], parent_id)
            siblings = [Folder.model_validate(f) for f in rows_for_project("folders", folder["project_id"])]
            if is_circular_reference(siblings, folder_id, parent_id):
                raise CircularReferenceError(
                    f"Cannot move folder \"{folder['name']}\" into itself or one of its subfolders."
                )
        folder["parent_folder_id"] = parent_id

    folder["updated_at"] = now_iso()
    replace_row("folders", folder)
    return folder


def delete_folder(folder_id: str, force: bool = False) -> None:
    """Delete an empty folder; ``force`` drops its subtree and unfiles its documents."""
    folder = get_folder(folder_id)
    if folder is None:
        raise NotFoundError(f"Folder not found: {folder_id}")

    folders = read_table("folders")
    documents = read_table("documents")
    has_children = any(f.get("parent_folder_id") == folder_id for f in folders)
    has_documents = any(d.get("folder_id") == folder_id for d in documents)
    if (has_children or has_documents) and not force:
        raise FolderNotEmptyError(
            f"Cannot delete folder \"{folder['name']}\" because it contains "
            f"{'subfolders' if has_children else 'documents'}."
        )

    doomed = {folder_id}
    frontier = [folder_id]
    while frontier:
        current = frontier.pop()
        for f in folders:
            if f.get("parent_folder_id") == current and f["id"] not in doomed:
                doomed.add(f["id"])
                frontier.append(f["id"])

    for doc in documents:
        if doc.get("folder_id") in doomed:
            doc["folder_id"] = None
    write_table("documents", documents)
    write_table("folders", [f for f in folders if f["id"] not in doomed])

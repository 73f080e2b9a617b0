"""Document rows.

Titles are derived server side as "{base_title} v{version}". Changing a
document's base title moves it into a new family as v1.
"""

from typing import Any

from copyworx.errors import NotFoundError, ValidationFailure
from copyworx.models import DocumentMetadata, ProjectDocument
from copyworx.storage.core import count_chars, count_words, new_id, now_iso, validate_name

from .core import find_row, read_table, replace_row, rows_for_project, write_table
from .projects import require_project, touch_project

MAX_TITLE_LENGTH = 200


def _title(base_title: str, version: int) -> str:
    return f"{base_title} v{version}"


def list_documents(project_id: str, base_title: str | None = None) -> list[dict[str, Any]]:
    """Documents of a project, most recently modified first, or one family by version."""
    docs = rows_for_project("documents", project_id)
    if base_title is not None:
        return sorted((d for d in docs if d["base_title"] == base_title), key=lambda d: d["version"])
    return sorted(docs, key=lambda d: d["modified_at"], reverse=True)


def get_document(doc_id: str) -> dict[str, Any] | None:
    return find_row("documents", doc_id)


def _check_folder(project_id: str, folder_id: str | None) -> None:
    if folder_id is None:
        return
    folder = find_row("folders", folder_id)
    if folder is None or folder["project_id"] != project_id:
        raise NotFoundError(f"Folder not found: {folder_id}")


def create_document(fields: dict[str, Any]) -> dict[str, Any]:
    project_id = fields.get("project_id") or ""
    require_project(project_id)
    base_title = validate_name(fields.get("base_title"), "Document title", MAX_TITLE_LENGTH)
    _check_folder(project_id, fields.get("folder_id"))
    content = fields.get("content") or ""
    version = int(fields.get("version") or 1)
    if version < 1:
        raise ValidationFailure("Document version must be at least 1.")

    metadata = DocumentMetadata.model_validate(fields.get("metadata") or {})
    metadata = metadata.model_copy(
        update={"word_count": count_words(content), "char_count": count_chars(content)}
    )
    now = now_iso()
    doc = ProjectDocument(
        id=new_id(),
        project_id=project_id,
        base_title=base_title,
        title=_title(base_title, version),
        version=version,
        parent_version_id=fields.get("parent_version_id"),
        folder_id=fields.get("folder_id"),
        content=content,
        created_at=now,
        modified_at=now,
        metadata=metadata,
    ).to_row()
    write_table("documents", [*read_table("documents"), doc])
    touch_project(project_id)
    return doc


def update_document(doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    doc = get_document(doc_id)
    if doc is None:
        raise NotFoundError(f"Document not found: {doc_id}")

    if "folder_id" in fields:
        _check_folder(doc["project_id"], fields["folder_id"])
        doc["folder_id"] = fields["folder_id"]
    if fields.get("metadata") is not None:
        patch = DocumentMetadata.model_validate(fields["metadata"]).model_dump(exclude_unset=True)
        doc["metadata"] = {**doc["metadata"], **patch}
    if fields.get("content") is not None:
        doc["content"] = fields["content"]
        doc["metadata"]["word_count"] = count_words(doc["content"])
        doc["metadata"]["char_count"] = count_chars(doc["content"])

    new_base = fields.get("base_title")
    if new_base is not None:
        new_base = validate_name(new_base, "Document title", MAX_TITLE_LENGTH)
        if new_base != doc["base_title"]:
            if list_documents(doc["project_id"], new_base):
                raise ValidationFailure(f"A document named \"{new_base}\" already exists.")
            doc["base_title"] = new_base
            doc["version"] = 1
            doc["parent_version_id"] = None

    doc["title"] = _title(doc["base_title"], doc["version"])
    doc["modified_at"] = now_iso()
    replace_row("documents", doc)
    touch_project(doc["project_id"])
    return doc


def delete_document(doc_id: str) -> None:
    doc = get_document(doc_id)
    if doc is None:
        raise NotFoundError(f"Document not found: {doc_id}")
    write_table("documents", [d for d in read_table("documents") if d["id"] != doc_id])
    touch_project(doc["project_id"])

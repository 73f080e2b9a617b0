"""Documents with linear versioning.

Documents sharing a ``base_title`` inside a project form a version family.
The display title is always ``"{base_title} v{version}"``. A new version
takes ``max(version in family) + 1`` and records the document it was created
from in ``parent_version_id``. There is no diffing or merging; deleting a
version does not touch the versions that point at it.
"""

from __future__ import annotations

import logging
from typing import Any

from copyworx.errors import NotFoundError, ValidationFailure
from copyworx.models import DocumentMetadata, ProjectDocument

from .core import count_chars, count_words, merge_record, new_id, now_iso, validate_name
from .projects import ProjectStore

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200

PROTECTED_FIELDS = {"id", "project_id", "version", "parent_version_id", "base_title", "created_at"}


def display_title(base_title: str, version: int) -> str:
    return f"{base_title} v{version}"


def _metadata_update(value: Any) -> dict[str, Any]:
    if isinstance(value, DocumentMetadata):
        return value.model_dump(exclude_unset=True)
    if isinstance(value, dict):
        # Accept camelCase keys as stored in the local blob.
        return DocumentMetadata.model_validate(value).model_dump(exclude_unset=True)
    raise ValidationFailure("Document metadata must be a mapping")


class DocumentStore:
    def __init__(self, projects: ProjectStore) -> None:
        self._projects = projects

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all_documents(self, project_id: str) -> list[ProjectDocument]:
        """All documents in a project, most recently modified first."""
        project = self._projects.get_project(project_id)
        if project is None:
            logger.warning("Project not found when listing documents: %s", project_id)
            return []
        return sorted(project.documents, key=lambda d: d.modified_at, reverse=True)

    def get_document(self, project_id: str, doc_id: str) -> ProjectDocument | None:
        for doc in self.get_all_documents(project_id):
            if doc.id == doc_id:
                return doc
        return None

    def get_document_versions(self, project_id: str, base_title: str) -> list[ProjectDocument]:
        family = [d for d in self.get_all_documents(project_id) if d.base_title == base_title]
        return sorted(family, key=lambda d: d.version)

    def get_latest_version(self, project_id: str, base_title: str) -> ProjectDocument | None:
        versions = self.get_document_versions(project_id, base_title)
        return versions[-1] if versions else None

    def has_multiple_versions(self, project_id: str, base_title: str) -> bool:
        return len(self.get_document_versions(project_id, base_title)) > 1

    def get_unique_base_titles(self, project_id: str) -> list[str]:
        return list(dict.fromkeys(d.base_title for d in self.get_all_documents(project_id)))

    def get_folder_documents(self, project_id: str, folder_id: str | None) -> list[ProjectDocument]:
        """Documents filed directly in ``folder_id``; None lists unfiled documents."""
        return [d for d in self.get_all_documents(project_id) if d.folder_id == folder_id]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_document(
        self,
        project_id: str,
        base_title: str,
        content: str = "",
        folder_id: str | None = None,
        template_id: str | None = None,
    ) -> ProjectDocument:
        """Start a new version family at v1."""
        title = validate_name(base_title, "Document title", MAX_TITLE_LENGTH)
        project = self._projects.require_project(project_id)
        if folder_id and not any(f.id == folder_id for f in project.folders):
            raise NotFoundError(f"Folder not found: {folder_id}")

        now = now_iso()
        doc = ProjectDocument(
            id=new_id(),
            project_id=project_id,
            base_title=title,
            title=display_title(title, 1),
            version=1,
            folder_id=folder_id,
            content=content,
            created_at=now,
            modified_at=now,
            metadata=DocumentMetadata(
                word_count=count_words(content),
                char_count=count_chars(content),
                template_id=template_id,
            ),
        )
        self._projects.update_project(project_id, {"documents": [*project.documents, doc]})
        logger.debug("Document created id=%s title=%r", doc.id, doc.title)
        return doc

    def create_document_version(
        self, project_id: str, source_id: str, new_content: str | None = None
    ) -> ProjectDocument:
        project = self._projects.require_project(project_id)
        source = next((d for d in project.documents if d.id == source_id), None)
        if source is None:
            raise NotFoundError(f"Source document not found: {source_id}")

        family = [d.version for d in project.documents if d.base_title == source.base_title]
        version = max(family) + 1
        content = source.content if new_content is None else new_content

        now = now_iso()
        doc = ProjectDocument(
            id=new_id(),
            project_id=project_id,
            base_title=source.base_title,
            title=display_title(source.base_title, version),
            version=version,
            parent_version_id=source.id,
            folder_id=source.folder_id,
            content=content,
            created_at=now,
            modified_at=now,
            metadata=DocumentMetadata(
                word_count=count_words(content),
                char_count=count_chars(content),
                template_id=source.metadata.template_id,
                tags=list(source.metadata.tags),
            ),
        )
        self._projects.update_project(project_id, {"documents": [*project.documents, doc]})
        logger.debug("Document version created id=%s title=%r from=%s", doc.id, doc.title, source.id)
        return doc

    def update_document(self, project_id: str, doc_id: str, fields: dict[str, Any]) -> ProjectDocument:
        """Merge ``fields`` into a document.

        Identity and version fields are protected, the title stays derived,
        and word/character counts follow the content whenever it is supplied.
        """
        project = self._projects.require_project(project_id)
        index = self._index(project.documents, doc_id)
        existing = project.documents[index]

        if fields.get("folder_id") and not any(f.id == fields["folder_id"] for f in project.folders):
            raise NotFoundError(f"Folder not found: {fields['folder_id']}")

        metadata = existing.metadata.model_dump()
        if fields.get("metadata") is not None:
            metadata.update(_metadata_update(fields["metadata"]))
        if fields.get("content") is not None:
            metadata["word_count"] = count_words(fields["content"])
            metadata["char_count"] = count_chars(fields["content"])

        updated = merge_record(
            ProjectDocument,
            existing,
            fields,
            protected=PROTECTED_FIELDS | {"title"},
            metadata=metadata,
            title=display_title(existing.base_title, existing.version),
            modified_at=now_iso(),
        )
        documents = list(project.documents)
        documents[index] = updated
        self._projects.update_project(project_id, {"documents": documents})
        return updated

    def move_document(self, project_id: str, doc_id: str, folder_id: str | None) -> ProjectDocument:
        """File a document into a folder, or back to the project root with None."""
        if folder_id is None:
            project = self._projects.require_project(project_id)
            index = self._index(project.documents, doc_id)
            documents = list(project.documents)
            documents[index] = documents[index].model_copy(
                update={"folder_id": None, "modified_at": now_iso()}
            )
            self._projects.update_project(project_id, {"documents": documents})
            return documents[index]
        return self.update_document(project_id, doc_id, {"folder_id": folder_id})

    def rename_document(self, project_id: str, doc_id: str, new_base_title: str) -> ProjectDocument:
        """Move a document into a new version family as its v1.

        Renaming into a family that already exists is rejected, since the
        version numbers would collide.
        """
        title = validate_name(new_base_title, "Document title", MAX_TITLE_LENGTH)
        project = self._projects.require_project(project_id)
        index = self._index(project.documents, doc_id)
        existing = project.documents[index]
        if title == existing.base_title:
            return existing
        if any(d.base_title == title for d in project.documents):
            raise ValidationFailure(f"A document named \"{title}\" already exists.")

        renamed = existing.model_copy(
            update={
                "base_title": title,
                "title": display_title(title, 1),
                "version": 1,
                "parent_version_id": None,
                "modified_at": now_iso(),
            }
        )
        documents = list(project.documents)
        documents[index] = renamed
        self._projects.update_project(project_id, {"documents": documents})
        return renamed

    def delete_document(self, project_id: str, doc_id: str) -> None:
        project = self._projects.require_project(project_id)
        self._index(project.documents, doc_id)
        remaining = [d for d in project.documents if d.id != doc_id]
        self._projects.update_project(project_id, {"documents": remaining})
        logger.debug("Document deleted id=%s", doc_id)

    @staticmethod
    def _index(documents: list[ProjectDocument], doc_id: str) -> int:
        for i, doc in enumerate(documents):
            if doc.id == doc_id:
                return i
        raise NotFoundError(f"Document not found: {doc_id}")

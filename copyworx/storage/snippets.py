"""Reusable copy snippets.

Names, descriptions and tags are sanitized like every other user-facing
label. Content is HTML destined for the editor and is stored verbatim.
"""

from __future__ import annotations

import logging
from typing import Any

from copyworx.errors import NotFoundError, ValidationFailure
from copyworx.models import Snippet, SnippetDraft

from .core import merge_record, new_id, now_iso, sanitize_text, validate_name, validate_not_empty
from .projects import ProjectStore

logger = logging.getLogger(__name__)

MAX_SNIPPET_NAME_LENGTH = 100
MAX_SNIPPET_CONTENT_LENGTH = 50_000


def validate_snippet_content(content: str | None) -> None:
    validate_not_empty(content, "Snippet content")
    if len(content) > MAX_SNIPPET_CONTENT_LENGTH:
        raise ValidationFailure(
            f"Snippet content cannot exceed {MAX_SNIPPET_CONTENT_LENGTH:,} characters."
        )


def _clean_tags(tags: list[str] | None) -> list[str]:
    return [t for t in (sanitize_text(tag) for tag in tags or []) if t]


class SnippetStore:
    def __init__(self, projects: ProjectStore) -> None:
        self._projects = projects

    def _snippets(self, project_id: str) -> list[Snippet]:
        project = self._projects.get_project(project_id)
        if project is None:
            logger.warning("Project not found when listing snippets: %s", project_id)
            return []
        return project.snippets

    def _save(self, project_id: str, snippets: list[Snippet]) -> None:
        self._projects.update_project(project_id, {"snippets": snippets})

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_snippet(self, project_id: str, draft: SnippetDraft) -> Snippet:
        name = validate_name(draft.name, "Snippet name", MAX_SNIPPET_NAME_LENGTH)
        validate_snippet_content(draft.content)
        project = self._projects.require_project(project_id)

        now = now_iso()
        snippet = Snippet(
            id=new_id(),
            project_id=project_id,
            name=name,
            content=draft.content,
            description=sanitize_text(draft.description) if draft.description else None,
            tags=_clean_tags(draft.tags),
            usage_count=0,
            created_at=now,
            modified_at=now,
        )
        self._save(project_id, [*project.snippets, snippet])
        logger.debug("Snippet created id=%s name=%r", snippet.id, snippet.name)
        return snippet

    def get_all_snippets(self, project_id: str) -> list[Snippet]:
        """Snippets of a project, most recently modified first."""
        return sorted(self._snippets(project_id), key=lambda s: s.modified_at, reverse=True)

    def get_snippet(self, project_id: str, snippet_id: str) -> Snippet | None:
        for snippet in self._snippets(project_id):
            if snippet.id == snippet_id:
                return snippet
        return None

    def update_snippet(self, project_id: str, snippet_id: str, fields: dict[str, Any]) -> Snippet:
        changes = dict(fields)
        if "name" in changes:
            changes["name"] = validate_name(changes["name"], "Snippet name", MAX_SNIPPET_NAME_LENGTH)
        if "content" in changes:
            validate_snippet_content(changes["content"])
        if changes.get("description") is not None:
            changes["description"] = sanitize_text(changes["description"])
        if "tags" in changes:
            changes["tags"] = _clean_tags(changes["tags"])

        project = self._projects.require_project(project_id)
        index = self._index(project.snippets, snippet_id)
        updated = merge_record(
            Snippet,
            project.snippets[index],
            changes,
            protected={"id", "project_id", "created_at", "usage_count"},
            modified_at=now_iso(),
        )
        snippets = list(project.snippets)
        snippets[index] = updated
        self._save(project_id, snippets)
        return updated

    def delete_snippet(self, project_id: str, snippet_id: str) -> None:
        project = self._projects.require_project(project_id)
        self._index(project.snippets, snippet_id)
        self._save(project_id, [s for s in project.snippets if s.id != snippet_id])
        logger.debug("Snippet deleted id=%s", snippet_id)

    def increment_snippet_usage(self, project_id: str, snippet_id: str) -> Snippet:
        """Bump the usage counter. The modification time is left alone."""
        project = self._projects.require_project(project_id)
        index = self._index(project.snippets, snippet_id)
        snippets = list(project.snippets)
        snippets[index] = snippets[index].model_copy(
            update={"usage_count": snippets[index].usage_count + 1}
        )
        self._save(project_id, snippets)
        return snippets[index]

    # ------------------------------------------------------------------
    # Local cache mirror of cloud results
    # ------------------------------------------------------------------

    def cache_snippet(self, snippet: Snippet) -> None:
        """Insert or replace a snippet by id without validation."""
        project = self._projects.get_project(snippet.project_id)
        if project is None:
            logger.debug("Not caching snippet %s: project %s not cached", snippet.id, snippet.project_id)
            return
        snippets = [s for s in project.snippets if s.id != snippet.id]
        self._save(snippet.project_id, [*snippets, snippet])

    def uncache_snippet(self, project_id: str, snippet_id: str) -> None:
        project = self._projects.get_project(project_id)
        if project is None:
            return
        self._save(project_id, [s for s in project.snippets if s.id != snippet_id])

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search_snippets(self, project_id: str, query: str) -> list[Snippet]:
        """Case-insensitive match on name, content, description or any tag."""
        snippets = self.get_all_snippets(project_id)
        needle = (query or "").strip().lower()
        if not needle:
            return snippets
        return [
            s for s in snippets
            if needle in s.name.lower()
            or needle in s.content.lower()
            or needle in (s.description or "").lower()
            or any(needle in tag.lower() for tag in s.tags)
        ]

    def get_snippets_by_tag(self, project_id: str, tag: str) -> list[Snippet]:
        wanted = tag.strip().lower()
        return [
            s for s in self.get_all_snippets(project_id)
            if any(t.lower() == wanted for t in s.tags)
        ]

    def get_all_snippet_tags(self, project_id: str) -> list[str]:
        tags = {tag for s in self._snippets(project_id) for tag in s.tags}
        return sorted(tags, key=str.lower)

    def get_most_used_snippets(self, project_id: str, limit: int = 5) -> list[Snippet]:
        ranked = sorted(self.get_all_snippets(project_id), key=lambda s: s.usage_count, reverse=True)
        return ranked[:limit]

    @staticmethod
    def _index(snippets: list[Snippet], snippet_id: str) -> int:
        for i, snippet in enumerate(snippets):
            if snippet.id == snippet_id:
                return i
        raise NotFoundError(f"Snippet not found: {snippet_id}")

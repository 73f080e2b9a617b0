"""Cloud mirror: async HTTP client for the ``/api/db/*`` endpoints.

Rows travel snake_case (``base_title``, ``parent_folder_id``); the sync and
migrate endpoints answer with camelCase project trees. Both shapes parse into
the same models, so callers only ever see ``copyworx.models`` types.

Every failure (connection error, non-2xx answer, body that is not JSON or
does not fit the expected model) raises RemoteUnavailableError. For an error
answer the message is the body's ``details`` or else its ``error`` string.

Calls are awaited without retry and without an explicit timeout.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from copyworx.errors import RemoteUnavailableError
from copyworx.models import (
    BrandVoice,
    Folder,
    MigrationReport,
    Persona,
    PersonaDraft,
    Project,
    ProjectDocument,
    Snippet,
    SnippetDraft,
    SyncSnapshot,
)
from copyworx.storage.documents import PROTECTED_FIELDS

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

API_PREFIX = "/api/db"


def _parse(model: type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RemoteUnavailableError(f"Unexpected {model.__name__} payload from cloud storage") from e


def _parse_list(model: type[M], data: Any) -> list[M]:
    if not isinstance(data, list):
        raise RemoteUnavailableError(f"Expected a list of {model.__name__} from cloud storage")
    return [_parse(model, item) for item in data]


def _jsonable(fields: dict[str, Any]) -> dict[str, Any]:
    out = {}
    for key, value in fields.items():
        out[key] = value.to_row() if hasattr(value, "to_row") else value
    return out


class CloudStorage:
    """Client for the cloud storage API.

    Args:
        base_url:  Server root, e.g. "http://localhost:13013".
        api_key:   Bearer token, or empty string if the server needs none.
        transport: Optional httpx transport (tests pass MockTransport or
                   ASGITransport here).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        allow_missing: bool = False,
    ) -> Any:
        url = f"{self._base_url}{API_PREFIX}{path}"
        logger.debug("cloud %s %s params=%s", method, url, params)
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
                resp = await client.request(method, url, params=params, json=json, headers=self._headers())
        except httpx.HTTPError as e:
            raise RemoteUnavailableError(f"Cannot connect to cloud storage at {self._base_url}") from e

        if allow_missing and resp.status_code == 404:
            return None
        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            message = body.get("details") or body.get("error") or f"Status: {resp.status_code}"
            raise RemoteUnavailableError(message)

        try:
            return resp.json()
        except ValueError as e:
            raise RemoteUnavailableError(f"Cloud storage returned a non-JSON body for {path}") from e

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def sync_all_projects(self) -> SyncSnapshot:
        """Every project with all nested collections, plus the active project id."""
        snapshot = _parse(SyncSnapshot, await self._request("GET", "/sync"))
        logger.debug("cloud sync returned %d project(s)", len(snapshot.projects))
        return snapshot

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def create_project(self, name: str) -> Project:
        return _parse(Project, await self._request("POST", "/projects", json={"name": name}))

    async def update_project(self, project_id: str, fields: dict[str, Any]) -> Project:
        # Nested collections have their own endpoints; only the name lives on the row.
        body = {"id": project_id}
        if "name" in fields:
            body["name"] = fields["name"]
        return _parse(Project, await self._request("PUT", "/projects", json=body))

    async def delete_project(self, project_id: str) -> None:
        await self._request("DELETE", "/projects", params={"id": project_id})

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(
        self,
        project_id: str,
        base_title: str,
        content: str = "",
        *,
        folder_id: str | None = None,
        template_id: str | None = None,
        version: int = 1,
        parent_version_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ProjectDocument:
        body = {
            "project_id": project_id,
            "base_title": base_title,
            "content": content,
            "version": version,
            "parent_version_id": parent_version_id,
            "folder_id": folder_id,
            "metadata": {**(metadata or {}), **({"template_id": template_id} if template_id else {})},
        }
        return _parse(ProjectDocument, await self._request("POST", "/documents", json=body))

    async def get_document(self, doc_id: str) -> ProjectDocument | None:
        data = await self._request("GET", "/documents", params={"id": doc_id}, allow_missing=True)
        return None if data is None else _parse(ProjectDocument, data)

    async def get_all_documents(self, project_id: str) -> list[ProjectDocument]:
        data = await self._request("GET", "/documents", params={"project_id": project_id})
        return _parse_list(ProjectDocument, data)

    async def get_document_versions(self, project_id: str, base_title: str) -> list[ProjectDocument]:
        data = await self._request(
            "GET", "/documents", params={"project_id": project_id, "base_title": base_title}
        )
        return sorted(_parse_list(ProjectDocument, data), key=lambda d: d.version)

    async def create_document_version(
        self, project_id: str, source_id: str, new_content: str | None = None
    ) -> ProjectDocument:
        source = await self.get_document(source_id)
        if source is None:
            raise RemoteUnavailableError(f"Source document not found: {source_id}")
        versions = await self.get_document_versions(project_id, source.base_title)
        highest = max((d.version for d in versions), default=source.version)
        return await self.create_document(
            project_id,
            source.base_title,
            source.content if new_content is None else new_content,
            folder_id=source.folder_id,
            version=highest + 1,
            parent_version_id=source.id,
            metadata={"template_id": source.metadata.template_id, "tags": source.metadata.tags},
        )

    async def update_document(self, doc_id: str, fields: dict[str, Any]) -> ProjectDocument:
        """Content, folder and metadata only; use rename_document to change the family."""
        editable = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS | {"title"}}
        data = await self._request("PUT", "/documents", json={"id": doc_id, **_jsonable(editable)})
        return _parse(ProjectDocument, data)

    async def rename_document(self, doc_id: str, new_base_title: str) -> ProjectDocument:
        """Rename starts a new family; the server resets version and parent."""
        data = await self._request(
            "PUT", "/documents", json={"id": doc_id, "base_title": new_base_title.strip()}
        )
        return _parse(ProjectDocument, data)

    async def delete_document(self, doc_id: str) -> None:
        await self._request("DELETE", "/documents", params={"id": doc_id})

    # ------------------------------------------------------------------
    # Brand voice
    # ------------------------------------------------------------------

    async def save_brand_voice(self, project_id: str, brand_voice: BrandVoice) -> BrandVoice:
        body = {"project_id": project_id, **brand_voice.to_row()}
        return _parse(BrandVoice, await self._request("POST", "/brand-voices", json=body))

    async def delete_brand_voice(self, project_id: str) -> None:
        await self._request("DELETE", "/brand-voices", params={"project_id": project_id})

    # ------------------------------------------------------------------
    # Personas
    # ------------------------------------------------------------------

    async def get_personas(self, project_id: str) -> list[Persona]:
        data = await self._request("GET", "/personas", params={"project_id": project_id})
        return _parse_list(Persona, data)

    async def create_persona(self, project_id: str, draft: PersonaDraft) -> Persona:
        body = {"project_id": project_id, **draft.model_dump()}
        return _parse(Persona, await self._request("POST", "/personas", json=body))

    async def update_persona(self, persona_id: str, fields: dict[str, Any]) -> Persona:
        data = await self._request("PUT", "/personas", json={"id": persona_id, **fields})
        return _parse(Persona, data)

    async def delete_persona(self, persona_id: str) -> None:
        await self._request("DELETE", "/personas", params={"id": persona_id})

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    async def get_folders(self, project_id: str) -> list[Folder]:
        data = await self._request("GET", "/folders", params={"project_id": project_id})
        return _parse_list(Folder, data)

    async def create_folder(self, project_id: str, name: str, parent_id: str | None = None) -> Folder:
        body = {"project_id": project_id, "name": name, "parent_folder_id": parent_id}
        return _parse(Folder, await self._request("POST", "/folders", json=body))

    async def update_folder(self, folder_id: str, fields: dict[str, Any]) -> Folder:
        body = {"id": folder_id}
        for key in ("name", "parent_folder_id"):
            if key in fields:
                body[key] = fields[key]
        return _parse(Folder, await self._request("PUT", "/folders", json=body))

    async def delete_folder(self, folder_id: str, force: bool = False) -> None:
        params = {"id": folder_id}
        if force:
            params["force"] = "true"
        await self._request("DELETE", "/folders", params=params)

    # ------------------------------------------------------------------
    # Snippets
    # ------------------------------------------------------------------

    async def get_snippets(self, project_id: str) -> list[Snippet]:
        data = await self._request("GET", "/snippets", params={"project_id": project_id})
        return _parse_list(Snippet, data)

    async def create_snippet(self, project_id: str, draft: SnippetDraft) -> Snippet:
        body = {"project_id": project_id, **draft.model_dump()}
        return _parse(Snippet, await self._request("POST", "/snippets", json=body))

    async def update_snippet(self, snippet_id: str, fields: dict[str, Any]) -> Snippet:
        data = await self._request("PUT", "/snippets", json={"id": snippet_id, **fields})
        return _parse(Snippet, data)

    async def increment_snippet_usage(self, snippet_id: str) -> Snippet:
        data = await self._request("PATCH", "/snippets", params={"id": snippet_id})
        return _parse(Snippet, data)

    async def delete_snippet(self, snippet_id: str) -> None:
        await self._request("DELETE", "/snippets", params={"id": snippet_id})

    # ------------------------------------------------------------------
    # User settings
    # ------------------------------------------------------------------

    async def get_user_settings(self) -> dict[str, Any]:
        """``{"active_project_id": str | None, "settings": dict}``"""
        data = await self._request("GET", "/user-settings")
        if not isinstance(data, dict):
            raise RemoteUnavailableError("Unexpected user settings payload from cloud storage")
        return {
            "active_project_id": data.get("active_project_id"),
            "settings": data.get("settings") or {},
        }

    async def update_user_settings(
        self,
        active_project_id: str | None = None,
        settings: dict[str, Any] | None = None,
    ) -> None:
        body: dict[str, Any] = {}
        if active_project_id is not None:
            body["active_project_id"] = active_project_id
        if settings is not None:
            body["settings"] = settings
        await self._request("POST", "/user-settings", json=body)

    # ------------------------------------------------------------------
    # Migration
    # ------------------------------------------------------------------

    async def migrate(self, projects: list[Project], active_project_id: str | None = None) -> MigrationReport:
        """Submit the local project list (camelCase trees) for import."""
        body = {
            "projects": [p.to_local() for p in projects],
            "activeProjectId": active_project_id,
        }
        report = _parse(MigrationReport, await self._request("POST", "/migrate", json=body))
        logger.info(
            "Migration result: success=%s projects=%d errors=%d",
            report.success, report.migrated.projects, len(report.errors),
        )
        return report

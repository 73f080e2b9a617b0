"""Core domain models.

All storage layers operate on these types. Attributes are snake_case; the
local JSON blob is written with camelCase aliases (``baseTitle``,
``parentFolderId``) and the cloud wire uses the snake_case names, so the same
model parses either shape.

Parsing is lenient where legacy data is known to be sloppy: nested
collections that are not lists become empty lists, nested records that do
not parse are dropped one by one (the project itself is kept), and a missing
document metadata block becomes the default one.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class Record(BaseModel):
    """Base for every persisted entity."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_local(self) -> dict[str, Any]:
        """Shape stored in the local blob (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True)

    def to_row(self) -> dict[str, Any]:
        """Shape sent over the cloud wire (snake_case keys)."""
        return self.model_dump(mode="json")


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


StrList = Annotated[list[str], BeforeValidator(_none_to_list)]


class BrandVoice(Record):
    """Brand voice configuration; at most one per project."""

    brand_name: str
    brand_tone: str = ""
    approved_phrases: StrList = Field(default_factory=list)
    forbidden_words: StrList = Field(default_factory=list)
    brand_values: StrList = Field(default_factory=list)
    mission_statement: str = ""
    saved_at: str | None = None


class Folder(Record):
    """Document folder. ``parent_folder_id`` None means project root."""

    id: str
    name: str
    project_id: str
    parent_folder_id: str | None = None
    created_at: str = ""
    updated_at: str = ""


class DocumentMetadata(Record):
    word_count: int = 0
    char_count: int = 0
    template_id: str | None = None
    tags: StrList = Field(default_factory=list)


class ProjectDocument(Record):
    """One version of a document family (documents sharing ``base_title``)."""

    id: str
    project_id: str
    base_title: str
    title: str = ""
    version: int = Field(1, ge=1)
    parent_version_id: str | None = None
    folder_id: str | None = None
    content: str = ""
    created_at: str = ""
    modified_at: str = ""
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)

    @field_validator("metadata", mode="before")
    @classmethod
    def _default_metadata(cls, value: Any) -> Any:
        return {} if value is None else value


class Persona(Record):
    """Target audience profile."""

    id: str
    project_id: str | None = None
    name: str
    photo_url: str | None = None
    demographics: str = ""
    psychographics: str = ""
    pain_points: str = ""
    language_patterns: str = ""
    goals: str = ""
    created_at: str = ""
    updated_at: str = ""


class Snippet(Record):
    """Reusable piece of copy. Content is HTML and is never sanitized."""

    id: str
    project_id: str
    name: str
    content: str
    description: str | None = None
    tags: StrList = Field(default_factory=list)
    usage_count: int = 0
    created_at: str = ""
    modified_at: str = ""


class Project(Record):
    """Aggregate root holding every nested collection."""

    id: str
    name: str
    brand_voice: BrandVoice | None = None
    personas: list[Persona] = Field(default_factory=list)
    folders: list[Folder] = Field(default_factory=list)
    documents: list[ProjectDocument] = Field(default_factory=list)
    snippets: list[Snippet] = Field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    @field_validator("personas", "folders", "documents", "snippets", mode="before")
    @classmethod
    def _coerce_collection(cls, value: Any, info: ValidationInfo) -> Any:
        # Partial or legacy records may carry null/objects here.
        if not isinstance(value, list):
            return []
        model = _COLLECTION_MODELS[info.field_name]
        kept = []
        for item in value:
            try:
                kept.append(model.model_validate(item))
            except ValidationError as e:
                item_id = item.get("id") if isinstance(item, dict) else None
                logger.warning(
                    "Dropping unreadable %s record %r: %d validation error(s)",
                    model.__name__, item_id, e.error_count(),
                )
        return kept

    @field_validator("brand_voice", mode="before")
    @classmethod
    def _coerce_brand_voice(cls, value: Any) -> Any:
        if value is None or isinstance(value, BrandVoice):
            return value
        try:
            return BrandVoice.model_validate(value)
        except ValidationError as e:
            logger.warning("Dropping unreadable brand voice: %d validation error(s)", e.error_count())
            return None


_COLLECTION_MODELS: dict[str, type[Record]] = {
    "personas": Persona,
    "folders": Folder,
    "documents": ProjectDocument,
    "snippets": Snippet,
}


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class PersonaDraft(BaseModel):
    """Fields supplied by the caller when creating a persona."""

    name: str
    photo_url: str | None = None
    demographics: str = ""
    psychographics: str = ""
    pain_points: str = ""
    language_patterns: str = ""
    goals: str = ""


class SnippetDraft(BaseModel):
    """Fields supplied by the caller when creating a snippet."""

    name: str
    content: str
    description: str | None = None
    tags: list[str] | None = None


# ---------------------------------------------------------------------------
# Cloud payloads
# ---------------------------------------------------------------------------


class SyncSnapshot(Record):
    """Full account snapshot returned by the sync endpoint."""

    projects: list[Project] = Field(default_factory=list)
    active_project_id: str | None = None
    last_synced_at: str | None = None


class MigrationCounts(Record):
    projects: int = 0
    brand_voices: int = 0
    personas: int = 0
    folders: int = 0
    documents: int = 0
    snippets: int = 0


class MigrationReport(Record):
    """Result of submitting the local project list to the cloud."""

    success: bool
    migrated: MigrationCounts = Field(default_factory=MigrationCounts)
    errors: list[str] = Field(default_factory=list)
    id_mapping: dict[str, str] = Field(default_factory=dict)

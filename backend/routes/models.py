"""Pydantic request models for API endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreateProject(BaseModel):
    name: str


class UpdateProject(BaseModel):
    id: str
    name: str | None = None


class CreateDocument(BaseModel):
    project_id: str
    base_title: str
    content: str = ""
    version: int = 1
    parent_version_id: str | None = None
    folder_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class UpdateDocument(BaseModel):
    id: str
    base_title: str | None = None
    content: str | None = None
    folder_id: str | None = None
    metadata: dict[str, Any] | None = None


class CreateFolder(BaseModel):
    project_id: str
    name: str
    parent_folder_id: str | None = None


class UpdateFolder(BaseModel):
    id: str
    name: str | None = None
    parent_folder_id: str | None = None


class CreatePersona(BaseModel):
    project_id: str
    name: str
    photo_url: str | None = None
    demographics: str = ""
    psychographics: str = ""
    pain_points: str = ""
    language_patterns: str = ""
    goals: str = ""


class UpdatePersona(BaseModel):
    id: str
    name: str | None = None
    photo_url: str | None = None
    demographics: str | None = None
    psychographics: str | None = None
    pain_points: str | None = None
    language_patterns: str | None = None
    goals: str | None = None


class CreateSnippet(BaseModel):
    project_id: str
    name: str
    content: str
    description: str | None = None
    tags: list[str] | None = None


class UpdateSnippet(BaseModel):
    id: str
    name: str | None = None
    content: str | None = None
    description: str | None = None
    tags: list[str] | None = None


class SaveBrandVoice(BaseModel):
    project_id: str
    brand_name: str
    brand_tone: str = ""
    approved_phrases: list[str] = Field(default_factory=list)
    forbidden_words: list[str] = Field(default_factory=list)
    brand_values: list[str] = Field(default_factory=list)
    mission_statement: str = ""


class UpdateUserSettings(BaseModel):
    active_project_id: str | None = None
    settings: dict[str, Any] | None = None


class MigrateBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    projects: list[dict[str, Any]]
    active_project_id: str | None = Field(None, alias="activeProjectId")

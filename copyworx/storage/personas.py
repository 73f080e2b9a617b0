"""Target audience personas stored on the project aggregate."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Any

from copyworx.errors import NotFoundError, ValidationFailure
from copyworx.models import Persona, PersonaDraft

from .core import merge_record, new_id, now_iso, validate_name
from .projects import ProjectStore

logger = logging.getLogger(__name__)

MAX_PHOTO_BYTES = 2 * 1024 * 1024
PHOTO_TYPES = ("jpeg", "jpg", "png", "webp")

_DATA_URL_RE = re.compile(r"^data:image/(?P<kind>[a-zA-Z0-9.+-]+);base64,(?P<data>.*)$", re.DOTALL)

_TEXT_FIELDS = ("demographics", "psychographics", "pain_points", "language_patterns", "goals")


def validate_persona_photo(photo_url: str | None) -> None:
    """Reject oversized or non-image data URLs.

    Plain http(s) URLs and None pass untouched; only inline base64 images are
    checked, for type (JPEG, PNG or WebP) and decoded size (2MB).
    """
    if not photo_url or not photo_url.startswith("data:"):
        return
    match = _DATA_URL_RE.match(photo_url)
    if match is None:
        raise ValidationFailure("Photo must be a base64 encoded image.")
    if match["kind"].lower() not in PHOTO_TYPES:
        raise ValidationFailure("Invalid image type. Please use JPG, PNG, or WebP.")
    try:
        size = len(base64.b64decode(match["data"], validate=True))
    except (binascii.Error, ValueError) as e:
        raise ValidationFailure("Photo data is not valid base64.") from e
    if size > MAX_PHOTO_BYTES:
        raise ValidationFailure("Photo size too large. Please use an image smaller than 2MB.")


class PersonaStore:
    def __init__(self, projects: ProjectStore) -> None:
        self._projects = projects

    def get_project_personas(self, project_id: str) -> list[Persona]:
        project = self._projects.get_project(project_id)
        if project is None:
            logger.warning("Project not found when listing personas: %s", project_id)
            return []
        return project.personas

    def get_persona(self, project_id: str, persona_id: str) -> Persona | None:
        for persona in self.get_project_personas(project_id):
            if persona.id == persona_id:
                return persona
        return None

    def create_persona(self, project_id: str, draft: PersonaDraft) -> Persona:
        project = self._projects.require_project(project_id)
        name = validate_name(draft.name, "Persona name")
        validate_persona_photo(draft.photo_url)

        now = now_iso()
        persona = Persona(
            id=new_id(),
            project_id=project_id,
            name=name,
            photo_url=draft.photo_url or None,
            created_at=now,
            updated_at=now,
            **{f: getattr(draft, f).strip() for f in _TEXT_FIELDS},
        )
        self._projects.update_project(project_id, {"personas": [*project.personas, persona]})
        logger.debug("Persona created id=%s name=%r", persona.id, persona.name)
        return persona

    def update_persona(self, project_id: str, persona_id: str, fields: dict[str, Any]) -> Persona:
        project = self._projects.require_project(project_id)
        index = self._index(project.personas, persona_id)

        if "name" in fields:
            fields = {**fields, "name": validate_name(fields["name"], "Persona name")}
        if fields.get("photo_url"):
            validate_persona_photo(fields["photo_url"])

        updated = merge_record(
            Persona,
            project.personas[index],
            fields,
            protected={"id", "project_id", "created_at"},
            updated_at=now_iso(),
        )
        personas = list(project.personas)
        personas[index] = updated
        self._projects.update_project(project_id, {"personas": personas})
        return updated

    def delete_persona(self, project_id: str, persona_id: str) -> None:
        project = self._projects.require_project(project_id)
        self._index(project.personas, persona_id)
        remaining = [p for p in project.personas if p.id != persona_id]
        self._projects.update_project(project_id, {"personas": remaining})
        logger.debug("Persona deleted id=%s", persona_id)

    @staticmethod
    def _index(personas: list[Persona], persona_id: str) -> int:
        for i, persona in enumerate(personas):
            if persona.id == persona_id:
                return i
        raise NotFoundError(f"Persona not found: {persona_id}")

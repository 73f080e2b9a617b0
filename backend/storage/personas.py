"""Persona rows."""

from typing import Any

from copyworx.errors import NotFoundError
from copyworx.models import Persona
from copyworx.storage.core import new_id, now_iso, validate_name
from copyworx.storage.personas import validate_persona_photo

from .core import find_row, read_table, replace_row, rows_for_project, write_table
from .projects import require_project

_EDITABLE = ("name", "photo_url", "demographics", "psychographics", "pain_points", "language_patterns", "goals")


def list_personas(project_id: str) -> list[dict[str, Any]]:
    return sorted(rows_for_project("personas", project_id), key=lambda p: p["created_at"])


def get_persona(persona_id: str) -> dict[str, Any] | None:
    return find_row("personas", persona_id)


def create_persona(project_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    require_project(project_id)
    name = validate_name(fields.get("name"), "Persona name")
    validate_persona_photo(fields.get("photo_url"))
    now = now_iso()
    row = Persona(
        **{k: fields[k] for k in _EDITABLE if k != "name" and fields.get(k) is not None},
        id=new_id(),
        project_id=project_id,
        name=name,
        created_at=now,
        updated_at=now,
    ).to_row()
    write_table("personas", [*read_table("personas"), row])
    return row


def update_persona(persona_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    persona = get_persona(persona_id)
    if persona is None:
        raise NotFoundError(f"Persona not found: {persona_id}")
    if fields.get("name") is not None:
        fields = {**fields, "name": validate_name(fields["name"], "Persona name")}
    if fields.get("photo_url"):
        validate_persona_photo(fields["photo_url"])
    for key in _EDITABLE:
        if key in fields:
            persona[key] = fields[key]
    persona["updated_at"] = now_iso()
    replace_row("personas", persona)
    return persona


def delete_persona(persona_id: str) -> None:
    if get_persona(persona_id) is None:
        raise NotFoundError(f"Persona not found: {persona_id}")
    write_table("personas", [p for p in read_table("personas") if p["id"] != persona_id])

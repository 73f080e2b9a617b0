"""Persona endpoints."""

from fastapi import APIRouter

from backend import storage

from .models import CreatePersona, UpdatePersona

router = APIRouter()


@router.get("/personas")
async def list_personas(project_id: str):
    return storage.list_personas(project_id)


@router.post("/personas", status_code=201)
async def create_persona(body: CreatePersona):
    return storage.create_persona(body.project_id, body.model_dump(exclude={"project_id"}))


@router.put("/personas")
async def update_persona(body: UpdatePersona):
    return storage.update_persona(body.id, body.model_dump(exclude_unset=True, exclude={"id"}))


@router.delete("/personas")
async def delete_persona(id: str):
    storage.delete_persona(id)
    return {"success": True}

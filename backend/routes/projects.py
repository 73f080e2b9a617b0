"""Project and brand voice endpoints."""

from fastapi import APIRouter, HTTPException

from backend import storage

from .models import CreateProject, SaveBrandVoice, UpdateProject

router = APIRouter()


# ── Projects ──────────────────────────────────────────────


@router.get("/projects")
async def list_projects(id: str | None = None):
    """List project rows, or fetch one with ?id=."""
    if id is None:
        return storage.list_projects()
    project = storage.get_project(id)
    if project is None:
        raise HTTPException(404, "Project not found")
    return project


@router.post("/projects", status_code=201)
async def create_project(body: CreateProject):
    return storage.create_project(body.name)


@router.put("/projects")
async def update_project(body: UpdateProject):
    return storage.update_project(body.id, body.model_dump(exclude_unset=True, exclude={"id"}))


@router.delete("/projects")
async def delete_project(id: str):
    """Delete a project and everything in it."""
    storage.delete_project(id)
    return {"success": True}


# ── Brand voices ──────────────────────────────────────────


@router.get("/brand-voices")
async def get_brand_voice(project_id: str):
    voice = storage.get_brand_voice(project_id)
    if voice is None:
        raise HTTPException(404, "Brand voice not found")
    return voice


@router.post("/brand-voices")
async def save_brand_voice(body: SaveBrandVoice):
    """Create or replace the project's brand voice."""
    return storage.save_brand_voice(body.project_id, body.model_dump(exclude={"project_id"}))


@router.delete("/brand-voices")
async def delete_brand_voice(project_id: str):
    storage.delete_brand_voice(project_id)
    return {"success": True}

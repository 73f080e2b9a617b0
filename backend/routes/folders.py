"""Folder endpoints."""

from fastapi import APIRouter, HTTPException

from backend import storage

from .models import CreateFolder, UpdateFolder

router = APIRouter()


@router.get("/folders")
async def list_folders(project_id: str):
    return storage.list_folders(project_id)


@router.post("/folders", status_code=201)
async def create_folder(body: CreateFolder):
    return storage.create_folder(body.project_id, body.name, body.parent_folder_id)


@router.put("/folders")
async def update_folder(body: UpdateFolder):
    """Rename or move a folder. Moving into itself or a descendant is refused."""
    if body.parent_folder_id == body.id:
        raise HTTPException(400, "A folder cannot be its own parent")
    return storage.update_folder(body.id, body.model_dump(exclude_unset=True, exclude={"id"}))


@router.delete("/folders")
async def delete_folder(id: str, force: bool = False):
    """Delete a folder. Non-empty folders need ?force=true."""
    storage.delete_folder(id, force=force)
    return {"success": True}

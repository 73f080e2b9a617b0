"""Snippet endpoints."""

from fastapi import APIRouter, HTTPException

from backend import storage

from .models import CreateSnippet, UpdateSnippet

router = APIRouter()


@router.get("/snippets")
async def get_snippets(id: str | None = None, project_id: str | None = None):
    """Fetch one snippet (?id=) or a project's snippets, newest first."""
    if id is not None:
        snippet = storage.get_snippet(id)
        if snippet is None:
            raise HTTPException(404, "Snippet not found")
        return snippet
    if project_id is None:
        raise HTTPException(400, "Either id or project_id is required")
    return storage.list_snippets(project_id)


@router.post("/snippets", status_code=201)
async def create_snippet(body: CreateSnippet):
    return storage.create_snippet(body.project_id, body.model_dump(exclude={"project_id"}))


@router.put("/snippets")
async def update_snippet(body: UpdateSnippet):
    return storage.update_snippet(body.id, body.model_dump(exclude_unset=True, exclude={"id"}))


@router.patch("/snippets")
async def increment_snippet_usage(id: str):
    """Bump a snippet's usage counter."""
    return storage.increment_usage(id)


@router.delete("/snippets")
async def delete_snippet(id: str):
    storage.delete_snippet(id)
    return {"success": True}

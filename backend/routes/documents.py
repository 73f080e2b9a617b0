"""Document endpoints."""

from fastapi import APIRouter, HTTPException

from backend import storage

from .models import CreateDocument, UpdateDocument

router = APIRouter()


@router.get("/documents")
async def get_documents(id: str | None = None, project_id: str | None = None, base_title: str | None = None):
    """Fetch one document (?id=), a project's documents, or one version family."""
    if id is not None:
        doc = storage.get_document(id)
        if doc is None:
            raise HTTPException(404, "Document not found")
        return doc
    if project_id is None:
        raise HTTPException(400, "Either id or project_id is required")
    return storage.list_documents(project_id, base_title)


@router.post("/documents", status_code=201)
async def create_document(body: CreateDocument):
    return storage.create_document(body.model_dump())


@router.put("/documents")
async def update_document(body: UpdateDocument):
    """Partial update. A new base_title renames the document into a fresh family."""
    return storage.update_document(body.id, body.model_dump(exclude_unset=True, exclude={"id"}))


@router.delete("/documents")
async def delete_document(id: str):
    storage.delete_document(id)
    return {"success": True}

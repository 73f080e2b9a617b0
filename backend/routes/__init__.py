"""FastAPI API endpoints under /api.

Endpoint groups under /api/db: projects, brand-voices, documents, folders,
personas, snippets, user-settings, sync, migrate. Resources are addressed
with query parameters (?id=, ?project_id=) and updated with PUT bodies that
carry the row id. /api/health sits outside the db group.
"""

from fastapi import APIRouter

from .documents import router as documents_router
from .folders import router as folders_router
from .personas import router as personas_router
from .projects import router as projects_router
from .settings import db_router as settings_db_router
from .settings import router as settings_router
from .snippets import router as snippets_router

db_router = APIRouter()
db_router.include_router(projects_router)
db_router.include_router(documents_router)
db_router.include_router(folders_router)
db_router.include_router(personas_router)
db_router.include_router(snippets_router)
db_router.include_router(settings_db_router)

router = APIRouter()
router.include_router(settings_router)
router.include_router(db_router, prefix="/db")

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from backend import storage
from backend.routes import router
from copyworx.errors import NotFoundError, StorageError, StructuralViolation, ValidationFailure

load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def _error(status: int, error: str, details: str | None = None) -> JSONResponse:
    return JSONResponse({"error": error, "details": details}, status_code=status)


def _status_for(exc: StorageError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ValidationFailure):
        return 400
    if isinstance(exc, StructuralViolation):
        return 409
    return 500


def create_app(data_dir: Path | None = None) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage.init_storage(resolved)

    app = FastAPI(title="CopyWorx Storage")
    app.include_router(router, prefix="/api")

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_error(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request", str(exc.errors()))

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError):
        status = _status_for(exc)
        if status == 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return _error(status, type(exc).__name__, str(exc))

    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()

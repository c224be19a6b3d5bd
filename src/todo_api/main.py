import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from .errors import TodoNotFoundError, TodoValidationError
from .repositories import Repository, build_repository
from .routers import todos as todos_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "CRUD operations for Todo items with filtering, search, and pagination.",
    },
]

_REQUEST_LOCATIONS = {"body", "query", "path"}


def _field_name(loc: Any) -> str:
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in _REQUEST_LOCATIONS:
        parts = parts[1:]
    return ".".join(parts) or "request"


def _error_response(status_code: int, message: Optional[str] = None) -> JSONResponse:
    content: Dict[str, Any] = {"success": False}
    if message is not None:
        content["error"] = message
    return JSONResponse(status_code=status_code, content=content)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Re-shape pydantic/fastapi validation errors into the standard error envelope:
            {"success": false, "error": "Todo validation failed: <field>: <reason>, ..."}
        """
        fields: Dict[str, str] = {}
        for err in exc.errors():
            fields.setdefault(_field_name(err.get("loc", ())), err.get("msg", "invalid value"))
        error = TodoValidationError(fields)
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, error)
        return _error_response(400, str(error))

    @app.exception_handler(TodoValidationError)
    async def todo_validation_handler(request: Request, exc: TodoValidationError) -> JSONResponse:
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
        return _error_response(400, str(exc))

    @app.exception_handler(TodoNotFoundError)
    async def not_found_handler(request: Request, exc: TodoNotFoundError) -> JSONResponse:
        logger.info("%s %s: %s", request.method, request.url.path, exc)
        return _error_response(404)

    @app.exception_handler(PyMongoError)
    async def store_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
        logger.exception("Store failure on %s %s", request.method, request.url.path)
        return _error_response(400, str(exc))


# PUBLIC_INTERFACE
def create_app(repository: Optional[Repository] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        repository: Store handle to serve requests from. When omitted, one is
            built from settings at startup and closed at shutdown.
        settings: Explicit settings; loaded from the environment when omitted.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "repository", None) is None
        if owned:
            app.state.repository = build_repository(settings)
        try:
            yield
        finally:
            if owned:
                app.state.repository.close()
                app.state.repository = None

    app = FastAPI(
        title="Todo Service",
        description="REST API for managing todos backed by a document store.",
        version="1.0.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    if repository is not None:
        app.state.repository = repository

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and the active backend.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(todos_router.router)
    return app


app = create_app()


# PUBLIC_INTERFACE
def run() -> None:
    """Configure logging and serve the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info("Server running on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()

from __future__ import annotations

import argparse
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Iterable, Iterator, List, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import BaseRoute, Match

from .errors import InvalidArgument, StorageUnavailable
from .logging_setup import setup_logging
from .models import parse_id
from .repositories import Repository, SQLiteRepository
from .routers import todos as todos_router
from .schemas import MessageOut
from .settings import Settings, get_settings
from .utils import error_response

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "todos", "description": "Create, list, complete and delete Todo items."},
]

INVALID_ID_MESSAGE = "The todo id must be a valid integer."
TITLE_REQUIRED_MESSAGE = "The todo title is required."
SERVER_ERROR_MESSAGE = "An unexpected server error occurred."


def _iter_routes(routes: Iterable[BaseRoute]) -> Iterator[BaseRoute]:
    for route in routes:
        yield route
        yield from _iter_routes(getattr(route, "routes", None) or ())


def _matching_routes(request: Request) -> List[Tuple[BaseRoute, Dict[str, Any]]]:
    """
    Every endpoint route whose path matches the request, with its child scope.

    Walks the app's routes and the todos router's own routes, so the result
    does not depend on how ``include_router`` lays routes out in the app.
    """
    scope = {
        "type": "http",
        "method": request.method,
        "path": request.scope["path"],
        "root_path": request.scope.get("app_root_path", ""),
    }
    matches: List[Tuple[BaseRoute, Dict[str, Any]]] = []
    seen = set()
    for route in _iter_routes([*request.app.router.routes, *todos_router.router.routes]):
        methods = getattr(route, "methods", None)
        if not methods:
            continue
        match, child_scope = route.matches(scope)
        if match == Match.NONE:
            continue
        key = (getattr(route, "path", None), frozenset(methods))
        if key in seen:
            continue
        seen.add(key)
        matches.append((route, child_scope))
    return matches


def _has_invalid_id(matches: List[Tuple[BaseRoute, Dict[str, Any]]]) -> bool:
    for _, child_scope in matches:
        raw = (child_scope.get("path_params") or {}).get("todo_id")
        if raw is not None and parse_id(str(raw)) is None:
            return True
    return False


def _validation_message(exc: RequestValidationError) -> str:
    for err in exc.errors():
        loc = err.get("loc") or ()
        if loc and loc[0] == "path":
            return INVALID_ID_MESSAGE
    for err in exc.errors():
        if err.get("type") == "json_invalid":
            return "The request body must be valid JSON."
        if err.get("type") == "value_error":
            cause = (err.get("ctx") or {}).get("error")
            if cause is not None:
                return str(cause)
    return TITLE_REQUIRED_MESSAGE


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Render request validation failures (bad id, blank title, bad body) as 400.
    """
    return error_response(400, _validation_message(exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Render routing and endpoint HTTP errors as ``{"error": message}``.
    """
    headers = dict(exc.headers or {})
    if exc.status_code == 405:
        matches = _matching_routes(request)
        if _has_invalid_id(matches):
            return error_response(400, INVALID_ID_MESSAGE)
        allowed = sorted({m for route, _ in matches for m in route.methods})
        if allowed:
            headers["Allow"] = ", ".join(allowed)
        return error_response(405, "Method not allowed.", headers)
    if exc.status_code == 404 and exc.detail == "Not Found":
        return error_response(404, "Resource not found.", headers)
    return error_response(exc.status_code, str(exc.detail), headers)


async def invalid_argument_handler(request: Request, exc: InvalidArgument) -> JSONResponse:
    return error_response(400, str(exc))


async def storage_exception_handler(request: Request, exc: StorageUnavailable) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return error_response(500, SERVER_ERROR_MESSAGE)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Error processing %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, SERVER_ERROR_MESSAGE)


# PUBLIC_INTERFACE
def create_app(repository: Optional[Repository] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application around a repository.

    Args:
        repository: Store used by every endpoint. When omitted, a
            SQLiteRepository on ``settings.db_path`` is opened at startup.
        settings: Configuration; defaults to ``get_settings()``.

    Returns:
        The configured FastAPI application.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.repository is None:
            app.state.repository = SQLiteRepository(settings.db_path, timeout=settings.db_timeout)
        yield

    app = FastAPI(
        title="Todo App API",
        description="Minimal task tracker backed by a single SQLite table.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.repository = repository

    # Configure CORS based on settings (CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(InvalidArgument, invalid_argument_handler)
    app.add_exception_handler(StorageUnavailable, storage_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # PUBLIC_INTERFACE
    @app.get("/", response_model=MessageOut, summary="Health Check", tags=["health"])
    def health_check() -> MessageOut:
        """
        Health check endpoint.

        Returns:
            A JSON object indicating the service is up.
        """
        return MessageOut(message="TodoApp API is running.")

    app.include_router(todos_router.router)
    return app


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todo-api", description="Serve the Todo App JSON API.")
    parser.add_argument("--db-path", help="SQLite database file (overrides TODO_DB_PATH)")
    parser.add_argument("--host", help="Interface to bind (overrides TODO_API_HOST)")
    parser.add_argument("--port", type=int, help="Port to listen on (overrides TODO_API_PORT)")
    parser.add_argument("--log-level", help="Logging level (overrides LOG_LEVEL)")
    return parser


# PUBLIC_INTERFACE
def serve(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``todo-api``: open the store and run uvicorn until interrupted."""
    import uvicorn

    args = _build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level)

    db_path = args.db_path or settings.db_path
    host = args.host or settings.api_host
    port = args.port or settings.api_port

    try:
        repository = SQLiteRepository(db_path, timeout=settings.db_timeout)
    except StorageUnavailable as exc:
        logger.error("Cannot open task store: %s", exc)
        return 1

    app = create_app(repository, settings)
    logger.info("Starting Todo App API on http://%s:%s/ ... Press Ctrl+C to stop.", host, port)
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(serve())

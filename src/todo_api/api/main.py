"""FastAPI app entrypoint for todo-api.

Beginner terms used in this file:
- Route/path operation: a function exposed over HTTP (for example, GET /todos).
- response_model: Pydantic model used to validate/shape API responses.
- app.state: a place to store shared runtime objects (storage, settings).
- Exception handler: turns a raised exception into an HTTP response.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import FastAPI, HTTPException, Path, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from todo_api.api.schemas import CreateTodoRequest, UpdateTodoRequest
from todo_api.config.settings import Settings, get_settings
from todo_api.storage import MAX_TODO_ID, MIN_TODO_ID, StorageError, TodoStorage, build_storage
from todo_api.storage.models import Todo

logger = logging.getLogger(__name__)

# Ids outside the stored integer range are rejected as malformed (400), never looked up.
TodoId = Annotated[int, Path(ge=MIN_TODO_ID, le=MAX_TODO_ID)]


def _ensure_runtime_state(
    app: FastAPI,
    *,
    settings: Settings,
    storage_override: TodoStorage | None,
) -> None:
    if not hasattr(app.state, "storage"):
        if storage_override is None:
            storage = build_storage(
                settings.database_url,
                max_connections=settings.max_connections,
                timeout_s=settings.connect_timeout_s,
            )
            storage.migrate()
            app.state.storage = storage
        else:
            app.state.storage = storage_override

    if not hasattr(app.state, "settings"):
        app.state.settings = settings


def create_app(
    *,
    storage: TodoStorage | None = None,
    settings_override: Settings | None = None,
) -> FastAPI:
    """Application factory.

    Passing ``storage`` wires an already-migrated backend (tests and the CLI
    do this); otherwise the backend is built from ``settings.database_url``
    during start-up and closed again on shutdown.
    """
    settings = settings_override or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _ensure_runtime_state(app, settings=settings, storage_override=storage)
        yield
        if storage is None:
            app.state.storage.close()

    app_lifespan = lifespan if storage is None else None
    app = FastAPI(title=settings.app_name, lifespan=app_lifespan)

    # Keep test paths reliable when lifespan is not executed by the client.
    if storage is not None:
        _ensure_runtime_state(app, settings=settings, storage_override=storage)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Accept", "Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(StorageError)
    async def storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(
            "todo event=storage_error method=%s path=%s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Storage unavailable"})

    def _get_todo_storage(request: Request) -> TodoStorage:
        if not hasattr(request.app.state, "storage"):
            _ensure_runtime_state(request.app, settings=settings, storage_override=storage)
        return request.app.state.storage

    def _not_found(todo_id: int) -> HTTPException:
        return HTTPException(status_code=404, detail=f"Todo with ID: {todo_id} not found")

    # Probe routes share one handler.
    @app.get("/")
    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "service": settings.app_name}

    @app.get("/todos", response_model=list[Todo])
    def list_todos(request: Request) -> list[Todo]:
        return _get_todo_storage(request).list_todos()

    @app.post("/todos", response_model=Todo, status_code=201)
    def create_todo(payload: CreateTodoRequest, request: Request) -> Todo:
        todo = _get_todo_storage(request).create_todo(payload.task, completed=payload.completed)
        logger.info("todo event=created todo_id=%s", todo.id)
        return todo

    @app.get("/todos/{todo_id}", response_model=Todo)
    def get_todo(todo_id: TodoId, request: Request) -> Todo:
        todo = _get_todo_storage(request).get_todo(todo_id)
        if todo is None:
            raise _not_found(todo_id)
        return todo

    @app.patch("/todos/{todo_id}", response_model=Todo)
    def update_todo(todo_id: TodoId, payload: UpdateTodoRequest, request: Request) -> Todo:
        changes = payload.supplied_fields()
        todo = _get_todo_storage(request).update_todo(todo_id, **changes)
        if todo is None:
            raise _not_found(todo_id)
        logger.info("todo event=updated todo_id=%s fields=%s", todo_id, sorted(changes))
        return todo

    @app.delete("/todos/{todo_id}", status_code=204)
    def delete_todo(todo_id: TodoId, request: Request) -> Response:
        if not _get_todo_storage(request).delete_todo(todo_id):
            raise _not_found(todo_id)
        logger.info("todo event=deleted todo_id=%s", todo_id)
        return Response(status_code=204)

    return app


# Module-level app for `uvicorn todo_api.api.main:app`.
app = create_app()

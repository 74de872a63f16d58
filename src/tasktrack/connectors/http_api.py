# src/tasktrack/connectors/http_api.py

"""FastAPI application exposing the task core as JSON over HTTP.

Routes (all under /api):
- health
- tasks: list/filter/search, stats, categories, CRUD
- tasks/timer: start/stop per task, active timer, stop-all, stats

Handlers are plain `def` functions, so FastAPI runs them in its threadpool;
the store lock keeps each load-modify-save cycle atomic.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import StorageError, TaskNotFoundError, TimerConflictError, ValidationError
from ..core.state import AppState
from ..tasks.task_query import TaskFilter, list_tasks

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# REQUEST MODELS
# ═══════════════════════════════════════════════════════════════

# Fields are untyped; Task.validate() does all type and range checks.


class CreateTaskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Any = None
    description: Any = None
    priority: Any = None
    category: Any = None
    due_date: Any = Field(None, alias="dueDate")


class UpdateTaskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Any = None
    description: Any = None
    completed: Any = None
    priority: Any = None
    category: Any = None
    due_date: Any = Field(None, alias="dueDate")


# ═══════════════════════════════════════════════════════════════
# ROUTES
# ═══════════════════════════════════════════════════════════════


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content={"success": False, "error": "Task not found"})


def _build_router(state: AppState) -> APIRouter:
    router = APIRouter(prefix="/api")

    @router.get("/health")
    def health() -> dict[str, Any]:
        return {
            "success": True,
            "message": f"{getattr(state.settings, 'app_name', 'tasktrack')} API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # ---- listing / aggregates (declared before /tasks/{task_id}) ----

    @router.get("/tasks")
    def get_tasks(
        status: str = "all",
        priority: str = "all",
        category: str = "all",
        search: str | None = None,
    ) -> dict[str, Any]:
        flt = TaskFilter(status=status, priority=priority, category=category, search=search)
        tasks = list_tasks(state.repo, flt)
        return {"success": True, "data": [t.to_dict() for t in tasks]}

    @router.get("/tasks/stats")
    def get_stats() -> dict[str, Any]:
        return {"success": True, "data": state.repo.get_statistics().to_dict()}

    @router.get("/tasks/categories")
    def get_categories() -> dict[str, Any]:
        return {"success": True, "data": sorted(state.repo.get_categories())}

    # ---- timer (collection-wide) ----

    @router.get("/tasks/timer/active")
    def get_active_timer() -> dict[str, Any]:
        active = state.timer.get_active()
        return {"success": True, "activeTimer": active.to_dict() if active else None}

    @router.post("/tasks/timer/stop-all")
    def stop_all_timers() -> dict[str, Any]:
        stopped = state.timer.stop_all()
        return {
            "success": True,
            "message": f"Stopped {len(stopped)} active timer(s)",
            "stoppedTasks": [{"id": t.id, "title": t.to_dict()["title"]} for t in stopped],
        }

    @router.get("/tasks/timer/stats")
    def get_timer_stats() -> dict[str, Any]:
        return {"success": True, "stats": state.timer.get_stats().to_dict()}

    # ---- single task ----

    @router.get("/tasks/{task_id}", response_model=None)
    def get_task(task_id: str) -> dict[str, Any] | JSONResponse:
        task = state.repo.find_by_id(task_id)
        if task is None:
            return _not_found()
        return {"success": True, "data": task.to_dict()}

    @router.post("/tasks", status_code=201)
    def create_task(body: CreateTaskRequest) -> dict[str, Any]:
        task = state.repo.create(body.model_dump(exclude_unset=True))
        return {"success": True, "data": task.to_dict(), "message": "Task created successfully"}

    @router.put("/tasks/{task_id}")
    def update_task(task_id: str, body: UpdateTaskRequest) -> dict[str, Any]:
        task = state.repo.update(task_id, body.model_dump(exclude_unset=True))
        return {"success": True, "data": task.to_dict(), "message": "Task updated successfully"}

    @router.delete("/tasks/{task_id}", response_model=None)
    def delete_task(task_id: str) -> dict[str, Any] | JSONResponse:
        if not state.repo.delete(task_id):
            return _not_found()
        return {"success": True, "message": "Task deleted successfully"}

    @router.post("/tasks/{task_id}/timer/start")
    def start_timer(task_id: str) -> dict[str, Any]:
        task = state.timer.start(task_id)
        return {"success": True, "message": "Time tracking started", "task": task.to_dict()}

    @router.post("/tasks/{task_id}/timer/stop")
    def stop_timer(task_id: str) -> dict[str, Any]:
        task = state.timer.stop(task_id)
        return {"success": True, "message": "Time tracking stopped", "task": task.to_dict()}

    return router


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def on_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Validation failed", "details": exc.errors},
        )

    @app.exception_handler(TaskNotFoundError)
    async def on_not_found(request: Request, exc: TaskNotFoundError) -> JSONResponse:
        return _not_found()

    @app.exception_handler(TimerConflictError)
    async def on_timer_conflict(request: Request, exc: TimerConflictError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    @app.exception_handler(StorageError)
    async def on_storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})

    @app.exception_handler(Exception)
    async def on_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


def create_app(state: AppState, *, static_dir: Path | None = None) -> FastAPI:
    """Create the FastAPI application bound to an AppState."""
    app = FastAPI(title="tasktrack", description="Personal task list with time tracking", version="0.1.0")

    origins = list(getattr(state.settings, "cors_origins", None) or [])
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(_build_router(state))
    _install_error_handlers(app)

    if static_dir is None:
        static_dir = getattr(state.settings, "static_dir", None)
    if static_dir is not None and (Path(static_dir) / "index.html").exists():
        _mount_static(app, Path(static_dir))

    return app


def _mount_static(app: FastAPI, static_dir: Path) -> None:
    """Serve the browser frontend next to the API."""

    @app.get("/")
    async def serve_index() -> FileResponse:
        return FileResponse(static_dir / "index.html")

    app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")


# ═══════════════════════════════════════════════════════════════
# BACKGROUND RUNNER
# ═══════════════════════════════════════════════════════════════


@dataclass
class HttpBackgroundRunner:
    thread: threading.Thread
    server: uvicorn.Server

    def stop(self) -> None:
        self.server.should_exit = True

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_http_in_background(state: AppState) -> HttpBackgroundRunner | None:
    """
    Start the HTTP API in a background thread (so the console REPL can run in parallel).

    uvicorn installs signal handlers only on the main thread; here the main thread
    owns SIGINT/SIGTERM and stops the server via should_exit.
    """
    settings = state.settings
    if not getattr(settings, "http_enabled", True):
        logger.info("HTTP connector disabled, not starting.")
        return None

    app = create_app(state)
    config = uvicorn.Config(
        app,
        host=getattr(settings, "http_host", "127.0.0.1"),
        port=int(getattr(settings, "http_port", 3000)),
        log_config=None,
    )
    server = uvicorn.Server(config)

    t = threading.Thread(target=server.run, name="tasktrack-http", daemon=True)
    t.start()

    logger.info("HTTP API listening on http://%s:%s/api", config.host, config.port)
    return HttpBackgroundRunner(thread=t, server=server)

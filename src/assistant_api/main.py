"""FastAPI application wiring for the task assistant service.

Shared runtime objects live on ``app.state``:
- store: SqliteInteractionLogStore (one handle per app, closed on shutdown)
- processor: the task processor strategy chosen at startup
- settings: resolved Settings

Every endpoint answers with the envelope ``{success, data, error, message}``.
"""

from __future__ import annotations

import logging
import re
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .app.config import Settings, get_settings
from .app.logging_setup import configure_logging
from .app.models import (
    ApiResponse,
    DeleteAllResult,
    HealthCheck,
    InteractionLog,
    InteractionStats,
    TaskRequest,
    TaskResponse,
    utc_timestamp,
)
from .app.processor import TaskProcessor, build_task_processor
from .app.storage import SqliteInteractionLogStore
from .app.ui import render_homepage

logger = logging.getLogger(__name__)

DEFAULT_LOG_LIMIT = 50
MAX_LOG_LIMIT = 100
MAX_LOG_ID_LENGTH = 128
TASK_VALIDATION_ERROR = "Task is required and must be a non-empty string"
_LEADING_INT = re.compile(r"\s*[+-]?\d+")


def _ensure_runtime_state(
    app: FastAPI,
    *,
    settings: Settings,
    store_override: SqliteInteractionLogStore | None,
    processor_override: TaskProcessor | None,
) -> None:
    if not hasattr(app.state, "settings"):
        app.state.settings = settings

    if not hasattr(app.state, "store"):
        app.state.store = store_override or SqliteInteractionLogStore(settings.database_path)
        app.state.owns_store = store_override is None
        logger.info("app event=store_ready path=%s", app.state.store.database_path)

    if not hasattr(app.state, "processor"):
        app.state.processor = processor_override or build_task_processor(settings)


def create_app(
    *,
    settings_override: Settings | None = None,
    store: SqliteInteractionLogStore | None = None,
    processor: TaskProcessor | None = None,
) -> FastAPI:
    """Application factory.

    Injected collaborators are used as-is (tests). Anything missing is built
    from settings when the app starts.
    """
    settings = settings_override or get_settings()

    def _ensure(app: FastAPI) -> None:
        _ensure_runtime_state(
            app,
            settings=settings,
            store_override=store,
            processor_override=processor,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _ensure(app)
        yield
        if getattr(app.state, "owns_store", False):
            app.state.store.close()
            logger.info("app event=store_closed")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Process free-text tasks and keep a durable log of every interaction.",
        lifespan=lifespan,
    )
    app.state.started_at = time.monotonic()

    # Keep test paths reliable when lifespan is not executed by the client.
    if store is not None and processor is not None:
        _ensure(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "http event=request method=%s path=%s status=%s elapsed_ms=%.1f",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    _register_exception_handlers(app)

    def _store(request: Request) -> SqliteInteractionLogStore:
        if not hasattr(request.app.state, "store"):
            _ensure(request.app)
        return request.app.state.store

    def _processor(request: Request) -> TaskProcessor:
        if not hasattr(request.app.state, "processor"):
            _ensure(request.app)
        return request.app.state.processor

    @app.get("/", response_class=HTMLResponse)
    def home() -> str:
        return render_homepage(app_name=settings.app_name, version=settings.app_version)

    @app.get("/health", response_model=ApiResponse[HealthCheck])
    def health(request: Request, response: Response) -> ApiResponse[HealthCheck]:
        try:
            connected = _store(request).ping()
        except Exception:  # noqa: BLE001
            logger.exception("health event=store_unavailable")
            connected = False

        check = HealthCheck(
            status="healthy" if connected else "unhealthy",
            timestamp=utc_timestamp(),
            uptime=int(time.monotonic() - request.app.state.started_at),
            version=settings.app_version,
            database="connected" if connected else "disconnected",
        )
        if not connected:
            response.status_code = 503
        return ApiResponse[HealthCheck](
            success=connected,
            data=check,
            message="Service is healthy" if connected else "Service is unhealthy",
        )

    @app.post("/tasks/process", response_model=ApiResponse[TaskResponse])
    def process_task(payload: TaskRequest, request: Request) -> ApiResponse[TaskResponse]:
        try:
            result = _processor(request).process(payload)
            _store(request).save(
                InteractionLog.from_task_response(
                    result,
                    user_agent=request.headers.get("user-agent"),
                    ip_address=request.client.host if request.client else None,
                )
            )
        except Exception as exc:
            logger.exception("task_process event=failed task=%r", payload.task[:80])
            raise HTTPException(
                status_code=500,
                detail="Internal server error while processing task",
            ) from exc

        logger.info(
            "task_process event=completed task_id=%s status=%s processing_ms=%s",
            result.id,
            result.status,
            result.processing_time,
        )
        return ApiResponse[TaskResponse](data=result, message="Task processed successfully")

    @app.get("/tasks/logs", response_model=ApiResponse[list[InteractionLog]])
    def list_logs(
        request: Request,
        limit: str | None = Query(None, description="Page size, at most 100 (default 50)"),
        offset: str | None = Query(None, description="Rows to skip (default 0)"),
    ) -> ApiResponse[list[InteractionLog]]:
        page_limit, page_offset = _clamp_page(limit, offset)
        try:
            logs = _store(request).list(limit=page_limit, offset=page_offset)
        except Exception as exc:
            logger.exception("logs event=list_failed")
            raise HTTPException(
                status_code=500,
                detail="Internal server error while retrieving logs",
            ) from exc
        return ApiResponse[list[InteractionLog]](
            data=logs,
            message=f"Retrieved {len(logs)} interaction logs",
        )

    @app.get("/tasks/logs/{log_id}", response_model=ApiResponse[InteractionLog])
    def get_log(log_id: str, request: Request) -> ApiResponse[InteractionLog]:
        log = _store(request).get_by_id(log_id)
        if log is None:
            raise HTTPException(status_code=404, detail="Interaction log not found")
        return ApiResponse[InteractionLog](
            data=log,
            message="Interaction log retrieved successfully",
        )

    @app.delete("/tasks/logs/{log_id}", response_model=ApiResponse[dict[str, str]])
    def delete_log(log_id: str, request: Request) -> ApiResponse[dict[str, str]]:
        if not log_id.strip() or len(log_id) > MAX_LOG_ID_LENGTH:
            raise HTTPException(status_code=400, detail="Valid ID is required")
        try:
            deleted = _store(request).delete_by_id(log_id)
        except Exception as exc:
            logger.exception("logs event=delete_failed id=%s", log_id)
            raise HTTPException(
                status_code=500,
                detail="Internal server error while deleting log",
            ) from exc
        if not deleted:
            raise HTTPException(status_code=404, detail="Interaction log not found")
        logger.info("logs event=deleted id=%s", log_id)
        return ApiResponse[dict[str, str]](
            data={"id": log_id},
            message="Interaction log deleted successfully",
        )

    @app.delete("/tasks/logs", response_model=ApiResponse[DeleteAllResult])
    def delete_all_logs(request: Request) -> ApiResponse[DeleteAllResult]:
        try:
            deleted_count = _store(request).delete_all()
        except Exception as exc:
            logger.exception("logs event=delete_all_failed")
            raise HTTPException(
                status_code=500,
                detail="Internal server error while deleting logs",
            ) from exc
        logger.info("logs event=deleted_all count=%s", deleted_count)
        return ApiResponse[DeleteAllResult](
            data=DeleteAllResult(deleted_count=deleted_count),
            message=f"Successfully deleted {deleted_count} interaction logs",
        )

    @app.get("/tasks/stats", response_model=ApiResponse[InteractionStats])
    def get_stats(request: Request) -> ApiResponse[InteractionStats]:
        try:
            stats = _store(request).stats()
        except Exception as exc:
            logger.exception("stats event=failed")
            raise HTTPException(
                status_code=500,
                detail="Internal server error while retrieving statistics",
            ) from exc
        return ApiResponse[InteractionStats](
            data=stats,
            message="Statistics retrieved successfully",
        )

    return app


def _leading_int(raw: str | None) -> int | None:
    """Parse the leading integer of a query value ("20", " 7px"); None when absent."""
    if raw is None:
        return None
    match = _LEADING_INT.match(raw)
    return int(match.group()) if match else None


def _clamp_page(limit: str | None, offset: str | None) -> tuple[int, int]:
    """Apply the listing defaults: limit in [1, 100] (default 50), offset >= 0.

    Unparseable values fall back to the defaults instead of failing the request.
    """
    parsed_limit = _leading_int(limit)
    parsed_offset = _leading_int(offset)
    page_limit = DEFAULT_LOG_LIMIT
    if parsed_limit is not None and parsed_limit > 0:
        page_limit = parsed_limit
    page_offset = parsed_offset if parsed_offset is not None and parsed_offset > 0 else 0
    return min(page_limit, MAX_LOG_LIMIT), page_offset


def _error_body(error: str, message: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": error}
    if message is not None:
        body["message"] = message
    return body


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Starlette raises "Not Found" itself when no route matches.
        if exc.status_code == 404 and exc.detail == "Not Found":
            return JSONResponse(
                status_code=404,
                content=_error_body(
                    "Endpoint not found",
                    f"The endpoint {request.method} {request.url.path} does not exist",
                ),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if any("task" in error.get("loc", ()) for error in errors):
            return JSONResponse(status_code=400, content=_error_body(TASK_VALIDATION_ERROR))
        details = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
            for error in errors
        )
        return JSONResponse(
            status_code=400,
            content=_error_body("Invalid request", details or None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "http event=unhandled_error method=%s path=%s", request.method, request.url.path
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal server error", "Something went wrong"),
        )


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(
        "app event=starting name=%s version=%s host=%s port=%s",
        settings.app_name,
        settings.app_version,
        settings.host,
        settings.port,
    )
    uvicorn.run(
        "assistant_api.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


# Module-level app for `uvicorn assistant_api.main:app`.
app = create_app()


if __name__ == "__main__":
    run()

"""Application factory and server runner for ``anythingai serve``.

The lifespan builds the long-lived services once (store, request queue,
generation client, usage log) and keeps them on ``app.state``.  Every error
leaves the API as ``{"error": true, "code": ..., "message": ...}``.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from anythingai import __version__
from anythingai.config import DEFAULT_TOKEN_SECRET, Settings
from anythingai.errors import ChatError, ErrorKind, error_body
from anythingai.llm.client import resolve_llm_client
from anythingai.llm.generation import GenerationClient
from anythingai.llm.usage import UsageLogger
from anythingai.queue import RequestQueue
from anythingai.security.rate_limiter import limiter_from_settings, run_periodic_cleanup
from anythingai.store.file_store import FileChatStore
from anythingai.store.protocol import ChatStoreProtocol

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."

_HTTP_STATUS_KINDS: dict[int, ErrorKind] = {
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    409: ErrorKind.CONFLICT,
    429: ErrorKind.RATE_LIMIT_EXCEEDED,
}


def _error_response(
    kind: ErrorKind, message: str, status_code: int, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_body(kind, message), headers=headers)


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ChatError)
    async def _chat_error(request: Request, exc: ChatError):
        return _error_response(exc.kind, exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid request."
        if errors:
            loc = ".".join(str(p) for p in errors[0].get("loc", ()) if p != "body")
            message = f"Invalid request: {loc} {errors[0].get('msg', '')}".strip()
        return _error_response(ErrorKind.BAD_REQUEST, message, 400)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            kind = ErrorKind.SERVER_ERROR
        else:
            kind = _HTTP_STATUS_KINDS.get(exc.status_code, ErrorKind.BAD_REQUEST)
        return _error_response(kind, str(exc.detail), exc.status_code, exc.headers)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(ErrorKind.SERVER_ERROR, "An unexpected error occurred.", 500)


def create_app(
    settings: Settings | None = None,
    *,
    store: ChatStoreProtocol | None = None,
    generation: GenerationClient | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    ``store`` and ``generation`` replace the defaults built from *settings*.
    """
    from anythingai.api import mount_routers

    settings = settings or Settings.load()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.token_secret == DEFAULT_TOKEN_SECRET:
            logger.warning(
                "ANYTHINGAI_TOKEN_SECRET is the development default; set it in production."
            )

        usage_logger = UsageLogger(settings.usage_log_path)
        app.state.settings = settings
        app.state.store = store or FileChatStore(settings.store_path)
        app.state.queue = RequestQueue(settings.queue_concurrency)
        app.state.usage_logger = usage_logger
        app.state.generation = generation or GenerationClient(
            resolve_llm_client(settings), settings, usage_logger=usage_logger
        )
        app.state.relay_tasks = set()
        app.state.cleanup_task = asyncio.create_task(
            run_periodic_cleanup(app.state.rate_limiter, settings.rate_limit_cleanup_interval)
        )
        logger.info(
            "Anything AI API ready (model=%s, concurrency=%d)",
            app.state.generation.model,
            settings.queue_concurrency,
        )
        yield
        app.state.cleanup_task.cancel()
        with suppress(asyncio.CancelledError):
            await app.state.cleanup_task
        pending = list(app.state.relay_tasks)
        if pending:
            logger.info("Waiting for %d in-flight chat streams", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)

    app = FastAPI(
        title="Anything AI API",
        description="Chat relay with live weather, time and web-search context.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.rate_limiter = limiter_from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        if not request.url.path.startswith("/api") or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        rl_info = app.state.rate_limiter.check(client_ip)
        if not rl_info.allowed:
            return _error_response(
                ErrorKind.RATE_LIMIT_EXCEEDED, RATE_LIMIT_MESSAGE, 429, rl_info.headers()
            )
        response = await call_next(request)
        response.headers.update(rl_info.headers())
        return response

    _install_error_handlers(app)
    mount_routers(app)
    return app


def run_server(host: str | None = None, port: int | None = None, dev: bool = False) -> None:
    """Start the API server."""
    import uvicorn

    settings = Settings.load()
    host = host or settings.host
    port = port or settings.port

    print("\n" + "=" * 50)
    print("ANYTHING AI API SERVER")
    print("=" * 50)
    print(f"\nListening on http://{host}:{port}  (model: {settings.anthropic_model})\n")

    kwargs: dict[str, Any] = {"host": host, "port": port}
    if dev:
        import pathlib

        src_dir = str(pathlib.Path(__file__).resolve().parent.parent)
        uvicorn.run(
            "anythingai.api.serve:create_app",
            factory=True,
            reload=True,
            reload_dirs=[src_dir],
            reload_includes=["*.py"],
            log_level="debug",
            **kwargs,
        )
    else:
        uvicorn.run(create_app(settings), **kwargs)

from __future__ import annotations

import logging
import logging.config
import math
import time
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.logging_config import get_logging_config
from api.routes import router as api_router
from api.schemas.common import HealthOut
from services.config import AgentSettings
from services.deploy import DeployController
from services.errors import AgentError
from services.executor import ExecutionRequest, ExecutionResult, run_command
from services.inspection import HostInspector
from services.token_guard import TokenGuard
from services.util import utc_iso

LOGGER = logging.getLogger(__name__)

ENDPOINTS = (
    ("GET", "/health", "no auth"),
    ("GET", "/docker", "protected"),
    ("GET", "/git/latest", "protected"),
    ("GET", "/logs?container=name", "protected"),
    ("POST", "/deploy", "protected"),
    ("GET", "/deploy/status", "protected"),
    ("GET", "/deploy/history", "protected"),
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AgentError)
    async def agent_error(_request: Request, exc: AgentError) -> JSONResponse:
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return _error(404, "Endpoint not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(400, "Invalid request")

    @app.exception_handler(Exception)
    async def unhandled(_request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled error", exc_info=exc)
        return _error(500, "Internal server error")


def create_app(
    settings: Optional[AgentSettings] = None,
    *,
    runner: Callable[[ExecutionRequest], ExecutionResult] = run_command,
) -> FastAPI:
    settings = settings or AgentSettings.from_env()
    app = FastAPI(title="Server Agent", version="0.1.0")

    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.guard = TokenGuard(settings.token)
    app.state.deployer = DeployController(
        settings.deploy_script,
        runner=runner,
        secrets=[settings.token] if settings.token else [],
    )
    app.state.inspector = HostInspector(runner=runner, repo_dir=settings.repo_dir)

    if not settings.token_configured:
        LOGGER.warning(
            "AGENT_TOKEN not set in environment. "
            "Agent will reject all authenticated requests."
        )
    if not settings.deploy_script.is_file():
        LOGGER.warning("Deploy script not found: %s", settings.deploy_script)

    _install_error_handlers(app)

    @app.get("/health", response_model=HealthOut)
    def health() -> HealthOut:
        return HealthOut(
            status="ok",
            uptime_seconds=math.floor(time.monotonic() - app.state.started_at),
            timestamp=utc_iso(),
        )

    app.include_router(api_router)

    return app


app = create_app()


def run() -> None:
    settings = AgentSettings.from_env()
    log_config = get_logging_config(settings.log_level)
    logging.config.dictConfig(log_config)

    LOGGER.info("Server agent starting on %s:%d", settings.host, settings.port)
    for method, path, access in ENDPOINTS:
        LOGGER.info("  %-4s %-24s (%s)", method, path, access)
    LOGGER.info(
        "Authentication: %s",
        "token is set" if settings.token_configured else "AGENT_TOKEN NOT SET",
    )

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=log_config,
    )


if __name__ == "__main__":
    run()

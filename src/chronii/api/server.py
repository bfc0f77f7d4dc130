"""FastAPI application factory and the uvicorn runner behind ``chronii serve``."""

import logging
from typing import Optional

from fastapi import APIRouter, FastAPI  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse  # type: ignore[import-untyped]

from chronii import __version__
from chronii.api.middleware import setup_middleware
from chronii.core.config import ConfigManager
from chronii.core.log import setup_logging

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def _routers() -> list[tuple[APIRouter, str, str]]:
    """(router, path prefix, OpenAPI tag) for every endpoint module."""
    from chronii.api.endpoints import entries, history, projects, system, timer

    return [
        (system.router, "", "system"),
        (timer.router, "/timer", "timer"),
        (entries.router, "/entries", "entries"),
        (history.router, "", "history"),
        (projects.router, "/projects", "projects"),
    ]


def create_app(config: Optional[ConfigManager] = None) -> FastAPI:
    """Build the API application.

    Args:
        config: Settings to serve with; the default config file when None.
            Endpoints read it from ``app.state.config``.

    Example:
        >>> app = create_app(ConfigManager(Path("/tmp/chronii.yml")))
    """
    config = config or ConfigManager()

    app = FastAPI(
        title="Chronii API",
        description="Timers, entries and week/day history for the Chronii time tracker",
        version=__version__,
    )
    app.state.config = config
    setup_middleware(app, config)

    for router, prefix, tag in _routers():
        app.include_router(router, prefix=f"{API_PREFIX}{prefix}", tags=[tag])

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        return JSONResponse(
            {
                "message": "Chronii API",
                "version": __version__,
                "docs": app.docs_url,
                "health": f"{API_PREFIX}/health",
            }
        )

    logger.debug(f"API created over {config.data_dir}")
    return app


def run_server(
    host: str = "localhost",
    port: int = 8000,
    reload: bool = False,
    config: Optional[ConfigManager] = None,
) -> None:
    """Serve the API with uvicorn until interrupted.

    With ``reload`` uvicorn imports the factory by path, so the server reads
    the default config file rather than ``config``.
    """
    import uvicorn  # type: ignore[import-untyped]

    config = config or ConfigManager()
    setup_logging(config.log_level, config.log_file)
    logger.info(f"Serving Chronii API on http://{host}:{port} (data: {config.data_dir})")

    app: object = "chronii.api.server:create_app" if reload else create_app(config)
    uvicorn.run(
        app,
        factory=reload,
        host=host,
        port=port,
        reload=reload,
        log_level=config.get("api.advanced.log_level", "info"),
        access_log=config.get("api.advanced.access_log", True),
    )

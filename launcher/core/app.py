"""FastAPI application factory for the survey launcher."""

from pathlib import Path

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from launcher.core.logging import configure_logging
from launcher.core.settings import LauncherSettings
from launcher.launch.routes import router as launch_router

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

logger = structlog.get_logger(__name__)


def create_app(settings: LauncherSettings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = settings or LauncherSettings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Survey Launcher",
        version="0.1.0",
    )
    app.state.settings = settings

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.include_router(launch_router)

    return app


def main() -> None:
    """Run the launcher with uvicorn on the configured host and port."""
    settings = LauncherSettings()
    app = create_app(settings)
    logger.info("listening", host=settings.listen_host, port=settings.listen_port)
    uvicorn.run(app, host=settings.listen_host, port=settings.listen_port)

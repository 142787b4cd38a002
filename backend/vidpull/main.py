"""
vidpull service: single-job download/convert control over HTTP.
"""

import logging
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .jobs.controller import JobController
from .routes import control
from .settings import RuntimeSettings

logger = logging.getLogger(__name__)


def create_app(
    controller: Optional[JobController] = None,
    settings: Optional[RuntimeSettings] = None,
) -> FastAPI:
    """
    Build the FastAPI app around one JobController.

    The controller is stored on app.state so every request shares the
    same job slot.
    """
    app = FastAPI(title="vidpull", version=__version__)

    if controller is None:
        controller = JobController(settings or RuntimeSettings.from_env())
    app.state.controller = controller

    app.include_router(control.router)

    @app.get("/")
    def root():
        return {"service": "vidpull", "version": __version__}

    logger.info(f"[Startup] Temp dir: {controller.settings.temp_dir}")
    return app

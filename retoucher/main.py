from __future__ import annotations

from fastapi import FastAPI

from retoucher.application.dtos.common_dto import HealthResponse, RootResponse
from retoucher.infrastructure.api.dependencies import get_settings
from retoucher.infrastructure.api.middlewares import add_default_middlewares
from retoucher.infrastructure.api.routes.editing_routes import router as editing_router
from retoucher.infrastructure.api.routes.history_routes import router as history_router
from retoucher.infrastructure.api.routes.mask_routes import router as mask_router
from retoucher.infrastructure.api.routes.proxy_routes import router as proxy_router
from retoucher.infrastructure.api.routes.session_routes import router as session_router
from retoucher.infrastructure.config import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title="Retoucher",
        version="0.1.0",
        description="""
        ## Retoucher API

        Iterative AI photo editing with a reversible, linear edit history.

        ### Features
        - **Sessions**: in-memory editing sessions, one image chain each
        - **Masks**: paint an edit mask and a preserve mask to scope generative edits
        - **Editing**: masked retouch, global filters and adjustments, pixel-exact crops
        - **History**: undo, redo, reset to original, and a ledger of the prompts used
        - **Proxy**: forwards generation requests upstream with a server-held key

        ### Error Responses
        - **400 Bad Request**: Local validation failed; nothing was changed
        - **404 Not Found**: Session or resource does not exist
        - **409 Conflict**: A request is already running, or its result went stale
        - **422 Unprocessable Entity**: Request format error, or the model's policy blocked the prompt
        - **502 Bad Gateway**: The generation service failed or returned no image
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    add_default_middlewares(app, settings.env)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the Retoucher API",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "retoucher", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running and healthy",
    )
    def health():
        """Check API health status."""
        return {"status": "healthy"}

    app.include_router(session_router)
    app.include_router(mask_router)
    app.include_router(editing_router)
    app.include_router(history_router)
    app.include_router(proxy_router)
    return app


app = create_app()

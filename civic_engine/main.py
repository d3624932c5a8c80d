"""Main FastAPI application entry point."""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from civic_engine import config
from civic_engine.api.routes import router
from civic_engine.logging_config import setup_logging
from civic_engine.runtime import CivicRuntime, build_runtime

logger = logging.getLogger(__name__)


def create_app(runtime: Optional[CivicRuntime] = None) -> FastAPI:
    """Build the app around one runtime; a fresh runtime is created when none is given."""
    app = FastAPI(
        title=config.APP_NAME,
        description="Municipal issue reporting: issue lifecycle, indexing, points, badges and notifications.",
        version="0.1.0"
    )

    app.state.runtime = runtime or build_runtime()

    # Enable CORS for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix=config.API_PREFIX, tags=["Issues"])

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": config.APP_NAME}

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from segment_service.api.errors import register_exception_handlers
from segment_service.api.router import router as segment_router
from segment_service.core.dependencies import initialize_app_dependencies
from segment_service.core.dependency_container import DependencyContainer
from segment_service.core.logging import setup_logging
from segment_service.db.database_async import close_db_engine
from segment_service.settings import Settings

setup_logging()


logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the lifespan of the application resources.

    Creates the database engine and dependency container on startup and
    disposes of the engine's connection pool on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: After startup procedures are complete, allowing the application to run.

    Raises:
        RuntimeError: If critical application dependencies fail to initialize during startup.
    """
    logger.info("Application startup sequence initiated.")

    app_settings = Settings()
    logger.info("Settings loaded.")

    initialized_dependencies: DependencyContainer | None = None
    try:
        initialized_dependencies = await initialize_app_dependencies(app_settings)
        app.state.dependencies = initialized_dependencies
        logger.info("Core application dependencies initialized and stored in app state.")
    except Exception as init_exc:
        # initialize_app_dependencies disposes of any engine it created before raising.
        logger.critical(f"Fatal error during application dependency initialization: {init_exc}", exc_info=True)
        raise RuntimeError(
            f"Application startup failed due to dependency initialization error: {init_exc}"
        ) from init_exc

    yield  # Application runs here

    logger.info("Application shutdown sequence initiated.")

    await close_db_engine(initialized_dependencies.db_engine)
    logger.info("Main DB Engine closed.")

    logger.info("Application shutdown complete.")


app = FastAPI(
    title="Segment Service",
    description="Manages user segments and reports the history of segment membership changes.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/health", tags=["General"], status_code=200)
async def health_check():
    """Perform a basic health check.

    Returns:
        A dictionary indicating the application status.
    """
    return {"status": "ok"}


app.include_router(segment_router, prefix=API_PREFIX)


# --- Run with Uvicorn (for local development) --- #

if __name__ == "__main__":
    import uvicorn

    dev_settings = Settings()
    uvicorn.run(
        "segment_service.main:app",
        host=dev_settings.get_app_host(),
        port=dev_settings.get_app_port(),
        reload=dev_settings.get_app_reload(),
        log_level=dev_settings.get_log_level().lower(),
    )

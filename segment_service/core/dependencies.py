import logging

from fastapi import Depends, HTTPException, Request, status

from segment_service.core.dependency_container import DependencyContainer
from segment_service.db.database_async import close_db_engine, create_db_engine, create_session_factory
from segment_service.segments.service import SegmentService
from segment_service.settings import Settings

logger = logging.getLogger(__name__)

# --- Dependency Providers --- #


def get_dependencies(request: Request) -> DependencyContainer:
    """Dependency to retrieve the DependencyContainer from application state."""
    dependencies: DependencyContainer | None = getattr(request.app.state, "dependencies", None)
    if dependencies is None:
        logger.critical(
            "DependencyContainer not found in application state. "
            "This indicates a critical setup error in the application lifespan."
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error: Application dependencies not initialized.",
        )
    return dependencies


def get_segment_service(
    dependencies: DependencyContainer = Depends(get_dependencies),
) -> SegmentService:
    """FastAPI dependency providing a SegmentService wired to the container's session factory."""
    if dependencies.db_session_factory is None:
        # This shouldn't happen if the container is initialized correctly
        logger.critical("DB Session Factory not found in DependencyContainer.")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error: Database session factory not available.",
        )
    return dependencies.create_segment_service()


async def initialize_app_dependencies(app_settings: Settings) -> DependencyContainer:
    """Initialize and configure core application dependencies.

    Creates the database engine and session factory and wraps them in a
    DependencyContainer.

    Args:
        app_settings: The application settings instance.

    Returns:
        A DependencyContainer instance populated with initialized dependencies.

    Raises:
        RuntimeError: If initialization of the database engine fails.
    """
    logger.info("Initializing core application dependencies...")

    try:
        logger.info("Attempting to create main DB engine and session factory for DependencyContainer...")
        db_engine = await create_db_engine(app_settings)
        db_session_factory = create_session_factory(db_engine)
        logger.info("Main DB engine and session factory created for DependencyContainer.")
    except Exception as db_exc:
        logger.critical(f"Failed to initialize database for DependencyContainer due to exception: {db_exc}")
        raise RuntimeError(f"Failed to initialize database for DependencyContainer: {db_exc}") from db_exc

    try:
        dependencies = DependencyContainer(
            settings=app_settings,
            db_session_factory=db_session_factory,
            db_engine=db_engine,
        )
        logger.info("Dependency Container created successfully.")
        return dependencies
    except Exception as container_exc:
        logger.critical(f"Failed to create Dependency Container instance: {container_exc}", exc_info=True)
        await close_db_engine(db_engine)
        raise RuntimeError(f"Failed to create Dependency Container instance: {container_exc}") from container_exc

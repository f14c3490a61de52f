"""
Main entry point for running the segment service.
"""

import uvicorn

from segment_service.settings import Settings


def main():
    """Run the HTTP server."""
    settings = Settings()
    uvicorn.run(
        "segment_service.main:app",
        host=settings.get_app_host(),
        port=settings.get_app_port(),
        reload=settings.get_app_reload(),
        log_level=settings.get_log_level().lower(),
    )


if __name__ == "__main__":
    main()

import os
from typing import Optional

from dotenv import load_dotenv

# Load .env file variables into environment
load_dotenv(verbose=True)


class Settings:
    """Application configuration settings loaded from environment variables."""

    def get_database_url(self) -> Optional[str]:
        """Returns the primary DATABASE_URL, if set."""
        return os.getenv("DATABASE_URL")

    # --- Database settings Getters using os.getenv ---
    def get_postgres_user(self) -> str | None:
        return os.getenv("DB_USER")

    def get_postgres_password(self) -> str | None:
        return os.getenv("DB_PASSWORD")

    def get_postgres_db(self) -> str | None:
        return os.getenv("DB_NAME")

    def get_postgres_host(self) -> str | None:
        return os.getenv("DB_HOST")

    def get_postgres_port(self) -> int | None:
        """Returns the PostgreSQL port as an integer, or None if not set."""
        port_str = os.getenv("DB_PORT")
        if port_str is None:
            return None
        try:
            return int(port_str)
        except ValueError:
            raise ValueError("DB_PORT environment variable must be an integer.")

    # --- DB Pool Size Getters ---
    def get_main_db_pool_min_size(self) -> int:
        """Returns the minimum pool size for the main DB."""
        try:
            return int(os.getenv("MAIN_DB_POOL_MIN_SIZE", "1"))
        except ValueError:
            raise ValueError("MAIN_DB_POOL_MIN_SIZE environment variable must be an integer.")

    def get_main_db_pool_max_size(self) -> int:
        """Returns the maximum pool size for the main DB."""
        try:
            return int(os.getenv("MAIN_DB_POOL_MAX_SIZE", "10"))
        except ValueError:
            raise ValueError("MAIN_DB_POOL_MAX_SIZE environment variable must be an integer.")

    def get_db_isolation_level(self) -> str:
        """Returns the transaction isolation level used for PostgreSQL connections."""
        return os.getenv("DB_ISOLATION_LEVEL", "SERIALIZABLE").upper()

    # --- Segment service behaviour ---
    def get_request_timeout_seconds(self) -> float:
        """Returns the upper bound for a single unit of work, in seconds."""
        try:
            return float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
        except ValueError:
            raise ValueError("REQUEST_TIMEOUT_SECONDS environment variable must be a number.")

    def get_report_tz_offset_hours(self) -> int:
        """Returns the fixed UTC offset (in hours) used to display report timestamps."""
        try:
            return int(os.getenv("REPORT_TZ_OFFSET_HOURS", "3"))
        except ValueError:
            raise ValueError("REPORT_TZ_OFFSET_HOURS environment variable must be an integer.")

    # --- Logging Settings ---
    def get_log_level(self, default: str = "INFO") -> str:
        """Gets the configured log level, defaulting if not set."""
        return os.getenv("LOG_LEVEL", default).upper()

    # --- Server Settings ---
    def get_app_host(self) -> str:
        return os.getenv("HOST", "0.0.0.0")  # nosec B104

    def get_app_port(self) -> int:
        """Returns the HTTP port as an integer."""
        port_str = os.getenv("PORT", "3000")
        try:
            return int(port_str)
        except ValueError:
            raise ValueError(f"Invalid PORT value: {port_str}")

    def get_app_reload(self) -> bool:
        return os.getenv("RELOAD", "false").lower() == "true"

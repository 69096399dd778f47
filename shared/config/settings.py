"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings with defaults for development."""

    model_config = SettingsConfigDict(
        env_prefix="REPOKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./repokit.db"
    # Emit every SQL statement through the sqlalchemy.engine logger
    sql_echo: bool = False

    # Pagination defaults, mirrored by Limits
    default_per_page: int = 15
    max_per_page: int = 500
    page_name: str = "page"

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    def validate_production_settings(self) -> list[str]:
        """
        Validate settings that must not keep development values in production.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.environment == "production":
            if self.database_url.startswith("sqlite"):
                errors.append("DATABASE_URL must point to a server database in production")
            if self.debug:
                errors.append("DEBUG must be False in production")
            if self.sql_echo:
                errors.append("SQL_ECHO must be False in production")

        if self.default_per_page < 1:
            errors.append("DEFAULT_PER_PAGE must be at least 1")
        if self.max_per_page < self.default_per_page:
            errors.append("MAX_PER_PAGE must not be lower than DEFAULT_PER_PAGE")
        if self.log_level.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            errors.append("LOG_LEVEL must be a standard logging level name")

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export
settings = get_settings()

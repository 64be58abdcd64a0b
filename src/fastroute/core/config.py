"""
Configuration settings for the FastRoute application.
"""

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import ValidationError as PydanticValidationError
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fastroute.core.errors import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Attributes:
        default_grid_size: Grid size used when a request does not give one
        max_grid_size: Largest grid the API will generate
        default_seed: Seed for graph generation when none is supplied
        slow_search_threshold_ms: Searches slower than this are logged at INFO
        log_level: Explicit log level (defaults by environment when unset)
        log_file: Optional rotating log file path
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="FASTROUTE_",
    )

    # Graph generation
    default_grid_size: int = 8
    max_grid_size: int = 64
    default_seed: Optional[int] = None

    # Routing
    slow_search_threshold_ms: float = 50.0

    # API settings
    api_v1_prefix: str = "/api/v1"
    port: int = 8000

    # CORS settings
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Logging
    log_level: Optional[str] = None
    log_file: Optional[Path] = None

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    @model_validator(mode="after")
    def check_grid_bounds(self) -> "Settings":
        """Ensure the default grid fits inside the allowed range."""
        if self.max_grid_size < 1:
            raise ValueError("max_grid_size must be at least 1")
        if not 1 <= self.default_grid_size <= self.max_grid_size:
            raise ValueError(
                f"default_grid_size must be between 1 and {self.max_grid_size}, "
                f"got {self.default_grid_size}"
            )
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def load_settings(**overrides: Any) -> Settings:
    """
    Build settings from the environment plus explicit overrides.

    Args:
        **overrides: Field values that take precedence over the environment

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If any value fails validation
    """
    try:
        return Settings(**overrides)
    except PydanticValidationError as exc:
        errors = exc.errors()
        first = errors[0] if errors else {}
        config_key = ".".join(str(loc) for loc in first.get("loc", ())) or None
        raise ConfigurationError(
            f"Invalid FastRoute settings: {first.get('msg', str(exc))}",
            config_key=config_key,
            details={"error_count": exc.error_count()},
        ) from exc


# Global settings instance
settings = load_settings()

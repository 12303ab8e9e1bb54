"""Runtime configuration — env-driven via pydantic-settings.

Reads ``FLIPWIRE_*`` environment variables and an optional ``.env`` file
in the working directory.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class FlipConfig(BaseSettings):
    """flipwire configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export FLIPWIRE_LOG_LEVEL=DEBUG
        export FLIPWIRE_BINDINGS_PATH=/etc/app/bindings.json
        export FLIPWIRE_MATCH_PARAMETER_TYPES=false

    Or via .env file::

        FLIPWIRE_ENVIRONMENT=production
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FLIPWIRE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Explicit source -> alternate bindings, loaded once at startup
    bindings_path: Path = Path(".flipwire/bindings.json")

    # Redirect target matching.  When False, a method on the alternate
    # matches by name and arity only.
    match_parameter_types: bool = True

    # Validate every loaded binding before handing the table out
    validate_on_startup: bool = True

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton, import as `from flipwire.config import config`
config = FlipConfig()

"""Configuration management for the Library Lending Engine.

Settings are read from the environment (``LENDING_ENGINE_*``) or a local
``.env`` file and validated with Pydantic v2:

1. Lending policy - the fixed loan period used for every return deadline
2. Persistence - database location and SQLite lock handling
3. Tool surface - server identification and transport
4. Logging - level and debug switch
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineConfig(BaseSettings):
    """Lending engine configuration.

    The loan period is policy, not mechanism: it is read once from
    configuration and applied to every borrow. Callers cannot negotiate it
    per loan.
    """

    model_config = SettingsConfigDict(
        env_prefix="LENDING_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Server Metadata ===

    server_name: str = Field(
        default="library-lending",
        description="Name announced by the MCP tool server",
        pattern=r"^[a-z0-9-]+$",
    )

    server_version: str = Field(
        default="0.1.0",
        description="Version announced by the MCP tool server",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    transport: str = Field(
        default="stdio",
        description="Transport used when running the tool server",
        pattern=r"^stdio$",
    )

    # === Lending Policy ===

    loan_period_days: int = Field(
        default=14,
        description="Days between the borrow date and the return deadline",
        ge=1,
        le=365,
    )

    # === Database Configuration ===

    database_path: Path = Field(
        default=Path("data/lending.db"),
        description="SQLite database file path",
    )

    sqlite_busy_timeout: float = Field(
        default=15.0,
        description="Seconds a SQLite writer waits for a competing transaction to finish",
        gt=0,
    )

    # === Logging ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    # === Validation Methods ===

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, v: Path) -> Path:
        """Resolve the database path and make sure its directory exists."""
        abs_path = v.absolute()
        abs_path.parent.mkdir(parents=True, exist_ok=True)

        if not abs_path.parent.is_dir():
            raise ValueError(f"Database directory {abs_path.parent} is not accessible")

        return abs_path

    @field_validator("server_name")
    @classmethod
    def validate_server_name(cls, v: str) -> str:
        if len(v) < 3:
            raise ValueError("Server name must be at least 3 characters")
        if len(v) > 50:
            raise ValueError("Server name must not exceed 50 characters")
        return v

    # === Computed Properties ===

    @property
    def is_development(self) -> bool:
        return self.debug or self.log_level == "DEBUG"

    @property
    def server_info(self) -> dict[str, str]:
        return {
            "name": self.server_name,
            "version": self.server_version,
            "transport": self.transport,
        }

    def get_database_url(self) -> str:
        """Get the SQLAlchemy database URL."""
        return f"sqlite:///{self.database_path}"


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: EngineConfig | None = None


def get_config() -> EngineConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = EngineConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration so the next ``get_config`` re-reads the environment."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]

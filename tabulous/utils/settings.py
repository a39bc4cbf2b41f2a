"""Tabulous settings and the module-level settings context."""

import math
from pathlib import Path

from loguru import logger
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "TabulousSettings",
    "get_context",
    "has_context",
    "init_context",
    "reset_context",
]

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class TabulousSettings(BaseSettings):
    """Tabulous settings.

    Values are read from ``TAB_`` prefixed environment variables and from any
    ``.env`` files passed to :func:`init_context`. They provide the defaults
    for options that are not given explicitly to
    :meth:`tabulous.core.context.TableContext.postprocess` and for the
    sentinels returned by :class:`tabulous.core.access.TableAccess` when a
    field does not exist.
    """

    model_config = SettingsConfigDict(
        env_prefix="TAB_", case_sensitive=False, extra="ignore"
    )

    project_dir: Path = Path.cwd()

    # Postprocessing
    enable_wiki: bool = False
    enable_precisions: bool = False
    wiki_field: str = "en.wiki"
    unit_overrides_file: Path | None = None

    # Values returned for fields absent from an existing table
    missing_bool: bool = False
    missing_int: int = -1
    missing_float: float = math.nan
    missing_string: str = ""

    log_level: str = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalise the log level name and reject unknown levels."""
        key = str(value).strip().upper()
        if key == "WARN":
            key = "WARNING"
        if key not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return key

    @field_validator("unit_overrides_file", mode="after")
    @classmethod
    def is_file(cls, value: Path | None) -> Path | None:
        """Check that the unit overrides file exists."""
        if value is None:
            return None
        if not value.is_file():
            raise ValueError(f"{value} is not a valid file")
        return value

    @field_validator("wiki_field", mode="after")
    @classmethod
    def not_empty(cls, value: str) -> str:
        """Check that the wiki field name is not blank."""
        if not value.strip():
            raise ValueError("wiki_field must not be empty")
        return value.strip()


# Module-level singleton pattern for settings management
_context_instance: TabulousSettings | None = None


def init_context(
    project_dir: Path | None = None,
    dot_env: Path | None = None,
) -> TabulousSettings:
    """Initialize the global tabulous settings context.

    Subsequent calls will override the existing context.

    Parameters
    ----------
    project_dir : Path | None, optional
        Project directory. A ``.tabulous/.env`` file inside it is read if present.
    dot_env : Path | None, optional
        Additional .env file, read after (and overriding) the project one.

    Returns
    -------
    TabulousSettings
        The initialized settings instance
    """
    global _context_instance
    env_files: list[Path] = []

    if project_dir and (project_dir / ".tabulous" / ".env").exists():
        env_files.append(project_dir / ".tabulous" / ".env")

    if dot_env is not None:
        if dot_env.exists():
            env_files.append(dot_env)
        else:
            logger.warning(f".env file not found: {dot_env} this is ignored")

    if project_dir:
        _context_instance = TabulousSettings(
            _env_file=tuple(env_files), project_dir=project_dir
        )
    else:
        _context_instance = TabulousSettings(_env_file=tuple(env_files))

    logger.debug("Tabulous context initialized")
    return _context_instance


def get_context() -> TabulousSettings:
    """Get the global tabulous settings context.

    Returns
    -------
    TabulousSettings
        The current settings instance

    Raises
    ------
    RuntimeError
        If the context has not been initialized with init_context()
    """
    if _context_instance is None:
        raise RuntimeError(
            "Tabulous context not initialized. Call init_context() first."
        )
    return _context_instance


def has_context() -> bool:
    """Return True if init_context() has been called."""
    return _context_instance is not None


def reset_context() -> None:
    """Reset the global context (primarily for testing)."""
    global _context_instance
    _context_instance = None
    logger.debug("Tabulous context reset")

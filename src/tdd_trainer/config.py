"""Configuration loading for the trainer CLI."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from tdd_trainer.constants import (
    BUNDLED_CATALOG,
    DEFAULT_EXECUTION_TIMEOUT_S,
    DEFAULT_REPORTS_DIR,
    DEFAULT_WORKSPACE_DIR,
)


@dataclass
class Config:
    """Application configuration loaded from environment."""

    catalog_path: Path
    workspace_dir: Path
    reports_dir: Path
    execution_timeout_s: float
    debug: bool = False


class ConfigError(Exception):
    """Raised when configuration values are invalid."""
    pass


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def debug_enabled() -> bool:
    """True when TDDT_DEBUG asks for DEBUG logging."""
    return _truthy(os.environ.get("TDDT_DEBUG"))


def load_config(require_catalog: bool = True) -> Config:
    """
    Load configuration from environment variables (and .env).

    Args:
        require_catalog: If True, raises ConfigError when the catalog file
                         does not exist.

    Returns:
        Config with defaults applied for unset variables

    Raises:
        ConfigError: If a value is malformed or the catalog is missing
    """
    load_dotenv()

    catalog = os.environ.get("TDDT_CATALOG")
    catalog_path = Path(catalog) if catalog else BUNDLED_CATALOG

    workspace = os.environ.get("TDDT_WORKSPACE")
    reports = os.environ.get("TDDT_REPORTS_DIR")

    raw_timeout = os.environ.get("TDDT_EXECUTION_TIMEOUT_S")
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ConfigError(
                f"TDDT_EXECUTION_TIMEOUT_S must be a number of seconds, got: {raw_timeout!r}"
            )
        if timeout <= 0:
            raise ConfigError("TDDT_EXECUTION_TIMEOUT_S must be positive.")
    else:
        timeout = DEFAULT_EXECUTION_TIMEOUT_S

    if require_catalog and not catalog_path.exists():
        raise ConfigError(
            f"Exercise catalog not found: {catalog_path}\n"
            f"Set TDDT_CATALOG in your environment or .env file."
        )

    return Config(
        catalog_path=catalog_path,
        workspace_dir=Path(workspace) if workspace else DEFAULT_WORKSPACE_DIR,
        reports_dir=Path(reports) if reports else DEFAULT_REPORTS_DIR,
        execution_timeout_s=timeout,
        debug=debug_enabled(),
    )

"""wuctl configuration and settings.

This module provides the configuration model and I/O functions for
wuctl. Configuration is stored as TOML in <config dir>/config.toml;
every setting has a default, so the file is optional.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wuctl.core.paths import get_config_path

logger = logging.getLogger(__name__)


class WuctlConfig(BaseModel):
    """Configuration for wuctl.

    Attributes:
        standalone_timeout_seconds: Upper bound for a single wusa run.
        powershell: PowerShell executable used for the update history query.
        record_history: Append every removal run to the history file.
        confirm_latest_security: Ask again before removing the most
            recent quality update.
    """

    model_config = ConfigDict(extra="forbid")

    standalone_timeout_seconds: Annotated[
        int,
        Field(ge=60, le=3600, description="wusa timeout in seconds (60-3600)"),
    ] = 300
    powershell: Annotated[
        str,
        Field(min_length=1, description="PowerShell executable"),
    ] = "powershell.exe"
    record_history: Annotated[
        bool,
        Field(description="Record removal runs to the history file"),
    ] = True
    confirm_latest_security: Annotated[
        bool,
        Field(description="Require an extra confirmation for the latest security update"),
    ] = True


class WuctlConfigError(Exception):
    """Base exception for configuration errors."""


class WuctlConfigNotFoundError(WuctlConfigError):
    """Raised when the config file is not found."""


class WuctlConfigParseError(WuctlConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> WuctlConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated WuctlConfig object.

    Raises:
        WuctlConfigNotFoundError: If the config file doesn't exist.
        WuctlConfigParseError: If the TOML syntax is invalid.
        WuctlConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise WuctlConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise WuctlConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise WuctlConfigError(f"Failed to read config: {e}") from e

    try:
        return WuctlConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise WuctlConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> WuctlConfig:
    """Load configuration, falling back to defaults when no file exists.

    Raises:
        WuctlConfigParseError: If the TOML syntax is invalid.
        WuctlConfigError: If the content doesn't match the schema.
    """
    try:
        return load_config(path)
    except WuctlConfigNotFoundError:
        logger.debug("No config file, using defaults")
        return WuctlConfig()


def save_config(config: WuctlConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The WuctlConfig object to save.
        path: Path to save the config. If None, uses the default path.

    Returns:
        Path where the config was saved.

    Raises:
        WuctlConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(config.model_dump(), f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise WuctlConfigError(f"Failed to write config: {e}") from e

    return config_path

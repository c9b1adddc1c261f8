"""Per-user path management for wuctl.

This module provides standardized paths for configuration and state
storage. On Windows the standard per-user folders are used; elsewhere
(development machines, CI) the XDG defaults apply.

Defaults:
- Config: %APPDATA%\\wuctl\\ or ~/.config/wuctl/
- State: %LOCALAPPDATA%\\wuctl\\ or ~/.local/state/wuctl/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "wuctl"


def _get_app_dir(env_vars: tuple[str, ...], default_subdir: str) -> Path:
    """Get an application directory respecting environment overrides.

    Args:
        env_vars: Environment variables to try, in order.
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    for env_var in env_vars:
        base = os.environ.get(env_var)
        if base:
            return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to %APPDATA%/wuctl (or XDG_CONFIG_HOME/wuctl, ~/.config/wuctl).
    """
    return _get_app_dir(("APPDATA", "XDG_CONFIG_HOME"), ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the removal history that should persist
    between runs but is not configuration.

    Returns:
        Path to %LOCALAPPDATA%/wuctl (or XDG_STATE_HOME/wuctl, ~/.local/state/wuctl).
    """
    return _get_app_dir(("LOCALAPPDATA", "XDG_STATE_HOME"), ".local/state")


def get_config_path() -> Path:
    """Get the configuration file path.

    Returns:
        Path to <config dir>/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to <config dir>/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def get_history_path() -> Path:
    """Get the history file path.

    Returns:
        Path to <state dir>/history.jsonl.
    """
    return get_state_dir() / "history.jsonl"


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_config_dir(), "config")


def ensure_state_dir() -> Path:
    """Create the state directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_state_dir(), "state")

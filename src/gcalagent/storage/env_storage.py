"""Per-user .env file storage for the Gemini API key."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values, set_key

from gcalagent.config.constants import PREFERRED_ENV_VAR, PRIMARY_ENV_VAR

logger = logging.getLogger(__name__)

APP_DIR_NAME = "gcalagent"


def get_user_config_dir() -> Path:
    """Return a per-user config directory that works across platforms."""
    if sys.platform.startswith("win"):
        base_str = os.environ.get("APPDATA") or os.environ.get("LOCALAPPDATA")
        base = Path(base_str) if base_str else (Path.home() / "AppData" / "Roaming")
        return base / APP_DIR_NAME

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME

    base_str = os.environ.get("XDG_CONFIG_HOME")
    base = Path(base_str) if base_str else (Path.home() / ".config")
    return base / APP_DIR_NAME


def get_env_file_path() -> Path:
    """Get the managed .env path under the user config directory."""
    return get_user_config_dir() / ".env"


def harden_permissions(path: Path, mode: int) -> None:
    """Best-effort: restrict permissions to the current user on POSIX."""
    if os.name != "posix":
        return
    try:
        path.chmod(mode)
    except OSError as e:
        logger.warning("Could not tighten permissions on %s: %s", path, e)


def load_from_env_file(path: Optional[Path] = None) -> Optional[str]:
    """Load the API key from an environment file without touching os.environ.

    Args:
        path: Path to the .env file (default: the per-user file).

    Returns:
        The API key if found, None otherwise.
    """
    path = path or get_env_file_path()
    if not path.exists():
        return None

    values = dotenv_values(path)
    key = values.get(PREFERRED_ENV_VAR) or values.get(PRIMARY_ENV_VAR)
    if not key:
        return None
    return str(key).strip().strip("'\"").strip()


def store_in_env_file(api_key: str, path: Optional[Path] = None) -> Path:
    """Write the API key to the per-user .env with owner-only permissions.

    Returns:
        The path written.
    """
    env_path = path or get_env_file_path()

    env_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    harden_permissions(env_path.parent, 0o700)

    if not env_path.exists():
        try:
            fd = os.open(str(env_path), os.O_CREAT | os.O_WRONLY | os.O_EXCL, 0o600)
            os.close(fd)
        except FileExistsError:
            pass
    harden_permissions(env_path, 0o600)

    set_key(str(env_path), PRIMARY_ENV_VAR, api_key)
    return env_path

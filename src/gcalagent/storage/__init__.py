"""API key storage and management for gcalagent."""

from gcalagent.storage.key_manager import (
    load_api_key,
    save_api_key,
    get_api_key_source,
)
from gcalagent.storage.env_storage import (
    get_user_config_dir,
    get_env_file_path,
)

__all__ = [
    "load_api_key",
    "save_api_key",
    "get_api_key_source",
    "get_user_config_dir",
    "get_env_file_path",
]

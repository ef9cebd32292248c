"""Configuration loading for the uploader.

Public API:

- ClientSettings: Frozen connection settings (base URL, key, TLS toggle)
- load_effective_settings: Resolve CLI options, environment and config file
- load_config_file / save_config_file: Read and write ~/.pfda_config

Example:
    from pfdauploader.config import load_effective_settings

    settings = load_effective_settings(key="abc123")
    print(settings.api_url("create_file"))

"""

from .loader import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_SERVER,
    ClientSettings,
    build_base_url,
    load_config_file,
    load_effective_settings,
    save_config_file,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_SERVER",
    "ClientSettings",
    "build_base_url",
    "load_config_file",
    "load_effective_settings",
    "save_config_file",
]

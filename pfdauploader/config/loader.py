# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Configuration loading for the uploader.

Settings come from three layers, "first wins":

1. **Command-line options** (--key, --server, --skip-verify)
2. **Environment** (PFDA_KEY, optionally loaded from a .env file)
3. **Config file** (~/.pfda_config)

The config file is YAML. Older uploader versions wrote it as a single JSON
object (``{"Key": "..."}``); JSON is valid YAML, so those files load
unchanged. Recognized keys:

  - key (or legacy Key): authorization key
  - server: host name of the precisionFDA instance

Once resolved, settings are frozen in a ClientSettings instance which is
passed explicitly to the HTTP client and the upload pipeline. Nothing is
kept in module globals.

Functions
---------
build_base_url : function
    Turn a server host name into a base URL.
load_config_file : function
    Read the config file (missing file -> empty dict).
save_config_file : function
    Write the config file with owner-only permissions.
load_effective_settings : function
    Resolve all layers into a ClientSettings (main public API).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from pfdauploader.exceptions import InputError

DEFAULT_SERVER = "precision.fda.gov"
DEFAULT_CONFIG_PATH = Path.home() / ".pfda_config"
DEFAULT_TIMEOUT = 60
USER_AGENT = "Asset and File Uploader/2.0 (precisionFDA) python-requests"


@dataclass(frozen=True)
class ClientSettings:
    """Read-only connection settings shared by every HTTP call.

    Attributes:
        base_url: Service root, e.g. "https://precision.fda.gov".
        key: Authorization key sent as "Authorization: Key <key>".
        verify_tls: Verify server certificates. Disable only for test servers.
        timeout: Per-request timeout in seconds.
        user_agent: User-Agent header for every request.
    """

    base_url: str
    key: str
    verify_tls: bool = True
    timeout: int = DEFAULT_TIMEOUT
    user_agent: str = USER_AGENT

    def api_url(self, route: str) -> str:
        """Return the URL of an API route (e.g. "create_file")."""
        return f"{self.base_url}/api/{route.lstrip('/')}"


def build_base_url(server: str | None) -> str:
    """Build the service base URL from a server host name.

    A bare host gets an https:// prefix; a value that already carries a
    scheme is kept as is. Trailing slashes are removed.

    Args:
        server: Host name (e.g. "precision.fda.gov") or full URL. None or
            empty selects the default server.

    Returns:
        Base URL without a trailing slash.
    """
    server = (server or "").strip() or DEFAULT_SERVER
    if "://" not in server:
        server = f"https://{server}"
    return server.rstrip("/")


def load_config_file(path: Path) -> dict[str, Any]:
    """Load the uploader config file.

    Args:
        path: Path to the config file.

    Returns:
        The parsed mapping, or an empty dict if the file does not exist or
            is empty.

    Raises:
        InputError: If the file cannot be read, is not valid YAML/JSON, or
            does not contain a mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as err:
        raise InputError(
            f"Error reading existing config file from path {path}: {err}"
        ) from err

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise InputError(f"Failed to parse config file {path}: {err}") from err

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InputError(
            f"Config file {path} must contain a mapping, got {type(data).__name__}"
        )
    return data


def save_config_file(path: Path, data: dict[str, Any]) -> None:
    """Write the config file, readable by the owner only.

    Args:
        path: Destination path. Parent directories are created.
        data: Mapping to store.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)
    path.chmod(0o600)


def load_effective_settings(
    key: str | None = None,
    server: str | None = None,
    skip_verify: bool = False,
    config_path: Path = DEFAULT_CONFIG_PATH,
    timeout: int = DEFAULT_TIMEOUT,
) -> ClientSettings:
    """Resolve command-line values, environment and config file into settings.

    Args:
        key: Authorization key from the command line, if any.
        server: Server host from the command line, if any.
        skip_verify: Disable TLS certificate verification.
        config_path: Location of the config file.
        timeout: Per-request timeout in seconds.

    Returns:
        Frozen ClientSettings.

    Raises:
        InputError: If no key can be found or the config file is invalid.

    Example:
        ```python
        settings = load_effective_settings(server="precisionfda-staging.dnanexus.com")
        print(settings.base_url)
        ```
    """
    from pfdauploader.auth import CredentialManager

    file_config = load_config_file(config_path)
    credentials = CredentialManager(config_path=config_path, file_config=file_config)
    resolved_key = credentials.get_key(key)

    return ClientSettings(
        base_url=build_base_url(server or file_config.get("server")),
        key=resolved_key,
        verify_tls=not skip_verify,
        timeout=timeout,
    )

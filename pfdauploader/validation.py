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

"""Input validation for uploader commands.

These checks run before any network call so that a typo never leaves a
half-created entity on the service. Each function raises InputError with a
message telling the user which option to fix.

Validation Checks:

- Upload file exists and is not a directory
- Asset root is a directory
- Asset name ends with .tar or .tar.gz
- Asset README exists and is not a directory
- API route is present
- API JSON payload parses

Example:
    ```python
    from pathlib import Path
    from pfdauploader.validation import validate_asset_args

    validate_asset_args(Path("./ref"), "ref.tar.gz", Path("./ref/README.md"))
    ```

"""

from __future__ import annotations

import json
from pathlib import Path

from pfdauploader.exceptions import InputError
from pfdauploader.io.archive import ARCHIVE_SUFFIXES

__all__ = [
    "validate_asset_args",
    "validate_file_path",
    "validate_json_payload",
    "validate_route",
]


def validate_file_path(path: Path) -> None:
    """Check that path names an existing, non-directory file.

    Raises:
        InputError: If path does not exist or is a directory.
    """
    if not path.exists() or path.is_dir():
        raise InputError(
            f"Input file path '{path}' does not exist or is a directory."
        )


def validate_asset_args(root: Path, name: str, readme: Path) -> None:
    """Check the arguments of an asset upload.

    Args:
        root: Asset root folder.
        name: Asset file name; must end with .tar or .tar.gz.
        readme: README file used as the asset description.

    Raises:
        InputError: On the first invalid argument.
    """
    if not root.is_dir():
        raise InputError(
            f"Input asset folder path '{root}' does not exist or is not a directory."
        )
    if not name:
        raise InputError(
            "Asset name (ending with .tar or .tar.gz) is required. "
            "Provide it as [--name <ASSET_NAME>]."
        )
    if not name.endswith(ARCHIVE_SUFFIXES):
        raise InputError(
            f"Input asset name '{name}' does not end with '.tar' or '.tar.gz'."
        )
    if not readme.exists() or readme.is_dir():
        raise InputError(
            f"Input readme file path '{readme}' does not exist or is a directory."
        )


def validate_route(route: str) -> str:
    """Normalize an API route name.

    Returns:
        The route lower-cased, without surrounding whitespace or slashes.

    Raises:
        InputError: If the route is empty.
    """
    normalized = route.strip().strip("/").lower()
    if not normalized:
        raise InputError(
            "API route is required. Please provide it as 'api <API_ROUTE_NAME>'."
        )
    return normalized


def validate_json_payload(payload: str | None) -> str:
    """Check that payload is empty or valid JSON.

    Returns:
        The payload text ("" when none was given).

    Raises:
        InputError: If payload is not valid JSON.
    """
    if not payload:
        return ""
    try:
        json.loads(payload)
    except ValueError as err:
        raise InputError(
            f"Provided JSON '{payload}' is not valid. "
            "Please provide the input in valid JSON format."
        ) from err
    return payload

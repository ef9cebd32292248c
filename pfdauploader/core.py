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

"""Core orchestration for the uploader.

This module provides the high-level functions behind each CLI command. They
validate input, derive the upload policy, and hand off to the upload
pipeline or the HTTP client.

Commands:

- **upload_file**: Upload one local file as a precisionFDA file.
- **upload_asset**: Archive a folder with tar on the fly and upload it as an
  app asset, using a README as its description.
- **call_api**: POST an arbitrary JSON payload to an API route and return the
  raw response.

Design Principles:

- All input is validated before the first network call
- Functions return frozen dataclasses (results.py)
- Errors are raised as PFDAError subclasses; the CLI formats them
- Settings and policy are passed explicitly, never read from globals

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from pfdauploader.config import load_effective_settings
        from pfdauploader.core import upload_file

        settings = load_effective_settings()
        result = upload_file(Path("reads.fastq.gz"), settings, workers=4)
        print(f"Uploaded {result.bytes_uploaded} bytes to {result.url}")
        ```

"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager, nullcontext
from pathlib import Path
from typing import IO

from pfdauploader.config.loader import ClientSettings
from pfdauploader.exceptions import InputError
from pfdauploader.io.archive import open_archive_stream, scan_asset_folder
from pfdauploader.io.http import HttpClient
from pfdauploader.logging import Logger, get_global_logger
from pfdauploader.results import ApiCallResult, UploadResult
from pfdauploader.upload.models import ASSET, FILE, UploadTarget
from pfdauploader.upload.orchestrator import UploadOrchestrator
from pfdauploader.upload.policy import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_WORKERS,
    EffectivePolicy,
    resolve_policy,
    validate_total_size,
)
from pfdauploader.validation import (
    validate_asset_args,
    validate_file_path,
    validate_json_payload,
    validate_route,
)


def _client_context(
    settings: ClientSettings, client: HttpClient | None, pool_size: int
) -> AbstractContextManager[HttpClient]:
    """Use the caller's client as is, or own a fresh one for the call."""
    if client is not None:
        return nullcontext(client)
    return HttpClient(settings, pool_size=pool_size)


def upload_file(
    path: Path,
    settings: ClientSettings,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    workers: int = DEFAULT_WORKERS,
    client: HttpClient | None = None,
    logger: Logger | None = None,
) -> UploadResult:
    """Upload a local file.

    The remote file is named after the local file's base name and has an
    empty description.

    Args:
        path: File to upload.
        settings: Connection settings.
        chunk_size: Requested chunk size in bytes.
        workers: Maximum number of concurrent upload workers.
        client: HTTP client to reuse; a new one is created if None.
        logger: Logger for progress output; the global logger if None.

    Returns:
        UploadResult with the access URL of the new file.

    Raises:
        InputError: Invalid path, policy values, or file too large.
        NetworkError: An HTTP call failed after retries.
        ProtocolError: The service response was malformed.
        SourceError: The file could not be read.
    """
    validate_file_path(path)
    size = path.stat().st_size
    validate_total_size(size, f"file '{path}'")
    policy = resolve_policy(chunk_size, workers, size)

    target = UploadTarget(name=path.name, description="", size=size)
    with _client_context(settings, client, policy.worker_count) as http:
        orchestrator = UploadOrchestrator(http, FILE, policy, logger=logger)
        return orchestrator.run(target, lambda: path.open("rb"))


def prepare_asset(
    root: Path,
    name: str,
    readme: Path,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    workers: int = DEFAULT_WORKERS,
) -> tuple[UploadTarget, EffectivePolicy]:
    """Validate asset arguments and build its target and policy.

    The target size is the sum of the file sizes under root, which only
    approximates the archive size. It drives the worker cap and nothing
    else.

    Raises:
        InputError: On invalid arguments or an asset above the size limit.
    """
    validate_asset_args(root, name, readme)
    paths, size = scan_asset_folder(root)
    validate_total_size(size, f"asset folder '{root}'")
    policy = resolve_policy(chunk_size, workers, size)

    try:
        description = readme.read_text(encoding="utf-8", errors="replace")
    except OSError as err:
        raise InputError(f"Failed to read readme file '{readme}': {err}") from err

    target = UploadTarget(
        name=name, description=description, size=size, paths=tuple(paths)
    )
    return target, policy


def upload_asset(
    root: Path,
    name: str,
    readme: Path,
    settings: ClientSettings,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    workers: int = DEFAULT_WORKERS,
    client: HttpClient | None = None,
    logger: Logger | None = None,
) -> UploadResult:
    """Archive a folder with tar and upload it as an app asset.

    Args:
        root: Asset root folder; its contents become the archive root.
        name: Asset name ending with .tar or .tar.gz (gzip for the latter).
        readme: README file whose contents become the asset description.
        settings: Connection settings.
        chunk_size: Requested chunk size in bytes.
        workers: Maximum number of concurrent upload workers.
        client: HTTP client to reuse; a new one is created if None.
        logger: Logger for progress output; the global logger if None.

    Returns:
        UploadResult with the access URL of the new asset.

    Raises:
        InputError: Invalid arguments or asset too large.
        NetworkError: An HTTP call failed after retries.
        ProtocolError: The service response was malformed.
        SourceError: tar failed to start or exited with an error.
    """
    target, policy = prepare_asset(
        root, name, readme, chunk_size=chunk_size, workers=workers
    )
    log = logger or get_global_logger()

    @contextmanager
    def archive_source() -> Iterator[IO[bytes]]:
        log.step("Archiving asset...")
        with open_archive_stream(root, name) as stream:
            yield stream

    with _client_context(settings, client, policy.worker_count) as http:
        orchestrator = UploadOrchestrator(http, ASSET, policy, logger=logger)
        return orchestrator.run(target, archive_source)


def call_api(
    route: str,
    payload: str | None,
    settings: ClientSettings,
    *,
    output: Path | None = None,
    client: HttpClient | None = None,
) -> ApiCallResult:
    """POST payload to /api/<route> and return the raw response.

    Args:
        route: API route name, e.g. "list_files". Case-insensitive.
        payload: JSON text, or None/"" for an empty body.
        settings: Connection settings.
        output: If set, the response body is written to this file.
        client: HTTP client to reuse; a new one is created if None.

    Returns:
        ApiCallResult with status, body and output path.

    Raises:
        InputError: Empty route or invalid JSON payload.
        NetworkError: The call failed after retries.
    """
    route = validate_route(route)
    body = validate_json_payload(payload).encode("utf-8")

    with _client_context(settings, client, 1) as http:
        status, content = http.execute(
            "POST", settings.api_url(route), body=body, authenticated=True
        )

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(content)

    return ApiCallResult(
        route=route, status_code=status, body=content, output_path=output
    )

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

"""Public API return types for the uploader.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from pathlib import Path
        from pfdauploader.core import upload_file

        result = upload_file(Path("reads.fastq.gz"), settings)
        print(result.url)  # Attribute access, not dict access
        ```

Note:
    Only public API return types belong in this module. Pipeline types
    (Chunk, UploadTarget, EffectivePolicy) live in pfdauploader.upload.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class UploadResult:
    """Result from uploading a file or asset.

    Attributes:
        entity_id: Identifier the service assigned to the upload.
        kind: "file" or "asset".
        name: Remote name of the upload.
        url: Web URL where the finished upload can be accessed.
        chunk_count: Number of chunks uploaded.
        bytes_uploaded: Total bytes sent across all chunks.
        worker_count: Number of upload workers used.
        status: Always "success" for a finished upload.
    """

    entity_id: str
    kind: str
    name: str
    url: str
    chunk_count: int
    bytes_uploaded: int
    worker_count: int
    status: str


@dataclass(frozen=True)
class ApiCallResult:
    """Result from calling an arbitrary API route.

    Attributes:
        route: Normalized route name (e.g. "list_files").
        status_code: HTTP status of the response.
        body: Raw response body.
        output_path: File the body was written to, or None.
    """

    route: str
    status_code: int
    body: bytes
    output_path: Path | None

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

"""Domain types for the chunked upload pipeline.

All types are frozen dataclasses: a target, a chunk or a descriptor never
changes once built, which is what lets several worker threads hold them
without locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EntityKind:
    """Remote entity flavour and the API routes that manage it.

    Attributes:
        label: Human-readable name ("file" or "asset").
        create_route: API route that creates the entity.
        close_route: API route that finalizes the entity.
        access_path: Web path under which a finished entity is shown.
    """

    label: str
    create_route: str
    close_route: str
    access_path: str


FILE = EntityKind("file", "create_file", "close_file", "files")
ASSET = EntityKind("asset", "create_asset", "close_asset", "app_assets")

UPLOAD_URL_ROUTE = "get_upload_url"


@dataclass(frozen=True)
class UploadTarget:
    """What is being uploaded.

    Attributes:
        name: Remote name of the file or asset.
        description: Free text; the README contents for assets.
        size: Declared total size in bytes. For assets this is the sum of
            the file sizes before archiving.
        paths: Relative file paths inside an asset; None for plain files.
    """

    name: str
    description: str = ""
    size: int = 0
    paths: tuple[str, ...] | None = None

    def create_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "description": self.description}
        if self.paths is not None:
            payload["paths"] = list(self.paths)
        return payload


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice of the source stream.

    Attributes:
        index: 1-based position in the stream.
        data: Chunk bytes.
    """

    index: int
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ChunkUploadDescriptor:
    """Metadata sent when requesting an upload destination for a chunk."""

    entity_id: str
    index: int
    size: int
    checksum: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.entity_id,
            "index": self.index,
            "size": self.size,
            "md5": self.checksum,
        }


@dataclass(frozen=True)
class UploadDestination:
    """Where and how to PUT one chunk, as returned by the service."""

    url: str
    headers: dict[str, str]

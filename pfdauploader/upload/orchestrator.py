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

"""Lifecycle of a single file or asset upload.

An UploadOrchestrator walks one upload through:

    IDLE -> CREATED -> UPLOADING -> CLOSING -> DONE

and ends in FAILED if anything goes wrong on the way.

- **IDLE -> CREATED**: POST the create route with the target's metadata and
  keep the returned entity ID. A response without an ID is a ProtocolError.
- **CREATED -> UPLOADING**: Open the source, start the worker pool, run the
  producer on the calling thread, then wait for the pool to drain.
- **UPLOADING -> CLOSING**: POST the close route with the entity ID.
- **CLOSING -> DONE**: Return an UploadResult with the access URL.

Errors are never swallowed. The orchestrator marks itself FAILED and
re-raises; nothing is sent to the service to clean up, so an aborted upload
stays as an unclosed entity on the remote side.

Example:
    ```python
    from pfdauploader.upload import FILE, UploadOrchestrator, UploadTarget

    orchestrator = UploadOrchestrator(client, FILE, policy)
    result = orchestrator.run(
        UploadTarget(name="reads.fastq.gz", size=path.stat().st_size),
        lambda: path.open("rb"),
    )
    ```
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from enum import Enum
from typing import IO

from pfdauploader.exceptions import ProtocolError, SourceError
from pfdauploader.io.http import HttpClient
from pfdauploader.logging import Logger, get_global_logger
from pfdauploader.results import UploadResult
from pfdauploader.upload.channel import ChunkChannel
from pfdauploader.upload.models import Chunk, EntityKind, UploadTarget
from pfdauploader.upload.policy import EffectivePolicy
from pfdauploader.upload.producer import ProduceStats, produce
from pfdauploader.upload.uploader import ChunkUploader

SourceOpener = Callable[[], AbstractContextManager[IO[bytes]]]


class UploadState(Enum):
    IDLE = "idle"
    CREATED = "created"
    UPLOADING = "uploading"
    CLOSING = "closing"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS: dict[UploadState, frozenset[UploadState]] = {
    UploadState.IDLE: frozenset({UploadState.CREATED}),
    UploadState.CREATED: frozenset({UploadState.UPLOADING}),
    UploadState.UPLOADING: frozenset({UploadState.CLOSING}),
    UploadState.CLOSING: frozenset({UploadState.DONE}),
    UploadState.DONE: frozenset(),
    UploadState.FAILED: frozenset(),
}


class UploadOrchestrator:
    """Drives one upload from creation to close.

    An orchestrator is single-use: run() may be called once.

    Attributes:
        client: Shared HTTP client.
        kind: FILE or ASSET; selects the create/close routes.
        policy: Effective chunk size and worker count.
        state: Current UploadState.
        entity_id: Remote ID once created, else None.
    """

    def __init__(
        self,
        client: HttpClient,
        kind: EntityKind,
        policy: EffectivePolicy,
        *,
        logger: Logger | None = None,
    ) -> None:
        self.client = client
        self.kind = kind
        self.policy = policy
        self.state = UploadState.IDLE
        self.entity_id: str | None = None
        self._logger = logger

    @property
    def logger(self) -> Logger:
        return self._logger or get_global_logger()

    def _transition(self, new_state: UploadState) -> None:
        if new_state is not UploadState.FAILED and (
            new_state not in _TRANSITIONS[self.state]
        ):
            raise RuntimeError(
                f"Invalid upload transition {self.state.value} -> {new_state.value}"
            )
        self.logger.debug("UPLOAD", f"{self.state.value} -> {new_state.value}")
        self.state = new_state

    def access_url(self, entity_id: str) -> str:
        return f"{self.client.settings.base_url}/{self.kind.access_path}/{entity_id}"

    def run(self, target: UploadTarget, open_source: SourceOpener) -> UploadResult:
        """Upload target, reading its bytes from the stream open_source opens.

        Args:
            target: Metadata of the file or asset.
            open_source: Zero-argument callable returning a context manager
                that yields a readable binary stream. It is called only after
                the remote entity exists.

        Returns:
            UploadResult describing the finished upload.

        Raises:
            NetworkError: An HTTP call failed after retries.
            ProtocolError: The service response was malformed.
            SourceError: The source could not be opened or read.
        """
        if self.state is not UploadState.IDLE:
            raise RuntimeError("UploadOrchestrator.run() may only be called once")

        try:
            entity_id = self._create(target)
            stats = self._upload(entity_id, open_source)
            self._close(entity_id)
            self._transition(UploadState.DONE)
        except BaseException:
            self._transition(UploadState.FAILED)
            raise

        url = self.access_url(entity_id)
        self.logger.step(f"Done! Access your {self.kind.label} at {url}")
        return UploadResult(
            entity_id=entity_id,
            kind=self.kind.label,
            name=target.name,
            url=url,
            chunk_count=stats.chunks,
            bytes_uploaded=stats.bytes_read,
            worker_count=self.policy.worker_count,
            status="success",
        )

    def _create(self, target: UploadTarget) -> str:
        url = self.client.settings.api_url(self.kind.create_route)
        data = self.client.post_json(url, target.create_payload())
        entity_id = data.get("id")
        if not isinstance(entity_id, str) or not entity_id:
            raise ProtocolError("No id in response!")
        self.entity_id = entity_id
        self.logger.verbose("UPLOAD", f"Created {self.kind.label} {entity_id}")
        self._transition(UploadState.CREATED)
        return entity_id

    def _upload(self, entity_id: str, open_source: SourceOpener) -> ProduceStats:
        self._transition(UploadState.UPLOADING)

        uploader = ChunkUploader(self.client, entity_id, logger=self._logger)
        channel: ChunkChannel[Chunk] = ChunkChannel(self.policy.worker_count)

        try:
            source = open_source()
        except OSError as err:
            raise SourceError(f"Failed to open upload source: {err}") from err

        self.logger.step(f"Uploading {self.kind.label} |")
        pool = uploader.start_pool(self.policy.worker_count, channel)
        try:
            with source as stream:
                stats = produce(stream, self.policy.chunk_size, channel, self.logger)
                # Join inside the source context: a worker error takes
                # precedence over the exit status of an interrupted archiver.
                uploaded = pool.join()
        except BaseException:
            channel.cancel()
            pool.wait()
            raise

        if uploaded != stats.chunks:
            raise ProtocolError(
                f"Uploaded {uploaded} of {stats.chunks} chunks for {entity_id}"
            )
        self.logger.progress("| Uploaded 100%\n")
        return stats

    def _close(self, entity_id: str) -> None:
        self._transition(UploadState.CLOSING)
        self.logger.step(f"Finalizing {self.kind.label}...")
        url = self.client.settings.api_url(self.kind.close_route)
        self.client.post(url, {"id": entity_id})

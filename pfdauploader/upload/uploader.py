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

"""Uploading chunks to their storage destinations.

Each chunk takes two HTTP calls:

1. POST /api/get_upload_url with {id, index, size, md5}. The service
   answers with a pre-signed destination URL and the headers the PUT must
   carry.
2. PUT the raw chunk bytes to that URL with exactly those headers.

Chunks are uploaded by a pool of worker threads draining a shared
ChunkChannel. Workers claim chunks in arrival order but finish in any order;
the service reassembles by index. Retries happen inside HttpClient only;
the pool itself never re-uploads a chunk.

The first worker failure cancels the channel, which stops the producer and
the other workers after their in-flight chunk. WorkerPool.join() then
re-raises that failure.

Example:
    ```python
    uploader = ChunkUploader(client, entity_id="file-Bk0kjkQ0ZP01x1KJ5vPqxgp0-1")
    channel = ChunkChannel(capacity=4)
    pool = uploader.start_pool(4, channel)
    produce(stream, chunk_size, channel)
    uploaded = pool.join()
    ```
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
import hashlib
import threading

from pfdauploader.exceptions import ProtocolError
from pfdauploader.io.http import HttpClient
from pfdauploader.logging import Logger, get_global_logger
from pfdauploader.upload.channel import ChunkChannel
from pfdauploader.upload.models import (
    UPLOAD_URL_ROUTE,
    Chunk,
    ChunkUploadDescriptor,
    UploadDestination,
)

PROGRESS_MARKER = "="


def compute_checksum(data: bytes) -> str:
    """Return the lowercase hex MD5 of data.

    MD5 is what the service recomputes on its side; it is an integrity
    check, not a security control.
    """
    return hashlib.md5(data, usedforsecurity=False).hexdigest()


def parse_destination(data: dict) -> UploadDestination:
    """Validate an upload-destination response.

    Raises:
        ProtocolError: If url is missing/empty or headers is not an object.
    """
    url = data.get("url")
    if not isinstance(url, str) or not url:
        raise ProtocolError("No url in upload destination response!")
    headers = data.get("headers")
    if not isinstance(headers, dict):
        raise ProtocolError("No headers in upload destination response!")
    return UploadDestination(
        url=url, headers={str(k): str(v) for k, v in headers.items()}
    )


class ChunkUploader:
    """Uploads chunks belonging to one remote entity.

    Safe to share between threads: it holds only the client and the
    entity ID, neither of which changes.
    """

    def __init__(
        self,
        client: HttpClient,
        entity_id: str,
        *,
        logger: Logger | None = None,
    ) -> None:
        if not entity_id:
            raise ProtocolError("Cannot upload chunks without an entity id")
        self.client = client
        self.entity_id = entity_id
        self._logger = logger

    @property
    def logger(self) -> Logger:
        return self._logger or get_global_logger()

    def describe(self, chunk: Chunk) -> ChunkUploadDescriptor:
        return ChunkUploadDescriptor(
            entity_id=self.entity_id,
            index=chunk.index,
            size=chunk.size,
            checksum=compute_checksum(chunk.data),
        )

    def request_destination(
        self, descriptor: ChunkUploadDescriptor
    ) -> UploadDestination:
        url = self.client.settings.api_url(UPLOAD_URL_ROUTE)
        return parse_destination(self.client.post_json(url, descriptor.to_payload()))

    def upload_chunk(self, chunk: Chunk) -> ChunkUploadDescriptor:
        """Upload one chunk: request its destination, then PUT the bytes.

        Returns:
            The descriptor that was sent to the service.

        Raises:
            NetworkError: Either HTTP call failed after retries.
            ProtocolError: Destination response was malformed.
        """
        descriptor = self.describe(chunk)
        self.logger.debug(
            "CHUNK",
            f"Chunk {descriptor.index}: "
            f"size={descriptor.size} md5={descriptor.checksum}",
        )
        destination = self.request_destination(descriptor)
        self.client.execute(
            "PUT", destination.url, headers=destination.headers, body=chunk.data
        )
        return descriptor

    def start_pool(
        self, worker_count: int, channel: ChunkChannel[Chunk]
    ) -> WorkerPool:
        pool = WorkerPool(self, worker_count, channel)
        pool.start()
        return pool

    def run_pool(self, worker_count: int, channel: ChunkChannel[Chunk]) -> int:
        """Upload everything the channel delivers; return the chunk count.

        The channel must be filled and closed by another thread.
        """
        return self.start_pool(worker_count, channel).join()


class WorkerPool:
    """A fixed set of threads draining one channel through a ChunkUploader.

    Attributes:
        worker_count: Number of worker threads.
    """

    def __init__(
        self,
        uploader: ChunkUploader,
        worker_count: int,
        channel: ChunkChannel[Chunk],
    ) -> None:
        if worker_count < 1:
            raise ValueError(f"worker_count must be at least 1, got {worker_count}")
        self.uploader = uploader
        self.worker_count = worker_count
        self.channel = channel
        self._executor: ThreadPoolExecutor | None = None
        self._futures: list[Future[int]] = []
        self._error_lock = threading.Lock()
        self._first_error: BaseException | None = None

    def _worker(self) -> int:
        uploaded = 0
        try:
            for chunk in self.channel:
                self.uploader.upload_chunk(chunk)
                uploaded += 1
                self.uploader.logger.progress(PROGRESS_MARKER)
        except BaseException as err:
            with self._error_lock:
                if self._first_error is None:
                    self._first_error = err
            self.channel.cancel()
            raise
        return uploaded

    def start(self) -> None:
        if self._executor is not None:
            raise RuntimeError("worker pool already started")
        self._executor = ThreadPoolExecutor(
            max_workers=self.worker_count, thread_name_prefix="pfda-upload"
        )
        self._futures = [
            self._executor.submit(self._worker) for _ in range(self.worker_count)
        ]

    def wait(self) -> None:
        """Block until every worker has exited, without raising."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    def join(self) -> int:
        """Wait for all workers and return the number of chunks uploaded.

        Raises:
            The first error any worker hit.
        """
        self.wait()
        if self._first_error is not None:
            raise self._first_error
        return sum(f.result() for f in self._futures)

"""Chunked upload pipeline.

The pipeline splits a byte stream into fixed-size chunks and uploads them
concurrently:

    UploadOrchestrator
        create entity -> produce chunks -> ChunkChannel -> WorkerPool -> close

Modules:

models : module
    UploadTarget, Chunk, ChunkUploadDescriptor, EntityKind (FILE, ASSET).
policy : module
    Chunk size / worker count validation and the worker cap.
channel : module
    Bounded, closable producer-to-worker channel.
producer : module
    Lazy chunking of a stream and feeding the channel.
uploader : module
    Per-chunk upload and the worker pool.
orchestrator : module
    The create -> upload -> close lifecycle.

"""

from .channel import ChannelClosedError, ChunkChannel
from .models import (
    ASSET,
    FILE,
    Chunk,
    ChunkUploadDescriptor,
    EntityKind,
    UploadDestination,
    UploadTarget,
)
from .orchestrator import UploadOrchestrator, UploadState
from .policy import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_WORKERS,
    MAX_CHUNK_SIZE,
    MAX_FILE_SIZE,
    MAX_WORKERS,
    MIN_CHUNK_SIZE,
    EffectivePolicy,
    resolve_policy,
    validate_upload_args,
)
from .producer import ProduceStats, iter_chunks, produce
from .uploader import ChunkUploader, WorkerPool, compute_checksum

__all__ = [
    "ASSET",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_WORKERS",
    "FILE",
    "MAX_CHUNK_SIZE",
    "MAX_FILE_SIZE",
    "MAX_WORKERS",
    "MIN_CHUNK_SIZE",
    "ChannelClosedError",
    "Chunk",
    "ChunkChannel",
    "ChunkUploadDescriptor",
    "ChunkUploader",
    "EffectivePolicy",
    "EntityKind",
    "ProduceStats",
    "UploadDestination",
    "UploadOrchestrator",
    "UploadState",
    "UploadTarget",
    "WorkerPool",
    "compute_checksum",
    "iter_chunks",
    "produce",
    "resolve_policy",
    "validate_upload_args",
]

"""
pfdauploader - precisionFDA Asset and File Uploader

A Python CLI and library for uploading large files and app assets to
precisionFDA over HTTPS.

pfdauploader provides:
  - Chunked uploads with a bounded pool of concurrent upload workers
  - Automatic retries with exponential backoff for transient HTTP failures
  - Streaming asset archives (tar / tar.gz) without temporary files
  - Saved authorization key (~/.pfda_config) and PFDA_KEY / .env support
  - Generic API route calls with JSON payloads

Quick Start
-----------
Upload a file:

    $ pfda upload-file reads.fastq.gz --key <KEY>

Upload an asset:

    $ pfda upload-asset --root ./ref --name ref.tar.gz --readme ./ref.md

For full CLI documentation:

    $ pfda --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    High-level upload_file / upload_asset / call_api functions.
config : package
    Settings resolution and config file handling.
auth : package
    Authorization key lookup and persistence.
io : package
    Retrying HTTP client and streaming tar archives.
upload : package
    Chunk producer, worker pool and upload lifecycle.

Public API
----------
    from pfdauploader.core import upload_file, upload_asset, call_api
    from pfdauploader.config import load_effective_settings
    from pfdauploader.upload import resolve_policy

Project Information
-------------------
License: Apache-2.0
"""

__version__ = "2.0.0"
__license__ = "Apache-2.0"
__description__ = "precisionFDA asset and file uploader"

# Re-export commonly used functions for convenience
from pfdauploader.config import ClientSettings, load_effective_settings
from pfdauploader.core import call_api, upload_asset, upload_file
from pfdauploader.results import ApiCallResult, UploadResult
from pfdauploader.upload import EffectivePolicy, resolve_policy

__all__ = [
    "__version__",
    "__license__",
    "__description__",
    "ApiCallResult",
    "ClientSettings",
    "EffectivePolicy",
    "UploadResult",
    "call_api",
    "load_effective_settings",
    "resolve_policy",
    "upload_asset",
    "upload_file",
]

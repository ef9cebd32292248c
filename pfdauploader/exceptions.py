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

"""Exception hierarchy for the precisionFDA uploader.

This module defines the errors that can abort an upload or API call. There is
no recoverable error path once an upload has started: every error propagates
to the top-level caller (normally the CLI), which reports it and exits.

- InputError: Bad arguments, missing files, out-of-range chunk size or thread
  count, missing authorization key. Always raised before any network call.
- NetworkError: Final non-2xx HTTP status, or retries exhausted on
  connection failures.
- ProtocolError: The service answered with something that violates its
  contract (malformed JSON, missing ``id`` or ``url`` field).
- SourceError: The byte stream being uploaded could not be read, or the
  archiver process producing it failed.

All exceptions inherit from PFDAError.

Example:
    Catching specific error types:
        ```python
        from pfdauploader.core import upload_file
        from pfdauploader.exceptions import InputError, NetworkError

        try:
            result = upload_file(Path("reads.fastq.gz"), settings)
        except InputError as e:
            print(f"Bad input: {e}")
        except NetworkError as e:
            print(f"Upload failed: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "PFDAError",
    "InputError",
    "NetworkError",
    "ProtocolError",
    "SourceError",
]


class PFDAError(Exception):
    """Base exception for all uploader errors."""

    pass


class InputError(PFDAError):
    """Raised for invalid user input.

    This exception is raised when there are problems with:

    - Missing or invalid command arguments
    - Files or folders that do not exist
    - Chunk size or thread count outside the allowed range
    - Payloads larger than the maximum upload size
    - A missing authorization key or an unreadable config file
    """

    pass


class NetworkError(PFDAError):
    """Raised when an HTTP call fails for good.

    Transient failures are retried by the HTTP client; this error means the
    retries were exhausted or the final status was not 2xx. The message
    identifies the failing call (method, URL and status).
    """

    pass


class ProtocolError(PFDAError):
    """Raised when a service response violates the expected contract.

    Examples are a response body that is not JSON, a create call without an
    ``id``, or an upload-destination call without a ``url``. These are never
    retried.
    """

    pass


class SourceError(PFDAError):
    """Raised when the upload source cannot be read.

    This covers read errors on a local file and failures of the external
    ``tar`` process used to stream assets.
    """

    pass

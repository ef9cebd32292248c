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
Retrying HTTP(S) client for the uploader.

Every network call (create, request upload destination, chunk PUT, close,
generic API routes) goes through HttpClient, so retry and failure policy are
decided in one place.

Key Features:

- **Retry Logic with Exponential Backoff** - Connection errors, read errors,
  429 and 5xx responses (except 501) are retried up to MAX_RETRIES times.
  Waits grow exponentially from about RETRY_WAIT_MIN up to RETRY_WAIT_MAX
  seconds. Configured via urllib3.util.Retry on the session adapters.
- **All methods retried** - POST and PUT bodies are plain bytes, so urllib3
  can resend them safely. Chunk uploads are idempotent per (entity, index).
- **Fail-fast** - A final non-2xx status, or exhausted retries, raises
  NetworkError naming the method, URL and status. No caller above this layer
  handles partial success.
- **Shared connection pool** - One requests.Session serves all upload workers.
  Settings are frozen, so the client carries no mutable state of its own.

Constants:

- MAX_RETRIES (int): Retry ceiling per call.
- RETRY_WAIT_MIN / RETRY_WAIT_MAX (int): Backoff bounds in seconds.
- RETRY_STATUSES (frozenset[int]): Statuses treated as transient.

Example:
    ```python
    from pfdauploader.config import ClientSettings
    from pfdauploader.io import HttpClient

    settings = ClientSettings(base_url="https://precision.fda.gov", key="...")
    with HttpClient(settings) as client:
        data = client.post_json(settings.api_url("create_file"), {"name": "a.txt"})
    ```
"""

from __future__ import annotations

import json
from typing import Any

import requests
from requests.adapters import HTTPAdapter
import urllib3
from urllib3.exceptions import MaxRetryError
from urllib3.util.retry import Retry

from pfdauploader.config.loader import ClientSettings
from pfdauploader.exceptions import NetworkError, ProtocolError
from pfdauploader.logging import Logger, get_global_logger

MAX_RETRIES = 5
RETRY_WAIT_MIN = 1
RETRY_WAIT_MAX = 30
RETRY_STATUSES = frozenset({429, *range(500, 600)} - {501})
DEFAULT_POOL_SIZE = 10


def make_retry() -> Retry:
    """Build the retry policy shared by all adapters."""
    return Retry(
        total=MAX_RETRIES,
        backoff_factor=RETRY_WAIT_MIN,
        backoff_max=RETRY_WAIT_MAX,
        status_forcelist=RETRY_STATUSES,
        # None means every HTTP verb, including POST and PUT.
        allowed_methods=None,
        raise_on_status=False,
    )


def make_session(
    settings: ClientSettings, pool_size: int = DEFAULT_POOL_SIZE
) -> requests.Session:
    """
    Create a requests.Session with the uploader's retry/backoff policy.

    - Retries transient failures (see make_retry).
    - Sizes the connection pool so every upload worker can hold a connection.
    - Sets the uploader User-Agent.
    - Applies the TLS verification toggle.

    The Authorization header is not a session default: chunk
    PUTs go to pre-signed storage URLs that must not receive the key.
    """
    s = requests.Session()
    s.headers.update({"User-Agent": settings.user_agent})
    s.verify = settings.verify_tls
    if not settings.verify_tls:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    pool_size = max(pool_size, DEFAULT_POOL_SIZE)
    adapter = HTTPAdapter(
        max_retries=make_retry(),
        pool_connections=DEFAULT_POOL_SIZE,
        pool_maxsize=pool_size,
    )
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    return s


def failure_message(method: str, url: str, status: str) -> str:
    """Build the diagnostic for a failed HTTP call."""
    message = f"{method} Request to '{url}' failed with status {status}."
    if status.startswith("4"):
        message += " For 4xx status, check that the provided auth-key is still valid."
    return message


class HttpClient:
    """Thread-safe HTTP client with retries and fail-fast error reporting.

    Attributes:
        settings: Frozen connection settings.
    """

    def __init__(
        self,
        settings: ClientSettings,
        *,
        pool_size: int = DEFAULT_POOL_SIZE,
        session: requests.Session | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.settings = settings
        self._session = session or make_session(settings, pool_size=pool_size)
        self._logger = logger

    @property
    def logger(self) -> Logger:
        return self._logger or get_global_logger()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Key {self.settings.key}",
            "Content-Type": "application/json",
        }

    def execute(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        authenticated: bool = False,
    ) -> tuple[int, bytes]:
        """Perform one HTTP exchange, retrying transient failures.

        Args:
            method: HTTP method ("POST", "PUT", ...).
            url: Absolute request URL.
            headers: Extra request headers. Applied after the auth headers,
                so a caller can override Content-Type.
            body: Raw request body.
            authenticated: Send the Authorization and JSON Content-Type
                headers used by the precisionFDA API.

        Returns:
            A tuple (status_code, body) for a 2xx response.

        Raises:
            NetworkError: Retries exhausted or final status not 2xx.
        """
        request_headers: dict[str, str] = {}
        if authenticated:
            request_headers.update(self._auth_headers())
        if headers:
            request_headers.update(headers)

        try:
            resp = self._session.request(
                method,
                url,
                data=body,
                headers=request_headers,
                timeout=self.settings.timeout,
            )
        except requests.RequestException as err:
            cause = err.args[0] if err.args else None
            if isinstance(cause, MaxRetryError):
                detail = f"failed after {MAX_RETRIES} retries"
            else:
                detail = "failed"
            raise NetworkError(f"{method} Request to '{url}' {detail}: {err}") from err

        status = f"{resp.status_code} {resp.reason or ''}".strip()
        self.logger.verbose("HTTP", f"{method} {url} -> {status}")

        if not 200 <= resp.status_code < 300:
            raise NetworkError(failure_message(method, url, status))

        return resp.status_code, resp.content

    def post(self, url: str, payload: dict[str, Any]) -> tuple[int, bytes]:
        """POST a JSON payload to an API route; the reply is not decoded."""
        return self.execute(
            "POST", url, body=_encode_json(payload), authenticated=True
        )

    def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON payload to an API route and decode the JSON object reply.

        Raises:
            NetworkError: See execute().
            ProtocolError: Response body is not a JSON object.
        """
        _, content = self.post(url, payload)
        try:
            data = json.loads(content or b"null")
        except ValueError as err:
            raise ProtocolError(
                f"Response from '{url}' is not valid JSON: {err}"
            ) from err
        if not isinstance(data, dict):
            raise ProtocolError(
                f"Response from '{url}' must be a JSON object, "
                f"got {type(data).__name__}"
            )
        return data


def _encode_json(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload).encode("utf-8")

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

"""Logging interface for the uploader.

Library modules write their output through a small logger interface so
they do not depend on the CLI. The logger supports four kinds of output:

- Step: Always printed (">> Uploading file...")
- Progress: Inline markers printed without a newline (one per chunk)
- Verbose: Only printed when verbose mode is enabled
- Debug: Only printed when debug mode is enabled (implies verbose)

Example:
    Configure the global logger from the CLI:
        ```python
        from pfdauploader.logging import get_logger, set_global_logger

        set_global_logger(get_logger(verbose=True))
        ```

    Use in library code:
        ```python
        from pfdauploader.logging import get_global_logger

        logger = get_global_logger()
        logger.step("Uploading file...")
        logger.verbose("HTTP", "POST https://precision.fda.gov/api/create_file")
        ```

Note:
    The default global logger is silent, so library functions print nothing
    unless the CLI (or the caller) installs a logger.
"""

from __future__ import annotations

import sys
import threading
from typing import Protocol


class Logger(Protocol):
    """Protocol for logger implementations."""

    def step(self, message: str) -> None:
        """Print a top-level progress line.

        Args:
            message: Step description.
        """
        ...

    def progress(self, marker: str) -> None:
        """Print an inline progress marker without a trailing newline.

        Args:
            marker: Marker text (e.g., "=").
        """
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message.

        Args:
            prefix: Message prefix (e.g., "HTTP", "UPLOAD").
            message: Log message.
        """
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message.

        Args:
            prefix: Message prefix (e.g., "CHUNK").
            message: Log message.
        """
        ...


class DefaultLogger:
    """Logger that prints to stdout.

    Upload workers log from several threads at once, so writes are
    serialized with a lock to keep lines from interleaving.
    """

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        """Initialize logger with verbosity settings.

        Args:
            verbose: If True, print verbose messages.
            debug: If True, print debug messages (implies verbose).
        """
        self._verbose = verbose or debug
        self._debug = debug
        self._lock = threading.Lock()

    def step(self, message: str) -> None:
        with self._lock:
            print(f">> {message}")

    def progress(self, marker: str) -> None:
        with self._lock:
            sys.stdout.write(marker)
            sys.stdout.flush()

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            with self._lock:
                print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            with self._lock:
                print(f"[{prefix}] {message}")


class SilentLogger:
    """Logger that suppresses all output."""

    def step(self, message: str) -> None:
        pass

    def progress(self, marker: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass


# Global logger instance (defaults to silent)
_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Get a stdout logger with the specified verbosity.

    Args:
        verbose: If True, logger will print verbose messages.
        debug: If True, logger will print debug messages (implies verbose).

    Returns:
        A logger instance configured with the specified verbosity.
    """
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Get the global logger instance (silent unless configured)."""
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Set the global logger instance.

    Args:
        logger: Logger instance to use as the global logger.

    Note:
        This affects all library functions that are not handed a logger
        explicitly. Pass logger instances directly for better isolation.
    """
    global _global_logger
    _global_logger = logger

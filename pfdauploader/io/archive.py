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

"""Streaming asset archives for upload.

An asset is a folder uploaded as a single tarball. The tarball is never
written to disk: ``tar`` runs as a child process and its stdout is handed to
the chunk producer as an ordinary byte stream.

The upload protocol needs the list of files in the asset and a total size up
front (before ``tar`` has run), so scan_asset_folder() reports the sum of the
file sizes on disk. That number only approximates the archive size (tar adds
headers and padding, gzip shrinks it) and is used for the worker-count cap.

Example:
    ```python
    from pathlib import Path
    from pfdauploader.io.archive import open_archive_stream, scan_asset_folder

    paths, size = scan_asset_folder(Path("./genome_ref"))
    with open_archive_stream(Path("./genome_ref"), "genome_ref.tar.gz") as stream:
        first = stream.read(1024)
    ```
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
import subprocess
import tempfile
from typing import IO

from pfdauploader.exceptions import InputError, SourceError
from pfdauploader.logging import get_global_logger

ARCHIVE_SUFFIXES = (".tar.gz", ".tar")


def scan_asset_folder(root: Path) -> tuple[list[str], int]:
    """List every file under root and sum their sizes.

    Directories are skipped; symlinks are listed as entries and not
    followed.

    Args:
        root: Asset root folder.

    Returns:
        A tuple (paths, total_size), where paths are POSIX paths relative to
            root in lexical order and total_size is the sum of their sizes
            in bytes.

    Raises:
        InputError: If root is not a directory.
    """
    if not root.is_dir():
        raise InputError(
            f"Input asset folder path '{root}' does not exist or is not a directory."
        )

    entries: list[tuple[str, int]] = []
    for path in root.rglob("*"):
        if path.is_dir() and not path.is_symlink():
            continue
        entries.append((path.relative_to(root).as_posix(), path.lstat().st_size))

    entries.sort()
    return [rel for rel, _ in entries], sum(size for _, size in entries)


def archive_command(root: Path, name: str) -> list[str]:
    """Build the tar command line for an asset name.

    Names ending in .tar.gz are gzip-compressed, names ending in .tar are not.

    Raises:
        InputError: If name has neither suffix.
    """
    if name.endswith(".tar.gz"):
        flags = "-cz"
    elif name.endswith(".tar"):
        flags = "-c"
    else:
        raise InputError(
            f"Input asset name '{name}' does not end with '.tar' or '.tar.gz'."
        )
    return ["tar", flags, "-C", str(root), "."]


@contextmanager
def open_archive_stream(root: Path, name: str) -> Iterator[IO[bytes]]:
    """Run tar over root and yield its stdout.

    On normal exit the archiver is waited for; a non-zero exit status raises
    SourceError with tar's stderr. If the body raises, the archiver is
    killed and the original error propagates.

    Args:
        root: Asset root folder.
        name: Asset name; selects plain or gzip archive.

    Yields:
        Readable binary stream of the archive.

    Raises:
        InputError: If name has an unsupported suffix.
        SourceError: If tar cannot be started or fails.
    """
    logger = get_global_logger()
    cmd = archive_command(root, name)
    logger.verbose("ARCHIVE", f"Running: {' '.join(cmd)}")

    # stderr goes to a file so a chatty tar can never block on a full pipe.
    with tempfile.TemporaryFile() as errlog:
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=errlog)
        except OSError as err:
            raise SourceError(f"Failed to start archiver '{cmd[0]}': {err}") from err

        stdout = proc.stdout
        if stdout is None:
            proc.kill()
            proc.wait()
            raise SourceError(f"Archiver '{cmd[0]}' has no output stream")
        try:
            yield stdout
        except BaseException:
            proc.kill()
            proc.wait()
            raise
        finally:
            stdout.close()

        returncode = proc.wait()
        if returncode != 0:
            errlog.seek(0)
            detail = errlog.read().decode("utf-8", errors="replace").strip()
            raise SourceError(
                f"Archiver exited with status {returncode}: {detail or 'no output'}"
            )
        logger.verbose("ARCHIVE", "Archiver finished")

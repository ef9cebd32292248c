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

"""Command-line interface for the precisionFDA uploader.

This module provides the main CLI entry point for the pfda tool.

Commands:

    upload-file: Upload a single file
    upload-asset: Archive a folder and upload it as an app asset
    api: Call a precisionFDA API route with a JSON payload

Example:
    Upload a file (saves the key for later runs):
        ```bash
        $ pfda upload-file reads.fastq.gz --key <KEY>
        ```

    Upload an asset:
        ```bash
        $ pfda upload-asset --root ./ref --name ref.tar.gz --readme ./ref.md
        ```

    Call an API route:
        ```bash
        $ pfda api list_files --json '{"scopes": ["private"]}' --output files.json
        ```

    Tune the upload:
        ```bash
        $ pfda upload-file big.bam --chunk-size 134217728 --threads 20
        ```

Exit Codes:

- 0: Success
- 1: Error (bad input, network failure, protocol violation, archiver failure)

Note:
    Each command has its own handler function (cmd_<command>). Verbose mode
    shows full tracebacks on errors; debug mode implies verbose and also
    logs every chunk.

"""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import sys

from pfdauploader.auth import CredentialManager
from pfdauploader.config.loader import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_SERVER,
    ClientSettings,
    load_effective_settings,
)
from pfdauploader.core import call_api, upload_asset, upload_file
from pfdauploader.exceptions import PFDAError
from pfdauploader.logging import get_logger, set_global_logger
from pfdauploader.results import UploadResult
from pfdauploader.upload.policy import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_WORKERS,
    validate_upload_args,
)


def _report_error(err: PFDAError, args: argparse.Namespace) -> int:
    print()
    print(f"Error: {err}")
    if args.verbose or args.debug:
        import traceback

        traceback.print_exc()
    return 1


def _load_settings(args: argparse.Namespace) -> ClientSettings:
    return load_effective_settings(
        key=args.key,
        server=args.server,
        skip_verify=args.skip_verify,
        config_path=args.config,
    )


def _remember_key(args: argparse.Namespace) -> None:
    """Persist a key given with --key, as the uploader always has."""
    if not args.key:
        return
    path = CredentialManager(config_path=args.config).remember_key(args.key)
    print(
        f"Saved authorization key in config file '{path}'. A new key does not "
        "need to be provided for 24 hours from the generation time of the "
        "provided key."
    )


def _print_upload_result(title: str, result: UploadResult) -> None:
    print("=" * 70)
    print(title)
    print("=" * 70)
    print(f"Name:            {result.name}")
    print(f"ID:              {result.entity_id}")
    print(f"Chunks:          {result.chunk_count}")
    print(f"Bytes:           {result.bytes_uploaded}")
    print(f"Workers:         {result.worker_count}")
    print(f"URL:             {result.url}")
    print(f"Status:          {result.status}")
    print("=" * 70)


def cmd_upload_file(args: argparse.Namespace) -> int:
    """Handler for 'pfda upload-file' command.

    Args:
        args: Parsed command-line arguments containing the file path,
            connection options and upload tuning options.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))

    try:
        validate_upload_args(args.chunk_size, args.threads)
        settings = _load_settings(args)
        result = upload_file(
            Path(args.file),
            settings,
            chunk_size=args.chunk_size,
            workers=args.threads,
        )
        _remember_key(args)
    except PFDAError as err:
        return _report_error(err, args)

    if args.verbose or args.debug:
        _print_upload_result("UPLOAD RESULTS", result)
    return 0


def cmd_upload_asset(args: argparse.Namespace) -> int:
    """Handler for 'pfda upload-asset' command.

    Streams `tar -c[z] -C <root> .` straight into the chunked upload; nothing
    is written to disk. The README contents become the asset description.

    Args:
        args: Parsed command-line arguments containing root folder, asset
            name, readme path, connection and upload tuning options.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))

    try:
        validate_upload_args(args.chunk_size, args.threads)
        settings = _load_settings(args)
        result = upload_asset(
            Path(args.root),
            args.name,
            Path(args.readme),
            settings,
            chunk_size=args.chunk_size,
            workers=args.threads,
        )
        _remember_key(args)
    except PFDAError as err:
        return _report_error(err, args)

    if args.verbose or args.debug:
        _print_upload_result("ASSET UPLOAD RESULTS", result)
    return 0


def cmd_api(args: argparse.Namespace) -> int:
    """Handler for 'pfda api' command.

    Args:
        args: Parsed command-line arguments containing the route, JSON
            payload and optional output path.

    Returns:
        Exit code (0 for success, 1 for failure).

    Note:
        Without --output the response body is printed to stdout.

    """
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))

    output = Path(args.output) if args.output else None
    try:
        settings = _load_settings(args)
        result = call_api(args.route, args.json, settings, output=output)
        _remember_key(args)
    except PFDAError as err:
        return _report_error(err, args)

    if output is None:
        print(f"Return response data for API call '{result.route}':")
        print(result.body.decode("utf-8", errors="replace"))
    else:
        print(
            f"Downloaded response data for API call: {result.route} "
            f"({len(result.body)} bytes) to file '{output}'"
        )
    return 0


def _int_arg(value: str) -> int:
    try:
        return int(value)
    except ValueError as err:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from err


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--key",
        default=None,
        help="Authorization key. Required if no saved key or PFDA_KEY is available.",
    )
    parser.add_argument(
        "--server",
        default=None,
        help=f"Server to connect and make requests to (default: {DEFAULT_SERVER})",
    )
    parser.add_argument(
        "--skip-verify",
        action="store_true",
        help="Skip TLS certificate verification",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Config file holding the saved key (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show HTTP calls and a result summary",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show per-chunk details (implies --verbose)",
    )


def _add_upload_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--chunk-size",
        type=_int_arg,
        default=DEFAULT_CHUNK_SIZE,
        help=(
            "Size of each upload chunk in bytes, 5MB to 4GB "
            f"(default: {DEFAULT_CHUNK_SIZE})"
        ),
    )
    parser.add_argument(
        "--threads",
        type=_int_arg,
        default=DEFAULT_WORKERS,
        help=f"Maximum number of upload threads, 1 to 100 (default: {DEFAULT_WORKERS})",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the pfda CLI."""
    try:
        pkg_version = version("pfda-uploader")
    except PackageNotFoundError:
        from pfdauploader import __version__ as pkg_version

    parser = argparse.ArgumentParser(
        prog="pfda",
        description="precisionFDA uploader for files, assets and API calls",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"pfda {pkg_version}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'upload-file' command
    parser_file = subparsers.add_parser(
        "upload-file",
        help="Upload a file",
        description="Upload a local file in concurrent chunks.",
    )
    parser_file.add_argument("file", help="Path to the file to upload")
    _add_upload_arguments(parser_file)
    _add_common_arguments(parser_file)
    parser_file.set_defaults(func=cmd_upload_file)

    # 'upload-asset' command
    parser_asset = subparsers.add_parser(
        "upload-asset",
        help="Archive a folder and upload it as an app asset",
        description="Stream a tar archive of a folder to precisionFDA as an app asset.",
    )
    parser_asset.add_argument(
        "--root", required=True, help="Root folder of the asset"
    )
    parser_asset.add_argument(
        "--name",
        required=True,
        help="Name of the uploaded asset; must end with '.tar' or '.tar.gz'",
    )
    parser_asset.add_argument(
        "--readme",
        required=True,
        help="Readme file for the asset (.txt or .md)",
    )
    _add_upload_arguments(parser_asset)
    _add_common_arguments(parser_asset)
    parser_asset.set_defaults(func=cmd_upload_asset)

    # 'api' command
    parser_api = subparsers.add_parser(
        "api",
        help="Call a precisionFDA API route",
        description=(
            "POST a JSON payload to /api/<route> and print or save the response."
        ),
    )
    parser_api.add_argument("route", help="Name of the API route to call")
    parser_api.add_argument(
        "--json", default="", help="JSON payload for the call (if any)"
    )
    parser_api.add_argument(
        "--output",
        default=None,
        help="File to write the response to (default: stdout)",
    )
    _add_common_arguments(parser_api)
    parser_api.set_defaults(func=cmd_api)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the pfda CLI.

    This function is registered as the 'pfda' console script in pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

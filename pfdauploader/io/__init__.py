"""Input/Output operations for the uploader.

Modules:

http : module
    Retrying HTTP client shared by every network call.
archive : module
    Streaming tar archives of asset folders.

Public API:

HttpClient : class
    Thread-safe HTTP client with retries and fail-fast errors.
make_session : function
    Build the requests.Session with the retry policy.
open_archive_stream : function
    Context manager yielding the stdout of a running tar process.
scan_asset_folder : function
    List asset files and sum their sizes.

Example:
    from pfdauploader.io import HttpClient

    with HttpClient(settings) as client:
        status, body = client.execute("POST", settings.api_url("list_files"),
                                      body=b"{}", authenticated=True)

"""

from .archive import archive_command, open_archive_stream, scan_asset_folder
from .http import HttpClient, make_retry, make_session

__all__ = [
    "HttpClient",
    "archive_command",
    "make_retry",
    "make_session",
    "open_archive_stream",
    "scan_asset_folder",
]

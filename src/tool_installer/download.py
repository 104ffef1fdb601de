"""HTTP downloads for release archives and vendor scripts."""

from __future__ import annotations

import hashlib
import logging
import socket
import ssl
import time
import urllib.error
import urllib.request
from pathlib import Path

from tool_installer import __version__
from tool_installer.errors import InstallError, InstallErrorKind

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# Per-read socket timeout when no overall timeout is configured.
DEFAULT_SOCKET_TIMEOUT = 60.0


def sha256_file(path: Path) -> str:
    """Get SHA256 hash of a file's content.

    Args:
        path: Path to the file.

    Returns:
        Hex digest of the SHA256 hash.
    """
    hasher = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


class UrllibDownloader:
    """Production downloader built on urllib.

    Satisfies the Downloader protocol structurally.
    """

    def __init__(self, user_agent: str | None = None) -> None:
        self.user_agent = user_agent or f"tool-installer/{__version__}"

    def _open(self, url: str, timeout: float | None):
        request = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        return urllib.request.urlopen(
            request,
            timeout=timeout or DEFAULT_SOCKET_TIMEOUT,
            context=ssl.create_default_context(),
        )

    def fetch(self, url: str, dest: Path, timeout: float | None = None) -> Path:
        """Download a URL to a local file.

        A partially written file is removed on failure.

        Args:
            url: URL to download.
            dest: Destination file path.
            timeout: Total seconds allowed for the download.

        Returns:
            The destination path.

        Raises:
            InstallError: On network failure or timeout.
        """
        deadline = time.monotonic() + timeout if timeout is not None else None
        logger.info("GET %s", url)
        try:
            with self._open(url, timeout) as response, dest.open("wb") as out:
                while True:
                    if deadline is not None and time.monotonic() > deadline:
                        raise InstallError(
                            InstallErrorKind.TIMEOUT,
                            f"download of {url} exceeded {timeout:g}s",
                        )
                    chunk = response.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    out.write(chunk)
        except InstallError:
            dest.unlink(missing_ok=True)
            raise
        except (socket.timeout, TimeoutError) as e:
            dest.unlink(missing_ok=True)
            raise InstallError(InstallErrorKind.TIMEOUT, f"download of {url} timed out") from e
        except (urllib.error.URLError, OSError) as e:
            dest.unlink(missing_ok=True)
            raise InstallError(InstallErrorKind.NETWORK, f"failed to download {url}: {e}") from e

        logger.debug("Downloaded %s to %s", url, dest)
        return dest

    def fetch_text(self, url: str, timeout: float | None = None) -> str:
        """Download a URL and decode it as UTF-8 text.

        Args:
            url: URL to download.
            timeout: Seconds allowed for the request.

        Returns:
            Response body.

        Raises:
            InstallError: On network failure or timeout.
        """
        logger.info("GET %s", url)
        try:
            with self._open(url, timeout) as response:
                return response.read().decode("utf-8")
        except (socket.timeout, TimeoutError) as e:
            raise InstallError(InstallErrorKind.TIMEOUT, f"download of {url} timed out") from e
        except (urllib.error.URLError, OSError, UnicodeDecodeError) as e:
            raise InstallError(InstallErrorKind.NETWORK, f"failed to download {url}: {e}") from e

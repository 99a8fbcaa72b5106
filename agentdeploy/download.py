"""
Installer download.

Fetches the installer package with a single blocking GET and streams it
to a ``.part`` file beside the destination, renaming it into place once
the body has been read completely.  A body shorter than the advertised
``Content-Length`` is a failed download.  No retries.
"""

from __future__ import annotations

import http.client
import logging
import os
import shutil
import urllib.error
import urllib.request

from .result import ErrorKind, Result

logger = logging.getLogger("agentdeploy.download")

_CHUNK = 1024 * 1024


def download(url: str, destination: str, *, timeout: float | None = None) -> Result:
    """
    Download *url* to *destination*.

    :param timeout: Socket timeout in seconds; ``None`` blocks indefinitely.
    :returns: ``Result.success(destination)`` or a ``DOWNLOAD_FAILED`` failure.
    """
    partial = destination + ".part"
    try:
        req = urllib.request.Request(url, headers={"User-Agent": "agentdeploy"})
        parent = os.path.dirname(os.path.abspath(destination))
        os.makedirs(parent, exist_ok=True)
        kwargs = {} if timeout is None else {"timeout": timeout}
        with urllib.request.urlopen(req, **kwargs) as resp, open(partial, "wb") as out:
            expected = _content_length(resp)
            shutil.copyfileobj(resp, out, _CHUNK)
            received = out.tell()
        if expected is not None and received != expected:
            _discard(partial)
            return Result.failure(
                ErrorKind.DOWNLOAD_FAILED,
                f"{url}: connection closed after {received} of {expected} bytes",
            )
        os.replace(partial, destination)
    except urllib.error.HTTPError as e:
        _discard(partial)
        return Result.failure(ErrorKind.DOWNLOAD_FAILED, f"HTTP {e.code} from {url}")
    except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
        _discard(partial)
        return Result.failure(ErrorKind.DOWNLOAD_FAILED, f"{url}: {e}")

    logger.debug("Downloaded %s (%d bytes)", destination, received)
    return Result.success(destination)


def _content_length(resp) -> int | None:
    raw = resp.headers.get("Content-Length")
    if raw is None or not str(raw).strip().isdigit():
        return None
    return int(raw)


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug("Could not remove %s: %s", path, e)

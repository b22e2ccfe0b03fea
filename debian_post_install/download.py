"""
Fetch third-party installer scripts.

A script is accepted only if the transfer succeeded with a 2xx status and the
body does not look like an HTML page (proxies, captive portals and GitHub
error pages all answer with HTML).
"""

import os
import time
import tempfile
from typing import Callable

import requests

from .config import AppConfig
from .errors import DownloadIntegrityError
from .runner import retry_operation
from .ui import logger, print_step

SNIFF_BYTES = 512
HTML_MARKERS = (b"<html", b"<!doctype html")


def looks_like_html(content: bytes) -> bool:
    head = content[:SNIFF_BYTES].lstrip().lower()
    return any(marker in head for marker in HTML_MARKERS)


def verify_script(content: bytes, url: str) -> None:
    """
    Raise DownloadIntegrityError unless ``content`` is plausibly a script.
    """
    if not content.strip():
        raise DownloadIntegrityError(f"Downloaded file from {url} is empty")
    if looks_like_html(content):
        raise DownloadIntegrityError(
            f"Downloaded file from {url} is an HTML page, not a script"
        )


def fetch(url: str, timeout: int = AppConfig.DOWNLOAD_TIMEOUT) -> bytes:
    """Download ``url`` and return the body; HTTP errors raise."""
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.content


def download_script(
    url: str,
    temp_dir: str = AppConfig.TEMP_DIR,
    fetcher: Callable[[str], bytes] = fetch,
    max_attempts: int = AppConfig.MAX_RETRIES,
    delay: float = AppConfig.RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    Download an installer script to a private temporary file.

    Transfer errors are retried; a body that fails verification is not.

    Args:
        url: Location of the script
        temp_dir: Directory for the temporary file
        fetcher: Callable returning the body for a URL
        max_attempts: Transfer attempts before giving up
        delay: Seconds between attempts
        sleep: Callable used to wait between attempts

    Returns:
        Path of the executable script. The caller removes it.

    Raises:
        DownloadIntegrityError: If the transfer fails or the body is rejected
    """
    print_step(f"Downloading {url}...")
    try:
        content = retry_operation(
            lambda: fetcher(url),
            max_attempts=max_attempts,
            delay=delay,
            operation_name=f"Download of {url}",
            retry_on=(requests.RequestException,),
            sleep=sleep,
        )
    except requests.RequestException as e:
        raise DownloadIntegrityError(f"Unable to download {url}: {e}") from e

    verify_script(content, url)

    fd, path = tempfile.mkstemp(
        prefix=AppConfig.TEMP_PREFIX, suffix=".sh", dir=temp_dir
    )
    with os.fdopen(fd, "wb") as f:
        f.write(content)
    os.chmod(path, 0o755)
    logger.info(f"Saved {len(content)} bytes from {url} to {path}")
    return path

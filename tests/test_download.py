import os
import stat

import pytest
import requests

from debian_post_install.download import download_script, looks_like_html, verify_script
from debian_post_install.errors import DownloadIntegrityError

URL = "https://example.invalid/setup-repo.sh"
SCRIPT = b"#!/bin/sh\necho 'adding repository'\n"


def test_html_is_detected():
    assert looks_like_html(b"<html><body>404</body></html>")
    assert looks_like_html(b"\n  <!DOCTYPE html>\n<html>")
    assert not looks_like_html(SCRIPT)


def test_verify_rejects_empty_and_html():
    with pytest.raises(DownloadIntegrityError, match="empty"):
        verify_script(b"  \n", URL)
    with pytest.raises(DownloadIntegrityError, match="HTML"):
        verify_script(b"<HTML>Not Found</HTML>", URL)


def test_download_writes_executable_script(tmp_path):
    path = download_script(URL, temp_dir=str(tmp_path), fetcher=lambda url: SCRIPT)

    assert os.path.dirname(path) == str(tmp_path)
    with open(path, "rb") as f:
        assert f.read() == SCRIPT
    assert os.stat(path).st_mode & stat.S_IXUSR


def test_html_body_is_rejected_without_writing(tmp_path):
    with pytest.raises(DownloadIntegrityError):
        download_script(
            URL, temp_dir=str(tmp_path), fetcher=lambda url: b"<html>rate limited</html>"
        )
    assert os.listdir(tmp_path) == []


def test_transfer_errors_are_retried_then_reported(tmp_path):
    calls = []
    waits = []

    def fetcher(url):
        calls.append(url)
        raise requests.ConnectionError("unreachable")

    with pytest.raises(DownloadIntegrityError, match="Unable to download"):
        download_script(
            URL,
            temp_dir=str(tmp_path),
            fetcher=fetcher,
            max_attempts=3,
            delay=3,
            sleep=waits.append,
        )
    assert len(calls) == 3
    assert waits == [3, 3]


def test_transient_transfer_error_recovers(tmp_path):
    responses = [requests.HTTPError("503"), SCRIPT]

    def fetcher(url):
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    path = download_script(URL, temp_dir=str(tmp_path), fetcher=fetcher, sleep=lambda s: None)

    with open(path, "rb") as f:
        assert f.read() == SCRIPT

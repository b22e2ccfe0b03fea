import subprocess

import pytest

from debian_post_install.config import Paths
from debian_post_install.runner import CommandRunner


class FakeExecutor:
    """Stands in for subprocess.run and records every argv it receives.

    ``responder`` maps an argv list to an exit code or an (exit code, stdout)
    tuple. Anything it does not handle succeeds with empty output.
    """

    def __init__(self, responder=None):
        self.calls = []
        self.kwargs = []
        self.responder = responder or (lambda argv: 0)

    def __call__(self, argv, **kwargs):
        self.calls.append(list(argv))
        self.kwargs.append(kwargs)
        result = self.responder(list(argv))
        if isinstance(result, tuple):
            rc, out = result
        else:
            rc, out = result, ""
        return subprocess.CompletedProcess(argv, rc, stdout=out, stderr="")

    def commands(self, word):
        return [c for c in self.calls if word in c]


UNIT_FILES = (
    "ssh.service                enabled  enabled\n"
    "winbind.service            enabled  enabled\n"
    "smbd.service               enabled  enabled\n"
    "nmbd.service               enabled  enabled\n"
    "webmin.service             enabled  enabled\n"
)


def systemd_responder(argv):
    if argv[:2] == ["systemctl", "list-unit-files"]:
        return 0, UNIT_FILES
    return 0


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def executor():
    return FakeExecutor(systemd_responder)


@pytest.fixture
def make_runner(sleeps):
    def factory(executor, max_attempts=3, delay=3.0):
        return CommandRunner(
            max_attempts=max_attempts,
            delay=delay,
            executor=executor,
            sleep=sleeps.append,
        )

    return factory


@pytest.fixture
def paths(tmp_path):
    (tmp_path / "etc").mkdir()
    (tmp_path / "root").mkdir()
    (tmp_path / "tmp").mkdir()
    return Paths(
        nsswitch=str(tmp_path / "etc" / "nsswitch.conf"),
        bashrc=str(tmp_path / "root" / ".bashrc"),
        smb_conf=str(tmp_path / "etc" / "smb.conf"),
        temp_dir=str(tmp_path / "tmp"),
    )

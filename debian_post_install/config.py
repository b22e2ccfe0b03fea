"""
Configuration & Constants
-------------------------

Static application settings, overridable file locations and the immutable
set of feature flags parsed from the command line.
"""

import socket
import tempfile
from dataclasses import dataclass
from typing import List, Tuple


class AppConfig:
    """Global application configuration."""

    # Application info
    VERSION: str = "1.3.0"
    APP_NAME: str = "Debian Post-Install"
    APP_SUBTITLE: str = "Host Provisioning Utility"
    HOSTNAME: str = socket.gethostname()

    # Paths and files
    LOG_FILE: str = "/var/log/debian_post_install.log"
    MAX_LOG_SIZE: int = 10 * 1024 * 1024  # 10MB
    TEMP_DIR: str = tempfile.gettempdir()
    TEMP_PREFIX: str = "debian_post_install_"

    # Operation settings
    MAX_RETRIES: int = 3
    RETRY_DELAY: float = 3.0
    DOWNLOAD_TIMEOUT: int = 60

    # APT invocation
    APT_GET: Tuple[str, ...] = (
        "apt-get",
        "-y",
        "-o",
        "Dpkg::Use-Pty=0",
        "--no-install-recommends",
    )
    APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}

    # Webmin
    WEBMIN_REPO_SCRIPT_URL: str = (
        "https://raw.githubusercontent.com/webmin/webmin/master/webmin-setup-repo.sh"
    )
    WEBMIN_PORT: int = 10000

    # Positional customisation of the root shell profile
    BASHRC_UNCOMMENT_RANGE: Tuple[int, int] = (9, 13)


# Base diagnostic and administration toolset
BASE_PACKAGES: List[str] = [
    "openssh-server",
    "ssh",
    "zip",
    "unzip",
    "nmap",
    "mlocate",
    "ncdu",
    "curl",
    "git",
    "screen",
    "dnsutils",
    "net-tools",
    "sudo",
    "lynx",
]

NETBIOS_PACKAGES: List[str] = ["winbind", "samba"]
NETBIOS_SERVICES: List[str] = ["winbind", "smbd", "nmbd"]
BONUS_PACKAGES: List[str] = ["bsdgames"]

NSSWITCH_DEFAULT_HOSTS: str = "hosts: files mdns4_minimal [NOTFOUND=return] dns wins"
SMB_LOCAL_RESOLVE_ORDER: str = "name resolve order = lmhosts wins bcast"

# Minimal root profile written when /root/.bashrc is missing. Lines 9-13
# are the colorized `ls' settings, matching BASHRC_UNCOMMENT_RANGE.
DEFAULT_ROOT_BASHRC: str = """\
# ~/.bashrc: executed by bash(1) for non-login shells.

# Note: PS1 is set in /etc/profile, and the default umask is defined
# in /etc/login.defs. You should not need this unless you want different
# defaults for root.
# umask 022

# You may uncomment the following lines if you want `ls' to be colorized:
# export LS_OPTIONS='--color=auto'
# eval "$(dircolors)"
# alias ls='ls $LS_OPTIONS'
# alias ll='ls $LS_OPTIONS -l'
# alias l='ls $LS_OPTIONS -lA'
#
# Some more alias to avoid making mistakes:
# alias rm='rm -i'
# alias cp='cp -i'
# alias mv='mv -i'
"""


@dataclass(frozen=True)
class Paths:
    """Files touched by the provisioner. Tests point these at a scratch dir."""

    nsswitch: str = "/etc/nsswitch.conf"
    bashrc: str = "/root/.bashrc"
    smb_conf: str = "/etc/samba/smb.conf"
    temp_dir: str = AppConfig.TEMP_DIR


@dataclass(frozen=True)
class SetupOptions:
    """Feature flags, parsed once at entry and passed to every step."""

    network_wizard: bool = False
    netbios: bool = False
    local_netbios: bool = False
    webmin: bool = False
    fun: bool = False
    debug: bool = False
    log_file: str = AppConfig.LOG_FILE

    @property
    def wants_netbios(self) -> bool:
        return self.netbios or self.local_netbios

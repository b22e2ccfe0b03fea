"""
Provisioning steps.

Each public method of ``Provisioner`` is one named step of the pipeline. A
step returns a short summary for the status report, raises
``OptionalToolMissing`` when it has nothing to act on, and raises another
``SetupError`` when it fails. Whether a failure stops the run is decided by
the orchestrator, not here.
"""

import os
import shutil
from typing import Callable, Optional, Sequence, Tuple

from .config import (
    BASE_PACKAGES,
    BONUS_PACKAGES,
    DEFAULT_ROOT_BASHRC,
    NETBIOS_PACKAGES,
    NETBIOS_SERVICES,
    NSSWITCH_DEFAULT_HOSTS,
    SMB_LOCAL_RESOLVE_ORDER,
    AppConfig,
    Paths,
    SetupOptions,
)
from .download import download_script, fetch
from .errors import ConfigurationError, ExecutionError, OptionalToolMissing
from .patcher import (
    PatchResult,
    PatchRule,
    append_token,
    has_token,
    patch_file,
    replace_line,
    uncomment_lines,
)
from .runner import CommandRunner
from .ui import logger, print_message, print_step, print_success, print_warning

NSSWITCH_HOSTS_RULE = PatchRule(
    match=r"^\s*hosts:",
    applied=has_token("wins"),
    transform=append_token("wins"),
    default_line=NSSWITCH_DEFAULT_HOSTS,
)

SMB_RESOLVE_ORDER_RULE = PatchRule(
    match=r"^\s*name\s+resolve\s+order\s*=",
    applied=r"^\s*name\s+resolve\s+order\s*=\s*lmhosts\s+wins\s+bcast\s*$",
    transform=replace_line(SMB_LOCAL_RESOLVE_ORDER),
    default_line=f"   {SMB_LOCAL_RESOLVE_ORDER}",
    insert_after=r"^\s*\[global\]",
)


class Provisioner:
    """
    The provisioning steps, bound to one set of options.

    Args:
        options: Feature flags for this run
        runner: Command runner used for every external command
        paths: Locations of the files to patch
        which: Lookup for executables on PATH
        fetcher: Downloader for the Webmin repository script
        bashrc_range: Lines of the root shell profile to uncomment
    """

    def __init__(
        self,
        options: SetupOptions,
        runner: Optional[CommandRunner] = None,
        paths: Optional[Paths] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
        fetcher: Callable[[str], bytes] = fetch,
        bashrc_range: Tuple[int, int] = AppConfig.BASHRC_UNCOMMENT_RANGE,
    ) -> None:
        self.options = options
        self.runner = runner or CommandRunner()
        self.paths = paths or Paths()
        self.which = which
        self.fetcher = fetcher
        self.bashrc_range = bashrc_range

    # ----------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------
    @staticmethod
    def apt(*args: str) -> Tuple[str, ...]:
        return AppConfig.APT_GET + args

    def install(self, packages: Sequence[str], *extra: str) -> None:
        print_step(f"Installing {', '.join(packages)}...")
        self.runner.check(self.apt("install", *packages, *extra))

    def unit_exists(self, name: str) -> bool:
        """Check whether systemd knows ``<name>.service``."""
        result = self.runner.run(
            ["systemctl", "list-unit-files", "--no-pager"], attempts=1
        )
        if not result.ok:
            logger.debug(f"systemctl list-unit-files failed (code {result.returncode})")
            return False
        unit = f"{name}.service"
        return any(line.split()[:1] == [unit] for line in result.stdout.splitlines())

    def enable_service(self, name: str) -> bool:
        """Enable and start a service; failures are reported, never raised."""
        print_step(f"Enabling and starting the {name} service...")
        result = self.runner.run(["systemctl", "enable", "--now", name], attempts=1)
        if not result.ok:
            print_warning(
                f"Unable to enable/start {name} (code {result.returncode}). Check systemd."
            )
            return False
        print_success(f"{name} is enabled and running.")
        return True

    # ----------------------------------------------------------------
    # Mandatory steps
    # ----------------------------------------------------------------
    def update_system(self) -> str:
        print_step("Refreshing APT package index...")
        self.runner.check(self.apt("update"))
        print_step("Upgrading installed packages...")
        self.runner.check(self.apt("upgrade"))
        return "Package index refreshed and system upgraded."

    def install_base_packages(self) -> str:
        self.install(BASE_PACKAGES)
        return f"Installed {len(BASE_PACKAGES)} base packages."

    # ----------------------------------------------------------------
    # Best-effort steps
    # ----------------------------------------------------------------
    def rebuild_locate_index(self) -> str:
        if not self.which("updatedb"):
            raise OptionalToolMissing(
                "'updatedb' is not available. Check the mlocate installation."
            )
        print_step("Building the locate database (updatedb)...")
        self.runner.check(["updatedb"])
        return "locate database built."

    def enable_ssh(self) -> str:
        if not self.unit_exists("ssh"):
            raise OptionalToolMissing("SSH service not found in systemd.")
        if not self.enable_service("ssh"):
            raise ExecutionError("Unable to enable/start ssh.")
        return "ssh.service enabled and started."

    # ----------------------------------------------------------------
    # Optional features
    # ----------------------------------------------------------------
    def configure_nsswitch(self) -> PatchResult:
        """Add ``wins`` to the hosts line of nsswitch.conf."""
        print_step(f"Adding 'wins' to the hosts line of {self.paths.nsswitch}...")
        return patch_file(self.paths.nsswitch, NSSWITCH_HOSTS_RULE)

    def configure_smb_local(self) -> Optional[PatchResult]:
        """Keep NetBIOS name resolution on the local segment."""
        if not os.path.isfile(self.paths.smb_conf):
            print_warning(f"{self.paths.smb_conf} not found; resolve order unchanged.")
            return None
        print_step(f"Restricting name resolution in {self.paths.smb_conf}...")
        try:
            return patch_file(self.paths.smb_conf, SMB_RESOLVE_ORDER_RULE)
        except ConfigurationError as e:
            print_warning(f"Could not update {self.paths.smb_conf}: {e}")
            return None

    def install_netbios(self) -> str:
        print_step("Installing the NetBIOS layer (winbind, samba)...")
        self.install(NETBIOS_PACKAGES)

        for svc in NETBIOS_SERVICES:
            if self.unit_exists(svc):
                self.enable_service(svc)

        result = self.configure_nsswitch()
        summary = f"winbind/samba installed; nsswitch {result.value.replace('_', ' ')}."
        if self.options.local_netbios:
            smb = self.configure_smb_local()
            if smb is not None:
                summary += f" smb.conf {smb.value.replace('_', ' ')}."
        return summary

    def install_webmin(self) -> str:
        print_step("Installing Webmin (official repository, then package)...")
        script = download_script(
            AppConfig.WEBMIN_REPO_SCRIPT_URL,
            temp_dir=self.paths.temp_dir,
            fetcher=self.fetcher,
            max_attempts=self.runner.max_attempts,
            delay=self.runner.delay,
            sleep=self.runner.sleep,
        )
        try:
            print_step("Running the Webmin repository setup script...")
            self.runner.check(["sh", script])
            print_step("Refreshing APT package index after adding the Webmin repository...")
            self.runner.check(self.apt("update"))
            self.install(["webmin"], "--install-recommends")
            if self.unit_exists("webmin"):
                self.enable_service("webmin")
        finally:
            try:
                os.remove(script)
            except FileNotFoundError:
                pass

        url = f"https://{AppConfig.HOSTNAME}:{AppConfig.WEBMIN_PORT}"
        print_message(f"Webmin installed. Access: {url}")
        return f"Webmin installed ({url})."

    def install_bsdgames(self) -> str:
        self.install(BONUS_PACKAGES)
        print_message("bsdgames installed. The games live in /usr/games.")
        print_message("To play: cd /usr/games && ./<game>")
        return "bsdgames installed in /usr/games."

    def customize_root_bashrc(self) -> str:
        first, last = self.bashrc_range
        changed = uncomment_lines(
            self.paths.bashrc, first, last, default_content=DEFAULT_ROOT_BASHRC
        )
        return f"Uncommented {changed} line(s) in {self.paths.bashrc}."


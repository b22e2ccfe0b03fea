"""
Debian Post-Install Utility
---------------------------

Provisions a freshly installed Debian host: updates the system, installs a
base toolset, enables SSH and customises the root shell profile. Optional
features add NetBIOS name resolution, the Webmin admin panel and CLI games.

Usage:
    sudo debian-post-install [--netbios] [--local-netbios] [--webmin] [--fun]

Requires root privileges.
"""

import os
import signal
import sys
from typing import Any, Dict, Optional

import click
from rich.traceback import install as install_rich_traceback

from .config import AppConfig, SetupOptions
from .errors import PrivilegeError
from .log import setup_logging
from .orchestrator import PostInstallSetup
from .ui import logger, print_error, print_message, print_warning


# ----------------------------------------------------------------
# Privilege Check
# ----------------------------------------------------------------
def require_root() -> None:
    if os.geteuid() != 0:
        raise PrivilegeError("This script must be run as root (use sudo).")


# ----------------------------------------------------------------
# Signal Handling and Cleanup
# ----------------------------------------------------------------
def cleanup(temp_dir: str = AppConfig.TEMP_DIR) -> int:
    """Remove leftover downloaded scripts. Returns the number removed."""
    removed = 0
    for fname in os.listdir(temp_dir):
        if fname.startswith(AppConfig.TEMP_PREFIX):
            try:
                os.remove(os.path.join(temp_dir, fname))
                removed += 1
            except OSError as e:
                logger.warning(f"Failed to remove temp file {fname}: {e}")
    logger.info(f"Removed {removed} temporary files")
    return removed


def signal_handler(signum: int, frame: Optional[Any]) -> None:
    """Exit with ``128 + signum`` after cleaning up."""
    sig_name = f"signal {signum}"
    try:
        sig_name = signal.Signals(signum).name
    except ValueError:
        pass

    print_warning(f"Process interrupted by {sig_name}")
    cleanup()
    sys.exit(128 + signum)


def install_signal_handlers() -> Dict[int, Any]:
    """Install ``signal_handler`` and return the handlers it replaced."""
    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM, signal.SIGHUP):
        try:
            previous[sig] = signal.signal(sig, signal_handler)
        except (AttributeError, ValueError):
            pass
    return previous


def restore_signal_handlers(previous: Dict[int, Any]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


# ----------------------------------------------------------------
# Main CLI Entry Point with Click
# ----------------------------------------------------------------
@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--network-wizard",
    is_flag=True,
    help="Reserved for a network setup wizard; currently does nothing.",
)
@click.option(
    "--netbios",
    is_flag=True,
    help="Install winbind + samba and add 'wins' to /etc/nsswitch.conf.",
)
@click.option(
    "--local-netbios",
    is_flag=True,
    help="Like --netbios, and keep NetBIOS lookups local in smb.conf.",
)
@click.option(
    "--webmin",
    is_flag=True,
    help="Add the official Webmin repository, install Webmin and start it.",
)
@click.option("--fun", is_flag=True, help="Install bsdgames (CLI games).")
@click.option("--debug", is_flag=True, help="Mirror the debug log on the console.")
@click.option(
    "--log-file",
    default=AppConfig.LOG_FILE,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Where to write the log.",
)
@click.version_option(AppConfig.VERSION, prog_name=AppConfig.APP_NAME)
def main(
    network_wizard: bool,
    netbios: bool,
    local_netbios: bool,
    webmin: bool,
    fun: bool,
    debug: bool,
    log_file: str,
) -> None:
    """Provision a freshly installed Debian host."""
    options = SetupOptions(
        network_wizard=network_wizard,
        netbios=netbios,
        local_netbios=local_netbios,
        webmin=webmin,
        fun=fun,
        debug=debug,
        log_file=log_file,
    )

    try:
        require_root()
    except PrivilegeError as e:
        print_error(str(e))
        sys.exit(e.returncode)

    if debug:
        install_rich_traceback(show_locals=True)
    setup_logging(options.log_file, debug=options.debug)
    logger.info(f"Options: {options}")

    previous = install_signal_handlers()
    try:
        exit_code = PostInstallSetup(options).run()
    except KeyboardInterrupt:
        print_warning("Process interrupted by user")
        exit_code = 130
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Unexpected error")
        exit_code = 1
    finally:
        cleanup()
        restore_signal_handlers(previous)

    if exit_code:
        print_message(f"Log file: {options.log_file}")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

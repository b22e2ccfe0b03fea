"""
Main orchestration: runs the provisioning steps strictly in order and
decides, from ``STEP_POLICY``, whether a failed step stops the run.
"""

import datetime
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from rich.box import ROUNDED
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.style import Style
from rich.text import Text

from .config import AppConfig, SetupOptions
from .errors import OptionalToolMissing, SetupError
from .steps import Provisioner
from .ui import (
    NordColors,
    console,
    create_header,
    logger,
    print_error,
    print_message,
    print_section,
    print_step,
    print_success,
    print_warning,
    status_report,
)


class Severity(Enum):
    FATAL = "fatal"
    ADVISORY = "advisory"


# A FATAL failure aborts the run; an ADVISORY one is reported and skipped.
STEP_POLICY: Dict[str, Severity] = {
    "system_update": Severity.FATAL,
    "base_packages": Severity.FATAL,
    "locate_index": Severity.ADVISORY,
    "ssh_service": Severity.ADVISORY,
    "netbios": Severity.ADVISORY,
    "webmin": Severity.ADVISORY,
    "bsdgames": Severity.ADVISORY,
    "bashrc": Severity.ADVISORY,
}


@dataclass(frozen=True)
class Step:
    name: str
    description: str
    func: Callable[[], str]
    enabled: bool = True
    hint: str = ""

    @property
    def severity(self) -> Severity:
        return STEP_POLICY[self.name]


@dataclass(frozen=True)
class StepOutcome:
    """Result of one pipeline step, as shown in the status report."""

    name: str
    description: str
    status: str  # success | failed | skipped
    message: str
    returncode: int = 0

    @property
    def failed(self) -> bool:
        return self.status == "failed"


class PostInstallSetup:
    """
    Run the provisioning pipeline for one set of options.

    Args:
        options: Feature flags parsed from the command line
        provisioner: Step implementations; built from ``options`` if omitted
        show_progress: Display a spinner while each step runs
    """

    def __init__(
        self,
        options: SetupOptions,
        provisioner: Optional[Provisioner] = None,
        show_progress: bool = True,
    ) -> None:
        self.options = options
        self.provisioner = provisioner or Provisioner(options)
        self.show_progress = show_progress
        self.outcomes: List[StepOutcome] = []
        self.start_time = time.time()

    def steps(self) -> List[Step]:
        p = self.provisioner
        o = self.options
        return [
            Step("system_update", "Update & upgrade packages", p.update_system),
            Step("base_packages", "Install base packages", p.install_base_packages),
            Step("locate_index", "Build locate database", p.rebuild_locate_index),
            Step("ssh_service", "Enable SSH service", p.enable_ssh),
            Step(
                "netbios",
                "NetBIOS name resolution",
                p.install_netbios,
                enabled=o.wants_netbios,
                hint="use --netbios to enable",
            ),
            Step(
                "webmin",
                "Webmin admin panel",
                p.install_webmin,
                enabled=o.webmin,
                hint="use --webmin to enable",
            ),
            Step(
                "bsdgames",
                "CLI games (bsdgames)",
                p.install_bsdgames,
                enabled=o.fun,
                hint="use --fun to enable",
            ),
            Step("bashrc", "Customize /root/.bashrc", p.customize_root_bashrc),
        ]

    def _call(self, step: Step) -> str:
        if not self.show_progress:
            return step.func()
        with Progress(
            SpinnerColumn(spinner_name="dots", style=f"bold {NordColors.FROST_1}"),
            TextColumn(f"[bold {NordColors.FROST_2}]{{task.description}}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(step.description, total=None)
            return step.func()

    def run_step(self, step: Step) -> StepOutcome:
        """
        Run a single step and turn its result or exception into an outcome.

        Args:
            step: The step to run

        Returns:
            StepOutcome describing what happened
        """
        if not step.enabled:
            print_message(f"{step.description}: not requested ({step.hint}).")
            return StepOutcome(step.name, step.description, "skipped", f"Not requested ({step.hint}).")

        print_section(step.description)
        start = time.time()
        try:
            message = self._call(step)
        except OptionalToolMissing as e:
            print_warning(f"{e} Continuing.")
            return StepOutcome(step.name, step.description, "skipped", str(e))
        except (SetupError, OSError) as e:
            returncode = getattr(e, "returncode", 1)
            if step.severity is Severity.FATAL:
                print_error(f"{step.description} failed: {e}")
            else:
                print_warning(f"{step.description} failed, continuing without it: {e}")
            return StepOutcome(step.name, step.description, "failed", str(e), returncode)

        elapsed = time.time() - start
        print_success(f"{step.description} completed in {elapsed:.2f}s")
        return StepOutcome(step.name, step.description, "success", message)

    def run(self) -> int:
        """
        Run every step in order.

        Returns:
            int: 0 when all mandatory steps succeeded, otherwise the exit code
            of the fatal step
        """
        now = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        console.print(create_header())
        print_step(f"Starting automated Debian setup at {now}")

        if self.options.network_wizard:
            print_warning("The network setup wizard is reserved and not implemented yet.")

        exit_code = 0
        for step in self.steps():
            outcome = self.run_step(step)
            self.outcomes.append(outcome)
            if outcome.failed and step.severity is Severity.FATAL:
                logger.error(f"Aborting: mandatory step '{step.name}' failed.")
                exit_code = outcome.returncode or 1
                break

        self.report(exit_code)
        return exit_code

    def report(self, exit_code: int) -> None:
        status_report(self.outcomes)

        minutes, seconds = divmod(time.time() - self.start_time, 60)
        advisory_failures = [o for o in self.outcomes if o.failed]
        if exit_code:
            status = f"[bold {NordColors.RED}]ABORTED (exit code {exit_code})"
        elif advisory_failures:
            status = f"[bold {NordColors.YELLOW}]COMPLETED WITH WARNINGS"
        else:
            status = f"[bold {NordColors.GREEN}]SUCCESS"

        console.print(
            Panel(
                Text.from_markup(
                    f"[bold {NordColors.FROST_3}]Total Duration:[/] {int(minutes)}m {int(seconds)}s\n"
                    f"[bold {NordColors.FROST_3}]Status:[/] {status}[/]\n"
                    f"[bold {NordColors.FROST_3}]Log File:[/] {escape(self.options.log_file)}"
                ),
                border_style=Style(color=NordColors.FROST_1),
                box=ROUNDED,
                padding=(1, 2),
                title=f"[bold {NordColors.SNOW_STORM_2}]{AppConfig.APP_NAME}[/]",
                title_align="center",
            )
        )
        if exit_code:
            print_error("Installation aborted. Review the log for details.")
        else:
            print_success("Installation finished.")

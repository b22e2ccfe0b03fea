"""
Nord-themed console output: banner, step messages and the final status report.
"""

import logging
import shutil
from typing import TYPE_CHECKING, Dict, Iterable

import pyfiglet
from rich.align import Align
from rich.box import ROUNDED
from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from .config import AppConfig

if TYPE_CHECKING:
    from .orchestrator import StepOutcome

logger = logging.getLogger("debian_post_install")


# ----------------------------------------------------------------
# Nord-Themed Colors and Rich Console
# ----------------------------------------------------------------
class NordColors:
    """Nord color palette for consistent theming throughout the application."""

    # Polar Night (dark background)
    POLAR_NIGHT_4: str = "#4C566A"

    # Snow Storm (light text)
    SNOW_STORM_1: str = "#D8DEE9"
    SNOW_STORM_2: str = "#E5E9F0"

    # Frost (blue accents)
    FROST_1: str = "#8FBCBB"
    FROST_2: str = "#88C0D0"
    FROST_3: str = "#81A1C1"
    FROST_4: str = "#5E81AC"

    # Aurora (other accents)
    RED: str = "#BF616A"
    YELLOW: str = "#EBCB8B"
    GREEN: str = "#A3BE8C"


console = Console(
    theme=Theme(
        {
            "info": f"bold {NordColors.FROST_2}",
            "warning": f"bold {NordColors.YELLOW}",
            "error": f"bold {NordColors.RED}",
            "success": f"bold {NordColors.GREEN}",
            "step": f"{NordColors.FROST_2}",
            "path": f"italic {NordColors.FROST_1}",
        }
    )
)


def render_banner(title: str, width: int = 80) -> Text:
    """Figlet rendering of ``title``, one Frost shade per line."""
    try:
        art = pyfiglet.figlet_format(title, font="slant", width=width)
    except pyfiglet.FigletError as e:
        logger.debug(f"Figlet rendering failed: {e}")
        art = ""
    lines = [line for line in art.splitlines() if line.strip()] or [title]

    shades = (NordColors.FROST_1, NordColors.FROST_2, NordColors.FROST_3)
    banner = Text()
    for i, line in enumerate(lines):
        banner.append(line + "\n", style=f"bold {shades[i % len(shades)]}")
    return banner


def create_header() -> Panel:
    """Banner panel shown at the start of a run."""
    width = min(shutil.get_terminal_size().columns - 10, 80)
    return Panel(
        render_banner(AppConfig.APP_NAME, width),
        border_style=Style(color=NordColors.FROST_1),
        padding=(0, 2),
        box=ROUNDED,
        title=f"[bold {NordColors.SNOW_STORM_2}]v{AppConfig.VERSION}[/]",
        title_align="right",
        subtitle=f"[bold {NordColors.SNOW_STORM_1}]{AppConfig.APP_SUBTITLE}[/]",
        subtitle_align="center",
    )


def print_message(
    text: str, style: str = NordColors.FROST_2, prefix: str = "•"
) -> None:
    """Print a styled message to the console."""
    console.print(f"[{style}]{prefix} {escape(text)}[/{style}]", highlight=False)


def print_step(text: str) -> None:
    print_message(text, NordColors.FROST_3, "➜")
    logger.info(text)


def print_success(text: str) -> None:
    print_message(text, NordColors.GREEN, "✓")
    logger.info(f"SUCCESS: {text}")


def print_warning(text: str) -> None:
    print_message(text, NordColors.YELLOW, "⚠")
    logger.warning(text)


def print_error(text: str) -> None:
    print_message(text, NordColors.RED, "✗")
    logger.error(text)


def print_section(title: str) -> None:
    """Print a section header with a separator line."""
    console.print()
    console.print(f"[bold {NordColors.FROST_1}]== {title.upper()} ==[/]")
    console.print(f"[{NordColors.FROST_3}]{'─' * 60}[/]")
    logger.info(f"--- {title} ---")


def status_report(outcomes: Iterable["StepOutcome"]) -> Dict[str, int]:
    """
    Display a table reporting the status of every provisioning step.

    Args:
        outcomes: Step outcomes in pipeline order

    Returns:
        Count of steps per status
    """
    print_section("Setup Status Report")

    icons = {"success": "✓", "failed": "✗", "skipped": "–"}
    styles = {"success": "success", "failed": "error", "skipped": "step"}

    table = Table(
        show_header=True,
        header_style=f"bold {NordColors.FROST_1}",
        border_style=NordColors.FROST_3,
        box=ROUNDED,
        title=f"[bold {NordColors.FROST_2}]{AppConfig.APP_NAME} Status[/]",
        title_justify="center",
        expand=True,
    )
    table.add_column("Task", style=f"bold {NordColors.FROST_2}")
    table.add_column("Status", style=f"bold {NordColors.FROST_3}", justify="center")
    table.add_column("Message", style=f"{NordColors.SNOW_STORM_1}", ratio=3)

    counts = {"success": 0, "failed": 0, "skipped": 0}
    for outcome in outcomes:
        counts[outcome.status] = counts.get(outcome.status, 0) + 1
        style = styles.get(outcome.status, "step")
        table.add_row(
            outcome.description,
            f"[{style}]{icons.get(outcome.status, '?')} {outcome.status.upper()}[/]",
            Text(outcome.message),
        )

    summary = Text()
    summary.append("Status Summary: ", style=f"bold {NordColors.FROST_3}")
    summary.append(f"{counts['success']} Succeeded", style=f"bold {NordColors.GREEN}")
    summary.append(" | ")
    summary.append(f"{counts['failed']} Failed", style=f"bold {NordColors.RED}")
    summary.append(" | ")
    summary.append(
        f"{counts['skipped']} Skipped", style=f"bold {NordColors.POLAR_NIGHT_4}"
    )

    console.print(
        Panel(
            Group(table, Align.center(summary)),
            border_style=Style(color=NordColors.FROST_4),
            padding=(0, 1),
            box=ROUNDED,
        )
    )
    return counts

import pyfiglet

from debian_post_install import ui
from debian_post_install.orchestrator import StepOutcome


def test_banner_has_one_styled_span_per_line():
    banner = ui.render_banner("Debian", width=80)

    lines = banner.plain.splitlines()
    assert len(lines) > 1
    assert len(banner.spans) == len(lines)


def test_banner_falls_back_to_plain_title(monkeypatch):
    def broken(*args, **kwargs):
        raise pyfiglet.FigletError("no fonts")

    monkeypatch.setattr(ui.pyfiglet, "figlet_format", broken)

    assert ui.render_banner("Debian").plain == "Debian\n"


def test_status_report_counts_by_status():
    outcomes = [
        StepOutcome("system_update", "Update", "success", "ok"),
        StepOutcome("webmin", "Webmin", "failed", "hosts: [NOTFOUND=return]", 1),
        StepOutcome("bsdgames", "Games", "skipped", "use --fun to enable"),
        StepOutcome("bashrc", "Profile", "success", "ok"),
    ]

    assert ui.status_report(outcomes) == {"success": 2, "failed": 1, "skipped": 1}

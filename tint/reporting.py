"""User-facing progress output and the final summary."""

from collections.abc import Sequence
from dataclasses import dataclass, field

from rich.console import Console
from rich.text import Text

from tint.diffing import DiffLine
from tint.summary import RunSummary

DIFF_STYLES = {
    "added": "green",
    "removed": "red",
    "unchanged": "dim",
}


@dataclass(frozen=True, kw_only=True)
class ConsoleReporter:
    """Writes test progress to a rich console."""

    console: Console = field(default_factory=Console)

    @classmethod
    def create(cls, *, color: bool = True) -> "ConsoleReporter":
        return cls(console=Console(no_color=not color, highlight=False))

    def _print(self, message: str, style: str | None = None) -> None:
        self.console.print(Text(message, style=style or ""))

    def phase_started(
        self, phase: str, unit_dir: str, prereqs: Sequence[str] = ()
    ) -> None:
        banner = f"{phase.upper()}: {unit_dir}"
        if phase == "setup":
            banner += f" [{','.join(prereqs)}]"
        self._print("")
        self._print(banner, "bold")

    def no_targets(self) -> None:
        self._print("No matching targets. Stopping.", "yellow")

    def custom_environment(self, name: str, value: str) -> None:
        self._print(f"Custom env variable {name}={value}")

    def provisioning_started(self) -> None:
        self._print("Running terraform", "yellow")

    def query_started(self, query_file: str) -> None:
        self._print("")
        self._print(f"Running SQL query: {query_file}", "yellow")

    def query_diff(self, lines: Sequence[DiffLine]) -> None:
        self._print("")
        for line in lines:
            self._print(line.text, DIFF_STYLES[line.kind])

    def query_passed(self) -> None:
        self._print("✔ PASSED", "bold bright_green")

    def query_failed(self) -> None:
        self._print("")
        self._print("✘ FAILED", "bold bright_red")

    def provisioning_failed(self) -> None:
        self._print("Terraform run failed, skipping SQL queries", "bold bright_red")

    def fatal_error(self, error: BaseException) -> None:
        self._print("")
        self._print(
            "ERROR DETECTED: Stopping test run and entering teardown phase.", "bold red"
        )
        self._print(str(error), "bold red")

    def summary(self, summary: RunSummary) -> None:
        self._print("SUMMARY:", "bold")

        if summary.failing:
            self._print("")
            for unit_dir in summary.failing:
                self._print(f"✘ {unit_dir} failed.", "red")

        if summary.total and summary.passed == summary.total:
            color = "bright_green"
        elif summary.passed:
            color = "bright_yellow"
        else:
            color = "bright_red"

        self._print("")
        self._print(f"{summary.passed}/{summary.total} passed.", color)
        self._print("")

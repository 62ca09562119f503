"""Aggregation of final unit states into a run summary."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from tint.models.unit import TestUnit


@dataclass(frozen=True, kw_only=True)
class RunSummary:
    """Pass/fail counts of a finished run."""

    total: int
    passed: int
    failing: Sequence[str]

    @property
    def exit_code(self) -> int:
        """Number of units that did not pass; zero means full success."""
        return self.total - self.passed


def summarize(results: Mapping[str, TestUnit]) -> RunSummary:
    failing = [identity for identity, unit in results.items() if unit.failed]
    return RunSummary(
        total=len(results),
        passed=len(results) - len(failing),
        failing=failing,
    )

"""Fixtures for unit tests."""

import io
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

import pytest
from rich.console import Console

from tint.executor import PhaseExecutor
from tint.models.unit import TestUnit
from tint.reporting import ConsoleReporter
from tint.testing.tools import RecordingProvisioner, ScriptedQueryRunner


class MakeTestFn(Protocol):
    """Protocol for test directory creation function."""

    def __call__(
        self, identity: str, files: Mapping[str, str] | None = None
    ) -> Path:
        """Create a test directory with the given files and return its path."""


class MakeUnitFn(Protocol):
    """Protocol for unit creation function."""

    def __call__(self, identity: str, **updates: object) -> TestUnit:
        """Create a fresh unit for an identity."""


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    """Directory test identities are relative to."""
    path = tmp_path / "base"
    path.mkdir()
    return path


@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    """Root of the per-unit scratch directories."""
    return tmp_path / "scratch"


@pytest.fixture
def make_test(base_dir: Path) -> MakeTestFn:
    """Return a function creating test directories under the base directory."""

    def _make(identity: str, files: Mapping[str, str] | None = None) -> Path:
        test_dir = base_dir / identity
        test_dir.mkdir(parents=True, exist_ok=True)
        for name, content in (files or {}).items():
            (test_dir / name).write_text(content)
        return test_dir

    return _make


@pytest.fixture
def make_unit(scratch_root: Path) -> MakeUnitFn:
    """Return a function creating fresh units with scratch space."""

    def _make(identity: str, **updates: object) -> TestUnit:
        unit = TestUnit(dir=identity, tmp_dir=scratch_root / identity)
        return unit.model_copy(update=updates)

    return _make


@pytest.fixture
def console_output() -> io.StringIO:
    """Buffer receiving everything printed by the reporter."""
    return io.StringIO()


@pytest.fixture
def reporter(console_output: io.StringIO) -> ConsoleReporter:
    """Reporter writing uncolored output to a buffer."""
    return ConsoleReporter(
        console=Console(file=console_output, no_color=True, width=200)
    )


@pytest.fixture
def provisioner() -> RecordingProvisioner:
    """Provisioner succeeding at every operation."""
    return RecordingProvisioner()


@pytest.fixture
def query_runner() -> ScriptedQueryRunner:
    """Query runner returning an empty mapping unless configured otherwise."""
    return ScriptedQueryRunner()


@pytest.fixture
def executor(
    base_dir: Path,
    provisioner: RecordingProvisioner,
    query_runner: ScriptedQueryRunner,
    reporter: ConsoleReporter,
) -> PhaseExecutor:
    """Executor wired to the recording tools."""
    return PhaseExecutor(
        provisioner=provisioner,
        query_runner=query_runner,
        reporter=reporter,
        base_dir=base_dir,
    )

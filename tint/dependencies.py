"""Prerequisite resolution into an ordered execution plan.

Each test directory may contain a ``dependencies.txt`` listing other test
directories, relative to itself, that must be brought up first. The plan is a
depth-first expansion: prerequisites precede their dependents and every test
appears exactly once, at its first position.
"""

import logging
import posixpath
from collections.abc import Sequence
from pathlib import Path

from tint.models.unit import TestUnit

log = logging.getLogger(__name__)

DEPENDENCIES_FILE = "dependencies.txt"


class CircularPrerequisiteError(ValueError):
    """Raised when prerequisite declarations form a cycle."""

    def __init__(self, cycle: Sequence[str]) -> None:
        super().__init__(f"Circular prerequisite: {' -> '.join(cycle)}")
        self.cycle = list(cycle)


class MissingPrerequisiteError(FileNotFoundError):
    """Raised when a declared prerequisite directory does not exist."""

    def __init__(self, prerequisite: str, dependent: str) -> None:
        super().__init__(
            f"Prerequisite {prerequisite} of {dependent} does not exist"
        )
        self.prerequisite = prerequisite
        self.dependent = dependent


def read_prerequisites(base_dir: Path, test_dir: str) -> tuple[str, ...]:
    """Read the declared prerequisites of a test.

    Args:
        base_dir: Directory test identities are relative to
        test_dir: Identity of the test (e.g. "tests/foo")

    Returns:
        Prerequisite identities relative to ``base_dir`` (e.g. "../bar"
        declared by "tests/foo" becomes "tests/bar"); empty when the file is
        missing or blank

    """
    path = base_dir / test_dir / DEPENDENCIES_FILE
    try:
        source = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ()

    return tuple(
        posixpath.normpath(posixpath.join(test_dir, entry)) for entry in source.split()
    )


def build_plan(
    selected: Sequence[str],
    base_dir: Path,
    scratch_root: Path,
) -> list[TestUnit]:
    """Expand selected tests with their prerequisites into an execution plan.

    Args:
        selected: Test identities chosen by the target resolver
        base_dir: Directory test identities are relative to
        scratch_root: Directory under which each unit gets its scratch space

    Returns:
        Fresh test units, prerequisites first, each identity once

    Raises:
        CircularPrerequisiteError: If the declarations contain a cycle
        MissingPrerequisiteError: If a declared prerequisite does not exist

    """
    order: list[str] = []
    prereqs: dict[str, tuple[str, ...]] = {}
    done: set[str] = set()
    path: list[str] = []

    def visit(identity: str) -> None:
        if identity in done:
            return
        if identity in path:
            raise CircularPrerequisiteError(path[path.index(identity) :] + [identity])

        path.append(identity)
        prereqs[identity] = read_prerequisites(base_dir, identity)
        for prerequisite in prereqs[identity]:
            if not (base_dir / prerequisite).is_dir():
                raise MissingPrerequisiteError(prerequisite, identity)
            visit(prerequisite)
        path.pop()

        done.add(identity)
        order.append(identity)

    for identity in selected:
        visit(posixpath.normpath(identity))

    log.debug("Execution plan: %s", order)
    return [
        TestUnit(
            dir=identity,
            tmp_dir=scratch_root / identity,
            prereqs=prereqs[identity],
        )
        for identity in order
    ]

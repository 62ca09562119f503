"""Resolve CLI target patterns into concrete test directories."""

import logging
from collections.abc import Sequence
from fnmatch import fnmatchcase
from pathlib import Path

log = logging.getLogger(__name__)

DEFAULT_PATTERN = "*"


class TargetNotFoundError(FileNotFoundError):
    """Raised when a target pattern refers to a missing top-level directory."""


def target_globs(patterns: Sequence[str], tests_root: str = "tests") -> Sequence[str]:
    """Normalize CLI arguments into glob patterns relative to the base directory.

    Bare names are rooted under ``tests_root``; anything containing a path
    separator is used as given. A single trailing separator is stripped.
    """
    globs: list[str] = []
    for pattern in patterns or [DEFAULT_PATTERN]:
        glob = pattern if "/" in pattern else f"{tests_root}/{pattern}"
        globs.append(glob.removesuffix("/"))
    return globs


def target_dirs(globs: Sequence[str]) -> Sequence[str]:
    """Unique top-level directories referenced by the globs, in order."""
    return list(dict.fromkeys(glob.split("/")[0] for glob in globs))


def available_tests(base_dir: Path, dirs: Sequence[str]) -> Sequence[str]:
    """List every test directory directly below each top-level directory.

    Raises:
        TargetNotFoundError: If a top-level directory does not exist

    """
    tests: list[str] = []
    for top in dirs:
        root = base_dir / top
        if not root.is_dir():
            raise TargetNotFoundError(f"Test directory not found: {root}")
        tests.extend(
            f"{top}/{entry.name}"
            for entry in sorted(root.iterdir())
            if entry.is_dir()
        )
    return tests


def resolve_targets(
    base_dir: Path,
    patterns: Sequence[str],
    tests_root: str = "tests",
) -> Sequence[str]:
    """Select the test directories matching any of the CLI patterns.

    Args:
        base_dir: Directory the patterns are relative to
        patterns: CLI arguments; empty means every test under ``tests_root``
        tests_root: Root for bare test names

    Returns:
        Matching test directories (e.g. ["tests/foo"]) in enumeration order

    """
    globs = target_globs(patterns, tests_root)
    candidates = available_tests(base_dir, target_dirs(globs))
    targets = [
        candidate
        for candidate in candidates
        if any(fnmatchcase(candidate, glob) for glob in globs)
    ]
    log.debug("Resolved %s to %s", list(globs), targets)
    return targets

"""Tests for prerequisite resolution."""

from collections.abc import Callable
from pathlib import Path

import pytest

from tint.dependencies import (
    CircularPrerequisiteError,
    MissingPrerequisiteError,
    build_plan,
    read_prerequisites,
)


class TestReadPrerequisites:
    """Tests for read_prerequisites."""

    def test_missing_file(self, base_dir: Path, make_test: Callable[..., Path]) -> None:
        """Returns nothing when dependencies.txt is absent."""
        make_test("tests/foo")

        assert read_prerequisites(base_dir, "tests/foo") == ()

    def test_blank_file(self, base_dir: Path, make_test: Callable[..., Path]) -> None:
        """Returns nothing for a whitespace-only file."""
        make_test("tests/foo", {"dependencies.txt": "  \n\n"})

        assert read_prerequisites(base_dir, "tests/foo") == ()

    def test_paths_relative_to_test_dir(
        self, base_dir: Path, make_test: Callable[..., Path]
    ) -> None:
        """Normalizes entries relative to the declaring test directory."""
        make_test(
            "tests/foo", {"dependencies.txt": "../bar\n../baz  ../../extra/qux\n"}
        )

        assert read_prerequisites(base_dir, "tests/foo") == (
            "tests/bar",
            "tests/baz",
            "extra/qux",
        )


def identities(plan: list) -> list[str]:
    return [unit.dir for unit in plan]


class TestBuildPlan:
    """Tests for build_plan."""

    def test_single_test_without_prerequisites(
        self, base_dir: Path, scratch_root: Path, make_test: Callable[..., Path]
    ) -> None:
        """Plans just the selected test."""
        make_test("tests/foo")

        plan = build_plan(["tests/foo"], base_dir, scratch_root)

        assert identities(plan) == ["tests/foo"]
        assert plan[0].tmp_dir == scratch_root / "tests" / "foo"
        assert plan[0].prereqs == ()
        assert not plan[0].failed

    def test_prerequisite_comes_first(
        self, base_dir: Path, scratch_root: Path, make_test: Callable[..., Path]
    ) -> None:
        """Places a declared prerequisite before its dependent."""
        make_test("tests/foo", {"dependencies.txt": "../bar"})
        make_test("tests/bar")

        plan = build_plan(["tests/foo"], base_dir, scratch_root)

        assert identities(plan) == ["tests/bar", "tests/foo"]
        assert plan[1].prereqs == ("tests/bar",)

    def test_transitive_prerequisites(
        self, base_dir: Path, scratch_root: Path, make_test: Callable[..., Path]
    ) -> None:
        """Expands prerequisites of prerequisites first."""
        make_test("tests/a", {"dependencies.txt": "../b"})
        make_test("tests/b", {"dependencies.txt": "../c"})
        make_test("tests/c")

        plan = build_plan(["tests/a"], base_dir, scratch_root)

        assert identities(plan) == ["tests/c", "tests/b", "tests/a"]

    def test_shared_prerequisite_planned_once(
        self, base_dir: Path, scratch_root: Path, make_test: Callable[..., Path]
    ) -> None:
        """Deduplicates a prerequisite reachable through several paths."""
        make_test("tests/a", {"dependencies.txt": "../b ../c"})
        make_test("tests/b", {"dependencies.txt": "../d"})
        make_test("tests/c", {"dependencies.txt": "../d"})
        make_test("tests/d")

        plan = build_plan(["tests/a"], base_dir, scratch_root)
        order = identities(plan)

        assert order == ["tests/d", "tests/b", "tests/c", "tests/a"]
        assert len(order) == len(set(order))
        for unit in plan:
            for prerequisite in unit.prereqs:
                assert order.index(prerequisite) < order.index(unit.dir)

    def test_selected_prerequisite_not_repeated(
        self, base_dir: Path, scratch_root: Path, make_test: Callable[..., Path]
    ) -> None:
        """Keeps the first occurrence when a prerequisite is also selected."""
        make_test("tests/foo", {"dependencies.txt": "../bar"})
        make_test("tests/bar")

        plan = build_plan(["tests/bar", "tests/foo"], base_dir, scratch_root)
        reverse = build_plan(["tests/foo", "tests/bar"], base_dir, scratch_root)

        assert identities(plan) == ["tests/bar", "tests/foo"]
        assert identities(reverse) == ["tests/bar", "tests/foo"]

    def test_independent_selections_keep_order(
        self, base_dir: Path, scratch_root: Path, make_test: Callable[..., Path]
    ) -> None:
        """Keeps the selection order of unrelated tests."""
        make_test("tests/b")
        make_test("tests/a")

        plan = build_plan(["tests/b", "tests/a"], base_dir, scratch_root)

        assert identities(plan) == ["tests/b", "tests/a"]

    def test_cycle_is_reported(
        self, base_dir: Path, scratch_root: Path, make_test: Callable[..., Path]
    ) -> None:
        """Raises with the cycle path instead of recursing forever."""
        make_test("tests/a", {"dependencies.txt": "../b"})
        make_test("tests/b", {"dependencies.txt": "../a"})

        with pytest.raises(CircularPrerequisiteError) as exc_info:
            build_plan(["tests/a"], base_dir, scratch_root)

        assert exc_info.value.cycle == ["tests/a", "tests/b", "tests/a"]
        assert "tests/a -> tests/b -> tests/a" in str(exc_info.value)

    def test_self_dependency_is_a_cycle(
        self, base_dir: Path, scratch_root: Path, make_test: Callable[..., Path]
    ) -> None:
        """Treats a test depending on itself as a cycle."""
        make_test("tests/a", {"dependencies.txt": "../a"})

        with pytest.raises(CircularPrerequisiteError):
            build_plan(["tests/a"], base_dir, scratch_root)

    def test_missing_prerequisite(
        self, base_dir: Path, scratch_root: Path, make_test: Callable[..., Path]
    ) -> None:
        """Raises when a declared prerequisite does not exist."""
        make_test("tests/foo", {"dependencies.txt": "../ghost"})

        with pytest.raises(MissingPrerequisiteError) as exc_info:
            build_plan(["tests/foo"], base_dir, scratch_root)

        assert exc_info.value.prerequisite == "tests/ghost"
        assert exc_info.value.dependent == "tests/foo"

    def test_empty_selection(self, base_dir: Path, scratch_root: Path) -> None:
        """Plans nothing for an empty selection."""
        assert build_plan([], base_dir, scratch_root) == []

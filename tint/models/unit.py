"""Test unit model tracking one test directory through its lifecycle."""

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Literal, TypeAlias

from pydantic import Field

from tint.models.base import Model
from tint.models.result import StepResult
from tint.models.setup import SetupData

Phase: TypeAlias = Literal["setup", "pretest", "test", "posttest", "teardown"]
ProvisionedPhase: TypeAlias = Literal["pretest", "test", "posttest"]

PROVISIONED_PHASES: Sequence[ProvisionedPhase] = ("pretest", "test", "posttest")


def deep_merge(base: Mapping[str, Any], extra: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``extra`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in extra.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class TestUnit(Model):
    """One directory-identified integration test plus its lifecycle state.

    The identity of a unit is its ``dir``, a POSIX path relative to the base
    directory (e.g. ``tests/foo``). Snapshots are immutable; the ``with_*``
    helpers and ``mark_failed`` return updated copies.
    """

    __test__ = False

    dir: str = Field(..., description="Test directory, unique across the run")
    tmp_dir: Path = Field(..., description="Scratch directory owned by this unit")
    prereqs: tuple[str, ...] = ()
    failed: bool = False
    environment: Mapping[str, str] = Field(default_factory=dict)
    output: Mapping[str, Any] = Field(default_factory=dict)
    resource_id: str = ""
    resource_name: str = ""

    setup: Mapping[str, StepResult] = Field(default_factory=dict)
    pretest: Mapping[str, StepResult] = Field(default_factory=dict)
    test: Mapping[str, StepResult] = Field(default_factory=dict)
    posttest: Mapping[str, StepResult] = Field(default_factory=dict)
    teardown: Mapping[str, StepResult] = Field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return not self.failed

    def results(self, phase: Phase) -> Mapping[str, StepResult]:
        """Return the step results recorded for a phase."""
        results: Mapping[str, StepResult] = getattr(self, phase)
        return results

    def phase_dir(self, phase: Phase) -> Path:
        """Scratch subdirectory holding the rendered provisioner config."""
        return self.tmp_dir / "terraform" / phase

    def with_step(self, phase: Phase, name: str, result: StepResult) -> "TestUnit":
        return self.model_copy(update={phase: {**self.results(phase), name: result}})

    def with_output(self, values: Mapping[str, Any]) -> "TestUnit":
        return self.model_copy(update={"output": deep_merge(self.output, values)})

    def with_environment(self, values: Mapping[str, str]) -> "TestUnit":
        return self.model_copy(update={"environment": {**self.environment, **values}})

    def with_resource(self, resource_id: str, resource_name: str) -> "TestUnit":
        return self.model_copy(
            update={"resource_id": resource_id, "resource_name": resource_name}
        )

    def mark_failed(self) -> "TestUnit":
        """Flag the unit as failed for the rest of the run."""
        if self.failed:
            return self
        return self.model_copy(update={"failed": True})

    def template_context(self, setup_data: SetupData | None = None) -> dict[str, Any]:
        """Values visible to templates rendered for this unit."""
        context: dict[str, Any] = {
            "dir": self.dir,
            "tmp_dir": str(self.tmp_dir),
            "prereqs": list(self.prereqs),
            "env": dict(self.environment),
            "output": dict(self.output),
            "resource_id": self.resource_id,
            "resource_name": self.resource_name,
        }
        if setup_data is not None:
            # Names from the provisioner output win over the generated ones.
            for key, value in setup_data.as_variables().items():
                context[key] = context.get(key) or value
        return context

"""Models for recorded step results."""

from typing import Any

from pydantic import Field

from tint.models.base import Model


class StepResult(Model):
    """Result of a single step of a phase (a provisioner call or a query).

    Contains only the execution outcome - the owning unit and phase know the
    rest of the context.
    """

    status: int = Field(..., description="Exit code, or 1 for a failed comparison")
    stdout: str = ""
    stderr: str = ""
    output: Any = Field(default_factory=dict, description="Parsed structured output")
    skipped: bool = Field(
        default=False, description="True when the step was never invoked"
    )

    @property
    def succeeded(self) -> bool:
        return self.status == 0

    @classmethod
    def skipped_failure(cls, reason: str) -> "StepResult":
        """Synthetic failure for a step that was not run."""
        return cls(status=1, stderr=reason, skipped=True)

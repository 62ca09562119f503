"""Abstract base classes for the external provisioner and query runner."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tint.models.result import StepResult


@dataclass(frozen=True, kw_only=True)
class Provisioner(ABC):
    """Abstract base for tools that stand infrastructure up and down.

    Every operation runs inside ``workdir``, the scratch directory holding the
    rendered configuration of one phase, and resolves exactly once with the
    captured result of the underlying command.
    """

    @abstractmethod
    async def init(
        self, workdir: Path, environment: Mapping[str, str]
    ) -> StepResult:
        """Prepare the working directory."""

    @abstractmethod
    async def apply(
        self,
        workdir: Path,
        environment: Mapping[str, str],
        variables: Mapping[str, str],
    ) -> StepResult:
        """Create the resources described in the working directory.

        Args:
            workdir: Phase scratch directory
            environment: Custom environment of the test unit
            variables: Run-wide input variables (generated resource names)

        """

    @abstractmethod
    async def output(
        self, workdir: Path, environment: Mapping[str, str]
    ) -> StepResult:
        """Read named outputs; ``StepResult.output`` holds the parsed mapping."""

    @abstractmethod
    async def destroy(
        self, workdir: Path, environment: Mapping[str, str]
    ) -> StepResult:
        """Remove every resource created from the working directory."""


@dataclass(frozen=True, kw_only=True)
class QueryRunner(ABC):
    """Abstract base for tools that query provisioned infrastructure."""

    @abstractmethod
    async def run(
        self,
        query: str,
        variables: Mapping[str, Any],
        environment: Mapping[str, str],
    ) -> StepResult:
        """Execute a query.

        Args:
            query: Rendered query text
            variables: Rendered query variables
            environment: Custom environment of the test unit

        Returns:
            Result whose ``output`` is the parsed structured output, or an
            empty mapping when the output could not be parsed

        """

"""Terraform provisioner implementation."""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tint.models.result import StepResult
from tint.tools.base import Provisioner
from tint.tools.process import CommandResult, run_command
from tint.tools.terraform.config import TerraformConfig

log = logging.getLogger(__name__)


def to_step_result(result: CommandResult, output: Any = None) -> StepResult:
    return StepResult(
        status=result.status,
        stdout=result.stdout,
        stderr=result.stderr,
        output=result.stdout if output is None else output,
    )


@dataclass(frozen=True, kw_only=True)
class TerraformProvisioner(Provisioner):
    """Provisioner driving the Terraform CLI."""

    config: TerraformConfig

    @classmethod
    def from_config(cls, config: TerraformConfig) -> "TerraformProvisioner":
        return cls(config=config)

    async def _terraform(
        self,
        workdir: Path,
        environment: Mapping[str, str],
        *args: str,
    ) -> CommandResult:
        log.info("Running terraform %s in %s", args[0], workdir)
        return await run_command(
            [self.config.binary, *args], cwd=workdir, environment=environment
        )

    async def init(
        self, workdir: Path, environment: Mapping[str, str]
    ) -> StepResult:
        """Run ``terraform init``."""
        return to_step_result(await self._terraform(workdir, environment, "init"))

    async def apply(
        self,
        workdir: Path,
        environment: Mapping[str, str],
        variables: Mapping[str, str],
    ) -> StepResult:
        """Run ``terraform apply`` with variables passed as ``TF_VAR_*``."""
        apply_environment = {
            **environment,
            **{f"TF_VAR_{name}": value for name, value in variables.items()},
        }
        result = await self._terraform(
            workdir, apply_environment, "apply", "-auto-approve", "-no-color"
        )
        return to_step_result(result)

    async def output(
        self, workdir: Path, environment: Mapping[str, str]
    ) -> StepResult:
        """Run ``terraform output --json`` and parse the outputs."""
        result = await self._terraform(workdir, environment, "output", "--json")
        try:
            outputs = json.loads(result.stdout)
        except json.JSONDecodeError:
            log.warning("Unparseable terraform output in %s", workdir)
            outputs = {}
        if not isinstance(outputs, dict):
            outputs = {}
        return to_step_result(result, outputs)

    async def destroy(
        self, workdir: Path, environment: Mapping[str, str]
    ) -> StepResult:
        """Run ``terraform destroy``."""
        result = await self._terraform(
            workdir, environment, "destroy", "-auto-approve", "-no-color"
        )
        return to_step_result(result)

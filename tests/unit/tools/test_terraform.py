"""Tests for the Terraform provisioner."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from tint.testing.factories import CommandResultFactory
from tint.tools.terraform import TerraformConfig, TerraformProvisioner


@pytest.fixture
def run_command() -> Iterator[AsyncMock]:
    with patch(
        "tint.tools.terraform.provisioner.run_command", new_callable=AsyncMock
    ) as mock:
        mock.return_value = CommandResultFactory.build(stdout="", stderr="")
        yield mock


@pytest.fixture
def provisioner() -> TerraformProvisioner:
    return TerraformProvisioner(config=TerraformConfig(binary="tofu"))


async def test_init(
    provisioner: TerraformProvisioner, run_command: AsyncMock, tmp_path: Path
) -> None:
    """Runs init in the working directory with the unit environment."""
    result = await provisioner.init(tmp_path, {"A": "1"})

    run_command.assert_awaited_once_with(
        ["tofu", "init"], cwd=tmp_path, environment={"A": "1"}
    )
    assert result.succeeded


async def test_apply_passes_variables(
    provisioner: TerraformProvisioner, run_command: AsyncMock, tmp_path: Path
) -> None:
    """Passes setup variables as TF_VAR_* environment values."""
    run_command.return_value = CommandResultFactory.build(
        status=1, stdout="", stderr="Error: quota"
    )

    result = await provisioner.apply(
        tmp_path, {"A": "1"}, {"resource_name": "tinttest42"}
    )

    run_command.assert_awaited_once_with(
        ["tofu", "apply", "-auto-approve", "-no-color"],
        cwd=tmp_path,
        environment={"A": "1", "TF_VAR_resource_name": "tinttest42"},
    )
    assert result.status == 1
    assert result.stderr == "Error: quota"


async def test_output_parsed(
    provisioner: TerraformProvisioner, run_command: AsyncMock, tmp_path: Path
) -> None:
    """Parses the JSON outputs."""
    run_command.return_value = CommandResultFactory.build(
        stdout='{"resource_id": {"value": "i-1", "type": "string"}}', stderr=""
    )

    result = await provisioner.output(tmp_path, {})

    assert run_command.await_args.args[0] == ["tofu", "output", "--json"]
    assert result.output == {"resource_id": {"value": "i-1", "type": "string"}}


@pytest.mark.parametrize("stdout", ["", "not json", "[1, 2]"])
async def test_output_unparseable(
    provisioner: TerraformProvisioner,
    run_command: AsyncMock,
    tmp_path: Path,
    stdout: str,
) -> None:
    """Falls back to an empty mapping."""
    run_command.return_value = CommandResultFactory.build(stdout=stdout, stderr="")

    result = await provisioner.output(tmp_path, {})

    assert result.output == {}


async def test_destroy(
    provisioner: TerraformProvisioner, run_command: AsyncMock, tmp_path: Path
) -> None:
    """Runs destroy without prompting."""
    await provisioner.destroy(tmp_path, {})

    run_command.assert_awaited_once_with(
        ["tofu", "destroy", "-auto-approve", "-no-color"], cwd=tmp_path, environment={}
    )

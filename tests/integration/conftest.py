"""Fixtures for integration tests."""

import stat
from pathlib import Path

import pytest

FAKE_TERRAFORM = """#!/bin/sh
test_dir="$(dirname "$(dirname "$(pwd -P)")")"
echo "$(basename "$test_dir") $1 $TF_VAR_resource_name" >> {log}
case "$1" in
  apply)
    [ -n "$FAKE_APPLY_STATUS" ] && exit "$FAKE_APPLY_STATUS"
    ;;
  output)
    echo '{{"resource_id": {{"value": "fake-id", "type": "string"}}}}'
    ;;
esac
exit 0
"""

# Echoes the query text, so a query that is itself JSON comes back as its rows.
FAKE_STEAMPIPE = """#!/bin/sh
printf '%s\\n' "$4"
"""


def _executable(path: Path, content: str) -> Path:
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def terraform_log(tmp_path: Path) -> Path:
    """File receiving one line per fake terraform call."""
    return tmp_path / "terraform.log"


@pytest.fixture
def fake_terraform(bin_dir: Path, terraform_log: Path) -> Path:
    """Terraform stand-in logging ``<test> <command> <resource name>``."""
    return _executable(
        bin_dir / "terraform", FAKE_TERRAFORM.format(log=terraform_log)
    )


@pytest.fixture
def fake_steampipe(bin_dir: Path) -> Path:
    """Steampipe stand-in returning the query text as its output."""
    return _executable(bin_dir / "steampipe", FAKE_STEAMPIPE)

"""Invocation of external commands."""

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)


class ToolInvocationError(Exception):
    """Raised when an external command cannot be started at all."""


@dataclass(frozen=True, kw_only=True)
class CommandResult:
    """Captured outcome of one finished external command."""

    status: int
    stdout: str
    stderr: str


async def run_command(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    environment: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run a command to completion and capture its output.

    Args:
        args: Executable followed by its arguments
        cwd: Working directory, defaults to the current one
        environment: Extra variables layered over the process environment

    Returns:
        The exit status with decoded stdout and stderr

    Raises:
        ToolInvocationError: If the process could not be spawned

    """
    env = {**os.environ, **environment} if environment else None
    log.debug("Running %s (cwd=%s)", " ".join(args), cwd or ".")

    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=cwd,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ToolInvocationError(f"Failed to run {args[0]}: {exc}") from exc

    stdout, stderr = await process.communicate()
    status = process.returncode
    assert status is not None

    if stderr:
        log.debug("%s stderr:\n%s", args[0], stderr.decode(errors="replace").rstrip())

    return CommandResult(
        status=status,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )
